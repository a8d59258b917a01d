"""Tabular summaries of fitted models and scenario projections"""

from typing import Dict, List
import pandas as pd

from models import FittedModel, ScenarioForecast


def coefficient_table(model: FittedModel) -> pd.DataFrame:
    """Coefficient, standard error, t-statistic and p-value per predictor"""
    names = list(model.coefficients)
    table = pd.DataFrame({
        'coefficient': [model.coefficients[n] for n in names],
        'std_error': [model.std_errors[n] for n in names],
        't_value': [model.t_values[n] for n in names],
        'p_value': [model.p_values[n] for n in names],
    }, index=pd.Index(names, name='predictor'))
    return table


def fit_statistics(models: Dict[str, FittedModel]) -> pd.DataFrame:
    """One row of fit diagnostics per named model"""
    records = []
    for name, model in models.items():
        records.append({
            'model': name,
            'target': model.target,
            'n_predictors': len(model.features),
            'nobs': model.nobs,
            'r_squared': model.r_squared,
            'adj_r_squared': model.adj_r_squared,
            'residual_std_error': model.residual_std_error,
        })
    return pd.DataFrame(records).set_index('model') if records else pd.DataFrame()


def scenario_table(forecasts: Dict[str, ScenarioForecast]) -> pd.DataFrame:
    """Month offsets as rows, one prediction column per scenario"""
    if not forecasts:
        return pd.DataFrame()

    columns = {name: pd.Series(f.predictions, index=f.offsets) for name, f in forecasts.items()}
    table = pd.DataFrame(columns)
    table.index.name = 'offset'

    first = next(iter(forecasts.values()))
    if first.dates is not None and all(f.offsets == first.offsets for f in forecasts.values()):
        table.insert(0, 'date', first.dates)
    return table


def describe_scenarios(forecasts: Dict[str, ScenarioForecast],
                       last_actual: float,
                       target: str = 'target') -> List[str]:
    """One sentence per scenario comparing the final projection with the last actual value"""
    lines = []
    for name, forecast in forecasts.items():
        final = forecast.predictions[-1]
        change = final - last_actual
        pct = change / last_actual * 100 if last_actual else float('nan')
        lines.append(
            f"{name}: {target} reaches {final:,.1f} after {forecast.offsets[-1]} months "
            f"({change:+,.1f}, {pct:+.1f}% vs last actual {last_actual:,.1f}); "
            f"driving variable ends at {forecast.driving_values[-1]:.2f}"
        )
    return lines
