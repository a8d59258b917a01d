"""Complete fit-then-project workflow over several regression specifications"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from config import PipelineConfig
from exceptions import DataUnavailable, InsufficientData, LagOrderMismatch, UnknownPredictor
from forecast.lag_window import LagWindow
from forecast.policies import CompoundGrowth, ExtrapolationPolicy, HoldConstant
from forecast.projector import ScenarioProjector
from forecast.scenarios import stepped_path
from models import AlignedSeries, RegressionSpec, ScenarioPath
from regression.lags import build_lag_features
from regression.linear_model import LinearModelFitter
from regression.specifications import distributed_lag_spec, is_curve_spec


def default_specs(config: PipelineConfig) -> List[RegressionSpec]:
    """IS curve plus a distributed-lag model of the configured order"""
    return [
        is_curve_spec(config.target, config.driving_variable, config.controls),
        distributed_lag_spec(config.target, config.driving_variable, config.max_lag,
                             config.controls),
    ]


def default_policies(aligned: AlignedSeries,
                     config: PipelineConfig) -> Dict[str, ExtrapolationPolicy]:
    """Income compounds at the configured rate, sentiment is held at its last value"""
    return {
        config.income: CompoundGrowth.from_history(
            aligned.column(config.income), annual_rate=config.income_annual_growth),
        config.sentiment: HoldConstant.from_history(aligned.column(config.sentiment)),
    }


def build_scenarios(config: PipelineConfig, last_rate: float) -> List[ScenarioPath]:
    return [
        stepped_path(d.name, start=last_rate, step_change=d.step_change, every=d.every,
                     horizon=config.horizon, floor=d.floor)
        for d in config.scenarios
    ]


def run_scenario_sequence(aligned: AlignedSeries,
                          specs: Iterable[RegressionSpec],
                          scenarios: Iterable[ScenarioPath],
                          driving_variable: str,
                          policies: Optional[Mapping[str, ExtrapolationPolicy]] = None,
                          max_workers: Optional[int] = None) -> dict:
    """
    Fit every specification and project each one under every scenario

    Steps:
    1. Add the lagged columns all specifications need
    2. Fit each specification; a failed fit is logged and skipped
    3. Seed a lag window from the driving variable's history and project
       every scenario against each fitted model

    Returns dict with 'features', 'models', 'forecasts' (specification -> scenario ->
    ScenarioForecast) and 'failures' (specification -> error message).
    """
    logger = logging.getLogger('scenario_sequence')
    specs = list(specs)
    scenarios = list(scenarios)
    policies = dict(policies or {})

    # Lags of absent series are left out; the specification naming them fails at fit
    required = [lag for spec in specs for lag in spec.required_lags if lag.name in aligned]
    features = build_lag_features(aligned, required)

    fitter = LinearModelFitter()
    models, forecasts, failures = {}, {}, {}

    driving_history = aligned.column(driving_variable)
    last_observed = driving_history.last_valid_index()

    for spec in specs:
        logger.info(f"Fitting {spec.name}: {spec.target} ~ {' + '.join(spec.feature_names)}")
        try:
            model = fitter.fit_spec(features, spec)
        except (InsufficientData, UnknownPredictor) as e:
            logger.warning(f"Skipping {spec.name}: {str(e)}")
            failures[spec.name] = str(e)
            continue

        models[spec.name] = model
        logger.info(
            f"{spec.name}: R² = {model.r_squared:.4f}, "
            f"residual std error = {model.residual_std_error:.4f}, n = {model.nobs}"
        )

        model_policies = {name: policy for name, policy in policies.items()
                          if name in model.feature_names}
        try:
            seed = LagWindow.from_history(driving_history,
                                          capacity=model.max_lag(driving_variable))
            projector = ScenarioProjector(model, driving_variable, policies=model_policies)
            forecasts[spec.name] = projector.project_all(
                scenarios, seed, start_date=last_observed, max_workers=max_workers)
        except (DataUnavailable, LagOrderMismatch, UnknownPredictor) as e:
            logger.error(f"Scenario projection failed for {spec.name}: {str(e)}")
            failures[spec.name] = str(e)
            continue

        for name, forecast in forecasts[spec.name].items():
            logger.info(f"{spec.name} / {name}: final projection {forecast.predictions[-1]:,.2f}")

    return {
        'features': features,
        'models': models,
        'forecasts': forecasts,
        'failures': failures,
    }
