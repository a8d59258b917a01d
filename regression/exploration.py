"""Exploratory statistics: correlations, lead/lag structure and seasonality"""

from typing import List, Optional
import numpy as np
import pandas as pd
from scipy import stats as scipy_stats
from statsmodels.tsa.seasonal import seasonal_decompose

from exceptions import InsufficientData
from models import AlignedSeries


def correlation_matrix(aligned: AlignedSeries,
                       columns: Optional[List[str]] = None,
                       method: str = 'pearson') -> pd.DataFrame:
    """Pairwise correlations over rows where both series are present"""
    frame = aligned.to_frame()
    if columns is not None:
        frame = frame[[aligned.column(c).name for c in columns]]
    return frame.corr(method=method)


def lagged_correlations(aligned: AlignedSeries,
                        target: str,
                        driver: str,
                        max_lag: int = 12) -> pd.DataFrame:
    """
    Correlation of target(t) with driver(t - k) for k = 0..max_lag

    Returns a DataFrame with columns lag, correlation, p_value, nobs.
    Lags with fewer than three overlapping observations get NaN.
    """
    y = aligned.column(target)
    x = aligned.column(driver)

    records = []
    for k in range(max_lag + 1):
        pair = pd.concat([y, x.shift(k)], axis=1).dropna()
        if len(pair) < 3:
            r, p = np.nan, np.nan
        else:
            r, p = scipy_stats.pearsonr(pair.iloc[:, 0], pair.iloc[:, 1])
        records.append({
            'lag': k,
            'correlation': float(r),
            'p_value': float(p),
            'nobs': len(pair),
        })
    return pd.DataFrame(records)


def seasonal_profile(aligned: AlignedSeries, name: str) -> pd.DataFrame:
    """Average value per calendar month and its deviation from the overall mean"""
    series = aligned.column(name).dropna()
    if series.empty:
        raise InsufficientData(required=1, available=0, context=f"seasonal profile of '{name}'")

    by_month = series.groupby(series.index.month)
    profile = pd.DataFrame({
        'mean': by_month.mean(),
        'count': by_month.size(),
    })
    profile.index.name = 'month'
    profile['deviation'] = profile['mean'] - series.mean()
    return profile


def decompose_seasonality(aligned: AlignedSeries,
                          name: str,
                          period: int = 12,
                          model: str = 'additive') -> pd.DataFrame:
    """
    Classical trend/seasonal/residual decomposition of one series.

    Uses the longest run of consecutive observations; needs two full cycles.
    """
    series = aligned.column(name)
    first, last = series.first_valid_index(), series.last_valid_index()
    run = series.loc[first:last] if first is not None else series.iloc[0:0]
    if run.isna().any():
        # Interior gaps left after interpolation: keep the most recent complete run
        breaks = run.isna()
        run = run[breaks[::-1].cumsum()[::-1] == 0]

    required = 2 * period
    if len(run) < required:
        raise InsufficientData(required=required, available=len(run),
                               context=f"seasonal decomposition of '{name}'")

    result = seasonal_decompose(run.asfreq('MS'), model=model, period=period)
    return pd.DataFrame({
        'observed': result.observed,
        'trend': result.trend,
        'seasonal': result.seasonal,
        'residual': result.resid,
    })
