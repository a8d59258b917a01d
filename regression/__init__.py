"""Lag construction, linear model fitting and exploratory statistics"""

from .lags import add_growth_rate, build_lag_features, lag_range
from .linear_model import LinearModelFitter, fit_linear_model

__all__ = [
    'add_growth_rate',
    'build_lag_features',
    'lag_range',
    'LinearModelFitter',
    'fit_linear_model',
]
