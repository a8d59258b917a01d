"""
Regression specifications used in the scenario analysis.

IS curve: spending responds to the contemporaneous policy rate plus controls.
Distributed lag: spending responds to the current and past m months of the rate.
"""

from typing import Sequence

from models import FeatureLike, LagSpec, RegressionSpec, as_lag_spec
from regression.lags import lag_range


def is_curve_spec(target: str,
                  rate: str,
                  controls: Sequence[FeatureLike] = (),
                  name: str = 'is_curve') -> RegressionSpec:
    """target ~ rate + controls"""
    features = [LagSpec(rate, 0)] + [as_lag_spec(c) for c in controls]
    return RegressionSpec(name=name, target=target, features=tuple(features))


def distributed_lag_spec(target: str,
                         rate: str,
                         max_lag: int,
                         controls: Sequence[FeatureLike] = (),
                         name: str = None) -> RegressionSpec:
    """target ~ rate + rate_lag1 + ... + rate_lag{max_lag} + controls"""
    if max_lag < 1:
        raise ValueError(f"A distributed lag model needs max_lag >= 1, got {max_lag}")
    features = lag_range(rate, max_lag) + [as_lag_spec(c) for c in controls]
    return RegressionSpec(
        name=name or f"distributed_lag_{max_lag}",
        target=target,
        features=tuple(features),
    )
