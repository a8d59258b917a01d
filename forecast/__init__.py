"""Scenario projection of fitted models"""

from .lag_window import LagWindow
from .policies import CompoundGrowth, ExplicitPath, ExtrapolationPolicy, HoldConstant, LinearTrend
from .projector import ScenarioProjector

__all__ = [
    'LagWindow',
    'ExtrapolationPolicy',
    'HoldConstant',
    'CompoundGrowth',
    'LinearTrend',
    'ExplicitPath',
    'ScenarioProjector',
]
