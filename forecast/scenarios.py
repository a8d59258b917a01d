"""Builders for hypothetical driving-variable paths"""

from typing import Mapping, Optional, Sequence

from models import ScenarioPath


def hold_path(name: str, level: float, horizon: int, policies: Optional[Mapping] = None) -> ScenarioPath:
    """Driving variable stays at `level` for every month"""
    return ScenarioPath(name=name, values=(float(level),) * horizon, policies=policies or {})


def stepped_path(name: str,
                 start: float,
                 step_change: float,
                 every: int,
                 horizon: int,
                 floor: Optional[float] = None,
                 cap: Optional[float] = None,
                 policies: Optional[Mapping] = None) -> ScenarioPath:
    """
    Change the driving variable by `step_change` every `every` months.

    With start=5.0, step_change=-0.25, every=3 the path is
    4.75, 4.75, 4.75, 4.50, ... (the first move lands in month 1).
    """
    if every < 1:
        raise ValueError(f"every must be at least 1, got {every}")
    values = []
    for t in range(horizon):
        level = start + step_change * (t // every + 1)
        if floor is not None:
            level = max(level, floor)
        if cap is not None:
            level = min(level, cap)
        values.append(level)
    return ScenarioPath(name=name, values=tuple(values), policies=policies or {})


def custom_path(name: str, values: Sequence[float], policies: Optional[Mapping] = None) -> ScenarioPath:
    return ScenarioPath(name=name, values=tuple(values), policies=policies or {})
