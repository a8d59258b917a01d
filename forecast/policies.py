"""
Extrapolation policies for predictors other than the driving variable.

Each policy answers "what is this predictor's value at forecast step t"
(t = 1 is the first projected month).
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import math
import pandas as pd

from exceptions import DataUnavailable


class ExtrapolationPolicy:
    """Base class: value of a predictor at forecast step t"""

    def value_at(self, step: int) -> float:
        raise NotImplementedError

    def path(self, horizon: int) -> Tuple[float, ...]:
        return tuple(self.value_at(t) for t in range(1, horizon + 1))


def _last_observation(series: pd.Series) -> float:
    last = series.last_valid_index()
    if last is None:
        raise DataUnavailable(str(series.name))
    return float(series.loc[last])


@dataclass(frozen=True)
class HoldConstant(ExtrapolationPolicy):
    """Predictor stays at a fixed value"""
    value: float

    def value_at(self, step: int) -> float:
        return float(self.value)

    @classmethod
    def from_history(cls, series: pd.Series) -> 'HoldConstant':
        """Hold the last observed value flat"""
        return cls(_last_observation(series))


@dataclass(frozen=True)
class CompoundGrowth(ExtrapolationPolicy):
    """Predictor grows at a fixed monthly rate from its starting level"""
    start: float
    monthly_rate: float  # 0.002 = 0.2% per month

    def value_at(self, step: int) -> float:
        return self.start * (1.0 + self.monthly_rate) ** step

    @staticmethod
    def monthly_from_annual(annual_rate: float) -> float:
        return (1.0 + annual_rate) ** (1.0 / 12.0) - 1.0

    @classmethod
    def from_history(cls, series: pd.Series,
                     monthly_rate: Optional[float] = None,
                     annual_rate: Optional[float] = None,
                     lookback: int = 12) -> 'CompoundGrowth':
        """
        Compound from the last observed value.

        The rate is taken from `monthly_rate`, else converted from
        `annual_rate`, else estimated as the average monthly growth over the
        last `lookback` months of history.
        """
        start = _last_observation(series)
        if monthly_rate is None and annual_rate is not None:
            monthly_rate = cls.monthly_from_annual(annual_rate)
        if monthly_rate is None:
            history = series.loc[:series.last_valid_index()].dropna()
            if len(history) <= lookback:
                raise DataUnavailable(
                    str(series.name),
                    f"Need more than {lookback} observations of '{series.name}' "
                    f"to estimate a growth rate",
                )
            base = float(history.iloc[-(lookback + 1)])
            if base <= 0 or start <= 0:
                raise ValueError(f"Cannot estimate compound growth of '{series.name}' "
                                 f"from non-positive levels")
            monthly_rate = (start / base) ** (1.0 / lookback) - 1.0
        return cls(start=start, monthly_rate=float(monthly_rate))


@dataclass(frozen=True)
class LinearTrend(ExtrapolationPolicy):
    """Predictor changes by a fixed amount each month"""
    start: float
    slope: float

    def value_at(self, step: int) -> float:
        return self.start + self.slope * step


@dataclass(frozen=True)
class ExplicitPath(ExtrapolationPolicy):
    """Caller-supplied value for every forecast step"""
    values: Tuple[float, ...]

    def __post_init__(self):
        values = tuple(float(v) for v in self.values)
        if not all(math.isfinite(v) for v in values):
            raise ValueError("ExplicitPath values must be finite")
        object.__setattr__(self, 'values', values)

    def value_at(self, step: int) -> float:
        if step < 1 or step > len(self.values):
            raise ValueError(f"ExplicitPath covers steps 1..{len(self.values)}, got {step}")
        return self.values[step - 1]
