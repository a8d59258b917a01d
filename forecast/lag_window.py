"""Fixed-capacity window of the most recent driving-variable values"""

from collections import deque
from typing import Iterable, Iterator, Optional, Tuple
import math
import pandas as pd

from exceptions import DataUnavailable, LagOrderMismatch


class LagWindow:
    """
    Oldest-to-newest buffer of driving-variable values.

    lag(1) is the newest value, lag(len(window)) the oldest. push() appends
    a value and drops the oldest once the window is full.
    """

    def __init__(self, values: Iterable[float], capacity: Optional[int] = None):
        values = [float(v) for v in values]
        if capacity is None:
            capacity = len(values)
        if capacity < 0:
            raise ValueError(f"Window capacity must be non-negative, got {capacity}")
        if not all(math.isfinite(v) for v in values):
            raise ValueError("Lag window values must be finite")
        self.capacity = capacity
        self._values = deque(values[-capacity:] if capacity else [],
                             maxlen=capacity)

    @classmethod
    def from_history(cls, series: pd.Series, capacity: int) -> 'LagWindow':
        """
        Seed from the last `capacity` observations of a historical series.

        Trailing nulls (months not yet published) are skipped; the seeded
        months themselves must be consecutive and present.
        """
        last = series.last_valid_index()
        if last is None:
            raise DataUnavailable(str(series.name))
        history = series.loc[:last]
        if capacity == 0:
            return cls([], capacity=0)

        tail = history.iloc[-capacity:]
        if len(tail) < capacity:
            raise LagOrderMismatch(required=capacity, available=len(tail))
        if tail.isna().any():
            raise DataUnavailable(
                str(series.name),
                f"Series '{series.name}' has gaps in the last {capacity} observations",
            )
        return cls(tail.to_numpy(dtype=float), capacity=capacity)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[float]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"LagWindow({list(self._values)}, capacity={self.capacity})"

    @property
    def values(self) -> Tuple[float, ...]:
        return tuple(self._values)

    def lag(self, k: int) -> float:
        """Value k steps back (k=1 is the most recent)"""
        if k < 1:
            raise ValueError(f"Lag must be at least 1, got {k}")
        if k > len(self._values):
            raise LagOrderMismatch(required=k, available=len(self._values))
        return self._values[-k]

    def push(self, value: float):
        """Append the newest value, dropping the oldest when full"""
        value = float(value)
        if not math.isfinite(value):
            raise ValueError("Lag window values must be finite")
        if self.capacity:
            self._values.append(value)

    def copy(self) -> 'LagWindow':
        return LagWindow(self._values, capacity=self.capacity)
