"""Lagged and growth-rate feature construction"""

from typing import Iterable, List, Optional

from exceptions import UnknownPredictor
from models import AlignedSeries, FeatureLike, LagSpec, as_lag_spec


def lag_range(name: str, max_lag: int, include_current: bool = True) -> List[LagSpec]:
    """LagSpecs for name, name_lag1, ..., name_lag{max_lag}"""
    if max_lag < 0:
        raise ValueError(f"max_lag must be non-negative, got {max_lag}")
    first = 0 if include_current else 1
    return [LagSpec(name, k) for k in range(first, max_lag + 1)]


def build_lag_features(aligned: AlignedSeries,
                       lag_specs: Iterable[FeatureLike]) -> AlignedSeries:
    """
    Add one lagged column per spec with lag > 0.

    The value at row i is the source value at row i - k; the first k rows
    are null. Returns a new AlignedSeries with the same dates.
    """
    specs = [as_lag_spec(spec) for spec in lag_specs]

    unknown = sorted({spec.name for spec in specs if spec.name not in aligned})
    if unknown:
        raise UnknownPredictor(f"Cannot lag unknown series {unknown}; available: {aligned.names}")

    frame = aligned.to_frame()
    derived = {}
    for spec in specs:
        if spec.lag == 0:
            continue
        derived[spec.feature_name] = frame[spec.name].shift(spec.lag)

    if not derived:
        return aligned
    return aligned.with_columns(derived)


def add_growth_rate(aligned: AlignedSeries,
                    name: str,
                    periods: int = 1,
                    new_name: Optional[str] = None) -> AlignedSeries:
    """
    Add the percentage change of `name` over `periods` months.

    periods=1 gives month-over-month growth, periods=12 year-over-year.
    Values are in percent; leading rows without history are null.
    """
    if periods < 1:
        raise ValueError(f"periods must be at least 1, got {periods}")
    source = aligned.column(name)
    growth = (source / source.shift(periods) - 1.0) * 100.0
    column = new_name or (f"{name}_growth" if periods == 1 else f"{name}_growth{periods}")
    return aligned.with_columns({column: growth})
