"""
Merge named monthly series onto one date axis and fill interior gaps.
"""

from typing import Iterable, Mapping, Optional, Tuple, Union
import numpy as np
import pandas as pd

from exceptions import DataUnavailable
from models import AlignedSeries

Observations = Union[pd.Series, Iterable[Tuple[object, Optional[float]]]]


def to_month_start(dates) -> pd.DatetimeIndex:
    """Normalize dates to the first day of their month"""
    index = pd.DatetimeIndex(pd.to_datetime(dates))
    return index.to_period('M').to_timestamp()


def _as_series(name: str, observations: Observations) -> pd.Series:
    if isinstance(observations, pd.Series):
        series = observations.copy()
    else:
        pairs = list(observations)
        if not pairs:
            return pd.Series(dtype=float, name=name)
        dates, values = zip(*pairs)
        series = pd.Series(list(values), index=list(dates))

    series = pd.to_numeric(series, errors='coerce').astype(float)
    series.index = to_month_start(series.index)
    series = series.sort_index(kind='mergesort')
    # Several observations in one month: keep the latest
    series = series[~series.index.duplicated(keep='last')]
    series.name = name
    return series


def align_series(series: Mapping[str, Observations],
                 start=None,
                 end=None,
                 interpolate: bool = True) -> AlignedSeries:
    """
    Merge series on a complete monthly date axis.

    Parameters:
    - series: name -> observations (a date-indexed Series or (date, value) pairs)
    - start, end: optional range bounds; default to the span of the observations
    - interpolate: fill interior gaps with `interpolate_missing`

    Raises DataUnavailable when a series has no non-null value in range.
    """
    if not series:
        raise ValueError("At least one series is required for alignment")

    start = to_month_start([start])[0] if start is not None else None
    end = to_month_start([end])[0] if end is not None else None
    if start is not None and end is not None and start > end:
        raise ValueError(f"Alignment start {start:%Y-%m} is after end {end:%Y-%m}")

    prepared = {}
    for name, observations in series.items():
        s = _as_series(name, observations)
        if start is not None:
            s = s[s.index >= start]
        if end is not None:
            s = s[s.index <= end]
        if s.dropna().empty:
            raise DataUnavailable(name)
        prepared[name] = s

    axis_start = start if start is not None else min(s.index.min() for s in prepared.values())
    axis_end = end if end is not None else max(s.index.max() for s in prepared.values())
    axis = pd.date_range(axis_start, axis_end, freq='MS', name='date')

    frame = pd.DataFrame({name: s.reindex(axis) for name, s in prepared.items()}, index=axis)
    aligned = AlignedSeries(frame)

    if interpolate:
        aligned = interpolate_missing(aligned)
    return aligned


def interpolate_missing(aligned: AlignedSeries) -> AlignedSeries:
    """
    Linearly interpolate interior nulls of every series.

    Distance is measured in months along the date axis. Nulls before the
    first or after the last observation stay null (no extrapolation).
    """
    frame = aligned.to_frame()
    if frame.empty:
        return aligned

    months = np.asarray(frame.index.year * 12 + frame.index.month, dtype=float)
    filled = (
        frame.set_axis(pd.Index(months), axis=0)
        .interpolate(method='index', limit_area='inside')
        .set_axis(frame.index, axis=0)
    )
    return AlignedSeries(filled)
