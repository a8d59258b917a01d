"""Common data models used across the project."""

from dataclasses import dataclass, field
import math
import numbers
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
import numpy as np
import pandas as pd

from exceptions import UnknownPredictor

INTERCEPT = 'const'  # same pseudo-name statsmodels gives the constant column

_LAG_PATTERN = re.compile(r'^(?P<name>.+)_lag(?P<lag>[1-9]\d*)$')


@dataclass(frozen=True)
class LagSpec:
    """Derived feature: value of `name` at (current date - `lag` months)"""
    name: str
    lag: int = 0  # 0 means contemporaneous

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("LagSpec name must be a non-empty string")
        if isinstance(self.lag, bool) or not isinstance(self.lag, numbers.Integral) or self.lag < 0:
            raise ValueError(f"Lag count must be a non-negative integer, got {self.lag!r}")
        if self.name == INTERCEPT and self.lag == 0:
            raise ValueError(
                f"'{INTERCEPT}' is reserved for the regression intercept and cannot name a predictor"
            )
        object.__setattr__(self, 'lag', int(self.lag))

    @property
    def feature_name(self) -> str:
        return self.name if self.lag == 0 else f"{self.name}_lag{self.lag}"

    @classmethod
    def parse(cls, feature_name: str) -> 'LagSpec':
        """Inverse of `feature_name`: 'rate_lag2' -> LagSpec('rate', 2)"""
        match = _LAG_PATTERN.match(feature_name)
        if match:
            return cls(match.group('name'), int(match.group('lag')))
        return cls(feature_name, 0)


FeatureLike = Union[str, LagSpec]


def as_lag_spec(feature: FeatureLike) -> LagSpec:
    """Accept either a LagSpec or a feature name"""
    if isinstance(feature, LagSpec):
        return feature
    return LagSpec.parse(feature)


@dataclass(frozen=True, eq=False)
class AlignedSeries:
    """
    Named monthly series sharing one date axis.

    The index is a complete run of first-of-month dates, unique and
    ascending, so shifting by k rows is the same as lagging by k months.
    Values are floats and may be NaN.
    """
    data: pd.DataFrame

    def __post_init__(self):
        data = self.data
        if not isinstance(data, pd.DataFrame):
            raise TypeError("AlignedSeries wraps a pandas DataFrame")
        if not isinstance(data.index, pd.DatetimeIndex):
            raise ValueError("AlignedSeries requires a DatetimeIndex")
        if not data.index.is_unique:
            raise ValueError("AlignedSeries dates must be unique")
        if not data.index.is_monotonic_increasing:
            raise ValueError("AlignedSeries dates must be sorted ascending")
        if data.columns.duplicated().any():
            raise ValueError("AlignedSeries column names must be unique")
        if len(data.index) > 0:
            month_starts = data.index.to_period('M').to_timestamp()
            if not (data.index == month_starts).all():
                raise ValueError("AlignedSeries dates must be first-of-month")
            expected = pd.date_range(data.index[0], data.index[-1], freq='MS')
            if len(expected) != len(data.index):
                raise ValueError("AlignedSeries date axis must have no missing months")

        frame = data.astype(float).rename_axis('date')
        object.__setattr__(self, 'data', frame)

    def __len__(self) -> int:
        return len(self.data)

    def __contains__(self, name: str) -> bool:
        return name in self.data.columns

    @property
    def names(self) -> List[str]:
        return list(self.data.columns)

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self.data.index.copy()

    @property
    def start(self) -> Optional[pd.Timestamp]:
        return self.data.index[0] if len(self.data) else None

    @property
    def end(self) -> Optional[pd.Timestamp]:
        return self.data.index[-1] if len(self.data) else None

    def column(self, name: str) -> pd.Series:
        if name not in self.data.columns:
            raise UnknownPredictor(f"Series '{name}' not found; available: {self.names}")
        return self.data[name].copy()

    def to_frame(self) -> pd.DataFrame:
        return self.data.copy()

    def rows(self) -> Iterator[Tuple[pd.Timestamp, Dict[str, float]]]:
        """Iterate time points as (date, {name: value})"""
        for date, row in self.data.iterrows():
            yield date, {name: (None if pd.isna(value) else float(value))
                         for name, value in row.items()}

    def with_columns(self, columns: Mapping[str, Any]) -> 'AlignedSeries':
        """Return a new AlignedSeries with columns added or replaced"""
        frame = self.data.copy()
        for name, values in columns.items():
            if isinstance(values, pd.Series):
                frame[name] = values.reindex(frame.index).astype(float)
            else:
                values = np.asarray(values, dtype=float)
                if len(values) != len(frame):
                    raise ValueError(
                        f"Column '{name}' has {len(values)} values for {len(frame)} dates"
                    )
                frame[name] = values
        return AlignedSeries(frame)


@dataclass(frozen=True, eq=False)
class FittedModel:
    """Container for an ordinary least squares fit"""
    target: str
    features: Tuple[LagSpec, ...]
    coefficients: Dict[str, float]  # INTERCEPT first, then features in fit order
    std_errors: Dict[str, float]
    t_values: Dict[str, float]
    p_values: Dict[str, float]
    r_squared: float
    adj_r_squared: float
    residual_std_error: float
    ssr: float
    sst: float
    nobs: int
    df_resid: float
    fitted_values: pd.Series = field(repr=False)
    residuals: pd.Series = field(repr=False)
    summary: str = field(default='', repr=False)

    def __post_init__(self):
        features = tuple(as_lag_spec(f) for f in self.features)
        object.__setattr__(self, 'features', features)

        names = [f.feature_name for f in features]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate predictors in model: {names}")

        expected = [INTERCEPT] + names
        if list(self.coefficients) != expected:
            raise UnknownPredictor(
                f"Coefficient names {list(self.coefficients)} do not match "
                f"predictor order {expected}"
            )
        for name, value in self.coefficients.items():
            if not math.isfinite(value):
                raise ValueError(f"Coefficient for '{name}' is not finite: {value}")

        object.__setattr__(self, 'coefficients',
                           {name: float(value) for name, value in self.coefficients.items()})

    @property
    def feature_names(self) -> List[str]:
        return [f.feature_name for f in self.features]

    @property
    def intercept(self) -> float:
        return self.coefficients[INTERCEPT]

    def max_lag(self, name: str) -> int:
        """Largest lag of `name` among the predictors (0 if only contemporaneous or absent)"""
        return max((f.lag for f in self.features if f.name == name), default=0)

    def predict(self, features: Mapping[str, float]) -> float:
        """Predict one observation; `features` must name exactly the fitted predictors"""
        supplied = set(features)
        expected = set(self.feature_names)
        if supplied != expected:
            missing = sorted(expected - supplied)
            extra = sorted(supplied - expected)
            raise UnknownPredictor(
                f"Predictor mismatch for model of '{self.target}': "
                f"missing {missing}, unexpected {extra}"
            )

        prediction = self.intercept
        for name in self.feature_names:
            prediction += self.coefficients[name] * float(features[name])
        return prediction

    def predict_frame(self, data: Union['AlignedSeries', pd.DataFrame]) -> pd.Series:
        """Predict every row of a table holding the fitted predictors"""
        frame = data.to_frame() if isinstance(data, AlignedSeries) else data
        missing = [name for name in self.feature_names if name not in frame.columns]
        if missing:
            raise UnknownPredictor(f"Predictors missing from data: {missing}")

        X = frame[self.feature_names].to_numpy(dtype=float)
        beta = np.array([self.coefficients[name] for name in self.feature_names], dtype=float)
        return pd.Series(self.intercept + X @ beta, index=frame.index,
                         name=f"{self.target}_predicted")


@dataclass(frozen=True)
class RegressionSpec:
    """A named regression: target plus ordered predictors"""
    name: str
    target: str
    features: Tuple[LagSpec, ...]

    def __post_init__(self):
        features = tuple(as_lag_spec(f) for f in self.features)
        names = [f.feature_name for f in features]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate predictors in specification '{self.name}': {names}")
        if self.target in names:
            raise ValueError(f"Target '{self.target}' cannot also be a predictor")
        object.__setattr__(self, 'features', features)

    @property
    def feature_names(self) -> List[str]:
        return [f.feature_name for f in self.features]

    @property
    def required_lags(self) -> List[LagSpec]:
        return [f for f in self.features if f.lag > 0]


@dataclass(frozen=True, eq=False)
class ScenarioPath:
    """Hypothetical future path of the driving variable, one value per month offset"""
    name: str
    values: Tuple[float, ...]
    offsets: Optional[Tuple[int, ...]] = None  # defaults to 1..H
    policies: Mapping[str, Any] = field(default_factory=dict)  # per-scenario overrides

    def __post_init__(self):
        values = tuple(float(v) for v in self.values)
        if not values:
            raise ValueError(f"Scenario '{self.name}' has an empty path")
        if not all(math.isfinite(v) for v in values):
            raise ValueError(f"Scenario '{self.name}' contains non-finite values")

        offsets = tuple(range(1, len(values) + 1)) if self.offsets is None else tuple(
            int(o) for o in self.offsets)
        if offsets != tuple(range(1, len(values) + 1)):
            raise ValueError(
                f"Scenario '{self.name}' offsets must run 1..{len(values)} without gaps"
            )

        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'offsets', offsets)
        object.__setattr__(self, 'policies', dict(self.policies))

    @classmethod
    def from_pairs(cls, name: str, pairs: Sequence[Tuple[int, float]],
                   policies: Optional[Mapping[str, Any]] = None) -> 'ScenarioPath':
        ordered = sorted(pairs, key=lambda pair: pair[0])
        return cls(
            name=name,
            values=tuple(value for _, value in ordered),
            offsets=tuple(offset for offset, _ in ordered),
            policies=policies or {},
        )

    @property
    def horizon(self) -> int:
        return len(self.values)

    def pairs(self) -> List[Tuple[int, float]]:
        return list(zip(self.offsets, self.values))


@dataclass(frozen=True, eq=False)
class ScenarioForecast:
    """Projected target values for one scenario"""
    name: str
    offsets: Tuple[int, ...]
    driving_values: Tuple[float, ...]
    predictions: Tuple[float, ...]
    dates: Optional[pd.DatetimeIndex] = None

    def pairs(self) -> List[Tuple[int, float]]:
        return list(zip(self.offsets, self.predictions))

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame({
            'offset': list(self.offsets),
            'driving_value': list(self.driving_values),
            'prediction': list(self.predictions),
        })
        if self.dates is not None:
            frame.insert(0, 'date', self.dates)
        return frame
