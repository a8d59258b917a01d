"""
Data validation for raw monthly macroeconomic series.
"""

from typing import Dict, List, Mapping, Optional, Tuple
import pandas as pd


class SeriesValidator:
    """Reports quality issues in raw series before alignment."""

    def __init__(self, validation_bounds: Optional[Mapping[str, Mapping[str, float]]] = None):
        # Define reasonable bounds for data validation
        self.validation_bounds = {
            'retail_sales': {'min': 0, 'max': 2_000_000},   # millions of dollars
            'fed_funds': {'min': -1, 'max': 25},            # percent
            'disposable_income': {'min': 0, 'max': 100_000},  # billions of chained dollars
            'consumer_sentiment': {'min': 0, 'max': 150},   # index
        }
        if validation_bounds:
            self.validation_bounds.update({k: dict(v) for k, v in validation_bounds.items()})

    def validate_series(self, name: str, series: pd.Series) -> Tuple[bool, List[str]]:
        """
        Validates one raw series.

        Args:
            name: Dataset name (used to look up bounds)
            series: Date-indexed values, possibly with NaN

        Returns:
            Tuple of (is_valid, list_of_issues)
        """
        issues = []

        if series.empty:
            issues.append(f"{name}: no observations")
            return False, issues

        values = pd.to_numeric(series, errors='coerce')
        non_numeric = values.isna() & series.notna()
        if non_numeric.any():
            issues.append(f"{name}: {int(non_numeric.sum())} non-numeric values")

        if values.dropna().empty:
            issues.append(f"{name}: all values missing")
            return False, issues

        missing_count = int(values.isna().sum())
        if missing_count > 0:
            issues.append(f"{name}: {missing_count} missing values")

        months = pd.DatetimeIndex(pd.to_datetime(series.index)).to_period('M')
        duplicated = months.duplicated()
        if duplicated.any():
            issues.append(
                f"{name}: {int(duplicated.sum())} duplicate months "
                f"(first at {months[duplicated][0]})"
            )

        unique_months = months.unique().sort_values()
        expected = pd.period_range(unique_months[0], unique_months[-1], freq='M')
        gaps = expected.difference(unique_months)
        if len(gaps) > 0:
            issues.append(f"{name}: {len(gaps)} months absent between "
                          f"{unique_months[0]} and {unique_months[-1]} (first {gaps[0]})")

        bounds = self.validation_bounds.get(name)
        if bounds:
            issues.extend(self._validate_bounds(values, bounds['min'], bounds['max'], name))

        return len(issues) == 0, issues

    def validate_all(self, series: Mapping[str, pd.Series]) -> Tuple[bool, Dict[str, List[str]]]:
        """Validate every series; returns (all_valid, name -> issues)"""
        report = {}
        for name, values in series.items():
            _, issues = self.validate_series(name, values)
            report[name] = issues
        return all(not issues for issues in report.values()), report

    def _validate_bounds(self, series: pd.Series, min_val: float, max_val: float, name: str) -> List[str]:
        """Validates that values fall within expected bounds."""
        issues = []

        below_min = series[series < min_val]
        if not below_min.empty:
            issues.append(
                f"{name}: {len(below_min)} values below minimum of {min_val} "
                f"(first occurrence at index {below_min.index[0]})"
            )

        above_max = series[series > max_val]
        if not above_max.empty:
            issues.append(
                f"{name}: {len(above_max)} values above maximum of {max_val} "
                f"(first occurrence at index {above_max.index[0]})"
            )

        return issues
