"""Error types raised by the scenario forecasting pipeline."""


class MacroScenarioError(ValueError):
    """Base class for pipeline data and model errors"""


class DataUnavailable(MacroScenarioError):
    """A required input series has no observations in the requested range"""

    def __init__(self, series_name: str, message: str = None):
        self.series_name = series_name
        super().__init__(message or f"No observations available for series '{series_name}'")


class InsufficientData(MacroScenarioError):
    """Too few complete rows remain to fit a model"""

    def __init__(self, required: int, available: int, context: str = "model fit"):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient data for {context}: {available} complete rows, "
            f"at least {required} required"
        )


class LagOrderMismatch(MacroScenarioError):
    """Seed lag window is shorter than the model's lag order"""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Model requires {required} lagged values but the seed window holds {available}"
        )


class UnknownPredictor(MacroScenarioError):
    """Feature or policy names do not match the fitted model or the dataset"""


class DataRetrievalError(RuntimeError):
    """Fetching a series from the statistics API failed"""
