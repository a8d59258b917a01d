"""
Data management package for the macro scenario analysis.
Handles series retrieval, validation, alignment and storage.
"""

from .aligner import align_series, interpolate_missing
from .data_validator import SeriesValidator
from .database import ObservationStore
from .fred_loader import FredClient, SeriesLoader

__all__ = [
    'align_series',
    'interpolate_missing',
    'SeriesValidator',
    'ObservationStore',
    'FredClient',
    'SeriesLoader',
]
