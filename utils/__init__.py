"""Reporting and plotting helpers for scenario analysis"""

from .visualization import ScenarioVisualizer

__all__ = ['ScenarioVisualizer']
