from typing import Dict, List, Optional
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from pathlib import Path
import logging

from models import AlignedSeries, FittedModel, ScenarioForecast

logger = logging.getLogger(__name__)


class ScenarioVisualizer:
    """Visualization utilities for macro series, fits and scenario projections"""

    def __init__(self, style: str = 'seaborn-v0_8'):
        """
        Initialize visualizer

        Parameters:
        -----------
        style : str
            Matplotlib style to use. Default is 'seaborn-v0_8'.
            Available styles can be listed with `plt.style.available`
        """
        # Set style safely with fallback options
        try:
            plt.style.use(style)
        except OSError:
            plt.style.use('default')
            logger.warning(f"Style '{style}' not found, using default style")

        self.colors = plt.rcParams['axes.prop_cycle'].by_key()['color']

    def _color(self, i: int) -> str:
        return self.colors[i % len(self.colors)]

    def plot_series(self,
                    aligned: AlignedSeries,
                    columns: Optional[List[str]] = None,
                    title: Optional[str] = None,
                    save_path: Optional[Path] = None) -> plt.Figure:
        """
        Plot aligned series, one panel each

        Parameters:
        -----------
        aligned : AlignedSeries
            Dataset to plot
        columns : list, optional
            Series to include (default: all)
        title : str, optional
            Plot title
        save_path : Path, optional
            Path to save figure
        """
        columns = columns or aligned.names
        if not columns or len(aligned) == 0:
            raise ValueError("Empty input data")

        fig, axes = plt.subplots(len(columns), 1, figsize=(12, 3 * len(columns)), sharex=True)
        if len(columns) == 1:
            axes = [axes]

        for i, (ax, name) in enumerate(zip(axes, columns)):
            series = aligned.column(name)
            ax.plot(series.index, series.values, color=self._color(i))
            ax.set_ylabel(name)
            ax.grid(True)
        axes[-1].set_xlabel('Date')

        if title:
            fig.suptitle(title)
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_correlation_heatmap(self,
                                 corr: pd.DataFrame,
                                 title: Optional[str] = None,
                                 save_path: Optional[Path] = None) -> plt.Figure:
        """Annotated heatmap of a correlation matrix"""
        if corr.empty:
            raise ValueError("Empty correlation matrix")

        fig, ax = plt.subplots(figsize=(8, 6))
        sns.heatmap(corr, annot=True, fmt='.2f', cmap='RdBu_r', vmin=-1, vmax=1,
                    square=True, ax=ax)
        if title:
            ax.set_title(title)
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_fit(self,
                 model: FittedModel,
                 actual: pd.Series,
                 title: Optional[str] = None,
                 save_path: Optional[Path] = None) -> plt.Figure:
        """
        Plot actual vs fitted values and residuals

        Parameters:
        -----------
        model : FittedModel
            Fitted regression
        actual : Series
            Observed target values (date-indexed)
        """
        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

        fitted = model.fitted_values
        ax1.plot(actual.index, actual.values, label='Actual', color=self._color(0))
        ax1.plot(fitted.index, fitted.values, label='Fitted', color=self._color(1), linestyle='--')
        ax1.set_ylabel(model.target)
        ax1.legend()
        ax1.grid(True)

        ax2.plot(model.residuals.index, model.residuals.values, color=self._color(2))
        ax2.axhline(y=0, color='k', linestyle='--', alpha=0.5)
        ax2.set_xlabel('Date')
        ax2.set_ylabel('Residual')
        ax2.grid(True)

        fig.suptitle(title or f"{model.target}: R² = {model.r_squared:.3f}")
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_scenarios(self,
                       history: pd.Series,
                       forecasts: Dict[str, ScenarioForecast],
                       history_months: int = 36,
                       title: Optional[str] = None,
                       save_path: Optional[Path] = None) -> plt.Figure:
        """
        Plot the tail of history followed by one projected path per scenario

        Forecasts without dates are placed on month offsets after the last
        historical observation.
        """
        if not forecasts:
            raise ValueError("No scenario forecasts to plot")

        history = history.dropna().iloc[-history_months:]
        fig, ax = plt.subplots(figsize=(12, 6))
        ax.plot(history.index, history.values, color='k', label='History')

        last_date = history.index[-1] if len(history) else None
        for i, (name, forecast) in enumerate(forecasts.items()):
            if forecast.dates is not None:
                x = forecast.dates
            elif last_date is not None:
                x = pd.DatetimeIndex([
                    (last_date.to_period('M') + offset).to_timestamp()
                    for offset in forecast.offsets
                ])
            else:
                x = np.asarray(forecast.offsets)
            ax.plot(x, forecast.predictions, label=name, color=self._color(i), linestyle='--')

        ax.set_xlabel('Date')
        ax.set_ylabel(history.name or 'Projection')
        if title:
            ax.set_title(title)
        ax.legend()
        ax.grid(True)

        if save_path:
            fig.savefig(save_path)

        return fig

    def close_all(self):
        """Close all open figures"""
        plt.close('all')

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_all()
