from typing import Optional
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from pathlib import Path
import logging

from hullwhite.interfaces import ChartRenderer
from hullwhite.models import FitResult

logger = logging.getLogger(__name__)


class HullWhiteVisualizer(ChartRenderer):
    """Visualization utilities for Hull-White forecasts"""

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

        self.observed_color = 'black'
        self.forecast_color = 'green'
        self.band_color = 'red'
        self.boundary_color = 'blue'
        self.last_figure: Optional[plt.Figure] = None

    def render(self,
               observed: np.ndarray,
               forecast: np.ndarray,
               upper: np.ndarray,
               lower: np.ndarray,
               train_size: int,
               title: Optional[str] = None,
               variance: bool = True,
               save_path: Optional[Path] = None) -> None:
        self.plot_forecast(observed, forecast, upper, lower, train_size,
                           title=title, variance=variance, save_path=save_path)

    def plot_forecast(self,
                      observed: np.ndarray,
                      forecast: np.ndarray,
                      upper: np.ndarray,
                      lower: np.ndarray,
                      train_size: int,
                      title: Optional[str] = None,
                      variance: bool = True,
                      save_path: Optional[Path] = None) -> plt.Figure:
        """
        Plot the realized series against the model forecast and 95% band

        Parameters:
        -----------
        observed : array-like
            Realized variance or volatility, plotted at t = 1..len(observed)
        forecast, upper, lower : array-like
            Forecast and band over the full horizon
        train_size : int
            Number of training points; a dashed line marks the boundary
        title : str, optional
            Plot title
        variance : bool
            Selects the y-axis label
        save_path : Path, optional
            Path to save figure
        """
        observed = np.asarray(observed, dtype=float)
        forecast = np.asarray(forecast, dtype=float)
        if len(observed) == 0 or len(forecast) == 0:
            raise ValueError("Empty input data")
        if not (len(forecast) == len(upper) == len(lower)):
            raise ValueError("Forecast and band lengths differ")

        time = np.arange(1, len(observed) + 1)
        full_time = np.arange(1, len(forecast) + 1)

        fig, ax = plt.subplots(figsize=(12, 6))

        ax.scatter(time, observed, s=10, color=self.observed_color, label='Realized')
        ax.plot(full_time, forecast, color=self.forecast_color, label='Hull-White forecast')
        ax.plot(full_time, upper, color=self.band_color, label='95% band')
        ax.plot(full_time, lower, color=self.band_color)
        ax.axvline(x=train_size, linestyle='--', color=self.boundary_color)

        ax.set_ylim(np.min(lower), max(np.max(observed), np.max(upper)))
        ax.set_xlim(0, len(full_time))
        ax.set_xlabel('Elapsed trading days')
        ax.set_ylabel('Realized Variance' if variance else 'Realized Volatility')
        if title:
            ax.set_title(title)
        ax.legend()

        if save_path:
            fig.savefig(save_path)
            logger.info(f"Saved forecast chart to {save_path}")

        self.last_figure = fig
        return fig

    def plot_residuals(self,
                       fit: FitResult,
                       title: Optional[str] = None,
                       save_path: Optional[Path] = None) -> plt.Figure:
        """
        Plot in-sample residuals over time and their distribution

        Parameters:
        -----------
        fit : FitResult
            Fitted variance or volatility model
        title : str, optional
            Plot title
        save_path : Path, optional
            Path to save figure
        """
        residuals = np.asarray(fit.residuals, dtype=float)
        if len(residuals) == 0:
            raise ValueError("Empty residuals")

        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))

        ax1.plot(np.arange(1, len(residuals) + 1), residuals, color=self.observed_color)
        ax1.axhline(0, color=self.boundary_color, linestyle='--')
        ax1.set_xlabel('Elapsed trading days')
        ax1.set_ylabel('Residual')
        ax1.set_title(f'{fit.model.capitalize()} model residuals (RMSE={fit.rmse:.3g})')

        sns.histplot(residuals, ax=ax2, bins=30)
        ax2.set_title('Residual Distribution')

        if title:
            fig.suptitle(title)

        plt.tight_layout()

        if save_path:
            fig.savefig(save_path)

        return fig

    def close_all(self):
        """Close all open figures"""
        plt.close('all')
        self.last_figure = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_all()
