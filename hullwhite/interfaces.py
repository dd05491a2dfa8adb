"""
Collaborator contracts: where prices come from and where charts go.

The modeling core only depends on these abstract classes; concrete sources
live in ``data_manager`` and renderers in ``utils.visualization``.
"""

from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Optional, Union
import numpy as np
import pandas as pd

DateLike = Union[str, date, pd.Timestamp]


class PriceSource(ABC):
    """Supplies daily closing prices for a symbol"""

    @abstractmethod
    def get_prices(self, symbol: str, start: DateLike, end: DateLike) -> pd.Series:
        """
        Closing prices between start and end (inclusive).

        Returns:
            Series of closes indexed by strictly increasing dates
        """


class ChartRenderer(ABC):
    """Consumes a finished forecast and produces a chart; returns nothing to the pipeline"""

    @abstractmethod
    def render(self,
               observed: np.ndarray,
               forecast: np.ndarray,
               upper: np.ndarray,
               lower: np.ndarray,
               train_size: int,
               title: Optional[str] = None,
               variance: bool = True,
               save_path: Optional[Path] = None) -> None:
        """
        Draw observed series, forecast and 95% band.

        Args:
            observed: Realized series on 1..len(observed)
            forecast: Forecast on the full horizon 1..len(forecast)
            upper: Upper 95% bound on the full horizon
            lower: Lower 95% bound on the full horizon
            train_size: Number of training points (train/test boundary)
            title: Chart title, usually the symbol
            variance: Whether the series is realized variance or volatility
            save_path: Where to write the chart, if anywhere
        """
