"""
Compute log returns and realized variance/volatility from closing prices.
"""

import logging
from typing import Union
import numpy as np
import pandas as pd

from .exceptions import InsufficientDataError, InvalidConfigurationError
from .models import RealizedSeries

logger = logging.getLogger(__name__)

MIN_REALIZED_POINTS = 2  # a two-parameter fit needs at least two points


class ReturnCalculator:
    """Turns a closing-price series into a trimmed realized variance series."""

    def __init__(self):
        self.logger = logging.getLogger('hullwhite.returns')

    def log_returns(self, prices: Union[pd.Series, np.ndarray]) -> pd.Series:
        """
        Log returns of a price series.

        The first difference is discarded as a differencing artifact, so N
        prices give N - 2 returns.

        Args:
            prices: Closing prices ordered by date

        Returns:
            Series of log returns, indexed like the prices they end on
        """
        prices = self._as_series(prices)
        returns = np.log(prices).diff().iloc[2:]

        zero_returns = returns[returns == 0]
        if not zero_returns.empty:
            self.logger.warning(f"Found {len(zero_returns)} zero returns in price data")

        return returns

    def realized_series(self, prices: Union[pd.Series, np.ndarray],
                        days_to_drop: int = 0) -> RealizedSeries:
        """
        Cumulative realized variance and volatility with burn-in removed.

        Realized variance at elapsed time t is sum(r_1^2 .. r_t^2) / t. The
        first ``days_to_drop`` points are discarded and the time index is
        truncated to 1..T-days_to_drop.

        Raises:
            InvalidConfigurationError: negative days_to_drop or bad prices
            InsufficientDataError: fewer than two points left after burn-in
        """
        if days_to_drop < 0:
            raise InvalidConfigurationError(f"days_to_drop must be non-negative, got {days_to_drop}")

        returns = self.log_returns(prices)
        n_returns = len(returns)
        if n_returns - days_to_drop < MIN_REALIZED_POINTS:
            raise InsufficientDataError(
                f"Insufficient data: {n_returns} realized points, {days_to_drop} dropped as "
                f"burn-in, need at least {MIN_REALIZED_POINTS} remaining"
            )

        squared = returns.values ** 2
        time = np.arange(1, n_returns + 1)
        realized_variance = np.cumsum(squared) / time

        realized_variance = realized_variance[days_to_drop:]
        time = time[:n_returns - days_to_drop]
        dates = returns.index[days_to_drop:] if isinstance(returns.index, pd.DatetimeIndex) else None

        self.logger.info(
            f"Realized variance: {len(realized_variance)} points after dropping {days_to_drop}, "
            f"first={realized_variance[0]:.6g}, last={realized_variance[-1]:.6g}"
        )

        return RealizedSeries(
            time=time,
            variance=realized_variance,
            volatility=np.sqrt(realized_variance),
            returns=returns.values,
            dates=dates
        )

    def _as_series(self, prices) -> pd.Series:
        if isinstance(prices, pd.DataFrame):
            raise InvalidConfigurationError("Expected a single price series, got a DataFrame")
        if not isinstance(prices, pd.Series):
            prices = pd.Series(np.asarray(prices, dtype=float))

        prices = prices.astype(float)
        if not np.all(np.isfinite(prices.values)):
            raise InvalidConfigurationError("Prices contain missing or non-finite values")
        if np.any(prices.values <= 0):
            raise InvalidConfigurationError("Prices must be strictly positive")
        if isinstance(prices.index, pd.DatetimeIndex) and not prices.index.is_monotonic_increasing:
            raise InvalidConfigurationError("Price dates must be increasing")
        if isinstance(prices.index, pd.DatetimeIndex) and prices.index.has_duplicates:
            raise InvalidConfigurationError("Price dates must be unique")

        return prices
