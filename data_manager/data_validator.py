"""
Validation of closing-price series before they enter the pipeline.
"""

import logging
from typing import List, Tuple
import numpy as np
import pandas as pd

from hullwhite.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class PriceValidator:
    """Validates closing-price series returned by a price source."""

    def __init__(self, min_observations: int = 3, max_daily_move: float = 0.5):
        """
        Args:
            min_observations: Fewest prices giving at least one realized point
            max_daily_move: Absolute log return above which a warning is logged
        """
        self.min_observations = min_observations
        self.max_daily_move = max_daily_move

        # Reasonable bounds for a traded asset's close
        self.validation_bounds = {
            'price': {'min': 0, 'max': 1e7}
        }

    def validate(self, prices: pd.Series) -> Tuple[bool, List[str]]:
        """
        Validates a price series.

        Args:
            prices: Series of closes indexed by date

        Returns:
            Tuple of (is_valid, list_of_issues)
        """
        issues = []

        if len(prices) < self.min_observations:
            issues.append(f"Only {len(prices)} prices, need at least {self.min_observations}")

        if not isinstance(prices.index, pd.DatetimeIndex):
            issues.append("Prices are not indexed by date")
        else:
            if prices.index.has_duplicates:
                issues.append(f"{prices.index.duplicated().sum()} duplicate dates")
            if not prices.index.is_monotonic_increasing:
                issues.append("Dates are not in increasing order")

        missing_count = prices.isna().sum()
        if missing_count > 0:
            issues.append(f"{missing_count} missing prices")

        issues.extend(self._validate_bounds(
            prices.dropna(),
            self.validation_bounds['price']['min'],
            self.validation_bounds['price']['max'],
            "price"
        ))

        valid = prices.dropna()
        valid = valid[valid > 0]
        if len(valid) > 1:
            moves = np.abs(np.diff(np.log(valid.values)))
            n_large = int(np.sum(moves > self.max_daily_move))
            if n_large:
                logger.warning(
                    f"{n_large} daily moves larger than {self.max_daily_move:.0%} in log terms; "
                    f"check for unadjusted splits"
                )

        return len(issues) == 0, issues

    def check(self, prices: pd.Series) -> None:
        """Raise InvalidConfigurationError listing every issue found"""
        is_valid, issues = self.validate(prices)
        if not is_valid:
            for issue in issues:
                logger.error(f"Price validation: {issue}")
            raise InvalidConfigurationError("Invalid price series: " + "; ".join(issues))

    def _validate_bounds(self, series: pd.Series, min_val: float,
                         max_val: float, name: str) -> List[str]:
        """Closes must lie strictly above min_val and at most max_val"""
        issues = []
        below = series[series <= min_val]
        above = series[series > max_val]

        if not below.empty:
            issues.append(f"{len(below)} {name} values <= {min_val}")
        if not above.empty:
            issues.append(f"{len(above)} {name} values > {max_val}")

        return issues
