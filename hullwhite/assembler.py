"""Slices the prediction window out of a forecast and packages records."""

import logging
from typing import List, Optional
import pandas as pd

from .exceptions import InvalidConfigurationError
from .models import Forecast, ForecastRecord

logger = logging.getLogger(__name__)


class ResultAssembler:
    """Builds the ordered ForecastRecord output"""

    def assemble(self, forecast: Forecast, prediction_period: int,
                 variance: bool) -> List[ForecastRecord]:
        """
        Zip the last prediction_period points of the forecast and its band
        with a 1-based index.

        Args:
            forecast: Full-horizon forecast
            prediction_period: Number of records to produce
            variance: Name the value 'realized_variance' if True, else
                'realized_volatility'
        """
        if prediction_period <= 0 or prediction_period > len(forecast.values):
            raise InvalidConfigurationError(
                f"prediction_period={prediction_period} outside a "
                f"{len(forecast.values)}-point horizon"
            )

        quantity = 'realized_variance' if variance else 'realized_volatility'
        window = slice(len(forecast.values) - prediction_period, None)

        records = [
            ForecastRecord(
                index=i,
                value=float(value),
                upper=float(upper),
                lower=float(lower),
                quantity=quantity
            )
            for i, (value, upper, lower) in enumerate(
                zip(forecast.values[window], forecast.upper[window], forecast.lower[window]),
                start=1
            )
        ]

        logger.debug(f"Assembled {len(records)} {quantity} records")
        return records

    def forecast_dates(self, observed_dates: Optional[pd.DatetimeIndex],
                       prediction_period: int, testing: bool) -> Optional[pd.DatetimeIndex]:
        """
        Dates of the prediction window.

        Backtests reuse the last prediction_period observed dates; forecasts
        run over the business days following the last observation.
        """
        if observed_dates is None or len(observed_dates) == 0:
            return None
        if testing:
            return pd.DatetimeIndex(observed_dates[-prediction_period:])
        return pd.bdate_range(
            start=observed_dates[-1] + pd.offsets.BDay(1),
            periods=prediction_period
        )

