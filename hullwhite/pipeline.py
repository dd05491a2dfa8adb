"""
End-to-end Hull-White forecast: prices -> realized series -> fits ->
forecast -> records -> (optional) chart.
"""

import logging
from pathlib import Path
from typing import Optional, Union
import numpy as np
import pandas as pd

from .assembler import ResultAssembler
from .config import ForecastConfig
from .estimator import HullWhiteEstimator
from .exceptions import InsufficientDataError
from .forecaster import HullWhiteForecaster
from .interfaces import ChartRenderer, DateLike, PriceSource
from .models import HullWhiteResult
from .returns import ReturnCalculator
from .solver import NonlinearSolver

logger = logging.getLogger(__name__)


class HullWhitePipeline:
    """Runs the linear forecasting pipeline for one price series"""

    def __init__(self,
                 solver: Optional[NonlinearSolver] = None,
                 renderer: Optional[ChartRenderer] = None):
        """
        Args:
            solver: Least-squares solver, Levenberg-Marquardt by default
            renderer: Chart renderer; no chart is drawn when None
        """
        self.calculator = ReturnCalculator()
        self.estimator = HullWhiteEstimator(solver=solver)
        self.forecaster = HullWhiteForecaster()
        self.assembler = ResultAssembler()
        self.renderer = renderer
        self.logger = logging.getLogger('hullwhite.pipeline')

    def run(self, prices: Union[pd.Series, np.ndarray], config: ForecastConfig,
            symbol: Optional[str] = None,
            chart_path: Optional[Path] = None) -> HullWhiteResult:
        """
        Forecast realized variance/volatility from closing prices.

        Args:
            prices: Daily closes ordered by date
            config: Run configuration
            symbol: Label used in logs and chart titles
            chart_path: Where the renderer should save the chart

        Returns:
            HullWhiteResult with exactly config.prediction_period records
        """
        config.validate()
        label = symbol or 'series'
        self.logger.info(
            f"Starting Hull-White run for {label}: {len(prices)} prices, "
            f"prediction_period={config.prediction_period}, days_to_drop={config.days_to_drop}"
        )

        series = self.calculator.realized_series(prices, config.days_to_drop)

        variance_fit, volatility_fit = self.estimator.estimate_models(
            series,
            prediction_period=config.prediction_period,
            testing=config.testing,
            kappa0=config.kappa0,
            zeta0=config.zeta0
        )
        train_size = len(variance_fit.fitted)

        horizon = self.forecaster.horizon(len(series), config.prediction_period, config.testing)
        variance_forecast = self.forecaster.forecast(variance_fit, horizon)
        volatility_forecast = self.forecaster.forecast(volatility_fit, horizon)

        selected = variance_forecast if config.variance else volatility_forecast
        records = self.assembler.assemble(selected, config.prediction_period, config.variance)
        dates = self.assembler.forecast_dates(series.dates, config.prediction_period, config.testing)

        result = HullWhiteResult(
            symbol=symbol,
            series=series,
            variance_fit=variance_fit,
            volatility_fit=volatility_fit,
            variance_forecast=variance_forecast,
            volatility_forecast=volatility_forecast,
            records=records,
            train_size=train_size,
            variance=config.variance,
            testing=config.testing,
            dates=dates,
            metadata={'config': config}
        )

        if self.renderer is not None:
            observed = series.variance if config.variance else series.volatility
            self.renderer.render(
                observed=observed,
                forecast=selected.values,
                upper=selected.upper,
                lower=selected.lower,
                train_size=train_size,
                title=symbol,
                variance=config.variance,
                save_path=chart_path
            )

        self.logger.info(f"Completed Hull-White run for {label}: {len(records)} records")
        return result

    def run_symbol(self, source: PriceSource, symbol: str, start: DateLike, end: DateLike,
                   config: ForecastConfig, chart_path: Optional[Path] = None) -> HullWhiteResult:
        """Fetch prices from a source and run the pipeline"""
        config.validate()
        prices = source.get_prices(symbol, start, end)

        if len(prices) < config.min_observations():
            raise InsufficientDataError(
                f"Insufficient data for {symbol}: {len(prices)} prices, need at least "
                f"{config.min_observations()}"
            )

        return self.run(prices, config, symbol=symbol, chart_path=chart_path)


def hull_white(prices: Union[pd.Series, np.ndarray],
               prediction_period: int,
               days_to_drop: int = 0,
               kappa0: float = 0.1,
               zeta0: float = 0.05,
               variance: bool = True,
               testing: bool = False,
               solver: Optional[NonlinearSolver] = None) -> pd.DataFrame:
    """
    Convenience wrapper returning the prediction window as a DataFrame.

    Columns are index, realized_variance (or realized_volatility), UC95, LC95.
    """
    config = ForecastConfig(
        prediction_period=prediction_period,
        days_to_drop=days_to_drop,
        kappa0=kappa0,
        zeta0=zeta0,
        variance=variance,
        testing=testing
    )
    return HullWhitePipeline(solver=solver).run(prices, config).to_dataframe()
