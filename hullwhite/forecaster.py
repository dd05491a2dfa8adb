import logging
import numpy as np

from .exceptions import DegenerateParameterError, FitConvergenceError, InvalidConfigurationError
from .formulas import evaluate
from .models import FitResult, Forecast

logger = logging.getLogger(__name__)

Z_95 = 1.96  # two-sided 95% normal quantile


class HullWhiteForecaster:
    """Extrapolates fitted models over the full horizon with a 95% band"""

    def __init__(self, z_score: float = Z_95):
        self.z_score = z_score
        self.logger = logging.getLogger('hullwhite.forecaster')

    def horizon(self, n_observed: int, prediction_period: int, testing: bool) -> np.ndarray:
        """
        Elapsed-time points to evaluate.

        Backtests reuse the observed index 1..n_observed (the last
        prediction_period points are held out); forecasts extend it to
        n_observed + prediction_period.
        """
        if prediction_period <= 0:
            raise InvalidConfigurationError(f"prediction_period must be positive, got {prediction_period}")
        n_total = n_observed if testing else n_observed + prediction_period
        return np.arange(1, n_total + 1)

    def forecast(self, fit: FitResult, horizon: np.ndarray) -> Forecast:
        """
        Evaluate a fitted model on the horizon.

        The band is forecast +/- z * RMSE with the single in-sample RMSE, so
        its width is constant across the horizon.
        """
        try:
            values = evaluate(fit.model, fit.v0, horizon, *fit.params.as_tuple())
        except (FloatingPointError, DegenerateParameterError) as e:
            raise FitConvergenceError(
                f"Fitted {fit.model} model overflows over a {len(horizon)}-point horizon: {e}"
            ) from e

        if not np.all(np.isfinite(values)):
            raise FitConvergenceError(f"Non-finite {fit.model} forecast")

        half_width = self.z_score * fit.rmse
        upper = values + half_width
        lower = values - half_width

        if np.any(values < 0):
            self.logger.warning(
                f"{fit.model} forecast goes negative (min={np.min(values):.6g}); "
                f"the closed-form approximation is outside its valid range"
            )

        self.logger.info(
            f"{fit.model} forecast over {len(horizon)} points: "
            f"last={values[-1]:.6g}, band half-width={half_width:.6g}"
        )

        return Forecast(
            model=fit.model,
            time=horizon,
            values=values,
            upper=upper,
            lower=lower,
            rmse=fit.rmse
        )
