from functools import partial
from typing import Optional, Tuple
import logging
import numpy as np

from .config import validate_initial_guess
from .exceptions import DegenerateParameterError, FitConvergenceError, InsufficientDataError
from .formulas import realized_variance, realized_volatility
from .models import FitResult, ModelParameters, RealizedSeries
from .returns import MIN_REALIZED_POINTS
from .solver import LeastSquaresSolver, NonlinearSolver

logger = logging.getLogger(__name__)


class HullWhiteEstimator:
    """Fits the Hull-White variance and volatility models to realized data"""

    def __init__(self, solver: Optional[NonlinearSolver] = None):
        """
        Initialize estimator

        Args:
            solver: Nonlinear least-squares solver, Levenberg-Marquardt by default
        """
        self.solver = solver or LeastSquaresSolver()
        self.logger = logging.getLogger('hullwhite.estimator')

    def training_window(self, series: RealizedSeries, prediction_period: int,
                        testing: bool) -> RealizedSeries:
        """Hold out the last prediction_period points when backtesting"""
        n_train = len(series) - prediction_period if testing else len(series)
        if n_train < MIN_REALIZED_POINTS:
            raise InsufficientDataError(
                f"Insufficient data: {len(series)} realized points leave {n_train} for "
                f"training after holding out {prediction_period}"
            )
        return series.head(n_train)

    def fit_variance(self, train: RealizedSeries, kappa0: float) -> FitResult:
        """Fit f(t; kappa) to the realized variance"""
        validate_initial_guess(kappa0)
        v0 = self._initial_variance(train)
        model_fn = partial(realized_variance, v0)

        params, rmse = self.solver.fit(model_fn, train.time, train.variance, [kappa0])
        kappa, = self._check_params(params, expected=1)

        return self._build_result('variance', ModelParameters(kappa=kappa), v0,
                                  model_fn, train.time, train.variance, rmse)

    def fit_volatility(self, train: RealizedSeries, kappa0: float, zeta0: float) -> FitResult:
        """Fit g(t; kappa, zeta) to the realized volatility"""
        validate_initial_guess(kappa0, zeta0)
        v0 = self._initial_variance(train)
        model_fn = partial(realized_volatility, v0)

        params, rmse = self.solver.fit(model_fn, train.time, train.volatility, [kappa0, zeta0])
        kappa, zeta = self._check_params(params, expected=2)

        return self._build_result('volatility', ModelParameters(kappa=kappa, zeta=zeta), v0,
                                  model_fn, train.time, train.volatility, rmse)

    def estimate_models(self, series: RealizedSeries, prediction_period: int, testing: bool,
                        kappa0: float, zeta0: float) -> Tuple[FitResult, FitResult]:
        """Fit both models on the training window; variance first"""
        validate_initial_guess(kappa0, zeta0)
        train = self.training_window(series, prediction_period, testing)

        self.logger.info(
            f"Fitting on {len(train)} of {len(series)} realized points "
            f"({'backtest' if testing else 'forecast'} mode)"
        )

        variance_fit = self.fit_variance(train, kappa0)
        volatility_fit = self.fit_volatility(train, kappa0, zeta0)
        return variance_fit, volatility_fit

    def _initial_variance(self, train: RealizedSeries) -> float:
        v0 = float(train.variance[0])
        if not np.isfinite(v0) or v0 <= 0:
            raise DegenerateParameterError(f"Initial realized variance must be positive, got {v0}")
        return v0

    def _check_params(self, params, expected: int) -> Tuple[float, ...]:
        params = np.atleast_1d(np.asarray(params, dtype=float))
        if params.shape != (expected,):
            raise FitConvergenceError(f"Expected {expected} parameters, solver returned {params}")
        if not np.all(np.isfinite(params)):
            raise FitConvergenceError(f"Solver returned non-finite parameters: {params}")
        if params[0] == 0:
            raise FitConvergenceError("Solver converged to kappa = 0")
        return tuple(float(p) for p in params)

    def _build_result(self, model: str, params: ModelParameters, v0: float, model_fn,
                      time: np.ndarray, observed: np.ndarray, rmse: float) -> FitResult:
        if not np.isfinite(rmse):
            raise FitConvergenceError(f"Non-finite residual RMSE for {model} model")

        try:
            fitted = model_fn(time, *params.as_tuple())
        except (FloatingPointError, DegenerateParameterError) as e:
            raise FitConvergenceError(f"Fitted {model} model cannot be evaluated: {e}") from e

        residuals = observed - fitted

        self.logger.info(
            f"Fitted {model} model: kappa={params.kappa:.6g}"
            + (f", zeta={params.zeta:.6g}" if params.zeta is not None else "")
            + f", v0={v0:.6g}, rmse={rmse:.6g}"
        )

        return FitResult(
            model=model,
            params=params,
            v0=v0,
            fitted=fitted,
            residuals=residuals,
            rmse=float(rmse)
        )
