"""
Nonlinear least-squares solvers used to fit the Hull-White closed forms.
"""

from abc import ABC, abstractmethod
from typing import Callable, Sequence, Tuple
import logging
import numpy as np
from scipy.optimize import least_squares

from .exceptions import DegenerateParameterError, FitConvergenceError

logger = logging.getLogger(__name__)

ModelFunction = Callable[..., np.ndarray]

# Residual returned for trial points where the model cannot be evaluated
REJECTED_STEP_RESIDUAL = 1e10


class NonlinearSolver(ABC):
    """Fits model_fn(t, *params) to observed data by least squares"""

    @abstractmethod
    def fit(self, model_fn: ModelFunction, t: np.ndarray, data: np.ndarray,
            initial_guess: Sequence[float]) -> Tuple[np.ndarray, float]:
        """
        Minimize sum((model_fn(t, *params) - data)^2).

        Returns:
            Tuple of (fitted parameters, residual RMSE at the optimum)

        Raises:
            FitConvergenceError: if no local optimum was reached
        """


class LeastSquaresSolver(NonlinearSolver):
    """
    Levenberg-Marquardt solver backed by scipy.optimize.least_squares.

    With the default method='lm' this is MINPACK's damped Gauss-Newton
    iteration. The evaluation cap bounds a non-converging fit.
    """

    def __init__(self, method: str = 'lm',
                 max_evaluations: int = 2000,
                 ftol: float = 1e-8,
                 xtol: float = 1e-8,
                 gtol: float = 1e-8):
        """
        Args:
            method: scipy least_squares method ('lm', 'trf' or 'dogbox')
            max_evaluations: Maximum number of model evaluations
            ftol: Relative tolerance on the change of the cost
            xtol: Relative tolerance on the change of the parameters
            gtol: Tolerance on the gradient norm
        """
        self.method = method
        self.max_evaluations = max_evaluations
        self.ftol = ftol
        self.xtol = xtol
        self.gtol = gtol
        self.logger = logging.getLogger('hullwhite.solver')

    def fit(self, model_fn: ModelFunction, t: np.ndarray, data: np.ndarray,
            initial_guess: Sequence[float]) -> Tuple[np.ndarray, float]:
        x0 = np.atleast_1d(np.asarray(initial_guess, dtype=float))
        t = np.asarray(t, dtype=float)
        data = np.asarray(data, dtype=float)

        rejected_steps = 0

        def residuals(params: np.ndarray) -> np.ndarray:
            nonlocal rejected_steps
            try:
                return model_fn(t, *params) - data
            except (FloatingPointError, DegenerateParameterError):
                # Large finite residual: the step is rejected and damping increases
                rejected_steps += 1
                return np.full_like(data, REJECTED_STEP_RESIDUAL)

        result = least_squares(
            residuals,
            x0,
            method=self.method,
            x_scale='jac',
            ftol=self.ftol,
            xtol=self.xtol,
            gtol=self.gtol,
            max_nfev=self.max_evaluations
        )

        if rejected_steps:
            self.logger.debug(f"Rejected {rejected_steps} trial points where the model overflowed")

        if result.status == 0:
            raise FitConvergenceError(
                f"No convergence within {self.max_evaluations} evaluations "
                f"(last params={result.x})"
            )
        if not result.success:
            raise FitConvergenceError(f"Solver failed: {result.message}")
        if not np.all(np.isfinite(result.x)):
            raise FitConvergenceError(f"Solver returned non-finite values: params={result.x}")

        # The optimum itself must be evaluable; a stalled rejected step is not a fit
        try:
            final_residuals = model_fn(t, *result.x) - data
        except (FloatingPointError, DegenerateParameterError) as e:
            raise FitConvergenceError(
                f"Model cannot be evaluated at the solver's optimum {result.x}: {e}"
            ) from e
        if not np.all(np.isfinite(final_residuals)):
            raise FitConvergenceError(f"Non-finite residuals at params={result.x}")

        jacobian = np.atleast_2d(result.jac)
        if not np.all(np.isfinite(jacobian)) or np.linalg.matrix_rank(jacobian) < len(x0):
            raise FitConvergenceError("Singular Jacobian at the optimum")

        rmse = float(np.sqrt(np.mean(final_residuals ** 2)))

        self.logger.debug(
            f"least_squares finished: status={result.status}, nfev={result.nfev}, "
            f"params={result.x}, rmse={rmse:.6g}"
        )

        return result.x, rmse
