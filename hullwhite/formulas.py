"""
Closed-form Hull-White approximations for realized variance and volatility.

Every function takes the initial realized variance ``v0`` as a scalar that is
broadcast over the elapsed-time array ``t``. Argument order is always
``(v0, t, kappa[, zeta])``.

Floating point overflow raises ``FloatingPointError`` so callers never see
silent inf/nan values.
"""

from typing import Union
import numpy as np

from .exceptions import DegenerateParameterError

ArrayLike = Union[float, np.ndarray]


def _require_nonzero(name: str, value: ArrayLike) -> None:
    if np.any(np.asarray(value) == 0):
        raise DegenerateParameterError(f"{name} evaluates to zero")


def realized_variance(v0: float, t: ArrayLike, kappa: float) -> np.ndarray:
    """
    Hull-White approximation of realized variance.

    f(t) = v0 * (exp(kappa*t) - 1) / (kappa*t)

    The singularity at kappa*t = 0 is removable (the limit is v0) but is
    still rejected, since kappa = 0 means the fitted model is degenerate.

    Args:
        v0: Initial realized variance
        t: Elapsed time index (1, 2, ...)
        kappa: Drift coefficient

    Returns:
        Realized variance for each t
    """
    t = np.asarray(t, dtype=float)
    _require_nonzero("kappa", kappa)
    kt = kappa * t
    _require_nonzero("kappa * t", kt)

    with np.errstate(over='raise', invalid='raise', divide='raise'):
        return v0 * np.expm1(kt) / kt


def variance_of_realized_variance(v0: float, t: ArrayLike,
                                  kappa: float, zeta: float) -> np.ndarray:
    """
    Hull-White variance of the realized variance.

    h(t) = 2 v0^2 / (t^2 (kappa + zeta^2))
           * ((1 - e^{kappa t}) / kappa - (1 - e^{(2 kappa + zeta^2) t}) / (2 kappa + zeta^2))
           - f(t)^2
    """
    t = np.asarray(t, dtype=float)
    zeta_sq = zeta ** 2
    drift_diffusion = kappa + zeta_sq
    second_moment_rate = 2 * kappa + zeta_sq
    _require_nonzero("t", t)
    _require_nonzero("kappa + zeta^2", drift_diffusion)
    _require_nonzero("2*kappa + zeta^2", second_moment_rate)

    mean_rv = realized_variance(v0, t, kappa)

    with np.errstate(over='raise', invalid='raise', divide='raise'):
        bracket = (-np.expm1(kappa * t) / kappa
                   + np.expm1(second_moment_rate * t) / second_moment_rate)
        second_moment = 2 * v0 ** 2 / (t ** 2 * drift_diffusion) * bracket
        return second_moment - mean_rv ** 2


def realized_volatility(v0: float, t: ArrayLike,
                        kappa: float, zeta: float) -> np.ndarray:
    """
    Hull-White approximation of realized volatility.

    Second-order expansion of E[sqrt(RV)]:
    g(t) = sqrt(f(t)) - h(t) / (8 f(t)^{3/2})
    """
    mean_rv = realized_variance(v0, t, kappa)
    rv_variance = variance_of_realized_variance(v0, t, kappa, zeta)

    with np.errstate(over='raise', invalid='raise', divide='raise'):
        return np.sqrt(mean_rv) - rv_variance / (8 * mean_rv ** 1.5)


def evaluate(model: str, v0: float, t: ArrayLike, kappa: float,
             zeta: float = None) -> np.ndarray:
    """Evaluate the 'variance' or 'volatility' model at t"""
    if model == 'variance':
        return realized_variance(v0, t, kappa)
    if model == 'volatility':
        if zeta is None:
            raise ValueError("Volatility model requires zeta")
        return realized_volatility(v0, t, kappa, zeta)
    raise ValueError(f"Unknown model: {model}")
