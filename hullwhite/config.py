"""Run configuration for the forecasting pipeline."""

from dataclasses import dataclass
import math
import numbers

from .exceptions import DegenerateParameterError, InvalidConfigurationError


@dataclass(frozen=True)
class ForecastConfig:
    """
    Parameters of one forecasting run.

    Attributes:
        prediction_period: Number of points to forecast (or backtest)
        days_to_drop: Burn-in realized variance points discarded before fitting
        kappa0: Initial guess for the drift coefficient
        zeta0: Initial guess for the diffusion coefficient
        variance: Report realized variance if True, realized volatility otherwise
        testing: Backtest on the last prediction_period known points if True,
            forecast beyond the last observation otherwise
    """
    prediction_period: int
    days_to_drop: int = 0
    kappa0: float = 0.1
    zeta0: float = 0.05
    variance: bool = True
    testing: bool = False

    def validate(self) -> 'ForecastConfig':
        """Check ranges; returns self so calls can be chained"""
        if isinstance(self.prediction_period, bool) or not isinstance(self.prediction_period, numbers.Integral):
            raise InvalidConfigurationError(
                f"prediction_period must be an integer, got {self.prediction_period!r}"
            )
        if self.prediction_period <= 0:
            raise InvalidConfigurationError(
                f"prediction_period must be positive, got {self.prediction_period}"
            )
        if isinstance(self.days_to_drop, bool) or not isinstance(self.days_to_drop, numbers.Integral):
            raise InvalidConfigurationError(
                f"days_to_drop must be an integer, got {self.days_to_drop!r}"
            )
        if self.days_to_drop < 0:
            raise InvalidConfigurationError(
                f"days_to_drop must be non-negative, got {self.days_to_drop}"
            )
        validate_initial_guess(self.kappa0, self.zeta0)
        return self

    @property
    def quantity(self) -> str:
        return 'realized_variance' if self.variance else 'realized_volatility'

    def min_observations(self) -> int:
        """Fewest closing prices a price source must supply for this run"""
        return self.days_to_drop + self.prediction_period + 2


def validate_initial_guess(kappa0: float, zeta0: float = None) -> None:
    """
    Reject initial guesses the closed-form formulas cannot be evaluated at.

    Raises:
        InvalidConfigurationError: non-finite guess or zeta0 == 0
        DegenerateParameterError: kappa0 == 0 or a zero kappa/zeta denominator
    """
    if not _is_finite_number(kappa0):
        raise InvalidConfigurationError(f"kappa0 must be a finite number, got {kappa0!r}")
    if kappa0 == 0:
        raise DegenerateParameterError("kappa0 must be non-zero")
    if zeta0 is None:
        return

    if not _is_finite_number(zeta0):
        raise InvalidConfigurationError(f"zeta0 must be a finite number, got {zeta0!r}")
    if zeta0 == 0:
        raise InvalidConfigurationError("zeta0 must be non-zero")
    if kappa0 + zeta0 ** 2 == 0 or 2 * kappa0 + zeta0 ** 2 == 0:
        raise DegenerateParameterError(
            f"kappa0={kappa0}, zeta0={zeta0} make a volatility-model denominator zero"
        )


def _is_finite_number(value) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False
