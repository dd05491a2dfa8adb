"""Error taxonomy for the Hull-White forecasting pipeline."""


class HullWhiteError(Exception):
    """Base class for all pipeline errors"""


class InsufficientDataError(HullWhiteError, ValueError):
    """Series too short to support a two-parameter fit"""


class DegenerateParameterError(HullWhiteError, ValueError):
    """A closed-form formula would divide by zero (kappa, t or a kappa/zeta combination)"""


class FitConvergenceError(HullWhiteError, RuntimeError):
    """Solver failed to converge or produced non-finite values"""


class InvalidConfigurationError(HullWhiteError, ValueError):
    """Contradictory or out-of-range pipeline inputs"""
