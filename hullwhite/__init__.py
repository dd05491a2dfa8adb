"""
Hull-White realized variance and volatility forecasting.
Fits the model's closed-form approximations to realized data and
extrapolates them with a 95% confidence band.
"""

from .config import ForecastConfig
from .estimator import HullWhiteEstimator
from .exceptions import (
    HullWhiteError,
    InsufficientDataError,
    DegenerateParameterError,
    FitConvergenceError,
    InvalidConfigurationError
)
from .forecaster import HullWhiteForecaster
from .models import FitResult, Forecast, ForecastRecord, HullWhiteResult, ModelParameters, RealizedSeries
from .pipeline import HullWhitePipeline, hull_white
from .solver import LeastSquaresSolver, NonlinearSolver

__version__ = "0.1.0"
__all__ = [
    'ForecastConfig',
    'HullWhiteEstimator',
    'HullWhiteForecaster',
    'HullWhitePipeline',
    'hull_white',
    'LeastSquaresSolver',
    'NonlinearSolver',
    'FitResult',
    'Forecast',
    'ForecastRecord',
    'HullWhiteResult',
    'ModelParameters',
    'RealizedSeries',
    'HullWhiteError',
    'InsufficientDataError',
    'DegenerateParameterError',
    'FitConvergenceError',
    'InvalidConfigurationError'
]
