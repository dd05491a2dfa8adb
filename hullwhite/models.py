"""Data models shared across the forecasting pipeline."""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional
import numpy as np
import pandas as pd


def _read_only(values) -> np.ndarray:
    """Copy into a float array that cannot be modified downstream"""
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


class _FrozenArrays:
    """Mixin making every ndarray field of a frozen dataclass read-only"""

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, np.ndarray):
                object.__setattr__(self, f.name, _read_only(value))


@dataclass(frozen=True)
class RealizedSeries(_FrozenArrays):
    """Trimmed realized variance/volatility with its elapsed-time index"""
    time: np.ndarray  # 1..T after burn-in
    variance: np.ndarray
    volatility: np.ndarray
    returns: np.ndarray  # log returns before burn-in
    dates: Optional[pd.DatetimeIndex] = None  # date of each realized point

    def __len__(self) -> int:
        return len(self.time)

    def head(self, n: int) -> 'RealizedSeries':
        """First n realized points (the training window)"""
        return RealizedSeries(
            time=self.time[:n],
            variance=self.variance[:n],
            volatility=self.volatility[:n],
            returns=self.returns,
            dates=None if self.dates is None else self.dates[:n]
        )


@dataclass(frozen=True)
class ModelParameters:
    """Fitted Hull-White parameters"""
    kappa: float  # drift coefficient
    zeta: Optional[float] = None  # diffusion coefficient, volatility model only

    def as_tuple(self) -> tuple:
        return (self.kappa,) if self.zeta is None else (self.kappa, self.zeta)


@dataclass(frozen=True)
class FitResult(_FrozenArrays):
    """Outcome of fitting one model to the training window"""
    model: str  # 'variance' or 'volatility'
    params: ModelParameters
    v0: float
    fitted: np.ndarray
    residuals: np.ndarray
    rmse: float


@dataclass(frozen=True)
class Forecast(_FrozenArrays):
    """Point forecast and 95% band over the full horizon"""
    model: str
    time: np.ndarray
    values: np.ndarray
    upper: np.ndarray
    lower: np.ndarray
    rmse: float


@dataclass(frozen=True)
class ForecastRecord:
    """One point of the prediction window"""
    index: int  # 1-based position within the window
    value: float
    upper: float
    lower: float
    quantity: str = 'realized_variance'

    def as_dict(self) -> Dict[str, float]:
        return {
            'index': self.index,
            self.quantity: self.value,
            'UC95': self.upper,
            'LC95': self.lower
        }


@dataclass(frozen=True)
class HullWhiteResult:
    """Complete output of one pipeline run"""
    symbol: Optional[str]
    series: RealizedSeries
    variance_fit: FitResult
    volatility_fit: FitResult
    variance_forecast: Forecast
    volatility_forecast: Forecast
    records: List[ForecastRecord]
    train_size: int
    variance: bool
    testing: bool
    dates: Optional[pd.DatetimeIndex] = None  # dates of the prediction window
    metadata: Dict[str, object] = field(default_factory=dict)

    @property
    def forecast(self) -> Forecast:
        """Forecast matching the requested output mode"""
        return self.variance_forecast if self.variance else self.volatility_forecast

    @property
    def fit(self) -> FitResult:
        return self.variance_fit if self.variance else self.volatility_fit

    def to_dataframe(self) -> pd.DataFrame:
        """Records as a DataFrame, indexed by forecast date when available"""
        df = pd.DataFrame([record.as_dict() for record in self.records])
        if self.dates is not None:
            df.index = pd.DatetimeIndex(self.dates, name='date')
        return df
