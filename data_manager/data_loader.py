"""
Price sources feeding closing prices into the Hull-White pipeline.
"""

import logging
from pathlib import Path
from typing import Optional
import pandas as pd
import yfinance as yf

from hullwhite.exceptions import InvalidConfigurationError
from hullwhite.interfaces import DateLike, PriceSource
from data_manager.data_validator import PriceValidator

logger = logging.getLogger(__name__)


def _filter_range(prices: pd.Series, start: DateLike, end: DateLike) -> pd.Series:
    start, end = pd.Timestamp(start), pd.Timestamp(end)
    if start > end:
        raise InvalidConfigurationError(f"start {start:%Y-%m-%d} is after end {end:%Y-%m-%d}")
    return prices[(prices.index >= start) & (prices.index <= end)]


class CsvPriceSource(PriceSource):
    """Reads closes from <data_dir>/<symbol>.csv"""

    def __init__(self, data_dir: str = "data_manager/data",
                 date_column: str = "date",
                 close_column: str = "close"):
        """
        Args:
            data_dir: Directory holding one CSV file per symbol
            date_column: Name of the date column
            close_column: Name of the closing price column
        """
        self.data_dir = Path(data_dir)
        self.date_column = date_column
        self.close_column = close_column
        self.validator = PriceValidator()
        self.logger = logging.getLogger('data_manager.csv_source')

    def get_prices(self, symbol: str, start: DateLike, end: DateLike) -> pd.Series:
        file_path = self.data_dir / f"{symbol}.csv"
        if not file_path.exists():
            raise FileNotFoundError(f"No price file for {symbol}: {file_path}")

        self.logger.info(f"Reading prices from: {file_path}")
        df = pd.read_csv(file_path)

        missing = [c for c in (self.date_column, self.close_column) if c not in df.columns]
        if missing:
            raise InvalidConfigurationError(f"{file_path} is missing columns: {missing}")

        prices = pd.Series(
            pd.to_numeric(df[self.close_column], errors='coerce').values,
            index=pd.to_datetime(df[self.date_column]),
            name=symbol
        ).sort_index()
        prices = _filter_range(prices, start, end)

        self.validator.check(prices)
        self.logger.info(
            f"Loaded {len(prices)} closes for {symbol}"
            + (f" from {prices.index[0]:%Y-%m-%d} to {prices.index[-1]:%Y-%m-%d}" if len(prices) else "")
        )
        return prices


class YahooPriceSource(PriceSource):
    """Downloads daily closes from Yahoo Finance, with an optional CSV cache"""

    def __init__(self, cache_dir: Optional[str] = None, force_download: bool = False):
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self.force_download = force_download
        self.validator = PriceValidator()
        self.logger = logging.getLogger('data_manager.yahoo_source')

        if self.cache_dir is not None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _cache_file(self, symbol: str, start: DateLike, end: DateLike) -> Optional[Path]:
        if self.cache_dir is None:
            return None
        start, end = pd.Timestamp(start), pd.Timestamp(end)
        name = f"{symbol.replace('^', '')}_{start:%Y%m%d}_{end:%Y%m%d}.csv"
        return self.cache_dir / name

    def get_prices(self, symbol: str, start: DateLike, end: DateLike) -> pd.Series:
        cache_file = self._cache_file(symbol, start, end)

        if cache_file is not None and cache_file.exists() and not self.force_download:
            self.logger.info(f"Loading cached prices from {cache_file}")
            prices = pd.read_csv(cache_file, index_col=0, parse_dates=True).iloc[:, 0]
        else:
            prices = self._download(symbol, start, end)
            if cache_file is not None:
                prices.to_frame('close').to_csv(cache_file)
                self.logger.info(f"Saved to {cache_file}")

        prices = _filter_range(prices.rename(symbol).sort_index(), start, end)
        self.validator.check(prices)
        return prices

    def _download(self, symbol: str, start: DateLike, end: DateLike) -> pd.Series:
        self.logger.info(f"Downloading {symbol} from {start} to {end}")
        # yfinance treats end as exclusive
        end_exclusive = pd.Timestamp(end) + pd.Timedelta(days=1)
        df = yf.download(symbol, start=pd.Timestamp(start), end=end_exclusive,
                         progress=False, auto_adjust=False)

        if df is None or df.empty:
            raise ValueError(f"No data downloaded for {symbol}")

        close = df['Close']
        if isinstance(close, pd.DataFrame):  # multi-index columns for a single ticker
            close = close.iloc[:, 0]
        close.index = pd.to_datetime(close.index)
        if close.index.tz is not None:
            close.index = close.index.tz_localize(None)
        return close.astype(float)
