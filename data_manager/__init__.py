"""
Data management package for the Hull-White forecaster.
Handles price loading and validation.
"""

from hullwhite.interfaces import PriceSource
from .data_loader import CsvPriceSource, YahooPriceSource
from .data_validator import PriceValidator

__all__ = ['PriceSource', 'CsvPriceSource', 'YahooPriceSource', 'PriceValidator']
