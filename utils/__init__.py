"""Utility functions and classes for Hull-White analysis"""

from hullwhite.interfaces import ChartRenderer
from .visualization import HullWhiteVisualizer
from .progress import ProgressMonitor

__all__ = ['ChartRenderer', 'HullWhiteVisualizer', 'ProgressMonitor']
