"""
Data access package for the chromatin switch pipeline.

This package contains loaders for metadata, query regions and peak files, and
the writer for the per-region result table.
"""

from .data_loader import PeakDataLoader
from .data_saver import ResultSaver

__all__ = ["PeakDataLoader", "ResultSaver"]
