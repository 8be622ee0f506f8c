"""
Business logic services package for the chromatin switch pipeline.
"""

from .clustering_analyzer import ClusteringAnalyzer
from .contingency import ContingencyTable
from .feature_matrix import FeatureMatrixBuilder
from .peak_preprocessor import PeakPreprocessor

__all__ = [
    "ClusteringAnalyzer",
    "ContingencyTable",
    "FeatureMatrixBuilder",
    "PeakPreprocessor",
]
