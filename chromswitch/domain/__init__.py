"""
This package contains the domain layer for the chromatin switch pipeline.

The domain layer is responsible for the business logic of the pipeline.
"""

from .errors import ConfigError
from .models import (
    ClusterResult,
    ConditionMetadata,
    Interval,
    LocalPeaks,
    Region,
    RegionResult,
    SwitchConfig,
    ValidationScores,
)

__all__ = [
    "ClusterResult",
    "ConditionMetadata",
    "ConfigError",
    "Interval",
    "LocalPeaks",
    "Region",
    "RegionResult",
    "SwitchConfig",
    "ValidationScores",
]
