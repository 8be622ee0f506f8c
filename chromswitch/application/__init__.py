"""
This package contains the application layer for the chromatin switch pipeline.

The application layer is responsible for orchestrating switch detection over
all query regions.
"""

from .switch_detection_service import SwitchDetectionService, detect_region_switch

__all__ = ["SwitchDetectionService", "detect_region_switch"]
