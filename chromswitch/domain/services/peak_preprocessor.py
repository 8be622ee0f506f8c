"""
Core business logic for genome-wide peak preprocessing in the switch pipeline.
"""

from typing import Dict, List, Mapping, Sequence

import numpy as np

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import Interval, SampleSet
from chromswitch.infrastructure.logger import Logger

# Value given to in-range peaks when the lower and upper quantiles coincide
DEGENERATE_RANGE_VALUE = 0.5


class PeakPreprocessor:
    """Filtering and normalization of per-sample peak attributes"""

    def __init__(self):
        self.logger = Logger()

    def check_attributes(self, sample_set: SampleSet, attributes: Sequence[str]) -> None:
        """
        Check that every peak carries every requested attribute.

        Raises:
            ConfigError: If an attribute is missing from a sample's peaks
        """
        for sample, peaks in sample_set.items():
            for attribute in attributes:
                missing = sum(1 for peak in peaks if attribute not in peak.attributes)
                if missing:
                    raise ConfigError(
                        f"Attribute '{attribute}' is missing from {missing} peaks "
                        f"of sample '{sample}'"
                    )

    def filter_peaks(
        self, sample_set: SampleSet, thresholds: Mapping[str, float]
    ) -> SampleSet:
        """
        Drop peaks whose attribute values fall below the given minimums.

        Args:
            sample_set: Peaks for each sample
            thresholds: Minimum value for each attribute

        Returns:
            SampleSet: New sample set holding only the peaks passing every threshold
        """
        self.check_attributes(sample_set, list(thresholds))
        for attribute, minimum in thresholds.items():
            self.logger.log_threshold(f"Minimum {attribute}", minimum)

        filtered = {}
        for sample, peaks in sample_set.items():
            filtered[sample] = tuple(
                peak
                for peak in peaks
                if all(
                    peak.attributes[attribute] >= minimum
                    for attribute, minimum in thresholds.items()
                )
            )
            self.logger.log_step(
                "Peak filtering",
                f"{sample}: kept {len(filtered[sample])} of {len(peaks)} peaks",
            )

        return filtered

    def normalize_peaks(
        self,
        sample_set: SampleSet,
        attributes: Sequence[str],
        tail_fraction: float = 0.01,
    ) -> SampleSet:
        """
        Rescale attributes to [0, 1] per sample, bounding the extreme tails.

        For each sample and attribute, the ``tail_fraction / 2`` and
        ``1 - tail_fraction / 2`` quantiles over all of the sample's peaks are
        mapped to 0 and 1. Values in between are rescaled linearly and values
        outside are clamped.

        Args:
            sample_set: Peaks for each sample, genome-wide
            attributes: Attributes to normalize
            tail_fraction: Total fraction of values bounded at the two tails

        Returns:
            SampleSet: New sample set with normalized attribute values
        """
        if not 0 <= tail_fraction <= 1:
            raise ConfigError(f"tail_fraction must be in [0, 1], got {tail_fraction}")
        self.check_attributes(sample_set, attributes)
        self.logger.log_threshold("Tail fraction", tail_fraction)

        normalized = {}
        for sample, peaks in sample_set.items():
            if not peaks:
                normalized[sample] = ()
                continue

            rescaled: Dict[str, np.ndarray] = {}
            for attribute in attributes:
                values = np.array(
                    [peak.attributes[attribute] for peak in peaks], dtype=float
                )
                rescaled[attribute] = self._rescale(values, tail_fraction)

            normalized[sample] = tuple(
                Interval(
                    peak.chrom,
                    peak.start,
                    peak.end,
                    {
                        **peak.attributes,
                        **{a: float(rescaled[a][i]) for a in attributes},
                    },
                )
                for i, peak in enumerate(peaks)
            )

        self.logger.log_step(
            "Peak normalization",
            f"Normalized {list(attributes)} for {len(normalized)} samples",
        )
        return normalized

    def _rescale(self, values: np.ndarray, tail_fraction: float) -> np.ndarray:
        """Quantile-bounded min-max scaling of one sample's attribute values"""
        lower, upper = np.quantile(values, [tail_fraction / 2, 1 - tail_fraction / 2])

        if upper == lower:
            out = np.full(values.shape, DEGENERATE_RANGE_VALUE)
        else:
            out = (values - lower) / (upper - lower)

        out[values < lower] = 0.0
        out[values > upper] = 1.0
        return out

    def preprocess(
        self,
        sample_set: SampleSet,
        filter_attributes: List[str],
        filter_thresholds: List[float],
        normalize_attributes: List[str],
        tail_fraction: float,
        apply_filter: bool,
        apply_normalize: bool,
    ) -> SampleSet:
        """Filter then normalize, as configured"""
        if apply_filter:
            if len(filter_attributes) != len(filter_thresholds):
                raise ConfigError(
                    f"Got {len(filter_attributes)} filter attributes but "
                    f"{len(filter_thresholds)} thresholds"
                )
            sample_set = self.filter_peaks(
                sample_set, dict(zip(filter_attributes, filter_thresholds))
            )

        if apply_normalize and normalize_attributes:
            sample_set = self.normalize_peaks(
                sample_set, normalize_attributes, tail_fraction
            )

        total = sum(len(peaks) for peaks in sample_set.values())
        self.logger.log_step("Preprocessing", f"{total} peaks left across all samples")
        return sample_set
