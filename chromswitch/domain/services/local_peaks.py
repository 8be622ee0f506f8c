"""
Extraction of the peaks falling in one query region.
"""

from typing import Sequence

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import LocalPeaks, Region, SampleSet
from chromswitch.domain.services.interval_set import overlaps


def retrieve_peaks(
    sample_set: SampleSet, region: Region, samples: Sequence[str]
) -> LocalPeaks:
    """
    Restrict every sample's peaks to those overlapping ``region``.

    Peaks are kept whole, with their attributes. A region with no peaks at
    all gives an empty LocalPeaks rather than an error.

    Args:
        sample_set: Preprocessed peaks for each sample
        region: Query region
        samples: Sample order to use, normally the metadata order

    Returns:
        LocalPeaks: Per-region view of the data
    """
    target = region.as_interval()
    peaks = {}
    for sample in samples:
        if sample not in sample_set:
            raise ConfigError(f"No peaks were provided for sample '{sample}'")
        peaks[sample] = tuple(
            peak for peak in sample_set[sample] if overlaps(peak, target)
        )

    return LocalPeaks(region=region, samples=tuple(samples), peaks=peaks)
