"""
Construction of sample-by-feature matrices from the peaks in one region.
"""

from typing import List, Sequence

import numpy as np
import pandas as pd

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import LocalPeaks
from chromswitch.domain.services.interval_set import (
    clip,
    covered_length,
    merge,
    reciprocal_overlap_fraction,
    union_unique,
)
from chromswitch.infrastructure.logger import Logger

SUMMARY_STATISTICS = ("mean", "median", "max")
FRACTION_COLUMN = "fraction"
COUNT_COLUMN = "n_peaks"
FEATURE_COUNT_COLUMN = "n_features"


class FeatureMatrixBuilder:
    """Summary-statistic and binary peak-presence feature matrices"""

    def __init__(self):
        self.logger = Logger()

    def summarize(
        self,
        local_peaks: LocalPeaks,
        stat_attributes: Sequence[str] = (),
        use_fraction: bool = False,
        use_count: bool = False,
    ) -> pd.DataFrame:
        """
        Summarize each sample's peaks in the region into a few statistics.

        Columns are, in order: mean, median and max of each attribute in
        ``stat_attributes``, then the fraction of the region covered by peaks,
        then the number of peaks. Samples without peaks get 0 everywhere.

        Args:
            local_peaks: Peaks in the region
            stat_attributes: Peak attributes to summarize
            use_fraction: Add the covered fraction of the region
            use_count: Add the raw peak count

        Returns:
            pd.DataFrame: Samples x features

        Raises:
            ConfigError: If no column is requested or an attribute is missing
        """
        if not (stat_attributes or use_fraction or use_count):
            raise ConfigError(
                "Summary strategy needs at least one of stat_attributes, "
                "use_fraction or use_count"
            )

        columns = self.summary_columns(stat_attributes, use_fraction, use_count)
        region = local_peaks.region.as_interval()
        rows = []

        for sample in local_peaks.samples:
            peaks = local_peaks.peaks[sample]
            row = []

            for attribute in stat_attributes:
                try:
                    values = np.array(
                        [peak.attributes[attribute] for peak in peaks], dtype=float
                    )
                except KeyError:
                    raise ConfigError(
                        f"Attribute '{attribute}' is missing from peaks of sample '{sample}'"
                    )
                if values.size == 0:
                    row.extend([0.0, 0.0, 0.0])
                else:
                    row.extend([values.mean(), np.median(values), values.max()])

            if use_fraction:
                covered = covered_length(clip(peak, region) for peak in peaks)
                row.append(covered / region.length)

            if use_count:
                row.append(float(len(peaks)))

            rows.append(row)

        return pd.DataFrame(
            rows, index=list(local_peaks.samples), columns=columns, dtype=float
        )

    @staticmethod
    def summary_columns(
        stat_attributes: Sequence[str], use_fraction: bool, use_count: bool
    ) -> List[str]:
        columns = [
            f"{attribute}_{statistic}"
            for attribute in stat_attributes
            for statistic in SUMMARY_STATISTICS
        ]
        if use_fraction:
            columns.append(FRACTION_COLUMN)
        if use_count:
            columns.append(COUNT_COLUMN)
        return columns

    def binarize(
        self,
        local_peaks: LocalPeaks,
        reduce: bool = True,
        gap: int = 300,
        p: float = 0.4,
        include_feature_count: bool = False,
    ) -> pd.DataFrame:
        """
        Encode presence or absence of each unique peak in the region.

        Each sample's peaks are optionally merged when closer than ``gap``. The
        peaks of all samples are then collapsed into unique representatives by
        reciprocal overlap, and a sample scores 1 for a representative when one
        of its peaks overlaps it reciprocally by at least ``p``.

        Args:
            local_peaks: Peaks in the region
            reduce: Merge nearby peaks within each sample first
            gap: Merge distance used when ``reduce`` is set
            p: Reciprocal overlap needed to call two peaks the same
            include_feature_count: Append the number of unique peaks as a column

        Returns:
            pd.DataFrame: Samples x unique peaks, 0/1 valued

        Raises:
            ConfigError: If the region holds no peaks to build features from
        """
        if reduce:
            sample_peaks = {
                sample: merge(local_peaks.peaks[sample], gap)
                for sample in local_peaks.samples
            }
        else:
            sample_peaks = {
                sample: list(local_peaks.peaks[sample])
                for sample in local_peaks.samples
            }

        unique_peaks = union_unique(sample_peaks.values(), p)
        if not unique_peaks:
            raise ConfigError(
                f"No unique peaks found in region {local_peaks.region.name}"
            )

        matrix = np.zeros((len(local_peaks.samples), len(unique_peaks)))
        for i, sample in enumerate(local_peaks.samples):
            for j, unique_peak in enumerate(unique_peaks):
                if any(
                    reciprocal_overlap_fraction(peak, unique_peak) >= p
                    for peak in sample_peaks[sample]
                ):
                    matrix[i, j] = 1.0

        columns = [f"{peak.chrom}:{peak.start}-{peak.end}" for peak in unique_peaks]
        features = pd.DataFrame(matrix, index=list(local_peaks.samples), columns=columns)

        if include_feature_count:
            features[FEATURE_COUNT_COLUMN] = float(len(unique_peaks))

        self.logger.log_debug(
            "Binary features",
            f"{local_peaks.region.name}: {len(unique_peaks)} unique peaks",
        )
        return features

    @staticmethod
    def informative_rows(features: pd.DataFrame) -> int:
        """Number of samples with at least one nonzero feature.

        The constant unique-peak count column is ignored.
        """
        values = features.drop(columns=[FEATURE_COUNT_COLUMN], errors="ignore")
        return int((values.to_numpy() != 0).any(axis=1).sum())
