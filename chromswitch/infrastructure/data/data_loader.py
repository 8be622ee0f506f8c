"""
Data loading and initial validation for the chromatin switch pipeline.
"""

import os
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import ConditionMetadata, Interval, Region, SampleSet
from chromswitch.infrastructure.logger import Logger

COORDINATE_COLUMNS = ["chr", "start", "end"]

# ENCODE narrowPeak layout; BED files use a prefix of it
NARROWPEAK_COLUMNS = COORDINATE_COLUMNS + [
    "name",
    "score",
    "strand",
    "signalValue",
    "pValue",
    "qValue",
    "peak",
]

REGION_EXTRA_COLUMNS = ["name", "score", "strand"]


def _default_names(base: List[str], n_columns: int) -> List[str]:
    names = list(base[:n_columns])
    names.extend(f"field{i + 1}" for i in range(len(names), n_columns))
    return names


class PeakDataLoader:
    """Responsible for loading metadata, query regions and peak files"""

    def __init__(self):
        self.logger = Logger()

    def _read_table(self, file_path: str) -> pd.DataFrame:
        """Read a headerless tab-separated table"""
        try:
            return pd.read_csv(
                file_path,
                sep="\t",
                header=None,
                comment="#",
                skip_blank_lines=True,
            )
        except FileNotFoundError:
            self.logger.log_error(
                FileNotFoundError(f"File not found: {file_path}"), "Data loading"
            )
            raise
        except pd.errors.EmptyDataError:
            return pd.DataFrame()

    def load_metadata(self, file_path: str) -> Tuple[ConditionMetadata, Dict[str, str]]:
        """
        Load the sample metadata table.

        Args:
            file_path: Tab-separated file with ``Sample`` and ``Condition``
                columns and optionally a ``Path`` column to each peak file

        Returns:
            Tuple[ConditionMetadata, Dict[str, str]]: Metadata and peak file
            paths, resolved against the metadata file's directory
        """
        try:
            df = pd.read_csv(file_path, sep="\t", dtype=str)
        except FileNotFoundError:
            self.logger.log_error(
                FileNotFoundError(f"File not found: {file_path}"), "Metadata loading"
            )
            raise

        metadata = ConditionMetadata.from_dataframe(df)

        paths = {}
        if "Path" in df.columns:
            base_dir = os.path.dirname(os.path.abspath(file_path))
            for sample, path in zip(df["Sample"], df["Path"]):
                # Empty cells mean no peak file; load_sample_set reports them
                if pd.isna(path) or not path.strip():
                    continue
                paths[sample] = path if os.path.isabs(path) else os.path.join(base_dir, path)

        self.logger.log_success(
            f"Loaded metadata for {len(metadata)} samples from {file_path}"
        )
        return metadata, paths

    def load_regions(self, file_path: str) -> List[Region]:
        """
        Load query regions from a BED-like file.

        A header line is recognized when its second field is not a number.
        Columns after the coordinates are carried through as region metadata.
        """
        df = self._read_table(file_path)
        if df.empty:
            self.logger.log_warning(f"No regions found in {file_path}")
            return []

        first_row = df.iloc[0]
        if not str(first_row[1]).lstrip("-").isdigit():
            names = [str(value) for value in first_row]
            df = df.iloc[1:].reset_index(drop=True)
        else:
            names = COORDINATE_COLUMNS + _default_names(
                REGION_EXTRA_COLUMNS, df.shape[1] - 3
            )
        df.columns = names

        regions = []
        for row in df.itertuples(index=False):
            values = list(row)
            regions.append(
                Region(
                    chrom=str(values[0]),
                    start=int(values[1]),
                    end=int(values[2]),
                    metadata=dict(zip(names[3:], values[3:])),
                )
            )

        self.logger.log_success(f"Loaded {len(regions)} regions from {file_path}")
        return regions

    def load_peaks(self, file_path: str) -> Tuple[Interval, ...]:
        """
        Load one sample's peaks from a BED or narrowPeak file.

        Numeric columns other than the coordinates become peak attributes,
        e.g. ``signalValue``, ``pValue`` and ``qValue`` for narrowPeak files.
        """
        df = self._read_table(file_path)
        if df.empty:
            self.logger.log_warning(f"No peaks found in {file_path}")
            return ()

        df.columns = _default_names(NARROWPEAK_COLUMNS, df.shape[1])
        attributes = [
            column
            for column in df.columns[3:]
            if pd.api.types.is_numeric_dtype(df[column])
        ]

        peaks = tuple(
            Interval(
                chrom=str(chrom),
                start=int(start),
                end=int(end),
                attributes={a: float(v) for a, v in zip(attributes, values)},
            )
            for chrom, start, end, *values in df[
                COORDINATE_COLUMNS + attributes
            ].itertuples(index=False)
        )
        self.logger.log_step("Peak loading", f"{len(peaks)} peaks from {file_path}")
        return peaks

    def load_sample_set(
        self,
        metadata: ConditionMetadata,
        paths: Mapping[str, str],
    ) -> SampleSet:
        """
        Load the peaks of every sample in the metadata.

        Raises:
            ConfigError: If a sample has no peak file
        """
        missing = [sample for sample in metadata.samples if sample not in paths]
        if missing:
            raise ConfigError(f"No peak file given for samples {missing}")

        return {sample: self.load_peaks(paths[sample]) for sample in metadata.samples}

    def load_all(
        self, metadata_file: str, regions_file: str, peak_paths: Optional[Mapping[str, str]] = None
    ) -> Tuple[List[Region], SampleSet, ConditionMetadata]:
        """
        Load every pipeline input.

        Args:
            metadata_file: Sample metadata table
            regions_file: Query regions
            peak_paths: Peak file per sample, overriding the metadata ``Path`` column

        Returns:
            Tuple[List[Region], SampleSet, ConditionMetadata]: Pipeline inputs
        """
        metadata, paths = self.load_metadata(metadata_file)
        if peak_paths:
            paths.update(peak_paths)
        regions = self.load_regions(regions_file)
        sample_set = self.load_sample_set(metadata, paths)
        return regions, sample_set, metadata
