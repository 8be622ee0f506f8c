"""
Main application service orchestrating chromatin switch detection.
"""

from typing import List, Sequence

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import (
    RECORD_COLUMNS,
    STATUS_EMPTY,
    STATUS_ERROR,
    STATUS_OK,
    ConditionMetadata,
    Region,
    RegionResult,
    SampleSet,
    SwitchConfig,
)
from chromswitch.domain.services.cluster_validation import score_clustering
from chromswitch.domain.services.clustering_analyzer import ClusteringAnalyzer
from chromswitch.domain.services.feature_matrix import FeatureMatrixBuilder
from chromswitch.domain.services.local_peaks import retrieve_peaks
from chromswitch.domain.services.peak_preprocessor import PeakPreprocessor
from chromswitch.infrastructure.logger import Logger

MIN_INFORMATIVE_SAMPLES = 2


def build_features(local_peaks, config: SwitchConfig) -> pd.DataFrame:
    """Feature matrix of one region with the configured strategy"""
    builder = FeatureMatrixBuilder()
    if config.strategy == "binary":
        return builder.binarize(
            local_peaks,
            reduce=config.reduce,
            gap=config.gap,
            p=config.p,
            include_feature_count=config.include_feature_count,
        )
    return builder.summarize(
        local_peaks,
        stat_attributes=config.stat_attributes,
        use_fraction=config.use_fraction,
        use_count=config.use_count,
    )


def detect_region_switch(
    region: Region,
    sample_set: SampleSet,
    metadata: ConditionMetadata,
    config: SwitchConfig,
) -> RegionResult:
    """
    Run the pipeline for one query region.

    BUILD_MATRIX -> CLUSTER -> SELECT_K -> SCORE. A region without peaks, without
    unique features, or with fewer than two samples carrying any signal stops
    after BUILD_MATRIX with an "empty" result. Any other failure gives an
    "error" result; neither stops the other regions.

    Args:
        region: Query region
        sample_set: Preprocessed peaks, shared read-only between regions
        metadata: Condition of each sample
        config: Pipeline configuration

    Returns:
        RegionResult: Scores and assignment, or a not applicable result
    """
    logger = Logger()
    samples = metadata.samples

    try:
        local_peaks = retrieve_peaks(sample_set, region, samples)
        if local_peaks.is_empty():
            return RegionResult.not_applicable(
                region, samples, STATUS_EMPTY, "no peaks in region"
            )
        logger.log_debug("Local peaks", f"{region.name}: {local_peaks.n_peaks()}")

        features = build_features(local_peaks, config)
        if FeatureMatrixBuilder.informative_rows(features) < MIN_INFORMATIVE_SAMPLES:
            return RegionResult.not_applicable(
                region, samples, STATUS_EMPTY, "fewer than 2 samples with signal"
            )

        analyzer = ClusteringAnalyzer(config.distance_metric, config.linkage_method)
        cluster_result = analyzer.cluster(features, config.optimal_clusters)
        scores = score_clustering(cluster_result.assignment, metadata)

    except ConfigError as e:
        logger.log_warning(f"Region {region.name} not scored: {e}")
        return RegionResult.not_applicable(region, samples, STATUS_EMPTY, str(e))
    except Exception as e:
        logger.log_error(e, f"Processing region {region.name}")
        return RegionResult.not_applicable(region, samples, STATUS_ERROR, str(e))

    return RegionResult(
        region=region,
        samples=samples,
        status=STATUS_OK,
        cluster_result=cluster_result,
        scores=scores,
    )


class SwitchDetectionService:
    """Main application service orchestrating the entire pipeline"""

    def __init__(self, config: SwitchConfig):
        self.config = config
        self.logger = Logger()
        self.preprocessor = PeakPreprocessor()

    def validate_inputs(
        self,
        regions: Sequence[Region],
        sample_set: SampleSet,
        metadata: ConditionMetadata,
    ) -> None:
        """
        Check configuration and inputs before any region is processed.

        Raises:
            ConfigError: On any inconsistency, aborting the run
        """
        self.config.validate()

        peak_samples = set(sample_set)
        meta_samples = set(metadata.samples)
        if peak_samples != meta_samples:
            raise ConfigError(
                "Samples in peak data and metadata differ: "
                f"only in peaks {sorted(peak_samples - meta_samples)}, "
                f"only in metadata {sorted(meta_samples - peak_samples)}"
            )

        self.preprocessor.check_attributes(
            sample_set, self.config.referenced_attributes()
        )
        self._check_output_columns(regions, metadata)

        self.logger.log_success(
            f"Validated {len(regions)} regions and {len(metadata)} samples "
            f"({', '.join(metadata.condition_labels)})"
        )

    @staticmethod
    def _check_output_columns(
        regions: Sequence[Region], metadata: ConditionMetadata
    ) -> None:
        """Region metadata columns and sample IDs must not overwrite result columns"""
        reserved = set(RECORD_COLUMNS)
        region_columns = set()
        for region in regions:
            region_columns.update(str(key) for key in region.metadata)

        clashes = sorted(region_columns & reserved)
        if clashes:
            raise ConfigError(f"Region columns {clashes} clash with result columns")

        clashes = sorted(set(metadata.samples) & (reserved | region_columns))
        if clashes:
            raise ConfigError(
                f"Sample IDs {clashes} clash with result or region columns"
            )

    def preprocess(self, sample_set: SampleSet) -> SampleSet:
        """Genome-wide filtering and normalization, done once for all regions"""
        return self.preprocessor.preprocess(
            sample_set,
            filter_attributes=self.config.filter_attributes,
            filter_thresholds=self.config.filter_thresholds,
            normalize_attributes=self.config.normalize_attributes,
            tail_fraction=self.config.tail_fraction,
            apply_filter=self.config.filter,
            apply_normalize=self.config.normalize,
        )

    def process(
        self,
        regions: Sequence[Region],
        sample_set: SampleSet,
        metadata: ConditionMetadata,
    ) -> List[RegionResult]:
        """
        Main processing pipeline.

        Returns:
            List[RegionResult]: One result per region, in input order
        """
        self.logger.log_step("Processing pipeline", "Starting chromatin switch detection")

        self.logger.log_step("Validation", "Checking configuration and inputs")
        self.validate_inputs(regions, sample_set, metadata)

        self.logger.log_step("Preprocessing", "Filtering and normalizing peaks")
        prepared = self.preprocess(sample_set)

        self.logger.log_step(
            "Switch detection",
            f"Scoring {len(regions)} regions with the {self.config.strategy} strategy "
            f"(n_jobs={self.config.n_jobs})",
        )
        results = Parallel(n_jobs=self.config.n_jobs)(
            delayed(detect_region_switch)(region, prepared, metadata, self.config)
            for region in regions
        )

        n_scored = sum(1 for result in results if result.is_applicable)
        n_failed = sum(1 for result in results if result.status == STATUS_ERROR)
        if n_failed:
            self.logger.log_warning(f"{n_failed} regions failed and were skipped")
        if n_scored:
            self.logger.log_statistics(
                "Mean consensus of scored regions",
                float(np.mean([r.scores.consensus for r in results if r.is_applicable])),
            )
        self.logger.log_success(f"Scored {n_scored} of {len(results)} regions")
        return results
