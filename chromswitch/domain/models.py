"""
Core domain models for the chromatin switch pipeline.
Contains data structures for intervals, samples, configuration and results.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import ConfigError

STRATEGIES = ("summary", "binary")

STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class Interval:
    """Half-open genomic interval [start, end) with named numeric attributes"""

    chrom: str
    start: int
    end: int
    attributes: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if self.start >= self.end:
            raise ConfigError(
                f"Interval start must be < end, got {self.chrom}:{self.start}-{self.end}"
            )
        object.__setattr__(self, "attributes", dict(self.attributes))

    @property
    def length(self) -> int:
        return self.end - self.start


# A sample's peaks, and every sample's peaks keyed by sample ID
IntervalCollection = Tuple[Interval, ...]
SampleSet = Dict[str, IntervalCollection]


@dataclass(frozen=True)
class Region:
    """A query region; ``metadata`` is carried through to the output untouched"""

    chrom: str
    start: int
    end: int
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.start >= self.end:
            raise ConfigError(
                f"Region start must be < end, got {self.chrom}:{self.start}-{self.end}"
            )
        object.__setattr__(self, "metadata", dict(self.metadata))

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def name(self) -> str:
        return f"{self.chrom}:{self.start}-{self.end}"

    def as_interval(self) -> Interval:
        return Interval(self.chrom, self.start, self.end)


@dataclass(frozen=True)
class LocalPeaks:
    """Peaks of every sample restricted to one region"""

    region: Region
    samples: Tuple[str, ...]
    peaks: Mapping[str, IntervalCollection]

    def is_empty(self) -> bool:
        return all(len(self.peaks.get(sample, ())) == 0 for sample in self.samples)

    def n_peaks(self) -> Dict[str, int]:
        return {sample: len(self.peaks.get(sample, ())) for sample in self.samples}


class ConditionMetadata:
    """Sample to condition mapping over exactly two conditions.

    Sample order is kept as given and is the row order used everywhere
    downstream. Conditions are sorted so contingency tables are reproducible.
    """

    def __init__(self, samples: Iterable[str], conditions: Iterable[str]):
        samples = [str(s) for s in samples]
        conditions = [str(c) for c in conditions]

        if len(samples) != len(conditions):
            raise ConfigError(
                f"Got {len(samples)} samples but {len(conditions)} conditions"
            )
        duplicated = sorted({s for s in samples if samples.count(s) > 1})
        if duplicated:
            raise ConfigError(f"Duplicated sample IDs in metadata: {duplicated}")

        domain = sorted(set(conditions))
        if len(domain) != 2:
            raise ConfigError(
                f"Metadata must contain exactly 2 distinct conditions, found {len(domain)}: {domain}"
            )

        self._conditions = OrderedDict(zip(samples, conditions))
        self._domain = tuple(domain)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "ConditionMetadata":
        missing = {"Sample", "Condition"} - set(df.columns)
        if missing:
            raise ConfigError(f"Metadata is missing required columns: {sorted(missing)}")
        return cls(df["Sample"].tolist(), df["Condition"].tolist())

    @property
    def samples(self) -> List[str]:
        return list(self._conditions.keys())

    @property
    def condition_labels(self) -> Tuple[str, str]:
        return self._domain

    def condition_of(self, sample: str) -> str:
        try:
            return self._conditions[sample]
        except KeyError:
            raise ConfigError(f"Sample '{sample}' has no condition in the metadata")

    def __contains__(self, sample) -> bool:
        return sample in self._conditions

    def __len__(self) -> int:
        return len(self._conditions)

    def __repr__(self) -> str:
        return f"ConditionMetadata(samples={len(self)}, conditions={self._domain})"


@dataclass
class ClusterResult:
    """Flat clustering of one region's samples"""

    k: int
    assignment: Dict[str, int]
    average_silhouette: float


@dataclass
class ValidationScores:
    """External cluster validation scores against the known conditions"""

    purity: float
    homogeneity: float
    completeness: float
    v_measure: float
    nmi: float
    ari: float

    @property
    def consensus(self) -> float:
        return float(np.mean([self.ari, self.nmi, self.v_measure]))

    def to_dict(self) -> Dict[str, float]:
        return OrderedDict(
            [
                ("Purity", self.purity),
                ("Homogeneity", self.homogeneity),
                ("Completeness", self.completeness),
                ("V_measure", self.v_measure),
                ("NMI", self.nmi),
                ("ARI", self.ari),
            ]
        )


METRIC_COLUMNS = ("Purity", "Homogeneity", "Completeness", "V_measure", "NMI", "ARI")

# Fixed columns of a result record; region metadata and sample IDs must not reuse them
RECORD_COLUMNS = (
    "chr",
    "start",
    "end",
    "status",
    "k",
    "Average_Silhouette",
    "Consensus",
) + METRIC_COLUMNS


@dataclass
class RegionResult:
    """Result of switch detection for a single query region"""

    region: Region
    samples: List[str]
    status: str = STATUS_OK
    cluster_result: Optional[ClusterResult] = None
    scores: Optional[ValidationScores] = None
    message: str = ""

    @classmethod
    def not_applicable(
        cls, region: Region, samples: List[str], status: str, message: str = ""
    ) -> "RegionResult":
        return cls(region=region, samples=list(samples), status=status, message=message)

    @property
    def is_applicable(self) -> bool:
        return self.status == STATUS_OK

    def to_record(self, report_metrics: bool = False) -> Dict[str, Any]:
        """Flatten into one output row; not applicable values are NaN"""
        record = OrderedDict(
            [
                ("chr", self.region.chrom),
                ("start", self.region.start),
                ("end", self.region.end),
            ]
        )
        for key, value in self.region.metadata.items():
            record[key] = value
        record["status"] = self.status

        if self.is_applicable:
            record["k"] = self.cluster_result.k
            record["Average_Silhouette"] = self.cluster_result.average_silhouette
            record["Consensus"] = self.scores.consensus
        else:
            record["k"] = np.nan
            record["Average_Silhouette"] = np.nan
            record["Consensus"] = np.nan

        if report_metrics:
            metrics = self.scores.to_dict() if self.is_applicable else {}
            for column in METRIC_COLUMNS:
                record[column] = metrics.get(column, np.nan)

        for sample in self.samples:
            if self.is_applicable:
                record[sample] = self.cluster_result.assignment.get(sample, np.nan)
            else:
                record[sample] = np.nan

        return record


@dataclass
class SwitchConfig:
    """Configuration for the chromatin switch pipeline"""

    # Preprocessing
    filter: bool = False
    filter_attributes: List[str] = field(default_factory=list)
    filter_thresholds: List[float] = field(default_factory=list)
    normalize: bool = True
    normalize_attributes: List[str] = field(default_factory=list)
    tail_fraction: float = 0.01

    # Feature matrix
    strategy: str = "summary"
    stat_attributes: List[str] = field(default_factory=list)
    use_fraction: bool = False
    use_count: bool = False
    reduce: bool = True
    gap: int = 300
    p: float = 0.4
    include_feature_count: bool = False

    # Clustering
    optimal_clusters: bool = True
    distance_metric: str = "euclidean"
    linkage_method: str = "complete"

    # Output and execution
    report_metrics: bool = False
    n_jobs: int = 1

    def validate(self) -> None:
        """Raise ConfigError if the configuration is inconsistent"""
        if self.strategy not in STRATEGIES:
            raise ConfigError(
                f"Unknown strategy '{self.strategy}', expected one of {STRATEGIES}"
            )

        if self.filter:
            if len(self.filter_attributes) != len(self.filter_thresholds):
                raise ConfigError(
                    f"Got {len(self.filter_attributes)} filter attributes but "
                    f"{len(self.filter_thresholds)} thresholds"
                )
            if not self.filter_attributes:
                raise ConfigError("Filtering requested without any filter attributes")

        if not 0 <= self.tail_fraction <= 1:
            raise ConfigError(
                f"tail_fraction must be in [0, 1], got {self.tail_fraction}"
            )

        if self.strategy == "summary" and not (
            self.stat_attributes or self.use_fraction or self.use_count
        ):
            raise ConfigError(
                "Summary strategy needs at least one of stat_attributes, "
                "use_fraction or use_count"
            )

        if self.strategy == "binary":
            if self.gap < 0:
                raise ConfigError(f"gap must be >= 0, got {self.gap}")
            if not 0 < self.p <= 1:
                raise ConfigError(f"p must be in (0, 1], got {self.p}")

        if self.n_jobs == 0:
            raise ConfigError("n_jobs must be a positive number or negative (joblib style)")

    def referenced_attributes(self) -> List[str]:
        """Every attribute name the configuration reads from the peak data"""
        names = []
        if self.filter:
            names.extend(self.filter_attributes)
        if self.normalize:
            names.extend(self.normalize_attributes)
        if self.strategy == "summary":
            names.extend(self.stat_attributes)
        return list(OrderedDict.fromkeys(names))
