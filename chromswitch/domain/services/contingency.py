"""
Contingency table between known conditions and inferred clusters.
"""

from typing import Hashable, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import ConditionMetadata


class ContingencyTable:
    """
    Counts of samples per (condition, cluster) pair.

    Rows are the two conditions in sorted order, columns the cluster IDs
    actually used, in sorted order. The table is checked once on construction
    and never modified afterwards.
    """

    def __init__(
        self,
        counts: np.ndarray,
        class_labels: Sequence[Hashable],
        cluster_labels: Sequence[Hashable],
    ):
        counts = np.asarray(counts)
        if counts.ndim != 2:
            raise ConfigError(f"Contingency table must be 2D, got shape {counts.shape}")
        if counts.shape != (len(class_labels), len(cluster_labels)):
            raise ConfigError(
                f"Contingency table shape {counts.shape} does not match "
                f"{len(class_labels)} classes x {len(cluster_labels)} clusters"
            )
        if np.any(counts < 0):
            raise ConfigError("Contingency table counts must be non-negative")
        if counts.sum() == 0:
            raise ConfigError("Contingency table is empty")

        self._counts = counts.astype(np.int64)
        self._counts.setflags(write=False)
        self.class_labels: Tuple[Hashable, ...] = tuple(class_labels)
        self.cluster_labels: Tuple[Hashable, ...] = tuple(cluster_labels)

    @classmethod
    def from_assignments(
        cls, clusters: Mapping[str, Hashable], metadata: ConditionMetadata
    ) -> "ContingencyTable":
        """
        Join cluster assignments to conditions on sample ID.

        Raises:
            ConfigError: If a clustered sample has no condition
        """
        unknown = [sample for sample in clusters if sample not in metadata]
        if unknown:
            raise ConfigError(
                f"Inconsistent sample sets: no condition for clustered samples {unknown}"
            )

        class_labels = list(metadata.condition_labels)
        cluster_labels = sorted(set(clusters.values()))
        class_index = {label: i for i, label in enumerate(class_labels)}
        cluster_index = {label: j for j, label in enumerate(cluster_labels)}

        counts = np.zeros((len(class_labels), len(cluster_labels)), dtype=np.int64)
        for sample, cluster in clusters.items():
            counts[class_index[metadata.condition_of(sample)], cluster_index[cluster]] += 1

        return cls(counts, class_labels, cluster_labels)

    @classmethod
    def from_labels(
        cls, classes: Sequence[Hashable], clusters: Sequence[Hashable]
    ) -> "ContingencyTable":
        """Cross-tabulate two parallel label vectors, classes as rows"""
        if len(classes) != len(clusters):
            raise ConfigError(
                f"Got {len(classes)} class labels but {len(clusters)} cluster labels"
            )
        table = pd.crosstab(pd.Series(list(classes)), pd.Series(list(clusters)))
        return cls(table.to_numpy(), list(table.index), list(table.columns))

    @property
    def counts(self) -> np.ndarray:
        return self._counts

    @property
    def n(self) -> int:
        return int(self._counts.sum())

    @property
    def class_totals(self) -> np.ndarray:
        """Row sums, one per condition"""
        return self._counts.sum(axis=1)

    @property
    def cluster_totals(self) -> np.ndarray:
        """Column sums, one per cluster"""
        return self._counts.sum(axis=0)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            self._counts, index=list(self.class_labels), columns=list(self.cluster_labels)
        )

    def __repr__(self) -> str:
        return f"ContingencyTable(\n{self.to_dataframe()}\n)"
