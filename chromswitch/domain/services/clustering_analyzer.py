"""
Hierarchical clustering and cluster number selection for the switch pipeline.
"""

from collections import OrderedDict
from typing import Dict, List

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import pdist
from sklearn.metrics import silhouette_score

from chromswitch.domain.models import ClusterResult
from chromswitch.infrastructure.logger import Logger

DEFAULT_K = 2


class ClusteringAnalyzer:
    """Agglomerative clustering of samples with silhouette-based k selection"""

    def __init__(self, distance_metric: str = "euclidean", linkage_method: str = "complete"):
        self.distance_metric = distance_metric
        self.linkage_method = linkage_method
        self.logger = Logger()

    def build_linkage(self, matrix: np.ndarray) -> np.ndarray:
        """
        Build the dendrogram of the samples.

        Args:
            matrix: Samples x features

        Returns:
            np.ndarray: SciPy linkage matrix
        """
        distances = pdist(matrix, metric=self.distance_metric)
        return linkage(distances, method=self.linkage_method)

    @staticmethod
    def cut_tree(linkage_matrix: np.ndarray, k: int) -> np.ndarray:
        """
        Cut the dendrogram into at most k flat clusters.

        Labels are renumbered 1..K in order of first appearance so that equal
        partitions always get equal labels.
        """
        raw = fcluster(linkage_matrix, t=k, criterion="maxclust")
        relabel: Dict[int, int] = {}
        for label in raw:
            relabel.setdefault(label, len(relabel) + 1)
        return np.array([relabel[label] for label in raw])

    def average_silhouette(self, matrix: np.ndarray, labels: np.ndarray) -> float:
        """Average silhouette width, NaN when undefined for this partition"""
        n_labels = len(np.unique(labels))
        if n_labels < 2 or n_labels > matrix.shape[0] - 1:
            return np.nan
        return float(silhouette_score(matrix, labels, metric=self.distance_metric))

    def compute_silhouette_profile(
        self, matrix: np.ndarray, linkage_matrix: np.ndarray
    ) -> Dict[int, float]:
        """
        Average silhouette width of the cut at every k in 2..N-1.

        Args:
            matrix: Samples x features
            linkage_matrix: Dendrogram of the samples

        Returns:
            Dict[int, float]: k -> silhouette, NaN where the cut has no silhouette
        """
        profile = OrderedDict()
        for k in range(2, matrix.shape[0]):
            labels = self.cut_tree(linkage_matrix, k)
            profile[k] = self.average_silhouette(matrix, labels)
        return profile

    @staticmethod
    def select_k(profile: Dict[int, float]) -> int:
        """k with the highest silhouette, smallest k on ties, 2 if none is defined"""
        valid = [(k, s) for k, s in profile.items() if not np.isnan(s)]
        if not valid:
            return DEFAULT_K
        best = max(s for _, s in valid)
        return min(k for k, s in valid if s == best)

    def cluster(self, features: pd.DataFrame, optimal_clusters: bool = True) -> ClusterResult:
        """
        Cluster the samples of a feature matrix.

        Args:
            features: Samples x features, indexed by sample ID
            optimal_clusters: Pick k by silhouette rather than using k = 2

        Returns:
            ClusterResult: Chosen k, sample assignment and its average silhouette
        """
        matrix = features.to_numpy(dtype=float)
        samples: List[str] = list(features.index)
        linkage_matrix = self.build_linkage(matrix)

        if optimal_clusters:
            profile = self.compute_silhouette_profile(matrix, linkage_matrix)
            k = self.select_k(profile)
        else:
            k = DEFAULT_K

        labels = self.cut_tree(linkage_matrix, k)
        silhouette = self.average_silhouette(matrix, labels)

        self.logger.log_debug(
            "Clustering", f"k = {k}, average silhouette = {silhouette:.4f}"
        )

        return ClusterResult(
            k=k,
            assignment={sample: int(label) for sample, label in zip(samples, labels)},
            average_silhouette=silhouette,
        )
