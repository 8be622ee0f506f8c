"""
External cluster validation metrics for the chromatin switch pipeline.

Every metric is a pure function of a ContingencyTable whose rows are the known
conditions (classes) and whose columns are the inferred clusters. The entropy
based measures follow Rosenberg & Hirschberg (2007), V-Measure: A conditional
entropy-based external cluster evaluation measure. NMI follows the
geometric-mean normalization used by the R package ``clue`` (Hornik, 2005).

Terms with a zero count contribute nothing to any sum; they are skipped before
the logarithm is taken.
"""

from typing import Hashable, Mapping

import numpy as np
from scipy.special import comb

from chromswitch.domain.models import ConditionMetadata, ValidationScores
from chromswitch.domain.services.contingency import ContingencyTable


def _entropy(totals: np.ndarray, n: int) -> float:
    nonzero = totals[totals > 0]
    proportions = nonzero / n
    return float(-np.sum(proportions * np.log(proportions)))


def purity(table: ContingencyTable) -> float:
    """Share of samples belonging to the majority condition of their cluster"""
    return float(table.counts.max(axis=0).sum() / table.n)


def class_entropy(table: ContingencyTable) -> float:
    """H(C), entropy of the condition labels"""
    return _entropy(table.class_totals, table.n)


def cluster_entropy(table: ContingencyTable) -> float:
    """H(K), entropy of the cluster labels"""
    return _entropy(table.cluster_totals, table.n)


def conditional_class_entropy(table: ContingencyTable) -> float:
    """H(C|K), entropy of the conditions within each cluster"""
    counts = table.counts
    cluster_totals = np.broadcast_to(table.cluster_totals[None, :], counts.shape)
    nonzero = counts > 0
    n_ck = counts[nonzero]
    n_k = cluster_totals[nonzero]
    return float(-np.sum(n_ck / table.n * np.log(n_ck / n_k)))


def conditional_cluster_entropy(table: ContingencyTable) -> float:
    """H(K|C), entropy of the clusters within each condition"""
    counts = table.counts
    class_totals = np.broadcast_to(table.class_totals[:, None], counts.shape)
    nonzero = counts > 0
    n_ck = counts[nonzero]
    n_c = class_totals[nonzero]
    return float(-np.sum(n_ck / table.n * np.log(n_ck / n_c)))


def homogeneity(table: ContingencyTable) -> float:
    """1 when every cluster holds samples of a single condition"""
    h_c = class_entropy(table)
    if h_c == 0:
        return 1.0
    return float(np.clip(1 - conditional_class_entropy(table) / h_c, 0.0, 1.0))


def completeness(table: ContingencyTable) -> float:
    """1 when all samples of a condition share one cluster"""
    h_k = cluster_entropy(table)
    if h_k == 0:
        return 1.0
    return float(np.clip(1 - conditional_cluster_entropy(table) / h_k, 0.0, 1.0))


def v_measure(table: ContingencyTable) -> float:
    """Harmonic mean of homogeneity and completeness"""
    h = homogeneity(table)
    c = completeness(table)
    if h + c == 0:
        return 0.0
    return 2 * h * c / (h + c)


def normalized_mutual_information(table: ContingencyTable) -> float:
    """
    Mutual information normalized by the geometric mean of the two entropies.

    Defined as 0 when either partition has zero entropy, for instance when all
    samples end up in a single cluster.
    """
    joint = table.counts / table.n
    m_x = joint.sum(axis=1)
    m_y = joint.sum(axis=0)
    expected = np.outer(m_x, m_y)

    informative = (joint > 0) & (expected > 0)
    mutual_information = np.sum(
        joint[informative] * np.log(joint[informative] / expected[informative])
    )

    e_x = np.sum(m_x[m_x > 0] * np.log(m_x[m_x > 0]))
    e_y = np.sum(m_y[m_y > 0] * np.log(m_y[m_y > 0]))
    if e_x == 0 or e_y == 0:
        return 0.0

    return float(np.clip(mutual_information / np.sqrt(e_x * e_y), 0.0, 1.0))


def adjusted_rand_index(table: ContingencyTable) -> float:
    """
    Hubert & Arabie adjusted Rand index from pairwise agreement counts.

    When the expected and maximum index coincide, both partitions are trivial
    in the same way and the index is 1, as in scikit-learn.
    """
    n = table.n
    sum_cells = comb(table.counts, 2).sum()
    sum_classes = comb(table.class_totals, 2).sum()
    sum_clusters = comb(table.cluster_totals, 2).sum()
    n_pairs = comb(n, 2)

    if n_pairs == 0:
        return 1.0

    expected_index = sum_classes * sum_clusters / n_pairs
    max_index = (sum_classes + sum_clusters) / 2
    if max_index == expected_index:
        return 1.0

    return float((sum_cells - expected_index) / (max_index - expected_index))


def validation_scores(table: ContingencyTable) -> ValidationScores:
    """Compute every metric of a contingency table"""
    return ValidationScores(
        purity=purity(table),
        homogeneity=homogeneity(table),
        completeness=completeness(table),
        v_measure=v_measure(table),
        nmi=normalized_mutual_information(table),
        ari=adjusted_rand_index(table),
    )


def score_clustering(
    clusters: Mapping[str, Hashable], metadata: ConditionMetadata
) -> ValidationScores:
    """Score a sample to cluster assignment against the known conditions"""
    return validation_scores(ContingencyTable.from_assignments(clusters, metadata))
