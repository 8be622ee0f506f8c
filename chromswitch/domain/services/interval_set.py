"""
Minimal half-open genomic interval operations used by the peak services.
"""

from typing import Iterable, List, Sequence

import numpy as np

from chromswitch.domain.models import Interval


def _sort_key(interval: Interval):
    return interval.chrom, interval.start, interval.end


def overlaps(a: Interval, b: Interval) -> bool:
    """True if the intervals share at least one base.

    Touching intervals such as [0, 10) and [10, 20) do not overlap.
    """
    return a.chrom == b.chrom and a.start < b.end and b.start < a.end


def overlap_length(a: Interval, b: Interval) -> int:
    if not overlaps(a, b):
        return 0
    return min(a.end, b.end) - max(a.start, b.start)


def reciprocal_overlap_fraction(a: Interval, b: Interval) -> float:
    """Overlap length divided by the length of the longer interval"""
    shared = overlap_length(a, b)
    if shared == 0:
        return 0.0
    return shared / max(a.length, b.length)


def clip(interval: Interval, bounds: Interval) -> Interval:
    """Restrict an overlapping interval to ``bounds``, keeping its attributes"""
    return Interval(
        interval.chrom,
        max(interval.start, bounds.start),
        min(interval.end, bounds.end),
        interval.attributes,
    )


def merge(collection: Iterable[Interval], gap: int = 0) -> List[Interval]:
    """
    Merge intervals lying closer than ``gap`` to each other.

    Intervals are sorted by position, and consecutive intervals are merged when
    ``next.start - current.end < gap``. With ``gap=0`` only intervals that
    actually overlap are merged.

    Merged intervals carry no attributes: there is no single signal or
    significance value for a union of peaks. Intervals left alone keep theirs.

    Args:
        collection: Intervals to merge, in any order
        gap: Distance below which neighbouring intervals are merged

    Returns:
        List[Interval]: Sorted, merged intervals
    """
    merged = []
    current = None

    for interval in sorted(collection, key=_sort_key):
        if (
            current is not None
            and interval.chrom == current.chrom
            and interval.start - current.end < gap
        ):
            current = Interval(
                current.chrom, current.start, max(current.end, interval.end)
            )
            continue

        if current is not None:
            merged.append(current)
        current = interval

    if current is not None:
        merged.append(current)

    return merged


def covered_length(collection: Iterable[Interval]) -> int:
    """Number of bases covered by the union of the intervals"""
    return sum(interval.length for interval in merge(collection, gap=0))


def reciprocal_overlap_matrix(intervals: Sequence[Interval]) -> np.ndarray:
    """Pairwise reciprocal overlap fractions as a square array"""
    if not intervals:
        return np.zeros((0, 0))

    chroms = np.array([iv.chrom for iv in intervals])
    starts = np.array([iv.start for iv in intervals], dtype=np.int64)
    ends = np.array([iv.end for iv in intervals], dtype=np.int64)
    lengths = ends - starts

    shared = np.minimum(ends[:, None], ends[None, :]) - np.maximum(
        starts[:, None], starts[None, :]
    )
    shared = np.where(chroms[:, None] == chroms[None, :], shared, 0)
    shared = np.clip(shared, 0, None)

    longest = np.maximum(lengths[:, None], lengths[None, :])
    return shared / longest


def union_unique(
    collections: Iterable[Iterable[Interval]], p: float
) -> List[Interval]:
    """
    Collapse the peaks of all samples into a set of unique representatives.

    All intervals are pooled and visited in genomic order. A peak becomes a new
    representative unless its reciprocal overlap with one already kept is at
    least ``p``. Every pooled peak is therefore either a representative or
    matches one at ``p``, and no two representatives reach ``p`` with each other.

    Args:
        collections: One interval collection per sample
        p: Reciprocal overlap needed to call two peaks the same

    Returns:
        List[Interval]: Representatives sorted by position
    """
    pool = sorted(
        (interval for collection in collections for interval in collection),
        key=_sort_key,
    )
    if not pool:
        return []

    fractions = reciprocal_overlap_matrix(pool)
    kept: List[int] = []
    for i in range(len(pool)):
        if not np.any(fractions[i, kept] >= p):
            kept.append(i)

    return [pool[i] for i in kept]
