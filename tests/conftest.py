import os
import sys

import pytest

# Ensure the project root is on sys.path so tests can import ``chromswitch``
# without installing the package.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from chromswitch.domain.models import ConditionMetadata, Interval, Region  # noqa: E402


def peak(start, end, chrom="chr1", **attributes):
    return Interval(chrom, start, end, attributes)


@pytest.fixture
def metadata():
    return ConditionMetadata(["A1", "A2", "B1", "B2"], ["A", "A", "B", "B"])


@pytest.fixture
def region():
    return Region("chr1", 1000, 2000, {"gene": "GENE1"})


@pytest.fixture
def switch_sample_set():
    """Condition A carries a strong peak at 1100-1300, condition B a weak one at 1600-1800"""
    return {
        "A1": (
            peak(1100, 1300, signalValue=50.0, qValue=10.0),
            peak(5000, 5200, signalValue=5.0, qValue=2.0),
        ),
        "A2": (
            peak(1110, 1290, signalValue=45.0, qValue=9.0),
            peak(7000, 7100, signalValue=3.0, qValue=1.0),
        ),
        "B1": (
            peak(1600, 1800, signalValue=5.0, qValue=3.0),
            peak(9000, 9300, signalValue=20.0, qValue=6.0),
        ),
        "B2": (
            peak(1590, 1810, signalValue=6.0, qValue=2.5),
            peak(9100, 9200, signalValue=4.0, qValue=1.5),
        ),
    }
