import numpy as np
import pytest

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import Interval, LocalPeaks, Region
from chromswitch.domain.services.feature_matrix import (
    FEATURE_COUNT_COLUMN,
    FeatureMatrixBuilder,
)

REGION = Region("chr1", 1000, 2000)


def _peak(start, end, **attributes):
    return Interval("chr1", start, end, attributes)


def _local_peaks(peaks):
    return LocalPeaks(REGION, tuple(peaks), peaks)


def test_summarize_statistics_and_column_order():
    lpk = _local_peaks(
        {
            "A": (
                _peak(900, 1100, signalValue=2.0),
                _peak(1050, 1250, signalValue=4.0),
                _peak(1900, 2100, signalValue=9.0),
            ),
            "B": (),
        }
    )
    features = FeatureMatrixBuilder().summarize(
        lpk, ["signalValue"], use_fraction=True, use_count=True
    )

    assert list(features.columns) == [
        "signalValue_mean",
        "signalValue_median",
        "signalValue_max",
        "fraction",
        "n_peaks",
    ]
    assert list(features.index) == ["A", "B"]
    assert features.loc["A"].tolist() == pytest.approx([5.0, 4.0, 9.0, 0.35, 3.0])
    assert features.loc["B"].tolist() == [0.0, 0.0, 0.0, 0.0, 0.0]


def test_summarize_is_attribute_major():
    lpk = _local_peaks({"A": (_peak(1100, 1200, qValue=1.0, signalValue=2.0),)})
    features = FeatureMatrixBuilder().summarize(lpk, ["qValue", "signalValue"])
    assert list(features.columns) == [
        "qValue_mean",
        "qValue_median",
        "qValue_max",
        "signalValue_mean",
        "signalValue_median",
        "signalValue_max",
    ]


def test_summarize_requires_a_column():
    with pytest.raises(ConfigError):
        FeatureMatrixBuilder().summarize(_local_peaks({"A": ()}))


def test_summarize_rejects_missing_attribute():
    lpk = _local_peaks({"A": (_peak(1100, 1200, qValue=1.0),)})
    with pytest.raises(ConfigError):
        FeatureMatrixBuilder().summarize(lpk, ["signalValue"])


def test_binarize_identical_peaks_give_one_shared_feature():
    lpk = _local_peaks({"A": (_peak(1100, 1300),), "B": (_peak(1100, 1300),)})
    features = FeatureMatrixBuilder().binarize(lpk, p=0.4)

    assert features.shape == (2, 1)
    assert features.to_numpy().tolist() == [[1.0], [1.0]]


def test_binarize_disjoint_peaks_are_separate_features():
    lpk = _local_peaks({"A": (_peak(1100, 1300),), "B": (_peak(1600, 1800),)})
    features = FeatureMatrixBuilder().binarize(lpk, p=0.4)

    assert list(features.columns) == ["chr1:1100-1300", "chr1:1600-1800"]
    assert features.to_numpy().tolist() == [[1.0, 0.0], [0.0, 1.0]]


def test_binarize_merges_nearby_peaks_when_reducing():
    lpk = _local_peaks(
        {
            "A": (_peak(1000, 1100), _peak(1150, 1250)),
            "B": (_peak(1000, 1250),),
        }
    )
    builder = FeatureMatrixBuilder()

    reduced = builder.binarize(lpk, reduce=True, gap=300, p=0.5)
    assert reduced.to_numpy().tolist() == [[1.0], [1.0]]

    unreduced = builder.binarize(lpk, reduce=False, p=0.5)
    assert unreduced.shape == (2, 3)
    assert unreduced.to_numpy().tolist() == [[1.0, 0.0, 1.0], [0.0, 1.0, 0.0]]


def test_binarize_feature_count_column():
    lpk = _local_peaks({"A": (_peak(1100, 1300),), "B": (_peak(1600, 1800),)})
    features = FeatureMatrixBuilder().binarize(lpk, include_feature_count=True)

    assert features.columns[-1] == FEATURE_COUNT_COLUMN
    assert features[FEATURE_COUNT_COLUMN].tolist() == [2.0, 2.0]


def test_binarize_without_peaks_fails():
    with pytest.raises(ConfigError):
        FeatureMatrixBuilder().binarize(_local_peaks({"A": (), "B": ()}))


def test_informative_rows_ignores_feature_count():
    lpk = _local_peaks(
        {"A": (_peak(1100, 1300),), "B": (), "C": ()}
    )
    features = FeatureMatrixBuilder().binarize(lpk, include_feature_count=True)

    assert np.all(features[FEATURE_COUNT_COLUMN] == 1.0)
    assert FeatureMatrixBuilder.informative_rows(features) == 1


def test_binarize_keeps_samples_at_the_end_of_an_overlap_chain():
    lpk = _local_peaks(
        {
            "A1": (_peak(1000, 1100),),
            "B1": (_peak(1060, 1160),),
            "A2": (_peak(1120, 1220),),
            "B2": (_peak(1120, 1220),),
        }
    )

    features = FeatureMatrixBuilder().binarize(lpk, reduce=False, p=0.4)

    assert list(features.columns) == ["chr1:1000-1100", "chr1:1120-1220"]
    assert features.loc["A2"].tolist() == [0.0, 1.0]
    assert features.loc["B2"].tolist() == [0.0, 1.0]
    assert FeatureMatrixBuilder.informative_rows(features) == 4
