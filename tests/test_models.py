import pickle

import pandas as pd
import pytest

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import (
    ConditionMetadata,
    Interval,
    LocalPeaks,
    Region,
    SwitchConfig,
)


def test_interval_requires_positive_length():
    with pytest.raises(ConfigError):
        Interval("chr1", 10, 10)
    with pytest.raises(ConfigError):
        Interval("chr1", 20, 10)


def test_interval_copies_its_attributes():
    attributes = {"signalValue": 1.0}
    interval = Interval("chr1", 10, 20, attributes)
    attributes["signalValue"] = 2.0

    assert interval.attributes == {"signalValue": 1.0}
    assert interval.length == 10


def test_region_name_and_interval():
    region = Region("chr2", 100, 250, {"gene": "X"})

    assert region.name == "chr2:100-250"
    assert region.length == 150
    assert region.as_interval() == Interval("chr2", 100, 250)


def test_models_survive_pickling(region):
    local_peaks = LocalPeaks(
        region, ("A1",), {"A1": (Interval("chr1", 1100, 1200, {"q": 1.0}),)}
    )

    restored = pickle.loads(pickle.dumps(local_peaks))

    assert restored == local_peaks
    assert restored.n_peaks() == {"A1": 1}


def test_condition_metadata_lookup(metadata):
    assert metadata.samples == ["A1", "A2", "B1", "B2"]
    assert metadata.condition_labels == ("A", "B")
    assert metadata.condition_of("B1") == "B"
    assert "A2" in metadata
    assert "C1" not in metadata
    assert len(metadata) == 4
    with pytest.raises(ConfigError):
        metadata.condition_of("C1")


def test_condition_metadata_validation():
    with pytest.raises(ConfigError):
        ConditionMetadata(["A1", "B1"], ["A"])
    with pytest.raises(ConfigError):
        ConditionMetadata(["A1", "A1"], ["A", "B"])


def test_condition_metadata_from_dataframe():
    df = pd.DataFrame(
        {"Sample": ["S2", "S1", "S3"], "Condition": ["treated", "control", "treated"]}
    )

    metadata = ConditionMetadata.from_dataframe(df)

    assert metadata.samples == ["S2", "S1", "S3"]
    assert metadata.condition_labels == ("control", "treated")
    assert [metadata.condition_of(s) for s in metadata.samples] == [
        "treated",
        "control",
        "treated",
    ]


def test_default_config_needs_summary_columns():
    with pytest.raises(ConfigError):
        SwitchConfig().validate()
    SwitchConfig(use_fraction=True).validate()
    SwitchConfig(strategy="binary").validate()


@pytest.mark.parametrize(
    "options",
    [
        dict(strategy="kmeans"),
        dict(strategy="binary", p=0.0),
        dict(strategy="binary", p=1.5),
        dict(strategy="binary", gap=-1),
        dict(use_count=True, tail_fraction=1.5),
        dict(use_count=True, filter=True),
        dict(
            use_count=True,
            filter=True,
            filter_attributes=["qValue", "signalValue"],
            filter_thresholds=[1.0],
        ),
        dict(use_count=True, n_jobs=0),
    ],
)
def test_invalid_configurations(options):
    with pytest.raises(ConfigError):
        SwitchConfig(**options).validate()


def test_referenced_attributes():
    config = SwitchConfig(
        filter=True,
        filter_attributes=["qValue"],
        filter_thresholds=[2.0],
        normalize_attributes=["signalValue", "qValue"],
        stat_attributes=["signalValue"],
    )

    assert config.referenced_attributes() == ["qValue", "signalValue"]

    binary = SwitchConfig(strategy="binary", stat_attributes=["pValue"], normalize=False)
    assert binary.referenced_attributes() == []
