import pandas as pd
import pytest

from chromswitch.application.switch_detection_service import SwitchDetectionService
from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import STATUS_EMPTY, STATUS_OK, SwitchConfig
from chromswitch.infrastructure.data.data_loader import PeakDataLoader
from chromswitch.infrastructure.data.data_saver import ResultSaver
from chromswitch.main import main

PEAKS = {
    "A1": [("chr1", 1100, 1300, 50.0, 10.0), ("chr1", 5000, 5200, 5.0, 2.0)],
    "A2": [("chr1", 1110, 1290, 45.0, 9.0), ("chr1", 7000, 7100, 3.0, 1.0)],
    "B1": [("chr1", 1600, 1800, 5.0, 3.0), ("chr2", 9000, 9300, 20.0, 6.0)],
    "B2": [("chr1", 1590, 1810, 6.0, 2.5), ("chr2", 9100, 9200, 4.0, 1.5)],
}
CONDITIONS = {"A1": "A", "A2": "A", "B1": "B", "B2": "B"}


def _write_narrowpeak(path, peaks):
    lines = [
        f"{chrom}\t{start}\t{end}\tpeak{i}\t500\t.\t{signal}\t4.0\t{q}\t50"
        for i, (chrom, start, end, signal, q) in enumerate(peaks)
    ]
    path.write_text("\n".join(lines) + "\n")


@pytest.fixture
def inputs(tmp_path):
    peak_dir = tmp_path / "peaks"
    peak_dir.mkdir()
    rows = ["Sample\tCondition\tPath"]
    for sample, peaks in PEAKS.items():
        _write_narrowpeak(peak_dir / f"{sample}.narrowPeak", peaks)
        rows.append(f"{sample}\t{CONDITIONS[sample]}\tpeaks/{sample}.narrowPeak")
    metadata_file = tmp_path / "metadata.tsv"
    metadata_file.write_text("\n".join(rows) + "\n")

    regions_file = tmp_path / "regions.bed"
    regions_file.write_text("chr1\t1000\t2000\tGENE1\nchr3\t0\t500\tGENE2\n")
    return tmp_path, str(metadata_file), str(regions_file)


def test_load_metadata_resolves_peak_paths(inputs):
    tmp_path, metadata_file, _ = inputs

    metadata, paths = PeakDataLoader().load_metadata(metadata_file)

    assert metadata.samples == ["A1", "A2", "B1", "B2"]
    assert metadata.condition_labels == ("A", "B")
    assert paths["B2"] == str(tmp_path / "peaks" / "B2.narrowPeak")


def test_load_metadata_requires_sample_and_condition(tmp_path):
    metadata_file = tmp_path / "metadata.tsv"
    metadata_file.write_text("Sample\tGroup\nA1\tA\nB1\tB\n")

    with pytest.raises(ConfigError):
        PeakDataLoader().load_metadata(str(metadata_file))


def test_load_peaks_reads_narrowpeak_attributes(inputs):
    tmp_path, _, _ = inputs

    peaks = PeakDataLoader().load_peaks(str(tmp_path / "peaks" / "A1.narrowPeak"))

    assert len(peaks) == 2
    first = peaks[0]
    assert (first.chrom, first.start, first.end) == ("chr1", 1100, 1300)
    assert first.attributes["signalValue"] == 50.0
    assert first.attributes["qValue"] == 10.0
    assert first.attributes["pValue"] == 4.0
    assert "name" not in first.attributes
    assert "strand" not in first.attributes


def test_load_peaks_from_plain_bed(tmp_path):
    bed = tmp_path / "peaks.bed"
    bed.write_text("# comment\nchr1\t10\t20\nchr1\t30\t40\n")

    peaks = PeakDataLoader().load_peaks(str(bed))

    assert [(p.start, p.end) for p in peaks] == [(10, 20), (30, 40)]
    assert all(p.attributes == {} for p in peaks)


def test_load_empty_peak_file(tmp_path):
    empty = tmp_path / "empty.bed"
    empty.write_text("")

    assert PeakDataLoader().load_peaks(str(empty)) == ()


def test_load_regions_without_header(inputs):
    _, _, regions_file = inputs

    regions = PeakDataLoader().load_regions(regions_file)

    assert [(r.chrom, r.start, r.end) for r in regions] == [
        ("chr1", 1000, 2000),
        ("chr3", 0, 500),
    ]
    assert regions[0].metadata == {"name": "GENE1"}


def test_load_regions_with_header(tmp_path):
    regions_file = tmp_path / "regions.tsv"
    regions_file.write_text("chr\tstart\tend\tgene\tscore\nchr1\t1000\t2000\tGENE1\t7\n")

    regions = PeakDataLoader().load_regions(str(regions_file))

    assert len(regions) == 1
    assert (regions[0].start, regions[0].end) == (1000, 2000)
    assert regions[0].metadata["gene"] == "GENE1"
    assert list(regions[0].metadata) == ["gene", "score"]


def test_missing_peak_file_for_sample(inputs):
    _, metadata_file, _ = inputs
    loader = PeakDataLoader()
    metadata, paths = loader.load_metadata(metadata_file)
    del paths["A2"]

    with pytest.raises(ConfigError):
        loader.load_sample_set(metadata, paths)


def test_pipeline_from_files_to_table(inputs):
    tmp_path, metadata_file, regions_file = inputs
    regions, sample_set, metadata = PeakDataLoader().load_all(metadata_file, regions_file)
    config = SwitchConfig(
        normalize=False, stat_attributes=["signalValue"], use_fraction=True
    )

    results = SwitchDetectionService(config).process(regions, sample_set, metadata)
    output = tmp_path / "out" / "results.tsv"
    saved = ResultSaver().save_results(results, str(output), report_metrics=True)

    assert [result.status for result in results] == [STATUS_OK, STATUS_EMPTY]
    assert saved.shape[0] == 2

    text = output.read_text()
    assert "NA" in text.splitlines()[2]

    table = pd.read_csv(output, sep="\t")
    assert list(table.columns[:4]) == ["chr", "start", "end", "name"]
    assert table.loc[0, "Consensus"] == pytest.approx(1.0)
    assert table.loc[0, "ARI"] == pytest.approx(1.0)
    assert pd.isna(table.loc[1, "Consensus"])
    assert table.loc[0, "A1"] == table.loc[0, "A2"]
    assert table.loc[0, "A1"] != table.loc[0, "B1"]


def test_command_line_entry_point(inputs):
    tmp_path, metadata_file, regions_file = inputs
    output = tmp_path / "cli.tsv"

    exit_code = main(
        [
            "-r", regions_file,
            "-m", metadata_file,
            "-o", str(output),
            "--no_normalize",
            "--stat_attributes", "signalValue,qValue",
            "--use_count",
        ]
    )

    assert exit_code == 0
    table = pd.read_csv(output, sep="\t")
    assert list(table["status"]) == [STATUS_OK, STATUS_EMPTY]


def test_command_line_rejects_bad_configuration(inputs, tmp_path):
    _, metadata_file, regions_file = inputs

    exit_code = main(
        ["-r", regions_file, "-m", metadata_file, "-o", str(tmp_path / "x.tsv")]
    )

    assert exit_code == 1
    assert not (tmp_path / "x.tsv").exists()


def test_empty_path_cell_means_no_peak_file(inputs):
    tmp_path, metadata_file, regions_file = inputs
    metadata_path = tmp_path / "metadata.tsv"
    lines = metadata_path.read_text().splitlines()
    lines[2] = "A2\tA\t"
    metadata_path.write_text("\n".join(lines) + "\n")

    loader = PeakDataLoader()
    _, paths = loader.load_metadata(metadata_file)

    assert "A2" not in paths
    with pytest.raises(ConfigError):
        loader.load_all(metadata_file, regions_file)
