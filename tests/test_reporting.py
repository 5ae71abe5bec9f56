"""
Unit tests for report generation, visualization and the CLI.
"""

import csv
import json
import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from Bio import SeqIO

from primer_specificity.cli import main, validate_window_size
from primer_specificity.cross_reactivity import CrossReactivityDetail
from primer_specificity.primer_search import Primer
from primer_specificity.reporting import (
    create_html_report,
    format_results,
    save_primers_csv,
    save_primers_fasta,
    save_primers_json
)
from primer_specificity.sequence_store import SequenceEntity
from primer_specificity.specificity import SpecificityClass
from primer_specificity.visualization import (
    SAFETY_HIGH,
    SAFETY_SNP,
    create_safety_map,
    create_tm_score_plot,
    safety_map_values
)


TARGET = SequenceEntity("target", "target allele", "AAGCGCGCGCGCGCGCATATATAA")


@pytest.fixture
def primers():
    snp_detail = CrossReactivityDetail("bg1", "background <1>", 1, [19], "GCGCGCGCGCGCGCATATAA")
    high_detail = CrossReactivityDetail("bg2", "background 2", 4, [0, 1, 2, 3], "ATATGCGCGCGCGCATATAT")
    return [
        Primer(
            identifier="target_2", sequence="GCGCGCGCGCGCGCATATAT", start=3, end=22,
            tm=59.98, gc=70.0, min_mismatches=4, mismatch_indices=[0, 1, 2, 3],
            worst_off_target_seq="ATATGCGCGCGCGCATATAT", specificity_class=SpecificityClass.HIGH,
            score=39.98, cross_reactivity=[high_detail]
        ),
        Primer(
            identifier="target_3", sequence="CGCGCGCGCGCGCATATATA", start=4, end=23,
            tm=57.93, gc=65.0, min_mismatches=1, mismatch_indices=[19],
            worst_off_target_seq="GCGCGCGCGCGCGCATATAA", specificity_class=SpecificityClass.SNP,
            score=7.93, cross_reactivity=[snp_detail, high_detail]
        ),
    ]


class TestExports:
    """Test CSV, JSON and FASTA exports."""

    def test_csv(self, tmp_path, primers):
        path = save_primers_csv(str(tmp_path / "primers.csv"), primers)
        with open(path) as f:
            rows = list(csv.DictReader(f))

        assert [r["rank"] for r in rows] == ["1", "2"]
        assert rows[0]["specificity_class"] == "High"
        assert rows[1]["mismatch_indices"] == "19"
        assert rows[0]["start"] == "3"

    def test_json(self, tmp_path, primers):
        path = save_primers_json(str(tmp_path / "primers.json"), primers, TARGET, 20)
        with open(path) as f:
            data = json.load(f)

        assert data["target_id"] == "target"
        assert data["window_size"] == 20
        assert data["primers"][1]["specificity_class"] == "SNP"
        assert data["primers"][1]["cross_reactivity"][0]["allele_id"] == "bg1"
        assert data["primers"][0]["mismatch_indices"] == [0, 1, 2, 3]

    def test_fasta(self, tmp_path, primers):
        path = save_primers_fasta(str(tmp_path / "primers.fasta"), primers)
        records = list(SeqIO.parse(path, "fasta"))

        assert [r.id for r in records] == ["target_2", "target_3"]
        assert str(records[1].seq) == "CGCGCGCGCGCGCATATATA"
        assert "class=SNP" in records[1].description


class TestTextAndHtml:
    """Test human-readable summaries."""

    def test_format_results(self, primers):
        text = format_results(TARGET, primers, 20, n_backgrounds=2, runtime=0.5)

        assert "Candidates found: 2 (1 High, 1 SNP)" in text
        assert "#1 GCGCGCGCGCGCGCATATAT [High]" in text
        assert "diff at 20" in text

    def test_format_results_empty(self):
        text = format_results(TARGET, [], 20, n_backgrounds=2, runtime=0.1)
        assert "No specific primers" in text

    def test_html_report(self, tmp_path, primers):
        path = create_html_report(str(tmp_path), TARGET, primers, 20, safety_map_file="safety_map.png")
        with open(path) as f:
            content = f.read()

        assert "Cross-Reactivity Matrix" in content
        assert "GCGCGCGCGCGCGCATATAT" in content
        assert "background &lt;1&gt;" in content, "Headers should be HTML-escaped"
        assert 'src="safety_map.png"' in content
        assert "tag-snp" in content

    def test_html_report_empty(self, tmp_path):
        path = create_html_report(str(tmp_path), TARGET, [], 20)
        with open(path) as f:
            assert "No specific primers were found" in f.read()


class TestVisualization:
    """Test the genomic safety map and plots."""

    def test_safety_map_values(self, primers):
        values = safety_map_values(primers, TARGET.length)

        assert len(values) == TARGET.length
        assert values[2] == SAFETY_HIGH
        assert values[3] == SAFETY_SNP
        assert values.sum() == SAFETY_HIGH + SAFETY_SNP

    def test_highest_level_wins(self, primers):
        high, snp = primers
        snp.start = high.start
        values = safety_map_values([snp, high], TARGET.length)
        assert values[high.start - 1] == SAFETY_HIGH

    def test_plots_are_written(self, tmp_path, primers):
        assert os.path.exists(create_safety_map(str(tmp_path), primers, TARGET.length, 20))
        assert os.path.exists(create_tm_score_plot(str(tmp_path), primers))
        assert create_tm_score_plot(str(tmp_path), []) == ""


class TestCli:
    """Test the command line entry point."""

    def test_validate_window_size(self):
        assert validate_window_size(21, False) is None
        assert validate_window_size(25, False) is not None
        assert validate_window_size(25, True) is None
        assert validate_window_size(0, True) is not None

    def test_list(self, capsys):
        assert main(["--demo", "--list"]) == 0
        assert "SUS_allele_A1" in capsys.readouterr().out

    def test_full_run(self, tmp_path):
        out = tmp_path / "run"
        assert main(["--demo", "--target", "3", "--output-dir", str(out), "--no-visualization"]) == 0

        assert (out / "results" / "primers.csv").exists()
        assert (out / "results" / "primers.json").exists()
        assert (out / "results" / "primers.fasta").exists()
        assert (out / "results" / "assay_results.txt").exists()
        assert (out / "results" / "metadata.json").exists()
        assert (out / "sequences" / "input_sequences.fasta").exists()

    def test_bad_window_size_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--demo", "--target", "1", "--window-size", "30", "--output-dir", str(tmp_path)])
        assert exc.value.code == 1

    def test_unknown_target_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--demo", "--target", "nope", "--output-dir", str(tmp_path)])
        assert exc.value.code == 1
