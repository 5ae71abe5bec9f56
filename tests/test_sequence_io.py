"""
Unit tests for sequence loading and the sequence store.
"""

import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from primer_specificity.sequence_io import (
    DEMO_FASTA,
    load_demo_store,
    load_local_fasta,
    load_sequence_store,
    parse_fasta,
    sanitize_sequence
)
from primer_specificity.sequence_store import (
    NUCLEOTIDE_ALPHABET,
    SequenceEntity,
    SequenceStore,
    generate_sequence_id
)


# ==================== PARSING ====================

class TestSanitizeSequence:
    """Test raw sequence cleanup."""

    def test_uppercases(self):
        assert sanitize_sequence("acgt") == "ACGT"

    def test_strips_invalid_characters(self):
        assert sanitize_sequence("acg tux-") == "ACGT-"
        assert sanitize_sequence("NNACGTNN") == "ACGT"

    def test_keeps_gaps(self):
        assert sanitize_sequence("AC--GT") == "AC--GT"


class TestParseFasta:
    """Test FASTA text parsing."""

    def test_headers_and_sequences(self):
        entities = parse_fasta(">s1 first allele\nacgtNNac\nGG\n>s2\nAC-GT\n")

        assert len(entities) == 2
        assert entities[0].header == "s1 first allele"
        assert entities[0].sequence == "ACGTACGG"
        assert entities[0].length == 8
        assert entities[1].header == "s2"
        assert entities[1].sequence == "AC-GT"

    def test_empty_records_are_dropped(self):
        entities = parse_fasta(">empty\n>s3\nAAA\n>junk\nNNNN\n")
        assert [e.header for e in entities] == ["s3"]

    def test_identifiers_are_unique(self):
        entities = parse_fasta(">a\nACGT\n>a\nACGT\n")
        assert len({e.identifier for e in entities}) == 2

    def test_demo_panel(self):
        entities = parse_fasta(DEMO_FASTA)
        assert len(entities) == 4
        for entity in entities:
            assert set(entity.sequence) <= NUCLEOTIDE_ALPHABET

    def test_load_local_fasta(self, tmp_path):
        fasta = tmp_path / "alleles.fasta"
        fasta.write_text(">a1 allele one\nACGTACGT\n>a2 allele two\nACGTTCGT\n")

        records = load_local_fasta(str(fasta))
        assert [r.id for r in records] == ["a1", "a2"]

        store = load_sequence_store(str(fasta))
        assert len(store) == 2
        assert [e.header for e in store] == ["a1 allele one", "a2 allele two"]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_local_fasta(str(tmp_path / "missing.fasta"))


# ==================== STORE ====================

class TestSequenceStore:
    """Test lookup behaviour of the sequence store."""

    @pytest.fixture
    def store(self):
        return SequenceStore([
            SequenceEntity("id1", "ALLELE_A first", "ACGT"),
            SequenceEntity("id2", "ALLELE_B second", "ACGA"),
            SequenceEntity("id3", "ALLELE_C third", "TCGA"),
        ])

    def test_get(self, store):
        assert store.get("id2").header == "ALLELE_B second"

    def test_get_unknown_raises(self, store):
        with pytest.raises(KeyError):
            store.get("nope")

    def test_duplicate_identifiers_rejected(self):
        with pytest.raises(ValueError):
            SequenceStore([SequenceEntity("x", "a", "A"), SequenceEntity("x", "b", "C")])

    def test_backgrounds_keep_order(self, store):
        assert [e.identifier for e in store.backgrounds_for("id2")] == ["id1", "id3"]

    def test_find_by_identifier_header_and_position(self, store):
        assert store.find("id3").identifier == "id3"
        assert store.find("ALLELE_B").identifier == "id2"
        assert store.find("1").identifier == "id1"
        assert store.find("4") is None
        assert store.find("unknown") is None

    def test_container_protocol(self, store):
        assert len(store) == 3
        assert "id1" in store
        assert [e.identifier for e in store] == ["id1", "id2", "id3"]

    def test_entities_are_immutable(self, store):
        with pytest.raises(AttributeError):
            store.get("id1").sequence = "TTTT"

    def test_generated_identifiers_are_monotonic(self):
        first = generate_sequence_id()
        second = generate_sequence_id()
        assert first != second
        assert int(second[3:]) > int(first[3:])

    def test_demo_store(self):
        store = load_demo_store()
        assert len(store) == 4
