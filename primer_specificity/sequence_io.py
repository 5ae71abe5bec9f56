# primer_specificity/sequence_io.py

import io
import logging
import re
from typing import Iterable, List

from Bio import SeqIO
from Bio.SeqRecord import SeqRecord

from .sequence_store import SequenceEntity, SequenceStore

logger = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r'[^ATGC-]')

# Small allele panel of a sucrose synthase fragment, for trying the tool
DEMO_FASTA = """>SUS_allele_A1 reference haplotype
ATGGCTGCCAAGCTGACTCGTCTCCACAGCCTTCGTGAGCGTCTCGGTGCCACCTTCTCTTCCCATCCCAATGAGCTCATTGCACTCTTCTCCAGGTATGTTCACCAGGGCAAGGGAATGCTGC
>SUS_allele_A2 SNP variant
ATGGCTGCCAAGCTGACTCGTCTCCACAGCCTTCGTGAGCGTCTCGGTGCCACCTTCTCTTCCCATCCGAATGAGCTCATTGCACTCTTCTCCAGGTATGTTCACCAGGGCAAGGGAATGCTGC
>SUS_allele_B1 divergent haplotype
ATGGCAGCTAAGCTTACCCGTCTGCACAGCCTACGCGAGCGTCTTGGAGCAACCTTCTCCTCACATCCCAATGAGCTTATCGCTCTGTTCTCAAGGTACGTGCACCAGGGAAAGGGCATGCTCC
>SUS_allele_B2 indel-bearing haplotype
ATGGCAGCTAAGCTTACCCGTCTGCACAGCCTACGCGAGCGTCTTGGAGCAACCTTCTCCTCACATCC---ATGAGCTTATCGCTCTGTTCTCAAGGTACGTGCACCAGGGAAAGGGCATGCTCC
"""


def sanitize_sequence(raw: str) -> str:
    """Uppercase a raw sequence and strip everything outside {A,T,G,C,-}."""
    return _INVALID_CHARS.sub('', raw.upper())


def records_to_entities(records: Iterable[SeqRecord]) -> List[SequenceEntity]:
    """
    Convert Biopython records into sequence entities.

    The header is the full description line. Records with an empty header,
    or with no sequence left after sanitisation, are dropped.
    """
    entities = []
    for record in records:
        header = (record.description or record.id or '').strip()
        sequence = sanitize_sequence(str(record.seq))

        if not header or not sequence:
            logger.warning(f"Skipping record '{header}' with no usable header or sequence")
            continue

        entities.append(SequenceEntity.create(header=header, sequence=sequence))

    return entities


def parse_fasta(content: str) -> List[SequenceEntity]:
    """
    Parse FASTA text into sequence entities.

    Args:
        content (str): FASTA formatted text

    Returns:
        List[SequenceEntity]: Sanitised sequences in file order
    """
    records = SeqIO.parse(io.StringIO(content), "fasta")
    return records_to_entities(records)


def load_local_fasta(fasta_path: str) -> List[SeqRecord]:
    """
    Load sequences from a local FASTA file using Biopython.

    Args:
        fasta_path (str): Path to the local FASTA file.

    Returns:
        List[SeqRecord]: A list of sequences parsed from the FASTA file.
    """
    logger.info(f"Loading local FASTA file from {fasta_path}")
    try:
        seq_records = list(SeqIO.parse(fasta_path, "fasta"))
        logger.info(f"Loaded {len(seq_records)} sequences from {fasta_path}")
        return seq_records
    except Exception as e:
        logger.error(f"Error loading local FASTA file {fasta_path}: {str(e)}")
        raise


def load_sequence_store(fasta_path: str) -> SequenceStore:
    """Load a FASTA file straight into a sequence store."""
    return SequenceStore(records_to_entities(load_local_fasta(fasta_path)))


def load_demo_store() -> SequenceStore:
    """Build a sequence store from the bundled demo allele panel."""
    return SequenceStore(parse_fasta(DEMO_FASTA))
