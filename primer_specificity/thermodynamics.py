# primer_specificity/thermodynamics.py

import logging
from typing import Any, Dict

from Bio.SeqUtils import MeltingTemp as mt

from .sequence_store import GAP_CHAR
from .specificity import SpecificityClass

logger = logging.getLogger(__name__)

# Acceptance window and optimum for primer melting temperature
TM_MIN = 55.0
TM_MAX = 68.0
TM_TARGET = 60.0
# Weight of one extra mismatch against one degree of Tm deviation
MISMATCH_WEIGHT = 10


def _gc_count(sequence: str) -> int:
    return sequence.count('G') + sequence.count('C')


def calculate_tm(sequence: str) -> float:
    """
    Estimate melting temperature with the basic GC formula.

    Tm = 64.9 + 41 * (nG + nC - 16.4) / N, gaps removed first.
    """
    clean = sequence.upper().replace(GAP_CHAR, '')
    length = len(clean)
    if length == 0:
        return 0
    return 64.9 + (41 * (_gc_count(clean) - 16.4)) / length


def calculate_gc_content(sequence: str) -> float:
    """Calculate GC content of a sequence as a percentage."""
    clean = sequence.upper().replace(GAP_CHAR, '')
    if len(clean) == 0:
        return 0
    return (_gc_count(clean) / len(clean)) * 100


def calculate_score(min_mismatches: int, tm: float) -> float:
    """Composite ranking score: reward mismatch margin, penalise Tm deviation from 60 °C."""
    return (min_mismatches * MISMATCH_WEIGHT) - abs(tm - TM_TARGET)


def passes_acceptance_filter(tm: float, specificity_class: SpecificityClass) -> bool:
    """Keep a candidate only if its Tm is in range and it is specific enough."""
    return TM_MIN <= tm <= TM_MAX and specificity_class != SpecificityClass.NONE


def has_repeats(sequence: str, max_repeat: int = 4) -> bool:
    """Check for nucleotide repeats in a sequence."""
    for base in "ATGC":
        if base * max_repeat in sequence.upper():
            return True
    return False


def check_3prime_stability(sequence: str, window: int = 5) -> float:
    """
    Fraction of G/C in the 3' terminal bases.
    Higher values mean a more stable (stickier) 3' end.
    """
    if len(sequence) < window:
        return 0
    return _gc_count(sequence[-window:].upper()) / window


def calculate_oligo_properties(sequence: str) -> Dict[str, Any]:
    """
    Calculate descriptive properties of a primer for reports.

    Only 'tm' and 'gc_content' follow the filtering formula; 'tm_nn' is a
    nearest-neighbour estimate from Biopython for comparison and is never
    used for filtering or ranking.

    Args:
        sequence (str): Gap-free primer sequence

    Returns:
        Dict[str, Any]: Dictionary of properties
    """
    try:
        tm_nn = round(mt.Tm_NN(sequence), 2)
    except ValueError as e:
        logger.warning(f"Nearest-neighbour Tm unavailable for {sequence}: {e}")
        tm_nn = None

    return {
        "length": len(sequence),
        "gc_content": round(calculate_gc_content(sequence), 2),
        "tm": round(calculate_tm(sequence), 2),
        "tm_nn": tm_nn,
        "end_stability": check_3prime_stability(sequence),
        "has_repeats": has_repeats(sequence)
    }
