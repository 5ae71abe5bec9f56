# primer_specificity/specificity.py

import logging
from enum import Enum
from typing import Sequence

logger = logging.getLogger(__name__)

# Three or more substitutions are treated as sufficient discrimination
HIGH_SPECIFICITY_MISMATCHES = 3
# Length of the 3' terminal region where a mismatch blocks extension
THREE_PRIME_REGION = 5


class SpecificityClass(str, Enum):
    HIGH = 'High'
    SNP = 'SNP'
    NONE = 'None'


def has_three_prime_mismatch(mismatch_indices: Sequence[int], window_size: int) -> bool:
    """True if any mismatch falls within the last THREE_PRIME_REGION bases."""
    return any(idx >= window_size - THREE_PRIME_REGION for idx in mismatch_indices)


def classify_specificity(
    min_mismatches: int,
    mismatch_indices: Sequence[int],
    window_size: int,
    has_cross_reactivity: bool = True
) -> SpecificityClass:
    """
    Label a candidate from its worst-case cross-reactivity.

    Args:
        min_mismatches (int): Smallest mismatch count over all backgrounds
        mismatch_indices (Sequence[int]): Mismatch positions of that worst match
        window_size (int): Candidate length
        has_cross_reactivity (bool): False when no background could be compared

    Returns:
        SpecificityClass: HIGH, SNP or NONE
    """
    if not has_cross_reactivity:
        return SpecificityClass.HIGH

    if min_mismatches >= HIGH_SPECIFICITY_MISMATCHES:
        return SpecificityClass.HIGH

    if min_mismatches >= 1 and has_three_prime_mismatch(mismatch_indices, window_size):
        return SpecificityClass.SNP

    # 5' mismatches only, or an exact match that slipped through
    return SpecificityClass.NONE
