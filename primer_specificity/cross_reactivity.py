# primer_specificity/cross_reactivity.py

"""
Cross-reactivity evaluation of a primer candidate against background alleles.

Each background sequence is scanned exhaustively with an ungapped sliding
window to find the position where the candidate would bind best (lowest
Hamming distance). A perfect match anywhere in any background disqualifies
the candidate, and scanning stops at that point.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from .sequence_store import SequenceEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrossReactivityDetail:
    """
    Best binding site of a candidate within one background allele.

    Attributes:
        allele_id: Identifier of the background sequence
        allele_header: Display header of the background sequence
        mismatches: Hamming distance between candidate and matched site
        mismatch_indices: Ascending 0-based positions, relative to the window
        sequence: The matched background substring
    """
    allele_id: str
    allele_header: str
    mismatches: int
    mismatch_indices: List[int]
    sequence: str

    def to_dict(self) -> dict:
        return {
            "allele_id": self.allele_id,
            "allele_header": self.allele_header,
            "mismatches": self.mismatches,
            "mismatch_indices": list(self.mismatch_indices),
            "sequence": self.sequence
        }


@dataclass(frozen=True)
class ExactMatch:
    """A perfect match of the candidate inside a background allele."""
    allele_id: str
    allele_header: str
    offset: int


CrossReactivityResult = Union[ExactMatch, List[CrossReactivityDetail]]


def mismatch_positions(seq1: str, seq2: str) -> List[int]:
    """Return the indices where two sequences differ, over their common length."""
    return [i for i, (a, b) in enumerate(zip(seq1, seq2)) if a != b]


def find_best_match(candidate: str, background: str, prune: bool = True) -> Tuple[int, int]:
    """
    Find the lowest Hamming distance site of a candidate in a background.

    The first (lowest) offset wins when several sites share the minimum.
    Scanning stops as soon as an exact match is found.

    Args:
        candidate (str): Candidate window
        background (str): Background sequence, at least as long as the candidate
        prune (bool): Stop counting a site once it is already worse than the best

    Returns:
        Tuple[int, int]: (best distance, offset of the best site)
    """
    window_size = len(candidate)
    best_distance = window_size + 1
    best_offset = -1

    for offset in range(len(background) - window_size + 1):
        mismatches = 0
        for k in range(window_size):
            if candidate[k] != background[offset + k]:
                mismatches += 1
                if prune and mismatches > best_distance:
                    break

        if mismatches < best_distance:
            best_distance = mismatches
            best_offset = offset
            if best_distance == 0:
                break

    return best_distance, best_offset


def evaluate_cross_reactivity(
    candidate: str,
    backgrounds: Sequence[SequenceEntity],
    prune: bool = True
) -> CrossReactivityResult:
    """
    Evaluate a candidate window against every background allele.

    Backgrounds shorter than the candidate are skipped and contribute no
    entry. The first exact match found ends the evaluation.

    Args:
        candidate (str): Candidate window
        backgrounds (Sequence[SequenceEntity]): Background alleles, in load order
        prune (bool): Enable early termination of mismatch counting

    Returns:
        CrossReactivityResult: An ExactMatch if the candidate is disqualified,
            otherwise one CrossReactivityDetail per eligible background
    """
    window_size = len(candidate)
    details = []

    for background in backgrounds:
        if background.length < window_size:
            continue

        distance, offset = find_best_match(candidate, background.sequence, prune=prune)

        if distance == 0:
            logger.debug(f"Candidate {candidate} matches {background.identifier} exactly at {offset}")
            return ExactMatch(
                allele_id=background.identifier,
                allele_header=background.header,
                offset=offset
            )

        matched = background.sequence[offset:offset + window_size]
        details.append(CrossReactivityDetail(
            allele_id=background.identifier,
            allele_header=background.header,
            mismatches=distance,
            mismatch_indices=mismatch_positions(candidate, matched),
            sequence=matched
        ))

    return details
