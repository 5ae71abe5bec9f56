# primer_specificity/window_scanner.py

import logging
from typing import Iterator, NamedTuple

from .sequence_store import GAP_CHAR

logger = logging.getLogger(__name__)


class CandidateWindow(NamedTuple):
    """A gap-free target substring considered as a primer candidate."""
    sequence_id: str
    offset: int  # 0-based start in the target
    sequence: str


def iter_candidate_windows(sequence: str, window_size: int, sequence_id: str = "") -> Iterator[CandidateWindow]:
    """
    Yield every fixed-length window of a sequence, in ascending offset order.

    Windows containing a gap character are skipped. A window size larger
    than the sequence yields nothing.

    Args:
        sequence (str): Target nucleotide sequence
        window_size (int): Length of each window
        sequence_id (str): Identifier of the target, copied onto each window

    Yields:
        CandidateWindow: (sequence_id, offset, substring)
    """
    for offset in range(len(sequence) - window_size + 1):
        window = sequence[offset:offset + window_size]
        if GAP_CHAR in window:
            continue
        yield CandidateWindow(sequence_id, offset, window)
