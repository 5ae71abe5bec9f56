# primer_specificity/primer_search.py

"""
Specificity search engine.

Finds primer candidates in a target sequence that do not occur verbatim in
any background allele, labels how well they discriminate, scores them and
returns them ranked. Each call is a pure function of the sequence store,
the target identifier and the window size.

Pipeline:
    scan windows -> evaluate cross-reactivity -> classify -> score/filter -> rank
"""

import logging
import multiprocessing as mp
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .cross_reactivity import CrossReactivityDetail, ExactMatch, evaluate_cross_reactivity
from .ranking import rank_primers, sort_cross_reactivity
from .sequence_store import SequenceEntity, SequenceStore
from .specificity import SpecificityClass, classify_specificity
from .thermodynamics import (
    calculate_gc_content,
    calculate_score,
    calculate_tm,
    passes_acceptance_filter
)
from .window_scanner import CandidateWindow, iter_candidate_windows

logger = logging.getLogger(__name__)

# Placeholder base for the off-target sequence when nothing was compared
NO_OFF_TARGET_BASE = 'N'


@dataclass
class Primer:
    """
    A ranked primer candidate.

    Attributes:
        identifier: "<target id>_<0-based offset>"
        sequence: Primer sequence, exactly window_size bases
        start: 1-based inclusive start in the target
        end: 1-based inclusive end in the target
        tm: Melting temperature (°C)
        gc: GC content (%)
        min_mismatches: Worst-case (lowest) mismatch count over all backgrounds
        mismatch_indices: Mismatch positions of the worst-case match
        worst_off_target_seq: Background substring of the worst-case match
        specificity_class: High or SNP
        score: Composite ranking score
        cross_reactivity: One entry per compared background, worst first
    """
    identifier: str
    sequence: str
    start: int
    end: int
    tm: float
    gc: float
    min_mismatches: int
    mismatch_indices: List[int]
    worst_off_target_seq: str
    specificity_class: SpecificityClass
    score: float
    cross_reactivity: List[CrossReactivityDetail] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return self.start - 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "sequence": self.sequence,
            "start": self.start,
            "end": self.end,
            "tm": self.tm,
            "gc": self.gc,
            "min_mismatches": self.min_mismatches,
            "mismatch_indices": list(self.mismatch_indices),
            "worst_off_target_seq": self.worst_off_target_seq,
            "specificity_class": self.specificity_class.value,
            "score": self.score,
            "cross_reactivity": [detail.to_dict() for detail in self.cross_reactivity]
        }


def evaluate_windows(
    windows: Sequence[CandidateWindow],
    backgrounds: Sequence[SequenceEntity],
    prune: bool = True
) -> List[Tuple[CandidateWindow, List[CrossReactivityDetail]]]:
    """
    Evaluate windows against the backgrounds, dropping exact-match candidates.

    Returns:
        List of (window, cross-reactivity details) in input order
    """
    survivors = []
    for window in windows:
        result = evaluate_cross_reactivity(window.sequence, backgrounds, prune=prune)
        if isinstance(result, ExactMatch):
            continue
        survivors.append((window, result))
    return survivors


def _evaluate_window_chunk(chunk_data: Tuple) -> List[Tuple[CandidateWindow, List[CrossReactivityDetail]]]:
    """Worker entry point for parallel evaluation."""
    windows, backgrounds, prune = chunk_data
    return evaluate_windows(windows, backgrounds, prune=prune)


def evaluate_windows_parallel(
    windows: Sequence[CandidateWindow],
    backgrounds: Sequence[SequenceEntity],
    prune: bool = True,
    n_processes: Optional[int] = None
) -> List[Tuple[CandidateWindow, List[CrossReactivityDetail]]]:
    """
    Evaluate windows across a process pool.

    Windows are split into contiguous chunks and each chunk is evaluated
    against every background, so results match the serial run exactly.
    """
    if n_processes is None:
        n_processes = mp.cpu_count()

    chunk_size = max(1, -(-len(windows) // n_processes))
    chunks = []
    for i in range(0, len(windows), chunk_size):
        chunks.append((list(windows[i:i + chunk_size]), list(backgrounds), prune))

    if not chunks:
        return []

    with mp.Pool(processes=min(n_processes, len(chunks))) as pool:
        chunk_results = pool.map(_evaluate_window_chunk, chunks)

    survivors = []
    for chunk_result in chunk_results:
        survivors.extend(chunk_result)
    return survivors


def build_primer(
    window: CandidateWindow,
    cross_reactivity: List[CrossReactivityDetail],
    window_size: int
) -> Primer:
    """
    Classify and score a surviving candidate.

    The returned primer may carry SpecificityClass.NONE or an out-of-range
    Tm; filter_primers removes those.
    """
    ordered = sort_cross_reactivity(cross_reactivity)

    if ordered:
        worst = ordered[0]
        min_mismatches = worst.mismatches
        mismatch_indices = list(worst.mismatch_indices)
        worst_seq = worst.sequence
    else:
        min_mismatches = window_size
        mismatch_indices = []
        worst_seq = NO_OFF_TARGET_BASE * window_size

    specificity_class = classify_specificity(
        min_mismatches,
        mismatch_indices,
        window_size,
        has_cross_reactivity=bool(ordered)
    )

    tm = calculate_tm(window.sequence)
    gc = calculate_gc_content(window.sequence)

    return Primer(
        identifier=f"{window.sequence_id}_{window.offset}",
        sequence=window.sequence,
        start=window.offset + 1,
        end=window.offset + window_size,
        tm=tm,
        gc=gc,
        min_mismatches=min_mismatches,
        mismatch_indices=mismatch_indices,
        worst_off_target_seq=worst_seq,
        specificity_class=specificity_class,
        score=calculate_score(min_mismatches, tm),
        cross_reactivity=ordered
    )


def filter_primers(primers: Sequence[Primer]) -> List[Primer]:
    """Apply the acceptance filter, keeping input order."""
    return [p for p in primers if passes_acceptance_filter(p.tm, p.specificity_class)]


def find_unique_primers(
    store: SequenceStore,
    target_id: str,
    window_size: int,
    n_processes: Optional[int] = 1,
    prune: bool = True
) -> List[Primer]:
    """
    Find primers in a target that discriminate it from every other sequence.

    Args:
        store (SequenceStore): All loaded sequences, target included
        target_id (str): Identifier of the target sequence
        window_size (int): Primer length
        n_processes (Optional[int]): Worker processes; 1 runs serially,
            None uses every CPU
        prune (bool): Enable early termination of mismatch counting

    Returns:
        List[Primer]: Accepted primers, highest score first
    """
    if window_size < 1:
        raise ValueError(f"Window size must be a positive integer, got {window_size}")

    start_time = time.time()
    target = store.get(target_id)
    backgrounds = store.backgrounds_for(target_id)

    windows = list(iter_candidate_windows(target.sequence, window_size, target.identifier))
    logger.info(
        f"Scanning {len(windows)} candidate windows of {window_size} bp in {target.identifier} "
        f"against {len(backgrounds)} background sequences"
    )

    if n_processes == 1 or len(windows) < 2:
        survivors = evaluate_windows(windows, backgrounds, prune=prune)
    else:
        survivors = evaluate_windows_parallel(windows, backgrounds, prune=prune, n_processes=n_processes)

    logger.info(f"{len(survivors)} of {len(windows)} windows have no exact match in any background")

    candidates = [build_primer(window, details, window_size) for window, details in survivors]
    accepted = filter_primers(candidates)
    ranked = rank_primers(accepted)

    logger.info(f"Found {len(ranked)} primers in {time.time() - start_time:.2f} seconds")
    return ranked
