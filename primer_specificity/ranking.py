# primer_specificity/ranking.py

import logging
from typing import Iterable, List

logger = logging.getLogger(__name__)


def rank_primers(primers: Iterable) -> List:
    """
    Order primers by composite score, best first.

    The sort is stable: primers with equal scores keep the order they were
    given in, which for engine output is ascending target offset.
    """
    ranked = sorted(primers, key=lambda primer: primer.score, reverse=True)
    logger.debug(f"Ranked {len(ranked)} primers")
    return ranked


def sort_cross_reactivity(details: Iterable) -> List:
    """Sort cross-reactivity details by mismatch count, worst offender first (stable)."""
    return sorted(details, key=lambda detail: detail.mismatches)
