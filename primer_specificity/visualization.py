# primer_specificity/visualization.py

import os
import logging
from typing import List, Sequence
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.patches import Patch
import numpy as np

from .primer_search import Primer
from .specificity import SpecificityClass
from .thermodynamics import TM_MIN, TM_MAX, TM_TARGET

logger = logging.getLogger(__name__)

# Safety map levels per target position
SAFETY_UNSAFE = 0
SAFETY_SNP = 1
SAFETY_HIGH = 3

_CLASS_LEVELS = {
    SpecificityClass.HIGH: SAFETY_HIGH,
    SpecificityClass.SNP: SAFETY_SNP,
}


def safety_map_values(primers: Sequence[Primer], seq_length: int) -> np.ndarray:
    """
    Build a per-position safety map of the target.

    Each primer marks its 0-based start position with 3 (High) or 1 (SNP);
    the highest level wins when several primers share a start.
    """
    score_map = np.zeros(max(seq_length, 0), dtype=int)

    for primer in primers:
        idx = primer.start - 1
        if 0 <= idx < seq_length:
            level = _CLASS_LEVELS.get(primer.specificity_class, SAFETY_UNSAFE)
            if level > score_map[idx]:
                score_map[idx] = level

    return score_map


def create_visualizations(output_dir: str, primers: List[Primer], seq_length: int, window_size: int):
    """
    Create visualizations for the primer search results.

    Args:
        output_dir (str): Output directory
        primers (List[Primer]): Ranked primers
        seq_length (int): Length of the target sequence
        window_size (int): Primer length used for the search
    """
    vis_dir = os.path.join(output_dir, "visualizations")
    os.makedirs(vis_dir, exist_ok=True)

    try:
        create_safety_map(vis_dir, primers, seq_length, window_size)
        logger.info("Created genomic safety map")
    except Exception as e:
        logger.error(f"Error creating safety map: {e}")

    try:
        create_tm_score_plot(vis_dir, primers)
        logger.info("Created Tm/score plot")
    except Exception as e:
        logger.error(f"Error creating Tm/score plot: {e}")


def create_safety_map(vis_dir: str, primers: Sequence[Primer], seq_length: int, window_size: int) -> str:
    """
    Plot where along the target specific primers can start.

    Returns:
        str: Path of the saved figure
    """
    score_map = safety_map_values(primers, seq_length)
    positions = np.arange(1, seq_length + 1)

    colors = np.where(
        score_map == SAFETY_HIGH, 'green',
        np.where(score_map == SAFETY_SNP, 'gold', 'lightgrey')
    ).tolist()
    # Unsafe positions get a thin baseline bar
    heights = np.where(score_map == SAFETY_UNSAFE, 0.1, score_map)

    fig, ax = plt.subplots(figsize=(12, 3))
    ax.bar(positions, heights, width=1.0, color=colors, linewidth=0)

    ax.set_xlim(0, seq_length + 1)
    ax.set_ylim(0, SAFETY_HIGH + 0.5)
    ax.set_yticks([SAFETY_UNSAFE, SAFETY_SNP, SAFETY_HIGH])
    ax.set_yticklabels(['Unsafe', 'SNP', 'High'])
    ax.set_xlabel('Primer start position (bp)', fontsize=12)
    ax.set_title(f'Genomic Safety Map ({window_size} bp primers)', fontsize=14, fontweight='bold')

    legend_elements = [
        Patch(facecolor='green', label='High specificity'),
        Patch(facecolor='gold', label='SNP specific'),
        Patch(facecolor='lightgrey', label='No specific primer')
    ]
    ax.legend(handles=legend_elements, loc='upper right', fontsize=9)

    plt.tight_layout()
    path = os.path.join(vis_dir, 'safety_map.png')
    plt.savefig(path, dpi=300, bbox_inches='tight')
    plt.close()
    return path


def create_tm_score_plot(vis_dir: str, primers: Sequence[Primer]) -> str:
    """
    Scatter primer melting temperature against composite score.

    Returns:
        str: Path of the saved figure, or "" when there is nothing to plot
    """
    if not primers:
        logger.warning("No primers available for Tm/score plot")
        return ""

    tms = np.array([p.tm for p in primers])
    scores = np.array([p.score for p in primers])
    colors = ['green' if p.specificity_class == SpecificityClass.HIGH else 'gold' for p in primers]

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.scatter(tms, scores, c=colors, alpha=0.7, edgecolors='black', linewidths=0.5)

    # Acceptance window and optimum
    ax.axvspan(TM_MIN, TM_MAX, alpha=0.1, color='blue')
    ax.axvline(x=TM_TARGET, color='r', linestyle='--', alpha=0.5)
    ax.text(TM_TARGET + 0.2, scores.max(), 'Target Tm', fontsize=10, color='r', va='top')

    ax.set_xlim(TM_MIN - 1, TM_MAX + 1)
    ax.set_xlabel('Melting Temperature (°C)', fontsize=12)
    ax.set_ylabel('Composite Score', fontsize=12)
    ax.set_title('Primer Candidates: Tm vs Score', fontsize=14, fontweight='bold')

    legend_elements = [
        Patch(facecolor='green', label='High'),
        Patch(facecolor='gold', label='SNP')
    ]
    ax.legend(handles=legend_elements, loc='lower right')

    plt.tight_layout()
    path = os.path.join(vis_dir, 'tm_score_plot.png')
    plt.savefig(path, dpi=300, bbox_inches='tight')
    plt.close()
    return path
