# primer_specificity/__init__.py

"""
Primer Specificity Package

A Python package for finding allele-specific primers: short subsequences of
a target that discriminate it from a panel of related background alleles,
for genotyping assay design.
"""

__version__ = '0.1.0'

# Sequence loading
from .sequence_store import SequenceEntity, SequenceStore
from .sequence_io import (
    sanitize_sequence,
    parse_fasta,
    load_local_fasta,
    load_sequence_store,
    load_demo_store
)

# Specificity search engine
from .window_scanner import CandidateWindow, iter_candidate_windows
from .cross_reactivity import (
    CrossReactivityDetail,
    ExactMatch,
    evaluate_cross_reactivity,
    find_best_match
)
from .specificity import SpecificityClass, classify_specificity
from .thermodynamics import (
    calculate_tm,
    calculate_gc_content,
    calculate_score,
    passes_acceptance_filter,
    calculate_oligo_properties
)
from .ranking import rank_primers
from .primer_search import Primer, find_unique_primers

# Output
from .visualization import create_visualizations, create_safety_map, safety_map_values
from .reporting import (
    create_html_report,
    format_results,
    save_primers_csv,
    save_primers_json,
    save_primers_fasta
)

# Import CLI
from .cli import main

__all__ = [
    # Sequences
    'SequenceEntity',
    'SequenceStore',
    'sanitize_sequence',
    'parse_fasta',
    'load_local_fasta',
    'load_sequence_store',
    'load_demo_store',

    # Search engine
    'CandidateWindow',
    'iter_candidate_windows',
    'CrossReactivityDetail',
    'ExactMatch',
    'evaluate_cross_reactivity',
    'find_best_match',
    'SpecificityClass',
    'classify_specificity',
    'calculate_tm',
    'calculate_gc_content',
    'calculate_score',
    'passes_acceptance_filter',
    'calculate_oligo_properties',
    'rank_primers',
    'Primer',
    'find_unique_primers',

    # Visualization and reports
    'create_visualizations',
    'create_safety_map',
    'safety_map_values',
    'create_html_report',
    'format_results',
    'save_primers_csv',
    'save_primers_json',
    'save_primers_fasta',

    # CLI
    'main'
]
