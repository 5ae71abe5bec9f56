# primer_specificity/cli.py

import argparse
import logging
import sys
import time
import os
import json
import datetime
from typing import Any, Dict, List, Optional

from .sequence_io import load_sequence_store, load_demo_store
from .sequence_store import SequenceStore
from .primer_search import find_unique_primers, Primer
from .reporting import (
    create_html_report,
    format_results,
    save_primers_csv,
    save_primers_fasta,
    save_primers_json
)
from .visualization import create_visualizations

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Primer lengths offered for genotyping assays
MIN_WINDOW_SIZE = 19
MAX_WINDOW_SIZE = 23
DEFAULT_WINDOW_SIZE = 21


def create_parser():
    """Create an argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Find allele-specific primers that distinguish a target sequence from its background alleles',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List the sequences in a FASTA file
  primer-specificity --fasta alleles.fasta --list

  # Find 21 bp primers specific to the first allele
  primer-specificity --fasta alleles.fasta --target 1 --output-dir ./allele1_primers

  # Use a header accession as target and a 23 bp primer length
  primer-specificity --fasta alleles.fasta --target SUS_allele_A2 --window-size 23 --output-dir ./a2

  # Try the bundled demo panel on 4 processes
  primer-specificity --demo --target 1 --processes 4 --output-dir ./demo
"""
    )

    input_group = parser.add_argument_group('input (one is required)')
    input_group = input_group.add_mutually_exclusive_group(required=True)
    input_group.add_argument(
        '--fasta',
        type=str,
        help='Path to a multi-FASTA file with the target and its background alleles'
    )
    input_group.add_argument(
        '--demo',
        action='store_true',
        help='Use the bundled demo allele panel'
    )

    parser.add_argument(
        '--target',
        type=str,
        help='Target sequence: identifier, first word of its header, or 1-based position in the file'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        help='Output directory for results (required unless --list is given)'
    )
    parser.add_argument(
        '--window-size',
        type=int,
        default=DEFAULT_WINDOW_SIZE,
        help=f'Primer length in bp, {MIN_WINDOW_SIZE}-{MAX_WINDOW_SIZE} (default: {DEFAULT_WINDOW_SIZE})'
    )
    parser.add_argument(
        '--allow-any-window',
        action='store_true',
        help='Accept any positive primer length instead of the usual range'
    )
    parser.add_argument(
        '--processes',
        type=int,
        default=1,
        help='Number of worker processes for the search (default: 1, 0 uses all CPUs)'
    )
    parser.add_argument(
        '--top',
        type=int,
        default=10,
        help='Number of primers shown in the text summary (default: 10, 0 shows all)'
    )
    parser.add_argument(
        '--list',
        action='store_true',
        help='List the loaded sequences and exit'
    )
    parser.add_argument(
        '--no-visualization',
        action='store_true',
        help='Skip plots and the HTML report'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    return parser


def create_output_directory(output_dir: str) -> str:
    """
    Create output directory structure.

    Args:
        output_dir (str): Base output directory

    Returns:
        str: Path to created directory
    """
    try:
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)
            logger.info(f"Created output directory: {output_dir}")

        subdirs = ["sequences", "results", "visualizations", "logs"]
        for subdir in subdirs:
            subdir_path = os.path.join(output_dir, subdir)
            if not os.path.exists(subdir_path):
                os.makedirs(subdir_path)
                logger.info(f"Created subdirectory: {subdir_path}")

        return output_dir

    except OSError as e:
        logger.error(f"Error creating output directory: {e}")
        sys.exit(1)


def save_sequences(output_dir: str, store: SequenceStore):
    """
    Save the sanitised input sequences, with their assigned identifiers.

    Args:
        output_dir (str): Output directory
        store (SequenceStore): Loaded sequences
    """
    from Bio import SeqIO
    from Bio.Seq import Seq
    from Bio.SeqRecord import SeqRecord

    records = [
        SeqRecord(Seq(entity.sequence), id=entity.identifier, description=entity.header)
        for entity in store
    ]
    path = os.path.join(output_dir, "sequences", "input_sequences.fasta")
    SeqIO.write(records, path, "fasta")
    logger.info(f"Saved {len(records)} input sequences to {path}")


def save_metadata(output_dir: str, args: argparse.Namespace, runtime: float, run_info: Dict[str, Any]):
    """
    Save metadata about the primer search run.

    Args:
        output_dir (str): Output directory
        args (argparse.Namespace): Command line arguments
        runtime (float): Total runtime in seconds
        run_info (Dict[str, Any]): Target and result counts
    """
    metadata = {
        "timestamp": datetime.datetime.now().isoformat(),
        "runtime_seconds": runtime,
        "arguments": vars(args),
        "run_info": run_info
    }

    metadata_path = os.path.join(output_dir, "results", "metadata.json")
    with open(metadata_path, 'w') as f:
        json.dump(metadata, f, indent=2)

    logger.info(f"Saved metadata to {metadata_path}")


def save_results_text(output_dir: str, results_text: str):
    """
    Save results as text file.

    Args:
        output_dir (str): Output directory
        results_text (str): Formatted results text
    """
    results_path = os.path.join(output_dir, "results", "assay_results.txt")
    with open(results_path, 'w') as f:
        f.write(results_text)

    logger.info(f"Saved results to {results_path}")


def format_sequence_list(store: SequenceStore) -> str:
    """One line per loaded sequence: position, identifier, length, header."""
    lines = ["#   ID        Length  Header"]
    for position, entity in enumerate(store, 1):
        lines.append(f"{position:<3} {entity.identifier:<9} {entity.length:>6}  {entity.header}")
    return "\n".join(lines)


def validate_window_size(window_size: int, allow_any: bool) -> Optional[str]:
    """Return an error message if the primer length is not acceptable, else None."""
    if window_size < 1:
        return f"Primer length must be positive, got {window_size}"
    if not allow_any and not MIN_WINDOW_SIZE <= window_size <= MAX_WINDOW_SIZE:
        return (
            f"Primer length must be between {MIN_WINDOW_SIZE} and {MAX_WINDOW_SIZE} bp, "
            f"got {window_size} (use --allow-any-window to override)"
        )
    return None


def _fail(message: str, verbose: bool = False):
    logger.error(message)
    print(f"\n{message}")
    if verbose:
        import traceback
        traceback.print_exc()
    sys.exit(1)


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    start_time = time.time()

    # Set verbosity
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load sequences
    try:
        if args.demo:
            logger.info("Loading bundled demo allele panel")
            store = load_demo_store()
        else:
            store = load_sequence_store(args.fasta)
    except Exception as e:
        _fail(f"Error loading sequences: {e}", args.verbose)

    if args.list:
        print(format_sequence_list(store))
        return 0

    if len(store) < 2:
        _fail(f"At least two sequences are required, found {len(store)}")

    if not args.target:
        _fail("No target selected; use --target (see --list for the loaded sequences)")

    target = store.find(args.target)
    if target is None:
        _fail(f"Target '{args.target}' does not match any loaded sequence")

    error = validate_window_size(args.window_size, args.allow_any_window)
    if error:
        _fail(error)

    if not args.output_dir:
        _fail("--output-dir is required to run a primer search")

    # Create output directory structure
    output_dir = create_output_directory(args.output_dir)

    # Configure file logging
    log_file = os.path.join(output_dir, "logs", "primer_specificity.log")
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logging.getLogger().addHandler(file_handler)

    save_sequences(output_dir, store)

    logger.info(f"Searching {args.window_size} bp primers specific to {target.header}")
    print(f"Loaded {len(store)} sequences; target: {target.header} ({target.length} bp)")

    n_processes = args.processes if args.processes > 0 else None
    primers: List[Primer] = find_unique_primers(
        store,
        target.identifier,
        args.window_size,
        n_processes=n_processes
    )

    results_dir = os.path.join(output_dir, "results")
    save_primers_csv(os.path.join(results_dir, "primers.csv"), primers)
    save_primers_json(os.path.join(results_dir, "primers.json"), primers, target, args.window_size)
    save_primers_fasta(os.path.join(results_dir, "primers.fasta"), primers)

    n_backgrounds = len(store) - 1
    results_text = format_results(
        target=target,
        primers=primers,
        window_size=args.window_size,
        n_backgrounds=n_backgrounds,
        runtime=time.time() - start_time,
        top=args.top
    )
    save_results_text(output_dir, results_text)

    # Create visualizations
    if not args.no_visualization:
        logger.info("Creating visualizations")
        create_visualizations(output_dir, primers, target.length, args.window_size)
        try:
            create_html_report(
                os.path.join(output_dir, "visualizations"),
                target,
                primers,
                args.window_size,
                safety_map_file="safety_map.png"
            )
        except Exception as e:
            logger.error(f"Error creating HTML report: {e}")

    run_info = {
        "target": {"id": target.identifier, "header": target.header, "length": target.length},
        "backgrounds": [entity.header for entity in store.backgrounds_for(target.identifier)],
        "primers_found": len(primers)
    }
    save_metadata(output_dir, args, time.time() - start_time, run_info)

    # Print results to console
    print("\n" + results_text)
    print(f"\nResults saved to: {output_dir}")

    logger.info(f"Primer search completed in {time.time() - start_time:.2f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
