# primer_specificity/reporting.py

"""
Report generation for primer search results.

Writes the ranked primers as CSV, JSON and FASTA, builds a plain-text
summary, and renders a printable HTML specificity report with a
cross-reactivity matrix for every primer.
"""

import os
import csv
import html
import json
import logging
import datetime
from typing import Any, Dict, List, Optional, Sequence

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from .primer_search import Primer
from .sequence_store import SequenceEntity
from .specificity import SpecificityClass
from .thermodynamics import calculate_oligo_properties

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "rank", "id", "sequence", "start", "end", "tm", "gc",
    "min_mismatches", "mismatch_indices", "worst_off_target_seq",
    "specificity_class", "score"
]


def primer_rows(primers: Sequence[Primer]) -> List[Dict[str, Any]]:
    """Flatten primers into table rows, rank starting at 1."""
    rows = []
    for rank, primer in enumerate(primers, 1):
        rows.append({
            "rank": rank,
            "id": primer.identifier,
            "sequence": primer.sequence,
            "start": primer.start,
            "end": primer.end,
            "tm": f"{primer.tm:.2f}",
            "gc": f"{primer.gc:.2f}",
            "min_mismatches": primer.min_mismatches,
            "mismatch_indices": ";".join(str(i) for i in primer.mismatch_indices),
            "worst_off_target_seq": primer.worst_off_target_seq,
            "specificity_class": primer.specificity_class.value,
            "score": f"{primer.score:.2f}"
        })
    return rows


def save_primers_csv(path: str, primers: Sequence[Primer]) -> str:
    """Save the primer table as CSV."""
    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(primer_rows(primers))

    logger.info(f"Saved {len(primers)} primers to {path}")
    return path


def save_primers_json(path: str, primers: Sequence[Primer], target: Optional[SequenceEntity] = None,
                      window_size: Optional[int] = None) -> str:
    """Save primers, with their full cross-reactivity profiles, as JSON."""
    results = {
        "target_id": target.identifier if target else None,
        "target_header": target.header if target else None,
        "window_size": window_size,
        "timestamp": datetime.datetime.now().isoformat(),
        "primers": [primer.to_dict() for primer in primers]
    }

    with open(path, 'w') as f:
        json.dump(results, f, indent=2)

    logger.info(f"Saved primer results to {path}")
    return path


def save_primers_fasta(path: str, primers: Sequence[Primer]) -> str:
    """Save primer sequences as FASTA, annotated with Tm, GC and class."""
    records = []
    for primer in primers:
        records.append(SeqRecord(
            Seq(primer.sequence),
            id=primer.identifier,
            description=(
                f"class={primer.specificity_class.value} pos={primer.start}-{primer.end} "
                f"Tm={primer.tm:.1f} GC={primer.gc:.1f}% min_mm={primer.min_mismatches}"
            )
        ))

    SeqIO.write(records, path, "fasta")
    logger.info(f"Saved {len(records)} primer sequences to {path}")
    return path


def format_results(
    target: SequenceEntity,
    primers: Sequence[Primer],
    window_size: int,
    n_backgrounds: int,
    runtime: float,
    top: int = 10
) -> str:
    """Format the results as a string."""
    lines = ["=== Primer Specificity Results ===", ""]

    lines.append(f"Target: {target.header} ({target.identifier})")
    lines.append(f"Target length: {target.length} bp")
    lines.append(f"Background sequences: {n_backgrounds}")
    lines.append(f"Primer length: {window_size} bp")
    lines.append(f"Total runtime: {runtime:.2f} seconds")

    high = sum(1 for p in primers if p.specificity_class == SpecificityClass.HIGH)
    snp = len(primers) - high
    lines.append(f"\nCandidates found: {len(primers)} ({high} High, {snp} SNP)")

    if not primers:
        lines.append(
            "No specific primers: every window either has a perfect match in a background "
            "sequence or fails the specificity and Tm filters."
        )
        return "\n".join(lines)

    shown = primers[:top] if top else primers
    lines.append(f"\nTop {len(shown)} primers:")
    for rank, primer in enumerate(shown, 1):
        lines.append(f"#{rank} {primer.sequence} [{primer.specificity_class.value}]")
        lines.append(f"  Position: {primer.start}-{primer.end}")
        lines.append(f"  Tm: {primer.tm:.1f}°C  GC: {primer.gc:.1f}%")
        lines.append(f"  Min mismatches: {primer.min_mismatches}  Score: {primer.score:.2f}")
        if primer.cross_reactivity:
            worst = primer.cross_reactivity[0]
            positions = ", ".join(str(i + 1) for i in worst.mismatch_indices)
            lines.append(f"  Nearest off-target: {worst.sequence} in {worst.allele_header} (diff at {positions})")

    return "\n".join(lines)


def _highlight_mismatches(sequence: str, indices: Sequence[int]) -> str:
    marked = set(indices)
    return "".join(
        f'<span class="diff-idx">{html.escape(base)}</span>' if i in marked else html.escape(base)
        for i, base in enumerate(sequence)
    )


def _primer_block(rank: int, primer: Primer) -> str:
    tag_class = "tag-high" if primer.specificity_class == SpecificityClass.HIGH else "tag-snp"
    properties = calculate_oligo_properties(primer.sequence)
    tm_nn = properties.get("tm_nn")
    tm_nn_text = f"{tm_nn:.1f}°C" if tm_nn is not None else "n/a"

    rows = []
    for detail in primer.cross_reactivity:
        positions = ", ".join(str(i + 1) for i in detail.mismatch_indices)
        rows.append(f"""
                <tr>
                    <td>{html.escape(detail.allele_header)}</td>
                    <td><strong>{detail.mismatches}</strong></td>
                    <td class="mismatch-seq">{_highlight_mismatches(detail.sequence, detail.mismatch_indices)}</td>
                    <td class="diff-idx">{positions}</td>
                </tr>""")

    if not rows:
        rows.append("""
                <tr><td colspan="4">No background sequence long enough to compare</td></tr>""")

    table_rows = "".join(rows)
    return f"""
        <div class="primer-block">
            <div class="primer-header">
                <div>
                    <span class="seq">{primer.sequence}</span>
                    <span class="tag {tag_class}">{primer.specificity_class.value} Specificity</span>
                </div>
                <div class="rank">#{rank}</div>
            </div>

            <div class="stats">
                <div class="stat-box"><strong>Position:</strong> {primer.start}-{primer.end}</div>
                <div class="stat-box"><strong>Tm:</strong> {primer.tm:.1f}°C</div>
                <div class="stat-box"><strong>GC:</strong> {primer.gc:.1f}%</div>
                <div class="stat-box"><strong>Min Mismatches:</strong> {primer.min_mismatches}</div>
                <div class="stat-box"><strong>Score:</strong> {primer.score:.2f}</div>
                <div class="stat-box"><strong>Tm (NN):</strong> {tm_nn_text}</div>
                <div class="stat-box"><strong>3' GC:</strong> {properties['end_stability']:.2f}</div>
                <div class="stat-box"><strong>Repeats:</strong> {'yes' if properties['has_repeats'] else 'no'}</div>
            </div>

            <h3>Cross-Reactivity Matrix</h3>
            <table>
                <thead>
                    <tr>
                        <th style="width: 30%">Allele / Background</th>
                        <th style="width: 10%">Mismatches</th>
                        <th style="width: 40%">Nearest Sequence Match</th>
                        <th style="width: 20%">Diff Positions (1-{len(primer.sequence)})</th>
                    </tr>
                </thead>
                <tbody>{table_rows}
                </tbody>
            </table>
        </div>"""


def create_html_report(report_dir: str, target: SequenceEntity, primers: Sequence[Primer],
                       window_size: int, safety_map_file: Optional[str] = None) -> str:
    """
    Create a printable HTML specificity report.

    Args:
        report_dir (str): Directory to write report.html into
        target (SequenceEntity): Target sequence
        primers (Sequence[Primer]): Ranked primers
        window_size (int): Primer length used for the search
        safety_map_file (Optional[str]): Safety map image, relative to report_dir

    Returns:
        str: Path of the written report
    """
    date_str = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    figure = ""
    if safety_map_file:
        figure = f"""
        <div class="figure">
            <img src="{html.escape(safety_map_file)}" alt="Genomic safety map">
        </div>"""

    blocks = "".join(_primer_block(rank, primer) for rank, primer in enumerate(primers, 1))
    if not primers:
        blocks = """
        <p>No specific primers were found. Every window in the target either has a perfect
        match in at least one background allele or fails the specificity and Tm filters.</p>"""

    html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Primer Specificity Report - {date_str}</title>
    <style>
        body {{ font-family: 'Helvetica Neue', Arial, sans-serif; color: #111; padding: 40px; max-width: 1000px; margin: 0 auto; }}
        h1 {{ border-bottom: 2px solid #000; padding-bottom: 10px; margin-bottom: 5px; }}
        .meta {{ color: #555; font-size: 0.9em; margin-bottom: 30px; }}
        .figure {{ text-align: center; margin: 20px 0; }}
        .figure img {{ max-width: 100%; border: 1px solid #ddd; }}
        .primer-block {{ border: 1px solid #ccc; padding: 20px; margin-bottom: 30px; page-break-inside: avoid; border-radius: 4px; }}
        .primer-header {{ display: flex; justify-content: space-between; align-items: baseline; margin-bottom: 15px; border-bottom: 1px solid #eee; padding-bottom: 10px; }}
        .rank {{ font-size: 1.5em; font-weight: bold; color: #333; }}
        .seq {{ font-family: 'Courier New', monospace; font-weight: bold; font-size: 1.2em; letter-spacing: 1px; }}
        .stats {{ font-size: 0.9em; color: #444; margin-bottom: 15px; display: grid; grid-template-columns: repeat(4, 1fr); gap: 10px; }}
        .stat-box {{ background: #f9f9f9; padding: 8px; border-radius: 4px; border: 1px solid #eee; }}
        table {{ width: 100%; border-collapse: collapse; font-size: 0.85em; margin-top: 10px; }}
        th, td {{ border: 1px solid #e0e0e0; padding: 6px 10px; text-align: left; }}
        th {{ background-color: #f1f5f9; font-weight: 600; color: #334155; }}
        tr:nth-child(even) {{ background-color: #fcfcfc; }}
        .mismatch-seq {{ font-family: 'Courier New', monospace; }}
        .diff-idx {{ color: #dc2626; font-weight: bold; }}
        .tag {{ display: inline-block; padding: 2px 8px; border-radius: 12px; font-size: 0.7em; font-weight: bold; text-transform: uppercase; color: white; }}
        .tag-high {{ background-color: #16a34a; }}
        .tag-snp {{ background-color: #eab308; }}
        @media print {{ body {{ padding: 0; }} }}
    </style>
</head>
<body>
    <h1>Primer Specificity Report</h1>
    <div class="meta">
        Generated: {date_str}<br/>
        Target: {html.escape(target.header)} ({target.length} bp)<br/>
        Primer length: {window_size} bp<br/>
        Candidates Found: {len(primers)}
    </div>{figure}
{blocks}
</body>
</html>
"""

    os.makedirs(report_dir, exist_ok=True)
    path = os.path.join(report_dir, "report.html")
    with open(path, 'w') as f:
        f.write(html_content)

    logger.info(f"Saved HTML report to {path}")
    return path
