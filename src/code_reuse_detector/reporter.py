# Code Reuse Detector - Find reused code across a reference corpus
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Report generator - formats ranked similarity results for output.

Supports text, markdown, json and html output formats.
"""

from typing import List, Tuple
from pathlib import Path
from enum import Enum
import json
from datetime import datetime

from .models import CorpusStatistics, Fragment, Severity, SimilarityResult


# Longest original content shown per fragment
MAX_FRAGMENT_CHARS = 200

SEVERITY_ICONS = {
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "🟢",
    Severity.NONE: "⚪",
}


class OutputFormat(Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"
    HTML = "html"


def report_results(
    results: List[SimilarityResult],
    query_label: str,
    output_format: OutputFormat = OutputFormat.TEXT,
    max_fragments: int = 10,
) -> str:
    """
    Generate a report of corpus entries similar to the checked code.

    Args:
        results: Ranked SimilarityResult list (highest first)
        query_label: Name of the checked file or input, for display
        output_format: Desired output format
        max_fragments: Matched fragments listed per entry

    Returns:
        Formatted report string
    """
    if output_format == OutputFormat.TEXT:
        return _format_text(results, query_label, max_fragments)
    elif output_format == OutputFormat.MARKDOWN:
        return _format_markdown(results, query_label, max_fragments)
    elif output_format == OutputFormat.JSON:
        return _format_json(results, query_label, max_fragments)
    elif output_format == OutputFormat.HTML:
        return _format_html(results, query_label, max_fragments)
    else:
        raise ValueError(f"Unknown format: {output_format}")


def report_statistics(stats: CorpusStatistics) -> str:
    """Plain text summary of the loaded corpus."""
    lines = [
        "📊 Corpus statistics:",
        f"   Files: {stats.file_count}",
        f"   Fragments: {stats.fragment_count}",
        f"   Fragments per file: avg {stats.avg_fragments_per_file}, "
        f"median {stats.median_fragments_per_file:g}, max {stats.max_fragments_per_file}",
    ]
    return "\n".join(lines)


def display_name(identifier: str) -> str:
    """File name without its directory, like the results table shows it."""
    return Path(identifier).name or identifier


def fragment_details(
    result: SimilarityResult,
    max_fragments: int = 10,
) -> Tuple[List[Fragment], int]:
    """
    Matched query fragments to show for a result, ordered by line.

    Returns:
        (fragments to show, number of fragments left out)
    """
    fragments = sorted(
        result.matched_fragments,
        key=lambda f: (f.line_number, f.normalized_content),
    )
    shown = fragments[:max_fragments]
    return shown, len(fragments) - len(shown)


def truncate(text: str, limit: int = MAX_FRAGMENT_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def _format_text(
    results: List[SimilarityResult],
    query_label: str,
    max_fragments: int,
) -> str:
    """Plain text format with unicode decorations."""
    lines = []

    if not results:
        lines.append(f"✨ No similar corpus files found for {query_label}")
        return "\n".join(lines)

    lines.append(f"🔍 Found {len(results)} similar corpus files for {query_label}")
    lines.append("")

    for rank, result in enumerate(results, 1):
        icon = SEVERITY_ICONS[result.severity]
        lines.append("━" * 70)
        lines.append(f"#{rank} {display_name(result.identifier)}: "
                     f"{result.similarity_percentage:.2f}% {icon} {result.severity.value}")
        lines.append(f"Full path: {result.identifier}")
        lines.append(f"Matches: {result.matches_count}/{result.total_fragments} corpus fragments | "
                     f"Matched query fragments: {result.matched_query_fragment_count}")
        lines.append("━" * 70)
        lines.append("")

        shown, remaining = fragment_details(result, max_fragments)
        if not shown:
            lines.append("   No detailed match information.")
            lines.append("")
            continue

        lines.append("📍 Matching fragments:")
        for i, fragment in enumerate(shown, 1):
            lines.append(f"   {i}. Line {fragment.line_number}:")
            lines.append(f"      {truncate(fragment.original_content)}")
        if remaining:
            lines.append(f"   ... and {remaining} more fragments")
        lines.append("")

    return "\n".join(lines)


def _format_markdown(
    results: List[SimilarityResult],
    query_label: str,
    max_fragments: int,
) -> str:
    """Markdown format for documentation."""
    lines = []

    lines.append("# Code Reuse Report")
    lines.append("")
    lines.append(f"**Checked:** `{query_label}`  ")
    lines.append(f"**Similar Files:** {len(results)}")
    lines.append("")

    if not results:
        lines.append("No similar corpus files found.")
        return "\n".join(lines)

    # Summary table
    lines.append("| # | File | Similarity | Severity | Matches |")
    lines.append("|---|------|------------|----------|---------|")
    for rank, result in enumerate(results, 1):
        lines.append(
            f"| {rank} | [{display_name(result.identifier)}](#result-{rank}) | "
            f"{result.similarity_percentage:.2f}% | {result.severity.value} | "
            f"{result.matches_count}/{result.total_fragments} |"
        )
    lines.append("")
    lines.append("---")
    lines.append("")

    for rank, result in enumerate(results, 1):
        lines.append(f"<a id=\"result-{rank}\"></a>")
        lines.append("")
        lines.append(f"## {rank}. {display_name(result.identifier)}: "
                     f"{result.similarity_percentage:.2f}% Similarity")
        lines.append("")
        lines.append(f"**Path:** `{result.identifier}`  ")
        lines.append(f"**Severity:** {SEVERITY_ICONS[result.severity]} {result.severity.value}")
        lines.append("")

        shown, remaining = fragment_details(result, max_fragments)
        if not shown:
            lines.append("No detailed match information.")
            lines.append("")
            continue

        lines.append("| Line | Fragment |")
        lines.append("|------|----------|")
        for fragment in shown:
            content = truncate(fragment.original_content).replace("|", "\\|")
            lines.append(f"| {fragment.line_number} | `{content}` |")
        if remaining:
            lines.append("")
            lines.append(f"... and {remaining} more fragments")
        lines.append("")

    return "\n".join(lines)


def _format_json(
    results: List[SimilarityResult],
    query_label: str,
    max_fragments: int,
) -> str:
    """JSON format for programmatic use."""
    data = {
        "meta": {
            "query": query_label,
            "result_count": len(results),
            "timestamp": datetime.now().isoformat(),
        },
        "results": [],
    }

    for result in results:
        shown, remaining = fragment_details(result, max_fragments)
        data["results"].append({
            "identifier": result.identifier,
            "similarity": round(result.similarity_percentage, 2),
            "severity": result.severity.value,
            "matches_count": result.matches_count,
            "total_fragments": result.total_fragments,
            "fragments": [
                {
                    "line": fragment.line_number,
                    "content": truncate(fragment.original_content),
                    "normalized": fragment.normalized_content,
                }
                for fragment in shown
            ],
            "omitted_fragments": remaining,
        })

    return json.dumps(data, indent=2)


_HTML_CSS = """
:root { --bg: #ffffff; --bg-alt: #f5f5f5; --text: #1a1a1a; --muted: #666;
    --border: #e0e0e0; --accent: #0066cc;
    --critical: #dc3545; --high: #fd7e14; --medium: #e0a800; --low: #28a745; --none: #999; }
* { box-sizing: border-box; }
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    background: var(--bg); color: var(--text); margin: 0; padding: 20px; line-height: 1.6; }
.container { max-width: 1100px; margin: 0 auto; }
.meta { color: var(--muted); margin-bottom: 20px; }
details { background: var(--bg-alt); border-radius: 8px; margin-bottom: 16px;
    border: 1px solid var(--border); }
summary { padding: 12px 18px; cursor: pointer; font-weight: bold;
    display: flex; justify-content: space-between; }
.result-content { padding: 0 18px 18px; }
.badge { display: inline-block; padding: 2px 8px; border-radius: 12px; font-size: 0.75em;
    font-weight: bold; text-transform: uppercase; color: white; }
.badge-critical { background: var(--critical); }
.badge-high { background: var(--high); }
.badge-medium { background: var(--medium); }
.badge-low { background: var(--low); }
.badge-none { background: var(--none); }
table { width: 100%; border-collapse: collapse; font-size: 0.9em; }
th, td { padding: 8px; text-align: left; border-bottom: 1px solid var(--border); vertical-align: top; }
code { font-family: 'SF Mono', Monaco, 'Courier New', monospace; white-space: pre-wrap; }
footer { text-align: center; padding: 30px; color: var(--muted); font-size: 0.9em; }
"""


def _format_html(
    results: List[SimilarityResult],
    query_label: str,
    max_fragments: int,
) -> str:
    """HTML format with embedded CSS - fully offline, no external deps."""
    import html

    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M")

    parts = []
    parts.append(f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Code Reuse Report - {html.escape(query_label)}</title>
    <style>{_HTML_CSS}</style>
</head>
<body>
<div class="container">
    <h1>🔍 Code Reuse Report</h1>
    <div class="meta">Checked <code>{html.escape(query_label)}</code> · {len(results)} similar files</div>
""")

    if not results:
        parts.append("    <p>No similar corpus files found.</p>\n")

    for rank, result in enumerate(results, 1):
        severity = result.severity.value
        parts.append(f"""    <details id="result-{rank}" open>
        <summary>
            <span>{rank}. {html.escape(display_name(result.identifier))}</span>
            <span><span class="badge badge-{severity}">{severity}</span> {result.similarity_percentage:.2f}%</span>
        </summary>
        <div class="result-content">
            <p><code>{html.escape(result.identifier)}</code><br>
            {result.matches_count}/{result.total_fragments} corpus fragments matched</p>
""")

        shown, remaining = fragment_details(result, max_fragments)
        if shown:
            parts.append("""            <table>
                <thead><tr><th>Line</th><th>Fragment</th></tr></thead>
                <tbody>
""")
            for fragment in shown:
                parts.append(f"""                    <tr><td>{fragment.line_number}</td>
                        <td><code>{html.escape(truncate(fragment.original_content))}</code></td></tr>
""")
            parts.append("""                </tbody>
            </table>
""")
            if remaining:
                parts.append(f"            <p>... and {remaining} more fragments</p>\n")
        else:
            parts.append("            <p>No detailed match information.</p>\n")

        parts.append("""        </div>
    </details>
""")

    parts.append(f"""    <footer>
        Generated by <strong>code-reuse-detector</strong> on {timestamp}<br>
        No data sent anywhere · 100% offline
    </footer>
</div>
</body>
</html>""")

    return "".join(parts)
