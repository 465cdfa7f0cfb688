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
CLI entry point for code-reuse-detector.

Usage:
    crd <corpus> --file <path> [options]
    crd <corpus> --text <code> [options]
    crd <corpus> --stats
    crd --help
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import engine_options, load_config
from .corpus import CorpusStore
from .detector import Detector
from .errors import DetectorError
from .reporter import OutputFormat, report_results, report_statistics
from .similarity import (
    FULL_CODE_MATCH_BONUS,
    REPORT_THRESHOLD,
    SIMILARITY_BOOST_FACTOR,
    SimilarityEngine,
)
from .sources import MAX_CORPUS_FILE_SIZE


# Extension to output format mapping for -o FILE.EXT
EXTENSION_FORMAT_MAP = {
    '.md': 'markdown',
    '.html': 'html',
    '.json': 'json',
    '.txt': 'text',
}

# Label used in reports for --text input
TEXT_QUERY_LABEL = "<text>"


def merge_config_with_cli(
    config: dict,
    cli_value,
    config_key: str,
    default_value,
):
    """
    Merge config file value with CLI value.

    If CLI value differs from default, use CLI (user explicitly set it).
    Otherwise, use config value if present, else use default.
    """
    if cli_value != default_value:
        return cli_value

    return config.get(config_key, default_value)


def print_progress(current: int, total: int, message: str, width: int = 30):
    """Print a progress bar with message."""
    filled = int(width * current / max(total, 1))
    bar = "=" * filled + ">" + " " * (width - filled - 1) if filled < width else "=" * width
    # \r overwrites the line, \033[K clears to end of line
    click.echo(f"\r   [{bar}] {current}/{total} {message}\033[K", nl=False)
    if current >= total:
        click.echo()


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def fail(message: str):
    click.echo(f"❌ Error: {message}", err=True)
    sys.exit(1)


@click.command()
@click.argument("corpus", type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.option(
    "--file", "query_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Source file to check against the corpus"
)
@click.option(
    "--text", "query_text",
    type=str,
    default=None,
    help="Source text to check ('-' reads it from stdin)"
)
@click.option(
    "-o", "--output",
    type=str,
    default=None,
    help="Output file path (e.g., report.md, report.html, results.json)"
)
@click.option(
    "-e", "--exclude",
    multiple=True,
    help="Glob patterns to exclude from the corpus (repeatable)"
)
@click.option(
    "-f", "--focus",
    multiple=True,
    help="Only load matching corpus paths (repeatable)"
)
@click.option(
    "-x", "--ext",
    multiple=True,
    help="Source file extensions to load (repeatable, default: .java)"
)
@click.option(
    "--threshold",
    type=float,
    default=REPORT_THRESHOLD,
    help=f"Minimum similarity percentage to report (default: {REPORT_THRESHOLD:g})"
)
@click.option(
    "--boost",
    type=float,
    default=SIMILARITY_BOOST_FACTOR,
    help=f"Similarity boost factor (default: {SIMILARITY_BOOST_FACTOR:g})"
)
@click.option(
    "--bonus",
    type=float,
    default=FULL_CODE_MATCH_BONUS,
    help=f"Whole-file match bonus in percent (default: {FULL_CODE_MATCH_BONUS:g})"
)
@click.option(
    "--workers",
    type=int,
    default=0,
    help="Worker threads for ingestion and comparison (0=CPU count)"
)
@click.option(
    "--stats",
    is_flag=True,
    help="Show corpus statistics"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show debug logging and ingestion failures"
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Suppress progress output"
)
@click.version_option(version=__version__)
def main(
    corpus: str,
    query_file: Optional[str],
    query_text: Optional[str],
    output: Optional[str],
    exclude: tuple,
    focus: tuple,
    ext: tuple,
    threshold: float,
    boost: float,
    bonus: float,
    workers: int,
    stats: bool,
    verbose: bool,
    quiet: bool,
):
    """
    Check source code for reuse of files in a reference corpus.

    CORPUS is the directory of reference source files.

    Examples:

      # Check one file, print ranked results
      crd ./reference --file Submission.java

      # Write a markdown report
      crd ./reference --file Submission.java -o report.md

      # Check pasted code
      crd ./reference --text "int x = 5; for (int i = 0; i < n; i++) { x++; }"

      # Corpus statistics only
      crd ./reference --stats
    """
    if query_file and query_text is not None:
        raise click.UsageError("Use either --file or --text, not both.")

    if query_file is None and query_text is None and not stats:
        raise click.UsageError("Nothing to do: give --file, --text or --stats.")

    root_path = Path(corpus).resolve()

    # Config values override defaults, but explicit CLI args override config
    config = load_config(root_path)
    verbose = merge_config_with_cli(config, verbose, "verbose", False)
    setup_logging(verbose)

    options = engine_options(config)
    options["report_threshold"] = merge_config_with_cli(
        options, threshold, "report_threshold", REPORT_THRESHOLD
    )
    options["boost_factor"] = merge_config_with_cli(
        options, boost, "boost_factor", SIMILARITY_BOOST_FACTOR
    )
    options["full_code_bonus"] = merge_config_with_cli(
        options, bonus, "full_code_bonus", FULL_CODE_MATCH_BONUS
    )
    options["max_workers"] = merge_config_with_cli(options, workers, "max_workers", 0) or None
    max_file_size = config.get("max_file_size", MAX_CORPUS_FILE_SIZE)

    # Lists in config, tuples from CLI
    if not exclude and isinstance(config.get("exclude"), list):
        exclude = tuple(config["exclude"])
    if not focus and isinstance(config.get("focus"), list):
        focus = tuple(config["focus"])
    if not ext and isinstance(config.get("extensions"), list):
        ext = tuple(config["extensions"])
    if output is None:
        output = config.get("output")

    output_format = OutputFormat.TEXT
    if output:
        suffix = Path(output).suffix.lower()
        if suffix not in EXTENSION_FORMAT_MAP:
            valid_exts = ', '.join(EXTENSION_FORMAT_MAP.keys())
            fail(f"Invalid output extension '{suffix}'. Valid: {valid_exts}")
        output_format = OutputFormat(EXTENSION_FORMAT_MAP[suffix])

    if verbose:
        if config:
            click.echo("📝 Loaded config from .crdrc/.crd.toml")
        click.echo(f"🔍 Corpus: {root_path}")
        click.echo(f"   Report threshold: {options['report_threshold']:g}%")
        click.echo(f"   Boost factor: {options['boost_factor']:g}")
        click.echo(f"   Whole-file bonus: {options['full_code_bonus']:g}")

    detector = Detector(
        store=CorpusStore(max_workers=options["max_workers"]),
        engine=SimilarityEngine(**options),
        extensions=ext or None,
    )

    try:
        if not quiet:
            click.echo("📂 Loading corpus...")
        report = detector.ingest_directory(
            root_path,
            exclude_patterns=list(exclude),
            focus_patterns=list(focus),
            max_file_size=max_file_size,
            on_progress=lambda c, t, m: print_progress(c, t, m) if not quiet else None,
        )
        if not quiet:
            click.echo(f"   {report.summary()}")
        if verbose:
            for failure in report.failures:
                click.echo(f"   ⚠️  {failure.identifier}: {failure.reason}")

        if stats:
            click.echo(report_statistics(detector.statistics()))

        if query_file is None and query_text is None:
            return

        if query_file:
            label = query_file
            results = detector.check_file(Path(query_file))
        else:
            label = TEXT_QUERY_LABEL
            if query_text == "-":
                query_text = click.get_text_stream("stdin").read()
            results = detector.check_interactive(query_text)
    except DetectorError as e:
        fail(e.message)

    rendered = report_results(results, label, output_format)

    if output:
        Path(output).write_text(rendered, encoding="utf-8")
        if not quiet:
            click.echo(f"✅ Report written to: {output}")
    else:
        click.echo(rendered)


# Entry point alias for pyproject.toml
cli = main


if __name__ == "__main__":
    main()
