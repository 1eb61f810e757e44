# Code Coupling Engine - Identify modules from class coupling
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
CLI entry point for code-coupling-engine.

Usage:
    cce <path> [options]
    cce <path> --interactive
    cce --help
"""

import sys
import logging
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .analyzer import ModuleAnalyzer
from .call_graph import InvalidCallGraphError
from .config import load_config
from .indexer import method_call_graph
from .reporter import (
    OutputFormat,
    report_analysis,
    compute_stats,
    format_class_tree,
    format_coupling_graph,
    format_method_calls,
    format_modules,
    format_stats,
)


DEFAULT_THRESHOLD = 0.1

# Extension to output format mapping for -o FILE.EXT
EXTENSION_FORMAT_MAP = {
    '.md': 'markdown',
    '.json': 'json',
    '.txt': 'text',
}

MENU = """
================ MENU ================
--- Structure ---
1. Show class tree
2. Show statistics
3. Show method call graph
--- Coupling ---
4. Show weighted coupling graph
5. Identify modules (hierarchical clustering)
--------------------------------------
0. Quit"""


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
    # Use \r to overwrite line, \033[K to clear to end of line
    click.echo(f"\r   [{bar}] {current}/{total} {message}\033[K", nl=False)
    if current >= total:
        click.echo()  # newline when complete


def run_menu(analyzer: ModuleAnalyzer, threshold: float):
    """Interactive menu over an already analyzed project."""
    units = list(analyzer.units)
    method_calls = None

    while True:
        click.echo(MENU)
        choice = click.prompt("Enter your choice (0-5)", type=int)

        if choice == 1:
            click.echo(format_class_tree(units))
        elif choice == 2:
            click.echo(format_stats(compute_stats(units)))
        elif choice == 3:
            if method_calls is None:
                method_calls = method_call_graph(units)
            click.echo(format_method_calls(method_calls))
        elif choice == 4:
            click.echo(format_coupling_graph(analyzer.coupling_pairs(), analyzer.total_calls))
        elif choice == 5:
            threshold = click.prompt(
                "Enter the coupling threshold 'CP' (e.g. 0.1)",
                type=float,
                default=threshold,
            )
            click.echo(format_modules(analyzer.identify_modules(threshold)))
        elif choice == 0:
            click.echo("Goodbye.")
            return
        else:
            click.echo("Invalid choice. Please try again.")


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=True, dir_okay=True))
@click.option(
    "-t", "--threshold",
    type=float,
    default=DEFAULT_THRESHOLD,
    help=f"Cohesion threshold CP for module identification (default: {DEFAULT_THRESHOLD})"
)
@click.option(
    "-o", "--output",
    type=str,
    default=None,
    help="Output file path (e.g., report.md, modules.json, report.txt)"
)
@click.option(
    "--coupling/--no-coupling",
    default=True,
    help="Include the weighted coupling graph (default: on)"
)
@click.option(
    "--modules/--no-modules",
    default=True,
    help="Include the identified modules (default: on)"
)
@click.option("--stats", is_flag=True, help="Include project statistics")
@click.option("--tree", is_flag=True, help="Include the class tree")
@click.option("--calls", is_flag=True, help="Include the method call graph")
@click.option(
    "-e", "--exclude",
    multiple=True,
    help="Glob patterns to exclude (repeatable)"
)
@click.option(
    "-f", "--focus",
    multiple=True,
    help="Only analyze matching paths (repeatable)"
)
@click.option(
    "-i", "--interactive",
    is_flag=True,
    help="Open the interactive menu after analysis"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show debug logging for all stages"
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Hide progress output"
)
@click.version_option(version=__version__)
def main(
    path: str,
    threshold: float,
    output: Optional[str],
    coupling: bool,
    modules: bool,
    stats: bool,
    tree: bool,
    calls: bool,
    exclude: tuple,
    focus: tuple,
    interactive: bool,
    verbose: bool,
    quiet: bool,
):
    """
    Identify modules in a codebase from the coupling between its classes.

    PATH is a Java source directory, or a JSON call graph file.

    Examples:

      # Coupling graph and modules at the default threshold
      cce ./src

      # Stricter modules, full markdown report
      cce ./src -t 0.2 --stats --tree --calls -o report.md

      # Explore interactively
      cce ./src -i
    """
    root_path = Path(path).resolve()

    # Config values override defaults, but explicit CLI args override config
    config = load_config(root_path)
    threshold = merge_config_with_cli(config, threshold, "threshold", DEFAULT_THRESHOLD)
    try:
        threshold = float(threshold)
    except (TypeError, ValueError):
        click.echo(f"❌ Invalid threshold in config: {threshold!r}", err=True)
        sys.exit(1)
    verbose = merge_config_with_cli(config, verbose, "verbose", False)
    if output is None and "output" in config:
        output = config["output"]
    if not exclude and isinstance(config.get("exclude"), list):
        exclude = tuple(config["exclude"])
    if not focus and isinstance(config.get("focus"), list):
        focus = tuple(config["focus"])

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if output:
        ext = Path(output).suffix.lower()
        if ext not in EXTENSION_FORMAT_MAP:
            valid_exts = ', '.join(EXTENSION_FORMAT_MAP.keys())
            click.echo(f"❌ Invalid output extension '{ext}'. Valid: {valid_exts}", err=True)
            sys.exit(1)

    if not quiet:
        click.echo(f"📂 Analyzing: {root_path}")

    try:
        analyzer = ModuleAnalyzer.from_path(
            root_path,
            exclude_patterns=list(exclude),
            focus_patterns=list(focus),
            on_progress=None if quiet else print_progress,
        )
    except (InvalidCallGraphError, OSError, ImportError) as e:
        click.echo(f"❌ Analysis failed: {e}", err=True)
        sys.exit(1)

    if not quiet:
        click.echo(f"   Found {len(analyzer.units)} classes, {analyzer.total_calls} inter-class calls")

    if interactive:
        run_menu(analyzer, threshold)
        return

    sections = [
        name for name, enabled in (
            ("coupling", coupling),
            ("modules", modules),
            ("stats", stats),
            ("tree", tree),
            ("calls", calls),
        )
        if enabled
    ]

    output_format = OutputFormat(EXTENSION_FORMAT_MAP[Path(output).suffix.lower()]) if output else OutputFormat.TEXT
    report = report_analysis(
        analyzer=analyzer,
        root_path=root_path,
        threshold=threshold,
        output_format=output_format,
        sections=sections,
        method_calls=method_call_graph(list(analyzer.units)) if calls else None,
    )

    if output:
        Path(output).write_text(report)
        click.echo(f"✅ Report written to: {output}")
    else:
        click.echo(report)


# Entry point alias for pyproject.toml
cli = main


if __name__ == "__main__":
    main()
