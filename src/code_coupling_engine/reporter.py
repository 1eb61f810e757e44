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
Report generator - formats coupling and module results for output.

Supports text, markdown, and json output formats. A report is made of
sections: the weighted coupling graph, the identified modules, project
statistics, the class tree and the method call graph.
"""

from dataclasses import dataclass, asdict, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple
from pathlib import Path
from enum import Enum
import json
import math
from datetime import datetime

from .models import CodeUnit, ModuleIdentification

if TYPE_CHECKING:
    from .analyzer import ModuleAnalyzer


class OutputFormat(Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"


SECTIONS = ("coupling", "modules", "stats", "tree", "calls")
DEFAULT_SECTIONS = ("coupling", "modules")

RULE = "━" * 60


@dataclass
class ProjectStats:
    """Size metrics over the analyzed classes."""

    class_count: int
    total_lines: int
    method_count: int
    package_count: int
    avg_methods_per_class: float
    avg_lines_per_method: float
    avg_fields_per_class: float
    max_params: int
    top_by_methods: List[str] = field(default_factory=list)   # Top 10% classes
    top_by_fields: List[str] = field(default_factory=list)
    in_both: List[str] = field(default_factory=list)


def compute_stats(units: Sequence[CodeUnit]) -> ProjectStats:
    """Compute project statistics from extracted units."""
    methods = [m for u in units for m in u.methods]
    n = len(units)

    top_n = max(1, math.ceil(n * 0.1))
    top_methods = sorted(units, key=lambda u: len(u.methods), reverse=True)[:top_n]
    top_fields = sorted(units, key=lambda u: len(u.fields), reverse=True)[:top_n]

    return ProjectStats(
        class_count=n,
        total_lines=sum(u.line_count for u in units),
        method_count=len(methods),
        package_count=len({u.package or "" for u in units}),
        avg_methods_per_class=len(methods) / n if n else 0.0,
        avg_lines_per_method=sum(m.line_count for m in methods) / len(methods) if methods else 0.0,
        avg_fields_per_class=sum(len(u.fields) for u in units) / n if n else 0.0,
        max_params=max((m.param_count for m in methods), default=0),
        top_by_methods=[u.name for u in top_methods],
        top_by_fields=[u.name for u in top_fields],
        in_both=[u.name for u in top_methods if u in top_fields],
    )


def report_analysis(
    analyzer: "ModuleAnalyzer",
    root_path: Path,
    threshold: float,
    output_format: OutputFormat = OutputFormat.TEXT,
    sections: Sequence[str] = DEFAULT_SECTIONS,
    method_calls: Optional[Dict[str, List[str]]] = None,
) -> str:
    """
    Generate a report of the coupling analysis.

    Args:
        analyzer: ModuleAnalyzer holding the coupling matrix
        root_path: Analyzed path (for display)
        threshold: Cohesion threshold for module identification
        output_format: Desired output format
        sections: Sections to include, any of SECTIONS
        method_calls: Method-level call graph, required for the "calls" section

    Returns:
        Formatted report string
    """
    unknown = set(sections) - set(SECTIONS)
    if unknown:
        raise ValueError(f"Unknown report sections: {', '.join(sorted(unknown))}")

    data = _ReportData(
        root_path=root_path,
        threshold=threshold,
        units=list(analyzer.units),
        total_calls=analyzer.total_calls,
        pairs=[(a, b, analyzer.matrix.calls(a, b) + analyzer.matrix.calls(b, a), c)
               for a, b, c in analyzer.coupling_pairs()],
        modules=analyzer.identify_modules(threshold) if "modules" in sections else None,
        method_calls=method_calls or {},
    )

    if output_format == OutputFormat.TEXT:
        return _format_text(data, sections)
    elif output_format == OutputFormat.MARKDOWN:
        return _format_markdown(data, sections)
    elif output_format == OutputFormat.JSON:
        return _format_json(data, sections)
    else:
        raise ValueError(f"Unknown format: {output_format}")


@dataclass
class _ReportData:
    root_path: Path
    threshold: float
    units: List[CodeUnit]
    total_calls: int
    pairs: List[Tuple[CodeUnit, CodeUnit, int, float]]
    modules: Optional[ModuleIdentification]
    method_calls: Dict[str, List[str]]


# ---------------------------------------------------------------------------
# Text sections, also used by the interactive menu
# ---------------------------------------------------------------------------

def format_coupling_graph(pairs: Sequence[Tuple[CodeUnit, CodeUnit, float]], total_calls: int) -> str:
    """Weighted coupling graph, one line per coupled pair."""
    lines = ["🔗 Weighted Coupling Graph", RULE]
    if total_calls == 0:
        lines.append("No inter-class calls detected. Coupling is zero everywhere.")
        return "\n".join(lines)

    lines.append(f"   Inter-class calls: {total_calls}")
    for a, b, coupling in pairs:
        lines.append(f"Coupling({a.name}, {b.name}) = {coupling:.4f}")
    lines.append(RULE)
    return "\n".join(lines)


def format_modules(result: ModuleIdentification) -> str:
    """Numbered list of modules with the size-ratio warning."""
    lines = [f"🧩 Module Identification | Threshold CP = {result.threshold:.4f}", RULE]
    if result.insufficient_units:
        lines.append("Not enough classes to form modules.")
        return "\n".join(lines)

    lines.append("Identified modules:")
    for module in result.modules:
        lines.append(f"  - {module}")
    if result.warning:
        lines.append(f"⚠️  Warning: {result.warning}.")
    lines.append(RULE)
    return "\n".join(lines)


def format_stats(stats: ProjectStats) -> str:
    lines = [
        "📊 Statistics",
        RULE,
        f"Classes: {stats.class_count}",
        f"Total lines of code: {stats.total_lines}",
        f"Methods: {stats.method_count}",
        f"Packages: {stats.package_count}",
        f"Average methods per class: {stats.avg_methods_per_class:.2f}",
        f"Average lines per method: {stats.avg_lines_per_method:.2f}",
        f"Average fields per class: {stats.avg_fields_per_class:.2f}",
        "",
        "Top 10% classes by methods:",
    ]
    lines.extend(f"  - {name}" for name in stats.top_by_methods)
    lines.append("Top 10% classes by fields:")
    lines.extend(f"  - {name}" for name in stats.top_by_fields)
    lines.append("Classes in both categories:")
    lines.extend(f"  - {name}" for name in stats.in_both)
    lines.append(f"Maximum parameters in a method: {stats.max_params}")
    return "\n".join(lines)


def format_class_tree(units: Sequence[CodeUnit]) -> str:
    """Classes with their package, superclass, fields and methods."""
    lines = ["🌳 Class Tree", RULE]
    for unit in units:
        lines.append(
            f"Class: {unit.name} (package: {unit.package or 'default'}, "
            f"extends: {unit.superclass or 'none'})"
        )
        if unit.fields:
            lines.append("  Fields:")
            lines.extend(f"    - {f.type_name} {f.name}" for f in unit.fields)
        if unit.methods:
            lines.append("  Methods:")
            lines.extend(
                f"    - {m.name}({m.param_count} params, {m.line_count} lines)"
                for m in unit.methods
            )
    return "\n".join(lines)


def format_method_calls(method_calls: Dict[str, List[str]]) -> str:
    lines = ["📞 Method Call Graph", RULE]
    for caller, callees in method_calls.items():
        lines.append(f"Method: {caller}")
        if not callees:
            lines.append("  -> calls nothing")
        lines.extend(f"  -> {callee}" for callee in callees)
    return "\n".join(lines)


def _format_text(data: _ReportData, sections: Sequence[str]) -> str:
    """Plain text format with unicode decorations."""
    lines = [
        f"🔍 Coupling analysis of {data.root_path}",
        f"   Classes: {len(data.units)} | Inter-class calls: {data.total_calls}",
        "",
    ]

    for section in sections:
        if section == "coupling":
            lines.append(format_coupling_graph([(a, b, c) for a, b, _, c in data.pairs], data.total_calls))
        elif section == "modules":
            lines.append(format_modules(data.modules))
        elif section == "stats":
            lines.append(format_stats(compute_stats(data.units)))
        elif section == "tree":
            lines.append(format_class_tree(data.units))
        elif section == "calls":
            lines.append(format_method_calls(data.method_calls))
        lines.append("")

    return "\n".join(lines)


def _format_markdown(data: _ReportData, sections: Sequence[str]) -> str:
    """Markdown format for documentation."""
    lines = [
        "# Coupling Analysis Report",
        "",
        f"**Path:** `{data.root_path}`  ",
        f"**Classes:** {len(data.units)}  ",
        f"**Inter-class Calls:** {data.total_calls}",
        "",
    ]

    for section in sections:
        if section == "coupling":
            lines.append("## Weighted Coupling Graph")
            lines.append("")
            if data.total_calls == 0:
                lines.append("No inter-class calls detected.")
            else:
                lines.append("| Class A | Class B | Calls | Coupling |")
                lines.append("|---------|---------|-------|----------|")
                for a, b, calls, coupling in data.pairs:
                    lines.append(f"| `{a.name}` | `{b.name}` | {calls} | {coupling:.4f} |")
            lines.append("")

        elif section == "modules":
            result = data.modules
            lines.append(f"## Modules (threshold {result.threshold:.4f})")
            lines.append("")
            if result.insufficient_units:
                lines.append("Not enough classes to form modules.")
            else:
                for module in result.modules:
                    members = ", ".join(f"`{name}`" for name in module.cluster.names)
                    lines.append(f"- **{module.label}** (cohesion {module.cohesion:.4f}): {members}")
                if result.warning:
                    lines.append("")
                    lines.append(f"> ⚠️ {result.warning}")
            lines.append("")

        elif section == "stats":
            stats = compute_stats(data.units)
            lines.append("## Statistics")
            lines.append("")
            lines.append("| Metric | Value |")
            lines.append("|--------|-------|")
            for key, value in asdict(stats).items():
                if isinstance(value, list):
                    value = ", ".join(value) or "-"
                elif isinstance(value, float):
                    value = f"{value:.2f}"
                lines.append(f"| {key.replace('_', ' ')} | {value} |")
            lines.append("")

        elif section == "tree":
            lines.append("## Classes")
            lines.append("")
            for unit in data.units:
                lines.append(f"### `{unit.qualified_name}`")
                lines.append("")
                lines.append(f"Extends: {unit.superclass or 'none'} | `{unit.location}`")
                lines.append("")
                for f in unit.fields:
                    lines.append(f"- field `{f.type_name} {f.name}`")
                for m in unit.methods:
                    lines.append(f"- method `{m.name}` ({m.param_count} params, {m.line_count} lines)")
                lines.append("")

        elif section == "calls":
            lines.append("## Method Call Graph")
            lines.append("")
            for caller, callees in data.method_calls.items():
                lines.append(f"- `{caller}` → {', '.join(f'`{c}`' for c in callees) or 'nothing'}")
            lines.append("")

    return "\n".join(lines)


def _format_json(data: _ReportData, sections: Sequence[str]) -> str:
    """JSON format for programmatic use."""
    out = {
        "meta": {
            "path": str(data.root_path),
            "threshold": data.threshold,
            "unit_count": len(data.units),
            "total_calls": data.total_calls,
            "timestamp": datetime.now().isoformat(),
        },
    }

    for section in sections:
        if section == "coupling":
            out["coupling"] = [
                {
                    "a": a.qualified_name,
                    "b": b.qualified_name,
                    "calls": calls,
                    "coupling": round(coupling, 6),
                }
                for a, b, calls, coupling in data.pairs
            ]
        elif section == "modules":
            result = data.modules
            out["modules"] = {
                "insufficient_units": result.insufficient_units,
                "warning": result.warning,
                "items": [
                    {
                        "index": module.index,
                        "units": [u.qualified_name for u in module.units],
                        "cohesion": round(module.cohesion, 6),
                        "merge_coupling": round(module.cluster.merge_coupling, 6),
                    }
                    for module in result.modules
                ],
            }
        elif section == "stats":
            out["stats"] = asdict(compute_stats(data.units))
        elif section == "tree":
            out["classes"] = [
                {
                    "name": unit.qualified_name,
                    "file": str(unit.file_path) if unit.file_path else None,
                    "superclass": unit.superclass,
                    "fields": [{"name": f.name, "type": f.type_name} for f in unit.fields],
                    "methods": [
                        {"name": m.name, "params": m.param_count, "lines": m.line_count}
                        for m in unit.methods
                    ],
                }
                for unit in data.units
            ]
        elif section == "calls":
            out["method_calls"] = data.method_calls

    return json.dumps(out, indent=2)
