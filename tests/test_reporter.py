"""Tests for code_coupling_engine.reporter."""

import json
from pathlib import Path

import pytest

from code_coupling_engine.analyzer import ModuleAnalyzer
from code_coupling_engine.models import CodeUnit, FieldInfo, MethodInfo
from code_coupling_engine.reporter import (
    OutputFormat,
    compute_stats,
    format_class_tree,
    format_coupling_graph,
    format_method_calls,
    format_modules,
    report_analysis,
)

from conftest import make_graph


@pytest.fixture
def analyzer(abc_graph):
    graph, _ = abc_graph
    return ModuleAnalyzer(graph)


def unit(name, methods=(), fields=(), package="shop", superclass=None, lines=(1, 1)):
    return CodeUnit(
        name=name,
        qualified_name=f"{package}.{name}",
        package=package,
        superclass=superclass,
        start_line=lines[0],
        end_line=lines[1],
        fields=tuple(FieldInfo(f, "int") for f in fields),
        methods=tuple(
            MethodInfo(name=m, param_count=p, start_line=1, end_line=1 + n)
            for m, p, n in methods
        ),
    )


# ---------------------------------------------------------------------------
# Text sections
# ---------------------------------------------------------------------------

class TestTextSections:
    def test_coupling_graph(self, analyzer):
        text = format_coupling_graph(analyzer.coupling_pairs(), analyzer.total_calls)
        assert "Coupling(A, B) = 0.8000" in text
        assert "Coupling(B, C) = 0.2000" in text
        assert "Coupling(A, C)" not in text

    def test_coupling_graph_without_calls(self):
        graph, _ = make_graph("AB")
        analyzer = ModuleAnalyzer(graph)
        text = format_coupling_graph(analyzer.coupling_pairs(), analyzer.total_calls)
        assert "No inter-class calls detected" in text

    def test_modules(self, analyzer):
        text = format_modules(analyzer.identify_modules(0.5))
        assert "Module 1: {A, B}" in text
        assert "Module 2: {C}" in text
        assert "Warning: Module count (2) is greater than M/2 (1)" in text

    def test_insufficient_units(self):
        graph, _ = make_graph("A")
        text = format_modules(ModuleAnalyzer(graph).identify_modules(0.5))
        assert "Not enough classes" in text

    def test_class_tree(self):
        text = format_class_tree([unit("Order", methods=[("pay", 2, 4)], fields=["total"], superclass="Base")])
        assert "Class: Order (package: shop, extends: Base)" in text
        assert "    - int total" in text
        assert "    - pay(2 params, 4 lines)" in text

    def test_method_calls(self):
        text = format_method_calls({"Order.pay": ["Invoice.total", "println (ext)"], "Invoice.total": []})
        assert "Method: Order.pay" in text
        assert "  -> println (ext)" in text
        assert "  -> calls nothing" in text


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

class TestComputeStats:
    def test_metrics(self):
        units = [
            unit("Order", methods=[("a", 1, 10), ("b", 3, 20)], fields=["x", "y"], lines=(1, 41)),
            unit("Invoice", methods=[("c", 0, 6)], fields=["z", "w", "v"], lines=(1, 11)),
            unit("Util", package="util", lines=(1, 3)),
        ]
        stats = compute_stats(units)
        assert stats.class_count == 3
        assert stats.total_lines == 52
        assert stats.method_count == 3
        assert stats.package_count == 2
        assert stats.avg_methods_per_class == pytest.approx(1.0)
        assert stats.avg_lines_per_method == pytest.approx(12.0)
        assert stats.avg_fields_per_class == pytest.approx(5 / 3)
        assert stats.max_params == 3
        assert stats.top_by_methods == ["Order"]
        assert stats.top_by_fields == ["Invoice"]
        assert stats.in_both == []

    def test_empty(self):
        stats = compute_stats([])
        assert stats.class_count == 0
        assert stats.avg_methods_per_class == 0.0
        assert stats.max_params == 0


# ---------------------------------------------------------------------------
# report_analysis
# ---------------------------------------------------------------------------

class TestReportAnalysis:
    def test_text(self, analyzer):
        report = report_analysis(analyzer, Path("graph.json"), 0.5)
        assert "Classes: 3 | Inter-class calls: 10" in report
        assert "Module 1: {A, B}" in report

    def test_markdown(self, analyzer):
        report = report_analysis(analyzer, Path("graph.json"), 0.5, OutputFormat.MARKDOWN)
        assert report.startswith("# Coupling Analysis Report")
        assert "| `A` | `B` | 8 | 0.8000 |" in report
        assert "**Module 1** (cohesion 0.8000): `A`, `B`" in report

    def test_json(self, analyzer):
        report = report_analysis(
            analyzer, Path("graph.json"), 0.5, OutputFormat.JSON,
            sections=("coupling", "modules", "stats"),
        )
        data = json.loads(report)
        assert data["meta"]["total_calls"] == 10
        assert data["coupling"][0] == {"a": "A", "b": "B", "calls": 8, "coupling": 0.8}
        assert [m["units"] for m in data["modules"]["items"]] == [["A", "B"], ["C"]]
        assert data["modules"]["insufficient_units"] is False
        assert data["stats"]["class_count"] == 3

    def test_unknown_section(self, analyzer):
        with pytest.raises(ValueError):
            report_analysis(analyzer, Path("."), 0.5, sections=("dendrogram",))
