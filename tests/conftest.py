"""Shared fixtures for code_coupling_engine tests."""

import pytest

from code_coupling_engine.call_graph import CallGraph
from code_coupling_engine.models import CodeUnit


def make_graph(names, calls=None):
    """Build a call graph over single-letter units.

    ``calls`` maps (caller, callee) name pairs to counts.
    Returns the graph and a name -> unit dict.
    """
    units = {name: CodeUnit(name) for name in names}
    graph = CallGraph(list(units.values()))
    for (caller, callee), count in (calls or {}).items():
        graph.add_call(units[caller], units[callee], count)
    return graph, units


@pytest.fixture
def abc_graph():
    """A->B=5, B->A=3, B->C=2: coupling(A,B)=0.8, coupling(B,C)=0.2."""
    return make_graph("ABC", {("A", "B"): 5, ("B", "A"): 3, ("B", "C"): 2})
