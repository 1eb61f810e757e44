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
Call graph between code units.

Holds an ordered list of units and directed invocation counts between them.
Graphs come either from the Java indexer or from a JSON document:

    {
        "units": ["Order", "Invoice", "Customer"],
        "calls": [
            {"caller": "Order", "callee": "Invoice", "count": 5},
            ["Invoice", "Customer", 2]
        ]
    }
"""

from collections import Counter
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Tuple, Union
import json
import logging

from .models import CodeUnit

logger = logging.getLogger(__name__)


class InvalidCallGraphError(ValueError):
    """A call graph is structurally invalid (unknown units, negative counts...)."""


class CallGraph:
    """Directed, weighted call graph over an ordered sequence of units."""

    def __init__(self, units: Sequence[CodeUnit] = ()):
        self._units: List[CodeUnit] = list(units)
        self._counts: Counter = Counter()

    def list_units(self) -> List[CodeUnit]:
        """Units in their fixed order."""
        return list(self._units)

    def add_call(self, caller: CodeUnit, callee: CodeUnit, count: int = 1) -> None:
        """Record ``count`` invocations from caller to callee. Self-calls are ignored."""
        if caller == callee:
            return
        self._counts[(caller, callee)] += count

    def call_count(self, caller: CodeUnit, callee: CodeUnit) -> int:
        if caller == callee:
            return 0
        return self._counts.get((caller, callee), 0)

    def edges(self) -> Iterator[Tuple[CodeUnit, CodeUnit, int]]:
        """Yield (caller, callee, count) for every recorded pair."""
        for (caller, callee), count in self._counts.items():
            yield caller, callee, count

    def total(self) -> int:
        return sum(self._counts.values())

    def __len__(self) -> int:
        return len(self._units)

    def __repr__(self) -> str:
        return f"CallGraph(units={len(self._units)}, edges={len(self._counts)})"


def load_call_graph(path: Union[str, Path]) -> CallGraph:
    """
    Load a call graph from a JSON file.

    Callers or callees that are not listed in ``units`` are kept as-is so the
    coupling matrix can reject the graph.

    Raises:
        OSError: If the file cannot be read
        InvalidCallGraphError: If the document does not have the expected shape
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidCallGraphError(f"{path}: invalid JSON ({e})") from e

    return call_graph_from_dict(data, source=str(path))


def call_graph_from_dict(data: dict, source: str = "<dict>") -> CallGraph:
    """Build a call graph from an already decoded JSON document."""
    if not isinstance(data, dict) or not isinstance(data.get("units"), list):
        raise InvalidCallGraphError(f"{source}: expected an object with a 'units' list")

    by_name: Dict[str, CodeUnit] = {}
    for name in data["units"]:
        if not isinstance(name, str):
            raise InvalidCallGraphError(f"{source}: unit names must be strings, got {name!r}")
        if name in by_name:
            raise InvalidCallGraphError(f"{source}: unit listed twice: {name}")
        by_name[name] = CodeUnit(name=name.rsplit(".", 1)[-1], qualified_name=name)

    calls = data.get("calls", [])
    if not isinstance(calls, list):
        raise InvalidCallGraphError(f"{source}: 'calls' must be a list, got {type(calls).__name__}")

    graph = CallGraph(by_name.values())

    for entry in calls:
        caller, callee, count = _parse_call(entry, source)
        graph.add_call(
            by_name.get(caller) or _unknown_unit(caller),
            by_name.get(callee) or _unknown_unit(callee),
            count,
        )

    logger.info("Loaded %d units and %d calls from %s", len(graph), graph.total(), source)
    return graph


def _parse_call(entry, source: str) -> Tuple[str, str, int]:
    if isinstance(entry, dict):
        caller, callee, count = entry.get("caller"), entry.get("callee"), entry.get("count", 1)
    elif isinstance(entry, (list, tuple)) and len(entry) in (2, 3):
        caller, callee = entry[0], entry[1]
        count = entry[2] if len(entry) == 3 else 1
    else:
        raise InvalidCallGraphError(f"{source}: malformed call entry {entry!r}")

    if not isinstance(caller, str) or not isinstance(callee, str):
        raise InvalidCallGraphError(f"{source}: call entry needs caller and callee names: {entry!r}")
    if not isinstance(count, int) or isinstance(count, bool):
        raise InvalidCallGraphError(f"{source}: call count must be an integer: {entry!r}")
    return caller, callee, count


def _unknown_unit(name: str) -> CodeUnit:
    logger.debug("Call references unlisted unit %s", name)
    return CodeUnit(name=name.rsplit(".", 1)[-1], qualified_name=name)
