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
Module analyzer - ties the coupling matrix, clusterer and extractor together.

The coupling matrix is built once per call graph and the dendrogram once on
first use; module identification can then be repeated for any threshold
without recomputation.
"""

from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union
import logging
import threading

from .call_graph import CallGraph, load_call_graph
from .clusterer import build_dendrogram
from .coupling import CouplingMatrix
from .extractor import extract_modules
from .indexer import index_codebase
from .models import CodeUnit, Dendrogram, ModuleIdentification

logger = logging.getLogger(__name__)


class ModuleAnalyzer:
    """Coupling-based module identification over one call graph."""

    def __init__(self, call_graph: CallGraph):
        self.call_graph = call_graph
        self.matrix = CouplingMatrix.from_call_graph(call_graph)
        self._dendrogram: Optional[Dendrogram] = None
        self._lock = threading.Lock()

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        exclude_patterns: Optional[List[str]] = None,
        focus_patterns: Optional[List[str]] = None,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
    ) -> "ModuleAnalyzer":
        """
        Analyze a source directory or a JSON call graph file.

        Raises:
            InvalidCallGraphError: If the call graph is malformed
            OSError: If the path cannot be read
            ImportError: If the tree-sitter grammar is not installed
        """
        path = Path(path)
        if path.is_file() and path.suffix.lower() == ".json":
            graph = load_call_graph(path)
        else:
            graph = index_codebase(
                root_path=path,
                exclude_patterns=exclude_patterns,
                focus_patterns=focus_patterns,
                on_progress=on_progress,
            )
        return cls(graph)

    @property
    def units(self) -> Tuple[CodeUnit, ...]:
        return self.matrix.units

    @property
    def total_calls(self) -> int:
        return self.matrix.total_calls

    def coupling(self, a: CodeUnit, b: CodeUnit) -> float:
        return self.matrix.coupling(a, b)

    def coupling_pairs(self) -> List[Tuple[CodeUnit, CodeUnit, float]]:
        """Unordered unit pairs with positive coupling, in unit order."""
        return list(self.matrix.pairs())

    @property
    def dendrogram(self) -> Dendrogram:
        """Merge tree over all units, built on first access."""
        with self._lock:
            if self._dendrogram is None:
                self._dendrogram = build_dendrogram(self.matrix)
            return self._dendrogram

    def identify_modules(self, threshold: float) -> ModuleIdentification:
        """Cut the dendrogram at ``threshold``."""
        result = extract_modules(self.dendrogram, self.matrix, threshold)
        logger.info(
            "Threshold %.4f: %d module(s) over %d unit(s)",
            threshold, len(result.modules), result.unit_count,
        )
        return result
