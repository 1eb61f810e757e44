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
Coupling matrix - normalized call traffic between pairs of code units.

Coupling(A, B) = (calls(A -> B) + calls(B -> A)) / total inter-unit calls
"""

from typing import Dict, Iterator, Sequence, Tuple
import logging

import numpy as np

from .call_graph import CallGraph, InvalidCallGraphError
from .models import CodeUnit

logger = logging.getLogger(__name__)


class CouplingMatrix:
    """
    Symmetric coupling between every pair of units.

    Directed call counts are kept as an integer matrix indexed by unit
    position. Both matrices are read-only once built.
    """

    def __init__(self, units: Sequence[CodeUnit], counts: np.ndarray):
        self._units: Tuple[CodeUnit, ...] = tuple(units)
        self._index: Dict[CodeUnit, int] = {u: i for i, u in enumerate(self._units)}
        self._counts = counts
        self._symmetric = counts + counts.T
        self._symmetric.setflags(write=False)
        self._total = int(counts.sum())

    @classmethod
    def build(cls, units: Sequence[CodeUnit], call_graph: CallGraph) -> "CouplingMatrix":
        """
        Build the matrix from a unit set and its directed call counts.

        Raises:
            InvalidCallGraphError: If a call references a unit outside ``units``,
                a count is negative, a self-call is recorded or a unit is listed twice
        """
        units = list(units)
        index: Dict[CodeUnit, int] = {}
        for i, unit in enumerate(units):
            if unit in index:
                raise InvalidCallGraphError(f"Unit listed twice: {unit.qualified_name}")
            index[unit] = i

        counts = np.zeros((len(units), len(units)), dtype=np.int64)
        for caller, callee, count in call_graph.edges():
            for unit in (caller, callee):
                if unit not in index:
                    raise InvalidCallGraphError(
                        f"Call {caller.qualified_name} -> {callee.qualified_name} "
                        f"references unknown unit {unit.qualified_name}"
                    )
            if count < 0:
                raise InvalidCallGraphError(
                    f"Negative call count {count} for {caller.qualified_name} -> {callee.qualified_name}"
                )
            if caller == callee:
                if count:
                    raise InvalidCallGraphError(f"Self-call recorded for {caller.qualified_name}")
                continue
            counts[index[caller], index[callee]] += count

        counts.setflags(write=False)
        matrix = cls(units, counts)
        logger.info("Coupling matrix: %d units, %d inter-unit calls", len(units), matrix.total_calls)
        return matrix

    @classmethod
    def from_call_graph(cls, call_graph: CallGraph) -> "CouplingMatrix":
        return cls.build(call_graph.list_units(), call_graph)

    @property
    def units(self) -> Tuple[CodeUnit, ...]:
        return self._units

    @property
    def total_calls(self) -> int:
        """Normalization denominator: sum of all inter-unit call counts."""
        return self._total

    @property
    def symmetric_counts(self) -> np.ndarray:
        """calls(i -> j) + calls(j -> i), read-only, zero diagonal."""
        return self._symmetric

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, unit: CodeUnit) -> bool:
        return unit in self._index

    def calls(self, caller: CodeUnit, callee: CodeUnit) -> int:
        """Directed call count, 0 for unknown units."""
        i, j = self._index.get(caller), self._index.get(callee)
        if i is None or j is None:
            return 0
        return int(self._counts[i, j])

    def coupling(self, a: CodeUnit, b: CodeUnit) -> float:
        """Coupling between two units, 0.0 when there is no information."""
        i, j = self._index.get(a), self._index.get(b)
        if i is None or j is None:
            return 0.0
        return self.coupling_at(i, j)

    def coupling_at(self, i: int, j: int) -> float:
        if self._total == 0 or i == j:
            return 0.0
        return int(self._symmetric[i, j]) / self._total

    def normalize(self, calls: int) -> float:
        """Convert a sum of symmetric call counts into a coupling value."""
        if self._total == 0:
            return 0.0
        return calls / self._total

    def internal_calls(self, indices: Sequence[int]) -> int:
        """Symmetric call count summed over every unordered pair of ``indices``."""
        if len(indices) < 2:
            return 0
        idx = np.asarray(indices)
        sub = self._symmetric[np.ix_(idx, idx)]
        return int(sub[np.triu_indices(len(idx), k=1)].sum())

    def pairs(self) -> Iterator[Tuple[CodeUnit, CodeUnit, float]]:
        """Yield (a, b, coupling) for unordered pairs with positive coupling, in unit order."""
        if self._total == 0:
            return
        rows, cols = np.nonzero(np.triu(self._symmetric, k=1))
        for i, j in zip(rows.tolist(), cols.tolist()):
            yield self._units[i], self._units[j], self.coupling_at(i, j)

    def as_array(self) -> np.ndarray:
        """Dense coupling matrix (float), zero diagonal."""
        if self._total == 0:
            return np.zeros(self._symmetric.shape, dtype=float)
        return self._symmetric / self._total

    def __repr__(self) -> str:
        return f"CouplingMatrix(units={len(self._units)}, total_calls={self._total})"
