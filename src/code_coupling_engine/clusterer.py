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
Agglomerative clusterer - builds the merge dendrogram over code units.

At each step the two clusters with the highest cluster coupling are merged,
until a single root remains. Cluster coupling is additive: the sum of the
couplings of every cross pair (a in X, b in Y), not their average.
"""

from typing import Callable, List, Optional, Tuple
import logging

import numpy as np

from .coupling import CouplingMatrix
from .models import Cluster, Dendrogram

logger = logging.getLogger(__name__)


def build_dendrogram(
    matrix: CouplingMatrix,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
) -> Dendrogram:
    """
    Cluster all units of a coupling matrix into a binary merge tree.

    Args:
        matrix: Coupling matrix over the units to cluster
        on_progress: Optional callback (current, total, message)

    Returns:
        Dendrogram with one leaf per unit. It has no root when the matrix
        holds fewer than two units.
    """
    leaves = [Cluster.leaf(i, unit, i) for i, unit in enumerate(matrix.units)]
    dendrogram = Dendrogram(leaves=leaves)

    n = len(leaves)
    if n < 2:
        logger.info("Not enough units to cluster (%d)", n)
        return dendrogram

    # Scores are kept as integer call sums so ties compare exactly.
    # Slot i holds the active cluster whose smallest unit index is i.
    scores = np.array(matrix.symmetric_counts, dtype=np.int64)
    nodes: List[Cluster] = list(leaves)
    active: List[int] = list(range(n))

    for step in range(1, n):
        x, y, calls = _best_pair(scores, active)

        merged = Cluster.merge(
            cluster_id=n + step - 1,
            left=nodes[x],
            right=nodes[y],
            coupling=matrix.normalize(calls),
        )
        logger.debug(
            "Merge %d: %s + %s (coupling %.4f)",
            step, nodes[x].label, nodes[y].label, merged.merge_coupling,
        )

        # Row of the merged cluster is the sum of both rows
        scores[x, :] += scores[y, :]
        scores[:, x] += scores[:, y]
        scores[x, x] = 0
        nodes[x] = merged
        active.remove(y)
        dendrogram.merges.append(merged)

        if on_progress:
            on_progress(step, n - 1, "merges")

    logger.info("Built dendrogram over %d units (%d merges)", n, len(dendrogram.merges))
    return dendrogram


def cluster_coupling(matrix: CouplingMatrix, first: Cluster, second: Cluster) -> float:
    """Sum of coupling(a, b) over every a in ``first`` and b in ``second``."""
    sub = matrix.symmetric_counts[np.ix_(first.indices, second.indices)]
    return matrix.normalize(int(sub.sum()))


def _best_pair(scores: np.ndarray, active: List[int]) -> Tuple[int, int, int]:
    """
    Most coupled pair of active slots.

    Pairs are enumerated as (i, j), i < j, over ``active`` in order; the first
    pair reaching the strict maximum wins.
    """
    idx = np.asarray(active)
    sub = scores[np.ix_(idx, idx)]
    k = len(idx)

    # Everything outside the strict upper triangle is below any legal score
    candidates = np.full((k, k), -1, dtype=np.int64)
    upper = np.triu_indices(k, k=1)
    candidates[upper] = sub[upper]

    # argmax returns the first maximum in row-major (i, j) order
    flat = int(np.argmax(candidates))
    i, j = divmod(flat, k)
    return int(idx[i]), int(idx[j]), int(candidates[i, j])
