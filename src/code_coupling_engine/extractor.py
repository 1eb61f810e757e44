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
Module extractor - cuts the dendrogram into modules.

Walks the dendrogram from the root. A node whose average internal coupling
is strictly greater than the threshold becomes a module and its subtree is
not visited; otherwise both children are examined. Leaves always become
modules, so the result partitions the unit set for any threshold.
"""

from typing import List
import logging

from .coupling import CouplingMatrix
from .models import Cluster, Dendrogram, Module, ModuleIdentification

logger = logging.getLogger(__name__)


def average_internal_coupling(cluster: Cluster, matrix: CouplingMatrix) -> float:
    """Mean coupling over all unordered member pairs; 0.0 below two members."""
    k = cluster.size
    if k < 2:
        return 0.0
    pairs = k * (k - 1) // 2
    return matrix.normalize(matrix.internal_calls(cluster.indices)) / pairs


def extract_modules(
    dendrogram: Dendrogram,
    matrix: CouplingMatrix,
    threshold: float,
) -> ModuleIdentification:
    """
    Select modules from a dendrogram for a cohesion threshold.

    Never modifies the dendrogram, so it can be called repeatedly with
    different thresholds.

    Args:
        dendrogram: Merge tree built from ``matrix``
        matrix: Coupling matrix the dendrogram was built from
        threshold: Cohesion threshold (not range-checked)

    Returns:
        ModuleIdentification. Its module list is empty and
        ``insufficient_units`` is set when there is no root.
    """
    result = ModuleIdentification(threshold=threshold, unit_count=dendrogram.unit_count)
    root = dendrogram.root
    if root is None:
        logger.info("No dendrogram root: %d unit(s), nothing to extract", dendrogram.unit_count)
        return result

    selected: List[Module] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            selected.append(Module(index=len(selected) + 1, cluster=node, cohesion=0.0))
            continue

        cohesion = average_internal_coupling(node, matrix)
        if cohesion > threshold:
            logger.debug("Accept %s (cohesion %.4f > %.4f)", node.label, cohesion, threshold)
            selected.append(Module(index=len(selected) + 1, cluster=node, cohesion=cohesion))
        else:
            stack.append(node.right)
            stack.append(node.left)

    result.modules = selected

    if result.too_many_modules:
        logger.warning(result.warning)

    return result
