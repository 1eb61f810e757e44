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
Data models for code-coupling-engine.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Iterator
from pathlib import Path


@dataclass(frozen=True)
class FieldInfo:
    """A field declared by a class."""

    name: str
    type_name: str


@dataclass(frozen=True)
class Invocation:
    """A method invocation found inside a method body."""

    method_name: str
    receiver: Optional[str] = None  # Receiver expression text, None if unqualified
    line: int = 0


@dataclass(frozen=True)
class MethodInfo:
    """A method declared by a class."""

    name: str
    param_count: int = 0
    start_line: int = 0
    end_line: int = 0
    invocations: Tuple[Invocation, ...] = ()
    local_types: Tuple[Tuple[str, str], ...] = ()  # (variable, type) for params and locals

    @property
    def line_count(self) -> int:
        """Lines spanned by the declaration, as end - start."""
        return self.end_line - self.start_line

    def type_of(self, variable: str) -> Optional[str]:
        """Declared type of a parameter or local variable."""
        for name, type_name in self.local_types:
            if name == variable:
                return type_name
        return None


@dataclass(frozen=True)
class CodeUnit:
    """
    A unit of code taking part in the call graph (typically a class).

    Equality and hashing only consider ``qualified_name``; every other
    attribute is descriptive and only used for reporting.
    """

    name: str = field(compare=False)
    qualified_name: str = ""
    file_path: Optional[Path] = field(default=None, compare=False)
    package: Optional[str] = field(default=None, compare=False)
    superclass: Optional[str] = field(default=None, compare=False)
    start_line: int = field(default=0, compare=False)
    end_line: int = field(default=0, compare=False)
    fields: Tuple[FieldInfo, ...] = field(default=(), compare=False)
    methods: Tuple[MethodInfo, ...] = field(default=(), compare=False)

    def __post_init__(self):
        if not self.qualified_name:
            object.__setattr__(self, "qualified_name", self.name)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line

    @property
    def location(self) -> str:
        """Human-readable location string."""
        if self.file_path is None:
            return self.qualified_name
        return f"{self.file_path}:{self.start_line}-{self.end_line}"

    def declares(self, method_name: str) -> bool:
        return any(m.name == method_name for m in self.methods)

    def field_type(self, name: str) -> Optional[str]:
        for f in self.fields:
            if f.name == name:
                return f.type_name
        return None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False)
class Cluster:
    """
    A node of the dendrogram.

    Leaves hold a single unit. Internal nodes own exactly two children and
    record the cluster coupling that caused the merge. Clusters compare by
    identity and are never modified after creation.
    """

    id: int                              # Creation order, leaves first
    units: Tuple[CodeUnit, ...]          # Members in unit order
    indices: Tuple[int, ...]             # Matrix positions of the members, ascending
    left: Optional["Cluster"] = None
    right: Optional["Cluster"] = None
    merge_coupling: float = 0.0          # 0.0 for leaves

    def __post_init__(self):
        if (self.left is None) != (self.right is None):
            raise ValueError("A cluster has either two children or none")
        if not self.units:
            raise ValueError("A cluster cannot be empty")

    @classmethod
    def leaf(cls, cluster_id: int, unit: CodeUnit, index: int) -> "Cluster":
        return cls(id=cluster_id, units=(unit,), indices=(index,))

    @classmethod
    def merge(cls, cluster_id: int, left: "Cluster", right: "Cluster", coupling: float) -> "Cluster":
        """Create the parent of two clusters."""
        pairs = sorted(zip(left.indices + right.indices, left.units + right.units), key=lambda p: p[0])
        return cls(
            id=cluster_id,
            units=tuple(u for _, u in pairs),
            indices=tuple(i for i, _ in pairs),
            left=left,
            right=right,
            merge_coupling=coupling,
        )

    @property
    def is_leaf(self) -> bool:
        return self.left is None

    @property
    def size(self) -> int:
        """Number of units in this cluster."""
        return len(self.units)

    @property
    def names(self) -> List[str]:
        return [u.name for u in self.units]

    @property
    def label(self) -> str:
        return "{" + ", ".join(self.names) + "}"

    def __str__(self) -> str:
        return self.label


@dataclass
class Dendrogram:
    """Binary merge tree produced by agglomerative clustering."""

    leaves: List[Cluster]
    merges: List[Cluster] = field(default_factory=list)  # Internal nodes, creation order

    @property
    def root(self) -> Optional[Cluster]:
        """Last merge, or None when fewer than two units were clustered."""
        return self.merges[-1] if self.merges else None

    @property
    def unit_count(self) -> int:
        return len(self.leaves)

    @property
    def insufficient_units(self) -> bool:
        return self.unit_count < 2

    def walk(self) -> Iterator[Cluster]:
        """Pre-order traversal from the root, left child first."""
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            if not node.is_leaf:
                stack.append(node.right)
                stack.append(node.left)


@dataclass(frozen=True)
class Module:
    """A cluster selected as a module by the dendrogram cut."""

    index: int          # 1-based position in the extraction result
    cluster: Cluster
    cohesion: float     # Average internal coupling, 0.0 for single units

    @property
    def units(self) -> Tuple[CodeUnit, ...]:
        return self.cluster.units

    @property
    def size(self) -> int:
        return self.cluster.size

    @property
    def label(self) -> str:
        return f"Module {self.index}"

    def __str__(self) -> str:
        return f"{self.label}: {self.cluster.label}"


@dataclass
class ModuleIdentification:
    """Result of cutting a dendrogram at a cohesion threshold."""

    threshold: float
    unit_count: int
    modules: List[Module] = field(default_factory=list)

    @property
    def insufficient_units(self) -> bool:
        """True when there were not enough units to build a dendrogram."""
        return self.unit_count < 2

    @property
    def max_modules(self) -> int:
        """Recommended upper bound on the module count (half the units)."""
        return self.unit_count // 2

    @property
    def too_many_modules(self) -> bool:
        return self.unit_count > 1 and len(self.modules) > self.max_modules

    @property
    def warning(self) -> Optional[str]:
        if not self.too_many_modules:
            return None
        return (
            f"Module count ({len(self.modules)}) is greater than "
            f"M/2 ({self.max_modules})"
        )

    def __len__(self) -> int:
        return len(self.modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules)
