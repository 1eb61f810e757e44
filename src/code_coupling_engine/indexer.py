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
Code indexer - extracts classes from source files and builds the call graph.

Invocation targets are resolved from the receiver expression:

- no receiver, ``this``: the calling class or the nearest superclass declaring the method
- ``super``: the superclass chain
- a field, parameter or local variable: its declared type
- a class name: a static call on that class

A call is counted when the target is a known class declaring the invoked
method and differs from the calling class.
"""

from pathlib import Path
from typing import Callable, Dict, List, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed
import fnmatch
import logging
import os
import re

from .call_graph import CallGraph
from .models import CodeUnit, Invocation, MethodInfo
from .languages import get_extractor, detect_language, extensions_for_language


logger = logging.getLogger(__name__)

# Default patterns to always exclude
DEFAULT_EXCLUDES = [
    "*.git/*",
    "*node_modules/*",
    "*build/*",
    "*target/*",
    "*.gradle/*",
    "*.idea/*",
]

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
_QUALIFIED = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)+$")


def index_codebase(
    root_path: Path,
    exclude_patterns: Optional[List[str]] = None,
    focus_patterns: Optional[List[str]] = None,
    language: str = "java",
    on_progress: Optional[Callable[[int, int, str], None]] = None,
) -> CallGraph:
    """
    Index a codebase and build its class-level call graph.

    Args:
        root_path: Root directory to scan
        exclude_patterns: Glob patterns to exclude (added to defaults)
        focus_patterns: Only include files matching these patterns
        language: Source language to extract
        on_progress: Optional callback (current, total, message)

    Returns:
        CallGraph whose units are sorted by qualified name

    Raises:
        FileNotFoundError: If root_path does not exist
        NotADirectoryError: If root_path is not a directory
        ImportError: If the tree-sitter grammar is not installed
    """
    root_path = Path(root_path)
    if not root_path.exists():
        raise FileNotFoundError(f"Path does not exist: {root_path}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Not a directory: {root_path}")

    extractor = get_extractor(language)
    extractor.prepare()

    source_files = _find_source_files(
        root_path=root_path,
        exclude_patterns=DEFAULT_EXCLUDES + (exclude_patterns or []),
        focus_patterns=focus_patterns,
        language=language,
    )
    logger.info("Found %d source files under %s", len(source_files), root_path)

    units: List[CodeUnit] = []
    processed = 0

    # Each file gets its own extractor: tree-sitter parsers are not shared across threads
    with ThreadPoolExecutor(max_workers=os.cpu_count()) as executor:
        futures = {
            executor.submit(_process_file, file_path, root_path, language): file_path
            for file_path in source_files
        }

        for future in as_completed(futures):
            file_path = futures[future]
            try:
                units.extend(future.result())
            except Exception as e:
                logger.warning("Failed to process %s: %s", file_path, e)
            processed += 1
            if on_progress:
                on_progress(processed, len(source_files), "files")

    units.sort(key=lambda u: (u.qualified_name, str(u.file_path)))
    units = _drop_duplicate_units(units)
    graph = build_call_graph(units)
    logger.info("Indexed %d classes, %d inter-class calls", len(graph), graph.total())
    return graph


def _drop_duplicate_units(units: List[CodeUnit]) -> List[CodeUnit]:
    """Keep the first unit declared under each qualified name."""
    unique: List[CodeUnit] = []
    seen: Dict[str, CodeUnit] = {}
    for unit in units:
        first = seen.get(unit.qualified_name)
        if first is not None:
            logger.warning(
                "Class %s is declared in both %s and %s; keeping the first",
                unit.qualified_name, first.location, unit.location,
            )
            continue
        seen[unit.qualified_name] = unit
        unique.append(unit)
    return unique


def build_call_graph(units: List[CodeUnit]) -> CallGraph:
    """Resolve the invocations of every unit into class-level call counts."""
    resolver = _Resolver(units)
    graph = CallGraph(units)

    for unit in units:
        for method in unit.methods:
            for invocation in method.invocations:
                target = resolver.resolve(unit, method, invocation)
                if target is not None and target != unit:
                    graph.add_call(unit, target)

    return graph


def method_call_graph(units: List[CodeUnit]) -> Dict[str, List[str]]:
    """
    Method-level call graph, ``"Class.method" -> ["Callee.method", "name (ext)", ...]``.

    Invocations that cannot be resolved to a known class are marked ``(ext)``.
    """
    resolver = _Resolver(units)
    graph: Dict[str, List[str]] = {}

    for unit in units:
        for method in unit.methods:
            callees = graph.setdefault(f"{unit.name}.{method.name}", [])
            for invocation in method.invocations:
                target = resolver.resolve(unit, method, invocation)
                if target is not None:
                    callee = f"{target.name}.{invocation.method_name}"
                else:
                    callee = f"{invocation.method_name} (ext)"
                if callee not in callees:
                    callees.append(callee)

    return graph


class _Resolver:
    """Maps invocations to the known class that declares the invoked method."""

    def __init__(self, units: List[CodeUnit]):
        self._by_name: Dict[str, List[CodeUnit]] = {}
        for unit in units:
            self._by_name.setdefault(unit.name, []).append(unit)
            if unit.qualified_name != unit.name:
                self._by_name.setdefault(unit.qualified_name, []).append(unit)

    def lookup(self, name: Optional[str], context: CodeUnit) -> Optional[CodeUnit]:
        """Known class by simple or qualified name, preferring the caller's package."""
        if not name:
            return None
        candidates = self._by_name.get(name)
        if not candidates:
            return None
        for candidate in candidates:
            if candidate.package == context.package:
                return candidate
        return candidates[0]

    def resolve(self, unit: CodeUnit, method: MethodInfo, invocation: Invocation) -> Optional[CodeUnit]:
        receiver = invocation.receiver
        name = invocation.method_name

        if receiver is None or receiver == "this":
            return self._declaring(unit, name)
        if receiver == "super":
            return self._declaring(self.lookup(unit.superclass, unit), name)

        if receiver.startswith("this."):
            receiver = receiver[len("this."):]
            type_name = self._field_type(unit, receiver) if _IDENTIFIER.match(receiver) else None
            return self._declaring(self.lookup(type_name, unit), name)

        if _IDENTIFIER.match(receiver):
            type_name = method.type_of(receiver) or self._field_type(unit, receiver)
            if type_name is not None:
                return self._declaring(self.lookup(type_name, unit), name)
            # Static call on a class
            return self._declaring(self.lookup(receiver, unit), name)

        if _QUALIFIED.match(receiver):
            return self._declaring(self.lookup(receiver, unit), name)

        return None

    def _field_type(self, unit: CodeUnit, field_name: str) -> Optional[str]:
        for owner in self._hierarchy(unit):
            type_name = owner.field_type(field_name)
            if type_name:
                return type_name
        return None

    def _declaring(self, unit: Optional[CodeUnit], method_name: str) -> Optional[CodeUnit]:
        if unit is None:
            return None
        for owner in self._hierarchy(unit):
            if owner.declares(method_name):
                return owner
        return None

    def _hierarchy(self, unit: CodeUnit):
        """The unit followed by its known superclasses."""
        seen = set()
        current: Optional[CodeUnit] = unit
        while current is not None and current not in seen:
            seen.add(current)
            yield current
            current = self.lookup(current.superclass, current)


def _find_source_files(
    root_path: Path,
    exclude_patterns: List[str],
    focus_patterns: Optional[List[str]],
    language: str,
) -> List[Path]:
    """Find all source files matching criteria."""
    extensions = extensions_for_language(language)
    source_files = []

    for file_path in sorted(root_path.rglob("*")):
        if not file_path.is_file():
            continue

        if file_path.suffix.lower() not in extensions:
            continue

        # Make relative for pattern matching
        rel_path = str(file_path.relative_to(root_path))

        if any(fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(str(file_path), pat)
               for pat in exclude_patterns):
            continue

        # Check focus patterns (if specified, file must match at least one)
        if focus_patterns:
            if not any(fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(file_path.name, pat)
                       for pat in focus_patterns):
                continue

        source_files.append(file_path)

    return source_files


def _process_file(file_path: Path, root_path: Path, language: str) -> List[CodeUnit]:
    """Extract the units declared in a single file."""
    if detect_language(file_path) != language:
        return []

    content = file_path.read_text(encoding="utf-8", errors="replace")
    extractor = get_extractor(language)
    return extractor.extract(content=content, file_path=file_path.relative_to(root_path))
