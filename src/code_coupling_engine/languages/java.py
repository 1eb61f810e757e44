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
Java extractor using tree-sitter.

Extracts classes (nested ones included) with their package, superclass,
fields and methods. Interfaces, enums and records are not units, but classes
declared inside them are. For each method, collects the invocations made in
its body and the declared types of parameters and local variables.
"""

from typing import List, Optional, Tuple
from pathlib import Path

from .base import BaseExtractor
from ..models import CodeUnit, FieldInfo, Invocation, MethodInfo


# Containers whose members may declare nested classes
_CONTAINER_TYPES = {
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
}
_BODY_TYPES = {"class_body", "interface_body", "enum_body", "enum_body_declarations"}
_TYPE_NODES = {"type_identifier", "generic_type", "scoped_type_identifier", "array_type"}


class JavaExtractor(BaseExtractor):
    """AST-aware Java extractor using tree-sitter."""

    def __init__(self):
        self._parser = None
        self._language = None

    def _ensure_parser(self):
        """Lazy-load tree-sitter parser."""
        if self._parser is not None:
            return

        try:
            import tree_sitter_java as tsjava
            from tree_sitter import Language, Parser

            self._language = Language(tsjava.language())
            self._parser = Parser(self._language)
        except ImportError as e:
            raise ImportError(
                "tree-sitter-java not installed. "
                "Install with: pip install tree-sitter-java"
            ) from e

    def prepare(self) -> None:
        self._ensure_parser()

    def extract(self, content: str, file_path: Path) -> List[CodeUnit]:
        """Extract the classes declared in a Java source file."""
        self._ensure_parser()

        tree = self._parser.parse(content.encode("utf-8"))
        root = tree.root_node
        units: List[CodeUnit] = []

        self._visit(
            node=root,
            file_path=file_path,
            package=_package_name(root),
            outer=(),
            units=units,
        )

        return units

    def _visit(
        self,
        node,
        file_path: Path,
        package: Optional[str],
        outer: Tuple[str, ...],
        units: List[CodeUnit],
    ):
        """Collect class declarations among the children of ``node``."""
        for child in node.named_children:
            if child.type == "class_declaration":
                name = _text(child.child_by_field_name("name"))
                units.append(self._create_unit(child, name, outer, file_path, package))
                body = child.child_by_field_name("body")
                if body is not None:
                    self._visit(body, file_path, package, outer + (name,), units)

            elif child.type in _CONTAINER_TYPES:
                name = _text(child.child_by_field_name("name"))
                body = child.child_by_field_name("body")
                if body is not None:
                    self._visit(body, file_path, package, outer + (name,), units)

            elif child.type in _BODY_TYPES:
                self._visit(child, file_path, package, outer, units)

    def _create_unit(
        self,
        node,
        name: str,
        outer: Tuple[str, ...],
        file_path: Path,
        package: Optional[str],
    ) -> CodeUnit:
        """Create a unit from a class declaration node."""
        qualified = ".".join(([package] if package else []) + list(outer) + [name])

        superclass = None
        extends = node.child_by_field_name("superclass")
        if extends is not None and extends.named_children:
            superclass = _type_name(extends.named_children[0])

        fields: List[FieldInfo] = []
        methods: List[MethodInfo] = []
        body = node.child_by_field_name("body")
        for member in (body.named_children if body is not None else []):
            if member.type == "field_declaration":
                type_name = _type_name(member.child_by_field_name("type"))
                for declarator in member.children_by_field_name("declarator"):
                    fields.append(FieldInfo(
                        name=_text(declarator.child_by_field_name("name")),
                        type_name=type_name or "",
                    ))
            elif member.type == "method_declaration":
                methods.append(self._create_method(member))

        return CodeUnit(
            name=name,
            qualified_name=qualified,
            file_path=file_path,
            package=package,
            superclass=superclass,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            fields=tuple(fields),
            methods=tuple(methods),
        )

    def _create_method(self, node) -> MethodInfo:
        """Create a method from a method declaration node."""
        local_types: List[Tuple[str, str]] = []
        param_count = 0

        params = node.child_by_field_name("parameters")
        for param in (params.named_children if params is not None else []):
            if param.type not in ("formal_parameter", "spread_parameter"):
                continue
            param_count += 1
            binding = _parameter_binding(param)
            if binding:
                local_types.append(binding)

        invocations: List[Invocation] = []
        body = node.child_by_field_name("body")
        if body is not None:
            _scan_body(body, invocations, local_types)

        return MethodInfo(
            name=_text(node.child_by_field_name("name")),
            param_count=param_count,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            invocations=tuple(invocations),
            local_types=tuple(local_types),
        )


def _scan_body(body, invocations: List[Invocation], local_types: List[Tuple[str, str]]):
    """Collect invocations and local declarations in source order."""
    stack = [body]
    while stack:
        node = stack.pop()

        if node.type == "method_invocation":
            receiver = node.child_by_field_name("object")
            invocations.append(Invocation(
                method_name=_text(node.child_by_field_name("name")),
                receiver=_text(receiver) if receiver is not None else None,
                line=node.start_point[0] + 1,
            ))

        elif node.type == "local_variable_declaration":
            type_name = _type_name(node.child_by_field_name("type"))
            for declarator in node.children_by_field_name("declarator"):
                if type_name:
                    local_types.append((_text(declarator.child_by_field_name("name")), type_name))

        elif node.type == "enhanced_for_statement":
            type_name = _type_name(node.child_by_field_name("type"))
            variable = node.child_by_field_name("name")
            if type_name and variable is not None:
                local_types.append((_text(variable), type_name))

        elif node.type == "class_declaration":
            # Local classes are separate scopes
            continue

        stack.extend(reversed(node.named_children))


def _parameter_binding(param) -> Optional[Tuple[str, str]]:
    type_node = param.child_by_field_name("type")
    name_node = param.child_by_field_name("name")

    if param.type == "spread_parameter":
        for child in param.named_children:
            if child.type == "variable_declarator":
                name_node = child.child_by_field_name("name")
            elif type_node is None and child.type in _TYPE_NODES:
                type_node = child

    type_name = _type_name(type_node)
    if name_node is None or not type_name:
        return None
    return _text(name_node), type_name


def _package_name(root) -> Optional[str]:
    for child in root.named_children:
        if child.type == "package_declaration":
            for part in child.named_children:
                if part.type in ("scoped_identifier", "identifier"):
                    return _text(part)
    return None


def _type_name(node) -> Optional[str]:
    """Simple name of a type node (generics and arrays unwrapped)."""
    if node is None:
        return None
    if node.type == "generic_type":
        return _type_name(node.named_children[0]) if node.named_children else None
    if node.type == "array_type":
        return _type_name(node.child_by_field_name("element"))
    if node.type == "scoped_type_identifier":
        return _text(node.named_children[-1])
    return _text(node)


def _text(node) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8")
