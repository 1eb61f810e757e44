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
Language-specific unit extraction.

Uses tree-sitter grammars to find classes, their members and the method
invocations in each method body.
"""

from pathlib import Path
from typing import Optional, Set

from .base import BaseExtractor


# Extension to language mapping
EXTENSION_MAP = {
    ".java": "java",
}


def get_extractor(language: str) -> BaseExtractor:
    """
    Get an extractor instance for the given language.

    Raises:
        ValueError: If no extractor exists for the language
    """
    language = language.lower()

    if language == "java":
        from .java import JavaExtractor
        return JavaExtractor()

    raise ValueError(f"Unsupported language: {language}")


def detect_language(file_path: Path) -> Optional[str]:
    """Detect language from file extension."""
    return EXTENSION_MAP.get(file_path.suffix.lower())


def extensions_for_language(language: str) -> Set[str]:
    """Get file extensions for a language."""
    return {ext for ext, lang in EXTENSION_MAP.items() if lang == language.lower()}
