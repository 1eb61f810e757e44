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
Base extractor interface.
"""

from abc import ABC, abstractmethod
from typing import List
from pathlib import Path

from ..models import CodeUnit


class BaseExtractor(ABC):
    """Abstract base class for language-specific unit extractors."""

    def prepare(self) -> None:
        """Load parsing resources. Raises ImportError if they are missing."""

    @abstractmethod
    def extract(self, content: str, file_path: Path) -> List[CodeUnit]:
        """
        Extract code units from file content.

        Args:
            content: Full file content
            file_path: Path to the file, relative to the analyzed root

        Returns:
            List of CodeUnit objects with their fields, methods and invocations
        """
        pass
