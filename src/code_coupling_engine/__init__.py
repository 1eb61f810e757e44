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
Code Coupling Engine - Identify logical modules from class coupling.

Measures how strongly classes are coupled through method calls, clusters
them hierarchically and cuts the dendrogram into modules with a cohesion
threshold.
"""

__version__ = "0.1.0"

from .models import CodeUnit, Cluster, Dendrogram, Module, ModuleIdentification
from .call_graph import CallGraph, InvalidCallGraphError, load_call_graph
from .coupling import CouplingMatrix
from .clusterer import build_dendrogram
from .extractor import extract_modules, average_internal_coupling
from .indexer import index_codebase
from .analyzer import ModuleAnalyzer
from .reporter import report_analysis
from .config import load_config, find_config_file

__all__ = [
    "__version__",
    "CodeUnit",
    "Cluster",
    "Dendrogram",
    "Module",
    "ModuleIdentification",
    "CallGraph",
    "InvalidCallGraphError",
    "load_call_graph",
    "CouplingMatrix",
    "build_dendrogram",
    "extract_modules",
    "average_internal_coupling",
    "index_codebase",
    "ModuleAnalyzer",
    "report_analysis",
    "load_config",
    "find_config_file",
]
