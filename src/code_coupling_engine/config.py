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
Configuration file support for CCE.

Looks for .ccerc or .cce.toml in the analyzed directory or its parents.
"""

from pathlib import Path
from typing import Optional, Dict, Any
import logging

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

logger = logging.getLogger(__name__)

CONFIG_NAMES = [".ccerc", ".cce.toml"]


def find_config_file(start_path: Path) -> Optional[Path]:
    """
    Search for .ccerc or .cce.toml in start_path and parent directories.

    Args:
        start_path: Directory (or file) to start searching from

    Returns:
        Path to config file if found, None otherwise
    """
    current = start_path.resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_NAMES:
            config_path = current / name
            if config_path.is_file():
                return config_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load CCE configuration for the given path.

    Returns the [cce] table of the nearest config file, or an empty dict if
    there is none or it cannot be read.

    Example config file (.ccerc or .cce.toml):
        [cce]
        threshold = 0.05
        exclude = ["**/test/**"]
        focus = ["*.java"]
        output = "modules.md"
        verbose = true
    """
    config_path = find_config_file(path)

    if config_path is None:
        return {}

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring config file %s: %s", config_path, e)
        return {}

    logger.debug("Loaded config from %s", config_path)
    return data.get("cce", {})
