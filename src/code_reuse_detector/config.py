# Code Reuse Detector - Find reused code across a reference corpus
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
Configuration file support for CRD.

Looks for .crdrc or .crd.toml in the corpus directory or any parent.
"""

import logging
from pathlib import Path
from typing import Optional, Dict, Any

try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # type: ignore
    except ImportError:
        tomllib = None  # type: ignore


logger = logging.getLogger(__name__)


CONFIG_NAMES = [".crdrc", ".crd.toml"]

# Config key -> SimilarityEngine keyword argument
ENGINE_OPTION_KEYS = {
    "report_threshold": "report_threshold",
    "boost_factor": "boost_factor",
    "full_code_bonus": "full_code_bonus",
    "workers": "max_workers",
}


def find_config_file(start_path: Path) -> Optional[Path]:
    """
    Search for .crdrc or .crd.toml in start_path and parent directories.

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to config file if found, None otherwise
    """
    current = Path(start_path).resolve()

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
    Load CRD configuration from the nearest .crdrc or .crd.toml file.

    Returns an empty dict if no config file is found or it cannot be
    parsed.

    Example config file (.crdrc or .crd.toml):
        [crd]
        extensions = [".java"]
        exclude = ["*generated/*"]
        focus = ["*src/main/*"]
        max_file_size = 1048576
        workers = 4
        report_threshold = 10.0
        boost_factor = 1.5
        full_code_bonus = 20.0
        output = "report.md"
        verbose = true
    """
    if tomllib is None:
        return {}

    config_path = find_config_file(path)

    if config_path is None:
        return {}

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring config file {config_path}: {e}")
        return {}

    crd_config = data.get("crd", {})
    if not isinstance(crd_config, dict):
        logger.warning(f"Ignoring config file {config_path}: [crd] is not a table")
        return {}

    logger.debug(f"Loaded config from {config_path}")
    return crd_config


def engine_options(config: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the SimilarityEngine keyword arguments out of a config dict."""
    return {
        kwarg: config[key]
        for key, kwarg in ENGINE_OPTION_KEYS.items()
        if config.get(key) is not None
    }
