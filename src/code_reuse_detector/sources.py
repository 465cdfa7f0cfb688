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
Source retrieval - finds and reads corpus and query files.

This is the file-system side of the detector: enumeration, extension
filtering, size limits and reading. The core only ever sees
(identifier, text) pairs.
"""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from .errors import InvalidInput, ResourceLimitExceeded, SourceReadError


logger = logging.getLogger(__name__)


MAX_CORPUS_FILE_SIZE = 1024 * 1024            # 1 MB per corpus file
MAX_QUERY_FILE_SIZE = 10 * 1024 * 1024        # 10 MB per checked file
MAX_INTERACTIVE_TEXT_SIZE = 5 * 1024 * 1024   # 5 MB of pasted text

DEFAULT_EXTENSIONS = {".java"}

# Default patterns to always exclude
DEFAULT_EXCLUDES = [
    "*.git/*",
    "*node_modules/*",
    "*build/*",
    "*target/*",
    "*.idea/*",
]


def normalize_extensions(extensions: Optional[Iterable[str]]) -> Set[str]:
    """Lower-case extensions and make sure each starts with a dot."""
    if not extensions:
        return set(DEFAULT_EXTENSIONS)
    return {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}


def find_source_files(
    root_path: Path,
    extensions: Optional[Iterable[str]] = None,
    exclude_patterns: Optional[List[str]] = None,
    focus_patterns: Optional[List[str]] = None,
) -> List[Path]:
    """
    Recursively find source files under root_path.

    Hidden and empty files are skipped.

    Args:
        root_path: Directory to scan
        extensions: File extensions to accept (default: .java)
        exclude_patterns: Glob patterns to exclude (added to defaults)
        focus_patterns: Only include files matching these patterns

    Returns:
        Sorted list of file paths

    Raises:
        InvalidInput: If root_path is not an existing, readable directory
    """
    root_path = _validate_directory(root_path)
    suffixes = normalize_extensions(extensions)
    all_excludes = DEFAULT_EXCLUDES + (exclude_patterns or [])

    source_files = []
    for file_path in root_path.rglob("*"):
        if not file_path.is_file():
            continue

        if file_path.name.startswith("."):
            continue

        if file_path.suffix.lower() not in suffixes:
            continue

        rel_path = str(file_path.relative_to(root_path))

        if any(fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(str(file_path), pat)
               for pat in all_excludes):
            continue

        if focus_patterns:
            if not any(fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(file_path.name, pat)
                       for pat in focus_patterns):
                continue

        try:
            if file_path.stat().st_size == 0:
                continue
        except OSError as e:
            logger.warning(f"Failed to stat {file_path}: {e}")
            continue

        source_files.append(file_path)

    logger.info(f"Found {len(source_files)} source files in {root_path}")
    return sorted(source_files)


def read_source(
    file_path: Path,
    max_size: int = MAX_QUERY_FILE_SIZE,
    extensions: Optional[Iterable[str]] = None,
) -> str:
    """
    Read one source file after validating it.

    Args:
        file_path: File to read
        max_size: Largest accepted file size in bytes
        extensions: Accepted extensions (None accepts any)

    Returns:
        File content (undecodable bytes replaced)

    Raises:
        InvalidInput: Missing path, not a file, or wrong extension
        ResourceLimitExceeded: File larger than max_size
        SourceReadError: File could not be read
    """
    if file_path is None:
        raise InvalidInput("File path cannot be None")

    file_path = Path(file_path)

    if extensions is not None and file_path.suffix.lower() not in normalize_extensions(extensions):
        raise InvalidInput(f"Unsupported file extension: {file_path}")

    if not file_path.exists():
        raise InvalidInput(f"File does not exist: {file_path}")

    if not file_path.is_file():
        raise InvalidInput(f"Path is not a file: {file_path}")

    try:
        size = file_path.stat().st_size
    except OSError as e:
        raise SourceReadError(f"Cannot access {file_path}: {e}") from e

    if size > max_size:
        raise ResourceLimitExceeded(
            f"File too large ({size} bytes): {file_path}", size=size, limit=max_size
        )

    try:
        content = file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise SourceReadError(f"Error reading file {file_path}: {e}") from e

    logger.debug(f"Read {file_path} ({len(content)} characters)")
    return content


def check_text_size(text: str, max_size: int = MAX_INTERACTIVE_TEXT_SIZE):
    """Raise ResourceLimitExceeded if text encodes to more than max_size bytes."""
    size = len(text.encode("utf-8", errors="replace"))
    if size > max_size:
        raise ResourceLimitExceeded(
            f"Text too large ({size} bytes). Maximum size: {max_size} bytes",
            size=size,
            limit=max_size,
        )


def iter_corpus(
    root_path: Path,
    extensions: Optional[Iterable[str]] = None,
    exclude_patterns: Optional[List[str]] = None,
    focus_patterns: Optional[List[str]] = None,
    max_size: int = MAX_CORPUS_FILE_SIZE,
) -> Iterator[Tuple[str, str]]:
    """
    Yield (identifier, text) pairs for every usable corpus file.

    Oversized or unreadable files are logged and skipped. The identifier
    is the file path as a string.
    """
    for file_path in find_source_files(root_path, extensions, exclude_patterns, focus_patterns):
        try:
            yield str(file_path), read_source(file_path, max_size=max_size)
        except (ResourceLimitExceeded, InvalidInput) as e:
            logger.warning(f"Skipping {file_path}: {e.message}")


def _validate_directory(path) -> Path:
    if path is None:
        raise InvalidInput("Directory path cannot be None")

    path = Path(path)
    if not path.exists():
        raise InvalidInput(f"Directory does not exist: {path}")
    if not path.is_dir():
        raise InvalidInput(f"Path is not a directory: {path}")
    if not os.access(path, os.R_OK):
        raise InvalidInput(f"No read permission for directory: {path}")
    return path
