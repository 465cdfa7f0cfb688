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
Error types for code-reuse-detector.

Batch ingestion recovers per-entry failures locally and only raises
NoUsableInput when nothing could be loaded. Single operations (one query,
one file check) raise these directly to the caller.
"""

from typing import Optional, Dict, Any


class DetectorError(Exception):
    """Base exception for all detector errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInput(DetectorError):
    """Input rejected before processing (wrong type, bad path, empty id)."""


class SourceReadError(InvalidInput):
    """A source file exists but could not be read."""


class ResourceLimitExceeded(DetectorError):
    """Text or file larger than the configured limit."""

    def __init__(
        self,
        message: str,
        size: Optional[int] = None,
        limit: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.size = size
        self.limit = limit
        self.details.update({"size": size, "limit": limit})


class NoUsableInput(DetectorError):
    """Every entry of an ingestion batch failed."""

    def __init__(self, message: str, report=None):
        super().__init__(message, {"failed": report.failed_count if report else 0})
        self.report = report


class Busy(DetectorError):
    """Another ingestion or query is already running."""
