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
Data models for code-reuse-detector.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple


# Tags stored in original_content for whole-file fragments
FULL_CODE_TAG = "FULL_CODE"
ALGORITHM_TAG = "ALGORITHM"
WHOLE_FILE_TAGS = frozenset({FULL_CODE_TAG, ALGORITHM_TAG})

# Results at or below this percentage are not worth reporting
REPORT_THRESHOLD = 5.0


@dataclass(frozen=True)
class Fragment:
    """
    A unit of comparison extracted from source text.

    Two fragments are equal when their normalized content is equal, so a
    fragment from one file can stand in for a fragment from another.
    """

    normalized_content: str                    # Canonical form used for matching
    original_content: str = field(compare=False)  # Source text or granularity tag
    line_number: int = field(default=0, compare=False)  # 1-indexed, 0 for whole-file

    def __hash__(self) -> int:
        return hash(self.normalized_content)

    @property
    def is_whole_file(self) -> bool:
        """True for FULL_CODE and ALGORITHM fragments."""
        return self.original_content in WHOLE_FILE_TAGS

    def preview(self, max_chars: int = 50) -> str:
        """Short preview of the original content."""
        text = self.original_content or ""
        if len(text) > max_chars:
            return text[:max_chars - 3] + "..."
        return text


@dataclass(frozen=True)
class CorpusEntry:
    """One ingested reference text."""

    identifier: str                 # Stable path or name
    fragments: Tuple[Fragment, ...]

    @property
    def fragment_count(self) -> int:
        return len(self.fragments)


class Severity(Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_percentage(cls, percentage: float) -> "Severity":
        """Map a similarity percentage onto its severity band."""
        if percentage >= 80:
            return cls.CRITICAL
        if percentage >= 50:
            return cls.HIGH
        if percentage >= 20:
            return cls.MEDIUM
        if percentage >= 5:
            return cls.LOW
        return cls.NONE


@dataclass(frozen=True)
class SimilarityResult:
    """Similarity of a query against one corpus entry."""

    identifier: str
    similarity_percentage: float
    matched_fragments: Mapping[Fragment, List[str]] = field(default_factory=dict)
    matches_count: int = 0          # Corpus fragments that found a match
    total_fragments: int = 0        # Fragments in the corpus entry

    def __post_init__(self):
        # Frozen dataclass: go through object.__setattr__ to normalize fields
        clamped = max(0.0, min(100.0, float(self.similarity_percentage)))
        object.__setattr__(self, "similarity_percentage", clamped)
        object.__setattr__(
            self, "matched_fragments", MappingProxyType(dict(self.matched_fragments or {}))
        )

    @property
    def matched_query_fragment_count(self) -> int:
        """Number of distinct query fragments that matched."""
        return len(self.matched_fragments)

    @property
    def severity(self) -> Severity:
        return Severity.from_percentage(self.similarity_percentage)

    def is_significant(self, threshold: float = REPORT_THRESHOLD) -> bool:
        return self.similarity_percentage > threshold

    @property
    def has_significant_matches(self) -> bool:
        return self.is_significant()

    def __str__(self) -> str:
        return (
            f"SimilarityResult[file={self.identifier}, "
            f"similarity={self.similarity_percentage:.2f}%, matches={self.matched_query_fragment_count}]"
        )


@dataclass(frozen=True)
class IngestFailure:
    identifier: str
    reason: str


@dataclass
class IngestReport:
    """Outcome of a batch ingestion."""

    succeeded: List[str] = field(default_factory=list)
    failures: List[IngestFailure] = field(default_factory=list)
    fragment_count: int = 0

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.succeeded_count + self.failed_count

    def summary(self) -> str:
        """One-line human readable summary."""
        return (
            f"Loaded {self.succeeded_count} of {self.total} entries "
            f"({self.fragment_count} fragments, {self.failed_count} failed)"
        )


@dataclass(frozen=True)
class CorpusStatistics:
    file_count: int = 0
    fragment_count: int = 0
    avg_fragments_per_file: int = 0
    median_fragments_per_file: float = 0.0
    max_fragments_per_file: int = 0

    def as_dict(self) -> Dict[str, float]:
        return {
            "total_files": self.file_count,
            "total_fragments": self.fragment_count,
            "avg_fragments_per_file": self.avg_fragments_per_file,
            "median_fragments_per_file": self.median_fragments_per_file,
            "max_fragments_per_file": self.max_fragments_per_file,
        }
