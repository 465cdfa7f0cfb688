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
Code Reuse Detector - Find code reused from a corpus of reference files.

Normalizes source text lexically, cuts it into fragments at several
granularities and scores a submitted file against every corpus file with
a chain of similarity heuristics.

No telemetry. Everything runs locally and in memory.
"""

__version__ = "0.1.0"

from .models import Fragment, SimilarityResult, Severity, IngestReport, CorpusStatistics
from .errors import (
    DetectorError,
    InvalidInput,
    ResourceLimitExceeded,
    NoUsableInput,
    Busy,
    SourceReadError,
)
from .normalizer import normalize, normalize_for_algorithm, is_valid_code
from .extractor import extract_fragments
from .corpus import CorpusStore
from .similarity import SimilarityEngine
from .detector import Detector
from .reporter import report_results
from .config import load_config, find_config_file

__all__ = [
    "__version__",
    "Fragment",
    "SimilarityResult",
    "Severity",
    "IngestReport",
    "CorpusStatistics",
    "DetectorError",
    "InvalidInput",
    "ResourceLimitExceeded",
    "NoUsableInput",
    "Busy",
    "SourceReadError",
    "normalize",
    "normalize_for_algorithm",
    "is_valid_code",
    "extract_fragments",
    "CorpusStore",
    "SimilarityEngine",
    "Detector",
    "report_results",
    "load_config",
    "find_config_file",
]
