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
Fragment extractor - cuts source text into comparable fragments.

Produces, in order:
1. FULL_CODE   - the whole normalized file
2. ALGORITHM   - the whole file with only its control-flow skeleton left
3. statements  - normalized text split on ';'
4. bigrams     - pairs of adjacent statements
5. trigrams    - triples of adjacent statements
6. patterns    - raw lines holding a loop, condition or return

All fragment kinds are pooled; the similarity engine does not care which
granularity a fragment came from.
"""

import logging
from typing import List, Optional

from .models import Fragment, FULL_CODE_TAG, ALGORITHM_TAG
from .normalizer import Normalizer


logger = logging.getLogger(__name__)


MIN_ALGORITHM_LENGTH = 20
MIN_STATEMENT_LENGTH = 10
MIN_BIGRAM_PART_LENGTH = 8
MIN_TRIGRAM_PART_LENGTH = 5

STATEMENT_SEPARATOR = ";"
NGRAM_JOINER = " ; "


def _is_for_loop(line: str) -> bool:
    return "for (" in line and ";" in line and "++" in line


def _is_if_condition(line: str) -> bool:
    return line.startswith("if (") or " if (" in line


def _is_while_loop(line: str) -> bool:
    return "while (" in line


def _is_return(line: str) -> bool:
    return "return " in line and "//" not in line


# Checked in order; a line matching several produces several fragments
STRUCTURAL_PATTERNS = (
    ("for", _is_for_loop),
    ("if", _is_if_condition),
    ("while", _is_while_loop),
    ("return", _is_return),
)


class FragmentExtractor:
    """Extracts labeled fragments at several granularities."""

    def __init__(self, normalizer: Optional[Normalizer] = None):
        self.normalizer = normalizer or Normalizer()

    def extract_fragments(self, text: Optional[str]) -> List[Fragment]:
        """
        Extract all fragments from raw source text.

        Args:
            text: Raw source text

        Returns:
            Ordered list of Fragment objects (empty for blank input)
        """
        if text is None or not text.strip():
            logger.debug("Empty text for fragment extraction")
            return []

        fragments: List[Fragment] = []

        normalized = self.normalizer.normalize(text)
        if normalized:
            fragments.append(Fragment(normalized, FULL_CODE_TAG, 0))

        algorithm = self.normalizer.normalize_for_algorithm(text)
        if len(algorithm) > MIN_ALGORITHM_LENGTH:
            fragments.append(Fragment(algorithm, ALGORITHM_TAG, 0))

        if normalized:
            fragments.extend(self._statement_fragments(normalized))

        fragments.extend(self._pattern_fragments(text))

        logger.debug(f"Extracted {len(fragments)} fragments")
        return fragments

    def _statement_fragments(self, normalized: str) -> List[Fragment]:
        """Single statements, bigrams and trigrams of the normalized text."""
        statements = [s.strip() for s in normalized.split(STATEMENT_SEPARATOR)]
        fragments = []

        for i, statement in enumerate(statements):
            if len(statement) > MIN_STATEMENT_LENGTH:
                fragments.append(Fragment(statement, statement, i + 1))

        for i in range(len(statements) - 1):
            pair = statements[i:i + 2]
            if all(len(s) > MIN_BIGRAM_PART_LENGTH for s in pair):
                joined = NGRAM_JOINER.join(pair)
                fragments.append(Fragment(joined, joined, i + 1))

        for i in range(len(statements) - 2):
            triple = statements[i:i + 3]
            if all(len(s) > MIN_TRIGRAM_PART_LENGTH for s in triple):
                joined = NGRAM_JOINER.join(triple)
                fragments.append(Fragment(joined, joined, i + 1))

        return fragments

    def _pattern_fragments(self, text: str) -> List[Fragment]:
        """Structural pattern fragments from the raw (un-normalized) lines."""
        fragments = []

        for line_number, raw_line in enumerate(text.split("\n"), start=1):
            line = raw_line.strip()
            if not line:
                continue

            for _name, matches in STRUCTURAL_PATTERNS:
                if not matches(line):
                    continue
                normalized = self.normalizer.normalize_pattern_line(line)
                if normalized:
                    fragments.append(Fragment(normalized, line, line_number))

        return fragments


_default = FragmentExtractor()


def extract_fragments(text: Optional[str]) -> List[Fragment]:
    """Extract fragments with the default normalizer."""
    return _default.extract_fragments(text)
