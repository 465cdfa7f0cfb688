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
Similarity engine - scores a query against every corpus entry.

Two fragments are compared with an ordered chain of heuristics, first
match wins:

1. exact       - identical normalized content
2. containment - one long fragment almost entirely inside the other
3. algorithmic - shared loop/branch idioms or enough shared structure
4. token       - Jaccard similarity of whitespace tokens (short fragments)

The order is part of the contract. Exact matching must run before the
looser checks so an exact match is always reported as such.

Per entry, the share of corpus fragments that found a match is the raw
score. A whole-file bonus and a boost factor are then applied and the
result is capped at 100.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import REPORT_THRESHOLD, Fragment, SimilarityResult


logger = logging.getLogger(__name__)


# Scoring constants, all overridable per engine
FULL_CODE_MATCH_BONUS = 20.0
SIMILARITY_BOOST_FACTOR = 1.5
FULL_CODE_MATCH_THRESHOLD = 60.0

# Fragment comparison constants
TOKEN_SIMILARITY_THRESHOLD = 80.0
TOKEN_MAX_LENGTH = 100
MIN_LENGTH_FOR_CONTAINMENT = 50
CONTAINMENT_RATIO = 0.7
MIN_COMMON_CONSTRUCTIONS = 3

ALGORITHM_PATTERNS = (
    "for ( VAR = NUM ; VAR < VAR ; VAR ++ )",
    "for ( VAR = VAR ; VAR < VAR ; VAR ++ )",
    "if ( VAR > VAR )",
    "if ( VAR < VAR )",
    "if ( VAR == VAR )",
    "while ( VAR < VAR )",
    "return VAR ;",
    "VAR = VAR + VAR ;",
    "VAR = VAR * VAR ;",
)

ALGORITHM_CONSTRUCTIONS = ("for (", "if (", "while (", "return", "VAR = VAR", "{", "}")


def token_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Jaccard similarity of the whitespace token sets of two strings.

    Returns:
        |intersection| / |union| * 100, or 0.0 for an empty union
    """
    if a is None or b is None:
        return 0.0

    tokens_a = set(a.split())
    tokens_b = set(b.split())
    union = tokens_a | tokens_b
    if not union:
        return 0.0

    return len(tokens_a & tokens_b) / len(union) * 100


def count_common_constructions(a: str, b: str) -> int:
    return sum(1 for c in ALGORITHM_CONSTRUCTIONS if c in a and c in b)


def is_algorithm_similar(a: str, b: str) -> bool:
    """True if both strings share an idiom pattern or enough structural pieces."""
    if any(p in a and p in b for p in ALGORITHM_PATTERNS):
        return True
    return count_common_constructions(a, b) >= MIN_COMMON_CONSTRUCTIONS


class SimilarityEngine:
    """Compares query fragments against a corpus fragment map."""

    def __init__(
        self,
        full_code_bonus: float = FULL_CODE_MATCH_BONUS,
        boost_factor: float = SIMILARITY_BOOST_FACTOR,
        report_threshold: float = REPORT_THRESHOLD,
        full_code_match_threshold: float = FULL_CODE_MATCH_THRESHOLD,
        token_similarity_threshold: float = TOKEN_SIMILARITY_THRESHOLD,
        token_max_length: int = TOKEN_MAX_LENGTH,
        containment_min_length: int = MIN_LENGTH_FOR_CONTAINMENT,
        containment_ratio: float = CONTAINMENT_RATIO,
        max_workers: Optional[int] = None,
    ):
        self.full_code_bonus = full_code_bonus
        self.boost_factor = boost_factor
        self.report_threshold = report_threshold
        self.full_code_match_threshold = full_code_match_threshold
        self.token_similarity_threshold = token_similarity_threshold
        self.token_max_length = token_max_length
        self.containment_min_length = containment_min_length
        self.containment_ratio = containment_ratio
        self.max_workers = max_workers or os.cpu_count()

        # Evaluated in this order, first match wins
        self.heuristics: Tuple[Tuple[str, Callable[[str, str], bool]], ...] = (
            ("exact", self.is_exact),
            ("containment", self.is_contained),
            ("algorithmic", is_algorithm_similar),
            ("token", self.is_token_similar),
        )

    # --- fragment-level heuristics ---

    @staticmethod
    def is_exact(a: str, b: str) -> bool:
        return a == b

    def is_contained(self, a: str, b: str) -> bool:
        """
        True if one string contains the other and the contained one is at
        least containment_ratio of the containing one's length.

        Both strings must be at least containment_min_length long.
        """
        if len(a) < self.containment_min_length or len(b) < self.containment_min_length:
            return False

        if b in a and len(b) >= len(a) * self.containment_ratio:
            return True

        return a in b and len(a) >= len(b) * self.containment_ratio

    def is_token_similar(self, a: str, b: str) -> bool:
        """Token Jaccard check, only for short strings."""
        if len(a) >= self.token_max_length or len(b) >= self.token_max_length:
            return False
        return token_similarity(a, b) > self.token_similarity_threshold

    def match_reason(self, a: Optional[str], b: Optional[str]) -> Optional[str]:
        """Name of the first heuristic that matches, or None."""
        if not a or not b:
            return None

        for name, check in self.heuristics:
            if check(a, b):
                return name
        return None

    def is_similar(self, a: Optional[str], b: Optional[str]) -> bool:
        """True if any heuristic considers the two normalized strings similar."""
        return self.match_reason(a, b) is not None

    def has_full_code_match(
        self,
        corpus_fragments: Sequence[Fragment],
        query_fragments: Sequence[Fragment],
    ) -> bool:
        """True if any whole-file fragment pair exceeds the token threshold."""
        corpus_whole = [f for f in corpus_fragments if f.is_whole_file]
        query_whole = [f for f in query_fragments if f.is_whole_file]

        return any(
            token_similarity(c.normalized_content, q.normalized_content)
            > self.full_code_match_threshold
            for c in corpus_whole
            for q in query_whole
        )

    # --- entry-level scoring ---

    def score_entry(
        self,
        identifier: str,
        corpus_fragments: Sequence[Fragment],
        query_fragments: Sequence[Fragment],
    ) -> Optional[SimilarityResult]:
        """
        Score one corpus entry against the query.

        Returns:
            SimilarityResult, or None if the entry has no fragments or the
            final percentage does not exceed report_threshold
        """
        if not corpus_fragments:
            return None

        matches_count = 0
        matched: Dict[Fragment, List[str]] = {}

        for corpus_fragment in corpus_fragments:
            for query_fragment in query_fragments:
                reason = self.match_reason(
                    corpus_fragment.normalized_content,
                    query_fragment.normalized_content,
                )
                if reason is None:
                    continue

                matches_count += 1
                matched[query_fragment] = [identifier]
                logger.debug(
                    f"{reason} match in {identifier}: {corpus_fragment.preview()}"
                )
                break

        similarity = matches_count / len(corpus_fragments) * 100

        if self.has_full_code_match(corpus_fragments, query_fragments):
            similarity = min(100.0, similarity + self.full_code_bonus)

        similarity = min(100.0, similarity * self.boost_factor)

        if similarity <= self.report_threshold:
            return None

        logger.debug(f"{identifier}: similarity {similarity:.2f}% (matches: {matches_count})")
        return SimilarityResult(
            identifier=identifier,
            similarity_percentage=similarity,
            matched_fragments=matched,
            matches_count=matches_count,
            total_fragments=len(corpus_fragments),
        )

    def compare(
        self,
        query_fragments: Sequence[Fragment],
        corpus_map: Mapping[str, Sequence[Fragment]],
    ) -> List[SimilarityResult]:
        """
        Score the query against every corpus entry.

        Args:
            query_fragments: Fragments of the query text
            corpus_map: identifier -> fragments (read only)

        Returns:
            Results above report_threshold, highest similarity first
        """
        if not query_fragments or not corpus_map:
            return []

        logger.info(
            f"Comparing {len(query_fragments)} fragments against {len(corpus_map)} entries"
        )

        results: List[SimilarityResult] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self.score_entry, identifier, fragments, query_fragments)
                for identifier, fragments in corpus_map.items()
            ]
            for future in as_completed(futures):
                result = future.result()
                if result is not None:
                    results.append(result)

        results.sort(key=lambda r: (-r.similarity_percentage, r.identifier))
        return results
