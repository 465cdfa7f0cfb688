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
Detector facade - ingestion and querying, one operation at a time.

A second operation started while one is running is rejected with Busy
instead of waiting.
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .corpus import CorpusStore, ProgressCallback, as_batch
from .errors import Busy, InvalidInput, ResourceLimitExceeded
from .extractor import FragmentExtractor
from .models import CorpusStatistics, IngestReport, SimilarityResult
from .similarity import SimilarityEngine
from .sources import (
    MAX_CORPUS_FILE_SIZE,
    MAX_INTERACTIVE_TEXT_SIZE,
    MAX_QUERY_FILE_SIZE,
    check_text_size,
    iter_corpus,
    read_source,
)


logger = logging.getLogger(__name__)


class Detector:
    """Owns a corpus store and answers similarity queries against it."""

    def __init__(
        self,
        store: Optional[CorpusStore] = None,
        extractor: Optional[FragmentExtractor] = None,
        engine: Optional[SimilarityEngine] = None,
        max_query_size: int = MAX_QUERY_FILE_SIZE,
        extensions: Optional[Iterable[str]] = None,
    ):
        self.extractor = extractor or (store.extractor if store else FragmentExtractor())
        self.store = store or CorpusStore(extractor=self.extractor)
        self.engine = engine or SimilarityEngine()
        self.max_query_size = max_query_size
        self.extensions = list(extensions) if extensions else None
        self._operation_lock = threading.Lock()

    @contextmanager
    def _exclusive(self, operation: str):
        if not self._operation_lock.acquire(blocking=False):
            raise Busy(f"Cannot start {operation}: another operation is in progress")
        try:
            yield
        finally:
            self._operation_lock.release()

    @property
    def busy(self) -> bool:
        return self._operation_lock.locked()

    # --- ingestion ---

    def ingest(
        self,
        entries: Iterable[Tuple[str, str]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> IngestReport:
        """
        Replace the corpus with a new batch of (identifier, text) pairs.

        Raises:
            Busy: If another operation is running
            InvalidInput: If entries is not a batch (corpus left as it was)
            NoUsableInput: If no entry could be loaded (corpus left empty)
        """
        with self._exclusive("ingestion"):
            batch = as_batch(entries)
            self.store.clear()
            report = self.store.ingest(batch, on_progress=on_progress)
            logger.info(f"Corpus loaded: {report.summary()}")
            return report

    def ingest_directory(
        self,
        root_path: Path,
        exclude_patterns: Optional[List[str]] = None,
        focus_patterns: Optional[List[str]] = None,
        max_file_size: int = MAX_CORPUS_FILE_SIZE,
        on_progress: Optional[ProgressCallback] = None,
    ) -> IngestReport:
        """Load every source file under root_path as the corpus."""
        entries = list(iter_corpus(
            root_path,
            extensions=self.extensions,
            exclude_patterns=exclude_patterns,
            focus_patterns=focus_patterns,
            max_size=max_file_size,
        ))
        return self.ingest(entries, on_progress=on_progress)

    def clear(self):
        with self._exclusive("clear"):
            self.store.clear()

    # --- querying ---

    def check(self, text: Optional[str]) -> List[SimilarityResult]:
        """
        Rank corpus entries by similarity to the given source text.

        Returns an empty list for blank input, an unloaded corpus or when
        nothing matches.

        Raises:
            Busy: If another operation is running
            InvalidInput: If text is not a string
            ResourceLimitExceeded: If text exceeds max_query_size
        """
        if text is None or (isinstance(text, str) and not text.strip()):
            logger.warning("Empty code provided for checking")
            return []

        if not isinstance(text, str):
            raise InvalidInput(f"Expected source text, got {type(text).__name__}")

        if len(text) > self.max_query_size:
            raise ResourceLimitExceeded(
                f"Code too large: {len(text)} characters",
                size=len(text),
                limit=self.max_query_size,
            )

        with self._exclusive("check"):
            if not self.store.loaded:
                logger.warning("Corpus not loaded or empty")
                return []

            query_fragments = self.extractor.extract_fragments(text)
            if not query_fragments:
                logger.warning("No fragments extracted from checked code")
                return []

            results = self.engine.compare(query_fragments, self.store.entries())
            logger.info(f"Found {len(results)} entries with suspected reuse")
            return results

    def check_file(self, file_path: Path) -> List[SimilarityResult]:
        """Read a single file (query size limit applies) and check it."""
        logger.info(f"Checking file: {file_path}")
        content = read_source(file_path, max_size=self.max_query_size, extensions=self.extensions)
        return self.check(content)

    def check_interactive(self, text: Optional[str]) -> List[SimilarityResult]:
        """Check pasted text, which has a tighter size limit than files."""
        if isinstance(text, str):
            check_text_size(text, MAX_INTERACTIVE_TEXT_SIZE)
        return self.check(text)

    # --- read accessors ---

    @property
    def loaded(self) -> bool:
        return self.store.loaded

    @property
    def entry_count(self) -> int:
        return self.store.entry_count

    @property
    def total_fragment_count(self) -> int:
        return self.store.total_fragment_count

    def identifiers(self) -> List[str]:
        return self.store.identifiers()

    def statistics(self) -> CorpusStatistics:
        return self.store.statistics()
