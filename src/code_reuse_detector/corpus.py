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
Corpus store - holds the fragments of every ingested reference text.

Ingestion runs entries in parallel and isolates failures per entry: a bad
entry is logged and counted, the rest of the batch still loads. The batch
only fails when nothing at all could be loaded.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .errors import DetectorError, InvalidInput, NoUsableInput, ResourceLimitExceeded
from .extractor import FragmentExtractor
from .models import CorpusEntry, CorpusStatistics, Fragment, IngestFailure, IngestReport


logger = logging.getLogger(__name__)


# Largest corpus text accepted (UTF-8 bytes)
MAX_CORPUS_ENTRY_SIZE = 1024 * 1024

ProgressCallback = Callable[[int, int, str], None]


def as_batch(entries) -> List:
    """
    Materialize an ingestion batch.

    Raises:
        InvalidInput: If entries is not an iterable of pairs (None, a string)
    """
    if entries is None or isinstance(entries, (str, bytes)):
        raise InvalidInput(
            f"Expected an iterable of (identifier, text) pairs, got {type(entries).__name__}"
        )
    try:
        return list(entries)
    except TypeError:
        raise InvalidInput(
            f"Expected an iterable of (identifier, text) pairs, got {type(entries).__name__}"
        ) from None


class CorpusStore:
    """
    In-memory map from corpus identifier to its fragments.

    The store is either loaded (at least one entry) or empty. Readers get
    copies, never the live map.
    """

    def __init__(
        self,
        extractor: Optional[FragmentExtractor] = None,
        max_entry_size: int = MAX_CORPUS_ENTRY_SIZE,
        max_workers: Optional[int] = None,
    ):
        self.extractor = extractor or FragmentExtractor()
        self.max_entry_size = max_entry_size
        self.max_workers = max_workers or os.cpu_count()
        self._entries: Dict[str, CorpusEntry] = {}
        self._loaded = False
        self._lock = threading.Lock()

    def ingest(
        self,
        entries: Iterable[Tuple[str, str]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> IngestReport:
        """
        Extract and store fragments for a batch of (identifier, text) pairs.

        Entries with an identifier already in the store replace it. Within
        one batch the last pair for an identifier wins.

        Args:
            entries: Iterable of (identifier, raw text) pairs
            on_progress: Optional callback(current, total, message)

        Returns:
            IngestReport with succeeded identifiers and per-entry failures

        Raises:
            InvalidInput: If entries is not an iterable of pairs
            NoUsableInput: If no entry of the batch could be loaded
        """
        report = IngestReport()
        pending: Dict[str, str] = {}

        for item in as_batch(entries):
            try:
                identifier, text = item
            except (TypeError, ValueError):
                self._record_failure(report, repr(item), "not an (identifier, text) pair")
                continue

            if not isinstance(identifier, str) or not identifier.strip():
                self._record_failure(report, repr(identifier), "identifier must be a non-empty string")
                continue

            pending[identifier] = text

        total = len(pending)
        logger.info(f"Ingesting {total} corpus entries")

        processed = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._build_entry, identifier, text): identifier
                for identifier, text in pending.items()
            }

            for future in as_completed(futures):
                identifier = futures[future]
                processed += 1

                try:
                    entry = future.result()
                except MemoryError:
                    raise
                except DetectorError as e:
                    self._record_failure(report, identifier, e.message)
                except Exception as e:
                    logger.error(f"Unexpected error processing {identifier}: {e}", exc_info=True)
                    self._record_failure(report, identifier, str(e))
                else:
                    with self._lock:
                        self._entries[identifier] = entry
                        self._loaded = True
                    report.succeeded.append(identifier)
                    report.fragment_count += entry.fragment_count
                    logger.debug(f"Loaded {identifier} ({entry.fragment_count} fragments)")

                if on_progress:
                    on_progress(processed, total, "entries")

        # as_completed order is arbitrary
        report.succeeded.sort()

        if report.succeeded_count == 0:
            raise NoUsableInput("Failed to load any entries into the corpus", report)

        logger.info(report.summary())
        return report

    def add_entry(self, identifier: str, text: str) -> CorpusEntry:
        """
        Ingest a single entry, raising instead of recording failures.

        Raises:
            InvalidInput: Bad identifier or text, or nothing extracted
            ResourceLimitExceeded: Text larger than max_entry_size
        """
        if not isinstance(identifier, str) or not identifier.strip():
            raise InvalidInput("Identifier must be a non-empty string")

        entry = self._build_entry(identifier, text)
        with self._lock:
            self._entries[identifier] = entry
            self._loaded = True
        return entry

    def clear(self):
        """Remove every entry and mark the store unloaded."""
        logger.info("Clearing corpus")
        with self._lock:
            self._entries.clear()
            self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded and bool(self._entries)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def total_fragment_count(self) -> int:
        with self._lock:
            return sum(e.fragment_count for e in self._entries.values())

    def fragments_for(self, identifier: str) -> List[Fragment]:
        """Fragments stored for an identifier, or [] if unknown."""
        entry = self._entries.get(identifier)
        return list(entry.fragments) if entry else []

    def get_entry(self, identifier: str) -> Optional[CorpusEntry]:
        return self._entries.get(identifier)

    def entries(self) -> Dict[str, List[Fragment]]:
        """Snapshot copy of the identifier -> fragments map."""
        with self._lock:
            return {k: list(e.fragments) for k, e in self._entries.items()}

    def identifiers(self) -> List[str]:
        """Sorted identifiers; empty while the store is not loaded."""
        if not self.loaded:
            logger.warning("Listing identifiers of an unloaded corpus")
            return []
        with self._lock:
            return sorted(self._entries)

    def statistics(self) -> CorpusStatistics:
        """File count, fragment count and per-file fragment distribution."""
        with self._lock:
            counts = np.array([e.fragment_count for e in self._entries.values()], dtype=np.int64)

        if counts.size == 0:
            return CorpusStatistics()

        total = int(counts.sum())
        return CorpusStatistics(
            file_count=int(counts.size),
            fragment_count=total,
            avg_fragments_per_file=int(total / counts.size),
            median_fragments_per_file=float(np.median(counts)),
            max_fragments_per_file=int(counts.max()),
        )

    def _build_entry(self, identifier: str, text: str) -> CorpusEntry:
        """Validate one text and extract its fragments."""
        if not isinstance(text, str):
            raise InvalidInput(f"Content of {identifier} is not text")

        if not text.strip():
            raise InvalidInput(f"{identifier} is empty")

        size = len(text.encode("utf-8", errors="replace"))
        if size > self.max_entry_size:
            raise ResourceLimitExceeded(
                f"{identifier} too large ({size} bytes)",
                size=size,
                limit=self.max_entry_size,
            )

        fragments = self.extractor.extract_fragments(text)
        if not fragments:
            raise InvalidInput(f"No fragments extracted from {identifier}")

        return CorpusEntry(identifier=identifier, fragments=tuple(fragments))

    @staticmethod
    def _record_failure(report: IngestReport, identifier: str, reason: str):
        logger.warning(f"Skipping corpus entry {identifier}: {reason}")
        report.failures.append(IngestFailure(identifier, reason))
