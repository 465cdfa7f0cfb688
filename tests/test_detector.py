import threading
from pathlib import Path

import pytest

from code_reuse_detector.corpus import CorpusStore
from code_reuse_detector.detector import Detector
from code_reuse_detector.errors import (
    Busy,
    InvalidInput,
    NoUsableInput,
    ResourceLimitExceeded,
)
from code_reuse_detector.similarity import SimilarityEngine

from conftest import CLASS_A, EMPTY_METHOD, LOOP_SOURCE, PROSE


class BlockingEngine(SimilarityEngine):
    """Engine whose compare waits until released."""

    def __init__(self):
        super().__init__(max_workers=1)
        self.entered = threading.Event()
        self.release = threading.Event()

    def compare(self, query_fragments, corpus_map):
        self.entered.set()
        self.release.wait(5)
        return super().compare(query_fragments, corpus_map)


def test_identical_query_ranks_first(loaded_detector):
    results = loaded_detector.check(CLASS_A)

    assert results[0].identifier == "A.java"
    assert results[0].similarity_percentage >= 90
    assert results[0].matches_count == 8
    assert results[0].total_fragments == 8


def test_renamed_copy_still_matches(loaded_detector):
    renamed = "public class A { int a = 10; int b = 20; int c = a + b; }"
    results = loaded_detector.check(renamed)
    assert results[0].identifier == "A.java"
    assert results[0].similarity_percentage == 100.0


def test_unrelated_and_blank_queries_are_empty(loaded_detector):
    assert loaded_detector.check(PROSE) == []
    assert loaded_detector.check("") == []
    assert loaded_detector.check("   ") == []
    assert loaded_detector.check(None) == []


def test_unloaded_corpus_gives_empty_result(detector):
    assert not detector.loaded
    assert detector.check(CLASS_A) == []


def test_invalid_query_type(loaded_detector):
    with pytest.raises(InvalidInput):
        loaded_detector.check(123)


def test_oversized_query():
    detector = Detector(max_query_size=10)
    with pytest.raises(ResourceLimitExceeded):
        detector.check(CLASS_A)


def test_interactive_limit(loaded_detector, monkeypatch):
    monkeypatch.setattr("code_reuse_detector.detector.MAX_INTERACTIVE_TEXT_SIZE", 16)
    with pytest.raises(ResourceLimitExceeded):
        loaded_detector.check_interactive(CLASS_A)
    results = loaded_detector.check_interactive("int x = 5;")
    assert [r.identifier for r in results] == ["A.java"]


def test_ingest_replaces_corpus(loaded_detector):
    report = loaded_detector.ingest([("Loop.java", LOOP_SOURCE)])

    assert report.succeeded == ["Loop.java"]
    assert loaded_detector.identifiers() == ["Loop.java"]
    assert loaded_detector.entry_count == 1


def test_rejected_ingest_keeps_loaded_corpus(loaded_detector):
    with pytest.raises(InvalidInput):
        loaded_detector.ingest(None)
    with pytest.raises(InvalidInput):
        loaded_detector.ingest("A.java")

    assert loaded_detector.loaded
    assert loaded_detector.identifiers() == ["A.java", "Empty.java"]
    assert loaded_detector.check(CLASS_A)[0].identifier == "A.java"


def test_failed_ingest_leaves_corpus_empty(loaded_detector):
    with pytest.raises(NoUsableInput):
        loaded_detector.ingest([("bad.java", "")])

    assert not loaded_detector.loaded
    assert loaded_detector.check(CLASS_A) == []


def test_accessors(loaded_detector):
    assert loaded_detector.loaded
    assert loaded_detector.identifiers() == ["A.java", "Empty.java"]
    assert loaded_detector.entry_count == 2
    assert loaded_detector.total_fragment_count == 10
    assert loaded_detector.statistics().max_fragments_per_file == 8

    loaded_detector.clear()
    assert not loaded_detector.loaded


def test_ingest_directory_and_check_file(corpus_dir, tmp_path):
    detector = Detector(store=CorpusStore(max_workers=2))
    report = detector.ingest_directory(corpus_dir)

    assert report.succeeded_count == 2
    assert sorted(Path(p).name for p in detector.identifiers()) == [
        "A.java", "BubbleSort.java",
    ]

    query = tmp_path / "Query.java"
    query.write_text(CLASS_A)
    results = detector.check_file(query)
    assert results[0].identifier.endswith("A.java")
    assert results[0].similarity_percentage == 100.0


def test_check_file_rejects_bad_paths(loaded_detector, tmp_path):
    with pytest.raises(InvalidInput):
        loaded_detector.check_file(tmp_path / "missing.java")
    with pytest.raises(InvalidInput):
        loaded_detector.check_file(tmp_path)


def test_check_file_respects_extensions(tmp_path):
    detector = Detector(extensions=[".java"])
    detector.ingest([("A.java", CLASS_A)])
    query = tmp_path / "query.txt"
    query.write_text(CLASS_A)

    with pytest.raises(InvalidInput):
        detector.check_file(query)


def test_second_operation_is_rejected_while_busy():
    engine = BlockingEngine()
    detector = Detector(store=CorpusStore(max_workers=1), engine=engine)
    detector.ingest([("A.java", CLASS_A), ("Empty.java", EMPTY_METHOD)])

    results = []
    worker = threading.Thread(target=lambda: results.append(detector.check(CLASS_A)))
    worker.start()
    try:
        assert engine.entered.wait(5)
        assert detector.busy

        with pytest.raises(Busy):
            detector.ingest([("B.java", LOOP_SOURCE)])
        with pytest.raises(Busy):
            detector.check(CLASS_A)
        with pytest.raises(Busy):
            detector.clear()
    finally:
        engine.release.set()
        worker.join(5)

    assert not detector.busy
    assert results[0][0].identifier == "A.java"
    assert detector.identifiers() == ["A.java", "Empty.java"]
