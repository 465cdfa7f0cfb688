import pytest

from code_reuse_detector.corpus import CorpusStore
from code_reuse_detector.errors import InvalidInput, NoUsableInput, ResourceLimitExceeded

from conftest import CLASS_A, EMPTY_METHOD, LOOP_SOURCE


def test_new_store_is_unloaded(store):
    assert not store.loaded
    assert store.entry_count == 0
    assert store.identifiers() == []
    assert store.entries() == {}
    assert store.statistics().file_count == 0


def test_ingest_loads_entries(store):
    report = store.ingest([("A.java", CLASS_A), ("Empty.java", EMPTY_METHOD)])

    assert report.succeeded == ["A.java", "Empty.java"]
    assert report.failed_count == 0
    assert report.fragment_count == 10
    assert store.loaded
    assert store.identifiers() == ["A.java", "Empty.java"]
    assert store.total_fragment_count == 10
    assert len(store.fragments_for("A.java")) == 8


def test_partial_failure_still_loads(store):
    report = store.ingest([
        ("good.java", CLASS_A),
        ("blank.java", "   "),
        ("binary.java", 42),
        ("", LOOP_SOURCE),
        "not-a-pair",
    ])

    assert report.succeeded == ["good.java"]
    assert report.failed_count == 4
    assert store.loaded
    assert store.identifiers() == ["good.java"]


def test_oversized_entry_is_a_failure():
    store = CorpusStore(max_entry_size=16, max_workers=1)
    report = store.ingest([("big.java", CLASS_A), ("small.java", "int x = 5;")])

    assert report.succeeded == ["small.java"]
    assert report.failures[0].identifier == "big.java"


def test_all_failures_raise_no_usable_input(store):
    with pytest.raises(NoUsableInput) as exc_info:
        store.ingest([("a.java", ""), ("b.java", None)])

    assert exc_info.value.report.failed_count == 2
    assert not store.loaded


def test_empty_batch_raises(store):
    with pytest.raises(NoUsableInput):
        store.ingest([])


@pytest.mark.parametrize("entries", [None, "A.java", 42])
def test_non_batch_is_rejected(store, entries):
    store.ingest([("A.java", CLASS_A)])

    with pytest.raises(InvalidInput):
        store.ingest(entries)

    assert store.identifiers() == ["A.java"]


def test_generator_batch(store):
    report = store.ingest((name, CLASS_A) for name in ("A.java", "B.java"))
    assert report.succeeded == ["A.java", "B.java"]


def test_last_duplicate_wins(store):
    store.ingest([("A.java", EMPTY_METHOD), ("A.java", CLASS_A)])
    assert store.entry_count == 1
    assert len(store.fragments_for("A.java")) == 8


def test_progress_callback(store):
    calls = []
    store.ingest(
        [("A.java", CLASS_A), ("B.java", LOOP_SOURCE), ("C.java", "")],
        on_progress=lambda current, total, message: calls.append((current, total)),
    )
    assert [c for c, _ in calls] == [1, 2, 3]
    assert all(total == 3 for _, total in calls)


def test_add_entry_overwrites_one_identifier(store):
    store.ingest([("A.java", CLASS_A), ("B.java", LOOP_SOURCE)])
    entry = store.add_entry("A.java", EMPTY_METHOD)

    assert entry.fragment_count == 2
    assert store.identifiers() == ["A.java", "B.java"]
    assert len(store.fragments_for("A.java")) == 2


def test_add_entry_raises_typed_errors(store):
    with pytest.raises(InvalidInput):
        store.add_entry("", CLASS_A)
    with pytest.raises(InvalidInput):
        store.add_entry("A.java", "  ")
    with pytest.raises(ResourceLimitExceeded):
        CorpusStore(max_entry_size=4).add_entry("A.java", CLASS_A)
    assert not store.loaded


def test_readers_get_copies(store):
    store.ingest([("A.java", CLASS_A)])

    snapshot = store.entries()
    snapshot["A.java"].clear()
    snapshot["B.java"] = []

    assert len(store.fragments_for("A.java")) == 8
    assert store.identifiers() == ["A.java"]
    assert store.fragments_for("missing.java") == []
    assert store.get_entry("missing.java") is None


def test_clear(store):
    store.ingest([("A.java", CLASS_A)])
    store.clear()
    assert not store.loaded
    assert store.identifiers() == []


def test_statistics(store):
    store.ingest([("A.java", CLASS_A), ("Empty.java", EMPTY_METHOD)])
    stats = store.statistics()

    assert stats.file_count == 2
    assert stats.fragment_count == 10
    assert stats.avg_fragments_per_file == 5
    assert stats.median_fragments_per_file == 5.0
    assert stats.max_fragments_per_file == 8
