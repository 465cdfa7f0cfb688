import pytest

from code_reuse_detector.errors import NoUsableInput, ResourceLimitExceeded
from code_reuse_detector.models import (
    ALGORITHM_TAG,
    FULL_CODE_TAG,
    CorpusStatistics,
    Fragment,
    IngestFailure,
    IngestReport,
    Severity,
    SimilarityResult,
)


def test_fragment_identity_is_normalized_content():
    a = Fragment("int VAR = NUMBER", "int x = 5", 3)
    b = Fragment("int VAR = NUMBER", "int y = 7", 9)
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1
    assert a != Fragment("int VAR = EXPRESSION", "int x = 5", 3)


def test_fragment_whole_file_and_preview():
    assert Fragment("x", FULL_CODE_TAG).is_whole_file
    assert Fragment("x", ALGORITHM_TAG).is_whole_file
    assert not Fragment("x", "x = 1;", 4).is_whole_file

    long_fragment = Fragment("n", "a" * 80, 1)
    assert long_fragment.preview(10) == "aaaaaaa..."
    assert Fragment("n", "short", 1).preview() == "short"


@pytest.mark.parametrize("percentage, severity", [
    (0.0, Severity.NONE),
    (4.99, Severity.NONE),
    (5.0, Severity.LOW),
    (19.9, Severity.LOW),
    (20.0, Severity.MEDIUM),
    (50.0, Severity.HIGH),
    (79.9, Severity.HIGH),
    (80.0, Severity.CRITICAL),
    (100.0, Severity.CRITICAL),
])
def test_severity_bands(percentage, severity):
    assert Severity.from_percentage(percentage) == severity


def test_similarity_result_is_clamped_and_read_only():
    fragment = Fragment("int VAR = NUMBER", "int x = 5", 1)
    result = SimilarityResult("A.java", 150.0, {fragment: ["A.java"]}, 3, 4)

    assert result.similarity_percentage == 100.0
    assert result.severity == Severity.CRITICAL
    assert result.matched_query_fragment_count == 1
    assert result.has_significant_matches
    assert not result.is_significant(threshold=100.0)
    with pytest.raises(TypeError):
        result.matched_fragments[fragment] = []

    assert SimilarityResult("B.java", -3.0).similarity_percentage == 0.0
    assert "A.java" in str(result)
    assert "100.00%" in str(result)


def test_ingest_report_counts():
    report = IngestReport(
        succeeded=["a", "b"],
        failures=[IngestFailure("c", "empty")],
        fragment_count=12,
    )
    assert report.succeeded_count == 2
    assert report.failed_count == 1
    assert report.total == 3
    assert report.summary() == "Loaded 2 of 3 entries (12 fragments, 1 failed)"


def test_statistics_as_dict():
    stats = CorpusStatistics(2, 10, 5, 5.0, 8)
    assert stats.as_dict() == {
        "total_files": 2,
        "total_fragments": 10,
        "avg_fragments_per_file": 5,
        "median_fragments_per_file": 5.0,
        "max_fragments_per_file": 8,
    }


def test_error_details():
    error = ResourceLimitExceeded("too big", size=20, limit=10)
    assert error.details == {"size": 20, "limit": 10}
    assert str(error) == "too big"

    report = IngestReport(failures=[IngestFailure("a", "bad")])
    no_input = NoUsableInput("nothing loaded", report)
    assert no_input.report is report
    assert no_input.details == {"failed": 1}
