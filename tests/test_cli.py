import json

from click.testing import CliRunner

from code_reuse_detector import __version__
from code_reuse_detector.cli import main, merge_config_with_cli

from conftest import CLASS_A, PROSE


def _run(*args, **kwargs):
    return CliRunner().invoke(main, [str(a) for a in args], **kwargs)


def test_check_file_prints_ranked_results(corpus_dir, tmp_path):
    query = tmp_path / "Query.java"
    query.write_text(CLASS_A)

    result = _run(corpus_dir, "--file", query, "-q")

    assert result.exit_code == 0, result.output
    assert "#1 A.java: 100.00%" in result.output
    assert "critical" in result.output


def test_check_text(corpus_dir):
    result = _run(corpus_dir, "--text", CLASS_A)
    assert result.exit_code == 0, result.output
    assert "Loaded 2 of 2 entries" in result.output
    assert "A.java" in result.output


def test_check_text_from_stdin(corpus_dir):
    result = _run(corpus_dir, "--text", "-", "-q", input=CLASS_A)
    assert result.exit_code == 0, result.output
    assert "#1 A.java" in result.output


def test_unrelated_text(corpus_dir):
    result = _run(corpus_dir, "--text", PROSE, "-q")
    assert result.exit_code == 0, result.output
    assert "No similar corpus files found" in result.output


def test_json_output_file(corpus_dir, tmp_path):
    output = tmp_path / "results.json"
    result = _run(corpus_dir, "--text", CLASS_A, "-o", output, "-q")

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text())
    assert data["meta"]["query"] == "<text>"
    assert data["results"][0]["identifier"].endswith("A.java")


def test_invalid_output_extension(corpus_dir, tmp_path):
    result = _run(corpus_dir, "--text", CLASS_A, "-o", tmp_path / "report.pdf")
    assert result.exit_code == 1
    assert "Invalid output extension" in result.output


def test_stats(corpus_dir):
    result = _run(corpus_dir, "--stats", "-q")
    assert result.exit_code == 0, result.output
    assert "Corpus statistics" in result.output
    assert "Files: 2" in result.output


def test_threshold_option(corpus_dir):
    result = _run(corpus_dir, "--text", CLASS_A, "--threshold", "100", "-q")
    assert result.exit_code == 0, result.output
    assert "No similar corpus files found" in result.output


def test_config_file_is_applied(corpus_dir):
    (corpus_dir / ".crdrc").write_text("[crd]\nreport_threshold = 100.0\n")
    result = _run(corpus_dir, "--text", CLASS_A, "-q")
    assert "No similar corpus files found" in result.output

    # Explicit CLI value wins over the config file
    result = _run(corpus_dir, "--text", CLASS_A, "--threshold", "50", "-q")
    assert "#1 A.java" in result.output


def test_empty_corpus_fails(tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    result = _run(empty, "--text", CLASS_A)
    assert result.exit_code == 1
    assert "Error" in result.output


def test_missing_query_file_fails(corpus_dir, tmp_path):
    result = _run(corpus_dir, "--file", tmp_path / "missing.java")
    assert result.exit_code == 2


def test_usage_errors(corpus_dir, tmp_path):
    query = tmp_path / "Query.java"
    query.write_text(CLASS_A)

    assert _run(corpus_dir).exit_code == 2
    assert _run(corpus_dir, "--file", query, "--text", CLASS_A).exit_code == 2


def test_version():
    result = _run("--version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_merge_config_with_cli():
    assert merge_config_with_cli({"k": 3}, 5, "k", 1) == 5
    assert merge_config_with_cli({"k": 3}, 1, "k", 1) == 3
    assert merge_config_with_cli({}, 1, "k", 1) == 1
