"""Shared fixtures for the code-reuse-detector test suite."""

import pytest

from code_reuse_detector.corpus import CorpusStore
from code_reuse_detector.detector import Detector


CLASS_A = "public class A { int x = 1; int y = 2; int s = x + y; }"

EMPTY_METHOD = "void foo() {}"

LOOP_SOURCE = (
    "int total = 0;\n"
    "for (int i = 0; i < n; i++) { total = total + compute(i); }"
)

PROSE = "the quick brown fox jumps over the lazy dog"

BUBBLE_SORT = """\
package sorting;

import java.util.Arrays;

public class BubbleSort {
    // Sorts the array in place
    public static void sort(int[] values) {
        int n = values.length;
        for (int i = 0; i < n; i++) {
            for (int j = 0; j < n - i - 1; j++) {
                if (values[j] > values[j + 1]) {
                    int tmp = values[j];
                    values[j] = values[j + 1];
                    values[j + 1] = tmp;
                }
            }
        }
    }
}
"""


@pytest.fixture
def store():
    return CorpusStore(max_workers=2)


@pytest.fixture
def detector():
    return Detector(store=CorpusStore(max_workers=2))


@pytest.fixture
def loaded_detector(detector):
    detector.ingest([("A.java", CLASS_A), ("Empty.java", EMPTY_METHOD)])
    return detector


@pytest.fixture
def corpus_dir(tmp_path):
    root = tmp_path / "corpus"
    root.mkdir()
    (root / "A.java").write_text(CLASS_A)
    (root / "BubbleSort.java").write_text(BUBBLE_SORT)
    (root / "notes.txt").write_text("not java")
    return root
