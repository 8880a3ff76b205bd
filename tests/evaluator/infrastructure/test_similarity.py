"""Tests for change entropy and edit-distance similarity."""

import math

import pytest

from ybench.evaluator.infrastructure.similarity import (
    change_entropy,
    levenshtein_distance,
    text_similarity,
)


class TestChangeEntropy:
    """change_entropy() is the Shannon entropy of changes per file."""

    def test_no_changes_is_zero(self) -> None:
        assert change_entropy([]) == 0.0

    def test_all_zero_counts_is_zero(self) -> None:
        assert change_entropy([0, 0]) == 0.0

    def test_single_file_is_zero(self) -> None:
        assert change_entropy([10]) == 0.0

    def test_even_spread_is_log2_of_file_count(self) -> None:
        assert change_entropy([1, 1, 1, 1, 1]) == pytest.approx(math.log2(5))

    def test_spread_changes_score_higher_than_concentrated(self) -> None:
        spread = change_entropy([2, 2, 2, 2, 2])
        concentrated = change_entropy([10])

        assert spread > concentrated

    def test_uneven_spread_is_below_even_spread(self) -> None:
        assert change_entropy([9, 1]) < change_entropy([5, 5])


class TestLevenshteinDistance:
    """levenshtein_distance() counts single-element edits."""

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_known_distances(self, a: str, b: str, expected: int) -> None:
        assert levenshtein_distance(a, b) == expected

    def test_works_on_line_lists(self) -> None:
        assert levenshtein_distance(["a", "b", "c"], ["a", "x", "c"]) == 1


class TestTextSimilarity:
    """text_similarity() normalizes distance into [0, 1]."""

    def test_identical_is_one(self) -> None:
        assert text_similarity("hello\n", "hello\n") == 1.0

    def test_both_empty_is_one(self) -> None:
        assert text_similarity("", "") == 1.0

    def test_completely_different_is_zero(self) -> None:
        assert text_similarity("aaaa", "bbbb") == 0.0

    def test_one_edit_in_ten(self) -> None:
        assert text_similarity("abcdefghij", "abcdefghiX") == pytest.approx(0.9)

    def test_large_inputs_compare_by_line(self) -> None:
        lines = [f"line {i}" for i in range(1000)]
        a = "\n".join(lines)
        b = "\n".join([*lines[:-1], "changed"])

        similarity = text_similarity(a, b)

        assert similarity == pytest.approx(1 - 1 / 1000)
