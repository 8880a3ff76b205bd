"""Tests for ExpectedDiffEvaluator and tree comparison."""

import json
from pathlib import Path
from typing import Any

import pytest

from ybench.evaluator.infrastructure.expected_diff import (
    REPORT_FILENAME,
    ExpectedDiffEvaluator,
    compare_trees,
    list_files,
)
from tests.evaluator.context_builder import make_context
from tests.evaluator.fake_observer import FakeEvaluatorObserver
from tests.git.repo_builder import write_files


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_tree(path: Path, files: dict[str, str]) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    write_files(path, files)
    return path


async def _evaluate(
    tmp_path: Path,
    modified: dict[str, str],
    expected: dict[str, str],
    config: dict[str, Any] | None = None,
) -> Any:
    context = make_context(
        tmp_path=tmp_path,
        modified_dir=_make_tree(tmp_path / "modified", modified),
        expected_dir=_make_tree(tmp_path / "expected", expected),
        evaluator="expected-diff",
        config=config,
    )
    return await ExpectedDiffEvaluator(observer=FakeEvaluatorObserver()).evaluate(
        context
    )


# ---------------------------------------------------------------------------
# list_files() / compare_trees()
# ---------------------------------------------------------------------------


class TestListFiles:
    """list_files() walks the tree and skips .git."""

    def test_sorted_relative_paths_without_git(self, tmp_path: Path) -> None:
        root = _make_tree(
            tmp_path,
            {"b.txt": "b", "a/c.txt": "c", ".git/HEAD": "ref", ".github/ci.yml": "x"},
        )

        assert list_files(root) == [".github/ci.yml", "a/c.txt", "b.txt"]


class TestCompareTrees:
    """compare_trees() classifies each path and aggregates similarity."""

    def test_identical_trees_score_one(self, tmp_path: Path) -> None:
        files = {"README.md": "# demo\n", "src/app.py": "print(1)\n"}
        modified = _make_tree(tmp_path / "m", files)
        expected = _make_tree(tmp_path / "e", files)

        similarities, summary = compare_trees(modified, expected)

        assert summary.aggregate_similarity == 1.0
        assert summary.files_matched == 2
        assert all(s.status == "matched" for s in similarities)

    def test_empty_trees_score_one(self, tmp_path: Path) -> None:
        modified = _make_tree(tmp_path / "m", {})
        expected = _make_tree(tmp_path / "e", {})

        _, summary = compare_trees(modified, expected)

        assert summary.aggregate_similarity == 1.0

    def test_added_and_removed_files_are_penalised(self, tmp_path: Path) -> None:
        modified = _make_tree(tmp_path / "m", {"same.txt": "x", "extra.txt": "y"})
        expected = _make_tree(tmp_path / "e", {"same.txt": "x", "gone.txt": "z"})

        similarities, summary = compare_trees(modified, expected)

        statuses = {s.path: s.status for s in similarities}
        assert statuses == {
            "same.txt": "matched",
            "extra.txt": "added",
            "gone.txt": "removed",
        }
        # mean 1.0 minus 2 unmatched paths out of 3
        assert summary.aggregate_similarity == pytest.approx(1 - 2 / 3)

    def test_no_comparable_files_scores_zero(self, tmp_path: Path) -> None:
        modified = _make_tree(tmp_path / "m", {"a.txt": "a"})
        expected = _make_tree(tmp_path / "e", {"b.txt": "b"})

        _, summary = compare_trees(modified, expected)

        assert summary.aggregate_similarity == 0.0

    def test_changed_file_gets_partial_similarity(self, tmp_path: Path) -> None:
        modified = _make_tree(tmp_path / "m", {"f.txt": "abcdefghij"})
        expected = _make_tree(tmp_path / "e", {"f.txt": "abcdefghiX"})

        similarities, summary = compare_trees(modified, expected)

        assert similarities[0].status == "changed"
        assert summary.aggregate_similarity == pytest.approx(0.9)

    def test_differing_binary_files_score_zero(self, tmp_path: Path) -> None:
        modified = tmp_path / "m"
        expected = tmp_path / "e"
        modified.mkdir()
        expected.mkdir()
        (modified / "blob.bin").write_bytes(b"\xff\xfe\x00")
        (expected / "blob.bin").write_bytes(b"\xff\xfd\x00")

        similarities, _ = compare_trees(modified, expected)

        assert similarities[0].similarity == 0.0


# ---------------------------------------------------------------------------
# evaluate()
# ---------------------------------------------------------------------------


class TestEvaluate:
    """evaluate() passes iff aggregate similarity reaches the threshold."""

    async def test_matching_trees_pass_at_default_threshold(
        self, tmp_path: Path
    ) -> None:
        files = {"README.md": "# updated\n"}

        result = await _evaluate(tmp_path, modified=files, expected=files)

        assert result.status == "passed"
        assert result.metrics["aggregate_similarity"] == 1.0
        assert result.metrics["files_matched"] == 1
        assert result.assertions == {"threshold": 0.8}

    async def test_below_threshold_fails(self, tmp_path: Path) -> None:
        result = await _evaluate(
            tmp_path,
            modified={"README.md": "completely different"},
            expected={"README.md": "# expected text\n"},
        )

        assert result.status == "failed"
        assert result.message.startswith("✗")

    async def test_zero_threshold_always_passes(self, tmp_path: Path) -> None:
        result = await _evaluate(
            tmp_path,
            modified={"a.txt": "a"},
            expected={"b.txt": "b"},
            config={"threshold": 0},
        )

        assert result.status == "passed"
        assert result.metrics["aggregate_similarity"] == 0.0

    async def test_threshold_out_of_range_skips(self, tmp_path: Path) -> None:
        result = await _evaluate(
            tmp_path,
            modified={"a.txt": "a"},
            expected={"a.txt": "a"},
            config={"threshold": 1.5},
        )

        assert result.status == "skipped"
        assert "invalid configuration" in result.message

    async def test_writes_report_artifact(self, tmp_path: Path) -> None:
        result = await _evaluate(
            tmp_path,
            modified={"a.txt": "a", "new.txt": "n"},
            expected={"a.txt": "a"},
        )

        assert result.artifacts[0].path == f"evaluators/expected-diff/{REPORT_FILENAME}"
        report = json.loads(
            (tmp_path / "artifacts" / result.artifacts[0].path).read_text()
        )
        assert report["summary"]["files_added"] == 1
        assert {d["path"] for d in report["file_details"]} == {"a.txt", "new.txt"}

    async def test_message_mentions_added_files(self, tmp_path: Path) -> None:
        result = await _evaluate(
            tmp_path,
            modified={"a.txt": "a", "new.txt": "n"},
            expected={"a.txt": "a"},
        )

        assert "1 added" in result.message

    async def test_missing_expected_dir_is_skipped(self, tmp_path: Path) -> None:
        context = make_context(
            tmp_path=tmp_path,
            modified_dir=_make_tree(tmp_path / "modified", {"a.txt": "a"}),
            expected_dir=None,
            evaluator="expected-diff",
        )
        evaluator = ExpectedDiffEvaluator(observer=FakeEvaluatorObserver())

        result = await evaluator.evaluate(context)

        assert result.status == "skipped"
        assert await evaluator.check_preconditions(context) is False


class TestArtifactWriteFailure:
    """An unwritable artifact directory never changes the verdict."""

    async def test_verdict_survives_and_observer_is_notified(
        self, tmp_path: Path
    ) -> None:
        observer = FakeEvaluatorObserver()
        files = {"a.txt": "a"}
        context = make_context(
            tmp_path=tmp_path,
            modified_dir=_make_tree(tmp_path / "modified", files),
            expected_dir=_make_tree(tmp_path / "expected", files),
            evaluator="expected-diff",
        )
        # A regular file where the evaluator directory should be.
        context.evaluator_artifacts_dir.parent.mkdir(parents=True)
        context.evaluator_artifacts_dir.write_text("in the way")

        result = await ExpectedDiffEvaluator(observer=observer).evaluate(context)

        assert result.status == "passed"
        assert result.artifacts == []
        assert len(observer.artifact_write_failures) == 1
        assert observer.artifact_write_failures[0].evaluator == "expected-diff"
