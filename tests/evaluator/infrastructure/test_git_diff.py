"""Tests for GitDiffEvaluator against real throwaway repositories."""

import math
from pathlib import Path
from typing import Any

import pytest

from ybench.evaluator.infrastructure.git_diff import PATCH_FILENAME, GitDiffEvaluator
from tests.evaluator.context_builder import make_context
from tests.evaluator.fake_observer import FakeEvaluatorObserver
from tests.git.repo_builder import init_repo, write_files


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_FIVE_FILES = {f"src/mod{i}.py": "a = 1\n" for i in range(5)}


def _make_evaluator() -> GitDiffEvaluator:
    return GitDiffEvaluator(observer=FakeEvaluatorObserver())


async def _evaluate(
    tmp_path: Path, repo: Path, config: dict[str, Any] | None = None
) -> Any:
    context = make_context(tmp_path=tmp_path, modified_dir=repo, config=config)
    return await _make_evaluator().evaluate(context)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestUnchangedRepository:
    """A clean working tree yields zero metrics and passes."""

    async def test_zero_metrics_and_passed(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")

        result = await _evaluate(tmp_path, repo)

        assert result.status == "passed"
        assert result.metrics["files_changed"] == 0
        assert result.metrics["lines_added"] == 0
        assert result.metrics["lines_removed"] == 0
        assert result.metrics["change_entropy"] == 0.0

    async def test_no_patch_artifact_when_clean(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")

        result = await _evaluate(tmp_path, repo)

        assert result.artifacts == []


class TestChangeMetrics:
    """Tracked and untracked changes are counted and scored."""

    async def test_counts_modified_lines(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo", {"app.py": "a = 1\nb = 2\n"})
        write_files(repo, {"app.py": "a = 1\nb = 3\nc = 4\n"})

        result = await _evaluate(tmp_path, repo)

        assert result.metrics["files_changed"] == 1
        assert result.metrics["lines_added"] == 2
        assert result.metrics["lines_removed"] == 1
        assert result.metrics["total_changes"] == 3

    async def test_untracked_files_count_as_additions(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")
        write_files(repo, {"docs/new.md": "one\ntwo\nthree"})

        result = await _evaluate(tmp_path, repo)

        assert result.metrics["files_changed"] == 1
        assert result.metrics["lines_added"] == 3
        paths = [f["path"] for f in result.metrics["changed_files"]]
        assert paths == ["docs/new.md"]

    async def test_spread_change_has_higher_entropy(self, tmp_path: Path) -> None:
        spread_repo = init_repo(tmp_path / "spread", _FIVE_FILES)
        write_files(spread_repo, {path: "a = 2\n" for path in _FIVE_FILES})
        single_repo = init_repo(tmp_path / "single", {"big.py": "x\n" * 10})
        write_files(single_repo, {"big.py": "y\n" * 10})

        spread = await _evaluate(tmp_path / "a", spread_repo)
        single = await _evaluate(tmp_path / "b", single_repo)

        assert spread.metrics["change_entropy"] == pytest.approx(math.log2(5))
        assert single.metrics["change_entropy"] == 0.0
        assert spread.metrics["change_entropy"] > single.metrics["change_entropy"]

    async def test_records_commits(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")

        result = await _evaluate(tmp_path, repo)

        assert result.metrics["base_commit"] == "HEAD"
        assert len(result.metrics["current_commit"]) == 40

    async def test_writes_patch_artifact(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")
        write_files(repo, {"README.md": "# changed\n"})

        result = await _evaluate(tmp_path, repo)

        assert len(result.artifacts) == 1
        artifact = result.artifacts[0]
        assert artifact.type == "diff"
        assert artifact.path == f"evaluators/git-diff/{PATCH_FILENAME}"
        patch = (tmp_path / "artifacts" / artifact.path).read_text()
        assert "+# changed" in patch


class TestAssertions:
    """Configured thresholds turn the evaluator into a pass/fail check."""

    async def test_within_limits_passes(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")
        write_files(repo, {"README.md": "# changed\n"})

        result = await _evaluate(
            tmp_path, repo, {"assertions": {"max_files_changed": 1}}
        )

        assert result.status == "passed"
        assert result.message.startswith("✓")
        assert result.assertions is not None
        assert result.assertions["max_files_changed"] == 1

    async def test_max_files_changed_violation_fails(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo", _FIVE_FILES)
        write_files(repo, {path: "a = 2\n" for path in _FIVE_FILES})

        result = await _evaluate(
            tmp_path, repo, {"assertions": {"max_files_changed": 2}}
        )

        assert result.status == "failed"
        assert result.metrics["violations"] == [
            "files_changed (5) exceeds max_files_changed (2)"
        ]
        assert "Violations" in result.message

    async def test_min_entropy_violation_fails(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")
        write_files(repo, {"README.md": "# changed\n"})

        result = await _evaluate(
            tmp_path, repo, {"assertions": {"min_change_entropy": 1.0}}
        )

        assert result.status == "failed"
        assert "below min_change_entropy" in result.metrics["violations"][0]

    async def test_unknown_assertion_key_skips(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")

        result = await _evaluate(
            tmp_path, repo, {"assertions": {"max_files": 1}}
        )

        assert result.status == "skipped"
        assert "invalid configuration" in result.message
        assert result.error is not None


class TestPreconditions:
    """A directory that is not a git repository is skipped, not failed."""

    async def test_non_repository_is_skipped(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        result = await _evaluate(tmp_path, plain)

        assert result.status == "skipped"
        assert result.error is not None

    async def test_check_preconditions_false_for_plain_dir(
        self, tmp_path: Path
    ) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()
        context = make_context(tmp_path=tmp_path, modified_dir=plain)

        assert await _make_evaluator().check_preconditions(context) is False

    async def test_unknown_base_commit_is_skipped(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")

        result = await _evaluate(tmp_path, repo, {"base_commit": "no-such-ref"})

        assert result.status == "skipped"
        assert result.message.startswith("Evaluation skipped:")
