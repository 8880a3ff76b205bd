"""GitClient — thin async wrapper over the `git` executable."""

import os
from pathlib import Path

from ybench.core.process import ProcessResult, run_process
from ybench.git.domain.numstat import FileNumstat
from ybench.git.infrastructure.errors import GitCommandError, GitTimeoutError

_DEFAULT_TIMEOUT_MS = 300_000


class GitClient:
    """Runs git subcommands with a per-command time limit.

    Every call is non-interactive: credential prompts are disabled so a
    private repository fails fast instead of blocking on stdin.
    """

    def __init__(self, timeout_ms: int = _DEFAULT_TIMEOUT_MS) -> None:
        self._timeout_ms = timeout_ms

    async def run(
        self,
        *args: str,
        cwd: Path | None = None,
        ok_codes: tuple[int, ...] = (0,),
    ) -> ProcessResult:
        """Run `git <args>` and return its captured output.

        Raises:
            GitTimeoutError: if the command exceeds the configured time limit.
            GitCommandError: if git cannot be launched or exits with a status
                outside ok_codes.
        """
        argv = ["git", *args]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            result = await run_process(
                argv,
                cwd=cwd,
                timeout_seconds=self._timeout_ms / 1000,
                env=env,
            )
        except OSError as exc:
            raise GitCommandError(args=argv, exit_code=127, stderr=str(exc)) from exc

        if result.timed_out:
            raise GitTimeoutError(args=argv, timeout_ms=self._timeout_ms)
        if result.exit_code not in ok_codes:
            raise GitCommandError(
                args=argv, exit_code=result.exit_code, stderr=result.stderr
            )
        return result

    async def clone(
        self,
        url: str,
        dest: Path,
        branch: str | None = None,
        depth: int | None = None,
        single_branch: bool = False,
    ) -> None:
        args = ["clone", "--quiet"]
        if depth is not None:
            args += ["--depth", str(depth)]
            if url_is_local_path(url):
                # Local paths ignore --depth unless cloned over file://.
                url = Path(url).resolve().as_uri()
        if branch is not None:
            args += ["--branch", branch]
        if single_branch:
            args.append("--single-branch")
        args += ["--", url, str(dest)]
        await self.run(*args)

    async def checkout(self, repo_dir: Path, revision: str) -> None:
        await self.run("checkout", "--quiet", "--detach", revision, cwd=repo_dir)

    async def rev_parse(self, repo_dir: Path, revision: str = "HEAD") -> str:
        result = await self.run(
            "rev-parse", "--verify", f"{revision}^{{commit}}", cwd=repo_dir
        )
        return result.stdout.strip()

    async def diff_numstat(self, repo_dir: Path, base: str) -> list[FileNumstat]:
        """Per-file line counts of the working tree (staged and unstaged) against base."""
        result = await self.run(
            "diff", "--numstat", "--no-renames", "-z", base, "--", cwd=repo_dir
        )
        entries: list[FileNumstat] = []
        for record in result.stdout.split("\0"):
            if not record.strip():
                continue
            added, deleted, path = record.lstrip("\n").split("\t", 2)
            binary = added == "-" or deleted == "-"
            entries.append(
                FileNumstat(
                    path=path,
                    additions=0 if binary else int(added),
                    deletions=0 if binary else int(deleted),
                    binary=binary,
                )
            )
        return entries

    async def diff_patch(self, repo_dir: Path, base: str) -> str:
        result = await self.run("diff", "--no-renames", base, "--", cwd=repo_dir)
        return result.stdout

    async def untracked_files(self, repo_dir: Path) -> list[str]:
        result = await self.run(
            "ls-files", "--others", "--exclude-standard", "-z", cwd=repo_dir
        )
        return sorted(path for path in result.stdout.split("\0") if path)

    async def new_file_patch(self, repo_dir: Path, path: str) -> str:
        """Patch adding path as a new file. `git diff --no-index` exits 1 on any difference."""
        result = await self.run(
            "diff", "--no-index", "--", os.devnull, path, cwd=repo_dir, ok_codes=(0, 1)
        )
        return result.stdout

    async def working_tree_patch(self, repo_dir: Path, base: str) -> str:
        """Patch of tracked changes against base followed by every untracked file."""
        patch = await self.diff_patch(repo_dir, base)
        for path in await self.untracked_files(repo_dir):
            patch += await self.new_file_patch(repo_dir, path)
        return patch

    async def has_changes(self, repo_dir: Path) -> bool:
        """True if the tree has staged, unstaged, or untracked changes."""
        result = await self.run("status", "--porcelain", cwd=repo_dir)
        return bool(result.stdout.strip())


def url_is_local_path(url: str) -> bool:
    """True for plain filesystem paths (not URLs or scp-style host:path references)."""
    if "://" in url:
        return False
    if ":" in url.split("/", 1)[0]:
        return False
    return True
