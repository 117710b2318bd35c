"""Git repository abstraction.

Every method maps to exactly one git invocation and returns a Result, so a
multi-step sequence can report which command failed instead of a single
opaque shell chain.

Usage:
    repo = Repository(Path("/path/to/clone"), console=RichConsole())

    match repo.current_branch():
        case Ok(branch):
            print(f"Branch: {branch}")
        case Err(e):
            print(f"Error: {e.message}")

    # Check out "public" for the duration of a read, then go back
    result = repo.on_branch("public", lambda: repo.head())
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from wcsync.core.result import Err, Ok, Result
from wcsync.git.log import LOG_FORMAT, LogEntry, parse_log
from wcsync.output.console import ConsoleProtocol, Style
from wcsync.platform.process import ProcessError
from wcsync.platform.process import run as run_process

__all__ = [
    "GitError",
    "Repository",
]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command line that failed
        message: Error output from git (stderr, else stdout)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """A local clone, driven through the git CLI.

    No timeout is applied: a git command that hangs (credential prompt,
    stalled fetch) hangs the caller.

    Attributes:
        path: Path to the working tree root
    """

    def __init__(self, path: Path, *, console: ConsoleProtocol | None = None) -> None:
        """Initialize repository.

        Args:
            path: Path to the working tree root
            console: When given, every git command is echoed before it runs
        """
        self.path = path
        self._console = console

    def exists(self) -> bool:
        """Check if this is a git working tree (``.git`` dir or worktree file)."""
        return (self.path / ".git").exists()

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    def current_branch(self) -> Result[str, GitError]:
        """Name of the checked-out branch; ``HEAD`` when detached."""
        return self._git(["rev-parse", "--abbrev-ref", "HEAD"]).map(str.strip)

    def checkout(self, branch: str) -> Result[str, GitError]:
        return self._git(["checkout", branch])

    def create_tracking_branch(self, branch: str, upstream: str) -> Result[str, GitError]:
        """Create ``branch`` from ``upstream`` (e.g. ``webclient/public``) and check it out."""
        return self._git(["checkout", "-b", branch, "--track", upstream])

    def has_branch(self, branch: str) -> Result[bool, GitError]:
        """True if a local branch named ``branch`` exists."""
        return self._git(["branch", "--list", branch]).map(lambda out: bool(out.strip()))

    def restoring_branch(self, action: Callable[[], Result[T, E]]) -> Result[T, E | GitError]:
        """Run ``action`` and check the current branch back out afterwards.

        The original branch is restored on every exit path, including when
        ``action`` fails or raises. If both the action and the restoring
        checkout fail, the action's error is returned.
        """
        start = self.current_branch()
        if isinstance(start, Err):
            return start

        try:
            result = action()
        finally:
            restored = self.checkout(start.value)

        if isinstance(result, Err):
            return result
        if isinstance(restored, Err):
            return restored
        return result

    def on_branch(self, branch: str, action: Callable[[], Result[T, E]]) -> Result[T, E | GitError]:
        """Check out ``branch``, run ``action``, then return to the prior branch."""

        def scoped() -> Result[T, E | GitError]:
            checked_out = self.checkout(branch)
            if isinstance(checked_out, Err):
                return checked_out
            return action()

        return self.restoring_branch(scoped)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def head(self, ref: str | None = None) -> Result[LogEntry | None, GitError]:
        """Most recent commit on ``ref`` (HEAD by default), None if there is none."""
        args = ["log", "-1", f"--format={LOG_FORMAT}"]
        if ref:
            args.append(ref)
        return self._git(args).map(lambda out: next(iter(parse_log(out)), None))

    def history(self, ref: str | None = None) -> Result[list[LogEntry], GitError]:
        """Full history of ``ref``, most recent first."""
        args = ["log", f"--format={LOG_FORMAT}"]
        if ref:
            args.append(ref)
        return self._git(args).map(parse_log)

    def commits_between(self, start: str, end: str) -> Result[list[LogEntry], GitError]:
        """Commits in the open-closed range ``(start, end]``."""
        return self._git(["log", f"--format={LOG_FORMAT}", f"{start}..{end}"]).map(parse_log)

    # -------------------------------------------------------------------------
    # Remotes
    # -------------------------------------------------------------------------

    def remotes(self) -> Result[list[str], GitError]:
        return self._git(["remote"]).map(
            lambda out: [ln.strip() for ln in out.splitlines() if ln.strip()]
        )

    def add_remote(self, name: str, url: str) -> Result[str, GitError]:
        return self._git(["remote", "add", name, url])

    def set_push_url(self, name: str, url: str) -> Result[str, GitError]:
        return self._git(["remote", "set-url", "--push", name, url])

    def fetch(self, remote: str) -> Result[str, GitError]:
        return self._git(["fetch", remote])

    def pull(self, remote: str | None = None, branch: str | None = None) -> Result[str, GitError]:
        args = ["pull"]
        if remote:
            args.append(remote)
            if branch:
                args.append(branch)
        return self._git(args)

    def push(self, remote: str, branch: str) -> Result[str, GitError]:
        return self._git(["push", remote, branch])

    # -------------------------------------------------------------------------
    # Cherry-pick
    # -------------------------------------------------------------------------

    def cherry_pick(
        self,
        start: str,
        end: str,
        *,
        strategy_option: str | None = "theirs",
        allow_empty: bool = True,
    ) -> Result[str, GitError]:
        """Replay ``(start, end]`` onto the current branch.

        With ``allow_empty``, commits that are empty or become empty after
        conflict resolution are kept so the replayed history stays linear.
        """
        return self._git(cherry_pick_args(start, end, strategy_option, allow_empty))

    def git_dir(self) -> Result[Path, GitError]:
        def resolve(out: str) -> Path:
            p = Path(out.strip())
            return p if p.is_absolute() else self.path / p

        return self._git(["rev-parse", "--git-dir"]).map(resolve)

    def cherry_pick_in_progress(self) -> Result[bool, GitError]:
        """True if an interrupted cherry-pick is waiting to be continued or aborted."""
        return self.git_dir().map(lambda d: (d / "CHERRY_PICK_HEAD").exists())

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _git(self, args: list[str]) -> Result[str, GitError]:
        command = " ".join(["git", *args])
        if self._console is not None:
            self._console.print(command, Style.DIM)

        result = self._run(args)
        if isinstance(result, Err):
            e = result.error
            return Err(
                GitError(
                    command=command,
                    message=e.output or f"{command} failed",
                    returncode=e.returncode,
                )
            )
        return Ok(result.value)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)


def cherry_pick_args(
    start: str,
    end: str,
    strategy_option: str | None = "theirs",
    allow_empty: bool = True,
) -> list[str]:
    """Arguments for ``git cherry-pick`` over ``(start, end]``.

    Shared with dry-run echoing so the printed command is the one that would run.
    """
    args = ["cherry-pick"]
    if strategy_option:
        args.extend(["-X", strategy_option])
    if allow_empty:
        args.extend(["--allow-empty", "--keep-redundant-commits"])
    args.append(f"{start}..{end}")
    return args
