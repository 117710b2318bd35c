"""Release synchronization workflow.

Replays the integration branch commits that the public mirror has not seen
yet onto the public branch, then pushes it.

The two histories share no commit ids (every cherry-pick creates a new
commit), so the public branch tip is mapped back to the integration branch
by commit message. That correlation breaks on duplicated or reworded
messages; both cases are reported as errors rather than guessed around.

Steps, each stopping the run on failure:

1. is_deployable_branch - must be on the integration branch
2. has_public_remote    - add, fetch and track the mirror remote on first use
3. get_angular_release  - newest integration commit, or the one matching --tag
4. get_webclient_release - integration commit matching the public tip
5. sync_releases        - cherry-pick (webclient, angular], push, go back
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from wcsync.core.config import SyncConfig
from wcsync.core.result import Err, Ok, Result
from wcsync.git.log import LogEntry, find_by_word
from wcsync.git.repository import GitError, Repository, cherry_pick_args
from wcsync.output.console import ConsoleProtocol, Style
from wcsync.sync.model import ReleasePointer, SyncError, SyncReport

__all__ = ["ReleaseSyncWorkflow"]

T = TypeVar("T")

_EMPTY_RANGE_MARKER = "empty commit set"


def _to_sync_error(error: SyncError | GitError) -> SyncError:
    if isinstance(error, GitError):
        return SyncError.from_git(error)
    return error


def _git_step(result: Result[T, GitError]) -> Result[T, SyncError]:
    return result.map_err(SyncError.from_git)


class ReleaseSyncWorkflow:
    """Synchronize the public mirror branch with the integration branch.

    Assumes exclusive use of the local clone for the duration of a run: the
    checked-out branch is switched in place and nothing guards against
    another process doing the same.
    """

    def __init__(
        self,
        *,
        repo: Repository,
        config: SyncConfig,
        console: ConsoleProtocol,
        dry_run: bool = False,
    ) -> None:
        self._repo = repo
        self._config = config
        self._console = console
        self._dry_run = dry_run

    @property
    def integration_branch(self) -> str:
        return self._config.branches.integration

    @property
    def public_branch(self) -> str:
        return self._config.branches.public

    @property
    def remote(self) -> str:
        return self._config.remote.name

    # -------------------------------------------------------------------------
    # Driver
    # -------------------------------------------------------------------------

    def run(self, tag: str | None = None) -> Result[SyncReport, SyncError]:
        """Run every step in order, stopping at the first failure."""
        self._console.header("Preconditions")
        branch = self.is_deployable_branch()
        if isinstance(branch, Err):
            return branch

        bootstrapped = self.has_public_remote()
        if isinstance(bootstrapped, Err):
            return bootstrapped

        self._console.header("Releases")
        angular = self.get_angular_release(tag).and_then(
            lambda p: self.validate(p, self.integration_branch)
        )
        if isinstance(angular, Err):
            return angular

        webclient = self.get_webclient_release().and_then(
            lambda p: self.validate(p, self.public_branch)
        )
        if isinstance(webclient, Err):
            return webclient

        self._console.data(
            {
                "webclient": webclient.value.as_dict(),
                "angular": angular.value.as_dict(),
            }
        )

        self._console.header("Sync")
        replayed = self.sync_releases(webclient.value, angular.value)
        if isinstance(replayed, Err):
            return replayed

        return Ok(
            SyncReport(
                angular=angular.value,
                webclient=webclient.value,
                replayed=replayed.value,
                bootstrapped=bootstrapped.value,
                dry_run=self._dry_run,
            )
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def is_deployable_branch(self) -> Result[str, SyncError]:
        """Fail unless the integration branch is checked out.

        Being elsewhere because an earlier run stopped mid cherry-pick is
        reported as such, since checking out the integration branch will
        not work until the pick is finished.
        """
        result = _git_step(self._repo.current_branch())
        if isinstance(result, Err):
            return result

        branch = self.integration_branch
        if result.value == branch:
            return Ok(result.value)

        unfinished = self._unfinished_pick()
        if isinstance(unfinished, Err):
            return unfinished
        return Err(
            SyncError(
                kind="wrong_branch",
                message=f"You must be on {branch.upper()} to sync the webclient",
                hint=f"currently on '{result.value}'; run: git checkout {branch}",
            )
        )

    def has_public_remote(self) -> Result[bool, SyncError]:
        """Make sure the mirror remote and the local public branch exist.

        Returns Ok(True) when setup ran, Ok(False) when both were already
        there. A setup interrupted after ``remote add`` is resumed: the
        remote is not added again, only fetched and tracked. Dry-run cannot
        set anything up, so a missing piece is an error there.
        """
        remotes = _git_step(self._repo.remotes())
        if isinstance(remotes, Err):
            return remotes
        tracked = _git_step(self._repo.has_branch(self.public_branch))
        if isinstance(tracked, Err):
            return tracked

        registered = self.remote in remotes.value
        if registered and tracked.value:
            return Ok(False)

        remote_cfg = self._config.remote
        upstream = self._config.upstream_ref
        steps: list[tuple[list[str], Callable[[], Result[str, GitError]]]] = []
        if not registered:
            steps.append(
                (
                    ["remote", "add", self.remote, remote_cfg.url],
                    lambda: self._repo.add_remote(self.remote, remote_cfg.url),
                )
            )
            steps.append(
                (
                    ["remote", "set-url", "--push", self.remote, remote_cfg.push_url],
                    lambda: self._repo.set_push_url(self.remote, remote_cfg.push_url),
                )
            )
        steps.append((["fetch", self.remote], lambda: self._repo.fetch(self.remote)))

        if self._dry_run:
            for args, _ in steps:
                self._echo_skipped(args)
            if tracked.value:
                return Ok(True)
            self._echo_skipped(["checkout", "-b", self.public_branch, "--track", upstream])
            return Err(
                SyncError(
                    kind="remote_missing",
                    message=f"branch '{self.public_branch}' is not set up, "
                    "its release cannot be read in dry-run mode",
                    hint=f"run once without --dry-run to fetch {upstream} and track it",
                )
            )

        if registered:
            self._console.info(
                f"remote '{self.remote}' has no local '{self.public_branch}', resuming setup"
            )
        else:
            self._console.info(f"remote '{self.remote}' not found, setting it up")

        for _, step in steps:
            result = _git_step(step())
            if isinstance(result, Err):
                return result

        if not tracked.value:
            created = self._repo.restoring_branch(
                lambda: self._repo.create_tracking_branch(self.public_branch, upstream)
            )
            if isinstance(created, Err):
                return Err(_to_sync_error(created.error))

        self._console.success(f"remote '{self.remote}' ready, tracking {upstream}")
        return Ok(True)

    def get_angular_release(self, tag: str | None = None) -> Result[ReleasePointer, SyncError]:
        """Newest integration commit, or the newest one whose message contains ``tag``.

        Without a tag no search happens; an empty history yields an
        unresolved pointer, which ``validate`` rejects.
        """
        if not tag:
            head = _git_step(self._repo.head(self.integration_branch))
            return head.map(ReleasePointer.from_entry)

        history = _git_step(self._repo.history(self.integration_branch))
        if isinstance(history, Err):
            return history

        matches = find_by_word(history.value, tag)
        if not matches:
            return Err(
                SyncError(
                    kind="resolution_failed",
                    message=f"no commit on {self.integration_branch} mentions '{tag}'",
                    hint="check the tag name; it must appear as a whole word in the commit message",
                )
            )
        return Ok(ReleasePointer.from_entry(matches[0]))

    def get_webclient_release(self) -> Result[ReleasePointer, SyncError]:
        """Integration commit the public branch tip was cherry-picked from.

        Reads the tip message of the public branch, then looks that message up
        in the integration history. Exactly one match is required.
        """
        tip = self._repo.on_branch(self.public_branch, self._repo.head)
        if isinstance(tip, Err):
            return Err(SyncError.from_git(tip.error))

        label = tip.value.subject if tip.value is not None else ""
        if not label:
            return Err(
                SyncError(
                    kind="resolution_failed",
                    message=f"branch '{self.public_branch}' has no commit to correlate",
                )
            )

        history = _git_step(self._repo.history(self.integration_branch))
        if isinstance(history, Err):
            return history

        return self._single_match(find_by_word(history.value, label), label)

    def validate(self, pointer: ReleasePointer, branch: str) -> Result[ReleasePointer, SyncError]:
        """Reject an unresolved pointer before it reaches a cherry-pick range."""
        if not pointer.is_resolved:
            return Err(
                SyncError(
                    kind="resolution_failed",
                    message=f"could not resolve a release on '{branch}'",
                    hint="an empty hash would corrupt the cherry-pick range",
                )
            )
        return Ok(pointer)

    def sync_releases(
        self, webclient: ReleasePointer, angular: ReleasePointer
    ) -> Result[int, SyncError]:
        """Cherry-pick ``(webclient, angular]`` onto the public branch and push it.

        Returns the number of replayed commits. Ends on the integration
        branch unless a cherry-pick conflict leaves the clone mid-pick.
        """
        unfinished = self._unfinished_pick()
        if isinstance(unfinished, Err):
            return unfinished

        checked_out = _git_step(self._repo.checkout(self.integration_branch))
        if isinstance(checked_out, Err):
            return checked_out
        pulled = self._mutate(["pull"], lambda: self._repo.pull())
        if isinstance(pulled, Err):
            return pulled

        replayed = self._repo.on_branch(
            self.public_branch, lambda: self._replay(webclient, angular)
        )
        if isinstance(replayed, Err):
            return Err(_to_sync_error(replayed.error))
        return Ok(replayed.value)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _replay(
        self, webclient: ReleasePointer, angular: ReleasePointer
    ) -> Result[int, SyncError]:
        pulled = self._mutate(
            ["pull", self.remote, self.public_branch],
            lambda: self._repo.pull(self.remote, self.public_branch),
        )
        if isinstance(pulled, Err):
            return pulled

        count = self._cherry_pick(webclient, angular)
        if isinstance(count, Err):
            return count

        pushed = self._mutate(
            ["push", self.remote, self.public_branch],
            lambda: self._repo.push(self.remote, self.public_branch),
        )
        if isinstance(pushed, Err):
            return pushed

        if count.value and not self._dry_run:
            self._console.success(
                f"{count.value} commit(s) pushed to {self.remote}/{self.public_branch}"
            )
        return count

    def _cherry_pick(
        self, webclient: ReleasePointer, angular: ReleasePointer
    ) -> Result[int, SyncError]:
        if webclient.hash == angular.hash:
            self._console.info(f"{self.public_branch} is already at {angular.short_hash}")
            return Ok(0)

        pending = _git_step(self._repo.commits_between(webclient.hash, angular.hash))
        if isinstance(pending, Err):
            return pending
        if not pending.value:
            self._console.info(
                f"no commits between {webclient.short_hash} and {angular.short_hash}"
            )
            return Ok(0)

        self._print_pending(pending.value)

        args = cherry_pick_args(webclient.hash, angular.hash)
        picked = self._mutate(
            args, lambda: self._repo.cherry_pick(webclient.hash, angular.hash)
        )
        if isinstance(picked, Err):
            if _EMPTY_RANGE_MARKER in (picked.error.hint or ""):
                self._console.info("git reported an empty commit set; nothing to replay")
                return Ok(0)
            return picked
        return Ok(len(pending.value))

    def _print_pending(self, entries: list[LogEntry]) -> None:
        self._console.print(f"{len(entries)} commit(s) to replay:", Style.BOLD)
        for entry in reversed(entries):
            self._console.print(f"  {entry.hash[:7]} {entry.subject}")

    def _single_match(
        self, matches: list[LogEntry], label: str
    ) -> Result[ReleasePointer, SyncError]:
        if not matches:
            return Err(
                SyncError(
                    kind="resolution_failed",
                    message=f"no commit on {self.integration_branch} matches '{label}'",
                    hint=f"the tip of '{self.public_branch}' must carry the message of an "
                    f"{self.integration_branch} commit",
                )
            )
        if len(matches) > 1:
            candidates = ", ".join(m.hash[:7] for m in matches)
            return Err(
                SyncError(
                    kind="ambiguous_release",
                    message=f"{len(matches)} commits on {self.integration_branch} match '{label}'",
                    hint=f"candidates: {candidates}",
                )
            )
        return Ok(ReleasePointer.from_entry(matches[0]))

    def _unfinished_pick(self) -> Result[None, SyncError]:
        in_progress = _git_step(self._repo.cherry_pick_in_progress())
        if isinstance(in_progress, Err):
            return in_progress
        if in_progress.value:
            return Err(
                SyncError(
                    kind="cherry_pick_in_progress",
                    message="a cherry-pick is already in progress",
                    hint="finish it with 'git cherry-pick --continue' or drop it with "
                    "'git cherry-pick --abort', then retry",
                )
            )
        return Ok(None)

    def _mutate(
        self, args: list[str], action: Callable[[], Result[T, GitError]]
    ) -> Result[T | None, SyncError]:
        """Run a history-changing git command, or only echo it in dry-run mode."""
        if self._dry_run:
            self._echo_skipped(args)
            return Ok(None)
        return _git_step(action())

    def _echo_skipped(self, args: list[str]) -> None:
        self._console.print(f"git {' '.join(args)} (dry-run)", Style.DIM)
