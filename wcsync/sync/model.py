from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from wcsync.core.config import ConfigError
from wcsync.git.log import LogEntry
from wcsync.git.repository import GitError

SyncErrorKind = Literal[
    "wrong_branch",
    "command_failed",
    "resolution_failed",
    "ambiguous_release",
    "cherry_pick_in_progress",
    "remote_missing",
    "config_invalid",
]


@dataclass(frozen=True, slots=True)
class ReleasePointer:
    """A commit used as a cherry-pick boundary.

    An unresolved pointer keeps empty strings rather than None; callers must
    check ``is_resolved`` before using it in a range.
    """

    hash: str = ""
    label: str = ""

    @classmethod
    def from_entry(cls, entry: LogEntry | None) -> ReleasePointer:
        if entry is None:
            return cls()
        return cls(hash=entry.hash, label=entry.subject)

    @property
    def is_resolved(self) -> bool:
        return bool(self.hash) and bool(self.label)

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    def as_dict(self) -> dict[str, str]:
        return {"hash": self.hash, "label": self.label}


@dataclass(frozen=True, slots=True)
class SyncError:
    """Error payload for every workflow step.

    Rendered by the CLI as ``error: <message>`` followed by an optional hint.
    """

    kind: SyncErrorKind
    message: str
    hint: str | None = None

    @classmethod
    def from_git(cls, error: GitError) -> SyncError:
        return cls(
            kind="command_failed",
            message=f"{error.command} failed (exit {error.returncode})",
            hint=error.message or None,
        )

    @classmethod
    def from_config(cls, error: ConfigError) -> SyncError:
        return cls(
            kind="config_invalid",
            message=error.message,
            hint=f"settings file: {error.path}" if error.path else None,
        )


@dataclass(frozen=True, slots=True)
class SyncReport:
    """Outcome of a successful run."""

    angular: ReleasePointer
    webclient: ReleasePointer
    replayed: int
    bootstrapped: bool
    dry_run: bool = False

    @property
    def is_noop(self) -> bool:
        return self.replayed == 0
