"""Run external commands and report failures as values.

Only git is run through here. A failure carries the exit status and both
streams so the caller can show git's own explanation.

Usage:
    match run(["git", "rev-parse", "HEAD"], cwd=repo_path):
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.output}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from wcsync.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that exited non-zero, or could not be started (returncode -1)."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        """stderr if anything was written there, else stdout.

        cherry-pick reports conflicts on stdout.
        """
        return self.stderr.strip() or self.stdout.strip()


def run(cmd: list[str], cwd: Path) -> Result[str, ProcessError]:
    """Run ``cmd`` in ``cwd`` to completion and return its stdout.

    Output is decoded as UTF-8 with undecodable bytes replaced: commit
    messages are raw bytes when a commit carries no encoding header.
    There is no timeout; a command waiting on a credential prompt blocks.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )
    return Ok(proc.stdout)
