"""End-to-end sync against real git repositories in tmp_path."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from wcsync.core.config import BranchesConfig, RemoteConfig, SyncConfig
from wcsync.core.result import Err, Ok
from wcsync.git.repository import Repository
from wcsync.output.console import MockConsole
from wcsync.sync.workflow import ReleaseSyncWorkflow

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout


def _commit(cwd: Path, name: str, message: str) -> None:
    (cwd / name).write_text(message + "\n", encoding="utf-8")
    _git(cwd, "add", name)
    _git(cwd, "commit", "-q", "-m", message)


@pytest.fixture
def clone(tmp_path: Path) -> tuple[Path, Path]:
    """A v3 clone three commits ahead of a public mirror that stopped at 3.12.24."""
    origin = tmp_path / "origin.git"
    mirror = tmp_path / "mirror.git"
    work = tmp_path / "work"
    _git(tmp_path, "init", "-q", "--bare", str(origin))
    _git(tmp_path, "init", "-q", "--bare", str(mirror))
    work.mkdir()
    _git(work, "init", "-q")
    _git(work, "checkout", "-q", "-b", "v3")
    _git(work, "config", "user.name", "Release Bot")
    _git(work, "config", "user.email", "release@example.com")
    _git(work, "config", "commit.gpgsign", "false")

    _commit(work, "README", "Initial import")
    _commit(work, "CHANGELOG", "Release 3.12.24: fixes")
    _git(work, "push", "-q", str(mirror), "v3:public")

    _commit(work, "login.js", "Fix login redirect")
    _commit(work, "CHANGELOG", "Release 3.12.25")
    _git(work, "remote", "add", "origin", str(origin))
    _git(work, "push", "-q", "-u", "origin", "v3")
    return work, mirror


def _config(mirror: Path) -> SyncConfig:
    return SyncConfig(
        branches=BranchesConfig(),
        remote=RemoteConfig(name="webclient", url=str(mirror), push_url=str(mirror)),
    )


def test_sync_replays_and_pushes(clone: tuple[Path, Path]) -> None:
    work, mirror = clone
    console = MockConsole()
    workflow = ReleaseSyncWorkflow(
        repo=Repository(work, console=console),
        config=_config(mirror),
        console=console,
    )

    result = workflow.run()

    assert isinstance(result, Ok), console.text
    assert result.value.bootstrapped is True
    assert result.value.replayed == 2
    assert result.value.angular.label == "Release 3.12.25"
    assert result.value.webclient.label == "Release 3.12.24: fixes"

    subjects = _git(mirror, "log", "--format=%s", "public").splitlines()
    assert subjects == [
        "Release 3.12.25",
        "Fix login redirect",
        "Release 3.12.24: fixes",
        "Initial import",
    ]
    assert _git(work, "rev-parse", "--abbrev-ref", "HEAD").strip() == "v3"


def test_second_run_is_a_noop(clone: tuple[Path, Path]) -> None:
    work, mirror = clone
    config = _config(mirror)

    first = ReleaseSyncWorkflow(
        repo=Repository(work), config=config, console=MockConsole()
    ).run()
    assert isinstance(first, Ok)

    console = MockConsole()
    second = ReleaseSyncWorkflow(repo=Repository(work), config=config, console=console).run()

    assert isinstance(second, Ok), console.text
    assert second.value.bootstrapped is False
    assert second.value.replayed == 0
    assert _git(work, "rev-parse", "--abbrev-ref", "HEAD").strip() == "v3"


def test_wrong_branch_touches_nothing(clone: tuple[Path, Path]) -> None:
    work, mirror = clone
    _git(work, "checkout", "-q", "-b", "feature-x")

    result = ReleaseSyncWorkflow(
        repo=Repository(work), config=_config(mirror), console=MockConsole()
    ).run()

    assert isinstance(result, Err)
    assert result.error.kind == "wrong_branch"
    assert "webclient" not in _git(work, "remote").split()


def _diverge_public(work: Path, mirror: Path) -> None:
    """Rewrite the mirror so replaying 3.12.25 hits a modify/delete conflict.

    The public tip still carries the 3.12.24 message, so correlation works,
    but CHANGELOG is gone there; -X theirs only settles content conflicts.
    """
    base = _git(work, "rev-parse", "v3~2").strip()
    _git(work, "checkout", "-q", "-b", "scratch", base)
    _git(work, "rm", "-q", "CHANGELOG")
    _git(work, "commit", "-q", "-m", "Drop changelog from the public tree")
    _git(work, "commit", "-q", "--allow-empty", "-m", "Release 3.12.24: fixes")
    _git(work, "push", "-q", "-f", str(mirror), "scratch:public")
    _git(work, "checkout", "-q", "v3")
    _git(work, "branch", "-q", "-D", "scratch")


def test_conflict_leaves_clone_mid_pick(clone: tuple[Path, Path]) -> None:
    work, mirror = clone
    _diverge_public(work, mirror)
    config = _config(mirror)

    console = MockConsole()
    result = ReleaseSyncWorkflow(repo=Repository(work), config=config, console=console).run()

    assert isinstance(result, Err), console.text
    assert result.error.kind == "command_failed"
    assert "git cherry-pick" in result.error.message
    assert _git(work, "rev-parse", "--abbrev-ref", "HEAD").strip() == "public"
    assert (work / ".git" / "CHERRY_PICK_HEAD").exists()
    assert "Release 3.12.25" not in _git(mirror, "log", "--format=%s", "public")

    again = ReleaseSyncWorkflow(repo=Repository(work), config=config, console=MockConsole()).run()

    assert isinstance(again, Err)
    assert again.error.kind == "cherry_pick_in_progress"


def test_non_utf8_message_is_replaced(clone: tuple[Path, Path]) -> None:
    work, mirror = clone
    message = work.parent / "message.txt"
    message.write_bytes(b"Release 3.12.26 caf\xe9\n")
    (work / "CHANGELOG").write_text("3.12.26\n", encoding="utf-8")
    _git(work, "add", "CHANGELOG")
    _git(work, "-c", "i18n.commitEncoding=UTF-8", "commit", "-q", "-F", str(message))

    console = MockConsole()
    result = ReleaseSyncWorkflow(
        repo=Repository(work), config=_config(mirror), console=console
    ).run()

    assert isinstance(result, Ok), console.text
    assert result.value.angular.label == "Release 3.12.26 caf\ufffd"
    assert result.value.replayed == 3
