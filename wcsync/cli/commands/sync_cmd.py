"""Sync command - replay integration commits onto the public mirror."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from wcsync import __version__
from wcsync.cli.context import build_context, new_console
from wcsync.core.config import SyncConfig
from wcsync.core.errors import ExitCode
from wcsync.core.result import Err
from wcsync.output.console import ConsoleProtocol, Style
from wcsync.sync.model import SyncError, SyncReport
from wcsync.sync.workflow import ReleaseSyncWorkflow

USAGE = "Usage: wcsync [--tag=<name>] [--repo PATH] [--config PATH] [--dry-run]"

OPTIONS = (
    ("--tag=<name>", "sync up to the newest commit whose message contains <name>"),
    ("--repo PATH", "local clone to operate on (default: current directory)"),
    ("--config PATH", "settings file (default: wcsync.toml in the clone)"),
    ("--dry-run", "print pull, cherry-pick and push instead of running them"),
)

CONFLICT_WARNING = (
    "Conflicts are not resolved automatically beyond preferring the incoming "
    "side (-X theirs). If the cherry-pick stops, finish the sync by hand:"
)


def recovery_steps(config: SyncConfig) -> list[str]:
    """Manual steps to finish a sync interrupted by a cherry-pick conflict."""
    return [
        "resolve the conflicting files and stage them: git add <files>",
        "continue the replay: git cherry-pick --continue",
        f"push the result: git push {config.remote.name} {config.branches.public}",
        f"go back: git checkout {config.branches.integration}",
    ]


def help_epilog(config: SyncConfig) -> str:
    steps = [f"{i}. {step}" for i, step in enumerate(recovery_steps(config), start=1)]
    return "\n\n".join([f"WARNING: {CONFLICT_WARNING}", *steps])


def print_help(console: ConsoleProtocol, config: SyncConfig) -> None:
    console.print(USAGE, Style.BOLD)
    console.newline()
    width = max(len(flag) for flag, _ in OPTIONS)
    for flag, text in OPTIONS:
        console.print(f"  {flag.ljust(width)}  {text}")
    console.newline()
    console.warning(CONFLICT_WARNING)
    for i, step in enumerate(recovery_steps(config), start=1):
        console.print(f"  {i}. {step}")


def _fail(console: ConsoleProtocol, config: SyncConfig, error: SyncError) -> NoReturn:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    console.newline()
    print_help(console, config)
    raise typer.Exit(code=int(ExitCode.SYNC_FAILED))


def _report(console: ConsoleProtocol, config: SyncConfig, report: SyncReport) -> None:
    span = f"{report.webclient.short_hash}..{report.angular.short_hash}"
    if report.is_noop:
        console.success(f"{config.branches.public} already matches {report.angular.short_hash}")
    elif report.dry_run:
        console.success(f"dry-run: would replay {report.replayed} commit(s) {span}")
    else:
        console.success(f"synced {report.replayed} commit(s) {span}")


def sync(
    tag: str | None = typer.Option(
        None,
        "--tag",
        help="Sync up to the newest integration commit whose message contains this word.",
    ),
    repo: Path = typer.Option(
        Path("."),
        "--repo",
        envvar="WCSYNC_REPO",
        help="Local clone to operate on.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Settings file (default: wcsync.toml in the clone, optional).",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print pull, cherry-pick and push without running them."
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Cherry-pick new integration commits onto the public webclient mirror."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ExitCode.OK))

    console = new_console()
    ctx_result = build_context(repo_path=repo, config_path=config, console=console)
    if isinstance(ctx_result, Err):
        _fail(console, SyncConfig(), SyncError.from_config(ctx_result.error))
    ctx = ctx_result.value

    if dry_run:
        ctx.console.info("dry-run: history-changing commands are only printed")

    workflow = ReleaseSyncWorkflow(
        repo=ctx.repo,
        config=ctx.config,
        console=ctx.console,
        dry_run=dry_run,
    )
    result = workflow.run(tag)
    if isinstance(result, Err):
        _fail(ctx.console, ctx.config, result.error)

    _report(ctx.console, ctx.config, result.value)
