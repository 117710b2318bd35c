from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from wcsync.core.config import (
    CONFIG_FILENAME,
    ConfigError,
    SyncConfig,
    load_config,
    load_config_or_default,
)
from wcsync.core.result import Err, Ok, Result
from wcsync.git.repository import Repository
from wcsync.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo: Repository
    config: SyncConfig
    console: ConsoleProtocol


def build_context(
    *,
    repo_path: Path,
    config_path: Path | None = None,
    console: ConsoleProtocol | None = None,
) -> Result[CLIContext, ConfigError]:
    """Resolve the clone, its configuration and the output backend.

    ``config_path`` defaults to ``wcsync.toml`` at the clone root, which may be
    absent. An explicitly passed path must exist.
    """
    out = console or RichConsole()
    root = repo_path.expanduser().resolve()

    repo = Repository(root, console=out)
    if not repo.exists():
        return Err(ConfigError(f"not a git repository: {root}"))

    if config_path is None:
        config_result = load_config_or_default(root / CONFIG_FILENAME)
    else:
        config_result = load_config(config_path.expanduser())
    if isinstance(config_result, Err):
        return config_result

    return Ok(CLIContext(repo=repo, config=config_result.value, console=out))


def new_console() -> ConsoleProtocol:
    return RichConsole()
