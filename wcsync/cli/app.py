from __future__ import annotations

import typer

from wcsync.cli.commands.sync_cmd import help_epilog, sync
from wcsync.core.config import SyncConfig


app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)

app.command(epilog=help_epilog(SyncConfig()))(sync)


def main() -> None:
    app()
