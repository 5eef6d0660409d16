from __future__ import annotations

import os
from pathlib import Path

import typer

from relay import __version__
from relay.cli.commands.interactive_cmd import interactive
from relay.cli.commands.release_cmd import release
from relay.cli.commands.sync_cmd import sync
from relay.cli.commands.tools_cmd import tools_app
from relay.cli.context import CONFIG_ENV, REPO_ENV
from relay.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(release)
app.command()(interactive)
app.command()(sync)

# Sub-apps
app.add_typer(tools_app, name="tools")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: .relay.toml at the repository top level)",
    ),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        "-C",
        help="Run as if started in this directory",
    ),
) -> None:
    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: config file not found: {path}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[CONFIG_ENV] = str(path.resolve())

    if repo is not None:
        root = repo.expanduser()
        if not root.is_dir():
            typer.echo(f"error: --repo '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[REPO_ENV] = str(root.resolve())


def main() -> None:
    app()
