from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relay.core.config import CONFIG_FILENAME, Config, load_config_or_default
from relay.core.errors import ErrorCode
from relay.core.result import Err
from relay.git.backend import GitBackend
from relay.git.repository import Repository
from relay.output.console import ConsoleProtocol, RichConsole

REPO_ENV = "RELAY_REPO"
CONFIG_ENV = "RELAY_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    backend: GitBackend
    config: Config
    console: ConsoleProtocol


def build_context() -> CLIContext:
    console = RichConsole()
    start = Path(os.environ.get(REPO_ENV) or Path.cwd())

    toplevel = Repository(start).toplevel()
    if isinstance(toplevel, Err):
        typer.echo(f"error: not a git repository: {start}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    root = toplevel.value

    explicit = os.environ.get(CONFIG_ENV)
    config_path = Path(explicit) if explicit else root / CONFIG_FILENAME
    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        console.warning(f"ignoring {config_path}: {config_result.error.message}")
        config = Config()
    else:
        config = config_result.value

    return CLIContext(
        root=root,
        backend=Repository(root),
        config=config,
        console=console,
    )
