"""Typed configuration for relay.

Configuration is optional. It is read from `.relay.toml` at the repository
top level (or an explicit `--config` path) and mapped onto frozen
dataclasses. Every field has a default that matches the conventional
develop -> release flow.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILENAME",
    "Config",
    "ConfigError",
    "ReleaseConfig",
    "SafetyConfig",
    "SyncConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = ".relay.toml"

DEFAULT_SOURCE_REF = "origin/develop"
DEFAULT_TARGET_BRANCH = "release"
DEFAULT_REMOTES = ("origin", "live")
DEFAULT_COMMIT_LIMIT = 30
DEFAULT_LARGE_FILE_LINES = 10_000
DEFAULT_SYNC_BRANCH = "main"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Quick-release defaults.

    Attributes:
        source: Ref whose recent commits are offered for selection
        target_branch: Branch name pushed on every target remote
        remotes: Target remotes, in push order
        commit_limit: How many commits to list from the source ref
    """

    source: str = DEFAULT_SOURCE_REF
    target_branch: str = DEFAULT_TARGET_BRANCH
    remotes: tuple[str, ...] = DEFAULT_REMOTES
    commit_limit: int = DEFAULT_COMMIT_LIMIT


@dataclass(frozen=True, slots=True)
class SafetyConfig:
    large_file_lines: int = DEFAULT_LARGE_FILE_LINES


@dataclass(frozen=True, slots=True)
class SyncConfig:
    branch: str = DEFAULT_SYNC_BRANCH
    source_remote: str | None = None
    target_remote: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: if a numeric setting is not positive
        """
        release: StrDict = get_table(data, "release") or {}
        safety: StrDict = get_table(data, "safety") or {}
        sync: StrDict = get_table(data, "sync") or {}

        commit_limit = get_int(release, "commit_limit") or DEFAULT_COMMIT_LIMIT
        large_file_lines = get_int(safety, "large_file_lines") or DEFAULT_LARGE_FILE_LINES
        if commit_limit < 1:
            raise ValueError("release.commit_limit must be >= 1")
        if large_file_lines < 1:
            raise ValueError("safety.large_file_lines must be >= 1")

        remotes = get_str_list(release, "remotes")

        return cls(
            release=ReleaseConfig(
                source=get_str(release, "source") or DEFAULT_SOURCE_REF,
                target_branch=get_str(release, "target_branch") or DEFAULT_TARGET_BRANCH,
                remotes=tuple(remotes) if remotes else DEFAULT_REMOTES,
                commit_limit=commit_limit,
            ),
            safety=SafetyConfig(large_file_lines=large_file_lines),
            sync=SyncConfig(
                branch=get_str(sync, "branch") or DEFAULT_SYNC_BRANCH,
                source_remote=get_str(sync, "source_remote"),
                target_remote=get_str(sync, "target_remote"),
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config, treating a missing file as "use defaults".

    A file that exists but cannot be parsed is still reported as Err so the
    caller can warn before falling back.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
