"""Typed configuration for the sync workflow.

Configuration is optional. Without a ``wcsync.toml`` the defaults reproduce
the historical setup: integration branch ``v3``, public branch ``public`` on
the ``webclient`` remote.

Example ``wcsync.toml``::

    [branches]
    integration = "v3"
    public = "public"

    [remote]
    name = "webclient"
    url = "https://github.com/ProtonMail/WebClient.git"
    push_url = "git@github.com:ProtonMail/WebClient.git"
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table, non_str_keys, unknown_keys

__all__ = [
    "CONFIG_FILENAME",
    "BranchesConfig",
    "ConfigError",
    "RemoteConfig",
    "SyncConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "wcsync.toml"

DEFAULT_INTEGRATION_BRANCH = "v3"
DEFAULT_PUBLIC_BRANCH = "public"
DEFAULT_REMOTE_NAME = "webclient"
DEFAULT_REMOTE_URL = "https://github.com/ProtonMail/WebClient.git"
DEFAULT_PUSH_URL = "git@github.com:ProtonMail/WebClient.git"

_BRANCH_KEYS = ("integration", "public")
_REMOTE_KEYS = ("name", "url", "push_url")
_SECTIONS = ("branches", "remote")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BranchesConfig:
    integration: str = DEFAULT_INTEGRATION_BRANCH
    public: str = DEFAULT_PUBLIC_BRANCH


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    """The public mirror remote.

    ``url`` is used for fetching; ``push_url`` is the alternate upstream the
    public branch gets pushed to.
    """

    name: str = DEFAULT_REMOTE_NAME
    url: str = DEFAULT_REMOTE_URL
    push_url: str = DEFAULT_PUSH_URL


@dataclass(frozen=True, slots=True)
class SyncConfig:
    branches: BranchesConfig = field(default_factory=BranchesConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)

    @property
    def upstream_ref(self) -> str:
        """Remote-tracking ref the local public branch follows."""
        return f"{self.remote.name}/{self.branches.public}"

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> SyncConfig:
        """Create SyncConfig from parsed TOML, falling back to defaults per key."""
        branches: StrDict = get_table(data, "branches") or {}
        remote: StrDict = get_table(data, "remote") or {}

        return cls(
            branches=BranchesConfig(
                integration=get_str(branches, "integration") or DEFAULT_INTEGRATION_BRANCH,
                public=get_str(branches, "public") or DEFAULT_PUBLIC_BRANCH,
            ),
            remote=RemoteConfig(
                name=get_str(remote, "name") or DEFAULT_REMOTE_NAME,
                url=get_str(remote, "url") or DEFAULT_REMOTE_URL,
                push_url=get_str(remote, "push_url") or DEFAULT_PUSH_URL,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
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


def _validate(data: StrDict, path: Path) -> ConfigError | None:
    extra = unknown_keys(data, _SECTIONS)
    if extra:
        return ConfigError(f"Unknown config section(s): {', '.join(extra)}", path=path)

    for section, keys in (("branches", _BRANCH_KEYS), ("remote", _REMOTE_KEYS)):
        if section not in data:
            continue
        table = get_table(data, section)
        if table is None:
            return ConfigError(f"[{section}] must be a table", path=path)
        extra = unknown_keys(table, keys)
        if extra:
            return ConfigError(f"Unknown key(s) in [{section}]: {', '.join(extra)}", path=path)
        bad = non_str_keys(table, keys)
        if bad:
            return ConfigError(f"[{section}] {bad[0]} must be a string", path=path)
    return None


def load_config(path: Path) -> Result[SyncConfig, ConfigError]:
    """Load and validate configuration from a TOML file.

    Returns:
        Ok(SyncConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    error = _validate(result.value, path)
    if error is not None:
        return Err(error)
    return Ok(SyncConfig.from_dict(result.value))


def load_config_or_default(path: Path) -> Result[SyncConfig, ConfigError]:
    """Like load_config, but a missing file means default configuration."""
    if not path.exists():
        return Ok(SyncConfig())
    return load_config(path)
