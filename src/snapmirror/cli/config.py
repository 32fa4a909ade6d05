"""Resolve SyncConfig from command-line options, environment and config file.

Each setting is taken from the first source that provides it:

1. Command-line option
2. Environment variable (empty values count as unset)
3. `[sync]` table of `.snapmirror/config.toml` in the repository root
4. Built-in default

Example config.toml:

  [sync]
  private_remote = "origin"
  private_branch = "main"
  public_remote = "public"
  public_branch = "latest"
  sync_tag = "public-sync"
  allow_rewrite = false
  guard_rolling_tag = false
  on_tag_push_failure = "continue"
"""

import tomllib
from collections.abc import Collection, Mapping
from dataclasses import fields
from datetime import datetime
from pathlib import Path
from typing import Any

from snapmirror.core.config import (
    SyncConfig,
    parse_bool,
    parse_snapshot_date,
    parse_tag_push_failure_policy,
)
from snapmirror.core.errors import ConfigError

CONFIG_DIR_NAME = ".snapmirror"
CONFIG_FILE_NAME = "config.toml"

# Environment variables recognized for each setting.
ENV_VARS: dict[str, str] = {
    "private_remote": "PRIV_REMOTE",
    "private_branch": "PRIV_BRANCH",
    "public_remote": "PUB_REMOTE",
    "public_branch": "PUB_BRANCH",
    "sync_tag": "SYNC_TAG",
    "allow_rewrite": "ALLOW_REWRITE",
    "snapshot_date": "SNAPSHOT_DATE",
    "guard_rolling_tag": "GUARD_SYNC_TAG",
    "on_tag_push_failure": "BACKFILL_ON_PUSH_FAILURE",
}

_NAME_KEYS = ("private_remote", "private_branch", "public_remote", "public_branch", "sync_tag")

# Settings each command reads; the others are ignored even when set.
SHARED_SETTINGS = (*_NAME_KEYS, "guard_rolling_tag")
PUBLISH_SETTINGS = (*SHARED_SETTINGS, "allow_rewrite", "snapshot_date")
BACKFILL_SETTINGS = (*SHARED_SETTINGS, "on_tag_push_failure")


def config_path(repo_root: Path) -> Path:
    return repo_root / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def load_file_settings(repo_root: Path) -> dict[str, Any]:
    """Read the [sync] table of the repository's config file, if present.

    Raises:
        ConfigError: If the file is not valid TOML or contains unknown keys
    """
    path = config_path(repo_root)
    if not path.exists():
        return {}

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    section = data.get("sync", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[sync] in {path} must be a table")
    unknown = sorted(set(section) - set(ENV_VARS))
    if unknown:
        raise ConfigError(f"Unknown keys in [sync] of {path}: {', '.join(unknown)}")
    return section


def _pick(
    key: str,
    *,
    options: Mapping[str, Any],
    env: Mapping[str, str],
    file_settings: Mapping[str, Any],
) -> Any:
    option_value = options.get(key)
    if option_value is not None:
        return option_value
    env_value = env.get(ENV_VARS[key])
    if env_value:
        return env_value
    return file_settings.get(key)


def resolve_sync_config(
    *,
    repo_root: Path,
    options: Mapping[str, Any],
    env: Mapping[str, str],
    settings: Collection[str],
) -> SyncConfig:
    """Build a SyncConfig from options, environment, config file and defaults.

    Args:
        repo_root: Repository whose config file is consulted
        options: Command-line values by setting name; None means not given
        env: Environment variables
        settings: Names of the settings to resolve; the rest keep their
            defaults, so a malformed value for an unused setting is ignored

    Raises:
        ConfigError: If any value is malformed
    """
    file_settings = load_file_settings(repo_root)
    values: dict[str, Any] = {}

    for config_field in fields(SyncConfig):
        key = config_field.name
        if key not in settings:
            continue
        raw = _pick(key, options=options, env=env, file_settings=file_settings)
        if raw is None:
            continue

        if key in _NAME_KEYS:
            if not isinstance(raw, str) or not raw.strip():
                raise ConfigError(f"{key} must be a non-empty string, got {raw!r}")
            values[key] = raw.strip()
        elif key in ("allow_rewrite", "guard_rolling_tag"):
            if not isinstance(raw, str | bool):
                raise ConfigError(f"{key} must be a boolean, got {raw!r}")
            values[key] = parse_bool(raw, key=key)
        elif key == "snapshot_date":
            if isinstance(raw, datetime):
                values[key] = raw if raw.tzinfo is not None else raw.astimezone()
            elif isinstance(raw, str):
                values[key] = parse_snapshot_date(raw)
            else:
                raise ConfigError(f"snapshot_date must be a date string, got {raw!r}")
        elif key == "on_tag_push_failure":
            if not isinstance(raw, str):
                raise ConfigError(f"on_tag_push_failure must be a string, got {raw!r}")
            values[key] = parse_tag_push_failure_policy(raw)

    return SyncConfig(**values)
