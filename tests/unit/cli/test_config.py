"""Tests for resolving SyncConfig from options, environment and config file."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from snapmirror.cli.config import (
    BACKFILL_SETTINGS,
    ENV_VARS,
    PUBLISH_SETTINGS,
    config_path,
    load_file_settings,
    resolve_sync_config,
)
from snapmirror.core.config import SyncConfig
from snapmirror.core.errors import ConfigError


def _resolve(
    repo_root: Path,
    *,
    options: dict[str, object],
    env: dict[str, str],
    settings: tuple[str, ...] = tuple(ENV_VARS),
) -> SyncConfig:
    return resolve_sync_config(repo_root=repo_root, options=options, env=env, settings=settings)


def _write_config(repo_root: Path, content: str) -> None:
    path = config_path(repo_root)
    path.parent.mkdir(parents=True)
    path.write_text(content, encoding="utf-8")


def test_defaults_without_any_source(tmp_path: Path) -> None:
    config = _resolve(tmp_path, options={}, env={})

    assert config == SyncConfig()


def test_environment_overrides_defaults(tmp_path: Path) -> None:
    env = {
        "PRIV_REMOTE": "upstream",
        "PRIV_BRANCH": "dev",
        "PUB_REMOTE": "mirror",
        "PUB_BRANCH": "stable",
        "SYNC_TAG": "mirror-sync",
        "ALLOW_REWRITE": "1",
        "SNAPSHOT_DATE": "2024-12-15 14:30:00 -0800",
        "GUARD_SYNC_TAG": "true",
        "BACKFILL_ON_PUSH_FAILURE": "abort",
    }

    config = _resolve(tmp_path, options={}, env=env)

    assert config == SyncConfig(
        private_remote="upstream",
        private_branch="dev",
        public_remote="mirror",
        public_branch="stable",
        sync_tag="mirror-sync",
        allow_rewrite=True,
        snapshot_date=datetime(2024, 12, 15, 14, 30, 0, tzinfo=timezone(timedelta(hours=-8))),
        guard_rolling_tag=True,
        on_tag_push_failure="abort",
    )


def test_empty_environment_values_count_as_unset(tmp_path: Path) -> None:
    config = _resolve(tmp_path, options={}, env={"PUB_BRANCH": "", "SNAPSHOT_DATE": ""})

    assert config.public_branch == "latest"
    assert config.snapshot_date is None


def test_options_override_environment(tmp_path: Path) -> None:
    config = _resolve(
        tmp_path,
        options={"public_branch": "release", "allow_rewrite": False, "sync_tag": None},
        env={"PUB_BRANCH": "stable", "ALLOW_REWRITE": "1", "SYNC_TAG": "env-tag"},
    )

    assert config.public_branch == "release"
    assert config.allow_rewrite is False
    assert config.sync_tag == "env-tag"


def test_config_file_supplies_values(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        '[sync]\npublic_remote = "mirror"\nallow_rewrite = true\n'
        "snapshot_date = 2024-12-15T14:30:00Z\n",
    )

    config = _resolve(tmp_path, options={}, env={"PUB_REMOTE": ""})

    assert config.public_remote == "mirror"
    assert config.allow_rewrite is True
    assert config.snapshot_date is not None
    assert config.snapshot_date.utcoffset() == timedelta(0)


def test_environment_overrides_config_file(tmp_path: Path) -> None:
    _write_config(tmp_path, '[sync]\npublic_remote = "mirror"\n')

    config = _resolve(tmp_path, options={}, env={"PUB_REMOTE": "other"})

    assert config.public_remote == "other"


def test_missing_config_file_is_empty(tmp_path: Path) -> None:
    assert load_file_settings(tmp_path) == {}


def test_invalid_toml(tmp_path: Path) -> None:
    _write_config(tmp_path, "[sync\n")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_file_settings(tmp_path)


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, '[sync]\npublic_remote = "mirror"\npulbic_branch = "x"\n')

    with pytest.raises(ConfigError, match="pulbic_branch"):
        load_file_settings(tmp_path)


def test_sync_must_be_a_table(tmp_path: Path) -> None:
    _write_config(tmp_path, 'sync = "yes"\n')

    with pytest.raises(ConfigError, match="must be a table"):
        load_file_settings(tmp_path)


def test_blank_name_is_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, '[sync]\nsync_tag = "  "\n')

    with pytest.raises(ConfigError, match="sync_tag must be a non-empty string"):
        _resolve(tmp_path, options={}, env={})


def test_non_boolean_in_file_is_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "[sync]\nallow_rewrite = 3\n")

    with pytest.raises(ConfigError, match="allow_rewrite must be a boolean"):
        _resolve(tmp_path, options={}, env={})


def test_invalid_boolean_in_environment(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="ALLOW_REWRITE|allow_rewrite"):
        _resolve(tmp_path, options={}, env={"ALLOW_REWRITE": "sometimes"})


def test_invalid_policy(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="tag push failure policy"):
        _resolve(tmp_path, options={}, env={"BACKFILL_ON_PUSH_FAILURE": "retry"})


def test_publish_ignores_backfill_only_settings(tmp_path: Path) -> None:
    config = _resolve(
        tmp_path,
        options={},
        env={"BACKFILL_ON_PUSH_FAILURE": "retry", "ALLOW_REWRITE": "1"},
        settings=PUBLISH_SETTINGS,
    )

    assert config.allow_rewrite is True
    assert config.on_tag_push_failure == "continue"


def test_backfill_ignores_publish_only_settings(tmp_path: Path) -> None:
    _write_config(tmp_path, "[sync]\nallow_rewrite = 3\n")

    config = _resolve(
        tmp_path,
        options={},
        env={"SNAPSHOT_DATE": "not a date", "BACKFILL_ON_PUSH_FAILURE": "abort"},
        settings=BACKFILL_SETTINGS,
    )

    assert config.snapshot_date is None
    assert config.allow_rewrite is False
    assert config.on_tag_push_failure == "abort"
