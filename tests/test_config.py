# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# snaptrail/tests/test_config.py

from pathlib import Path

from snaptrail.clients.base import StaticSnapshotCatalog
from snaptrail.config import DEFAULT_DATABASE_URL, AppContext, Settings


def test_defaults(monkeypatch):
    for var in ("SNAPTRAIL_DATABASE_URL", "SNAPTRAIL_CACHE_TTL", "SNAPTRAIL_BTRFS_ROOT"):
        monkeypatch.delenv(var, raising=False)
    settings = Settings.from_env()
    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.cache_ttl_seconds == 3600


def test_precedence(tmp_path, monkeypatch):
    config = tmp_path / "snaptrail.json"
    config.write_text('{"database_url": "sqlite:///from-file.db", "progress_interval": 10}')
    monkeypatch.setenv("SNAPTRAIL_DATABASE_URL", "sqlite:///from-env.db")
    monkeypatch.setenv("SNAPTRAIL_CACHE_TTL", "30")

    settings = Settings.from_env(config, btrfs_root=Path("/mnt/btrfs"), log_file=None)
    assert settings.database_url == "sqlite:///from-env.db"
    assert settings.progress_interval == 10
    assert settings.cache_ttl_seconds == 30
    assert settings.btrfs_root == Path("/mnt/btrfs")

    settings = Settings.from_env(config, database_url="sqlite:///from-cli.db")
    assert settings.database_url == "sqlite:///from-cli.db"


def test_app_context_wires_shared_cache(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path}/ctx.db", cache_ttl_seconds=5)
    ctx = AppContext(settings, catalog=StaticSnapshotCatalog({}))
    assert ctx.driver.cache is ctx.cache
    assert ctx.cache.ttl == 5
    assert ctx.indexer.driver is ctx.driver
    ctx.close()
