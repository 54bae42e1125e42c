from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from admin_console.core import db, services
from admin_console.navigation.local_cache import LocalCache, SqliteKeyValueStorage
from admin_console.tests.nav_helpers import FakeRemote


@pytest.fixture
def storage(tmp_path: Path) -> SqliteKeyValueStorage:
    return SqliteKeyValueStorage(tmp_path / "local_cache.db")


@pytest.fixture
def cache(storage: SqliteKeyValueStorage) -> LocalCache:
    return LocalCache(storage)


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(db, "USERS_DB_PATH", data_dir / "users.db")
    monkeypatch.setattr(services, "_db_initialized", False)
    services.ensure_database_ready()
    return data_dir
