"""Blob Storage - SQLite-backed store and its driver error mapping."""

import pytest
from sqlalchemy.exc import OperationalError

from calmish.core.errors import PersistenceError
from calmish.core.event_bus import EventBus
from calmish.infrastructure.blob_storage import SqlBlobStorage
from calmish.services.lifecycle_manager import LifecycleManager
from calmish.services.state_persistence import StatePersistence
from calmish.services.state_store import StateStore


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'calmish.db'}"


@pytest.fixture
def sql_storage(db_url):
    storage = SqlBlobStorage(db_url)
    yield storage
    storage.dispose()


def test_put_get_delete(sql_storage):
    assert sql_storage.get("calmish_user") is None
    sql_storage.put("calmish_user", '{"name": "Ana"}')
    assert sql_storage.get("calmish_user") == '{"name": "Ana"}'
    sql_storage.put("calmish_user", '{"name": "Bea"}')
    assert sql_storage.get("calmish_user") == '{"name": "Bea"}'
    sql_storage.delete("calmish_user")
    assert sql_storage.get("calmish_user") is None
    sql_storage.delete("calmish_user")


def test_health_check(sql_storage):
    assert sql_storage.health_check() is True


def test_state_survives_new_engine(db_url):
    first = SqlBlobStorage(db_url)
    store = StateStore(StatePersistence(first), EventBus())
    LifecycleManager(store).init()
    store.set_water(8)
    store.append_breathing_session("478", 300)
    first.dispose()

    second = SqlBlobStorage(db_url)
    restored = StateStore(StatePersistence(second), EventBus())
    LifecycleManager(restored).init()
    assert restored.wellness.water_glasses == 8
    assert restored.breathing.progress.today_minutes == 5
    second.dispose()


def test_driver_errors_become_persistence_errors(sql_storage, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(sql_storage._session_factory.class_, "scalar", broken)
    with pytest.raises(PersistenceError) as exc:
        sql_storage.get("calmish_user")
    assert exc.value.operation == "get"
    assert sql_storage.health_check() is True
