import pytest
from sqlalchemy.exc import OperationalError

from markblog.errors import NotFoundError, StoreError
from markblog.models import db


def test_open_creates_data_directory(app, tmp_path):
    assert (tmp_path / "data" / "posts.sqlite3").exists()


def test_get_missing_key_is_not_found(store):
    with pytest.raises(NotFoundError) as info:
        store.get("1700000000000")
    assert info.value.status == 404
    assert info.value.key == "1700000000000"


def test_put_then_get(store):
    store.put("1", {"short": "hello"})
    assert store.get("1") == {"short": "hello"}


def test_put_overwrites(store):
    store.put("1", {"short": "first"})
    store.put("1", {"short": "second"})
    assert store.get("1") == {"short": "second"}
    assert list(store.keys()) == ["1"]


def test_contains(store):
    store.put("a", {"short": ""})
    assert store.contains("a")
    assert not store.contains("b")


def test_items_are_ordered_by_key(store):
    for key in ["1700000000002", "1700000000000", "1700000000001"]:
        store.put(key, {"short": key})

    assert list(store.keys()) == ["1700000000000", "1700000000001", "1700000000002"]
    assert [k for k, _ in store.items(reverse=True)] == [
        "1700000000002", "1700000000001", "1700000000000",
    ]


def test_items_is_a_one_shot_iterator(store):
    store.put("1", {"short": "x"})
    scan = store.items()
    assert iter(scan) is scan
    assert list(scan) == [("1", {"short": "x"})]
    assert list(scan) == []


def test_delete(store):
    store.put("1", {"short": "x"})
    store.delete("1")
    assert not store.contains("1")


def test_delete_missing_key_is_not_found(store):
    with pytest.raises(NotFoundError):
        store.delete("nope")


def test_clear_removes_every_key(store):
    store.put("index", [])
    store.put("1", {"short": "a"})
    store.put("2", {"short": "b"})

    assert store.clear() == 3
    assert list(store.items()) == []


def test_engine_failure_is_a_store_error_not_not_found(store, monkeypatch):
    def broken_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session(), "get", broken_get)

    with pytest.raises(StoreError) as info:
        store.get("1")
    assert not isinstance(info.value, NotFoundError)
    assert info.value.status == 500
    assert info.value.operation == "get"
