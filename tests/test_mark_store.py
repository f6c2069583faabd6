import pytest

from database import mark_store as mark_store_module
from database.mark_store import InMemoryMarkStore, JsonFileMarkStore


def test_json_file_store_survives_new_instance(tmp_path):
    path = tmp_path / "marks.json"
    JsonFileMarkStore(path).set("last_morning_update", "2026-10-19")

    store = JsonFileMarkStore(path)

    assert store.get("last_morning_update") == "2026-10-19"
    assert store.get("last_evening_update") is None


def test_json_file_store_recovers_from_corrupt_file(tmp_path):
    path = tmp_path / "marks.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileMarkStore(path)

    assert store.get("anything") is None
    store.set("k", "v")
    assert store.get("k") == "v"


def test_json_file_store_failed_write_keeps_previous_marks(tmp_path, monkeypatch):
    path = tmp_path / "marks.json"
    store = JsonFileMarkStore(path)
    store.set("last_morning_update", "2026-10-19")

    def crash(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(mark_store_module.os, "replace", crash)
    with pytest.raises(OSError):
        store.set("last_evening_update", "2026-10-19")

    assert JsonFileMarkStore(path).get("last_morning_update") == "2026-10-19"
    assert JsonFileMarkStore(path).get("last_evening_update") is None


def test_in_memory_store():
    store = InMemoryMarkStore({"a": "1"})
    store.set("b", "2")

    assert (store.get("a"), store.get("b"), store.get("c")) == ("1", "2", None)
