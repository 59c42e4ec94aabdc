import json

from treasury.store import JsonFileStore, MemoryStore, read_int, read_json, user_key, write_json


def test_user_key_shapes():
    assert user_key("stats", "u1") == "stats-u1"
    assert user_key("reports-generated", "u1", "adag-") == "adag-reports-generated-u1"


def test_memory_store_get_set_remove():
    store = MemoryStore()
    assert store.get("a") is None
    store.set("a", "1")
    assert store.get("a") == "1"
    store.remove("a")
    assert store.get("a") is None
    store.remove("a")  # removing a missing key is fine


def test_json_roundtrip_through_store():
    store = MemoryStore()
    write_json(store, "profile-u1", {"name": "Ana", "bio": "Tesouraria"})
    assert read_json(store, "profile-u1") == {"name": "Ana", "bio": "Tesouraria"}


def test_read_json_malformed_is_absent():
    store = MemoryStore({"stats-u1": "{not json"})
    assert read_json(store, "stats-u1") is None
    assert read_json(store, "missing") is None


def test_read_int_defaults():
    store = MemoryStore({"good": "3", "bad": "three"})
    assert read_int(store, "good") == 3
    assert read_int(store, "bad") == 0
    assert read_int(store, "missing", 7) == 7


def test_json_file_store_persists_every_write(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)
    store.set("stats-u1", '{"xp": 5}')
    assert json.loads(path.read_text(encoding="utf-8")) == {"stats-u1": '{"xp": 5}'}

    reopened = JsonFileStore(path)
    assert reopened.get("stats-u1") == '{"xp": 5}'
    reopened.remove("stats-u1")
    assert JsonFileStore(path).get("stats-u1") is None


def test_json_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("garbage", encoding="utf-8")
    store = JsonFileStore(path)
    assert store.get("anything") is None
    store.set("k", "v")
    assert JsonFileStore(path).get("k") == "v"
