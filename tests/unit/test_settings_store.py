from __future__ import annotations

import threading
from pathlib import Path

import pytest

from appsettings.core.codecs import BOOL, FLOAT, INT, LIST, STR
from appsettings.services.settings_store import SettingsStore


def _store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "app" / "settings")


def test_set_then_get_round_trips(tmp_path):
    store = _store(tmp_path)
    store.set("window.width", 900, INT)
    store.set("theme", "dark", STR)
    store.set("ratio", 0.75, FLOAT)
    store.set("minimized", True, BOOL)
    store.set("recent", ["a", "b"], LIST)
    store.set("nested", {"a": [1, {"b": None}]})

    assert store.get("window.width", INT) == 900
    assert store.get("theme", STR) == "dark"
    assert store.get("ratio", FLOAT) == 0.75
    assert store.get("minimized", BOOL) is True
    assert store.get("recent", LIST) == ["a", "b"]
    assert store.get("nested") == {"a": [1, {"b": None}]}


def test_keys_are_case_insensitive(tmp_path):
    store = _store(tmp_path)
    store.set("Foo", 1, INT)

    assert store.get("foo", INT) == 1
    assert store.get("FOO", INT) == 1
    assert store.has("fOo")
    assert store.keys() == ["foo"]


def test_missing_or_unreadable_values_return_zero(tmp_path):
    store = _store(tmp_path)
    store.set("name", "not a number", STR)

    assert store.get("absent", INT) == 0
    assert store.get("absent") is None
    assert store.get("name", INT) == 0


def test_get_or_set_default_sets_once(tmp_path):
    store = _store(tmp_path)
    calls: list[int] = []
    store.subscribe("retries", lambda: calls.append(1))

    assert store.get_or_set_default("retries", 3, INT) == 3
    assert store.get_or_set_default("retries", 5, INT) == 3
    assert calls == [1]


def test_get_or_set_default_replaces_unreadable_value(tmp_path):
    store = _store(tmp_path)
    store.set("retries", "three", STR)

    assert store.get_or_set_default("retries", 3, INT) == 3
    assert store.get("retries", INT) == 3


def test_set_if_empty_keeps_existing_value(tmp_path):
    store = _store(tmp_path)
    assert store.set_if_empty("Server", "a", STR) is True
    assert store.set_if_empty("server", "b", STR) is False
    assert store.get("server", STR) == "a"


def test_set_rejects_keys_that_cannot_be_persisted(tmp_path):
    store = _store(tmp_path)
    with pytest.raises(ValueError):
        store.set("a=b", 1)
    with pytest.raises(ValueError):
        store.set("line\nbreak", 1)
    assert not store.modified


def test_callbacks_fire_in_order_after_commit(tmp_path):
    store = _store(tmp_path)
    seen: list[tuple[str, object]] = []
    store.subscribe("Volume", lambda: seen.append(("c1", store.get("volume", INT))))
    store.subscribe("volume", lambda: seen.append(("c2", store.get("volume", INT))))

    store.set("VOLUME", 7, INT)

    assert seen == [("c1", 7), ("c2", 7)]
    assert not store.path.exists()


def test_unsubscribe(tmp_path):
    store = _store(tmp_path)
    calls: list[int] = []
    subscription = store.subscribe("k", lambda: calls.append(1))

    assert store.unsubscribe(subscription) is True
    assert store.unsubscribe(subscription) is False
    store.set("k", 1)
    assert calls == []


def test_save_writes_key_value_lines(tmp_path):
    store = _store(tmp_path)
    store.set("Servers.List", [{"url": "a=b"}])
    store.set("count", 2, INT)

    assert store.save() is True

    lines = store.path.read_text(encoding="utf-8").splitlines()
    assert sorted(lines) == ['count=2', 'servers.list=[{"url": "a=b"}]']
    assert not store.path.with_name("settings.tmp").exists()


def test_save_is_noop_without_changes(tmp_path):
    store = _store(tmp_path)
    assert store.save() is False
    assert not store.path.exists()

    store.set("a", 1, INT)
    assert store.modified
    assert store.save() is True
    assert not store.modified

    store.path.unlink()
    assert store.save() is False
    assert not store.path.exists()


def test_failed_save_keeps_store_modified(tmp_path):
    blocker = tmp_path / "app"
    blocker.write_text("not a directory", encoding="utf-8")
    store = _store(tmp_path)
    store.set("a", 1, INT)

    with pytest.raises(OSError):
        store.save()
    assert store.modified


def test_load_parses_lines_and_skips_malformed(tmp_path):
    path = tmp_path / "settings"
    path.write_text(
        "Theme=\"dark\"\n"
        "no separator here\n"
        "\n"
        "query=\"a=b&c=d\"\n"
        "count=4\r\n",
        encoding="utf-8",
    )
    store = SettingsStore(path)
    store.set("stale", 1)

    store.load()

    assert sorted(store.keys()) == ["count", "query", "theme"]
    assert store.get("theme", STR) == "dark"
    assert store.get("query", STR) == "a=b&c=d"
    assert store.get("count", INT) == 4
    assert not store.modified


def test_load_missing_file_raises(tmp_path):
    store = SettingsStore(tmp_path / "missing")
    with pytest.raises(OSError):
        store.load()


def test_reload_round_trip_through_disk(tmp_path):
    store = _store(tmp_path)
    store.set("list", [1, 2, 3], LIST)
    store.save()

    other = SettingsStore(store.path)
    other.reload()
    assert other.get("list", LIST) == [1, 2, 3]


def test_open_populates_defaults_only_when_missing(tmp_path):
    path = tmp_path / "settings"
    populated: list[SettingsStore] = []

    def populate(store: SettingsStore) -> None:
        populated.append(store)
        store.get_or_set_default("theme", "dark", STR)

    first = SettingsStore.open(path, populate)
    assert path.exists()
    assert first.get("theme", STR) == "dark"

    first.set("theme", "light", STR)
    first.save()

    second = SettingsStore.open(path, populate)
    assert second.get("theme", STR) == "light"
    assert populated == [first]


def test_concurrent_sets_do_not_lose_entries(tmp_path):
    store = _store(tmp_path)

    def worker(prefix: str) -> None:
        for index in range(200):
            store.set(f"{prefix}.{index}", index, INT)
            store.get(f"{prefix}.{index}", INT)

    threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.keys()) == 800
    assert store.get("t3.199", INT) == 199


def test_load_survives_undecodable_bytes(tmp_path):
    path = tmp_path / "settings"
    path.write_bytes(b'theme="dark"\nname="caf\xe9"\n')
    store = SettingsStore(path)

    store.load()

    assert store.get("theme", STR) == "dark"
    assert store.has("name")
    assert store.get("name", INT) == 0


def test_failed_replace_removes_temporary_file(tmp_path, monkeypatch):
    store = _store(tmp_path)
    store.set("a", 1, INT)

    def _fail(src, dst):
        raise PermissionError("locked")

    monkeypatch.setattr("appsettings.services.settings_store.os.replace", _fail)

    with pytest.raises(OSError):
        store.save()

    assert not store.path.with_name("settings.tmp").exists()
    assert not store.path.exists()
    assert store.modified
