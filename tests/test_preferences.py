from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from pyloctrack.config import KEY_TRACKING_ENABLED
from pyloctrack.exceptions import StorageUnavailableError
from pyloctrack.preferences import JsonPreferenceStore, MemoryPreferenceStore


def test_missing_file_reads_false(tmp_path: Path) -> None:
    store = JsonPreferenceStore(tmp_path / "prefs.json")
    assert store.get() is False


def test_value_survives_a_new_store_instance(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "prefs.json"
    JsonPreferenceStore(path).set(True)

    assert JsonPreferenceStore(path).get() is True
    assert json.loads(path.read_text(encoding="utf-8")) == {KEY_TRACKING_ENABLED: True}


def test_other_keys_are_preserved(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    JsonPreferenceStore(path).set(True)

    assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "dark", KEY_TRACKING_ENABLED: True}


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", json.dumps({KEY_TRACKING_ENABLED: "yes"})])
def test_corrupt_or_mistyped_file_reads_false(tmp_path: Path, content: str) -> None:
    path = tmp_path / "prefs.json"
    path.write_text(content, encoding="utf-8")

    assert JsonPreferenceStore(path).get() is False


def test_write_failure_raises_storage_unavailable(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonPreferenceStore(blocker / "prefs.json")

    with pytest.raises(StorageUnavailableError) as exc_info:
        store.set(True)

    assert exc_info.value.path.endswith("prefs.json")


def test_no_temp_files_left_behind(tmp_path: Path) -> None:
    store = JsonPreferenceStore(tmp_path / "prefs.json")
    store.set(True)
    store.set(False)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["prefs.json"]


def test_concurrent_writers_leave_a_valid_file(tmp_path: Path) -> None:
    store = JsonPreferenceStore(tmp_path / "prefs.json")

    threads = [threading.Thread(target=store.set, args=(i % 2 == 0,)) for i in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.get() in (True, False)
    json.loads((tmp_path / "prefs.json").read_text(encoding="utf-8"))


def test_memory_store() -> None:
    store = MemoryPreferenceStore()
    assert store.get() is False
    store.set(True)
    assert store.get() is True
