import json
import os
from concurrent.futures import ThreadPoolExecutor

import pytest

import repo_records
from repo_records import RecordRepo, StoreReadError, StoreWriteError


def test_missing_file_is_an_empty_collection(repo):
    assert repo.load() == []
    assert repo.latest(10) == []
    assert repo.count() == 0


def test_appends_are_loaded_back_in_call_order(repo):
    records = [{"i": i} for i in range(25)]
    counts = [repo.append(r) for r in records]

    assert counts == list(range(1, 26))
    assert repo.load() == records


def test_latest_returns_last_n_newest_first(repo):
    for i in range(15):
        repo.append({"i": i})

    latest = repo.latest(10)
    assert latest == list(reversed(repo.load()[-10:]))
    assert latest[0] == {"i": 14}
    assert latest[-1] == {"i": 5}


def test_latest_on_small_collection_returns_everything_reversed(repo):
    for i in range(3):
        repo.append({"i": i})

    assert repo.latest(10) == [{"i": 2}, {"i": 1}, {"i": 0}]
    assert repo.latest(0) == []


def test_clear_empties_the_collection(repo):
    for i in range(5):
        repo.append({"i": i})

    repo.clear()

    assert repo.load() == []
    assert json.loads(open(repo.path, encoding="utf-8").read()) == []


def test_export_parses_back_to_load(repo):
    repo.append({"type": "account", "phone": "+33 6 12", "note": "déjà"})
    repo.append({"timestamp": "2024-01-01T00:00:00Z", "nested": {"a": [1, 2]}})

    exported = repo.export()

    assert json.loads(exported.decode("utf-8")) == repo.load()
    with open(repo.path, "rb") as f:
        assert f.read() == exported


def test_unparseable_file_loads_as_empty_and_is_logged(repo, caplog):
    with open(repo.path, "w", encoding="utf-8") as f:
        f.write("[{not json")

    assert repo.load() == []
    assert "Failed to load records" in caplog.text


def test_non_array_file_loads_as_empty(repo):
    with open(repo.path, "w", encoding="utf-8") as f:
        json.dump({"not": "a list"}, f)

    assert repo.load() == []


def test_append_refuses_to_overwrite_unparseable_file(repo):
    with open(repo.path, "w", encoding="utf-8") as f:
        f.write("[{not json")

    with pytest.raises(StoreReadError):
        repo.append({"i": 1})

    with open(repo.path, encoding="utf-8") as f:
        assert f.read() == "[{not json"


def test_write_failure_keeps_previous_collection(repo, monkeypatch):
    repo.append({"i": 0})

    def broken_write(path, data):
        raise OSError("permission denied")

    monkeypatch.setattr(repo_records, "atomic_write_json", broken_write)

    with pytest.raises(StoreWriteError):
        repo.append({"i": 1})
    with pytest.raises(StoreWriteError):
        repo.clear()

    monkeypatch.undo()
    assert repo.load() == [{"i": 0}]


def test_append_into_missing_directory_is_a_write_error(tmp_path):
    repo = RecordRepo(str(tmp_path / "absent" / "mdb_data.json"))

    with pytest.raises(StoreWriteError):
        repo.append({"i": 1})


def test_ensure_storage_creates_data_directory(tmp_path):
    repo = RecordRepo(str(tmp_path / "data" / "mdb_data.json"))
    repo.ensure_storage()

    assert os.path.isdir(tmp_path / "data")
    assert repo.append({"i": 1}) == 1


def test_append_many_writes_batch_in_order(repo):
    repo.append({"i": 0})
    total = repo.append_many([{"i": 1}, {"i": 2}])

    assert total == 3
    assert repo.load() == [{"i": 0}, {"i": 1}, {"i": 2}]


def test_concurrent_appends_are_all_persisted(repo):
    n = 50

    with ThreadPoolExecutor(max_workers=16) as pool:
        counts = list(pool.map(lambda i: repo.append({"writer": i}), range(n)))

    stored = repo.load()
    assert len(stored) == n
    assert sorted(counts) == list(range(1, n + 1))
    assert sorted(r["writer"] for r in stored) == list(range(n))
