import dataclasses
import json
from pathlib import Path

import pytest

from cfsim_core.io import config as config_io
from cfsim_core.io.store import STORE_VERSION, ScenarioStore
from cfsim_core.services import presets


def test_empty_store(tmp_path: Path):
    store = ScenarioStore(tmp_path / "scenarios.json")
    assert store.list() == []
    assert store.get("missing") is None
    assert store.delete("missing") is False


def test_save_get_replace_delete(tmp_path: Path):
    path = tmp_path / "scenarios.json"
    store = ScenarioStore(path)
    first = presets.create_new_scenario("Budget")
    second = presets.create_freelancer_example()

    saved = store.save(first)
    store.save(second)
    assert [s.id for s in store.list()] == [first.id, second.id]
    assert store.get(first.id) == saved

    renamed = dataclasses.replace(first, name="Budget v2")
    store.save(renamed)
    scenarios = store.list()
    assert len(scenarios) == 2
    assert scenarios[0].name == "Budget v2"

    data = json.loads(path.read_text())
    assert data["version"] == STORE_VERSION

    assert store.delete(first.id) is True
    assert [s.id for s in store.list()] == [second.id]


def test_corrupt_store_reads_as_empty(tmp_path: Path):
    path = tmp_path / "scenarios.json"
    path.write_text("{not json")
    assert ScenarioStore(path).list() == []


def _store_with_bad_entry(path: Path):
    good = config_io.scenario_to_dict(presets.create_freelancer_example())
    bad = {
        "id": "broken",
        "name": "Broken",
        "parameters": [],
        "config": {"initialBalance": {"type": "pareto", "alpha": 2}},
    }
    path.write_text(json.dumps({"version": STORE_VERSION, "scenarios": [good, bad]}))
    return good, bad


def test_unparseable_entry_is_skipped_but_kept(tmp_path: Path):
    path = tmp_path / "scenarios.json"
    good, bad = _store_with_bad_entry(path)
    store = ScenarioStore(path)

    assert [s.id for s in store.list()] == [good["id"]]

    new = store.save(presets.create_new_scenario("new"))
    entries = json.loads(path.read_text())["scenarios"]
    assert [e["id"] for e in entries] == [good["id"], "broken", new.id]
    assert entries[1] == bad

    assert store.delete(good["id"]) is True
    entries = json.loads(path.read_text())["scenarios"]
    assert [e["id"] for e in entries] == ["broken", new.id]


def test_save_over_corrupt_store_keeps_backup(tmp_path: Path):
    path = tmp_path / "scenarios.json"
    path.write_text("{not json")
    store = ScenarioStore(path)

    saved = store.save(presets.create_new_scenario("fresh"))
    assert store.backup_path.read_text() == "{not json"
    assert [s.id for s in store.list()] == [saved.id]


def test_interrupted_write_leaves_store_intact(tmp_path: Path, monkeypatch):
    path = tmp_path / "scenarios.json"
    store = ScenarioStore(path)
    first = store.save(presets.create_new_scenario("Budget"))
    before = path.read_text()

    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(config_io.json, "dump", fail)
    with pytest.raises(OSError):
        store.save(presets.create_freelancer_example())
    monkeypatch.undo()

    assert path.read_text() == before
    assert [p.name for p in tmp_path.iterdir()] == ["scenarios.json"]
    assert [s.id for s in store.list()] == [first.id]
