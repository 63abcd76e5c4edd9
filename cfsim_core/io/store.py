from __future__ import annotations

import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from cfsim_core.domain.errors import CashflowSimError
from cfsim_core.domain.models import Scenario
from cfsim_core.io.config import scenario_from_dict, scenario_to_dict, write_json
from cfsim_core.services.presets import utc_now_iso

logger = logging.getLogger(__name__)

STORE_VERSION = 1


def default_store_path() -> Path:
    return Path.home() / ".cfsim_scenarios.json"


class UnreadableStore(Exception):
    pass


class ScenarioStore:
    """
    All saved scenarios in a single JSON document:
    {"version": 1, "scenarios": [...]}.

    Entries that fail to parse are skipped when listing but written back
    untouched, so editing one scenario never drops another.
    """

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path) if path is not None else default_store_path()

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".bak")

    def _read_raw(self) -> List[Any]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise UnreadableStore(str(exc)) from exc
        raw = data.get("scenarios") if isinstance(data, dict) else data
        if not isinstance(raw, list):
            raise UnreadableStore("no scenario list in document")
        return raw

    def _read_raw_for_write(self) -> List[Any]:
        try:
            return self._read_raw()
        except UnreadableStore as exc:
            os.replace(self.path, self.backup_path)
            logger.warning(
                "Scenario store %s is unreadable (%s); moved it to %s", self.path, exc, self.backup_path
            )
            return []

    def _write(self, raw: List[Any]) -> None:
        write_json(self.path, {"version": STORE_VERSION, "scenarios": raw})

    def list(self) -> List[Scenario]:
        try:
            raw = self._read_raw()
        except UnreadableStore as exc:
            logger.warning("Ignoring unreadable scenario store %s: %s", self.path, exc)
            return []
        scenarios = []
        for idx, item in enumerate(raw):
            try:
                scenarios.append(scenario_from_dict(item))
            except CashflowSimError as exc:
                logger.warning("Skipping stored scenario #%d in %s: %s", idx, self.path, exc)
        return scenarios

    def get(self, scenario_id: str) -> Optional[Scenario]:
        for scenario in self.list():
            if scenario.id == scenario_id:
                return scenario
        return None

    def save(self, scenario: Scenario) -> Scenario:
        """Insert or replace by id; stamps updated_at."""
        raw = self._read_raw_for_write()
        updated = dataclasses.replace(scenario, updated_at=utc_now_iso())
        entry = scenario_to_dict(updated)
        for idx, existing in enumerate(raw):
            if _entry_id(existing) == scenario.id:
                raw[idx] = entry
                break
        else:
            raw.append(entry)
        self._write(raw)
        logger.debug("Saved scenario %s to %s", scenario.id, self.path)
        return updated

    def delete(self, scenario_id: str) -> bool:
        raw = self._read_raw_for_write()
        kept = [item for item in raw if _entry_id(item) != scenario_id]
        if len(kept) == len(raw):
            return False
        self._write(kept)
        return True


def _entry_id(item: Any) -> Optional[str]:
    if isinstance(item, dict) and "id" in item:
        return str(item["id"])
    return None
