"""JSON-file-backed persistence gateway.

Keeps the whole store in a single JSON snapshot so the CLI can resume a
property across invocations:

    store.json
        {
            "updated_at": "...",
            "next_ids": {"property": 3, "building": 5, "unit": 12},
            "properties": [...],
            "buildings": [...],
            "units": [...]
        }
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from schemas.records import Property, Building, Unit
from ingestion.gateway import InMemoryGateway

logger = logging.getLogger(__name__)


class JsonFileGateway(InMemoryGateway):
    """
    In-memory gateway that rewrites its snapshot file after every mutation.

    Args:
        path: Snapshot file. Loaded if it exists, created on first write.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load(json.loads(self.path.read_text()))

    def _load(self, snapshot: Dict[str, Any]) -> None:
        self.properties = {
            p["id"]: Property.model_validate(p) for p in snapshot.get("properties", [])
        }
        self.buildings = {
            b["id"]: Building.model_validate(b) for b in snapshot.get("buildings", [])
        }
        self.units = {
            u["id"]: Unit.model_validate(u) for u in snapshot.get("units", [])
        }

        # Never reuse ids, even if the snapshot's counters are missing
        next_ids = snapshot.get("next_ids", {})
        for kind, records in (
            ("property", self.properties),
            ("building", self.buildings),
            ("unit", self.units),
        ):
            highest = max(records, default=0)
            self._next_ids[kind] = max(next_ids.get(kind, 1), highest + 1)

        logger.debug(
            f"Loaded {self.path}: {len(self.properties)} properties, "
            f"{len(self.buildings)} buildings, {len(self.units)} units"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return JSON-serializable snapshot of the store."""
        return {
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "next_ids": dict(self._next_ids),
            "properties": [p.model_dump(mode="json") for p in self.properties.values()],
            "buildings": [b.model_dump(mode="json") for b in self.buildings.values()],
            "units": [u.model_dump(mode="json") for u in self.units.values()],
        }

    def _changed(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.to_dict(), indent=2, default=str))

