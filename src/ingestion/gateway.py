"""Persistence gateway contract and in-memory implementation.

The relational store itself lives outside this package. The workflow only
needs the four operations of PersistenceGateway; InMemoryGateway provides them
with the same failure modes the store has (NotFound for a missing parent,
Conflict for a duplicate property unique number).
"""
import logging
import threading
from typing import Dict, List, Protocol, Sequence

from schemas.records import (
    Property, Building, Unit,
    PropertyDraft, BuildingDraft, UnitDraft,
    unit_fields,
)
from schemas.enums import DEFAULT_COUNTRY
from ingestion.errors import NotFound, Conflict

logger = logging.getLogger(__name__)


class PersistenceGateway(Protocol):
    """Create/find operations against property, building and unit storage."""

    def create_property(self, draft: PropertyDraft) -> Property:
        ...

    def create_buildings(self, property_id: int, drafts: Sequence[BuildingDraft]) -> List[Building]:
        ...

    def create_units(self, building_id: int, units: Sequence[UnitDraft]) -> List[Unit]:
        ...

    def find_buildings_by_property(self, property_id: int) -> List[Building]:
        ...


class InMemoryGateway:
    """
    Thread-safe in-memory store.

    Ids are assigned per entity type starting at 1. Batch creates are
    all-or-nothing: parents are checked before any record is added.
    """

    def __init__(self):
        self.properties: Dict[int, Property] = {}
        self.buildings: Dict[int, Building] = {}
        self.units: Dict[int, Unit] = {}
        self._next_ids = {"property": 1, "building": 1, "unit": 1}
        self._lock = threading.Lock()

    def _allocate_id(self, kind: str) -> int:
        new_id = self._next_ids[kind]
        self._next_ids[kind] = new_id + 1
        return new_id

    def _changed(self) -> None:
        """Hook called after every committed mutation, lock held."""

    def create_property(self, draft: PropertyDraft) -> Property:
        with self._lock:
            if any(p.unique_number == draft.unique_number for p in self.properties.values()):
                raise Conflict(f"Property with unique number {draft.unique_number!r} already exists")

            prop = Property(id=self._allocate_id("property"), **draft.model_dump())
            self.properties[prop.id] = prop
            self._changed()

        logger.debug(f"Created property {prop.id} ({prop.name})")
        return prop

    def create_buildings(self, property_id: int, drafts: Sequence[BuildingDraft]) -> List[Building]:
        with self._lock:
            if property_id not in self.properties:
                raise NotFound(f"Property with ID {property_id} not found")

            created = []
            for draft in drafts:
                fields = draft.model_dump(exclude={"reference_number"})
                fields["country"] = fields.get("country") or DEFAULT_COUNTRY
                building = Building(
                    id=self._allocate_id("building"),
                    property_id=property_id,
                    **fields
                )
                self.buildings[building.id] = building
                created.append(building)
            self._changed()

        logger.debug(f"Created {len(created)} buildings for property {property_id}")
        return created

    def create_units(self, building_id: int, units: Sequence[UnitDraft]) -> List[Unit]:
        with self._lock:
            if building_id not in self.buildings:
                raise NotFound(f"Building with ID {building_id} not found")

            created = []
            for unit in units:
                record = Unit(
                    id=self._allocate_id("unit"),
                    building_id=building_id,
                    **unit_fields(unit)
                )
                self.units[record.id] = record
                created.append(record)
            self._changed()

        logger.debug(f"Created {len(created)} units in building {building_id}")
        return created

    def find_buildings_by_property(self, property_id: int) -> List[Building]:
        with self._lock:
            if property_id not in self.properties:
                raise NotFound(f"Property with ID {property_id} not found")
            return sorted(
                (b for b in self.buildings.values() if b.property_id == property_id),
                key=lambda b: b.id
            )

    def find_units_by_building(self, building_id: int) -> List[Unit]:
        with self._lock:
            return sorted(
                (u for u in self.units.values() if u.building_id == building_id),
                key=lambda u: u.number
            )

    def delete_building(self, building_id: int) -> None:
        """Remove a building and its units (cascade)."""
        with self._lock:
            if self.buildings.pop(building_id, None) is None:
                raise NotFound(f"Building with ID {building_id} not found")
            self.units = {
                uid: u for uid, u in self.units.items() if u.building_id != building_id
            }
            self._changed()
