"""Building resolution for extracted units.

Extracted units name their building with free text produced by the completion
service ("Building A", "Haus 2"), which rarely equals the persisted building
name ("Hauptstraße 1 - Building A"). Resolution uses case-sensitive substring
containment: a unit belongs to the first building whose name contains its
reference. Units matching nothing fall back to the first building.

Known limitation: buildings whose names share a common substring can capture
each other's units. There is no fuzzy scoring.
"""
import logging
from typing import Dict, List, Optional, Sequence

from schemas.records import Building, UnitDraft
from ingestion.errors import NoBuildingAvailable

logger = logging.getLogger(__name__)


def match_building(reference: str, buildings: Sequence[Building]) -> Optional[Building]:
    """
    Find the first building whose name contains the reference.

    Args:
        reference: Freeform building reference from an extracted unit
        buildings: Candidate buildings in priority order

    Returns:
        Matching building, or None if no name contains the reference
    """
    return next((b for b in buildings if reference in b.name), None)


def resolve_buildings(
    units: Sequence[UnitDraft],
    buildings: Sequence[Building]
) -> Dict[int, List[UnitDraft]]:
    """
    Group units by the id of the building they resolve to.

    Args:
        units: Unit drafts carrying freeform building references
        buildings: Persisted buildings of the property, in creation order

    Returns:
        Dict mapping building id to its units. Keys follow first resolution,
        units keep their input order within each group.

    Raises:
        NoBuildingAvailable: If buildings is empty
    """
    if not buildings:
        raise NoBuildingAvailable()

    fallback = buildings[0]
    groups: Dict[int, List[UnitDraft]] = {}

    for unit in units:
        building = match_building(unit.building_reference, buildings)
        if building is None:
            logger.debug(
                f"Unit {unit.number!r}: no building matches {unit.building_reference!r}, "
                f"falling back to {fallback.name!r}"
            )
            building = fallback
        groups.setdefault(building.id, []).append(unit)

    return groups
