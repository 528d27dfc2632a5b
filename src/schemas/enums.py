"""Shared enums used across extraction results, drafts and persisted records."""
from enum import Enum


class UnitType(str, Enum):
    APARTMENT = "Apartment"
    OFFICE = "Office"
    GARDEN = "Garden"
    PARKING = "Parking"


class PropertyType(str, Enum):
    """Management type of a property."""
    WEG = "WEG"  # Wohnungseigentümergemeinschaft (condominium association)
    MV = "MV"    # Mietverwaltung (rental management)


class WorkflowStage(str, Enum):
    """States of the property creation workflow, in forward order."""
    AWAITING_PROPERTY = "awaiting_property"
    AWAITING_BUILDINGS = "awaiting_buildings"
    AWAITING_UNITS = "awaiting_units"
    COMPLETE = "complete"


STAGE_ORDER = [
    WorkflowStage.AWAITING_PROPERTY,
    WorkflowStage.AWAITING_BUILDINGS,
    WorkflowStage.AWAITING_UNITS,
    WorkflowStage.COMPLETE,
]

# Error codes carried on failed stage reports
ERROR_CODES = [
    "validation_failed",
    "not_found",
    "conflict",
    "no_building_available",
    "no_units",
]

DEFAULT_COUNTRY = "Germany"
DEFAULT_OWNERSHIP_SHARE = 1000
