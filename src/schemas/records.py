"""Workflow input drafts and persisted property/building/unit records."""
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .enums import PropertyType, UnitType, DEFAULT_COUNTRY
from .extraction import BuildingExtract, UnitExtract


# Building fields that must be non-empty before a batch may be committed
REQUIRED_BUILDING_FIELDS = ["street", "house_number", "postal_code", "city"]

# Property fields that must be non-empty before creation
REQUIRED_PROPERTY_FIELDS = ["name", "unique_number"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _blank_fields(model: BaseModel, field_names: List[str]) -> List[str]:
    return [
        name for name in field_names
        if not str(getattr(model, name) or "").strip()
    ]


# ============================================================================
# Drafts (stage inputs)
# ============================================================================

class PropertyDraft(BaseModel):
    """Stage 1 input."""
    name: str = Field(default="")
    type: PropertyType = Field(default=PropertyType.WEG)
    unique_number: str = Field(default="", description="Business identifier, unique across properties")
    property_manager_id: Optional[int] = Field(default=None)
    accountant_id: Optional[int] = Field(default=None)

    def missing_fields(self) -> List[str]:
        return _blank_fields(self, REQUIRED_PROPERTY_FIELDS)


class BuildingDraft(BuildingExtract):
    """Stage 2 input. Same shape as an extracted building."""

    @classmethod
    def template(cls) -> "BuildingDraft":
        """Empty entry offered when the extraction found no buildings."""
        return cls(country=DEFAULT_COUNTRY)

    @classmethod
    def from_extract(cls, building: BuildingExtract) -> "BuildingDraft":
        return cls(**building.model_dump())

    def missing_fields(self) -> List[str]:
        return _blank_fields(self, REQUIRED_BUILDING_FIELDS)


# Stage 3 input is the extracted unit record itself
UnitDraft = UnitExtract


# ============================================================================
# Persisted records
# ============================================================================

class Property(BaseModel):
    id: int
    name: str
    type: PropertyType
    unique_number: str
    property_manager_id: Optional[int] = None
    accountant_id: Optional[int] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Building(BaseModel):
    id: int
    property_id: int
    name: str
    street: str
    house_number: str
    postal_code: str
    city: str
    country: str = DEFAULT_COUNTRY
    additional_details: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Unit(BaseModel):
    id: int
    building_id: int
    number: str
    type: UnitType
    floor: Optional[str] = None
    entrance: Optional[str] = None
    size: Optional[Decimal] = None
    co_ownership_share: Optional[Decimal] = None
    construction_year: Optional[int] = None
    rooms: Optional[int] = None
    created_at: datetime = Field(default_factory=_utcnow)


# Draft-only unit fields that are never persisted
UNIT_DRAFT_ONLY_FIELDS = {"description", "building_reference"}


def unit_fields(unit: UnitDraft) -> dict:
    """Persistable fields of a unit draft."""
    return unit.model_dump(exclude=UNIT_DRAFT_ONLY_FIELDS)
