"""Pydantic models for declaration extraction output.

An ExtractionResult is the canonical, structurally valid form of what the
completion service returned for one uploaded declaration (Teilungserklärung).
It is only ever used to pre-fill the creation workflow and is never persisted.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .enums import UnitType, DEFAULT_COUNTRY, DEFAULT_OWNERSHIP_SHARE


# ============================================================================
# Section 1: Property
# ============================================================================

class PropertyExtract(BaseModel):
    """Property details from the first section of the declaration."""
    name: str = Field(default="", description="Property name")
    area: Optional[float] = Field(default=None, description="Total plot area")
    area_unit: str = Field(default="", description="Unit of the total area, e.g. m²")
    owner: str = Field(default="", description="Owner as named in the declaration")
    internal_reference_number: str = Field(default="", description="Internal reference number")
    ownership_share: float = Field(
        default=DEFAULT_OWNERSHIP_SHARE,
        description="Total co-ownership shares (common denominator of unit fractions)"
    )


# ============================================================================
# Section 2: Buildings
# ============================================================================

class BuildingExtract(BaseModel):
    """A building listed in the second section of the declaration."""
    reference_number: Optional[int] = Field(default=None, description="Building number in the document")
    name: str = Field(default="", description="Building name, used to resolve unit references")
    street: str = Field(default="")
    house_number: str = Field(default="")
    postal_code: str = Field(default="")
    city: str = Field(default="")
    country: str = Field(default=DEFAULT_COUNTRY)
    additional_details: str = Field(default="")


# ============================================================================
# Section 3: Units
# ============================================================================

class UnitExtract(BaseModel):
    """A unit listed in the third section of the declaration."""
    number: str = Field(default="", description="Unit number")
    type: UnitType = Field(default=UnitType.APARTMENT)
    building_reference: str = Field(default="", description="Freeform reference to the unit's building")
    floor: Optional[str] = Field(default=None)
    entrance: Optional[str] = Field(default=None)
    size: Optional[Decimal] = Field(default=None, description="Living/usable area")
    co_ownership_share: Optional[Decimal] = Field(default=None, description="Numerator of the co-ownership fraction")
    construction_year: Optional[int] = Field(default=None)
    rooms: Optional[int] = Field(default=None)
    description: str = Field(default="")


class ExtractionResult(BaseModel):
    """Complete normalized extraction for one declaration."""
    property: PropertyExtract = Field(default_factory=PropertyExtract)
    buildings: List[BuildingExtract] = Field(default_factory=list)
    units: List[UnitExtract] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "ExtractionResult":
        """Well-formed result carrying no pre-fill data."""
        return cls()

    def is_empty(self) -> bool:
        return (
            not self.buildings
            and not self.units
            and self.property == PropertyExtract()
        )
