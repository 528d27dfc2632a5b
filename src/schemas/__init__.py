"""Declaration ingestion schemas - Pydantic models for extraction and workflow records."""
from .enums import UnitType, PropertyType, WorkflowStage
from .extraction import (
    ExtractionResult,
    PropertyExtract,
    BuildingExtract,
    UnitExtract,
)
from .records import (
    PropertyDraft,
    BuildingDraft,
    UnitDraft,
    Property,
    Building,
    Unit,
)
from .workflow import StageReport, GroupResult, ValidationIssue

__all__ = [
    # Enums
    "UnitType",
    "PropertyType",
    "WorkflowStage",
    # Extraction output
    "ExtractionResult",
    "PropertyExtract",
    "BuildingExtract",
    "UnitExtract",
    # Workflow drafts
    "PropertyDraft",
    "BuildingDraft",
    "UnitDraft",
    # Persisted records
    "Property",
    "Building",
    "Unit",
    # Workflow reports
    "StageReport",
    "GroupResult",
    "ValidationIssue",
]
