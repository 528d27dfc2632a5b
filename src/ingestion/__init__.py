"""Declaration ingestion - building resolution, persistence and the creation workflow."""
from .errors import (
    IngestionError,
    ExtractionUnavailable,
    MalformedResponse,
    UnsupportedUpload,
    NoBuildingAvailable,
    ValidationFailed,
    NotFound,
    Conflict,
    InvalidTransition,
)
from .resolver import resolve_buildings
from .gateway import PersistenceGateway, InMemoryGateway
from .persistence import JsonFileGateway
from .workflow import IngestionWorkflow

__all__ = [
    "IngestionError",
    "ExtractionUnavailable",
    "MalformedResponse",
    "UnsupportedUpload",
    "NoBuildingAvailable",
    "ValidationFailed",
    "NotFound",
    "Conflict",
    "InvalidTransition",
    "resolve_buildings",
    "PersistenceGateway",
    "InMemoryGateway",
    "JsonFileGateway",
    "IngestionWorkflow",
]
