"""Error taxonomy for declaration ingestion."""
from typing import List, Optional

from schemas.workflow import ValidationIssue


class IngestionError(Exception):
    """Base class for all ingestion errors."""
    code = "ingestion_error"


# ----------------------------------------------------------------------------
# Extraction layer (absorbed into an empty ExtractionResult)
# ----------------------------------------------------------------------------

class ExtractionUnavailable(IngestionError):
    """Completion service not configured, or the call failed."""
    code = "extraction_unavailable"


class MalformedResponse(IngestionError):
    """Completion output is not JSON or lacks the expected shape."""
    code = "malformed_response"


class UnsupportedUpload(IngestionError):
    """Uploaded file is not a PDF."""
    code = "unsupported_upload"


# ----------------------------------------------------------------------------
# Workflow layer (surfaced per stage)
# ----------------------------------------------------------------------------

class NoBuildingAvailable(IngestionError):
    """Unit resolution attempted with zero candidate buildings."""
    code = "no_building_available"

    def __init__(self, message: str = "No building available. Go back and add buildings first."):
        super().__init__(message)


class ValidationFailed(IngestionError):
    """One or more batch items failed required-field checks."""
    code = "validation_failed"

    def __init__(self, message: str, issues: Optional[List[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class NotFound(IngestionError):
    """A referenced parent record does not exist."""
    code = "not_found"


class Conflict(IngestionError):
    """A uniqueness constraint was violated."""
    code = "conflict"


class InvalidTransition(IngestionError):
    """Stage operation called while the workflow is in another stage."""
    code = "invalid_transition"

