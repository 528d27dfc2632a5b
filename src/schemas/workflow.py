"""Pydantic models reporting the outcome of each creation workflow stage."""
from typing import List, Optional

from pydantic import BaseModel, Field

from .enums import WorkflowStage


class ValidationIssue(BaseModel):
    """A single batch entry that failed required-field checks."""
    index: int = Field(ge=0, description="Position of the entry in the submitted batch")
    missing_fields: List[str] = Field(default_factory=list)


class GroupResult(BaseModel):
    """Outcome of one per-building unit batch."""
    building_id: int
    status: str = Field(description="success, failed")
    units_submitted: int = Field(default=0)
    units_committed: int = Field(default=0)
    error: Optional[str] = Field(default=None, description="Error code if failed")
    message: Optional[str] = Field(default=None)


class StageReport(BaseModel):
    """Outcome of a single stage submission."""
    stage: WorkflowStage = Field(description="Stage the submission was made in")
    status: str = Field(description="success, failed")
    error: Optional[str] = Field(default=None, description="Error code if failed")
    message: Optional[str] = Field(default=None, description="Human-readable failure detail")
    issues: List[ValidationIssue] = Field(default_factory=list)
    items_committed: int = Field(default=0, description="Records created by this submission")
    groups: List[GroupResult] = Field(default_factory=list)
    next_stage: WorkflowStage = Field(description="Workflow stage after the submission")

    @property
    def ok(self) -> bool:
        return self.status == "success"
