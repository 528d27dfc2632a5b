"""Ingestion workflow - three-stage property creation from a declaration.

Stages:
    AWAITING_PROPERTY  -> create the property
    AWAITING_BUILDINGS -> create all buildings of the property in one batch
    AWAITING_UNITS     -> resolve units to buildings, create one batch per building
    COMPLETE

Transitions only move forward, and only when a stage succeeds. A failed stage
returns a StageReport and stays in place for correction and retry. back()
moves one stage backward but never deletes what earlier stages committed:
records created before the user navigates back (or abandons the workflow)
remain in the store.

Pre-fill:
    When an ExtractionResult is supplied, property_draft(), building_drafts()
    and unit_drafts() return its data as editable defaults. Without one they
    return empty templates.

Unit batches:
    Stage 3 submits one create_units call per resolved building. The calls run
    concurrently in worker threads and the stage waits for all of them to
    settle. A batch whose building disappeared reports not_found without
    affecting the other batches.
"""
import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from schemas.enums import WorkflowStage, STAGE_ORDER
from schemas.extraction import ExtractionResult, BuildingExtract
from schemas.records import (
    Property, Building, Unit,
    PropertyDraft, BuildingDraft, UnitDraft,
)
from schemas.workflow import StageReport, GroupResult, ValidationIssue
from ingestion.errors import (
    IngestionError, InvalidTransition, ValidationFailed,
    NoBuildingAvailable, NotFound, Conflict,
)
from ingestion.gateway import PersistenceGateway
from ingestion.resolver import resolve_buildings

logger = logging.getLogger(__name__)

# Limit concurrent unit batch submissions against the store
UNIT_BATCH_CONCURRENCY = 4

# Gateway failures reported on the stage instead of propagating
GATEWAY_ERRORS = (NotFound, Conflict, ValidationFailed)


class IngestionWorkflow:
    """
    Stateful creation workflow for one uploaded declaration.

    Args:
        gateway: Persistence gateway used for every create/find call
        extraction: Optional extraction result used for pre-fill
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        extraction: Optional[ExtractionResult] = None
    ):
        self.gateway = gateway
        self.extraction = extraction
        self.stage = WorkflowStage.AWAITING_PROPERTY
        self.property: Optional[Property] = None
        self.buildings: List[Building] = []
        self.units: List[Unit] = []

    @property
    def property_id(self) -> Optional[int]:
        return self.property.id if self.property else None

    @property
    def is_complete(self) -> bool:
        return self.stage == WorkflowStage.COMPLETE

    # ------------------------------------------------------------------------
    # Pre-fill
    # ------------------------------------------------------------------------

    def property_draft(self) -> PropertyDraft:
        name = self.extraction.property.name if self.extraction else ""
        return PropertyDraft(name=name)

    def building_drafts(self) -> List[BuildingDraft]:
        """Extracted buildings, or a single empty template."""
        if self.extraction and self.extraction.buildings:
            return [BuildingDraft.from_extract(b) for b in self.extraction.buildings]
        return [BuildingDraft.template()]

    def unit_drafts(self) -> List[UnitDraft]:
        if not self.extraction:
            return []
        return [u.model_copy() for u in self.extraction.units]

    # ------------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------------

    def _require_stage(self, expected: WorkflowStage) -> None:
        if self.stage != expected:
            raise InvalidTransition(
                f"Operation requires stage {expected.value}, workflow is in {self.stage.value}"
            )

    def _advance(self) -> None:
        self.stage = STAGE_ORDER[STAGE_ORDER.index(self.stage) + 1]

    def back(self) -> WorkflowStage:
        """
        Move exactly one stage backward. Committed records are kept.

        Returns:
            The stage after moving

        Raises:
            InvalidTransition: If the workflow is already complete
        """
        if self.is_complete:
            raise InvalidTransition("Workflow is complete")

        index = STAGE_ORDER.index(self.stage)
        if index > 0:
            self.stage = STAGE_ORDER[index - 1]
            logger.info(f"Moved back to {self.stage.value}")
        return self.stage

    # ------------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------------

    def _succeeded(self, stage: WorkflowStage, items: int, groups: Optional[List[GroupResult]] = None) -> StageReport:
        logger.info(f"{stage.value}: committed {items} records, now {self.stage.value}")
        return StageReport(
            stage=stage,
            status="success",
            items_committed=items,
            groups=groups or [],
            next_stage=self.stage,
        )

    def _failed(
        self,
        stage: WorkflowStage,
        error: str,
        message: str,
        issues: Optional[List[ValidationIssue]] = None,
        groups: Optional[List[GroupResult]] = None,
        items: int = 0,
    ) -> StageReport:
        logger.warning(f"{stage.value} failed ({error}): {message}")
        return StageReport(
            stage=stage,
            status="failed",
            error=error,
            message=message,
            issues=issues or [],
            items_committed=items,
            groups=groups or [],
            next_stage=self.stage,
        )

    def _failed_from(self, stage: WorkflowStage, exc: IngestionError) -> StageReport:
        return self._failed(stage, exc.code, str(exc), issues=getattr(exc, "issues", None))

    # ------------------------------------------------------------------------
    # Stage 1: property
    # ------------------------------------------------------------------------

    def submit_property(self, draft: PropertyDraft) -> StageReport:
        """
        Create the property.

        Args:
            draft: Property descriptor, usually property_draft() edited by the user

        Returns:
            StageReport; on success the workflow moves to AWAITING_BUILDINGS
        """
        stage = WorkflowStage.AWAITING_PROPERTY
        self._require_stage(stage)

        missing = draft.missing_fields()
        if missing:
            return self._failed_from(stage, ValidationFailed(
                f"Missing required property fields: {', '.join(missing)}",
                [ValidationIssue(index=0, missing_fields=missing)]
            ))

        try:
            created = self.gateway.create_property(draft)
        except GATEWAY_ERRORS as e:
            return self._failed_from(stage, e)

        if getattr(created, "id", None) is None:
            raise RuntimeError("Gateway returned a property without an identifier")

        self.property = created
        self._advance()
        return self._succeeded(stage, 1)

    # ------------------------------------------------------------------------
    # Stage 2: buildings
    # ------------------------------------------------------------------------

    def submit_buildings(self, drafts: Sequence[BuildingExtract]) -> StageReport:
        """
        Validate and create all buildings in one batch.

        Any entry missing street, house number, postal code or city aborts the
        whole batch; nothing is committed.

        Args:
            drafts: Building descriptors (BuildingDraft or extracted buildings)

        Returns:
            StageReport with one ValidationIssue per invalid entry on failure;
            on success the workflow moves to AWAITING_UNITS
        """
        stage = WorkflowStage.AWAITING_BUILDINGS
        self._require_stage(stage)

        batch = [
            d if isinstance(d, BuildingDraft) else BuildingDraft.from_extract(d)
            for d in drafts
        ]
        if not batch:
            return self._failed_from(stage, ValidationFailed("At least one building is required"))

        issues = []
        for index, draft in enumerate(batch):
            missing = draft.missing_fields()
            if missing:
                issues.append(ValidationIssue(index=index, missing_fields=missing))

        if issues:
            return self._failed_from(stage, ValidationFailed(
                f"{len(issues)} of {len(batch)} buildings are missing required fields",
                issues
            ))

        try:
            created = self.gateway.create_buildings(self.property.id, batch)
        except GATEWAY_ERRORS as e:
            return self._failed_from(stage, e)

        self.buildings.extend(created)
        self._advance()
        return self._succeeded(stage, len(created))

    # ------------------------------------------------------------------------
    # Stage 3: units
    # ------------------------------------------------------------------------

    async def _submit_group(
        self,
        semaphore: asyncio.Semaphore,
        building_id: int,
        units: List[UnitDraft]
    ) -> Tuple[GroupResult, List[Unit]]:
        async with semaphore:
            try:
                created = await asyncio.to_thread(self.gateway.create_units, building_id, units)
            except GATEWAY_ERRORS as e:
                logger.warning(f"Unit batch for building {building_id} failed: {e}")
                return GroupResult(
                    building_id=building_id,
                    status="failed",
                    units_submitted=len(units),
                    error=e.code,
                    message=str(e),
                ), []

        logger.info(f"Created {len(created)} units in building {building_id}")
        return GroupResult(
            building_id=building_id,
            status="success",
            units_submitted=len(units),
            units_committed=len(created),
        ), created

    async def submit_units_async(self, units: Sequence[UnitDraft]) -> StageReport:
        """
        Resolve units to the property's buildings and create them per building.

        Args:
            units: Unit drafts, usually unit_drafts() edited by the user

        Returns:
            StageReport with one GroupResult per building batch; the workflow
            moves to COMPLETE only if every batch succeeded

        Raises:
            Exception: Unexpected gateway errors, re-raised after all batches settled
        """
        stage = WorkflowStage.AWAITING_UNITS
        self._require_stage(stage)

        units = list(units)
        if not units:
            return self._failed(stage, "no_units", "At least one unit is required to complete")

        try:
            buildings = await asyncio.to_thread(
                self.gateway.find_buildings_by_property, self.property.id
            )
            groups = resolve_buildings(units, buildings)
        except (NoBuildingAvailable, NotFound) as e:
            return self._failed_from(stage, e)

        logger.info(f"Resolved {len(units)} units into {len(groups)} building batches")

        semaphore = asyncio.Semaphore(UNIT_BATCH_CONCURRENCY)
        outcomes = await asyncio.gather(
            *(self._submit_group(semaphore, bid, group) for bid, group in groups.items()),
            return_exceptions=True
        )

        group_results: List[GroupResult] = []
        unexpected: List[BaseException] = []
        committed = 0
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                unexpected.append(outcome)
                continue
            result, created = outcome
            group_results.append(result)
            self.units.extend(created)
            committed += len(created)

        if unexpected:
            raise unexpected[0]

        failed = [g for g in group_results if g.status != "success"]
        if failed:
            return self._failed(
                stage,
                failed[0].error,
                f"{len(failed)} of {len(group_results)} unit batches failed",
                groups=group_results,
                items=committed,
            )

        self._advance()
        return self._succeeded(stage, committed, groups=group_results)

    def submit_units(self, units: Sequence[UnitDraft]) -> StageReport:
        """Synchronous wrapper for submit_units_async."""
        return asyncio.run(self.submit_units_async(units))
