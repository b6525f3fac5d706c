#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Investigation Workflow

Lifecycle of an investigation request:

    requested -> sample_collected -> processing -> completed
        \\--------------\\------------------\\------> cancelled

Every status change, including the one performed by ``add_results``, goes
through the same transition table. Records are never deleted; cancellation is
a terminal status.
"""

import asyncio
import base64
import logging
import mimetypes
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from wardcare.core.investigations.catalog import TestCatalog, get_catalog
from wardcare.core.investigations.reference_ranges import classify_value, get_reference_range
from wardcare.core.investigations.store import InMemoryRecordStore, RecordStore
from wardcare.core.investigations.trends import calculate_trend
from wardcare.core.models import (
    Investigation,
    InvestigationAttachment,
    InvestigationPriority,
    InvestigationRequest,
    InvestigationResult,
    InvestigationStatus,
    ResultEntry,
    TrendAnalysis,
)
from wardcare.core.scoring.utils import parse_numeric
from wardcare.exceptions import AttachmentError, InvalidTransition
from wardcare.utils.audit import NullAuditLogger

logger = logging.getLogger(__name__)

S = InvestigationStatus

VALID_TRANSITIONS = {
    S.REQUESTED: {S.SAMPLE_COLLECTED, S.CANCELLED},
    S.SAMPLE_COLLECTED: {S.PROCESSING, S.CANCELLED},
    S.PROCESSING: {S.COMPLETED, S.CANCELLED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}

PENDING_STATUSES = (S.REQUESTED, S.SAMPLE_COLLECTED, S.PROCESSING)

PRIORITY_ORDER = {
    InvestigationPriority.STAT: 0,
    InvestigationPriority.URGENT: 1,
    InvestigationPriority.ROUTINE: 2,
}

DEFAULT_CATEGORY = "biochemistry"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def check_transition(current: InvestigationStatus, target: InvestigationStatus) -> None:
    """Raise InvalidTransition unless target is a direct successor of current."""
    if target not in VALID_TRANSITIONS[current]:
        if current == target:
            reason = "investigation is already in that status"
        elif not VALID_TRANSITIONS[current]:
            reason = f"{current.value} is a terminal status"
        else:
            allowed = ", ".join(sorted(s.value for s in VALID_TRANSITIONS[current]))
            reason = f"allowed: {allowed}"
        raise InvalidTransition(current.value, target.value, reason)


class InvestigationWorkflow:
    """
    Workflow engine for investigation and lab requests.

    Args:
        store: Record store collaborator, in-memory by default
        catalog: Test catalog used for display metadata
        audit_logger: Object with ``log_event``; audit failures never reach the caller
        require_results_on_complete: Reject ``update_status(..., 'completed')``
            on an investigation without results
        clock: Returns the current time, ``datetime.now`` by default
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        catalog: Optional[TestCatalog] = None,
        audit_logger=None,
        require_results_on_complete: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store if store is not None else InMemoryRecordStore()
        self.catalog = catalog if catalog is not None else get_catalog()
        self.audit = audit_logger if audit_logger is not None else NullAuditLogger()
        self.require_results_on_complete = require_results_on_complete
        self._now = clock or datetime.now

    # Request management

    def create_request(
        self,
        request: InvestigationRequest,
        patient_name: Optional[str] = None,
        hospital_number: Optional[str] = None,
    ) -> Investigation:
        """Create an investigation in 'requested' status."""
        tests = []
        for test_name in request.tests:
            definition = self.catalog.get_test_definition(test_name)
            if definition is None:
                logger.warning(f"Test '{test_name}' is not in the catalog, ordering without metadata")
                continue
            tests.append(definition)

        now = self._now()
        investigation = Investigation(
            id=_new_id("inv"),
            patient_id=request.patient_id,
            hospital_id=request.hospital_id,
            patient_name=patient_name,
            hospital_number=hospital_number,
            encounter_id=request.encounter_id,
            admission_id=request.admission_id,
            type=",".join(t.id for t in tests),
            type_name=", ".join(t.name for t in tests),
            category=tests[0].category if tests else DEFAULT_CATEGORY,
            priority=request.priority,
            status=S.REQUESTED,
            fasting=request.fasting or any(t.requires_fasting for t in tests),
            clinical_details=request.clinical_details,
            requested_by=request.requested_by,
            requested_by_name=request.requested_by_name,
            requested_at=now,
            created_at=now,
            updated_at=now,
        )
        self.store.add(investigation)
        logger.info(f"Investigation {investigation.id} requested for patient {request.patient_id}: {investigation.type_name}")
        self._audit(
            request.requested_by,
            "create",
            investigation.id,
            new_value={"status": S.REQUESTED.value, "tests": investigation.type, "priority": request.priority.value},
        )
        return investigation

    def update_status(
        self,
        investigation_id: str,
        new_status: Union[InvestigationStatus, str],
        user_id: str,
        user_name: Optional[str] = None,
    ) -> Investigation:
        """
        Move an investigation one step along the workflow.

        Args:
            investigation_id: Record id
            new_status: Target status
            user_id: Acting user
            user_name: Display name stored on completion

        Returns:
            The updated Investigation

        Raises:
            NotFound: Unknown id
            InvalidTransition: Target not reachable from the current status
        """
        target = InvestigationStatus(new_status)
        previous: Dict[str, Any] = {}

        def apply(current: Investigation) -> Dict[str, Any]:
            check_transition(current.status, target)
            if target == S.COMPLETED and self.require_results_on_complete and not current.results:
                raise InvalidTransition(current.status.value, target.value, "no results have been added")
            previous["status"] = current.status.value
            return self._stamp(target, user_id, user_name)

        updated = self.store.update(investigation_id, apply)
        logger.info(f"Investigation {investigation_id}: {previous['status']} -> {target.value} by {user_id}")
        self._audit(user_id, "status_change", investigation_id, previous, {"status": target.value})
        return updated

    def add_results(
        self,
        investigation_id: str,
        results: Sequence[ResultEntry],
        user_id: str,
        user_name: Optional[str] = None,
        interpretation: Optional[str] = None,
    ) -> Investigation:
        """
        Record results and complete the investigation.

        Flags are always recomputed from the reference table; unit and
        reference range default to the table's when not supplied. Completion
        uses the normal transition check, so the investigation must be in
        'processing'.
        """
        if not results:
            raise ValueError("At least one result is required")

        result_date = self._now()
        processed = [self._process_result(investigation_id, entry, result_date) for entry in results]
        previous: Dict[str, Any] = {}

        def apply(current: Investigation) -> Dict[str, Any]:
            check_transition(current.status, S.COMPLETED)
            previous["status"] = current.status.value
            changes = self._stamp(S.COMPLETED, user_id, user_name)
            changes["results"] = [r.model_dump() for r in processed]
            if interpretation is not None:
                changes["interpretation"] = interpretation
            return changes

        updated = self.store.update(investigation_id, apply)
        abnormal = [r.parameter for r in processed if r.flag is not None and r.flag.value != "normal"]
        logger.info(
            f"Investigation {investigation_id} completed with {len(processed)} results"
            + (f", abnormal: {', '.join(abnormal)}" if abnormal else "")
        )
        self._audit(
            user_id,
            "add_results",
            investigation_id,
            previous,
            {"status": S.COMPLETED.value, "results": len(processed), "abnormal": abnormal},
        )
        return updated

    def _process_result(self, investigation_id: str, entry: ResultEntry, result_date: datetime) -> InvestigationResult:
        ref = get_reference_range(entry.parameter)
        numeric = parse_numeric(entry.value)
        value = numeric if numeric is not None else entry.value
        return InvestigationResult(
            id=_new_id("result"),
            investigation_id=investigation_id,
            parameter=entry.parameter,
            value=value,
            unit=entry.unit or (ref.unit if ref else None),
            reference_range=entry.reference_range or (ref.describe() if ref else None),
            flag=classify_value(entry.parameter, numeric),
            interpretation=entry.interpretation,
            result_date=result_date,
        )

    def _stamp(self, target: InvestigationStatus, user_id: str, user_name: Optional[str]) -> Dict[str, Any]:
        now = self._now()
        changes: Dict[str, Any] = {"status": target, "updated_at": now}
        if target == S.SAMPLE_COLLECTED:
            changes.update(collected_at=now, collected_by=user_id)
        elif target == S.PROCESSING:
            changes["processing_started_at"] = now
        elif target == S.COMPLETED:
            changes.update(completed_at=now, completed_by=user_id, completed_by_name=user_name)
        elif target == S.CANCELLED:
            changes.update(cancelled_at=now, cancelled_by=user_id)
        return changes

    # Attachments

    async def attach_files(
        self, investigation_id: str, paths: Sequence[Union[str, Path]], user_id: str
    ) -> Investigation:
        """
        Read files into base64 data URLs and attach them.

        All files are read before anything is written; if any read fails,
        AttachmentError is raised and no attachment is stored.
        """
        self.store.get(investigation_id)
        attachments = await asyncio.gather(*(self._read_attachment(Path(p), user_id) for p in paths))

        updated = self.store.update(
            investigation_id,
            lambda current: {
                "attachments": [a.model_dump() for a in current.attachments] + [a.model_dump() for a in attachments],
                "updated_at": self._now(),
            },
        )
        logger.info(f"Attached {len(attachments)} file(s) to investigation {investigation_id}")
        self._audit(user_id, "attach_files", investigation_id, None, {"files": [a.file_name for a in attachments]})
        return updated

    async def _read_attachment(self, path: Path, user_id: str) -> InvestigationAttachment:
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error(f"Failed to read attachment {path}: {e}")
            raise AttachmentError(str(path), e) from e

        file_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        encoded = base64.b64encode(data).decode("ascii")
        return InvestigationAttachment(
            id=_new_id("attach"),
            file_name=path.name,
            file_type=file_type,
            file_size=len(data),
            url=f"data:{file_type};base64,{encoded}",
            uploaded_by=user_id,
            uploaded_at=self._now(),
        )

    # Queries

    def get_investigation(self, investigation_id: str) -> Investigation:
        return self.store.get(investigation_id)

    def get_patient_investigations(self, patient_id: str) -> List[Investigation]:
        """A patient's investigations, newest first."""
        return sorted(self.store.find(patient_id=patient_id), key=lambda i: i.created_at, reverse=True)

    def get_investigations_by_status(self, status: Union[InvestigationStatus, str]) -> List[Investigation]:
        return sorted(
            self.store.find(status=InvestigationStatus(status)), key=lambda i: i.created_at, reverse=True
        )

    def get_pending_investigations(self) -> List[Investigation]:
        """Lab worklist: stat before urgent before routine, most recent request first within a priority."""
        pending = [i for status in PENDING_STATUSES for i in self.store.find(status=status)]
        pending.sort(key=lambda i: i.requested_at, reverse=True)
        pending.sort(key=lambda i: PRIORITY_ORDER[i.priority])
        return pending

    def get_statistics(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Dashboard counts. Priority counts only include open (not completed or cancelled) requests."""
        now = now or self._now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        investigations = self.store.find()
        open_ = [i for i in investigations if i.status in PENDING_STATUSES]
        return {
            "pending": sum(1 for i in investigations if i.status == S.REQUESTED),
            "processing": sum(1 for i in investigations if i.status in (S.SAMPLE_COLLECTED, S.PROCESSING)),
            "completed": sum(1 for i in investigations if i.status == S.COMPLETED),
            "cancelled": sum(1 for i in investigations if i.status == S.CANCELLED),
            "today_requests": sum(1 for i in investigations if i.requested_at >= start_of_day),
            "stat_priority": sum(1 for i in open_ if i.priority == InvestigationPriority.STAT),
            "urgent_priority": sum(1 for i in open_ if i.priority == InvestigationPriority.URGENT),
        }

    def calculate_trend(self, patient_id: str, parameter: str) -> TrendAnalysis:
        return calculate_trend(self.store.find(patient_id=patient_id), patient_id, parameter)

    def _audit(
        self,
        user_id: str,
        action: str,
        investigation_id: str,
        old_value: Optional[Dict[str, Any]] = None,
        new_value: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            self.audit.log_event(user_id, action, "investigation", investigation_id, old_value, new_value)
        except Exception as e:
            logger.warning(f"Audit event {action} for {investigation_id} was not recorded: {e}")
