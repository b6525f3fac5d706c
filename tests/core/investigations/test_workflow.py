#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for the investigation workflow engine

Covers request creation, the status machine and its stamps, result entry,
attachments, the lab worklist ordering and dashboard statistics.
"""

import asyncio
import tempfile
import threading
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from wardcare.core.investigations.workflow import InvestigationWorkflow
from wardcare.core.models import (
    InvestigationPriority,
    InvestigationRequest,
    InvestigationStatus,
    ResultEntry,
    ResultFlag,
)
from wardcare.exceptions import AttachmentError, InvalidTransition, NotFound

S = InvestigationStatus


class FakeClock:
    def __init__(self, start=datetime(2024, 6, 15, 9, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, minutes=1):
        self.now += timedelta(minutes=minutes)


class RecordingAudit:
    def __init__(self):
        self.events = []

    def log_event(self, user_id, action, entity_type, entity_id, old_value=None, new_value=None):
        self.events.append((user_id, action, entity_type, entity_id, old_value, new_value))


class FailingAudit:
    def log_event(self, *args, **kwargs):
        raise RuntimeError("audit disk full")


def request(tests=("crp",), patient_id="P001", priority=InvestigationPriority.ROUTINE, **kwargs):
    return InvestigationRequest(
        patient_id=patient_id,
        hospital_id="H1",
        tests=list(tests),
        priority=priority,
        requested_by="dr_ade",
        **kwargs,
    )


class WorkflowTestCase(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.audit = RecordingAudit()
        self.workflow = InvestigationWorkflow(audit_logger=self.audit, clock=self.clock)

    def create(self, **kwargs):
        investigation = self.workflow.create_request(request(**kwargs))
        self.clock.advance()
        return investigation

    def to_processing(self, investigation_id):
        self.workflow.update_status(investigation_id, S.SAMPLE_COLLECTED, "nurse_bola")
        self.clock.advance()
        self.workflow.update_status(investigation_id, S.PROCESSING, "lab_chi")
        self.clock.advance()


class TestCreateRequest(WorkflowTestCase):
    """Test cases for request creation"""

    def test_new_request(self):
        inv = self.workflow.create_request(request(tests=["fbc", "C-Reactive Protein (CRP)"]), patient_name="Ada Obi")
        self.assertTrue(inv.id.startswith("inv_"))
        self.assertEqual(inv.status, S.REQUESTED)
        self.assertEqual(inv.type, "fbc,crp")
        self.assertEqual(inv.type_name, "Full Blood Count (FBC), C-Reactive Protein (CRP)")
        self.assertEqual(inv.category, "hematology")
        self.assertEqual(inv.patient_name, "Ada Obi")
        self.assertEqual(inv.requested_at, self.clock.now)
        self.assertEqual(inv.version, 1)
        self.assertEqual(self.workflow.get_investigation(inv.id), inv)

    def test_uncatalogued_tests_are_skipped(self):
        inv = self.create(tests=["crp", "Unicorn assay"])
        self.assertEqual(inv.type, "crp")
        unknown = self.create(tests=["Unicorn assay"])
        self.assertEqual(unknown.type, "")
        self.assertEqual(unknown.category, "biochemistry")

    def test_fasting(self):
        self.assertTrue(self.create(tests=["fbg"]).fasting)
        self.assertTrue(self.create(tests=["crp"], fasting=True).fasting)
        self.assertFalse(self.create(tests=["crp"]).fasting)

    def test_creation_is_audited(self):
        inv = self.create()
        user_id, action, entity_type, entity_id, _, new_value = self.audit.events[-1]
        self.assertEqual((user_id, action, entity_type, entity_id), ("dr_ade", "create", "investigation", inv.id))
        self.assertEqual(new_value["status"], "requested")


class TestStatusTransitions(WorkflowTestCase):
    """Test cases for the status machine"""

    def test_full_lifecycle_stamps(self):
        inv = self.create()
        collected = self.workflow.update_status(inv.id, S.SAMPLE_COLLECTED, "nurse_bola")
        self.assertEqual(collected.collected_by, "nurse_bola")
        self.assertEqual(collected.collected_at, self.clock.now)
        self.clock.advance()

        processing = self.workflow.update_status(inv.id, "processing", "lab_chi")
        self.assertEqual(processing.processing_started_at, self.clock.now)
        self.clock.advance()

        completed = self.workflow.update_status(inv.id, S.COMPLETED, "lab_chi", user_name="Chi Eze")
        self.assertEqual(completed.status, S.COMPLETED)
        self.assertEqual(completed.completed_by, "lab_chi")
        self.assertEqual(completed.completed_by_name, "Chi Eze")
        self.assertEqual(completed.completed_at, self.clock.now)
        self.assertEqual(completed.version, 4)
        self.assertGreater(completed.updated_at, completed.created_at)

    def test_status_change_is_audited(self):
        inv = self.create()
        self.workflow.update_status(inv.id, S.SAMPLE_COLLECTED, "nurse_bola")
        _, action, _, _, old_value, new_value = self.audit.events[-1]
        self.assertEqual(action, "status_change")
        self.assertEqual(old_value, {"status": "requested"})
        self.assertEqual(new_value, {"status": "sample_collected"})

    def test_skipping_a_step_is_rejected(self):
        inv = self.create()
        with self.assertRaises(InvalidTransition):
            self.workflow.update_status(inv.id, S.PROCESSING, "lab_chi")
        self.assertEqual(self.workflow.get_investigation(inv.id).status, S.REQUESTED)

    def test_moving_backwards_is_rejected(self):
        inv = self.create()
        self.to_processing(inv.id)
        with self.assertRaises(InvalidTransition):
            self.workflow.update_status(inv.id, S.REQUESTED, "lab_chi")

    def test_terminal_statuses(self):
        inv = self.create()
        self.to_processing(inv.id)
        self.workflow.update_status(inv.id, S.COMPLETED, "lab_chi")
        with self.assertRaises(InvalidTransition) as ctx:
            self.workflow.update_status(inv.id, S.CANCELLED, "dr_ade")
        self.assertIn("terminal", str(ctx.exception))

        cancelled = self.create()
        self.workflow.update_status(cancelled.id, S.CANCELLED, "dr_ade")
        with self.assertRaises(InvalidTransition):
            self.workflow.update_status(cancelled.id, S.SAMPLE_COLLECTED, "nurse_bola")

    def test_cancellation_is_stamped(self):
        inv = self.create()
        self.workflow.update_status(inv.id, S.SAMPLE_COLLECTED, "nurse_bola")
        cancelled = self.workflow.update_status(inv.id, S.CANCELLED, "dr_ade")
        self.assertEqual(cancelled.cancelled_by, "dr_ade")
        self.assertEqual(cancelled.cancelled_at, self.clock.now)
        self.assertIsNone(cancelled.completed_at)

    def test_unknown_investigation(self):
        with self.assertRaises(NotFound):
            self.workflow.update_status("inv_missing", S.CANCELLED, "dr_ade")

    def test_unknown_status(self):
        inv = self.create()
        with self.assertRaises(ValueError):
            self.workflow.update_status(inv.id, "misplaced", "dr_ade")

    def test_results_required_when_configured(self):
        strict = InvestigationWorkflow(require_results_on_complete=True, clock=self.clock)
        inv = strict.create_request(request())
        strict.update_status(inv.id, S.SAMPLE_COLLECTED, "nurse_bola")
        strict.update_status(inv.id, S.PROCESSING, "lab_chi")
        with self.assertRaises(InvalidTransition):
            strict.update_status(inv.id, S.COMPLETED, "lab_chi")
        completed = strict.add_results(inv.id, [ResultEntry(parameter="CRP", value=12)], "lab_chi")
        self.assertEqual(completed.status, S.COMPLETED)

    def test_concurrent_transitions_only_one_wins(self):
        inv = self.create()
        barrier = threading.Barrier(2)
        outcomes = []

        def collect(user):
            barrier.wait()
            try:
                self.workflow.update_status(inv.id, S.SAMPLE_COLLECTED, user)
                outcomes.append("ok")
            except InvalidTransition:
                outcomes.append("rejected")

        threads = [threading.Thread(target=collect, args=(u,)) for u in ("nurse_a", "nurse_b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(sorted(outcomes), ["ok", "rejected"])
        self.assertEqual(self.workflow.get_investigation(inv.id).version, 2)

    def test_audit_failure_does_not_fail_the_operation(self):
        workflow = InvestigationWorkflow(audit_logger=FailingAudit(), clock=self.clock)
        with self.assertLogs("wardcare.core.investigations.workflow", level="WARNING") as logs:
            inv = workflow.create_request(request())
            updated = workflow.update_status(inv.id, S.SAMPLE_COLLECTED, "nurse_bola")
        self.assertEqual(updated.status, S.SAMPLE_COLLECTED)
        self.assertTrue(any("audit disk full" in line for line in logs.output))


class TestAddResults(WorkflowTestCase):
    """Test cases for result entry"""

    def test_results_are_flagged_and_complete_the_investigation(self):
        inv = self.create(tests=["fbc"])
        self.to_processing(inv.id)
        entries = [
            ResultEntry(parameter="Hemoglobin", value=6.5),
            ResultEntry(parameter="WBC", value="14.2"),
            ResultEntry(parameter="Culture", value="No growth"),
        ]
        completed = self.workflow.add_results(inv.id, entries, "lab_chi", interpretation="Severe anaemia")

        self.assertEqual(completed.status, S.COMPLETED)
        self.assertEqual(completed.completed_by, "lab_chi")
        self.assertEqual(completed.interpretation, "Severe anaemia")
        hb, wbc, culture = completed.results
        self.assertEqual(hb.flag, ResultFlag.CRITICAL_LOW)
        self.assertEqual(hb.unit, "g/dL")
        self.assertEqual(hb.reference_range, "12 - 17")
        self.assertEqual(wbc.value, 14.2)
        self.assertEqual(wbc.flag, ResultFlag.HIGH)
        self.assertEqual(culture.value, "No growth")
        self.assertIsNone(culture.flag)
        self.assertEqual(hb.investigation_id, inv.id)
        self.assertEqual(hb.result_date, self.clock.now)

    def test_supplied_unit_and_range_are_kept(self):
        inv = self.create()
        self.to_processing(inv.id)
        entry = ResultEntry(parameter="CRP", value=9, unit="mg/dL", reference_range="< 0.5")
        result = self.workflow.add_results(inv.id, [entry], "lab_chi").results[0]
        self.assertEqual(result.unit, "mg/dL")
        self.assertEqual(result.reference_range, "< 0.5")
        self.assertEqual(result.flag, ResultFlag.HIGH)

    def test_results_require_processing(self):
        inv = self.create()
        with self.assertRaises(InvalidTransition):
            self.workflow.add_results(inv.id, [ResultEntry(parameter="CRP", value=3)], "lab_chi")
        self.assertEqual(self.workflow.get_investigation(inv.id).results, [])

    def test_empty_results(self):
        inv = self.create()
        self.to_processing(inv.id)
        with self.assertRaises(ValueError):
            self.workflow.add_results(inv.id, [], "lab_chi")

    def test_results_are_audited(self):
        inv = self.create()
        self.to_processing(inv.id)
        self.workflow.add_results(inv.id, [ResultEntry(parameter="CRP", value=80)], "lab_chi")
        _, action, _, _, old_value, new_value = self.audit.events[-1]
        self.assertEqual(action, "add_results")
        self.assertEqual(old_value, {"status": "processing"})
        self.assertEqual(new_value["abnormal"], ["CRP"])


class TestAttachments(WorkflowTestCase):
    """Test cases for report uploads"""

    def setUp(self):
        super().setUp()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.report = Path(self.tmp.name) / "report.pdf"
        self.report.write_bytes(b"%PDF-1.4")

    def test_attach_file(self):
        inv = self.create()
        updated = asyncio.run(self.workflow.attach_files(inv.id, [self.report], "lab_chi"))
        attachment = updated.attachments[0]
        self.assertEqual(attachment.file_name, "report.pdf")
        self.assertEqual(attachment.file_type, "application/pdf")
        self.assertEqual(attachment.file_size, 8)
        self.assertEqual(attachment.url, "data:application/pdf;base64,JVBERi0xLjQ=")
        self.assertEqual(attachment.uploaded_by, "lab_chi")

    def test_attachments_accumulate(self):
        inv = self.create()
        asyncio.run(self.workflow.attach_files(inv.id, [self.report], "lab_chi"))
        updated = asyncio.run(self.workflow.attach_files(inv.id, [str(self.report)], "lab_chi"))
        self.assertEqual(len(updated.attachments), 2)

    def test_failed_read_attaches_nothing(self):
        inv = self.create()
        missing = Path(self.tmp.name) / "missing.png"
        with self.assertRaises(AttachmentError):
            asyncio.run(self.workflow.attach_files(inv.id, [self.report, missing], "lab_chi"))
        self.assertEqual(self.workflow.get_investigation(inv.id).attachments, [])

    def test_unknown_investigation(self):
        with self.assertRaises(NotFound):
            asyncio.run(self.workflow.attach_files("inv_missing", [self.report], "lab_chi"))


class TestQueries(WorkflowTestCase):
    """Test cases for worklists and statistics"""

    def test_pending_order(self):
        routine_old = self.create(priority=InvestigationPriority.ROUTINE)
        stat_old = self.create(priority=InvestigationPriority.STAT)
        urgent = self.create(priority=InvestigationPriority.URGENT)
        routine_new = self.create(priority=InvestigationPriority.ROUTINE)
        stat_new = self.create(priority=InvestigationPriority.STAT)
        cancelled = self.create(priority=InvestigationPriority.STAT)
        self.workflow.update_status(cancelled.id, S.CANCELLED, "dr_ade")
        self.workflow.update_status(urgent.id, S.SAMPLE_COLLECTED, "nurse_bola")

        pending = [i.id for i in self.workflow.get_pending_investigations()]
        self.assertEqual(pending, [stat_new.id, stat_old.id, urgent.id, routine_new.id, routine_old.id])

    def test_patient_investigations_newest_first(self):
        first = self.create()
        second = self.create()
        self.create(patient_id="P002")
        ids = [i.id for i in self.workflow.get_patient_investigations("P001")]
        self.assertEqual(ids, [second.id, first.id])

    def test_by_status(self):
        inv = self.create()
        self.create()
        self.workflow.update_status(inv.id, S.CANCELLED, "dr_ade")
        self.assertEqual([i.id for i in self.workflow.get_investigations_by_status("cancelled")], [inv.id])

    def test_statistics(self):
        self.clock.now = datetime(2024, 6, 14, 10, 0)
        self.create()
        self.clock.now = datetime(2024, 6, 15, 8, 0)
        self.create()
        stat = self.create(priority=InvestigationPriority.STAT)
        urgent = self.create(priority=InvestigationPriority.URGENT)
        cancelled = self.create(priority=InvestigationPriority.STAT)

        self.workflow.update_status(stat.id, S.SAMPLE_COLLECTED, "nurse_bola")
        self.to_processing(urgent.id)
        self.workflow.update_status(urgent.id, S.COMPLETED, "lab_chi")
        self.workflow.update_status(cancelled.id, S.CANCELLED, "dr_ade")

        stats = self.workflow.get_statistics(now=datetime(2024, 6, 15, 12, 0))
        self.assertEqual(
            stats,
            {
                "pending": 2,
                "processing": 1,
                "completed": 1,
                "cancelled": 1,
                "today_requests": 4,
                "stat_priority": 1,
                "urgent_priority": 0,
            },
        )


if __name__ == "__main__":
    unittest.main()
