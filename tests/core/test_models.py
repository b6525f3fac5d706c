"""
Unit tests for the core data models.

Tests ensure proper validation of:
- Frozen patient snapshots
- Investigation requests and records
- Reference range display and result flag codes
"""

import unittest
from datetime import datetime

import pytest
from pydantic import ValidationError

from wardcare.core.models import (
    Investigation,
    InvestigationPriority,
    InvestigationRequest,
    InvestigationStatus,
    PatientAge,
    ReferenceRange,
    ResultEntry,
    ResultFlag,
    TestDefinition,
)


class TestPatientSnapshots(unittest.TestCase):
    """Tests for the derived patient snapshots."""

    def test_patient_age_is_frozen(self):
        age = PatientAge(years=1, months=2, days=3, total_months=14, total_days=430)
        with pytest.raises(ValidationError):
            age.years = 5


class TestInvestigationRequest(unittest.TestCase):
    """Tests for the InvestigationRequest model."""

    def test_defaults(self):
        req = InvestigationRequest(patient_id="P001", hospital_id="H1", tests=["crp"], requested_by="dr_ade")
        self.assertEqual(req.priority, InvestigationPriority.ROUTINE)
        self.assertFalse(req.fasting)

    def test_requires_tests(self):
        with pytest.raises(ValidationError):
            InvestigationRequest(patient_id="P001", hospital_id="H1", tests=[], requested_by="dr_ade")

    def test_requires_requester(self):
        with pytest.raises(ValidationError):
            InvestigationRequest(patient_id="P001", hospital_id="H1", tests=["crp"], requested_by="")

    def test_priority_from_string(self):
        req = InvestigationRequest(
            patient_id="P001", hospital_id="H1", tests=["crp"], requested_by="dr_ade", priority="stat"
        )
        self.assertEqual(req.priority, InvestigationPriority.STAT)


class TestInvestigation(unittest.TestCase):
    """Tests for the Investigation record."""

    def setUp(self):
        now = datetime(2024, 6, 15, 9, 0)
        self.data = {
            "id": "inv_1",
            "patient_id": "P001",
            "hospital_id": "H1",
            "requested_by": "dr_ade",
            "requested_at": now,
            "created_at": now,
            "updated_at": now,
        }

    def test_defaults(self):
        inv = Investigation(**self.data)
        self.assertEqual(inv.status, InvestigationStatus.REQUESTED)
        self.assertEqual(inv.version, 1)
        self.assertEqual(inv.results, [])
        self.assertEqual(inv.category, "biochemistry")

    def test_type_name_is_stripped(self):
        inv = Investigation(**self.data, type_name="  Full Blood Count (FBC) ")
        self.assertEqual(inv.type_name, "Full Blood Count (FBC)")

    def test_version_starts_at_one(self):
        with pytest.raises(ValidationError):
            Investigation(**self.data, version=0)

    def test_json_round_trip(self):
        inv = Investigation(**self.data, status="processing")
        restored = Investigation.model_validate(inv.model_dump(mode="json"))
        self.assertEqual(restored, inv)


class TestLabModels(unittest.TestCase):

    def test_result_flag_codes(self):
        self.assertEqual([f.value for f in ResultFlag], ["normal", "L", "H", "LL", "HH"])

    def test_reference_range_describe(self):
        self.assertEqual(ReferenceRange(min=0.9, max=1.1, unit="").describe(), "0.9 - 1.1")
        self.assertEqual(ReferenceRange(min=150, max=450, unit="x10^9/L").describe(), "150 - 450")

    def test_result_entry_keeps_text(self):
        self.assertEqual(ResultEntry(parameter="Culture", value="No growth").value, "No growth")
        with pytest.raises(ValidationError):
            ResultEntry(parameter="", value=1)

    def test_test_definition_requires_id(self):
        with pytest.raises(ValidationError):
            TestDefinition(id="", name="CRP", category="biochemistry", specimen="Serum")


if __name__ == "__main__":
    unittest.main()
