"""
Tests for the wardcare command line interface.
"""

import logging
import re
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from wardcare.main import app

CREATED = re.compile(r"Created (inv_[0-9a-f]{12})")


class CliTestCase(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        base = Path(self.tmp.name)
        self.env = {
            "WARDCARE_STORE_PATH": str(base / "investigations.json"),
            "WARDCARE_AUDIT_DIR": str(base / "audit"),
            "WARDCARE_LOG_FILE": str(base / "wardcare.log"),
            "WARDCARE_LOG_LEVEL": "WARNING",
        }

        root = logging.getLogger()
        saved = (root.level, list(root.handlers))

        def restore_logging():
            for handler in root.handlers:
                if handler not in saved[1]:
                    handler.close()
            root.setLevel(saved[0])
            root.handlers[:] = saved[1]

        self.addCleanup(restore_logging)

    def invoke(self, *args):
        return self.runner.invoke(app, list(args), env=self.env)


class TestScoringCommands(CliTestCase):

    def test_categorize(self):
        result = self.invoke("categorize", "1980-01-01", "--as-of", "2024-06-15", "--weight", "70", "--height", "175")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("44 years old", result.output)
        self.assertIn("adult", result.output)

    def test_categorize_bad_date(self):
        result = self.invoke("categorize", "yesterday")
        self.assertEqual(result.exit_code, 1)

    def test_lrinec(self):
        result = self.invoke(
            "lrinec", "--crp", "160", "--wbc", "26", "--hemoglobin", "10",
            "--sodium", "130", "--creatinine", "150", "--glucose", "11",
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("LRINEC 13: HIGH RISK", result.output)

    def test_qsofa(self):
        result = self.invoke("qsofa", "--systolic-bp", "90", "--respiratory-rate", "25", "--altered-mentation")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("qSOFA 3/3", result.output)

    def test_wound_area(self):
        result = self.invoke("wound-area", "4", "3", "--shape", "rectangle")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Wound area (rectangle): 12.00 cm²", result.output)


class TestLabCommands(CliTestCase):

    def request(self):
        result = self.invoke("lab", "request", "--patient", "P001", "-t", "crp", "--by", "dr_ade", "--priority", "urgent")
        self.assertEqual(result.exit_code, 0, result.output)
        return CREATED.search(result.output).group(1)

    def test_empty_worklist(self):
        result = self.invoke("lab", "pending")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No pending investigations.", result.output)

    def test_workflow_round_trip(self):
        investigation_id = self.request()

        pending = self.invoke("lab", "pending")
        self.assertIn(investigation_id, pending.output)

        for status in ("sample_collected", "processing"):
            result = self.invoke("lab", "advance", investigation_id, status, "--by", "lab_chi")
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertIn(f"{investigation_id} is now {status}", result.output)

        result = self.invoke("lab", "results", investigation_id, "-r", "CRP=80", "--by", "lab_chi")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("CRP", result.output)

        result = self.invoke("lab", "trend", "P001", "CRP", "--json")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"parameter": "CRP"', result.output)

        self.assertTrue(any(Path(self.env["WARDCARE_AUDIT_DIR"]).glob("*_audit.jsonl")))

    def test_invalid_transition_exits_with_error(self):
        investigation_id = self.request()
        result = self.invoke("lab", "advance", investigation_id, "completed", "--by", "lab_chi")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid status transition", result.output)

    def test_worklist_shows_full_ids(self):
        ids = [self.request() for _ in range(3)]
        result = self.invoke("lab", "pending")
        self.assertEqual(result.exit_code, 0, result.output)
        for investigation_id in ids:
            self.assertIn(investigation_id, result.output)

    def test_invalid_request_exits_cleanly(self):
        result = self.invoke("lab", "request", "--patient", "", "-t", "crp", "--by", "dr_ade")
        self.assertEqual(result.exit_code, 1)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertIn("patient_id", result.output)

    def test_malformed_result(self):
        investigation_id = self.request()
        result = self.invoke("lab", "results", investigation_id, "-r", "CRP", "--by", "lab_chi")
        self.assertNotEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
