import unittest
from datetime import datetime, timedelta

from wardcare.core.investigations.trends import calculate_trend, percent_change
from wardcare.core.investigations.workflow import InvestigationWorkflow
from wardcare.core.models import InvestigationRequest, InvestigationStatus, ResultEntry, ResultFlag, TrendDirection


class TestTrendAnalysis(unittest.TestCase):
    """Test cases for parameter trends over completed investigations"""

    def setUp(self):
        self.now = datetime(2024, 6, 1, 8, 0)
        self.workflow = InvestigationWorkflow(clock=lambda: self.now)

    def record(self, parameter, value, patient_id="P001", complete=True):
        """Order a test, walk it through the lab and return its id."""
        inv = self.workflow.create_request(
            InvestigationRequest(patient_id=patient_id, hospital_id="H1", tests=["eucr"], requested_by="dr_ade")
        )
        self.workflow.update_status(inv.id, InvestigationStatus.SAMPLE_COLLECTED, "nurse_bola")
        self.workflow.update_status(inv.id, InvestigationStatus.PROCESSING, "lab_chi")
        if complete:
            self.workflow.add_results(inv.id, [ResultEntry(parameter=parameter, value=value)], "lab_chi")
        self.now += timedelta(days=1)
        return inv.id

    def test_rising_creatinine_is_worsening(self):
        for value in (90, 120, 150):
            self.record("Creatinine", value)

        analysis = self.workflow.calculate_trend("P001", "Creatinine")
        self.assertEqual([p.value for p in analysis.data_points], [90, 120, 150])
        self.assertEqual(analysis.percent_change, 66.67)
        self.assertEqual(analysis.trend, TrendDirection.WORSENING)
        self.assertEqual(analysis.data_points[-1].flag, ResultFlag.HIGH)
        self.assertEqual(
            analysis.recommendations,
            [
                "Creatinine shows a worsening trend. Consider clinical review.",
                "Monitor renal function closely. Ensure adequate hydration.",
            ],
        )

    def test_rising_hemoglobin_is_improving(self):
        self.record("Hemoglobin", 8)
        self.record("Hemoglobin", 11)
        analysis = self.workflow.calculate_trend("P001", "Hemoglobin")
        self.assertEqual(analysis.trend, TrendDirection.IMPROVING)
        self.assertEqual(analysis.recommendations, ["Hemoglobin is showing improvement. Continue current management."])

    def test_small_change_is_stable(self):
        self.record("WBC", 10.0)
        self.record("WBC", 10.4)
        self.assertEqual(self.workflow.calculate_trend("P001", "WBC").trend, TrendDirection.STABLE)

    def test_distance_from_midpoint(self):
        self.record("Sodium", 130)
        self.record("Sodium", 140)
        self.assertEqual(self.workflow.calculate_trend("P001", "Sodium").trend, TrendDirection.IMPROVING)

    def test_critical_value_is_called_out(self):
        self.record("Potassium", 4.0)
        self.record("Potassium", 7.0)
        analysis = self.workflow.calculate_trend("P001", "Potassium")
        self.assertEqual(analysis.trend, TrendDirection.WORSENING)
        self.assertTrue(analysis.recommendations[0].startswith("CRITICAL: Potassium"))
        self.assertIn(
            "Review medications affecting potassium. Consider ECG if significantly abnormal.",
            analysis.recommendations,
        )

    def test_parameter_without_reference_range_fluctuates(self):
        self.record("Ferritin", 100)
        self.record("Ferritin", 200)
        analysis = self.workflow.calculate_trend("P001", "Ferritin")
        self.assertEqual(analysis.trend, TrendDirection.FLUCTUATING)
        self.assertIsNone(analysis.data_points[0].flag)
        self.assertEqual(analysis.recommendations, [])

    def test_single_point_is_stable(self):
        self.record("CRP", 40)
        analysis = self.workflow.calculate_trend("P001", "CRP")
        self.assertEqual(len(analysis.data_points), 1)
        self.assertEqual(analysis.trend, TrendDirection.STABLE)
        self.assertEqual(analysis.percent_change, 0.0)

    def test_only_completed_numeric_results_for_the_patient(self):
        self.record("CRP", 10)
        self.record("CRP", 500, patient_id="P002")
        self.record("CRP", None, complete=False)
        self.record("CRP", "haemolysed")
        self.record("CRP", 12)
        analysis = self.workflow.calculate_trend("P001", "CRP")
        self.assertEqual([p.value for p in analysis.data_points], [10, 12])

    def test_points_sorted_by_date(self):
        first = self.record("Albumin", 30)
        second = self.record("Albumin", 40)
        investigations = list(reversed(self.workflow.store.find()))
        analysis = calculate_trend(investigations, "P001", "Albumin")
        self.assertEqual([p.investigation_id for p in analysis.data_points], [first, second])
        self.assertEqual(analysis.trend, TrendDirection.IMPROVING)

    def test_no_data(self):
        analysis = self.workflow.calculate_trend("P404", "CRP")
        self.assertEqual(analysis.data_points, [])
        self.assertEqual(analysis.trend, TrendDirection.STABLE)


class TestPercentChange(unittest.TestCase):

    def test_relative_to_magnitude_of_first(self):
        self.assertAlmostEqual(percent_change(-10, -5), 50.0)
        self.assertAlmostEqual(percent_change(50, 25), -50.0)

    def test_zero_baseline(self):
        self.assertEqual(percent_change(0, 0), 0.0)
        self.assertEqual(percent_change(0, 5), 100.0)
        self.assertEqual(percent_change(0, -3), -100.0)


if __name__ == "__main__":
    unittest.main()
