import unittest

from wardcare.core.scoring.renal import (
    calculate_ckd_epi,
    calculate_cockcroft_gault,
    ckd_stage,
    creatinine_umol_to_mg,
    interpret_egfr_stage,
    renal_dosing_category,
)
from wardcare.exceptions import InvalidMeasurement


class TestRenalFunction(unittest.TestCase):
    """Test cases for eGFR, creatinine clearance and staging"""

    def test_ckd_epi_2021(self):
        male = calculate_ckd_epi(1.0, 50, is_female=False)
        female = calculate_ckd_epi(1.0, 50, is_female=True)
        self.assertTrue(91 < male < 93)
        self.assertTrue(68 < female < 70)

    def test_ckd_epi_rejects_non_positive_input(self):
        with self.assertRaises(InvalidMeasurement):
            calculate_ckd_epi(0, 50, is_female=False)

    def test_cockcroft_gault(self):
        self.assertEqual(calculate_cockcroft_gault(1.0, 60, 70, is_female=False), 77.8)
        self.assertEqual(calculate_cockcroft_gault(1.0, 60, 70, is_female=True), 66.1)
        self.assertIsNone(calculate_cockcroft_gault(1.0, 60, 0, is_female=False))

    def test_unit_conversion(self):
        self.assertAlmostEqual(creatinine_umol_to_mg(88.4), 1.0)

    def test_stage_boundaries(self):
        cases = [(95, "G1"), (90, "G1"), (60, "G2"), (59.9, "G3a"), (45, "G3a"), (30, "G3b"), (29, "G4"), (14, "G5")]
        for egfr, expected in cases:
            with self.subTest(egfr=egfr):
                self.assertEqual(ckd_stage(egfr)[0], expected)

    def test_dosing_category(self):
        self.assertEqual(renal_dosing_category(75), "mild")
        self.assertEqual(renal_dosing_category(59), "moderate")
        self.assertEqual(renal_dosing_category(10), "dialysis")

    def test_interpretation_summary(self):
        result = interpret_egfr_stage(42.0)
        self.assertEqual(result.stage, "G3b")
        self.assertEqual(result.action, "Consider nephrology referral")
        self.assertEqual(result.dosing_category, "moderate")
        self.assertTrue(result.summary.startswith("CKD Stage G3b (Moderate-severe decrease, eGFR 42 mL/min/1.73m²)"))


if __name__ == "__main__":
    unittest.main()
