import unittest

from wardcare.core.categorization.dosing import (
    calculate_adjusted_weight,
    calculate_bsa,
    calculate_ibw,
    get_dosing_weight,
    get_patient_context,
)
from wardcare.exceptions import InvalidMeasurement


class TestDosingWeights(unittest.TestCase):

    def test_bsa_du_bois(self):
        self.assertAlmostEqual(calculate_bsa(70, 170), 1.81, places=2)

    def test_ibw_devine(self):
        self.assertAlmostEqual(calculate_ibw(180, is_male=True), 74.99, places=1)
        self.assertAlmostEqual(calculate_ibw(165, is_male=False), 56.91, places=1)

    def test_adjusted_weight_only_above_130_percent(self):
        self.assertAlmostEqual(calculate_adjusted_weight(120, 75), 93.0)
        self.assertEqual(calculate_adjusted_weight(90, 75), 90)

    def test_non_positive_measurements_raise(self):
        with self.assertRaises(InvalidMeasurement):
            calculate_bsa(0, 170)
        with self.assertRaises(InvalidMeasurement):
            calculate_bsa(70, -1)
        with self.assertRaises(InvalidMeasurement):
            calculate_ibw(0, is_male=True)

    def test_adjusted_weight_rejects_non_positive_ibw(self):
        ibw = calculate_ibw(90, is_male=True)
        self.assertLess(ibw, 0)
        with self.assertRaises(InvalidMeasurement):
            calculate_adjusted_weight(13, ibw)
        with self.assertRaises(InvalidMeasurement):
            calculate_adjusted_weight(13, 0)


class TestPatientContext(unittest.TestCase):

    def test_obese_adult_uses_adjusted_weight(self):
        context = get_patient_context("1980-01-01", "male", weight=120, height=180, now="2024-06-15")
        self.assertIsNone(context.pregnancy)
        dosing = get_dosing_weight(context)
        self.assertEqual(dosing.weight_type, "adjusted")
        self.assertAlmostEqual(dosing.weight, context.adjusted_weight)

    def test_child_uses_actual_weight(self):
        context = get_patient_context("2018-01-01", "female", weight=20, height=110, now="2024-06-15")
        self.assertIsNone(context.pregnancy)
        dosing = get_dosing_weight(context)
        self.assertEqual(dosing.weight_type, "actual")
        self.assertEqual(dosing.weight, 20)

    def test_short_child_has_no_ideal_weight(self):
        context = get_patient_context("2022-01-01", "male", weight=13, height=90, now="2024-06-15")
        self.assertIsNotNone(context.bsa)
        self.assertIsNone(context.ibw)
        self.assertIsNone(context.adjusted_weight)
        self.assertEqual(get_dosing_weight(context).weight, 13)

    def test_pregnancy_evaluated_for_adult_female(self):
        context = get_patient_context(
            "1992-01-01", "female", weight=65, height=165, is_pregnant=True, lmp="2024-03-01", now="2024-06-15"
        )
        self.assertTrue(context.pregnancy.is_pregnant)
        self.assertEqual(context.pregnancy.trimester, 2)

    def test_missing_weight(self):
        context = get_patient_context("1980-01-01", "male", now="2024-06-15")
        self.assertIsNone(context.bsa)
        self.assertEqual(get_dosing_weight(context).recommendation, "Weight required for dosing")


if __name__ == "__main__":
    unittest.main()
