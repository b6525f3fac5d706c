#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for Score Processor Module

This module tests the score processor, which combines LRINEC, qSOFA and NEWS2
with the infection classifier into a single encounter assessment.
"""

import unittest
from unittest.mock import patch

from wardcare.core.scoring.models import InfectionFeatures
from wardcare.core.scoring.score_processor import assess_soft_tissue_infection, extract_numeric

HIGH_RISK_LABS = {"crp": 160, "wbc": 26, "hemoglobin": 10, "sodium": 130, "creatinine": 150, "glucose": 11}
SICK_VITALS = {
    "respiratory_rate": "24",
    "spo2": "93",
    "on_oxygen": False,
    "temperature": "38.6",
    "systolic_bp": "95",
    "heart_rate": "118",
    "consciousness": "confused",
}


class TestScoreProcessor(unittest.TestCase):
    """Test cases for the score processor functionality"""

    def test_extract_numeric(self):
        values = extract_numeric({"crp": "120", "wbc": "n/a", "sodium": 131}, ("crp", "wbc", "sodium", "glucose"))
        self.assertEqual(values, {"crp": 120.0, "wbc": None, "sodium": 131.0, "glucose": None})

    def test_full_assessment(self):
        result = assess_soft_tissue_infection(InfectionFeatures(), labs=HIGH_RISK_LABS, vitals=SICK_VITALS)

        self.assertEqual(result.lrinec.total_score, 13)
        self.assertEqual(result.qsofa.score, 3)
        self.assertIsNotNone(result.news2)
        self.assertEqual(result.missing_parameters, [])
        # A high LRINEC alone is enough to suspect necrotizing fasciitis
        self.assertEqual(result.classification.classification, "necrotizing_fasciitis_type2")
        self.assertIn("Lactate", result.recommended_labs)
        self.assertIn("Meropenem", [r.name for r in result.recommended_antibiotics])

    def test_missing_inputs_do_not_block_classification(self):
        result = assess_soft_tissue_infection(
            InfectionFeatures(fluctuance=True),
            labs={"crp": 40},
            vitals={"consciousness": "alert"},
        )
        self.assertIsNone(result.lrinec)
        self.assertIsNone(result.qsofa)
        self.assertIsNone(result.news2)
        self.assertEqual(result.classification.classification, "abscess")
        self.assertIn("lrinec.wbc", result.missing_parameters)
        self.assertIn("qsofa.systolic_bp", result.missing_parameters)
        self.assertIn("news2.on_oxygen", result.missing_parameters)
        self.assertNotIn("qsofa.altered_mentation", result.missing_parameters)

    def test_explicit_altered_mentation_wins(self):
        vitals = dict(SICK_VITALS, altered_mentation=False)
        result = assess_soft_tissue_infection(InfectionFeatures(), labs=HIGH_RISK_LABS, vitals=vitals)
        self.assertEqual(result.qsofa.subscores["altered_mentation"], 0)

    def test_computed_lrinec_replaces_supplied_value(self):
        labs = {"crp": 10, "wbc": 8, "hemoglobin": 14, "sodium": 140, "creatinine": 80, "glucose": 5}
        result = assess_soft_tissue_infection(InfectionFeatures(lrinec_score=9), labs=labs)
        self.assertEqual(result.lrinec.total_score, 0)
        self.assertEqual(result.classification.classification, "simple_cellulitis")

    @patch("wardcare.core.scoring.score_processor.recommended_antibiotics")
    def test_patient_flags_reach_antibiotic_protocol(self, mock_antibiotics):
        mock_antibiotics.return_value = []
        assess_soft_tissue_infection(InfectionFeatures(), has_diabetes=True, renal_impairment=True)
        mock_antibiotics.assert_called_once_with("simple_cellulitis", has_diabetes=True, renal_impairment=True)


if __name__ == "__main__":
    unittest.main()
