import unittest

from wardcare.core.scoring.wounds import (
    WoundEntry,
    WoundShape,
    calculate_sinbad,
    calculate_wound_area,
    sinbad_from_findings,
    texas_classification,
    total_wound_area,
    wagner_grade,
    wifi_classification,
    wifi_ischemia_grade,
)


class TestWoundArea(unittest.TestCase):
    """Test cases for wound area estimation"""

    def test_shapes(self):
        self.assertEqual(calculate_wound_area(4, 3, WoundShape.RECTANGLE), 12.0)
        self.assertEqual(calculate_wound_area(4, 3, WoundShape.ELLIPSE), 9.42)
        self.assertEqual(calculate_wound_area(4, 0, WoundShape.CIRCLE), 12.57)
        self.assertEqual(calculate_wound_area(4, 3, WoundShape.IRREGULAR), 9.42)

    def test_shape_accepts_string(self):
        self.assertEqual(calculate_wound_area(2, 5, "rectangle"), 10.0)

    def test_circle_ignores_width(self):
        self.assertEqual(calculate_wound_area(4, 99, WoundShape.CIRCLE), calculate_wound_area(4, 0, WoundShape.CIRCLE))

    def test_entry_update_recomputes_area(self):
        wound = WoundEntry(location="heel", shape=WoundShape.RECTANGLE)
        updated = wound.update(length=5, width=2)
        self.assertEqual(updated.area, 10.0)
        self.assertEqual(wound.area, 0.0)
        self.assertEqual(updated.id, wound.id)

    def test_entry_area_computed_on_construction(self):
        self.assertEqual(WoundEntry(shape="rectangle", length=4, width=3).area, 12.0)
        circle = WoundEntry(shape=WoundShape.CIRCLE, length=4, width=1, area=99.0)
        self.assertEqual(circle.width, 4)
        self.assertEqual(circle.area, 12.57)
        self.assertEqual(total_wound_area([WoundEntry(shape="rectangle", length=2, width=3), circle]), 18.57)

    def test_circle_width_mirrors_length(self):
        wound = WoundEntry(shape=WoundShape.CIRCLE).update(length=4)
        self.assertEqual(wound.width, 4)
        self.assertEqual(wound.area, 12.57)

    def test_unrelated_update_keeps_area(self):
        wound = WoundEntry(shape=WoundShape.RECTANGLE).update(length=2, width=2)
        self.assertEqual(wound.update(depth=1.5).area, 4.0)

    def test_total_area(self):
        wounds = [
            WoundEntry(shape=WoundShape.RECTANGLE).update(length=2, width=3),
            WoundEntry(shape=WoundShape.CIRCLE).update(length=2),
        ]
        self.assertEqual(total_wound_area(wounds), 9.14)


class TestWoundClassifications(unittest.TestCase):

    def test_wagner(self):
        self.assertEqual(wagner_grade(5), "Gangrene of entire foot")
        with self.assertRaises(ValueError):
            wagner_grade(6)

    def test_texas(self):
        self.assertEqual(
            texas_classification(1, "b"),
            "Superficial (no tendon/capsule/bone) - Infected wound",
        )
        with self.assertRaises(ValueError):
            texas_classification(4, "A")

    def test_wifi(self):
        wifi = wifi_classification(2, 1, 5)
        self.assertEqual(wifi.label, "W2I1fI3")
        self.assertEqual(wifi.descriptions["foot_infection"], "Severe (systemic signs)")

    def test_wifi_ischemia_from_abi(self):
        self.assertEqual(wifi_ischemia_grade(0.85), 0)
        self.assertEqual(wifi_ischemia_grade(0.65), 1)
        self.assertEqual(wifi_ischemia_grade(0.4), 2)
        self.assertEqual(wifi_ischemia_grade(0.3), 3)

    def test_sinbad(self):
        score = calculate_sinbad(1, 0, 1, 1, 0, 3)
        self.assertEqual(score.depth, 1)
        self.assertEqual(score.total, 4)

    def test_sinbad_from_findings(self):
        worst = sinbad_from_findings(
            wound_location="heel",
            abi=0.5,
            monofilament_loss=True,
            sepsis_severity="sepsis",
            wound_area=2.0,
            wound_depth=1.0,
        )
        self.assertEqual(worst.total, 6)
        forefoot = sinbad_from_findings(wound_location="Great toe", sepsis_severity="none")
        self.assertEqual(forefoot.total, 0)


if __name__ == "__main__":
    unittest.main()
