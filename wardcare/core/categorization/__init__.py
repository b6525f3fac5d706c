"""
Patient Categorization

Age tiers, pregnancy status and dosing-weight helpers that drive which
assessments, contraindications and dose calculations apply to a patient.
"""

from wardcare.core.categorization.age import (
    broad_category,
    calculate_age,
    categorize,
    categorize_patient,
    format_age,
    is_assessment_appropriate,
)
from wardcare.core.categorization.dosing import (
    calculate_adjusted_weight,
    calculate_bsa,
    calculate_ibw,
    get_dosing_weight,
    get_patient_context,
)
from wardcare.core.categorization.pregnancy import (
    calculate_edd,
    calculate_gestational_age,
    categorize_pregnancy,
)

__all__ = [
    "broad_category",
    "calculate_adjusted_weight",
    "calculate_age",
    "calculate_bsa",
    "calculate_edd",
    "calculate_gestational_age",
    "calculate_ibw",
    "categorize",
    "categorize_patient",
    "categorize_pregnancy",
    "format_age",
    "get_dosing_weight",
    "get_patient_context",
    "is_assessment_appropriate",
]
