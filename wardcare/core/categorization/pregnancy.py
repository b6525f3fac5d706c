#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Pregnancy status categorization.

Gestational age, expected delivery date and the per-trimester guidance tables
(considerations, contraindicated drugs, required and excluded assessments).
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from wardcare.core.categorization.age import DateLike, to_date
from wardcare.core.models import MedicationCategory, PregnancyStatus

logger = logging.getLogger(__name__)

PREGNANCY_DURATION_DAYS = 280
SECOND_TRIMESTER_WEEKS = 14
THIRD_TRIMESTER_WEEKS = 28

SAFE_MEDICATION_CATEGORIES = [MedicationCategory.A, MedicationCategory.B]

COMMON_CONSIDERATIONS = [
    "Avoid Category D and X medications",
    "Consider teratogenic risk of all medications",
    "Use lowest effective doses",
    "Monitor fetal well-being",
    "Consider altered pharmacokinetics",
    "Increased renal clearance - may need dose adjustments",
    "Folic acid supplementation essential",
]

TRIMESTER_CONSIDERATIONS: Dict[int, List[str]] = {
    1: COMMON_CONSIDERATIONS + [
        "Highest teratogenic risk - critical organogenesis period",
        "Avoid NSAIDs if possible",
        "Screen for ectopic pregnancy if applicable",
        "Nausea/vomiting may affect oral medication absorption",
        "Consider antiemetic safety profiles",
    ],
    2: COMMON_CONSIDERATIONS + [
        "Monitor for gestational diabetes (24-28 weeks)",
        "Blood pressure monitoring for preeclampsia",
        "Anatomy scan around 20 weeks",
        "Consider RhoGAM if Rh-negative",
    ],
    3: COMMON_CONSIDERATIONS + [
        "Avoid NSAIDs - premature ductus arteriosus closure",
        "Monitor for preeclampsia",
        "Consider timing of medications near delivery",
        "Some medications may affect labor",
        "Plan for breastfeeding medication compatibility",
        "GBS screening at 35-37 weeks",
    ],
}

ALWAYS_CONTRAINDICATED = [
    "Warfarin (especially first trimester)",
    "Isotretinoin (Accutane)",
    "Thalidomide",
    "Methotrexate",
    "ACE inhibitors",
    "ARBs",
    "Statins",
    "Live vaccines",
    "Tetracyclines",
    "Fluoroquinolones",
    "Misoprostol (unless for induction)",
]

TRIMESTER_CONTRAINDICATIONS: Dict[int, List[str]] = {
    1: ALWAYS_CONTRAINDICATED + [
        "Valproic acid (high neural tube defect risk)",
        "Phenytoin (fetal hydantoin syndrome)",
        "Carbamazepine (neural tube defects)",
        "Lithium (cardiac defects)",
    ],
    2: ALWAYS_CONTRAINDICATED + [
        "NSAIDs (use with caution, avoid prolonged use)",
        "Trimethoprim (folic acid antagonist)",
    ],
    3: ALWAYS_CONTRAINDICATED + [
        "NSAIDs (contraindicated - ductus arteriosus)",
        "Codeine near term (neonatal withdrawal)",
        "Benzodiazepines near term (floppy infant)",
    ],
}

COMMON_ASSESSMENTS = [
    "Blood pressure",
    "Weight gain monitoring",
    "Urine dipstick (protein, glucose)",
    "Fetal heart rate",
    "Fundal height",
]

TRIMESTER_ASSESSMENTS: Dict[int, List[str]] = {
    1: COMMON_ASSESSMENTS + [
        "Dating ultrasound",
        "Blood type and Rh status",
        "Rubella immunity",
        "Hepatitis B screening",
        "HIV screening",
        "Syphilis screening",
        "Complete blood count",
        "Urinalysis and culture",
    ],
    2: COMMON_ASSESSMENTS + [
        "Anatomy ultrasound (18-22 weeks)",
        "Glucose challenge test (24-28 weeks)",
        "Hemoglobin/hematocrit",
        "RhoGAM if Rh-negative (28 weeks)",
    ],
    3: COMMON_ASSESSMENTS + [
        "GBS culture (35-37 weeks)",
        "Fetal position assessment",
        "Bishop score (if near term)",
        "Non-stress test if indicated",
        "Biophysical profile if indicated",
    ],
}

PREGNANCY_EXCLUDED_ASSESSMENTS = [
    "X-rays (unless absolutely necessary with shielding)",
    "CT scans of pelvis/abdomen",
    "Radioactive iodine studies",
    "Some MRI contrast agents",
    "Cervical cytology (defer unless abnormal)",
    "Mammography (defer unless indicated)",
]


def trimester_for_weeks(weeks: int) -> int:
    if weeks >= THIRD_TRIMESTER_WEEKS:
        return 3
    if weeks >= SECOND_TRIMESTER_WEEKS:
        return 2
    return 1


def calculate_gestational_age(lmp: DateLike, now: Optional[DateLike] = None) -> Tuple[int, int, int]:
    """
    Gestational age from the last menstrual period.

    Returns:
        Tuple of (completed weeks, remaining days, trimester)
    """
    today = to_date(now) if now is not None else date.today()
    total_days = (today - to_date(lmp)).days
    weeks, days = divmod(total_days, 7)
    return weeks, days, trimester_for_weeks(weeks)


def calculate_edd(lmp: DateLike) -> date:
    """Expected delivery date: LMP plus 40 weeks."""
    return to_date(lmp) + timedelta(days=PREGNANCY_DURATION_DAYS)


def categorize_pregnancy(
    is_pregnant: bool,
    lmp: Optional[DateLike] = None,
    gestational_weeks: Optional[int] = None,
    now: Optional[DateLike] = None,
) -> PregnancyStatus:
    """
    Build the pregnancy snapshot.

    A non-pregnant patient gets empty guidance and every medication category.
    With an LMP the trimester comes from the gestational age; otherwise from
    gestational_weeks when given, and trimester 1 when neither is known.
    """
    if not is_pregnant:
        return PregnancyStatus(is_pregnant=False)

    trimester = 1
    weeks: Optional[int] = None
    days: Optional[int] = None
    edd: Optional[date] = None
    lmp_date: Optional[date] = None

    if lmp:
        lmp_date = to_date(lmp)
        weeks, days, trimester = calculate_gestational_age(lmp_date, now)
        edd = calculate_edd(lmp_date)
    elif gestational_weeks:
        weeks = int(gestational_weeks)
        trimester = trimester_for_weeks(weeks)

    logger.debug(f"Pregnancy categorized: trimester {trimester}, weeks {weeks}")

    return PregnancyStatus(
        is_pregnant=True,
        trimester=trimester,
        gestational_weeks=weeks,
        gestational_days=days,
        edd=edd,
        lmp=lmp_date,
        clinical_considerations=list(TRIMESTER_CONSIDERATIONS[trimester]),
        contraindications=list(TRIMESTER_CONTRAINDICATIONS[trimester]),
        required_assessments=list(TRIMESTER_ASSESSMENTS[trimester]),
        excluded_assessments=list(PREGNANCY_EXCLUDED_ASSESSMENTS),
        medication_categories=list(SAFE_MEDICATION_CATEGORIES),
    )
