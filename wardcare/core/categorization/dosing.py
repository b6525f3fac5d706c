#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Dosing-weight helpers and the combined patient context.
"""

import logging
from typing import Optional

from wardcare.core.categorization.age import DateLike, categorize_patient
from wardcare.core.categorization.pregnancy import categorize_pregnancy
from wardcare.core.models import DosingWeight, PatientContext
from wardcare.exceptions import InvalidMeasurement

logger = logging.getLogger(__name__)

CM_PER_INCH = 2.54
OBESITY_IBW_RATIO = 1.3
UNDERWEIGHT_IBW_RATIO = 0.8
ADJUSTMENT_FACTOR = 0.4


def _require_positive(name: str, value: float) -> None:
    if value is None or value <= 0:
        raise InvalidMeasurement(name, value)


def calculate_bsa(weight_kg: float, height_cm: float) -> float:
    """Body surface area (m2) by the Du Bois formula."""
    _require_positive("weight_kg", weight_kg)
    _require_positive("height_cm", height_cm)
    return 0.007184 * weight_kg ** 0.425 * height_cm ** 0.725


def calculate_ibw(height_cm: float, is_male: bool) -> float:
    """Ideal body weight (kg) by the Devine formula."""
    _require_positive("height_cm", height_cm)
    height_inches = height_cm / CM_PER_INCH
    base = 50.0 if is_male else 45.5
    return base + 2.3 * (height_inches - 60)


def calculate_adjusted_weight(actual_weight: float, ibw: float) -> float:
    """Adjusted body weight, only applied above 130% of IBW."""
    _require_positive("actual_weight", actual_weight)
    _require_positive("ibw", ibw)
    if actual_weight <= ibw * OBESITY_IBW_RATIO:
        return actual_weight
    return ibw + ADJUSTMENT_FACTOR * (actual_weight - ibw)


def get_patient_context(
    date_of_birth: DateLike,
    sex: str,
    weight: Optional[float] = None,
    height: Optional[float] = None,
    is_pregnant: bool = False,
    lmp: Optional[DateLike] = None,
    now: Optional[DateLike] = None,
) -> PatientContext:
    """
    Assemble everything dosing decisions need about a patient.

    Args:
        date_of_birth: Birth date
        sex: 'male' or 'female'
        weight: Actual weight in kg
        height: Height in cm
        is_pregnant: Pregnancy flag, only evaluated for adult females
        lmp: Last menstrual period
        now: Reference instant

    Returns:
        PatientContext; body-size fields are filled only when both weight and
        height are known
    """
    category = categorize_patient(date_of_birth, now)

    bsa = ibw = adjusted = None
    if weight and height:
        bsa = calculate_bsa(weight, height)
        ibw = calculate_ibw(height, sex.lower() == "male")
        if ibw > 0:
            adjusted = calculate_adjusted_weight(weight, ibw)
        else:
            # Devine is undefined for short stature
            logger.debug(f"No ideal body weight for height {height} cm")
            ibw = None

    pregnancy = None
    if sex.lower() == "female" and category.is_adult:
        pregnancy = categorize_pregnancy(is_pregnant, lmp, now=now)

    return PatientContext(
        category=category,
        pregnancy=pregnancy,
        weight=weight,
        height=height,
        bsa=bsa,
        ibw=ibw,
        adjusted_weight=adjusted,
    )


def get_dosing_weight(context: PatientContext) -> DosingWeight:
    """Pick the body weight to dose from, with the reasoning."""
    if not context.weight:
        return DosingWeight(weight=0, weight_type="actual", recommendation="Weight required for dosing")

    if context.category.is_pediatric:
        return DosingWeight(
            weight=context.weight,
            weight_type="actual",
            recommendation="Use actual body weight for pediatric dosing",
        )

    if context.ibw and context.weight > context.ibw * OBESITY_IBW_RATIO:
        return DosingWeight(
            weight=context.adjusted_weight or context.weight,
            weight_type="adjusted",
            recommendation="Patient is obese - consider adjusted body weight for lipophilic drugs",
        )

    if context.ibw and context.weight < context.ibw * UNDERWEIGHT_IBW_RATIO:
        return DosingWeight(
            weight=context.weight,
            weight_type="actual",
            recommendation="Patient is underweight - use actual body weight, consider reduced doses",
        )

    return DosingWeight(weight=context.weight, weight_type="actual", recommendation="Use actual body weight")
