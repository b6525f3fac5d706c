#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Burns Assessment

Rule-of-nines total body surface area, Baux mortality scores and
Parkland / modified Brooke resuscitation fluid plans.
"""

import logging
from typing import Dict

from pydantic import BaseModel, Field

from wardcare.core.scoring.utils import clamp
from wardcare.exceptions import InvalidMeasurement

logger = logging.getLogger(__name__)

__all__ = [
    "calculate_tbsa",
    "calculate_baux",
    "calculate_fluid_plan",
]

# Adult rule of nines, percent of body surface per region
RULE_OF_NINES = {
    "head": 9.0,
    "anterior_trunk": 18.0,
    "posterior_trunk": 18.0,
    "left_arm": 9.0,
    "right_arm": 9.0,
    "genitalia": 1.0,
    "left_leg": 18.0,
    "right_leg": 18.0,
}

# (upper bound, interpretation)
BAUX_BANDS = [
    (50, "Low predicted mortality"),
    (80, "Moderate predicted mortality"),
    (110, "High predicted mortality"),
    (140, "Very high predicted mortality, senior review of ceiling of care"),
]
BAUX_FUTILE = "Survival unlikely, discuss palliative care"

INHALATION_INJURY_POINTS = 17

FLUID_FORMULAS = {
    "parkland": 4.0,
    "modified_brooke": 2.0,
}


class BauxScore(BaseModel):
    score: float
    revised_score: float
    inhalation_injury: bool
    interpretation: str


class FluidPlan(BaseModel):
    """Crystalloid volumes counted from the time of injury."""

    formula: str
    ml_per_kg_per_tbsa: float
    total_24h_ml: float
    first_8h_ml: float
    next_16h_ml: float
    first_8h_rate_ml_per_hour: float
    next_16h_rate_ml_per_hour: float
    notes: str = Field(default="Titrate to urine output 0.5 mL/kg/h (1 mL/kg/h in children).")


def calculate_tbsa(regions: Dict[str, float]) -> float:
    """
    Total burned body surface area

    Args:
        regions: Percent burned per rule-of-nines region; each value is
            clamped to the region's share of the body

    Returns:
        TBSA percent, rounded to one decimal
    """
    total = 0.0
    for region, percent in regions.items():
        if region not in RULE_OF_NINES:
            raise ValueError(f"Unknown body region '{region}'")
        total += clamp(percent, 0, RULE_OF_NINES[region])
    return round(total, 1)


def _baux_interpretation(score: float) -> str:
    for upper, text in BAUX_BANDS:
        if score <= upper:
            return text
    return BAUX_FUTILE


def calculate_baux(age: float, tbsa: float, inhalation_injury: bool = False) -> BauxScore:
    """Baux (age + TBSA) and revised Baux (+17 for inhalation injury)."""
    if age < 0 or tbsa < 0:
        raise InvalidMeasurement("age/tbsa", (age, tbsa))
    score = age + tbsa
    revised = score + (INHALATION_INJURY_POINTS if inhalation_injury else 0)
    return BauxScore(
        score=round(score, 1),
        revised_score=round(revised, 1),
        inhalation_injury=inhalation_injury,
        interpretation=_baux_interpretation(revised),
    )


def calculate_fluid_plan(weight_kg: float, tbsa: float, formula: str = "parkland") -> FluidPlan:
    """
    24-hour resuscitation volume

    Half the volume is given over the first 8 hours, the remainder over the
    following 16 hours.
    """
    if formula not in FLUID_FORMULAS:
        raise ValueError(f"Unknown fluid formula '{formula}'")
    if weight_kg <= 0:
        raise InvalidMeasurement("weight", weight_kg)
    if tbsa < 0:
        raise InvalidMeasurement("tbsa", tbsa)

    rate = FLUID_FORMULAS[formula]
    total = rate * weight_kg * tbsa
    first_half = total / 2
    logger.debug(f"{formula} fluid plan: {total:.0f} mL over 24h for {tbsa}% TBSA")
    return FluidPlan(
        formula=formula,
        ml_per_kg_per_tbsa=rate,
        total_24h_ml=round(total, 1),
        first_8h_ml=round(first_half, 1),
        next_16h_ml=round(total - first_half, 1),
        first_8h_rate_ml_per_hour=round(first_half / 8, 1),
        next_16h_rate_ml_per_hour=round((total - first_half) / 16, 1),
    )
