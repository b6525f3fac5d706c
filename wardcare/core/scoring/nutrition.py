"""Malnutrition Universal Screening Tool (MUST)."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from wardcare.exceptions import InvalidMeasurement

logger = logging.getLogger(__name__)

__all__ = ["calculate_must"]

MUST_ACTIONS = {
    "low": "Routine clinical care. Repeat screening weekly in hospital.",
    "medium": "Observe. Document dietary intake for 3 days and repeat screening.",
    "high": "Treat. Refer to dietitian and follow local nutrition support policy.",
}


class MUSTScore(BaseModel):
    bmi: float
    bmi_score: int = Field(..., ge=0, le=2)
    weight_loss_score: int = Field(..., ge=0, le=2)
    acute_disease_score: int = Field(..., ge=0, le=2)
    total_score: int = Field(..., ge=0, le=6)
    risk: str
    action: str


def calculate_must(
    weight_kg: float,
    height_cm: float,
    previous_weight_kg: Optional[float] = None,
    acutely_ill_no_intake: bool = False,
) -> MUSTScore:
    """
    MUST score

    Args:
        weight_kg: Current weight
        height_cm: Height
        previous_weight_kg: Weight 3-6 months ago, when known
        acutely_ill_no_intake: Acutely ill with no nutritional intake for
            more than 5 days

    Returns:
        MUSTScore with risk low (0), medium (1) or high (2+)
    """
    if weight_kg <= 0 or height_cm <= 0:
        raise InvalidMeasurement("weight/height", (weight_kg, height_cm))

    bmi = round(weight_kg / (height_cm / 100) ** 2, 1)
    if bmi < 18.5:
        bmi_score = 2
    elif bmi <= 20:
        bmi_score = 1
    else:
        bmi_score = 0

    weight_loss_score = 0
    if previous_weight_kg:
        loss_pct = (previous_weight_kg - weight_kg) / previous_weight_kg * 100
        if loss_pct > 10:
            weight_loss_score = 2
        elif loss_pct >= 5:
            weight_loss_score = 1

    acute_disease_score = 2 if acutely_ill_no_intake else 0
    total = bmi_score + weight_loss_score + acute_disease_score

    if total == 0:
        risk = "low"
    elif total == 1:
        risk = "medium"
    else:
        risk = "high"

    return MUSTScore(
        bmi=bmi,
        bmi_score=bmi_score,
        weight_loss_score=weight_loss_score,
        acute_disease_score=acute_disease_score,
        total_score=total,
        risk=risk,
        action=MUST_ACTIONS[risk],
    )
