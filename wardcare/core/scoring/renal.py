"""
Renal function estimates: CKD-EPI 2021 eGFR, Cockcroft-Gault creatinine
clearance and KDIGO CKD staging with a prescribing summary.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from wardcare.exceptions import InvalidMeasurement

logger = logging.getLogger(__name__)

__all__ = [
    "calculate_ckd_epi",
    "calculate_cockcroft_gault",
    "ckd_stage",
    "renal_dosing_category",
    "interpret_egfr_stage",
    "creatinine_umol_to_mg",
]

UMOL_PER_MG_DL = 88.4

CKD_STAGES = [
    (90, "G1", "Normal or high", "Monitor if CKD risk factors present"),
    (60, "G2", "Mildly decreased", "Monitor yearly"),
    (45, "G3a", "Mild-moderate decrease", "Monitor every 6 months"),
    (30, "G3b", "Moderate-severe decrease", "Consider nephrology referral"),
    (15, "G4", "Severely decreased", "Nephrology referral essential"),
]
KIDNEY_FAILURE = ("G5", "Kidney failure", "Prepare for RRT (dialysis/transplant)")

DOSING_SUMMARIES = {
    "normal": "Normal renal function. Standard drug doses typically appropriate.",
    "mild": "Mild renal impairment. Most drugs can be used at normal doses. Monitor renal function periodically.",
    "moderate": (
        "Moderate renal impairment. Many drugs require dose adjustment. Avoid NSAIDs. "
        "Use nephrotoxic drugs with caution."
    ),
    "severe": (
        "Severe renal impairment. Significant dose adjustments required for most renally-cleared drugs. "
        "Avoid nephrotoxic agents. Consider referral to nephrology."
    ),
    "dialysis": (
        "End-stage renal disease. Complex drug dosing - many drugs require post-dialysis dosing. "
        "Consult pharmacy/nephrology for all prescriptions."
    ),
}


class EGFRInterpretation(BaseModel):
    egfr: float
    stage: str
    description: str
    action: str
    dosing_category: str
    summary: str


def creatinine_umol_to_mg(creatinine_umol: float) -> float:
    """Convert serum creatinine from umol/L to mg/dL."""
    return creatinine_umol / UMOL_PER_MG_DL


def calculate_ckd_epi(creatinine_mg_dl: float, age: float, is_female: bool) -> float:
    """
    eGFR by the race-free CKD-EPI 2021 equation

    Args:
        creatinine_mg_dl: Serum creatinine (mg/dL)
        age: Age in years
        is_female: Applies the female kappa, alpha and 1.012 coefficient

    Returns:
        eGFR in mL/min/1.73m2, rounded to one decimal
    """
    if creatinine_mg_dl <= 0 or age <= 0:
        raise InvalidMeasurement("creatinine/age", (creatinine_mg_dl, age))

    kappa = 0.7 if is_female else 0.9
    alpha = -0.241 if is_female else -0.302
    ratio = creatinine_mg_dl / kappa

    egfr = 142 * min(ratio, 1) ** alpha * max(ratio, 1) ** -1.2 * 0.9938 ** age
    if is_female:
        egfr *= 1.012
    return round(egfr, 1)


def calculate_cockcroft_gault(creatinine_mg_dl: float, age: float, weight_kg: float, is_female: bool) -> Optional[float]:
    """Creatinine clearance (mL/min); None when any input is non-positive."""
    if creatinine_mg_dl <= 0 or age <= 0 or weight_kg <= 0:
        return None
    crcl = ((140 - age) * weight_kg) / (72 * creatinine_mg_dl)
    if is_female:
        crcl *= 0.85
    return round(crcl, 1)


def ckd_stage(egfr: float):
    """Return (stage, description, action) for an eGFR."""
    for lower, stage, description, action in CKD_STAGES:
        if egfr >= lower:
            return stage, description, action
    return KIDNEY_FAILURE


def renal_dosing_category(egfr: float) -> str:
    if egfr >= 90:
        return "normal"
    if egfr >= 60:
        return "mild"
    if egfr >= 30:
        return "moderate"
    if egfr >= 15:
        return "severe"
    return "dialysis"


def interpret_egfr_stage(egfr: float) -> EGFRInterpretation:
    stage, description, action = ckd_stage(egfr)
    category = renal_dosing_category(egfr)
    return EGFRInterpretation(
        egfr=egfr,
        stage=stage,
        description=description,
        action=action,
        dosing_category=category,
        summary=f"CKD Stage {stage} ({description}, eGFR {egfr:g} mL/min/1.73m²): {DOSING_SUMMARIES[category]}",
    )
