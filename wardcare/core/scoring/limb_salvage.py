#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Limb Salvage Scoring

Composite diabetic foot limb salvage score, amputation level and management
recommendations.

Seven sub-scores (wound, ischemia, infection, renal, comorbidity, age,
nutrition) add up to a 0-100 total. Higher scores mean higher risk and a lower
probability of salvaging the limb. Chronic osteomyelitis is weighted heavily
and can override a favourable salvage probability when choosing an amputation
level.
"""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from wardcare.core.scoring.wounds import WIfIClassification

logger = logging.getLogger(__name__)

MAX_SCORE = 100

__all__ = [
    "LimbSalvageAssessment",
    "LimbSalvageScore",
    "LimbSalvageRecommendation",
    "AmputationLevel",
    "ManagementStrategy",
    "calculate_limb_salvage_score",
    "recommend_amputation_level",
    "determine_management",
    "generate_recommendations",
]


class AmputationLevel(str, Enum):
    NONE = "none"
    TOE_DISARTICULATION = "toe_disarticulation"
    RAY_AMPUTATION = "ray_amputation"
    TRANSMETATARSAL = "transmetatarsal"
    BKA = "bka"
    AKA = "aka"


MINOR_AMPUTATION_LEVELS = (
    AmputationLevel.NONE,
    AmputationLevel.TOE_DISARTICULATION,
    AmputationLevel.RAY_AMPUTATION,
    AmputationLevel.TRANSMETATARSAL,
)


class ManagementStrategy(str, Enum):
    CONSERVATIVE = "conservative"
    REVASCULARIZATION = "revascularization"
    MINOR_AMPUTATION = "minor_amputation"
    MAJOR_AMPUTATION = "major_amputation"


class ArterialDoppler(BaseModel):
    abi: Optional[float] = Field(default=None, description="Ankle-brachial index.")
    waveform: str = Field(default="triphasic", description="triphasic, biphasic, monophasic or absent.")
    femoral_artery: str = "patent"
    popliteal_artery: str = "patent"
    anterior_tibial_artery: str = "patent"
    posterior_tibial_artery: str = "patent"
    dorsalis_pedis_artery: str = "patent"
    peroneal_artery: str = "patent"
    calcification: bool = False


class OsteomyelitisAssessment(BaseModel):
    suspected: bool = False
    probe_to_bone: bool = False
    mri_findings: Optional[str] = Field(default=None, description="positive, suspicious or negative.")
    bone_biopsy: Optional[str] = None
    radiographic_changes: bool = False
    chronicity: Optional[str] = Field(default=None, description="acute, subacute or chronic.")
    duration_in_weeks: Optional[float] = None
    sequestrum: bool = False
    involucrum: bool = False
    cloacae: bool = False
    involved_cortex: Optional[str] = Field(default=None, description="superficial, deep or full_thickness.")
    recurrent: bool = False
    previous_antibiotic: bool = False
    previous_debridement: bool = False
    affected_bones: List[str] = Field(default_factory=list)

    @property
    def is_chronic(self) -> bool:
        return self.chronicity == "chronic" or bool(self.duration_in_weeks and self.duration_in_weeks > 6)

    @property
    def has_failed_treatment(self) -> bool:
        return self.recurrent or (self.previous_antibiotic and self.previous_debridement)


class SepsisAssessment(BaseModel):
    sepsis_severity: str = Field(
        default="none", description="none, sirs, sepsis, severe_sepsis or septic_shock."
    )
    qsofa_score: int = Field(default=0, ge=0, le=3)
    wbc: Optional[float] = None
    crp: Optional[float] = None
    procalcitonin: Optional[float] = None


class RenalStatus(BaseModel):
    ckd_stage: int = Field(default=1, ge=1, le=5)
    on_dialysis: bool = False


class DiabeticFootComorbidities(BaseModel):
    hba1c: Optional[float] = None
    diabetes_duration: float = Field(default=0, description="Years since diagnosis.")
    coronary_artery_disease: bool = False
    heart_failure: bool = False
    previous_stroke: bool = False
    peripheral_vascular_disease: bool = False
    previous_amputation: bool = False
    smoking: bool = False


class LimbSalvageAssessment(BaseModel):
    """Findings collected during a diabetic foot limb salvage assessment."""

    patient_age: int = 0
    wagner_grade: int = Field(default=0, ge=0, le=5)
    wifi: Optional[WIfIClassification] = None
    wound_location: str = ""
    wound_duration: int = Field(default=0, description="Days.")
    previous_debridement: bool = False
    debridement_count: int = 0
    angiogram_performed: bool = False
    doppler: Optional[ArterialDoppler] = None
    sepsis: Optional[SepsisAssessment] = None
    osteomyelitis: Optional[OsteomyelitisAssessment] = None
    renal_status: Optional[RenalStatus] = None
    comorbidities: Optional[DiabeticFootComorbidities] = None
    albumin: Optional[float] = Field(default=None, description="g/dL.")
    must_score: int = 0

    @property
    def abi(self) -> float:
        # Unknown ABI is treated as normal
        if self.doppler is None:
            return 1.0
        return self.doppler.abi or 1.0


class LimbSalvageScore(BaseModel):
    wound_score: int
    ischemia_score: float
    infection_score: int
    renal_score: int
    comorbidity_score: int
    age_score: int
    nutritional_score: int
    total_score: float
    max_score: int = MAX_SCORE
    percentage: float
    risk_category: str = Field(..., description="low, moderate, high or very_high.")
    salvage_probability: str = Field(..., description="excellent, good, fair, poor or very_poor.")


class LimbSalvageRecommendation(BaseModel):
    category: str = Field(..., description="immediate, short_term or long_term.")
    priority: str = Field(..., description="critical, high, medium or low.")
    recommendation: str
    rationale: str
    timeframe: str


# Sub-scores

WAGNER_POINTS = {0: 0, 1: 2, 2: 4, 3: 6, 4: 9, 5: 12}
WAVEFORM_POINTS = {"triphasic": 0, "biphasic": 1, "monophasic": 3, "absent": 4}
SEPSIS_POINTS = {"none": 0, "sirs": 2, "sepsis": 4, "severe_sepsis": 6, "septic_shock": 8}
CKD_POINTS = {1: 0, 2: 1, 3: 2, 4: 4, 5: 6}
ARTERIES = (
    "femoral_artery",
    "popliteal_artery",
    "anterior_tibial_artery",
    "posterior_tibial_artery",
    "dorsalis_pedis_artery",
    "peroneal_artery",
)


def _wound_score(a: LimbSalvageAssessment) -> int:
    score = WAGNER_POINTS.get(a.wagner_grade, 0)

    if a.wifi is not None:
        score += a.wifi.wound * 2

    if a.wound_duration > 90:
        score += 4
    elif a.wound_duration > 60:
        score += 3
    elif a.wound_duration > 30:
        score += 2
    elif a.wound_duration > 14:
        score += 1

    # Repeated debridement without healing
    if a.previous_debridement and a.debridement_count >= 3:
        score += 3
    elif a.previous_debridement:
        score += 1

    return min(score, 25)


def _ischemia_score(a: LimbSalvageAssessment) -> float:
    if a.doppler is None:
        return 0
    doppler = a.doppler
    score = 0.0

    abi = a.abi
    if abi < 0.4:
        score += 8
    elif abi < 0.6:
        score += 6
    elif abi < 0.8:
        score += 4
    elif abi < 0.9:
        score += 2

    score += WAVEFORM_POINTS.get(doppler.waveform, 0)

    occluded = 0.0
    for artery in ARTERIES:
        status = getattr(doppler, artery)
        if status == "occluded":
            occluded += 1
        elif status == "stenosis":
            occluded += 0.5
    score += min(occluded, 6)

    if doppler.calcification:
        score += 2

    return min(score, 20)


def _infection_score(a: LimbSalvageAssessment) -> int:
    score = 0
    sepsis = a.sepsis
    osteo = a.osteomyelitis

    if sepsis is not None:
        score += SEPSIS_POINTS.get(sepsis.sepsis_severity, 0)
        score += sepsis.qsofa_score

    if osteo is not None and osteo.suspected:
        score += 2
        if osteo.probe_to_bone:
            score += 1
        if osteo.mri_findings == "positive":
            score += 2
        elif osteo.mri_findings == "suspicious":
            score += 1
        if osteo.bone_biopsy == "positive":
            score += 2
        if osteo.radiographic_changes:
            score += 1

        if osteo.is_chronic:
            # Chronic disease has far lower cure rates than acute
            score += 4
            if osteo.sequestrum:
                score += 2
            if osteo.involucrum:
                score += 1
            if osteo.cloacae:
                score += 1
            if osteo.involved_cortex == "full_thickness":
                score += 2
            elif osteo.involved_cortex == "deep":
                score += 1
        elif osteo.chronicity == "subacute" or (osteo.duration_in_weeks and osteo.duration_in_weeks > 2):
            score += 2

        if osteo.recurrent:
            score += 3
        if osteo.previous_antibiotic and osteo.previous_debridement:
            score += 2
        elif osteo.previous_antibiotic or osteo.previous_debridement:
            score += 1

        if len(osteo.affected_bones) >= 3:
            score += 2
        elif len(osteo.affected_bones) >= 2:
            score += 1

    if sepsis is not None:
        if (sepsis.wbc or 0) > 15:
            score += 1
        if (sepsis.crp or 0) > 100:
            score += 1
        if (sepsis.procalcitonin or 0) > 2:
            score += 1

    return min(score, 20)


def _renal_score(renal: Optional[RenalStatus]) -> int:
    if renal is None:
        return 0
    score = CKD_POINTS.get(renal.ckd_stage, 0)
    if renal.on_dialysis:
        score += 4
    return min(score, 10)


def _comorbidity_score(c: Optional[DiabeticFootComorbidities]) -> int:
    if c is None:
        return 0
    score = 0

    hba1c = c.hba1c or 7
    if hba1c > 10:
        score += 3
    elif hba1c > 8.5:
        score += 2
    elif hba1c > 7.5:
        score += 1

    if c.diabetes_duration > 20:
        score += 2
    elif c.diabetes_duration > 10:
        score += 1

    if c.coronary_artery_disease:
        score += 2
    if c.heart_failure:
        score += 2
    if c.previous_stroke:
        score += 1
    if c.peripheral_vascular_disease:
        score += 2
    if c.previous_amputation:
        score += 2
    if c.smoking:
        score += 1

    return min(score, 15)


def _age_score(age: int) -> int:
    if age >= 80:
        return 5
    if age >= 70:
        return 3
    if age >= 60:
        return 2
    if age >= 50:
        return 1
    return 0


def _nutritional_score(a: LimbSalvageAssessment) -> int:
    score = 0
    albumin = a.albumin or 4
    if albumin < 2.5:
        score += 3
    elif albumin < 3.0:
        score += 2
    elif albumin < 3.5:
        score += 1

    if a.must_score >= 2:
        score += 2
    elif a.must_score == 1:
        score += 1

    return min(score, 5)


def _risk_category(percentage: float) -> str:
    if percentage >= 70:
        return "very_high"
    if percentage >= 50:
        return "high"
    if percentage >= 30:
        return "moderate"
    return "low"


def _salvage_probability(percentage: float) -> str:
    if percentage >= 80:
        return "very_poor"
    if percentage >= 60:
        return "poor"
    if percentage >= 40:
        return "fair"
    if percentage >= 20:
        return "good"
    return "excellent"


def calculate_limb_salvage_score(assessment: LimbSalvageAssessment) -> LimbSalvageScore:
    """
    Calculate the composite limb salvage score

    Args:
        assessment: Wound, vascular, infection and systemic findings

    Returns:
        LimbSalvageScore with sub-scores, percentage of the 100-point
        maximum, risk category and salvage probability
    """
    parts = {
        "wound_score": _wound_score(assessment),
        "ischemia_score": _ischemia_score(assessment),
        "infection_score": _infection_score(assessment),
        "renal_score": _renal_score(assessment.renal_status),
        "comorbidity_score": _comorbidity_score(assessment.comorbidities),
        "age_score": _age_score(assessment.patient_age),
        "nutritional_score": _nutritional_score(assessment),
    }
    total = sum(parts.values())
    percentage = total / MAX_SCORE * 100

    logger.info(f"Limb salvage score {total} ({_risk_category(percentage)})")
    return LimbSalvageScore(
        total_score=total,
        percentage=percentage,
        risk_category=_risk_category(percentage),
        salvage_probability=_salvage_probability(percentage),
        **parts,
    )


def recommend_amputation_level(
    assessment: LimbSalvageAssessment, score: Optional[LimbSalvageScore] = None
) -> AmputationLevel:
    """
    Recommend an amputation level

    Chronic osteomyelitis with treatment failure, sequestrum or full
    thickness cortical involvement overrides the salvage probability.
    Otherwise the Wagner grade and ABI set the minimum level.
    """
    score = score or calculate_limb_salvage_score(assessment)
    probability = score.salvage_probability
    osteo = assessment.osteomyelitis
    doppler = assessment.doppler
    abi = assessment.abi
    location = assessment.wound_location.lower()

    if osteo is not None and osteo.suspected and osteo.is_chronic:
        severe_changes = osteo.sequestrum or osteo.involved_cortex == "full_thickness"
        if osteo.has_failed_treatment or severe_changes:
            bone_count = len(osteo.affected_bones)
            if bone_count >= 3 or abi < 0.5:
                return AmputationLevel.BKA if abi < 0.4 else AmputationLevel.TRANSMETATARSAL
            bones = [b.lower() for b in osteo.affected_bones]
            if bone_count <= 2 and ("toe" in location or any("phalanx" in b for b in bones)):
                return AmputationLevel.RAY_AMPUTATION if abi >= 0.6 else AmputationLevel.TRANSMETATARSAL
            return AmputationLevel.TRANSMETATARSAL

    if probability in ("excellent", "good"):
        return AmputationLevel.NONE

    grade = assessment.wagner_grade

    if grade == 5:
        if abi < 0.4 and doppler is not None and doppler.femoral_artery == "occluded":
            return AmputationLevel.AKA
        if abi < 0.5:
            return AmputationLevel.BKA
        return AmputationLevel.TRANSMETATARSAL

    if grade == 4:
        if "toe" in location or "digit" in location:
            if abi >= 0.6:
                return AmputationLevel.RAY_AMPUTATION
            if abi >= 0.4:
                return AmputationLevel.TRANSMETATARSAL
            return AmputationLevel.BKA
        return AmputationLevel.TRANSMETATARSAL if abi >= 0.5 else AmputationLevel.BKA

    if grade == 3 and probability == "very_poor":
        return AmputationLevel.BKA if abi < 0.4 else AmputationLevel.TRANSMETATARSAL

    if probability == "very_poor":
        return AmputationLevel.BKA if abi < 0.4 else AmputationLevel.RAY_AMPUTATION

    if probability == "poor":
        return AmputationLevel.TOE_DISARTICULATION

    return AmputationLevel.NONE


def determine_management(
    assessment: LimbSalvageAssessment,
    score: Optional[LimbSalvageScore] = None,
    amputation_level: Optional[AmputationLevel] = None,
) -> ManagementStrategy:
    """Choose the management strategy from salvage probability and vascular status."""
    score = score or calculate_limb_salvage_score(assessment)
    level = amputation_level or recommend_amputation_level(assessment, score)
    abi = assessment.abi
    calcified = assessment.doppler is not None and assessment.doppler.calcification
    can_revascularize = 0.3 <= abi < 0.9 and not calcified

    if score.salvage_probability in ("excellent", "good"):
        if can_revascularize and abi < 0.7:
            return ManagementStrategy.REVASCULARIZATION
        return ManagementStrategy.CONSERVATIVE

    if score.salvage_probability == "fair":
        return ManagementStrategy.REVASCULARIZATION if can_revascularize else ManagementStrategy.CONSERVATIVE

    if level in MINOR_AMPUTATION_LEVELS:
        return ManagementStrategy.REVASCULARIZATION if can_revascularize else ManagementStrategy.MINOR_AMPUTATION

    return ManagementStrategy.MAJOR_AMPUTATION


def _rec(category, priority, recommendation, rationale, timeframe) -> LimbSalvageRecommendation:
    return LimbSalvageRecommendation(
        category=category,
        priority=priority,
        recommendation=recommendation,
        rationale=rationale,
        timeframe=timeframe,
    )


def _immediate_recommendations(a: LimbSalvageAssessment) -> List[LimbSalvageRecommendation]:
    recs = []
    severity = a.sepsis.sepsis_severity if a.sepsis is not None else None

    if severity == "septic_shock":
        recs.append(_rec(
            "immediate", "critical", "Initiate sepsis bundle protocol",
            "Patient in septic shock - requires immediate hemodynamic support and antibiotics",
            "Within 1 hour",
        ))
    elif severity in ("severe_sepsis", "sepsis"):
        recs.append(_rec(
            "immediate", "critical", "Start broad-spectrum IV antibiotics",
            "Active sepsis requires immediate antimicrobial therapy",
            "Within 3 hours",
        ))

    if a.abi < 0.4:
        recs.append(_rec(
            "immediate", "critical", "Urgent vascular surgery consultation",
            "Critical limb ischemia (ABI < 0.4) - revascularization assessment needed",
            "Within 24 hours",
        ))

    if a.wagner_grade == 5:
        recs.append(_rec(
            "immediate", "critical", "Emergency surgical debridement or amputation",
            "Wagner Grade 5 (gangrene involving entire foot) - source control required",
            "Within 24-48 hours",
        ))

    osteo = a.osteomyelitis
    if osteo is None or not osteo.suspected:
        return recs

    if severity is not None and severity != "none":
        recs.append(_rec(
            "immediate", "high", "Obtain cultures (blood, bone if possible) before antibiotics",
            "Osteomyelitis with sepsis - targeted therapy requires culture data",
            "Before antibiotic initiation",
        ))

    if osteo.is_chronic:
        rationale = [
            "Chronic osteomyelitis (>6 weeks) has cure rates of only 60-80% even with combined "
            "surgical debridement and prolonged antibiotics."
        ]
        if osteo.sequestrum:
            rationale.append(
                "Presence of sequestrum indicates established chronic infection with dead bone "
                "that will not respond to antibiotics alone."
            )
        if osteo.has_failed_treatment:
            rationale.append("Previous treatment failure significantly worsens prognosis.")
        rationale.append(
            "Weigh quality of life, multiple surgery burden, and definitive cure with amputation "
            "vs prolonged limb salvage attempts."
        )
        recs.append(_rec(
            "immediate", "critical", "CHRONIC OSTEOMYELITIS: Strongly consider primary amputation",
            " ".join(rationale), "Immediate MDT discussion required",
        ))

        if osteo.sequestrum:
            recs.append(_rec(
                "immediate", "critical", "Sequestrum requires surgical removal or amputation",
                "Sequestrum (dead bone) acts as a foreign body and biofilm nidus - antibiotics "
                "cannot penetrate. Without removal, infection will persist indefinitely.",
                "Within 48-72 hours",
            ))

        if osteo.cloacae:
            recs.append(_rec(
                "immediate", "high", "Sinus tracts indicate chronic draining osteomyelitis",
                "Cloacae (drainage tracts through bone) are pathognomonic of chronic osteomyelitis "
                "and rarely heal without radical surgery or amputation.",
                "Surgical planning required",
            ))

    if osteo.has_failed_treatment:
        rationale = ""
        if osteo.recurrent:
            rationale += (
                "Recurrent osteomyelitis after treatment indicates antibiotic-resistant organisms "
                "or inadequate source control. "
            )
        if osteo.previous_antibiotic and osteo.previous_debridement:
            rationale += (
                "Failure of combined antibiotic + surgical treatment carries very poor prognosis "
                "for limb salvage. "
            )
        rationale += (
            "Consider quality of life benefits of definitive amputation over prolonged treatment attempts."
        )
        recs.append(_rec(
            "immediate", "critical", "Treatment-resistant osteomyelitis: Amputation strongly indicated",
            rationale, "Urgent surgical decision required",
        ))

    if len(osteo.affected_bones) >= 3:
        recs.append(_rec(
            "immediate", "high", "Extensive multi-bone osteomyelitis: Consider proximal amputation",
            f"Involvement of {len(osteo.affected_bones)} bones ({', '.join(osteo.affected_bones)}) "
            "indicates extensive infection. Multiple debridements rarely achieve cure and amputation "
            "level should be proximal to all infected bone.",
            "Surgical planning required",
        ))

    return recs


def _short_term_recommendations(a: LimbSalvageAssessment) -> List[LimbSalvageRecommendation]:
    recs = []
    c = a.comorbidities

    if c is not None and c.hba1c and c.hba1c > 8:
        recs.append(_rec(
            "short_term", "high", "Optimize glycemic control - target HbA1c < 8%",
            f"Current HbA1c: {c.hba1c:g}% - Poor glycemic control impairs wound healing",
            "Within 1-2 weeks",
        ))

    measured_abi = a.doppler.abi if a.doppler is not None else None
    if not a.angiogram_performed and measured_abi and measured_abi < 0.9:
        recs.append(_rec(
            "short_term", "high", "Perform CT or conventional angiography",
            "ABI indicates arterial disease - detailed vascular mapping needed for revascularization planning",
            "Within 1 week",
        ))

    if a.wagner_grade >= 2:
        recs.append(_rec(
            "short_term", "medium", "Surgical debridement of necrotic tissue",
            "Deep wound (Wagner ≥2) requires removal of non-viable tissue",
            "Within 48-72 hours",
        ))

    recs.append(_rec(
        "short_term", "medium", "Implement total contact casting or offloading device",
        "Pressure relief is essential for diabetic foot ulcer healing",
        "Immediate and ongoing",
    ))

    if a.albumin and a.albumin < 3.5:
        recs.append(_rec(
            "short_term", "medium", "Nutritional supplementation - high protein diet",
            f"Low albumin ({a.albumin:g} g/dL) impairs wound healing",
            "Start immediately",
        ))

    if a.renal_status is not None and a.renal_status.ckd_stage >= 4:
        recs.append(_rec(
            "short_term", "high", "Nephrology consultation",
            "Advanced CKD (Stage 4-5) affects wound healing and surgical risk",
            "Within 1 week",
        ))

    return recs


def _long_term_recommendations(a: LimbSalvageAssessment) -> List[LimbSalvageRecommendation]:
    recs = []
    c = a.comorbidities

    if c is not None and c.smoking:
        recs.append(_rec(
            "long_term", "high", "Smoking cessation program",
            "Smoking significantly impairs wound healing and increases amputation risk",
            "Ongoing",
        ))

    if c is not None and (c.coronary_artery_disease or c.peripheral_vascular_disease):
        recs.append(_rec(
            "long_term", "medium", "Optimize cardiovascular risk factors (statin, antiplatelet)",
            "Cardiovascular disease increases limb loss risk",
            "Ongoing",
        ))

    recs.append(_rec(
        "long_term", "medium", "Regular podiatric surveillance every 1-3 months",
        "Diabetic patients with ulcer history have high recurrence risk",
        "After wound healing",
    ))
    recs.append(_rec(
        "long_term", "medium", "Custom therapeutic footwear",
        "Prevents recurrence by reducing pressure on vulnerable areas",
        "After wound healing",
    ))
    recs.append(_rec(
        "long_term", "low", "Diabetes foot care education",
        "Patient education reduces reulceration rates by 50%",
        "During hospitalization and follow-up",
    ))

    return recs


def generate_recommendations(assessment: LimbSalvageAssessment) -> List[LimbSalvageRecommendation]:
    """Immediate, then short-term, then long-term recommendations."""
    return (
        _immediate_recommendations(assessment)
        + _short_term_recommendations(assessment)
        + _long_term_recommendations(assessment)
    )
