#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Substance Use Disorder Scoring

Addiction severity (five domains, 0-88 composite), withdrawal risk prediction
with an ordered symptom timeline, and care setting recommendation.

Decision support only: every output is meant to be reviewed by the treating
clinician.
"""

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field

from wardcare.config import DATA_DIR
from wardcare.core.scoring.utils import clamp

logger = logging.getLogger(__name__)

__all__ = [
    "calculate_physical_dependence",
    "calculate_psychological_dependence",
    "calculate_behavioral_dysfunction",
    "calculate_social_impairment",
    "calculate_medical_complications",
    "calculate_addiction_severity",
    "predict_withdrawal_risk",
    "recommend_care_setting",
    "load_substance_definitions",
]

SUBSTANCES_YAML_PATH = DATA_DIR / "substances.yaml"

ITEM_MAX = 4


class AddictionSeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    COMPLICATED = "complicated"


class WithdrawalSeverity(str, Enum):
    MINIMAL = "minimal"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    LIFE_THREATENING = "life_threatening"


class WithdrawalPhase(str, Enum):
    EARLY = "early"
    PEAK = "peak"
    LATE = "late"
    POST_ACUTE = "post_acute"


PHASE_ORDER = {phase: i for i, phase in enumerate(WithdrawalPhase)}


class CareSetting(str, Enum):
    OUTPATIENT_DETOX = "outpatient_detox"
    SUPERVISED_OUTPATIENT = "supervised_outpatient"
    INPATIENT_ADMISSION = "inpatient_admission"
    ICU_HDU_ALERT = "icu_hdu_alert"


class SubstanceDefinition(BaseModel):
    category: str
    name: str
    common_names: List[str] = Field(default_factory=list)
    half_life_hours: float
    withdrawal_onset_hours: int
    withdrawal_peak_hours: int
    withdrawal_duration_days: int
    withdrawal_symptoms: Dict[str, List[str]]
    red_flag_complications: List[str] = Field(default_factory=list)
    pharmacological_support: List[str] = Field(default_factory=list)
    monitoring_parameters: List[str] = Field(default_factory=list)


class SubstanceIntake(BaseModel):
    """One substance in a patient's use history."""

    substance_name: str = Field(..., min_length=1)
    substance_category: Optional[str] = Field(
        default=None, description="Overrides the category from the substance table."
    )
    dose_level: Optional[str] = Field(default=None, description="low, moderate or high.")
    duration_of_use_months: float = 0
    escalation_pattern: Optional[str] = Field(default=None, description="stable, increasing or decreasing.")
    is_primary_concern: bool = False


class DomainScore(BaseModel):
    """Item scores (each 0-4) for one severity domain."""

    domain: str
    items: Dict[str, int]
    total_score: int
    max_score: int


class AddictionSeverityScore(BaseModel):
    physical_dependence: DomainScore
    psychological_dependence: DomainScore
    behavioral_dysfunction: DomainScore
    social_impairment: DomainScore
    medical_complications: DomainScore
    total_composite_score: int = Field(..., ge=0, le=88)
    severity_level: AddictionSeverity
    interpretation_notes: str


class WithdrawalSymptom(BaseModel):
    symptom: str
    phase: WithdrawalPhase
    expected_onset_hours: int
    expected_peak_hours: int
    expected_duration_days: int
    severity: str
    is_red_flag: bool = False
    management_notes: str


class WithdrawalRiskPrediction(BaseModel):
    overall_risk: WithdrawalSeverity
    risk_score: int = Field(..., ge=0, le=100)
    expected_symptoms: List[WithdrawalSymptom] = Field(default_factory=list)
    early_phase_symptoms: List[str] = Field(default_factory=list)
    peak_phase_symptoms: List[str] = Field(default_factory=list)
    late_phase_symptoms: List[str] = Field(default_factory=list)
    post_acute_symptoms: List[str] = Field(default_factory=list)
    red_flag_complications: List[str] = Field(default_factory=list)
    timeline_description: str
    monitoring_recommendations: List[str] = Field(default_factory=list)
    pharmacological_support: List[str] = Field(default_factory=list)
    unrecognized_substances: List[str] = Field(default_factory=list)


class CareSettingDecision(BaseModel):
    recommendation: CareSetting
    confidence_level: str
    trigger_factors: List[str] = Field(default_factory=list)
    supporting_evidence: List[str] = Field(default_factory=list)
    alternative_options: List[CareSetting] = Field(default_factory=list)
    escalation_criteria: List[str] = Field(default_factory=list)


@lru_cache(maxsize=None)
def load_substance_definitions(file_path: Path = SUBSTANCES_YAML_PATH) -> Dict[str, SubstanceDefinition]:
    """Load withdrawal profiles keyed by lower-case substance name."""
    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    definitions = {key.lower(): SubstanceDefinition(**value) for key, value in data.items()}
    logger.debug(f"Loaded {len(definitions)} substance definitions from {file_path}")
    return definitions


def find_substance(name: str) -> Optional[SubstanceDefinition]:
    """Look a substance up by table key, then by any of its common names."""
    definitions = load_substance_definitions()
    key = "".join(name.lower().split())
    if key in definitions:
        return definitions[key]
    lowered = name.strip().lower()
    for definition in definitions.values():
        if any(common.lower() == lowered for common in definition.common_names):
            return definition
    return None


# Domain sub-scores

def _domain(domain: str, **items) -> DomainScore:
    clamped = {name: int(clamp(int(value or 0), 0, ITEM_MAX)) for name, value in items.items()}
    return DomainScore(
        domain=domain,
        items=clamped,
        total_score=sum(clamped.values()),
        max_score=ITEM_MAX * len(clamped),
    )


def calculate_physical_dependence(tolerance=0, withdrawal_symptoms=0, compulsive_use=0, physical_cravings=0) -> DomainScore:
    return _domain(
        "physical_dependence",
        tolerance=tolerance,
        withdrawal_symptoms=withdrawal_symptoms,
        compulsive_use=compulsive_use,
        physical_cravings=physical_cravings,
    )


def calculate_psychological_dependence(
    emotional_reliance=0, coping_mechanism=0, preoccupation=0, anxiety_without_substance=0
) -> DomainScore:
    return _domain(
        "psychological_dependence",
        emotional_reliance=emotional_reliance,
        coping_mechanism=coping_mechanism,
        preoccupation=preoccupation,
        anxiety_without_substance=anxiety_without_substance,
    )


def calculate_behavioral_dysfunction(
    prioritizing_substance=0, failed_attempts_to_cut=0, time_spent_obtaining=0, giving_up_activities=0
) -> DomainScore:
    return _domain(
        "behavioral_dysfunction",
        prioritizing_substance=prioritizing_substance,
        failed_attempts_to_cut=failed_attempts_to_cut,
        time_spent_obtaining=time_spent_obtaining,
        giving_up_activities=giving_up_activities,
    )


def calculate_social_impairment(occupational_impact=0, relationship_impact=0, financial_impact=0, legal_issues=0) -> DomainScore:
    return _domain(
        "social_impairment",
        occupational_impact=occupational_impact,
        relationship_impact=relationship_impact,
        financial_impact=financial_impact,
        legal_issues=legal_issues,
    )


def calculate_medical_complications(
    liver_dysfunction=0,
    renal_dysfunction=0,
    cardiac_complications=0,
    neurological_complications=0,
    infectious_complications=0,
    psychiatric_comorbidity=0,
) -> DomainScore:
    return _domain(
        "medical_complications",
        liver_dysfunction=liver_dysfunction,
        renal_dysfunction=renal_dysfunction,
        cardiac_complications=cardiac_complications,
        neurological_complications=neurological_complications,
        infectious_complications=infectious_complications,
        psychiatric_comorbidity=psychiatric_comorbidity,
    )


SEVERITY_THRESHOLDS = [
    (
        22,
        AddictionSeverity.MILD,
        "Mild substance use disorder. Outpatient management may be appropriate with close monitoring.",
    ),
    (
        44,
        AddictionSeverity.MODERATE,
        "Moderate substance use disorder. Structured outpatient program recommended with regular follow-up.",
    ),
    (
        66,
        AddictionSeverity.SEVERE,
        "Severe substance use disorder. Inpatient or intensive outpatient program strongly recommended.",
    ),
]
COMPLICATED_NOTES = (
    "Complicated substance use disorder with significant medical/psychiatric comorbidity. "
    "Specialist inpatient care essential."
)


def calculate_addiction_severity(
    physical: DomainScore,
    psychological: DomainScore,
    behavioral: DomainScore,
    social: DomainScore,
    medical: DomainScore,
) -> AddictionSeverityScore:
    """
    Composite addiction severity score

    Args:
        physical, psychological, behavioral, social, medical: Domain scores

    Returns:
        AddictionSeverityScore; mild 0-22, moderate 23-44, severe 45-66,
        complicated 67-88
    """
    total = sum(d.total_score for d in (physical, psychological, behavioral, social, medical))

    level, notes = AddictionSeverity.COMPLICATED, COMPLICATED_NOTES
    for threshold, band, band_notes in SEVERITY_THRESHOLDS:
        if total <= threshold:
            level, notes = band, band_notes
            break

    return AddictionSeverityScore(
        physical_dependence=physical,
        psychological_dependence=psychological,
        behavioral_dysfunction=behavioral,
        social_impairment=social,
        medical_complications=medical,
        total_composite_score=total,
        severity_level=level,
        interpretation_notes=notes,
    )


# Withdrawal risk

BASE_RISK = 30
DOSE_LEVEL_POINTS = {"low": 0, "moderate": 5, "high": 10}
POST_ACUTE_MIN_DURATION_DAYS = 14
POST_ACUTE_DURATION_DAYS = 28

RISK_LEVELS = [
    (30, WithdrawalSeverity.MINIMAL),
    (50, WithdrawalSeverity.MILD),
    (70, WithdrawalSeverity.MODERATE),
    (85, WithdrawalSeverity.SEVERE),
]


def _merge_unique(target: List[str], values: Sequence[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def _substance_risk(intake: SubstanceIntake, definition: Optional[SubstanceDefinition]) -> int:
    score = BASE_RISK

    if intake.duration_of_use_months > 12:
        score += 20
    elif intake.duration_of_use_months > 6:
        score += 10

    category = intake.substance_category or (definition.category if definition is not None else None)
    if category in ("sedatives", "alcohol"):
        # Seizure risk
        score += 25
    elif category == "opioids":
        score += 15

    if intake.escalation_pattern == "increasing":
        score += 10

    score += DOSE_LEVEL_POINTS.get((intake.dose_level or "").lower(), 0)
    return score


def _symptoms_for(definition: SubstanceDefinition) -> List[WithdrawalSymptom]:
    symptoms = []
    phases = definition.withdrawal_symptoms
    peak_hours = definition.withdrawal_peak_hours
    red_flags = [rf.lower() for rf in definition.red_flag_complications]

    for symptom in phases.get("early", []):
        symptoms.append(WithdrawalSymptom(
            symptom=symptom,
            phase=WithdrawalPhase.EARLY,
            expected_onset_hours=definition.withdrawal_onset_hours,
            expected_peak_hours=peak_hours,
            expected_duration_days=2,
            severity="mild",
            management_notes="Supportive care, hydration, rest",
        ))

    for symptom in phases.get("peak", []):
        is_red_flag = any(symptom.lower() in rf for rf in red_flags)
        symptoms.append(WithdrawalSymptom(
            symptom=symptom,
            phase=WithdrawalPhase.PEAK,
            expected_onset_hours=max(peak_hours - 12, 0),
            expected_peak_hours=peak_hours,
            expected_duration_days=3,
            severity="severe" if is_red_flag else "moderate",
            is_red_flag=is_red_flag,
            management_notes="Close monitoring required, consider escalation" if is_red_flag else "Active management",
        ))

    late_onset = peak_hours + 24
    for symptom in phases.get("late", []):
        symptoms.append(WithdrawalSymptom(
            symptom=symptom,
            phase=WithdrawalPhase.LATE,
            expected_onset_hours=late_onset,
            expected_peak_hours=late_onset + 24,
            expected_duration_days=max(definition.withdrawal_duration_days - late_onset // 24, 1),
            severity="mild",
            management_notes="Psychosocial support, sleep hygiene, relapse prevention",
        ))

    # Long withdrawals leave protracted symptoms after the acute phase resolves
    if definition.withdrawal_duration_days >= POST_ACUTE_MIN_DURATION_DAYS:
        post_acute_onset = definition.withdrawal_duration_days * 24
        for symptom in phases.get("late", []):
            symptoms.append(WithdrawalSymptom(
                symptom=symptom,
                phase=WithdrawalPhase.POST_ACUTE,
                expected_onset_hours=post_acute_onset,
                expected_peak_hours=post_acute_onset,
                expected_duration_days=POST_ACUTE_DURATION_DAYS,
                severity="mild",
                management_notes="Outpatient follow-up and relapse prevention",
            ))

    return symptoms


def predict_withdrawal_risk(
    substances: Sequence[SubstanceIntake],
    patient_age: int,
    renal_function: str = "normal",
    hepatic_function: str = "normal",
    comorbidities: Optional[Sequence[str]] = None,
) -> WithdrawalRiskPrediction:
    """
    Predict withdrawal severity and the expected symptom timeline

    Args:
        substances: Substances in the current use history
        patient_age: Age in years
        renal_function: 'normal' or an impairment grade
        hepatic_function: 'normal' or an impairment grade
        comorbidities: Free-text comorbidity names

    Returns:
        WithdrawalRiskPrediction; symptoms are ordered early, peak, late,
        post-acute
    """
    comorbidities = [c.lower() for c in (comorbidities or [])]
    result: Dict[str, List[str]] = {
        "early": [], "peak": [], "late": [], "post_acute": [],
        "red_flags": [], "monitoring": [], "support": [], "unrecognized": [],
    }
    expected: List[WithdrawalSymptom] = []
    max_risk = 0

    for intake in substances:
        definition = find_substance(intake.substance_name)
        if definition is None:
            logger.warning(f"No withdrawal profile for substance '{intake.substance_name}'")
            result["unrecognized"].append(intake.substance_name)
            # No symptom timeline, but a stated category still carries its risk
            if intake.substance_category:
                max_risk = max(max_risk, _substance_risk(intake, None))
            continue

        symptoms = _symptoms_for(definition)
        expected.extend(symptoms)
        for s in symptoms:
            _merge_unique(result[s.phase.value], [s.symptom])
        _merge_unique(result["red_flags"], definition.red_flag_complications)
        _merge_unique(result["monitoring"], definition.monitoring_parameters)
        _merge_unique(result["support"], definition.pharmacological_support)

        max_risk = max(max_risk, _substance_risk(intake, definition))

    if patient_age > 65:
        max_risk += 10
    if renal_function != "normal":
        max_risk += 10
    if hepatic_function != "normal":
        max_risk += 15
    if len(substances) > 1:
        # Poly-substance use
        max_risk += 20

    if any("sickle" in c for c in comorbidities):
        max_risk += 10
    if any("cardiac" in c for c in comorbidities):
        max_risk += 10
    if any("seizure" in c or "epilepsy" in c for c in comorbidities):
        max_risk += 15

    overall = WithdrawalSeverity.LIFE_THREATENING
    for threshold, level in RISK_LEVELS:
        if max_risk <= threshold:
            overall = level
            break

    primary = next((s for s in substances if s.is_primary_concern), substances[0] if substances else None)
    primary_def = find_substance(primary.substance_name) if primary is not None else None
    if primary_def is not None:
        timeline = (
            f"Withdrawal expected to begin {primary_def.withdrawal_onset_hours}h after last use, "
            f"peak at {primary_def.withdrawal_peak_hours}h, and resolve over "
            f"{primary_def.withdrawal_duration_days} days."
        )
    else:
        timeline = "Timeline depends on specific substances used. Close monitoring recommended."

    expected.sort(key=lambda s: PHASE_ORDER[s.phase])

    return WithdrawalRiskPrediction(
        overall_risk=overall,
        risk_score=min(max_risk, 100),
        expected_symptoms=expected,
        early_phase_symptoms=result["early"],
        peak_phase_symptoms=result["peak"],
        late_phase_symptoms=result["late"],
        post_acute_symptoms=result["post_acute"],
        red_flag_complications=result["red_flags"],
        timeline_description=timeline,
        monitoring_recommendations=result["monitoring"],
        pharmacological_support=result["support"],
        unrecognized_substances=result["unrecognized"],
    )


def recommend_care_setting(
    addiction_severity: AddictionSeverityScore,
    withdrawal_risk: WithdrawalRiskPrediction,
    substances: Sequence[SubstanceIntake],
    social_support: str = "moderate",
    medical_stability: str = "stable",
    psychiatric_concerns: bool = False,
) -> CareSettingDecision:
    """
    Recommend a detoxification care setting

    Args:
        addiction_severity: Composite severity score
        withdrawal_risk: Withdrawal prediction
        substances: Substance history
        social_support: 'strong', 'moderate', 'minimal' or 'none'
        medical_stability: 'stable', 'mildly_unstable', 'unstable' or 'critical'
        psychiatric_concerns: Active psychiatric concerns
    """
    severity = addiction_severity.severity_level
    risk = withdrawal_risk.overall_risk

    def category_of(s: SubstanceIntake) -> Optional[str]:
        if s.substance_category:
            return s.substance_category
        definition = find_substance(s.substance_name)
        return definition.category if definition else None

    sedative_or_alcohol = any(category_of(s) in ("sedatives", "alcohol") for s in substances)

    if (
        medical_stability == "critical"
        or risk == WithdrawalSeverity.LIFE_THREATENING
        or (sedative_or_alcohol and severity == AddictionSeverity.COMPLICATED)
    ):
        return CareSettingDecision(
            recommendation=CareSetting.ICU_HDU_ALERT,
            confidence_level="high",
            trigger_factors=[
                "Critical medical instability",
                "Life-threatening withdrawal risk",
                "High seizure risk from benzodiazepine/alcohol dependence",
            ],
            supporting_evidence=[
                "WHO guidelines recommend intensive monitoring for severe sedative/alcohol withdrawal",
                "High risk of delirium tremens or status epilepticus",
            ],
        )

    if (
        medical_stability == "unstable"
        or risk == WithdrawalSeverity.SEVERE
        or severity in (AddictionSeverity.SEVERE, AddictionSeverity.COMPLICATED)
        or social_support == "none"
        or len(substances) >= 3
        or psychiatric_concerns
    ):
        triggers = []
        if medical_stability == "unstable":
            triggers.append("Medical instability")
        if risk == WithdrawalSeverity.SEVERE:
            triggers.append("Severe withdrawal risk")
        if severity == AddictionSeverity.SEVERE:
            triggers.append("Severe addiction severity")
        if severity == AddictionSeverity.COMPLICATED:
            triggers.append("Complicated addiction with comorbidities")
        if social_support == "none":
            triggers.append("No social support system")
        if len(substances) >= 3:
            triggers.append("Significant poly-substance use")
        if psychiatric_concerns:
            triggers.append("Active psychiatric concerns")
        return CareSettingDecision(
            recommendation=CareSetting.INPATIENT_ADMISSION,
            confidence_level="high",
            trigger_factors=triggers,
            supporting_evidence=[
                "WHO recommends supervised detoxification for severe cases",
                "Inpatient setting allows 24-hour monitoring and rapid intervention",
            ],
            alternative_options=[CareSetting.SUPERVISED_OUTPATIENT],
            escalation_criteria=[
                "Deterioration in clinical status",
                "Development of severe withdrawal symptoms",
            ],
        )

    if (
        medical_stability == "mildly_unstable"
        or risk == WithdrawalSeverity.MODERATE
        or severity == AddictionSeverity.MODERATE
        or social_support == "minimal"
    ):
        triggers = []
        if risk == WithdrawalSeverity.MODERATE:
            triggers.append("Moderate withdrawal risk")
        if severity == AddictionSeverity.MODERATE:
            triggers.append("Moderate addiction severity")
        if social_support == "minimal":
            triggers.append("Limited social support")
        return CareSettingDecision(
            recommendation=CareSetting.SUPERVISED_OUTPATIENT,
            confidence_level="medium",
            trigger_factors=triggers,
            supporting_evidence=[
                "Regular daily or frequent check-ins provide safety net",
                "Patient can benefit from structured support while maintaining community ties",
            ],
            alternative_options=[CareSetting.OUTPATIENT_DETOX, CareSetting.INPATIENT_ADMISSION],
            escalation_criteria=[
                "Worsening symptoms despite outpatient management",
                "Non-compliance with treatment",
                "Development of red flag symptoms",
            ],
        )

    return CareSettingDecision(
        recommendation=CareSetting.OUTPATIENT_DETOX,
        confidence_level="medium",
        trigger_factors=[
            "Mild to moderate severity",
            "Good social support",
            "Medically stable",
            "Low-risk withdrawal profile",
        ],
        supporting_evidence=[
            "Outpatient management appropriate for mild cases with good support",
            "Cost-effective with similar outcomes to inpatient for appropriate patients",
        ],
        alternative_options=[CareSetting.SUPERVISED_OUTPATIENT],
        escalation_criteria=[
            "Any worsening of clinical status",
            "Emergence of severe withdrawal symptoms",
            "Social support breaks down",
        ],
    )
