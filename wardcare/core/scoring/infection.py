#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Soft Tissue Infection Scoring

LRINEC, qSOFA and NEWS2 calculators, the necrotizing soft tissue infection
classification tree, and the lab panels and empirical antibiotic protocols that
follow from the classification.

Thresholds are published cut-points and are kept as explicit tables.
"""

import logging
from typing import Dict, List, Optional, Union

from wardcare.core.scoring.models import (
    AntibioticRegimen,
    InfectionClassification,
    InfectionFeatures,
    LRINECScore,
    NEWS2Score,
    QSOFAScore,
    RiskCategory,
)
from wardcare.core.scoring.utils import (
    CONSCIOUSNESS_MAP,
    band_score,
    normalize_to_risk_level,
    require_params,
    safe_get_from_map,
)

logger = logging.getLogger(__name__)

__all__ = [
    "calculate_lrinec",
    "calculate_qsofa",
    "calculate_news2",
    "determine_classification",
    "recommended_labs",
    "recommended_antibiotics",
]

# LRINEC - Wong CH, et al. Crit Care Med. 2004

LRINEC_INTERPRETATIONS = {
    RiskCategory.LOW: (
        "LRINEC {score}: Low risk (<50% probability of NSTI). Monitor closely and "
        "consider alternative diagnoses. Repeat in 6-12 hours if not improving."
    ),
    RiskCategory.MODERATE: (
        "LRINEC {score}: Moderate risk (50-75% probability of NSTI). Urgent surgical "
        "consultation required. Repeat labs in 6 hours. Consider imaging."
    ),
    RiskCategory.HIGH: (
        "LRINEC {score}: HIGH RISK (>75% probability of NSTI, PPV 93.4%). EMERGENCY "
        "surgical exploration within 1 hour. Do NOT delay for imaging."
    ),
}


def calculate_lrinec(crp=None, wbc=None, hemoglobin=None, sodium=None, creatinine=None, glucose=None) -> LRINECScore:
    """
    Calculate the LRINEC score

    Args:
        crp: C-reactive protein (mg/L)
        wbc: White cell count (x10^9/L)
        hemoglobin: Hemoglobin (g/dL)
        sodium: Sodium (mmol/L)
        creatinine: Creatinine (umol/L)
        glucose: Glucose (mmol/L)

    Returns:
        LRINECScore with the six sub-scores, total, risk band and interpretation

    Raises:
        MissingClinicalInput: if any lab value is None
    """
    require_params(
        "LRINEC",
        {
            "crp": crp,
            "wbc": wbc,
            "hemoglobin": hemoglobin,
            "sodium": sodium,
            "creatinine": creatinine,
            "glucose": glucose,
        },
    )

    crp_score = 4 if crp >= 150 else 0
    wbc_score = 2 if wbc > 25 else 1 if wbc >= 15 else 0
    hb_score = 2 if hemoglobin < 11 else 1 if hemoglobin <= 13.5 else 0
    na_score = 2 if sodium < 135 else 0
    cr_score = 2 if creatinine > 141 else 0
    glucose_score = 1 if glucose > 10 else 0

    total = crp_score + wbc_score + hb_score + na_score + cr_score + glucose_score

    if total <= 5:
        risk = RiskCategory.LOW
    elif total <= 7:
        risk = RiskCategory.MODERATE
    else:
        risk = RiskCategory.HIGH

    return LRINECScore(
        crp=crp_score,
        wbc=wbc_score,
        hemoglobin=hb_score,
        sodium=na_score,
        creatinine=cr_score,
        glucose=glucose_score,
        total_score=total,
        risk_category=risk,
        interpretation=LRINEC_INTERPRETATIONS[risk].format(score=total),
    )


# qSOFA - quick Sequential Organ Failure Assessment

def calculate_qsofa(altered_mentation=None, systolic_bp=None, respiratory_rate=None) -> QSOFAScore:
    """
    Calculate the qSOFA score

    Args:
        altered_mentation: GCS below 15
        systolic_bp: Systolic blood pressure (mmHg)
        respiratory_rate: Breaths per minute

    Returns:
        QSOFAScore; sepsis is considered likely at 2 or more
    """
    require_params(
        "qSOFA",
        {
            "altered_mentation": altered_mentation,
            "systolic_bp": systolic_bp,
            "respiratory_rate": respiratory_rate,
        },
    )

    subscores = {
        "altered_mentation": 1 if altered_mentation else 0,
        "systolic_bp": 1 if systolic_bp <= 100 else 0,
        "respiratory_rate": 1 if respiratory_rate >= 22 else 0,
    }
    score = sum(subscores.values())
    sepsis_likely = score >= 2

    if sepsis_likely:
        interpretation = (
            f"qSOFA {score}/3: HIGH RISK of sepsis. Activate sepsis pathway. "
            "ICU assessment recommended."
        )
    else:
        interpretation = (
            f"qSOFA {score}/3: Lower risk. Continue monitoring. Reassess if clinical "
            "picture changes."
        )

    return QSOFAScore(score=score, interpretation=interpretation, sepsis_likely=sepsis_likely, subscores=subscores)


# NEWS2 - National Early Warning Score 2
# Bands are (inclusive upper bound, points), lowest first.

RESPIRATORY_RATE_BANDS = [(8, 3), (11, 1), (20, 0), (24, 2)]
SPO2_SCALE1_BANDS = [(91, 3), (93, 2), (95, 1)]
TEMPERATURE_BANDS = [(35.0, 3), (36.0, 1), (38.0, 0), (39.0, 1)]
SYSTOLIC_BP_BANDS = [(90, 3), (100, 2), (110, 1), (219, 0)]
HEART_RATE_BANDS = [(40, 3), (50, 1), (90, 0), (110, 1), (130, 2)]
SUPPLEMENTAL_OXYGEN_POINTS = 2

NEWS2_THRESHOLDS = [
    (2, "LOW", "Continue routine monitoring every 4-6 hours."),
    (4, "MEDIUM", "Urgent ward-based review. Increase monitoring frequency to 4-hourly minimum."),
    (6, "MEDIUM-HIGH", "Urgent clinical review within 30 minutes. Increase monitoring to minimum hourly."),
    (
        20,
        "HIGH",
        "Emergency response – continuous monitoring, urgent clinical review, consider ICU transfer",
    ),
]


def calculate_news2(
    respiratory_rate=None,
    spo2=None,
    on_oxygen=None,
    temperature=None,
    systolic_bp=None,
    heart_rate=None,
    consciousness: Optional[Union[str, bool]] = None,
) -> NEWS2Score:
    """
    Calculate the NEWS2 score (SpO2 scale 1)

    Args:
        respiratory_rate: Breaths per minute
        spo2: Oxygen saturation (%)
        on_oxygen: Receiving supplemental oxygen
        temperature: Temperature (Celsius)
        systolic_bp: Systolic blood pressure (mmHg)
        heart_rate: Beats per minute
        consciousness: ACVPU descriptor ('alert', 'confused', 'voice', 'pain',
            'unresponsive') or True for alert

    Returns:
        NEWS2Score with risk band, recommended action and per-parameter points
    """
    require_params(
        "NEWS2",
        {
            "respiratory_rate": respiratory_rate,
            "spo2": spo2,
            "on_oxygen": on_oxygen,
            "temperature": temperature,
            "systolic_bp": systolic_bp,
            "heart_rate": heart_rate,
            "consciousness": consciousness,
        },
    )

    if isinstance(consciousness, bool):
        consciousness_points = 0 if consciousness else 3
    else:
        # Anything other than alert scores as new confusion or worse
        consciousness_points = safe_get_from_map(consciousness, CONSCIOUSNESS_MAP, default=3)

    subscores: Dict[str, int] = {
        "respiratory_rate": band_score(respiratory_rate, RESPIRATORY_RATE_BANDS, 3),
        "spo2": band_score(spo2, SPO2_SCALE1_BANDS, 0),
        "supplemental_oxygen": SUPPLEMENTAL_OXYGEN_POINTS if on_oxygen else 0,
        "temperature": band_score(temperature, TEMPERATURE_BANDS, 2),
        "systolic_bp": band_score(systolic_bp, SYSTOLIC_BP_BANDS, 3),
        "heart_rate": band_score(heart_rate, HEART_RATE_BANDS, 3),
        "consciousness": consciousness_points,
    }
    score = sum(subscores.values())
    risk, action = normalize_to_risk_level(score, NEWS2_THRESHOLDS)

    logger.debug(f"NEWS2 calculated: {score} ({risk})")
    return NEWS2Score(score=score, risk=risk, action=action, subscores=subscores)


# Necrotizing soft tissue infection classification. Order is triage priority:
# the highest-acuity diagnoses must be checked first.

EMERGENCY_OR = "EMERGENCY – OR within 1 hour"


def determine_classification(features: InfectionFeatures) -> InfectionClassification:
    """
    Classify a soft tissue infection from bedside findings

    Args:
        features: Clinical flags, location and an optional LRINEC score

    Returns:
        InfectionClassification with severity, disease stage and urgency
    """
    f = features

    if f.crepitus and (f.skin_necrosis or f.rapid_spread):
        return InfectionClassification(
            classification="gas_gangrene", severity="critical", stage="necrotizing", urgency=EMERGENCY_OR
        )

    if f.location == "perineum" and (f.skin_necrosis or f.crepitus):
        return InfectionClassification(
            classification="fournier_gangrene", severity="critical", stage="necrotizing", urgency=EMERGENCY_OR
        )

    high_lrinec = f.lrinec_score is not None and f.lrinec_score >= 8
    if f.pain_out_of_proportion or f.bullae or f.dishwater_discharge or f.skin_necrosis or high_lrinec:
        # Type II is monomicrobial and produces no gas
        subtype = "type1" if f.crepitus else "type2"
        return InfectionClassification(
            classification=f"necrotizing_fasciitis_{subtype}",
            severity="severe",
            stage="systemic_sepsis" if f.systemic_signs else "necrotizing",
            urgency="EMERGENCY – Surgical exploration urgently",
        )

    if f.fluctuance:
        return InfectionClassification(
            classification="abscess", severity="moderate", stage="suppurative", urgency="Urgent – same-day I&D"
        )

    if f.systemic_signs or f.rapid_spread:
        return InfectionClassification(
            classification="complicated_cellulitis",
            severity="moderate",
            stage="advancing_infection",
            urgency="Urgent – IV antibiotics, admission",
        )

    return InfectionClassification(
        classification="simple_cellulitis",
        severity="mild",
        stage="early_cellulitis",
        urgency="Routine – Outpatient oral antibiotics",
    )


BASE_LABS = ["FBC", "CRP", "Blood Glucose", "Wound Swab MCS"]
MODERATE_LABS = BASE_LABS + ["U&E/Creatinine", "LFT", "Blood Culture (×2)", "ESR", "Urinalysis"]
SEVERE_LABS = MODERATE_LABS + [
    "Lactate",
    "Procalcitonin",
    "ABG",
    "Tissue MCS",
    "Coagulation Profile",
    "D-Dimer",
    "HbA1c",
]
CRITICAL_LABS = SEVERE_LABS + [
    "Serial Lactate (q4h)",
    "Serial CRP",
    "Troponin",
    "Pro-BNP",
    "Cortisol",
    "TEG/ROTEM",
]


def recommended_labs(severity: str) -> List[str]:
    """Lab panel for a severity; anything beyond 'severe' gets the critical panel."""
    panels = {"mild": BASE_LABS, "moderate": MODERATE_LABS, "severe": SEVERE_LABS}
    return list(panels.get(severity, CRITICAL_LABS))


def _regimen(name, dose, route, frequency, duration) -> Dict[str, str]:
    return {"name": name, "dose": dose, "route": route, "frequency": frequency, "duration": duration}


_BROAD_SPECTRUM_NSTI = [
    _regimen("Meropenem", "1g", "IV", "8-hourly", "14-21 days"),
    _regimen("Clindamycin", "600-900mg", "IV", "8-hourly", "14-21 days"),
    _regimen("Vancomycin", "15-20mg/kg", "IV", "12-hourly", "14-21 days"),
]

ANTIBIOTIC_PROTOCOLS: Dict[str, List[Dict[str, str]]] = {
    "simple_cellulitis": [
        _regimen("Flucloxacillin", "500mg", "PO", "6-hourly", "7-10 days"),
    ],
    "complicated_cellulitis": [
        _regimen("Flucloxacillin", "1-2g", "IV", "6-hourly", "5-7 days IV then step-down"),
        _regimen("Benzylpenicillin", "1.2g (2MU)", "IV", "6-hourly", "5-7 days"),
    ],
    "abscess": [
        _regimen("Flucloxacillin", "500mg-1g", "PO/IV", "6-hourly", "5-7 days"),
        _regimen("Metronidazole", "400mg", "PO", "8-hourly", "5-7 days"),
    ],
    "necrotizing_fasciitis_type1": _BROAD_SPECTRUM_NSTI,
    "necrotizing_fasciitis_type2": _BROAD_SPECTRUM_NSTI,
    "gas_gangrene": [
        _regimen("Benzylpenicillin", "2.4g (4MU)", "IV", "4-hourly", "14-21 days"),
        _regimen("Clindamycin", "900mg", "IV", "8-hourly", "14-21 days"),
        _regimen("Metronidazole", "500mg", "IV", "8-hourly", "14-21 days"),
    ],
    "fournier_gangrene": _BROAD_SPECTRUM_NSTI,
}

DIABETIC_ANAEROBIC_COVER = _regimen("Metronidazole", "500mg", "IV", "8-hourly", "Course dependent")

RENAL_DOSE_ADJUSTMENTS = {
    "Meropenem": "500mg-1g (adjust for GFR)",
    "Vancomycin": "Per trough levels (extend interval)",
}


def recommended_antibiotics(
    classification: str, has_diabetes: bool = False, renal_impairment: bool = False
) -> List[AntibioticRegimen]:
    """
    Empirical antibiotic regimen for an infection classification

    Args:
        classification: Value returned by determine_classification
        has_diabetes: Adds anaerobic cover when not already present
        renal_impairment: Replaces renally cleared doses with adjustment notes

    Returns:
        List of AntibioticRegimen; unknown classifications get the simple
        cellulitis protocol
    """
    protocol = [dict(r) for r in ANTIBIOTIC_PROTOCOLS.get(classification, ANTIBIOTIC_PROTOCOLS["simple_cellulitis"])]

    if has_diabetes and not any(r["name"] == "Metronidazole" for r in protocol):
        protocol.append(dict(DIABETIC_ANAEROBIC_COVER))

    if renal_impairment:
        for regimen in protocol:
            regimen["dose"] = RENAL_DOSE_ADJUSTMENTS.get(regimen["name"], regimen["dose"])

    return [AntibioticRegimen(**r) for r in protocol]
