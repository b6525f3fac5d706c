#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Scoring Processor for Soft Tissue Infections

This module combines LRINEC, qSOFA and NEWS2 with the infection classifier to
produce a single encounter assessment, including the recommended lab panel
and empirical antibiotics.
"""

import logging
from typing import Any, Dict, List, Optional

from wardcare.core.scoring.infection import (
    calculate_lrinec,
    calculate_news2,
    calculate_qsofa,
    determine_classification,
    recommended_antibiotics,
    recommended_labs,
)
from wardcare.core.scoring.models import InfectionFeatures, SoftTissueInfectionAssessment
from wardcare.core.scoring.utils import parse_numeric
from wardcare.exceptions import MissingClinicalInput

logger = logging.getLogger(__name__)

LAB_FIELDS = ("crp", "wbc", "hemoglobin", "sodium", "creatinine", "glucose")
NUMERIC_VITAL_FIELDS = ("respiratory_rate", "spo2", "temperature", "systolic_bp", "heart_rate")


def extract_numeric(values: Optional[Dict[str, Any]], fields) -> Dict[str, Optional[float]]:
    """
    Pull numeric readings out of a loosely-typed observation dictionary.

    Args:
        values: Raw values, possibly strings from a form or None
        fields: Field names to extract

    Returns:
        Dictionary with every requested field; unparseable values become None
    """
    values = values or {}
    return {field: parse_numeric(values.get(field)) for field in fields}


def assess_soft_tissue_infection(
    features: InfectionFeatures,
    labs: Optional[Dict[str, Any]] = None,
    vitals: Optional[Dict[str, Any]] = None,
    has_diabetes: bool = False,
    renal_impairment: bool = False,
) -> SoftTissueInfectionAssessment:
    """
    Score and classify a soft tissue infection encounter.

    Scores whose inputs are incomplete are left out and their missing
    parameters reported; classification always runs. A computed LRINEC score
    replaces any LRINEC value already set on the features.

    Args:
        features: Bedside findings
        labs: crp, wbc, hemoglobin, sodium, creatinine, glucose
        vitals: respiratory_rate, spo2, on_oxygen, temperature, systolic_bp,
            heart_rate, consciousness, altered_mentation
        has_diabetes: Passed to the antibiotic recommendation
        renal_impairment: Passed to the antibiotic recommendation

    Returns:
        SoftTissueInfectionAssessment
    """
    vitals = vitals or {}
    missing: List[str] = []

    lrinec = None
    try:
        lrinec = calculate_lrinec(**extract_numeric(labs, LAB_FIELDS))
    except MissingClinicalInput as e:
        missing.extend(f"lrinec.{name}" for name in e.missing)

    numeric_vitals = extract_numeric(vitals, NUMERIC_VITAL_FIELDS)
    consciousness = vitals.get("consciousness")
    altered_mentation = vitals.get("altered_mentation")
    if altered_mentation is None and consciousness is not None:
        altered_mentation = str(consciousness).strip().lower() not in ("alert", "a", "normal")

    qsofa = None
    try:
        qsofa = calculate_qsofa(
            altered_mentation=altered_mentation,
            systolic_bp=numeric_vitals["systolic_bp"],
            respiratory_rate=numeric_vitals["respiratory_rate"],
        )
    except MissingClinicalInput as e:
        missing.extend(f"qsofa.{name}" for name in e.missing)

    news2 = None
    try:
        news2 = calculate_news2(
            respiratory_rate=numeric_vitals["respiratory_rate"],
            spo2=numeric_vitals["spo2"],
            on_oxygen=vitals.get("on_oxygen"),
            temperature=numeric_vitals["temperature"],
            systolic_bp=numeric_vitals["systolic_bp"],
            heart_rate=numeric_vitals["heart_rate"],
            consciousness=consciousness,
        )
    except MissingClinicalInput as e:
        missing.extend(f"news2.{name}" for name in e.missing)

    if lrinec is not None:
        features = features.model_copy(update={"lrinec_score": lrinec.total_score})

    classification = determine_classification(features)
    logger.info(
        f"Soft tissue infection classified as {classification.classification} "
        f"({classification.severity}), {len(missing)} missing parameters"
    )

    return SoftTissueInfectionAssessment(
        lrinec=lrinec,
        qsofa=qsofa,
        news2=news2,
        classification=classification,
        recommended_labs=recommended_labs(classification.severity),
        recommended_antibiotics=recommended_antibiotics(
            classification.classification, has_diabetes=has_diabetes, renal_impairment=renal_impairment
        ),
        missing_parameters=missing,
    )
