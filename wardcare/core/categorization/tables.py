#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Age-category reference tables.

Static clinical guidance keyed by AgeCategory: considerations, age-specific
contraindications and the required, optional and excluded assessment lists
used to drive form rendering.
"""

from typing import Dict, List

from wardcare.core.models import AgeCategory

CLINICAL_CONSIDERATIONS: Dict[AgeCategory, List[str]] = {
    AgeCategory.NEONATE: [
        "Immature hepatic and renal function - adjust drug doses",
        "Higher body water content - affects drug distribution",
        "Immature blood-brain barrier",
        "Temperature regulation challenges",
        "Weight-based dosing essential (mg/kg)",
        "Consider gestational age for medication dosing",
        "Avoid preservatives (benzyl alcohol) in medications",
    ],
    AgeCategory.INFANT: [
        "Rapid growth phase - regular weight checks for dosing",
        "Developing hepatic metabolism",
        "Incomplete renal function maturation",
        "Higher metabolic rate",
        "Weight-based dosing essential (mg/kg)",
        "Consider developmental milestones",
    ],
    AgeCategory.TODDLER: [
        "Weight-based dosing still essential",
        "Consider liquid formulations for administration",
        "High activity level affects drug metabolism",
        "Immunization schedule considerations",
    ],
    AgeCategory.PRESCHOOL: [
        "Weight-based dosing preferred",
        "May tolerate crushed tablets or chewables",
        "School readiness assessments",
    ],
    AgeCategory.SCHOOL_AGE: [
        "Transition to adult-like metabolism beginning",
        "Weight-based dosing for most medications",
        "Consider psychological development",
        "Growth spurts may affect drug requirements",
    ],
    AgeCategory.ADOLESCENT: [
        "Approaching adult metabolism",
        "Consider body surface area dosing",
        "Puberty stage affects some medications",
        "Screen for substance use if appropriate",
        "Mental health screening recommended",
        "Reproductive health considerations",
    ],
    AgeCategory.ADULT: [
        "Standard adult dosing applies",
        "Consider renal and hepatic function",
        "Comorbidity assessment important",
        "Lifestyle factors (smoking, alcohol) affect metabolism",
    ],
    AgeCategory.GERIATRIC: [
        "Reduced renal clearance - always calculate GFR",
        "Reduced hepatic metabolism",
        "Increased sensitivity to CNS medications",
        "Polypharmacy risk - check interactions",
        "Fall risk assessment essential",
        "Cognitive assessment recommended",
        "Consider frailty status",
        "Lower starting doses recommended",
        "Monitor for orthostatic hypotension",
        "Dehydration risk higher",
    ],
}

AGE_CONTRAINDICATIONS: Dict[AgeCategory, List[str]] = {
    AgeCategory.NEONATE: [
        "Avoid tetracyclines - dental staining",
        "Avoid fluoroquinolones - cartilage damage",
        "Aspirin contraindicated - Reye syndrome risk",
        "Codeine contraindicated",
        "Avoid honey-based preparations - botulism risk",
        "Benzyl alcohol-containing products contraindicated",
    ],
    AgeCategory.INFANT: [
        "Avoid tetracyclines",
        "Avoid fluoroquinolones",
        "Aspirin contraindicated - Reye syndrome",
        "Codeine contraindicated under 12",
        "Avoid honey under 1 year",
    ],
    AgeCategory.TODDLER: [
        "Avoid tetracyclines until 8 years",
        "Avoid fluoroquinolones",
        "Aspirin contraindicated - Reye syndrome",
        "Codeine contraindicated under 12",
    ],
    AgeCategory.PRESCHOOL: [
        "Avoid tetracyclines until 8 years",
        "Fluoroquinolones - use only if no alternative",
        "Aspirin - avoid in viral illness",
        "Codeine contraindicated under 12",
    ],
    AgeCategory.SCHOOL_AGE: [
        "Tetracyclines - avoid until 8 years",
        "Fluoroquinolones - caution",
        "Aspirin - avoid in viral illness",
        "Codeine contraindicated under 12",
    ],
    AgeCategory.ADOLESCENT: [
        "Isotretinoin - pregnancy prevention essential",
        "Consider teratogenic medications in females",
    ],
    AgeCategory.ADULT: [
        "Standard contraindication checking",
    ],
    AgeCategory.GERIATRIC: [
        "Avoid long-acting benzodiazepines",
        "Avoid anticholinergics when possible (Beers criteria)",
        "NSAIDs - use with caution (GI, renal, CV risk)",
        "Avoid muscle relaxants",
        "Avoid first-generation antihistamines",
        "Meperidine contraindicated",
        "Avoid sliding-scale insulin as sole therapy",
    ],
}

REQUIRED_ASSESSMENTS: Dict[AgeCategory, List[str]] = {
    AgeCategory.NEONATE: [
        "Gestational age assessment",
        "Birth weight and current weight",
        "APGAR score (if applicable)",
        "Neonatal reflexes",
        "Fontanelle assessment",
        "Jaundice assessment",
        "Feeding assessment",
        "Temperature stability",
        "Umbilical cord assessment",
    ],
    AgeCategory.INFANT: [
        "Weight and length/height",
        "Head circumference",
        "Developmental milestones (Denver II)",
        "Fontanelle status",
        "Feeding and nutrition assessment",
        "Immunization status",
        "Vision and hearing screening",
    ],
    AgeCategory.TODDLER: [
        "Weight and height",
        "Developmental milestones",
        "Language development",
        "Immunization status",
        "Nutritional assessment",
        "Dental assessment",
    ],
    AgeCategory.PRESCHOOL: [
        "Growth parameters",
        "Developmental screening",
        "Vision screening",
        "Hearing screening",
        "Immunization status",
        "School readiness assessment",
    ],
    AgeCategory.SCHOOL_AGE: [
        "Growth parameters",
        "BMI calculation",
        "Vision screening",
        "Blood pressure measurement",
        "Scoliosis screening",
        "Immunization status",
    ],
    AgeCategory.ADOLESCENT: [
        "Height, weight, BMI",
        "Tanner staging (if relevant)",
        "Blood pressure",
        "Mental health screening (PHQ-A)",
        "Substance use screening (if appropriate)",
        "Sexual health assessment (if appropriate)",
        "Immunization status",
    ],
    AgeCategory.ADULT: [
        "Height, weight, BMI",
        "Vital signs",
        "Cardiovascular risk assessment",
        "GFR calculation",
        "Hepatic function assessment",
        "Comorbidity assessment",
    ],
    AgeCategory.GERIATRIC: [
        "Height, weight, BMI",
        "Vital signs including orthostatic BP",
        "GFR calculation (mandatory)",
        "Hepatic function",
        "Cognitive screening (MMSE/MoCA)",
        "Fall risk assessment",
        "Functional status (ADL/IADL)",
        "Polypharmacy review",
        "Frailty assessment",
        "Nutritional status (MNA)",
        "Depression screening (GDS)",
        "Pressure sore risk (Waterlow)",
    ],
}

OPTIONAL_ASSESSMENTS: Dict[AgeCategory, List[str]] = {
    AgeCategory.NEONATE: [
        "Genetic screening",
        "Metabolic screening",
    ],
    AgeCategory.INFANT: [
        "Lead screening",
        "Anemia screening",
    ],
    AgeCategory.TODDLER: [
        "Lead screening",
        "Autism screening (M-CHAT)",
    ],
    AgeCategory.PRESCHOOL: [
        "Autism follow-up if indicated",
        "Speech assessment",
    ],
    AgeCategory.SCHOOL_AGE: [
        "ADHD screening if indicated",
        "Learning disability assessment",
    ],
    AgeCategory.ADOLESCENT: [
        "STI screening if sexually active",
        "Pregnancy test if applicable",
        "Sports physical",
    ],
    AgeCategory.ADULT: [
        "Cancer screening per guidelines",
        "Lipid profile",
        "Diabetes screening",
    ],
    AgeCategory.GERIATRIC: [
        "Bone density screening",
        "Cancer screening per guidelines",
        "Advanced care planning discussion",
        "Caregiver assessment",
    ],
}

EXCLUDED_ASSESSMENTS: Dict[AgeCategory, List[str]] = {
    AgeCategory.NEONATE: [
        "MMSE/MoCA (cognitive screening)",
        "PHQ-9 (depression)",
        "Cardiovascular risk calculators",
        "Prostate screening",
        "Mammography",
        "Colonoscopy",
        "Bone density",
        "ASA classification (use neonatal specific)",
    ],
    AgeCategory.INFANT: [
        "MMSE/MoCA",
        "PHQ-9",
        "Cardiovascular risk",
        "Adult-specific cancer screening",
        "GFR (use pediatric formulas)",
    ],
    AgeCategory.TODDLER: [
        "Adult cognitive assessments",
        "Depression screening (adult tools)",
        "Cardiovascular risk calculators",
    ],
    AgeCategory.PRESCHOOL: [
        "Adult assessments",
        "Tanner staging",
        "Cardiovascular risk",
    ],
    AgeCategory.SCHOOL_AGE: [
        "Adult assessments",
        "Prostate/breast cancer screening",
    ],
    AgeCategory.ADOLESCENT: [
        "Geriatric assessments",
        "Prostate cancer screening",
        "Colonoscopy",
    ],
    AgeCategory.ADULT: [
        "Developmental milestones",
        "Pediatric growth charts",
        "Fontanelle assessment",
    ],
    AgeCategory.GERIATRIC: [
        "Developmental milestones",
        "Pediatric assessments",
        "Tanner staging",
    ],
}
