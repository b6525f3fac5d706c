#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Adult laboratory reference ranges and the abnormality flag classifier.

The same classifier is used when results are added and when trends are built,
so a stored flag and a trend point flag always agree.
"""

from typing import Dict, Optional, Union

from wardcare.core.models import ReferenceRange, ResultFlag

# A critical bound of 0 means no critical bound is defined on that side.
REFERENCE_RANGES: Dict[str, ReferenceRange] = {
    "Hemoglobin": ReferenceRange(min=12.0, max=17.0, unit="g/dL", critical_low=7.0, critical_high=20.0),
    "WBC": ReferenceRange(min=4.0, max=11.0, unit="x10^9/L", critical_low=2.0, critical_high=30.0),
    "Platelets": ReferenceRange(min=150, max=450, unit="x10^9/L", critical_low=50, critical_high=1000),
    "Sodium": ReferenceRange(min=135, max=145, unit="mmol/L", critical_low=120, critical_high=160),
    "Potassium": ReferenceRange(min=3.5, max=5.0, unit="mmol/L", critical_low=2.5, critical_high=6.5),
    "Creatinine": ReferenceRange(min=44, max=106, unit="µmol/L", critical_low=0, critical_high=800),
    "Urea": ReferenceRange(min=2.5, max=6.7, unit="mmol/L", critical_low=0, critical_high=50),
    "Glucose": ReferenceRange(min=3.9, max=5.6, unit="mmol/L", critical_low=2.5, critical_high=25),
    "AST": ReferenceRange(min=10, max=40, unit="U/L"),
    "ALT": ReferenceRange(min=7, max=56, unit="U/L"),
    "Albumin": ReferenceRange(min=35, max=50, unit="g/L", critical_low=20, critical_high=0),
    "Bilirubin": ReferenceRange(min=5, max=21, unit="µmol/L", critical_low=0, critical_high=300),
    "CRP": ReferenceRange(min=0, max=5, unit="mg/L"),
    "INR": ReferenceRange(min=0.9, max=1.1, unit="", critical_low=0, critical_high=5.0),
    "PT": ReferenceRange(min=11, max=13, unit="seconds"),
    "APTT": ReferenceRange(min=25, max=35, unit="seconds"),
}

CRITICAL_FLAGS = {ResultFlag.CRITICAL_LOW, ResultFlag.CRITICAL_HIGH}


def get_reference_range(parameter: str) -> Optional[ReferenceRange]:
    return REFERENCE_RANGES.get(parameter)


def classify_value(parameter: str, value: Union[float, int, str, None]) -> Optional[ResultFlag]:
    """
    Flag a numeric result against its reference range

    Critical bounds are checked before the normal interval, low before high.

    Args:
        parameter: Parameter name as keyed in REFERENCE_RANGES
        value: Measured value

    Returns:
        ResultFlag, or None for an unknown parameter or a non-numeric value
    """
    ref = REFERENCE_RANGES.get(parameter)
    if ref is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return None

    if ref.critical_low and value < ref.critical_low:
        return ResultFlag.CRITICAL_LOW
    if ref.critical_high and value > ref.critical_high:
        return ResultFlag.CRITICAL_HIGH
    if value < ref.min:
        return ResultFlag.LOW
    if value > ref.max:
        return ResultFlag.HIGH
    return ResultFlag.NORMAL


def is_critical(flag: Optional[ResultFlag]) -> bool:
    return flag in CRITICAL_FLAGS
