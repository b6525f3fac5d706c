#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Scoring Utilities

Helpers shared by the bedside scoring systems: missing-input checks, banded
threshold lookups and risk-level normalization.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from wardcare.exceptions import MissingClinicalInput

logger = logging.getLogger(__name__)

# ACVPU consciousness descriptors
CONSCIOUSNESS_MAP = {
    "alert": 0,
    "a": 0,
    "normal": 0,
    "confused": 3,
    "new confusion": 3,
    "c": 3,
    "voice": 3,
    "v": 3,
    "pain": 3,
    "p": 3,
    "unresponsive": 3,
    "u": 3,
}


def safe_get_from_map(value, mapping, default=0):
    """Safely get a value from a mapping dictionary, handling None values

    Args:
        value: The key to look up
        mapping: Dictionary mapping
        default: Default value if key not found

    Returns:
        Mapped value or default
    """
    if value is None:
        return default
    return mapping.get(str(value).strip().lower(), default)


def check_missing_params(required_params: Dict[str, Any]) -> List[str]:
    """Return the names of parameters whose value is None

    Args:
        required_params: Dictionary of parameter names to values

    Returns:
        List of missing parameter names, in the order given
    """
    return [param for param, value in required_params.items() if value is None]


def require_params(score_name: str, required_params: Dict[str, Any]) -> None:
    """Raise MissingClinicalInput when any required parameter is absent

    Args:
        score_name: Name of the scoring system
        required_params: Dictionary of parameter names to values
    """
    missing = check_missing_params(required_params)
    if missing:
        logger.warning(f"{score_name} not calculated, missing: {', '.join(missing)}")
        raise MissingClinicalInput(score_name, missing)


def band_score(value: float, bands: Sequence[Tuple[float, int]], above: int) -> int:
    """Score a value against ascending inclusive upper bounds

    Args:
        value: Measured value
        bands: List of (upper_bound, points) tuples in ascending order
        above: Points when the value exceeds every upper bound

    Returns:
        Points of the first band whose upper bound is >= value
    """
    for upper, points in bands:
        if value <= upper:
            return points
    return above


def normalize_to_risk_level(score, thresholds):
    """Convert a numeric score to a risk level based on thresholds

    Args:
        score: Numeric score
        thresholds: List of (threshold, level, action) tuples in ascending order

    Returns:
        Tuple of (risk_level, action)
    """
    for threshold, level, action in thresholds:
        if score <= threshold:
            return level, action

    # If no threshold matched, use the highest one
    return thresholds[-1][1], thresholds[-1][2]


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def parse_numeric(value: Any) -> Optional[float]:
    """Coerce a number or numeric string to float, None when it is neither"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (ValueError, TypeError):
        return None
