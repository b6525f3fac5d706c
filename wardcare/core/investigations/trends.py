"""
Trend analysis of one laboratory parameter across a patient's completed
investigations.
"""

import logging
from typing import Iterable, List

from wardcare.core.investigations.reference_ranges import REFERENCE_RANGES, classify_value, is_critical
from wardcare.core.models import (
    Investigation,
    InvestigationStatus,
    TrendAnalysis,
    TrendDirection,
    TrendPoint,
)
from wardcare.core.scoring.utils import parse_numeric

logger = logging.getLogger(__name__)

HIGHER_IS_WORSE = {"WBC", "Creatinine", "Glucose", "CRP", "Bilirubin"}
HIGHER_IS_BETTER = {"Hemoglobin", "Albumin", "Platelets"}
STABLE_THRESHOLD_PCT = 5

WORSENING_ADVICE = {
    "Hemoglobin": "Consider iron studies, reticulocyte count, and evaluate for bleeding.",
    "Creatinine": "Monitor renal function closely. Ensure adequate hydration.",
    "WBC": "Investigate for infection or inflammatory process.",
    "Potassium": "Review medications affecting potassium. Consider ECG if significantly abnormal.",
}


def collect_points(investigations: Iterable[Investigation], patient_id: str, parameter: str) -> List[TrendPoint]:
    points = []
    for inv in investigations:
        if inv.patient_id != patient_id or inv.status != InvestigationStatus.COMPLETED:
            continue
        for result in inv.results:
            if result.parameter != parameter:
                continue
            value = parse_numeric(result.value)
            if value is None:
                logger.debug(f"Skipping non-numeric {parameter} value {result.value!r} in {inv.id}")
                continue
            points.append(
                TrendPoint(
                    date=result.result_date or inv.completed_at or inv.created_at,
                    value=value,
                    flag=classify_value(parameter, value),
                    investigation_id=inv.id,
                )
            )
    points.sort(key=lambda p: p.date)
    return points


def percent_change(first: float, last: float) -> float:
    if first == 0:
        if last == 0:
            return 0.0
        return 100.0 if last > 0 else -100.0
    return (last - first) / abs(first) * 100


def classify_trend(parameter: str, first: float, last: float, change: float) -> TrendDirection:
    """
    Direction of travel between the first and last values.

    Parameters in neither direction set are judged by distance from the
    reference midpoint. That rule is a heuristic, not a validated algorithm.
    """
    if abs(change) < STABLE_THRESHOLD_PCT:
        return TrendDirection.STABLE
    if parameter in HIGHER_IS_BETTER:
        return TrendDirection.IMPROVING if change > 0 else TrendDirection.WORSENING
    if parameter in HIGHER_IS_WORSE:
        return TrendDirection.IMPROVING if change < 0 else TrendDirection.WORSENING

    ref = REFERENCE_RANGES.get(parameter)
    if ref is None:
        return TrendDirection.FLUCTUATING
    midpoint = (ref.min + ref.max) / 2
    if abs(last - midpoint) < abs(first - midpoint):
        return TrendDirection.IMPROVING
    return TrendDirection.WORSENING


def trend_recommendations(parameter: str, trend: TrendDirection, points: List[TrendPoint]) -> List[str]:
    recommendations = []
    if points and is_critical(points[-1].flag):
        recommendations.append(
            f"CRITICAL: {parameter} is at a critical level. Immediate clinical attention required."
        )

    if trend == TrendDirection.WORSENING:
        recommendations.append(f"{parameter} shows a worsening trend. Consider clinical review.")
        if parameter in WORSENING_ADVICE:
            recommendations.append(WORSENING_ADVICE[parameter])
    elif trend == TrendDirection.IMPROVING:
        recommendations.append(f"{parameter} is showing improvement. Continue current management.")
    elif trend == TrendDirection.STABLE:
        recommendations.append(f"{parameter} is stable. Continue routine monitoring.")

    return recommendations


def calculate_trend(investigations: Iterable[Investigation], patient_id: str, parameter: str) -> TrendAnalysis:
    """
    Build the trend of a parameter for one patient

    Args:
        investigations: Candidate records; only this patient's completed ones are used
        patient_id: Patient identifier
        parameter: Result parameter name, e.g. 'Creatinine'

    Returns:
        TrendAnalysis with points in ascending date order. Fewer than two
        points is reported as stable with no change.
    """
    points = collect_points(investigations, patient_id, parameter)

    trend = TrendDirection.STABLE
    change = 0.0
    if len(points) >= 2:
        first, last = points[0].value, points[-1].value
        change = percent_change(first, last)
        trend = classify_trend(parameter, first, last, change)

    return TrendAnalysis(
        parameter=parameter,
        patient_id=patient_id,
        data_points=points,
        trend=trend,
        percent_change=round(change, 2),
        recommendations=trend_recommendations(parameter, trend, points),
    )
