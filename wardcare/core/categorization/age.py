#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Age-based patient categorization.

Computes a patient's age from the date of birth, buckets it into one of eight
age tiers and attaches the tier's clinical guidance tables. All functions take
an explicit `now` so results are reproducible.
"""

import calendar
import logging
from datetime import date, datetime
from typing import Optional, Tuple, Union

from wardcare.core.categorization.tables import (
    AGE_CONTRAINDICATIONS,
    CLINICAL_CONSIDERATIONS,
    EXCLUDED_ASSESSMENTS,
    OPTIONAL_ASSESSMENTS,
    REQUIRED_ASSESSMENTS,
)
from wardcare.core.models import (
    AgeCategory,
    BroadCategory,
    PatientAge,
    PatientCategory,
    PregnancyStatus,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]

PEDIATRIC_CATEGORIES = (
    AgeCategory.NEONATE,
    AgeCategory.INFANT,
    AgeCategory.TODDLER,
    AgeCategory.PRESCHOOL,
    AgeCategory.SCHOOL_AGE,
    AgeCategory.ADOLESCENT,
)

# Evaluated top to bottom, first match wins. Upper bounds are exclusive so a
# patient on their 65th birthday is geriatric.
NEONATE_MAX_DAYS = 28
INFANT_MAX_MONTHS = 12
YEAR_BOUNDARIES = [
    (3, AgeCategory.TODDLER),
    (6, AgeCategory.PRESCHOOL),
    (12, AgeCategory.SCHOOL_AGE),
    (18, AgeCategory.ADOLESCENT),
    (65, AgeCategory.ADULT),
]


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO-8601 string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return datetime.fromisoformat(text).date()


def _full_months_between(start: date, end: date) -> int:
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def _last_monthly_anniversary(dob: date, today: date) -> date:
    year, month = today.year, today.month
    day = min(dob.day, calendar.monthrange(year, month)[1])
    anniversary = date(year, month, day)
    if anniversary > today:
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
        day = min(dob.day, calendar.monthrange(year, month)[1])
        anniversary = date(year, month, day)
    return anniversary


def calculate_age(date_of_birth: DateLike, now: Optional[DateLike] = None) -> PatientAge:
    """
    Calculate a calendar-aware age.

    Args:
        date_of_birth: Birth date
        now: Reference instant, defaults to today

    Returns:
        PatientAge with completed years, the remaining months and days, and
        absolute totals. A future birth date yields zero or negative values.
    """
    dob = to_date(date_of_birth)
    today = to_date(now) if now is not None else date.today()

    total_months = _full_months_between(dob, today)
    total_days = (today - dob).days
    years = int(total_months / 12)

    if total_days >= 0:
        days = (today - _last_monthly_anniversary(dob, today)).days
    else:
        days = 0

    return PatientAge(
        years=years,
        months=total_months % 12 if total_months >= 0 else 0,
        days=days,
        total_months=total_months,
        total_days=total_days,
    )


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_age(age: PatientAge) -> str:
    """Render an age the way it is shown on clinical forms."""
    if age.total_days <= NEONATE_MAX_DAYS:
        return f"{_plural(age.total_days, 'day')} old"
    if age.total_months < 24:
        return f"{_plural(age.total_months, 'month')} old"
    if age.years < 18 and age.months > 0:
        return f"{_plural(age.years, 'year')} {_plural(age.months, 'month')} old"
    return f"{_plural(age.years, 'year')} old"


def categorize(age: PatientAge) -> AgeCategory:
    if age.total_days <= NEONATE_MAX_DAYS:
        return AgeCategory.NEONATE
    if age.total_months < INFANT_MAX_MONTHS:
        return AgeCategory.INFANT
    for upper_years, category in YEAR_BOUNDARIES:
        if age.years < upper_years:
            return category
    return AgeCategory.GERIATRIC


def broad_category(age_category: AgeCategory) -> BroadCategory:
    if age_category in PEDIATRIC_CATEGORIES:
        return BroadCategory.PEDIATRIC
    if age_category == AgeCategory.GERIATRIC:
        return BroadCategory.GERIATRIC
    return BroadCategory.ADULT


def categorize_patient(date_of_birth: DateLike, now: Optional[DateLike] = None) -> PatientCategory:
    """
    Build the full category snapshot for a patient.

    Args:
        date_of_birth: Birth date
        now: Reference instant, defaults to today

    Returns:
        PatientCategory carrying the tier flags and the tier's guidance lists
    """
    age = calculate_age(date_of_birth, now)
    age_category = categorize(age)
    broad = broad_category(age_category)
    logger.debug(f"Categorized patient aged {age.total_days} days as {age_category.value}")

    return PatientCategory(
        age_category=age_category,
        broad_category=broad,
        is_pediatric=broad == BroadCategory.PEDIATRIC,
        is_adult=broad == BroadCategory.ADULT,
        is_geriatric=broad == BroadCategory.GERIATRIC,
        is_neonate=age_category == AgeCategory.NEONATE,
        is_infant=age_category == AgeCategory.INFANT,
        age_in_years=age.years,
        age_details=age,
        display_age=format_age(age),
        clinical_considerations=list(CLINICAL_CONSIDERATIONS[age_category]),
        contraindications=list(AGE_CONTRAINDICATIONS[age_category]),
        required_assessments=list(REQUIRED_ASSESSMENTS[age_category]),
        optional_assessments=list(OPTIONAL_ASSESSMENTS[age_category]),
        excluded_assessments=list(EXCLUDED_ASSESSMENTS[age_category]),
    )


def is_assessment_appropriate(
    assessment_name: str,
    category: PatientCategory,
    pregnancy: Optional[PregnancyStatus] = None,
) -> Tuple[bool, Optional[str]]:
    """
    Check an assessment against the age and pregnancy exclusion lists.

    Matching is a case-insensitive substring test of each excluded entry
    against the assessment name.

    Returns:
        Tuple of (appropriate, reason); reason is None when appropriate
    """
    name = assessment_name.lower()

    if any(excluded.lower() in name for excluded in category.excluded_assessments):
        return False, f"Not appropriate for {category.age_category.value} patients"

    if pregnancy is not None and pregnancy.is_pregnant:
        if any(excluded.lower() in name for excluded in pregnancy.excluded_assessments):
            return False, "Not appropriate during pregnancy"

    return True, None
