#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Diabetic Foot Wound Classification

Wagner, University of Texas, WIfI and SINBAD classifications, plus the
shape-based wound area calculator used when wounds are measured at the
bedside.
"""

import logging
import math
import uuid
from enum import Enum
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field, model_validator

from wardcare.core.scoring.utils import clamp

logger = logging.getLogger(__name__)

__all__ = [
    "WoundShape",
    "WoundEntry",
    "WIfIClassification",
    "SINBADScore",
    "wagner_grade",
    "texas_classification",
    "wifi_classification",
    "wifi_ischemia_grade",
    "calculate_sinbad",
    "sinbad_from_findings",
    "calculate_wound_area",
    "total_wound_area",
]

WAGNER_DESCRIPTIONS = {
    0: "Pre-ulcerative lesion, healed ulcer, bony deformity",
    1: "Superficial ulcer, skin and subcutaneous tissue only",
    2: "Deep ulcer, extending to tendon, capsule, or bone",
    3: "Deep ulcer with abscess, osteomyelitis, or tendinitis",
    4: "Localized gangrene (toe, forefoot, heel)",
    5: "Gangrene of entire foot",
}

TEXAS_GRADES = {
    0: "Pre or post-ulcerative",
    1: "Superficial (no tendon/capsule/bone)",
    2: "Wound penetrating to tendon/capsule",
    3: "Wound penetrating to bone/joint",
}

TEXAS_STAGES = {
    "A": "Clean wound",
    "B": "Infected wound",
    "C": "Ischemic wound",
    "D": "Infected and ischemic",
}

WIFI_WOUND = {
    0: "No ulcer/gangrene",
    1: "Small, shallow ulcer",
    2: "Deeper ulcer ± gangrene",
    3: "Extensive deep ulcer",
}

WIFI_ISCHEMIA = {
    0: "ABI ≥0.80",
    1: "ABI 0.60-0.79",
    2: "ABI 0.40-0.59",
    3: "ABI <0.40",
}

WIFI_FOOT_INFECTION = {
    0: "No infection",
    1: "Mild (local, skin only)",
    2: "Moderate (deeper/larger)",
    3: "Severe (systemic signs)",
}

FOREFOOT_KEYWORDS = ("toe", "metatarsal", "forefoot")


class WoundShape(str, Enum):
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    CIRCLE = "circle"
    IRREGULAR = "irregular"


def calculate_wound_area(length: float, width: float, shape: WoundShape = WoundShape.ELLIPSE) -> float:
    """
    Wound area in cm2, rounded to two decimals

    Args:
        length: Longest dimension (cm); the diameter for circles
        width: Perpendicular dimension (cm); ignored for circles
        shape: Shape used to approximate the wound outline
    """
    shape = WoundShape(shape)
    if shape == WoundShape.RECTANGLE:
        area = length * width
    elif shape == WoundShape.ELLIPSE:
        area = math.pi * (length / 2) * (width / 2)
    elif shape == WoundShape.CIRCLE:
        area = math.pi * (length / 2) ** 2
    else:
        area = 0.785 * length * width
    return round(area, 2)


class WoundEntry(BaseModel):
    """A single measured wound. Area is derived from the dimensions and shape."""

    id: str = Field(default_factory=lambda: f"wound-{uuid.uuid4().hex[:12]}")
    location: str = ""
    shape: WoundShape = WoundShape.ELLIPSE
    length: float = Field(default=0.0, ge=0)
    width: float = Field(default=0.0, ge=0)
    depth: float = Field(default=0.0, ge=0)
    area: float = 0.0
    duration: int = Field(default=0, ge=0, description="Days since the wound appeared.")

    @model_validator(mode="after")
    def derive_area(self) -> "WoundEntry":
        # A circle's width always mirrors its length (the diameter).
        if self.shape == WoundShape.CIRCLE:
            self.width = self.length
        self.area = calculate_wound_area(self.length, self.width, self.shape)
        return self

    def update(self, **changes) -> "WoundEntry":
        """Return a validated copy with changes applied; area follows the new dimensions."""
        return self.model_validate({**self.model_dump(), **changes})


def total_wound_area(wounds: Iterable[WoundEntry]) -> float:
    return round(sum(w.area for w in wounds), 2)


def wagner_grade(grade: int) -> str:
    if grade not in WAGNER_DESCRIPTIONS:
        raise ValueError(f"Wagner grade must be 0-5, got {grade}")
    return WAGNER_DESCRIPTIONS[grade]


def texas_classification(grade: int, stage: str) -> str:
    """University of Texas classification text, e.g. 'Superficial ... - Infected wound'."""
    stage = stage.upper()
    if grade not in TEXAS_GRADES or stage not in TEXAS_STAGES:
        raise ValueError(f"Invalid Texas classification {grade}{stage}")
    return f"{TEXAS_GRADES[grade]} - {TEXAS_STAGES[stage]}"


class WIfIClassification(BaseModel):
    """Wound, Ischemia and foot Infection grades, each 0-3."""

    wound: int = Field(..., ge=0, le=3)
    ischemia: int = Field(..., ge=0, le=3)
    foot_infection: int = Field(..., ge=0, le=3)
    descriptions: Dict[str, str] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"W{self.wound}I{self.ischemia}fI{self.foot_infection}"


def wifi_classification(wound: int, ischemia: int, foot_infection: int) -> WIfIClassification:
    wound, ischemia, foot_infection = (int(clamp(v, 0, 3)) for v in (wound, ischemia, foot_infection))
    return WIfIClassification(
        wound=wound,
        ischemia=ischemia,
        foot_infection=foot_infection,
        descriptions={
            "wound": WIFI_WOUND[wound],
            "ischemia": WIFI_ISCHEMIA[ischemia],
            "foot_infection": WIFI_FOOT_INFECTION[foot_infection],
        },
    )


def wifi_ischemia_grade(abi: float) -> int:
    """WIfI ischemia grade from the ankle-brachial index."""
    if abi >= 0.8:
        return 0
    if abi >= 0.6:
        return 1
    if abi >= 0.4:
        return 2
    return 3


class SINBADScore(BaseModel):
    """Site, Ischemia, Neuropathy, Bacterial infection, Area, Depth (0-6)."""

    site: int = Field(..., ge=0, le=1)
    ischemia: int = Field(..., ge=0, le=1)
    neuropathy: int = Field(..., ge=0, le=1)
    bacterial_infection: int = Field(..., ge=0, le=1)
    area: int = Field(..., ge=0, le=1)
    depth: int = Field(..., ge=0, le=1)
    total: int = Field(..., ge=0, le=6)


def calculate_sinbad(site, ischemia, neuropathy, bacterial_infection, area, depth) -> SINBADScore:
    """Sum the six SINBAD items, each scored 0 or 1."""
    items = {
        "site": site,
        "ischemia": ischemia,
        "neuropathy": neuropathy,
        "bacterial_infection": bacterial_infection,
        "area": area,
        "depth": depth,
    }
    items = {k: int(clamp(int(v), 0, 1)) for k, v in items.items()}
    return SINBADScore(total=sum(items.values()), **items)


def sinbad_from_findings(
    wound_location: str = "",
    abi: Optional[float] = None,
    monofilament_loss: bool = False,
    sepsis_severity: Optional[str] = None,
    wound_area: float = 0.0,
    wound_depth: float = 0.0,
) -> SINBADScore:
    """
    Derive SINBAD items from examination findings

    Args:
        wound_location: Free-text location; toe, metatarsal or forefoot counts as forefoot
        abi: Ankle-brachial index, normal when unknown
        monofilament_loss: Protective sensation lost on monofilament testing
        sepsis_severity: 'none', 'sirs', 'sepsis', 'severe_sepsis' or 'septic_shock'
        wound_area: Total area (cm2)
        wound_depth: Depth (cm)
    """
    location = (wound_location or "").lower()
    forefoot = any(keyword in location for keyword in FOREFOOT_KEYWORDS)
    infected = sepsis_severity is not None and sepsis_severity != "none"

    return calculate_sinbad(
        site=0 if forefoot else 1,
        ischemia=1 if (abi or 1) < 0.8 else 0,
        neuropathy=1 if monofilament_loss else 0,
        bacterial_infection=1 if infected else 0,
        area=1 if wound_area >= 1 else 0,
        depth=1 if wound_depth > 0.5 else 0,
    )
