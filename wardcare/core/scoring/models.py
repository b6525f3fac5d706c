"""
Result and input models for the bedside scoring systems.

Scorers return these instead of bare dictionaries so downstream consumers
(reports, the CLI) can rely on field names and call `model_dump()`.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RiskCategory(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class LRINECScore(BaseModel):
    """Laboratory Risk Indicator for Necrotizing Fasciitis."""

    crp: int
    wbc: int
    hemoglobin: int
    sodium: int
    creatinine: int
    glucose: int
    total_score: int = Field(..., ge=0, le=13)
    risk_category: RiskCategory
    interpretation: str


class QSOFAScore(BaseModel):
    score: int = Field(..., ge=0, le=3)
    interpretation: str
    sepsis_likely: bool
    subscores: Dict[str, int] = Field(default_factory=dict)


class NEWS2Score(BaseModel):
    """National Early Warning Score 2 with its per-parameter points."""

    score: int = Field(..., ge=0, le=20)
    risk: str = Field(..., description="HIGH, MEDIUM-HIGH, MEDIUM or LOW.")
    action: str
    subscores: Dict[str, int] = Field(default_factory=dict)


class InfectionFeatures(BaseModel):
    """Bedside findings used to classify a soft tissue infection."""

    pain_out_of_proportion: bool = False
    crepitus: bool = False
    bullae: bool = False
    skin_necrosis: bool = False
    dishwater_discharge: bool = False
    rapid_spread: bool = False
    fluctuance: bool = False
    systemic_signs: bool = False
    location: str = ""
    lrinec_score: Optional[int] = None


class InfectionClassification(BaseModel):
    classification: str
    severity: str = Field(..., description="mild, moderate, severe or critical.")
    stage: str
    urgency: str


class AntibioticRegimen(BaseModel):
    name: str
    dose: str
    route: str
    frequency: str
    duration: str


class SoftTissueInfectionAssessment(BaseModel):
    """Everything scored for one soft tissue infection encounter."""

    lrinec: Optional[LRINECScore] = None
    qsofa: Optional[QSOFAScore] = None
    news2: Optional[NEWS2Score] = None
    classification: InfectionClassification
    recommended_labs: List[str] = Field(default_factory=list)
    recommended_antibiotics: List[AntibioticRegimen] = Field(default_factory=list)
    missing_parameters: List[str] = Field(default_factory=list)
