"""
Defines the Pydantic data models used throughout wardcare.

These models cover the derived patient snapshots (age, category, pregnancy,
dosing context) and the investigation workflow entities (requests, results,
attachments, trend analyses). Derived snapshots are never persisted; the
Investigation is the only mutable record and changes only through the
workflow engine.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Patient categorization
# ---------------------------------------------------------------------------


class AgeCategory(str, Enum):
    """Detailed age tiers, youngest first."""

    NEONATE = "neonate"
    INFANT = "infant"
    TODDLER = "toddler"
    PRESCHOOL = "preschool"
    SCHOOL_AGE = "school_age"
    ADOLESCENT = "adolescent"
    ADULT = "adult"
    GERIATRIC = "geriatric"


class BroadCategory(str, Enum):
    """Broad tier used for dosing and form selection."""

    PEDIATRIC = "pediatric"
    ADULT = "adult"
    GERIATRIC = "geriatric"


class MedicationCategory(str, Enum):
    """Pregnancy medication risk categories."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    X = "X"


class PatientAge(BaseModel):
    """Age at a given instant: remainder components plus absolute totals."""

    model_config = ConfigDict(frozen=True)

    years: int = Field(..., description="Completed years.")
    months: int = Field(..., description="Completed months after the last birthday.")
    days: int = Field(..., description="Days after the last monthly anniversary.")
    total_months: int = Field(..., description="Completed months since birth.")
    total_days: int = Field(..., description="Days since birth.")


class PatientCategory(BaseModel):
    """Snapshot of a patient's age tier and the assessment lists keyed by it."""

    model_config = ConfigDict(frozen=True)

    age_category: AgeCategory
    broad_category: BroadCategory
    is_pediatric: bool
    is_adult: bool
    is_geriatric: bool
    is_neonate: bool
    is_infant: bool
    age_in_years: int
    age_details: PatientAge
    display_age: str
    clinical_considerations: List[str] = Field(default_factory=list)
    contraindications: List[str] = Field(default_factory=list)
    required_assessments: List[str] = Field(default_factory=list)
    optional_assessments: List[str] = Field(default_factory=list)
    excluded_assessments: List[str] = Field(default_factory=list)


class PregnancyStatus(BaseModel):
    """Pregnancy snapshot keyed by trimester."""

    model_config = ConfigDict(frozen=True)

    is_pregnant: bool
    trimester: Optional[int] = Field(default=None, ge=1, le=3)
    gestational_weeks: Optional[int] = None
    gestational_days: Optional[int] = None
    edd: Optional[date] = Field(default=None, description="Expected delivery date.")
    lmp: Optional[date] = Field(default=None, description="Last menstrual period.")
    clinical_considerations: List[str] = Field(default_factory=list)
    contraindications: List[str] = Field(default_factory=list)
    required_assessments: List[str] = Field(default_factory=list)
    excluded_assessments: List[str] = Field(default_factory=list)
    medication_categories: List[MedicationCategory] = Field(
        default_factory=lambda: list(MedicationCategory)
    )


class DosingWeight(BaseModel):
    """Weight to use for dose calculations and why."""

    weight: float
    weight_type: str = Field(..., description="'actual', 'ibw' or 'adjusted'.")
    recommendation: str


class PatientContext(BaseModel):
    """Everything the dosing and form logic needs to know about a patient."""

    category: PatientCategory
    pregnancy: Optional[PregnancyStatus] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    bsa: Optional[float] = Field(default=None, description="Body surface area (m2).")
    ibw: Optional[float] = Field(default=None, description="Ideal body weight (kg).")
    adjusted_weight: Optional[float] = None


# ---------------------------------------------------------------------------
# Investigations
# ---------------------------------------------------------------------------


class InvestigationStatus(str, Enum):
    """Lifecycle of an investigation request."""

    REQUESTED = "requested"
    SAMPLE_COLLECTED = "sample_collected"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvestigationPriority(str, Enum):
    ROUTINE = "routine"
    URGENT = "urgent"
    STAT = "stat"


class ResultFlag(str, Enum):
    """Abnormality flag derived from the reference range."""

    NORMAL = "normal"
    LOW = "L"
    HIGH = "H"
    CRITICAL_LOW = "LL"
    CRITICAL_HIGH = "HH"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"
    FLUCTUATING = "fluctuating"


class ReferenceRange(BaseModel):
    """Reference interval for one laboratory parameter."""

    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    unit: str
    critical_low: Optional[float] = None
    critical_high: Optional[float] = None

    def describe(self) -> str:
        return f"{self.min:g} - {self.max:g}"


class TestDefinition(BaseModel):
    """Catalog entry for an orderable test."""

    __test__ = False  # keep pytest from collecting this class

    id: str = Field(..., min_length=1)
    name: str
    category: str
    specimen: str
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    parameters: List[str] = Field(default_factory=list)
    requires_fasting: bool = False
    turnaround_time: Optional[str] = None


class InvestigationRequest(BaseModel):
    """A clinician's order for one or more tests."""

    patient_id: str = Field(..., min_length=1)
    hospital_id: str = Field(..., min_length=1)
    encounter_id: Optional[str] = None
    admission_id: Optional[str] = None
    tests: List[str] = Field(..., min_length=1, description="Test names or catalog ids.")
    priority: InvestigationPriority = InvestigationPriority.ROUTINE
    clinical_details: Optional[str] = None
    fasting: bool = False
    requested_by: str = Field(..., min_length=1)
    requested_by_name: Optional[str] = None


class ResultEntry(BaseModel):
    """A result as submitted by the laboratory, before flagging."""

    parameter: str = Field(..., min_length=1)
    value: Union[float, str]
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    interpretation: Optional[str] = None


class InvestigationResult(BaseModel):
    """One measured parameter within an investigation."""

    id: str
    investigation_id: str
    parameter: str
    value: Union[float, str]
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    flag: Optional[ResultFlag] = None
    interpretation: Optional[str] = None
    result_date: datetime


class InvestigationAttachment(BaseModel):
    """An uploaded report stored as a base64 data URL."""

    id: str
    file_name: str
    file_type: str
    file_size: int = Field(..., ge=0)
    url: str
    uploaded_by: str
    uploaded_at: datetime


class Investigation(BaseModel):
    """The investigation record moved through the lab workflow."""

    id: str
    patient_id: str
    hospital_id: str
    patient_name: Optional[str] = None
    hospital_number: Optional[str] = None
    encounter_id: Optional[str] = None
    admission_id: Optional[str] = None
    type: str = Field(default="", description="Comma-separated catalog ids.")
    type_name: str = Field(default="", description="Display names of the ordered tests.")
    category: str = "biochemistry"
    priority: InvestigationPriority = InvestigationPriority.ROUTINE
    status: InvestigationStatus = InvestigationStatus.REQUESTED
    fasting: bool = False
    clinical_details: Optional[str] = None
    requested_by: str
    requested_by_name: Optional[str] = None
    requested_at: datetime
    collected_at: Optional[datetime] = None
    collected_by: Optional[str] = None
    processing_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    completed_by_name: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    interpretation: Optional[str] = None
    results: List[InvestigationResult] = Field(default_factory=list)
    attachments: List[InvestigationAttachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    version: int = Field(default=1, ge=1)

    @field_validator("type_name")
    @classmethod
    def strip_type_name(cls, v: str) -> str:
        return v.strip()


class TrendPoint(BaseModel):
    date: datetime
    value: float
    flag: Optional[ResultFlag] = None
    investigation_id: str


class TrendAnalysis(BaseModel):
    """Trend of one parameter across a patient's completed investigations."""

    parameter: str
    patient_id: str
    data_points: List[TrendPoint] = Field(default_factory=list)
    trend: TrendDirection = TrendDirection.STABLE
    percent_change: float = 0.0
    recommendations: List[str] = Field(default_factory=list)
