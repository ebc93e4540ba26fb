"""
Pydantic schemas for the assessment domain and API responses
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NOT_ASSESSED = "NOT_ASSESSED"


# ============================================================================
# Raw shapes returned by the AI service (never leave the client modules)
# ============================================================================


class RawDetection(BaseModel):
    """One hazard entry of the detection response, coordinates normalized to 0-1"""

    mask: List[Tuple[float, float]] = Field(min_length=3)
    box_2d: Optional[Tuple[float, float, float, float]] = None
    label: str = Field(min_length=1)

    @field_validator("label", mode="before")
    @classmethod
    def strip_label(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("box_2d", mode="before")
    @classmethod
    def ignore_malformed_box(cls, v):
        # The box is optional: anything that is not four numbers is rebuilt from the mask
        if not isinstance(v, (list, tuple)) or len(v) != 4:
            return None
        if not all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in v):
            return None
        return v


def _as_string_list(v):
    if v is None:
        return []
    if isinstance(v, str):
        return [v] if v.strip() else []
    return v


class RawDetailedAssessment(BaseModel):
    """Detailed assessment response for a single hazard"""

    risk_name: str = ""
    severity_score: float
    likelihood_score: float
    risk_level_verbal_description: str = ""
    corrective_preventive_measures: List[str] = Field(default_factory=list)
    international_standards_references: List[str] = Field(default_factory=list)
    relevant_thai_laws: List[str] = Field(default_factory=list)
    kubota_standards_references: List[str] = Field(default_factory=list)

    @field_validator(
        "corrective_preventive_measures",
        "international_standards_references",
        "relevant_thai_laws",
        "kubota_standards_references",
        mode="before",
    )
    @classmethod
    def normalize_lists(cls, v):
        return _as_string_list(v)

    @field_validator("risk_name", "risk_level_verbal_description", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


# ============================================================================
# Domain records
# ============================================================================


class BoundingBox(BaseModel):
    """Axis-aligned box in image pixel coordinates"""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int = Field(ge=0)
    height: int = Field(ge=0)

    @property
    def corners(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class HazardRegion(BaseModel):
    """Hazard area found by the detection pass, in pixel coordinates"""

    model_config = ConfigDict(frozen=True)

    id: str
    mask_points: List[Tuple[int, int]] = Field(min_length=3)
    bounding_box: BoundingBox
    label: str = Field(min_length=1)


class RiskDetail(BaseModel):
    """Detailed risk scoring for one hazard"""

    model_config = ConfigDict(frozen=True)

    severity: int = Field(ge=1, le=5)
    likelihood: int = Field(ge=1, le=5)
    description: str = ""
    corrective_measures: List[str] = Field(default_factory=list)
    standards_references: List[str] = Field(default_factory=list)
    legal_references: List[str] = Field(default_factory=list)
    organization_references: List[str] = Field(default_factory=list)


class AnalyzedHazard(BaseModel):
    """Hazard region with its optional detail and derived risk level"""

    model_config = ConfigDict(frozen=True)

    region: HazardRegion
    detail: Optional[RiskDetail] = None
    risk_level: RiskLevel

    @model_validator(mode="after")
    def level_matches_detail(self):
        if (self.detail is None) != (self.risk_level == RiskLevel.NOT_ASSESSED):
            raise ValueError("risk_level is NOT_ASSESSED exactly when detail is absent")
        return self

    @classmethod
    def assessed(
        cls, region: HazardRegion, detail: RiskDetail, level: RiskLevel
    ) -> "AnalyzedHazard":
        return cls(region=region, detail=detail, risk_level=level)

    @classmethod
    def not_assessed(cls, region: HazardRegion) -> "AnalyzedHazard":
        return cls(region=region, detail=None, risk_level=RiskLevel.NOT_ASSESSED)


class AssessmentRecord(BaseModel):
    """One persisted unit of assessment history"""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    timestamp: int = Field(description="Creation time in epoch milliseconds")
    image_name: str
    image_data: str = Field(description="Image as a data URL")
    title: str
    hazards: List[AnalyzedHazard] = Field(default_factory=list)
    model_id: Optional[str] = None


# ============================================================================
# Orchestration and API models
# ============================================================================


class OutcomeKind(str, Enum):
    """How the assessment shown to the user came about"""

    ASSESSED = "ASSESSED"
    EMPTY_RESULT = "EMPTY_RESULT"
    LOADED_FROM_HISTORY = "LOADED_FROM_HISTORY"


class RunState(str, Enum):
    IDLE = "IDLE"
    DETECTING = "DETECTING"
    EMPTY_RESULT = "EMPTY_RESULT"
    DETAIL_FETCHING = "DETAIL_FETCHING"
    ASSEMBLING = "ASSEMBLING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class RunStatus(BaseModel):
    """Progress of the most recent analysis run"""

    state: RunState = RunState.IDLE
    run_id: Optional[str] = None
    image_name: Optional[str] = None
    message: str = ""
    hazard_count: int = 0
    record_id: Optional[str] = None
    error: Optional[str] = None


class RiskSummary(BaseModel):
    """Counts per risk level for the summary panel"""

    total: int
    counts: Dict[str, int] = Field(description="Hazard count per risk level")
    highest_level: Optional[RiskLevel] = None
    sorted_hazard_ids: List[str] = Field(default_factory=list)


class AssessmentOutcome(BaseModel):
    kind: OutcomeKind
    record: AssessmentRecord
    reused: bool = Field(
        default=False, description="True when an existing record was returned"
    )


class AssessmentResponse(BaseModel):
    """Assessment response for the API"""

    kind: OutcomeKind
    reused: bool = False
    record: AssessmentRecord
    summary: RiskSummary


class HistoryEntry(BaseModel):
    """History listing row (without image data)"""

    model_config = ConfigDict(protected_namespaces=())

    id: str
    timestamp: int
    image_name: str
    title: str
    hazard_count: int
    model_id: Optional[str] = None


class ModelCatalog(BaseModel):
    models: List[str]
    default: str
