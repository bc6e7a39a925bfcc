"""Risk snapshot models: the merged, citation-backed report for one address."""
from enum import Enum
from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field

from parcelcheck.models.base import DomainModel
from parcelcheck.models.status import RiskStatus
from parcelcheck.models.wastewater import CostRange, WastewaterAssessment
from parcelcheck.models.zoning import Citation, Coordinates


class RiskCategory(DomainModel):
    label: str
    status: RiskStatus
    summary: str
    details: Optional[str] = None


class RuleCheckResult(DomainModel):
    """A validation check flattened for presentation."""
    id: str
    name: str
    category: str = Field(..., description="zoning | dimensional | lot | use")
    rule_type: str
    structure_id: Optional[str] = None
    required: Optional[Union[float, str]] = None
    measured: Optional[Union[float, str]] = None
    unit: str = ""
    status: RiskStatus
    margin: Optional[float] = None
    excess: Optional[float] = None
    citation: str
    citation_text: Optional[str] = None
    reason: Optional[str] = None


class FlagType(str, Enum):
    FLOOD = "flood"
    WETLAND = "wetland"
    SLOPE = "slope"
    BUFFER = "buffer"
    HAZARD = "hazard"


class EnvironmentalFlag(DomainModel):
    id: str
    type: FlagType
    label: str
    status: RiskStatus
    description: str
    action: Optional[str] = None
    citations: List[Citation] = Field(default_factory=list)


class SewerSummary(DomainModel):
    available: bool
    required: bool
    provider_name: Optional[str] = None
    distance_to_main: Optional[float] = None
    hookup_cost: Optional[float] = None
    status: RiskStatus
    summary: str


class SepticIssueSummary(DomainModel):
    title: str
    severity: str
    description: str


class SepticSummary(DomainModel):
    required: bool
    feasibility: str
    soil_suitability: str
    soil_name: str
    system_type: str
    cost_range: CostRange
    status: RiskStatus
    summary: str
    issues: List[SepticIssueSummary] = Field(default_factory=list)


class UtilityResult(DomainModel):
    sewer: SewerSummary
    septic: SepticSummary


class SnapshotDataGap(DomainModel):
    field: str
    description: str
    next_step: str


class DataSourceNote(DomainModel):
    name: str
    type: str
    confidence: str


class ParcelArea(DomainModel):
    sqft: float
    acres: float


class SnapshotResult(DomainModel):
    """Everything a buyer needs to judge an address at a glance."""
    id: str
    address: str
    city: str
    state: str
    county: str
    zoning_district: str
    zoning_category: str
    jurisdiction_name: str
    centroid: Coordinates
    parcel_area: ParcelArea
    lot_width: float
    lot_depth: float

    overall_status: RiskStatus
    overall_summary: str

    buildability: RiskCategory
    utilities: RiskCategory
    environmental: RiskCategory

    rule_checks: List[RuleCheckResult] = Field(default_factory=list)
    utility_result: UtilityResult
    wastewater: WastewaterAssessment
    environmental_flags: List[EnvironmentalFlag] = Field(default_factory=list)

    data_gaps: List[SnapshotDataGap] = Field(default_factory=list)
    data_sources: List[DataSourceNote] = Field(default_factory=list)
    citations: List[Citation] = Field(default_factory=list)
    generated_at: Optional[datetime] = None


class StatusOnly(DomainModel):
    status: RiskStatus


class SnapshotPreview(DomainModel):
    """Redacted snapshot: headline statuses only, no details or citations."""
    preview: bool = True
    address: str
    city: str
    county: str
    zoning_district: str
    overall_status: RiskStatus
    buildability: StatusOnly
    utilities: StatusOnly
    environmental: StatusOnly


class ActionStatus(str, Enum):
    ALLOWED = "ALLOWED"
    CONDITIONAL = "CONDITIONAL"
    RESTRICTED = "RESTRICTED"
    UNKNOWN = "UNKNOWN"


class ActionCategory(str, Enum):
    RESIDENTIAL = "residential"
    ACCESSORY = "accessory"
    LOT = "lot"
    UTILITIES = "utilities"
    ENVIRONMENTAL = "environmental"
    PERMITS = "permits"


class ActionCitation(DomainModel):
    label: str
    source: str


class ActionItem(DomainModel):
    """One "can I do X?" answer derived from a snapshot."""
    id: str
    category: ActionCategory
    action_name: str
    status: ActionStatus
    confidence: str = Field(..., description="HIGH | MEDIUM | LOW")
    summary: str
    conditions: List[str] = Field(default_factory=list)
    blocking_factors: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    citations: List[ActionCitation] = Field(default_factory=list)
    data_gaps: List[str] = Field(default_factory=list)
