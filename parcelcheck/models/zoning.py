"""Zoning, parcel and structure models consumed and produced by the dimensional validator."""
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import Field

from parcelcheck.models.base import DomainModel
from parcelcheck.models.status import RiskStatus


class RuleType(str, Enum):
    """Kinds of jurisdiction rule the catalog can hold."""
    SETBACK_FRONT = "setback_front"
    SETBACK_SIDE = "setback_side"
    SETBACK_REAR = "setback_rear"
    SETBACK_STREET_SIDE = "setback_street_side"
    HEIGHT_MAX = "height_max"
    HEIGHT_MAX_ACCESSORY = "height_max_accessory"
    LOT_COVERAGE_MAX = "lot_coverage_max"
    IMPERVIOUS_COVERAGE_MAX = "impervious_coverage_max"
    FAR_MAX = "far_max"
    FAR_MIN = "far_min"
    LOT_SIZE_MIN = "lot_size_min"
    LOT_WIDTH_MIN = "lot_width_min"
    LOT_DEPTH_MIN = "lot_depth_min"
    DWELLING_UNITS_MAX = "dwelling_units_max"
    DENSITY_MAX = "density_max"
    USE_PERMITTED = "use_permitted"
    USE_CONDITIONAL = "use_conditional"
    USE_PROHIBITED = "use_prohibited"
    PARKING_REQUIRED = "parking_required"
    ADU_ALLOWED = "adu_allowed"
    ADU_SIZE_MAX = "adu_size_max"
    ADU_SETBACK = "adu_setback"
    STRUCTURE_SEPARATION = "structure_separation"
    ACCESSORY_SETBACK = "accessory_setback"


class StructureType(str, Enum):
    """Structure tags a rule can apply to."""
    PRIMARY_DWELLING = "primary_dwelling"
    ADU = "adu"
    DADU = "dadu"
    GARAGE = "garage"
    CARPORT = "carport"
    SHOP = "shop"
    BARN = "barn"
    POOL = "pool"
    DECK = "deck"
    PATIO = "patio"
    SHED = "shed"
    OTHER = "other"


ADU_TYPES = (StructureType.ADU, StructureType.DADU)


RULE_LABELS: Dict[RuleType, str] = {
    RuleType.SETBACK_FRONT: "Front Setback",
    RuleType.SETBACK_SIDE: "Side Setback",
    RuleType.SETBACK_REAR: "Rear Setback",
    RuleType.SETBACK_STREET_SIDE: "Street-Side Setback",
    RuleType.HEIGHT_MAX: "Max Building Height",
    RuleType.HEIGHT_MAX_ACCESSORY: "Accessory Height Limit",
    RuleType.LOT_COVERAGE_MAX: "Max Lot Coverage",
    RuleType.IMPERVIOUS_COVERAGE_MAX: "Impervious Coverage",
    RuleType.FAR_MAX: "Floor Area Ratio (FAR)",
    RuleType.FAR_MIN: "Minimum FAR",
    RuleType.LOT_SIZE_MIN: "Minimum Lot Size",
    RuleType.LOT_WIDTH_MIN: "Minimum Lot Width",
    RuleType.LOT_DEPTH_MIN: "Minimum Lot Depth",
    RuleType.DWELLING_UNITS_MAX: "Maximum Dwelling Units",
    RuleType.DENSITY_MAX: "Maximum Density",
    RuleType.USE_PERMITTED: "Permitted Use",
    RuleType.USE_CONDITIONAL: "Conditional Use",
    RuleType.USE_PROHIBITED: "Prohibited Use",
    RuleType.PARKING_REQUIRED: "Required Parking",
    RuleType.ADU_ALLOWED: "ADU Permitted",
    RuleType.ADU_SIZE_MAX: "Max ADU Size",
    RuleType.ADU_SETBACK: "ADU Setback",
    RuleType.STRUCTURE_SEPARATION: "Structure Separation",
    RuleType.ACCESSORY_SETBACK: "Accessory Setback",
}


def rule_label(rule_type: RuleType) -> str:
    """Human-readable label for a rule type."""
    return RULE_LABELS.get(rule_type, str(getattr(rule_type, "value", rule_type)))


class Citation(DomainModel):
    """Where a finding comes from."""
    source: str = Field(..., description="Issuing body or code (e.g. 'County Zoning Code')")
    section: Optional[str] = Field(None, description="Section reference (e.g. 'SCC 30.23.050')")
    text: Optional[str] = Field(None, description="Full ordinance text")
    url: Optional[str] = None


class ZoningRule(DomainModel):
    """A single jurisdiction rule. Owned by a RuleCatalog, never mutated."""
    id: str
    jurisdiction_id: str
    district_id: Optional[str] = Field(None, description="None means every district of the jurisdiction")
    rule_type: RuleType
    applies_to: Tuple[StructureType, ...] = ()
    value_numeric: Optional[float] = None
    value_text: Optional[str] = None
    unit: Optional[str] = None
    ordinance_section: str
    ordinance_text: Optional[str] = None
    source: str = "County Zoning Code"

    def applies(self, structure_type: StructureType) -> bool:
        return structure_type in self.applies_to

    def citation(self) -> Citation:
        return Citation(source=self.source, section=self.ordinance_section, text=self.ordinance_text)


class Coordinates(DomainModel):
    lat: float
    lng: float


class Jurisdiction(DomainModel):
    id: str
    name: str
    type: str = "county"
    state_code: str
    data_quality: str = Field("unknown", description="verified | partial | unknown")


class ZoningDistrict(DomainModel):
    id: str
    jurisdiction_id: str
    code: str
    name: str
    category: str = "residential_single"


class DataProvenance(DomainModel):
    """Where an input came from and how far to trust it."""
    dataset: str = Field(..., description="parcel | zoning | soil | sewer | environmental")
    source_name: str
    source_type: str = Field("derived", description="GIS | ordinance | utility_map | derived")
    confidence: str = Field("low", description="high | medium | low")
    estimated: bool = False


class PropertyRecord(DomainModel):
    """A resolved parcel. Area, width and depth arrive pre-computed."""
    id: str
    address: str
    city: str
    state: str
    county: Optional[str] = None
    centroid: Coordinates
    area_sqft: Optional[float] = None
    area_acres: Optional[float] = None
    lot_width: Optional[float] = None
    lot_depth: Optional[float] = None
    jurisdiction: Optional[Jurisdiction] = None
    zoning_district: Optional[ZoningDistrict] = None
    data_sources: List[DataProvenance] = Field(default_factory=list)

    @property
    def jurisdiction_id(self) -> Optional[str]:
        return self.jurisdiction.id if self.jurisdiction else None

    @property
    def district_id(self) -> Optional[str]:
        return self.zoning_district.id if self.zoning_district else None

    @property
    def has_estimated_inputs(self) -> bool:
        return any(s.estimated or s.confidence == "low" for s in self.data_sources)


class Structure(DomainModel):
    """A proposed or existing structure with its measured distances."""
    id: str
    structure_type: StructureType
    label: Optional[str] = None
    footprint_sqft: Optional[float] = Field(None, ge=0)
    height_feet: Optional[float] = Field(None, ge=0)
    stories: Optional[int] = Field(None, ge=1)
    bedrooms: Optional[int] = None
    distance_to_front: Optional[float] = None
    distance_to_side: Optional[float] = None
    distance_to_rear: Optional[float] = None
    distance_to_street_side: Optional[float] = None
    distance_to_other_structures: Dict[str, float] = Field(
        default_factory=dict, description="Neighbor structure id -> separation in feet"
    )


class ValidationCheck(DomainModel):
    """Outcome of one rule against one structure (or against the lot)."""
    check_id: str
    rule_id: str
    rule_type: RuleType
    structure_id: Optional[str] = None
    neighbor_id: Optional[str] = None
    status: RiskStatus
    measured_value: Optional[float] = None
    required_value: Optional[float] = None
    unit: Optional[str] = None
    margin: Optional[float] = Field(None, description="Only when passing")
    excess: Optional[float] = Field(None, description="Only when failing")
    reason: Optional[str] = None
    citations: List[Citation] = Field(..., min_length=1)


class DataGap(DomainModel):
    id: str
    type: str = Field(..., description="missing_rule | missing_data | stale_data | low_confidence")
    description: str
    impact: str
    suggested_action: str


class ValidationSummary(DomainModel):
    passing_checks: int
    warning_checks: int
    failing_checks: int
    unknown_checks: int
    total_checks: int
    critical_issues: List[str] = Field(default_factory=list)
    verification_needed: List[str] = Field(default_factory=list)


class ValidationResult(DomainModel):
    """Every check produced for a lot and its structures."""
    id: str
    project_id: str
    overall_status: RiskStatus
    checks: List[ValidationCheck] = Field(default_factory=list)
    data_gaps: List[DataGap] = Field(default_factory=list)
    summary: ValidationSummary


class QuickValidation(DomainModel):
    """Real-time feedback for a structure being drawn."""
    valid: bool
    issues: List[str] = Field(default_factory=list)
