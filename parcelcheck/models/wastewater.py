"""Soil, sewer and septic models for the wastewater assessor."""
from enum import Enum
from typing import List, Optional

from pydantic import Field

from parcelcheck.models.base import DomainModel
from parcelcheck.models.zoning import Citation


class SepticSuitability(str, Enum):
    WELL_SUITED = "well_suited"
    SOMEWHAT_LIMITED = "somewhat_limited"
    VERY_LIMITED = "very_limited"
    NOT_RATED = "not_rated"


class DrainageClass(str, Enum):
    EXCESSIVELY_DRAINED = "excessively_drained"
    WELL_DRAINED = "well_drained"
    MODERATELY_WELL_DRAINED = "moderately_well_drained"
    SOMEWHAT_POORLY_DRAINED = "somewhat_poorly_drained"
    POORLY_DRAINED = "poorly_drained"
    VERY_POORLY_DRAINED = "very_poorly_drained"


class HydricRating(str, Enum):
    HYDRIC = "hydric"
    PREDOMINANTLY_HYDRIC = "predominantly_hydric"
    PARTIALLY_HYDRIC = "partially_hydric"
    NOT_HYDRIC = "not_hydric"


class SepticFeasibility(str, Enum):
    """Septic verdict. Apart from UNKNOWN, values are ordered best to worst."""
    FEASIBLE = "feasible"
    CONDITIONAL = "conditional"
    CHALLENGING = "challenging"
    NOT_FEASIBLE = "not_feasible"
    UNKNOWN = "unknown"


FEASIBILITY_ORDER = {
    SepticFeasibility.FEASIBLE: 0,
    SepticFeasibility.CONDITIONAL: 1,
    SepticFeasibility.CHALLENGING: 2,
    SepticFeasibility.NOT_FEASIBLE: 3,
}


def degrade(current: SepticFeasibility, floor: SepticFeasibility) -> SepticFeasibility:
    """Move ``current`` down to ``floor`` if ``floor`` is worse; never improve it."""
    if current == SepticFeasibility.UNKNOWN:
        return SepticFeasibility.NOT_FEASIBLE if floor == SepticFeasibility.NOT_FEASIBLE else current
    if FEASIBILITY_ORDER[floor] > FEASIBILITY_ORDER[current]:
        return floor
    return current


class SystemSuitability(str, Enum):
    RECOMMENDED = "recommended"
    ACCEPTABLE = "acceptable"
    NOT_RECOMMENDED = "not_recommended"


SUITABILITY_ORDER = {
    SystemSuitability.RECOMMENDED: 0,
    SystemSuitability.ACCEPTABLE: 1,
    SystemSuitability.NOT_RECOMMENDED: 2,
}


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"


class IssueCategory(str, Enum):
    SOIL = "soil"
    WATER_TABLE = "water_table"
    SLOPE = "slope"
    SETBACK = "setback"
    LOT_SIZE = "lot_size"
    ENVIRONMENTAL = "environmental"


class SoilData(DomainModel):
    """A soil map unit sample for the parcel centroid."""
    mukey: str
    musym: str = ""
    muname: str = ""
    septic_suitability: SepticSuitability
    septic_limitations: List[str] = Field(default_factory=list)
    drainage_class: DrainageClass = DrainageClass.WELL_DRAINED
    hydric_rating: HydricRating = HydricRating.NOT_HYDRIC
    depth_to_water_table_min: float = Field(..., description="inches")
    depth_to_restrictive_layer: float = Field(..., description="inches")
    slope_low: float = Field(0, description="percent")
    slope_high: float = Field(0, description="percent")
    perc_rate: Optional[float] = Field(None, description="minutes per inch, from a perc test")

    @property
    def is_hydric(self) -> bool:
        return self.hydric_rating in (HydricRating.HYDRIC, HydricRating.PREDOMINANTLY_HYDRIC)


class SewerServiceArea(DomainModel):
    provider_name: str
    provider_type: str = Field("municipal", description="municipal | utility_district | private")
    connection_required: bool
    connection_available: bool
    distance_to_main: Optional[float] = Field(None, description="feet")
    hookup_cost: Optional[float] = None
    monthly_rate: Optional[float] = None


class CostRange(DomainModel):
    min: float
    max: float


class SepticSystemType(DomainModel):
    name: str
    code: str
    description: str
    suitability: SystemSuitability
    cost_range: CostRange
    area_required: float = Field(..., description="sqft")
    maintenance_level: str = Field(..., description="low | medium | high")


class SepticSetback(DomainModel):
    from_: str = Field(..., alias="from")
    distance: float
    unit: str = "feet"
    type: str = Field(..., description="tank | drainfield | both")


class WastewaterIssue(DomainModel):
    id: str
    severity: IssueSeverity
    category: IssueCategory
    title: str
    description: str
    impact: str
    mitigation: Optional[str] = None
    citations: List[Citation] = Field(..., min_length=1)


class WastewaterAssessment(DomainModel):
    """Sewer availability plus the septic verdict and what it would take."""
    sewer_available: bool
    sewer_required: bool
    sewer_service: Optional[SewerServiceArea] = None
    septic_required: bool
    septic_feasibility: SepticFeasibility
    soil_data: Optional[SoilData] = None
    system_types: List[SepticSystemType] = Field(default_factory=list)
    estimated_cost: CostRange
    required_setbacks: List[SepticSetback] = Field(default_factory=list)
    minimum_lot_size: float = 0
    issues: List[WastewaterIssue] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    permit_requirements: List[str] = Field(default_factory=list)
    citations: List[Citation] = Field(default_factory=list)
