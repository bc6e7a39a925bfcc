"""Wastewater assessor - sewer availability and on-site septic feasibility.

Feasibility starts at ``feasible`` and is only ever degraded by the checks
below, applied in a fixed order. Every issue carries a citation.
"""
import math
from typing import List, Optional, Sequence

from parcelcheck.config import Settings, settings
from parcelcheck.models.wastewater import (
    SUITABILITY_ORDER,
    CostRange,
    IssueCategory,
    IssueSeverity,
    SepticFeasibility,
    SepticSetback,
    SepticSuitability,
    SepticSystemType,
    SewerServiceArea,
    SoilData,
    SystemSuitability,
    WastewaterAssessment,
    WastewaterIssue,
    degrade,
)
from parcelcheck.models.zoning import Citation, PropertyRecord
from parcelcheck.services.data_sources import (
    CoordinateSeededSewerSource,
    CoordinateSeededSoilSource,
    SewerSource,
    SoilSource,
)
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)

# Lot area assumed when the parcel record has none
DEFAULT_LOT_SQFT = 10000
DEFAULT_HOOKUP_COST = 5000
HOOKUP_COST_SPREAD = 10000

# Water table / restrictive layer depth (inches) below which gravity drainfields give way to mounds
MOUND_DEPTH_IN = 48
PRESSURE_MIN_LOT_SQFT = 10000

ONSITE_CODE = "WAC 246-272A"
HEALTH_CODE = "Local Health Code"
SOIL_SURVEY = "NRCS Web Soil Survey"

REQUIRED_SETBACKS = (
    SepticSetback(from_="Property line", distance=10, type="both"),
    SepticSetback(from_="Well", distance=100, type="drainfield"),
    SepticSetback(from_="Well", distance=50, type="tank"),
    SepticSetback(from_="Building foundation", distance=10, type="tank"),
    SepticSetback(from_="Building foundation", distance=20, type="drainfield"),
    SepticSetback(from_="Surface water", distance=100, type="drainfield"),
    SepticSetback(from_="Steep slope (>40%)", distance=50, type="drainfield"),
)

BASE_RECOMMENDATIONS = (
    "Schedule site evaluation with licensed designer",
    "Conduct perc test to verify soil percolation rate",
    "Verify setbacks from wells, water bodies, and property lines",
)
MARGINAL_SITE_RECOMMENDATIONS = (
    "Consider pre-application meeting with health department",
    "Budget for potential alternative system requirements",
)
SEPTIC_PERMITS = (
    "On-site sewage system permit (health department)",
    "Perc test conducted by licensed professional",
    "Site plan showing setbacks and system location",
    "Designer's certification (for alternative systems)",
)


def _soil_citation(soil: Optional[SoilData]) -> Citation:
    return Citation(source=SOIL_SURVEY, section=soil.mukey if soil else None)


def _issue(issue_id: str, severity: IssueSeverity, category: IssueCategory, title: str,
           description: str, impact: str, citation: Citation,
           mitigation: Optional[str] = None) -> WastewaterIssue:
    return WastewaterIssue(
        id=issue_id,
        severity=severity,
        category=category,
        title=title,
        description=description,
        impact=impact,
        mitigation=mitigation,
        citations=[citation],
    )


def _fmt(value: float) -> str:
    """Thousands-separated number without a trailing .0."""
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,}"


def recommended_systems(soil: SoilData, lot_sqft: float) -> List[SepticSystemType]:
    """Candidate system types for the soil and lot, best suited first.

    The sort is stable, so systems of equal suitability keep catalog order.
    """
    suitability = soil.septic_suitability
    systems: List[SepticSystemType] = []

    if suitability == SepticSuitability.WELL_SUITED and soil.depth_to_water_table_min >= MOUND_DEPTH_IN:
        systems.append(SepticSystemType(
            name="Conventional Gravity System",
            code="TYPE-1",
            description="Standard septic tank with gravity-fed drainfield trenches.",
            suitability=SystemSuitability.RECOMMENDED,
            cost_range=CostRange(min=15000, max=25000),
            area_required=1500,
            maintenance_level="low",
        ))

    if suitability != SepticSuitability.VERY_LIMITED and lot_sqft >= PRESSURE_MIN_LOT_SQFT:
        systems.append(SepticSystemType(
            name="Pressure Distribution System",
            code="TYPE-2",
            description="Pump-dosed even distribution for better treatment in marginal soils.",
            suitability=(SystemSuitability.ACCEPTABLE if suitability == SepticSuitability.WELL_SUITED
                         else SystemSuitability.RECOMMENDED),
            cost_range=CostRange(min=20000, max=35000),
            area_required=1200,
            maintenance_level="medium",
        ))

    if soil.depth_to_water_table_min < MOUND_DEPTH_IN or soil.depth_to_restrictive_layer < MOUND_DEPTH_IN:
        systems.append(SepticSystemType(
            name="Mound System",
            code="TYPE-3",
            description="Raised drainfield for sites with high water table or restrictive layer.",
            suitability=SystemSuitability.RECOMMENDED,
            cost_range=CostRange(min=25000, max=45000),
            area_required=2500,
            maintenance_level="medium",
        ))

    if suitability in (SepticSuitability.VERY_LIMITED, SepticSuitability.SOMEWHAT_LIMITED):
        systems.append(SepticSystemType(
            name="Sand Filter System",
            code="TYPE-4",
            description="Engineered treatment for poor soil conditions.",
            suitability=(SystemSuitability.RECOMMENDED if suitability == SepticSuitability.VERY_LIMITED
                         else SystemSuitability.ACCEPTABLE),
            cost_range=CostRange(min=30000, max=50000),
            area_required=800,
            maintenance_level="high",
        ))

    systems.append(SepticSystemType(
        name="Aerobic Treatment Unit (ATU)",
        code="TYPE-5",
        description="Advanced treatment for challenging sites or enhanced effluent quality.",
        suitability=(SystemSuitability.RECOMMENDED if lot_sqft < PRESSURE_MIN_LOT_SQFT
                     else SystemSuitability.ACCEPTABLE),
        cost_range=CostRange(min=18000, max=30000),
        area_required=400,
        maintenance_level="high",
    ))

    return sorted(systems, key=lambda s: SUITABILITY_ORDER[s.suitability])


def estimate_cost(
    systems: Sequence[SepticSystemType],
    feasibility: SepticFeasibility,
    thresholds: Settings = settings,
) -> CostRange:
    """Cost span of the recommended systems (all systems if none is recommended).

    Challenging and conditional sites carry a contingency multiplier. Results
    are rounded half-up to whole dollars.
    """
    if not systems:
        return CostRange(min=0, max=0)

    recommended = [s for s in systems if s.suitability == SystemSuitability.RECOMMENDED]
    pool = recommended or list(systems)

    low = min(s.cost_range.min for s in pool)
    high = max(s.cost_range.max for s in pool)

    if feasibility == SepticFeasibility.CHALLENGING:
        multiplier = thresholds.septic_contingency_challenging
    elif feasibility == SepticFeasibility.CONDITIONAL:
        multiplier = thresholds.septic_contingency_conditional
    else:
        multiplier = 1.0

    return CostRange(min=math.floor(low * multiplier + 0.5), max=math.floor(high * multiplier + 0.5))


class WastewaterAssessor:
    """Decides between sewer hookup and on-site septic for a parcel."""

    def __init__(
        self,
        soil_source: Optional[SoilSource] = None,
        sewer_source: Optional[SewerSource] = None,
        thresholds: Settings = settings,
    ):
        self.soil_source = soil_source or CoordinateSeededSoilSource()
        self.sewer_source = sewer_source or CoordinateSeededSewerSource()
        self.thresholds = thresholds

    def assess(self, parcel: PropertyRecord) -> WastewaterAssessment:
        """Resolve soil and sewer for the parcel centroid, then evaluate."""
        sewer = self.sewer_source.sewer_at(parcel.centroid)
        soil = self.soil_source.soil_at(parcel.centroid)
        return self.evaluate(parcel, soil, sewer)

    def evaluate(
        self,
        parcel: PropertyRecord,
        soil: Optional[SoilData],
        sewer: Optional[SewerServiceArea],
    ) -> WastewaterAssessment:
        """Pure assessment over already-resolved soil and sewer data.

        Args:
            parcel: Parcel record (only lot area is read)
            soil: Soil map unit at the centroid, or None when unmapped
            sewer: Sewer service area covering the centroid, or None

        Returns:
            WastewaterAssessment
        """
        sewer_available = sewer is not None and sewer.connection_available
        sewer_required = sewer is not None and sewer.connection_required

        if sewer_available and sewer_required:
            return self._sewer_connection(soil, sewer)

        t = self.thresholds
        lot_sqft = parcel.area_sqft or DEFAULT_LOT_SQFT
        feasibility = SepticFeasibility.FEASIBLE
        issues: List[WastewaterIssue] = []

        if lot_sqft < t.septic_min_lot_sqft:
            feasibility = degrade(feasibility, SepticFeasibility.NOT_FEASIBLE)
            issues.append(_issue(
                "lot-too-small", IssueSeverity.CRITICAL, IssueCategory.LOT_SIZE,
                "Insufficient Lot Size",
                f"Lot is {_fmt(lot_sqft)} sqft. Minimum {_fmt(t.septic_min_lot_sqft)} sqft required.",
                "Standard septic system cannot be installed.",
                Citation(source=ONSITE_CODE, section="Minimum Land Area"),
                mitigation="Consider alternative systems or lot combination.",
            ))

        if soil is None:
            if feasibility != SepticFeasibility.NOT_FEASIBLE:
                feasibility = SepticFeasibility.UNKNOWN
            issues.append(_issue(
                "soil-data-missing", IssueSeverity.INFO, IssueCategory.SOIL,
                "Soil Data Unavailable",
                "No mapped soil unit was found for this parcel.",
                "Septic feasibility cannot be determined without soil data.",
                _soil_citation(None),
                mitigation="Commission a soil log and perc test.",
            ))
        else:
            feasibility = self._soil_checks(soil, feasibility, issues)

        systems = recommended_systems(soil, lot_sqft) if soil is not None else []
        estimated_cost = estimate_cost(systems, feasibility, t)

        recommendations = list(BASE_RECOMMENDATIONS)
        if feasibility in (SepticFeasibility.CONDITIONAL, SepticFeasibility.CHALLENGING):
            recommendations.extend(MARGINAL_SITE_RECOMMENDATIONS)
        if soil is None:
            recommendations.append("Request a soil log from a licensed designer before purchase")

        citations = [
            Citation(source=ONSITE_CODE, section="On-Site Sewage Systems"),
            Citation(source=HEALTH_CODE, section="Sewage Disposal"),
        ]
        if soil is not None:
            citations.append(_soil_citation(soil))

        logger.info("Wastewater assessed",
                    property_id=parcel.id,
                    sewer_available=sewer_available,
                    septic_feasibility=feasibility.value,
                    issue_count=len(issues))

        return WastewaterAssessment(
            sewer_available=sewer_available,
            sewer_required=sewer_required,
            sewer_service=sewer,
            septic_required=not sewer_available,
            septic_feasibility=feasibility,
            soil_data=soil,
            system_types=systems,
            estimated_cost=estimated_cost,
            required_setbacks=list(REQUIRED_SETBACKS),
            minimum_lot_size=t.septic_min_lot_sqft,
            issues=issues,
            recommendations=recommendations,
            permit_requirements=list(SEPTIC_PERMITS),
            citations=citations,
        )

    def _soil_checks(
        self,
        soil: SoilData,
        feasibility: SepticFeasibility,
        issues: List[WastewaterIssue],
    ) -> SepticFeasibility:
        """Apply the soil, water table and slope checks in order. Appends to ``issues``."""
        t = self.thresholds
        soil_citation = _soil_citation(soil)

        if soil.is_hydric:
            feasibility = degrade(feasibility, SepticFeasibility.NOT_FEASIBLE)
            issues.append(_issue(
                "hydric-soil", IssueSeverity.CRITICAL, IssueCategory.ENVIRONMENTAL,
                "Hydric Soils Present",
                "Site contains hydric (wetland) soils.",
                "Septic systems prohibited in wetland areas.",
                soil_citation,
                mitigation="Delineate wetland boundary, locate system in upland area.",
            ))

        if soil.septic_suitability == SepticSuitability.VERY_LIMITED:
            feasibility = degrade(feasibility, SepticFeasibility.CHALLENGING)
            issues.append(_issue(
                "poor-soil", IssueSeverity.MAJOR, IssueCategory.SOIL,
                "Poor Soil Suitability",
                f"Soil type {soil.musym} ({soil.muname}) has limited septic suitability.",
                "Alternative system type may be required.",
                soil_citation,
                mitigation="Engineered system design, possible mound or sand filter.",
            ))
        elif soil.septic_suitability == SepticSuitability.SOMEWHAT_LIMITED:
            feasibility = degrade(feasibility, SepticFeasibility.CONDITIONAL)
            limitations = ", ".join(soil.septic_limitations) or "unspecified"
            issues.append(_issue(
                "limited-soil", IssueSeverity.MINOR, IssueCategory.SOIL,
                "Soil Limitations Present",
                f"Soil has some limitations: {limitations}.",
                "May require modified system design.",
                soil_citation,
            ))

        if soil.depth_to_water_table_min < t.septic_min_water_table_in:
            feasibility = degrade(feasibility, SepticFeasibility.CONDITIONAL)
            issues.append(_issue(
                "high-water-table", IssueSeverity.MAJOR, IssueCategory.WATER_TABLE,
                "High Water Table",
                f"Seasonal high water table at {soil.depth_to_water_table_min:g} inches.",
                "Mound or pressure distribution system may be required.",
                Citation(source=ONSITE_CODE, section="Vertical Separation"),
                mitigation="Raised drainfield or alternative system design.",
            ))

        if soil.slope_high > t.septic_steep_slope_pct:
            feasibility = degrade(feasibility, SepticFeasibility.CHALLENGING)
            issues.append(_issue(
                "steep-slope", IssueSeverity.MAJOR, IssueCategory.SLOPE,
                "Steep Slope",
                f"Slopes up to {soil.slope_high:g}% present on site.",
                "Drainfield placement limited, erosion risk.",
                soil_citation,
                mitigation="Pressure distribution system, careful site selection.",
            ))
        elif soil.slope_high > t.septic_moderate_slope_pct:
            issues.append(_issue(
                "moderate-slope", IssueSeverity.MINOR, IssueCategory.SLOPE,
                "Moderate Slope",
                f"Slopes up to {soil.slope_high:g}% may affect drainfield layout.",
                "Site evaluation needed for optimal placement.",
                soil_citation,
            ))

        return feasibility

    @staticmethod
    def _sewer_connection(soil: Optional[SoilData], sewer: SewerServiceArea) -> WastewaterAssessment:
        """Sewer is both required and available: septic is off the table."""
        hookup = sewer.hookup_cost or DEFAULT_HOOKUP_COST
        logger.info("Sewer connection required", provider=sewer.provider_name)
        return WastewaterAssessment(
            sewer_available=True,
            sewer_required=True,
            sewer_service=sewer,
            septic_required=False,
            septic_feasibility=SepticFeasibility.NOT_FEASIBLE,
            soil_data=soil,
            system_types=[],
            estimated_cost=CostRange(min=hookup, max=hookup + HOOKUP_COST_SPREAD),
            required_setbacks=[],
            minimum_lot_size=0,
            issues=[_issue(
                "sewer-required", IssueSeverity.INFO, IssueCategory.ENVIRONMENTAL,
                "Sewer Connection Required",
                f"Property is within {sewer.provider_name} service area.",
                "On-site septic system is not permitted.",
                Citation(source=HEALTH_CODE, section="Connection Requirement"),
            )],
            recommendations=[
                "Contact sewer provider for connection requirements",
                "Obtain sewer connection permit before building permit",
            ],
            permit_requirements=[
                "Sewer connection permit from provider",
                "Side sewer installation permit",
            ],
            citations=[Citation(source=HEALTH_CODE, section="Connection Requirement")],
        )


# Global singleton instance
_wastewater_assessor: Optional[WastewaterAssessor] = None


def get_wastewater_assessor() -> WastewaterAssessor:
    """Get the global wastewater assessor instance.

    Returns:
        WastewaterAssessor over the default soil and sewer sources
    """
    global _wastewater_assessor
    if _wastewater_assessor is None:
        _wastewater_assessor = WastewaterAssessor()
    return _wastewater_assessor
