"""Snapshot aggregator - merges zoning, wastewater and environmental findings for one address.

The snapshot is a pure function of the address and the injected sources: the
same address always serialises to the same bytes unless a clock is injected
to stamp ``generated_at``.
"""
import hashlib
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from parcelcheck.config import Settings, settings
from parcelcheck.models.snapshot import (
    DataSourceNote,
    EnvironmentalFlag,
    ParcelArea,
    RiskCategory,
    RuleCheckResult,
    SepticIssueSummary,
    SepticSummary,
    SewerSummary,
    SnapshotDataGap,
    SnapshotPreview,
    SnapshotResult,
    StatusOnly,
    UtilityResult,
)
from parcelcheck.models.status import RiskStatus, worst_of
from parcelcheck.models.wastewater import SepticFeasibility, WastewaterAssessment
from parcelcheck.models.zoning import (
    Citation,
    DataGap,
    PropertyRecord,
    RuleType,
    Structure,
    StructureType,
    ValidationCheck,
    rule_label,
)
from parcelcheck.services.data_sources import (
    SQFT_PER_ACRE,
    AddressSeededParcelSource,
    ParcelSource,
    address_seed,
    fraction,
)
from parcelcheck.services.dimensional_validator import DimensionalValidator
from parcelcheck.services.environmental_flags import generate_environmental_flags
from parcelcheck.services.wastewater_assessor import DEFAULT_LOT_SQFT, WastewaterAssessor
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LOT_WIDTH = 75
DEFAULT_LOT_DEPTH = 120
UNKNOWN = "Unknown"

# Validation gap type -> snapshot data gap field
GAP_FIELDS = {
    "missing_rule": "Zoning Rules",
    "missing_data": "Lot Area",
}

# Typical new single-family home placed on every snapshot lot
REFERENCE_DWELLING = Structure(
    id="reference-primary",
    structure_type=StructureType.PRIMARY_DWELLING,
    label="Primary Dwelling",
    footprint_sqft=1800,
    height_feet=28,
    stories=2,
    bedrooms=3,
    distance_to_front=24.6,
    distance_to_side=12.3,
    distance_to_rear=35.1,
)

REFERENCE_DATA_SOURCES = (
    DataSourceNote(name="USDA Web Soil Survey", type="Soil Data", confidence="medium"),
    DataSourceNote(name="FEMA NFHL", type="Flood Zones", confidence="medium"),
    DataSourceNote(name="NWI/USFWS", type="Wetlands", confidence="medium"),
)

SEPTIC_STATUS: Dict[SepticFeasibility, RiskStatus] = {
    SepticFeasibility.FEASIBLE: RiskStatus.PASS,
    SepticFeasibility.CONDITIONAL: RiskStatus.WARN,
    SepticFeasibility.CHALLENGING: RiskStatus.WARN,
    SepticFeasibility.NOT_FEASIBLE: RiskStatus.FAIL,
    SepticFeasibility.UNKNOWN: RiskStatus.UNKNOWN,
}

SEPTIC_SUMMARY: Dict[SepticFeasibility, str] = {
    SepticFeasibility.FEASIBLE: "Soil conditions appear suitable for on-site septic.",
    SepticFeasibility.CONDITIONAL: "Septic may be feasible with modifications. Site evaluation needed.",
    SepticFeasibility.CHALLENGING: "Septic is challenging on this site. An engineered system is likely required.",
    SepticFeasibility.NOT_FEASIBLE: "Septic not feasible on this parcel.",
    SepticFeasibility.UNKNOWN: "Septic feasibility requires further evaluation.",
}


def rule_category(rule_type: RuleType) -> str:
    """Presentation bucket for a rule type."""
    value = RuleType(rule_type).value
    if "setback" in value or "height" in value or "separation" in value:
        return "dimensional"
    if "lot" in value or "coverage" in value or "far" in value:
        return "lot"
    if "adu" in value or "use" in value:
        return "use"
    return "zoning"


def to_rule_check(check: ValidationCheck) -> RuleCheckResult:
    """Flatten a validation check for the report."""
    primary = check.citations[0]
    return RuleCheckResult(
        id=check.check_id,
        name=rule_label(check.rule_type),
        category=rule_category(check.rule_type),
        rule_type=check.rule_type.value,
        structure_id=check.structure_id,
        required=check.required_value,
        measured=check.measured_value,
        unit=check.unit or "",
        status=check.status,
        margin=check.margin,
        excess=check.excess,
        citation=primary.section or "See local ordinance",
        citation_text=primary.text,
        reason=check.reason,
    )


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def buildability_category(
    checks: Sequence[RuleCheckResult],
    validation_gaps: Sequence[DataGap] = (),
) -> RiskCategory:
    if not checks and validation_gaps:
        return RiskCategory(
            label="Buildability",
            status=RiskStatus.UNKNOWN,
            summary="Zoning standards unavailable, no dimensional checks performed",
            details=" ".join(g.description for g in validation_gaps),
        )

    counts = {status: sum(1 for c in checks if c.status == status) for status in RiskStatus}
    fails, warns = counts[RiskStatus.FAIL], counts[RiskStatus.WARN]
    unknowns, passes = counts[RiskStatus.UNKNOWN], counts[RiskStatus.PASS]
    total = len(checks)

    if fails:
        return RiskCategory(
            label="Buildability",
            status=RiskStatus.FAIL,
            summary=f"{_plural(fails, 'rule violation')} detected",
            details=f"{passes} passing, {warns} warnings, {fails} violations out of {total} checks",
        )
    if warns:
        return RiskCategory(
            label="Buildability",
            status=RiskStatus.WARN,
            summary=f"Likely feasible, {_plural(warns, 'item')} need verification",
            details=f"{passes} passing, {warns} needing verification out of {total} checks",
        )
    if unknowns:
        return RiskCategory(
            label="Buildability",
            status=RiskStatus.UNKNOWN,
            summary=f"{_plural(unknowns, 'check')} could not be evaluated",
            details=f"{passes} passing, {unknowns} unknown out of {total} checks",
        )
    return RiskCategory(
        label="Buildability",
        status=RiskStatus.PASS,
        summary="All dimensional and zoning checks pass",
        details=f"{passes} of {total} checks passing",
    )


def build_utility_result(wastewater: WastewaterAssessment) -> UtilityResult:
    """Sewer and septic rows of the utilities section."""
    service = wastewater.sewer_service
    sewer = SewerSummary(
        available=wastewater.sewer_available,
        required=wastewater.sewer_required,
        provider_name=service.provider_name if service else None,
        distance_to_main=service.distance_to_main if service else None,
        hookup_cost=service.hookup_cost if service else None,
        status=RiskStatus.PASS if wastewater.sewer_available else RiskStatus.WARN,
        summary=(
            f"Sewer available via {service.provider_name if service else 'local provider'}"
            if wastewater.sewer_available
            else "Not within sewer service area. On-site system required."
        ),
    )

    on_sewer = wastewater.sewer_required and wastewater.sewer_available
    if on_sewer:
        septic_status = RiskStatus.PASS
        septic_summary = "Septic not needed. Property connects to public sewer."
        system_type = "Not required"
    else:
        septic_status = SEPTIC_STATUS[wastewater.septic_feasibility]
        septic_summary = SEPTIC_SUMMARY[wastewater.septic_feasibility]
        system_type = wastewater.system_types[0].name if wastewater.system_types else "To be determined"

    soil = wastewater.soil_data
    septic = SepticSummary(
        required=wastewater.septic_required,
        feasibility=wastewater.septic_feasibility.value,
        soil_suitability=soil.septic_suitability.value if soil else "unknown",
        soil_name=soil.muname if soil and soil.muname else UNKNOWN,
        system_type=system_type,
        cost_range=wastewater.estimated_cost,
        status=septic_status,
        summary=septic_summary,
        issues=[
            SepticIssueSummary(title=i.title, severity=i.severity.value, description=i.description)
            for i in wastewater.issues
        ],
    )
    return UtilityResult(sewer=sewer, septic=septic)


def utilities_category(utility: UtilityResult) -> RiskCategory:
    worst = worst_of([utility.sewer.status, utility.septic.status])
    summaries = {
        RiskStatus.FAIL: "Critical utility constraint detected",
        RiskStatus.WARN: "Utility availability needs verification",
        RiskStatus.UNKNOWN: "Utility feasibility could not be determined",
        RiskStatus.PASS: "Utility services available or feasible",
    }
    return RiskCategory(label="Utilities", status=worst, summary=summaries[worst])


def environmental_category(flags: Sequence[EnvironmentalFlag]) -> RiskCategory:
    worst = worst_of(f.status for f in flags)
    if worst == RiskStatus.FAIL:
        return RiskCategory(
            label="Environmental",
            status=worst,
            summary="Environmental constraint present",
            details=next(f.description for f in flags if f.status == RiskStatus.FAIL),
        )
    if worst in (RiskStatus.WARN, RiskStatus.UNKNOWN):
        return RiskCategory(
            label="Environmental",
            status=worst,
            summary="Environmental items need review",
            details=", ".join(f.label for f in flags if f.status == worst),
        )
    return RiskCategory(
        label="Environmental",
        status=RiskStatus.PASS,
        summary="No environmental constraints identified",
    )


def overall_summary(buildability: RiskCategory, utilities: RiskCategory, environmental: RiskCategory) -> str:
    if buildability.status == RiskStatus.PASS:
        parts = ["This property appears suitable for residential development"]
    elif buildability.status == RiskStatus.FAIL:
        parts = ["This property has zoning constraints that may limit development"]
    else:
        parts = ["This property may be suitable for development with some items requiring verification"]

    if utilities.status != RiskStatus.PASS:
        parts.append("utility services need confirmation")
    if environmental.status != RiskStatus.PASS:
        parts.append("environmental factors should be reviewed")

    return ", ".join(parts) + "."


def data_gaps(
    parcel: PropertyRecord,
    wastewater: WastewaterAssessment,
    seed: float,
    thresholds: Settings = settings,
    validation_gaps: Sequence[DataGap] = (),
) -> List[SnapshotDataGap]:
    """What a buyer should still verify before relying on the report."""
    gaps = [SnapshotDataGap(
        field="Parcel Survey",
        description="Parcel boundary from GIS may differ from recorded survey.",
        next_step="Obtain a current boundary survey from a licensed surveyor.",
    )]

    if not wastewater.sewer_available:
        gaps.append(SnapshotDataGap(
            field="Septic Perc Test",
            description="Soil data is from USDA mapping, not on-site testing.",
            next_step="Schedule a perc test with a licensed septic designer.",
        ))

    if fraction(seed * 11) < thresholds.easement_gap_threshold:
        gaps.append(SnapshotDataGap(
            field="Easements",
            description="Recorded easements may not be reflected in GIS data.",
            next_step="Review title report for recorded easements.",
        ))

    if parcel.has_estimated_inputs:
        datasets = sorted({s.dataset for s in parcel.data_sources if s.estimated or s.confidence == "low"})
        gaps.append(SnapshotDataGap(
            field="Data Provenance",
            description=f"Some inputs are estimated or low confidence: {', '.join(datasets)}.",
            next_step="Confirm parcel size and zoning with the county assessor and planning department.",
        ))

    for gap in validation_gaps:
        gaps.append(SnapshotDataGap(
            field=GAP_FIELDS.get(gap.type, "Zoning Data"),
            description=f"{gap.description} {gap.impact}",
            next_step=gap.suggested_action,
        ))

    gaps.append(SnapshotDataGap(
        field="Ordinance Currency",
        description="Zoning rules are based on the most recent available ordinance data.",
        next_step="Verify current rules with the local planning department.",
    ))
    return gaps


def snapshot_id(address: str) -> str:
    """Stable id for the snapshot of an address."""
    return "snap_" + hashlib.sha256(address.encode("utf-8")).hexdigest()[:16]


class SnapshotAggregator:
    """Builds a SnapshotResult for a free-form address."""

    def __init__(
        self,
        parcel_source: Optional[ParcelSource] = None,
        validator: Optional[DimensionalValidator] = None,
        assessor: Optional[WastewaterAssessor] = None,
        thresholds: Settings = settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.parcel_source = parcel_source or AddressSeededParcelSource()
        self.validator = validator or DimensionalValidator()
        self.assessor = assessor or WastewaterAssessor(thresholds=thresholds)
        self.thresholds = thresholds
        self.clock = clock

    def generate_snapshot(self, address: str, clock: Optional[Callable[[], datetime]] = None) -> SnapshotResult:
        """Run every evaluator for the address and merge the results.

        Args:
            address: Free-form street address
            clock: Overrides the aggregator's clock for this call

        Returns:
            SnapshotResult
        """
        parcel = self.parcel_source.resolve(address)

        validation = self.validator.evaluate(parcel, [REFERENCE_DWELLING])
        wastewater = self.assessor.assess(parcel)
        seed = address_seed(address)
        flags = generate_environmental_flags(seed, self.thresholds)

        rule_checks = [to_rule_check(c) for c in validation.checks]
        utility_result = build_utility_result(wastewater)

        buildability = buildability_category(rule_checks, validation.data_gaps)
        utilities = utilities_category(utility_result)
        environmental = environmental_category(flags)
        overall_status = worst_of([buildability.status, utilities.status, environmental.status])

        lot_sqft = parcel.area_sqft or DEFAULT_LOT_SQFT
        district = parcel.zoning_district

        citations: List[Citation] = []
        for check in validation.checks:
            citations.extend(check.citations)
        citations.extend(wastewater.citations)
        for flag in flags:
            citations.extend(flag.citations)

        clock = clock or self.clock
        snapshot = SnapshotResult(
            id=snapshot_id(address),
            address=parcel.address,
            city=parcel.city,
            state=parcel.state,
            county=parcel.county or UNKNOWN,
            zoning_district=district.code if district else UNKNOWN,
            zoning_category=district.name if district else UNKNOWN,
            jurisdiction_name=parcel.jurisdiction.name if parcel.jurisdiction else UNKNOWN,
            centroid=parcel.centroid,
            parcel_area=ParcelArea(sqft=lot_sqft, acres=lot_sqft / SQFT_PER_ACRE),
            lot_width=parcel.lot_width or DEFAULT_LOT_WIDTH,
            lot_depth=parcel.lot_depth or DEFAULT_LOT_DEPTH,
            overall_status=overall_status,
            overall_summary=overall_summary(buildability, utilities, environmental),
            buildability=buildability,
            utilities=utilities,
            environmental=environmental,
            rule_checks=rule_checks,
            utility_result=utility_result,
            wastewater=wastewater,
            environmental_flags=flags,
            data_gaps=data_gaps(parcel, wastewater, seed, self.thresholds, validation.data_gaps),
            data_sources=[
                DataSourceNote(name=s.source_name, type=s.dataset, confidence=s.confidence)
                for s in parcel.data_sources
            ] + list(REFERENCE_DATA_SOURCES),
            citations=list(dict.fromkeys(citations)),
            generated_at=clock() if clock else None,
        )

        logger.info("Snapshot generated",
                    address=address,
                    snapshot_id=snapshot.id,
                    overall_status=overall_status.value,
                    check_count=len(rule_checks))
        return snapshot


def snapshot_preview(snapshot: SnapshotResult) -> SnapshotPreview:
    """Headline statuses only; details and citations stay behind the paywall."""
    return SnapshotPreview(
        address=snapshot.address,
        city=snapshot.city,
        county=snapshot.county,
        zoning_district=snapshot.zoning_district,
        overall_status=snapshot.overall_status,
        buildability=StatusOnly(status=snapshot.buildability.status),
        utilities=StatusOnly(status=snapshot.utilities.status),
        environmental=StatusOnly(status=snapshot.environmental.status),
    )


# Global singleton instance
_snapshot_aggregator: Optional[SnapshotAggregator] = None


def get_snapshot_aggregator() -> SnapshotAggregator:
    """Get the global snapshot aggregator instance.

    Returns:
        SnapshotAggregator over the default sources and rule catalog
    """
    global _snapshot_aggregator
    if _snapshot_aggregator is None:
        _snapshot_aggregator = SnapshotAggregator()
    return _snapshot_aggregator
