"""Action checklist - answers "can I do X on this lot?" from a finished snapshot.

Deterministic mapping only: every item is derived from snapshot findings,
cites what it relied on, and lists what is still unknown.
"""
from typing import Dict, List, Optional, Sequence

from parcelcheck.config import settings
from parcelcheck.models.snapshot import (
    ActionCategory,
    ActionCitation,
    ActionItem,
    ActionStatus,
    FlagType,
    RuleCheckResult,
    SnapshotResult,
)
from parcelcheck.models.status import RiskStatus
from parcelcheck.models.zoning import RuleType, ZoningRule

CATEGORY_LABELS: Dict[ActionCategory, str] = {
    ActionCategory.RESIDENTIAL: "Residential Use",
    ActionCategory.ACCESSORY: "Accessory Structures",
    ActionCategory.LOT: "Lot Modifications",
    ActionCategory.UTILITIES: "Utilities & Wastewater",
    ActionCategory.ENVIRONMENTAL: "Environmental & Hazards",
    ActionCategory.PERMITS: "Permits & Verification",
}

ADU_MIN_LOT_SQFT = 7500
DADU_MIN_LOT_SQFT = 10000

BUILD_HOME = "Build a Single-Family Home"
SEPTIC = "Install Septic System"


def _sqft(value: float) -> str:
    return f"{value:,.0f}"


def _find_check(s: SnapshotResult, *rule_types: RuleType) -> Optional[RuleCheckResult]:
    wanted = {t.value for t in rule_types}
    return next((c for c in s.rule_checks if c.rule_type in wanted), None)


def _cite(label: str, check: Optional[RuleCheckResult]) -> List[ActionCitation]:
    return [ActionCitation(label=label, source=check.citation)] if check and check.citation else []


def build_home_item(s: SnapshotResult) -> ActionItem:
    relevant = [
        c for c in s.rule_checks
        if any(key in c.rule_type for key in ("setback", "height", "coverage", "far"))
    ]
    failed = [c for c in relevant if c.status == RiskStatus.FAIL]
    unverified = [c for c in relevant if c.status in (RiskStatus.WARN, RiskStatus.UNKNOWN)]
    citations = [ActionCitation(label=c.name, source=c.citation) for c in relevant if c.citation][:3]

    if failed:
        count = len(failed)
        return ActionItem(
            id="build-home",
            category=ActionCategory.RESIDENTIAL,
            action_name=BUILD_HOME,
            status=ActionStatus.CONDITIONAL,
            confidence="MEDIUM",
            summary=f"A single-family home is permitted in {s.zoning_district}, but {count} dimensional "
                    f"requirement{'s' if count > 1 else ''} may constrain placement.",
            conditions=[
                f"{c.name}: required {c.required:g} {c.unit}".rstrip() + ", current capacity needs verification"
                if isinstance(c.required, (int, float)) else f"{c.name}: needs verification"
                for c in failed
            ],
            next_steps=[
                "Review setback requirements with local planning department",
                "Consider variance application if needed",
                "Consult with architect on structure placement",
            ],
            citations=citations,
        )

    if unverified:
        return ActionItem(
            id="build-home",
            category=ActionCategory.RESIDENTIAL,
            action_name=BUILD_HOME,
            status=ActionStatus.CONDITIONAL,
            confidence="MEDIUM",
            summary=f"Single-family residential use appears permitted in {s.zoning_district}. "
                    f"{len(unverified)} item(s) need verification.",
            conditions=[f"{c.name}: needs verification" for c in unverified],
            citations=citations,
        )

    if not relevant and s.buildability.status == RiskStatus.UNKNOWN:
        return ActionItem(
            id="build-home",
            category=ActionCategory.RESIDENTIAL,
            action_name=BUILD_HOME,
            status=ActionStatus.UNKNOWN,
            confidence="LOW",
            summary=f"Dimensional standards for {s.zoning_district} could not be evaluated.",
            next_steps=["Confirm zoning standards with the local planning department"],
            data_gaps=["Zoning rules not available for this district"],
        )

    return ActionItem(
        id="build-home",
        category=ActionCategory.RESIDENTIAL,
        action_name=BUILD_HOME,
        status=ActionStatus.ALLOWED,
        confidence="HIGH",
        summary=f"The {s.zoning_district} zoning district permits a single-family residence. All setback, "
                f"height, and coverage requirements can be met within the {_sqft(s.parcel_area.sqft)} sqft lot.",
        citations=citations,
    )


def multi_family_item(s: SnapshotResult) -> ActionItem:
    if "single" in s.zoning_category.lower():
        return ActionItem(
            id="multi-family",
            category=ActionCategory.RESIDENTIAL,
            action_name="Build Multi-Family Housing",
            status=ActionStatus.RESTRICTED,
            confidence="HIGH",
            summary=f"Multi-family housing is not permitted in the {s.zoning_district} single-family residential zone.",
            blocking_factors=[f"Zoning district {s.zoning_district} restricts use to single-family residential"],
            next_steps=[
                "Apply for a zone change or rezone through local planning",
                "Check if planned unit development (PUD) overlay is available",
            ],
            citations=[ActionCitation(label="Zoning District Use Table", source=f"{s.zoning_district} Permitted Uses")],
        )

    return ActionItem(
        id="multi-family",
        category=ActionCategory.RESIDENTIAL,
        action_name="Build Multi-Family Housing",
        status=ActionStatus.UNKNOWN,
        confidence="LOW",
        summary="Multi-family use permissions could not be determined from available data.",
        data_gaps=["Permitted use table not available for this zoning district"],
        next_steps=["Contact local planning department to confirm permitted uses"],
    )


def adu_item(s: SnapshotResult, rules: Sequence[ZoningRule] = ()) -> ActionItem:
    lot_sqft = s.parcel_area.sqft
    adu_check = _find_check(s, RuleType.ADU_ALLOWED, RuleType.ADU_SIZE_MAX)
    adu_rule = next((r for r in rules if r.rule_type in (RuleType.ADU_ALLOWED, RuleType.ADU_SIZE_MAX)), None)
    coverage = _find_check(s, RuleType.LOT_COVERAGE_MAX)

    if lot_sqft < ADU_MIN_LOT_SQFT:
        return ActionItem(
            id="adu",
            category=ActionCategory.ACCESSORY,
            action_name="Add an ADU",
            status=ActionStatus.RESTRICTED,
            confidence="HIGH",
            summary=f"ADUs typically require a minimum lot size of {_sqft(ADU_MIN_LOT_SQFT)} sqft. "
                    f"This lot is {_sqft(lot_sqft)} sqft.",
            blocking_factors=["Lot size below minimum for ADU"],
            next_steps=[
                "Verify minimum lot size requirements with local planning",
                "Consider attached ADU as alternative if allowed",
            ],
        )

    if adu_check or adu_rule:
        tight = coverage is not None and coverage.status != RiskStatus.PASS
        if adu_check:
            citations = _cite("ADU Regulations", adu_check)
        else:
            citations = [ActionCitation(label="ADU Regulations", source=adu_rule.ordinance_section)]
        return ActionItem(
            id="adu",
            category=ActionCategory.ACCESSORY,
            action_name="Add an ADU",
            status=ActionStatus.CONDITIONAL if tight else ActionStatus.ALLOWED,
            confidence="MEDIUM" if tight else "HIGH",
            summary=f"ADUs are permitted in {s.zoning_district} on lots of {_sqft(ADU_MIN_LOT_SQFT)}+ sqft. "
                    f"Your lot is {_sqft(lot_sqft)} sqft. Max ADU size: 1,000 sqft or 50% of primary dwelling.",
            conditions=["Lot coverage may be tight. Verify total coverage with ADU footprint added"] if tight else [],
            next_steps=(
                ["Calculate total lot coverage with proposed ADU", "Verify utility connections for ADU"]
                if tight else ["Obtain ADU building permit", "Verify utility capacity"]
            ),
            citations=citations,
        )

    return ActionItem(
        id="adu",
        category=ActionCategory.ACCESSORY,
        action_name="Add an ADU",
        status=ActionStatus.UNKNOWN,
        confidence="LOW",
        summary="ADU regulations could not be determined from available data.",
        data_gaps=["ADU regulations not structured for this jurisdiction"],
        next_steps=["Contact local planning for ADU requirements"],
    )


def dadu_item(s: SnapshotResult) -> ActionItem:
    lot_sqft = s.parcel_area.sqft
    if lot_sqft >= DADU_MIN_LOT_SQFT:
        return ActionItem(
            id="dadu",
            category=ActionCategory.ACCESSORY,
            action_name="Add a Detached ADU (DADU)",
            status=ActionStatus.CONDITIONAL,
            confidence="MEDIUM",
            summary=f"Lot size ({_sqft(lot_sqft)} sqft) may support a detached ADU. "
                    "Subject to setback, coverage, and separation requirements.",
            conditions=[
                "Must meet all accessory structure setbacks",
                "Must maintain minimum 6ft structure separation",
                "Total lot coverage must remain within limits",
            ],
            next_steps=[
                "Verify DADU-specific regulations with planning department",
                "Confirm utility connections available",
                "Check fire access requirements",
            ],
        )

    return ActionItem(
        id="dadu",
        category=ActionCategory.ACCESSORY,
        action_name="Add a Detached ADU (DADU)",
        status=ActionStatus.RESTRICTED,
        confidence="MEDIUM",
        summary=f"Lot size ({_sqft(lot_sqft)} sqft) may be insufficient for a detached ADU.",
        blocking_factors=["Lot may not meet minimum size for detached accessory dwelling"],
        next_steps=["Check minimum lot requirements for DADU with local planning"],
    )


def garage_item(s: SnapshotResult) -> ActionItem:
    coverage = _find_check(s, RuleType.LOT_COVERAGE_MAX)
    coverage_ok = coverage is None or coverage.status == RiskStatus.PASS
    summary = f"Detached garages are generally permitted as accessory structures in {s.zoning_district}."
    if not coverage_ok:
        summary += " Lot coverage should be verified."

    return ActionItem(
        id="garage",
        category=ActionCategory.ACCESSORY,
        action_name="Build a Detached Garage",
        status=ActionStatus.ALLOWED if coverage_ok else ActionStatus.CONDITIONAL,
        confidence="HIGH" if coverage_ok else "MEDIUM",
        summary=summary,
        conditions=[] if coverage_ok else ["Total lot coverage must remain within maximum limits"],
        next_steps=["Obtain building permit", "Verify accessory structure setback requirements (typically 5ft)"],
        citations=_cite("Coverage Limits", coverage),
    )


def pool_item(s: SnapshotResult) -> ActionItem:
    return ActionItem(
        id="pool",
        category=ActionCategory.ACCESSORY,
        action_name="Install a Swimming Pool",
        status=ActionStatus.CONDITIONAL,
        confidence="MEDIUM",
        summary="Pools are typically permitted as accessory uses with specific setback and fencing requirements.",
        conditions=[
            "Pool must meet accessory structure setback requirements",
            "Perimeter fencing (typically 4ft+) is required",
            "Electrical permits required for pool equipment",
        ],
        next_steps=[
            "Verify pool setback requirements",
            "Obtain pool/mechanical permit",
            "Confirm fencing requirements with building department",
        ],
    )


def subdivide_item(s: SnapshotResult) -> ActionItem:
    lot_size_check = _find_check(s, RuleType.LOT_SIZE_MIN)
    if lot_size_check and isinstance(lot_size_check.required, (int, float)):
        min_lot = lot_size_check.required
    else:
        min_lot = settings.default_min_lot_size_sqft
    lot_sqft = s.parcel_area.sqft
    citations = _cite("Minimum Lot Size", lot_size_check)

    if lot_sqft >= min_lot * 2:
        return ActionItem(
            id="subdivide",
            category=ActionCategory.LOT,
            action_name="Subdivide the Lot",
            status=ActionStatus.CONDITIONAL,
            confidence="MEDIUM",
            summary=f"Lot area ({_sqft(lot_sqft)} sqft) is large enough to potentially subdivide into two "
                    f"conforming lots (min {_sqft(min_lot)} sqft each).",
            conditions=[
                "Both resulting lots must meet minimum size requirements",
                "Both lots must have street frontage or access",
                "Infrastructure (utilities, roads) must serve both lots",
                "Plat approval required from local jurisdiction",
            ],
            next_steps=[
                "Consult with local planning on subdivision requirements",
                "Hire a licensed surveyor for preliminary plat",
                "Verify utility capacity for two parcels",
                "Submit subdivision application",
            ],
            citations=citations,
        )

    return ActionItem(
        id="subdivide",
        category=ActionCategory.LOT,
        action_name="Subdivide the Lot",
        status=ActionStatus.RESTRICTED,
        confidence="HIGH",
        summary=f"Lot area ({_sqft(lot_sqft)} sqft) is below the minimum needed to create two conforming "
                f"lots ({_sqft(min_lot * 2)} sqft required).",
        blocking_factors=["Insufficient lot area for subdivision"],
        citations=citations,
    )


def lot_line_adjustment_item(s: SnapshotResult) -> ActionItem:
    return ActionItem(
        id="lot-line-adjustment",
        category=ActionCategory.LOT,
        action_name="Lot Line Adjustment",
        status=ActionStatus.CONDITIONAL,
        confidence="MEDIUM",
        summary="Lot line adjustments between adjacent parcels are generally permitted subject to resulting "
                "lots meeting all dimensional standards.",
        conditions=[
            "Both resulting parcels must meet minimum lot size",
            "Both parcels must meet setback requirements",
            "No new non-conformities created",
        ],
        next_steps=[
            "Consult with planning department on lot line adjustment process",
            "Hire surveyor to prepare boundary adjustment survey",
            "Submit application with both property owners' consent",
        ],
    )


def sewer_item(s: SnapshotResult) -> ActionItem:
    sewer = s.utility_result.sewer
    if sewer.available:
        summary = "Public sewer service is available"
        summary += f" via {sewer.provider_name}." if sewer.provider_name else "."
        if sewer.hookup_cost:
            summary += f" Estimated hookup cost: ${sewer.hookup_cost:,.0f}."
        return ActionItem(
            id="sewer-connect",
            category=ActionCategory.UTILITIES,
            action_name="Connect to Public Sewer",
            status=ActionStatus.ALLOWED,
            confidence="HIGH",
            summary=summary,
            next_steps=[
                "Contact sewer provider for connection requirements",
                "Obtain sewer connection permit",
                f"Run lateral to main (est. {sewer.distance_to_main:g}ft)"
                if sewer.distance_to_main is not None else "Determine distance to sewer main",
            ],
        )

    return ActionItem(
        id="sewer-connect",
        category=ActionCategory.UTILITIES,
        action_name="Connect to Public Sewer",
        status=ActionStatus.RESTRICTED,
        confidence="MEDIUM",
        summary="Property is not within a public sewer service area. On-site wastewater system required.",
        blocking_factors=["Not within sewer service boundary"],
        next_steps=["Verify sewer availability with local utility district", "Evaluate on-site septic system options"],
    )


def septic_item(s: SnapshotResult) -> ActionItem:
    sewer = s.utility_result.sewer
    septic = s.utility_result.septic

    if sewer.available and sewer.required:
        return ActionItem(
            id="septic-install",
            category=ActionCategory.UTILITIES,
            action_name=SEPTIC,
            status=ActionStatus.RESTRICTED,
            confidence="HIGH",
            summary="Property is within a sewer service area where connection is required. "
                    "On-site septic is not permitted.",
            blocking_factors=["Sewer connection required in this service area"],
        )

    if septic.status == RiskStatus.PASS:
        return ActionItem(
            id="septic-install",
            category=ActionCategory.UTILITIES,
            action_name=SEPTIC,
            status=ActionStatus.ALLOWED,
            confidence="MEDIUM",
            summary=f"Soil conditions appear suitable for an on-site septic system. Likely system type: "
                    f"{septic.system_type}. Estimated cost: ${septic.cost_range.min:,.0f}-${septic.cost_range.max:,.0f}.",
            next_steps=[
                "Schedule a perc test with licensed septic designer",
                "Obtain septic system permit from health department",
                "Complete site evaluation and system design",
            ],
        )

    if septic.status == RiskStatus.WARN:
        summary = f"Septic feasibility is {septic.feasibility}. Soil type: {septic.soil_name}."
        if septic.issues:
            summary += f" {len(septic.issues)} issue(s) identified."
        return ActionItem(
            id="septic-install",
            category=ActionCategory.UTILITIES,
            action_name=SEPTIC,
            status=ActionStatus.CONDITIONAL,
            confidence="LOW",
            summary=summary,
            conditions=[i.description for i in septic.issues],
            next_steps=[
                "Schedule site evaluation with licensed septic designer",
                "Conduct perc test to verify soil percolation rate",
                "Contact county health department for system requirements",
                "Consider alternative system types if conventional is not feasible",
            ],
        )

    failed = septic.status == RiskStatus.FAIL
    return ActionItem(
        id="septic-install",
        category=ActionCategory.UTILITIES,
        action_name=SEPTIC,
        status=ActionStatus.RESTRICTED if failed else ActionStatus.UNKNOWN,
        confidence="LOW",
        summary=(f"Septic system not feasible: {septic.summary}" if failed
                 else "Septic feasibility could not be determined from available data."),
        blocking_factors=[septic.summary] if failed else [],
        data_gaps=[] if failed else ["Soil data or septic regulations not available for this jurisdiction"],
        next_steps=["Contact county health department for septic requirements", "Schedule site evaluation"],
    )


def flood_zone_item(s: SnapshotResult) -> ActionItem:
    flag = next((f for f in s.environmental_flags if f.type == FlagType.FLOOD), None)

    if flag is None or flag.status == RiskStatus.PASS:
        return ActionItem(
            id="flood-zone",
            category=ActionCategory.ENVIRONMENTAL,
            action_name="Flood Zone Status",
            status=ActionStatus.ALLOWED,
            confidence="HIGH" if flag else "MEDIUM",
            summary=flag.description if flag else "Property is not within a designated FEMA flood zone.",
        )

    if flag.status == RiskStatus.FAIL:
        return ActionItem(
            id="flood-zone",
            category=ActionCategory.ENVIRONMENTAL,
            action_name="Build in Flood Zone",
            status=ActionStatus.CONDITIONAL,
            confidence="HIGH",
            summary=flag.description,
            conditions=[
                "Flood insurance required (NFIP)",
                "Structures must be elevated above base flood elevation (BFE)",
                "Floodplain development permit required",
                "No fill or obstruction of floodway",
            ],
            next_steps=[
                "Obtain flood zone determination from FEMA",
                "Get base flood elevation for the site",
                "Apply for floodplain development permit",
                "Engage architect experienced with flood zone construction",
            ],
            citations=[ActionCitation(label=c.source, source=c.section or c.source) for c in flag.citations],
        )

    return ActionItem(
        id="flood-zone",
        category=ActionCategory.ENVIRONMENTAL,
        action_name="Flood Zone Status",
        status=ActionStatus.CONDITIONAL,
        confidence="MEDIUM",
        summary=flag.description,
        conditions=["Flood zone proximity may require additional review"],
        next_steps=["Verify flood zone status with FEMA flood map service", "Consider flood insurance"],
        citations=[ActionCitation(label=c.source, source=c.section or c.source) for c in flag.citations],
    )


def wetland_item(s: SnapshotResult) -> ActionItem:
    flag = next((f for f in s.environmental_flags if f.type == FlagType.WETLAND), None)

    if flag is None or flag.status == RiskStatus.PASS:
        return ActionItem(
            id="wetlands",
            category=ActionCategory.ENVIRONMENTAL,
            action_name="Wetland Constraints",
            status=ActionStatus.ALLOWED,
            confidence="MEDIUM" if flag else "LOW",
            summary=flag.description if flag else "No mapped wetlands identified on or near the parcel.",
            data_gaps=[] if flag else ["Wetland data may not be available for this area"],
        )

    return ActionItem(
        id="wetlands",
        category=ActionCategory.ENVIRONMENTAL,
        action_name="Wetland Constraints",
        status=ActionStatus.CONDITIONAL,
        confidence="MEDIUM",
        summary=flag.description,
        conditions=[
            "Buffer zones (typically 50-200ft) may restrict buildable area",
            "Wetland delineation may be required",
            "Army Corps of Engineers permit may be needed for any fill",
        ],
        next_steps=[
            "Hire a wetland biologist for delineation",
            "Contact local planning for buffer requirements",
            "Determine if Army Corps Section 404 permit is needed",
        ],
        citations=[ActionCitation(label=c.source, source=c.section or c.source) for c in flag.citations],
    )


def building_permit_item(s: SnapshotResult) -> ActionItem:
    return ActionItem(
        id="building-permit",
        category=ActionCategory.PERMITS,
        action_name="Obtain Building Permit",
        status=ActionStatus.CONDITIONAL,
        confidence="HIGH",
        summary="A building permit is required for all new construction, additions, and significant modifications.",
        conditions=[
            "Plans must comply with local building codes",
            "Zoning compliance review required",
            "May require engineering for foundation/structure",
        ],
        next_steps=[
            f"Contact {s.jurisdiction_name} building department",
            "Prepare construction plans meeting code requirements",
            "Submit permit application with required fees",
            "Schedule inspections as required during construction",
        ],
    )


def environmental_review_item(s: SnapshotResult) -> ActionItem:
    flagged = [f for f in s.environmental_flags if f.status != RiskStatus.PASS]

    if not flagged:
        return ActionItem(
            id="env-review",
            category=ActionCategory.PERMITS,
            action_name="Environmental Review",
            status=ActionStatus.ALLOWED,
            confidence="MEDIUM",
            summary="No environmental constraints identified that would trigger additional review requirements.",
            next_steps=["Confirm with local planning that no additional environmental review is needed"],
        )

    count = len(flagged)
    return ActionItem(
        id="env-review",
        category=ActionCategory.PERMITS,
        action_name="Environmental Review Required",
        status=ActionStatus.CONDITIONAL,
        confidence="MEDIUM",
        summary=f"{count} environmental factor{'s' if count > 1 else ''} may trigger additional review: "
                f"{', '.join(f.label for f in flagged)}.",
        conditions=[f"{f.label}: {f.description}" for f in flagged],
        next_steps=[
            "Contact local planning for environmental review requirements",
            "Determine if SEPA (State Environmental Policy Act) review is needed",
            "Engage environmental consultant if critical areas are present",
        ],
    )


def generate_action_checklist(snapshot: SnapshotResult, rules: Sequence[ZoningRule] = ()) -> List[ActionItem]:
    """Build the checklist for a snapshot.

    Args:
        snapshot: Finished snapshot for the address
        rules: Catalog rules for the parcel; lets rule-only facts such as
            ADU permission count even when no structure exercised them

    Returns:
        Items in a fixed order, grouped by category
    """
    return [
        build_home_item(snapshot),
        multi_family_item(snapshot),
        adu_item(snapshot, rules),
        dadu_item(snapshot),
        garage_item(snapshot),
        pool_item(snapshot),
        subdivide_item(snapshot),
        lot_line_adjustment_item(snapshot),
        sewer_item(snapshot),
        septic_item(snapshot),
        flood_zone_item(snapshot),
        wetland_item(snapshot),
        building_permit_item(snapshot),
        environmental_review_item(snapshot),
    ]


def group_checklist_by_category(items: Sequence[ActionItem]) -> Dict[ActionCategory, List[ActionItem]]:
    """Bucket items by category; every category is present, possibly empty."""
    groups: Dict[ActionCategory, List[ActionItem]] = {category: [] for category in ActionCategory}
    for item in items:
        groups[item.category].append(item)
    return groups
