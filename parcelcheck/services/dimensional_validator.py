"""Dimensional validator - checks a lot and its structures against zoning rules.

Every check is deterministic and carries the citation of the rule it came
from. Equality always passes: a structure exactly at the limit complies.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from parcelcheck.models.status import RiskStatus, worst_of
from parcelcheck.models.zoning import (
    ADU_TYPES,
    DataGap,
    PropertyRecord,
    QuickValidation,
    RuleType,
    Structure,
    ValidationCheck,
    ValidationResult,
    ValidationSummary,
    ZoningRule,
    rule_label,
)
from parcelcheck.services.rule_catalog import RuleCatalog, get_rule_catalog
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)

# Setback rule type -> Structure attribute holding the measured distance
SETBACK_ATTRIBUTES: Tuple[Tuple[RuleType, str], ...] = (
    (RuleType.SETBACK_FRONT, "distance_to_front"),
    (RuleType.SETBACK_SIDE, "distance_to_side"),
    (RuleType.SETBACK_REAR, "distance_to_rear"),
    (RuleType.SETBACK_STREET_SIDE, "distance_to_street_side"),
)

SETBACK_NAMES = {
    RuleType.SETBACK_FRONT: "Front setback",
    RuleType.SETBACK_SIDE: "Side setback",
    RuleType.SETBACK_REAR: "Rear setback",
    RuleType.SETBACK_STREET_SIDE: "Street-side setback",
}

# Reported precision: feet and sqft to 0.01, coverage to 0.1 point, FAR to 0.01
DEFAULT_DIGITS = 2
COVERAGE_DIGITS = 1
FAR_DIGITS = 2


def _round(value: float, digits: int = DEFAULT_DIGITS) -> float:
    return round(value + 0.0, digits)


def compare_at_most(
    measured: float, required: float, digits: int = DEFAULT_DIGITS,
) -> Tuple[RiskStatus, Optional[float], Optional[float]]:
    """Status, margin and excess for an "at most" rule (height, coverage, FAR, size).

    ``measured`` is rounded to ``digits`` before the comparison, so the value a
    check reports is the one that decided it and a failure always carries a
    positive excess.
    """
    excess = _round(_round(measured, digits) - required, digits)
    if excess <= 0:
        return RiskStatus.PASS, _round(-excess, digits), None
    return RiskStatus.FAIL, None, excess


def compare_at_least(
    measured: float, required: float, digits: int = DEFAULT_DIGITS,
) -> Tuple[RiskStatus, Optional[float], Optional[float]]:
    """Status, margin and excess for an "at least" rule (setbacks, separation, lot size)."""
    shortfall = _round(required - _round(measured, digits), digits)
    if shortfall <= 0:
        return RiskStatus.PASS, _round(-shortfall, digits), None
    return RiskStatus.FAIL, None, shortfall


class DimensionalValidator:
    """Evaluates structures and lot-level limits against a rule catalog."""

    def __init__(self, catalog: Optional[RuleCatalog] = None):
        self.catalog = catalog if catalog is not None else get_rule_catalog()

    def evaluate(self, parcel: PropertyRecord, structures: Sequence[Structure]) -> ValidationResult:
        """Run every applicable check.

        Args:
            parcel: Resolved parcel (lot area, width, depth, district)
            structures: Proposed and existing structures on the lot

        Returns:
            ValidationResult whose overall status is the worst of its checks
        """
        rules = self.catalog.rules_for(parcel)
        checks: List[ValidationCheck] = []
        data_gaps: List[DataGap] = []

        if not rules:
            data_gaps.append(DataGap(
                id="gap-missing-rules",
                type="missing_rule",
                description="No zoning rules are catalogued for this jurisdiction and district.",
                impact="No dimensional checks could be performed.",
                suggested_action="Confirm zoning standards with the local planning department.",
            ))

        for structure in structures:
            checks.extend(self.structure_checks(rules, structure))

        checks.extend(self.lot_checks(parcel, structures, rules))

        if rules and not parcel.area_sqft:
            data_gaps.append(DataGap(
                id="gap-lot-area",
                type="missing_data",
                description="Lot area is unknown.",
                impact="Lot coverage, FAR and minimum lot size were not evaluated.",
                suggested_action="Obtain the parcel area from the assessor or a boundary survey.",
            ))

        overall_status = worst_of(c.status for c in checks)

        logger.info("Dimensional validation completed",
                    property_id=parcel.id,
                    structure_count=len(structures),
                    check_count=len(checks),
                    status=overall_status.value)

        return ValidationResult(
            id=f"val-{parcel.id}",
            project_id=parcel.id,
            overall_status=overall_status,
            checks=checks,
            data_gaps=data_gaps,
            summary=summarize_checks(checks),
        )

    def structure_checks(self, rules: Sequence[ZoningRule], structure: Structure) -> List[ValidationCheck]:
        """Height, setback, ADU size and separation checks for one structure."""
        checks: List[ValidationCheck] = []
        stype = structure.structure_type

        # Height
        height_rule = RuleCatalog.find(rules, (RuleType.HEIGHT_MAX, RuleType.HEIGHT_MAX_ACCESSORY), stype)
        if height_rule and height_rule.value_numeric is not None and structure.height_feet is not None:
            checks.append(self._check(
                f"check-height-{structure.id}", height_rule, structure,
                structure.height_feet, at_most=True,
            ))

        # Setbacks, falling back to the accessory setback
        for setback_type, attribute in SETBACK_ATTRIBUTES:
            distance = getattr(structure, attribute)
            if distance is None:
                continue
            rule = RuleCatalog.find(rules, (setback_type, RuleType.ACCESSORY_SETBACK), stype)
            if rule is None or rule.value_numeric is None:
                continue
            checks.append(self._check(
                f"check-{setback_type.value}-{structure.id}", rule, structure,
                distance, at_most=False,
            ))

        # ADU size
        if stype in ADU_TYPES and structure.footprint_sqft is not None:
            size_rule = RuleCatalog.find(rules, (RuleType.ADU_SIZE_MAX,), stype)
            if size_rule and size_rule.value_numeric is not None:
                checks.append(self._check(
                    f"check-adu-size-{structure.id}", size_rule, structure,
                    structure.footprint_sqft, at_most=True,
                ))

        # Separation: one independent check per neighbor
        separation_rule = RuleCatalog.find(rules, (RuleType.STRUCTURE_SEPARATION,), stype)
        if separation_rule and separation_rule.value_numeric is not None:
            for neighbor_id, distance in structure.distance_to_other_structures.items():
                checks.append(self._check(
                    f"check-separation-{structure.id}-{neighbor_id}", separation_rule, structure,
                    distance, at_most=False, neighbor_id=neighbor_id,
                    fail_reason=f"Too close to structure {neighbor_id}",
                ))

        return checks

    def lot_checks(
        self,
        parcel: PropertyRecord,
        structures: Sequence[Structure],
        rules: Sequence[ZoningRule],
    ) -> List[ValidationCheck]:
        """Coverage, FAR and minimum lot size: computed once for the whole lot."""
        checks: List[ValidationCheck] = []
        lot_area = parcel.area_sqft or 0
        if lot_area <= 0:
            return checks

        coverage_rule = RuleCatalog.find(rules, (RuleType.LOT_COVERAGE_MAX,))
        if coverage_rule and coverage_rule.value_numeric is not None:
            total_footprint = sum(s.footprint_sqft or 0 for s in structures)
            coverage_pct = total_footprint * 100 / lot_area
            status, margin, excess = compare_at_most(
                coverage_pct, coverage_rule.value_numeric, COVERAGE_DIGITS,
            )
            checks.append(ValidationCheck(
                check_id="check-lot-coverage",
                rule_id=coverage_rule.id,
                rule_type=coverage_rule.rule_type,
                status=status,
                measured_value=_round(coverage_pct, COVERAGE_DIGITS),
                required_value=coverage_rule.value_numeric,
                unit=coverage_rule.unit or "percent",
                margin=margin,
                excess=excess,
                reason="Total footprint exceeds the lot coverage limit" if status == RiskStatus.FAIL else None,
                citations=[coverage_rule.citation()],
            ))

        far_rule = RuleCatalog.find(rules, (RuleType.FAR_MAX,))
        if far_rule and far_rule.value_numeric is not None:
            total_floor_area = sum((s.footprint_sqft or 0) * (s.stories or 1) for s in structures)
            far = total_floor_area / lot_area
            status, margin, excess = compare_at_most(far, far_rule.value_numeric, FAR_DIGITS)
            checks.append(ValidationCheck(
                check_id="check-far",
                rule_id=far_rule.id,
                rule_type=far_rule.rule_type,
                status=status,
                measured_value=_round(far, FAR_DIGITS),
                required_value=far_rule.value_numeric,
                unit=far_rule.unit or "ratio",
                margin=margin,
                excess=excess,
                reason="Total floor area exceeds the allowed ratio" if status == RiskStatus.FAIL else None,
                citations=[far_rule.citation()],
            ))

        lot_size_rule = RuleCatalog.find(rules, (RuleType.LOT_SIZE_MIN,))
        if lot_size_rule and lot_size_rule.value_numeric is not None:
            status, margin, excess = compare_at_least(lot_area, lot_size_rule.value_numeric)
            checks.append(ValidationCheck(
                check_id="check-lot-size",
                rule_id=lot_size_rule.id,
                rule_type=lot_size_rule.rule_type,
                status=status,
                measured_value=lot_area,
                required_value=lot_size_rule.value_numeric,
                unit=lot_size_rule.unit or "sqft",
                margin=margin,
                excess=excess,
                reason="Lot is smaller than the district minimum" if status == RiskStatus.FAIL else None,
                citations=[lot_size_rule.citation()],
            ))

        return checks

    @staticmethod
    def _check(
        check_id: str,
        rule: ZoningRule,
        structure: Structure,
        measured: float,
        at_most: bool,
        neighbor_id: Optional[str] = None,
        fail_reason: Optional[str] = None,
    ) -> ValidationCheck:
        required = rule.value_numeric
        compare = compare_at_most if at_most else compare_at_least
        status, margin, excess = compare(measured, required)
        return ValidationCheck(
            check_id=check_id,
            rule_id=rule.id,
            rule_type=rule.rule_type,
            structure_id=structure.id,
            neighbor_id=neighbor_id,
            status=status,
            measured_value=_round(measured),
            required_value=required,
            unit=rule.unit,
            margin=margin,
            excess=excess,
            reason=fail_reason if status == RiskStatus.FAIL else None,
            citations=[rule.citation()],
        )


def summarize_checks(checks: Sequence[ValidationCheck]) -> ValidationSummary:
    """Counts plus one line per failing or unverified check."""
    counts: Dict[RiskStatus, int] = {status: 0 for status in RiskStatus}
    for check in checks:
        counts[check.status] += 1

    return ValidationSummary(
        passing_checks=counts[RiskStatus.PASS],
        warning_checks=counts[RiskStatus.WARN],
        failing_checks=counts[RiskStatus.FAIL],
        unknown_checks=counts[RiskStatus.UNKNOWN],
        total_checks=len(checks),
        critical_issues=[
            f"{rule_label(c.rule_type)}: {c.reason or 'Does not meet requirements'}"
            for c in checks if c.status == RiskStatus.FAIL
        ],
        verification_needed=[
            f"{rule_label(c.rule_type)}: Verification needed"
            for c in checks if c.status in (RiskStatus.WARN, RiskStatus.UNKNOWN)
        ],
    )


def _feet(value: float) -> str:
    return f"{value:g}'"


def quick_validate_structure(structure: Structure, catalog: Optional[RuleCatalog] = None) -> QuickValidation:
    """Fast feedback for a single structure while it is being placed.

    Uses every rule in the catalog (no parcel context), so lot-level limits are
    not considered.
    """
    if catalog is None:
        catalog = get_rule_catalog()
    validator = DimensionalValidator(catalog)
    issues: List[str] = []

    for check in validator.structure_checks(catalog.all_rules(), structure):
        if check.status != RiskStatus.FAIL or check.rule_type == RuleType.STRUCTURE_SEPARATION:
            continue
        measured, required = check.measured_value, check.required_value
        if check.rule_type in (RuleType.HEIGHT_MAX, RuleType.HEIGHT_MAX_ACCESSORY):
            issues.append(f"Height {_feet(measured)} exceeds {_feet(required)} maximum")
        elif check.rule_type == RuleType.ADU_SIZE_MAX:
            issues.append(f"ADU size {measured:g} sf exceeds {required:,.0f} sf maximum")
        else:
            setback_type = next(
                (t for t, _ in SETBACK_ATTRIBUTES if check.check_id.startswith(f"check-{t.value}-")),
                check.rule_type,
            )
            name = SETBACK_NAMES.get(setback_type, rule_label(check.rule_type))
            issues.append(f"{name} {_feet(measured)} is less than {_feet(required)} required")

    return QuickValidation(valid=not issues, issues=issues)


# Global singleton instance
_dimensional_validator: Optional[DimensionalValidator] = None


def get_dimensional_validator() -> DimensionalValidator:
    """Get the global dimensional validator instance.

    Returns:
        DimensionalValidator over the global rule catalog
    """
    global _dimensional_validator
    if _dimensional_validator is None:
        _dimensional_validator = DimensionalValidator()
    return _dimensional_validator
