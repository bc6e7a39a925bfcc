from datetime import datetime

import pytest

from parcelcheck.models.snapshot import RuleCheckResult
from parcelcheck.models.status import RiskStatus
from parcelcheck.models.wastewater import CostRange, SepticFeasibility, WastewaterAssessment
from parcelcheck.services.dimensional_validator import DimensionalValidator
from parcelcheck.services.environmental_flags import generate_environmental_flags
from parcelcheck.services.rule_catalog import DEFAULT_RULES, InMemoryRuleCatalog
from parcelcheck.services.snapshot_aggregator import (
    SnapshotAggregator,
    buildability_category,
    build_utility_result,
    rule_category,
    snapshot_preview,
)
from parcelcheck.services.wastewater_assessor import WastewaterAssessor

ADDRESS = "123 Main St, Snohomish, WA 98290"


def _aggregator(sources, parcel, soil=None, sewer=None, clock=None) -> SnapshotAggregator:
    return SnapshotAggregator(
        parcel_source=sources.parcel(parcel),
        validator=DimensionalValidator(InMemoryRuleCatalog(DEFAULT_RULES)),
        assessor=WastewaterAssessor(sources.soil(soil), sources.sewer(sewer)),
        clock=clock,
    )


def _rule_check(status: RiskStatus) -> RuleCheckResult:
    return RuleCheckResult(
        id=f"check-{status.value}",
        name="Max Building Height",
        category="dimensional",
        rule_type="height_max",
        unit="feet",
        status=status,
        citation="SCC 30.23.050",
    )


def test_same_address_serialises_identically() -> None:
    aggregator = SnapshotAggregator()

    first = aggregator.generate_snapshot(ADDRESS)
    second = aggregator.generate_snapshot(ADDRESS)

    assert first.to_json() == second.to_json()
    assert first.generated_at is None
    assert first.id.startswith("snap_")


def test_different_addresses_get_different_ids() -> None:
    aggregator = SnapshotAggregator()
    assert aggregator.generate_snapshot(ADDRESS).id != aggregator.generate_snapshot("9 Elm Ave, Everett, WA").id


def test_injected_clock_stamps_generated_at(sources, parcel_factory) -> None:
    stamp = datetime(2024, 5, 1, 12, 0, 0)
    snapshot = _aggregator(sources, parcel_factory(), clock=lambda: stamp).generate_snapshot(ADDRESS)
    assert snapshot.generated_at == stamp


def test_default_parcel_source_parses_address() -> None:
    snapshot = SnapshotAggregator().generate_snapshot(ADDRESS)

    assert snapshot.address == "123 Main St"
    assert snapshot.city == "Snohomish"
    assert snapshot.state == "WA"
    assert snapshot.county == "Snohomish"
    assert snapshot.jurisdiction_name == "Snohomish, Snohomish County"
    assert 8000 <= snapshot.parcel_area.sqft < 48000


def test_reference_dwelling_front_setback_is_flagged(sources, parcel_factory, soil_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(), soil=soil_factory()).generate_snapshot(ADDRESS)

    front = next(c for c in snapshot.rule_checks if c.id == "check-setback_front-reference-primary")
    assert front.status == RiskStatus.FAIL
    assert front.excess == 0.4
    assert front.category == "dimensional"
    assert front.citation == "SCC 30.23.040(1)(a)"
    assert snapshot.buildability.status == RiskStatus.FAIL
    assert snapshot.overall_status == RiskStatus.FAIL


def test_required_sewer_makes_septic_row_pass(sources, parcel_factory, sewer_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(), sewer=sewer_factory()).generate_snapshot(ADDRESS)

    utility = snapshot.utility_result
    assert snapshot.wastewater.septic_feasibility == SepticFeasibility.NOT_FEASIBLE
    assert utility.sewer.status == RiskStatus.PASS
    assert utility.septic.status == RiskStatus.PASS
    assert snapshot.utilities.status == RiskStatus.PASS
    assert "Septic Perc Test" not in [g.field for g in snapshot.data_gaps]


def test_missing_soil_makes_utilities_at_least_warn(sources, parcel_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(), soil=None).generate_snapshot(ADDRESS)

    assert snapshot.utility_result.sewer.status == RiskStatus.WARN
    assert snapshot.utility_result.septic.status == RiskStatus.UNKNOWN
    assert snapshot.utilities.status == RiskStatus.WARN


@pytest.mark.parametrize(
    "feasibility,expected",
    [
        (SepticFeasibility.FEASIBLE, RiskStatus.PASS),
        (SepticFeasibility.CONDITIONAL, RiskStatus.WARN),
        (SepticFeasibility.CHALLENGING, RiskStatus.WARN),
        (SepticFeasibility.NOT_FEASIBLE, RiskStatus.FAIL),
        (SepticFeasibility.UNKNOWN, RiskStatus.UNKNOWN),
    ],
)
def test_septic_status_mapping(feasibility: SepticFeasibility, expected: RiskStatus) -> None:
    wastewater = WastewaterAssessment(
        sewer_available=False,
        sewer_required=False,
        septic_required=True,
        septic_feasibility=feasibility,
        estimated_cost=CostRange(min=0, max=0),
    )
    utility = build_utility_result(wastewater)

    assert utility.septic.status == expected
    assert utility.septic.system_type == "To be determined"
    assert utility.sewer.status == RiskStatus.WARN


@pytest.mark.parametrize(
    "statuses,expected",
    [
        ([], RiskStatus.PASS),
        ([RiskStatus.PASS, RiskStatus.PASS], RiskStatus.PASS),
        ([RiskStatus.PASS, RiskStatus.UNKNOWN], RiskStatus.UNKNOWN),
        ([RiskStatus.UNKNOWN, RiskStatus.WARN], RiskStatus.WARN),
        ([RiskStatus.WARN, RiskStatus.FAIL], RiskStatus.FAIL),
    ],
)
def test_buildability_precedence(statuses: list[RiskStatus], expected: RiskStatus) -> None:
    category = buildability_category([_rule_check(s) for s in statuses])
    assert category.status == expected
    assert category.label == "Buildability"


@pytest.mark.parametrize(
    "rule_type,expected",
    [
        ("setback_front", "dimensional"),
        ("height_max_accessory", "dimensional"),
        ("structure_separation", "dimensional"),
        ("lot_coverage_max", "lot"),
        ("far_max", "lot"),
        ("lot_size_min", "lot"),
        ("adu_size_max", "use"),
        ("use_permitted", "use"),
        ("parking_required", "zoning"),
    ],
)
def test_rule_category(rule_type: str, expected: str) -> None:
    assert rule_category(rule_type) == expected


@pytest.mark.parametrize(
    "seed,expected",
    [
        (0.1, {"flood-zone": RiskStatus.FAIL, "wetlands": RiskStatus.PASS, "slopes": RiskStatus.PASS}),
        (0.2, {"flood-zone": RiskStatus.WARN, "wetlands": RiskStatus.PASS, "slopes": RiskStatus.PASS}),
        (0.5, {"flood-zone": RiskStatus.PASS, "wetlands": RiskStatus.PASS, "slopes": RiskStatus.PASS}),
        (0.005, {
            "flood-zone": RiskStatus.FAIL,
            "wetlands": RiskStatus.WARN,
            "slopes": RiskStatus.WARN,
            "buffer": RiskStatus.WARN,
        }),
    ],
)
def test_environmental_flags(seed: float, expected: dict) -> None:
    flags = generate_environmental_flags(seed)

    assert {f.id: f.status for f in flags} == expected
    assert all(f.citations for f in flags)


def test_environmental_category_and_overall(sources, parcel_factory, soil_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(), soil=soil_factory()).generate_snapshot(ADDRESS)

    flag_statuses = [f.status for f in snapshot.environmental_flags]
    if RiskStatus.FAIL in flag_statuses:
        assert snapshot.environmental.status == RiskStatus.FAIL
    elif RiskStatus.WARN in flag_statuses:
        assert snapshot.environmental.status == RiskStatus.WARN
    else:
        assert snapshot.environmental.status == RiskStatus.PASS

    assert snapshot.overall_summary.endswith(".")


def test_data_gaps_always_include_survey_and_ordinance(sources, parcel_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(estimated=False)).generate_snapshot(ADDRESS)
    fields = [g.field for g in snapshot.data_gaps]

    assert fields[0] == "Parcel Survey"
    assert fields[-1] == "Ordinance Currency"
    assert "Septic Perc Test" in fields
    assert "Data Provenance" not in fields


def test_estimated_inputs_add_provenance_gap(sources, parcel_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(estimated=True)).generate_snapshot(ADDRESS)

    gap = next(g for g in snapshot.data_gaps if g.field == "Data Provenance")
    assert "parcel" in gap.description
    assert snapshot.data_sources[0].confidence == "low"


def test_citations_are_deduplicated(sources, parcel_factory, soil_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(), soil=soil_factory()).generate_snapshot(ADDRESS)
    assert len(snapshot.citations) == len(set(snapshot.citations))
    assert snapshot.citations


def test_preview_exposes_statuses_only(sources, parcel_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory()).generate_snapshot(ADDRESS)
    preview = snapshot_preview(snapshot)
    payload = preview.model_dump(by_alias=True)

    assert payload["preview"] is True
    assert payload["overallStatus"] == snapshot.overall_status
    assert payload["buildability"] == {"status": snapshot.buildability.status}
    assert "ruleChecks" not in payload
    assert "citations" not in payload


def test_uncatalogued_district_is_unknown_not_pass(sources, parcel_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(district_id="zone-r5")).generate_snapshot(ADDRESS)

    assert snapshot.rule_checks == []
    assert snapshot.buildability.status == RiskStatus.UNKNOWN
    assert snapshot.overall_status != RiskStatus.PASS

    fields = [g.field for g in snapshot.data_gaps]
    assert "Zoning Rules" in fields
    assert fields[-1] == "Ordinance Currency"
    zoning_gap = next(g for g in snapshot.data_gaps if g.field == "Zoning Rules")
    assert zoning_gap.next_step == "Confirm zoning standards with the local planning department."


def test_unknown_lot_area_is_disclosed(sources, parcel_factory) -> None:
    snapshot = _aggregator(sources, parcel_factory(area_sqft=None)).generate_snapshot(ADDRESS)

    assert "Lot Area" in [g.field for g in snapshot.data_gaps]
    assert snapshot.rule_checks


def test_buildability_without_checks_or_gaps_passes() -> None:
    assert buildability_category([]).status == RiskStatus.PASS
