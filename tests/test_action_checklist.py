import pytest

from parcelcheck.models.snapshot import ActionCategory, ActionStatus
from parcelcheck.services.action_checklist import generate_action_checklist, group_checklist_by_category
from parcelcheck.services.dimensional_validator import DimensionalValidator
from parcelcheck.services.rule_catalog import DEFAULT_RULES, InMemoryRuleCatalog
from parcelcheck.services.snapshot_aggregator import SnapshotAggregator
from parcelcheck.services.wastewater_assessor import WastewaterAssessor

ADDRESS = "55 Orchard Rd, Monroe, WA"


def _snapshot(sources, parcel, soil=None, sewer=None):
    aggregator = SnapshotAggregator(
        parcel_source=sources.parcel(parcel),
        validator=DimensionalValidator(InMemoryRuleCatalog(DEFAULT_RULES)),
        assessor=WastewaterAssessor(sources.soil(soil), sources.sewer(sewer)),
    )
    return aggregator.generate_snapshot(ADDRESS)


def _items(snapshot, rules=()):
    return {item.id: item for item in generate_action_checklist(snapshot, rules)}


def test_checklist_covers_every_action(sources, parcel_factory) -> None:
    items = generate_action_checklist(_snapshot(sources, parcel_factory()))

    assert [i.id for i in items] == [
        "build-home", "multi-family", "adu", "dadu", "garage", "pool",
        "subdivide", "lot-line-adjustment", "sewer-connect", "septic-install",
        "flood-zone", "wetlands", "building-permit", "env-review",
    ]


def test_grouping_keeps_every_category(sources, parcel_factory) -> None:
    items = generate_action_checklist(_snapshot(sources, parcel_factory()))
    groups = group_checklist_by_category(items)

    assert set(groups) == set(ActionCategory)
    assert sum(len(group) for group in groups.values()) == len(items)
    assert [i.id for i in groups[ActionCategory.UTILITIES]] == ["sewer-connect", "septic-install"]


def test_failed_setback_makes_home_conditional(sources, parcel_factory) -> None:
    build_home = _items(_snapshot(sources, parcel_factory()))["build-home"]

    assert build_home.status == ActionStatus.CONDITIONAL
    assert build_home.conditions == ["Front Setback: required 25 feet, current capacity needs verification"]
    assert build_home.citations


def _named_district(parcel_factory, name: str):
    parcel = parcel_factory(district_id="zone-r1")
    district = parcel.zoning_district.model_copy(update={"name": name})
    return parcel.model_copy(update={"zoning_district": district})


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Single Family Residential", ActionStatus.RESTRICTED),
        ("Mixed Use", ActionStatus.UNKNOWN),
    ],
)
def test_multi_family_depends_on_district(sources, parcel_factory, name, expected) -> None:
    parcel = _named_district(parcel_factory, name)
    assert _items(_snapshot(sources, parcel))["multi-family"].status == expected


def test_subdivision_depends_on_twice_minimum_lot(sources, parcel_factory) -> None:
    big = _items(_snapshot(sources, parcel_factory(area_sqft=20000)))["subdivide"]
    assert big.status == ActionStatus.CONDITIONAL
    assert big.citations[0].source == "SCC 30.23.030"

    small = _items(_snapshot(sources, parcel_factory(area_sqft=10000)))["subdivide"]
    assert small.status == ActionStatus.RESTRICTED
    assert "14,400 sqft required" in small.summary


def test_adu_uses_catalog_rules_when_given(sources, parcel_factory) -> None:
    snapshot = _snapshot(sources, parcel_factory(area_sqft=10000))

    assert _items(snapshot)["adu"].status == ActionStatus.UNKNOWN
    with_rules = _items(snapshot, DEFAULT_RULES)["adu"]
    assert with_rules.status == ActionStatus.ALLOWED
    assert with_rules.citations[0].source == "SCC 30.23.110"


def test_small_lot_restricts_adu_and_dadu(sources, parcel_factory) -> None:
    items = _items(_snapshot(sources, parcel_factory(area_sqft=7000)), DEFAULT_RULES)

    assert items["adu"].status == ActionStatus.RESTRICTED
    assert items["dadu"].status == ActionStatus.RESTRICTED


def test_required_sewer_restricts_septic(sources, parcel_factory, sewer_factory) -> None:
    items = _items(_snapshot(sources, parcel_factory(), sewer=sewer_factory()))

    assert items["sewer-connect"].status == ActionStatus.ALLOWED
    assert "City of Everett" in items["sewer-connect"].summary
    assert items["septic-install"].status == ActionStatus.RESTRICTED


def test_septic_follows_feasibility(sources, parcel_factory, soil_factory) -> None:
    feasible = _items(_snapshot(sources, parcel_factory(area_sqft=20000), soil=soil_factory()))
    assert feasible["septic-install"].status == ActionStatus.ALLOWED
    assert feasible["sewer-connect"].status == ActionStatus.RESTRICTED

    unknown = _items(_snapshot(sources, parcel_factory(), soil=None))
    assert unknown["septic-install"].status == ActionStatus.UNKNOWN
    assert unknown["septic-install"].data_gaps

    too_small = _items(_snapshot(sources, parcel_factory(area_sqft=6000), soil=soil_factory()))
    assert too_small["septic-install"].status == ActionStatus.RESTRICTED


def test_environmental_items_track_flags(sources, parcel_factory) -> None:
    snapshot = _snapshot(sources, parcel_factory())
    items = _items(snapshot)

    flagged = [f for f in snapshot.environmental_flags if f.status != "pass"]
    review = items["env-review"]
    if flagged:
        assert review.status == ActionStatus.CONDITIONAL
        assert len(review.conditions) == len(flagged)
    else:
        assert review.status == ActionStatus.ALLOWED


def test_home_is_unknown_without_zoning_rules(sources, parcel_factory) -> None:
    build_home = _items(_snapshot(sources, parcel_factory(district_id="zone-r5")))["build-home"]

    assert build_home.status == ActionStatus.UNKNOWN
    assert build_home.data_gaps
    assert build_home.citations == []
