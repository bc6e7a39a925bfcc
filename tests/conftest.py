from typing import Callable, Optional

import pytest

from parcelcheck.models.wastewater import SepticSuitability, SewerServiceArea, SoilData
from parcelcheck.models.zoning import (
    Coordinates,
    DataProvenance,
    Jurisdiction,
    PropertyRecord,
    ZoningDistrict,
)
from parcelcheck.services.data_sources import ParcelSource, SewerSource, SoilSource


class FixedParcelSource(ParcelSource):
    def __init__(self, parcel: PropertyRecord):
        self.parcel = parcel
        self.calls: list[str] = []

    def resolve(self, address: str) -> PropertyRecord:
        self.calls.append(address)
        return self.parcel.model_copy(update={"address": address.split(",")[0]})


class FixedSoilSource(SoilSource):
    def __init__(self, soil: Optional[SoilData]):
        self.soil = soil

    def soil_at(self, point: Coordinates) -> Optional[SoilData]:
        return self.soil


class FixedSewerSource(SewerSource):
    def __init__(self, sewer: Optional[SewerServiceArea]):
        self.sewer = sewer

    def sewer_at(self, point: Coordinates) -> Optional[SewerServiceArea]:
        return self.sewer


def build_parcel(
    area_sqft: Optional[float] = 10000,
    district_id: Optional[str] = None,
    category: str = "residential_single",
    estimated: bool = False,
) -> PropertyRecord:
    return PropertyRecord(
        id="prop-test",
        address="100 Test St",
        city="Snohomish",
        state="WA",
        county="Snohomish",
        centroid=Coordinates(lat=47.9, lng=-122.1),
        area_sqft=area_sqft,
        area_acres=area_sqft / 43560 if area_sqft else None,
        lot_width=80,
        lot_depth=125,
        jurisdiction=Jurisdiction(id="snohomish-county", name="Snohomish County", state_code="WA"),
        zoning_district=(
            ZoningDistrict(
                id=district_id,
                jurisdiction_id="snohomish-county",
                code="R-7200",
                name="Urban Residential 7200",
                category=category,
            )
            if district_id else None
        ),
        data_sources=[
            DataProvenance(
                dataset="parcel",
                source_name="County GIS" if not estimated else "Address-derived estimate",
                source_type="GIS" if not estimated else "derived",
                confidence="high" if not estimated else "low",
                estimated=estimated,
            )
        ],
    )


def build_soil(**overrides) -> SoilData:
    fields = dict(
        mukey="SOIL-1",
        musym="AlB",
        muname="Alderwood gravelly sandy loam",
        septic_suitability=SepticSuitability.WELL_SUITED,
        depth_to_water_table_min=60,
        depth_to_restrictive_layer=72,
        slope_low=0,
        slope_high=8,
    )
    fields.update(overrides)
    return SoilData(**fields)


def build_sewer(required: bool = True, available: bool = True, hookup_cost: Optional[float] = 8000) -> SewerServiceArea:
    return SewerServiceArea(
        provider_name="City of Everett",
        provider_type="municipal",
        connection_required=required,
        connection_available=available,
        distance_to_main=120,
        hookup_cost=hookup_cost,
        monthly_rate=80,
    )


@pytest.fixture
def parcel_factory() -> Callable[..., PropertyRecord]:
    return build_parcel


@pytest.fixture
def soil_factory() -> Callable[..., SoilData]:
    return build_soil


@pytest.fixture
def sewer_factory() -> Callable[..., SewerServiceArea]:
    return build_sewer


@pytest.fixture
def sources():
    """Namespace of fake source classes."""
    class Sources:
        parcel = FixedParcelSource
        soil = FixedSoilSource
        sewer = FixedSewerSource
    return Sources
