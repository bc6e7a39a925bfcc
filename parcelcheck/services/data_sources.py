"""Data sources - resolve an address to a parcel, and a centroid to soil and sewer data.

The engine only ever sees these interfaces. The default implementations are
deterministic estimators seeded from the address or coordinates; they stand in
for GIS, soil survey and utility-map lookups and label their output as
estimated.
"""
import math
from abc import ABC, abstractmethod
from typing import Optional

from parcelcheck.models.wastewater import (
    DrainageClass,
    HydricRating,
    SepticSuitability,
    SewerServiceArea,
    SoilData,
)
from parcelcheck.models.zoning import (
    Coordinates,
    DataProvenance,
    Jurisdiction,
    PropertyRecord,
    ZoningDistrict,
)
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)

SQFT_PER_ACRE = 43560

DEFAULT_CITY = "Snohomish"
DEFAULT_STATE = "WA"
DEFAULT_COUNTY = "Snohomish"


def address_hash(address: str) -> int:
    """Sum of the address's character codes."""
    return sum(ord(char) for char in address)


def address_seed(address: str) -> float:
    """Unbounded seed used by the environmental flags and data gaps."""
    return address_hash(address) / 10000


def fraction(value: float) -> float:
    """Fractional part of a non-negative number."""
    return value % 1


class ParcelSource(ABC):
    """Resolves a free-form address to a parcel record."""

    @abstractmethod
    def resolve(self, address: str) -> PropertyRecord:
        ...


class SoilSource(ABC):
    """Looks up the soil map unit at a point. ``None`` when nothing is mapped."""

    @abstractmethod
    def soil_at(self, point: Coordinates) -> Optional[SoilData]:
        ...


class SewerSource(ABC):
    """Looks up the sewer service area covering a point. ``None`` when unsewered."""

    @abstractmethod
    def sewer_at(self, point: Coordinates) -> Optional[SewerServiceArea]:
        ...


class AddressSeededParcelSource(ParcelSource):
    """Estimates a parcel from the address alone.

    The same address always yields the same parcel. Coordinates land in the
    Puget Sound area; lot size, width and depth scale with the seed.
    """

    def resolve(self, address: str) -> PropertyRecord:
        hash_value = address_hash(address)
        seed = (hash_value % 10000) / 10000

        parts = [part.strip() for part in address.split(",")]
        street = parts[0] or address
        city = parts[1] if len(parts) > 1 and parts[1] else DEFAULT_CITY
        state_zip = parts[2] if len(parts) > 2 and parts[2] else DEFAULT_STATE
        state = state_zip.split(" ")[0] or DEFAULT_STATE

        lot_sqft = 8000 + math.floor(seed * 40000)

        if seed > 0.7:
            code, name = "R-5", "Rural Residential 5-Acre"
        elif seed > 0.4:
            code, name = "R-7200", "Urban Residential 7200"
        else:
            code, name = "R-1", "Single Family Residential"

        jurisdiction_id = "snohomish-county"
        jurisdiction_name = city if "County" in city else f"{city}, {DEFAULT_COUNTY} County"

        parcel = PropertyRecord(
            id=f"prop_{hash_value}",
            address=street,
            city=city,
            state=state,
            county=DEFAULT_COUNTY,
            centroid=Coordinates(lat=47.5 + seed * 0.5, lng=-122.3 + seed * 0.3),
            area_sqft=lot_sqft,
            area_acres=lot_sqft / SQFT_PER_ACRE,
            lot_width=math.floor(60 + seed * 100),
            lot_depth=math.floor(100 + seed * 150),
            jurisdiction=Jurisdiction(
                id=jurisdiction_id,
                name=jurisdiction_name,
                type="county",
                state_code=state,
                data_quality="partial",
            ),
            zoning_district=ZoningDistrict(
                id="zone-r1",
                jurisdiction_id=jurisdiction_id,
                code=code,
                name=name,
                category="residential_single",
            ),
            data_sources=[
                DataProvenance(
                    dataset="parcel",
                    source_name="Address-derived estimate",
                    source_type="derived",
                    confidence="low",
                    estimated=True,
                ),
            ],
        )
        logger.debug("Parcel resolved", address=address, property_id=parcel.id, lot_sqft=lot_sqft)
        return parcel


SOIL_SUITABILITIES = (
    SepticSuitability.WELL_SUITED,
    SepticSuitability.SOMEWHAT_LIMITED,
    SepticSuitability.SOMEWHAT_LIMITED,
    SepticSuitability.VERY_LIMITED,
)
SOIL_DRAINAGE = (
    DrainageClass.WELL_DRAINED,
    DrainageClass.MODERATELY_WELL_DRAINED,
    DrainageClass.SOMEWHAT_POORLY_DRAINED,
    DrainageClass.POORLY_DRAINED,
)
SOIL_SYMBOLS = ("AlB", "EvC", "ToA", "RaD")
SOIL_NAMES = (
    "Alderwood gravelly sandy loam",
    "Everett very gravelly sandy loam",
    "Tokul silt loam",
    "Ragnar fine sandy loam",
)


class CoordinateSeededSoilSource(SoilSource):
    """Estimates a soil map unit from the centroid."""

    def soil_at(self, point: Coordinates) -> Optional[SoilData]:
        seed = abs(math.sin(point.lat * 1000 + point.lng * 100))
        suitability_index = min(math.floor(seed * 4), 3)
        drainage_index = math.floor((seed * 10) % 4)

        limitations = []
        if suitability_index >= 2:
            limitations.append("Slow percolation")
        if drainage_index >= 2:
            limitations.append("High water table")
        if seed > 0.7:
            limitations.append("Restrictive layer")
        if seed > 0.8:
            limitations.append("Steep slopes")

        return SoilData(
            mukey=f"SOIL-{math.floor(seed * 100000)}",
            musym=SOIL_SYMBOLS[suitability_index],
            muname=SOIL_NAMES[suitability_index],
            septic_suitability=SOIL_SUITABILITIES[suitability_index],
            septic_limitations=limitations,
            drainage_class=SOIL_DRAINAGE[drainage_index],
            hydric_rating=HydricRating.PARTIALLY_HYDRIC if drainage_index >= 3 else HydricRating.NOT_HYDRIC,
            depth_to_water_table_min=24 + math.floor(seed * 60),
            depth_to_restrictive_layer=30 + math.floor(seed * 50),
            slope_low=math.floor(seed * 5),
            slope_high=5 + math.floor(seed * 20),
        )


class CoordinateSeededSewerSource(SewerSource):
    """Places roughly three parcels in ten inside a sewer service area."""

    def sewer_at(self, point: Coordinates) -> Optional[SewerServiceArea]:
        seed = abs(math.cos(point.lat * 500 + point.lng * 200))
        if seed > 0.3:
            return None

        municipal = seed < 0.15
        return SewerServiceArea(
            provider_name="City of Seattle" if municipal else "King County Sewer District",
            provider_type="municipal" if municipal else "utility_district",
            connection_required=True,
            connection_available=True,
            distance_to_main=math.floor(seed * 500),
            hookup_cost=5000 + math.floor(seed * 15000),
            monthly_rate=50 + math.floor(seed * 100),
        )
