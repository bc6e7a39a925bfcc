"""Environmental flags - flood, wetland, slope and critical-area buffer screening."""
from typing import List

from parcelcheck.config import Settings, settings
from parcelcheck.models.snapshot import EnvironmentalFlag, FlagType
from parcelcheck.models.status import RiskStatus
from parcelcheck.models.zoning import Citation
from parcelcheck.services.data_sources import fraction

FEMA_NFHL = Citation(source="FEMA National Flood Hazard Layer", section="Flood Insurance Rate Map")
NWI = Citation(source="USFWS National Wetlands Inventory")
WETLAND_CODE = Citation(source="County Critical Areas Code", section="SCC 30.62A")
GEOHAZARD_CODE = Citation(source="County Critical Areas Code", section="SCC 30.62B")

VIEW_ON_MAP = "View on map"


def generate_environmental_flags(seed: float, thresholds: Settings = settings) -> List[EnvironmentalFlag]:
    """Screen a parcel from its address seed.

    Flood, wetland and slope flags are always present (passing when clear); the
    critical-area buffer flag only appears when triggered.

    Args:
        seed: Address seed (sum of character codes / 10,000)
        thresholds: Flag thresholds

    Returns:
        Flags in a fixed order: flood, wetlands, slopes, buffer
    """
    flags: List[EnvironmentalFlag] = []

    flood = fraction(seed)
    if flood < thresholds.flood_flag_threshold:
        in_sfha = flood < thresholds.flood_fail_threshold
        flags.append(EnvironmentalFlag(
            id="flood-zone",
            type=FlagType.FLOOD,
            label="Flood Zone",
            status=RiskStatus.FAIL if in_sfha else RiskStatus.WARN,
            description=(
                "Property is within FEMA Zone AE (Special Flood Hazard Area). Flood insurance required."
                if in_sfha else
                "Property is near Zone X (0.2% annual chance). Flood insurance recommended."
            ),
            action=VIEW_ON_MAP,
            citations=[FEMA_NFHL],
        ))
    else:
        flags.append(EnvironmentalFlag(
            id="flood-zone",
            type=FlagType.FLOOD,
            label="Flood Zone",
            status=RiskStatus.PASS,
            description="Property is not within a designated FEMA flood zone.",
            citations=[FEMA_NFHL],
        ))

    if fraction(seed * 7) < thresholds.wetland_flag_threshold:
        flags.append(EnvironmentalFlag(
            id="wetlands",
            type=FlagType.WETLAND,
            label="Wetlands",
            status=RiskStatus.WARN,
            description="Potential wetland features detected within 200ft. Buffer requirements may apply.",
            action=VIEW_ON_MAP,
            citations=[NWI, WETLAND_CODE],
        ))
    else:
        flags.append(EnvironmentalFlag(
            id="wetlands",
            type=FlagType.WETLAND,
            label="Wetlands",
            status=RiskStatus.PASS,
            description="No mapped wetlands within buffer distance of parcel.",
            citations=[NWI],
        ))

    if fraction(seed * 13) < thresholds.slope_flag_threshold:
        flags.append(EnvironmentalFlag(
            id="slopes",
            type=FlagType.SLOPE,
            label="Steep Slopes",
            status=RiskStatus.WARN,
            description="Portions of the site exceed 15% slope. Grading review may be required.",
            action=VIEW_ON_MAP,
            citations=[GEOHAZARD_CODE],
        ))
    else:
        flags.append(EnvironmentalFlag(
            id="slopes",
            type=FlagType.SLOPE,
            label="Slopes",
            status=RiskStatus.PASS,
            description="No steep slope concerns identified on parcel.",
            citations=[GEOHAZARD_CODE],
        ))

    if fraction(seed * 19) < thresholds.buffer_flag_threshold:
        flags.append(EnvironmentalFlag(
            id="buffer",
            type=FlagType.BUFFER,
            label="Critical Area Buffer",
            status=RiskStatus.WARN,
            description="Property may be within a critical area buffer zone. "
                        "Verification with local planning required.",
            action=VIEW_ON_MAP,
            citations=[WETLAND_CODE],
        ))

    return flags
