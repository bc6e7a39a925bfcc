"""Health check endpoints."""
from fastapi import APIRouter

from parcelcheck.models import HealthResponse
from parcelcheck.services import get_rule_catalog, get_snapshot_aggregator
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Resolved through the snapshot engine on every health check
HEALTH_CHECK_ADDRESS = "1 Health Check Way, Snohomish, WA"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for the evaluation engine.

    Returns:
        HealthResponse with status of the rule catalog and snapshot engine
    """
    logger.info("Performing health check")

    services_status = {
        "rule_catalog": False,
        "snapshot_engine": False,
    }

    try:
        services_status["rule_catalog"] = len(get_rule_catalog().all_rules()) > 0
    except Exception as e:
        logger.error("Rule catalog health check error", error=str(e))

    try:
        snapshot = get_snapshot_aggregator().generate_snapshot(HEALTH_CHECK_ADDRESS)
        services_status["snapshot_engine"] = snapshot.id.startswith("snap_")
    except Exception as e:
        logger.error("Snapshot engine health check error", error=str(e))

    all_healthy = all(services_status.values())
    status = "healthy" if all_healthy else "degraded"

    logger.info("Health check completed", status=status, services=services_status)

    return HealthResponse(
        status=status,
        services=services_status
    )
