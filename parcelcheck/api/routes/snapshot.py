"""Snapshot API endpoints."""
from collections import OrderedDict
from datetime import datetime
from typing import Optional, Tuple

from fastapi import APIRouter, HTTPException, Query

from parcelcheck.config import settings
from parcelcheck.models import (
    ChecklistRequest,
    ChecklistResponse,
    SnapshotPreview,
    SnapshotRequest,
    SnapshotResponse,
)
from parcelcheck.services import (
    CATEGORY_LABELS,
    generate_action_checklist,
    get_snapshot_aggregator,
    group_checklist_by_category,
    snapshot_preview,
)
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# (user id, idempotency key) -> response, oldest first
_idempotency_cache: "OrderedDict[Tuple[str, str], SnapshotResponse]" = OrderedDict()


def _remember(key: Tuple[str, str], response: SnapshotResponse) -> None:
    _idempotency_cache[key] = response
    _idempotency_cache.move_to_end(key)
    while len(_idempotency_cache) > settings.snapshot_cache_max_items:
        _idempotency_cache.popitem(last=False)


def _require_address(address) -> str:
    if not isinstance(address, str) or not address.strip():
        raise HTTPException(status_code=400, detail="Address is required")
    return address.strip()


@router.post("/snapshot", response_model=SnapshotResponse)
async def create_snapshot(request: SnapshotRequest):
    """Generate the full feasibility snapshot for an address.

    Args:
        request: Address, authenticated user id and optional idempotency key

    Returns:
        SnapshotResponse with the complete snapshot

    Raises:
        HTTPException: 400 without an address, 401 without a user
    """
    address = _require_address(request.address)
    if not request.user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    cache_key = (request.user_id, request.idempotency_key) if request.idempotency_key else None
    if cache_key and cache_key in _idempotency_cache:
        logger.info("Returning cached snapshot", idempotency_key=request.idempotency_key)
        _idempotency_cache.move_to_end(cache_key)
        return _idempotency_cache[cache_key]

    logger.info("Received snapshot request", address=address, user_id=request.user_id)

    try:
        aggregator = get_snapshot_aggregator()
        snapshot = aggregator.generate_snapshot(address, clock=datetime.utcnow)

        response = SnapshotResponse(
            success=True,
            snapshot=snapshot,
            credit_deducted=True,
            idempotency_key=request.idempotency_key,
        )
        if cache_key:
            _remember(cache_key, response)

        logger.info("Snapshot generated",
                    address=address,
                    overall_status=snapshot.overall_status.value)
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Snapshot generation failed", error=str(e), address=address)
        raise HTTPException(
            status_code=500,
            detail="Failed to generate snapshot"
        )


@router.get("/snapshot", response_model=SnapshotPreview)
async def preview_snapshot(address: Optional[str] = Query(None, description="Street address")):
    """Free preview: headline statuses only.

    Raises:
        HTTPException: 400 without an address
    """
    address = _require_address(address)
    logger.info("Received snapshot preview request", address=address)

    try:
        snapshot = get_snapshot_aggregator().generate_snapshot(address)
        return snapshot_preview(snapshot)

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Snapshot preview failed", error=str(e), address=address)
        raise HTTPException(
            status_code=500,
            detail="Failed to generate snapshot"
        )


@router.post("/snapshot/checklist", response_model=ChecklistResponse)
async def snapshot_checklist(request: ChecklistRequest):
    """Action checklist ("can I build an ADU? subdivide?") for an address."""
    address = _require_address(request.address)
    logger.info("Received checklist request", address=address)

    try:
        aggregator = get_snapshot_aggregator()
        snapshot = aggregator.generate_snapshot(address)
        parcel = aggregator.parcel_source.resolve(address)
        rules = aggregator.validator.catalog.rules_for(parcel)

        items = generate_action_checklist(snapshot, rules)
        groups = group_checklist_by_category(items)

        return ChecklistResponse(
            address=snapshot.address,
            items=items,
            by_category={category.value: grouped for category, grouped in groups.items()},
            category_labels={category.value: label for category, label in CATEGORY_LABELS.items()},
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Checklist generation failed", error=str(e), address=address)
        raise HTTPException(
            status_code=500,
            detail="Failed to generate snapshot"
        )
