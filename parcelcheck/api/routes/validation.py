"""Validation API endpoints: dimensional checks and wastewater assessment."""
from fastapi import APIRouter, HTTPException

from parcelcheck.models import (
    QuickValidateRequest,
    QuickValidation,
    ValidateRequest,
    ValidationResult,
    WastewaterAssessment,
    WastewaterRequest,
)
from parcelcheck.services import quick_validate_structure
from parcelcheck.services.dimensional_validator import get_dimensional_validator
from parcelcheck.services.wastewater_assessor import get_wastewater_assessor
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post("/validate", response_model=ValidationResult)
async def validate_project(request: ValidateRequest):
    """Validate proposed structures against the parcel's zoning rules.

    Args:
        request: Parcel record and its structures

    Returns:
        ValidationResult with one check per rule, structure and neighbor
    """
    logger.info("Received validation request",
               property_id=request.parcel.id,
               structure_count=len(request.structures))

    try:
        validator = get_dimensional_validator()
        return validator.evaluate(request.parcel, request.structures)

    except Exception as e:
        logger.error("Validation failed", error=str(e), property_id=request.parcel.id)
        raise HTTPException(
            status_code=500,
            detail="Failed to validate project"
        )


@router.post("/validate/quick", response_model=QuickValidation)
async def validate_structure(request: QuickValidateRequest):
    """Real-time feedback for a single structure while it is being placed."""
    try:
        return quick_validate_structure(request.structure)

    except Exception as e:
        logger.error("Quick validation failed", error=str(e), structure_id=request.structure.id)
        raise HTTPException(
            status_code=500,
            detail="Failed to validate structure"
        )


@router.post("/wastewater", response_model=WastewaterAssessment)
async def assess_wastewater(request: WastewaterRequest):
    """Sewer availability and septic feasibility for a parcel.

    Soil and sewer data given in the request replace the configured sources.
    """
    parcel = request.parcel
    logger.info("Received wastewater request",
               property_id=parcel.id,
               soil_override=request.soil is not None,
               sewer_override=request.sewer is not None)

    try:
        assessor = get_wastewater_assessor()
        soil = request.soil or assessor.soil_source.soil_at(parcel.centroid)
        sewer = request.sewer or assessor.sewer_source.sewer_at(parcel.centroid)
        return assessor.evaluate(parcel, soil, sewer)

    except Exception as e:
        logger.error("Wastewater assessment failed", error=str(e), property_id=parcel.id)
        raise HTTPException(
            status_code=500,
            detail="Failed to assess wastewater"
        )
