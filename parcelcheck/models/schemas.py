"""Pydantic models for API requests and responses."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

from parcelcheck.models.snapshot import ActionItem, SnapshotResult
from parcelcheck.models.wastewater import SewerServiceArea, SoilData
from parcelcheck.models.zoning import PropertyRecord, Structure, ZoningRule


class ApiModel(BaseModel):
    """Request/response body with camelCase wire names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SnapshotRequest(ApiModel):
    """Body of POST /snapshot.

    ``address`` and ``user_id`` are optional here so the route can answer with
    400 / 401 itself instead of a generic 422.
    """
    address: Optional[Any] = Field(None, description="Free-form street address")
    user_id: Optional[str] = Field(None, description="Authenticated user id")
    idempotency_key: Optional[str] = Field(None, description="Client key for safe retries")


class SnapshotResponse(ApiModel):
    success: bool = Field(..., description="Whether the snapshot was generated")
    snapshot: SnapshotResult
    credit_deducted: bool = Field(..., description="Whether a credit was charged")
    idempotency_key: Optional[str] = None


class ChecklistRequest(ApiModel):
    address: str = Field(..., min_length=1)


class ChecklistResponse(ApiModel):
    address: str
    items: List[ActionItem] = Field(default_factory=list)
    by_category: Dict[str, List[ActionItem]] = Field(default_factory=dict)
    category_labels: Dict[str, str] = Field(default_factory=dict)


class ValidateRequest(ApiModel):
    parcel: PropertyRecord = Field(..., alias="property")
    structures: List[Structure] = Field(default_factory=list)


class QuickValidateRequest(ApiModel):
    structure: Structure


class WastewaterRequest(ApiModel):
    parcel: PropertyRecord = Field(..., alias="property")
    soil: Optional[SoilData] = Field(None, description="Overrides the soil source when given")
    sewer: Optional[SewerServiceArea] = Field(None, description="Overrides the sewer source when given")


class RulesResponse(ApiModel):
    rule_count: int
    rules: List[ZoningRule] = Field(default_factory=list)


class HealthResponse(ApiModel):
    """Health check response."""
    status: str = Field(..., description="Overall health status")
    services: Dict[str, bool] = Field(..., description="Status of individual services")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
