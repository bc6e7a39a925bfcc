"""Data models initialization."""
from parcelcheck.models.status import RiskStatus, worst_of
from parcelcheck.models.zoning import (
    RuleType,
    StructureType,
    Citation,
    ZoningRule,
    Coordinates,
    PropertyRecord,
    Structure,
    ValidationCheck,
    ValidationResult,
    QuickValidation,
)
from parcelcheck.models.wastewater import (
    SepticFeasibility,
    SoilData,
    SewerServiceArea,
    WastewaterAssessment,
)
from parcelcheck.models.snapshot import (
    SnapshotResult,
    SnapshotPreview,
    ActionItem,
)
from parcelcheck.models.schemas import (
    SnapshotRequest,
    SnapshotResponse,
    ChecklistRequest,
    ChecklistResponse,
    ValidateRequest,
    QuickValidateRequest,
    WastewaterRequest,
    RulesResponse,
    HealthResponse,
)

__all__ = [
    "RiskStatus",
    "worst_of",
    "RuleType",
    "StructureType",
    "Citation",
    "ZoningRule",
    "Coordinates",
    "PropertyRecord",
    "Structure",
    "ValidationCheck",
    "ValidationResult",
    "QuickValidation",
    "SepticFeasibility",
    "SoilData",
    "SewerServiceArea",
    "WastewaterAssessment",
    "SnapshotResult",
    "SnapshotPreview",
    "ActionItem",
    "SnapshotRequest",
    "SnapshotResponse",
    "ChecklistRequest",
    "ChecklistResponse",
    "ValidateRequest",
    "QuickValidateRequest",
    "WastewaterRequest",
    "RulesResponse",
    "HealthResponse",
]
