"""Services initialization."""
from parcelcheck.services.rule_catalog import RuleCatalog, InMemoryRuleCatalog, get_rule_catalog
from parcelcheck.services.dimensional_validator import DimensionalValidator, quick_validate_structure
from parcelcheck.services.wastewater_assessor import WastewaterAssessor
from parcelcheck.services.snapshot_aggregator import (
    SnapshotAggregator,
    get_snapshot_aggregator,
    snapshot_preview,
)
from parcelcheck.services.action_checklist import (
    CATEGORY_LABELS,
    generate_action_checklist,
    group_checklist_by_category,
)

__all__ = [
    "RuleCatalog",
    "InMemoryRuleCatalog",
    "get_rule_catalog",
    "DimensionalValidator",
    "quick_validate_structure",
    "WastewaterAssessor",
    "SnapshotAggregator",
    "get_snapshot_aggregator",
    "snapshot_preview",
    "generate_action_checklist",
    "group_checklist_by_category",
    "CATEGORY_LABELS",
]
