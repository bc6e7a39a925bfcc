"""Rule catalog - immutable, queryable set of jurisdiction zoning rules."""
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence, Tuple

from parcelcheck.models.zoning import PropertyRecord, RuleType, StructureType, ZoningRule
from parcelcheck.utils.logging import get_logger

logger = get_logger(__name__)

# Rules carrying this jurisdiction id apply to every parcel
ANY_JURISDICTION = "*"

_ALL_LOT_STRUCTURES = (
    StructureType.PRIMARY_DWELLING, StructureType.ADU, StructureType.DADU,
    StructureType.GARAGE, StructureType.SHOP, StructureType.SHED,
    StructureType.POOL, StructureType.DECK, StructureType.PATIO,
)


class RuleCatalog(ABC):
    """Read-only repository of zoning rules."""

    @abstractmethod
    def all_rules(self) -> Tuple[ZoningRule, ...]:
        """Every rule the catalog holds."""

    def rules_for(self, parcel: PropertyRecord) -> Tuple[ZoningRule, ...]:
        """Rules applicable to a parcel's jurisdiction and zoning district."""
        jurisdiction_id = parcel.jurisdiction_id
        district_id = parcel.district_id
        return tuple(
            rule for rule in self.all_rules()
            if rule.jurisdiction_id in (ANY_JURISDICTION, jurisdiction_id)
            and (rule.district_id is None or district_id is None or rule.district_id == district_id)
        )

    @staticmethod
    def find(
        rules: Iterable[ZoningRule],
        rule_types: Sequence[RuleType],
        structure_type: Optional[StructureType] = None,
    ) -> Optional[ZoningRule]:
        """First rule of one of ``rule_types`` (in that preference order).

        When ``structure_type`` is given the rule must also apply to it.
        """
        rules = tuple(rules)
        for rule_type in rule_types:
            for rule in rules:
                if rule.rule_type != rule_type:
                    continue
                if structure_type is not None and not rule.applies(structure_type):
                    continue
                return rule
        return None


class InMemoryRuleCatalog(RuleCatalog):
    """Catalog over a fixed tuple of rules."""

    def __init__(self, rules: Iterable[ZoningRule]):
        self._rules: Tuple[ZoningRule, ...] = tuple(rules)
        logger.debug("Rule catalog loaded", rule_count=len(self._rules))

    def all_rules(self) -> Tuple[ZoningRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)


def _rule(rule_id: str, rule_type: RuleType, applies_to, section: str, text: str,
          value: Optional[float] = None, unit: Optional[str] = None,
          value_text: Optional[str] = None) -> ZoningRule:
    return ZoningRule(
        id=rule_id,
        jurisdiction_id=ANY_JURISDICTION,
        district_id="zone-r1",
        rule_type=rule_type,
        applies_to=tuple(applies_to),
        value_numeric=value,
        value_text=value_text,
        unit=unit,
        ordinance_section=section,
        ordinance_text=text,
    )


# Reference single-family (R-1) catalog
DEFAULT_RULES: Tuple[ZoningRule, ...] = (
    _rule(
        "rule-setback-front", RuleType.SETBACK_FRONT,
        (StructureType.PRIMARY_DWELLING, StructureType.ADU, StructureType.DADU, StructureType.GARAGE),
        "SCC 30.23.040(1)(a)",
        "The minimum front yard setback for all structures shall be twenty-five (25) feet from the front property line.",
        25, "feet",
    ),
    _rule(
        "rule-setback-side", RuleType.SETBACK_SIDE, (StructureType.PRIMARY_DWELLING,),
        "SCC 30.23.040(1)(b)",
        "Side yard setbacks for the principal structure shall be a minimum of ten (10) feet.",
        10, "feet",
    ),
    _rule(
        "rule-setback-side-accessory", RuleType.ACCESSORY_SETBACK,
        (StructureType.GARAGE, StructureType.SHOP, StructureType.SHED, StructureType.ADU, StructureType.DADU),
        "SCC 30.23.040(3)",
        "Accessory structures not exceeding 15 feet in height may be located within 5 feet of side and rear property lines.",
        5, "feet",
    ),
    _rule(
        "rule-setback-rear", RuleType.SETBACK_REAR, (StructureType.PRIMARY_DWELLING,),
        "SCC 30.23.040(1)(c)",
        "The minimum rear yard setback shall be twenty (20) feet for principal structures.",
        20, "feet",
    ),
    _rule(
        "rule-height-max", RuleType.HEIGHT_MAX, (StructureType.PRIMARY_DWELLING,),
        "SCC 30.23.050",
        "The maximum building height for principal structures shall be thirty-five (35) feet.",
        35, "feet",
    ),
    _rule(
        "rule-height-accessory", RuleType.HEIGHT_MAX_ACCESSORY,
        (StructureType.GARAGE, StructureType.SHOP, StructureType.SHED, StructureType.BARN,
         StructureType.ADU, StructureType.DADU),
        "SCC 30.23.050(2)",
        "Accessory structures shall not exceed twenty (20) feet in height.",
        20, "feet",
    ),
    _rule(
        "rule-lot-coverage", RuleType.LOT_COVERAGE_MAX, _ALL_LOT_STRUCTURES,
        "SCC 30.23.060(1)",
        "Maximum lot coverage by all structures shall not exceed 35% of the total lot area.",
        35, "percent",
    ),
    _rule(
        "rule-far", RuleType.FAR_MAX,
        (StructureType.PRIMARY_DWELLING, StructureType.ADU, StructureType.DADU),
        "SCC 30.23.060(2)",
        "Floor area ratio shall not exceed 0.5:1.",
        0.5, "ratio",
    ),
    _rule(
        "rule-adu-allowed", RuleType.ADU_ALLOWED, (StructureType.ADU, StructureType.DADU),
        "SCC 30.23.110",
        "One accessory dwelling unit is permitted per lot containing a single-family dwelling "
        "on lots of 7,500 square feet or larger.",
        value_text="permitted",
    ),
    _rule(
        "rule-adu-size", RuleType.ADU_SIZE_MAX, (StructureType.ADU, StructureType.DADU),
        "SCC 30.23.110(3)",
        "The ADU shall not exceed 1,000 square feet or 50% of the primary dwelling floor area, whichever is less.",
        1000, "sqft",
    ),
    _rule(
        "rule-structure-separation", RuleType.STRUCTURE_SEPARATION,
        (StructureType.PRIMARY_DWELLING, StructureType.ADU, StructureType.DADU,
         StructureType.GARAGE, StructureType.SHOP),
        "SCC 30.23.070",
        "Structures shall maintain a minimum separation of six (6) feet from other structures on the same lot.",
        6, "feet",
    ),
    _rule(
        "rule-lot-size-min", RuleType.LOT_SIZE_MIN, _ALL_LOT_STRUCTURES,
        "SCC 30.23.030",
        "Minimum lot size for R-1 zone: 7,200 sqft.",
        7200, "sqft",
    ),
)


# Global singleton instance
_rule_catalog: Optional[RuleCatalog] = None


def get_rule_catalog() -> RuleCatalog:
    """Get the global rule catalog instance.

    Returns:
        RuleCatalog singleton holding the reference rules
    """
    global _rule_catalog
    if _rule_catalog is None:
        _rule_catalog = InMemoryRuleCatalog(DEFAULT_RULES)
    return _rule_catalog
