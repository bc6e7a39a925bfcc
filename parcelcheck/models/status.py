"""Four-valued risk status shared by every evaluator.

Severity order is total and fixed: ``fail > warn > unknown > pass``. Both the
dimensional validator and the snapshot aggregator combine statuses through
:func:`worst_of`, so the ordering lives in exactly one place.
"""
from enum import Enum
from typing import Iterable


class RiskStatus(str, Enum):
    """Outcome of a check, a category, or a whole report."""
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    UNKNOWN = "unknown"


STATUS_SEVERITY = {
    RiskStatus.PASS: 0,
    RiskStatus.UNKNOWN: 1,
    RiskStatus.WARN: 2,
    RiskStatus.FAIL: 3,
}


def severity(status: RiskStatus) -> int:
    """Rank of a status in the severity order (higher is worse)."""
    return STATUS_SEVERITY[RiskStatus(status)]


def worst_of(statuses: Iterable[RiskStatus]) -> RiskStatus:
    """Combine statuses into the most severe one.

    An empty input yields ``pass``: nothing was found to object to.
    """
    worst = RiskStatus.PASS
    for status in statuses:
        status = RiskStatus(status)
        if STATUS_SEVERITY[status] > STATUS_SEVERITY[worst]:
            worst = status
    return worst
