"""Rule catalog endpoints."""
from fastapi import APIRouter

from parcelcheck.models import RulesResponse
from parcelcheck.services import get_rule_catalog

router = APIRouter()


@router.get("/rules", response_model=RulesResponse)
async def list_rules():
    """Every rule in the active catalog."""
    rules = get_rule_catalog().all_rules()
    return RulesResponse(rule_count=len(rules), rules=list(rules))
