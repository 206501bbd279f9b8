"""Lead claim endpoint."""

from fastapi import APIRouter, Depends
from typing import Optional
import logging

from verifiedmeasure.auth import CurrentUser, get_current_user
from verifiedmeasure.schemas import ClaimRequest, ClaimResponse
from verifiedmeasure.services.entitlement_service import EntitlementService
from verifiedmeasure.services.lead_store import LeadStore, get_store

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/claim", response_model=ClaimResponse)
async def claim_leads(
    payload: Optional[ClaimRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    store: LeadStore = Depends(get_store),
):
    """
    Claim entitlement for leads.
    
    - **lead_ids**: lead UUIDs; malformed ids are ignored
    - **access_type**: `download` or `export`
    
    Costs one credit per lead not already entitled. Fails with 402 and no
    writes when the balance does not cover the cost.
    """
    payload = payload or ClaimRequest()

    result = await EntitlementService(store).claim(
        current_user.id,
        payload.lead_ids,
        access_type=payload.access_type,
    )

    return ClaimResponse(
        cost=result.cost,
        claimed=result.claimed,
        newly_claimed_ids=result.newly_claimed_ids,
        new_balance=result.new_balance,
    )
