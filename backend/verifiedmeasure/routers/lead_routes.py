"""Preview pool and account endpoints."""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from verifiedmeasure.auth import CurrentUser, get_current_user
from verifiedmeasure.schemas import LeadListResponse, MeResponse
from verifiedmeasure.services.ledger_service import LedgerService
from verifiedmeasure.services.lead_store import LeadStore, get_store
from verifiedmeasure.services.preview_service import PreviewService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/leads", response_model=LeadListResponse)
async def list_leads(
    q: Optional[str] = Query(None, description="Search company, website, email, phone and meta"),
    limit: int = Query(500, ge=1, le=5000),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    store: LeadStore = Depends(get_store),
):
    """
    List the preview pool, newest first.
    
    Leads the caller is not entitled to come back with contact fields masked.
    """
    return await PreviewService(store).list_for_user(
        current_user.id, query=q, limit=limit, offset=offset
    )


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    store: LeadStore = Depends(get_store),
):
    """Current user's balance, admin flag and entitlement count."""
    balance = await LedgerService(store).get_balance(current_user.id)
    entitled_ids = await store.fetch_entitled_ids(current_user.id)

    return MeResponse(
        user_id=current_user.id,
        email=current_user.email,
        balance=balance,
        is_admin=await store.is_admin(current_user.id),
        entitled_count=len(entitled_ids),
    )
