"""Administrator endpoints: credit grants and lead import."""

from fastapi import APIRouter, Depends, UploadFile, File
from typing import Optional
import csv
import logging

from verifiedmeasure.auth import CurrentUser, require_admin
from verifiedmeasure.config import settings
from verifiedmeasure.errors import ValidationError
from verifiedmeasure.schemas import (
    GrantCreditRequest, GrantCreditResponse,
    ImportLeadsRequest, ImportLeadsResponse,
    CsvPreviewRequest, CsvPreviewResponse,
)
from verifiedmeasure.services.admin_service import AdminService
from verifiedmeasure.services.csv_import import decode_csv_bytes, parse_leads_csv, preview_leads_csv
from verifiedmeasure.services.lead_store import LeadStore, get_store

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/grant-credit", response_model=GrantCreditResponse)
async def grant_credit(
    payload: Optional[GrantCreditRequest] = None,
    current_user: CurrentUser = Depends(require_admin),
    store: LeadStore = Depends(get_store),
):
    """
    Grant credits to a user (Admin only).
    
    Appends one positive ledger entry of `floor(amount)` credits.
    """
    payload = payload or GrantCreditRequest()

    result = await AdminService(store).grant_credit(
        current_user.id,
        payload.user_id,
        payload.amount,
    )
    return GrantCreditResponse(new_balance=result.new_balance)


@router.post("/import-leads", response_model=ImportLeadsResponse)
async def import_leads(
    payload: Optional[ImportLeadsRequest] = None,
    current_user: CurrentUser = Depends(require_admin),
    store: LeadStore = Depends(get_store),
):
    """
    Bulk import leads (Admin only).
    
    Rows without a company are dropped; the request fails only when none remain.
    """
    payload = payload or ImportLeadsRequest()

    result = await AdminService(store).import_leads(current_user.id, payload.rows)
    return ImportLeadsResponse(imported=result.imported)


@router.post("/import-leads/preview", response_model=CsvPreviewResponse)
async def preview_csv_import(
    payload: Optional[CsvPreviewRequest] = None,
    current_user: CurrentUser = Depends(require_admin),
):
    """Parse CSV text and return the row count plus the first rows."""
    payload = payload or CsvPreviewRequest()

    try:
        preview = preview_leads_csv(payload.csv, limit=settings.CSV_PREVIEW_ROWS)
    except csv.Error as e:
        raise ValidationError(f"Failed to parse CSV: {e}")

    logger.info(f"CSV preview: {preview['total']} rows - {current_user.id}")
    return CsvPreviewResponse(total=preview["total"], rows=preview["rows"])


@router.post("/import-leads/csv", response_model=ImportLeadsResponse)
async def import_leads_csv(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_admin),
    store: LeadStore = Depends(get_store),
):
    """Bulk import leads from an uploaded CSV file (Admin only)."""

    content = await file.read()
    if len(content) == 0:
        raise ValidationError("File is empty")

    try:
        rows = parse_leads_csv(decode_csv_bytes(content))
    except csv.Error as e:
        raise ValidationError(f"Failed to parse CSV: {e}")

    if not rows:
        raise ValidationError("No rows parsed from CSV.")

    result = await AdminService(store).import_leads(current_user.id, rows)
    return ImportLeadsResponse(imported=result.imported)
