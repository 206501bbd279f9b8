"""Unauthenticated helpers for the signup and login forms."""

from fastapi import APIRouter
from typing import Optional

from verifiedmeasure.schemas import EmailCheckRequest, EmailCheckResponse
from verifiedmeasure.services.email_validator import is_work_email

router = APIRouter()


@router.post("/check-email", response_model=EmailCheckResponse)
async def check_email(payload: Optional[EmailCheckRequest] = None):
    """Report whether an address is a work email (personal-mail domains are refused)."""
    payload = payload or EmailCheckRequest()
    email = payload.email.strip()
    return EmailCheckResponse(email=email, valid=is_work_email(email))
