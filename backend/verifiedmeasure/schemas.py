"""Pydantic schemas for request/response validation.

Request models are deliberately lenient: field-level rules (non-empty ids,
positive amounts, required company) are enforced by the services so the
error messages stay the same for every client.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


# Entitlement Schemas
class ClaimRequest(BaseModel):
    """Claim entitlement for a set of leads."""
    lead_ids: List[str] = Field(default_factory=list)
    access_type: str = "download"

    @field_validator("lead_ids", mode="before")
    @classmethod
    def coerce_lead_ids(cls, v):
        if not isinstance(v, list):
            return []
        return [str(x) for x in v]

    @field_validator("access_type", mode="before")
    @classmethod
    def default_access_type(cls, v):
        return "download" if v is None else str(v)


class ClaimResponse(BaseModel):
    success: bool = True
    cost: int
    claimed: int
    newly_claimed_ids: List[str]
    new_balance: int


# Admin Schemas
class GrantCreditRequest(BaseModel):
    """Credit grant. Values are validated by the admin service."""
    user_id: Optional[Any] = None
    amount: Optional[Any] = None


class GrantCreditResponse(BaseModel):
    success: bool = True
    new_balance: int


class ImportLeadsRequest(BaseModel):
    rows: Optional[Any] = None


class ImportLeadsResponse(BaseModel):
    success: bool = True
    imported: int


class CsvPreviewRequest(BaseModel):
    csv: str = ""


class LeadRow(BaseModel):
    """Normalized import row as produced by the CSV parser."""
    company: str
    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class CsvPreviewResponse(BaseModel):
    success: bool = True
    total: int
    rows: List[LeadRow]


# Preview pool Schemas
class LeadPreview(BaseModel):
    """A lead as shown to one viewer: full when entitled, redacted otherwise."""
    id: str
    company: str
    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    entitled: bool


class LeadListResponse(BaseModel):
    total: int
    entitled: int
    available: int
    matched: int
    items: List[LeadPreview]


class MeResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    balance: int
    is_admin: bool
    entitled_count: int


# Signup helpers
class EmailCheckRequest(BaseModel):
    email: str = ""


class EmailCheckResponse(BaseModel):
    email: str
    valid: bool
