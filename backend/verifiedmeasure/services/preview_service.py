"""Preview pool: every lead, redacted unless the viewer is entitled."""

import json
import logging
from typing import Any, Dict, List, Optional, Set

from verifiedmeasure.services.entitlement_service import is_entitled
from verifiedmeasure.services.lead_store import LeadStore
from verifiedmeasure.services.masking import redact_lead

logger = logging.getLogger(__name__)


def render_lead(lead: Dict[str, Any], entitled_ids: Set[str]) -> Dict[str, Any]:
    if is_entitled(entitled_ids, lead["id"]):
        return {**lead, "entitled": True}
    return {**redact_lead(lead), "entitled": False}


def matches_query(rendered: Dict[str, Any], query: str) -> bool:
    haystack = " ".join([
        rendered.get("company") or "",
        rendered.get("website") or "",
        rendered.get("email") or "",
        rendered.get("phone") or "",
        json.dumps(rendered.get("meta") or {}, default=str),
    ]).lower()
    return query in haystack


class PreviewService:

    def __init__(self, store: LeadStore):
        self.store = store

    async def list_for_user(
        self,
        user_id: str,
        query: Optional[str] = None,
        limit: int = 500,
        offset: int = 0,
    ) -> Dict[str, Any]:
        leads = await self.store.list_leads()
        entitled_ids = await self.store.fetch_entitled_ids(user_id)

        rendered: List[Dict[str, Any]] = [render_lead(lead, entitled_ids) for lead in leads]

        needle = (query or "").strip().lower()
        if needle:
            rendered = [lead for lead in rendered if matches_query(lead, needle)]

        entitled_count = sum(1 for lead in leads if lead["id"] in entitled_ids)

        return {
            "total": len(leads),
            "entitled": entitled_count,
            "available": max(0, len(leads) - entitled_count),
            "matched": len(rendered),
            "items": rendered[offset:offset + limit],
        }
