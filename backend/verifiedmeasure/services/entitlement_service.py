"""
Entitlement service: claim workflow.

A claim pays one credit per net-new lead. Leads the user already holds are
free and produce no writes, so re-claiming is idempotent.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Set

from verifiedmeasure.errors import InsufficientCredits, ValidationError
from verifiedmeasure.services.audit_service import AuditService
from verifiedmeasure.services.lead_store import LeadStore
from verifiedmeasure.services.ledger_service import CLAIM_REASON, LedgerService

logger = logging.getLogger(__name__)

LEAD_ID_PATTERN = re.compile(r"^[0-9a-fA-F-]{36}$")


class AccessType(str, Enum):
    DOWNLOAD = "download"
    EXPORT = "export"


@dataclass
class ClaimResult:
    """Outcome of a successful claim."""
    cost: int
    claimed: int
    newly_claimed_ids: List[str] = field(default_factory=list)
    new_balance: int = 0


def clean_lead_ids(lead_ids: Iterable[Any]) -> List[str]:
    """Keep well-formed ids, lowercased, first occurrence only, in request order."""
    cleaned = []
    seen = set()
    for raw in lead_ids:
        lead_id = str(raw)
        if not LEAD_ID_PATTERN.match(lead_id):
            continue
        # stored ids come back in canonical lowercase form
        lead_id = lead_id.lower()
        if lead_id in seen:
            continue
        seen.add(lead_id)
        cleaned.append(lead_id)
    return cleaned


def is_entitled(entitled_ids: Set[str], lead_id: str) -> bool:
    """Capability check used to pick the full or redacted rendering of a lead."""
    return str(lead_id).lower() in entitled_ids


class EntitlementService:
    """Create lead entitlements and debit the credit ledger."""

    def __init__(self, store: LeadStore):
        self.store = store
        self.ledger = LedgerService(store)

    async def claim(
        self,
        user_id: str,
        lead_ids: Iterable[Any],
        access_type: AccessType = AccessType.DOWNLOAD,
    ) -> ClaimResult:
        try:
            access_type = AccessType(access_type)
        except ValueError:
            raise ValidationError("access_type must be one of: download, export")

        requested = clean_lead_ids(lead_ids)
        if not requested:
            raise ValidationError("lead_ids required")

        async with self.store.unit_of_work():
            await self.store.lock_user(user_id)

            already_entitled = await self.store.fetch_entitled_ids(user_id, requested)
            new_ids = [lead_id for lead_id in requested if lead_id not in already_entitled]
            cost = len(new_ids)

            balance = await self.ledger.get_balance(user_id)
            if balance < cost:
                logger.warning(
                    f"Claim rejected for {user_id}: cost {cost} exceeds balance {balance}"
                )
                raise InsufficientCredits("Insufficient credits.")

            if cost > 0:
                await self.store.insert_lead_access(user_id, new_ids)
                await self.ledger.append(
                    user_id,
                    delta=-cost,
                    reason=CLAIM_REASON,
                    meta={"access_type": access_type.value},
                )

            new_balance = await self.ledger.get_balance(user_id)

            await AuditService.log_action(
                self.store,
                actor_id=user_id,
                action="claim",
                entity="lead_access",
                meta={
                    "requested": len(requested),
                    "newly_entitled": cost,
                    "access_type": access_type.value,
                },
            )

        logger.info(
            f"Claim by {user_id}: requested={len(requested)} new={cost} "
            f"balance {balance} -> {new_balance}"
        )

        return ClaimResult(
            cost=cost,
            claimed=len(requested),
            newly_claimed_ids=new_ids,
            new_balance=new_balance,
        )
