"""Credit ledger balance derivation."""

import logging

from verifiedmeasure.services.lead_store import LeadStore

logger = logging.getLogger(__name__)

CLAIM_REASON = "claim_leads"
ADMIN_GRANT_REASON = "admin_grant"


class LedgerService:
    """
    Balance is never stored: it is the sum of every delta recorded for a user,
    aggregated by the store on each call.
    """

    def __init__(self, store: LeadStore):
        self.store = store

    async def get_balance(self, user_id: str) -> int:
        balance = await self.store.get_balance(user_id)
        logger.debug(f"Balance for {user_id}: {balance}")
        return balance

    async def append(self, user_id: str, delta: int, reason: str, meta=None) -> None:
        """Append one signed delta. Rows are never updated or deleted."""
        await self.store.insert_ledger_entry(user_id=user_id, delta=delta, reason=reason, meta=meta)
        logger.info(f"Ledger entry appended: user={user_id} delta={delta:+d} reason={reason}")
