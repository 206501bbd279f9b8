"""Administrator operations: credit grants and bulk lead import."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from verifiedmeasure.errors import NoValidRows, ValidationError
from verifiedmeasure.services.audit_service import AuditService
from verifiedmeasure.services.csv_import import parse_meta_text
from verifiedmeasure.services.lead_store import LeadStore
from verifiedmeasure.services.ledger_service import ADMIN_GRANT_REASON, LedgerService

logger = logging.getLogger(__name__)


@dataclass
class GrantResult:
    new_balance: int


@dataclass
class ImportResult:
    imported: int


def coerce_amount(value: Any) -> Optional[int]:
    """
    Whole credits from a JSON amount.

    Accepts ints, floats and numeric strings. Returns None for anything that is
    not finite or floors below 1.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    elif isinstance(value, float):
        number = value
    else:
        return None

    if not math.isfinite(number) or number <= 0:
        return None
    whole = math.floor(number)
    return whole if whole >= 1 else None


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_import_row(row: Any) -> Optional[Dict[str, Any]]:
    """Normalize one raw import row. Returns None when there is no company."""
    if not isinstance(row, dict):
        return None

    company = to_text(row.get("company"))
    if not company:
        return None

    raw_meta = row.get("meta")
    if isinstance(raw_meta, dict):
        meta = raw_meta
    elif isinstance(raw_meta, str):
        meta = parse_meta_text(raw_meta)
    else:
        meta = {}

    return {
        "company": company,
        "website": to_text(row.get("website")),
        "email": to_text(row.get("email")),
        "phone": to_text(row.get("phone")),
        "meta": meta,
    }


class AdminService:
    """Privileged mutations. Callers must already hold the admin capability."""

    def __init__(self, store: LeadStore):
        self.store = store
        self.ledger = LedgerService(store)

    async def grant_credit(self, admin_id: str, target_user_id: Any, amount: Any) -> GrantResult:
        user_id = str(target_user_id if target_user_id is not None else "").strip()
        if not user_id:
            raise ValidationError("user_id required")

        credits = coerce_amount(amount)
        if credits is None:
            raise ValidationError("amount must be positive")

        async with self.store.unit_of_work():
            await self.store.lock_user(user_id)

            balance_before = await self.ledger.get_balance(user_id)
            await self.ledger.append(
                user_id,
                delta=credits,
                reason=ADMIN_GRANT_REASON,
                meta={"granted_by": admin_id},
            )
            new_balance = await self.ledger.get_balance(user_id)

            await AuditService.log_action(
                self.store,
                actor_id=admin_id,
                action="credit_grant",
                entity="credit_ledger",
                meta={
                    "target_user_id": user_id,
                    "amount": credits,
                    "balance_before": balance_before,
                },
            )

        logger.info(f"Admin {admin_id} granted {credits} credits to {user_id} (balance {new_balance})")
        return GrantResult(new_balance=new_balance)

    async def import_leads(self, admin_id: str, rows: Any) -> ImportResult:
        if not isinstance(rows, list) or not rows:
            raise ValidationError("rows required")

        normalized: List[Dict[str, Any]] = []
        for row in rows:
            lead = normalize_import_row(row)
            if lead is not None:
                normalized.append(lead)

        if not normalized:
            raise NoValidRows("no valid rows")

        dropped = len(rows) - len(normalized)
        if dropped:
            logger.info(f"Import by {admin_id}: dropped {dropped} rows without a company")

        async with self.store.unit_of_work():
            inserted_ids = await self.store.insert_leads(normalized)
            imported = len(inserted_ids)

            await AuditService.log_action(
                self.store,
                actor_id=admin_id,
                action="import_leads",
                entity="leads",
                meta={"imported": imported},
            )

        logger.info(f"Admin {admin_id} imported {imported} leads")
        return ImportResult(imported=imported)
