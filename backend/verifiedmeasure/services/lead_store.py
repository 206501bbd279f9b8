"""
Data store adapter.

All SQL issued by the application goes through LeadStore. Services receive a
store instance explicitly, so tests can substitute an in-memory fake.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, Dict, Iterable, List, Optional, Set

from fastapi import Depends
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from verifiedmeasure.config import settings
from verifiedmeasure.database import get_db
from verifiedmeasure.errors import UpstreamError
from verifiedmeasure.models import AdminUser, AuditLogEntry, CreditLedgerEntry, Lead, LeadAccess

logger = logging.getLogger(__name__)


def _upstream(func_):
    """Translate driver/ORM failures into UpstreamError."""
    @wraps(func_)
    async def wrapper(*args, **kwargs):
        try:
            return await func_(*args, **kwargs)
        except SQLAlchemyError as e:
            message = str(getattr(e, "orig", None) or e)
            logger.error(f"Store call {func_.__name__} failed: {message}")
            raise UpstreamError(message) from e
    return wrapper


def _as_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise UpstreamError(f'invalid input syntax for type uuid: "{value}"')


class LeadStore:
    """Thin async repository over the leads / ledger / audit tables."""

    def __init__(
        self,
        db: AsyncSession,
        balance_function: Optional[str] = None,
        serialize_claims: bool = True,
    ):
        self.db = db
        self.balance_function = balance_function
        self.serialize_claims = serialize_claims

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def unit_of_work(self):
        """Run the enclosed reads and writes in a single transaction."""
        try:
            yield self
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            message = str(getattr(e, "orig", None) or e)
            logger.error(f"Transaction rolled back: {message}")
            raise UpstreamError(message) from e
        except Exception:
            await self.db.rollback()
            raise

    @_upstream
    async def lock_user(self, user_id: str) -> None:
        """Serialize ledger mutations for one user until the transaction ends."""
        if not self.serialize_claims:
            return
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(str(_as_uuid(user_id)))))
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @_upstream
    async def get_balance(self, user_id: str) -> int:
        uid = _as_uuid(user_id)
        if self.balance_function:
            stmt = select(getattr(func, self.balance_function)(uid))
        else:
            stmt = select(func.coalesce(func.sum(CreditLedgerEntry.delta), 0)).where(
                CreditLedgerEntry.user_id == uid
            )
        result = await self.db.execute(stmt)
        value = result.scalar()
        return int(value or 0)

    @_upstream
    async def fetch_entitled_ids(
        self, user_id: str, lead_ids: Optional[Iterable[str]] = None
    ) -> Set[str]:
        """Lead ids the user holds entitlement for, optionally restricted to `lead_ids`."""
        stmt = select(LeadAccess.lead_id).where(LeadAccess.user_id == _as_uuid(user_id))
        if lead_ids is not None:
            wanted = [_as_uuid(lead_id) for lead_id in lead_ids]
            if not wanted:
                return set()
            stmt = stmt.where(LeadAccess.lead_id.in_(wanted))
        result = await self.db.execute(stmt)
        return {str(lead_id) for lead_id in result.scalars().all()}

    @_upstream
    async def list_leads(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(Lead).order_by(Lead.created_at.desc()))
        return [
            {
                "id": str(lead.id),
                "company": lead.company,
                "website": lead.website,
                "email": lead.email,
                "phone": lead.phone,
                "meta": lead.meta or {},
                "created_at": lead.created_at,
            }
            for lead in result.scalars().all()
        ]

    @_upstream
    async def is_admin(self, user_id: str) -> bool:
        try:
            uid = uuid.UUID(str(user_id))
        except ValueError:
            return False
        result = await self.db.execute(
            select(AdminUser.user_id).where(AdminUser.user_id == uid)
        )
        return result.scalar_one_or_none() is not None

    # ------------------------------------------------------------------
    # Writes (flushed, committed by unit_of_work)
    # ------------------------------------------------------------------

    @_upstream
    async def insert_lead_access(self, user_id: str, lead_ids: List[str]) -> None:
        uid = _as_uuid(user_id)
        self.db.add_all([LeadAccess(user_id=uid, lead_id=_as_uuid(lead_id)) for lead_id in lead_ids])
        await self.db.flush()

    @_upstream
    async def insert_ledger_entry(
        self, user_id: str, delta: int, reason: str, meta: Optional[Dict[str, Any]] = None
    ) -> None:
        self.db.add(CreditLedgerEntry(
            user_id=_as_uuid(user_id),
            delta=delta,
            reason=reason,
            meta=meta or {},
        ))
        await self.db.flush()

    @_upstream
    async def insert_audit(
        self,
        actor_id: str,
        action: str,
        entity: str,
        entity_id: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.db.add(AuditLogEntry(
            actor_id=_as_uuid(actor_id),
            action=action,
            entity=entity,
            entity_id=entity_id,
            meta=meta or {},
        ))
        await self.db.flush()

    @_upstream
    async def insert_leads(self, rows: List[Dict[str, Any]]) -> List[str]:
        leads = [
            Lead(
                id=uuid.uuid4(),
                company=row["company"],
                website=row.get("website"),
                email=row.get("email"),
                phone=row.get("phone"),
                meta=row.get("meta") or {},
            )
            for row in rows
        ]
        self.db.add_all(leads)
        await self.db.flush()
        return [str(lead.id) for lead in leads]


async def get_store(db: AsyncSession = Depends(get_db)) -> LeadStore:
    """Dependency: one store per request, bound to the request's session."""
    return LeadStore(
        db,
        balance_function=settings.BALANCE_FUNCTION,
        serialize_claims=settings.SERIALIZE_CLAIMS,
    )
