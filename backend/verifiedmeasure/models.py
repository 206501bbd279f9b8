"""
SQLAlchemy ORM models.

Users live in the auth provider's schema; tables here only carry the user id.
Every table except `leads` is append-only from the application's point of view.
"""

from sqlalchemy import (
    Column, String, Integer, Text, Index, TIMESTAMP, ForeignKey, UniqueConstraint, CheckConstraint
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func
from verifiedmeasure.database import Base
import uuid


# ============================================================================
# LEAD MODELS
# ============================================================================

class Lead(Base):
    """A lead in the shared preview pool. Immutable once imported."""
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company = Column(Text, nullable=False)
    website = Column(Text)
    email = Column(Text)
    phone = Column(Text)
    meta = Column(JSONB, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint("length(btrim(company)) > 0", name="chk_lead_company"),
    )

    def __repr__(self):
        return f"<Lead(id={self.id}, company='{self.company}')>"


class LeadAccess(Base):
    """Entitlement row. Its existence is the entitlement."""
    __tablename__ = "lead_access"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "lead_id", name="uq_lead_access_user_lead"),
    )


# ============================================================================
# LEDGER & AUDIT
# ============================================================================

class CreditLedgerEntry(Base):
    """Signed credit delta. Balance is the sum of deltas per user."""
    __tablename__ = "credit_ledger"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    delta = Column(Integer, nullable=False)
    reason = Column(String(50), nullable=False)
    meta = Column(JSONB, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_credit_ledger_user_created", "user_id", "created_at"),
    )


class AuditLogEntry(Base):
    """Audit log for entitlement, credit and import actions."""
    __tablename__ = "audit_log"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    actor_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    entity = Column(String(50), nullable=False)
    entity_id = Column(String(100), nullable=True)
    meta = Column(JSONB, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_audit_actor_created", "actor_id", "created_at"),
        Index("idx_audit_action_created", "action", "created_at"),
    )


class AdminUser(Base):
    """Users holding the administrator capability."""
    __tablename__ = "admin_users"

    user_id = Column(UUID(as_uuid=True), primary_key=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
