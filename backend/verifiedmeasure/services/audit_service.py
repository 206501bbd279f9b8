"""Audit logging service for entitlement, credit and import actions."""

import logging
from typing import Optional, Dict, Any

from verifiedmeasure.services.lead_store import LeadStore

logger = logging.getLogger(__name__)


class AuditService:
    """Service for creating audit log entries."""
    
    @staticmethod
    async def log_action(
        store: LeadStore,
        actor_id: str,
        action: str,
        entity: str,
        entity_id: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Create an audit log entry inside the caller's unit of work.
        
        Failures propagate so the enclosing transaction rolls back together
        with the mutation being audited.
        """
        await store.insert_audit(
            actor_id=actor_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id else None,
            meta=meta or {},
        )
        
        logger.info(f"Audit log created: {action} on {entity} by {actor_id}")
