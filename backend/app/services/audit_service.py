"""
AuditService records who changed what in a company's compliance data.

Entries are added to the caller's session and committed with the change they
describe, so an audit entry never exists for a rolled back operation.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.database.models import AuditLog
from backend.app.utils.logging.logger import log_info


class AuditService:
    """Writes and lists audit log entries."""

    def __init__(self, db: Session):
        self.db = db

    def record(
            self,
            user_id: Optional[int],
            company_id: Optional[int],
            action: str,
            entity_type: str,
            entity_id: Optional[int] = None,
            details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Add an audit entry to the current transaction.

        Args:
            user_id: Acting user.
            company_id: Company whose data changed, None for platform data.
            action: Verb such as "create", "update", "delete".
            entity_type: Table-level name of the entity.
            entity_id: Identifier of the entity.
            details: Extra JSON-serializable data.
        """
        entry = AuditLog(
            user_id=user_id,
            company_id=company_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        self.db.add(entry)
        log_info(f"[AUDIT] {action} {entity_type} {entity_id or ''} by user {user_id}")
        return entry

    def list_logs(self, company_id: Optional[int] = None, limit: int = 100) -> List[AuditLog]:
        query = select(AuditLog).order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        if company_id is not None:
            query = query.where(AuditLog.company_id == company_id)
        return list(self.db.scalars(query.limit(max(1, min(limit, 1000)))))
