"""Best-effort audit trail writer"""

import logging
from typing import Any, Dict, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from finsight_gateway.domain.models import AuditAction
from finsight_gateway.infrastructure.database.models import AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """
    Writes audit rows inside a savepoint so a failed write never
    rolls back, or fails, the operation being audited.
    """

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        user_id: int,
        action: AuditAction,
        resource: str,
        resource_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            with self.db.begin_nested():
                self.db.add(entry)
            return entry
        except SQLAlchemyError as e:
            logger.warning(
                f"Audit write failed: {e}",
                extra={"user_id": user_id, "resource": resource, "resource_id": resource_id},
            )
            return None
