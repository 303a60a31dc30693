import logging
from typing import Optional
from fastapi import Request
from app.db.session import Database
from app.models.audit import AuditLog

logger = logging.getLogger(__name__)

class AuditLogger:
    """Records completed mutations in their own session.

    Called after the primary operation has committed; a failure here is logged
    and dropped so it can never fail or roll back that operation.
    """

    def __init__(self, database: Database, enabled: bool = False):
        self.database = database
        self.enabled = enabled

    def record(
        self,
        action: str,
        resource: str,
        resource_id: Optional[int] = None,
        actor_id: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        if not self.enabled:
            return
        try:
            with self.database.session() as session:
                entry = AuditLog(
                    action=f"{action.upper()}_{resource.upper()}",
                    resource=resource,
                    resource_id=resource_id,
                    actor_id=actor_id,
                    details=details or {},
                )
                session.add(entry)
                session.commit()
        except Exception:
            logger.exception("Audit logging failed for %s %s %s", action, resource, resource_id)

def get_audit_logger(request: Request) -> AuditLogger:
    return request.app.state.audit
