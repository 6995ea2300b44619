import json
import logging
from typing import Any

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.audit_log import AuditAction, AuditLog

logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    *,
    user_id: int | None,
    action: AuditAction | str,
    resource_type: str,
    resource_id: int | None = None,
    details: dict[str, Any] | None = None,
    request: Request | None = None,
) -> None:
    """Insert an audit log entry for an admin action.

    Runs inside a SAVEPOINT so a failed insert never breaks the caller's
    transaction; the caller still owns the final commit.
    """
    if not settings.audit_log_enabled:
        return
    ip_address = None
    user_agent = None
    if request is not None:
        ip_address = request.client.host if request.client else None
        user_agent = (request.headers.get("user-agent") or "")[:500] or None
    try:
        with db.begin_nested():
            db.add(AuditLog(
                user_id=user_id,
                action=action.value if isinstance(action, AuditAction) else action,
                resource_type=resource_type,
                resource_id=resource_id,
                details=json.dumps(details, default=str) if details else None,
                ip_address=ip_address,
                user_agent=user_agent,
            ))
            db.flush()
    except Exception:
        logger.warning("Failed to write audit log", exc_info=True)
