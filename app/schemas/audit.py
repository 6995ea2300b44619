from datetime import datetime

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: int
    user_id: int | None = None
    user_name: str | None = None
    action: str
    resource_type: str
    resource_id: int | None = None
    details: str | None = None
    ip_address: str | None = None
    created_at: datetime | None = None


class AuditLogList(BaseModel):
    items: list[AuditLogResponse]
    total: int
