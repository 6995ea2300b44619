"""Key/value system settings: the upload kill-switch and storage quota checks."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.system_setting import SystemSetting
from app.services import storage

logger = logging.getLogger(__name__)

UPLOAD_STATUS_KEY = "upload_status"
DEFAULT_DISABLED_REASON = "Uploads temporarily paused by admin"
STORAGE_FULL_REASON = "Storage limit reached. Uploads have been automatically disabled."

BYTES_PER_GB = 1024 ** 3


def get_setting(db: Session, key: str, default: Any = None) -> Any:
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    return row.value if row else default


def set_setting(db: Session, key: str, value: Any, updated_by: int | None = None) -> SystemSetting:
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if row:
        row.value = value
        row.updated_by = updated_by
    else:
        row = SystemSetting(key=key, value=value, updated_by=updated_by)
        db.add(row)
    return row


def get_upload_status(db: Session) -> dict:
    """Uploads are enabled unless an admin (or the quota job) switched them off."""
    value = get_setting(db, UPLOAD_STATUS_KEY)
    if not isinstance(value, dict):
        return {"enabled": True, "reason": None, "auto_disabled": False, "updated_at": None}
    return {
        "enabled": bool(value.get("enabled", True)),
        "reason": value.get("reason"),
        "auto_disabled": bool(value.get("auto_disabled", False)),
        "updated_at": value.get("updated_at"),
    }


def set_upload_status(
    db: Session,
    *,
    enabled: bool,
    reason: str | None = None,
    updated_by: int | None = None,
    auto_disabled: bool = False,
) -> dict:
    value = {
        "enabled": enabled,
        "reason": None if enabled else (reason or DEFAULT_DISABLED_REASON),
        "auto_disabled": auto_disabled and not enabled,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    set_setting(db, UPLOAD_STATUS_KEY, value, updated_by)
    logger.info(f"Upload status set | enabled={enabled} | auto={auto_disabled} | by={updated_by}")
    return value


def compute_storage_usage() -> dict:
    """Total bucket usage against the configured quota. Raises StorageError."""
    objects = storage.list_objects()
    used = sum(size for _, size in objects)
    limit = settings.storage_limit_bytes
    ratio = used / limit if limit else 0.0
    return {
        "usedBytes": used,
        "usedGB": round(used / BYTES_PER_GB, 3),
        "limitBytes": limit,
        "limitGB": round(limit / BYTES_PER_GB, 3),
        "percentUsed": round(ratio * 100, 2),
        "objectCount": len(objects),
        "isNearLimit": ratio >= settings.storage_warning_threshold,
        "isAtLimit": ratio >= 1,
    }


def enforce_storage_limit(db: Session, usage: dict) -> bool:
    """Switch uploads off when the bucket is full. Returns True if this call disabled them."""
    if not usage["isAtLimit"]:
        return False
    if not get_upload_status(db)["enabled"]:
        return False
    set_upload_status(db, enabled=False, reason=STORAGE_FULL_REASON, auto_disabled=True)
    logger.warning(
        f"Storage limit reached ({usage['percentUsed']}%), uploads automatically disabled"
    )
    return True
