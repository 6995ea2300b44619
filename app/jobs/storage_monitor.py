import logging

from sqlalchemy.orm import Session

from app.db.database import SessionLocal
from app.services import settings_service, storage

logger = logging.getLogger(__name__)


async def check_storage_usage():
    """Recompute bucket usage and switch uploads off once the quota is reached.

    Runs daily. Crossing the warning threshold only logs; reaching 100%
    disables uploads with an automatic reason an admin can later clear.
    """
    logger.info("Running storage usage check...")

    db: Session = SessionLocal()
    try:
        usage = settings_service.compute_storage_usage()
        if settings_service.enforce_storage_limit(db, usage):
            db.commit()
        elif usage["isNearLimit"]:
            logger.warning(
                f"Storage at {usage['percentUsed']}% of limit "
                f"({usage['usedGB']} / {usage['limitGB']} GB)"
            )
        logger.info(
            f"Storage usage check complete | used={usage['usedBytes']} | "
            f"objects={usage['objectCount']} | percent={usage['percentUsed']}"
        )
    except storage.StorageError as e:
        logger.error(f"Storage usage check could not reach R2: {e}")
        db.rollback()
    except Exception as e:
        logger.error(f"Storage usage check failed: {e}", exc_info=True)
        db.rollback()
    finally:
        db.close()
