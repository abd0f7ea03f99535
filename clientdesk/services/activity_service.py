import logging
from datetime import datetime

from sqlalchemy.orm import Session

from clientdesk.models.activity import Activity

logger = logging.getLogger(__name__)

MAX_DETAIL_PREVIEW = 100


def log_activity(
    db: Session,
    client_id: int,
    action: str,
    details: str = "",
    actor: str | None = None,
) -> Activity | None:
    """Append an activity entry; a failed write is logged and otherwise ignored."""
    try:
        activity = Activity(
            client_id=client_id,
            action=action,
            details=details,
            actor=actor or "User",
            timestamp=datetime.utcnow(),
        )
        db.add(activity)
        db.commit()
        db.refresh(activity)
        return activity
    except Exception:
        db.rollback()
        logger.exception("Failed to log activity %r for client %s", action, client_id)
        return None


def preview(text: str, limit: int = MAX_DETAIL_PREVIEW) -> str:
    return (text or "")[:limit]
