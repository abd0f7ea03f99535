import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clientdesk.database import get_db
from clientdesk.models.user import User
from clientdesk.schemas.messaging import ReminderRunRequest
from clientdesk.services.auth_middleware import get_current_admin
from clientdesk.services.payment_reminder_service import check_and_send_payment_reminders
from clientdesk.utils.response import create_response, handle_exception

router = APIRouter(prefix="/admin/reminders", tags=["Reminders"])
logger = logging.getLogger(__name__)


@router.post("/run")
def run_payment_reminders(
    body: ReminderRunRequest | None = None,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        today = body.today if body else None
        logger.info("Admin %s triggered payment reminders for %s", admin.id, today or "today")
        summary = check_and_send_payment_reminders(db, today=today)
        return create_response(
            message="Payment reminders processed",
            data=summary,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to process payment reminders")
