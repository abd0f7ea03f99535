import asyncio
import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

from clientdesk.config import settings
from clientdesk.database import SessionLocal
from clientdesk.models.user import User
from clientdesk.services import email_service
from clientdesk.services.activity_service import log_activity
from clientdesk.services.payment_schedule import (
    REMINDER_FIVE_DAYS_AFTER,
    REMINDER_ON_PAY_DAY,
    REMINDER_ONE_DAY_BEFORE,
    REMINDER_TEN_DAYS_BEFORE,
    anchor_date,
    due_reminder,
)

logger = logging.getLogger(__name__)

REMINDER_MESSAGES = {
    REMINDER_TEN_DAYS_BEFORE: (
        "Friendly Reminder: Your Payment for {pay_date} is Approaching!",
        "Dear {first_name},\n\nThis is a friendly reminder that your payment for your services with us "
        "is due on {pay_date}. Please ensure your payment is processed on time.\n\nThank you,\n",
    ),
    REMINDER_ONE_DAY_BEFORE: (
        "Urgent Reminder: Your Payment for {pay_date} is Tomorrow!",
        "Dear {first_name},\n\nJust a quick heads-up: your payment for your services with us is due "
        "tomorrow, {pay_date}. Please make sure your payment is completed by then.\n\nBest regards,\n",
    ),
    REMINDER_ON_PAY_DAY: (
        "Payment Due Today: {pay_date}!",
        "Dear {first_name},\n\nYour payment for services is due today, {pay_date}. "
        "We appreciate your prompt payment.\n\nThank you,\n",
    ),
    REMINDER_FIVE_DAYS_AFTER: (
        "Action Required: Overdue Payment for {pay_date}",
        "Dear {first_name},\n\nOur records show that your payment due on {pay_date} is now 5 days overdue. "
        "Please settle this amount as soon as possible to avoid any service interruption. "
        "If you have already made the payment, please disregard this email.\n\n"
        "Contact us if you have any questions.\n\nSincerely,\n",
    ),
}


def format_pay_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def _pass_timestamp(today: date | None) -> datetime:
    now = datetime.utcnow()
    return datetime.combine(today, now.time()) if today else now


def _later_stamp(previous: str | None, stamp: datetime) -> str:
    """Keep an existing stamp that is newer than a back-filled one."""
    if not previous:
        return stamp.isoformat()
    try:
        newer = datetime.fromisoformat(previous) > stamp
    except (TypeError, ValueError):
        newer = False
    return previous if newer else stamp.isoformat()


def build_reminder(client: User, reminder_type: str, pay_date: date) -> tuple[str, str]:
    if reminder_type not in REMINDER_MESSAGES:
        raise ValueError(f"Unknown reminder type: {reminder_type}")
    subject, message = REMINDER_MESSAGES[reminder_type]
    values = {"first_name": client.first_name or "", "pay_date": format_pay_date(pay_date)}
    return subject.format(**values), message.format(**values)


def send_payment_reminder(
    db: Session,
    client: User,
    reminder_type: str,
    pay_date: date,
    today: date | None = None,
) -> bool:
    subject, message = build_reminder(client, reminder_type, pay_date)
    try:
        email_service.send_template(
            "client_message",
            client.email,
            {"to_name": client.full_name, "subject": subject, "message": message},
        )
    except Exception:
        logger.exception("Failed to send %s reminder to client %s", reminder_type, client.id)
        return False

    sent = dict(client.last_reminder_sent or {})
    sent[reminder_type] = _later_stamp(sent.get(reminder_type), _pass_timestamp(today))
    client.last_reminder_sent = sent
    db.commit()
    logger.info(
        "Sent %s reminder to client %s for pay date %s",
        reminder_type.replace("_", " "),
        client.id,
        pay_date,
    )
    log_activity(
        db,
        client.id,
        "Sent Payment Reminder",
        f"{reminder_type.replace('_', ' ')} ({format_pay_date(pay_date)})",
        actor="System",
    )
    return True


def check_and_send_payment_reminders(db: Session, today: date | None = None) -> dict:
    """Single pass over all clients; no retries, failures are counted and logged."""
    today = today or datetime.utcnow().date()
    clients = db.query(User).filter(User.role == "client").all()
    sent: list[dict] = []
    failed: list[dict] = []
    skipped = 0

    for client in clients:
        join_date = anchor_date(client)
        if not client.email or join_date is None:
            skipped += 1
            continue

        due = due_reminder(join_date, today, client.last_reminder_sent)
        if due is None:
            continue

        reminder_type, pay_date = due
        entry = {"client_id": client.id, "type": reminder_type, "pay_date": pay_date.isoformat()}
        if send_payment_reminder(db, client, reminder_type, pay_date, today=today):
            sent.append(entry)
        else:
            failed.append(entry)

    return {
        "date": today.isoformat(),
        "checked": len(clients),
        "skipped": skipped,
        "sent": sent,
        "failed": failed,
    }


class PaymentReminderScheduler:
    """Background scheduler that periodically runs the payment reminder pass."""

    def __init__(self, interval_minutes: int, enabled: bool = True):
        self.interval_seconds = max(interval_minutes, 1) * 60
        self.enabled = enabled
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        if not self.enabled:
            logger.info("Automatic payment reminders disabled by configuration.")
            return
        if self._task and not self._task.done():
            return
        logger.info("Starting payment reminders every %s minutes", self.interval_seconds / 60)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            await asyncio.to_thread(self._run_pass)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue

    @staticmethod
    def _run_pass() -> None:
        session = SessionLocal()
        try:
            summary = check_and_send_payment_reminders(session)
            logger.info(
                "Payment reminder pass finished: sent=%s failed=%s",
                len(summary["sent"]),
                len(summary["failed"]),
            )
        except Exception:
            logger.exception("Payment reminder pass failed")
        finally:
            session.close()


payment_reminder_scheduler = PaymentReminderScheduler(
    interval_minutes=settings.PAYMENT_REMINDER_INTERVAL_MINUTES,
    enabled=settings.PAYMENT_REMINDER_AUTO_ENABLED,
)
