"""Monthly pay-date arithmetic.

A client pays on the day-of-month they joined. Months that are too short
for that day fall back to their last day, so a client who joined on the
31st pays on the 30th in April and on the 28th/29th in February. Pay dates
always fall strictly after the join date.
"""
import calendar
from datetime import date, datetime, timedelta

REMINDER_TEN_DAYS_BEFORE = "10_days_before"
REMINDER_ONE_DAY_BEFORE = "1_day_before"
REMINDER_ON_PAY_DAY = "on_pay_day"
REMINDER_FIVE_DAYS_AFTER = "5_days_after"

REMINDER_TYPES = (
    REMINDER_TEN_DAYS_BEFORE,
    REMINDER_ONE_DAY_BEFORE,
    REMINDER_ON_PAY_DAY,
    REMINDER_FIVE_DAYS_AFTER,
)

# days until the next pay date that trigger each "before" reminder
_UPCOMING_OFFSETS = (
    (REMINDER_TEN_DAYS_BEFORE, 10),
    (REMINDER_ONE_DAY_BEFORE, 1),
    (REMINDER_ON_PAY_DAY, 0),
)
OVERDUE_DAYS = 5
# a reminder sent on or after this many days before its pay date belongs to that cycle
CYCLE_LEAD_DAYS = 10


def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def pay_date_for_month(year: int, month: int, pay_day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(pay_day, last_day))


def anchor_date(user) -> date | None:
    """The date a client's billing cycle is measured from."""
    return _as_date(user.join_date or user.created_at)


def next_pay_date(join_date, today) -> date:
    """First pay date on or after today."""
    join_date, today = _as_date(join_date), _as_date(today)
    year, month = today.year, today.month
    while True:
        candidate = pay_date_for_month(year, month, join_date.day)
        if candidate >= today and candidate > join_date:
            return candidate
        year, month = _shift_month(year, month, 1)


def previous_pay_date(join_date, today) -> date | None:
    """Last pay date strictly before today, or None if none has passed yet."""
    join_date, today = _as_date(join_date), _as_date(today)
    candidate = pay_date_for_month(today.year, today.month, join_date.day)
    if candidate >= today:
        year, month = _shift_month(today.year, today.month, -1)
        candidate = pay_date_for_month(year, month, join_date.day)
    return candidate if candidate > join_date else None


def pay_dates_between(join_date, start, end) -> list[date]:
    join_date, start, end = _as_date(join_date), _as_date(start), _as_date(end)
    dates = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        candidate = pay_date_for_month(year, month, join_date.day)
        if start <= candidate <= end and candidate > join_date:
            dates.append(candidate)
        year, month = _shift_month(year, month, 1)
    return dates


def month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def reminder_already_sent(last_sent: dict | None, reminder_type: str, pay_date: date) -> bool:
    sent_at = (last_sent or {}).get(reminder_type)
    if not sent_at:
        return False
    try:
        sent_on = _as_date(sent_at)
    except ValueError:
        return False
    return sent_on >= pay_date - timedelta(days=CYCLE_LEAD_DAYS)


def due_reminder(join_date, today, last_sent: dict | None = None) -> tuple[str, date] | None:
    """Pick the reminder to send today, as (reminder_type, pay_date), or None.

    At most one reminder fires per day; a type already sent for the same
    billing cycle is not sent again.
    """
    join_date, today = _as_date(join_date), _as_date(today)
    upcoming = next_pay_date(join_date, today)
    days_until = (upcoming - today).days
    for reminder_type, offset in _UPCOMING_OFFSETS:
        if days_until == offset and not reminder_already_sent(last_sent, reminder_type, upcoming):
            return reminder_type, upcoming

    previous = previous_pay_date(join_date, today)
    if previous and (today - previous).days == OVERDUE_DAYS:
        if not reminder_already_sent(last_sent, REMINDER_FIVE_DAYS_AFTER, previous):
            return REMINDER_FIVE_DAYS_AFTER, previous
    return None
