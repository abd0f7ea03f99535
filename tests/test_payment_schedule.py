from datetime import date, datetime

import pytest

from clientdesk.services.payment_schedule import (
    REMINDER_FIVE_DAYS_AFTER,
    REMINDER_ON_PAY_DAY,
    REMINDER_ONE_DAY_BEFORE,
    REMINDER_TEN_DAYS_BEFORE,
    due_reminder,
    next_pay_date,
    pay_date_for_month,
    pay_dates_between,
    previous_pay_date,
    reminder_already_sent,
)

JOINED_MID_MONTH = date(2024, 1, 15)


def test_pay_date_clamps_to_month_end():
    assert pay_date_for_month(2024, 2, 31) == date(2024, 2, 29)
    assert pay_date_for_month(2023, 2, 31) == date(2023, 2, 28)
    assert pay_date_for_month(2024, 4, 31) == date(2024, 4, 30)
    assert pay_date_for_month(2024, 5, 31) == date(2024, 5, 31)


def test_next_pay_date_on_pay_day_is_today():
    assert next_pay_date(JOINED_MID_MONTH, date(2024, 5, 15)) == date(2024, 5, 15)


def test_next_pay_date_rolls_to_following_month():
    assert next_pay_date(JOINED_MID_MONTH, date(2024, 5, 16)) == date(2024, 6, 15)
    assert next_pay_date(JOINED_MID_MONTH, date(2024, 12, 20)) == date(2025, 1, 15)


def test_next_pay_date_is_strictly_after_join_date():
    joined = date(2024, 3, 15)
    assert next_pay_date(joined, joined) == date(2024, 4, 15)


def test_next_pay_date_for_end_of_month_join():
    joined = date(2024, 1, 31)
    assert next_pay_date(joined, date(2024, 2, 10)) == date(2024, 2, 29)
    assert next_pay_date(joined, date(2024, 3, 1)) == date(2024, 3, 31)


def test_next_pay_date_accepts_datetimes():
    assert next_pay_date(datetime(2024, 1, 15, 9, 30), datetime(2024, 2, 1, 23, 0)) == date(2024, 2, 15)


def test_previous_pay_date():
    assert previous_pay_date(JOINED_MID_MONTH, date(2024, 5, 20)) == date(2024, 5, 15)
    assert previous_pay_date(JOINED_MID_MONTH, date(2024, 5, 15)) == date(2024, 4, 15)
    assert previous_pay_date(date(2024, 5, 1), date(2024, 5, 10)) is None


def test_pay_dates_between_skips_join_date():
    joined = date(2024, 1, 31)
    assert pay_dates_between(joined, date(2024, 1, 1), date(2024, 4, 30)) == [
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2024, 3, 5), (REMINDER_TEN_DAYS_BEFORE, date(2024, 3, 15))),
        (date(2024, 3, 14), (REMINDER_ONE_DAY_BEFORE, date(2024, 3, 15))),
        (date(2024, 3, 15), (REMINDER_ON_PAY_DAY, date(2024, 3, 15))),
        (date(2024, 3, 20), (REMINDER_FIVE_DAYS_AFTER, date(2024, 3, 15))),
        (date(2024, 3, 6), None),
        (date(2024, 3, 21), None),
    ],
)
def test_due_reminder_selection(today, expected):
    assert due_reminder(JOINED_MID_MONTH, today) == expected


def test_due_reminder_skips_type_sent_this_cycle():
    last_sent = {REMINDER_TEN_DAYS_BEFORE: "2024-03-05T09:00:00"}
    assert due_reminder(JOINED_MID_MONTH, date(2024, 3, 5), last_sent) is None


def test_due_reminder_resends_in_new_cycle():
    last_sent = {REMINDER_TEN_DAYS_BEFORE: "2024-02-05T09:00:00"}
    assert due_reminder(JOINED_MID_MONTH, date(2024, 3, 5), last_sent) == (
        REMINDER_TEN_DAYS_BEFORE,
        date(2024, 3, 15),
    )


def test_reminder_already_sent_ignores_garbage_timestamps():
    assert reminder_already_sent({REMINDER_ON_PAY_DAY: "not a date"}, REMINDER_ON_PAY_DAY, date(2024, 3, 15)) is False
    assert reminder_already_sent(None, REMINDER_ON_PAY_DAY, date(2024, 3, 15)) is False
