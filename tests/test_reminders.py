from datetime import date, datetime

from clientdesk.models.activity import Activity
from clientdesk.models.user import User
from clientdesk.services import email_service, payment_reminder_service
from clientdesk.services.payment_reminder_service import (
    build_reminder,
    check_and_send_payment_reminders,
    format_pay_date,
    send_payment_reminder,
)


def test_format_pay_date():
    assert format_pay_date(date(2024, 3, 5)) == "March 5, 2024"


def test_build_reminder_fills_name_and_date(make_user):
    user = make_user(first_name="Jane")

    subject, message = build_reminder(user, "1_day_before", date(2024, 3, 15))

    assert subject == "Urgent Reminder: Your Payment for March 15, 2024 is Tomorrow!"
    assert message.startswith("Dear Jane,")


def test_ten_day_reminder_is_sent_once_per_cycle(db, make_user, sent_emails):
    user = make_user(join_date=datetime(2024, 1, 15))

    summary = check_and_send_payment_reminders(db, today=date(2024, 3, 5))

    assert summary["checked"] == 1
    assert summary["sent"] == [{"client_id": user.id, "type": "10_days_before", "pay_date": "2024-03-15"}]
    assert sent_emails[0]["to"] == "jane@example.com"
    assert sent_emails[0]["subject"] == "Friendly Reminder: Your Payment for March 15, 2024 is Approaching!"

    db.expire_all()
    refreshed = db.query(User).filter(User.id == user.id).one()
    assert "10_days_before" in refreshed.last_reminder_sent
    activity = db.query(Activity).filter(Activity.client_id == user.id).one()
    assert activity.action == "Sent Payment Reminder"
    assert activity.actor == "System"

    again = check_and_send_payment_reminders(db, today=date(2024, 3, 5))
    assert again["sent"] == []
    assert len(sent_emails) == 1


def test_overdue_reminder_uses_previous_pay_date(db, make_user, sent_emails):
    make_user(join_date=datetime(2024, 1, 15))

    summary = check_and_send_payment_reminders(db, today=date(2024, 3, 20))

    assert [entry["type"] for entry in summary["sent"]] == ["5_days_after"]
    assert summary["sent"][0]["pay_date"] == "2024-03-15"
    assert sent_emails[0]["subject"] == "Action Required: Overdue Payment for March 15, 2024"


def test_failed_send_is_counted_and_not_recorded(db, make_user, monkeypatch):
    user = make_user(join_date=datetime(2024, 1, 15))

    def _fail(*args, **kwargs):
        raise email_service.EmailDeliveryError("relay down")

    monkeypatch.setattr(email_service, "send_email", _fail)

    summary = check_and_send_payment_reminders(db, today=date(2024, 3, 15))

    assert summary["sent"] == []
    assert summary["failed"] == [{"client_id": user.id, "type": "on_pay_day", "pay_date": "2024-03-15"}]
    db.expire_all()
    assert db.query(User).filter(User.id == user.id).one().last_reminder_sent == {}


def test_admins_and_clients_without_email_are_not_reminded(db, make_user, sent_emails):
    make_user(role="admin", email="boss@example.com", join_date=datetime(2024, 1, 15))
    make_user(email="", join_date=datetime(2024, 1, 15))

    summary = check_and_send_payment_reminders(db, today=date(2024, 3, 5))

    assert summary["checked"] == 1
    assert summary["skipped"] == 1
    assert sent_emails == []


def test_admin_can_trigger_reminder_run(client, admin_headers, make_user, sent_emails):
    make_user(email="due@example.com", join_date=datetime(2024, 1, 15))

    response = client.post("/admin/reminders/run", json={"today": "2024-03-14"}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["date"] == "2024-03-14"
    assert [entry["type"] for entry in data["sent"]] == ["1_day_before"]
    assert sent_emails[0]["to"] == "due@example.com"


def test_clients_cannot_trigger_reminder_run(client, client_headers):
    assert client.post("/admin/reminders/run", headers=client_headers).status_code == 403


class _FrozenDatetime(datetime):
    frozen = datetime(2024, 3, 4, 22, 0)

    @classmethod
    def utcnow(cls):
        return cls.frozen


def _stamp(db, user_id, reminder_type):
    db.expire_all()
    return db.query(User).filter(User.id == user_id).one().last_reminder_sent[reminder_type]


def test_stamp_follows_pass_date_not_wall_clock(db, make_user, sent_emails, monkeypatch):
    monkeypatch.setattr(payment_reminder_service, "datetime", _FrozenDatetime)
    user = make_user(join_date=datetime(2024, 1, 15))

    first = check_and_send_payment_reminders(db, today=date(2024, 3, 5))
    second = check_and_send_payment_reminders(db, today=date(2024, 3, 5))

    assert len(first["sent"]) == 1
    assert second["sent"] == []
    assert len(sent_emails) == 1
    assert _stamp(db, user.id, "10_days_before").startswith("2024-03-05")


def test_default_pass_date_is_utc(db, make_user, sent_emails, monkeypatch):
    monkeypatch.setattr(payment_reminder_service, "datetime", _FrozenDatetime)
    make_user(join_date=datetime(2024, 1, 14))

    summary = check_and_send_payment_reminders(db)

    assert summary["date"] == "2024-03-04"
    assert [entry["type"] for entry in summary["sent"]] == ["10_days_before"]


def test_backfill_does_not_block_current_cycle(db, make_user, sent_emails):
    user = make_user(join_date=datetime(2024, 1, 15))

    backfill = check_and_send_payment_reminders(db, today=date(2024, 2, 5))
    assert _stamp(db, user.id, "10_days_before").startswith("2024-02-05")

    current = check_and_send_payment_reminders(db, today=date(2024, 3, 5))

    assert [entry["pay_date"] for entry in backfill["sent"]] == ["2024-02-15"]
    assert [entry["pay_date"] for entry in current["sent"]] == ["2024-03-15"]
    assert len(sent_emails) == 2


def test_backfilled_send_keeps_newer_stamp(db, make_user, sent_emails):
    user = make_user(join_date=datetime(2024, 1, 15))
    check_and_send_payment_reminders(db, today=date(2024, 3, 5))
    newer = _stamp(db, user.id, "10_days_before")

    client = db.query(User).filter(User.id == user.id).one()
    assert send_payment_reminder(db, client, "10_days_before", date(2024, 2, 15), today=date(2024, 2, 5))

    assert _stamp(db, user.id, "10_days_before") == newer
