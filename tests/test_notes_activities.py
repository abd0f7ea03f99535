from datetime import datetime, timedelta

from clientdesk.models.activity import Activity
from clientdesk.services.activity_service import log_activity


def test_add_list_and_delete_notes(client, admin_headers, client_user, db):
    first = client.post(f"/clients/{client_user.id}/notes", json={"content": "Called about invoice"}, headers=admin_headers)
    second = client.post(f"/clients/{client_user.id}/notes", json={"content": "Sent quote"}, headers=admin_headers)

    assert first.status_code == 201
    assert first.json()["data"]["author"] == "Ada Admin"

    listing = client.get(f"/clients/{client_user.id}/notes", headers=admin_headers)
    assert [note["content"] for note in listing.json()["data"]] == ["Sent quote", "Called about invoice"]

    note_id = first.json()["data"]["id"]
    deleted = client.delete(f"/notes/{note_id}", headers=admin_headers)
    assert deleted.status_code == 200

    actions = [a.action for a in db.query(Activity).order_by(Activity.id.asc()).all()]
    assert actions == ["Added Note", "Added Note", "Deleted Note"]


def test_blank_note_is_rejected(client, admin_headers, client_user):
    empty = client.post(f"/clients/{client_user.id}/notes", json={"content": ""}, headers=admin_headers)
    spaces = client.post(f"/clients/{client_user.id}/notes", json={"content": "   "}, headers=admin_headers)

    assert empty.status_code == 422
    assert spaces.status_code == 400


def test_client_sees_only_own_activities(client, client_headers, client_user, make_user, db):
    other = make_user(email="other@example.com")
    log_activity(db, client_user.id, "Uploaded Image", "a.png")
    log_activity(db, other.id, "Uploaded Image", "b.png")

    own = client.get(f"/clients/{client_user.id}/activities", headers=client_headers)
    foreign = client.get(f"/clients/{other.id}/activities", headers=client_headers)

    assert [a["details"] for a in own.json()["data"]] == ["a.png"]
    assert foreign.status_code == 403


def test_admin_activity_feed_is_paginated_newest_first(client, admin_headers, client_user, db):
    base = datetime(2024, 1, 1, 12, 0)
    for offset in range(3):
        db.add(Activity(client_id=client_user.id, action=f"Step {offset}", timestamp=base + timedelta(hours=offset)))
    db.commit()

    response = client.get("/activities", params={"page": 1, "page_size": 2}, headers=admin_headers)
    data = response.json()["data"]

    assert data["total"] == 3
    assert data["has_next"] is True
    assert [a["action"] for a in data["activities"]] == ["Step 2", "Step 1"]


def test_log_activity_swallows_write_errors(db, monkeypatch):
    def _broken_commit():
        raise RuntimeError("database is locked")

    monkeypatch.setattr(db, "commit", _broken_commit)

    assert log_activity(db, 1, "Sent Email", "hello") is None
