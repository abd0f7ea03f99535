from datetime import date, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from clientdesk.models.activity import Activity
from clientdesk.models.client_image import ClientImage
from clientdesk.models.client_note import ClientNote
from clientdesk.models.user import User
from clientdesk.schemas.activity import ActivityResponse
from clientdesk.schemas.client_note import NoteResponse
from clientdesk.schemas.user import UserResponse
from clientdesk.services.client_filters import projects_overview
from clientdesk.services.payment_schedule import (
    anchor_date,
    month_bounds,
    next_pay_date,
    pay_dates_between,
)

NEW_CLIENT_WINDOW_DAYS = 7
CLIENT_RECENT_LIMIT = 5


def _status_label(status: str | None) -> str:
    return status.capitalize() if status else "N/A"


def pay_date_events(clients, start: date, end: date, title: str | None = None) -> list[dict]:
    events = []
    for client in clients:
        join_date = anchor_date(client)
        if join_date is None:
            continue
        label = title or f"{client.full_name} Pay Date".strip()
        for pay_date in pay_dates_between(join_date, start, end):
            events.append(
                {
                    "title": label,
                    "start": pay_date,
                    "end": pay_date,
                    "all_day": True,
                    "client_id": client.id,
                }
            )
    events.sort(key=lambda event: (event["start"], event["client_id"]))
    return events


def _new_clients_monthly(clients) -> list[dict]:
    counts: dict[tuple[int, int], int] = {}
    for client in clients:
        if client.created_at is None:
            continue
        key = (client.created_at.year, client.created_at.month)
        counts[key] = counts.get(key, 0) + 1
    return [
        {"name": date(year, month, 1).strftime("%b %y"), "clients": counts[(year, month)]}
        for year, month in sorted(counts)
    ]


def _status_breakdown(clients) -> list[dict]:
    counts: dict[str, int] = {}
    for client in clients:
        key = client.status or "unknown"
        counts[key] = counts.get(key, 0) + 1
    return [{"name": name.capitalize(), "value": value} for name, value in counts.items()]


def get_admin_dashboard(
    db: Session,
    now: datetime | None = None,
    year: int | None = None,
    month: int | None = None,
    page: int = 1,
    page_size: int = 5,
) -> dict:
    now = now or datetime.utcnow()
    year = year or now.year
    month = month or now.month

    clients = db.query(User).filter(User.role == "client").order_by(User.id.asc()).all()
    week_ago = now - timedelta(days=NEW_CLIENT_WINDOW_DAYS)

    activity_query = db.query(Activity).order_by(Activity.timestamp.desc(), Activity.id.desc())
    total_activities = db.query(func.count(Activity.id)).scalar() or 0
    activities = activity_query.offset((page - 1) * page_size).limit(page_size).all()

    start, end = month_bounds(year, month)
    return {
        "stats": {
            "total_clients": len(clients),
            "active_clients": sum(1 for client in clients if client.status == "active"),
            "new_clients_this_week": sum(
                1 for client in clients if client.created_at and client.created_at >= week_ago
            ),
        },
        "charts": {
            "client_status": _status_breakdown(clients),
            "new_clients_monthly": _new_clients_monthly(clients),
        },
        "activities": {
            "page": page,
            "page_size": page_size,
            "total": total_activities,
            "has_next": page * page_size < total_activities,
            "items": [ActivityResponse.model_validate(item).model_dump() for item in activities],
        },
        "calendar": {
            "year": year,
            "month": month,
            "events": pay_date_events(clients, start, end),
        },
    }


def get_client_dashboard(db: Session, user_id: int, today: date | None = None) -> dict | None:
    today = today or date.today()
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return None

    images = (
        db.query(ClientImage)
        .filter(ClientImage.user_id == user.id, ClientImage.type == "gallery")
        .order_by(ClientImage.uploaded_at.asc())
        .all()
    )
    activities = (
        db.query(Activity)
        .filter(Activity.client_id == user.id)
        .order_by(Activity.timestamp.desc(), Activity.id.desc())
        .limit(CLIENT_RECENT_LIMIT)
        .all()
    )
    notes = (
        db.query(ClientNote)
        .filter(ClientNote.client_id == user.id)
        .order_by(ClientNote.date.desc(), ClientNote.id.desc())
        .limit(CLIENT_RECENT_LIMIT)
        .all()
    )

    join_date = anchor_date(user)
    overview = projects_overview(images)
    return {
        "profile": UserResponse.model_validate(user).model_dump(),
        "status": _status_label(user.status),
        "next_payment_date": next_pay_date(join_date, today) if join_date else None,
        "total_projects": len(overview),
        "projects": overview,
        "pay_dates": pay_date_events(
            [user],
            date(today.year, 1, 1),
            date(today.year + 1, 12, 31),
            title="Your Pay Date",
        ),
        "recent_activities": [ActivityResponse.model_validate(item).model_dump() for item in activities],
        "recent_notes": [NoteResponse.model_validate(item).model_dump() for item in notes],
    }
