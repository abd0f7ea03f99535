from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from clientdesk.database import get_db
from clientdesk.models.activity import Activity
from clientdesk.models.user import User
from clientdesk.schemas.activity import ActivityResponse
from clientdesk.services.auth_middleware import ensure_client_access, get_current_admin, get_current_user
from clientdesk.utils.response import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    create_response,
    handle_exception,
    paginate,
)

router = APIRouter(tags=["Activities"])


@router.get("/clients/{client_id}/activities")
def list_client_activities(
    client_id: int,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        ensure_client_access(current_user, client_id)
        activities = (
            db.query(Activity)
            .filter(Activity.client_id == client_id)
            .order_by(Activity.timestamp.desc(), Activity.id.desc())
            .limit(limit)
            .all()
        )
        return create_response(
            message="Activities fetched",
            data=[ActivityResponse.model_validate(item).model_dump() for item in activities],
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load activities")


@router.get("/activities")
def list_activities(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        query = db.query(Activity).order_by(Activity.timestamp.desc(), Activity.id.desc())
        page_data = paginate(query, page, page_size)
        page_data["activities"] = [
            ActivityResponse.model_validate(item).model_dump()
            for item in page_data.pop("items")
        ]
        return create_response(
            message="Activities fetched",
            data=page_data,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load activities")
