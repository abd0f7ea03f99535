import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from clientdesk.database import get_db
from clientdesk.models.user import User
from clientdesk.services.auth_middleware import get_current_admin, get_current_client
from clientdesk.services.dashboard_service import get_admin_dashboard, get_client_dashboard
from clientdesk.utils.response import create_response, handle_exception

router = APIRouter(tags=["Dashboard"])
logger = logging.getLogger(__name__)


@router.get("/admin/dashboard")
def admin_dashboard(
    year: int | None = Query(None, ge=1970, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    page: int = Query(1, ge=1),
    page_size: int = Query(5, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        logger.info("Admin %s requesting dashboard", admin.id)
        data = get_admin_dashboard(db, year=year, month=month, page=page, page_size=page_size)
        return create_response(
            message="Dashboard data fetched",
            data=data,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load dashboard data.")


@router.get("/client/dashboard")
def client_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_client),
):
    try:
        data = get_client_dashboard(db, current_user.id)
        if data is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No user profile found.")
        return create_response(
            message="Dashboard data fetched",
            data=data,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load dashboard data.")
