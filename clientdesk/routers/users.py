import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from clientdesk.database import get_db
from clientdesk.models.user import User
from clientdesk.models.user_session import UserSession
from clientdesk.schemas.user import UserCreate, UserResponse, UserUpdate
from clientdesk.services import email_service
from clientdesk.services.auth_middleware import get_current_admin
from clientdesk.services.auth_service import generate_password, hash_password
from clientdesk.services.client_filters import filter_users
from clientdesk.utils.response import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    create_response,
    handle_exception,
    paginate_list,
)

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def ensure_email_available(db: Session, email: str, exclude_id: int | None = None) -> None:
    query = db.query(User).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")


def delete_user_record(db: Session, user: User) -> None:
    # Images, notes and activities are not cascaded.
    db.query(UserSession).filter(UserSession.user_id == user.id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()


def _form_values(body: UserCreate) -> dict:
    values = body.model_dump()
    for field in ("role", "gender", "status"):
        if values.get(field) is not None:
            values[field] = values[field].value
    return values


@router.get("")
def list_users(
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        users = (
            db.query(User)
            .order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
            .all()
        )
        page_data = paginate_list(filter_users(users, search), page, page_size)
        page_data["users"] = [
            UserResponse.model_validate(user).model_dump()
            for user in page_data.pop("items")
        ]
        return create_response(
            message="Users fetched successfully",
            data=page_data,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to fetch users.")


@router.post("")
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        ensure_email_available(db, body.email)
        password = generate_password()
        now = datetime.utcnow()
        user = User(
            **_form_values(body),
            password_hash=hash_password(password),
            created_at=now,
            updated_at=now,
            join_date=now,
            last_reminder_sent={},
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Admin %s created user %s role=%s", admin.id, user.id, user.role)

        welcome_sent = True
        try:
            email_service.send_template(
                "welcome",
                user.email,
                {"to_name": f"{user.first_name} {user.last_name}", "password": password},
            )
        except Exception:
            welcome_sent = False
            logger.exception("Failed to send welcome email to user %s", user.id)

        return create_response(
            message="New user added successfully!" if welcome_sent
            else "User added, but failed to send welcome email.",
            data={
                "user": UserResponse.model_validate(user).model_dump(),
                "welcome_email_sent": welcome_sent,
            },
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, "Operation failed. Please try again.")


@router.put("/{user_id}")
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        user = _get_user_or_404(db, user_id)
        ensure_email_available(db, body.email, exclude_id=user.id)

        for field, value in _form_values(body).items():
            setattr(user, field, value)
        user.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(user)

        return create_response(
            message="User updated successfully!",
            data=UserResponse.model_validate(user).model_dump(),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Operation failed. Please try again.")


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        user = _get_user_or_404(db, user_id)
        if user.id == admin.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

        delete_user_record(db, user)
        logger.info("Admin %s deleted user %s", admin.id, user_id)

        return create_response(
            message="User deleted successfully!",
            data={"deleted": True, "user_id": user_id},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to delete user.")
