import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from clientdesk.database import get_db
from clientdesk.models.user import User
from clientdesk.routers.users import delete_user_record, ensure_email_available
from clientdesk.schemas.messaging import ClientEmailRequest, ProjectNoticeRequest
from clientdesk.schemas.user import ClientCreate, ClientUpdate, UserResponse
from clientdesk.services import email_service
from clientdesk.services.activity_service import log_activity, preview
from clientdesk.services.auth_middleware import get_current_admin
from clientdesk.services.client_filters import count_by_status, filter_clients
from clientdesk.utils.response import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    create_response,
    handle_exception,
    paginate_list,
)

router = APIRouter(prefix="/clients", tags=["Clients"])
logger = logging.getLogger(__name__)


def get_client_or_404(db: Session, client_id: int) -> User:
    client = db.query(User).filter(User.id == client_id, User.role == "client").first()
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


def _enum_values(values: dict) -> dict:
    return {
        key: value.value if hasattr(value, "value") else value
        for key, value in values.items()
    }


def _send_client_message(db: Session, client: User, admin: User, message: str, subject: str | None) -> None:
    if not client.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Client email is missing. Cannot send email.")
    email_service.send_template(
        "client_message",
        client.email,
        {"to_name": client.full_name, "subject": subject or "", "message": message},
    )
    log_activity(db, client.id, "Sent Email", preview(message), actor=admin.full_name)


@router.get("")
def list_clients(
    search: str | None = Query(None),
    gender: str | None = Query(None),
    age_range: str | None = Query(None, description="Inclusive range such as 18-30"),
    status_filter: str | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        clients = db.query(User).filter(User.role == "client").order_by(User.id.asc()).all()
        try:
            filtered = filter_clients(clients, search, gender, age_range, status_filter)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

        counts = count_by_status(clients)
        page_data = paginate_list(filtered, page, page_size)
        page_data["clients"] = [
            UserResponse.model_validate(client).model_dump()
            for client in page_data.pop("items")
        ]
        page_data["active_count"] = counts.get("active", 0)
        page_data["inactive_count"] = counts.get("inactive", 0)
        return create_response(
            message="Clients fetched successfully",
            data=page_data,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load clients")


@router.post("")
def create_client(
    body: ClientCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        ensure_email_available(db, body.email)

        now = datetime.utcnow()
        values = _enum_values(body.model_dump())
        values["status"] = values.get("status") or "active"
        client = User(
            **values,
            role="client",
            join_date=now,
            created_at=now,
            updated_at=now,
            last_reminder_sent={},
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        logger.info("Admin %s added client %s", admin.id, client.id)

        return create_response(
            message="Client added successfully!",
            data=UserResponse.model_validate(client).model_dump(),
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to save client")


@router.get("/{client_id}")
def get_client(
    client_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        client = get_client_or_404(db, client_id)
        return create_response(
            message="Client fetched successfully",
            data=UserResponse.model_validate(client).model_dump(),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load data")


@router.put("/{client_id}")
def update_client(
    client_id: int,
    body: ClientUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        client = get_client_or_404(db, client_id)
        updates = _enum_values(body.model_dump(exclude_unset=True))
        if "email" in updates:
            ensure_email_available(db, updates["email"], exclude_id=client.id)

        for field, value in updates.items():
            setattr(client, field, value)
        client.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(client)

        log_activity(db, client.id, "Updated Client", "Client data was updated", actor=admin.full_name)
        return create_response(
            message="Client updated successfully",
            data=UserResponse.model_validate(client).model_dump(),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to update client")


@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        client = get_client_or_404(db, client_id)
        delete_user_record(db, client)
        logger.info("Admin %s deleted client %s", admin.id, client_id)
        return create_response(
            message="Client deleted successfully",
            data={"deleted": True, "client_id": client_id},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to delete client")


@router.post("/{client_id}/email")
def email_client(
    client_id: int,
    body: ClientEmailRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        client = get_client_or_404(db, client_id)
        _send_client_message(db, client, admin, body.message, body.subject)
        return create_response(
            message="Email sent successfully!",
            data={"client_id": client.id, "to_email": client.email},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to send email")


@router.post("/{client_id}/project-notice")
def send_project_notice(
    client_id: int,
    body: ProjectNoticeRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        client = get_client_or_404(db, client_id)
        project = body.project.strip()
        if not project:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project name is required")
        message = body.message or email_service.build_project_notice(project)
        _send_client_message(db, client, admin, message, f"Missing files for {project}")
        return create_response(
            message="Email sent successfully!",
            data={"client_id": client.id, "project": project, "to_email": client.email},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to send email")
