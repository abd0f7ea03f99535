from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from clientdesk.database import get_db
from clientdesk.models.client_note import ClientNote
from clientdesk.models.user import User
from clientdesk.routers.clients import get_client_or_404
from clientdesk.schemas.client_note import NoteCreate, NoteResponse
from clientdesk.services.activity_service import log_activity
from clientdesk.services.auth_middleware import get_current_admin
from clientdesk.utils.response import create_response, handle_exception

router = APIRouter(tags=["Notes"])


@router.get("/clients/{client_id}/notes")
def list_notes(
    client_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        get_client_or_404(db, client_id)
        notes = (
            db.query(ClientNote)
            .filter(ClientNote.client_id == client_id)
            .order_by(ClientNote.date.desc(), ClientNote.id.desc())
            .all()
        )
        return create_response(
            message="Notes fetched",
            data=[NoteResponse.model_validate(note).model_dump() for note in notes],
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load notes")


@router.post("/clients/{client_id}/notes")
def add_note(
    client_id: int,
    body: NoteCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        get_client_or_404(db, client_id)
        if not body.content.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Note content is required")

        note = ClientNote(client_id=client_id, content=body.content, author=admin.full_name or "User")
        db.add(note)
        db.commit()
        db.refresh(note)

        log_activity(db, client_id, "Added Note", body.content, actor=admin.full_name)
        return create_response(
            message="Note added successfully",
            data=NoteResponse.model_validate(note).model_dump(),
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to add note")


@router.delete("/notes/{note_id}")
def delete_note(
    note_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        note = db.query(ClientNote).filter(ClientNote.id == note_id).first()
        if not note:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")

        client_id = note.client_id
        db.delete(note)
        db.commit()

        log_activity(db, client_id, "Deleted Note", f"Note ID: {note_id}", actor=admin.full_name)
        return create_response(
            message="Note deleted successfully",
            data={"deleted": True, "note_id": note_id},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to delete note")
