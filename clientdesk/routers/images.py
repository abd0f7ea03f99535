import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from clientdesk.config import settings
from clientdesk.database import get_db
from clientdesk.models.client_image import ClientImage
from clientdesk.models.user import User
from clientdesk.schemas.client_image import ClientImageResponse
from clientdesk.services.activity_service import log_activity
from clientdesk.services.auth_middleware import ensure_client_access, get_current_admin, get_current_user
from clientdesk.services.client_filters import (
    ALL,
    filter_images,
    group_images_by_project,
    project_names,
    projects_overview,
)
from clientdesk.services.spaces_service import ImageUploadError, delete_object, upload_client_image
from clientdesk.utils.response import create_response, handle_exception

router = APIRouter(tags=["Gallery"])
logger = logging.getLogger(__name__)


def _get_gallery_owner(db: Session, client_id: int) -> User:
    owner = db.query(User).filter(User.id == client_id, User.role == "client").first()
    if not owner:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return owner


def _gallery_payload(db: Session, client_id: int, project: str | None, treated: str | None) -> dict:
    images = (
        db.query(ClientImage)
        .filter(ClientImage.user_id == client_id, ClientImage.type == "gallery")
        .order_by(ClientImage.uploaded_at.asc(), ClientImage.id.asc())
        .all()
    )
    try:
        visible = filter_images(images, project, treated)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    grouped = group_images_by_project(visible)
    return {
        "client_id": client_id,
        "projects": [ALL, *project_names(images)],
        "overview": projects_overview(images),
        "count": len(visible),
        "groups": [
            {
                "project": name,
                "images": [ClientImageResponse.model_validate(image).model_dump() for image in members],
            }
            for name, members in grouped.items()
        ],
    }


@router.get("/clients/{client_id}/images")
def list_client_images(
    client_id: int,
    project: str | None = Query(ALL),
    treated: str | None = Query(ALL, description="All, Treated or Untreated"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        ensure_client_access(current_user, client_id)
        _get_gallery_owner(db, client_id)
        return create_response(
            message="Images fetched",
            data=_gallery_payload(db, client_id, project, treated),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load images.")


@router.get("/gallery/{client_id}")
def public_gallery(
    client_id: int,
    project: str | None = Query(ALL),
    treated: str | None = Query(ALL),
    db: Session = Depends(get_db),
):
    try:
        if not settings.PUBLIC_GALLERY_ENABLED:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        _get_gallery_owner(db, client_id)
        return create_response(
            message="Images fetched",
            data=_gallery_payload(db, client_id, project, treated),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load images.")


@router.post("/clients/{client_id}/images")
async def upload_image(
    client_id: int,
    file: UploadFile = File(...),
    project: str = Form(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        ensure_client_access(current_user, client_id)
        _get_gallery_owner(db, client_id)

        project_name = project.strip()
        if not project_name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Please select or enter a project name for the image.",
            )
        if not (file.content_type or "").startswith("image/"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image files are allowed.")

        contents = await file.read()
        if not contents:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please select an image file to upload.")

        url, key = upload_client_image(
            contents,
            client_id,
            project_name,
            file.filename,
            content_type=file.content_type,
        )
        image = ClientImage(
            user_id=client_id,
            url=url,
            storage_key=key,
            filename=file.filename,
            project=project_name,
            treated=False,
            uploaded_at=datetime.utcnow(),
            size=len(contents),
            mime_type=file.content_type,
            type="gallery",
        )
        db.add(image)
        db.commit()
        db.refresh(image)

        log_activity(
            db,
            client_id,
            "Uploaded Image",
            f"Filename: {file.filename}, Project: {project_name}",
            actor=current_user.full_name,
        )
        return create_response(
            message="Image uploaded successfully! You can now view it in the gallery.",
            data=ClientImageResponse.model_validate(image).model_dump(),
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, "Upload failed: An unexpected error occurred.")


@router.patch("/images/{image_id}/treated")
def toggle_treated(
    image_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        image = db.query(ClientImage).filter(ClientImage.id == image_id).first()
        if not image:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

        image.treated = not image.treated
        db.commit()
        db.refresh(image)

        return create_response(
            message=f"Image marked as {'treated' if image.treated else 'untreated'}",
            data=ClientImageResponse.model_validate(image).model_dump(),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to update image status")


@router.delete("/images/{image_id}")
def delete_image(
    image_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        image = db.query(ClientImage).filter(ClientImage.id == image_id).first()
        if not image:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

        client_id = image.user_id
        storage_key = image.storage_key
        db.delete(image)
        db.commit()

        if storage_key:
            try:
                delete_object(storage_key)
            except ImageUploadError:
                logger.warning("Hosted asset %s was not removed", storage_key, exc_info=True)

        log_activity(db, client_id, "Deleted Image", f"Image ID: {image_id}", actor=admin.full_name)
        return create_response(
            message="Image deleted successfully",
            data={"deleted": True, "image_id": image_id},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to delete image")
