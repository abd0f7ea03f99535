from datetime import datetime

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from clientdesk.config import settings
from clientdesk.database import get_db
from clientdesk.models.user import User
from clientdesk.schemas.user import PasswordChange, ProfileUpdate, UserResponse
from clientdesk.services.auth_middleware import get_current_user
from clientdesk.services.auth_service import MIN_PASSWORD_LENGTH, hash_password, verify_password
from clientdesk.services.spaces_service import upload_profile_photo
from clientdesk.utils.response import create_response, handle_exception

router = APIRouter(prefix="/profile", tags=["Profile"])


def _load_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found.")
    return user


@router.get("/me")
def get_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        user = _load_user(db, current_user.id)
        return create_response(
            message="Profile data loaded successfully!",
            data=UserResponse.model_validate(user).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to load profile data.")


@router.put("/update")
def update_profile(
    update: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        user = _load_user(db, current_user.id)

        for field, value in update.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        user.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(user)

        return create_response(
            message="Profile updated successfully!",
            data=UserResponse.model_validate(user).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to update profile")


@router.put("/password")
def change_password(
    body: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        if body.new_password != body.confirm_password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New passwords do not match.")
        if len(body.new_password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"New password must be at least {MIN_PASSWORD_LENGTH} characters long.",
            )

        user = _load_user(db, current_user.id)
        if not verify_password(body.current_password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect current password.")

        user.password_hash = hash_password(body.new_password)
        user.updated_at = datetime.utcnow()
        db.commit()

        return create_response(
            message="Password updated successfully!",
            data={"user_id": user.id},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc, "Failed to update password")


@router.post("/photo")
async def upload_photo(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        user = _load_user(db, current_user.id)

        if not (file.content_type or "").startswith("image/"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image files are allowed.")

        contents = await file.read()
        if not contents:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file upload")
        if len(contents) > settings.MAX_PROFILE_PHOTO_BYTES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File size must be under {settings.MAX_PROFILE_PHOTO_BYTES // (1024 * 1024)}MB.",
            )

        user.photo_url = upload_profile_photo(contents, user.id, file.filename, content_type=file.content_type)
        user.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(user)

        return create_response(
            message="Profile image updated successfully!",
            data=UserResponse.model_validate(user).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc, "Image upload failed")
