import logging
import uuid
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from clientdesk.config import settings
from clientdesk.database import get_db
from clientdesk.models.user import User
from clientdesk.models.user_session import UserSession
from clientdesk.schemas.user import LoginRequest, UserResponse
from clientdesk.services.auth_middleware import get_current_session
from clientdesk.services.auth_service import create_access_token, verify_password
from clientdesk.utils.response import create_response, handle_exception

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."
ROLE_LANDING_PAGES = {
    "admin": "/admin/dashboard",
    "client": "/client/dashboard",
}


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(func.lower(User.email) == body.email.lower()).first()
        if not user or not verify_password(body.password, user.password_hash):
            logger.info("Rejected login for %s", body.email)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

        jti = str(uuid.uuid4())
        token = create_access_token({"sub": user.email, "jti": jti, "role": user.role})
        db.add(
            UserSession(
                user_id=user.id,
                jti=jti,
                role=user.role,
                token=token,
                expires_at=datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            )
        )
        db.commit()
        db.refresh(user)

        logger.info("User %s logged in as %s", user.id, user.role)
        return create_response(
            message="Logged in successfully!",
            data={
                "access_token": token,
                "token_type": "bearer",
                "role": user.role,
                "redirect": ROLE_LANDING_PAGES.get(user.role, "/"),
                "user": UserResponse.model_validate(user).model_dump(),
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc, "Login failed")


@router.post("/logout")
def logout_user(auth_context=Depends(get_current_session)):
    try:
        session = auth_context["session"]
        db: Session = auth_context["db"]
        user: User = auth_context["user"]

        session.revoke()
        db.commit()

        return create_response(
            message="Logged out.",
            data={"user_id": user.id, "session_id": session.id},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
