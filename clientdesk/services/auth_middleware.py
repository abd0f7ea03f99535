from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt
from sqlalchemy.orm import Session

from clientdesk.config import settings
from clientdesk.database import get_db
from clientdesk.models.user import User
from clientdesk.models.user_session import UserSession

PERMISSION_DENIED = "You do not have permission to access this page."


def _get_auth_context(token: str, db: Session):
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        jti = payload.get("jti")
        token_type = payload.get("type") or "access"
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if not subject or not jti:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    if token_type != "access":
        raise HTTPException(status_code=401, detail="Invalid token type")

    session = db.query(UserSession).filter(
        UserSession.jti == jti,
        UserSession.is_active == True
    ).first()

    if not session or session.is_expired():
        raise HTTPException(status_code=401, detail="Session expired or logged out")

    user = db.query(User).filter(User.id == session.user_id, User.email == subject).first()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return {"user": user, "session": session, "payload": payload}


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db)
):
    token = credentials.credentials
    auth_context = _get_auth_context(token, db)
    return auth_context["user"]


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db)
):
    token = credentials.credentials
    auth_context = _get_auth_context(token, db)
    user = auth_context["user"]
    if not user.is_admin:
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED)
    return user


def get_current_client(
    credentials: HTTPAuthorizationCredentials = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db)
):
    token = credentials.credentials
    auth_context = _get_auth_context(token, db)
    user = auth_context["user"]
    if user.role != "client":
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED)
    return user


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db)
):
    token = credentials.credentials
    context = _get_auth_context(token, db)
    context["token"] = token
    context["db"] = db
    return context


def ensure_client_access(user: User, client_id: int) -> None:
    """Admins see every client; a client only sees their own records."""
    if user.is_admin:
        return
    if user.id != client_id:
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED)
