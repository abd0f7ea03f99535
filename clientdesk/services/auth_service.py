import secrets
from datetime import datetime, timedelta

from jose import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from clientdesk.config import settings

PASSWORD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*()_+"
GENERATED_PASSWORD_LENGTH = 12
MIN_PASSWORD_LENGTH = 6


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Random password for accounts created by an admin."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
