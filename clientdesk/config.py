import os
from pathlib import Path
from dotenv import load_dotenv
from fastapi.security import HTTPBearer

BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


class Settings:
    PROJECT_NAME = "ClientDesk"

    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'clientdesk.db'}")

    JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 12))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    BUSINESS_NAME = os.getenv("BUSINESS_NAME", "ClientDesk")

    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    SMTP_USE_TLS = _env_flag("SMTP_USE_TLS")
    FROM_EMAIL = os.getenv("FROM_EMAIL")

    SPACES_REGION = os.getenv("SPACES_REGION")
    SPACES_ENDPOINT = os.getenv("SPACES_ENDPOINT")
    SPACES_KEY = os.getenv("SPACES_KEY")
    SPACES_SECRET = os.getenv("SPACES_SECRET")
    SPACES_NAME = os.getenv("SPACES_NAME")
    SPACES_CDN_URL = (os.getenv("SPACES_CDN_URL") or "").rstrip("/")
    SPACES_BASE_PATH = (os.getenv("SPACES_BASE_PATH") or "clientdesk").strip("/")
    MAX_PROFILE_PHOTO_BYTES = int(os.getenv("MAX_PROFILE_PHOTO_BYTES", 5 * 1024 * 1024))

    PUBLIC_GALLERY_ENABLED = _env_flag("PUBLIC_GALLERY_ENABLED")

    PAYMENT_REMINDER_INTERVAL_MINUTES = int(os.getenv("PAYMENT_REMINDER_INTERVAL_MINUTES", 60 * 6))
    PAYMENT_REMINDER_AUTO_ENABLED = _env_flag("PAYMENT_REMINDER_AUTO_ENABLED")

    bearer_scheme = HTTPBearer()
    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]


settings = Settings()
