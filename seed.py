import logging
import os
from datetime import datetime

from dotenv import load_dotenv

from clientdesk.database import SessionLocal
from clientdesk.models.user import User
from clientdesk.services.auth_service import hash_password

load_dotenv()
logger = logging.getLogger(__name__)


def run_seed():
    db = SessionLocal()
    try:
        # Read values from .env
        first_name = os.getenv("SEED_FIRST_NAME", "Admin")
        last_name = os.getenv("SEED_LAST_NAME", "User")
        email = os.getenv("SEED_EMAIL", "admin@example.com")
        password = os.getenv("SEED_PASSWORD")

        # If database has no admin create the default one
        if db.query(User).filter(User.role == "admin").count() == 0:
            if not password:
                logger.warning("SEED_PASSWORD not set; skipping default admin seeding.")
                return
            now = datetime.utcnow()
            admin_user = User(
                role="admin",
                first_name=first_name,
                last_name=last_name,
                name=f"{first_name} {last_name}",
                email=email,
                password_hash=hash_password(password),
                status="active",
                join_date=now,
                created_at=now,
                updated_at=now,
                last_reminder_sent={},
            )
            db.add(admin_user)
            db.commit()
            logger.info("Default admin user seeded: %s", email)
        else:
            logger.info("Admin already present, skipping seeding.")
    except Exception:
        db.rollback()
        logger.exception("Seeding error")
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_seed()
