from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String
from clientdesk.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    role = Column(String, nullable=False, default="client", index=True)  # admin | client

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    name = Column(String, nullable=True)      # display name from the settings page
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)

    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)    # male | female | other
    status = Column(String, nullable=True, index=True)  # active | inactive | pending
    photo_url = Column(String, nullable=True)

    join_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=True)

    # reminder type -> ISO timestamp of the last successful send
    last_reminder_sent = Column(JSON, default=dict, nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def full_name(self) -> str:
        parts = [self.first_name or "", self.last_name or ""]
        return " ".join(part for part in parts if part).strip() or (self.name or "")
