from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from clientdesk.database import Base

UNCATEGORIZED_PROJECT = "Uncategorized"


class ClientImage(Base):
    __tablename__ = "userImages"

    id = Column(Integer, primary_key=True, index=True)
    # Plain column: deleting a user leaves its images behind.
    user_id = Column(Integer, nullable=False, index=True)
    url = Column(String, nullable=False)
    storage_key = Column(String, nullable=True)
    filename = Column(String, nullable=True)
    project = Column(String, nullable=True, index=True)
    treated = Column(Boolean, default=False, nullable=False)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    size = Column(Integer, nullable=True)
    mime_type = Column(String, nullable=True)
    type = Column(String, default="gallery", nullable=False)

    @property
    def project_label(self) -> str:
        return self.project or UNCATEGORIZED_PROJECT
