from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from clientdesk.database import Base


class ClientNote(Base):
    __tablename__ = "clientNotes"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, nullable=False, index=True)
    content = Column(Text, nullable=False)
    author = Column(String, nullable=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
