from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from contentgen.db import Base


class Content(Base):
    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(16), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    url = Column(Text, nullable=True)
    # Server local time; the daily quota counts rows by local calendar day.
    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)

    owner = relationship("User", back_populates="contents")
