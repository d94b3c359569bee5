from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from .base import TimestampedModel


class UserDB(TimestampedModel):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    # Soft-delete marker; no code path sets it yet, reads treat set rows as gone
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    tasks = relationship("TaskDB", back_populates="user", lazy="raise")
