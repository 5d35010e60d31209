# User model (organizer). Accounts are managed by the auth service; this repo only reads them.

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from campuslink.models.base import Base


class User(Base):
    """Users table. Only full_name/email are projected next to events."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
