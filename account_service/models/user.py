"""User model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from account_service.database import Base


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Application account.

    ``password_hash`` is NULL for accounts created through an OAuth provider;
    such accounts always own at least one :class:`ProviderLink`.
    ``refresh_token`` holds the single refresh token currently accepted for the
    account and is overwritten on every rotation.
    """

    __tablename__ = "user"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String(256), unique=True, nullable=False, index=True)
    username = Column(String(256), nullable=False)
    password_hash = Column(String(256), nullable=True)
    refresh_token = Column(String(1024), unique=True, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    email_verify_token = Column(String(256), unique=True, nullable=True)
    login_times = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    providers = relationship("ProviderLink", back_populates="user", cascade="all, delete-orphan")
