"""OAuth provider link model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from account_service.database import Base


class ProviderLink(Base):
    """External OAuth identity bound to a local user."""

    __tablename__ = "provider_link"
    __table_args__ = (
        UniqueConstraint("oauth_provider", "oauth_provider_id", name="uq_provider_link_identity"),
        UniqueConstraint("user_id", "oauth_provider", name="uq_provider_link_user_provider"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    oauth_provider = Column(String(32), nullable=False)
    oauth_provider_id = Column(String(256), nullable=False)
    user_id = Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="providers")
