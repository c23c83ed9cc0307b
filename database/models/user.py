"""User account models."""

from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from .base import Base


class User(Base):
    """User model for authentication and account management."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Unique index also guards concurrent email changes
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)  # Bcrypt hash
    is_admin = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    last_login = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, is_admin={self.is_admin})>"


class UserSettings(Base):
    """Per-user notification and privacy preferences."""

    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    email_notifications = Column(Boolean, default=True, nullable=False)
    weather_alerts = Column(Boolean, default=True, nullable=False)
    weekly_digest = Column(Boolean, default=False, nullable=False)
    data_sharing = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Returned when a user has never saved settings
    DEFAULTS = {
        "email_notifications": True,
        "weather_alerts": True,
        "weekly_digest": False,
        "data_sharing": False,
    }

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.DEFAULTS}

    def __repr__(self):
        return f"<UserSettings(user_id={self.user_id})>"
