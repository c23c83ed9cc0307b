"""
Display preferences and saved locations.

Both belong to one user and go away with the account.
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from .base import Base


class UserPreferences(Base):
    """Units, clock format and theme used to render forecasts."""

    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    preferred_location = Column(String(255), nullable=True)
    temperature_unit = Column(String(10), default="celsius", nullable=False)
    wind_speed_unit = Column(String(10), default="kmh", nullable=False)
    pressure_unit = Column(String(10), default="hpa", nullable=False)
    precipitation_unit = Column(String(10), default="mm", nullable=False)
    time_format = Column(String(10), default="24h", nullable=False)
    theme = Column(String(20), default="dark", nullable=False)
    notifications_enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Metric defaults, returned when a user has never saved preferences
    DEFAULTS = {
        "preferred_location": None,
        "temperature_unit": "celsius",
        "wind_speed_unit": "kmh",
        "pressure_unit": "hpa",
        "precipitation_unit": "mm",
        "time_format": "24h",
        "theme": "dark",
        "notifications_enabled": True,
    }

    CHOICES = {
        "temperature_unit": ("celsius", "fahrenheit", "kelvin"),
        "wind_speed_unit": ("kmh", "mph", "ms", "knots"),
        "pressure_unit": ("hpa", "mb", "inhg", "mmhg"),
        "precipitation_unit": ("mm", "inches"),
        "time_format": ("12h", "24h"),
        "theme": ("dark", "light", "auto"),
    }

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.DEFAULTS}

    def __repr__(self):
        return f"<UserPreferences(user_id={self.user_id})>"


class SavedLocation(Base):
    """A place the user pinned for quick forecasts."""

    __tablename__ = "saved_locations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location_name = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    is_favorite = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'latitude', 'longitude', name='uq_saved_location_coords'),
    )

    def __repr__(self):
        return f"<SavedLocation(id={self.id}, user_id={self.user_id}, name={self.location_name})>"
