"""
Database Models Base

Shared SQLAlchemy base and common helpers for all model modules.
"""

from datetime import datetime, timezone
from sqlalchemy.orm import declarative_base

# Shared declarative base for all models
Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current time, used as a Python-side column default."""
    return datetime.now(timezone.utc)


__all__ = [
    'Base',
    'utcnow',
]
