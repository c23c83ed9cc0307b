"""
Revoked Token Model

Denylist of session tokens ended by logout, keyed by the token's jti claim.
Rows are only needed until the token would have expired anyway.
"""

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.sql import func
from database.models.base import Base


class RevokedToken(Base):
    """Session token that may no longer be used."""

    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    revoked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<RevokedToken(jti={self.jti}, user_id={self.user_id})>"
