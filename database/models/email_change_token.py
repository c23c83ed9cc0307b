"""
Email Change Token Model

Stores the pending address and one-time code for the email change flow.
"""

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index
from sqlalchemy.sql import func
from database.models.base import Base


class EmailChangeToken(Base):
    """Pending email change awaiting confirmation."""

    __tablename__ = "email_change_tokens"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    new_email = Column(String(255), nullable=False)
    token = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_email_change_user_token', 'user_id', 'token'),
    )

    def __repr__(self):
        return f"<EmailChangeToken(user_id={self.user_id}, new_email={self.new_email})>"
