"""
Support Ticket Models

Tickets, their threaded messages and the status audit trail.
"""

import enum
from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, Text, Enum, ForeignKey, Index
)
from .base import Base, utcnow


class TicketStatus(str, enum.Enum):
    """Ticket lifecycle states."""
    OPEN = "open"
    REOPENED = "reopened"
    CLOSED = "closed"


class TicketCategory(str, enum.Enum):
    """Ticket categories."""
    TECHNICAL = "technical"
    BILLING = "billing"
    FEATURE_REQUEST = "feature_request"
    BUG_REPORT = "bug_report"
    OTHER = "other"


class TicketPriority(str, enum.Enum):
    """Ticket priorities."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _enum_column(enum_cls, **kwargs):
    return Column(
        Enum(
            enum_cls,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
            length=20,
        ),
        **kwargs,
    )


class Ticket(Base):
    """Support ticket raised by a user."""

    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    category = _enum_column(TicketCategory, nullable=False)
    priority = _enum_column(TicketPriority, nullable=False, default=TicketPriority.MEDIUM)
    status = _enum_column(TicketStatus, nullable=False, default=TicketStatus.OPEN)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    closed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_ticket_status_updated', 'status', 'updated_at'),
    )

    def __repr__(self):
        return f"<Ticket(id={self.id}, status={self.status}, priority={self.priority})>"


class TicketMessage(Base):
    """A message in a ticket thread. Append-only."""

    __tablename__ = "ticket_messages"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(
        Integer,
        ForeignKey("support_tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=False)
    is_admin_reply = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<TicketMessage(id={self.id}, ticket_id={self.ticket_id})>"


class TicketStatusHistory(Base):
    """Audit row written on every ticket status transition."""

    __tablename__ = "ticket_status_history"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(
        Integer,
        ForeignKey("support_tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    old_status = Column(String(20), nullable=True)  # NULL for the creation row
    new_status = Column(String(20), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reason = Column(Text, nullable=True)
    changed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return (
            f"<TicketStatusHistory(ticket_id={self.ticket_id}, "
            f"{self.old_status} -> {self.new_status})>"
        )
