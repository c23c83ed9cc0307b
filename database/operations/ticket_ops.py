"""
Support Ticket Operations

Ticket creation, threaded messages, the open -> closed -> reopened
lifecycle and admin/user listings. Visibility and state rules are checked
here before anything is written, and every status change appends a
history row in the same transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case
from sqlalchemy.orm import aliased
from typing import Any, Dict, List, Optional
import logging
import math

from database.models import (
    Ticket,
    TicketMessage,
    TicketStatusHistory,
    TicketStatus,
    TicketCategory,
    TicketPriority,
    User,
)
from database.models.base import utcnow
from utils.auth import CallerContext
from utils.errors import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SUBJECT_MIN_LENGTH = 3
SUBJECT_MAX_LENGTH = 255
INITIAL_MESSAGE_MIN_LENGTH = 10
USER_PAGE_SIZE = 10
ADMIN_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


# ==================== Validation helpers ====================

def _parse_enum(enum_cls, value, field: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {field}. Must be one of: {allowed}", field=field)


def _clean_text(value: Optional[str]) -> str:
    return (value or "").strip()


def _check_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("Page must be at least 1", field="page")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")


# ==================== Serialization ====================

def _ticket_dict(ticket: Ticket) -> Dict[str, Any]:
    return {
        "id": ticket.id,
        "user_id": ticket.user_id,
        "subject": ticket.subject,
        "category": TicketCategory(ticket.category).value,
        "priority": TicketPriority(ticket.priority).value,
        "status": TicketStatus(ticket.status).value,
        "created_at": ticket.created_at,
        "updated_at": ticket.updated_at,
        "closed_at": ticket.closed_at,
        "closed_by": ticket.closed_by,
    }


def _message_dict(message: TicketMessage) -> Dict[str, Any]:
    return {
        "id": message.id,
        "ticket_id": message.ticket_id,
        "sender_id": message.sender_id,
        "message": message.message,
        "is_admin_reply": message.is_admin_reply,
        "created_at": message.created_at,
    }


# ==================== Loading and access ====================

async def _load_ticket(session: AsyncSession, ticket_id: int, for_update: bool = False) -> Ticket:
    stmt = select(Ticket).where(Ticket.id == ticket_id).execution_options(populate_existing=True)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    ticket = result.scalars().first()
    if ticket is None:
        raise NotFoundError("Ticket not found", resource="ticket")
    return ticket


def _ensure_can_access(ticket: Ticket, caller: CallerContext) -> None:
    """Owner or admin."""
    if ticket.user_id != caller.user_id and not caller.is_admin:
        raise ForbiddenError("Access denied")


def _record_transition(
    session: AsyncSession,
    ticket: Ticket,
    old_status: Optional[TicketStatus],
    new_status: TicketStatus,
    caller: CallerContext,
    reason: Optional[str] = None,
) -> None:
    session.add(TicketStatusHistory(
        ticket_id=ticket.id,
        old_status=old_status.value if old_status is not None else None,
        new_status=new_status.value,
        changed_by=caller.user_id,
        reason=reason or None,
    ))


# ==================== Lifecycle ====================

async def create_ticket(
    session: AsyncSession,
    caller: CallerContext,
    subject: str,
    category: str,
    message: str,
    priority: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Open a new ticket with its first message.

    Args:
        session: Database session
        caller: Ticket creator
        subject: 3-255 characters after trimming
        category: One of TicketCategory
        message: Initial message, at least 10 characters after trimming
        priority: One of TicketPriority, defaults to medium

    Returns:
        The created ticket

    Raises:
        ValidationError: Any field out of range
    """
    subject = _clean_text(subject)
    message = _clean_text(message)

    if not SUBJECT_MIN_LENGTH <= len(subject) <= SUBJECT_MAX_LENGTH:
        raise ValidationError(
            f"Subject must be {SUBJECT_MIN_LENGTH}-{SUBJECT_MAX_LENGTH} characters",
            field="subject",
        )
    category_value = _parse_enum(TicketCategory, category, "category")
    priority_value = _parse_enum(TicketPriority, priority or TicketPriority.MEDIUM, "priority")
    if len(message) < INITIAL_MESSAGE_MIN_LENGTH:
        raise ValidationError(
            f"Message must be at least {INITIAL_MESSAGE_MIN_LENGTH} characters",
            field="message",
        )

    ticket = Ticket(
        user_id=caller.user_id,
        subject=subject,
        category=category_value,
        priority=priority_value,
        status=TicketStatus.OPEN,
    )
    session.add(ticket)
    await session.flush()

    session.add(TicketMessage(
        ticket_id=ticket.id,
        sender_id=caller.user_id,
        message=message,
        is_admin_reply=False,
    ))
    _record_transition(session, ticket, None, TicketStatus.OPEN, caller)
    await session.commit()

    logger.info(f"✅ Ticket #{ticket.id} created by user {caller.user_id}")
    return _ticket_dict(ticket)


async def add_message(
    session: AsyncSession,
    caller: CallerContext,
    ticket_id: int,
    message: str,
) -> Dict[str, Any]:
    """
    Append a message to a ticket thread.

    Admin messages are flagged as admin replies. Closed tickets accept no
    messages until reopened.

    Raises:
        ValidationError: Empty message
        NotFoundError: No such ticket
        ForbiddenError: Not the owner and not an admin
        InvalidStateError: Ticket is closed
    """
    message = _clean_text(message)
    if not message:
        raise ValidationError("Message cannot be empty", field="message")

    ticket = await _load_ticket(session, ticket_id, for_update=True)
    _ensure_can_access(ticket, caller)
    if ticket.status == TicketStatus.CLOSED:
        raise InvalidStateError(
            "Ticket is closed. Reopen it to add messages",
            current_state=TicketStatus.CLOSED.value,
        )

    ticket_message = TicketMessage(
        ticket_id=ticket.id,
        sender_id=caller.user_id,
        message=message,
        is_admin_reply=caller.is_admin,
    )
    session.add(ticket_message)
    ticket.updated_at = utcnow()
    await session.commit()

    logger.info(f"✅ Message added to ticket #{ticket.id} by user {caller.user_id}")
    return _message_dict(ticket_message)


async def close_ticket(
    session: AsyncSession,
    caller: CallerContext,
    ticket_id: int,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Close a ticket. Allowed for its owner and for admins.

    Raises:
        NotFoundError: No such ticket
        ForbiddenError: Not the owner and not an admin
        InvalidStateError: Already closed
    """
    ticket = await _load_ticket(session, ticket_id, for_update=True)
    _ensure_can_access(ticket, caller)

    old_status = TicketStatus(ticket.status)
    if old_status == TicketStatus.CLOSED:
        raise InvalidStateError("Ticket is already closed", current_state=old_status.value)

    now = utcnow()
    ticket.status = TicketStatus.CLOSED
    ticket.closed_by = caller.user_id
    ticket.closed_at = now
    ticket.updated_at = now
    _record_transition(session, ticket, old_status, TicketStatus.CLOSED, caller, _clean_text(reason))
    await session.commit()

    logger.info(f"✅ Ticket #{ticket.id} closed by user {caller.user_id}")
    return _ticket_dict(ticket)


async def reopen_ticket(
    session: AsyncSession,
    caller: CallerContext,
    ticket_id: int,
    reason: str,
) -> Dict[str, Any]:
    """
    Reopen a closed ticket. Only the ticket's creator may reopen it, and a
    reason is required.

    Raises:
        ValidationError: Missing reason
        NotFoundError: No such ticket
        ForbiddenError: Caller did not create the ticket
        InvalidStateError: Ticket is not closed
    """
    reason = _clean_text(reason)
    if not reason:
        raise ValidationError("A reason is required to reopen a ticket", field="reason")

    ticket = await _load_ticket(session, ticket_id, for_update=True)
    if ticket.user_id != caller.user_id:
        raise ForbiddenError("Only the ticket creator can reopen")

    old_status = TicketStatus(ticket.status)
    if old_status != TicketStatus.CLOSED:
        raise InvalidStateError("Ticket is not closed", current_state=old_status.value)

    ticket.status = TicketStatus.REOPENED
    ticket.closed_by = None
    ticket.closed_at = None
    ticket.updated_at = utcnow()
    _record_transition(session, ticket, old_status, TicketStatus.REOPENED, caller, reason)
    await session.commit()

    logger.info(f"✅ Ticket #{ticket.id} reopened by user {caller.user_id}")
    return _ticket_dict(ticket)


# ==================== Listing ====================

def _message_count_column():
    return (
        select(func.count(TicketMessage.id))
        .where(TicketMessage.ticket_id == Ticket.id)
        .correlate(Ticket)
        .scalar_subquery()
        .label("message_count")
    )


def _status_rank():
    return case(
        (Ticket.status == TicketStatus.OPEN, 0),
        (Ticket.status == TicketStatus.REOPENED, 1),
        else_=2,
    )


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "current_page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
        "total_tickets": total,
        "limit": limit,
    }


async def _count(session: AsyncSession, *conditions) -> int:
    stmt = select(func.count(Ticket.id))
    if conditions:
        stmt = stmt.where(*conditions)
    result = await session.execute(stmt)
    return result.scalar_one()


async def list_user_tickets(
    session: AsyncSession,
    caller: CallerContext,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: int = USER_PAGE_SIZE,
) -> Dict[str, Any]:
    """
    The caller's own tickets, open first, then reopened, then closed,
    most recently updated first within each group. Optionally filtered
    by status and priority.

    Returns:
        {"tickets": [...], "pagination": {...}}
    """
    _check_page(page, limit)
    conditions = [Ticket.user_id == caller.user_id]
    if status:
        conditions.append(Ticket.status == _parse_enum(TicketStatus, status, "status"))
    if priority:
        conditions.append(Ticket.priority == _parse_enum(TicketPriority, priority, "priority"))

    stmt = (
        select(Ticket, _message_count_column())
        .where(*conditions)
        .order_by(_status_rank(), Ticket.updated_at.desc(), Ticket.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    rows = (await session.execute(stmt)).all()

    tickets = []
    for ticket, message_count in rows:
        item = _ticket_dict(ticket)
        item["message_count"] = message_count
        tickets.append(item)

    total = await _count(session, *conditions)
    return {"tickets": tickets, "pagination": _pagination(page, limit, total)}


async def get_ticket_statistics(session: AsyncSession) -> Dict[str, int]:
    """Counts across all tickets for the admin dashboard."""
    def _count_where(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    result = await session.execute(
        select(
            _count_where(Ticket.status == TicketStatus.OPEN).label("open_count"),
            _count_where(Ticket.status == TicketStatus.REOPENED).label("reopened_count"),
            _count_where(Ticket.status == TicketStatus.CLOSED).label("closed_count"),
            _count_where(
                (Ticket.priority == TicketPriority.HIGH) & (Ticket.status != TicketStatus.CLOSED)
            ).label("high_priority_count"),
        )
    )
    row = result.one()
    return {key: int(value) for key, value in row._mapping.items()}


async def list_all_tickets(
    session: AsyncSession,
    caller: CallerContext,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: int = ADMIN_PAGE_SIZE,
) -> Dict[str, Any]:
    """
    Every ticket, for admins. High priority sorts first within each status
    group. Includes owner details, message counts and statistics.

    Returns:
        {"tickets": [...], "statistics": {...}, "pagination": {...}}

    Raises:
        ForbiddenError: Caller is not an admin
    """
    if not caller.is_admin:
        raise ForbiddenError("Admin access required")
    _check_page(page, limit)

    conditions = []
    if status:
        conditions.append(Ticket.status == _parse_enum(TicketStatus, status, "status"))
    if priority:
        conditions.append(Ticket.priority == _parse_enum(TicketPriority, priority, "priority"))

    last_message_at = (
        select(func.max(TicketMessage.created_at))
        .where(TicketMessage.ticket_id == Ticket.id)
        .correlate(Ticket)
        .scalar_subquery()
        .label("last_message_at")
    )
    high_first = case((Ticket.priority == TicketPriority.HIGH, 0), else_=1)

    stmt = (
        select(Ticket, User.name, User.email, _message_count_column(), last_message_at)
        .join(User, Ticket.user_id == User.id)
        .order_by(_status_rank(), high_first, Ticket.updated_at.desc(), Ticket.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    if conditions:
        stmt = stmt.where(*conditions)
    rows = (await session.execute(stmt)).all()

    tickets = []
    for ticket, user_name, user_email, message_count, last_at in rows:
        item = _ticket_dict(ticket)
        item.update({
            "user_name": user_name,
            "user_email": user_email,
            "message_count": message_count,
            "last_message_at": last_at,
        })
        tickets.append(item)

    total = await _count(session, *conditions)
    return {
        "tickets": tickets,
        "statistics": await get_ticket_statistics(session),
        "pagination": _pagination(page, limit, total),
    }


async def list_tickets(
    session: AsyncSession,
    caller: CallerContext,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Role-aware listing: admins get every ticket with statistics, everyone
    else gets their own tickets. Both honor the status and priority filters.
    """
    if caller.is_admin:
        return await list_all_tickets(
            session, caller, status=status, priority=priority,
            page=page, limit=limit or ADMIN_PAGE_SIZE,
        )
    return await list_user_tickets(
        session, caller, status=status, priority=priority,
        page=page, limit=limit or USER_PAGE_SIZE,
    )


# ==================== Detail ====================

async def get_ticket_detail(
    session: AsyncSession,
    caller: CallerContext,
    ticket_id: int,
) -> Dict[str, Any]:
    """
    A ticket with its owner, closer, messages (oldest first) and status
    history (newest first).

    Raises:
        NotFoundError: No such ticket
        ForbiddenError: Not the owner and not an admin
    """
    owner = aliased(User)
    closer = aliased(User)
    result = await session.execute(
        select(Ticket, owner.name, owner.email, closer.name)
        .join(owner, Ticket.user_id == owner.id)
        .outerjoin(closer, Ticket.closed_by == closer.id)
        .where(Ticket.id == ticket_id)
        .execution_options(populate_existing=True)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Ticket not found", resource="ticket")

    ticket, user_name, user_email, closed_by_name = row
    _ensure_can_access(ticket, caller)

    messages_result = await session.execute(
        select(TicketMessage, User.name, User.email)
        .outerjoin(User, TicketMessage.sender_id == User.id)
        .where(TicketMessage.ticket_id == ticket.id)
        .order_by(TicketMessage.created_at.asc(), TicketMessage.id.asc())
    )
    messages: List[Dict[str, Any]] = []
    for message, sender_name, sender_email in messages_result.all():
        item = _message_dict(message)
        item["sender_name"] = sender_name
        item["sender_email"] = sender_email
        messages.append(item)

    history_result = await session.execute(
        select(TicketStatusHistory, User.name)
        .outerjoin(User, TicketStatusHistory.changed_by == User.id)
        .where(TicketStatusHistory.ticket_id == ticket.id)
        .order_by(TicketStatusHistory.changed_at.desc(), TicketStatusHistory.id.desc())
    )
    history = [
        {
            "old_status": entry.old_status,
            "new_status": entry.new_status,
            "reason": entry.reason,
            "changed_at": entry.changed_at,
            "changed_by_name": changed_by_name,
        }
        for entry, changed_by_name in history_result.all()
    ]

    detail = _ticket_dict(ticket)
    detail.update({
        "user_name": user_name,
        "user_email": user_email,
        "closed_by_name": closed_by_name,
        "messages": messages,
        "history": history,
    })
    return detail


__all__ = [
    'create_ticket',
    'add_message',
    'close_ticket',
    'reopen_ticket',
    'list_user_tickets',
    'list_all_tickets',
    'list_tickets',
    'get_ticket_statistics',
    'get_ticket_detail',
]
