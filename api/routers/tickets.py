"""
Support Tickets Router

Users raise tickets and talk to support in a thread; admins see every
ticket and reply. Ticket rules live in database.operations.ticket_ops.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, Field
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_caller, require_admin
from api.models import (
    TicketDetailEnvelope,
    TicketEnvelope,
    TicketListResponse,
    TicketMessageEnvelope,
)
from database.core.async_connection import get_session
from database.operations import ticket_ops
from utils.auth import CallerContext

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


# ============================================================================
# Models
# ============================================================================

class CreateTicketRequest(BaseModel):
    """New support ticket."""
    subject: str = Field(..., description="3-255 characters")
    category: str = Field(..., description="technical, billing, feature_request, bug_report or other")
    priority: Optional[str] = Field(None, description="low, medium (default) or high")
    message: str = Field(..., description="Initial message, at least 10 characters")


class AddMessageRequest(BaseModel):
    """Reply in a ticket thread."""
    message: str


class CloseTicketRequest(BaseModel):
    reason: Optional[str] = None


class ReopenTicketRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Why the ticket is being reopened (required)")


# ============================================================================
# Listing
# ============================================================================

@router.get("", response_model=TicketListResponse)
async def list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """
    List tickets.

    Regular users see their own tickets. Admins see all tickets along with
    statistics.
    """
    return await ticket_ops.list_tickets(
        session, caller, status=status_filter, priority=priority, page=page, limit=limit
    )


@router.get("/admin/all", response_model=TicketListResponse)
async def list_all_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(ticket_ops.ADMIN_PAGE_SIZE),
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """All tickets with statistics (admin only)."""
    return await ticket_ops.list_all_tickets(
        session, caller, status=status_filter, priority=priority, page=page, limit=limit
    )


# ============================================================================
# Single ticket
# ============================================================================

@router.post("", response_model=TicketEnvelope, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: CreateTicketRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Open a ticket."""
    ticket = await ticket_ops.create_ticket(
        session,
        caller,
        subject=request.subject,
        category=request.category,
        message=request.message,
        priority=request.priority,
    )
    return TicketEnvelope(message="Support ticket created successfully", ticket=ticket)


@router.get("/{ticket_id}", response_model=TicketDetailEnvelope)
async def get_ticket(
    ticket_id: int,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Ticket with its messages and status history."""
    detail = await ticket_ops.get_ticket_detail(session, caller, ticket_id)
    return TicketDetailEnvelope(ticket=detail)


@router.post(
    "/{ticket_id}/messages",
    response_model=TicketMessageEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def add_message(
    ticket_id: int,
    request: AddMessageRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Reply in the ticket thread."""
    message = await ticket_ops.add_message(session, caller, ticket_id, request.message)
    return TicketMessageEnvelope(message="Message added successfully", ticket_message=message)


@router.patch("/{ticket_id}/close", response_model=TicketEnvelope)
async def close_ticket(
    ticket_id: int,
    request: Optional[CloseTicketRequest] = Body(None),
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Close a ticket (owner or admin)."""
    reason = request.reason if request else None
    ticket = await ticket_ops.close_ticket(session, caller, ticket_id, reason)
    return TicketEnvelope(message="Ticket closed successfully", ticket=ticket)


@router.patch("/{ticket_id}/reopen", response_model=TicketEnvelope)
async def reopen_ticket(
    ticket_id: int,
    request: Optional[ReopenTicketRequest] = Body(None),
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Reopen a closed ticket (creator only, reason required)."""
    reason = request.reason if request else None
    ticket = await ticket_ops.reopen_ticket(session, caller, ticket_id, reason)
    return TicketEnvelope(message="Ticket reopened successfully", ticket=ticket)
