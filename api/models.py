"""
API Response Models.

Pydantic models shared across routers. Request bodies live next to the
router that accepts them.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    success: bool = Field(default=True, description="Operation succeeded")
    message: str = Field(..., description="Human readable result")


class ErrorResponse(BaseModel):
    """Error body returned for every handled error."""
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Error message")
    status_code: int = Field(..., description="HTTP status code")
    details: Dict[str, Any] = Field(default_factory=dict, description="Extra error details")
    timestamp: Optional[str] = Field(None, description="When the error occurred")


# ============================================================================
# Users
# ============================================================================

class UserResponse(BaseModel):
    """Public view of an account."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    is_admin: bool = False
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    """Session token issued at register/login."""
    success: bool = True
    message: str
    token: str = Field(..., description="Bearer token for the Authorization header")
    token_type: str = "bearer"
    user: UserResponse


class AdminUserResponse(UserResponse):
    """An account as seen by an admin."""
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class UserPagination(BaseModel):
    current_page: int
    total_pages: int
    total_users: int
    limit: int


class UserListResponse(BaseModel):
    """Admin user listing."""
    success: bool = True
    users: List[AdminUserResponse]
    pagination: UserPagination


class UserEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: AdminUserResponse


class SettingsResponse(BaseModel):
    """Notification and privacy preferences."""
    email_notifications: bool
    weather_alerts: bool
    weekly_digest: bool
    data_sharing: bool


class PreferencesResponse(BaseModel):
    """Display preferences."""
    preferred_location: Optional[str] = None
    temperature_unit: str
    wind_speed_unit: str
    pressure_unit: str
    precipitation_unit: str
    time_format: str
    theme: str
    notifications_enabled: bool


class SavedLocationResponse(BaseModel):
    id: int
    location_name: str
    latitude: float
    longitude: float
    is_favorite: bool
    created_at: Optional[datetime] = None


class LocationListResponse(BaseModel):
    success: bool = True
    locations: List[SavedLocationResponse]


class LocationEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    location: SavedLocationResponse


# ============================================================================
# Tickets
# ============================================================================

class TicketResponse(BaseModel):
    """A ticket as stored."""
    id: int
    user_id: int
    subject: str
    category: str
    priority: str
    status: str
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None
    closed_by: Optional[int] = None


class TicketListItem(TicketResponse):
    """A ticket in a listing. Owner fields are filled for admins only."""
    message_count: int = 0
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    last_message_at: Optional[datetime] = None


class TicketMessageResponse(BaseModel):
    """One message in a ticket thread."""
    id: int
    ticket_id: int
    sender_id: Optional[int] = None
    message: str
    is_admin_reply: bool
    created_at: datetime
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None


class TicketHistoryEntry(BaseModel):
    """One status transition."""
    old_status: Optional[str] = None
    new_status: str
    reason: Optional[str] = None
    changed_at: datetime
    changed_by_name: Optional[str] = None


class TicketDetailResponse(TicketResponse):
    """A ticket with its thread and history."""
    user_name: str
    user_email: str
    closed_by_name: Optional[str] = None
    messages: List[TicketMessageResponse]
    history: List[TicketHistoryEntry]


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_tickets: int
    limit: int


class TicketStatistics(BaseModel):
    open_count: int
    reopened_count: int
    closed_count: int
    high_priority_count: int


class TicketListResponse(BaseModel):
    """Ticket listing. Statistics are present for admin listings only."""
    success: bool = True
    tickets: List[TicketListItem]
    pagination: Pagination
    statistics: Optional[TicketStatistics] = None


class TicketEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    ticket: TicketResponse


class TicketDetailEnvelope(BaseModel):
    success: bool = True
    ticket: TicketDetailResponse


class TicketMessageEnvelope(BaseModel):
    success: bool = True
    message: str
    ticket_message: TicketMessageResponse


# ============================================================================
# Health
# ============================================================================

class HealthResponse(BaseModel):
    """Service health."""
    status: str = Field(..., description="healthy or degraded")
    version: str
    database: bool = Field(..., description="Database answered a trivial query")
    email_enabled: bool
    errors: Dict[str, Any] = Field(default_factory=dict, description="Errors handled since startup, by type")
    timestamp: datetime
