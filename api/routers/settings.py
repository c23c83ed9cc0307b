"""
Account Settings Router

Endpoints for the caller's credentials and preferences:
- Password change and OTP password reset
- OTP email change
- Notification and privacy settings
- Display preferences and saved locations
- Account deletion
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_caller
from api.models import (
    LocationEnvelope,
    LocationListResponse,
    MessageResponse,
    PreferencesResponse,
    SettingsResponse,
    UserResponse,
)
from database.core.async_connection import get_session
from database.operations import credential_ops, preferences_ops, settings_ops, user_ops
from utils.auth import CallerContext

router = APIRouter(prefix="/api/user", tags=["settings"])


# ============================================================================
# Models
# ============================================================================

class PasswordChangeRequest(BaseModel):
    """Password change request."""
    current_password: str
    new_password: str


class PasswordResetOTPRequest(BaseModel):
    """Ask for a password reset code. Must be the caller's own email."""
    email: str


class PasswordResetConfirmRequest(BaseModel):
    """Set a new password with a reset code."""
    otp: str = Field(..., description="Code from the reset email")
    new_password: str


class EmailChangeOTPRequest(BaseModel):
    """Ask for a code to verify a new address."""
    new_email: str


class EmailChangeConfirmRequest(BaseModel):
    """Complete an email change."""
    new_email: str
    otp: str = Field(..., description="Code sent to the new address")


class EmailChangeResponse(MessageResponse):
    user: UserResponse


class UpdateSettingsRequest(BaseModel):
    """Partial settings update; omitted fields keep their value."""
    email_notifications: Optional[bool] = None
    weather_alerts: Optional[bool] = None
    weekly_digest: Optional[bool] = None
    data_sharing: Optional[bool] = None


class UpdatePreferencesRequest(BaseModel):
    """Partial preferences update; omitted fields keep their value."""
    preferred_location: Optional[str] = Field(None, description="Empty string clears it")
    temperature_unit: Optional[str] = None
    wind_speed_unit: Optional[str] = None
    pressure_unit: Optional[str] = None
    precipitation_unit: Optional[str] = None
    time_format: Optional[str] = None
    theme: Optional[str] = None
    notifications_enabled: Optional[bool] = None


class SaveLocationRequest(BaseModel):
    location_name: str
    latitude: float
    longitude: float
    is_favorite: bool = False


# ============================================================================
# Credentials
# ============================================================================

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: PasswordChangeRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Change password with the current password."""
    await credential_ops.change_password(
        session, caller, request.current_password, request.new_password
    )
    return MessageResponse(message="Password changed successfully")


@router.post("/send-password-reset-otp", response_model=MessageResponse)
async def send_password_reset_otp(
    request: PasswordResetOTPRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Email a one-time code for resetting the password."""
    await credential_ops.request_password_reset_otp(session, caller, request.email)
    return MessageResponse(message="OTP sent to your email")


@router.post("/reset-password-with-otp", response_model=MessageResponse)
async def reset_password_with_otp(
    request: PasswordResetConfirmRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Set a new password using the emailed code."""
    await credential_ops.confirm_password_reset_otp(
        session, caller, request.otp, request.new_password
    )
    return MessageResponse(message="Password reset successfully")


@router.post("/send-email-change-otp", response_model=MessageResponse)
async def send_email_change_otp(
    request: EmailChangeOTPRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Send a verification code to the requested new address."""
    await credential_ops.request_email_change_otp(session, caller, request.new_email)
    return MessageResponse(message="Verification code sent to new email")


@router.post("/change-email", response_model=EmailChangeResponse)
async def change_email(
    request: EmailChangeConfirmRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Confirm the new address with its code."""
    user = await credential_ops.confirm_email_change(
        session, caller, request.new_email, request.otp
    )
    return EmailChangeResponse(
        message="Email changed successfully",
        user=UserResponse.model_validate(user),
    )


# ============================================================================
# Preferences
# ============================================================================

@router.get("/settings", response_model=SettingsResponse)
async def get_settings(
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Get notification and privacy settings."""
    return await settings_ops.get_settings(session, caller)


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    request: UpdateSettingsRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Update some or all settings."""
    return await settings_ops.update_settings(
        session, caller, request.model_dump(exclude_none=True)
    )


@router.get("/preferences", response_model=PreferencesResponse)
async def get_preferences(
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Get display preferences (units, clock format, theme)."""
    return await preferences_ops.get_preferences(session, caller)


@router.put("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    request: UpdatePreferencesRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Update some or all display preferences."""
    return await preferences_ops.update_preferences(
        session, caller, request.model_dump(exclude_none=True)
    )


@router.get("/locations", response_model=LocationListResponse)
async def list_locations(
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Saved locations, newest first."""
    return LocationListResponse(locations=await preferences_ops.list_locations(session, caller))


@router.post("/locations", response_model=LocationEnvelope, status_code=status.HTTP_201_CREATED)
async def save_location(
    request: SaveLocationRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Save a location."""
    location = await preferences_ops.add_location(
        session,
        caller,
        request.location_name,
        request.latitude,
        request.longitude,
        is_favorite=request.is_favorite,
    )
    return LocationEnvelope(message="Location saved successfully", location=location)


@router.delete("/locations/{location_id}", response_model=MessageResponse)
async def delete_location(
    location_id: int,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Remove a saved location."""
    await preferences_ops.delete_location(session, caller, location_id)
    return MessageResponse(message="Location removed successfully")


# ============================================================================
# Account
# ============================================================================

@router.delete("/delete-account", response_model=MessageResponse)
async def delete_account(
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Permanently delete the account and its data."""
    await user_ops.delete_account(session, caller)
    return MessageResponse(message="Account deleted successfully")
