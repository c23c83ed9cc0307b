"""
Tests for registration, login and account deletion.
"""

import pytest
from unittest.mock import AsyncMock, patch

from sqlalchemy import select, func

from database.models import (
    Ticket,
    TicketMessage,
    TicketStatusHistory,
    User,
    UserSettings,
)
from database.operations import credential_ops, settings_ops, ticket_ops, user_ops
from database.operations.password_reset_ops import get_reset_token
from utils.auth import CallerContext
from utils.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError

from tests.conftest import DEFAULT_PASSWORD, caller_for


class TestRegister:
    """Account registration."""

    @pytest.mark.asyncio
    async def test_register_and_login(self, test_session):
        user = await user_ops.register_user(test_session, "New.User@Example.com", "password1", " New ")

        assert user.id is not None
        assert user.email == "new.user@example.com"
        assert user.name == "New"
        assert user.is_admin is False

        logged_in = await user_ops.authenticate_user(test_session, "NEW.USER@example.com", "password1")
        assert logged_in.id == user.id
        assert logged_in.last_login is not None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_session, alice):
        with pytest.raises(ConflictError):
            await user_ops.register_user(test_session, "ALICE@example.com", "password1", "Other")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password,name",
        [
            ("broken", "password1", "Name"),
            ("ok@example.com", "short", "Name"),
            ("ok@example.com", "password1", "   "),
        ],
    )
    async def test_invalid_input(self, test_session, email, password, name):
        with pytest.raises(ValidationError):
            await user_ops.register_user(test_session, email, password, name)


class TestAuthenticate:
    """Login failures share one message."""

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_session, alice):
        with pytest.raises(AuthenticationError) as exc_info:
            await user_ops.authenticate_user(test_session, "alice@example.com", "nope-nope")
        assert exc_info.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_unknown_email(self, test_session):
        with pytest.raises(AuthenticationError) as exc_info:
            await user_ops.authenticate_user(test_session, "ghost@example.com", DEFAULT_PASSWORD)
        assert exc_info.value.message == "Invalid email or password"


class TestSetAdmin:

    @pytest.mark.asyncio
    async def test_grant_and_revoke(self, test_session, alice):
        user = await user_ops.set_admin(test_session, "alice@example.com", True)
        assert user.is_admin is True
        user = await user_ops.set_admin(test_session, "alice@example.com", False)
        assert user.is_admin is False

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_session):
        with pytest.raises(NotFoundError):
            await user_ops.set_admin(test_session, "ghost@example.com", True)


class TestDeleteAccount:
    """Account deletion and what it leaves behind."""

    @pytest.mark.asyncio
    async def test_removes_owned_data(self, test_session, alice):
        caller = caller_for(alice)
        ticket = await ticket_ops.create_ticket(
            test_session, caller, "Forecast broken", "technical", "Nothing loads on the map page."
        )
        await settings_ops.update_settings(test_session, caller, {"weekly_digest": True})
        with patch("database.operations.credential_ops.notify", new_callable=AsyncMock):
            await credential_ops.request_password_reset_otp(test_session, caller, "alice@example.com")

        with patch("database.operations.user_ops.notify", new_callable=AsyncMock) as mock_notify:
            await user_ops.delete_account(test_session, caller)
        mock_notify.assert_awaited_once_with("send_account_deleted", "alice@example.com", "Alice")

        assert await user_ops.get_user_by_id(test_session, alice.id) is None
        assert await get_reset_token(test_session, alice.id) is None
        for model, condition in (
            (Ticket, Ticket.id == ticket["id"]),
            (TicketMessage, TicketMessage.ticket_id == ticket["id"]),
            (TicketStatusHistory, TicketStatusHistory.ticket_id == ticket["id"]),
            (UserSettings, UserSettings.user_id == alice.id),
        ):
            count = (await test_session.execute(select(func.count()).select_from(model).where(condition))).scalar_one()
            assert count == 0, model.__name__

        with pytest.raises(AuthenticationError):
            await user_ops.authenticate_user(test_session, "alice@example.com", DEFAULT_PASSWORD)

    @pytest.mark.asyncio
    async def test_keeps_other_users_tickets(self, test_session, alice, admin):
        ticket = await ticket_ops.create_ticket(
            test_session, caller_for(alice), "Alerts missing", "bug_report", "No storm alerts arrived today."
        )
        admin_caller = caller_for(admin)
        await ticket_ops.add_message(test_session, admin_caller, ticket["id"], "Checking the alert queue.")
        await ticket_ops.close_ticket(test_session, admin_caller, ticket["id"])

        await user_ops.delete_account(test_session, admin_caller)

        detail = await ticket_ops.get_ticket_detail(test_session, caller_for(alice), ticket["id"])
        assert len(detail["messages"]) == 2
        admin_reply = detail["messages"][1]
        assert admin_reply["sender_id"] is None
        assert admin_reply["sender_name"] is None
        assert admin_reply["is_admin_reply"] is True
        assert detail["closed_by"] is None
        assert detail["history"][0]["changed_by_name"] is None

    @pytest.mark.asyncio
    async def test_missing_account(self, test_session):
        ghost = CallerContext(user_id=4242, email="ghost@example.com", name="Ghost")
        with pytest.raises(NotFoundError):
            await user_ops.delete_account(test_session, ghost)

    @pytest.mark.asyncio
    async def test_email_free_after_delete(self, test_session, alice):
        await user_ops.delete_account(test_session, caller_for(alice))
        user = await user_ops.register_user(test_session, "alice@example.com", "password1", "Alice Again")
        assert user.id is not None
        remaining = (await test_session.execute(select(func.count(User.id)))).scalar_one()
        assert remaining == 1
