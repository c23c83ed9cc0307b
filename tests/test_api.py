"""
HTTP tests for the account and support endpoints.

Requests go through the full app (middleware, dependencies, exception
handlers) against the per-test in-memory database.
"""

import pytest
from unittest.mock import AsyncMock, patch

from utils.errors.handlers import ErrorHandler

from tests.conftest import DEFAULT_PASSWORD, auth_headers

TICKET_BODY = {
    "subject": "Radar map empty",
    "category": "technical",
    "message": "The radar layer shows nothing since this morning.",
}


@pytest.fixture
def mock_notify():
    with patch("database.operations.credential_ops.notify", new_callable=AsyncMock) as mocked:
        mocked.return_value = True
        yield mocked


class TestAuthEndpoints:
    """Register, login, logout and token checks."""

    @pytest.mark.asyncio
    async def test_register_then_profile(self, client):
        response = await client.post("/api/auth/register", json={
            "email": "carol@example.com",
            "password": "password1",
            "name": "Carol",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "carol@example.com"

        profile = await client.get(
            "/api/user/profile", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert profile.status_code == 200
        assert profile.json()["name"] == "Carol"
        assert profile.json()["is_admin"] is False

    @pytest.mark.asyncio
    async def test_register_duplicate(self, client, alice):
        response = await client.post("/api/auth/register", json={
            "email": "alice@example.com",
            "password": "password1",
            "name": "Impostor",
        })
        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_login(self, client, alice):
        response = await client.post("/api/auth/login", json={
            "email": "alice@example.com",
            "password": DEFAULT_PASSWORD,
        })
        assert response.status_code == 200
        assert response.json()["user"]["id"] == alice.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, alice):
        response = await client.post("/api/auth/login", json={
            "email": "alice@example.com",
            "password": "not-it",
        })
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, client, alice):
        headers = auth_headers(alice)
        response = await client.post("/api/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = await client.get("/api/user/profile", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Token has been revoked"

        response = await client.post("/api/auth/logout", headers=headers)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_keeps_other_sessions(self, client, alice):
        kept = auth_headers(alice)
        response = await client.post("/api/auth/logout", headers=auth_headers(alice))
        assert response.status_code == 200

        response = await client.get("/api/user/profile", headers=kept)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_logout_requires_token(self, client):
        response = await client.post("/api/auth/logout")
        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/user/profile")
        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(
            "/api/user/profile", headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Could not validate credentials"

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, client, alice):
        headers = auth_headers(alice)
        response = await client.delete("/api/user/delete-account", headers=headers)
        assert response.status_code == 200

        response = await client.get("/api/user/profile", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "User no longer exists"

    @pytest.mark.asyncio
    async def test_schema_error_is_400(self, client):
        response = await client.post("/api/auth/login", json={"email": "alice@example.com"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "password"


class TestCredentialEndpoints:
    """Password and email changes over HTTP."""

    @pytest.mark.asyncio
    async def test_change_password(self, client, alice, mock_notify):
        response = await client.post(
            "/api/user/change-password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "newpass1"},
            headers=auth_headers(alice),
        )
        assert response.status_code == 200

        old = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD})
        new = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "newpass1"})
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, client, alice, mock_notify):
        response = await client.post(
            "/api/user/change-password",
            json={"current_password": "wrong-one", "new_password": "newpass1"},
            headers=auth_headers(alice),
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_reset_with_otp(self, client, alice, mock_notify):
        headers = auth_headers(alice)
        response = await client.post(
            "/api/user/send-password-reset-otp", json={"email": "alice@example.com"}, headers=headers
        )
        assert response.status_code == 200
        otp = mock_notify.await_args.args[3]

        response = await client.post(
            "/api/user/reset-password-with-otp",
            json={"otp": otp, "new_password": "resetpass"},
            headers=headers,
        )
        assert response.status_code == 200

        replay = await client.post(
            "/api/user/reset-password-with-otp",
            json={"otp": otp, "new_password": "otherpass"},
            headers=headers,
        )
        assert replay.status_code == 400
        assert replay.json()["error"] == "INVALID_OR_EXPIRED"

        login = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "resetpass"})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_reset_for_foreign_email(self, client, alice, bob, mock_notify):
        response = await client.post(
            "/api/user/send-password-reset-otp",
            json={"email": "bob@example.com"},
            headers=auth_headers(alice),
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Email not found"

    @pytest.mark.asyncio
    async def test_email_change_then_login(self, client, alice, mock_notify):
        headers = auth_headers(alice)
        response = await client.post(
            "/api/user/send-email-change-otp", json={"new_email": "x@example.com"}, headers=headers
        )
        assert response.status_code == 200
        otp = mock_notify.await_args.args[3]

        response = await client.post(
            "/api/user/change-email", json={"new_email": "x@example.com", "otp": otp}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "x@example.com"

        old = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD})
        new = await client.post("/api/auth/login", json={"email": "x@example.com", "password": DEFAULT_PASSWORD})
        assert old.status_code == 401
        assert new.status_code == 200

        # The old token still identifies the same account
        profile = await client.get("/api/user/profile", headers=headers)
        assert profile.json()["email"] == "x@example.com"

    @pytest.mark.asyncio
    async def test_email_taken_before_confirm(self, client, alice, mock_notify):
        headers = auth_headers(alice)
        await client.post(
            "/api/user/send-email-change-otp", json={"new_email": "x@example.com"}, headers=headers
        )
        otp = mock_notify.await_args.args[3]

        register = await client.post("/api/auth/register", json={
            "email": "x@example.com",
            "password": "password1",
            "name": "Xavier",
        })
        assert register.status_code == 201

        response = await client.post(
            "/api/user/change-email", json={"new_email": "x@example.com", "otp": otp}, headers=headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_email_change_to_taken_address(self, client, alice, bob, mock_notify):
        response = await client.post(
            "/api/user/send-email-change-otp",
            json={"new_email": "bob@example.com"},
            headers=auth_headers(alice),
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Email already in use"


class TestSettingsEndpoints:

    @pytest.mark.asyncio
    async def test_defaults_and_partial_update(self, client, alice):
        headers = auth_headers(alice)
        response = await client.get("/api/user/settings", headers=headers)
        assert response.json() == {
            "email_notifications": True,
            "weather_alerts": True,
            "weekly_digest": False,
            "data_sharing": False,
        }

        response = await client.put("/api/user/settings", json={"weekly_digest": True}, headers=headers)
        assert response.status_code == 200
        assert response.json()["weekly_digest"] is True
        assert response.json()["email_notifications"] is True

        response = await client.get("/api/user/settings", headers=headers)
        assert response.json()["weekly_digest"] is True

    @pytest.mark.asyncio
    async def test_preferences(self, client, alice):
        headers = auth_headers(alice)
        response = await client.put(
            "/api/user/preferences", json={"wind_speed_unit": "knots"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["wind_speed_unit"] == "knots"
        assert response.json()["temperature_unit"] == "celsius"

        response = await client.put("/api/user/preferences", json={"theme": "neon"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "theme"

    @pytest.mark.asyncio
    async def test_saved_locations(self, client, alice):
        headers = auth_headers(alice)
        response = await client.post("/api/user/locations", json={
            "location_name": "Oslo",
            "latitude": 59.9139,
            "longitude": 10.7522,
        }, headers=headers)
        assert response.status_code == 201
        location_id = response.json()["location"]["id"]

        response = await client.get("/api/user/locations", headers=headers)
        assert [loc["id"] for loc in response.json()["locations"]] == [location_id]

        response = await client.delete(f"/api/user/locations/{location_id}", headers=headers)
        assert response.status_code == 200
        response = await client.delete(f"/api/user/locations/{location_id}", headers=headers)
        assert response.status_code == 404


class TestTicketEndpoints:
    """Ticket lifecycle over HTTP."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, client, alice):
        headers = auth_headers(alice)
        response = await client.post("/api/tickets", json=TICKET_BODY, headers=headers)
        assert response.status_code == 201
        ticket = response.json()["ticket"]
        assert ticket["status"] == "open"
        assert ticket["priority"] == "medium"

        response = await client.get(f"/api/tickets/{ticket['id']}", headers=headers)
        assert response.status_code == 200
        detail = response.json()["ticket"]
        assert len(detail["messages"]) == 1
        assert detail["history"][0]["new_status"] == "open"

    @pytest.mark.asyncio
    async def test_short_subject(self, client, alice):
        response = await client.post(
            "/api/tickets", json={**TICKET_BODY, "subject": "Hi"}, headers=auth_headers(alice)
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "subject"

        response = await client.post(
            "/api/tickets", json={**TICKET_BODY, "subject": "Hi!"}, headers=auth_headers(alice)
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_close_message_reopen(self, client, alice):
        headers = auth_headers(alice)
        ticket_id = (await client.post("/api/tickets", json=TICKET_BODY, headers=headers)).json()["ticket"]["id"]

        response = await client.patch(f"/api/tickets/{ticket_id}/close", headers=headers)
        assert response.status_code == 200
        assert response.json()["ticket"]["status"] == "closed"

        response = await client.post(
            f"/api/tickets/{ticket_id}/messages", json={"message": "Hello?"}, headers=headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_STATE"

        response = await client.patch(f"/api/tickets/{ticket_id}/reopen", headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

        response = await client.patch(
            f"/api/tickets/{ticket_id}/reopen", json={"reason": "Still empty"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["ticket"]["status"] == "reopened"

        response = await client.post(
            f"/api/tickets/{ticket_id}/messages", json={"message": "Hello?"}, headers=headers
        )
        assert response.status_code == 201
        assert response.json()["ticket_message"]["is_admin_reply"] is False

    @pytest.mark.asyncio
    async def test_other_user_gets_403(self, client, alice, bob):
        ticket_id = (
            await client.post("/api/tickets", json=TICKET_BODY, headers=auth_headers(alice))
        ).json()["ticket"]["id"]

        response = await client.get(f"/api/tickets/{ticket_id}", headers=auth_headers(bob))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_ticket_404(self, client, alice):
        response = await client.get("/api/tickets/999", headers=auth_headers(alice))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_listing_by_role(self, client, alice, bob, admin):
        await client.post("/api/tickets", json=TICKET_BODY, headers=auth_headers(alice))
        await client.post(
            "/api/tickets", json={**TICKET_BODY, "priority": "high"}, headers=auth_headers(bob)
        )

        mine = (await client.get("/api/tickets", headers=auth_headers(alice))).json()
        assert len(mine["tickets"]) == 1
        assert mine["statistics"] is None

        everything = (await client.get("/api/tickets", headers=auth_headers(admin))).json()
        assert len(everything["tickets"]) == 2
        assert everything["tickets"][0]["priority"] == "high"
        assert everything["statistics"]["open_count"] == 2
        assert everything["statistics"]["high_priority_count"] == 1

    @pytest.mark.asyncio
    async def test_admin_endpoint_requires_admin(self, client, alice, admin):
        response = await client.get("/api/tickets/admin/all", headers=auth_headers(alice))
        assert response.status_code == 403

        response = await client.get(
            "/api/tickets/admin/all", params={"status": "open"}, headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert response.json()["pagination"]["limit"] == 20

    @pytest.mark.asyncio
    async def test_admin_reply_flag(self, client, alice, admin):
        ticket_id = (
            await client.post("/api/tickets", json=TICKET_BODY, headers=auth_headers(alice))
        ).json()["ticket"]["id"]

        response = await client.post(
            f"/api/tickets/{ticket_id}/messages",
            json={"message": "Fixed on our side."},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        assert response.json()["ticket_message"]["is_admin_reply"] is True


class TestAdminEndpoints:
    """User management over HTTP."""

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, client, alice):
        response = await client.get("/api/admin/users", headers=auth_headers(alice))
        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_list_and_search(self, client, alice, bob, admin):
        response = await client.get(
            "/api/admin/users", params={"search": "bob"}, headers=auth_headers(admin)
        )
        assert response.status_code == 200
        body = response.json()
        assert [u["email"] for u in body["users"]] == ["bob@example.com"]
        assert body["pagination"]["total_users"] == 1

    @pytest.mark.asyncio
    async def test_create_update_delete(self, client, admin):
        headers = auth_headers(admin)
        response = await client.post("/api/admin/users", json={
            "email": "dave@example.com",
            "password": "password1",
            "name": "Dave",
        }, headers=headers)
        assert response.status_code == 201
        user_id = response.json()["user"]["id"]

        response = await client.put(
            f"/api/admin/users/{user_id}", json={"name": "David"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "David"

        response = await client.get(f"/api/admin/users/{user_id}", headers=headers)
        assert response.json()["user"]["name"] == "David"

        response = await client.delete(f"/api/admin/users/{user_id}", headers=headers)
        assert response.status_code == 200

        response = await client.get(f"/api/admin/users/{user_id}", headers=headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_toggle_admin_applies_to_existing_token(self, client, alice, admin):
        alice_headers = auth_headers(alice)
        response = await client.post(
            f"/api/admin/users/{alice.id}/toggle-admin", headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert response.json()["message"] == "User promoted to admin"

        response = await client.get("/api/admin/users", headers=alice_headers)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, client, admin):
        response = await client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete your own account"


class TestPlumbing:
    """Health and correlation IDs."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        with patch("api.routers.health.check_async_db", new_callable=AsyncMock, return_value=True):
            response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_degraded(self, client):
        with patch("api.routers.health.check_async_db", new_callable=AsyncMock, return_value=False):
            response = await client.get("/health")
        assert response.status_code == 503
        assert response.json()["database"] is False

    @pytest.mark.asyncio
    async def test_health_reports_handled_errors(self, client):
        with patch("api.routers.health.check_async_db", new_callable=AsyncMock, return_value=True), \
                patch("utils.errors.handlers._global_handler", ErrorHandler()):
            assert (await client.get("/health")).json()["errors"]["total_errors"] == 0
            assert (await client.get("/api/user/profile")).status_code == 401
            errors = (await client.get("/health")).json()["errors"]

        assert errors == {
            "total_errors": 1,
            "recent_errors": 1,
            "error_types": {"AuthenticationError": 1},
        }

    @pytest.mark.asyncio
    async def test_correlation_id_echoed(self, client):
        response = await client.get("/", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_correlation_id_generated(self, client):
        response = await client.get("/")
        assert response.headers["X-Correlation-ID"]
