"""
Tests for the Session Store
===========================
Login, registration, logout, restore and profile edits.
"""

import asyncio
import json

import pytest

from bcwallet_core.exceptions import (
    AuthError,
    RegistrationError,
    RemoteError,
    ValidationError,
)
from bcwallet_core.session import (
    PROFILE_KEY,
    RECOVERY_KEY,
    SessionState,
    TOKEN_KEY,
)

from conftest import make_profile


class TestLogin:
    """Tests for establishing a session with email and password."""

    @pytest.mark.asyncio
    async def test_login_persists_identity_and_profile(self, api, storage, store):
        """Should persist token and profile together and authorize the client."""
        session = await store.login("a@b.com", "secret1")

        assert store.state == SessionState.AUTHENTICATED
        assert session.wallet_id == "W1"
        assert storage.get(TOKEN_KEY) == "tok-1"
        assert json.loads(storage.get(PROFILE_KEY))["walletId"] == "W1"
        assert api.token == "tok-1"

    @pytest.mark.asyncio
    async def test_login_failure_keeps_server_reason(self, api, storage, store):
        """Should surface the server message unchanged and leave state anonymous."""
        api.fail_next("authenticate", AuthError("Invalid email or password", status_code=401))

        with pytest.raises(AuthError) as exc_info:
            await store.login("a@b.com", "wrong1")

        assert exc_info.value.message == "Invalid email or password"
        assert store.state == SessionState.ANONYMOUS
        assert storage.snapshot() == {}

    @pytest.mark.asyncio
    async def test_login_rejects_bad_email_locally(self, api, store):
        """Should not contact the service for a malformed email."""
        with pytest.raises(ValidationError):
            await store.login("not-an-email", "secret1")

        assert api.calls == []

    @pytest.mark.asyncio
    async def test_login_as_other_wallet_drops_recovery_key(self, api, storage, signed_in):
        """Should forget the previous wallet's recovery key."""
        api.profile = make_profile(wallet_id="W9", email="z@b.com")

        await signed_in.login("z@b.com", "secret1")

        assert signed_in.profile.wallet_id == "W9"
        assert storage.get(RECOVERY_KEY) is None
        assert signed_in.recovery_key is None


class TestRegister:
    """Tests for account creation."""

    @pytest.mark.asyncio
    async def test_register_returns_and_stores_recovery_key(self, api, storage, store):
        """Should sign in and keep the one-time recovery key."""
        result = await store.register("new@b.com", "secret1", "New User", "12345-1234567-1")

        assert result.recovery_key == "pk-secret"
        assert result.session.profile.email == "new@b.com"
        assert storage.get(RECOVERY_KEY) == "pk-secret"
        assert store.recovery_key == "pk-secret"
        assert store.is_authenticated

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password,full_name,cnic",
        [
            ("bad", "secret1", "New User", "12345-1234567-1"),
            ("new@b.com", "short", "New User", "12345-1234567-1"),
            ("new@b.com", "lettersonly", "New User", "12345-1234567-1"),
            ("new@b.com", "secret1", "Al", "12345-1234567-1"),
            ("new@b.com", "secret1", "New User", "1234512345671"),
        ],
    )
    async def test_register_validates_locally(self, api, store, email, password, full_name, cnic):
        """Should reject bad fields before any request."""
        with pytest.raises(ValidationError):
            await store.register(email, password, full_name, cnic)

        assert api.calls == []
        assert not store.is_authenticated

    @pytest.mark.asyncio
    async def test_register_rejection_leaves_state_unchanged(self, api, storage, store):
        """Should raise RegistrationError and persist nothing."""
        api.fail_next("create_account", RegistrationError("User already exists", status_code=409))

        with pytest.raises(RegistrationError):
            await store.register("a@b.com", "secret1", "Alice Khan", "12345-1234567-1")

        assert store.state == SessionState.ANONYMOUS
        assert storage.snapshot() == {}


class TestLogout:
    """Tests for ending a session."""

    def test_logout_clears_everything(self, api, storage, signed_in):
        """Should remove token, profile and recovery key together."""
        signed_in.logout()

        assert signed_in.state == SessionState.ANONYMOUS
        assert storage.snapshot() == {}
        assert api.token is None

    def test_logout_is_idempotent(self, storage, signed_in):
        """Second logout should be a no-op."""
        signed_in.logout()
        signed_in.logout()

        assert signed_in.session is None
        assert storage.snapshot() == {}


class TestRefreshAndGuard:
    """Tests for profile refresh and the authentication guard."""

    @pytest.mark.asyncio
    async def test_refresh_updates_profile(self, api, signed_in):
        """Should replace the snapshot and keep the token."""
        api.profile = make_profile(full_name="Alice K. Updated")

        profile = await signed_in.refresh_profile()

        assert profile.full_name == "Alice K. Updated"
        assert signed_in.identity == "tok-1"

    @pytest.mark.asyncio
    async def test_refresh_auth_failure_logs_out(self, api, storage, signed_in):
        """Should log out when the token is rejected."""
        api.fail_next("fetch_profile", AuthError("Invalid token", status_code=401))

        with pytest.raises(AuthError):
            await signed_in.refresh_profile()

        assert signed_in.state == SessionState.ANONYMOUS
        assert storage.snapshot() == {}

    @pytest.mark.asyncio
    async def test_guard_ignores_other_errors(self, signed_in):
        """Should keep the session for non-auth failures."""
        with pytest.raises(RemoteError):
            async with signed_in.guard():
                raise RemoteError("Service unavailable", status_code=503)

        assert signed_in.is_authenticated

    @pytest.mark.asyncio
    async def test_guard_keeps_session_replaced_meanwhile(self, api, signed_in):
        """A rejection of the old token should not sign out a newer login."""
        api.profile = make_profile(wallet_id="W9", email="z@b.com")

        with pytest.raises(AuthError):
            async with signed_in.guard():
                await signed_in.login("z@b.com", "secret123")
                raise AuthError("Invalid token", status_code=401)

        assert signed_in.is_authenticated
        assert signed_in.profile.wallet_id == "W9"

    @pytest.mark.asyncio
    async def test_refresh_for_replaced_session_is_discarded(self, api, storage, signed_in):
        """A profile fetched with the old token must not overwrite the new one."""
        gate = api.profile_gate = asyncio.Event()
        refresh = asyncio.create_task(signed_in.refresh_profile())
        await asyncio.sleep(0)

        api.profile = make_profile(wallet_id="W9", email="z@b.com")
        await signed_in.login("z@b.com", "secret123")
        gate.set()

        profile = await refresh

        assert profile.wallet_id == "W9"
        assert signed_in.profile.wallet_id == "W9"
        assert json.loads(storage.get(PROFILE_KEY))["walletId"] == "W9"


class TestRestore:
    """Tests for rebuilding a session from persisted state."""

    @pytest.mark.asyncio
    async def test_restore_confirms_with_remote(self, api, storage, store):
        """Should load then refresh, with the token applied first."""
        storage.set(TOKEN_KEY, "tok-1")
        storage.set(PROFILE_KEY, api.profile.model_dump_json(by_alias=True))

        session = await store.restore()

        assert session is not None
        assert session.wallet_id == "W1"
        assert api.token == "tok-1"
        assert api.calls_to("fetch_profile") == [()]

    @pytest.mark.asyncio
    async def test_restore_partial_state_is_cleared(self, api, storage, store):
        """Token without profile should be treated as absent."""
        storage.set(TOKEN_KEY, "tok-1")

        assert await store.restore() is None

        assert storage.snapshot() == {}
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_restore_unreadable_profile_is_cleared(self, storage, store):
        """Corrupt profile JSON should be discarded."""
        storage.set(TOKEN_KEY, "tok-1")
        storage.set(PROFILE_KEY, "{not json")

        assert await store.restore() is None
        assert storage.snapshot() == {}

    @pytest.mark.asyncio
    async def test_restore_logs_out_on_any_refresh_failure(self, api, storage, signed_in):
        """A network failure during restore should also log out."""
        api.fail_next("fetch_profile", RemoteError("Failed to reach wallet service"))

        assert await signed_in.restore() is None

        assert signed_in.state == SessionState.ANONYMOUS
        assert storage.snapshot() == {}

    @pytest.mark.asyncio
    async def test_login_during_restore_keeps_new_profile(self, api, storage, signed_in):
        """A restore that finishes after a fresh login must not bring back the old profile."""
        gate = api.profile_gate = asyncio.Event()
        restore = asyncio.create_task(signed_in.restore())
        await asyncio.sleep(0)

        api.profile = make_profile(wallet_id="W9", email="z@b.com")
        await signed_in.login("z@b.com", "secret123")
        gate.set()

        assert await restore is None
        assert signed_in.state == SessionState.AUTHENTICATED
        assert signed_in.profile.wallet_id == "W9"
        assert json.loads(storage.get(PROFILE_KEY))["walletId"] == "W9"

    @pytest.mark.asyncio
    async def test_login_during_failed_restore_stays_signed_in(self, api, storage, signed_in):
        """A restore rejected after a fresh login must not log the new session out."""
        gate = api.profile_gate = asyncio.Event()
        restore = asyncio.create_task(signed_in.restore())
        await asyncio.sleep(0)

        api.profile = make_profile(wallet_id="W9", email="z@b.com")
        await signed_in.login("z@b.com", "secret123")
        api.fail_next("fetch_profile", AuthError("Invalid token", status_code=401))
        gate.set()

        assert await restore is None
        assert signed_in.state == SessionState.AUTHENTICATED
        assert signed_in.profile.wallet_id == "W9"
        assert storage.get(TOKEN_KEY) == "tok-1"
        assert api.token == "tok-1"

    @pytest.mark.asyncio
    async def test_logout_during_restore_stays_logged_out(self, api, storage, signed_in):
        """A restore that succeeds after logout must not sign back in."""
        gate = api.profile_gate = asyncio.Event()
        restore = asyncio.create_task(signed_in.restore())
        await asyncio.sleep(0)

        signed_in.logout()
        gate.set()

        assert await restore is None
        assert signed_in.state == SessionState.ANONYMOUS
        assert storage.snapshot() == {}


class TestProfileEdits:
    """Tests for profile updates and the recovery key."""

    @pytest.mark.asyncio
    async def test_update_profile_sends_only_given_fields(self, api, signed_in):
        """Should send a partial edit and refresh the snapshot."""
        profile = await signed_in.update_profile(full_name="  Alice Updated ")

        assert api.calls_to("update_profile") == [({"fullName": "Alice Updated"},)]
        assert profile.full_name == "Alice Updated"
        assert signed_in.profile.full_name == "Alice Updated"

    @pytest.mark.asyncio
    async def test_update_profile_requires_a_field(self, api, signed_in):
        """Should reject an empty edit locally."""
        with pytest.raises(ValidationError):
            await signed_in.update_profile()

        assert api.calls_to("update_profile") == []

    @pytest.mark.asyncio
    async def test_update_profile_validates_cnic(self, api, signed_in):
        """Should reject a malformed CNIC locally."""
        with pytest.raises(ValidationError):
            await signed_in.update_profile(cnic="12345")

        assert api.calls_to("update_profile") == []

    def test_set_recovery_key(self, storage, signed_in):
        """Should store a user-supplied key."""
        signed_in.set_recovery_key(" pk-other ")

        assert storage.get(RECOVERY_KEY) == "pk-other"

    def test_set_recovery_key_requires_session(self, store):
        """Should refuse when nobody is signed in."""
        with pytest.raises(AuthError):
            store.set_recovery_key("pk-other")
