"""
Session Store
=============
Owns the authenticated identity, the profile snapshot and the recovery
key, and is the only writer of their persisted copies.

Usage:
    store = SessionStore(api, FileSessionStorage(config.state_path))
    await store.restore()
    if not store.is_authenticated:
        await store.login(email, password)
"""

from contextlib import asynccontextmanager
from dataclasses import replace
from typing import AsyncIterator, List, Optional

import structlog
from pydantic import ValidationError as ModelValidationError

from ..api import Beneficiary, Profile, WalletApiClient
from ..exceptions import AuthError, ValidationError, WalletError
from ..logging import bind_wallet, unbind_wallet
from ..validators import (
    validate_cnic,
    validate_email,
    validate_full_name,
    validate_password,
)
from .models import RegistrationResult, Session, SessionState
from .storage import (
    InMemorySessionStorage,
    PROFILE_KEY,
    RECOVERY_KEY,
    SessionStorage,
    TOKEN_KEY,
)

logger = structlog.get_logger(__name__)


class SessionStore:
    """
    Session lifecycle: anonymous -> authenticated -> anonymous.

    Any authentication failure outside login/register is terminal for the
    current session; there is no expired-but-retryable state.
    """

    def __init__(
        self,
        api: WalletApiClient,
        storage: Optional[SessionStorage] = None,
    ):
        self.api = api
        self.storage = storage or InMemorySessionStorage()
        self._session: Optional[Session] = None
        # Bumped whenever the session is replaced or cleared
        self._generation = 0

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def state(self) -> SessionState:
        return SessionState.AUTHENTICATED if self._session else SessionState.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def profile(self) -> Optional[Profile]:
        return self._session.profile if self._session else None

    @property
    def identity(self) -> Optional[str]:
        return self._session.identity if self._session else None

    @property
    def recovery_key(self) -> Optional[str]:
        """Signing credential for transfers, if one is stored."""
        if not self._session:
            return None
        return self.storage.get(RECOVERY_KEY)

    def _require_session(self) -> Session:
        if self._session is None:
            raise AuthError("Not signed in")
        return self._session

    def _establish(self, token: str, profile: Profile) -> Session:
        previous = self._session
        if previous is not None and previous.wallet_id != profile.wallet_id:
            # Key belongs to the wallet that was signed in before
            self.storage.delete(RECOVERY_KEY)

        self._generation += 1
        session = Session(identity=token, profile=profile)
        self.storage.set(TOKEN_KEY, token)
        self.storage.set(PROFILE_KEY, profile.model_dump_json(by_alias=True))
        self._session = session
        self.api.set_token(token)
        bind_wallet(profile.wallet_id)
        return session

    def _store_profile(self, profile: Profile) -> Profile:
        session = self._require_session()
        self._session = replace(session, profile=profile)
        self.storage.set(PROFILE_KEY, profile.model_dump_json(by_alias=True))
        return profile

    async def login(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Args:
            email: Account email
            password: Account password

        Returns:
            The new session

        Raises:
            AuthError: Credentials rejected; the server's reason is kept as-is
        """
        email = validate_email(email)
        if not password:
            raise ValidationError("Please enter your password")

        response = await self.api.authenticate(email, password)
        session = self._establish(response.token, response.user)
        logger.info("Login succeeded", wallet_id=session.wallet_id)
        return session

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        cnic: str,
    ) -> RegistrationResult:
        """
        Create an account for an email the caller has already verified.

        Verification state is not re-checked here; the remote refuses
        unverified emails on its own.

        Returns:
            RegistrationResult carrying the session and the one-time recovery key

        Raises:
            ValidationError: Field rejected locally, nothing was sent
            RegistrationError: Account creation rejected by the remote
        """
        email = validate_email(email)
        full_name = validate_full_name(full_name)
        cnic = validate_cnic(cnic)
        validate_password(password)

        response = await self.api.create_account(email, password, full_name, cnic)
        session = self._establish(response.token, response.user)
        self.storage.set(RECOVERY_KEY, response.private_key)
        logger.info("Account registered", wallet_id=session.wallet_id)
        return RegistrationResult(session=session, recovery_key=response.private_key)

    def logout(self) -> None:
        """Drop token, profile and recovery key. Safe to call repeatedly."""
        was_authenticated = self._session is not None
        self._session = None
        self._generation += 1
        self.storage.clear()
        self.api.clear_token()
        unbind_wallet()
        if was_authenticated:
            logger.info("Logged out")

    @property
    def generation(self) -> int:
        """Changes whenever the session is replaced or cleared."""
        return self._generation

    def is_current(self, generation: int) -> bool:
        """True while the session observed at ``generation`` is still in place."""
        return generation == self._generation

    @asynccontextmanager
    async def guard(self) -> AsyncIterator[None]:
        """
        Log the session out if the wrapped call reports it invalid.

        A rejection that arrives after the session was replaced or cleared
        belongs to the old token and leaves the current session alone.
        """
        generation = self._generation
        try:
            yield
        except AuthError as e:
            if not self.is_current(generation):
                logger.info("Ignoring rejection for a replaced session", error=e.message)
                raise
            logger.warning("Session rejected by wallet service", error=e.message)
            self.logout()
            raise

    async def refresh_profile(self) -> Profile:
        """
        Re-fetch the profile with the current token.

        A profile fetched for a session that was replaced meanwhile is
        discarded; the current session's snapshot is returned unchanged.

        Raises:
            AuthError: Token invalid; the store is logged out before raising
        """
        self._require_session()
        generation = self._generation
        async with self.guard():
            profile = await self.api.fetch_profile()
        if self._session is None:
            # Logged out while the fetch was in flight
            raise AuthError("Not signed in")
        if not self.is_current(generation):
            logger.info("Discarding profile fetched for a replaced session")
            return self._session.profile
        return self._store_profile(profile)

    def load(self) -> Optional[Session]:
        """Rebuild the session from storage without contacting the remote."""
        token = self.storage.get(TOKEN_KEY)
        raw_profile = self.storage.get(PROFILE_KEY)
        if not token or not raw_profile:
            if token or raw_profile:
                logger.warning("Discarding partial persisted session")
            self.logout()
            return None
        try:
            profile = Profile.model_validate_json(raw_profile)
        except ModelValidationError:
            logger.warning("Discarding unreadable persisted profile")
            self.logout()
            return None

        self._generation += 1
        self._session = Session(identity=token, profile=profile)
        self.api.set_token(token)
        bind_wallet(profile.wallet_id)
        return self._session

    async def restore(self) -> Optional[Session]:
        """
        Restore a persisted session, then confirm it with the remote.

        Any failure of the confirming refresh logs the session out. If a
        login or logout happens while the refresh is in flight, the newer
        state wins and None is returned.
        """
        if self.load() is None:
            return None
        generation = self._generation
        try:
            await self.refresh_profile()
        except WalletError as e:
            if not self.is_current(generation):
                logger.info("Restore superseded while refreshing", error=e.message)
                return None
            logger.warning("Persisted session could not be refreshed", error=e.message)
            self.logout()
            return None
        if not self.is_current(generation):
            logger.info("Restore superseded while refreshing")
            return None
        logger.info("Session restored", wallet_id=self._session.wallet_id)
        return self._session

    async def update_profile(
        self,
        full_name: Optional[str] = None,
        cnic: Optional[str] = None,
    ) -> Profile:
        """Edit name and/or CNIC, then refresh the snapshot from the remote."""
        self._require_session()
        fields = {}
        if full_name is not None:
            fields["fullName"] = validate_full_name(full_name)
        if cnic is not None:
            fields["cnic"] = validate_cnic(cnic)
        if not fields:
            raise ValidationError("Nothing to update")

        async with self.guard():
            await self.api.update_profile(fields)
        logger.info("Profile updated", fields=sorted(fields))
        return await self.refresh_profile()

    def set_recovery_key(self, recovery_key: str) -> None:
        """Store a recovery key the user supplies after signing in."""
        self._require_session()
        recovery_key = (recovery_key or "").strip()
        if not recovery_key:
            raise ValidationError("Recovery key is required")
        self.storage.set(RECOVERY_KEY, recovery_key)

    def replace_beneficiaries(self, beneficiaries: List[Beneficiary]) -> Profile:
        """Record a beneficiary list the remote has already accepted."""
        session = self._require_session()
        profile = session.profile.model_copy(update={"beneficiaries": list(beneficiaries)})
        return self._store_profile(profile)
