"""
Verification Handshake
======================
Client side of the emailed one-time-code exchange that gates account
creation.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, Dict, Optional

import structlog

from ..api import WalletApiClient
from ..config import VerificationConfig
from ..exceptions import ExpiredError, InvalidCodeError, RateLimitError, ValidationError
from ..validators import is_valid_code, validate_email
from .models import VerificationChallenge, VerifiedEmail

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VerificationHandshake:
    """
    Issues, throttles, expires and verifies one-time email codes.

    The number of incorrect attempts is not bounded locally; the code
    stays usable until it expires.
    """

    def __init__(
        self,
        api: WalletApiClient,
        config: Optional[VerificationConfig] = None,
        clock: Clock = utc_now,
    ):
        self.api = api
        self.config = config or VerificationConfig()
        self._clock = clock
        self._challenges: Dict[str, VerificationChallenge] = {}
        self._verified: Dict[str, VerifiedEmail] = {}

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    def challenge_for(self, email: str) -> Optional[VerificationChallenge]:
        return self._challenges.get(self._key(email))

    def verified(self, email: str) -> Optional[VerifiedEmail]:
        return self._verified.get(self._key(email))

    def is_verified(self, email: str) -> bool:
        return self._key(email) in self._verified

    def seconds_remaining(self, email: str) -> int:
        """Seconds left before the active code expires; 0 if there is none."""
        challenge = self.challenge_for(email)
        if challenge is None:
            return 0
        return challenge.seconds_remaining(self._clock())

    def resend_in(self, email: str) -> int:
        """Seconds until a new code may be requested; 0 if allowed now."""
        challenge = self.challenge_for(email)
        if challenge is None:
            return 0
        return challenge.resend_in(self._clock())

    async def issue(self, email: str) -> VerificationChallenge:
        """
        Ask the remote to email a code and start the expiry and resend timers.

        Args:
            email: Address to verify

        Returns:
            The new challenge

        Raises:
            ValidationError: Email is not syntactically valid
            RateLimitError: A code was issued less than the cooldown ago
        """
        email = validate_email(email)
        self._check_cooldown(email)
        return await self._issue(email)

    async def resend(self, email: str) -> VerificationChallenge:
        """
        Issue a fresh code, replacing the active one.

        Allowed once the resend cooldown has passed, even after expiry.
        A rejected resend leaves both timers untouched.
        """
        email = validate_email(email)
        self._check_cooldown(email)
        return await self._issue(email)

    def _check_cooldown(self, email: str) -> None:
        challenge = self.challenge_for(email)
        if challenge is None:
            return
        now = self._clock()
        if not challenge.can_resend(now):
            wait = challenge.resend_in(now)
            logger.info("Verification resend throttled", retry_after=wait)
            raise RateLimitError(
                f"Please wait {wait} seconds before requesting a new code",
                retry_after=wait,
            )

    async def _issue(self, email: str) -> VerificationChallenge:
        issued = await self.api.issue_code(email)
        now = self._clock()
        challenge = VerificationChallenge(
            email=email,
            issued_at=now,
            expires_at=now + timedelta(seconds=self.config.expiry_seconds),
            resend_available_at=now + timedelta(seconds=self.config.resend_cooldown_seconds),
            dev_code=issued.otp,
        )
        key = self._key(email)
        self._challenges[key] = challenge
        self._verified.pop(key, None)
        logger.info(
            "Verification code issued",
            expires_in=self.config.expiry_seconds,
            dev_mode=issued.dev_mode,
        )
        return challenge

    async def verify(self, email: str, code: str) -> VerifiedEmail:
        """
        Check a code against the active challenge.

        Returns:
            VerifiedEmail marker for the registration step

        Raises:
            ValidationError: Code is not ``code_length`` digits
            ExpiredError: No active challenge, or its window has closed
            InvalidCodeError: Remote rejected the code
        """
        email = validate_email(email)
        code = (code or "").strip()
        if not is_valid_code(code, self.config.code_length):
            raise ValidationError(f"Please enter the complete {self.config.code_length}-digit code")

        key = self._key(email)
        challenge = self._challenges.get(key)
        if challenge is None:
            raise ExpiredError("No active verification code. Please request a new one.")
        if challenge.is_expired(self._clock()):
            logger.info("Verification attempted after expiry")
            raise ExpiredError("Verification code has expired. Please request a new one.")

        result = await self.api.verify_code(email, code)
        if not result.verified:
            raise InvalidCodeError(result.message or "Invalid verification code")

        now = self._clock()
        challenge.verified_at = now
        marker = VerifiedEmail(email=email, verified_at=now)
        # A verified challenge is spent
        if self._challenges.get(key) is challenge:
            del self._challenges[key]
        self._verified[key] = marker
        logger.info("Email verified")
        return marker

    async def countdown(self, email: str, interval: float = 1.0) -> AsyncIterator[int]:
        """
        Yield the seconds remaining on the active code once per ``interval``.

        Values never increase; iteration ends at 0 or when the challenge
        is replaced by a resend (start a new countdown for the new code).
        """
        challenge = self.challenge_for(email)
        if challenge is None:
            yield 0
            return
        key = self._key(email)
        last = challenge.seconds_remaining(self._clock())
        while True:
            remaining = min(last, challenge.seconds_remaining(self._clock()))
            last = remaining
            yield remaining
            if remaining <= 0 or self._challenges.get(key) is not challenge:
                return
            await asyncio.sleep(interval)
