"""
Verification Models
===================
Data models for the email verification handshake.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def _seconds_until(moment: datetime, now: datetime) -> int:
    return max(0, math.ceil((moment - now).total_seconds()))


@dataclass
class VerificationChallenge:
    """A one-time code issued to an email address."""
    email: str
    issued_at: datetime
    expires_at: datetime
    resend_available_at: datetime
    # Only set when the remote runs without SMTP and echoes the code
    dev_code: Optional[str] = None
    verified_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def can_resend(self, now: datetime) -> bool:
        return now >= self.resend_available_at

    def seconds_remaining(self, now: datetime) -> int:
        return _seconds_until(self.expires_at, now)

    def resend_in(self, now: datetime) -> int:
        return _seconds_until(self.resend_available_at, now)

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None


@dataclass(frozen=True)
class VerifiedEmail:
    """Proof that control of ``email`` was shown; required before registration."""
    email: str
    verified_at: datetime
