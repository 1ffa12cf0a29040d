"""
Session Models
==============
Data models for the authenticated session.
"""

from dataclasses import dataclass
from enum import Enum

from ..api.models import Profile


class SessionState(str, Enum):
    """Session lifecycle states."""
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Session:
    """Bearer token and the profile snapshot it was issued for."""
    identity: str
    profile: Profile

    @property
    def wallet_id(self) -> str:
        return self.profile.wallet_id


@dataclass(frozen=True)
class RegistrationResult:
    """A new session plus the recovery key, shown to the user exactly once."""
    session: Session
    recovery_key: str
