"""
Session Management
==================
Authenticated session lifecycle with persisted state.
"""

from .models import Session, SessionState, RegistrationResult
from .storage import (
    SessionStorage,
    InMemorySessionStorage,
    FileSessionStorage,
    TOKEN_KEY,
    PROFILE_KEY,
    RECOVERY_KEY,
)
from .store import SessionStore

__all__ = [
    # Models
    "Session",
    "SessionState",
    "RegistrationResult",
    # Storage
    "SessionStorage",
    "InMemorySessionStorage",
    "FileSessionStorage",
    "TOKEN_KEY",
    "PROFILE_KEY",
    "RECOVERY_KEY",
    # Store
    "SessionStore",
]
