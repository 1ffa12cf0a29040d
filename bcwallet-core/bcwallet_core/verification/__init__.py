"""
Email Verification
==================
Time-boxed one-time-code handshake with resend throttling.
"""

from .models import VerificationChallenge, VerifiedEmail
from .handshake import VerificationHandshake, Clock, utc_now

__all__ = [
    # Models
    "VerificationChallenge",
    "VerifiedEmail",
    # Handshake
    "VerificationHandshake",
    "Clock",
    "utc_now",
]
