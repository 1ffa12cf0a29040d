"""
Wallet Exceptions
=================
Error taxonomy shared by the session, verification, transfer and
beneficiary flows.

Locally detected problems raise ``ValidationError`` and never reach the
network. Everything the remote reports is mapped onto the other classes by
the HTTP layer.
"""

from typing import Any, Optional


class WalletError(Exception):
    """Base exception for all wallet client errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(WalletError):
    """Bad input detected locally."""
    pass


class SubmissionInProgressError(ValidationError):
    """A transfer is already awaiting confirmation."""
    pass


class CredentialMissingError(ValidationError):
    """No recovery key is stored for signing transfers."""
    pass


class AuthError(WalletError):
    """Credentials rejected or session no longer valid (401/403)."""
    pass


class RegistrationError(WalletError):
    """Account creation rejected by the remote."""
    pass


class RateLimitError(WalletError):
    """Request attempted before it is allowed again."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message, status_code=status_code, details=details)
        self.retry_after = retry_after


class InvalidCodeError(WalletError):
    """Verification code did not match."""
    pass


class ExpiredError(WalletError):
    """Verification challenge expired or no longer known to the remote."""
    pass


class InsufficientBalanceError(WalletError):
    """Transfer amount exceeds the current balance."""
    pass


class RemoteError(WalletError):
    """Network failure or unexpected service response."""
    pass
