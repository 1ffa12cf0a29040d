"""
BC Wallet Core Library
======================
Client-side core of the BC custodial wallet: session, email verification,
transfers and beneficiaries over the wallet service API.
"""

__version__ = "0.1.0"

# Configuration
from bcwallet_core.config import WalletConfig, VerificationConfig, TransferLimits

# Errors
from bcwallet_core.exceptions import (
    WalletError,
    ValidationError,
    SubmissionInProgressError,
    CredentialMissingError,
    AuthError,
    RegistrationError,
    RateLimitError,
    InvalidCodeError,
    ExpiredError,
    InsufficientBalanceError,
    RemoteError,
)

# Logging
from bcwallet_core.logging import setup_logging, bind_wallet, unbind_wallet

# Remote API
from bcwallet_core.api import (
    WalletApiClient,
    Profile,
    Beneficiary,
    Balance,
    Transaction,
    TransferReceipt,
    WalletLookup,
    ZakatSummary,
    ZakatDeduction,
)

# Session
from bcwallet_core.session import (
    SessionStore,
    Session,
    SessionState,
    RegistrationResult,
    SessionStorage,
    InMemorySessionStorage,
    FileSessionStorage,
)

# Verification
from bcwallet_core.verification import (
    VerificationHandshake,
    VerificationChallenge,
    VerifiedEmail,
)

# Transfers
from bcwallet_core.transfer import (
    TransferPipeline,
    ReceiverStatus,
    ReceiverCheck,
    TransferRequest,
)

# Beneficiaries
from bcwallet_core.beneficiaries import BeneficiaryManager, AllocationStatus

__all__ = [
    # Configuration
    "WalletConfig",
    "VerificationConfig",
    "TransferLimits",
    # Errors
    "WalletError",
    "ValidationError",
    "SubmissionInProgressError",
    "CredentialMissingError",
    "AuthError",
    "RegistrationError",
    "RateLimitError",
    "InvalidCodeError",
    "ExpiredError",
    "InsufficientBalanceError",
    "RemoteError",
    # Logging
    "setup_logging",
    "bind_wallet",
    "unbind_wallet",
    # Remote API
    "WalletApiClient",
    "Profile",
    "Beneficiary",
    "Balance",
    "Transaction",
    "TransferReceipt",
    "WalletLookup",
    "ZakatSummary",
    "ZakatDeduction",
    # Session
    "SessionStore",
    "Session",
    "SessionState",
    "RegistrationResult",
    "SessionStorage",
    "InMemorySessionStorage",
    "FileSessionStorage",
    # Verification
    "VerificationHandshake",
    "VerificationChallenge",
    "VerifiedEmail",
    # Transfers
    "TransferPipeline",
    "ReceiverStatus",
    "ReceiverCheck",
    "TransferRequest",
    # Beneficiaries
    "BeneficiaryManager",
    "AllocationStatus",
]
