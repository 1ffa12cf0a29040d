"""
Wallet Service API
==================
Typed client and payload models for the remote wallet service.
"""

from .models import (
    AuthResponse,
    Balance,
    Beneficiary,
    Block,
    CodeIssued,
    CodeVerified,
    Profile,
    RegisterResponse,
    Transaction,
    TransferReceipt,
    WalletLookup,
    ZakatDeduction,
    ZakatSummary,
    ZakatTracking,
)
from .client import WalletApiClient, UnknownWalletError

__all__ = [
    # Models
    "AuthResponse",
    "Balance",
    "Beneficiary",
    "Block",
    "CodeIssued",
    "CodeVerified",
    "Profile",
    "RegisterResponse",
    "Transaction",
    "TransferReceipt",
    "WalletLookup",
    "ZakatDeduction",
    "ZakatSummary",
    "ZakatTracking",
    # Client
    "WalletApiClient",
    "UnknownWalletError",
]
