"""
Wallet API Models
=================
Pydantic models for payloads exchanged with the wallet service.

The service speaks camelCase JSON; fields are snake_case here and
aliased on the wire. Monetary values are parsed as Decimal and sent back
as JSON numbers.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model mapping snake_case attributes to camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Beneficiary(WireModel):
    """A named party holding a percentage share of the account."""
    name: str
    relationship: str
    percentage: Decimal

    @field_serializer("percentage")
    def _percentage_as_number(self, value: Decimal) -> float:
        return float(value)


class ZakatTracking(WireModel):
    last_deduction: Optional[datetime] = None
    total_deducted: Decimal = Decimal("0")
    monthly_deducted: Decimal = Decimal("0")


class Profile(WireModel):
    """Snapshot of the signed-in user's account."""
    wallet_id: str
    full_name: str
    email: str
    cnic: str = ""
    id: Optional[str] = None
    public_key: Optional[str] = None
    beneficiaries: List[Beneficiary] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    zakat_tracking: Optional[ZakatTracking] = None

    @field_validator("beneficiaries", mode="before")
    @classmethod
    def _null_beneficiaries(cls, value):
        # Accounts created before beneficiaries existed store null
        return value or []


class AuthResponse(WireModel):
    token: str
    user: Profile
    message: str = ""


class RegisterResponse(AuthResponse):
    private_key: str


class ProfileResponse(WireModel):
    user: Profile


class CodeIssued(WireModel):
    """Result of asking the service to email a verification code."""
    message: str = ""
    # Only present when the service runs without SMTP
    otp: Optional[str] = None
    dev_mode: bool = False


class CodeVerified(WireModel):
    message: str = ""
    verified: bool = False


class Balance(WireModel):
    balance: Decimal = Decimal("0")
    wallet_id: Optional[str] = None


class WalletLookup(WireModel):
    """Existence check for a candidate receiver."""
    valid: bool
    wallet_id: Optional[str] = None
    display_name: Optional[str] = None
    message: Optional[str] = None


class Transaction(WireModel):
    hash: str
    sender_wallet_id: str = ""
    receiver_wallet_id: str = ""
    amount: Decimal = Decimal("0")
    note: Optional[str] = None
    timestamp: Optional[datetime] = None
    type: str = "transfer"
    status: str = "pending"
    block_hash: Optional[str] = None


class Block(WireModel):
    index: int
    hash: str
    previous_hash: str = ""
    timestamp: Optional[datetime] = None
    nonce: int = 0
    merkle_root: str = ""
    difficulty: int = 0
    transactions: List[Transaction] = []


class TransferReceipt(WireModel):
    """Confirmation returned after a transfer has been accepted."""
    message: str = ""
    transaction: Transaction
    block: Optional[Block] = None


class TransactionDetail(WireModel):
    transaction: Transaction


class TransactionHistory(WireModel):
    transactions: List[Transaction] = []
    count: int = 0

    @field_validator("transactions", mode="before")
    @classmethod
    def _null_transactions(cls, value):
        return value or []


class ZakatDeduction(WireModel):
    wallet_id: str = ""
    amount: Decimal = Decimal("0")
    balance_before: Decimal = Decimal("0")
    balance_after: Decimal = Decimal("0")
    transaction_hash: str = ""
    block_hash: Optional[str] = None
    month: str = ""
    deducted_at: Optional[datetime] = None
    status: str = "completed"


class ZakatHistory(WireModel):
    history: List[ZakatDeduction] = []
    count: int = 0

    @field_validator("history", mode="before")
    @classmethod
    def _null_history(cls, value):
        return value or []


class ZakatSummary(WireModel):
    total_deducted: Decimal = Decimal("0")
    monthly_deductions: Dict[str, Decimal] = {}
    deduction_count: int = 0
    last_deduction: Optional[ZakatDeduction] = None
