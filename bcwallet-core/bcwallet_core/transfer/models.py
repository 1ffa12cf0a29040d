"""
Transfer Models
===============
Form state and request models for outgoing transfers.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class ReceiverStatus(str, Enum):
    """Outcome of the receiver existence lookup."""
    UNKNOWN = "unknown"
    CHECKING = "checking"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class ReceiverCheck:
    """Lookup result for one receiver wallet id."""
    wallet_id: str
    status: ReceiverStatus = ReceiverStatus.UNKNOWN
    display_name: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status == ReceiverStatus.VALID


@dataclass(frozen=True)
class TransferRequest:
    """A transfer that passed every local check."""
    sender_wallet_id: str
    receiver_wallet_id: str
    amount: Decimal
    note: str = ""
