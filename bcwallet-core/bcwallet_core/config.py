"""
Wallet Client Configuration
===========================
Connection and policy settings for the wallet client.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path


def _default_state_path() -> Path:
    return Path(
        os.environ.get(
            "BCWALLET_STATE_PATH",
            str(Path.home() / ".bcwallet" / "session.json"),
        )
    )


@dataclass
class WalletConfig:
    """Configuration for the remote wallet API connection."""
    base_url: str = field(
        default_factory=lambda: os.environ.get("BCWALLET_API_URL", "http://localhost:8080/api")
    )
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("BCWALLET_TIMEOUT", "10.0"))
    )
    # Attempts for idempotent GETs on transport failure; mutations are sent once
    read_attempts: int = field(
        default_factory=lambda: int(os.environ.get("BCWALLET_READ_ATTEMPTS", "2"))
    )
    state_path: Path = field(default_factory=_default_state_path)
    log_level: str = field(
        default_factory=lambda: os.environ.get("BCWALLET_LOG_LEVEL", "INFO")
    )


@dataclass
class VerificationConfig:
    """Timing rules for one-time email codes."""
    code_length: int = 6
    expiry_seconds: int = 300  # 5 minutes
    resend_cooldown_seconds: int = 60


@dataclass
class TransferLimits:
    """Bounds applied to a transfer amount at submit time."""
    min_amount: Decimal = Decimal("0.01")
    max_amount: Decimal = Decimal("1000000")
