"""
Shared fixtures for bcwallet-core tests.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pytest

from bcwallet_core.api import (
    AuthResponse,
    Balance,
    CodeIssued,
    CodeVerified,
    Profile,
    RegisterResponse,
    Transaction,
    TransferReceipt,
    WalletLookup,
)
from bcwallet_core.exceptions import InvalidCodeError, WalletError
from bcwallet_core.session import (
    InMemorySessionStorage,
    PROFILE_KEY,
    RECOVERY_KEY,
    SessionStore,
    TOKEN_KEY,
)


def make_profile(**overrides: Any) -> Profile:
    fields = {
        "wallet_id": "W1",
        "full_name": "Alice Khan",
        "email": "a@b.com",
        "cnic": "12345-1234567-1",
    }
    fields.update(overrides)
    return Profile(**fields)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeWalletApi:
    """
    In-memory stand-in for WalletApiClient.

    Records every call. ``fail_next`` queues an exception for the next call
    of an operation. ``lookup_gates`` and the ``*_gate`` attributes hold a
    call open until the test sets the event.
    """

    def __init__(self):
        self.calls: List[Tuple[str, tuple]] = []
        self.token: Optional[str] = None
        self.profile = make_profile()
        self.balance = Decimal("100")
        self.wallets: Dict[str, str] = {"W2": "Bob Ali", "W3": "Sara Ahmed"}
        self.code = "123456"
        self.private_key = "pk-secret"
        self.lookup_gates: Dict[str, asyncio.Event] = {}
        self.transfer_gate: Optional[asyncio.Event] = None
        self.profile_gate: Optional[asyncio.Event] = None
        self.beneficiaries_gate: Optional[asyncio.Event] = None
        self.balance_gate: Optional[asyncio.Event] = None
        self._failures: Dict[str, WalletError] = {}

    def fail_next(self, operation: str, error: WalletError) -> None:
        self._failures[operation] = error

    def calls_to(self, operation: str) -> List[tuple]:
        return [args for name, args in self.calls if name == operation]

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))

    def _maybe_fail(self, operation: str) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def clear_token(self) -> None:
        self.token = None

    async def authenticate(self, email: str, password: str) -> AuthResponse:
        self._record("authenticate", email)
        self._maybe_fail("authenticate")
        return AuthResponse(token="tok-1", user=self.profile, message="Login successful")

    async def create_account(self, email, password, full_name, cnic) -> RegisterResponse:
        self._record("create_account", email, full_name, cnic)
        self._maybe_fail("create_account")
        self.profile = make_profile(email=email, full_name=full_name, cnic=cnic)
        return RegisterResponse(token="tok-new", user=self.profile, private_key=self.private_key)

    async def fetch_profile(self) -> Profile:
        self._record("fetch_profile")
        profile = self.profile
        if self.profile_gate is not None:
            await self.profile_gate.wait()
        self._maybe_fail("fetch_profile")
        return profile

    async def update_profile(self, fields: Dict[str, str]) -> None:
        self._record("update_profile", dict(fields))
        self._maybe_fail("update_profile")
        update = {}
        if "fullName" in fields:
            update["full_name"] = fields["fullName"]
        if "cnic" in fields:
            update["cnic"] = fields["cnic"]
        self.profile = self.profile.model_copy(update=update)

    async def set_beneficiaries(self, beneficiaries) -> None:
        self._record("set_beneficiaries", list(beneficiaries))
        if self.beneficiaries_gate is not None:
            await self.beneficiaries_gate.wait()
        self._maybe_fail("set_beneficiaries")
        self.profile = self.profile.model_copy(update={"beneficiaries": list(beneficiaries)})

    async def issue_code(self, email: str) -> CodeIssued:
        self._record("issue_code", email)
        self._maybe_fail("issue_code")
        return CodeIssued(message="OTP sent", otp=self.code, dev_mode=True)

    async def verify_code(self, email: str, code: str) -> CodeVerified:
        self._record("verify_code", email, code)
        self._maybe_fail("verify_code")
        if code != self.code:
            raise InvalidCodeError("Invalid OTP", status_code=401)
        return CodeVerified(message="Email verified successfully", verified=True)

    async def fetch_balance(self) -> Balance:
        self._record("fetch_balance")
        balance = Balance(balance=self.balance, wallet_id=self.profile.wallet_id)
        if self.balance_gate is not None:
            await self.balance_gate.wait()
        self._maybe_fail("fetch_balance")
        return balance

    async def validate_wallet(self, wallet_id: str) -> WalletLookup:
        self._record("validate_wallet", wallet_id)
        gate = self.lookup_gates.get(wallet_id)
        if gate is not None:
            await gate.wait()
        self._maybe_fail("validate_wallet")
        if wallet_id in self.wallets:
            return WalletLookup(valid=True, wallet_id=wallet_id, display_name=self.wallets[wallet_id])
        return WalletLookup(valid=False, wallet_id=wallet_id, message="Wallet not found")

    async def submit_transfer(self, receiver_wallet_id, amount, note, credential) -> TransferReceipt:
        self._record("submit_transfer", receiver_wallet_id, amount, note, credential)
        if self.transfer_gate is not None:
            await self.transfer_gate.wait()
        self._maybe_fail("submit_transfer")
        self.balance -= amount
        return TransferReceipt(
            message="Transaction successful",
            transaction=Transaction(
                hash="tx-1",
                sender_wallet_id=self.profile.wallet_id,
                receiver_wallet_id=receiver_wallet_id,
                amount=amount,
                note=note,
                status="confirmed",
            ),
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    return FakeWalletApi()


@pytest.fixture
def storage():
    return InMemorySessionStorage()


@pytest.fixture
def store(api, storage):
    return SessionStore(api, storage)


@pytest.fixture
def signed_in(api, storage, store):
    """A store restored from persisted state for wallet W1, with a recovery key."""
    storage.set(TOKEN_KEY, "tok-1")
    storage.set(PROFILE_KEY, api.profile.model_dump_json(by_alias=True))
    storage.set(RECOVERY_KEY, api.private_key)
    store.load()
    return store
