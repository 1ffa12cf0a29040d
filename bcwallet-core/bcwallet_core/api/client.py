"""
Wallet API Client
=================
Logical operations of the remote wallet service.

Usage:
    from bcwallet_core.api import WalletApiClient

    async with WalletApiClient() as api:
        auth = await api.authenticate("a@b.com", "secret1")
        api.set_token(auth.token)
        balance = await api.fetch_balance()
"""

from decimal import Decimal
from typing import Dict, List, Optional

import httpx

from ..config import WalletConfig
from ..exceptions import (
    AuthError,
    ExpiredError,
    InvalidCodeError,
    RegistrationError,
    RemoteError,
)
from ..http import BaseApiClient
from .models import (
    AuthResponse,
    Balance,
    Beneficiary,
    CodeIssued,
    CodeVerified,
    Profile,
    ProfileResponse,
    RegisterResponse,
    Transaction,
    TransactionDetail,
    TransactionHistory,
    TransferReceipt,
    WalletLookup,
    ZakatDeduction,
    ZakatHistory,
    ZakatSummary,
)


class UnknownWalletError(RemoteError):
    """404 from the wallet lookup endpoint."""
    pass


# Every rejection of a registration is reported as such, not as a session failure
REGISTER_ERRORS = {status: RegistrationError for status in (400, 401, 403, 404, 409, 422)}
LOGIN_ERRORS = {404: AuthError}
VERIFY_ERRORS = {401: InvalidCodeError, 404: ExpiredError, 410: ExpiredError}
LOOKUP_ERRORS = {404: UnknownWalletError}


class WalletApiClient(BaseApiClient):
    """Client for the wallet service REST API."""

    def __init__(
        self,
        config: Optional[WalletConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_backoff: float = 0.5,
    ):
        self.config = config or WalletConfig()
        super().__init__(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            read_attempts=self.config.read_attempts,
            retry_backoff=retry_backoff,
            transport=transport,
        )

    # Account operations

    async def authenticate(self, email: str, password: str) -> AuthResponse:
        return await self.post(
            "/login",
            AuthResponse,
            json={"email": email, "password": password},
            authenticated=False,
            error_map=LOGIN_ERRORS,
        )

    async def create_account(
        self,
        email: str,
        password: str,
        full_name: str,
        cnic: str,
    ) -> RegisterResponse:
        return await self.post(
            "/register",
            RegisterResponse,
            json={
                "email": email,
                "password": password,
                "fullName": full_name,
                "cnic": cnic,
            },
            authenticated=False,
            error_map=REGISTER_ERRORS,
        )

    async def fetch_profile(self) -> Profile:
        response = await self.get("/profile", ProfileResponse)
        return response.user

    async def update_profile(self, fields: Dict[str, str]) -> None:
        """Partial profile edit; only ``fullName`` and ``cnic`` are accepted."""
        await self.put("/profile", json=fields)

    async def set_beneficiaries(self, beneficiaries: List[Beneficiary]) -> None:
        """Replace the whole beneficiary list."""
        await self.put(
            "/profile/beneficiaries",
            json={"beneficiaries": [b.model_dump(by_alias=True) for b in beneficiaries]},
        )

    # Verification

    async def issue_code(self, email: str) -> CodeIssued:
        return await self.post(
            "/otp/generate",
            CodeIssued,
            json={"email": email},
            authenticated=False,
        )

    async def verify_code(self, email: str, code: str) -> CodeVerified:
        return await self.post(
            "/otp/verify",
            CodeVerified,
            json={"email": email, "otp": code},
            authenticated=False,
            error_map=VERIFY_ERRORS,
        )

    # Wallet and transfers

    async def fetch_balance(self) -> Balance:
        return await self.get("/balance", Balance)

    async def validate_wallet(self, wallet_id: str) -> WalletLookup:
        """
        Check whether a wallet id belongs to an existing wallet.

        The service answers 404 with ``valid: false`` for unknown ids, which
        is a normal answer here rather than an error.
        """
        try:
            return await self.get(
                f"/wallet/validate/{wallet_id}",
                WalletLookup,
                authenticated=False,
                error_map=LOOKUP_ERRORS,
            )
        except UnknownWalletError as exc:
            return WalletLookup(valid=False, wallet_id=wallet_id, message=exc.message)

    async def submit_transfer(
        self,
        receiver_wallet_id: str,
        amount: Decimal,
        note: str,
        credential: str,
    ) -> TransferReceipt:
        return await self.post(
            "/transaction",
            TransferReceipt,
            json={
                "receiverWalletId": receiver_wallet_id,
                "amount": float(amount),
                "note": note or "",
                "privateKey": credential,
            },
        )

    async def fetch_transactions(self) -> List[Transaction]:
        history = await self.get("/transactions", TransactionHistory)
        return history.transactions

    async def fetch_transaction(self, tx_hash: str) -> Transaction:
        detail = await self.get(f"/transaction/{tx_hash}", TransactionDetail, authenticated=False)
        return detail.transaction

    # Zakat reports

    async def fetch_zakat_summary(self) -> ZakatSummary:
        return await self.get("/zakat/summary", ZakatSummary)

    async def fetch_zakat_history(self) -> List[ZakatDeduction]:
        history = await self.get("/zakat/history", ZakatHistory)
        return history.history
