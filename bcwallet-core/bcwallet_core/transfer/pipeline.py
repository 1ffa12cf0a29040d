"""
Transfer Pipeline
=================
Validates a transfer form against receiver existence, self-transfer,
amount bounds and balance, then submits it exactly once.
"""

from decimal import Decimal
from typing import Any, Optional

import structlog

from ..api import TransferReceipt, WalletApiClient
from ..config import TransferLimits
from ..exceptions import (
    AuthError,
    CredentialMissingError,
    InsufficientBalanceError,
    SubmissionInProgressError,
    ValidationError,
    WalletError,
)
from ..session import SessionStore
from ..validators import parse_amount
from .models import ReceiverCheck, ReceiverStatus, TransferRequest

logger = structlog.get_logger(__name__)


class TransferPipeline:
    """
    One transfer form bound to the signed-in wallet.

    Receiver lookups carry a generation number; only the lookup for the
    most recent ``set_receiver`` value may change the receiver status.
    At most one submission is in flight; a second ``submit`` is rejected,
    not queued.
    """

    def __init__(
        self,
        api: WalletApiClient,
        session: SessionStore,
        limits: Optional[TransferLimits] = None,
    ):
        self.api = api
        self.session = session
        self.limits = limits or TransferLimits()

        self.current_balance = Decimal("0")
        self.receiver_wallet_id = ""
        self.amount: Optional[Decimal] = None
        self.note = ""
        self._receiver = ReceiverCheck(wallet_id="")
        self._generation = 0
        self._in_flight = False

    @property
    def receiver(self) -> ReceiverCheck:
        return self._receiver

    @property
    def receiver_status(self) -> ReceiverStatus:
        return self._receiver.status

    @property
    def is_receiver_valid(self) -> bool:
        return self._receiver.is_valid and self._receiver.wallet_id == self.receiver_wallet_id

    @property
    def is_submitting(self) -> bool:
        return self._in_flight

    @property
    def remaining_balance(self) -> Decimal:
        """Balance preview after the entered amount; display only."""
        return self.current_balance - (self.amount or Decimal("0"))

    def _sender_wallet_id(self) -> str:
        profile = self.session.profile
        if profile is None:
            raise AuthError("Not signed in")
        return profile.wallet_id

    async def refresh_balance(self) -> Decimal:
        generation = self.session.generation
        async with self.session.guard():
            balance = await self.api.fetch_balance()
        if not self.session.is_current(generation):
            logger.info("Discarding balance fetched for a replaced session")
            return self.current_balance
        self.current_balance = balance.balance
        return self.current_balance

    async def set_receiver(self, wallet_id: str) -> ReceiverCheck:
        """
        Set the receiver and look it up.

        Returns:
            The receiver status in effect once this call finishes, which is
            the result of a newer lookup if one superseded this one
        """
        wallet_id = (wallet_id or "").strip()
        sender = self._sender_wallet_id()

        self._generation += 1
        generation = self._generation
        self.receiver_wallet_id = wallet_id

        if not wallet_id:
            self._receiver = ReceiverCheck(wallet_id="")
            return self._receiver
        if wallet_id == sender:
            self._receiver = ReceiverCheck(
                wallet_id=wallet_id,
                status=ReceiverStatus.INVALID,
                message="Cannot send to your own wallet",
            )
            return self._receiver

        self._receiver = ReceiverCheck(wallet_id=wallet_id, status=ReceiverStatus.CHECKING)
        try:
            lookup = await self.api.validate_wallet(wallet_id)
        except WalletError as e:
            check = ReceiverCheck(
                wallet_id=wallet_id,
                status=ReceiverStatus.INVALID,
                message=e.message,
            )
        else:
            check = ReceiverCheck(
                wallet_id=wallet_id,
                status=ReceiverStatus.VALID if lookup.valid else ReceiverStatus.INVALID,
                display_name=lookup.display_name,
                message=None if lookup.valid else (lookup.message or "Invalid wallet ID"),
            )

        if generation != self._generation:
            logger.debug("Discarding superseded receiver lookup", generation=generation, latest=self._generation)
            return self._receiver

        self._receiver = check
        return check

    def set_amount(self, amount: Any) -> Decimal:
        """
        Set the amount from user input. Bounds are checked at submit time.

        Returns:
            The remaining balance preview
        """
        self.amount = parse_amount(amount)
        return self.remaining_balance

    def set_note(self, note: Optional[str]) -> None:
        self.note = (note or "").strip()

    def reset(self) -> None:
        """Clear the form; any lookup still in flight becomes stale."""
        self._generation += 1
        self.receiver_wallet_id = ""
        self._receiver = ReceiverCheck(wallet_id="")
        self.amount = None
        self.note = ""

    def build_request(self) -> TransferRequest:
        """
        Run the submit-time checks in order; the first failure wins.

        1. Receiver lookup succeeded for the current receiver
        2. min_amount <= amount <= max_amount
        3. amount <= current balance
        """
        sender = self._sender_wallet_id()

        if not self.is_receiver_valid:
            raise ValidationError("Please enter a valid wallet ID")

        amount = self.amount
        if amount is None:
            raise ValidationError("Please enter an amount")
        if amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        if amount < self.limits.min_amount:
            raise ValidationError(f"Minimum transaction amount is {self.limits.min_amount} BC")
        if amount > self.limits.max_amount:
            raise ValidationError(f"Maximum transaction amount is {self.limits.max_amount:,} BC")

        if amount > self.current_balance:
            raise InsufficientBalanceError("Insufficient balance")

        return TransferRequest(
            sender_wallet_id=sender,
            receiver_wallet_id=self.receiver_wallet_id,
            amount=amount,
            note=self.note,
        )

    async def submit(self) -> TransferReceipt:
        """
        Submit the transfer once.

        On success the form is cleared and the balance re-fetched. On
        failure the form keeps its values so the user can retry.

        Raises:
            SubmissionInProgressError: Another submit has not finished
            ValidationError: Receiver or amount rejected locally
            InsufficientBalanceError: Amount exceeds the current balance
            CredentialMissingError: No recovery key stored for this session
            RemoteError: Transport failure or rejection by the service
        """
        if self._in_flight:
            raise SubmissionInProgressError("A transfer is already being submitted")

        request = self.build_request()
        credential = self.session.recovery_key
        if not credential:
            raise CredentialMissingError("Recovery key not found. Please add it before sending")

        self._in_flight = True
        try:
            async with self.session.guard():
                receipt = await self.api.submit_transfer(
                    request.receiver_wallet_id,
                    request.amount,
                    request.note,
                    credential,
                )
            logger.info(
                "Transfer submitted",
                receiver_wallet_id=request.receiver_wallet_id,
                amount=str(request.amount),
                tx_hash=receipt.transaction.hash,
            )
            self.reset()
            try:
                await self.refresh_balance()
            except WalletError as e:
                # The transfer itself went through; the balance is shown stale
                logger.warning("Balance refresh after transfer failed", error=e.message)
            return receipt
        finally:
            self._in_flight = False
