"""
Beneficiary Manager
===================
Keeps the account's beneficiary list in step with the wallet service.

Every change is computed as a candidate list, sent to the service in full,
and applied locally only after the service accepts it. A rejected change
leaves the local list exactly as it was.

Usage:
    manager = BeneficiaryManager(api, store)
    await manager.add("Ayesha", "Daughter", "40")
    manager.remaining  # Decimal("60")
"""

import asyncio
from decimal import Decimal
from typing import Any, List

import structlog

from ..api import Beneficiary, WalletApiClient
from ..exceptions import AuthError, ValidationError
from ..session import SessionStore
from ..validators import parse_amount
from .models import AllocationStatus

logger = structlog.get_logger(__name__)

FULL_ALLOCATION = Decimal("100")


class BeneficiaryManager:
    """Percentage allocation across beneficiaries, capped at 100 on add."""

    def __init__(self, api: WalletApiClient, session: SessionStore):
        self.api = api
        self.session = session
        self._beneficiaries: List[Beneficiary] = []
        self._lock = asyncio.Lock()
        self.load()

    def load(self) -> List[Beneficiary]:
        """Re-read the list from the session's profile snapshot."""
        profile = self.session.profile
        self._beneficiaries = list(profile.beneficiaries) if profile else []
        return self.beneficiaries

    @property
    def beneficiaries(self) -> List[Beneficiary]:
        return list(self._beneficiaries)

    @property
    def total_allocated(self) -> Decimal:
        return sum((b.percentage for b in self._beneficiaries), Decimal("0"))

    @property
    def remaining(self) -> Decimal:
        """Percentage still unallocated; negative when over-allocated."""
        return FULL_ALLOCATION - self.total_allocated

    @property
    def status(self) -> AllocationStatus:
        # A list loaded from the service can exceed 100; it is reported, not fixed
        total = self.total_allocated
        if total == FULL_ALLOCATION:
            return AllocationStatus.EXACT
        if total > FULL_ALLOCATION:
            return AllocationStatus.OVER
        return AllocationStatus.UNDER

    @property
    def is_saving(self) -> bool:
        return self._lock.locked()

    async def add(self, name: str, relationship: str, percentage: Any) -> List[Beneficiary]:
        """
        Append a beneficiary.

        Edits are applied one at a time; an add issued while another edit
        is saving waits for it and is checked against its result.

        Args:
            name: Beneficiary name
            relationship: Relationship to the account holder
            percentage: Share in (0, 100]; strings and numbers are accepted

        Returns:
            The updated list

        Raises:
            ValidationError: Missing field, bad percentage, or total over 100
            RemoteError: The service rejected the list; nothing changed locally
        """
        name = (name or "").strip()
        relationship = (relationship or "").strip()
        share = parse_amount(percentage)
        if not name or not relationship or share is None:
            raise ValidationError("Please fill all beneficiary fields")
        if share <= 0 or share > FULL_ALLOCATION:
            raise ValidationError("Percentage must be greater than 0 and at most 100")

        async with self._lock:
            if self.total_allocated + share > FULL_ALLOCATION:
                raise ValidationError("Total beneficiary percentage cannot exceed 100%")

            candidate = self._beneficiaries + [
                Beneficiary(name=name, relationship=relationship, percentage=share)
            ]
            await self._commit(candidate)
        logger.info("Beneficiary added", count=len(candidate), total=str(self.total_allocated))
        return self.beneficiaries

    async def remove(self, index: int) -> List[Beneficiary]:
        """Remove the beneficiary at ``index``, with the same commit rules as ``add``."""
        async with self._lock:
            if not 0 <= index < len(self._beneficiaries):
                raise ValidationError("No beneficiary at that position")

            candidate = self._beneficiaries[:index] + self._beneficiaries[index + 1:]
            await self._commit(candidate)
        logger.info("Beneficiary removed", count=len(candidate), total=str(self.total_allocated))
        return self.beneficiaries

    async def _commit(self, candidate: List[Beneficiary]) -> None:
        generation = self.session.generation
        async with self.session.guard():
            await self.api.set_beneficiaries(candidate)
        if not self.session.is_current(generation):
            # Confirmed for the account that was signed in when the edit started
            self.load()
            raise AuthError("Signed-in account changed before the update was confirmed")
        self._beneficiaries = candidate
        self.session.replace_beneficiaries(candidate)
