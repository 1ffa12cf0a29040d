"""
Beneficiaries
=============
Sum-constrained beneficiary list management.
"""

from .manager import BeneficiaryManager, FULL_ALLOCATION
from .models import AllocationStatus

__all__ = [
    "BeneficiaryManager",
    "AllocationStatus",
    "FULL_ALLOCATION",
]
