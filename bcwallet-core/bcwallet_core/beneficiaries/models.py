"""
Beneficiary Models
==================
"""

from enum import Enum


class AllocationStatus(str, Enum):
    """How the allocated percentages compare to 100."""
    UNDER = "under"
    EXACT = "exact"
    OVER = "over"
