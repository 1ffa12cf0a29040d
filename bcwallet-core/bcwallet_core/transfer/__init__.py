"""
Funds Transfer
==============
Transfer form validation and single-flight submission.
"""

from .models import ReceiverStatus, ReceiverCheck, TransferRequest
from .pipeline import TransferPipeline

__all__ = [
    # Models
    "ReceiverStatus",
    "ReceiverCheck",
    "TransferRequest",
    # Pipeline
    "TransferPipeline",
]
