from .client import BaseApiClient, ErrorMap

__all__ = [
    "BaseApiClient",
    "ErrorMap",
]
