from .base import (
    INSUFFICIENT_PRIVILEGE,
    NETWORK_ERROR,
    UNIQUE_VIOLATION,
    MonitorContact,
    StoreError,
    VoterRecord,
    VoterStore,
)

__all__ = [
    "INSUFFICIENT_PRIVILEGE",
    "NETWORK_ERROR",
    "UNIQUE_VIOLATION",
    "MonitorContact",
    "StoreError",
    "VoterRecord",
    "VoterStore",
]
