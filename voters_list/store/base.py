"""Data-store collaborator contract shared by the SQL and PostgREST backends."""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

# Postgres SQLSTATE codes surfaced by both backends
UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"
NETWORK_ERROR = "network"


class StoreError(RuntimeError):
    """Raised when the store rejects a request. `message` is safe to show to the user."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION

    @property
    def is_network_error(self) -> bool:
        return self.code == NETWORK_ERROR


class VoterRecord(BaseModel):
    """A voters row as handed to the controller and the API."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    voter_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    monitor_id: str


class MonitorContact(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    email: Optional[str] = None
    name: Optional[str] = None


@runtime_checkable
class VoterStore(Protocol):
    """
    Table-oriented store, bound to one acting user.

    Implementations must enforce ownership themselves; the monitor_id
    arguments are filters the caller always sends, not the security boundary.
    """

    def list_voters(self, monitor_id: str) -> List[VoterRecord]: ...

    def insert_voter(self, *, voter_id: str, name: str, phone: str, monitor_id: str) -> VoterRecord: ...

    def find_voter_owner(self, voter_id: str) -> Optional[str]: ...

    def get_monitor_contact(self, monitor_id: str) -> Optional[MonitorContact]: ...

    def update_voter(self, record_id: str, monitor_id: str, *, name: str, phone: str) -> int: ...

    def delete_voter(self, record_id: str, monitor_id: str) -> int: ...


__all__ = [
    "UNIQUE_VIOLATION",
    "INSUFFICIENT_PRIVILEGE",
    "NETWORK_ERROR",
    "StoreError",
    "VoterRecord",
    "MonitorContact",
    "VoterStore",
]
