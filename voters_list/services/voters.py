"""
Voter operations against the data store.

Each function raises on failure (StoreError / DuplicateVoterError). The
roster controller turns those into banner messages; the JSON API turns them
into HTTP errors.
"""

from __future__ import annotations

import logging
from typing import List

from ..auth.base import SessionUser
from ..store.base import StoreError, VoterRecord, VoterStore

logger = logging.getLogger(__name__)

DUPLICATE_GENERIC = "A voter with this voter ID already exists."
DUPLICATE_OTHER_MONITOR = "This voter is already assigned to another monitor."
DUPLICATE_ASSIGNED_TO = "This voter is already assigned to monitor: {monitor}"


class DuplicateVoterError(StoreError):
    """The voter_id already exists; `message` says who owns it when that can be found out."""


def list_voters(store: VoterStore, user: SessionUser) -> List[VoterRecord]:
    return store.list_voters(user.id)


def describe_duplicate(store: VoterStore, voter_id: str) -> str:
    """
    Explain a duplicate voter_id.

    This is the one lookup that reads outside the caller's own rows. Any
    failure here falls back to the generic message; it never raises.
    """
    try:
        owner_id = store.find_voter_owner(voter_id)
        if not owner_id:
            return DUPLICATE_GENERIC

        try:
            contact = store.get_monitor_contact(owner_id)
        except StoreError as e:
            # monitors table missing or hidden by policy
            logger.info("duplicate voter_id=%s: monitor %s not readable: %s", voter_id, owner_id, e.message)
            return DUPLICATE_OTHER_MONITOR
        if contact is None:
            return DUPLICATE_OTHER_MONITOR

        return DUPLICATE_ASSIGNED_TO.format(monitor=contact.email or contact.name or owner_id)
    except Exception as e:
        logger.warning("duplicate voter_id=%s: owner lookup failed: %s", voter_id, e)
        return DUPLICATE_GENERIC


def add_voter(store: VoterStore, user: SessionUser, *, voter_id: str, name: str, phone: str) -> VoterRecord:
    try:
        return store.insert_voter(voter_id=voter_id, name=name, phone=phone, monitor_id=user.id)
    except StoreError as e:
        if not e.is_unique_violation:
            raise
        raise DuplicateVoterError(describe_duplicate(store, voter_id), code=e.code) from e


def update_voter(store: VoterStore, user: SessionUser, record_id: str, *, name: str, phone: str) -> int:
    """Returns the number of rows changed; 0 means the record is not (or no longer) ours."""
    return store.update_voter(record_id, user.id, name=name, phone=phone)


def delete_voter(store: VoterStore, user: SessionUser, record_id: str) -> int:
    return store.delete_voter(record_id, user.id)
