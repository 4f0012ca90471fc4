from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..auth.base import SessionUser
from ..store.base import StoreError, VoterRecord, VoterStore
from . import voters as ops

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch voters"
ADD_FAILED = "Failed to add voter"
UPDATE_FAILED = "Failed to update voter"
DELETE_FAILED = "Failed to delete voter"

ADD_FORM_FIELDS = ("voter_id", "name", "phone")


def _empty_form() -> Dict[str, str]:
    return {k: "" for k in ADD_FORM_FIELDS}


def _message(exc: Exception, fallback: str) -> str:
    if isinstance(exc, StoreError):
        return exc.message or fallback
    return str(exc) or fallback


@dataclass
class EditContext:
    record: VoterRecord
    name: str = ""
    phone: str = ""


@dataclass
class RosterController:
    """
    Per-user roster state behind the dashboard page.

    Every operation contains its own failure: it sets last_error and returns
    False instead of raising. Successful mutations re-fetch the whole roster.
    """

    store: VoterStore
    user: Optional[SessionUser]

    records: List[VoterRecord] = field(default_factory=list)
    loading: bool = False
    last_error: Optional[str] = None

    form: Dict[str, str] = field(default_factory=_empty_form)
    editing: Optional[EditContext] = None
    delete_target: Optional[VoterRecord] = None
    is_updating: bool = False
    is_deleting: bool = False

    # -------------------------
    # Read
    # -------------------------

    def fetch_all(self) -> bool:
        if self.user is None:
            return False

        self.loading = True
        self.last_error = None
        try:
            self.records = ops.list_voters(self.store, self.user)
            return True
        except Exception as e:
            if not isinstance(e, StoreError):
                logger.exception("unexpected error fetching voters")
            self.last_error = _message(e, FETCH_FAILED)
            return False
        finally:
            self.loading = False

    def find(self, record_id: Optional[str]) -> Optional[VoterRecord]:
        if not record_id:
            return None
        for r in self.records:
            if r.id == record_id:
                return r
        return None

    # -------------------------
    # Add
    # -------------------------

    def add(self, voter_id: str, name: str, phone: str) -> bool:
        if self.user is None:
            return False

        self.form = {"voter_id": voter_id, "name": name, "phone": phone}
        self.last_error = None
        try:
            ops.add_voter(self.store, self.user, voter_id=voter_id, name=name, phone=phone)
        except ops.DuplicateVoterError as e:
            self.last_error = e.message
            return False
        except StoreError as e:
            logger.warning("add voter failed for monitor=%s: %s", self.user.id, e.message)
            self.last_error = _message(e, ADD_FAILED)
            return False
        except Exception as e:
            logger.exception("unexpected error adding voter")
            self.last_error = _message(e, ADD_FAILED)
            return False

        self.form = _empty_form()
        self.fetch_all()
        return True

    # -------------------------
    # Edit
    # -------------------------

    def begin_edit(self, record: VoterRecord) -> None:
        self.editing = EditContext(record=record, name=record.name or "", phone=record.phone or "")
        self.last_error = None

    def cancel_edit(self) -> None:
        self.editing = None
        self.last_error = None

    def commit_edit(self, name: str, phone: str) -> bool:
        if self.user is None or self.editing is None:
            return False

        self.editing.name = name
        self.editing.phone = phone
        self.is_updating = True
        self.last_error = None
        try:
            ops.update_voter(self.store, self.user, self.editing.record.id, name=name, phone=phone)
        except Exception as e:
            if not isinstance(e, StoreError):
                logger.exception("unexpected error updating voter")
            self.last_error = _message(e, UPDATE_FAILED)
            return False
        finally:
            self.is_updating = False

        self.cancel_edit()
        self.fetch_all()
        return True

    # -------------------------
    # Delete
    # -------------------------

    def begin_delete(self, record: VoterRecord) -> None:
        self.delete_target = record
        self.last_error = None

    def cancel_delete(self) -> None:
        self.delete_target = None
        self.last_error = None

    def commit_delete(self) -> bool:
        if self.user is None or self.delete_target is None:
            return False

        self.is_deleting = True
        self.last_error = None
        try:
            ops.delete_voter(self.store, self.user, self.delete_target.id)
        except Exception as e:
            if not isinstance(e, StoreError):
                logger.exception("unexpected error deleting voter")
            self.last_error = _message(e, DELETE_FAILED)
            return False
        finally:
            self.is_deleting = False

        self.cancel_delete()
        self.fetch_all()
        return True
