from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from ..database import session_scope
from ..models.monitor import Monitor
from ..models.voter import Voter
from .base import (
    INSUFFICIENT_PRIVILEGE,
    UNIQUE_VIOLATION,
    MonitorContact,
    StoreError,
    VoterRecord,
)

logger = logging.getLogger(__name__)


# constraint names and message fragments that identify a voters.voter_id collision
_VOTER_ID_CONFLICT_MARKERS = (
    "voters.voter_id",  # SQLite: "UNIQUE constraint failed: voters.voter_id"
    "ix_voters_voter_id",  # Postgres unique index created by SQLModel
    "voters_voter_id_key",  # Postgres UNIQUE column constraint
    "(voter_id)=",  # Postgres DETAIL: "Key (voter_id)=(V1) already exists."
)


def _is_voter_id_conflict(exc: IntegrityError) -> bool:
    """
    True only for a duplicate voter_id. Other unique violations (e.g. a
    primary-key clash on voters.id) are plain store errors.
    """
    orig = getattr(exc, "orig", None)
    text = str(orig or exc).lower()
    if "unique" not in text and "duplicate key" not in text:
        return False
    if not any(marker in text for marker in _VOTER_ID_CONFLICT_MARKERS):
        return False
    pgcode = getattr(orig, "pgcode", None)
    return pgcode in (None, UNIQUE_VIOLATION)


class SqlVoterStore:
    """
    SQLModel-backed store for the local backend.

    Row-level policy lives here, not in the callers:
    - reads, updates and deletes only ever touch rows owned by acting_monitor_id
      (the caller's monitor_id filter is applied on top)
    - inserts for a different monitor are refused with 42501
    - find_voter_owner / get_monitor_contact are the only cross-owner reads and
      only answer when allow_owner_disclosure is on
    """

    def __init__(self, engine: Engine, acting_monitor_id: str, *, allow_owner_disclosure: bool = True) -> None:
        self.engine = engine
        self.acting_monitor_id = acting_monitor_id
        self.allow_owner_disclosure = allow_owner_disclosure

    def list_voters(self, monitor_id: str) -> List[VoterRecord]:
        try:
            with session_scope(self.engine) as session:
                q = select(Voter).where(
                    Voter.monitor_id == monitor_id,
                    Voter.monitor_id == self.acting_monitor_id,
                )
                return [VoterRecord.model_validate(v) for v in session.exec(q).all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read voters: {e}") from e

    def insert_voter(self, *, voter_id: str, name: str, phone: str, monitor_id: str) -> VoterRecord:
        if monitor_id != self.acting_monitor_id:
            raise StoreError(
                'new row violates row-level security policy for table "voters"',
                code=INSUFFICIENT_PRIVILEGE,
            )

        try:
            with session_scope(self.engine) as session:
                voter = Voter(voter_id=voter_id, name=name, phone=phone, monitor_id=monitor_id)
                session.add(voter)
                session.flush()
                return VoterRecord.model_validate(voter)
        except IntegrityError as e:
            if _is_voter_id_conflict(e):
                raise StoreError(
                    'duplicate key value violates unique constraint "voters_voter_id_key"',
                    code=UNIQUE_VIOLATION,
                ) from e
            raise StoreError(f"Failed to add voter: {e.orig or e}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to add voter: {e}") from e

    def find_voter_owner(self, voter_id: str) -> Optional[str]:
        if not self.allow_owner_disclosure:
            return None

        logger.info(
            "cross-owner lookup: monitor=%s asked for owner of voter_id=%s",
            self.acting_monitor_id,
            voter_id,
        )
        try:
            with session_scope(self.engine) as session:
                q = select(Voter.monitor_id).where(Voter.voter_id == voter_id).limit(1)
                return session.exec(q).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up voter owner: {e}") from e

    def get_monitor_contact(self, monitor_id: str) -> Optional[MonitorContact]:
        if not self.allow_owner_disclosure and monitor_id != self.acting_monitor_id:
            return None

        try:
            with session_scope(self.engine) as session:
                m = session.get(Monitor, monitor_id)
                if not m:
                    return None
                return MonitorContact(email=m.email, name=m.name)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up monitor: {e}") from e

    def _owned(self, session, record_id: str, monitor_id: str) -> Optional[Voter]:
        q = select(Voter).where(
            Voter.id == record_id,
            Voter.monitor_id == monitor_id,
            Voter.monitor_id == self.acting_monitor_id,
        )
        return session.exec(q).first()

    def update_voter(self, record_id: str, monitor_id: str, *, name: str, phone: str) -> int:
        try:
            with session_scope(self.engine) as session:
                v = self._owned(session, record_id, monitor_id)
                if not v:
                    return 0
                v.name = name
                v.phone = phone
                session.add(v)
                return 1
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update voter: {e}") from e

    def delete_voter(self, record_id: str, monitor_id: str) -> int:
        try:
            with session_scope(self.engine) as session:
                v = self._owned(session, record_id, monitor_id)
                if not v:
                    return 0
                session.delete(v)
                return 1
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete voter: {e}") from e
