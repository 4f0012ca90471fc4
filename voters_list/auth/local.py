from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from werkzeug.security import check_password_hash, generate_password_hash

from ..database import session_scope
from ..models.monitor import Monitor, MonitorSession, utcnow
from .base import AuthError, AuthSession, SessionUser

logger = logging.getLogger(__name__)

# werkzeug method string: pbkdf2:<hash>:<rounds>
_PASSWORD_METHOD = "pbkdf2:sha256:600000"


def _sha256(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def _as_utc(dt: datetime) -> datetime:
    """SQLite hands datetimes back naive; treat those as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=_PASSWORD_METHOD)


def verify_password(password: str, encoded: Optional[str]) -> bool:
    if not encoded:
        return False
    return check_password_hash(encoded, password)


class LocalAuthProvider:
    """
    Monitor accounts kept in the same database as the voters table.

    Tokens are random, returned once by sign_in, and stored only as sha256 hashes
    in monitor_sessions. sign_out revokes the row.
    """

    def __init__(self, engine: Engine, *, session_ttl: timedelta = timedelta(hours=12)) -> None:
        self.engine = engine
        self.session_ttl = session_ttl

    def sign_in(self, email: str, password: str) -> AuthSession:
        email_n = (email or "").strip().lower()
        if not email_n or not password:
            raise AuthError("Email and password are required.")

        try:
            with session_scope(self.engine) as session:
                monitor = session.exec(select(Monitor).where(Monitor.email == email_n)).first()
                if not monitor or not verify_password(password, monitor.password_hash):
                    raise AuthError("Invalid login credentials")

                raw_token = secrets.token_urlsafe(32)
                session.add(
                    MonitorSession(
                        monitor_id=monitor.id,
                        token_hash=_sha256(raw_token),
                        expires_at=utcnow() + self.session_ttl,
                    )
                )
                user = SessionUser(id=monitor.id, email=monitor.email)
        except SQLAlchemyError as e:
            raise AuthError(f"Sign-in failed: {e}") from e

        logger.info("monitor signed in: %s", user.id)
        return AuthSession(access_token=raw_token, user=user)

    def get_user(self, access_token: str) -> Optional[SessionUser]:
        if not access_token:
            return None

        with session_scope(self.engine) as session:
            row = session.exec(
                select(MonitorSession).where(MonitorSession.token_hash == _sha256(access_token))
            ).first()
            if not row or row.revoked_at is not None:
                return None
            if _as_utc(row.expires_at) < utcnow():
                return None

            monitor = session.get(Monitor, row.monitor_id)
            if not monitor:
                return None
            return SessionUser(id=monitor.id, email=monitor.email)

    def sign_out(self, access_token: str) -> None:
        try:
            with session_scope(self.engine) as session:
                row = session.exec(
                    select(MonitorSession).where(MonitorSession.token_hash == _sha256(access_token or ""))
                ).first()
                if not row:
                    raise AuthError("Session not found")
                monitor_id = row.monitor_id
                if row.revoked_at is None:
                    row.revoked_at = utcnow()
                    session.add(row)
        except SQLAlchemyError as e:
            raise AuthError(f"Sign-out failed: {e}") from e

        logger.info("monitor signed out: %s", monitor_id)


def create_monitor(
    engine: Engine,
    *,
    email: str,
    password: str,
    name: Optional[str] = None,
    monitor_id: Optional[str] = None,
) -> Monitor:
    """
    Create (or reset the password of) a local monitor account.
    Reuses the row if the email already exists.
    """
    email_n = email.strip().lower()
    with session_scope(engine) as session:
        monitor = session.exec(select(Monitor).where(Monitor.email == email_n)).first()
        if monitor is None:
            monitor = Monitor(email=email_n, name=name)
            if monitor_id:
                monitor.id = monitor_id
        elif name:
            monitor.name = name
        monitor.password_hash = hash_password(password)
        session.add(monitor)
        session.flush()
        session.refresh(monitor)
        session.expunge(monitor)
        return monitor
