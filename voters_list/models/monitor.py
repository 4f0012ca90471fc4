from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class Monitor(SQLModel, table=True):
    """
    The operator who owns a subset of voter records.

    email/name are only read back for display when a duplicate voter ID
    belongs to someone else. password_hash is only used by the local backend;
    hosted deployments keep credentials in the auth service.
    """

    __tablename__ = "monitors"

    id: str = Field(default_factory=new_id, primary_key=True)
    email: Optional[str] = Field(default=None, index=True, unique=True)
    name: Optional[str] = Field(default=None)

    password_hash: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)


class MonitorSession(SQLModel, table=True):
    """
    Local sign-in session.
    Store only a token hash; the raw token is handed out once at sign-in.
    """

    __tablename__ = "monitor_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    monitor_id: str = Field(foreign_key="monitors.id", index=True)

    token_hash: str = Field(index=True, unique=True)

    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime = Field(default_factory=lambda: utcnow() + timedelta(hours=12), index=True)
    revoked_at: Optional[datetime] = Field(default=None, index=True)
