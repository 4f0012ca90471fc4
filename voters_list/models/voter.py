from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from .monitor import new_id, utcnow


class Voter(SQLModel, table=True):
    __tablename__ = "voters"

    id: str = Field(default_factory=new_id, primary_key=True)

    # external identifier, unique across every monitor
    voter_id: str = Field(index=True, unique=True)

    name: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)

    # display only (not editable from the dashboard)
    email: Optional[str] = Field(default=None)
    address: Optional[str] = Field(default=None)

    # set at creation, never changed
    monitor_id: str = Field(foreign_key="monitors.id", index=True)

    created_at: datetime = Field(default_factory=utcnow)
