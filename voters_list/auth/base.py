"""Auth collaborator contract: who is signed in, and signing in/out."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


class AuthError(RuntimeError):
    """Raised when sign-in or sign-out is rejected or the auth service is unreachable."""


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user: SessionUser


@runtime_checkable
class AuthProvider(Protocol):
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def get_user(self, access_token: str) -> Optional[SessionUser]: ...

    def sign_out(self, access_token: str) -> None: ...


__all__ = ["AuthError", "SessionUser", "AuthSession", "AuthProvider"]
