from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from ..auth.base import AuthError, AuthProvider, SessionUser

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class GateNotResolved(RuntimeError):
    """Raised when the identity is read before it is resolved (or when nobody is signed in)."""


class SessionGate:
    """
    Decides whether the dashboard may render and who it renders for.

    Until resolve() runs the gate is LOADING and exposes no user, so nothing
    downstream can touch the store.
    """

    def __init__(self, auth: AuthProvider, sign_in_path: str = "/login") -> None:
        self.auth = auth
        self.sign_in_path = sign_in_path
        self.state = GateState.LOADING
        self._user: Optional[SessionUser] = None

    def resolve(self, access_token: Optional[str]) -> GateState:
        user: Optional[SessionUser] = None
        if access_token:
            try:
                user = self.auth.get_user(access_token)
            except Exception:
                logger.exception("session lookup failed; treating visitor as signed out")
                user = None

        self._user = user
        self.state = GateState.AUTHENTICATED if user else GateState.ANONYMOUS
        return self.state

    @property
    def is_loading(self) -> bool:
        return self.state == GateState.LOADING

    @property
    def should_redirect(self) -> bool:
        return self.state == GateState.ANONYMOUS

    @property
    def user(self) -> SessionUser:
        if self.state != GateState.AUTHENTICATED or self._user is None:
            raise GateNotResolved(f"no authenticated user (gate is {self.state.value})")
        return self._user

    def sign_out(self, access_token: Optional[str]) -> bool:
        """
        True when the auth service confirmed sign-out.
        Failures are logged and reported as False; the page shows nothing.
        """
        if not access_token:
            return True
        try:
            self.auth.sign_out(access_token)
        except AuthError as e:
            logger.warning("sign-out failed, keeping session: %s", e)
            return False
        except Exception:
            logger.exception("sign-out failed unexpectedly, keeping session")
            return False

        self._user = None
        self.state = GateState.ANONYMOUS
        return True
