from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .base import AuthError, AuthSession, SessionUser

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth/v1"


def _safe_json(r: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        payload = r.json()
    except Exception:
        return None
    return payload if isinstance(payload, dict) else None


def _error_message(r: httpx.Response) -> str:
    """
    GoTrue has used a few error shapes over time:
      {"error": "invalid_grant", "error_description": "Invalid login credentials"}
      {"code": 400, "msg": "Invalid login credentials"}
      {"message": "..."}
    """
    data = _safe_json(r)
    if data:
        for key in ("error_description", "msg", "message", "error"):
            if data.get(key):
                return str(data[key])
    return r.text or f"Auth request failed ({r.status_code})"


def _user_from_payload(data: Optional[Dict[str, Any]]) -> Optional[SessionUser]:
    if not data or not data.get("id"):
        return None
    return SessionUser(id=str(data["id"]), email=data.get("email"))


class GoTrueAuthProvider:
    """Hosted auth (Supabase GoTrue) over the shared httpx client."""

    def __init__(self, client: httpx.Client) -> None:
        self.client = client

    def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            return self.client.post(f"{AUTH_PATH}{path}", **kwargs)
        except httpx.TimeoutException as e:
            raise AuthError("Request timed out contacting the auth service.") from e
        except httpx.RequestError as e:
            raise AuthError(f"Network error contacting the auth service: {e}") from e

    def sign_in(self, email: str, password: str) -> AuthSession:
        r = self._post(
            "/token",
            params={"grant_type": "password"},
            json={"email": (email or "").strip(), "password": password},
        )
        if r.status_code >= 400:
            raise AuthError(_error_message(r))

        data = _safe_json(r) or {}
        token = data.get("access_token")
        user = _user_from_payload(data.get("user"))
        if not token or user is None:
            raise AuthError("Sign-in succeeded but returned no session.")

        logger.info("monitor signed in: %s", user.id)
        return AuthSession(access_token=str(token), user=user)

    def get_user(self, access_token: str) -> Optional[SessionUser]:
        if not access_token:
            return None
        try:
            r = self.client.get(f"{AUTH_PATH}/user", headers={"Authorization": f"Bearer {access_token}"})
        except httpx.RequestError as e:
            logger.warning("auth service unreachable while resolving session: %s", e)
            return None

        if r.status_code != 200:
            return None
        return _user_from_payload(_safe_json(r))

    def sign_out(self, access_token: str) -> None:
        r = self._post("/logout", headers={"Authorization": f"Bearer {access_token}"})
        if r.status_code >= 400:
            raise AuthError(_error_message(r))
        logger.info("monitor signed out")


__all__ = ["GoTrueAuthProvider", "AUTH_PATH"]
