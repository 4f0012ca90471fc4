from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Callable, Optional, Tuple

import httpx
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..auth.base import AuthProvider, SessionUser
from ..config import settings
from ..services.session_gate import SessionGate
from ..store.base import VoterStore

# (user, access_token) -> store bound to that user
StoreFactory = Callable[[SessionUser, str], VoterStore]

SESSION_TOKEN_KEY = "access_token"

_bearer = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_rest_client() -> httpx.Client:
    from ..store.postgrest import build_rest_client

    return build_rest_client(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout=settings.supabase_timeout,
    )


@lru_cache(maxsize=1)
def get_auth_provider() -> AuthProvider:
    if settings.uses_supabase:
        from ..auth.gotrue import GoTrueAuthProvider

        return GoTrueAuthProvider(get_rest_client())

    from ..auth.local import LocalAuthProvider
    from ..database import engine

    return LocalAuthProvider(engine, session_ttl=timedelta(hours=settings.session_ttl_hours))


def get_store_factory() -> StoreFactory:
    if settings.uses_supabase:
        from ..store.postgrest import PostgrestVoterStore

        client = get_rest_client()
        return lambda user, token: PostgrestVoterStore(client, token)

    from ..database import engine
    from ..store.sql import SqlVoterStore

    return lambda user, token: SqlVoterStore(
        engine,
        user.id,
        allow_owner_disclosure=settings.allow_owner_disclosure,
    )


# -----------------------------
# Browser session (signed cookie)
# -----------------------------

def get_session_token(request: Request) -> Optional[str]:
    token = request.session.get(SESSION_TOKEN_KEY)
    return str(token) if token else None


def get_gate(
    request: Request,
    auth: AuthProvider = Depends(get_auth_provider),
) -> SessionGate:
    gate = SessionGate(auth, sign_in_path=settings.sign_in_path)
    gate.resolve(get_session_token(request))
    return gate


# -----------------------------
# JSON API (bearer token)
# -----------------------------

def get_api_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    auth: AuthProvider = Depends(get_auth_provider),
) -> Tuple[SessionUser, str]:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    gate = SessionGate(auth, sign_in_path=settings.sign_in_path)
    gate.resolve(credentials.credentials)
    if gate.should_redirect:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return gate.user, credentials.credentials


def get_api_store(
    identity: Tuple[SessionUser, str] = Depends(get_api_identity),
    make_store: StoreFactory = Depends(get_store_factory),
) -> VoterStore:
    user, token = identity
    return make_store(user, token)
