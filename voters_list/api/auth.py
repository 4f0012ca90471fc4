from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, EmailStr, Field as PydField

from ..auth.base import AuthError, AuthProvider
from .deps import get_auth_provider

router = APIRouter(prefix="/auth", tags=["auth"])

_bearer = HTTPBearer(auto_error=False)


class TokenRequest(BaseModel):
    email: EmailStr
    password: str = PydField(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: Optional[str] = None


@router.post("/token", response_model=TokenResponse)
def issue_token(payload: TokenRequest, auth: AuthProvider = Depends(get_auth_provider)) -> TokenResponse:
    """Sign in for JSON API callers; the token goes in `Authorization: Bearer ...`."""
    try:
        session = auth.sign_in(str(payload.email), payload.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e) or "Invalid login credentials")

    return TokenResponse(
        access_token=session.access_token,
        user_id=session.user.id,
        email=session.user.email,
    )


@router.post("/logout", status_code=204)
def revoke_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    auth: AuthProvider = Depends(get_auth_provider),
) -> None:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        auth.sign_out(credentials.credentials)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
