from __future__ import annotations

from typing import Dict, List, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field as PydField

from ..auth.base import SessionUser
from ..services import voters as ops
from ..store.base import StoreError, VoterRecord, VoterStore
from .deps import get_api_identity, get_api_store

router = APIRouter(prefix="/voters", tags=["voters"])


# -----------------------------
# Schemas (do NOT use DB model as input)
# -----------------------------

class VoterCreate(BaseModel):
    voter_id: str = PydField(..., min_length=1)
    name: str = PydField(..., min_length=1)
    phone: str = PydField(..., min_length=1)


class VoterPatch(BaseModel):
    """name/phone only; voter_id and monitor_id are immutable."""
    name: str = PydField(..., min_length=1)
    phone: str = PydField(..., min_length=1)


def _store_error(e: StoreError) -> HTTPException:
    if e.is_network_error:
        return HTTPException(status_code=503, detail=e.message)
    return HTTPException(status_code=400, detail=e.message)


# -----------------------------
# Routes
# -----------------------------

@router.get("/", response_model=List[VoterRecord])
def list_voters(
    identity: Tuple[SessionUser, str] = Depends(get_api_identity),
    store: VoterStore = Depends(get_api_store),
) -> List[VoterRecord]:
    user, _ = identity
    try:
        return ops.list_voters(store, user)
    except StoreError as e:
        raise _store_error(e)


@router.post("/", response_model=VoterRecord, status_code=201)
def create_voter(
    payload: VoterCreate,
    identity: Tuple[SessionUser, str] = Depends(get_api_identity),
    store: VoterStore = Depends(get_api_store),
) -> VoterRecord:
    """
    Create a voter owned by the caller.
    A duplicate voter_id returns 409 with a message naming the owning monitor when it can.
    """
    user, _ = identity
    try:
        return ops.add_voter(store, user, voter_id=payload.voter_id, name=payload.name, phone=payload.phone)
    except ops.DuplicateVoterError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except StoreError as e:
        raise _store_error(e)


@router.patch("/{record_id}")
def update_voter(
    record_id: str,
    payload: VoterPatch,
    identity: Tuple[SessionUser, str] = Depends(get_api_identity),
    store: VoterStore = Depends(get_api_store),
) -> Dict[str, int]:
    user, _ = identity
    try:
        updated = ops.update_voter(store, user, record_id, name=payload.name, phone=payload.phone)
    except StoreError as e:
        raise _store_error(e)
    return {"updated": updated}


@router.delete("/{record_id}")
def delete_voter(
    record_id: str,
    identity: Tuple[SessionUser, str] = Depends(get_api_identity),
    store: VoterStore = Depends(get_api_store),
) -> Dict[str, int]:
    user, _ = identity
    try:
        deleted = ops.delete_voter(store, user, record_id)
    except StoreError as e:
        raise _store_error(e)
    return {"deleted": deleted}
