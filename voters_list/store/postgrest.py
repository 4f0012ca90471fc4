from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import NETWORK_ERROR, MonitorContact, StoreError, VoterRecord

logger = logging.getLogger(__name__)

# NOTE:
# Requests carry the signed-in user's JWT, so the hosted row-level policies
# decide what each query can see. The eq.<id> filters below are sent anyway.

REST_PATH = "/rest/v1"


def _safe_json(r: httpx.Response) -> Any:
    try:
        return r.json()
    except Exception:
        return None


def _error_from_response(r: httpx.Response) -> StoreError:
    """
    PostgREST error bodies look like:
      {"code": "23505", "message": "duplicate key value ...", "details": ..., "hint": ...}
    """
    data = _safe_json(r)
    if isinstance(data, dict):
        message = data.get("message") or data.get("msg") or data.get("error") or r.text
        return StoreError(str(message), code=data.get("code"))
    return StoreError(r.text or f"Store request failed ({r.status_code})", code=str(r.status_code))


def _eq(value: str) -> str:
    return f"eq.{value}"


class PostgrestVoterStore:
    """
    Hosted store over PostgREST.

    `client` is a shared httpx.Client already pointed at the project URL and
    carrying the anon `apikey` header (see build_rest_client).
    """

    def __init__(self, client: httpx.Client, access_token: str) -> None:
        self.client = client
        self.access_token = access_token

    # -----------------------------
    # Low-level request helper
    # -----------------------------

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        representation: bool = False,
    ) -> List[Dict[str, Any]]:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        if representation:
            headers["Prefer"] = "return=representation"

        try:
            r = self.client.request(method, f"{REST_PATH}/{table}", params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise StoreError("Request timed out contacting the data store.", code=NETWORK_ERROR) from e
        except httpx.RequestError as e:
            raise StoreError(f"Network error contacting the data store: {e}", code=NETWORK_ERROR) from e

        if r.status_code >= 400:
            err = _error_from_response(r)
            logger.warning("store %s %s failed (%s): %s", method, table, err.code, err.message)
            raise err

        if r.status_code == 204 or not r.content:
            return []

        data = _safe_json(r)
        if isinstance(data, list):
            return [row for row in data if isinstance(row, dict)]
        if isinstance(data, dict):
            return [data]
        return []

    # -----------------------------
    # VoterStore
    # -----------------------------

    def list_voters(self, monitor_id: str) -> List[VoterRecord]:
        rows = self._request("GET", "voters", params={"select": "*", "monitor_id": _eq(monitor_id)})
        return [VoterRecord.model_validate(row) for row in rows]

    def insert_voter(self, *, voter_id: str, name: str, phone: str, monitor_id: str) -> VoterRecord:
        rows = self._request(
            "POST",
            "voters",
            json=[{"voter_id": voter_id, "name": name, "phone": phone, "monitor_id": monitor_id}],
            representation=True,
        )
        if not rows:
            raise StoreError("Insert succeeded but returned no row.")
        return VoterRecord.model_validate(rows[0])

    def find_voter_owner(self, voter_id: str) -> Optional[str]:
        logger.info("cross-owner lookup: owner of voter_id=%s", voter_id)
        rows = self._request(
            "GET",
            "voters",
            params={"select": "monitor_id", "voter_id": _eq(voter_id), "limit": 1},
        )
        if not rows:
            return None
        owner = rows[0].get("monitor_id")
        return str(owner) if owner else None

    def get_monitor_contact(self, monitor_id: str) -> Optional[MonitorContact]:
        rows = self._request(
            "GET",
            "monitors",
            params={"select": "email,name", "id": _eq(monitor_id), "limit": 1},
        )
        if not rows:
            return None
        return MonitorContact.model_validate(rows[0])

    def update_voter(self, record_id: str, monitor_id: str, *, name: str, phone: str) -> int:
        rows = self._request(
            "PATCH",
            "voters",
            params={"id": _eq(record_id), "monitor_id": _eq(monitor_id)},
            json={"name": name, "phone": phone},
            representation=True,
        )
        return len(rows)

    def delete_voter(self, record_id: str, monitor_id: str) -> int:
        rows = self._request(
            "DELETE",
            "voters",
            params={"id": _eq(record_id), "monitor_id": _eq(monitor_id)},
            representation=True,
        )
        return len(rows)


def build_rest_client(
    base_url: str,
    anon_key: str,
    *,
    timeout: float = 20.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """
    Shared client for both the data store and the auth service.
    `transport` lets tests plug in httpx.MockTransport.
    """
    limits = httpx.Limits(max_connections=25, max_keepalive_connections=10)
    return httpx.Client(
        base_url=base_url.rstrip("/"),
        timeout=float(timeout),
        headers={"apikey": anon_key, "User-Agent": "voters-list/1.0"},
        limits=limits,
        transport=transport,
    )


__all__ = ["PostgrestVoterStore", "build_rest_client", "REST_PATH"]
