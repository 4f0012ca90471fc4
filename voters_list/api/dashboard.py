from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from ..auth.base import AuthError, AuthProvider
from ..config import settings
from ..services.roster import RosterController
from ..services.session_gate import SessionGate
from ..store.base import VoterRecord
from .deps import (
    SESSION_TOKEN_KEY,
    StoreFactory,
    get_auth_provider,
    get_gate,
    get_session_token,
    get_store_factory,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

DASHBOARD_PATH = "/dashboard"


def _redirect(url: str) -> RedirectResponse:
    # 303 so a POST lands on a GET (post/redirect/get clears the add form)
    return RedirectResponse(url, status_code=303)


def _controller(request: Request, gate: SessionGate, make_store: StoreFactory) -> RosterController:
    user = gate.user
    store = make_store(user, get_session_token(request) or "")
    return RosterController(store=store, user=user)


def _render(request: Request, gate: SessionGate, roster: RosterController) -> Response:
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": gate.user,
            "roster": roster,
            "app_name": settings.app_name,
        },
    )


# -----------------------------
# Sign-in / sign-out
# -----------------------------

@router.get("/", include_in_schema=False)
def index() -> RedirectResponse:
    return _redirect(DASHBOARD_PATH)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, gate: SessionGate = Depends(get_gate)) -> Response:
    if not gate.should_redirect:
        return _redirect(DASHBOARD_PATH)
    return templates.TemplateResponse(request, "login.html", {"error": None, "email": ""})


@router.post("/login", response_class=HTMLResponse)
def login_submit(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    auth: AuthProvider = Depends(get_auth_provider),
) -> Response:
    try:
        session = auth.sign_in(email, password)
    except AuthError as e:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": str(e) or "Sign-in failed", "email": email},
            status_code=400,
        )

    request.session[SESSION_TOKEN_KEY] = session.access_token
    return _redirect(DASHBOARD_PATH)


@router.post("/logout")
def logout(request: Request, gate: SessionGate = Depends(get_gate)) -> RedirectResponse:
    if gate.sign_out(get_session_token(request)):
        request.session.clear()
        return _redirect(gate.sign_in_path)
    # sign-out failed: stay on the page, no banner
    return _redirect(DASHBOARD_PATH)


# -----------------------------
# Dashboard
# -----------------------------

@router.get(DASHBOARD_PATH, response_class=HTMLResponse)
def dashboard(
    request: Request,
    edit: Optional[str] = None,
    delete: Optional[str] = None,
    gate: SessionGate = Depends(get_gate),
    make_store: StoreFactory = Depends(get_store_factory),
) -> Response:
    if gate.should_redirect:
        return _redirect(gate.sign_in_path)

    roster = _controller(request, gate, make_store)
    roster.fetch_all()

    if edit:
        target = roster.find(edit)
        if target is not None:
            roster.begin_edit(target)
    elif delete:
        target = roster.find(delete)
        if target is not None:
            roster.begin_delete(target)

    return _render(request, gate, roster)


@router.post(f"{DASHBOARD_PATH}/voters", response_class=HTMLResponse)
def add_voter(
    request: Request,
    voter_id: str = Form(...),
    name: str = Form(...),
    phone: str = Form(...),
    gate: SessionGate = Depends(get_gate),
    make_store: StoreFactory = Depends(get_store_factory),
) -> Response:
    if gate.should_redirect:
        return _redirect(gate.sign_in_path)

    roster = _controller(request, gate, make_store)
    roster.fetch_all()
    if roster.add(voter_id, name, phone):
        return _redirect(DASHBOARD_PATH)
    return _render(request, gate, roster)


@router.post(DASHBOARD_PATH + "/voters/{record_id}/update", response_class=HTMLResponse)
def update_voter(
    request: Request,
    record_id: str,
    name: str = Form(...),
    phone: str = Form(...),
    gate: SessionGate = Depends(get_gate),
    make_store: StoreFactory = Depends(get_store_factory),
) -> Response:
    if gate.should_redirect:
        return _redirect(gate.sign_in_path)

    roster = _controller(request, gate, make_store)
    roster.fetch_all()

    # a record missing from our roster still goes through the filtered update (no-op)
    target = roster.find(record_id) or VoterRecord(id=record_id, monitor_id=gate.user.id)
    roster.begin_edit(target)
    if roster.commit_edit(name, phone):
        return _redirect(DASHBOARD_PATH)
    return _render(request, gate, roster)


@router.post(DASHBOARD_PATH + "/voters/{record_id}/delete", response_class=HTMLResponse)
def delete_voter(
    request: Request,
    record_id: str,
    gate: SessionGate = Depends(get_gate),
    make_store: StoreFactory = Depends(get_store_factory),
) -> Response:
    if gate.should_redirect:
        return _redirect(gate.sign_in_path)

    roster = _controller(request, gate, make_store)
    roster.fetch_all()

    target = roster.find(record_id) or VoterRecord(id=record_id, monitor_id=gate.user.id)
    roster.begin_delete(target)
    if roster.commit_delete():
        return _redirect(DASHBOARD_PATH)
    return _render(request, gate, roster)
