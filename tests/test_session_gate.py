from __future__ import annotations

from datetime import timedelta

import pytest

from voters_list.auth.base import AuthError
from voters_list.auth.local import LocalAuthProvider, hash_password, verify_password
from voters_list.services.session_gate import GateNotResolved, GateState, SessionGate

from conftest import M1_EMAIL, PASSWORD


class BrokenSignOut:
    def __init__(self, inner):
        self.inner = inner

    def get_user(self, token):
        return self.inner.get_user(token)

    def sign_in(self, email, password):
        return self.inner.sign_in(email, password)

    def sign_out(self, token):
        raise AuthError("auth service unavailable")


def test_gate_starts_loading_and_exposes_no_user(auth):
    gate = SessionGate(auth)
    assert gate.state == GateState.LOADING
    assert gate.is_loading
    assert not gate.should_redirect
    with pytest.raises(GateNotResolved):
        gate.user


def test_missing_or_unknown_token_redirects(auth, m1):
    gate = SessionGate(auth, sign_in_path="/signin")
    assert gate.resolve(None) == GateState.ANONYMOUS
    assert gate.should_redirect
    assert gate.sign_in_path == "/signin"

    assert SessionGate(auth).resolve("not-a-token") == GateState.ANONYMOUS


def test_valid_token_exposes_identity(auth, m1):
    session = auth.sign_in(M1_EMAIL, PASSWORD)
    gate = SessionGate(auth)
    assert gate.resolve(session.access_token) == GateState.AUTHENTICATED
    assert gate.user.id == "m1"
    assert gate.user.email == M1_EMAIL


def test_sign_out_revokes_token(auth, m1):
    token = auth.sign_in(M1_EMAIL, PASSWORD).access_token
    gate = SessionGate(auth)
    gate.resolve(token)

    assert gate.sign_out(token) is True
    assert gate.state == GateState.ANONYMOUS
    assert SessionGate(auth).resolve(token) == GateState.ANONYMOUS


def test_sign_out_failure_is_swallowed(auth, m1):
    token = auth.sign_in(M1_EMAIL, PASSWORD).access_token
    gate = SessionGate(BrokenSignOut(auth))
    gate.resolve(token)

    assert gate.sign_out(token) is False
    assert gate.state == GateState.AUTHENTICATED
    assert gate.user.id == "m1"


def test_auth_lookup_error_resolves_anonymous():
    class Exploding:
        def get_user(self, token):
            raise RuntimeError("db down")

    assert SessionGate(Exploding()).resolve("tok") == GateState.ANONYMOUS


def test_local_sign_in_rejects_bad_password(auth, m1):
    with pytest.raises(AuthError):
        auth.sign_in(M1_EMAIL, "wrong")
    with pytest.raises(AuthError):
        auth.sign_in("nobody@example.org", PASSWORD)
    with pytest.raises(AuthError):
        auth.sign_in("", "")


def test_local_sign_in_is_case_insensitive_on_email(auth, m1):
    assert auth.sign_in(M1_EMAIL.upper(), PASSWORD).user.id == "m1"


def test_expired_session_is_rejected(engine, m1):
    provider = LocalAuthProvider(engine, session_ttl=timedelta(seconds=-1))
    token = provider.sign_in(M1_EMAIL, PASSWORD).access_token
    assert provider.get_user(token) is None


def test_sign_out_unknown_token_raises(auth):
    with pytest.raises(AuthError):
        auth.sign_out("nope")


def test_password_hash_round_trip():
    encoded = hash_password("s3cret")
    assert encoded.startswith("pbkdf2:sha256:1000$")
    assert verify_password("s3cret", encoded)
    assert not verify_password("other", encoded)
    assert not verify_password("s3cret", None)
    assert not verify_password("s3cret", "garbage")
