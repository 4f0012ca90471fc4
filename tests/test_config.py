from __future__ import annotations

import pytest

from voters_list.config import Settings


def _settings(**env) -> Settings:
    return Settings(_env_file=None, **env)


def test_defaults_and_normalizers():
    s = _settings(
        DATA_BACKEND=" SUPABASE ",
        SUPABASE_URL="https://x.supabase.co/",
        LOG_LEVEL="debug",
        CORS_ALLOW_ORIGINS="https://a.com, https://b.com",
        SIGN_IN_PATH="signin",
    )
    assert s.uses_supabase
    assert s.supabase_url == "https://x.supabase.co"
    assert s.log_level == "DEBUG"
    assert s.cors_allow_origins == ["https://a.com", "https://b.com"]
    assert s.sign_in_path == "/signin"


def test_unknown_backend_falls_back_to_local():
    assert _settings(DATA_BACKEND="mongo").data_backend == "local"


@pytest.mark.parametrize(
    "env, expected",
    [
        ({"DATABASE_URL": "postgresql://u@h/db"}, "postgresql://u@h/db"),
        ({"DATABASE_URL": "", "DB_PATH": "./data/x.sqlite"}, "sqlite:///./data/x.sqlite"),
        ({"DATABASE_URL": "", "DB_PATH": "data/x.sqlite"}, "sqlite:///./data/x.sqlite"),
        ({"DATABASE_URL": "", "DB_PATH": "/var/lib/x.sqlite"}, "sqlite:////var/lib/x.sqlite"),
    ],
)
def test_resolved_database_url(env, expected):
    assert _settings(**env).resolved_database_url == expected


def test_supabase_backend_needs_url_and_key():
    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        _settings(DATA_BACKEND="supabase", SUPABASE_URL="", SUPABASE_ANON_KEY="k").validate_backend()
    with pytest.raises(RuntimeError, match="SUPABASE_ANON_KEY"):
        _settings(DATA_BACKEND="supabase", SUPABASE_URL="https://x", SUPABASE_ANON_KEY="").validate_backend()
    _settings(DATA_BACKEND="supabase", SUPABASE_URL="https://x", SUPABASE_ANON_KEY="k").validate_backend()


def test_production_needs_a_session_secret():
    with pytest.raises(RuntimeError, match="SESSION_SECRET"):
        _settings(APP_ENV="production", SESSION_SECRET="change-me").validate_backend()
    _settings(APP_ENV="production", SESSION_SECRET="s3cret", DATA_BACKEND="local").validate_backend()
