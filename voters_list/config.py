from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

BACKENDS = ("local", "supabase")


def _split_origins(raw: Any) -> List[str]:
    """
    Normalize CORS allow origins from env.

    Supports:
      - list[str] (already parsed)
      - "*"
      - comma-separated string: "https://a.com, https://b.com"
    """
    if raw is None:
        return ["*"]

    if isinstance(raw, list):
        items = [str(x).strip() for x in raw]
        items = [x for x in items if x]
        return items or ["*"]

    s = str(raw).strip()
    if not s or s == "*":
        return ["*"]

    parts = [p.strip() for p in s.split(",")]
    parts = [p for p in parts if p]
    return parts or ["*"]


class Settings(BaseSettings):
    """
    Central app settings.

    - DATA_BACKEND picks both collaborators at once:
        local    -> SQLModel tables + local monitor accounts
        supabase -> PostgREST data store + GoTrue auth (hosted)
    - ALLOW_OWNER_DISCLOSURE gates the one cross-owner lookup used to explain
      duplicate voter IDs. Turning it off always yields the generic message.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App identity
    env: str = Field(default="local", alias="APP_ENV")
    app_name: str = Field(default="voters-list", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server runtime (uvicorn)
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # comma-separated in env; parsed by _norm_cors_allow_origins
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")

    # Collaborators
    data_backend: str = Field(default="local", alias="DATA_BACKEND")

    # Local backend: a real SQLAlchemy URL, or DB_PATH as a fallback
    database_url: str = Field(default="", alias="DATABASE_URL")
    db_path: str = Field(default="./data/voters.sqlite", alias="DB_PATH")

    # Hosted backend
    supabase_url: str = Field(default="", alias="SUPABASE_URL")
    supabase_anon_key: str = Field(default="", alias="SUPABASE_ANON_KEY")
    supabase_timeout: float = Field(default=20.0, alias="SUPABASE_TIMEOUT")

    # Web session (signed cookie holding the access token)
    session_secret: str = Field(default="change-me", alias="SESSION_SECRET")
    session_cookie_name: str = Field(default="voters_session", alias="SESSION_COOKIE_NAME")
    session_ttl_hours: int = Field(default=12, alias="SESSION_TTL_HOURS")
    sign_in_path: str = Field(default="/login", alias="SIGN_IN_PATH")

    allow_owner_disclosure: bool = Field(default=True, alias="ALLOW_OWNER_DISCLOSURE")

    # -------------------------
    # Validators / normalizers
    # -------------------------

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().upper()
        return s or "INFO"

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _norm_cors_allow_origins(cls, v: Any) -> list[str]:
        return _split_origins(v)

    @field_validator("host", mode="before")
    @classmethod
    def _norm_host(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "127.0.0.1"

    @field_validator("data_backend", mode="before")
    @classmethod
    def _norm_data_backend(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().lower()
        if s not in BACKENDS:
            return "local"
        return s

    @field_validator("supabase_url", mode="before")
    @classmethod
    def _norm_supabase_url(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip().rstrip("/")

    @field_validator("database_url", "supabase_anon_key", mode="before")
    @classmethod
    def _norm_stripped(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip()

    @field_validator("db_path", mode="before")
    @classmethod
    def _norm_db_path(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "./data/voters.sqlite"

    @field_validator("sign_in_path", mode="before")
    @classmethod
    def _norm_sign_in_path(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        if not s:
            return "/login"
        return s if s.startswith("/") or "://" in s else f"/{s}"

    # -------------------------
    # Derived helpers
    # -------------------------

    @property
    def is_prod(self) -> bool:
        return str(self.env).strip().lower() in ("prod", "production")

    @property
    def uses_supabase(self) -> bool:
        return self.data_backend == "supabase"

    @property
    def resolved_database_url(self) -> str:
        """
        Priority:
        1) DATABASE_URL if provided
        2) Build sqlite:/// URL from DB_PATH (file path or sqlite URL)
        """
        if self.database_url:
            return self.database_url

        path = (self.db_path or "").strip() or "./data/voters.sqlite"

        if path.startswith("sqlite:"):
            return path

        p = Path(path)
        if not p.is_absolute():
            if str(p).startswith("./"):
                return f"sqlite:///{p.as_posix()}"
            return f"sqlite:///./{p.as_posix()}"

        return f"sqlite:////{p.as_posix().lstrip('/')}"

    def validate_backend(self) -> None:
        if self.is_prod and self.session_secret == "change-me":
            raise RuntimeError("SESSION_SECRET must be set in production.")
        if not self.uses_supabase:
            return
        if not self.supabase_url:
            raise RuntimeError("SUPABASE_URL is not set but DATA_BACKEND=supabase.")
        if not self.supabase_anon_key:
            raise RuntimeError("SUPABASE_ANON_KEY is not set but DATA_BACKEND=supabase.")


settings = Settings()
