from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .config import settings

from .api.auth import router as auth_router
from .api.dashboard import router as dashboard_router
from .api.voters import router as voters_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings.validate_backend()

    app = FastAPI(
        title="Voters List",
        version=settings.app_version,
    )

    # --- CORS (JSON API callers) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Browser session: signed cookie holding the access token ---
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie_name,
        same_site="lax",
        https_only=settings.is_prod,
    )

    # --- Startup ---
    @app.on_event("startup")
    def _startup() -> None:
        if settings.uses_supabase:
            logger.info("data backend: supabase (%s)", settings.supabase_url)
            return
        # Creates tables for all registered SQLModel models (idempotent)
        from .database import init_db

        init_db()
        logger.info("data backend: local (%s)", settings.resolved_database_url)

    # --- Friendly error envelope (API callers) ---
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc: HTTPException):  # noqa: ANN001
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # --- Health / meta ---
    @app.get("/health", tags=["meta"])
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "env": settings.env,
            "backend": settings.data_backend,
        }

    @app.get("/version", tags=["meta"])
    def version() -> Dict[str, Any]:
        return {"version": settings.app_version}

    # --- Routers ---
    app.include_router(dashboard_router)
    app.include_router(auth_router)
    app.include_router(voters_router)

    return app


app = create_app()


def run() -> None:
    logging.basicConfig(level=getattr(logging, str(settings.log_level).upper(), logging.INFO))
    import uvicorn

    uvicorn.run(
        "voters_list.main:app",
        host=settings.host,
        port=int(settings.port),
        reload=bool(settings.reload),
    )
