from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from wardrobe.api.deps import invalid_field_message
from wardrobe.api.v1.endpoints import files
from wardrobe.api.v1.router import api_router
from wardrobe.core.config import get_settings
from wardrobe.core.db import engine
from wardrobe.core.errors import WardrobeError
from wardrobe.services.media import MediaStore


logger = logging.getLogger(__name__)


@lru_cache
def _repo_head_revision() -> str | None:
    default_alembic_path = Path(__file__).resolve().parents[1] / "alembic.ini"
    alembic_path = Path(os.getenv("ALEMBIC_CONFIG_PATH", str(default_alembic_path)))
    if not alembic_path.exists():
        return None

    cfg = Config(str(alembic_path))
    script = ScriptDirectory.from_config(cfg)
    return script.get_current_head()


def _schema_state(sync_conn) -> tuple[int, bool]:  # noqa: ANN001
    tables = inspect(sync_conn).get_table_names()
    return len([t for t in tables if t != "alembic_version"]), "alembic_version" in tables


def _migration_state(*, table_count: int, current_revision: str | None, repo_head: str | None) -> str:
    if current_revision is None:
        return "empty_schema" if table_count == 0 else "missing_alembic_version"
    if repo_head is None:
        return "unknown_repo_head"
    return "up_to_date" if current_revision == repo_head else "behind_head"


async def _database_check() -> dict[str, Any]:
    async with engine.connect() as conn:
        table_count, has_alembic_version = await conn.run_sync(_schema_state)
        current_revision = (
            await conn.scalar(text("SELECT version_num FROM alembic_version LIMIT 1"))
            if has_alembic_version
            else None
        )
    repo_head = _repo_head_revision()
    return {
        "state": _migration_state(
            table_count=table_count,
            current_revision=current_revision,
            repo_head=repo_head,
        ),
        "table_count": table_count,
        "current_revision": current_revision,
        "repo_head_revision": repo_head,
    }


def _storage_check(media: MediaStore) -> str:
    upload_dir = media.upload_dir
    if not upload_dir.is_dir():
        return "missing"
    return "ok" if os.access(upload_dir, os.W_OK) else "read_only"


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(title="Wardrobe Rental", version="1.0")
    app.state.media_store = MediaStore(settings.app_storage_dir, max_upload_bytes=settings.max_upload_bytes)

    if settings.cors_origins:
        origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(WardrobeError)
    async def wardrobe_error_handler(request: Request, exc: WardrobeError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        # A malformed id can never match a record.
        if any(tuple(err.get("loc", ()))[:1] == ("path",) for err in errors):
            return JSONResponse(status_code=404, content={"detail": "Not found"})
        return JSONResponse(status_code=400, content={"detail": invalid_field_message(errors[0], skip=1)})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Database error"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/healthz/deep")
    async def deep_healthz() -> JSONResponse:
        storage = _storage_check(app.state.media_store)
        try:
            database = await _database_check()
        except Exception as exc:
            logger.exception("Deep health check failed")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "error",
                    "checks": {"database": "error", "storage": storage},
                    "error": exc.__class__.__name__,
                },
            )

        healthy = storage == "ok" and database["state"] in {"up_to_date", "empty_schema"}
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "ok" if healthy else "degraded",
                "checks": {"database": "ok", "migration": database, "storage": storage},
            },
        )

    @app.on_event("startup")
    async def startup() -> None:
        app.state.media_store.ensure_dirs()
        logger.info("Storing uploads under %s", app.state.media_store.upload_dir)

    app.include_router(files.router, prefix="/uploads", tags=["uploads"])
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
