"""FastAPI application exposing backup controls on the loopback interface."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from ..core.errors import ConfigError, SnapshotQueryError
from .models import (
    BackupRequest,
    SnapshotsResponse,
    TriggerResponse,
    UpdateYamlRequest,
    UpdateYamlResponse,
)
from .service import BackupService

LOGGER = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
INDEX_HTML = Path(__file__).resolve().parent / "static" / "index.html"


def create_app(service: BackupService) -> FastAPI:
    app = FastAPI(title="Better Restic Client", docs_url=None, redoc_url=None)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await service.drain()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
        start = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            status_code = response.status_code if response is not None else 500
            LOGGER.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                status_code,
                duration_ms,
            )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid request", "details": exc.errors()},
        )

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(INDEX_HTML.read_text(encoding="utf-8"))

    @app.get("/api/config")
    async def get_config() -> Dict[str, Any]:
        return await service.config_view()

    @app.get("/api/config/yaml", response_class=PlainTextResponse)
    async def get_config_yaml() -> PlainTextResponse:
        try:
            text = await service.store.read_text()
        except OSError as exc:
            LOGGER.error("Could not read %s: %s", service.store.config_path, exc)
            raise HTTPException(status_code=500, detail="could not read config file") from exc
        return PlainTextResponse(text)

    @app.post("/api/config/yaml", response_model=UpdateYamlResponse)
    async def update_config_yaml(payload: UpdateYamlRequest) -> UpdateYamlResponse:
        try:
            await service.store.replace_from_text(payload.yaml)
        except ConfigError as exc:
            LOGGER.warning("Rejected configuration update: %s", exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OSError as exc:
            LOGGER.error("Could not write %s: %s", service.store.config_path, exc)
            raise HTTPException(status_code=500, detail="could not write config file") from exc
        return UpdateYamlResponse(success=True, message="Configuration updated successfully")

    @app.post("/api/backup/trigger", response_model=TriggerResponse)
    async def trigger_backup(payload: Optional[BackupRequest] = None) -> TriggerResponse:
        dry_run = bool(payload and payload.dry_run)
        await service.trigger(dry_run)
        return TriggerResponse(
            success=True,
            message="Dry run backup triggered" if dry_run else "Backup triggered",
            dry_run=dry_run,
        )

    @app.get("/api/logs")
    async def get_logs() -> Dict[str, Any]:
        return await service.list_logs()

    @app.get("/api/status")
    async def get_status() -> Dict[str, str]:
        return service.status()

    @app.get("/api/snapshots", response_model=SnapshotsResponse)
    async def get_snapshots() -> SnapshotsResponse:
        try:
            snapshots = await service.snapshots()
        except SnapshotQueryError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return SnapshotsResponse(snapshots=snapshots, count=len(snapshots))

    return app


__all__ = ["DEFAULT_HOST", "DEFAULT_PORT", "create_app"]
