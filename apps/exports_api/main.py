from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.responses import JSONResponse, Response
from typing import Optional
import os
import subprocess

from shared.db.session import SessionLocal, get_db
from sqlalchemy import text as _sql_text
from shared.db import models
from shared.exports.download import ExportNotFound, download
from shared.storage.base import StorageBackend, StorageError
from shared.storage.factory import build_storage
from minio.error import S3Error
import urllib3
from structlog import get_logger
from structlog.contextvars import bind_contextvars, clear_contextvars
import time as _t
from starlette.middleware.base import BaseHTTPMiddleware
import secrets
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST

from contextlib import asynccontextmanager


@asynccontextmanager
async def _lifespan(app: FastAPI):
    # Skip external IO in test environments
    if not (os.getenv("EXPORTS_SKIP_STARTUP_CHECKS") or os.getenv("PYTEST_CURRENT_TEST")):
        try:
            storage = build_storage()
            if hasattr(storage, "ensure_bucket"):
                storage.ensure_bucket()
            db = SessionLocal()
            db.close()
        except Exception as e:
            # Don't crash startup; healthz will reflect degraded state
            log = get_logger()
            log.error("lifespan_start_failed", error=str(e))
    yield


app = FastAPI(title="Supplier Price Exports API", version="0.1.0", lifespan=_lifespan)
log = get_logger()

# Prometheus metrics (API process only)
registry = CollectorRegistry()
EXPORT_DOWNLOAD_REQUESTS_TOTAL = Counter(
    "export_download_requests_total",
    "Download link requests by outcome",
    ["outcome"],
    registry=registry,
)
EXPORT_DOWNLOAD_SECONDS = Histogram(
    "export_download_seconds",
    "Latency for issuing a download link",
    registry=registry,
)


def get_env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


def get_storage() -> StorageBackend:
    return build_storage()


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        try:
            bind_contextvars(request_id=rid, path=str(request.url.path))
            response = await call_next(request)
            response.headers["X-Request-ID"] = rid
            return response
        finally:
            clear_contextvars()


# Simple log throttle to avoid spamming identical warnings
_log_throttle: dict[str, float] = {}

def _should_log(key: str, window_sec: float = 60.0) -> bool:
    now = _t.monotonic()
    last = _log_throttle.get(key)
    if last is None or (now - last) >= window_sec:
        _log_throttle[key] = now
        return True
    return False


class HTTPAccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = _t.perf_counter()
        response = await call_next(request)
        dur_ms = int((_t.perf_counter() - start) * 1000)
        length = response.headers.get("content-length")
        log.info(
            "http_access",
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            duration_ms=dur_ms,
            content_length=int(length) if str(length).isdigit() else None,
        )
        return response


class APIKeyAuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Only enforce when enabled; health, metrics and version stay open
        if get_env_bool("API_AUTH_ENABLED", False):
            path = request.url.path
            if path.startswith("/v0/") and not path.startswith("/v0/version"):
                key = request.headers.get("X-API-Key")
                want = os.getenv("API_KEY")
                if not want or not secrets.compare_digest(key or "", want):
                    return JSONResponse({"detail": "Unauthorized"}, status_code=401)
        return await call_next(request)


# Starlette wraps in reverse order: the last one added runs first
app.add_middleware(APIKeyAuthMiddleware)
app.add_middleware(HTTPAccessLogMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.get("/healthz")
def healthz():
    db_ok = False
    db = None
    try:
        db = SessionLocal()
        db.execute(_sql_text("SELECT 1"))
        db_ok = True
    except Exception as e:
        if _should_log("db_error"):
            log.error("health_db_error", error=str(e))
    finally:
        if db is not None:
            db.close()

    storage_ok = False
    try:
        storage_ok = bool(build_storage().ping())
    except Exception as e:
        if _should_log("storage_error"):
            log.error("health_storage_error", error=str(e))

    ok = db_ok and storage_ok
    payload = {
        "status": "ok" if ok else "degraded",
        "components": {"db": db_ok, "storage": storage_ok},
    }
    return JSONResponse(payload, status_code=200 if ok else 503)


@app.get("/metrics")
def metrics():
    data = generate_latest(registry)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


# Lightweight version surface for ops/debugging
@app.get("/v0/version")
def version_info():
    git = os.getenv("GIT_SHA")
    if not git:
        try:
            r = subprocess.run(["git", "rev-parse", "--short", "HEAD"], capture_output=True, text=True, timeout=1)
            if r.returncode == 0:
                git = (r.stdout or "").strip() or None
        except (OSError, subprocess.SubprocessError):
            git = None
    return {"version": app.version, "git": git}


def _export_dict(rec: models.ExportRecord) -> dict:
    return {
        "id": rec.id,
        "user_id": rec.user_id,
        "supplier_id": rec.supplier_id,
        "path": rec.path,
        "is_auto": bool(rec.is_auto),
        "is_ready": bool(rec.is_ready),
        "is_send": bool(rec.is_send),
        "downloadable": rec.is_downloadable,
        "created_at": rec.created_at.isoformat() if rec.created_at else None,
        "updated_at": rec.updated_at.isoformat() if rec.updated_at else None,
    }


@app.get("/v0/exports")
def list_exports(
    supplier_id: Optional[int] = None,
    user_id: Optional[int] = None,
    ready: Optional[bool] = None,
    limit: int = 50,
    db=Depends(get_db),
):
    """List recent price exports, newest first."""
    q = db.query(models.ExportRecord)
    if supplier_id is not None:
        q = q.filter(models.ExportRecord.supplier_id == supplier_id)
    if user_id is not None:
        q = q.filter(models.ExportRecord.user_id == user_id)
    if ready is not None:
        q = q.filter(models.ExportRecord.is_ready == ready)
    q = q.order_by(models.ExportRecord.created_at.desc(), models.ExportRecord.id.desc()) \
         .limit(max(1, min(limit, 200)))
    return {"exports": [_export_dict(r) for r in q.all()]}


@app.get("/v0/exports/{export_id}")
def get_export(export_id: int, db=Depends(get_db)):
    rec = db.get(models.ExportRecord, export_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="export not found")
    return _export_dict(rec)


@app.get("/v0/exports/{export_id}/download")
def download_export(export_id: int, db=Depends(get_db), storage: StorageBackend = Depends(get_storage)):
    """
    Return a one-hour signed URL for a finished export.
    404 while the file is not ready; the storage backend is not contacted then.
    """
    with EXPORT_DOWNLOAD_SECONDS.time():
        rec = db.get(models.ExportRecord, export_id)
        if rec is None:
            EXPORT_DOWNLOAD_REQUESTS_TOTAL.labels(outcome="missing").inc()
            raise HTTPException(status_code=404, detail="export not found")
        try:
            link = download(rec, storage)
        except ExportNotFound as e:
            EXPORT_DOWNLOAD_REQUESTS_TOTAL.labels(outcome="not_ready").inc()
            log.info("export_download_not_ready", export_id=export_id)
            raise HTTPException(status_code=404, detail=str(e))
        except (StorageError, S3Error, urllib3.exceptions.HTTPError):
            EXPORT_DOWNLOAD_REQUESTS_TOTAL.labels(outcome="error").inc()
            log.exception("export_download_error", export_id=export_id)
            raise HTTPException(status_code=502, detail="storage unavailable")
    EXPORT_DOWNLOAD_REQUESTS_TOTAL.labels(outcome="issued").inc()
    return JSONResponse(link.as_payload())
