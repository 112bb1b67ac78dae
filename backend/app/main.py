"""FastAPI application entry point."""

import json
import logging
import sys
import time
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import inspect, text
from starlette.middleware.base import BaseHTTPMiddleware

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.routes import api_router
from app.core.config import settings
from app.core.rate_limit import limiter
from app.db.base import Base
from app.db.session import SessionLocal, engine

APP_VERSION = "1.0.0"
REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str, human_readable: bool) -> None:
    """Install a single stdout handler on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    if human_readable:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"
        ))
    else:
        handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.addHandler(handler)


configure_logging(settings.log_level, human_readable=settings.debug)
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("requests")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a request id and log method, path, status and duration."""

    SKIP_PATHS = frozenset({"/health", "/", "/docs", "/openapi.json"})

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            request_logger.exception(
                f"{request.method} {request.url.path} failed after {time.perf_counter() - started:.3f}s"
            )
            raise
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in self.SKIP_PATHS:
            elapsed = time.perf_counter() - started
            request_logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s) "
                f"[{request_id}]",
            )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Clinic Inventory API v{APP_VERSION}")
    if settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        logger.info("SQLite schema ensured")
    yield
    logger.info("Clinic Inventory API stopped")


app = FastAPI(
    title="Clinic Inventory API",
    description="Stock receiving, purchase orders and auto-reorder for clinic inventory",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
# Added last so it wraps everything else
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    return {"status": "healthy", "version": APP_VERSION}


@app.get("/health/ready")
def readiness_check():
    """Database reachable and the receiving tables present."""
    checks = {"database": "unhealthy", "schema": "unknown"}
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
        tables = set(inspect(db.get_bind()).get_table_names())
        missing = {"stock_receipts", "stock_receipt_items", "purchase_orders"} - tables
        checks["schema"] = "healthy" if not missing else f"missing: {', '.join(sorted(missing))}"
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
    finally:
        db.close()

    return {
        "status": "ready" if all(v == "healthy" for v in checks.values()) else "degraded",
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }


@app.get("/")
def root():
    return {
        "name": "Clinic Inventory API",
        "version": APP_VERSION,
        "api": settings.api_v1_prefix,
        "health": "/health",
    }
