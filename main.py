"""Clubhouse - Members-Only Message Board."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from clubhouse.config import get_settings
from clubhouse.database import get_db, init_db
from clubhouse.dependencies import get_identity
from clubhouse.errors import ClubError, StorageError
from clubhouse.policy import can_see_authors, project_messages
from clubhouse.rate_limit import limiter
from clubhouse.routers import api_router, auth_router, membership_router, messages_router, users_router
from clubhouse.services.messages import get_message_service
from clubhouse.services.sessions import CurrentUser, ResolvedIdentity
from clubhouse.services.users import get_user_service
from clubhouse.templating import BASE_DIR, templates

# Logging
logger = logging.getLogger("clubhouse")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

HOME_RECENT_MESSAGES = 10


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Verify the database before serving. Failure here is fatal."""
    for warning in get_settings().validate():
        logger.warning("Config: %s", warning)
    try:
        init_db()
    except Exception:
        logger.exception("Database initialization failed, shutting down")
        raise SystemExit(1) from None
    yield


app = FastAPI(title="Clubhouse", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; style-src 'self'; img-src 'self' data:; form-action 'self'"
        )
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    MAX_BODY_SIZE = 64 * 1024  # forms only; the longest message is 5000 chars

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > self.MAX_BODY_SIZE:
            return JSONResponse(status_code=413, content={"detail": "Request body too large"})
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {"/signup", "/login", "/join-club", "/messages/"}

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        # Log state-changing form posts
        path = request.url.path
        method = request.method
        if method == "POST" and any(path.startswith(p) for p in self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(AuditLogMiddleware)

# Static files
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

# Routers
app.include_router(auth_router)
app.include_router(membership_router)
app.include_router(messages_router)
app.include_router(users_router)
app.include_router(api_router)


def _current_user(request: Request) -> CurrentUser | None:
    """The user resolved earlier in this request, if any. Errors raised before resolution render logged out."""
    identity = getattr(request.state, "identity", None)
    return identity.user if identity else None


def _render_error(request: Request, status_code: int, detail: str) -> Response:
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=status_code, content={"detail": detail})
    return templates.TemplateResponse(
        request,
        "error.html",
        {"current_user": _current_user(request), "status_code": status_code, "error": detail},
        status_code=status_code,
    )


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    return _render_error(request, 429, "Too many attempts. Please try again later.")


# --- Exception handler: 401 -> redirect to /login ---
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Handle HTTP exceptions. Redirect 401 to login for web requests."""
    if exc.status_code == 401:
        # HTMX request: send redirect header
        if request.headers.get("HX-Request"):
            response = HTMLResponse(content="", status_code=200)
            response.headers["HX-Redirect"] = "/login"
            return response
        if request.url.path.startswith("/api/"):
            return JSONResponse(status_code=401, content={"detail": exc.detail})
        return RedirectResponse(url="/login", status_code=302)
    return _render_error(request, exc.status_code, str(exc.detail))


@app.exception_handler(ClubError)
async def club_error_handler(request: Request, exc: ClubError) -> Response:
    """Render permission, not-found and other domain errors."""
    return _render_error(request, exc.status_code, exc.detail)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> Response:
    """Unexpected persistence failure: log it, show a generic 500."""
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    error = StorageError()
    return _render_error(request, error.status_code, error.detail)


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "clubhouse", "version": "0.1.0"}


# --- Home ---
@app.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Render home page with stats and the latest messages."""
    messages = get_message_service().list_messages(db, limit=HOME_RECENT_MESSAGES)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "current_user": identity.user,
            "stats": get_user_service().get_stats(db),
            "messages": project_messages(messages, identity),
            "show_authors": can_see_authors(identity),
            "can_post": identity.is_authenticated,
        },
    )
