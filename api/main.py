"""
api/main.py -- FastAPI application entry point for the Acquisitions API.

Install:   pip install -e .
Run with:  python main.py serve
           uvicorn asgi:app --reload

Middleware stack (outermost to innermost -- Starlette wraps the last
registered middleware outermost):
  1. log_requests          -- one access-log line per request with latency
  2. security_headers      -- nosniff / frame-deny / no-referrer on every response
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. CORSMiddleware        -- adds CORS headers for allowed browser origins
  5. TrustedHostMiddleware -- rejects requests with unexpected Host headers

Lifespan builds the UserStore (from DATABASE_URL) and the AuthService into
app.state at startup and disposes the store's engine at shutdown. Nothing in
the process holds a database handle outside app.state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse, MessageResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.dependencies import get_current_user
from auth.service import AuthService
from core.config import get_settings
from users.errors import AccountError, DuplicateEmailError, InvalidCredentialsError, NotFoundError
from users.models import PublicUser
from users.store import UserStore

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("acquisitions.api")

_STARTED_AT = time.monotonic()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the database handle for the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("Acquisitions API starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.auth_service = AuthService(app.state.user_store)
    logger.info("User store initialized")

    yield

    app.state.user_store.close()
    logger.info("Acquisitions API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Acquisitions API",
    description="User registration, authentication, and account management.",
    version="1.0.0",
    lifespan=lifespan,
    # Built-in /docs and /redoc are replaced below by auth-protected routes.
    docs_url=None,
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Each add_middleware() call wraps the stack built so far, so the request
# meets SlowAPI first, then CORS, then TrustedHost.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def security_headers(request: Request, call_next):
    """Set conservative browser security headers on every response."""
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])


# ---------------------------------------------------------------------------
# Service endpoints
#
# Defined directly here (not in a router) so they are always reachable. No
# auth and no rate limit -- load balancers and monitors must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    logger.info("Hello from acquisitions")
    return "Hello from acquisitions!"


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, current server time, process uptime, and DB reachability."""
    database_ok = request.app.state.user_store.ping()
    return HealthResponse(
        status="OK" if database_ok else "DEGRADED",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.monotonic() - _STARTED_AT, 3),
        database="ok" if database_ok else "error",
    )


@app.get("/api", tags=["Health"])
async def api_root() -> MessageResponse:
    return MessageResponse(message="Acquisitions API is running!")


# ---------------------------------------------------------------------------
# Auth-protected API documentation
# ---------------------------------------------------------------------------


@app.get("/docs", include_in_schema=False)
def docs(user: PublicUser = Depends(get_current_user)):
    """Swagger UI -- requires authentication."""
    return get_swagger_ui_html(openapi_url="/openapi.json", title="Acquisitions API")


@app.get("/redoc", include_in_schema=False)
def redoc(user: PublicUser = Depends(get_current_user)):
    """ReDoc UI -- requires authentication."""
    return get_redoc_html(openapi_url="/openapi.json", title="Acquisitions API")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

# Most specific class wins: UserExistsError resolves through
# DuplicateEmailError, UserNotFoundError through NotFoundError.
_ACCOUNT_ERROR_STATUS: dict[type[AccountError], int] = {
    DuplicateEmailError: 409,
    NotFoundError: 404,
    InvalidCredentialsError: 401,
}


def status_for(exc: AccountError) -> int:
    """Map an account-core error to its HTTP status. Unmapped kinds are 500."""
    for cls in type(exc).__mro__:
        if cls in _ACCOUNT_ERROR_STATUS:
            return _ACCOUNT_ERROR_STATUS[cls]
    return 500


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Render a core error with its stable code.

    5xx kinds (HashingError, ComparisonError, PersistenceError) get a generic
    message; the underlying cause was already logged by the core.
    """
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s %s", exc.code, request.method, request.url.path)
        message = "An unexpected error occurred."
    else:
        message = exc.message
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=message)).model_dump(),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with a structured error when the body or params fail validation."""
    messages = ", ".join(str(err.get("msg", "")) for err in exc.errors())
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Validation failed.",
                detail=messages or None,
            )
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Registered on the Starlette base class so router-level 404/405 responses
    for unknown routes use the same envelope as route-raised errors.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )
    code = "not_found" if exc.status_code == 404 else f"http_{exc.status_code}"
    message = "Route not found." if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )
