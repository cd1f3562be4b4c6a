"""
api/main.py -- FastAPI application entry point for shiplog.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. log_requests          -- one log line per request with latency

Lifespan builds every process-wide collaborator once (engine, stores,
PasswordHasher, TokenService, AuthGate, OwnershipResolver) and stores it on
app.state. A missing JWT_SECRET fails here, at startup, not on a request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import HealthResponse, MessageResponse
from api.routes.products import router as products_router
from api.routes.updates import router as updates_router
from api.routes.users import router as users_router
from auth.dependencies import AuthGate
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService
from catalog.ownership import OwnershipResolver
from catalog.store import CatalogStore
from core.config import get_settings
from core.database import create_db_engine
from core.errors import AppError, ErrorKind

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("shiplog.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build application-level collaborators on startup, dispose on shutdown.

    Startup order matters:
      1. TokenService first -- it raises ConfigError on an empty secret, and
         nothing else should be opened if the process is about to die.
      2. Engine and stores -- tables are created if missing.
      3. Hasher, gate and resolver -- they only wrap the pieces above.
    """
    settings = get_settings()
    logger.info("shiplog API starting up")
    tokens = TokenService(settings.jwt_secret, settings.token_expire_seconds)

    engine = create_db_engine(settings.database_url)
    user_store = UserStore(engine)
    catalog = CatalogStore(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.user_store = user_store
    app.state.catalog = catalog
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.tokens = tokens
    app.state.auth_gate = AuthGate(tokens)
    app.state.ownership = OwnershipResolver(catalog)
    logger.info(
        "Database initialized (%s, %d users)",
        engine.url.render_as_string(hide_password=True),
        user_store.count(),
    )

    yield

    engine.dispose()
    logger.info("shiplog API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="shiplog API",
    description="Products and their changelog updates, per authenticated user.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


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
#
# /signup and /signin are public. Product and update routers carry
# get_current_identity as a router-level dependency.
# ---------------------------------------------------------------------------

app.include_router(users_router, tags=["Users"])
app.include_router(products_router, prefix="/api", tags=["Products"])
app.include_router(updates_router, prefix="/api", tags=["Updates"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body has the same shape, {"message", "type"}, so clients can
# branch on type without inspecting status codes.
# ---------------------------------------------------------------------------


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map an AppError to its ErrorKind's status code.

    The ownership kind answers 200 {"message": "nope"} with no type tag: a
    record outside the caller's ownership set is a soft refusal.
    """
    if exc.kind is ErrorKind.ownership:
        body = MessageResponse(message=exc.message)
    else:
        body = MessageResponse(message=exc.message, type=exc.kind.value)
    if exc.kind is ErrorKind.config:
        logger.error("Configuration error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.kind.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 tagged "input" when the request body or params fail validation."""
    body = MessageResponse(
        message="invalid input",
        type=ErrorKind.input.value,
        errors=[{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()],
    )
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After set to the exceeded limit's window length."""
    retry_after = exc.limit.limit.get_expiry() if exc.limit is not None else 60
    response = JSONResponse(
        status_code=429,
        content=MessageResponse(message="too many requests", type="rate_limited").model_dump(exclude_none=True),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and wrong methods get the same envelope as domain errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=MessageResponse(message=str(exc.detail), type=f"http_{exc.status_code}").model_dump(
            exclude_none=True
        ),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors, persistence failures included.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "something went wrong"})


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit and no auth -- load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
