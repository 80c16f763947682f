from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from quantura.api.responses import error_response
from quantura.core.errors import ErrorCode
from quantura.core.logging import business_id_var, configure_logging, correlation_id_var
from quantura.core.settings import get_app_settings
from quantura.db.run_migrations import main as run_alembic
from quantura.db.seed import seed_all
from quantura.schemas.common import MessageResponse

# Routers
from quantura.api.routes.auth import router as auth_router
from quantura.api.routes.businesses import router as businesses_router
from quantura.api.routes.categories import router as categories_router
from quantura.api.routes.expenses import router as expenses_router
from quantura.api.routes.inventory import router as inventory_router
from quantura.api.routes.reports import router as reports_router
from quantura.api.routes.invitations import router as invitations_router
from quantura.api.routes.statistics import router as statistics_router
from quantura.api.routes.suppliers import router as suppliers_router

# Configure structured logging once at import
configure_logging()
logger = logging.getLogger(__name__)

settings = get_app_settings()

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Auth", "description": "Registration, tokens and the current principal."},
    {"name": "Businesses", "description": "The caller's business."},
    {"name": "Categories", "description": "Product categories, unique per business."},
    {"name": "Expenses", "description": "Business expenses."},
    {"name": "Suppliers", "description": "Suppliers on file."},
    {"name": "Invitations", "description": "Invite people into a business."},
    {"name": "Inventory", "description": "Warehouses, stock and sales."},
    {"name": "Statistics", "description": "Transactions, audit trail and dashboard figures."},
    {"name": "Reports", "description": "Exportable reports (CSV/Excel/PDF)."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Attach a correlation_id to the request's logging context.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    # Filled in by the action wrapper once the principal is known
    token_business = business_id_var.set(None)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        business_id_var.reset(token_business)
        correlation_id_var.reset(token_corr)

    response.headers["X-Correlation-ID"] = corr
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Render HTTP errors in the result envelope, keeping the original status.
    """
    code = ErrorCode.UNAUTHORIZED if exc.status_code in (401, 403) else ErrorCode.FAILED_REQUEST
    if exc.status_code == 404:
        code = ErrorCode.NOT_FOUND
    response = error_response(code, status_code=exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Malformed payloads are reported as MISSING_INPUT.
    """
    logger.info("Request validation failed: %s", exc.errors())
    return error_response(ErrorCode.MISSING_INPUT, status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces.
    """
    logger.exception("Unhandled error processing request")
    return error_response(ErrorCode.FAILED_REQUEST, status_code=500)


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    Seeding is opt-in via settings.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            # env.py calls asyncio.run; keep it off the running loop
            await run_in_threadpool(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


api_v1.include_router(auth_router)
api_v1.include_router(businesses_router)
api_v1.include_router(categories_router)
api_v1.include_router(expenses_router)
api_v1.include_router(suppliers_router)
api_v1.include_router(invitations_router)
api_v1.include_router(inventory_router)
api_v1.include_router(statistics_router)
api_v1.include_router(reports_router)

app.include_router(api_v1)
