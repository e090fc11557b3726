"""
ServiceLane - Vehicle Service Marketplace
Main FastAPI Application Entry Point
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from app.api.v1.endpoints import gateway, health
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.csrf import CSRFMiddleware
from app.core.error_handlers import setup_exception_handlers
from app.core.logging import RequestLoggingMiddleware, get_logger, setup_logging
from app.db.postgres.session import dispose_engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    setup_logging()
    logger.info(f"Starting ServiceLane backend service ({settings.ENVIRONMENT})")

    yield

    # Shutdown
    logger.info("Shutting down ServiceLane backend service")
    await dispose_engine()


def csrf_exclude_paths() -> list[str]:
    """Endpoints that either issue the CSRF token or run before one can exist."""
    prefix = settings.API_V1_PREFIX
    return [
        "/health",
        f"{prefix}/health",
        f"{prefix}/auth/signup",
        f"{prefix}/auth/login",
        f"{prefix}/auth/refresh",
        f"{prefix}/auth/csrf",
        f"{prefix}/docs",
        f"{prefix}/redoc",
        f"{prefix}/openapi.json",
    ]


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""

    # OpenAPI tags metadata for documentation
    tags_metadata = [
        {
            "name": "Health",
            "description": "Service health and database connectivity.",
        },
        {
            "name": "Authentication",
            "description": "Sign up, sign in, token refresh and the current user's profile. All authenticated endpoints require a Bearer token.",
        },
        {
            "name": "Vehicles",
            "description": "The owner's garage and each vehicle's maintenance log.",
        },
        {
            "name": "Service Requests",
            "description": "Owners describe work needed on a vehicle; providers browse open requests.",
        },
        {
            "name": "Quotes",
            "description": "Provider bids on requests. Accepting a quote opens a job.",
        },
        {
            "name": "Jobs",
            "description": "Accepted work, tracked from pending to completed.",
        },
        {
            "name": "Messages",
            "description": "One conversation per job between owner and provider.",
        },
        {
            "name": "Notifications",
            "description": "In-app notifications. Live pushes use the /notifications WebSocket.",
        },
        {
            "name": "Reviews",
            "description": "Owner ratings of completed jobs and provider replies.",
        },
        {
            "name": "Providers",
            "description": "Provider directory, business profile and onboarding.",
        },
        {
            "name": "Services",
            "description": "Public service catalogue.",
        },
        {
            "name": "Activities",
            "description": "Dashboard activity timeline.",
        },
        {
            "name": "Platform",
            "description": "Public marketplace statistics and settings.",
        },
        {
            "name": "Audit",
            "description": "Change history of critical entities. Admin only.",
        },
    ]

    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="""
# ServiceLane API

Marketplace connecting vehicle owners with service providers.

## Flow

1. An owner registers a vehicle and posts a **service request**
2. Active providers submit **quotes**
3. The owner accepts one quote, which opens a **job**
4. Owner and provider chat on the job and track it to completion
5. The owner **reviews** the completed job

## Authentication

Most endpoints require JWT authentication. Obtain tokens via `/api/v1/auth/login`.

```
Authorization: Bearer <access_token>
```

Cookie-based browser clients must echo the `csrf_token` cookie in the
`X-CSRF-Token` header on mutating requests.
        """,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        openapi_tags=tags_metadata,
        contact={
            "name": "ServiceLane Support",
            "email": settings.SUPPORT_EMAIL,
        },
    )

    # GZip compression middleware - compress responses > 1KB
    application.add_middleware(GZipMiddleware, minimum_size=1000)

    # CSRF protection middleware - double-submit cookie pattern (inside logging and CORS)
    if settings.CSRF_ENABLED:
        application.add_middleware(CSRFMiddleware, exclude_paths=csrf_exclude_paths())

    # Request logging middleware (must be added before CORS)
    application.add_middleware(RequestLoggingMiddleware)

    # CORS middleware - Restricted to specific methods and headers
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "Origin",
            "X-Requested-With",
            "X-Request-ID",
            "X-CSRF-Token",
        ],
        expose_headers=["X-Request-ID"],
    )

    # Security headers middleware - protect against common web vulnerabilities
    @application.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add security headers to all responses."""
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Setup exception handlers
    setup_exception_handlers(application)

    # Include API router
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Root health check for container orchestration
    application.include_router(health.router, prefix="/health", tags=["Health"])

    # Real-time gateway lives at the root: ws://<host>/notifications
    application.include_router(gateway.router)

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
