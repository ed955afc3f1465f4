from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from slowapi.middleware import SlowAPIMiddleware
import logging

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.rate_limit import limiter
from app.api.router import api_router
from app.db.async_session import get_async_db_manager, startup_async_database, shutdown_async_database
from app.services.async_habit import AsyncHabitService

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    redirect_slashes=False,  # Prevent automatic trailing slash redirects that cause HTTPS->HTTP issues
)

# Custom OpenAPI schema with explicit security scheme
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.PROJECT_DESCRIPTION,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

app.state.limiter = limiter
register_exception_handlers(app)

app.add_middleware(SlowAPIMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


app.include_router(api_router, prefix=settings.API_PREFIX)


async def seed_standard_habits():
    """Create any missing standard habits; failures are logged, not raised."""
    try:
        manager = await get_async_db_manager()
        async for session in manager.get_async_session():
            await AsyncHabitService.seed_standard_habits(session)
    except Exception as e:
        logger.error(f"Seeding standard habits failed: {e}")


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    try:
        logger.info("Starting up Pivot API...")

        # Initialize async database connections
        await startup_async_database()
        logger.info("Async database initialized successfully")

        if settings.SEED_STANDARD_HABITS:
            await seed_standard_habits()

        logger.info("Pivot API startup completed successfully")

    except Exception as e:
        logger.error(f"Failed to start up application: {e}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    """Clean up services on application shutdown."""
    try:
        logger.info("Shutting down Pivot API...")

        # Clean up async database connections
        await shutdown_async_database()
        logger.info("Async database connections closed")

        logger.info("Pivot API shutdown completed successfully")

    except Exception as e:
        logger.error(f"Error during application shutdown: {e}")

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Welcome to Pivot API"}
