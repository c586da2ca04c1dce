"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from plot_capture.api.rate_limit import limiter
from plot_capture.api.v1.routers import geometry, reference, sessions
from plot_capture.config import settings
from plot_capture.middleware.error_handler import ErrorHandlerMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Backend: {settings.backend_api_base_url}, "
                f"default tolerance: {settings.default_tolerance_percent}%")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    yield

    # Shutdown
    from plot_capture.api.dependencies import get_session_controller
    from plot_capture.infrastructure.backend_client import get_backend_client
    logger.info("Shutting down application...")
    get_session_controller().cancel()
    await get_backend_client().close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Plot boundary capture for field supervisors

    Supervisors tap a plot's boundary on a map; this service keeps the
    drawing session, computes the enclosed area and checks it against the
    plot's recorded area before the boundary is saved.

    ## Features

    - **Drawing Session**: add and undo points, cancel, and save for either a
      polygon task or a plot edit
    - **Area Validation**: every change of a 3+ point polygon is validated
      against the plot's recorded area (10% tolerance by default); saving is
      blocked until the latest verdict passes
    - **Geometry Helpers**: spherical-excess area and WKT/GeoJSON conversion
    - **Rate Limiting**: Protects the API from abuse
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(sessions.router, prefix="/api/v1")
app.include_router(geometry.router, prefix="/api/v1")
app.include_router(reference.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
