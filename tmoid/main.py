"""
Example FastAPI application using the T-Mobile ID strategy.

This module wires dependencies and configures the application.
The authentication flow lives in tmoid/core, the endpoints in tmoid/web.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime

# Configure logging FIRST, before other local imports
from tmoid.logging_config import setup_global_logging

setup_global_logging()

# Now import other modules (they will use the configured logging)
from fastapi import FastAPI, Request, status  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from starlette.middleware.sessions import SessionMiddleware  # noqa: E402

from tmoid.core.exceptions import ConfigurationError  # noqa: E402
from tmoid.web import router as tmoid_router  # noqa: E402
from tmoid.web.config import get_web_config  # noqa: E402
from tmoid.web.router import LoginError  # noqa: E402

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    The strategy is built lazily on the first login request, but the
    T-Mobile ID settings are checked here so a broken configuration shows up
    in the startup logs. The app still starts; login answers 503 until the
    settings are fixed.
    """
    logger.info("Application starting up...")
    try:
        get_web_config().validate()
    except ConfigurationError as e:
        logger.error(f"T-Mobile ID login is not configured: {e}")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="T-Mobile ID Login Example",
    description="Logs users in with the T-Mobile ID authorization code flow",
    version="1.0.0",
    lifespan=lifespan,
)

# Session middleware keeps the logged-in T-Mobile ID between requests
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY")
if not SESSION_SECRET_KEY:
    raise ValueError("SESSION_SECRET_KEY is not set in the environment.")
app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET_KEY)


# ============================================================================
# Centralized Exception Handlers
# ============================================================================


@app.exception_handler(LoginError)
async def login_error_handler(request: Request, exc: LoginError):
    """
    Handle internal errors during a login attempt.

    The verify callback failed (raised, reported an error, or never
    answered). Returns a generic 500; details stay in the logs.
    """
    logger.error(f"Login error: {exc.cause!r}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "message": "Login could not be completed",
        },
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Handle an incomplete T-Mobile ID configuration."""
    logger.error(f"T-Mobile ID is not configured: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "error",
            "message": "T-Mobile ID login is not configured",
        },
    )


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "tmoid",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(tmoid_router.router)


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
