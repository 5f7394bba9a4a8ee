"""
ChallengeKit - FastAPI application entry point.

Serves the email verification and password reset link endpoints.
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from . import __version__
from .auth import router as auth_router
from .auth.exceptions import TransientDependencyFailure
from .database import init_db

# --- Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("challengekit")

RETRY_AFTER_SECONDS = 30


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    logger.info("Starting ChallengeKit application...")
    os.makedirs("data", exist_ok=True)
    init_db()
    logger.info("ChallengeKit ready!")
    yield
    logger.info("Shutting down ChallengeKit...")


# --- Security Headers Middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        # Links carry tokens in the query string
        response.headers["Referrer-Policy"] = "no-referrer"
        return response


async def transient_failure_handler(request: Request, exc: TransientDependencyFailure):
    """A dependency is down: tell the client to retry instead of rejecting the link."""
    logger.warning("Dependency %s unavailable during %s", exc.dependency, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable. Please try again shortly."},
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="ChallengeKit",
        description="Stateless email verification and password reset challenges",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_exception_handler(TransientDependencyFailure, transient_failure_handler)
    app.include_router(auth_router, prefix="/auth", tags=["auth"])

    @app.get("/api/health", tags=["system"])
    async def health_check():
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.utcnow().isoformat()
        }

    return app


app = create_app()
