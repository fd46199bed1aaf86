# Standard library
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

# Third party
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sqlalchemy import text

# Local imports
from marketplace.core.config import settings
from marketplace.core.exceptions import OfferServiceError
from marketplace.core.logging import get_logger
import marketplace.api as api


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events"""
    # Startup
    logger.info("Marketplace offers API starting up...")

    # Test database connection
    try:
        from marketplace.db.base import get_db_session

        session_gen = get_db_session()
        session = next(session_gen)
        session.execute(text("SELECT 1")).fetchone()
        session.close()
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    yield  # This is where FastAPI serves the application

    # Shutdown
    logger.info("Marketplace offers API shutting down...")


async def offer_error_handler(request: Request, exc: OfferServiceError) -> JSONResponse:
    """Answer service errors with their status code, message and field errors"""
    if exc.status_code >= 500:
        logger.error(f"Offer service error on {request.method} {request.url.path}: {exc.message}")
    content = {"detail": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title="Marketplace Offers",
        description="Create, price, publish and export marketplace product offers.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        default_response_class=JSONResponse,
    )

    app.add_exception_handler(OfferServiceError, offer_error_handler)

    # Mount offer APIs
    for name, router in api.offer_routers:
        app.include_router(router, prefix="/api/v1", tags=[name])

    # Mount health APIs at /api/v1/health
    app.include_router(api.health_router, prefix="/api")

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.time()
        logger.info(f"[{request_id}] {request.method} {request.url.path} {dict(request.query_params)}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"[{request_id}] Request failed after {process_time:.4f}s: {str(e)}",
                exc_info=True,
            )
            raise  # Re-raise the exception so it's handled properly

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id
        logger.info(f"[{request_id}] {response.status_code} in {process_time:.4f}s")
        return response

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers and monitoring"""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "debug": settings.DEBUG,
        }

    return app


app = create_app()
