"""Health check endpoints for monitoring service status"""
from fastapi import APIRouter, status
from marketplace.db.base import get_db_session
from sqlalchemy import text
import redis
from marketplace.core.config import settings
from datetime import datetime, timezone

health_router = APIRouter(
    prefix="/v1",
    tags=["health"],
)


@health_router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Check if the API is responsive"
)
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "marketplace-offers"
    }


@health_router.get(
    "/health/detailed",
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
    description="Check the database and the Redis search index"
)
async def detailed_health_check():
    """Detailed health check including all dependencies"""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "marketplace-offers",
        "dependencies": {}
    }

    # Check database
    try:
        db = next(get_db_session())
        db.execute(text("SELECT 1"))
        db.close()
        health_status["dependencies"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["dependencies"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}"
        }

    # Check the search index backend
    if settings.SEARCH_INDEX_PROVIDER == "redis":
        try:
            conn_params = {}
            if settings.SEARCH_INDEX_REDIS_URL.startswith("rediss://"):
                conn_params["ssl_cert_reqs"] = "none"

            client = redis.from_url(settings.SEARCH_INDEX_REDIS_URL, **conn_params)
            client.ping()
            health_status["dependencies"]["search_index"] = {
                "status": "healthy",
                "message": "Search index (Redis) connection successful"
            }
        except Exception as e:
            health_status["status"] = "unhealthy"
            health_status["dependencies"]["search_index"] = {
                "status": "unhealthy",
                "message": f"Search index connection failed: {str(e)}"
            }
    else:
        health_status["dependencies"]["search_index"] = {
            "status": "disabled",
            "message": f"Search index provider: {settings.SEARCH_INDEX_PROVIDER}"
        }

    return health_status
