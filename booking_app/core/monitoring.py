"""Health checks"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from booking_app.config.database import get_db
from booking_app.config.redis import get_redis
from booking_app.config.settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

health_router = APIRouter()


@health_router.get("/")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "staff-booking-api"}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Health of the database and, when used for sessions, Redis"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "session_store": "unknown",
        "overall": "unknown"
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {str(e)}"

    if settings.SESSION_BACKEND == "redis":
        try:
            redis_client = await get_redis()
            try:
                await redis_client.ping()
            finally:
                await redis_client.aclose()
            checks["session_store"] = "healthy"
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            checks["session_store"] = f"unhealthy: {str(e)}"
    else:
        checks["session_store"] = "healthy"

    if all(status == "healthy" for status in checks.values() if status != "unknown"):
        checks["overall"] = "healthy"
    else:
        checks["overall"] = "degraded"

    return checks
