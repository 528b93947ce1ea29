from fastapi import APIRouter
from config import settings
from database.session import db_manager
from routes.dependencies import get_ai_service
import logging

router = APIRouter(prefix="/health", tags=["Health Check"])
logger = logging.getLogger(__name__)

@router.get("")
async def basic_health_check():
    """Basic application health check"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": "1.0.0"
    }

@router.get("/database")
async def database_health_check():
    """Database health check with connection metrics"""
    try:
        health_data = await db_manager.health_check()

        if health_data["status"] != "healthy":
            logger.warning(f"Database health check failed: {health_data}")
        return health_data

    except Exception as e:
        logger.error(f"Database health check error: {e}")
        return {
            "status": "error",
            "error": str(e)
        }

@router.get("/detailed")
async def detailed_health_check():
    """Comprehensive health check"""
    try:
        db_health = await db_manager.health_check()

        overall_status = "healthy" if db_health["status"] == "healthy" else "degraded"

        return {
            "status": overall_status,
            "service": settings.APP_NAME,
            "version": "1.0.0",
            "components": {
                "database": db_health,
                "ai": {"status": "configured" if get_ai_service().client else "not_configured"},
                "api": {"status": "healthy"}
            }
        }

    except Exception as e:
        logger.error(f"Detailed health check error: {e}")
        return {
            "status": "unhealthy",
            "error": str(e)
        }
