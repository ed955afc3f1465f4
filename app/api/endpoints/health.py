from typing import Any, Dict
import logging

from fastapi import APIRouter, HTTPException

from app.db.async_session import get_async_db_manager, check_async_database_health

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        dict: Basic health status
    """
    try:
        manager = await get_async_db_manager()
        connection_test = await manager.test_connection()

        return {
            "status": "healthy" if connection_test else "unhealthy",
            "database": "connected" if connection_test else "disconnected",
            "service": "pivot-backend"
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")


@router.get("/database", response_model=Dict[str, Any])
async def database_health_check():
    """
    Database health check with connection pool information.

    Returns:
        dict: Database health status including pool info and response time
    """
    return await check_async_database_health()
