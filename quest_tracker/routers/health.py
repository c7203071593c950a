"""Health check endpoints."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from quest_tracker.database import engine
from quest_tracker.services.indexer_client import get_indexer_client
from quest_tracker.version import APP_VERSION
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def root():
    """Liveness probe."""
    return {"status": True}


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    # Check database
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "detail": "Database connection failed"},
        )

    indexer_healthy = await get_indexer_client().health_check()

    return {
        "status": "ok",
        "version": APP_VERSION,
        "database": db_status,
        "indexer": "reachable" if indexer_healthy else "unreachable",
    }
