"""
Health check endpoints.
"""

import logging
from typing import Any, Dict
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.timeutils import utcnow

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """
    Basic liveness check for load balancers.
    """
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat() + "Z"
    }


@router.get("/health/detailed")
def detailed_health_check(db: Session = Depends(get_db)) -> Any:
    """
    Readiness check including database connectivity.

    Returns 503 when the database cannot be reached.
    """
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {"status": "healthy"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {"status": "unhealthy", "message": str(e)}
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status)

    return health_status
