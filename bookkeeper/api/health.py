"""
Health Check endpoints pour Bookkeeper.

- /health: Liveness check (l'app repond)
- /ready: Readiness check (base de donnees joignable)

Exclus de l'identification appelant pour les load balancers.
"""
import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookkeeper.core.config import get_settings
from bookkeeper.core.dependencies import get_db
from bookkeeper.schemas.base import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


def check_database(db: Session) -> Dict[str, Any]:
    """
    Verifie la connexion a la base de donnees.

    Returns:
        Dict avec status et latence ou erreur
    """
    try:
        start = time.perf_counter()
        db.execute(text("SELECT 1")).fetchone()
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency_ms}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "error", "error": str(e)}


@router.get("/health", summary="Liveness check", include_in_schema=False)
async def health():
    """Liveness probe: ne verifie pas les dependances."""
    return {"status": "ok"}


@router.get("/ready", summary="Readiness check", include_in_schema=False)
def ready(db: Session = Depends(get_db)):
    """
    Readiness probe.

    Retourne 503 si la base de donnees est indisponible.
    """
    settings = get_settings()
    db_status = check_database(db)

    if db_status["status"] != "ok":
        return JSONResponse(
            status_code=503,
            content={
                "status": "error",
                "environment": settings.ENV,
                "version": settings.APP_VERSION,
                "database": db_status.get("error", "unknown error"),
            }
        )

    return HealthResponse(
        status="ok",
        environment=settings.ENV,
        version=settings.APP_VERSION,
        database="ok",
    )
