"""
Health endpoints.

Only the database is critical. Redis and the promotion scheduler are
reported for operators but never turn the service unhealthy: a stalled
scheduler just leaves expired promotions active a little longer.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
import redis

from cleanbook.core.config import get_settings
from cleanbook.db.session import get_db

router = APIRouter(tags=["health"])
settings = get_settings()


def _check_database(db: Session) -> Dict[str, Any]:
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        return {"status": "error", "message": str(e)}


def _check_redis() -> Dict[str, Any]:
    if not settings.REDIS_URL:
        return {"status": "not_configured"}
    try:
        redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2).ping()
        return {"status": "ok"}
    except redis.ConnectionError:
        return {"status": "unavailable", "message": "Redis not connected"}
    except Exception as e:
        return {"status": "error", "message": str(e)}


def _check_scheduler(request: Request) -> Dict[str, Any]:
    scheduler = getattr(request.app.state, "promotion_scheduler", None)
    if scheduler is None:
        return {"status": "not_configured"}

    report = scheduler.last_report
    return {
        "status": scheduler.state.value,
        "last_run_at": scheduler.last_run_at.isoformat() if scheduler.last_run_at else None,
        "last_cycle": report.status.value if report else None,
    }


@router.get("/health")
async def health_check():
    """Liveness check; always OK while the process serves requests."""
    return {"status": "ok"}


@router.get("/api/health")
def api_health_check(request: Request, db: Session = Depends(get_db)):
    """
    Readiness check.

    Returns 200 when the database answers, 503 otherwise.
    """
    services = {
        "database": _check_database(db),
        "redis": _check_redis(),
        "promotion_scheduler": _check_scheduler(request),
    }

    if services["database"]["status"] != "ok":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "services": services},
        )

    return {"status": "ok", "services": services}
