"""
Shared FastAPI dependencies.
"""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from cleanbook.db.session import get_db
from cleanbook.services.promotion_scheduler import PromotionScheduler
from cleanbook.services.promotion_store import SqlAlchemyPromotionStore


def get_promotion_store(db: Session = Depends(get_db)) -> SqlAlchemyPromotionStore:
    return SqlAlchemyPromotionStore(db)


def get_promotion_scheduler(request: Request) -> PromotionScheduler:
    """The process-wide scheduler created in the application lifespan."""
    scheduler = getattr(request.app.state, "promotion_scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Promotion scheduler is not available"
        )
    return scheduler
