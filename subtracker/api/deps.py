"""
FastAPI dependencies (DB session, authentication, exchange rates)
"""
from fastapi import Depends, Request, HTTPException, status
from sqlalchemy.orm import Session

from subtracker.infrastructure.db.session import get_db as _get_db
from subtracker.infrastructure.db.models import User
from subtracker.infrastructure.exchange_rates import ExchangeRateService, get_exchange_rate_service


# Re-export get_db for convenience
get_db = _get_db


def get_rate_service() -> ExchangeRateService:
    return get_exchange_rate_service()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Current user from the session cookie (for API endpoints)

    Raises:
        HTTPException(401): not logged in, or the user no longer exists

    Usage:
        @router.get("/profile")
        def get_profile(user: User = Depends(get_current_user)):
            ...
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user
