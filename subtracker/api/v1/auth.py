"""
Authentication routes (register, login, logout)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from subtracker.api.deps import get_db
from subtracker.auth import authenticate_user
from subtracker.application.users import RegisterUserUseCase, UserValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class CredentialsRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    user_id: int
    email: str


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(req: CredentialsRequest, db: Session = Depends(get_db)):
    """Create an account"""
    try:
        user_id = RegisterUserUseCase(db).execute(email=req.email, password=req.password)
    except UserValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UserResponse(user_id=user_id, email=req.email.strip().lower())


@router.post("/login", response_model=UserResponse)
def login(request: Request, req: CredentialsRequest, db: Session = Depends(get_db)):
    """Log in and store user_id in the session"""
    user = authenticate_user(db, req.email, req.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    request.session["user_id"] = user.id
    logger.info("User %d logged in", user.id)
    return UserResponse(user_id=user.id, email=user.email)


@router.post("/logout")
def logout(request: Request):
    """Log out"""
    request.session.clear()
    return {"ok": True}
