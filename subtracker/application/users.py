"""
User registration use case.
"""
import re

from sqlalchemy.orm import Session

from subtracker.auth import hash_password, get_user_by_email
from subtracker.infrastructure.db.models import User

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


class UserValidationError(ValueError):
    pass


class RegisterUserUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, email: str, password: str) -> int:
        email = (email or "").strip().lower()
        if not _EMAIL_RE.match(email):
            raise UserValidationError("Invalid email address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise UserValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if get_user_by_email(self.db, email):
            raise UserValidationError("Email is already registered")

        user = User(email=email, password_hash=hash_password(password))
        self.db.add(user)
        self.db.flush()
        self.db.commit()
        return user.id
