"""Tests for user registration and authentication"""
import pytest

from subtracker.application.users import RegisterUserUseCase, UserValidationError
from subtracker.auth import authenticate_user, get_user_by_email, verify_password


def test_register_hashes_password(db_session):
    user_id = RegisterUserUseCase(db_session).execute(email="Alice@Example.com", password="s3cret-pass")
    user = get_user_by_email(db_session, "alice@example.com")
    assert user.id == user_id
    assert user.password_hash != "s3cret-pass"
    assert verify_password("s3cret-pass", user.password_hash)


@pytest.mark.parametrize("email,password", [
    ("not-an-email", "long-enough"),
    ("bob@example.com", "short"),
])
def test_register_validation(db_session, email, password):
    with pytest.raises(UserValidationError):
        RegisterUserUseCase(db_session).execute(email=email, password=password)


def test_register_duplicate_email(db_session):
    RegisterUserUseCase(db_session).execute(email="bob@example.com", password="long-enough")
    with pytest.raises(UserValidationError):
        RegisterUserUseCase(db_session).execute(email="BOB@example.com", password="other-pass")


def test_authenticate(db_session):
    RegisterUserUseCase(db_session).execute(email="carol@example.com", password="correct-horse")
    assert authenticate_user(db_session, "carol@example.com", "correct-horse") is not None
    assert authenticate_user(db_session, "carol@example.com", "wrong-horse") is None
    assert authenticate_user(db_session, "nobody@example.com", "correct-horse") is None
