# Overview: Service-layer operations for owner accounts; passwords, registration, login and first-run setup.

"""
Owner accounts.

SIJUK is run by one household business, so the signup screen only works
while the users table is empty. Later accounts (a second family member, a
test login) are added from the shell with ``flask users create``.

Passwords are bcrypt hashes; the cost comes from BCRYPT_LOG_ROUNDS so the
test suite can turn it down. Bearer tokens live in session_service.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, Material, Warung
from sijuk.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8

# (pattern, what is missing) checked in order; the first miss is reported
PASSWORD_RULES = [
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[!@#$%^&*(),.'\":{}|<>]"), "a special character"),
]


class PasswordValidationError(Exception):
    pass


class RegistrationClosedError(Exception):
    """Signup attempted after the first owner account exists."""


def validate_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    for pattern, missing in PASSWORD_RULES:
        if not pattern.search(password):
            raise PasswordValidationError(f"Password must contain {missing}")


def hash_password(password: str) -> str:
    """Check strength, then return the bcrypt hash as text for the users table."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_LOG_ROUNDS", 12))
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # not a bcrypt hash at all
        return False


def can_register() -> bool:
    return db.session.query(User.id).first() is None


def create_user(name: str, username: str, email: str, password: str) -> User:
    """
    Insert an owner account.

    Raises ValueError when the username or email is taken, and
    PasswordValidationError when the password is too weak. Used by both the
    signup route and the CLI.
    """
    taken = db.session.query(User.id).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if taken is not None:
        raise ValueError("Username or email already exists")

    user = User(
        name=name,
        username=username,
        email=email,
        password_hash=hash_password(password),
    )
    db.session.add(user)
    db.session.commit()

    current_app.logger.info("Created owner account %s", username)
    return user


def register(name: str, username: str, email: str, password: str) -> User:
    if not can_register():
        raise RegistrationClosedError("Registration is closed")
    return create_user(name=name, username=username, email=email, password=password)


def authenticate(identifier: str, password: str) -> User | None:
    """
    Look up an active account by username or email and check the password.

    On success the login time is stamped on the account. Unknown accounts,
    deactivated ones and wrong passwords all give None.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier),
        User.is_active.is_(True),
    ).first()

    if user is None or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def _owns_any(model, user_id: int) -> bool:
    return db.session.query(model.id).filter_by(user_id=user_id).first() is not None


def onboarding_status(user: User) -> dict:
    """
    Setup counts as finished once the owner pressed finish or skip, or as soon
    as a first material or warung exists.
    """
    has_materials = _owns_any(Material, user.id)
    has_warungs = _owns_any(Warung, user.id)

    return {
        "completed": user.onboarding_completed_at is not None or has_materials or has_warungs,
        "completed_at": user.to_dict()["onboarding_completed_at"],
        "has_materials": has_materials,
        "has_warungs": has_warungs,
    }


def complete_onboarding(user: User) -> User:
    if user.onboarding_completed_at is None:
        user.onboarding_completed_at = utcnow()
        db.session.commit()
    return user
