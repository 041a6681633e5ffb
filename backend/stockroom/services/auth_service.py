# Overview: Service-layer operations for auth; user creation and credential checks.

"""
Authentication Service

WHY: Sales and stock adjustments carry the acting user for the audit trail.
Uses bcrypt for password hashing.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..errors import DuplicateEntry, ValidationError
from ..models import User
from ..permissions import ROLES


def validate_password_strength(password: str) -> None:
    if not password or len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long", details={"field": "password"})
    if not re.search(r'[A-Za-z]', password) or not re.search(r'\d', password):
        raise ValidationError("Password must contain a letter and a digit", details={"field": "password"})


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw is timing-safe. A malformed stored hash verifies as False.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, password: str, role: str = "staff", email: str | None = None) -> User:
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}", details={"field": "role"})

    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required", details={"field": "username"})

    if db.session.query(User.id).filter_by(username=username).first() is not None:
        raise DuplicateEntry("Username already exists", details={"username": username})

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """Return the active user for valid credentials, None otherwise."""
    user = db.session.query(User).filter(
        User.username == username,
        User.is_active.is_(True),
    ).first()

    if user and verify_password(password, user.password_hash):
        return user
    return None
