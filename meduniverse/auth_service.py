from __future__ import annotations

import logging

from sqlalchemy import select

from .auth_models import Role, User
from .auth_security import hash_password, verify_password
from .db import db_session

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def register_user(
    email: str,
    password: str,
    full_name: str,
    role: Role | str = Role.PATIENT,
    phone: str | None = None,
) -> str:
    email = normalize_email(email)
    role = Role(role) if not isinstance(role, Role) else role
    if not email or not password:
        raise ValueError("Email and password are required.")
    if "@" not in email:
        raise ValueError("Invalid email address.")
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters.")
    if not (full_name or "").strip():
        raise ValueError("Full name is required.")
    if role == Role.ADMIN:
        raise PermissionError("Admin accounts cannot be self-registered.")

    with db_session() as s:
        exists = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if exists:
            raise ValueError("Email already registered.")

        u = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name.strip(),
            phone=(phone or "").strip() or None,
            role=role,
            is_active=True,
        )
        s.add(u)
        s.flush()
        logger.info("Registered %s account %s", role.value, u.id)
        return u.id


def ensure_admin(username: str, password: str, full_name: str = "Administrator") -> str:
    """Create the admin account, or reset its password when it already exists."""
    username = normalize_email(username)
    if not username or not password:
        raise ValueError("Username and password are required.")

    with db_session() as s:
        u = s.execute(select(User).where(User.email == username)).scalar_one_or_none()
        if u is None:
            u = User(email=username, password_hash=hash_password(password), full_name=full_name, role=Role.ADMIN)
            s.add(u)
        else:
            u.password_hash = hash_password(password)
            u.role = Role.ADMIN
            u.is_active = True
        s.flush()
        return u.id


def reset_password(email: str, new_password: str) -> bool:
    email = normalize_email(email)
    with db_session() as s:
        u = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if u is None:
            return False
        u.password_hash = hash_password(new_password)
        u.is_active = True
        return True


def authenticate(email: str, password: str) -> User | None:
    email = normalize_email(email)
    with db_session() as s:
        u = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if not u or not u.is_active:
            return None
        if not verify_password(password, u.password_hash):
            return None
        return u


def get_user_by_id(user_id: str) -> User | None:
    with db_session() as s:
        return s.get(User, user_id)


def get_user_by_email(email: str) -> User | None:
    with db_session() as s:
        return s.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()
