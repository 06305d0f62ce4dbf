# backend/kasir/services/users_service.py
"""
User management.

Every transaction, stock movement and cash drawer entry is attributed to a
user id. There is no login: the boundary injects the configured acting user.

Passwords are hashed with bcrypt before storage and never serialized.
"""
from __future__ import annotations

import logging

import bcrypt
from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import User, UserRole
from ..validation import ConflictError

log = logging.getLogger(__name__)

USER_MUTABLE_FIELDS = {"username", "full_name", "role", "is_active"}


def hash_password(password: str) -> str:
    """Hash password using bcrypt (cost factor from BCRYPT_ROUNDS, default 12)."""
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def _ensure_username_free(username: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User).filter(User.username == username)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError(f"Username '{username}' already exists")


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User with id {user_id} not found", details={"user_id": user_id})
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username.asc(), User.id.asc()).all()


def create_user(*, patch: dict, user_id: int | None = None) -> User:
    """
    Create user from a validated patch dict.

    patch must carry username, full_name, role and the plain password.
    user_id pins the primary key (used when bootstrapping the acting user).
    """
    _ensure_username_free(patch["username"])

    user = User(
        username=patch["username"],
        full_name=patch["full_name"],
        role=patch.get("role") or UserRole.CASHIER,
        is_active=patch.get("is_active", True),
        password_hash=hash_password(patch["password"]),
    )
    if user_id is not None:
        user.id = user_id

    db.session.add(user)
    db.session.commit()
    log.info("user_created user_id=%s username=%s role=%s", user.id, user.username, user.role.value)
    return user


def update_user(*, user_id: int, patch: dict) -> User:
    user = get_user(user_id)

    if "username" in patch and patch["username"] != user.username:
        _ensure_username_free(patch["username"], exclude_user_id=user.id)

    for k, v in patch.items():
        if k in USER_MUTABLE_FIELDS:
            setattr(user, k, v)

    if patch.get("password") is not None:
        user.password_hash = hash_password(patch["password"])

    db.session.commit()
    log.info("user_updated user_id=%s fields=%s", user.id, ",".join(sorted(patch.keys())))
    return user
