# Overview: Service-layer operations for staff accounts.

from __future__ import annotations

from ..extensions import db
from ..models import User, Role, Item, InventoryMovement, Department, Rank, Floor
from ..validation import (
    ValidationError,
    NotFoundError,
    ConflictError,
    DuplicateNameError,
    ModelValidationPolicy,
    validate_payload,
)
from . import auth_service, session_service


USER_POLICY = ModelValidationPolicy(
    writable_fields={
        "username", "email", "full_name", "phone", "is_active",
        "role_id", "dept_id", "rank_id", "floor_id",
    },
    required_on_create={"username", "email", "full_name", "role_id"},
)

# Fields a user may change on their own record
PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"email", "full_name", "phone", "dept_id", "rank_id", "floor_id"},
)


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def list_users(*, username: str | None = None, role: str | None = None) -> list[User]:
    """All users ordered by full name; optional username substring and role name filters."""
    query = db.session.query(User)
    if username and username.strip():
        query = query.filter(db.func.lower(User.username).contains(username.strip().lower()))
    if role and role.strip():
        query = query.join(Role, User.role_id == Role.id).filter(db.func.upper(Role.name) == role.strip().upper())
    return query.order_by(User.full_name.asc(), User.id.asc()).all()


def _check_references(patch: dict) -> None:
    if patch.get("role_id") is not None and db.session.get(Role, patch["role_id"]) is None:
        raise NotFoundError(f"Role {patch['role_id']} not found")
    for key, model in (("dept_id", Department), ("rank_id", Rank), ("floor_id", Floor)):
        if patch.get(key) is not None and db.session.get(model, patch[key]) is None:
            raise NotFoundError(f"{model.__name__} {patch[key]} not found")


def _check_unique(patch: dict, *, exclude_id: int | None = None) -> None:
    if "username" in patch:
        query = db.session.query(User).filter(db.func.lower(User.username) == patch["username"].lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise DuplicateNameError(f"Username '{patch['username']}' already exists")
    if "email" in patch:
        query = db.session.query(User).filter(User.email == patch["email"])
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise DuplicateNameError(f"Email '{patch['email']}' already exists")


def _normalize(patch: dict) -> dict:
    if "email" in patch and patch["email"]:
        email = patch["email"].lower()
        if "@" not in email:
            raise ValidationError("email must be a valid email address")
        patch["email"] = email
    return patch


def create_user(payload: dict) -> User:
    """
    Create a user. payload must carry a password of at least
    PASSWORD_MIN_LENGTH characters; it is bcrypt-hashed before storage.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    data = dict(payload)
    password = data.pop("password", None)
    try:
        password_hash = auth_service.hash_password(password)
    except auth_service.PasswordValidationError as e:
        raise ValidationError(str(e))

    patch = _normalize(validate_payload(model=User, payload=data, policy=USER_POLICY, partial=False))
    _check_references(patch)
    _check_unique(patch)

    user = User(password_hash=password_hash, **patch)
    db.session.add(user)
    db.session.commit()
    return user


def update_user(user_id: int, payload: dict) -> User:
    user = get_user(user_id)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    data = dict(payload)
    password = data.pop("password", None)

    patch = _normalize(validate_payload(model=User, payload=data, policy=USER_POLICY, partial=True))
    _check_references(patch)
    _check_unique(patch, exclude_id=user.id)

    for key, value in patch.items():
        setattr(user, key, value)

    if password:
        try:
            user.password_hash = auth_service.hash_password(password)
        except auth_service.PasswordValidationError as e:
            raise ValidationError(str(e))

    db.session.commit()

    if patch.get("is_active") is False:
        session_service.revoke_all_user_sessions(user.id, reason="User account deactivated")

    return user


def update_profile(user: User, payload: dict) -> User:
    """Self-service update of the caller's own record."""
    patch = _normalize(validate_payload(model=User, payload=payload, policy=PROFILE_POLICY, partial=True))
    _check_references(patch)
    _check_unique(patch, exclude_id=user.id)
    for key, value in patch.items():
        setattr(user, key, value)
    db.session.commit()
    return user


def reset_password(user_id: int, new_password: str) -> User:
    """Set a new password and revoke every open session of the user."""
    user = get_user(user_id)
    try:
        user.password_hash = auth_service.hash_password(new_password)
    except auth_service.PasswordValidationError as e:
        raise ValidationError(str(e))
    db.session.commit()
    session_service.revoke_all_user_sessions(user.id, reason="Password reset")
    return user


def delete_user(user_id: int, *, acting_user_id: int | None = None) -> None:
    """
    Delete a user. Their items return to the warehouse (user_id NULL),
    their movements keep history with a NULL actor, and their sessions go.
    """
    user = get_user(user_id)
    if acting_user_id is not None and acting_user_id == user.id:
        raise ConflictError("Users cannot delete their own account")

    db.session.query(Item).filter(Item.user_id == user.id).update(
        {Item.user_id: None, Item.version_id: Item.version_id + 1}, synchronize_session="fetch"
    )
    db.session.query(InventoryMovement).filter(InventoryMovement.user_id == user.id).update(
        {InventoryMovement.user_id: None}, synchronize_session="fetch"
    )
    db.session.delete(user)
    db.session.commit()
