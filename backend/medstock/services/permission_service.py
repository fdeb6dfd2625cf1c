# Overview: Service-layer operations for roles, permission rows and security event logging.

"""
Role permission storage and ability enforcement with audit trail.

DESIGN PRINCIPLES:
- Fail closed: deny by default, require an explicit allow row
- Log denials only: granted checks are not logged
- Stored tokens are validated against the ability vocabulary on write,
  so compile-time skips only happen for legacy or hand-edited rows
"""

from ..extensions import db
from ..models import User, Role, RolePermission, SecurityEvent
from ..permissions import ROLE_DEFINITIONS, DEFAULT_ROLE_PERMISSIONS
from ..validation import ValidationError, NotFoundError
from medstock.time_utils import utcnow
from .ability_service import (
    Ability,
    AbilityDeniedError,
    parse_action,
    parse_subject,
    resolve_ability,
)


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Append a security event to the audit trail.

    event_type examples:
    - ABILITY_DENIED
    - LOGIN_FAILED
    - LOGOUT
    """
    event = SecurityEvent(
        user_id=user_id if user_id and user_id > 0 else None,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def require_ability(
    ability: Ability,
    action,
    subject,
    field: str | None = None,
    *,
    user_id: int | None = None,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Raise AbilityDeniedError (after logging ABILITY_DENIED) unless the
    ability allows (action, subject[, field]).
    """
    if ability.can(action, subject, field):
        return

    exc = AbilityDeniedError(action, subject, field)
    log_security_event(
        user_id=user_id,
        event_type="ABILITY_DENIED",
        success=False,
        resource=resource,
        action=exc.description,
        reason="guest" if ability.is_guest else f"role {ability.role_id}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise exc


def get_role(role_name: str) -> Role:
    role = db.session.query(Role).filter(db.func.upper(Role.name) == role_name.strip().upper()).first()
    if not role:
        raise NotFoundError(f"Role '{role_name}' not found")
    return role


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.id.asc()).all()


def list_role_permissions(role_name: str) -> list[RolePermission]:
    role = get_role(role_name)
    return (
        db.session.query(RolePermission)
        .filter_by(role_id=role.id)
        .order_by(RolePermission.subject.asc(), RolePermission.action.asc(), RolePermission.id.asc())
        .all()
    )


def get_user_permissions(user_id: int) -> dict:
    """Role name, stored rows and compiled rules for one user."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")

    rows = db.session.query(RolePermission).filter_by(role_id=user.role_id).all() if user.role_id else []
    ability = resolve_ability(user.id)
    return {
        "user_id": user.id,
        "username": user.username,
        "full_name": user.full_name,
        "role_name": user.role.name if user.role else None,
        "permissions": [row.to_dict() for row in rows],
        "ability": ability.to_dict(),
    }


def _normalize_tokens(subject: str, action: str) -> tuple[str, str]:
    if not isinstance(subject, str) or parse_subject(subject) is None:
        raise ValidationError(f"Unknown subject: {subject}")
    if not isinstance(action, str) or parse_action(action) is None:
        raise ValidationError(f"Unknown action: {action}")
    return subject.strip().upper(), action.strip().upper()


def grant_permission_to_role(
    role_name: str,
    subject: str,
    action: str,
    field_name: str | None = None,
    can_access: bool = True,
) -> RolePermission:
    """Add (or re-enable / disable) a permission row on a role. Idempotent."""
    role = get_role(role_name)
    subject, action = _normalize_tokens(subject, action)
    field_name = (field_name or "").strip()

    existing = db.session.query(RolePermission).filter_by(
        role_id=role.id,
        subject=subject,
        action=action,
        field_name=field_name,
    ).first()

    if existing:
        existing.can_access = bool(can_access)
        db.session.commit()
        return existing

    role_permission = RolePermission(
        role_id=role.id,
        subject=subject,
        action=action,
        field_name=field_name,
        can_access=bool(can_access),
    )
    db.session.add(role_permission)
    db.session.commit()
    return role_permission


def revoke_permission_from_role(role_name: str, subject: str, action: str, field_name: str | None = None) -> bool:
    """Delete a permission row. Returns False if it was not granted."""
    role = get_role(role_name)
    subject, action = _normalize_tokens(subject, action)

    role_permission = db.session.query(RolePermission).filter_by(
        role_id=role.id,
        subject=subject,
        action=action,
        field_name=(field_name or "").strip(),
    ).first()

    if role_permission:
        db.session.delete(role_permission)
        db.session.commit()
        return True

    return False


def create_default_roles() -> int:
    """Create standard roles if they don't exist. Returns count created."""
    created = 0
    for name, description in ROLE_DEFINITIONS:
        existing = db.session.query(Role).filter_by(name=name).first()
        if not existing:
            db.session.add(Role(name=name, description=description))
            created += 1
    db.session.commit()
    return created


def assign_default_role_permissions() -> int:
    """
    Create the DEFAULT_ROLE_PERMISSIONS rows for existing roles.
    Idempotent: skips rows that already exist.
    """
    created_count = 0

    for role_name, rows in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.session.query(Role).filter_by(name=role_name).first()
        if not role:
            continue

        for subject, action in rows:
            existing = db.session.query(RolePermission).filter_by(
                role_id=role.id,
                subject=subject,
                action=action,
                field_name="",
            ).first()

            if not existing:
                db.session.add(RolePermission(
                    role_id=role.id,
                    subject=subject,
                    action=action,
                    field_name="",
                    can_access=True,
                ))
                created_count += 1

    db.session.commit()
    return created_count
