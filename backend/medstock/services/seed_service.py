# Overview: Idempotent bootstrap of roles, movement types, reference data and default users.

from ..extensions import db
from ..models import User, Role, Department, Floor, Rank, MainCategory, SubCategory, ItemType
from .. import seed_data
from . import permission_service, ledger_service
from .auth_service import hash_password


def _ensure_named(model, names) -> int:
    created = 0
    for name in names:
        if not db.session.query(model).filter_by(name=name).first():
            db.session.add(model(name=name))
            created += 1
    db.session.commit()
    return created


def seed_reference_data() -> dict:
    """Departments, floors, ranks and the sample category tree."""
    counts = {
        "departments": _ensure_named(Department, seed_data.DEPARTMENTS),
        "floors": _ensure_named(Floor, seed_data.FLOORS),
        "ranks": _ensure_named(Rank, seed_data.RANKS),
        "main_categories": 0,
        "sub_categories": 0,
        "item_types": 0,
    }

    for name, description in seed_data.MAIN_CATEGORIES:
        if not db.session.query(MainCategory).filter_by(name=name).first():
            db.session.add(MainCategory(name=name, description=description))
            counts["main_categories"] += 1
    db.session.flush()

    for name, cat_name in seed_data.SUB_CATEGORIES:
        cat = db.session.query(MainCategory).filter_by(name=cat_name).one()
        if not db.session.query(SubCategory).filter_by(cat_id=cat.id, name=name).first():
            db.session.add(SubCategory(name=name, cat_id=cat.id))
            counts["sub_categories"] += 1
    db.session.flush()

    for name, sub_name in seed_data.ITEM_TYPES:
        sub = db.session.query(SubCategory).filter_by(name=sub_name).first()
        if sub and not db.session.query(ItemType).filter_by(sub_cat_id=sub.id, name=name).first():
            db.session.add(ItemType(name=name, sub_cat_id=sub.id))
            counts["item_types"] += 1

    db.session.commit()
    return counts


def seed_default_users() -> list[str]:
    """Create DEFAULT_USERS that don't exist yet; returns the usernames created."""
    created = []
    for username, email, full_name, password, role_name in seed_data.DEFAULT_USERS:
        if db.session.query(User).filter_by(username=username).first():
            continue
        role = db.session.query(Role).filter_by(name=role_name).one()
        db.session.add(User(
            username=username,
            email=email,
            full_name=full_name,
            password_hash=hash_password(password),
            role_id=role.id,
            is_active=True,
        ))
        created.append(username)
    db.session.commit()
    return created


def initialize_system(*, with_users: bool = True) -> dict:
    """Full bootstrap. Safe to run repeatedly."""
    summary = {
        "roles": permission_service.create_default_roles(),
        "role_permissions": permission_service.assign_default_role_permissions(),
        "movement_types": ledger_service.ensure_movement_types(),
    }
    summary.update(seed_reference_data())
    summary["users"] = seed_default_users() if with_users else []
    return summary
