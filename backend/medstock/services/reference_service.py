# Overview: Service-layer operations for single-name reference tables (departments, ranks, floors).

from __future__ import annotations

from ..extensions import db
from ..models import Department, Rank, Floor, Item, User, InventoryMovement
from ..validation import NotFoundError, ConflictError, DuplicateNameError, require_name


REFERENCE_MODELS = {
    "department": Department,
    "rank": Rank,
    "floor": Floor,
}


def _model(kind: str):
    try:
        return REFERENCE_MODELS[kind]
    except KeyError:
        raise ValueError(f"unknown reference kind: {kind}")


def _label(model) -> str:
    return model.__name__


def _ensure_unique(model, name: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(model).filter(db.func.lower(model.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise DuplicateNameError(f"{_label(model)} '{name}' already exists")


def list_entries(kind: str):
    model = _model(kind)
    return db.session.query(model).order_by(model.name.asc()).all()


def get_entry(kind: str, entry_id: int):
    model = _model(kind)
    entry = db.session.get(model, entry_id)
    if entry is None:
        raise NotFoundError(f"{_label(model)} {entry_id} not found")
    return entry


def create_entry(kind: str, payload: dict):
    model = _model(kind)
    name = require_name(payload)
    _ensure_unique(model, name)
    entry = model(name=name)
    db.session.add(entry)
    db.session.commit()
    return entry


def update_entry(kind: str, entry_id: int, payload: dict):
    entry = get_entry(kind, entry_id)
    model = _model(kind)
    name = require_name(payload)
    _ensure_unique(model, name, exclude_id=entry.id)
    entry.name = name
    db.session.commit()
    return entry


def _reference_count(kind: str, entry_id: int) -> int:
    if kind == "department":
        return (
            db.session.query(Item).filter(Item.dept_id == entry_id).count()
            + db.session.query(User).filter(User.dept_id == entry_id).count()
            + db.session.query(InventoryMovement).filter(
                db.or_(InventoryMovement.from_dept_id == entry_id, InventoryMovement.to_dept_id == entry_id)
            ).count()
        )
    if kind == "floor":
        return (
            db.session.query(Item).filter(Item.floor_id == entry_id).count()
            + db.session.query(User).filter(User.floor_id == entry_id).count()
            + db.session.query(InventoryMovement).filter(
                db.or_(InventoryMovement.from_floor_id == entry_id, InventoryMovement.to_floor_id == entry_id)
            ).count()
        )
    return db.session.query(User).filter(User.rank_id == entry_id).count()


def delete_entry(kind: str, entry_id: int) -> None:
    entry = get_entry(kind, entry_id)
    if _reference_count(kind, entry.id):
        raise ConflictError(f"{_label(_model(kind))} '{entry.name}' is still in use")
    db.session.delete(entry)
    db.session.commit()
