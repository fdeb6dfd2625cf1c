# Overview: Service-layer operations for the category tree (main category / sub category / item type).

"""
Category tree rules:
- Main category names are unique (case-insensitive).
- Sub category names are unique within their main category.
- Item type names are unique within their sub category.
- A node that still has children or items cannot be deleted.
"""

from __future__ import annotations

from ..extensions import db
from ..models import MainCategory, SubCategory, ItemType, Item
from ..validation import (
    ValidationError,
    NotFoundError,
    ConflictError,
    DuplicateNameError,
    require_name,
    parse_optional_int,
)


def _description(payload: dict):
    raw = payload.get("description")
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError("description must be a string")
    return raw.strip() or None


def _require_parent(payload: dict, key: str, model):
    parent_id = parse_optional_int(payload.get(key), key)
    if parent_id is None:
        raise ValidationError(f"{key} is required")
    parent = db.session.get(model, parent_id)
    if parent is None:
        raise NotFoundError(f"{model.__name__} {parent_id} not found")
    return parent


# -- MAIN CATEGORIES --

def list_main_categories() -> list[MainCategory]:
    return db.session.query(MainCategory).order_by(MainCategory.name.asc()).all()


def get_main_category(cat_id: int) -> MainCategory:
    cat = db.session.get(MainCategory, cat_id)
    if cat is None:
        raise NotFoundError(f"Main category {cat_id} not found")
    return cat


def _ensure_main_unique(name: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(MainCategory).filter(db.func.lower(MainCategory.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(MainCategory.id != exclude_id)
    if query.first():
        raise DuplicateNameError(f"Main category '{name}' already exists")


def create_main_category(payload: dict) -> MainCategory:
    name = require_name(payload)
    _ensure_main_unique(name)
    cat = MainCategory(name=name, description=_description(payload))
    db.session.add(cat)
    db.session.commit()
    return cat


def update_main_category(cat_id: int, payload: dict) -> MainCategory:
    cat = get_main_category(cat_id)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if "name" in payload:
        name = require_name(payload)
        _ensure_main_unique(name, exclude_id=cat.id)
        cat.name = name
    if "description" in payload:
        cat.description = _description(payload)
    db.session.commit()
    return cat


def delete_main_category(cat_id: int) -> None:
    cat = get_main_category(cat_id)
    if db.session.query(SubCategory).filter_by(cat_id=cat.id).count():
        raise ConflictError(f"Main category '{cat.name}' still has sub categories")
    db.session.delete(cat)
    db.session.commit()


# -- SUB CATEGORIES --

def list_sub_categories(*, cat_id: int | None = None) -> list[SubCategory]:
    query = db.session.query(SubCategory).join(MainCategory, SubCategory.cat_id == MainCategory.id)
    if cat_id is not None:
        query = query.filter(SubCategory.cat_id == cat_id)
    return query.order_by(MainCategory.name.asc(), SubCategory.name.asc()).all()


def get_sub_category(sub_cat_id: int) -> SubCategory:
    sub = db.session.get(SubCategory, sub_cat_id)
    if sub is None:
        raise NotFoundError(f"Sub category {sub_cat_id} not found")
    return sub


def _ensure_sub_unique(name: str, cat_id: int, *, exclude_id: int | None = None) -> None:
    query = db.session.query(SubCategory).filter(
        SubCategory.cat_id == cat_id,
        db.func.lower(SubCategory.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(SubCategory.id != exclude_id)
    if query.first():
        raise DuplicateNameError(f"Sub category '{name}' already exists in this main category")


def create_sub_category(payload: dict) -> SubCategory:
    name = require_name(payload)
    parent = _require_parent(payload, "cat_id", MainCategory)
    _ensure_sub_unique(name, parent.id)
    sub = SubCategory(name=name, cat_id=parent.id, description=_description(payload))
    db.session.add(sub)
    db.session.commit()
    return sub


def update_sub_category(sub_cat_id: int, payload: dict) -> SubCategory:
    sub = get_sub_category(sub_cat_id)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cat_id = sub.cat_id
    if "cat_id" in payload:
        cat_id = _require_parent(payload, "cat_id", MainCategory).id
    name = require_name(payload) if "name" in payload else sub.name

    if name.lower() != sub.name.lower() or cat_id != sub.cat_id:
        _ensure_sub_unique(name, cat_id, exclude_id=sub.id)

    sub.name = name
    sub.cat_id = cat_id
    if "description" in payload:
        sub.description = _description(payload)
    db.session.commit()
    return sub


def delete_sub_category(sub_cat_id: int) -> None:
    sub = get_sub_category(sub_cat_id)
    if db.session.query(ItemType).filter_by(sub_cat_id=sub.id).count():
        raise ConflictError(f"Sub category '{sub.name}' still has item types")
    if db.session.query(Item).filter_by(sub_cat_id=sub.id).count():
        raise ConflictError(f"Sub category '{sub.name}' still has items")
    db.session.delete(sub)
    db.session.commit()


# -- ITEM TYPES --

def list_item_types(*, sub_cat_id: int | None = None) -> list[ItemType]:
    query = db.session.query(ItemType)
    if sub_cat_id is not None:
        query = query.filter(ItemType.sub_cat_id == sub_cat_id)
    return query.order_by(ItemType.name.asc()).all()


def get_item_type(item_type_id: int) -> ItemType:
    item_type = db.session.get(ItemType, item_type_id)
    if item_type is None:
        raise NotFoundError(f"Item type {item_type_id} not found")
    return item_type


def _ensure_item_type_unique(name: str, sub_cat_id: int, *, exclude_id: int | None = None) -> None:
    query = db.session.query(ItemType).filter(
        ItemType.sub_cat_id == sub_cat_id,
        db.func.lower(ItemType.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(ItemType.id != exclude_id)
    if query.first():
        raise DuplicateNameError(f"Item type '{name}' already exists in this sub category")


def create_item_type(payload: dict) -> ItemType:
    name = require_name(payload)
    parent = _require_parent(payload, "sub_cat_id", SubCategory)
    _ensure_item_type_unique(name, parent.id)
    item_type = ItemType(name=name, sub_cat_id=parent.id)
    db.session.add(item_type)
    db.session.commit()
    return item_type


def update_item_type(item_type_id: int, payload: dict) -> ItemType:
    item_type = get_item_type(item_type_id)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    sub_cat_id = item_type.sub_cat_id
    if "sub_cat_id" in payload:
        sub_cat_id = _require_parent(payload, "sub_cat_id", SubCategory).id
    name = require_name(payload) if "name" in payload else item_type.name

    if name.lower() != item_type.name.lower() or sub_cat_id != item_type.sub_cat_id:
        _ensure_item_type_unique(name, sub_cat_id, exclude_id=item_type.id)

    item_type.name = name
    item_type.sub_cat_id = sub_cat_id
    db.session.commit()
    return item_type


def delete_item_type(item_type_id: int) -> None:
    item_type = get_item_type(item_type_id)
    if db.session.query(Item).filter_by(item_type_id=item_type.id).count():
        raise ConflictError(f"Item type '{item_type.name}' still has items")
    db.session.delete(item_type)
    db.session.commit()
