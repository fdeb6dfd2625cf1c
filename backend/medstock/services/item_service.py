# Overview: Service-layer operations for items; descriptive fields only, quantity belongs to the ledger.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Item, User, Department, Floor, SubCategory, ItemType
from ..validation import (
    NotFoundError,
    ValidationError,
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_item,
    parse_optional_int,
)


# quantity is deliberately absent: only ledger_service writes it
ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "serial", "kind", "situation", "properties",
        "hdd", "ram", "ip", "comp_name", "lock_num",
        "min_quantity", "unit",
        "user_id", "dept_id", "floor_id", "sub_cat_id", "item_type_id",
    },
    required_on_create={"name"},
)

_REFERENCES = (
    ("user_id", User),
    ("dept_id", Department),
    ("floor_id", Floor),
    ("sub_cat_id", SubCategory),
    ("item_type_id", ItemType),
)

WAREHOUSE_TOKENS = {"0", "-1", "warehouse"}


def _check_references(patch: dict) -> None:
    for key, model in _REFERENCES:
        if patch.get(key) is not None and db.session.get(model, patch[key]) is None:
            raise NotFoundError(f"{model.__name__} {patch[key]} not found")
    if patch.get("item_type_id") is not None and patch.get("sub_cat_id") is not None:
        item_type = db.session.get(ItemType, patch["item_type_id"])
        if item_type.sub_cat_id != patch["sub_cat_id"]:
            raise ValidationError("item_type_id does not belong to sub_cat_id")


def get_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if item is None:
        raise NotFoundError(f"Item {item_id} not found")
    return item


def list_items(filters: dict | None = None) -> list[Item]:
    """
    Items ordered by name.

    filters: cat_id, sub_cat_id, item_type_id, dept_id, user_id
    (0 / -1 / "warehouse" mean unassigned), and case-insensitive substring
    filters serial, name, ip, comp_name.
    """
    filters = filters or {}
    query = db.session.query(Item)

    cat_id = parse_optional_int(filters.get("cat_id"), "cat_id")
    if cat_id is not None:
        query = query.join(SubCategory, Item.sub_cat_id == SubCategory.id).filter(SubCategory.cat_id == cat_id)

    for key, column in (
        ("sub_cat_id", Item.sub_cat_id),
        ("item_type_id", Item.item_type_id),
        ("dept_id", Item.dept_id),
    ):
        value = parse_optional_int(filters.get(key), key)
        if value is not None:
            query = query.filter(column == value)

    raw_user = filters.get("user_id")
    if raw_user is not None and str(raw_user).strip() != "":
        if str(raw_user).strip().lower() in WAREHOUSE_TOKENS:
            query = query.filter(Item.user_id.is_(None))
        else:
            query = query.filter(Item.user_id == parse_optional_int(raw_user, "user_id"))

    for key, column in (
        ("serial", Item.serial),
        ("name", Item.name),
        ("ip", Item.ip),
        ("comp_name", Item.comp_name),
    ):
        value = filters.get(key)
        if isinstance(value, str) and value.strip():
            query = query.filter(db.func.lower(column).contains(value.strip().lower()))

    return query.order_by(Item.name.asc(), Item.id.asc()).all()


def create_item(payload: dict) -> Item:
    """New items start at quantity 0; stock arrives through movements."""
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
    enforce_rules_item(patch)
    _check_references(patch)

    if not patch.get("unit"):
        patch["unit"] = current_app.config.get("DEFAULT_ITEM_UNIT", "piece")

    item = Item(quantity=0, **patch)
    db.session.add(item)
    db.session.commit()
    return item


def update_item(item_id: int, payload: dict) -> Item:
    item = get_item(item_id)
    if isinstance(payload, dict) and "quantity" in payload:
        raise ValidationError("quantity can only be changed through inventory movements")
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
    enforce_rules_item(patch)

    check = dict(patch)
    if "item_type_id" in check and "sub_cat_id" not in check:
        check["sub_cat_id"] = item.sub_cat_id
    _check_references(check)

    for key, value in patch.items():
        setattr(item, key, value)
    db.session.commit()
    return item


def delete_item(item_id: int) -> None:
    """Deletes the item and, by cascade, its movement history."""
    item = get_item(item_id)
    db.session.delete(item)
    db.session.commit()
