# Overview: Dashboard statistics; item counts by category/location/owner plus stock and movement aggregates.

from __future__ import annotations

from sqlalchemy import func, case

from ..extensions import db
from ..models import (
    Item,
    MainCategory,
    SubCategory,
    ItemType,
    Department,
    Floor,
    User,
    InventoryMovement,
    MovementType,
)


LOW_STOCK_LIMIT = 20


def _low_stock_filter():
    return db.and_(Item.min_quantity > 0, Item.quantity <= Item.min_quantity)


def _main_category_stats() -> list[dict]:
    rows = (
        db.session.query(MainCategory.id, MainCategory.name, func.count(Item.id))
        .outerjoin(SubCategory, SubCategory.cat_id == MainCategory.id)
        .outerjoin(Item, Item.sub_cat_id == SubCategory.id)
        .group_by(MainCategory.id, MainCategory.name)
        .order_by(MainCategory.name.asc())
        .all()
    )
    return [{"cat_id": cat_id, "cat_name": name, "item_count": count} for cat_id, name, count in rows]


def _sub_category_stats() -> list[dict]:
    rows = (
        db.session.query(SubCategory.id, SubCategory.name, MainCategory.name, func.count(Item.id))
        .join(MainCategory, SubCategory.cat_id == MainCategory.id)
        .outerjoin(Item, Item.sub_cat_id == SubCategory.id)
        .group_by(SubCategory.id, SubCategory.name, MainCategory.name)
        .order_by(MainCategory.name.asc(), SubCategory.name.asc())
        .all()
    )
    return [
        {"sub_cat_id": sub_id, "sub_cat_name": name, "main_category_name": cat_name, "item_count": count}
        for sub_id, name, cat_name, count in rows
    ]


def _item_type_stats() -> list[dict]:
    rows = (
        db.session.query(
            ItemType.id, ItemType.name, SubCategory.id, SubCategory.name,
            MainCategory.id, MainCategory.name, func.count(Item.id),
        )
        .join(SubCategory, ItemType.sub_cat_id == SubCategory.id)
        .join(MainCategory, SubCategory.cat_id == MainCategory.id)
        .outerjoin(Item, Item.item_type_id == ItemType.id)
        .group_by(ItemType.id, ItemType.name, SubCategory.id, SubCategory.name, MainCategory.id, MainCategory.name)
        .order_by(MainCategory.name.asc(), SubCategory.name.asc(), ItemType.name.asc())
        .all()
    )
    return [
        {
            "item_type_id": type_id,
            "item_type_name": type_name,
            "sub_cat_id": sub_id,
            "sub_cat_name": sub_name,
            "cat_id": cat_id,
            "main_category_name": cat_name,
            "item_count": count,
        }
        for type_id, type_name, sub_id, sub_name, cat_id, cat_name, count in rows
    ]


def _named_counts(model, fk_column, id_key: str, name_key: str, name_column=None) -> list[dict]:
    name_column = name_column if name_column is not None else model.name
    rows = (
        db.session.query(model.id, name_column, func.count(Item.id))
        .outerjoin(Item, fk_column == model.id)
        .group_by(model.id, name_column)
        .order_by(name_column.asc())
        .all()
    )
    return [{id_key: row_id, name_key: name, "item_count": count} for row_id, name, count in rows]


def _histogram(column, key: str) -> list[dict]:
    rows = (
        db.session.query(column, func.count(Item.id))
        .filter(column.isnot(None))
        .group_by(column)
        .order_by(column.asc())
        .all()
    )
    return [{key: value, "item_count": count} for value, count in rows]


def _stock_stats() -> dict:
    total, total_quantity, low, out, in_stock = db.session.query(
        func.count(Item.id),
        func.coalesce(func.sum(Item.quantity), 0),
        func.coalesce(func.sum(case((_low_stock_filter(), 1), else_=0)), 0),
        func.coalesce(func.sum(case((Item.quantity == 0, 1), else_=0)), 0),
        func.coalesce(
            func.sum(case((db.and_(Item.quantity > 0, Item.quantity > Item.min_quantity), 1), else_=0)), 0
        ),
    ).one()
    return {
        "total_items": int(total),
        "total_quantity": int(total_quantity),
        "low_stock_count": int(low),
        "out_of_stock_count": int(out),
        "in_stock_count": int(in_stock),
    }


def _movement_stats() -> dict:
    total, total_in, total_out, items, users = (
        db.session.query(
            func.count(InventoryMovement.id),
            func.coalesce(func.sum(case((MovementType.effect == 1, InventoryMovement.quantity), else_=0)), 0),
            func.coalesce(func.sum(case((MovementType.effect == -1, InventoryMovement.quantity), else_=0)), 0),
            func.count(func.distinct(InventoryMovement.item_id)),
            func.count(func.distinct(InventoryMovement.user_id)),
        )
        .select_from(InventoryMovement)
        .join(MovementType, InventoryMovement.movement_type_id == MovementType.id)
        .one()
    )
    return {
        "total_movements": int(total),
        "total_in": int(total_in),
        "total_out": int(total_out),
        "items_with_movements": int(items),
        "users_with_movements": int(users),
    }


def _movement_type_stats() -> list[dict]:
    rows = (
        db.session.query(
            MovementType.id,
            MovementType.type_name,
            MovementType.type_code,
            func.count(InventoryMovement.id),
            func.coalesce(func.sum(InventoryMovement.quantity), 0),
        )
        .outerjoin(InventoryMovement, InventoryMovement.movement_type_id == MovementType.id)
        .filter(MovementType.is_active.is_(True))
        .group_by(MovementType.id, MovementType.type_name, MovementType.type_code)
        .order_by(MovementType.id.asc())
        .all()
    )
    return [
        {
            "movement_type_id": type_id,
            "type_name": name,
            "type_code": code,
            "movement_count": count,
            "total_quantity": int(quantity),
        }
        for type_id, name, code, count, quantity in rows
    ]


def _low_stock_items() -> list[dict]:
    items = (
        db.session.query(Item)
        .filter(_low_stock_filter())
        .order_by(Item.quantity.asc(), Item.id.asc())
        .limit(LOW_STOCK_LIMIT)
        .all()
    )
    return [
        {
            "item_id": item.id,
            "item_name": item.name,
            "quantity": item.quantity,
            "min_quantity": item.min_quantity,
            "shortage": item.min_quantity - item.quantity,
            "unit": item.unit,
            "dept_name": item.department.name if item.department else None,
            "floor_name": item.floor.name if item.floor else None,
            "sub_cat_name": item.sub_category.name if item.sub_category else None,
        }
        for item in items
    ]


def get_statistics() -> dict:
    """Everything the dashboard shows, in one read-only pass."""
    return {
        "main_categories": _main_category_stats(),
        "sub_categories": _sub_category_stats(),
        "item_types": _item_type_stats(),
        "departments": _named_counts(Department, Item.dept_id, "dept_id", "dept_name"),
        "floors": _named_counts(Floor, Item.floor_id, "floor_id", "floor_name"),
        "users": _named_counts(User, Item.user_id, "user_id", "user_name", name_column=User.full_name),
        "situations": _histogram(Item.situation, "situation"),
        "kinds": _histogram(Item.kind, "kind"),
        "warehouse": {"item_count": db.session.query(Item).filter(Item.user_id.is_(None)).count()},
        "total_items": {"total_count": db.session.query(Item).count()},
        "stock": _stock_stats(),
        "movements": _movement_stats(),
        "movement_types": _movement_type_stats(),
        "low_stock_items": _low_stock_items(),
    }
