# Overview: Ledger engine; typed movements maintain Item.quantity, deletes replay the remaining history.

"""
Inventory ledger invariants (authoritative)

- Item.quantity is the fold of the item's movements in (movement_date, id) order.
- A movement stores previous_qty / new_qty: the item's quantity immediately
  before and after it at creation time.
- ADJUSTMENT sets quantity to the movement's quantity. Every other type adds
  quantity * effect (effect in {+1, -1, 0}).
- Quantity never goes below zero. A movement that would fail is rejected with
  InsufficientStockError and nothing is written.
- Deleting a movement replays the remaining history, seeded from the first
  remaining movement's previous_qty. With no history left the item's stored
  quantity is kept as-is.
"""

from __future__ import annotations

from typing import Iterable

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Item, InventoryMovement, MovementType
from ..models.inventory import TYPE_ADJUSTMENT
from ..seed_data import MOVEMENT_TYPES
from ..validation import (
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    InternalError,
    coerce_int,
    parse_optional_int,
)
from medstock.time_utils import utcnow
from .concurrency import run_with_retry
from .repository import InventoryRepository


DEFAULT_LIST_LIMIT = 200


def apply_movement(previous_qty: int, quantity: int, type_code: str, effect: int) -> int:
    """Quantity after one movement. ADJUSTMENT is an absolute set; the rest are deltas."""
    if type_code == TYPE_ADJUSTMENT:
        return quantity
    return previous_qty + quantity * effect


def replay_movements(movements: Iterable, baseline: int) -> int:
    """
    Fold movements (already in replay order) onto baseline.

    Raises InsufficientStockError if the running total drops below zero at
    any step.
    """
    total = baseline
    for movement in movements:
        previous = total
        total = apply_movement(previous, movement.quantity, movement.type_code, movement.effect)
        if total < 0:
            raise InsufficientStockError(
                f"Replaying movement {movement.id} would make quantity negative ({total})",
                item_id=movement.item_id,
                available=previous,
                requested=movement.quantity,
            )
    return total


def _validate_quantity(quantity) -> int:
    if quantity is None:
        raise ValidationError("quantity is required")
    value = coerce_int("quantity", quantity)
    if value <= 0:
        raise ValidationError("quantity must be a positive integer")
    return value


def _require_id(value, key: str) -> int:
    parsed = parse_optional_int(value, key)
    if parsed is None:
        raise ValidationError(f"{key} is required")
    return parsed


def _override_unit(session, item: Item, unit) -> None:
    """
    Unit update, isolated in a SAVEPOINT inside the movement transaction.

    A database failure here is logged and does not block the movement. If
    the movement itself is rejected, the unit change is rolled back with it.
    """
    if unit is None or not isinstance(unit, str) or not unit.strip():
        return
    unit = unit.strip()
    if unit == item.unit:
        return
    if len(unit) > Item.UNIT_MAX_LENGTH:
        current_app.logger.warning(
            "Ignoring unit override %r for item %s: exceeds %d characters", unit, item.id, Item.UNIT_MAX_LENGTH
        )
        return
    try:
        with session.begin_nested():
            item.unit = unit
    except SQLAlchemyError:
        current_app.logger.exception("Unit override failed for item %s", item.id)


def add_movement(
    *,
    item_id,
    movement_type_id,
    quantity,
    user_id,
    reference_no: str | None = None,
    notes: str | None = None,
    from_dept_id=None,
    to_dept_id=None,
    from_floor_id=None,
    to_floor_id=None,
    unit: str | None = None,
    repo: InventoryRepository | None = None,
) -> tuple[InventoryMovement, Item]:
    """
    Record a movement and update the item's running quantity atomically.

    The movement date is always the server insert time.

    Returns (movement, item). Raises ValidationError, NotFoundError,
    InsufficientStockError or InternalError; on any error nothing is written.
    """
    repo = repo or InventoryRepository()
    session = repo.session

    item_id = _require_id(item_id, "item_id")
    movement_type_id = _require_id(movement_type_id, "movement_type_id")
    user_id = _require_id(user_id, "user_id")
    quantity = _validate_quantity(quantity)

    from_dept_id = parse_optional_int(from_dept_id, "from_dept_id")
    to_dept_id = parse_optional_int(to_dept_id, "to_dept_id")
    from_floor_id = parse_optional_int(from_floor_id, "from_floor_id")
    to_floor_id = parse_optional_int(to_floor_id, "to_floor_id")

    def _op():
        item = repo.get_item(item_id, lock=True)
        if item is None:
            raise NotFoundError(f"Item {item_id} not found")

        movement_type = repo.get_movement_type(movement_type_id)
        if movement_type is None:
            raise NotFoundError(f"Movement type {movement_type_id} not found")
        if not movement_type.is_active:
            raise ValidationError(f"Movement type {movement_type.type_code} is inactive")

        if repo.get_user(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

        _override_unit(session, item, unit)

        previous_qty = item.quantity
        new_qty = apply_movement(previous_qty, quantity, movement_type.type_code, movement_type.effect)
        if new_qty < 0:
            raise InsufficientStockError(
                f"Insufficient stock for item {item.id}: available {previous_qty}, requested {quantity}",
                item_id=item.id,
                available=previous_qty,
                requested=quantity,
            )

        movement = InventoryMovement(
            item_id=item.id,
            movement_type_id=movement_type.id,
            quantity=quantity,
            previous_qty=previous_qty,
            new_qty=new_qty,
            user_id=user_id,
            reference_no=(reference_no or "").strip() or None,
            notes=(notes or "").strip() or None,
            from_dept_id=from_dept_id,
            to_dept_id=to_dept_id,
            from_floor_id=from_floor_id,
            to_floor_id=to_floor_id,
            movement_date=utcnow(),
        )
        session.add(movement)
        item.quantity = new_qty
        session.commit()
        return movement, item

    try:
        return run_with_retry(_op, session=session)
    except ValueError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        current_app.logger.exception("add_movement failed for item %s", item_id)
        raise InternalError("Failed to record movement") from exc


def delete_movement(movement_id, *, repo: InventoryRepository | None = None) -> Item:
    """
    Delete a movement and recompute the owning item's quantity by replaying
    the remaining history. Returns the refreshed item.
    """
    repo = repo or InventoryRepository()
    session = repo.session
    movement_id = _require_id(movement_id, "movement_id")

    def _op():
        movement = repo.get_movement(movement_id)
        if movement is None:
            raise NotFoundError(f"Movement {movement_id} not found")

        item = repo.get_item(movement.item_id, lock=True)
        if item is None:
            raise NotFoundError(f"Item {movement.item_id} not found")

        session.delete(movement)
        session.flush()

        remaining = repo.list_movements_for_item(item.id)
        if remaining:
            baseline = remaining[0].previous_qty or 0
        else:
            baseline = item.quantity
            current_app.logger.warning(
                "Item %s has no remaining movements; keeping stored quantity %s", item.id, item.quantity
            )

        item.quantity = replay_movements(remaining, baseline)
        session.commit()
        return item

    try:
        return run_with_retry(_op, session=session)
    except ValueError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        current_app.logger.exception("delete_movement failed for movement %s", movement_id)
        raise InternalError("Failed to delete movement") from exc


def list_movements(
    *,
    item_id=None,
    movement_type_id=None,
    limit=None,
    repo: InventoryRepository | None = None,
) -> list[InventoryMovement]:
    """Newest first (movement_date DESC, id DESC); limit clamped to [1, MOVEMENT_LIST_MAX_LIMIT]."""
    repo = repo or InventoryRepository()
    item_id = parse_optional_int(item_id, "item_id")
    movement_type_id = parse_optional_int(movement_type_id, "movement_type_id")
    limit = parse_optional_int(limit, "limit")

    max_limit = current_app.config.get("MOVEMENT_LIST_MAX_LIMIT", 500)
    if limit is None:
        limit = DEFAULT_LIST_LIMIT
    limit = max(1, min(limit, max_limit))

    query = repo.session.query(InventoryMovement)
    if item_id is not None:
        query = query.filter(InventoryMovement.item_id == item_id)
    if movement_type_id is not None:
        query = query.filter(InventoryMovement.movement_type_id == movement_type_id)

    return (
        query.order_by(InventoryMovement.movement_date.desc(), InventoryMovement.id.desc())
        .limit(limit)
        .all()
    )


def list_movement_types(*, include_inactive: bool = False) -> list[MovementType]:
    query = db.session.query(MovementType)
    if not include_inactive:
        query = query.filter(MovementType.is_active.is_(True))
    return query.order_by(MovementType.id.asc()).all()


def ensure_movement_types() -> int:
    """
    Seed the movement type catalog. Idempotent; returns count created.
    """
    created = 0
    for type_code, type_name, effect, description in MOVEMENT_TYPES:
        existing = db.session.query(MovementType).filter_by(type_code=type_code).first()
        if existing:
            continue
        db.session.add(MovementType(
            type_code=type_code,
            type_name=type_name,
            effect=effect,
            description=description,
            is_active=True,
        ))
        created += 1
    db.session.commit()
    return created
