# Overview: Narrow read interface the ledger and ability engines depend on.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case

from ..extensions import db
from ..models import Item, InventoryMovement, MovementType, User, RolePermission
from .concurrency import lock_for_update


@dataclass(frozen=True)
class MovementFact:
    """Immutable snapshot of one movement, enough to replay it."""
    id: int
    item_id: int
    movement_date: datetime
    quantity: int
    previous_qty: int | None
    new_qty: int
    type_code: str
    effect: int


class InventoryRepository:
    """
    Reads used by ledger_service and ability_service.

    Wraps a SQLAlchemy session (the app's db.session unless one is injected),
    so the engines never build ad-hoc queries of their own.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def get_item(self, item_id: int, *, lock: bool = False) -> Item | None:
        query = self.session.query(Item).filter(Item.id == item_id)
        if lock:
            query = lock_for_update(query)
        return query.first()

    def get_movement_type(self, movement_type_id: int) -> MovementType | None:
        return self.session.get(MovementType, movement_type_id)

    def get_movement(self, movement_id: int) -> InventoryMovement | None:
        return self.session.get(InventoryMovement, movement_id)

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def list_movements_for_item(self, item_id: int) -> list[MovementFact]:
        """Remaining history of an item in replay order (movement_date ASC, id ASC)."""
        rows = (
            self.session.query(InventoryMovement, MovementType.type_code, MovementType.effect)
            .join(MovementType, InventoryMovement.movement_type_id == MovementType.id)
            .filter(InventoryMovement.item_id == item_id)
            .order_by(InventoryMovement.movement_date.asc(), InventoryMovement.id.asc())
            .all()
        )
        return [
            MovementFact(
                id=movement.id,
                item_id=movement.item_id,
                movement_date=movement.movement_date,
                quantity=movement.quantity,
                previous_qty=movement.previous_qty,
                new_qty=movement.new_qty,
                type_code=type_code,
                effect=effect,
            )
            for movement, type_code, effect in rows
        ]

    def get_role_rules(self, user_id: int):
        """
        Returns (user, rows) where rows are the user's role permission rows,
        ALL subject first, then by subject and action. (None, []) when the
        user does not exist.
        """
        user = self.get_user(user_id)
        if user is None or user.role_id is None:
            return user, []

        all_first = case((db.func.upper(RolePermission.subject) == "ALL", 0), else_=1)
        rows = (
            self.session.query(RolePermission)
            .filter(RolePermission.role_id == user.role_id)
            .order_by(all_first, RolePermission.subject.asc(), RolePermission.action.asc(), RolePermission.id.asc())
            .all()
        )
        return user, rows
