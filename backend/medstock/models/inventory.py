from __future__ import annotations

from ..extensions import db
from medstock.time_utils import to_utc_z


# Movement type codes seeded by `flask system init`.
TYPE_IN = "IN"
TYPE_OUT = "OUT"
TYPE_RETURN = "RETURN"
TYPE_DAMAGED = "DAMAGED"
TYPE_ADJUSTMENT = "ADJUSTMENT"
TYPE_TRANSFER = "TRANSFER"

MOVEMENT_TYPE_CODES = (TYPE_IN, TYPE_OUT, TYPE_RETURN, TYPE_DAMAGED, TYPE_ADJUSTMENT, TYPE_TRANSFER)


class Item(db.Model):
    """
    Inventory item (device, consumable, furniture, ...).

    QUANTITY: Item.quantity is the running total of the item's movement ledger.
    It is written only by ledger_service (add_movement / delete_movement);
    item create/update payloads cannot set it.

    OWNERSHIP: user_id NULL means the item is in the warehouse (unassigned).

    CONCURRENCY: version_id is an optimistic lock. Two requests that both read
    the same quantity cannot both commit; the loser gets StaleDataError and the
    ledger retries its read-compute-write unit.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        db.Index("ix_items_name", "name"),
        {"sqlite_autoincrement": True},
    )

    UNIT_MAX_LENGTH = 32

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    serial = db.Column(db.String(128), nullable=True, index=True)
    kind = db.Column(db.String(64), nullable=True)
    situation = db.Column(db.String(64), nullable=True)
    properties = db.Column(db.Text, nullable=True)
    hdd = db.Column(db.String(64), nullable=True)
    ram = db.Column(db.String(64), nullable=True)
    ip = db.Column(db.String(64), nullable=True)
    comp_name = db.Column(db.String(128), nullable=True)
    lock_num = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_quantity = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(UNIT_MAX_LENGTH), nullable=False, default="piece")

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    dept_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True, index=True)
    floor_id = db.Column(db.Integer, db.ForeignKey("floors.id"), nullable=True, index=True)
    sub_cat_id = db.Column(db.Integer, db.ForeignKey("sub_categories.id"), nullable=True, index=True)
    item_type_id = db.Column(db.Integer, db.ForeignKey("item_types.id"), nullable=True, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("items", lazy=True))
    department = db.relationship("Department", backref=db.backref("items", lazy=True))
    floor = db.relationship("Floor", backref=db.backref("items", lazy=True))
    sub_category = db.relationship("SubCategory", backref=db.backref("items", lazy=True))
    item_type = db.relationship("ItemType", backref=db.backref("items", lazy=True))
    movements = db.relationship(
        "InventoryMovement",
        back_populates="item",
        cascade="all, delete-orphan",
        lazy=True,
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} quantity={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.min_quantity > 0 and self.quantity <= self.min_quantity

    def to_dict(self) -> dict:
        main_category = self.sub_category.main_category if self.sub_category else None
        return {
            "id": self.id,
            "name": self.name,
            "serial": self.serial,
            "kind": self.kind,
            "situation": self.situation,
            "properties": self.properties,
            "hdd": self.hdd,
            "ram": self.ram,
            "ip": self.ip,
            "comp_name": self.comp_name,
            "lock_num": self.lock_num,
            "quantity": self.quantity,
            "min_quantity": self.min_quantity,
            "unit": self.unit,
            "is_low_stock": self.is_low_stock,
            "user_id": self.user_id,
            "assigned_user": self.user.full_name if self.user else None,
            "dept_id": self.dept_id,
            "dept_name": self.department.name if self.department else None,
            "floor_id": self.floor_id,
            "floor_name": self.floor.name if self.floor else None,
            "sub_cat_id": self.sub_cat_id,
            "sub_cat_name": self.sub_category.name if self.sub_category else None,
            "cat_id": main_category.id if main_category else None,
            "main_category_name": main_category.name if main_category else None,
            "item_type_id": self.item_type_id,
            "item_type_name": self.item_type.name if self.item_type else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class MovementType(db.Model):
    """
    Catalog of movement kinds.

    effect is the signed multiplier applied to a movement's quantity:
    +1 (IN, RETURN), -1 (OUT, DAMAGED), 0 (TRANSFER).
    ADJUSTMENT is an absolute set regardless of its stored effect.
    """
    __tablename__ = "movement_types"
    __table_args__ = (
        db.CheckConstraint("effect IN (-1, 0, 1)", name="ck_movement_types_effect"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type_name = db.Column(db.String(100), nullable=False)
    type_code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    effect = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type_name": self.type_name,
            "type_code": self.type_code,
            "effect": self.effect,
            "description": self.description,
            "is_active": self.is_active,
        }


class InventoryMovement(db.Model):
    """
    One recorded change (or absolute reset) of an item's quantity.

    previous_qty / new_qty capture the item's running total immediately
    before and after this movement at creation time. Rows are never updated;
    deleting one forces ledger_service to replay the item's remaining history.
    """
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_inventory_movements_quantity_positive"),
        db.Index("ix_inventory_movements_item_date", "item_id", "movement_date", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    item_id = db.Column(db.Integer, db.ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    movement_type_id = db.Column(db.Integer, db.ForeignKey("movement_types.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    previous_qty = db.Column(db.Integer, nullable=True)
    new_qty = db.Column(db.Integer, nullable=False)

    # Actor. Nulled (history kept) when the user is deleted.
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    reference_no = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    from_dept_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    to_dept_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    from_floor_id = db.Column(db.Integer, db.ForeignKey("floors.id"), nullable=True)
    to_floor_id = db.Column(db.Integer, db.ForeignKey("floors.id"), nullable=True)

    movement_date = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("Item", back_populates="movements")
    movement_type = db.relationship("MovementType", backref=db.backref("movements", lazy=True))
    user = db.relationship("User", backref=db.backref("movements", lazy=True))
    from_department = db.relationship("Department", foreign_keys=[from_dept_id])
    to_department = db.relationship("Department", foreign_keys=[to_dept_id])
    from_floor = db.relationship("Floor", foreign_keys=[from_floor_id])
    to_floor = db.relationship("Floor", foreign_keys=[to_floor_id])

    def __repr__(self) -> str:
        return (
            f"<InventoryMovement id={self.id} item_id={self.item_id} "
            f"qty={self.quantity} {self.previous_qty}->{self.new_qty}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item.name if self.item else None,
            "movement_type_id": self.movement_type_id,
            "movement_type": self.movement_type.type_name if self.movement_type else None,
            "type_code": self.movement_type.type_code if self.movement_type else None,
            "quantity": self.quantity,
            "previous_qty": self.previous_qty,
            "new_qty": self.new_qty,
            "movement_date": to_utc_z(self.movement_date),
            "user_id": self.user_id,
            "user_full_name": self.user.full_name if self.user else None,
            "from_dept_id": self.from_dept_id,
            "from_dept": self.from_department.name if self.from_department else None,
            "to_dept_id": self.to_dept_id,
            "to_dept": self.to_department.name if self.to_department else None,
            "from_floor_id": self.from_floor_id,
            "from_floor": self.from_floor.name if self.from_floor else None,
            "to_floor_id": self.to_floor_id,
            "to_floor": self.to_floor.name if self.to_floor else None,
            "reference_no": self.reference_no,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
