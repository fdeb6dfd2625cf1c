# Overview: Flask API routes for the inventory movement ledger.

"""
Movement routes.

Adding or deleting a movement changes Item.quantity, so both require the
update ability on Item's quantity field. The acting user is always the
authenticated caller; a user_id in the payload is ignored.
"""
from flask import Blueprint, request, jsonify, g

from ..services import ledger_service
from ..services.ability_service import Action, Subject
from ..decorators import require_ability
from ..validation import InternalError
from .errors import service_error_response


movements_bp = Blueprint("movements", __name__, url_prefix="/api/movements")

MOVEMENT_FIELDS = (
    "item_id", "movement_type_id", "quantity",
    "reference_no", "notes",
    "from_dept_id", "to_dept_id", "from_floor_id", "to_floor_id",
    "unit",
)


@movements_bp.get("")
@require_ability(Action.READ, Subject.ITEM)
def list_movements_route():
    """
    Newest first.

    Query params: item_id, movement_type_id, limit (default 200, max 500).
    """
    try:
        movements = ledger_service.list_movements(
            item_id=request.args.get("item_id"),
            movement_type_id=request.args.get("movement_type_id"),
            limit=request.args.get("limit"),
        )
    except ValueError as e:
        return service_error_response(e)
    return jsonify([m.to_dict() for m in movements])


@movements_bp.get("/types")
@require_ability(Action.READ, Subject.ITEM)
def list_movement_types_route():
    return jsonify([t.to_dict() for t in ledger_service.list_movement_types()])


@movements_bp.post("")
@require_ability(Action.UPDATE, Subject.ITEM, "quantity")
def add_movement_route():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    kwargs = {key: payload.get(key) for key in MOVEMENT_FIELDS}
    try:
        movement, item = ledger_service.add_movement(user_id=g.user_id, **kwargs)
    except (ValueError, InternalError) as e:
        return service_error_response(e)

    return jsonify({
        "movement_id": movement.id,
        "movement": movement.to_dict(),
        "item": item.to_dict(),
    }), 201


@movements_bp.delete("/<int:movement_id>")
@require_ability(Action.UPDATE, Subject.ITEM, "quantity")
def delete_movement_route(movement_id: int):
    try:
        item = ledger_service.delete_movement(movement_id)
    except (ValueError, InternalError) as e:
        return service_error_response(e)
    return jsonify({"message": "Movement deleted", "item": item.to_dict()})
