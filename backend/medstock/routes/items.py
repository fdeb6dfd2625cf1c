# Overview: Flask API routes for items; parses input and returns JSON responses.

"""
Item management routes.

SECURITY:
- Read operations require read Item (the guest ability includes it)
- Write operations require create/update/delete Item
- quantity is not writable here; see /api/movements
"""
from flask import Blueprint, request, jsonify

from ..services import item_service
from ..services.ability_service import Action, Subject
from ..decorators import require_ability
from .errors import service_error_response


items_bp = Blueprint("items", __name__, url_prefix="/api/items")

ITEM_FILTERS = ("cat_id", "sub_cat_id", "item_type_id", "user_id", "dept_id", "serial", "name", "ip", "comp_name")


@items_bp.get("")
@require_ability(Action.READ, Subject.ITEM)
def list_items_route():
    """
    List items.

    Query params (all optional):
    - cat_id, sub_cat_id, item_type_id, dept_id: int
    - user_id: int, or 0 / -1 / "warehouse" for unassigned items
    - serial, name, ip, comp_name: case-insensitive substring
    """
    filters = {key: request.args.get(key) for key in ITEM_FILTERS if request.args.get(key) is not None}
    try:
        items = item_service.list_items(filters)
    except ValueError as e:
        return service_error_response(e)
    return jsonify([item.to_dict() for item in items])


@items_bp.get("/<int:item_id>")
@require_ability(Action.READ, Subject.ITEM)
def get_item_route(item_id: int):
    try:
        item = item_service.get_item(item_id)
    except ValueError as e:
        return service_error_response(e)
    return jsonify(item.to_dict())


@items_bp.post("")
@require_ability(Action.CREATE, Subject.ITEM)
def create_item_route():
    payload = request.get_json(silent=True) or {}
    try:
        item = item_service.create_item(payload)
    except ValueError as e:
        return service_error_response(e)
    return jsonify(item.to_dict()), 201


@items_bp.put("/<int:item_id>")
@require_ability(Action.UPDATE, Subject.ITEM)
def update_item_route(item_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        item = item_service.update_item(item_id, payload)
    except ValueError as e:
        return service_error_response(e)
    return jsonify(item.to_dict())


@items_bp.delete("/<int:item_id>")
@require_ability(Action.DELETE, Subject.ITEM)
def delete_item_route(item_id: int):
    try:
        item_service.delete_item(item_id)
    except ValueError as e:
        return service_error_response(e)
    return jsonify({"message": "Item deleted", "item_id": item_id})
