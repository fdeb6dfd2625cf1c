# Overview: Flask API routes for the category tree.

from flask import Blueprint, request, jsonify

from ..services import catalog_service
from ..services.ability_service import Action, Subject
from ..decorators import require_ability
from ..validation import parse_optional_int
from .errors import service_error_response


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


def _payload() -> dict:
    return request.get_json(silent=True) or {}


# -- MAIN --

@categories_bp.get("/main")
@require_ability(Action.READ, Subject.CATEGORY)
def list_main_route():
    return jsonify([c.to_dict() for c in catalog_service.list_main_categories()])


@categories_bp.get("/main/<int:cat_id>")
@require_ability(Action.READ, Subject.CATEGORY)
def get_main_route(cat_id: int):
    try:
        return jsonify(catalog_service.get_main_category(cat_id).to_dict())
    except ValueError as e:
        return service_error_response(e)


@categories_bp.post("/main")
@require_ability(Action.CREATE, Subject.CATEGORY)
def create_main_route():
    try:
        cat = catalog_service.create_main_category(_payload())
    except ValueError as e:
        return service_error_response(e)
    return jsonify(cat.to_dict()), 201


@categories_bp.put("/main/<int:cat_id>")
@require_ability(Action.UPDATE, Subject.CATEGORY)
def update_main_route(cat_id: int):
    try:
        cat = catalog_service.update_main_category(cat_id, _payload())
    except ValueError as e:
        return service_error_response(e)
    return jsonify(cat.to_dict())


@categories_bp.delete("/main/<int:cat_id>")
@require_ability(Action.DELETE, Subject.CATEGORY)
def delete_main_route(cat_id: int):
    try:
        catalog_service.delete_main_category(cat_id)
    except ValueError as e:
        return service_error_response(e)
    return jsonify({"message": "Main category deleted"})


# -- SUB --

@categories_bp.get("/sub")
@require_ability(Action.READ, Subject.CATEGORY)
def list_sub_route():
    try:
        cat_id = parse_optional_int(request.args.get("cat_id"), "cat_id")
    except ValueError as e:
        return service_error_response(e)
    return jsonify([s.to_dict() for s in catalog_service.list_sub_categories(cat_id=cat_id)])


@categories_bp.get("/sub/<int:sub_cat_id>")
@require_ability(Action.READ, Subject.CATEGORY)
def get_sub_route(sub_cat_id: int):
    try:
        return jsonify(catalog_service.get_sub_category(sub_cat_id).to_dict())
    except ValueError as e:
        return service_error_response(e)


@categories_bp.post("/sub")
@require_ability(Action.CREATE, Subject.CATEGORY)
def create_sub_route():
    try:
        sub = catalog_service.create_sub_category(_payload())
    except ValueError as e:
        return service_error_response(e)
    return jsonify(sub.to_dict()), 201


@categories_bp.put("/sub/<int:sub_cat_id>")
@require_ability(Action.UPDATE, Subject.CATEGORY)
def update_sub_route(sub_cat_id: int):
    try:
        sub = catalog_service.update_sub_category(sub_cat_id, _payload())
    except ValueError as e:
        return service_error_response(e)
    return jsonify(sub.to_dict())


@categories_bp.delete("/sub/<int:sub_cat_id>")
@require_ability(Action.DELETE, Subject.CATEGORY)
def delete_sub_route(sub_cat_id: int):
    try:
        catalog_service.delete_sub_category(sub_cat_id)
    except ValueError as e:
        return service_error_response(e)
    return jsonify({"message": "Sub category deleted"})


# -- ITEM TYPES --

@categories_bp.get("/item-types")
@require_ability(Action.READ, Subject.CATEGORY)
def list_item_types_route():
    try:
        sub_cat_id = parse_optional_int(request.args.get("sub_cat_id"), "sub_cat_id")
    except ValueError as e:
        return service_error_response(e)
    return jsonify([t.to_dict() for t in catalog_service.list_item_types(sub_cat_id=sub_cat_id)])


@categories_bp.get("/item-types/<int:item_type_id>")
@require_ability(Action.READ, Subject.CATEGORY)
def get_item_type_route(item_type_id: int):
    try:
        return jsonify(catalog_service.get_item_type(item_type_id).to_dict())
    except ValueError as e:
        return service_error_response(e)


@categories_bp.post("/item-types")
@require_ability(Action.CREATE, Subject.CATEGORY)
def create_item_type_route():
    try:
        item_type = catalog_service.create_item_type(_payload())
    except ValueError as e:
        return service_error_response(e)
    return jsonify(item_type.to_dict()), 201


@categories_bp.put("/item-types/<int:item_type_id>")
@require_ability(Action.UPDATE, Subject.CATEGORY)
def update_item_type_route(item_type_id: int):
    try:
        item_type = catalog_service.update_item_type(item_type_id, _payload())
    except ValueError as e:
        return service_error_response(e)
    return jsonify(item_type.to_dict())


@categories_bp.delete("/item-types/<int:item_type_id>")
@require_ability(Action.DELETE, Subject.CATEGORY)
def delete_item_type_route(item_type_id: int):
    try:
        catalog_service.delete_item_type(item_type_id)
    except ValueError as e:
        return service_error_response(e)
    return jsonify({"message": "Item type deleted"})
