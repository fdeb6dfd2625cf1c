# Overview: Flask API routes for user administration and self-service profile.

from flask import Blueprint, request, jsonify, g

from ..services import user_service, permission_service
from ..services.ability_service import Action, Subject
from ..decorators import require_auth, require_ability
from .errors import service_error_response


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_ability(Action.READ, Subject.USER)
def list_users_route():
    """Query params: username (substring), role (role name)."""
    users = user_service.list_users(
        username=request.args.get("username"),
        role=request.args.get("role"),
    )
    return jsonify([u.to_dict() for u in users])


@users_bp.get("/profile")
@require_auth
def get_profile_route():
    return jsonify(g.current_user.to_dict())


@users_bp.put("/profile")
@require_auth
def update_profile_route():
    try:
        user = user_service.update_profile(g.current_user, request.get_json(silent=True) or {})
    except ValueError as e:
        return service_error_response(e)
    return jsonify(user.to_dict())


@users_bp.get("/<int:user_id>")
@require_ability(Action.READ, Subject.USER)
def get_user_route(user_id: int):
    try:
        return jsonify(user_service.get_user(user_id).to_dict())
    except ValueError as e:
        return service_error_response(e)


@users_bp.post("")
@require_ability(Action.CREATE, Subject.USER)
def create_user_route():
    try:
        user = user_service.create_user(request.get_json(silent=True) or {})
    except ValueError as e:
        return service_error_response(e)
    return jsonify(user.to_dict()), 201


@users_bp.put("/<int:user_id>")
@require_ability(Action.UPDATE, Subject.USER)
def update_user_route(user_id: int):
    try:
        user = user_service.update_user(user_id, request.get_json(silent=True) or {})
    except ValueError as e:
        return service_error_response(e)
    return jsonify(user.to_dict())


@users_bp.delete("/<int:user_id>")
@require_ability(Action.DELETE, Subject.USER)
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(user_id, acting_user_id=g.user_id)
    except ValueError as e:
        return service_error_response(e)
    return jsonify({"message": "User deleted", "user_id": user_id})


@users_bp.get("/<int:user_id>/permissions")
@require_ability(Action.READ, Subject.USER)
def user_permissions_route(user_id: int):
    try:
        return jsonify(permission_service.get_user_permissions(user_id))
    except ValueError as e:
        return service_error_response(e)


@users_bp.post("/<int:user_id>/reset-password")
@require_ability(Action.UPDATE, Subject.USER, "password")
def reset_password_route(user_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        user_service.reset_password(user_id, payload.get("password"))
    except ValueError as e:
        return service_error_response(e)
    return jsonify({"message": "Password updated successfully"})
