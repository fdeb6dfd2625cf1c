# Overview: Flask API routes for departments, ranks and floors.

"""
The three reference tables share one shape (id, name) and one set of rules,
so one blueprint registers the same CRUD endpoints for each of them.
"""

from flask import Blueprint, request, jsonify

from ..services import reference_service
from ..services.ability_service import Action, Subject
from ..decorators import require_ability
from .errors import service_error_response


directory_bp = Blueprint("directory", __name__, url_prefix="/api")

# url segment -> (service kind, ability subject)
DIRECTORY_RESOURCES = {
    "departments": ("department", Subject.DEPARTMENT),
    "ranks": ("rank", Subject.RANK),
    "floors": ("floor", Subject.FLOOR),
}


def _register(segment: str, kind: str, subject: Subject) -> None:
    @require_ability(Action.READ, subject)
    def list_route():
        return jsonify([e.to_dict() for e in reference_service.list_entries(kind)])

    @require_ability(Action.READ, subject)
    def get_route(entry_id: int):
        try:
            return jsonify(reference_service.get_entry(kind, entry_id).to_dict())
        except ValueError as e:
            return service_error_response(e)

    @require_ability(Action.CREATE, subject)
    def create_route():
        try:
            entry = reference_service.create_entry(kind, request.get_json(silent=True) or {})
        except ValueError as e:
            return service_error_response(e)
        return jsonify(entry.to_dict()), 201

    @require_ability(Action.UPDATE, subject)
    def update_route(entry_id: int):
        try:
            entry = reference_service.update_entry(kind, entry_id, request.get_json(silent=True) or {})
        except ValueError as e:
            return service_error_response(e)
        return jsonify(entry.to_dict())

    @require_ability(Action.DELETE, subject)
    def delete_route(entry_id: int):
        try:
            reference_service.delete_entry(kind, entry_id)
        except ValueError as e:
            return service_error_response(e)
        return jsonify({"message": f"{kind.capitalize()} deleted"})

    directory_bp.add_url_rule(f"/{segment}", f"list_{kind}", list_route, methods=["GET"])
    directory_bp.add_url_rule(f"/{segment}/<int:entry_id>", f"get_{kind}", get_route, methods=["GET"])
    directory_bp.add_url_rule(f"/{segment}", f"create_{kind}", create_route, methods=["POST"])
    directory_bp.add_url_rule(f"/{segment}/<int:entry_id>", f"update_{kind}", update_route, methods=["PUT"])
    directory_bp.add_url_rule(f"/{segment}/<int:entry_id>", f"delete_{kind}", delete_route, methods=["DELETE"])


for _segment, (_kind, _subject) in DIRECTORY_RESOURCES.items():
    _register(_segment, _kind, _subject)
