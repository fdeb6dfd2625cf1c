# Overview: Flask API route for dashboard statistics.

from flask import Blueprint, jsonify

from ..services import statistics_service
from ..services.ability_service import Action, Subject
from ..decorators import require_ability


statistics_bp = Blueprint("statistics", __name__, url_prefix="/api/statistics")


@statistics_bp.get("")
@require_ability(Action.READ, Subject.STATISTICS)
def statistics_route():
    return jsonify(statistics_service.get_statistics())
