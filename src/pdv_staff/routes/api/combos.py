"""
Combos API - combos do cardápio.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from pdv_shared.schemas import ComboRequest, UpdateComboRequest
from pdv_shared.serializers import success_response
from pdv_shared.services import catalog_service
from pdv_staff.decorators import admin_required, login_required

combos_bp = Blueprint("combos", __name__)


@combos_bp.get("/combos")
@login_required
def get_combos():
    include_inactive = request.args.get("include_inactive", "false").lower() in ("1", "true", "yes")
    return jsonify(success_response(catalog_service.list_combos(include_inactive=include_inactive)))


@combos_bp.post("/combos")
@admin_required
def post_combo():
    """
    Body: {"name", "sale_price", "members": [{"product_id", "quantity"}], ...}
    """
    data = ComboRequest(**(request.get_json(silent=True) or {}))
    combo = catalog_service.create_combo(**data.model_dump())
    return jsonify(success_response(combo)), HTTPStatus.CREATED


@combos_bp.put("/combos/<combo_id>")
@admin_required
def put_combo(combo_id: str):
    data = UpdateComboRequest(**(request.get_json(silent=True) or {}))
    combo = catalog_service.update_combo(combo_id, **data.model_dump(exclude_unset=True))
    return jsonify(success_response(combo))


@combos_bp.delete("/combos/<combo_id>")
@admin_required
def delete_combo(combo_id: str):
    combo = catalog_service.deactivate_combo(combo_id)
    return jsonify(success_response(combo, message="Combo desativado"))
