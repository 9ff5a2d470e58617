"""
Tables API - cadastro de mesas.

Everyone signed in can list the tables with their occupancy; only admins
create, renumber, relabel or delete them.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from pdv_shared.schemas import TableRequest, UpdateTableRequest
from pdv_shared.serializers import success_response
from pdv_shared.services import table_service
from pdv_staff.decorators import admin_required, login_required

tables_bp = Blueprint("tables", __name__)


@tables_bp.get("/tables")
@login_required
def get_tables():
    return jsonify(success_response(table_service.list_tables()))


@tables_bp.post("/tables")
@admin_required
def post_table():
    data = TableRequest(**(request.get_json(silent=True) or {}))
    table = table_service.create_table(data.number, data.label)
    return jsonify(success_response(table)), HTTPStatus.CREATED


@tables_bp.put("/tables/<table_id>")
@admin_required
def put_table(table_id: str):
    """
    Body: {"number": int?, "label": str | null?}

    Sending `label: null` clears the label.
    """
    payload = request.get_json(silent=True) or {}
    data = UpdateTableRequest(**payload)
    table = table_service.update_table(
        table_id,
        number=data.number,
        label=data.label,
        clear_label="label" in payload and data.label is None,
    )
    return jsonify(success_response(table))


@tables_bp.delete("/tables/<table_id>")
@admin_required
def delete_table(table_id: str):
    table_service.delete_table(table_id)
    return jsonify(success_response({"deleted": True}, message="Mesa excluída"))
