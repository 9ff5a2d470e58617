"""
Accounts API - PDV and Caixa actions on tables, accounts and items.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from pdv_shared.constants import Area
from pdv_shared.jwt_middleware import get_profile_id
from pdv_shared.schemas import (
    AddItemRequest,
    AdjustmentsRequest,
    CancelRequest,
    CloseAccountRequest,
    WalkInAccountRequest,
)
from pdv_shared.serializers import success_response
from pdv_shared.services import account_service
from pdv_staff.decorators import area_required

accounts_bp = Blueprint("accounts", __name__)


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


@accounts_bp.post("/tables/<table_id>/open")
@area_required(Area.PDV)
def post_open_table(table_id: str):
    """Abre a conta da mesa, ou devolve a conta aberta se a mesa já estiver ocupada."""
    account = account_service.open_table_account(table_id, get_profile_id())
    return jsonify(success_response(account)), HTTPStatus.OK


@accounts_bp.post("/accounts/walk-in")
@area_required(Area.PDV)
def post_walk_in():
    data = WalkInAccountRequest(**_json_body())
    account = account_service.open_walk_in_account(data.customer_name, get_profile_id())
    return jsonify(success_response(account)), HTTPStatus.CREATED


@accounts_bp.get("/accounts/open")
@area_required(Area.CASHIER)
def get_open_accounts():
    """Contas abertas, mais recentes primeiro (tela do Caixa)."""
    return jsonify(success_response(account_service.list_open_accounts()))


@accounts_bp.get("/accounts/<account_id>")
@area_required(Area.PDV, Area.CASHIER)
def get_account(account_id: str):
    return jsonify(success_response(account_service.get_account(account_id)))


@accounts_bp.post("/accounts/<account_id>/items")
@area_required(Area.PDV)
def post_item(account_id: str):
    data = AddItemRequest(**_json_body())
    account = account_service.add_item(
        account_id,
        get_profile_id(),
        product_id=data.product_id,
        combo_id=data.combo_id,
        quantity=data.quantity,
        notes=data.notes,
    )
    return jsonify(success_response(account)), HTTPStatus.CREATED


@accounts_bp.post("/accounts/<account_id>/send-to-kitchen")
@area_required(Area.PDV)
def post_send_to_kitchen(account_id: str):
    result = account_service.send_pending_to_kitchen(account_id, get_profile_id())
    return jsonify(success_response(result, message=result["message"]))


@accounts_bp.post("/accounts/<account_id>/cancel")
@area_required(Area.PDV)
def post_cancel_account(account_id: str):
    data = CancelRequest(**_json_body())
    account = account_service.cancel_account(account_id, get_profile_id(), data.reason)
    return jsonify(success_response(account, message="Conta cancelada"))


@accounts_bp.post("/accounts/<account_id>/leave")
@area_required(Area.PDV)
def post_leave(account_id: str):
    """Volta para a seleção de mesas; conta vazia é descartada."""
    result = account_service.return_to_table_selection(account_id, get_profile_id())
    return jsonify(success_response(result))


@accounts_bp.post("/accounts/<account_id>/adjustments")
@area_required(Area.CASHIER)
def post_adjustments(account_id: str):
    data = AdjustmentsRequest(**_json_body())
    account = account_service.apply_adjustments(
        account_id,
        get_profile_id(),
        discount=data.discount,
        service_charge_percent=data.service_charge_percent,
    )
    return jsonify(success_response(account))


@accounts_bp.post("/accounts/<account_id>/close")
@area_required(Area.CASHIER)
def post_close(account_id: str):
    """
    Fecha a conta com um ou mais pagamentos.

    Body: {"payments": [{"method": "dinheiro", "amount": "10.00"}, ...]}
    """
    data = CloseAccountRequest(**_json_body())
    account = account_service.close_account_for_payment(
        account_id,
        [line.model_dump() for line in data.payments],
        get_profile_id(),
    )
    return jsonify(success_response(account, message="Conta fechada com sucesso"))


@accounts_bp.post("/items/<item_id>/cancel")
@area_required(Area.PDV)
def post_cancel_item(item_id: str):
    data = CancelRequest(**_json_body())
    account = account_service.cancel_item(item_id, get_profile_id(), data.reason)
    return jsonify(success_response(account, message="Item removido"))
