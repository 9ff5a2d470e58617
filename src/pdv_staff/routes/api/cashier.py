"""
Cashier API - daily cash session and manual entries.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from pdv_shared.constants import Area
from pdv_shared.errors import NotFoundError
from pdv_shared.jwt_middleware import get_profile_id
from pdv_shared.schemas import CashEntryRequest, OpenCashSessionRequest
from pdv_shared.serializers import success_response
from pdv_shared.services import cash_service
from pdv_staff.decorators import area_required

cashier_bp = Blueprint("cashier", __name__)


@cashier_bp.get("/cash-session")
@area_required(Area.CASHIER)
def get_cash_session():
    """Summary of today's session, or `data: null` when it was not opened yet."""
    try:
        summary = cash_service.cash_summary()
    except NotFoundError:
        summary = None
    return jsonify(success_response(summary))


@cashier_bp.post("/cash-session/open")
@area_required(Area.CASHIER)
def post_open_cash_session():
    data = OpenCashSessionRequest(**(request.get_json(silent=True) or {}))
    session = cash_service.open_cash_session(data.opening_float, get_profile_id())
    return jsonify(success_response(session)), HTTPStatus.OK


@cashier_bp.post("/cash-session/entries")
@area_required(Area.CASHIER)
def post_cash_entry():
    data = CashEntryRequest(**(request.get_json(silent=True) or {}))
    entry = cash_service.record_cash_entry(
        data.kind.value,
        data.description,
        data.amount,
        get_profile_id(),
        method=data.method.value,
    )
    return jsonify(success_response(entry)), HTTPStatus.CREATED
