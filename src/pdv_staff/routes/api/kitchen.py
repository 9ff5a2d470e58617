"""
Kitchen API - Cozinha display and item status actions.
"""

from flask import Blueprint, jsonify

from pdv_shared.constants import Area
from pdv_shared.datetime_utils import utcnow
from pdv_shared.jwt_middleware import get_profile_id
from pdv_shared.serializers import success_response
from pdv_shared.services import account_service
from pdv_shared.services.kitchen_service import list_kitchen_tickets, split_by_status
from pdv_staff.decorators import area_required

kitchen_bp = Blueprint("kitchen", __name__)


@kitchen_bp.get("/kitchen/tickets")
@area_required(Area.KITCHEN)
def get_tickets():
    """
    Items in production or ready, oldest first.

    Clients poll this endpoint and recompute `elapsed_seconds` locally from
    `sent_at` between polls.
    """
    now = utcnow()
    tickets = list_kitchen_tickets(now)
    return jsonify(
        success_response(
            {
                "generated_at": now.isoformat(),
                "tickets": tickets,
                **split_by_status(tickets),
            }
        )
    )


@kitchen_bp.post("/kitchen/items/<item_id>/ready")
@area_required(Area.KITCHEN)
def post_ready(item_id: str):
    item = account_service.mark_ready(item_id, get_profile_id())
    return jsonify(success_response(item, message="Item pronto"))


@kitchen_bp.post("/kitchen/items/<item_id>/delivered")
@area_required(Area.KITCHEN)
def post_delivered(item_id: str):
    item = account_service.mark_delivered(item_id, get_profile_id())
    return jsonify(success_response(item, message="Item entregue"))
