from datetime import datetime, timedelta

import pytest

from pdv_shared.constants import KITCHEN_VISIBLE_STATUSES, ItemStatus
from pdv_shared.services import account_service
from pdv_shared.services.kitchen_service import KitchenRail, list_kitchen_tickets, split_by_status

T0 = datetime(2026, 3, 2, 15, 0, 0)


def _ticket(item_id, status=ItemStatus.IN_KITCHEN, sent_at=T0):
    return {
        "item_id": item_id,
        "name": item_id,
        "quantity": 1,
        "status": status.value,
        "sent_at": sent_at.isoformat(),
        "elapsed_seconds": 0,
    }


def test_tickets_are_oldest_first_and_exclude_pending_and_delivered(waiter, tables, catalog):
    table_account = account_service.open_table_account(tables[5], waiter)
    account_service.add_item(table_account["id"], waiter, product_id=catalog["sandwich"], notes="sem cebola")
    account_service.send_pending_to_kitchen(table_account["id"], waiter, now=T0)

    walk_in = account_service.open_walk_in_account("Ana", waiter)
    walk_in = account_service.add_item(walk_in["id"], waiter, product_id=catalog["juice"])
    account_service.send_pending_to_kitchen(walk_in["id"], waiter, now=T0 + timedelta(minutes=2))
    account_service.add_item(walk_in["id"], waiter, product_id=catalog["coffee"])

    tickets = list_kitchen_tickets(now=T0 + timedelta(minutes=5))

    assert [t["name"] for t in tickets] == ["Sandwich", "Juice"]
    assert tickets[0]["table_number"] == 5
    assert tickets[0]["notes"] == "sem cebola"
    assert tickets[0]["elapsed_seconds"] == 300
    assert tickets[1]["customer_name"] == "Ana"
    assert tickets[1]["table_number"] is None

    juice_id = tickets[1]["item_id"]
    account_service.mark_ready(juice_id, now=T0 + timedelta(minutes=6))
    account_service.mark_delivered(juice_id)
    assert [t["name"] for t in list_kitchen_tickets()] == ["Sandwich"]


def test_cancelled_item_never_reaches_the_kitchen(waiter, tables, catalog):
    account = account_service.open_table_account(tables[2], waiter)
    account = account_service.add_item(account["id"], waiter, product_id=catalog["sandwich"])
    sandwich_id = account["items"][0]["id"]
    account_service.send_pending_to_kitchen(account["id"], waiter, now=T0)
    account = account_service.add_item(account["id"], waiter, product_id=catalog["juice"])
    juice_id = next(item["id"] for item in account["items"] if item["id"] != sandwich_id)
    account_service.cancel_item(juice_id, waiter, "desistiu")

    tickets = list_kitchen_tickets(now=T0 + timedelta(minutes=1))

    assert [t["item_id"] for t in tickets] == [sandwich_id]
    assert ItemStatus.CANCELLED not in KITCHEN_VISIBLE_STATUSES
    assert ItemStatus.PENDING not in KITCHEN_VISIBLE_STATUSES


def test_split_by_status():
    tickets = [_ticket("a"), _ticket("b", status=ItemStatus.READY), _ticket("c")]

    split = split_by_status(tickets)

    assert [t["item_id"] for t in split["in_production"]] == ["a", "c"]
    assert [t["item_id"] for t in split["ready"]] == ["b"]


def test_mark_ready_records_production_time(waiter, tables, catalog):
    account = account_service.open_table_account(tables[1], waiter)
    account = account_service.add_item(account["id"], waiter, product_id=catalog["sandwich"])
    account_service.send_pending_to_kitchen(account["id"], waiter, now=T0)

    item = account_service.mark_ready(account["items"][0]["id"], now=T0 + timedelta(seconds=95))

    assert item["status"] == ItemStatus.READY
    assert item["production_seconds"] == 95


def test_rail_refreshes_on_its_own_cadence():
    calls = []

    def fetch(now):
        calls.append(now)
        return [_ticket("a"), _ticket("b", ItemStatus.READY, T0 + timedelta(seconds=30))]

    rail = KitchenRail(fetch=fetch, refresh_seconds=10)

    first = rail.tick(T0 + timedelta(seconds=40))
    rail.tick(T0 + timedelta(seconds=45))
    third = rail.tick(T0 + timedelta(seconds=50))

    assert len(calls) == 2
    assert rail.last_refresh == T0 + timedelta(seconds=50)
    assert [t["elapsed_seconds"] for t in first["tickets"]] == [40, 10]
    assert [t["elapsed_seconds"] for t in third["tickets"]] == [50, 20]
    assert [t["item_id"] for t in third["in_production"]] == ["a"]
    assert [t["item_id"] for t in third["ready"]] == ["b"]


def test_rail_keeps_last_snapshot_when_refresh_fails():
    state = {"fail": False}

    def fetch(now):
        if state["fail"]:
            raise RuntimeError("database unavailable")
        return [_ticket("a")]

    views = []
    rail = KitchenRail(fetch=fetch, refresh_seconds=5, on_update=views.append)
    rail.tick(T0)
    state["fail"] = True
    view = rail.tick(T0 + timedelta(seconds=6))

    assert [t["item_id"] for t in view["tickets"]] == ["a"]
    assert view["last_refresh"] == T0.isoformat()
    assert len(views) == 2


def test_rail_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        KitchenRail(fetch=lambda now: [], refresh_seconds=0)


def test_rail_thread_starts_once_and_stops():
    rail = KitchenRail(fetch=lambda now: [], refresh_seconds=1, tick_seconds=0.01)
    thread = rail.start()

    assert rail.start() is thread
    rail.stop(timeout=2)
    assert not thread.is_alive()
