from decimal import Decimal

import pytest
from sqlalchemy import select, text

from pdv_shared.constants import AccountStatus, CashEntryKind, ItemStatus, TableStatus
from pdv_shared.db import get_session, transactional
from pdv_shared.errors import (
    ConflictError,
    InvalidTransition,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)
from pdv_shared.models import Account, CashEntry, CashSession, Product, Table
from pdv_shared.services import account_service, cash_service


def _table(table_id):
    with get_session() as session:
        return session.get(Table, table_id)


def _open_with(waiter, tables, catalog, *items):
    account = account_service.open_table_account(tables[5], waiter)
    for key, quantity in items:
        account = account_service.add_item(account["id"], waiter, product_id=catalog[key], quantity=quantity)
    return account


# ---------------------------------------------------------------------------
# Opening
# ---------------------------------------------------------------------------


def test_open_table_account_occupies_table(waiter, tables):
    account = account_service.open_table_account(tables[5], waiter)

    assert account["status"] == AccountStatus.OPEN
    assert account["table_number"] == 5
    assert account["items"] == []
    table = _table(tables[5])
    assert table.status == TableStatus.OCCUPIED
    assert table.current_account_id == account["id"]


def test_reentering_occupied_table_returns_same_account(waiter, cashier, tables, catalog):
    first = account_service.open_table_account(tables[5], waiter)
    account_service.add_item(first["id"], waiter, product_id=catalog["coffee"], quantity=2)

    again = account_service.open_table_account(tables[5], cashier)

    assert again["id"] == first["id"]
    assert [item["name"] for item in again["items"]] == ["Coffee"]
    with get_session() as session:
        open_accounts = session.execute(
            select(Account).where(Account.table_id == tables[5], Account.status == "aberta")
        ).scalars().all()
    assert len(open_accounts) == 1


def test_free_table_with_stray_open_account_is_relinked(waiter, tables):
    account = account_service.open_table_account(tables[2], waiter)
    with get_session() as session:
        session.get(Table, tables[2]).release()

    repaired = account_service.open_table_account(tables[2], waiter)

    assert repaired["id"] == account["id"]
    assert _table(tables[2]).current_account_id == account["id"]


def test_open_unknown_table(waiter, app):
    with pytest.raises(NotFoundError):
        account_service.open_table_account("missing", waiter)


def test_walk_in_requires_customer_name(waiter, app):
    with pytest.raises(ValidationError, match="Informe o nome do cliente"):
        account_service.open_walk_in_account("   ", waiter)

    account = account_service.open_walk_in_account(" Maria ", waiter)
    assert account["customer_name"] == "Maria"
    assert account["table_id"] is None
    assert account["kind"] == "avulso"


def test_default_service_charge_applies_to_new_accounts(monkeypatch, waiter, tables, catalog):
    monkeypatch.setenv("DEFAULT_SERVICE_CHARGE_PERCENT", "10")
    account = _open_with(waiter, tables, catalog, ("sandwich", 1))

    assert account["service_charge_percent"] == "10.00"
    assert account["service_charge_amount"] == "1.20"
    assert account["final_total"] == "13.20"


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def test_add_and_cancel_pending_item_keeps_total_in_sync(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 2))
    item = account["items"][0]
    assert item["status"] == ItemStatus.PENDING
    assert item["line_total"] == "10.00"
    assert account["subtotal"] == "10.00"

    account = account_service.cancel_item(item["id"], waiter, "pedido errado")

    assert account["items"][0]["status"] == ItemStatus.CANCELLED
    assert account["items"][0]["cancel_reason"] == "pedido errado"
    assert account["subtotal"] == "0.00"
    assert account["final_total"] == "0.00"


def test_item_snapshot_survives_catalog_price_change(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 1))
    with get_session() as session:
        session.get(Product, catalog["coffee"]).price = Decimal("7.00")

    fresh = account_service.get_account(account["id"])
    assert fresh["items"][0]["unit_price"] == "5.00"
    assert fresh["subtotal"] == "5.00"


def test_add_combo_uses_sale_price(waiter, tables, catalog):
    account = account_service.open_table_account(tables[1], waiter)
    account = account_service.add_item(account["id"], waiter, combo_id=catalog["combo"], notes="sem açúcar")

    item = account["items"][0]
    assert item["kind"] == "combo"
    assert item["unit_price"] == "15.00"
    assert item["notes"] == "sem açúcar"


def test_add_inactive_product_is_rejected(waiter, tables, catalog):
    with get_session() as session:
        session.get(Product, catalog["juice"]).status = "inativo"
    account = account_service.open_table_account(tables[1], waiter)

    with pytest.raises(PreconditionFailed):
        account_service.add_item(account["id"], waiter, product_id=catalog["juice"])


def test_add_item_requires_exactly_one_reference(waiter, tables, catalog):
    account = account_service.open_table_account(tables[1], waiter)
    with pytest.raises(ValidationError):
        account_service.add_item(account["id"], waiter)
    with pytest.raises(ValidationError):
        account_service.add_item(
            account["id"], waiter, product_id=catalog["coffee"], combo_id=catalog["combo"]
        )


def test_send_to_kitchen_moves_only_pending_items(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("sandwich", 1), ("juice", 1))
    result = account_service.send_pending_to_kitchen(account["id"], waiter)
    assert result["sent"] == 2

    account = account_service.add_item(account["id"], waiter, product_id=catalog["coffee"])
    statuses = {item["name"]: item["status"] for item in account["items"]}
    assert statuses == {
        "Sandwich": ItemStatus.IN_KITCHEN,
        "Juice": ItemStatus.IN_KITCHEN,
        "Coffee": ItemStatus.PENDING,
    }
    for item in account["items"]:
        assert item["sent_to_kitchen"] is (item["status"] == ItemStatus.IN_KITCHEN)


def test_send_to_kitchen_with_nothing_pending(waiter, tables, catalog):
    account = account_service.open_table_account(tables[1], waiter)
    result = account_service.send_pending_to_kitchen(account["id"], waiter)

    assert result["sent"] == 0
    assert result["message"] == "Nenhum item pendente"


def test_item_in_kitchen_cannot_be_cancelled(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("sandwich", 1))
    account_service.send_pending_to_kitchen(account["id"], waiter)

    with pytest.raises(InvalidTransition):
        account_service.cancel_item(account["items"][0]["id"], waiter)


# ---------------------------------------------------------------------------
# Cancelling and leaving
# ---------------------------------------------------------------------------


def test_cancel_account_blocked_while_kitchen_busy(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("sandwich", 1))
    account_service.send_pending_to_kitchen(account["id"], waiter)

    with pytest.raises(PreconditionFailed) as exc_info:
        account_service.cancel_account(account["id"], waiter, "desistiu")

    assert exc_info.value.details["items"][0]["name"] == "Sandwich"
    assert _table(tables[5]).status == TableStatus.OCCUPIED
    assert account_service.get_account(account["id"])["status"] == AccountStatus.OPEN


def test_cancel_account_cancels_pending_and_frees_table(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 2))

    cancelled = account_service.cancel_account(account["id"], waiter, "cliente foi embora")

    assert cancelled["status"] == AccountStatus.CANCELLED
    assert all(item["status"] == ItemStatus.CANCELLED for item in cancelled["items"])
    table = _table(tables[5])
    assert table.status == TableStatus.FREE
    assert table.current_account_id is None

    with get_session() as session:
        entry = session.execute(select(CashEntry).where(CashEntry.account_id == account["id"])).scalar_one()
    assert entry.kind == CashEntryKind.CANCELLATION
    assert entry.amount == Decimal("0.00")
    assert "cliente foi embora" in entry.description
    assert entry.cash_session_id is None


def test_cancel_account_with_delivered_items_writes_them_off(waiter, cashier, tables, catalog):
    cash_service.open_cash_session("100.00", cashier)
    account = _open_with(waiter, tables, catalog, ("sandwich", 1))
    item_id = account["items"][0]["id"]
    account_service.send_pending_to_kitchen(account["id"], waiter)
    account_service.mark_ready(item_id)
    account_service.mark_delivered(item_id)

    account_service.cancel_account(account["id"], waiter)

    with get_session() as session:
        entry = session.execute(select(CashEntry).where(CashEntry.account_id == account["id"])).scalar_one()
        today = session.execute(select(CashSession)).scalar_one()
    assert "1x Sandwich" in entry.description
    assert entry.cash_session_id == today.id


def test_cancel_account_with_delivered_items_can_be_blocked(monkeypatch, waiter, tables, catalog):
    monkeypatch.setenv("BLOCK_CANCEL_WITH_DELIVERED", "true")
    account = _open_with(waiter, tables, catalog, ("sandwich", 1))
    item_id = account["items"][0]["id"]
    account_service.send_pending_to_kitchen(account["id"], waiter)
    account_service.mark_ready(item_id)
    account_service.mark_delivered(item_id)

    with pytest.raises(PreconditionFailed):
        account_service.cancel_account(account["id"], waiter)


def test_cancel_closed_account_is_rejected(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 1))
    account_service.cancel_account(account["id"], waiter)

    with pytest.raises(PreconditionFailed):
        account_service.cancel_account(account["id"], waiter)


def test_leaving_empty_account_discards_it(waiter, tables):
    account = account_service.open_table_account(tables[1], waiter)

    result = account_service.return_to_table_selection(account["id"], waiter)

    assert result["cancelled"] is True
    assert result["account"]["status"] == AccountStatus.CANCELLED
    assert _table(tables[1]).status == TableStatus.FREE
    with get_session() as session:
        assert session.execute(select(CashEntry)).first() is None


def test_leaving_account_with_items_keeps_it_open(waiter, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 1))

    result = account_service.return_to_table_selection(account["id"], waiter)

    assert result["cancelled"] is False
    assert _table(tables[5]).status == TableStatus.OCCUPIED


# ---------------------------------------------------------------------------
# Adjustments and closing
# ---------------------------------------------------------------------------


def test_adjustments_recompute_final_total(waiter, cashier, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 2), ("sandwich", 1))

    adjusted = account_service.apply_adjustments(
        account["id"], cashier, discount="2.00", service_charge_percent="10"
    )

    assert adjusted["subtotal"] == "22.00"
    assert adjusted["service_charge_amount"] == "2.20"
    assert adjusted["final_total"] == "22.20"


def test_discount_cannot_make_total_negative(waiter, cashier, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 1))
    with pytest.raises(ValidationError):
        account_service.apply_adjustments(account["id"], cashier, discount="6.00")
    assert account_service.get_account(account["id"])["discount"] == "0.00"


def test_split_payment_closes_account_and_updates_cash_totals(waiter, cashier, tables, catalog):
    cash_service.open_cash_session("50.00", cashier)
    account = _open_with(waiter, tables, catalog, ("coffee", 1), ("sandwich", 1), ("juice", 1))
    assert account["final_total"] == "25.00"

    closed = account_service.close_account_for_payment(
        account["id"],
        [{"method": "dinheiro", "amount": "10.00"}, {"method": "pix", "amount": "15.00"}],
        cashier,
    )

    assert closed["status"] == AccountStatus.CLOSED
    assert closed["closed_by"] == cashier
    assert sorted(p["amount"] for p in closed["payments"]) == ["10.00", "15.00"]
    assert _table(tables[5]).status == TableStatus.FREE

    summary = cash_service.cash_summary()
    assert summary["totals"]["dinheiro"] == "10.00"
    assert summary["totals"]["pix"] == "15.00"
    assert summary["total_sales"] == "25.00"
    assert summary["expected_drawer_cash"] == "60.00"


def test_payment_mismatch_leaves_everything_untouched(waiter, cashier, tables, catalog):
    cash_service.open_cash_session("0", cashier)
    account = _open_with(waiter, tables, catalog, ("coffee", 1), ("sandwich", 1), ("juice", 1))

    with pytest.raises(ValidationError) as exc_info:
        account_service.close_account_for_payment(
            account["id"], [{"method": "cartao_credito", "amount": "20.00"}], cashier
        )

    assert exc_info.value.code == "PAY_001"
    assert exc_info.value.details == {"expected": "25.00", "received": "20.00"}
    assert account_service.get_account(account["id"])["status"] == AccountStatus.OPEN
    assert cash_service.cash_summary()["total_sales"] == "0.00"


def test_payment_within_one_cent_is_accepted(waiter, cashier, tables, catalog):
    cash_service.open_cash_session("0", cashier)
    account = _open_with(waiter, tables, catalog, ("coffee", 1))

    closed = account_service.close_account_for_payment(
        account["id"], [{"method": "cartao_debito", "amount": "4.99"}], cashier
    )
    assert closed["status"] == AccountStatus.CLOSED


def test_close_requires_open_cash_session(waiter, cashier, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 1))

    with pytest.raises(PreconditionFailed) as exc_info:
        account_service.close_account_for_payment(account["id"], [{"method": "pix", "amount": "5.00"}], cashier)

    assert exc_info.value.code == "CASH_001"
    assert _table(tables[5]).status == TableStatus.OCCUPIED


def test_close_requires_a_payment_line(waiter, cashier, tables, catalog):
    account = _open_with(waiter, tables, catalog, ("coffee", 1))
    with pytest.raises(ValidationError):
        account_service.close_account_for_payment(account["id"], [{"method": "pix", "amount": "0"}], cashier)


def test_account_with_every_item_cancelled_closes_without_payments(waiter, cashier, tables, catalog):
    cash_service.open_cash_session("0", cashier)
    account = _open_with(waiter, tables, catalog, ("coffee", 1))
    account_service.cancel_item(account["items"][0]["id"], waiter)

    closed = account_service.close_account_for_payment(account["id"], [], cashier)

    assert closed["status"] == AccountStatus.CLOSED
    assert closed["final_total"] == "0.00"
    assert closed["payments"] == []
    assert _table(tables[5]).status == TableStatus.FREE
    assert cash_service.cash_summary()["total_sales"] == "0.00"


def test_fully_discounted_account_closes_with_zero_payment_line(waiter, cashier, tables, catalog):
    cash_service.open_cash_session("0", cashier)
    account = _open_with(waiter, tables, catalog, ("coffee", 1))
    item_id = account["items"][0]["id"]
    account_service.send_pending_to_kitchen(account["id"], waiter)
    account_service.mark_ready(item_id)
    account_service.mark_delivered(item_id)
    account_service.apply_adjustments(account["id"], cashier, discount="5.00")

    closed = account_service.close_account_for_payment(
        account["id"], [{"method": "dinheiro", "amount": "0"}], cashier
    )

    assert closed["status"] == AccountStatus.CLOSED
    assert closed["payments"] == []
    assert _table(tables[5]).status == TableStatus.FREE
    summary = cash_service.cash_summary()
    assert summary["total_sales"] == "0.00"
    assert summary["total_discounts"] == "5.00"


def test_list_open_accounts_newest_first(waiter, tables, catalog):
    first = _open_with(waiter, tables, catalog, ("coffee", 1))
    second = account_service.open_walk_in_account("João", waiter)

    listed = account_service.list_open_accounts()

    assert [account["id"] for account in listed] == [second["id"], first["id"]]
    assert listed[1]["item_count"] == 1
    assert "items" not in listed[0]


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def test_second_open_account_for_same_table_is_a_conflict(waiter, tables):
    account_service.open_table_account(tables[1], waiter)

    with pytest.raises(ConflictError) as exc_info:
        with transactional() as session:
            session.add(Account(table_id=tables[1], kind="mesa", status="aberta", opened_by=waiter))

    assert exc_info.value.to_details()["retriable"] is True


def test_stale_table_version_is_a_conflict(tables):
    with pytest.raises(ConflictError):
        with transactional() as session:
            table = session.get(Table, tables[1])
            session.execute(text("UPDATE mesas SET versao = versao + 1 WHERE id = :id"), {"id": table.id})
            table.label = "Varanda"
            session.flush()

    assert _table(tables[1]).label is None
