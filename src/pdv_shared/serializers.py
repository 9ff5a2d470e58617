"""
Serializers for consistent API responses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pdv_shared.constants import ITEM_STATUS_LABELS, PAYMENT_METHOD_LABELS, ItemStatus, PaymentMethod
from pdv_shared.datetime_utils import elapsed_seconds, isoformat
from pdv_shared.models import (
    Account,
    AccountItem,
    CashEntry,
    CashSession,
    Combo,
    Payment,
    Product,
    Table,
)


def _money(value) -> str:
    """Money travels as a string with two places so no float rounding leaks out."""
    if value is None:
        return "0.00"
    return f"{Decimal(str(value)):.2f}"


def serialize_table(table: Table) -> dict[str, Any]:
    return {
        "id": table.id,
        "number": table.number,
        "label": table.label,
        "status": table.status,
        "current_account_id": table.current_account_id,
        "version": table.version,
    }


def serialize_product(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "photo_url": product.photo_url,
        "price": _money(product.price),
        "category": product.category,
        "made_by_kitchen": product.made_by_kitchen,
        "status": product.status,
        "active": product.active,
    }


def serialize_combo(combo: Combo) -> dict[str, Any]:
    return {
        "id": combo.id,
        "name": combo.name,
        "description": combo.description,
        "photo_url": combo.photo_url,
        "products_total": _money(combo.products_total),
        "sale_price": _money(combo.sale_price),
        "made_by_kitchen": combo.made_by_kitchen,
        "status": combo.status,
        "active": combo.active,
        "members": [
            {
                "product_id": member.product_id,
                "product_name": member.product.name if member.product else None,
                "quantity": member.quantity,
            }
            for member in combo.members
        ],
    }


def serialize_item(item: AccountItem) -> dict[str, Any]:
    try:
        status_label = ITEM_STATUS_LABELS[ItemStatus(item.status)]
    except ValueError:
        status_label = item.status
    return {
        "id": item.id,
        "account_id": item.account_id,
        "kind": item.kind,
        "product_id": item.product_id,
        "combo_id": item.combo_id,
        "name": item.name,
        "quantity": item.quantity,
        "unit_price": _money(item.unit_price),
        "line_total": _money(item.line_total),
        "notes": item.notes,
        "status": item.status,
        "status_label": status_label,
        "cancelled": item.cancelled,
        "sent_to_kitchen": item.sent_to_kitchen,
        "sent_at": isoformat(item.sent_at),
        "ready_at": isoformat(item.ready_at),
        "production_seconds": item.production_seconds,
        "delivered_at": isoformat(item.delivered_at),
        "cancelled_by": item.cancelled_by,
        "cancelled_at": isoformat(item.cancelled_at),
        "cancel_reason": item.cancel_reason,
    }


def serialize_payment(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "method": payment.method,
        "method_label": PAYMENT_METHOD_LABELS.get(PaymentMethod(payment.method), payment.method),
        "amount": _money(payment.amount),
        "recorded_by": payment.recorded_by,
        "created_at": isoformat(payment.created_at),
    }


def serialize_account(account: Account, include_items: bool = True) -> dict[str, Any]:
    data = {
        "id": account.id,
        "table_id": account.table_id,
        "table_number": account.table.number if account.table else None,
        "table_label": account.table.label if account.table else None,
        "customer_name": account.customer_name,
        "kind": account.kind,
        "status": account.status,
        "subtotal": _money(account.subtotal),
        "discount": _money(account.discount),
        "service_charge_percent": _money(account.service_charge_percent),
        "service_charge_amount": _money(account.service_charge_amount),
        "final_total": _money(account.final_total),
        "opened_by": account.opened_by,
        "closed_by": account.closed_by,
        "opened_at": isoformat(account.opened_at),
        "closed_at": isoformat(account.closed_at),
        "notes": account.notes,
    }
    if include_items:
        data["items"] = [serialize_item(item) for item in account.items]
        data["payments"] = [serialize_payment(payment) for payment in account.payments]
    return data


def serialize_kitchen_ticket(item: AccountItem, now: datetime | None = None) -> dict[str, Any]:
    account = item.account
    table = account.table if account else None
    return {
        "item_id": item.id,
        "account_id": item.account_id,
        "name": item.name,
        "quantity": item.quantity,
        "notes": item.notes,
        "status": item.status,
        "sent_at": isoformat(item.sent_at),
        "elapsed_seconds": elapsed_seconds(item.sent_at, now),
        "table_number": table.number if table else None,
        "table_label": table.label if table else None,
        "customer_name": account.customer_name if account else None,
    }


def serialize_cash_entry(entry: CashEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "cash_session_id": entry.cash_session_id,
        "account_id": entry.account_id,
        "kind": entry.kind,
        "description": entry.description,
        "amount": _money(entry.amount),
        "method": entry.method,
        "recorded_by": entry.recorded_by,
        "created_at": isoformat(entry.created_at),
    }


def serialize_cash_session(cash_session: CashSession) -> dict[str, Any]:
    return {
        "id": cash_session.id,
        "date": isoformat(cash_session.day),
        "status": cash_session.status,
        "opened_by": cash_session.opened_by,
        "closed_by": cash_session.closed_by,
        "opening_float": _money(cash_session.opening_float),
        "opened_at": isoformat(cash_session.opened_at),
        "closed_at": isoformat(cash_session.closed_at),
        "totals": {
            PaymentMethod.CASH.value: _money(cash_session.total_cash),
            PaymentMethod.CREDIT.value: _money(cash_session.total_credit),
            PaymentMethod.DEBIT.value: _money(cash_session.total_debit),
            PaymentMethod.PIX.value: _money(cash_session.total_pix),
        },
        "total_sales": _money(cash_session.total_sales),
        "total_discounts": _money(cash_session.total_discounts),
        "total_service_charge": _money(cash_session.total_service_charge),
        "total_expenses": _money(cash_session.total_expenses),
        "notes": cash_session.notes,
    }


def success_response(data: Any, message: str | None = None) -> dict[str, Any]:
    """Create a standardized success response."""
    response = {"status": "success", "data": data, "error": None}
    if message:
        response["message"] = message
    return response


def error_response(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a standardized error response."""
    response = {"status": "error", "data": None, "error": error}
    if details:
        response["details"] = details
    return response
