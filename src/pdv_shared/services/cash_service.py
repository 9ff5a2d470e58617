"""
Caixa: daily cash-register session, running totals and manual cash entries.

A session is keyed by the local calendar day. Opening is idempotent per day;
payments and entries require the session of today to be open. The end-of-day
close flow is handled outside this service.
"""

from __future__ import annotations

import os
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pdv_shared.audit_middleware import audit_action
from pdv_shared.config import AppConfig, load_config
from pdv_shared.constants import CashEntryKind, CashSessionStatus, PaymentMethod
from pdv_shared.datetime_utils import local_today, utcnow
from pdv_shared.db import get_session, transactional
from pdv_shared.errors import NotFoundError, PreconditionFailed, ValidationError
from pdv_shared.logging_config import get_logger
from pdv_shared.models import CashEntry, CashSession
from pdv_shared.serializers import serialize_cash_entry, serialize_cash_session
from pdv_shared.validation import (
    non_negative_money,
    positive_money,
    require_text,
    validate_payment_method,
)

logger = get_logger(__name__)


def _config() -> AppConfig:
    return load_config(os.getenv("APP_NAME", "pdv"))


def business_day(config: AppConfig | None = None, now: datetime | None = None) -> date:
    """Calendar day of the restaurant for the given UTC instant."""
    config = config or _config()
    return local_today(config.timezone, now)


def find_session_for_day(session: Session, day: date, lock: bool = False) -> CashSession | None:
    stmt = select(CashSession).where(CashSession.day == day)
    if lock:
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalars().one_or_none()


def require_open_session(session: Session, now: datetime | None = None) -> CashSession:
    """
    Return today's cash session locked for update, or fail when it is missing
    or not open.
    """
    day = business_day(now=now)
    cash_session = find_session_for_day(session, day, lock=True)
    if cash_session is None or not cash_session.is_open:
        raise PreconditionFailed(
            f"O caixa do dia {day.strftime('%d/%m/%Y')} não está aberto",
            code="CASH_001",
        )
    return cash_session


def open_cash_session(
    opening_float, actor: str, day: date | None = None, notes: str | None = None
) -> dict:
    """
    Open the session of `day` (default: today) with the given float.

    When a session already exists for that day it is returned unchanged.
    """
    amount = non_negative_money(opening_float, "fundo_de_caixa")
    day = day or business_day()

    with transactional("O caixa do dia foi aberto por outro terminal") as session:
        existing = find_session_for_day(session, day)
        if existing is not None:
            logger.info("Cash session for %s already exists (%s)", day, existing.status)
            return serialize_cash_session(existing)

        cash_session = CashSession(
            day=day,
            status=CashSessionStatus.OPEN.value,
            opened_by=actor,
            opening_float=amount,
            opened_at=utcnow(),
            notes=notes,
        )
        session.add(cash_session)
        session.flush()

        audit_action("CASH_SESSION_OPENED", f"day={day.isoformat()} float={amount}", actor=actor)
        return serialize_cash_session(cash_session)


def get_cash_session(day: date | None = None) -> dict | None:
    day = day or business_day()
    with get_session() as session:
        cash_session = find_session_for_day(session, day)
        return serialize_cash_session(cash_session) if cash_session else None


def _expected_drawer_cash(cash_session: CashSession) -> tuple[Decimal, Decimal, Decimal]:
    inflows = Decimal("0.00")
    outflows = Decimal("0.00")
    for entry in cash_session.entries:
        if entry.method != PaymentMethod.CASH:
            continue
        if entry.kind == CashEntryKind.INFLOW:
            inflows += entry.amount
        elif entry.kind == CashEntryKind.OUTFLOW:
            outflows += entry.amount
    expected = cash_session.opening_float + cash_session.total_cash + inflows - outflows
    return expected, inflows, outflows


def cash_summary(day: date | None = None) -> dict:
    """
    Resumo do dia: totals per method, total sales and the cash expected in the
    drawer (float + cash sales + cash inflows - cash outflows).
    """
    day = day or business_day()
    with get_session() as session:
        cash_session = find_session_for_day(session, day)
        if cash_session is None:
            raise NotFoundError(f"Nenhum caixa registrado em {day.strftime('%d/%m/%Y')}")

        expected, inflows, outflows = _expected_drawer_cash(cash_session)
        data = serialize_cash_session(cash_session)
        data.update(
            {
                "cash_inflows": f"{inflows:.2f}",
                "cash_outflows": f"{outflows:.2f}",
                "expected_drawer_cash": f"{expected:.2f}",
                "entries": [serialize_cash_entry(entry) for entry in cash_session.entries],
            }
        )
        return data


def record_cash_entry(
    kind: str,
    description: str,
    amount,
    actor: str,
    method: str = PaymentMethod.CASH.value,
) -> dict:
    """Record a manual outflow (sangria, compra) or inflow (reforço) on today's session."""
    try:
        entry_kind = CashEntryKind(kind)
    except ValueError as exc:
        raise ValidationError(f"Tipo de lançamento inválido: {kind}") from exc
    if entry_kind == CashEntryKind.CANCELLATION:
        raise ValidationError("Lançamentos de cancelamento são gerados pelo sistema")

    description = require_text(description, "descricao", max_length=500)
    value = positive_money(amount, "valor")
    payment_method = validate_payment_method(method)

    with transactional() as session:
        cash_session = require_open_session(session)
        entry = CashEntry(
            cash_session_id=cash_session.id,
            kind=entry_kind.value,
            description=description,
            amount=value,
            method=payment_method.value,
            recorded_by=actor,
            created_at=utcnow(),
        )
        session.add(entry)
        if entry_kind == CashEntryKind.OUTFLOW:
            cash_session.total_expenses = cash_session.total_expenses + value
        session.flush()

        audit_action("CASH_ENTRY_RECORDED", f"{entry_kind.value} {value} {payment_method.value}", actor=actor)
        return serialize_cash_entry(entry)
