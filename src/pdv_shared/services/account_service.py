"""
Order lifecycle core: tables, accounts (contas) and their items.

Every public operation runs in a single transaction, so a failure in any step
leaves Table, Account and AccountItem exactly as they were. Table occupancy
and the open account of a table are always written together.
"""

from __future__ import annotations

import os
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from pdv_shared.audit_middleware import audit_action
from pdv_shared.config import AppConfig, load_config
from pdv_shared.constants import (
    KITCHEN_BUSY_STATUSES,
    PAYMENT_TOLERANCE,
    AccountKind,
    AccountStatus,
    CashEntryKind,
    ItemKind,
    ItemStatus,
)
from pdv_shared.datetime_utils import utcnow
from pdv_shared.db import get_session, transactional
from pdv_shared.errors import NotFoundError, PreconditionFailed, ValidationError
from pdv_shared.logging_config import get_logger
from pdv_shared.models import (
    Account,
    AccountItem,
    CashEntry,
    Combo,
    Payment,
    Product,
    Table,
)
from pdv_shared.serializers import serialize_account, serialize_item
from pdv_shared.services import cash_service
from pdv_shared.services.item_state_machine import (
    ItemEvent,
    TransitionContext,
    item_state_machine,
)
from pdv_shared.validation import (
    non_negative_money,
    optional_text,
    positive_int,
    require_text,
    to_money,
    validate_payment_method,
)

logger = get_logger(__name__)

TABLE_RACE_MESSAGE = "A mesa foi aberta em outro terminal; recarregue e tente novamente"


def _config() -> AppConfig:
    return load_config(os.getenv("APP_NAME", "pdv"))


def _account_label(account: Account) -> str:
    if account.table is not None:
        return account.table.label or f"Mesa {account.table.number}"
    return account.customer_name or "Avulso"


def _load_account(session: Session, account_id: str, lock: bool = True) -> Account:
    stmt = select(Account).where(Account.id == account_id)
    if lock:
        stmt = stmt.with_for_update()
    account = session.execute(stmt).scalars().one_or_none()
    if account is None:
        raise NotFoundError("Conta não encontrada")
    return account


def _require_open(account: Account) -> None:
    if not account.is_open:
        raise PreconditionFailed(f"A conta já está {account.status}")


def _open_account_of_table(session: Session, table_id: str) -> Account | None:
    return (
        session.execute(
            select(Account).where(
                Account.table_id == table_id, Account.status == AccountStatus.OPEN.value
            )
        )
        .scalars()
        .first()
    )


def _release_table(session: Session, account: Account) -> None:
    """Free the table of `account` when it still points at it."""
    if account.table_id is None:
        return
    table = session.execute(
        select(Table).where(Table.id == account.table_id).with_for_update()
    ).scalar_one_or_none()
    if table is not None and table.current_account_id == account.id:
        table.release()


# ---------------------------------------------------------------------------
# Opening accounts
# ---------------------------------------------------------------------------


def open_table_account(table_id: str, actor: str) -> dict:
    """
    Open the account of a table, or return its open account when the table is
    already occupied (re-entry from another terminal or a second visit).
    """
    with transactional(TABLE_RACE_MESSAGE) as session:
        table = session.execute(
            select(Table).where(Table.id == table_id).with_for_update()
        ).scalar_one_or_none()
        if table is None:
            raise NotFoundError("Mesa não encontrada")

        if table.occupied and table.current_account_id:
            current = session.get(Account, table.current_account_id)
            if current is not None and current.is_open and current.table_id == table.id:
                audit_action("ACCOUNT_REENTERED", f"table={table.number} account={current.id}", actor=actor)
                return serialize_account(current)

        # A free table with an open account, or an occupied one pointing at a
        # closed account, is repaired before going on.
        stray = _open_account_of_table(session, table.id)
        if stray is not None:
            logger.warning(
                "Table %s was %s but had open account %s; relinking",
                table.number,
                table.status,
                stray.id,
            )
            table.occupy(stray.id)
            session.flush()
            return serialize_account(stray)
        if table.occupied:
            logger.warning(
                "Table %s was occupied without an open account (%s); opening a new one",
                table.number,
                table.current_account_id,
            )

        account = Account(
            table_id=table.id,
            kind=AccountKind.TABLE.value,
            status=AccountStatus.OPEN.value,
            opened_by=actor,
            opened_at=utcnow(),
            service_charge_percent=_config().default_service_charge_percent,
        )
        session.add(account)
        session.flush()
        table.occupy(account.id)
        account.table = table
        session.flush()

        audit_action("ACCOUNT_OPENED", f"table={table.number} account={account.id}", actor=actor)
        return serialize_account(account)


def open_walk_in_account(customer_name: str, actor: str) -> dict:
    """Open a counter (avulso) account; the customer name is required."""
    name = (customer_name or "").strip()
    if not name:
        raise ValidationError("Informe o nome do cliente")
    name = require_text(name, "nome_cliente", max_length=120)

    with transactional() as session:
        account = Account(
            table_id=None,
            customer_name=name,
            kind=AccountKind.WALK_IN.value,
            status=AccountStatus.OPEN.value,
            opened_by=actor,
            opened_at=utcnow(),
            service_charge_percent=_config().default_service_charge_percent,
        )
        session.add(account)
        session.flush()

        audit_action("ACCOUNT_OPENED", f"walk_in account={account.id}", actor=actor)
        return serialize_account(account)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def add_item(
    account_id: str,
    actor: str,
    product_id: str | None = None,
    combo_id: str | None = None,
    quantity: int = 1,
    notes: str | None = None,
) -> dict:
    """
    Append a product or combo to an open account as a pending item. Name and
    price are copied from the catalog so later price changes do not touch it.
    """
    if bool(product_id) == bool(combo_id):
        raise ValidationError("Informe exatamente um entre produto e combo")
    quantity = positive_int(quantity, "quantidade")

    with transactional() as session:
        account = _load_account(session, account_id)
        _require_open(account)

        if product_id:
            entry = session.get(Product, product_id)
            if entry is None:
                raise NotFoundError("Produto não encontrado")
            kind, unit_price = ItemKind.PRODUCT, entry.price
        else:
            entry = session.get(Combo, combo_id)
            if entry is None:
                raise NotFoundError("Combo não encontrado")
            kind, unit_price = ItemKind.COMBO, entry.sale_price
        if not entry.active:
            raise PreconditionFailed(f"'{entry.name}' está inativo e não pode ser vendido")

        item = AccountItem(
            product_id=product_id or None,
            combo_id=combo_id or None,
            kind=kind.value,
            name=entry.name,
            quantity=quantity,
            unit_price=to_money(unit_price),
            notes=optional_text(notes),
            status=ItemStatus.PENDING.value,
            sent_to_kitchen=False,
            created_at=utcnow(),
        )
        item.recompute_line_total()
        account.items.append(item)
        account.recompute_totals()
        session.flush()

        logger.info("Item %s x%s added to account %s", item.name, quantity, account.id)
        return serialize_account(account)


def send_pending_to_kitchen(account_id: str, actor: str, now: datetime | None = None) -> dict:
    """
    Move every pending item of the account to the kitchen. Having nothing to
    send is not an error: the result just reports `sent == 0`.
    """
    now = now or utcnow()
    with transactional() as session:
        account = _load_account(session, account_id)
        _require_open(account)

        pending = [item for item in account.items if item.status == ItemStatus.PENDING]
        for item in pending:
            item_state_machine.apply_transition(
                TransitionContext(item=item, event=ItemEvent.SEND_TO_KITCHEN, actor_id=actor, now=now)
            )
        session.flush()

        if pending:
            audit_action("ITEMS_SENT_TO_KITCHEN", f"account={account.id} count={len(pending)}", actor=actor)
            message = "Pedido enviado para a cozinha"
        else:
            message = "Nenhum item pendente"
        return {"sent": len(pending), "message": message, "account": serialize_account(account)}


def cancel_item(item_id: str, actor: str, reason: str | None = None) -> dict:
    """Cancel a pending item; anything already committed to the kitchen is rejected."""
    with transactional() as session:
        item = session.get(AccountItem, item_id)
        if item is None:
            raise NotFoundError("Item não encontrado")
        account = _load_account(session, item.account_id)
        _require_open(account)

        item_state_machine.apply_transition(
            TransitionContext(
                item=item, event=ItemEvent.CANCEL, actor_id=actor, reason=optional_text(reason)
            )
        )
        account.recompute_totals()
        session.flush()

        audit_action("ITEM_CANCELLED", f"account={account.id} item={item.id} name={item.name}", actor=actor)
        return serialize_account(account)


def mark_ready(item_id: str, actor: str | None = None, now: datetime | None = None) -> dict:
    with transactional() as session:
        item = session.get(AccountItem, item_id)
        if item is None:
            raise NotFoundError("Item não encontrado")
        item_state_machine.apply_transition(
            TransitionContext(item=item, event=ItemEvent.MARK_READY, actor_id=actor, now=now or utcnow())
        )
        session.flush()
        logger.info("Item %s ready after %ss", item.id, item.production_seconds)
        return serialize_item(item)


def mark_delivered(item_id: str, actor: str | None = None, now: datetime | None = None) -> dict:
    with transactional() as session:
        item = session.get(AccountItem, item_id)
        if item is None:
            raise NotFoundError("Item não encontrado")
        item_state_machine.apply_transition(
            TransitionContext(item=item, event=ItemEvent.DELIVER, actor_id=actor, now=now or utcnow())
        )
        session.flush()
        return serialize_item(item)


# ---------------------------------------------------------------------------
# Ending accounts
# ---------------------------------------------------------------------------


def _cancel_pending_and_account(
    session: Session, account: Account, actor: str, reason: str | None, now: datetime
) -> list[AccountItem]:
    cancelled = []
    for item in account.items:
        if item.status == ItemStatus.PENDING:
            item_state_machine.apply_transition(
                TransitionContext(item=item, event=ItemEvent.CANCEL, actor_id=actor, reason=reason, now=now)
            )
            cancelled.append(item)
    account.recompute_totals()
    account.status = AccountStatus.CANCELLED.value
    account.closed_by = actor
    account.closed_at = now
    if reason:
        account.notes = reason
    _release_table(session, account)
    return cancelled


def cancel_account(account_id: str, actor: str, reason: str | None = None) -> dict:
    """
    Cancel an open account.

    Rejected while any item is in the kitchen or ready. Pending items are
    cancelled with it; delivered items are either written off (listed in the
    audit entry) or block the operation, depending on
    `block_cancel_with_delivered`. A zero-value cancellation entry is recorded
    for the cash session and the table is freed.
    """
    reason = optional_text(reason)
    config = _config()
    now = utcnow()

    with transactional() as session:
        account = _load_account(session, account_id)
        _require_open(account)

        busy = [item for item in account.items if item.status in KITCHEN_BUSY_STATUSES]
        if busy:
            raise PreconditionFailed(
                "Há itens em produção ou prontos; não é possível cancelar a conta",
                details={
                    "items": [
                        {"id": item.id, "name": item.name, "status": item.status} for item in busy
                    ]
                },
            )

        delivered = [item for item in account.items if item.status == ItemStatus.DELIVERED]
        if delivered and config.block_cancel_with_delivered:
            raise PreconditionFailed(
                "Há itens já entregues; feche a conta no caixa em vez de cancelar",
                details={"items": [{"id": item.id, "name": item.name} for item in delivered]},
            )

        label = _account_label(account)
        cancelled = _cancel_pending_and_account(session, account, actor, reason, now)

        description = f"Cancelamento da conta {label}: {reason or 'sem motivo informado'}"
        if delivered:
            written_off = ", ".join(f"{item.quantity}x {item.name}" for item in delivered)
            description += f" | itens entregues baixados: {written_off}"

        today_session = cash_service.find_session_for_day(
            session, cash_service.business_day(config, now)
        )
        session.add(
            CashEntry(
                cash_session_id=today_session.id if today_session else None,
                account_id=account.id,
                kind=CashEntryKind.CANCELLATION.value,
                description=description,
                amount=Decimal("0.00"),
                method=None,
                recorded_by=actor,
                created_at=now,
            )
        )
        session.flush()

        audit_action(
            "ACCOUNT_CANCELLED",
            f"account={account.id} pending_cancelled={len(cancelled)} delivered={len(delivered)}",
            actor=actor,
        )
        return serialize_account(account)


def return_to_table_selection(account_id: str, actor: str) -> dict:
    """
    Leaving the order screen: an account without live items is cancelled
    silently so the table is not left occupied by nothing; any other account
    is left untouched.
    """
    with transactional() as session:
        account = _load_account(session, account_id)
        if not account.is_open or account.live_items:
            return {"cancelled": False, "account": serialize_account(account)}

        _cancel_pending_and_account(session, account, actor, None, utcnow())
        session.flush()

        audit_action("ACCOUNT_DISCARDED", f"account={account.id} (empty)", actor=actor)
        return {"cancelled": True, "account": serialize_account(account)}


def apply_adjustments(
    account_id: str,
    actor: str,
    discount=Decimal("0.00"),
    service_charge_percent=None,
) -> dict:
    """Set discount and service charge; the discount cannot exceed subtotal plus service."""
    discount = non_negative_money(discount, "valor_desconto")
    if service_charge_percent is not None:
        percent = to_money(service_charge_percent, "taxa_servico_percentual")
        if percent < 0 or percent > 100:
            raise ValidationError("A taxa de serviço deve estar entre 0 e 100%")
    else:
        percent = None

    with transactional() as session:
        account = _load_account(session, account_id)
        _require_open(account)

        if percent is not None:
            account.service_charge_percent = percent
        account.discount = discount
        account.recompute_totals()
        if account.final_total < 0:
            raise ValidationError(
                "O desconto não pode ser maior que o subtotal com a taxa de serviço"
            )
        session.flush()

        audit_action(
            "ACCOUNT_ADJUSTED",
            f"account={account.id} discount={discount} service={account.service_charge_percent}%",
            actor=actor,
        )
        return serialize_account(account)


def _parse_payments(payments: list[dict]) -> list[tuple]:
    parsed = []
    for line in payments or []:
        method = validate_payment_method(getattr(line.get("method"), "value", line.get("method")))
        amount = non_negative_money(line.get("amount"), "valor")
        if amount > 0:
            parsed.append((method, amount))
    return parsed


def close_account_for_payment(account_id: str, payments: list[dict], actor: str) -> dict:
    """
    Settle an open account with one or more payments.

    The sum of the payments must match the final total within 0.01 and today's
    cash session must be open; the session totals per method, discounts and
    service charge are incremented in the same transaction. An account whose
    final total is zero closes with no payment lines.
    """
    parsed = _parse_payments(payments)
    received = sum((amount for _, amount in parsed), Decimal("0.00"))
    now = utcnow()

    with transactional() as session:
        account = _load_account(session, account_id)
        _require_open(account)
        account.recompute_totals()

        if not parsed and account.final_total > PAYMENT_TOLERANCE:
            raise ValidationError("Informe ao menos um pagamento")
        if abs(received - account.final_total) > PAYMENT_TOLERANCE:
            raise ValidationError(
                f"Total dos pagamentos (R$ {received:.2f}) diferente do valor final "
                f"(R$ {account.final_total:.2f})",
                code="PAY_001",
                details={"expected": f"{account.final_total:.2f}", "received": f"{received:.2f}"},
            )

        cash_session = cash_service.require_open_session(session, now)

        for method, amount in parsed:
            account.payments.append(
                Payment(method=method.value, amount=amount, recorded_by=actor, created_at=now)
            )
            cash_session.add_sale(method, amount)
        cash_session.total_discounts = cash_session.total_discounts + account.discount
        cash_session.total_service_charge = (
            cash_session.total_service_charge + account.service_charge_amount
        )

        account.status = AccountStatus.CLOSED.value
        account.closed_by = actor
        account.closed_at = now
        _release_table(session, account)
        session.flush()

        audit_action(
            "ACCOUNT_CLOSED",
            f"account={account.id} total={account.final_total} "
            + " ".join(f"{method.value}={amount}" for method, amount in parsed),
            actor=actor,
        )
        return serialize_account(account)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_account(account_id: str) -> dict:
    with get_session() as session:
        account = session.execute(
            select(Account)
            .where(Account.id == account_id)
            .options(selectinload(Account.items), selectinload(Account.payments))
        ).scalar_one_or_none()
        if account is None:
            raise NotFoundError("Conta não encontrada")
        return serialize_account(account)


def list_open_accounts() -> list[dict]:
    """Open accounts for the Caixa screen, newest first."""
    with get_session() as session:
        accounts = (
            session.execute(
                select(Account)
                .where(Account.status == AccountStatus.OPEN.value)
                .options(selectinload(Account.table), selectinload(Account.items))
                .order_by(Account.opened_at.desc())
            )
            .scalars()
            .all()
        )
        result = []
        for account in accounts:
            data = serialize_account(account, include_items=False)
            data["item_count"] = len(account.live_items)
            result.append(data)
        return result
