"""
Table registry (mesas).

Registry edits only touch number and label. Occupancy is owned by the
account lifecycle and never changes here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from pdv_shared.audit_middleware import audit_action
from pdv_shared.db import get_session, transactional
from pdv_shared.errors import NotFoundError, PreconditionFailed, ValidationError
from pdv_shared.logging_config import get_logger
from pdv_shared.models import Account, Table
from pdv_shared.serializers import serialize_table
from pdv_shared.validation import optional_text, positive_int

logger = get_logger(__name__)


def list_tables() -> list[dict]:
    with get_session() as session:
        tables = session.execute(select(Table).order_by(Table.number)).scalars().all()
        return [serialize_table(table) for table in tables]


def _get_table(session: Session, table_id: str) -> Table:
    table = session.execute(
        select(Table).where(Table.id == table_id).with_for_update()
    ).scalar_one_or_none()
    if table is None:
        raise NotFoundError("Mesa não encontrada")
    return table


def _ensure_number_free(session: Session, number: int, exclude_id: str | None = None) -> None:
    stmt = select(Table.id).where(Table.number == number)
    if exclude_id:
        stmt = stmt.where(Table.id != exclude_id)
    if session.execute(stmt).first() is not None:
        raise ValidationError(f"Já existe uma mesa com o número {number}")


def create_table(number, label: str | None = None) -> dict:
    number = positive_int(number, "numero")
    with transactional(f"Já existe uma mesa com o número {number}") as session:
        _ensure_number_free(session, number)
        table = Table(number=number, label=optional_text(label, max_length=80))
        session.add(table)
        session.flush()
        audit_action("TABLE_CREATED", f"numero={number}")
        return serialize_table(table)


def update_table(table_id: str, number=None, label: str | None = None, clear_label: bool = False) -> dict:
    """Renumber and/or relabel a table; an occupied table keeps its number."""
    with transactional() as session:
        table = _get_table(session, table_id)
        if number is not None:
            number = positive_int(number, "numero")
            if number != table.number:
                if table.occupied:
                    raise PreconditionFailed("Mesa ocupada não pode ser renumerada")
                _ensure_number_free(session, number, exclude_id=table.id)
                table.number = number
        if label is not None or clear_label:
            table.label = optional_text(label, max_length=80)
        session.flush()
        return serialize_table(table)


def delete_table(table_id: str) -> None:
    with transactional() as session:
        table = _get_table(session, table_id)
        if table.occupied:
            raise PreconditionFailed("Mesa ocupada não pode ser excluída")
        has_history = session.execute(
            select(Account.id).where(Account.table_id == table.id).limit(1)
        ).first()
        if has_history is not None:
            raise PreconditionFailed(
                "Mesa possui contas registradas; altere o nome em vez de excluir"
            )
        session.delete(table)
        audit_action("TABLE_DELETED", f"numero={table.number}")
