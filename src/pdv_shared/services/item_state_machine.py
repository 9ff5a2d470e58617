"""
Item State Machine - keeps the lifecycle of account items out of the model.

pending → in-kitchen → ready → delivered, with a single side exit
pending → cancelled. Every other move is rejected with InvalidTransition.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pdv_shared.constants import ITEM_STATUS_LABELS, ITEM_TRANSITIONS, ItemStatus
from pdv_shared.datetime_utils import elapsed_seconds, utcnow
from pdv_shared.errors import InvalidTransition
from pdv_shared.models import AccountItem


class ItemEvent(Enum):
    """Eventos que disparam transições de item."""

    SEND_TO_KITCHEN = "send_to_kitchen"
    MARK_READY = "mark_ready"
    DELIVER = "mark_delivered"
    CANCEL = "cancel"


EVENT_TARGETS = {
    ItemEvent.SEND_TO_KITCHEN: ItemStatus.IN_KITCHEN,
    ItemEvent.MARK_READY: ItemStatus.READY,
    ItemEvent.DELIVER: ItemStatus.DELIVERED,
    ItemEvent.CANCEL: ItemStatus.CANCELLED,
}


@dataclass
class TransitionContext:
    """Contexto de uma transição de item."""

    item: AccountItem
    event: ItemEvent
    actor_id: str | None = None
    reason: str | None = None
    now: datetime = field(default_factory=utcnow)


class ItemStateMachine:
    """
    Máquina de estados dos itens de conta.

    Responsibilities:
    - Validar transições permitidas
    - Aplicar os efeitos de cada transição (timestamps, auditoria)
    """

    def __init__(self):
        self._transition_handlers: dict[
            tuple[ItemStatus, ItemEvent], Callable[[TransitionContext], None]
        ] = {}
        self._register_handlers()

    def _register_handlers(self) -> None:
        self._transition_handlers[(ItemStatus.PENDING, ItemEvent.SEND_TO_KITCHEN)] = (
            self._handle_send_to_kitchen
        )
        self._transition_handlers[(ItemStatus.PENDING, ItemEvent.CANCEL)] = self._handle_cancel
        self._transition_handlers[(ItemStatus.IN_KITCHEN, ItemEvent.MARK_READY)] = (
            self._handle_mark_ready
        )
        self._transition_handlers[(ItemStatus.READY, ItemEvent.DELIVER)] = self._handle_deliver

    @staticmethod
    def status_of(item: AccountItem) -> ItemStatus:
        return ItemStatus(item.status)

    def can_transition(self, current_status: ItemStatus, event: ItemEvent) -> bool:
        return (ItemStatus(current_status), EVENT_TARGETS[event]) in ITEM_TRANSITIONS

    def validate_transition(self, context: TransitionContext) -> None:
        current_status = self.status_of(context.item)
        target_status = EVENT_TARGETS[context.event]
        if not self.can_transition(current_status, context.event):
            raise InvalidTransition(
                f"Item '{context.item.name}' está {ITEM_STATUS_LABELS[current_status].lower()} "
                f"e não pode passar para {ITEM_STATUS_LABELS[target_status].lower()}",
                current_status,
                target_status,
            )

    def apply_transition(self, context: TransitionContext) -> None:
        """Valida e aplica a transição."""
        self.validate_transition(context)
        handler = self._transition_handlers[(self.status_of(context.item), context.event)]
        handler(context)
        context.item.status = EVENT_TARGETS[context.event].value

    def _handle_send_to_kitchen(self, context: TransitionContext) -> None:
        context.item.sent_to_kitchen = True
        context.item.sent_at = context.now

    def _handle_mark_ready(self, context: TransitionContext) -> None:
        context.item.ready_at = context.now
        context.item.production_seconds = elapsed_seconds(context.item.sent_at, context.now)

    def _handle_deliver(self, context: TransitionContext) -> None:
        context.item.delivered_at = context.now

    def _handle_cancel(self, context: TransitionContext) -> None:
        context.item.cancelled_by = context.actor_id
        context.item.cancelled_at = context.now
        context.item.cancel_reason = context.reason


item_state_machine = ItemStateMachine()
