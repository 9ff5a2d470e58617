"""
Kitchen display (Cozinha).

Tickets are the items sent to the kitchen that are still in production or
ready, oldest first. `KitchenRail` is the single scheduled task of a kitchen
view: every tick recomputes the elapsed time of each ticket from `sent_at`,
and every `refresh_seconds` it reloads the tickets from the database.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from pdv_shared.config import load_config
from pdv_shared.constants import KITCHEN_VISIBLE_STATUSES, ItemStatus
from pdv_shared.datetime_utils import elapsed_seconds, utcnow
from pdv_shared.db import get_session
from pdv_shared.logging_config import LoggerAdapter, get_logger
from pdv_shared.models import Account, AccountItem
from pdv_shared.serializers import serialize_kitchen_ticket

logger = get_logger(__name__)


def list_kitchen_tickets(now: datetime | None = None) -> list[dict]:
    now = now or utcnow()
    with get_session() as session:
        items = (
            session.execute(
                select(AccountItem)
                .where(
                    AccountItem.sent_to_kitchen.is_(True),
                    AccountItem.status.in_([status.value for status in KITCHEN_VISIBLE_STATUSES]),
                )
                .options(joinedload(AccountItem.account).joinedload(Account.table))
                .order_by(AccountItem.sent_at.asc(), AccountItem.created_at.asc())
            )
            .scalars()
            .all()
        )
        return [serialize_kitchen_ticket(item, now) for item in items]


def split_by_status(tickets: list[dict]) -> dict[str, list[dict]]:
    return {
        "in_production": [t for t in tickets if t["status"] == ItemStatus.IN_KITCHEN],
        "ready": [t for t in tickets if t["status"] == ItemStatus.READY],
    }


TicketFetcher = Callable[[datetime], list[dict]]
ViewListener = Callable[[dict], None]


class KitchenRail:
    """
    Owns both cadences of a kitchen view: the per-second elapsed display and
    the periodic reload. Only one timer runs per rail.
    """

    def __init__(
        self,
        fetch: TicketFetcher = list_kitchen_tickets,
        refresh_seconds: int | None = None,
        on_update: ViewListener | None = None,
        tick_seconds: float = 1.0,
        name: str = "cozinha",
    ) -> None:
        if refresh_seconds is None:
            refresh_seconds = load_config(os.getenv("APP_NAME", "pdv")).kitchen_refresh_seconds
        if refresh_seconds <= 0:
            raise ValueError("refresh_seconds must be positive")
        self.fetch = fetch
        self.refresh_seconds = refresh_seconds
        self.tick_seconds = tick_seconds
        self.on_update = on_update
        self.log = LoggerAdapter(logger, {"kitchen_view": name})
        self._tickets: list[dict] = []
        self._sent_at: dict[str, datetime | None] = {}
        self._last_refresh: datetime | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def last_refresh(self) -> datetime | None:
        return self._last_refresh

    def refresh_due(self, now: datetime) -> bool:
        if self._last_refresh is None:
            return True
        return (now - self._last_refresh).total_seconds() >= self.refresh_seconds

    def refresh(self, now: datetime | None = None) -> None:
        now = now or utcnow()
        tickets = self.fetch(now)
        self._tickets = tickets
        self._sent_at = {
            ticket["item_id"]: datetime.fromisoformat(ticket["sent_at"]) if ticket["sent_at"] else None
            for ticket in tickets
        }
        self._last_refresh = now
        self.log.debug("Kitchen tickets reloaded: %d", len(tickets))

    def view(self, now: datetime | None = None) -> dict:
        """Current tickets with elapsed time as of `now`, split by status."""
        now = now or utcnow()
        tickets = [
            {**ticket, "elapsed_seconds": elapsed_seconds(self._sent_at.get(ticket["item_id"]), now)}
            for ticket in self._tickets
        ]
        return {
            "generated_at": now.isoformat(),
            "last_refresh": self._last_refresh.isoformat() if self._last_refresh else None,
            "tickets": tickets,
            **split_by_status(tickets),
        }

    def tick(self, now: datetime | None = None) -> dict:
        """One beat of the rail: reload when due, then publish the view."""
        now = now or utcnow()
        if self.refresh_due(now):
            try:
                self.refresh(now)
            except Exception:
                # keep showing the last snapshot; next tick retries
                self.log.exception("Kitchen refresh failed")
        current = self.view(now)
        if self.on_update is not None:
            self.on_update(current)
        return current

    def run(self) -> None:
        """Blocking loop until `stop()` is called."""
        self.log.info("Kitchen rail started (refresh every %ss)", self.refresh_seconds)
        self.tick()
        while not self._stop.wait(self.tick_seconds):
            self.tick()
        self.log.info("Kitchen rail stopped")

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="kitchen-rail", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
