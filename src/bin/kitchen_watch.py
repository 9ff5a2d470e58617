#!/usr/bin/env python3
"""
Terminal kitchen display: prints the Cozinha rail every second and reloads
the tickets every KITCHEN_REFRESH_SECONDS.
"""

import argparse
import signal

from pdv_shared.config import load_config
from pdv_shared.db import init_engine
from pdv_shared.logging_config import configure_logging
from pdv_shared.services.kitchen_service import KitchenRail


def _format_elapsed(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def _where(ticket: dict) -> str:
    if ticket.get("table_number") is not None:
        return f"Mesa {ticket['table_number']}"
    return ticket.get("customer_name") or "Avulso"


def render(view: dict) -> None:
    print("\033[2J\033[H", end="")
    print(f"COZINHA  {view['generated_at'][:19]}  (atualizado {view['last_refresh'] or '-'})")
    for title, tickets in (("EM PRODUÇÃO", view["in_production"]), ("PRONTOS", view["ready"])):
        print(f"\n{title} ({len(tickets)})")
        print("-" * 60)
        for ticket in tickets:
            elapsed = _format_elapsed(ticket["elapsed_seconds"])
            print(f"{elapsed}  {ticket['quantity']}x {ticket['name']:<28} {_where(ticket)}")
            if ticket.get("notes"):
                print(f"        obs: {ticket['notes']}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Kitchen display in the terminal")
    parser.add_argument("--refresh", type=int, default=None, help="reload interval in seconds")
    args = parser.parse_args()

    config = load_config("pdv-kitchen")
    configure_logging(config.app_name, "WARNING")
    init_engine(config)

    rail = KitchenRail(refresh_seconds=args.refresh, on_update=render)
    signal.signal(signal.SIGTERM, lambda *_: rail.stop())
    try:
        rail.run()
    except KeyboardInterrupt:
        rail.stop()


if __name__ == "__main__":
    main()
