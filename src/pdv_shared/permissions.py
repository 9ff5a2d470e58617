"""
Permissões por papel.

Each staff role reaches a fixed set of screens (areas). Routes declare the
area they belong to and the decorators consult this module; a denied request
is told where the role should go instead.
"""

from __future__ import annotations

import logging

from pdv_shared.constants import ROLE_AREAS, ROLE_REDIRECTS, Area, Roles

logger = logging.getLogger(__name__)

AREA_PATHS = {
    Area.DASHBOARD: "/",
    Area.PDV: "/pdv",
    Area.KITCHEN: "/cozinha",
    Area.CASHIER: "/caixa",
    Area.ADMIN: "/admin",
    Area.PRODUCTS: "/admin/produtos",
    Area.COMBOS: "/admin/combos",
    Area.TABLES: "/admin/mesas",
}

AREA_TITLES = {
    Area.DASHBOARD: "Início",
    Area.PDV: "PDV",
    Area.KITCHEN: "Cozinha",
    Area.CASHIER: "Caixa",
    Area.ADMIN: "Administração",
    Area.PRODUCTS: "Produtos",
    Area.COMBOS: "Combos",
    Area.TABLES: "Mesas",
}


def _as_role(role: str | None) -> Roles | None:
    try:
        return Roles(role) if role else None
    except ValueError:
        logger.warning("Unknown role in token: %s", role)
        return None


def can_access(role: str | None, area: Area | str) -> bool:
    """Return True when `role` may open `area`."""
    resolved = _as_role(role)
    if resolved is None:
        return False
    return resolved in ROLE_AREAS.get(Area(area), set())


def default_route(role: str | None) -> str:
    """Landing screen of a role; unknown roles go back to login."""
    resolved = _as_role(role)
    if resolved is None:
        return "/login"
    return ROLE_REDIRECTS[resolved]


def navigation_for(role: str | None) -> list[dict[str, str]]:
    """Menu entries visible to `role`, in display order."""
    return [
        {"area": area.value, "title": AREA_TITLES[area], "path": AREA_PATHS[area]}
        for area in Area
        if can_access(role, area)
    ]
