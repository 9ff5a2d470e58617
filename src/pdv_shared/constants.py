"""
Application constants and enums.

Values are the literals stored by the hosted schema; member names are the
ones used across the Python code.
"""

from decimal import Decimal
from enum import Enum


class ItemStatus(str, Enum):
    PENDING = "pendente"
    IN_KITCHEN = "em_producao"
    READY = "pronto"
    DELIVERED = "entregue"
    CANCELLED = "cancelado"


class AccountStatus(str, Enum):
    OPEN = "aberta"
    CLOSED = "fechada"
    CANCELLED = "cancelada"


class AccountKind(str, Enum):
    TABLE = "mesa"
    WALK_IN = "avulso"


class TableStatus(str, Enum):
    FREE = "livre"
    OCCUPIED = "ocupada"


class PaymentMethod(str, Enum):
    CASH = "dinheiro"
    CREDIT = "cartao_credito"
    DEBIT = "cartao_debito"
    PIX = "pix"

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


class CashSessionStatus(str, Enum):
    OPEN = "aberto"
    CLOSED = "fechado"


class CashEntryKind(str, Enum):
    OUTFLOW = "saida"
    INFLOW = "entrada"
    CANCELLATION = "cancelamento"


class CatalogStatus(str, Enum):
    ACTIVE = "ativo"
    INACTIVE = "inativo"


class ItemKind(str, Enum):
    PRODUCT = "produto"
    COMBO = "combo"


class Roles(str, Enum):
    ADMIN = "admin"
    CASHIER = "caixa"
    KITCHEN = "cozinha"
    WAITER = "garcom"

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


class Area(str, Enum):
    """Screens a staff member can be routed to."""

    DASHBOARD = "dashboard"
    PDV = "pdv"
    KITCHEN = "cozinha"
    CASHIER = "caixa"
    ADMIN = "admin"
    PRODUCTS = "produtos"
    COMBOS = "combos"
    TABLES = "mesas"


# Forward-only item lifecycle plus the single side exit from PENDING.
ITEM_TRANSITIONS = {
    (ItemStatus.PENDING, ItemStatus.IN_KITCHEN): "send_to_kitchen",
    (ItemStatus.PENDING, ItemStatus.CANCELLED): "cancel",
    (ItemStatus.IN_KITCHEN, ItemStatus.READY): "mark_ready",
    (ItemStatus.READY, ItemStatus.DELIVERED): "mark_delivered",
}

# Items in these states block the cancellation of their account.
KITCHEN_BUSY_STATUSES = {ItemStatus.IN_KITCHEN, ItemStatus.READY}

# Items shown on the kitchen display.
KITCHEN_VISIBLE_STATUSES = {ItemStatus.IN_KITCHEN, ItemStatus.READY}

ROLE_REDIRECTS = {
    Roles.ADMIN: "/admin",
    Roles.CASHIER: "/caixa",
    Roles.KITCHEN: "/cozinha",
    Roles.WAITER: "/pdv",
}

ROLE_AREAS = {
    Area.DASHBOARD: {Roles.ADMIN, Roles.CASHIER, Roles.KITCHEN, Roles.WAITER},
    Area.PDV: {Roles.ADMIN, Roles.CASHIER, Roles.WAITER},
    Area.KITCHEN: {Roles.ADMIN, Roles.KITCHEN},
    Area.CASHIER: {Roles.ADMIN, Roles.CASHIER},
    Area.ADMIN: {Roles.ADMIN},
    Area.PRODUCTS: {Roles.ADMIN},
    Area.COMBOS: {Roles.ADMIN},
    Area.TABLES: {Roles.ADMIN},
}

PAYMENT_TOLERANCE = Decimal("0.01")
MONEY_QUANT = Decimal("0.01")

PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH: "Dinheiro",
    PaymentMethod.CREDIT: "Cartão de Crédito",
    PaymentMethod.DEBIT: "Cartão de Débito",
    PaymentMethod.PIX: "PIX",
}

ITEM_STATUS_LABELS = {
    ItemStatus.PENDING: "Pendente",
    ItemStatus.IN_KITCHEN: "Em produção",
    ItemStatus.READY: "Pronto",
    ItemStatus.DELIVERED: "Entregue",
    ItemStatus.CANCELLED: "Cancelado",
}

# Storage bucket used for each catalog photo kind.
PHOTO_KINDS = {"produtos", "combos"}
ALLOWED_PHOTO_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "gif"}
