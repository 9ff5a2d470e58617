"""
SQLAlchemy ORM models shared by the PDV services.

Table and column names follow the hosted Supabase schema; attribute names are
English so the service layer reads the same as the rest of the code.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .constants import (
    MONEY_QUANT,
    AccountKind,
    AccountStatus,
    CashSessionStatus,
    CatalogStatus,
    ItemStatus,
    PaymentMethod,
    TableStatus,
)
from .datetime_utils import utcnow
from .security import hash_credentials, verify_credentials


def _uuid() -> str:
    return str(uuid.uuid4())


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


class Base(DeclarativeBase):
    pass


class Profile(Base):
    """Staff member; `id` is the Supabase auth user id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column("nome", String(120), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    active: Mapped[bool] = mapped_column("ativo", Boolean, nullable=False, default=True)
    auth_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def set_password(self, password: str) -> None:
        self.auth_hash = hash_credentials(self.email, password)

    def verify_password(self, password: str) -> bool:
        return verify_credentials(self.email, password, self.auth_hash)


class Product(Base):
    __tablename__ = "produtos"
    __table_args__ = (
        CheckConstraint("valor >= 0", name="ck_produtos_valor_non_negative"),
        Index("ix_produtos_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column("nome", String(120), nullable=False)
    description: Mapped[str | None] = mapped_column("descricao", Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column("foto_url", String(500), nullable=True)
    price: Mapped[Decimal] = mapped_column("valor", Numeric(10, 2), nullable=False)
    category: Mapped[str | None] = mapped_column("categoria", String(80), nullable=True)
    made_by_kitchen: Mapped[bool] = mapped_column(
        "feito_pela_cozinha", Boolean, nullable=False, default=False
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CatalogStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def active(self) -> bool:
        return self.status == CatalogStatus.ACTIVE


class Combo(Base):
    __tablename__ = "combos"
    __table_args__ = (
        CheckConstraint("valor_venda >= 0", name="ck_combos_valor_venda_non_negative"),
        Index("ix_combos_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column("nome", String(120), nullable=False)
    description: Mapped[str | None] = mapped_column("descricao", Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column("foto_url", String(500), nullable=True)
    products_total: Mapped[Decimal] = mapped_column(
        "valor_total_produtos", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    sale_price: Mapped[Decimal] = mapped_column("valor_venda", Numeric(10, 2), nullable=False)
    made_by_kitchen: Mapped[bool] = mapped_column(
        "feito_pela_cozinha", Boolean, nullable=False, default=False
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CatalogStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    members: Mapped[list[ComboProduct]] = relationship(
        "ComboProduct",
        back_populates="combo",
        cascade="all, delete-orphan",
        order_by="ComboProduct.position",
    )

    @property
    def active(self) -> bool:
        return self.status == CatalogStatus.ACTIVE

    def recompute_products_total(self) -> Decimal:
        """Sum of member product prices times quantities."""
        total = sum(
            (_money(member.product.price) * member.quantity for member in self.members),
            Decimal("0.00"),
        )
        self.products_total = _money(total)
        return self.products_total


class ComboProduct(Base):
    __tablename__ = "combo_produtos"
    __table_args__ = (CheckConstraint("quantidade > 0", name="ck_combo_produtos_quantidade"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    combo_id: Mapped[str] = mapped_column(
        ForeignKey("combos.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str] = mapped_column("produto_id", ForeignKey("produtos.id"), nullable=False)
    quantity: Mapped[int] = mapped_column("quantidade", Integer, nullable=False, default=1)
    position: Mapped[int] = mapped_column("posicao", Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    combo: Mapped[Combo] = relationship("Combo", back_populates="members")
    product: Mapped[Product] = relationship("Product")


class Table(Base):
    """
    Physical table. Occupied iff `current_account_id` points to the open
    account of this table; every write bumps `version`.
    """

    __tablename__ = "mesas"
    __table_args__ = (CheckConstraint("numero > 0", name="ck_mesas_numero_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    number: Mapped[int] = mapped_column("numero", Integer, unique=True, nullable=False)
    label: Mapped[str | None] = mapped_column("nome", String(80), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=TableStatus.FREE.value)
    current_account_id: Mapped[str | None] = mapped_column(
        "conta_atual_id", String(36), nullable=True
    )
    version: Mapped[int] = mapped_column("versao", Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def occupied(self) -> bool:
        return self.status == TableStatus.OCCUPIED

    def occupy(self, account_id: str) -> None:
        self.status = TableStatus.OCCUPIED.value
        self.current_account_id = account_id

    def release(self) -> None:
        self.status = TableStatus.FREE.value
        self.current_account_id = None


class Account(Base):
    """Conta: the running bill of a table or a walk-in customer."""

    __tablename__ = "contas"
    __table_args__ = (
        Index("ix_contas_status", "status"),
        Index(
            "ux_contas_mesa_aberta",
            "mesa_id",
            unique=True,
            postgresql_where=text("status = 'aberta'"),
            sqlite_where=text("status = 'aberta'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    table_id: Mapped[str | None] = mapped_column("mesa_id", ForeignKey("mesas.id"), nullable=True)
    customer_name: Mapped[str | None] = mapped_column("nome_cliente", String(120), nullable=True)
    kind: Mapped[str] = mapped_column("tipo", String(16), nullable=False, default=AccountKind.TABLE.value)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=AccountStatus.OPEN.value
    )
    subtotal: Mapped[Decimal] = mapped_column(
        "valor_total", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    discount: Mapped[Decimal] = mapped_column(
        "valor_desconto", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    service_charge_percent: Mapped[Decimal] = mapped_column(
        "taxa_servico_percentual", Numeric(5, 2), nullable=False, default=Decimal("0.00")
    )
    service_charge_amount: Mapped[Decimal] = mapped_column(
        "valor_taxa_servico", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    final_total: Mapped[Decimal] = mapped_column(
        "valor_final", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    opened_by: Mapped[str] = mapped_column("aberta_por", ForeignKey("profiles.id"), nullable=False)
    closed_by: Mapped[str | None] = mapped_column(
        "fechada_por", ForeignKey("profiles.id"), nullable=True
    )
    opened_at: Mapped[datetime] = mapped_column("aberta_em", DateTime, nullable=False, default=utcnow)
    closed_at: Mapped[datetime | None] = mapped_column("fechada_em", DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column("observacoes", Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    table: Mapped[Table | None] = relationship("Table")
    items: Mapped[list[AccountItem]] = relationship(
        "AccountItem",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="AccountItem.created_at",
    )
    payments: Mapped[list[Payment]] = relationship(
        "Payment", back_populates="account", cascade="all, delete-orphan"
    )

    @property
    def is_open(self) -> bool:
        return self.status == AccountStatus.OPEN

    @property
    def live_items(self) -> list[AccountItem]:
        return [item for item in self.items if not item.cancelled]

    def recompute_totals(self) -> None:
        """
        subtotal = sum of non-cancelled line totals;
        final = subtotal - discount + service charge.
        """
        subtotal = sum((_money(item.line_total) for item in self.live_items), Decimal("0.00"))
        self.subtotal = _money(subtotal)
        percent = Decimal(str(self.service_charge_percent or 0))
        self.service_charge_amount = _money(self.subtotal * percent / Decimal("100"))
        self.final_total = _money(self.subtotal - _money(self.discount) + self.service_charge_amount)


class AccountItem(Base):
    __tablename__ = "conta_itens"
    __table_args__ = (
        Index("ix_conta_itens_conta", "conta_id"),
        Index("ix_conta_itens_status_enviado", "status", "enviado_em"),
        CheckConstraint("quantidade > 0", name="ck_conta_itens_quantidade"),
        CheckConstraint(
            "(produto_id IS NOT NULL AND combo_id IS NULL) OR "
            "(produto_id IS NULL AND combo_id IS NOT NULL)",
            name="ck_conta_itens_produto_xor_combo",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    account_id: Mapped[str] = mapped_column(
        "conta_id", ForeignKey("contas.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str | None] = mapped_column(
        "produto_id", ForeignKey("produtos.id"), nullable=True
    )
    combo_id: Mapped[str | None] = mapped_column(ForeignKey("combos.id"), nullable=True)
    kind: Mapped[str] = mapped_column("tipo", String(16), nullable=False)
    name: Mapped[str] = mapped_column("nome", String(120), nullable=False)
    quantity: Mapped[int] = mapped_column("quantidade", Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column("valor_unitario", Numeric(10, 2), nullable=False)
    line_total: Mapped[Decimal] = mapped_column("valor_total", Numeric(10, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column("observacoes", Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ItemStatus.PENDING.value
    )
    sent_to_kitchen: Mapped[bool] = mapped_column(
        "enviado_para_cozinha", Boolean, nullable=False, default=False
    )
    sent_at: Mapped[datetime | None] = mapped_column("enviado_em", DateTime, nullable=True)
    ready_at: Mapped[datetime | None] = mapped_column("pronto_em", DateTime, nullable=True)
    production_seconds: Mapped[int | None] = mapped_column(
        "tempo_producao_segundos", Integer, nullable=True
    )
    delivered_at: Mapped[datetime | None] = mapped_column("entregue_em", DateTime, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(
        "cancelado_por", ForeignKey("profiles.id"), nullable=True
    )
    cancelled_at: Mapped[datetime | None] = mapped_column("cancelado_em", DateTime, nullable=True)
    cancel_reason: Mapped[str | None] = mapped_column("motivo_cancelamento", Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    account: Mapped[Account] = relationship("Account", back_populates="items")

    @property
    def cancelled(self) -> bool:
        return self.status == ItemStatus.CANCELLED

    def recompute_line_total(self) -> None:
        self.line_total = _money(_money(self.unit_price) * self.quantity)


class Payment(Base):
    __tablename__ = "conta_pagamentos"
    __table_args__ = (CheckConstraint("valor > 0", name="ck_conta_pagamentos_valor_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    account_id: Mapped[str] = mapped_column(
        "conta_id", ForeignKey("contas.id", ondelete="CASCADE"), nullable=False
    )
    method: Mapped[str] = mapped_column("forma_pagamento", String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column("valor", Numeric(10, 2), nullable=False)
    recorded_by: Mapped[str] = mapped_column(
        "registrado_por", ForeignKey("profiles.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    account: Mapped[Account] = relationship("Account", back_populates="payments")


class CashSession(Base):
    """Caixa: one register session per calendar day."""

    __tablename__ = "caixas"
    __table_args__ = (
        CheckConstraint("fundo_de_caixa >= 0", name="ck_caixas_fundo_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    day: Mapped[date] = mapped_column("data", Date, unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CashSessionStatus.OPEN.value
    )
    opened_by: Mapped[str] = mapped_column("aberto_por", ForeignKey("profiles.id"), nullable=False)
    closed_by: Mapped[str | None] = mapped_column(
        "fechado_por", ForeignKey("profiles.id"), nullable=True
    )
    opening_float: Mapped[Decimal] = mapped_column("fundo_de_caixa", Numeric(10, 2), nullable=False)
    opened_at: Mapped[datetime] = mapped_column("aberto_em", DateTime, nullable=False, default=utcnow)
    closed_at: Mapped[datetime | None] = mapped_column("fechado_em", DateTime, nullable=True)
    total_cash: Mapped[Decimal] = mapped_column(
        "total_vendas_dinheiro", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_credit: Mapped[Decimal] = mapped_column(
        "total_vendas_cartao_credito", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_debit: Mapped[Decimal] = mapped_column(
        "total_vendas_cartao_debito", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_pix: Mapped[Decimal] = mapped_column(
        "total_vendas_pix", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_discounts: Mapped[Decimal] = mapped_column(
        "total_descontos", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_service_charge: Mapped[Decimal] = mapped_column(
        "total_taxa_servico", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_expenses: Mapped[Decimal] = mapped_column(
        "total_gastos", Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    notes: Mapped[str | None] = mapped_column("observacoes", Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    entries: Mapped[list[CashEntry]] = relationship(
        "CashEntry", back_populates="cash_session", order_by="CashEntry.created_at"
    )

    _METHOD_COLUMNS = {
        PaymentMethod.CASH: "total_cash",
        PaymentMethod.CREDIT: "total_credit",
        PaymentMethod.DEBIT: "total_debit",
        PaymentMethod.PIX: "total_pix",
    }

    @property
    def is_open(self) -> bool:
        return self.status == CashSessionStatus.OPEN

    @property
    def total_sales(self) -> Decimal:
        return _money(self.total_cash) + _money(self.total_credit) + _money(
            self.total_debit
        ) + _money(self.total_pix)

    def add_sale(self, method: PaymentMethod, amount: Decimal) -> None:
        column = self._METHOD_COLUMNS[PaymentMethod(method)]
        setattr(self, column, _money(getattr(self, column)) + _money(amount))


class CashEntry(Base):
    """
    Lançamento de caixa: cash outflows/inflows recorded by the cashier and the
    zero-value audit entries written when an account is cancelled.
    """

    __tablename__ = "caixa_lancamentos"
    __table_args__ = (
        CheckConstraint("valor >= 0", name="ck_caixa_lancamentos_valor_non_negative"),
        Index("ix_caixa_lancamentos_caixa", "caixa_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    cash_session_id: Mapped[str | None] = mapped_column(
        "caixa_id", ForeignKey("caixas.id"), nullable=True
    )
    account_id: Mapped[str | None] = mapped_column("conta_id", ForeignKey("contas.id"), nullable=True)
    kind: Mapped[str] = mapped_column("tipo", String(16), nullable=False)
    description: Mapped[str] = mapped_column("descricao", Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column("valor", Numeric(10, 2), nullable=False)
    method: Mapped[str | None] = mapped_column("forma_pagamento", String(32), nullable=True)
    recorded_by: Mapped[str] = mapped_column(
        "registrado_por", ForeignKey("profiles.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    cash_session: Mapped[CashSession | None] = relationship("CashSession", back_populates="entries")
