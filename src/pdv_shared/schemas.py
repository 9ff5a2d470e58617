"""
Pydantic schemas for request validation.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from pdv_shared.constants import CashEntryKind, PaymentMethod


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, pattern=r"^[^@]+@[^@]+\.[^@]+$")
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase to ensure consistent authentication."""
        return v.strip().lower()


class TableRequest(BaseModel):
    number: int = Field(..., gt=0)
    label: str | None = Field(None, max_length=80)


class UpdateTableRequest(BaseModel):
    number: int | None = Field(None, gt=0)
    label: str | None = Field(None, max_length=80)


class WalkInAccountRequest(BaseModel):
    customer_name: str = Field(..., max_length=120)


class AddItemRequest(BaseModel):
    product_id: str | None = None
    combo_id: str | None = None
    quantity: int = Field(1, gt=0)
    notes: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def exactly_one_reference(self):
        if bool(self.product_id) == bool(self.combo_id):
            raise ValueError("Informe exatamente um entre product_id e combo_id")
        return self


class CancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class AdjustmentsRequest(BaseModel):
    discount: Decimal = Field(Decimal("0"), ge=0)
    service_charge_percent: Decimal | None = Field(None, ge=0, le=100)


class PaymentLine(BaseModel):
    method: PaymentMethod
    amount: Decimal = Field(..., ge=0)


class CloseAccountRequest(BaseModel):
    payments: list[PaymentLine] = Field(default_factory=list)


class OpenCashSessionRequest(BaseModel):
    opening_float: Decimal = Field(..., ge=0)


class CashEntryRequest(BaseModel):
    kind: CashEntryKind
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CASH

    @field_validator("kind")
    @classmethod
    def manual_kinds_only(cls, v):
        if v == CashEntryKind.CANCELLATION:
            raise ValueError("Lançamentos de cancelamento são gerados pelo sistema")
        return v


class ProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    photo_url: str | None = Field(None, max_length=500)
    price: Decimal = Field(..., ge=0)
    category: str | None = Field(None, max_length=80)
    made_by_kitchen: bool = False
    active: bool = True


class UpdateProductRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    photo_url: str | None = Field(None, max_length=500)
    price: Decimal | None = Field(None, ge=0)
    category: str | None = Field(None, max_length=80)
    made_by_kitchen: bool | None = None
    active: bool | None = None


class ComboMemberRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, gt=0)


class ComboRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    photo_url: str | None = Field(None, max_length=500)
    sale_price: Decimal = Field(..., ge=0)
    made_by_kitchen: bool = False
    active: bool = True
    members: list[ComboMemberRequest] = Field(..., min_length=1)


class UpdateComboRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    photo_url: str | None = Field(None, max_length=500)
    sale_price: Decimal | None = Field(None, ge=0)
    made_by_kitchen: bool | None = None
    active: bool | None = None
    members: list[ComboMemberRequest] | None = Field(None, min_length=1)
