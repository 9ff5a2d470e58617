"""
Input validation utilities.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pdv_shared.constants import MONEY_QUANT, PaymentMethod
from pdv_shared.errors import ValidationError


def to_money(value, field: str = "valor") -> Decimal:
    """Parse a monetary amount into a two-place Decimal (ROUND_HALF_UP)."""
    if value is None or value == "":
        raise ValidationError(f"O campo '{field}' é obrigatório")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Valor inválido para '{field}': {value}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Valor inválido para '{field}': {value}")
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def non_negative_money(value, field: str = "valor") -> Decimal:
    amount = to_money(value, field)
    if amount < 0:
        raise ValidationError(f"O campo '{field}' não pode ser negativo")
    return amount


def positive_money(value, field: str = "valor") -> Decimal:
    amount = to_money(value, field)
    if amount <= 0:
        raise ValidationError(f"O campo '{field}' deve ser maior que zero")
    return amount


def require_text(value: str | None, field: str, max_length: int = 255) -> str:
    """Strip and require a non-empty string."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"O campo '{field}' é obrigatório")
    if len(text) > max_length:
        raise ValidationError(f"O campo '{field}' aceita no máximo {max_length} caracteres")
    return text


def optional_text(value: str | None, max_length: int = 500) -> str | None:
    text = (value or "").strip()
    if not text:
        return None
    return text[:max_length]


def positive_int(value, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError(f"O campo '{field}' deve ser um número inteiro") from exc
    if isinstance(value, (float, Decimal)) and number != value:
        raise ValidationError(f"O campo '{field}' deve ser um número inteiro")
    if isinstance(value, bool) or number <= 0:
        raise ValidationError(f"O campo '{field}' deve ser um inteiro positivo")
    return number


def validate_payment_method(method: str) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError as exc:
        allowed = ", ".join(sorted(PaymentMethod.all_values()))
        raise ValidationError(
            f"Forma de pagamento inválida: {method}. Valores permitidos: {allowed}"
        ) from exc
