"""
Catalog back office: products, combos and their photos.

Nothing is physically deleted; deactivating flips the lifecycle status so
past account items keep pointing at a valid catalog row.
"""

from __future__ import annotations

import os
import time
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from pdv_shared.audit_middleware import audit_action
from pdv_shared.config import load_config
from pdv_shared.constants import ALLOWED_PHOTO_EXTENSIONS, PHOTO_KINDS, CatalogStatus
from pdv_shared.db import get_session, transactional
from pdv_shared.errors import NotFoundError, PreconditionFailed, ValidationError
from pdv_shared.logging_config import get_logger
from pdv_shared.models import Combo, ComboProduct, Product
from pdv_shared.serializers import serialize_combo, serialize_product
from pdv_shared.supabase.storage import SupabaseStorage
from pdv_shared.validation import non_negative_money, optional_text, positive_int, require_text

logger = get_logger(__name__)


def _status(active: bool) -> str:
    return CatalogStatus.ACTIVE.value if active else CatalogStatus.INACTIVE.value


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def list_products(include_inactive: bool = False, search: str | None = None) -> list[dict]:
    with get_session() as session:
        stmt = select(Product).order_by(Product.name)
        if not include_inactive:
            stmt = stmt.where(Product.status == CatalogStatus.ACTIVE.value)
        if search and search.strip():
            stmt = stmt.where(func.lower(Product.name).contains(search.strip().lower()))
        return [serialize_product(product) for product in session.execute(stmt).scalars()]


def _get_product(session: Session, product_id: str) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Produto não encontrado")
    return product


def create_product(
    name: str,
    price,
    description: str | None = None,
    photo_url: str | None = None,
    category: str | None = None,
    made_by_kitchen: bool = False,
    active: bool = True,
) -> dict:
    product = Product(
        name=require_text(name, "nome", max_length=120),
        price=non_negative_money(price, "valor"),
        description=optional_text(description, max_length=2000),
        photo_url=optional_text(photo_url),
        category=optional_text(category, max_length=80),
        made_by_kitchen=bool(made_by_kitchen),
        status=_status(active),
    )
    with transactional() as session:
        session.add(product)
        session.flush()
        audit_action("PRODUCT_CREATED", f"{product.id} {product.name} {product.price}")
        return serialize_product(product)


def _refresh_combos_with(session: Session, product_id: str) -> None:
    combos = (
        session.execute(
            select(Combo)
            .join(ComboProduct, ComboProduct.combo_id == Combo.id)
            .where(ComboProduct.product_id == product_id)
            .options(selectinload(Combo.members).selectinload(ComboProduct.product))
        )
        .scalars()
        .unique()
        .all()
    )
    for combo in combos:
        combo.recompute_products_total()


def update_product(product_id: str, **changes) -> dict:
    """Partial update; only the given fields change."""
    with transactional() as session:
        product = _get_product(session, product_id)
        price_changed = False

        if "name" in changes and changes["name"] is not None:
            product.name = require_text(changes["name"], "nome", max_length=120)
        if "price" in changes and changes["price"] is not None:
            new_price = non_negative_money(changes["price"], "valor")
            price_changed = new_price != product.price
            product.price = new_price
        if "description" in changes:
            product.description = optional_text(changes["description"], max_length=2000)
        if "photo_url" in changes:
            product.photo_url = optional_text(changes["photo_url"])
        if "category" in changes:
            product.category = optional_text(changes["category"], max_length=80)
        if changes.get("made_by_kitchen") is not None:
            product.made_by_kitchen = bool(changes["made_by_kitchen"])
        if changes.get("active") is not None:
            product.status = _status(changes["active"])

        session.flush()
        if price_changed:
            _refresh_combos_with(session, product.id)
            session.flush()
        return serialize_product(product)


def deactivate_product(product_id: str) -> dict:
    with transactional() as session:
        product = _get_product(session, product_id)
        product.status = CatalogStatus.INACTIVE.value
        session.flush()
        audit_action("PRODUCT_DEACTIVATED", f"{product.id} {product.name}")
        return serialize_product(product)


# ---------------------------------------------------------------------------
# Combos
# ---------------------------------------------------------------------------


def list_combos(include_inactive: bool = False) -> list[dict]:
    with get_session() as session:
        stmt = (
            select(Combo)
            .options(selectinload(Combo.members).selectinload(ComboProduct.product))
            .order_by(Combo.name)
        )
        if not include_inactive:
            stmt = stmt.where(Combo.status == CatalogStatus.ACTIVE.value)
        return [serialize_combo(combo) for combo in session.execute(stmt).scalars()]


def _get_combo(session: Session, combo_id: str) -> Combo:
    combo = session.execute(
        select(Combo)
        .where(Combo.id == combo_id)
        .options(selectinload(Combo.members).selectinload(ComboProduct.product))
    ).scalar_one_or_none()
    if combo is None:
        raise NotFoundError("Combo não encontrado")
    return combo


def _build_members(session: Session, members: list[dict]) -> list[ComboProduct]:
    """Validate the member list and build the rows, keeping the given order."""
    if not members:
        raise ValidationError("Adicione pelo menos um produto ao combo")

    rows = []
    seen: dict[str, ComboProduct] = {}
    for position, member in enumerate(members):
        product_id = member.get("product_id")
        quantity = positive_int(member.get("quantity", 1), "quantidade")
        product = session.get(Product, product_id) if product_id else None
        if product is None:
            raise NotFoundError(f"Produto do combo não encontrado: {product_id}")
        if not product.active:
            raise PreconditionFailed(f"O produto '{product.name}' está inativo")
        if product_id in seen:
            seen[product_id].quantity += quantity
            continue
        row = ComboProduct(product=product, product_id=product.id, quantity=quantity, position=position)
        seen[product_id] = row
        rows.append(row)
    return rows


def create_combo(
    name: str,
    sale_price,
    members: list[dict],
    description: str | None = None,
    photo_url: str | None = None,
    made_by_kitchen: bool = False,
    active: bool = True,
) -> dict:
    name = require_text(name, "nome", max_length=120)
    price = non_negative_money(sale_price, "valor_venda")

    with transactional() as session:
        combo = Combo(
            name=name,
            sale_price=price,
            description=optional_text(description, max_length=2000),
            photo_url=optional_text(photo_url),
            made_by_kitchen=bool(made_by_kitchen),
            status=_status(active),
            products_total=Decimal("0.00"),
        )
        combo.members = _build_members(session, members)
        combo.recompute_products_total()
        session.add(combo)
        session.flush()

        audit_action("COMBO_CREATED", f"{combo.id} {combo.name} {combo.sale_price}")
        return serialize_combo(combo)


def update_combo(combo_id: str, **changes) -> dict:
    """Partial update; when `members` is given the whole member set is replaced."""
    with transactional() as session:
        combo = _get_combo(session, combo_id)

        if changes.get("name") is not None:
            combo.name = require_text(changes["name"], "nome", max_length=120)
        if changes.get("sale_price") is not None:
            combo.sale_price = non_negative_money(changes["sale_price"], "valor_venda")
        if "description" in changes:
            combo.description = optional_text(changes["description"], max_length=2000)
        if "photo_url" in changes:
            combo.photo_url = optional_text(changes["photo_url"])
        if changes.get("made_by_kitchen") is not None:
            combo.made_by_kitchen = bool(changes["made_by_kitchen"])
        if changes.get("active") is not None:
            combo.status = _status(changes["active"])
        if changes.get("members") is not None:
            new_members = _build_members(session, changes["members"])
            combo.members.clear()
            session.flush()
            combo.members.extend(new_members)

        combo.recompute_products_total()
        session.flush()
        return serialize_combo(combo)


def deactivate_combo(combo_id: str) -> dict:
    with transactional() as session:
        combo = _get_combo(session, combo_id)
        combo.status = CatalogStatus.INACTIVE.value
        session.flush()
        audit_action("COMBO_DEACTIVATED", f"{combo.id} {combo.name}")
        return serialize_combo(combo)


# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------


def upload_catalog_photo(
    kind: str,
    filename: str,
    content: bytes,
    content_type: str | None = None,
    now_ms: int | None = None,
) -> dict:
    """
    Store a product/combo photo and return its public URL.

    The object is named `<epoch-ms>.<ext>` in the bucket of its kind. Replaced
    photos are not removed from storage.
    """
    if kind not in PHOTO_KINDS:
        raise ValidationError(f"Tipo de foto inválido: {kind}")
    if not content:
        raise ValidationError("Arquivo vazio")
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    if ext not in ALLOWED_PHOTO_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_PHOTO_EXTENSIONS))
        raise ValidationError(f"Extensão não permitida. Use: {allowed}")

    config = load_config(os.getenv("APP_NAME", "pdv"))
    bucket = config.storage_bucket_products if kind == "produtos" else config.storage_bucket_combos
    path = f"{now_ms if now_ms is not None else int(time.time() * 1000)}.{ext}"

    SupabaseStorage.upload_bytes(bucket, path, content, content_type)
    url = SupabaseStorage.get_public_url(bucket, path)
    logger.info("Catalog photo stored at %s/%s", bucket, path)
    return {"bucket": bucket, "path": path, "url": url}
