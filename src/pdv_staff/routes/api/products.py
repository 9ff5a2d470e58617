"""
Products API - catálogo de produtos.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from pdv_shared.schemas import ProductRequest, UpdateProductRequest
from pdv_shared.serializers import success_response
from pdv_shared.services import catalog_service
from pdv_staff.decorators import admin_required, login_required

products_bp = Blueprint("products", __name__)


def _flag(name: str) -> bool:
    return request.args.get(name, "false").lower() in ("1", "true", "yes")


@products_bp.get("/products")
@login_required
def get_products():
    """
    Query params:
    - include_inactive: also list deactivated products (default: false)
    - search: case-insensitive match on the name
    """
    products = catalog_service.list_products(
        include_inactive=_flag("include_inactive"),
        search=request.args.get("search"),
    )
    return jsonify(success_response(products))


@products_bp.post("/products")
@admin_required
def post_product():
    data = ProductRequest(**(request.get_json(silent=True) or {}))
    product = catalog_service.create_product(**data.model_dump())
    return jsonify(success_response(product)), HTTPStatus.CREATED


@products_bp.put("/products/<product_id>")
@admin_required
def put_product(product_id: str):
    data = UpdateProductRequest(**(request.get_json(silent=True) or {}))
    product = catalog_service.update_product(product_id, **data.model_dump(exclude_unset=True))
    return jsonify(success_response(product))


@products_bp.delete("/products/<product_id>")
@admin_required
def delete_product(product_id: str):
    product = catalog_service.deactivate_product(product_id)
    return jsonify(success_response(product, message="Produto desativado"))
