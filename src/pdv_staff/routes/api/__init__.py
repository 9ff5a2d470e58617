"""
Staff API - Modular Blueprint Structure

This package organizes the staff API endpoints into logical sub-blueprints.
Each module handles a specific screen or resource.
"""

from flask import Blueprint
from sqlalchemy import text

from pdv_shared.db import get_engine

from .accounts import accounts_bp
from .auth import auth_bp
from .cashier import cashier_bp
from .combos import combos_bp
from .images import images_bp
from .kitchen import kitchen_bp
from .products import products_bp
from .tables import tables_bp

# Create main API blueprint
api_bp = Blueprint("api", __name__)

api_bp.register_blueprint(auth_bp)
api_bp.register_blueprint(tables_bp)
api_bp.register_blueprint(accounts_bp)
api_bp.register_blueprint(kitchen_bp)
api_bp.register_blueprint(cashier_bp)
api_bp.register_blueprint(products_bp)
api_bp.register_blueprint(combos_bp)
api_bp.register_blueprint(images_bp)


@api_bp.get("/health")
def health_check():
    """Simple health check endpoint"""
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "service": "pdv-staff-api"}, 200
