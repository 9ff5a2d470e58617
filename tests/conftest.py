import os
from decimal import Decimal

os.environ["SECRET_KEY"] = "test-secret-key-with-enough-entropy-0123456789"
os.environ["PASSWORD_HASH_SALT"] = "test-salt"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_NAME"] = "pdv-test"
os.environ["TIMEZONE"] = "America/Sao_Paulo"
os.environ["LOG_LEVEL"] = "WARNING"
for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY", "CORS_ALLOWED_ORIGINS"):
    os.environ.pop(name, None)

import pytest  # noqa: E402

from pdv_shared.constants import Roles  # noqa: E402
from pdv_shared.db import dispose_engine, get_session  # noqa: E402
from pdv_shared.jwt_service import create_access_token  # noqa: E402
from pdv_shared.models import Combo, ComboProduct, Product, Profile, Table  # noqa: E402
from pdv_shared.supabase.client import reset_clients  # noqa: E402
from pdv_staff.app import create_app  # noqa: E402

PASSWORD = "senha123"


@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv("DEFAULT_SERVICE_CHARGE_PERCENT", raising=False)
    monkeypatch.delenv("BLOCK_CANCEL_WITH_DELIVERED", raising=False)
    dispose_engine()
    reset_clients()
    flask_app = create_app()
    flask_app.config["TESTING"] = True
    yield flask_app
    dispose_engine()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def profiles(app):
    """One active profile per role, keyed by role value."""
    created = {}
    with get_session() as session:
        for role in Roles:
            profile = Profile(
                email=f"{role.value}@padaria.test",
                name=f"Perfil {role.value}",
                role=role.value,
                active=True,
            )
            profile.set_password(PASSWORD)
            session.add(profile)
            session.flush()
            created[role.value] = profile.id
    return created


@pytest.fixture
def tokens(app, profiles):
    with app.app_context():
        return {
            role: create_access_token(profile_id, f"Perfil {role}", f"{role}@padaria.test", role)
            for role, profile_id in profiles.items()
        }


@pytest.fixture
def auth_headers(tokens):
    def _headers(role: str) -> dict:
        return {"Authorization": f"Bearer {tokens[role]}"}

    return _headers


@pytest.fixture
def waiter(profiles):
    return profiles[Roles.WAITER.value]


@pytest.fixture
def cashier(profiles):
    return profiles[Roles.CASHIER.value]


@pytest.fixture
def catalog(app):
    """Coffee 5.00 (counter), Sandwich 12.00 and Juice 8.00 (kitchen) plus a breakfast combo."""
    with get_session() as session:
        coffee = Product(name="Coffee", price=Decimal("5.00"), made_by_kitchen=False, status="ativo")
        sandwich = Product(name="Sandwich", price=Decimal("12.00"), made_by_kitchen=True, status="ativo")
        juice = Product(name="Juice", price=Decimal("8.00"), made_by_kitchen=True, status="ativo")
        session.add_all([coffee, sandwich, juice])
        session.flush()
        combo = Combo(name="Café da manhã", sale_price=Decimal("15.00"), status="ativo")
        combo.members = [
            ComboProduct(product=coffee, product_id=coffee.id, quantity=1, position=0),
            ComboProduct(product=sandwich, product_id=sandwich.id, quantity=1, position=1),
        ]
        combo.recompute_products_total()
        session.add(combo)
        session.flush()
        return {
            "coffee": coffee.id,
            "sandwich": sandwich.id,
            "juice": juice.id,
            "combo": combo.id,
        }


@pytest.fixture
def tables(app):
    with get_session() as session:
        rows = [Table(number=number) for number in (1, 2, 5)]
        session.add_all(rows)
        session.flush()
        return {row.number: row.id for row in rows}
