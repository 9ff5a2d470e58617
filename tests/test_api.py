import pytest

from .conftest import PASSWORD


def _data(response):
    body = response.get_json()
    assert body["status"] == "success", body
    return body["data"]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_login_returns_tokens_and_redirect(client, profiles):
    response = client.post("/api/auth/login", json={"email": "cozinha@padaria.test", "password": PASSWORD})

    data = _data(response)
    assert data["redirect_to"] == "/cozinha"
    assert data["profile"]["role"] == "cozinha"
    assert data["access_token"]
    assert "access_token" in response.headers.get("Set-Cookie", "")


def test_login_with_bad_credentials(client, profiles):
    response = client.post("/api/auth/login", json={"email": "cozinha@padaria.test", "password": "x"})
    assert response.status_code == 401
    assert response.get_json()["details"]["code"] == "AUTH_001"


def test_login_payload_is_validated(client, app):
    response = client.post("/api/auth/login", json={"email": "nope"})
    assert response.status_code == 400
    assert response.get_json()["details"]["code"] == "VALID_001"


def test_me_requires_token(client, app):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.get_json()["details"]["code"] == "AUTH_001"


def test_me_with_token(client, auth_headers):
    data = _data(client.get("/api/auth/me", headers=auth_headers("garcom")))
    assert data["profile"]["role"] == "garcom"
    assert [entry["area"] for entry in data["navigation"]] == ["dashboard", "pdv"]


@pytest.mark.parametrize(
    "role,method,path",
    [
        ("cozinha", "post", "/api/accounts/walk-in"),
        ("garcom", "get", "/api/accounts/open"),
        ("garcom", "get", "/api/kitchen/tickets"),
        ("caixa", "get", "/api/kitchen/tickets"),
        ("garcom", "post", "/api/cash-session/open"),
        ("caixa", "post", "/api/products"),
        ("cozinha", "post", "/api/tables"),
    ],
)
def test_role_restrictions(client, auth_headers, role, method, path):
    response = getattr(client, method)(path, json={}, headers=auth_headers(role))

    assert response.status_code == 403
    body = response.get_json()
    assert body["details"]["code"] == "PERM_001"
    assert body["details"]["redirect_to"] == {"cozinha": "/cozinha", "garcom": "/pdv", "caixa": "/caixa"}[role]


def test_order_flow_over_http(client, auth_headers, tables, catalog):
    waiter = auth_headers("garcom")
    cashier = auth_headers("caixa")
    kitchen = auth_headers("cozinha")

    account = _data(client.post(f"/api/tables/{tables[5]}/open", headers=waiter))
    account_id = account["id"]
    again = _data(client.post(f"/api/tables/{tables[5]}/open", headers=cashier))
    assert again["id"] == account_id

    response = client.post(
        f"/api/accounts/{account_id}/items",
        json={"product_id": catalog["sandwich"], "quantity": 1},
        headers=waiter,
    )
    assert response.status_code == 201
    _data(client.post(f"/api/accounts/{account_id}/items", json={"product_id": catalog["juice"]}, headers=waiter))
    _data(client.post(f"/api/accounts/{account_id}/items", json={"product_id": catalog["coffee"]}, headers=waiter))

    sent = _data(client.post(f"/api/accounts/{account_id}/send-to-kitchen", headers=waiter))
    assert sent["sent"] == 3

    tickets = _data(client.get("/api/kitchen/tickets", headers=kitchen))
    assert len(tickets["in_production"]) == 3
    sandwich = next(t for t in tickets["tickets"] if t["name"] == "Sandwich")
    juice = next(t for t in tickets["tickets"] if t["name"] == "Juice")

    cancel = client.post(f"/api/accounts/{account_id}/cancel", json={"reason": "teste"}, headers=waiter)
    assert cancel.status_code == 409
    assert cancel.get_json()["details"]["code"] == "STATE_002"

    item_cancel = client.post(f"/api/items/{sandwich['item_id']}/cancel", json={}, headers=waiter)
    assert item_cancel.status_code == 409
    assert item_cancel.get_json()["details"]["code"] == "STATE_001"

    ready = _data(client.post(f"/api/kitchen/items/{sandwich['item_id']}/ready", headers=kitchen))
    assert ready["status"] == "pronto"
    premature = client.post(f"/api/kitchen/items/{juice['item_id']}/delivered", headers=kitchen)
    assert premature.status_code == 409

    closing = {"payments": [{"method": "dinheiro", "amount": "10.00"}, {"method": "pix", "amount": "15.00"}]}
    no_session = client.post(f"/api/accounts/{account_id}/close", json=closing, headers=cashier)
    assert no_session.status_code == 409
    assert no_session.get_json()["details"]["code"] == "CASH_001"

    assert _data(client.get("/api/cash-session", headers=cashier)) is None
    _data(client.post("/api/cash-session/open", json={"opening_float": "30.00"}, headers=cashier))

    mismatch = client.post(
        f"/api/accounts/{account_id}/close",
        json={"payments": [{"method": "cartao_credito", "amount": "20.00"}]},
        headers=cashier,
    )
    assert mismatch.status_code == 400
    assert mismatch.get_json()["details"]["code"] == "PAY_001"

    closed = _data(client.post(f"/api/accounts/{account_id}/close", json=closing, headers=cashier))
    assert closed["status"] == "fechada"

    summary = _data(client.get("/api/cash-session", headers=cashier))
    assert summary["total_sales"] == "25.00"
    assert summary["expected_drawer_cash"] == "40.00"

    table = next(t for t in _data(client.get("/api/tables", headers=waiter)) if t["number"] == 5)
    assert table["status"] == "livre"


def test_walk_in_and_leave(client, auth_headers, app):
    waiter = auth_headers("garcom")

    missing = client.post("/api/accounts/walk-in", json={"customer_name": " "}, headers=waiter)
    assert missing.status_code == 400

    response = client.post("/api/accounts/walk-in", json={"customer_name": "Maria"}, headers=waiter)
    assert response.status_code == 201
    account = response.get_json()["data"]

    left = _data(client.post(f"/api/accounts/{account['id']}/leave", headers=waiter))
    assert left["cancelled"] is True


def test_adjustments_and_open_accounts(client, auth_headers, tables, catalog):
    waiter = auth_headers("garcom")
    cashier = auth_headers("caixa")
    account = _data(client.post(f"/api/tables/{tables[1]}/open", headers=waiter))
    client.post(f"/api/accounts/{account['id']}/items", json={"product_id": catalog["coffee"], "quantity": 2}, headers=waiter)

    adjusted = _data(
        client.post(
            f"/api/accounts/{account['id']}/adjustments",
            json={"discount": "1.00", "service_charge_percent": "10"},
            headers=cashier,
        )
    )
    assert adjusted["final_total"] == "10.00"

    open_accounts = _data(client.get("/api/accounts/open", headers=cashier))
    assert [a["id"] for a in open_accounts] == [account["id"]]


def test_courtesy_account_closes_without_payments(client, auth_headers, tables, catalog):
    waiter = auth_headers("garcom")
    cashier = auth_headers("caixa")
    _data(client.post("/api/cash-session/open", json={"opening_float": "0"}, headers=cashier))
    account = _data(client.post(f"/api/tables/{tables[2]}/open", headers=waiter))
    client.post(f"/api/accounts/{account['id']}/items", json={"product_id": catalog["juice"]}, headers=waiter)
    _data(client.post(f"/api/accounts/{account['id']}/adjustments", json={"discount": "8.00"}, headers=cashier))

    closed = _data(client.post(f"/api/accounts/{account['id']}/close", json={"payments": []}, headers=cashier))

    assert closed["status"] == "fechada"
    assert closed["final_total"] == "0.00"
    table = next(t for t in _data(client.get("/api/tables", headers=waiter)) if t["number"] == 2)
    assert table["status"] == "livre"


def test_cash_entries(client, auth_headers, app):
    cashier = auth_headers("caixa")
    _data(client.post("/api/cash-session/open", json={"opening_float": "100"}, headers=cashier))

    rejected = client.post(
        "/api/cash-session/entries",
        json={"kind": "cancelamento", "description": "x", "amount": "1"},
        headers=cashier,
    )
    assert rejected.status_code == 400

    entry = client.post(
        "/api/cash-session/entries",
        json={"kind": "saida", "description": "Compra de leite", "amount": "12.30"},
        headers=cashier,
    )
    assert entry.status_code == 201
    assert _data(client.get("/api/cash-session", headers=cashier))["total_expenses"] == "12.30"


def test_admin_catalog_and_tables(client, auth_headers, app):
    admin = auth_headers("admin")
    waiter = auth_headers("garcom")

    product = client.post("/api/products", json={"name": "Croissant", "price": "7.50"}, headers=admin)
    assert product.status_code == 201
    product_id = product.get_json()["data"]["id"]

    updated = _data(client.put(f"/api/products/{product_id}", json={"price": "8.00"}, headers=admin))
    assert updated["price"] == "8.00"
    assert updated["name"] == "Croissant"

    combo = client.post(
        "/api/combos",
        json={"name": "Croissant duplo", "sale_price": "14.00", "members": [{"product_id": product_id, "quantity": 2}]},
        headers=admin,
    )
    assert combo.status_code == 201
    assert combo.get_json()["data"]["products_total"] == "16.00"

    assert [p["name"] for p in _data(client.get("/api/products", headers=waiter))] == ["Croissant"]
    _data(client.delete(f"/api/products/{product_id}", headers=admin))
    assert _data(client.get("/api/products", headers=waiter)) == []
    assert len(_data(client.get("/api/products?include_inactive=true", headers=waiter))) == 1

    table = client.post("/api/tables", json={"number": 7, "label": "Balcão"}, headers=admin)
    assert table.status_code == 201
    table_id = table.get_json()["data"]["id"]
    renamed = _data(client.put(f"/api/tables/{table_id}", json={"label": None}, headers=admin))
    assert renamed["label"] is None
    _data(client.delete(f"/api/tables/{table_id}", headers=admin))


def test_image_upload_requires_file(client, auth_headers, app):
    response = client.post("/api/images/produtos", data={}, headers=auth_headers("admin"))
    assert response.status_code == 400


def test_unknown_route_is_json(client, app):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.get_json()["status"] == "error"


def test_logout_clears_cookies(client, auth_headers):
    response = client.post("/api/auth/logout", headers=auth_headers("admin"))
    assert _data(response) == {"logged_out": True}
    assert "access_token=;" in response.headers.get("Set-Cookie", "")
