from uuid import uuid4


def _register(client, headers, name="Teclado", unit_price="149.90", stock_quantity=10):
    return client.post(
        "/products",
        json={"name": name, "unit_price": unit_price, "stock_quantity": stock_quantity},
        headers=headers,
    )


def test_health_needs_no_token(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_catalog_requires_a_token(client):
    r = client.get("/products")
    assert r.status_code == 401
    assert r.json()["type"] == "Unauthorized"
    assert r.json()["details"] == {"reason": "missing"}


def test_register_and_fetch(client, auth_header):
    headers = auth_header()

    r = _register(client, headers)

    assert r.status_code == 201
    body = r.json()
    assert r.headers["location"] == f"/products/{body['product_id']}"
    assert body["name"] == "Teclado"
    assert body["unit_price"] == "149.90"
    assert body["stock_quantity"] == 10
    assert body["version"] == 1

    fetched = client.get(f"/products/{body['product_id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json() == body


def test_register_duplicate_name(client, auth_header):
    headers = auth_header()
    _register(client, headers)
    r = _register(client, headers)
    assert r.status_code == 400
    assert r.json()["type"] == "DuplicateProductName"


def test_register_zero_stock_is_rejected(client, auth_header):
    r = _register(client, auth_header(), stock_quantity=0)
    assert r.status_code == 400
    assert r.json()["type"] == "ValidationError"


def test_register_malformed_body(client, auth_header):
    r = client.post("/products", json={"name": "X"}, headers=auth_header())
    assert r.status_code == 400
    assert r.json()["type"] == "RequestValidationError"


def test_list_products(client, auth_header):
    headers = auth_header()
    assert client.get("/products", headers=headers).json() == {"items": []}

    _register(client, headers, name="Mouse")
    _register(client, headers, name="Cabo")

    names = [p["name"] for p in client.get("/products", headers=headers).json()["items"]]
    assert names == ["Cabo", "Mouse"]


def test_partial_update(client, auth_header):
    headers = auth_header()
    created = _register(client, headers).json()

    r = client.put(
        f"/products/{created['product_id']}", json={"stock_quantity": 0}, headers=headers
    )

    assert r.status_code == 200
    body = r.json()
    assert body["stock_quantity"] == 0
    assert body["name"] == created["name"]
    assert body["unit_price"] == created["unit_price"]
    assert body["version"] == created["version"] + 1


def test_update_rejects_negative_stock(client, auth_header):
    headers = auth_header()
    created = _register(client, headers).json()
    r = client.put(
        f"/products/{created['product_id']}", json={"stock_quantity": -1}, headers=headers
    )
    assert r.status_code == 400


def test_update_rename_clash(client, auth_header):
    headers = auth_header()
    _register(client, headers, name="Mouse")
    other = _register(client, headers, name="Cabo").json()

    r = client.put(f"/products/{other['product_id']}", json={"name": "Mouse"}, headers=headers)

    assert r.status_code == 400
    assert r.json()["type"] == "DuplicateProductName"


def test_unknown_product(client, auth_header):
    headers = auth_header()
    for path in (f"/products/{uuid4()}", "/products/not-a-uuid"):
        assert client.get(path, headers=headers).status_code == 404
        assert client.delete(path, headers=headers).status_code == 404
        assert client.put(path, json={"name": "X"}, headers=headers).status_code == 404


def test_remove_product(client, auth_header):
    headers = auth_header()
    created = _register(client, headers).json()

    r = client.delete(f"/products/{created['product_id']}", headers=headers)

    assert r.status_code == 200
    assert r.json()["product_id"] == created["product_id"]
    assert client.get(f"/products/{created['product_id']}", headers=headers).status_code == 404
