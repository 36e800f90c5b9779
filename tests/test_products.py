from api_helpers import auth_headers, money, register


def test_create_product_uses_settings_currency(client, seller_headers, create_product):
    client.put("/api/settings/", json={"currency": "eur"}, headers=seller_headers)

    product = create_product(seller_headers)

    assert product["currency"] == "EUR"
    assert product["status"] == "active"
    assert product["slug"] == "logo-design-pack"
    assert money(product["price"]) == money("49.99")


def test_explicit_currency_wins(client, seller_headers, create_product):
    assert create_product(seller_headers, currency="gbp")["currency"] == "GBP"


def test_blank_custom_fields_are_dropped(client, seller_headers, create_product):
    product = create_product(seller_headers, custom_fields=[
        {"id": 1, "name": "Discord handle", "type": "text", "required": True},
        {"id": 2, "name": "   ", "type": "text", "required": False},
    ])

    assert [field["name"] for field in product["custom_fields"]] == ["Discord handle"]


def test_product_validation(client, seller_headers):
    negative = client.post("/api/products/", json={"title": "Bad", "price": "-1"}, headers=seller_headers)
    too_many_images = client.post("/api/products/", json={
        "title": "Gallery", "price": "1", "images": [f"https://img.example.com/{i}.png" for i in range(6)]
    }, headers=seller_headers)

    assert negative.status_code == 422
    assert too_many_images.status_code == 422


def test_list_products_newest_first(client, seller_headers, create_product):
    create_product(seller_headers, title="First")
    create_product(seller_headers, title="Second")

    titles = [p["title"] for p in client.get("/api/products/", headers=seller_headers).json()]

    assert titles == ["Second", "First"]


def test_toggle_twice_returns_to_active(client, seller_headers, create_product):
    product_id = create_product(seller_headers)["id"]

    first = client.patch(f"/api/products/{product_id}/toggle", headers=seller_headers).json()
    second = client.patch(f"/api/products/{product_id}/toggle", headers=seller_headers).json()

    assert first["status"] == "inactive"
    assert second["status"] == "active"


def test_toggle_draft_activates(client, seller_headers, create_product):
    product_id = create_product(seller_headers, status="draft")["id"]

    resp = client.patch(f"/api/products/{product_id}/toggle", headers=seller_headers)

    assert resp.json()["status"] == "active"


def test_full_update_and_delete(client, seller_headers, create_product):
    product_id = create_product(seller_headers)["id"]

    resp = client.put(f"/api/products/{product_id}", headers=seller_headers, json={
        "title": "Logo Design Pack Pro", "price": "79.00", "type": "Service", "status": "inactive"
    })

    assert resp.status_code == 200
    assert resp.json()["slug"] == "logo-design-pack-pro"
    assert resp.json()["payment_gateways"] == []
    assert resp.json()["currency"] == "USD"

    assert client.delete(f"/api/products/{product_id}", headers=seller_headers).status_code == 200
    missing = client.get(f"/api/products/{product_id}", headers=seller_headers)
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "ResourceNotFoundError"


def test_sellers_cannot_touch_each_others_products(client, seller_headers, create_product):
    product_id = create_product(seller_headers)["id"]
    other = auth_headers(register(client, "other@example.com", "other-shop")["access_token"])

    assert client.get(f"/api/products/{product_id}", headers=other).status_code == 404
    assert client.delete(f"/api/products/{product_id}", headers=other).status_code == 404
    assert client.get("/api/products/", headers=other).json() == []


def test_settings_default_and_currency_sync(client, seller_headers, create_product):
    defaults = client.get("/api/settings/", headers=seller_headers).json()
    assert defaults["currency"] == "USD"
    assert defaults["paypal_email"] is None

    create_product(seller_headers, title="One")
    create_product(seller_headers, title="Two", currency="GBP")

    saved = client.put("/api/settings/", json={"currency": "cad", "paypal_email": "pay@example.com"},
                       headers=seller_headers)

    assert saved.status_code == 200
    assert saved.json() == {"user_id": saved.json()["user_id"], "currency": "CAD", "paypal_email": "pay@example.com"}
    products = client.get("/api/products/", headers=seller_headers).json()
    assert {p["currency"] for p in products} == {"CAD"}


def test_settings_reject_bad_currency(client, seller_headers):
    resp = client.put("/api/settings/", json={"currency": "US1"}, headers=seller_headers)
    assert resp.status_code == 422
