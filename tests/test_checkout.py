from urllib.parse import parse_qs, urlparse

import pytest

from productsaas.core.config import settings
from productsaas.models.order import Order
from api_helpers import PAYPAL_EMAIL, auth_headers, money, register

CHECKOUT = "/api/store/acme/checkout/logo-design-pack"
BUYER = {"email": "buyer@example.com", "first_name": "Ada", "last_name": "Lovelace"}


def coupon_uses(client, headers, code):
    coupons = client.get("/api/coupons/", headers=headers).json()
    return next(c["current_uses"] for c in coupons if c["code"] == code)


def test_storefront_lists_active_products(client, seller_headers, create_product):
    create_product(seller_headers, title="Visible")
    hidden = create_product(seller_headers, title="Hidden")
    client.patch(f"/api/products/{hidden['id']}/toggle", headers=seller_headers)
    other = auth_headers(register(client, "other@example.com", "other-shop")["access_token"])
    create_product(other, title="Someone Else")

    resp = client.get("/api/store/ACME")

    assert resp.status_code == 200
    assert resp.json()["username"] == "acme"
    assert [p["title"] for p in resp.json()["products"]] == ["Visible"]
    assert client.get("/api/store/nobody").status_code == 404


def test_checkout_product_by_slug(client, seller_headers, create_product):
    product = create_product(seller_headers)

    assert client.get(CHECKOUT).json()["id"] == product["id"]
    assert client.get("/api/store/acme/checkout/no-such-thing").status_code == 404

    client.patch(f"/api/products/{product['id']}/toggle", headers=seller_headers)
    assert client.get(CHECKOUT).status_code == 404


def test_apply_percentage_coupon(client, seller_headers, create_product, create_coupon):
    create_product(seller_headers)
    create_coupon(seller_headers)

    resp = client.post(f"{CHECKOUT}/coupon", json={"code": "save20", "quantity": 2})

    assert resp.status_code == 200
    quote = resp.json()
    assert money(quote["subtotal"]) == money("99.98")
    assert money(quote["discount"]) == money("19.996")
    assert money(quote["total"]) == money("79.984")
    assert quote["coupon_code"] == "SAVE20"


def test_apply_fixed_coupon_never_goes_negative(client, seller_headers, create_product, create_coupon):
    create_product(seller_headers, title="Logo Design Pack", price="10.00")
    create_coupon(seller_headers, code="FIFTEEN", discount_type="fixed", discount_value="15")

    quote = client.post(f"{CHECKOUT}/coupon", json={"code": "FIFTEEN"}).json()

    assert money(quote["discount"]) == money("10.00")
    assert money(quote["total"]) == 0


def test_applying_a_coupon_uses_it_up(client, seller_headers, create_product, create_coupon):
    create_product(seller_headers)
    create_coupon(seller_headers, code="ONCE", max_uses=1)

    first = client.post(f"{CHECKOUT}/coupon", json={"code": "ONCE"})
    second = client.post(f"{CHECKOUT}/coupon", json={"code": "ONCE"})

    assert first.status_code == 200
    assert second.status_code == 422
    assert second.json()["message"] == "Coupon usage limit reached"
    assert coupon_uses(client, seller_headers, "ONCE") == 1


def test_payment_mode_does_not_count_on_apply(client, seller_headers, create_product, create_coupon, monkeypatch):
    monkeypatch.setattr(settings, "COUPON_REDEEM_ON", "payment")
    create_product(seller_headers)
    create_coupon(seller_headers, code="ONCE", max_uses=1)

    for _ in range(2):
        assert client.post(f"{CHECKOUT}/coupon", json={"code": "ONCE"}).status_code == 200
    assert coupon_uses(client, seller_headers, "ONCE") == 0


def test_submit_without_paypal_creates_no_order(client, db, seller_headers, create_product):
    create_product(seller_headers)

    resp = client.post(CHECKOUT, json=BUYER)

    assert resp.status_code == 409
    assert resp.json()["error_code"] == "PaymentNotConfiguredError"
    assert db.query(Order).count() == 0


def test_submit_creates_order_and_paypal_url(client, db, paypal_seller, create_product, create_coupon):
    product = create_product(paypal_seller)
    create_coupon(paypal_seller)
    applied = client.post(f"{CHECKOUT}/coupon", json={"code": "SAVE20", "quantity": 2}).json()

    resp = client.post(CHECKOUT, json={
        **BUYER, "quantity": 2, "coupon_code": "save20", "coupon_token": applied["redemption_token"], "notes": "Blue please"
    })

    assert resp.status_code == 201, resp.text
    data = resp.json()
    order = data["order"]
    assert order["payment_status"] == "pending"
    assert order["order_status"] == "pending"
    assert order["customer_name"] == "Ada Lovelace"
    assert order["coupon_code"] == "SAVE20"
    assert money(order["total_amount"]) == money("79.98")
    assert money(data["quote"]["total"]) == money("79.984")

    url = urlparse(data["payment_url"])
    params = {key: values[0] for key, values in parse_qs(url.query).items()}
    assert f"{url.scheme}://{url.netloc}{url.path}" == "https://www.paypal.com/cgi-bin/webscr"
    assert params == {
        "cmd": "_xclick",
        "business": PAYPAL_EMAIL,
        "item_name": "Logo Design Pack",
        "item_number": order["id"],
        "amount": "79.98",
        "currency_code": "USD",
        "return": f"https://shop.example.com/payment/success?order_id={order['id']}",
        "cancel_return": f"https://shop.example.com/payment/cancel?order_id={order['id']}",
        "notify_url": "https://api.example.com/api/paypal/ipn",
        "custom": order["id"],
        "no_shipping": "1",
        "no_note": "1",
    }
    assert db.get(Order, order["id"]).product_id == product["id"]
    # The use was counted when the coupon was applied, not again on submit
    assert coupon_uses(client, paypal_seller, "SAVE20") == 1


@pytest.mark.parametrize("missing", ["email", "first_name", "last_name"])
def test_default_fields_required_without_custom_fields(client, db, paypal_seller, create_product, missing):
    create_product(paypal_seller)
    payload = {**BUYER, missing: ""}

    resp = client.post(CHECKOUT, json=payload)

    assert resp.status_code == 422
    assert resp.json()["details"]["field"] == missing
    assert db.query(Order).count() == 0


def test_custom_fields_replace_default_fields(client, db, paypal_seller, create_product):
    create_product(paypal_seller, custom_fields=[
        {"id": 1, "name": "Contact email", "type": "email", "required": True},
        {"id": 2, "name": "Brand name", "type": "text", "required": True},
        {"id": 3, "name": "Notes", "type": "textarea", "required": False},
    ])

    missing = client.post(CHECKOUT, json={"custom_fields": {"Contact email": "Buyer@Example.com", "Brand name": "  "}})
    ok = client.post(CHECKOUT, json={"custom_fields": {"Contact email": "Buyer@Example.com", "Brand name": "Acme"}})

    assert missing.status_code == 422
    assert missing.json()["message"] == "Please fill in the required field: Brand name"
    assert ok.status_code == 201, ok.text
    order = ok.json()["order"]
    assert order["customer_email"] == "buyer@example.com"
    assert order["customer_name"] == "Customer"
    assert order["custom_field_data"]["Brand name"] == "Acme"
    assert db.query(Order).count() == 1


def test_submit_does_not_count_coupon_in_payment_mode(client, paypal_seller, create_product, create_coupon,
                                                        monkeypatch):
    monkeypatch.setattr(settings, "COUPON_REDEEM_ON", "payment")
    create_product(paypal_seller)
    create_coupon(paypal_seller, code="ONCE", max_uses=1)

    assert client.post(CHECKOUT, json={**BUYER, "coupon_code": "ONCE"}).status_code == 201
    assert coupon_uses(client, paypal_seller, "ONCE") == 0


def test_orders_roll_up_into_customers(client, paypal_seller, create_product):
    create_product(paypal_seller)

    client.post(CHECKOUT, json=BUYER)
    client.post(CHECKOUT, json={**BUYER, "email": "BUYER@example.com", "quantity": 2})
    client.post(CHECKOUT, json={**BUYER, "email": "someone@example.com"})

    customers = {c["email"]: c for c in client.get("/api/customers/", headers=paypal_seller).json()}

    assert set(customers) == {"buyer@example.com", "someone@example.com"}
    assert customers["buyer@example.com"]["total_orders"] == 2
    assert money(customers["buyer@example.com"]["total_spent"]) == money("149.97")
    assert customers["buyer@example.com"]["name"] == "Ada Lovelace"
    assert customers["buyer@example.com"]["last_order_date"] is not None


def test_buyer_can_open_a_query(client, seller_headers):
    resp = client.post("/api/store/acme/queries", json={
        "customer_email": "buyer@example.com",
        "customer_name": "Ada",
        "subject": "Where is my file?",
        "message": "I paid but got nothing",
    })

    assert resp.status_code == 201
    assert resp.json()["status"] == "open"
    assert resp.json()["priority"] == "medium"
    assert resp.json()["category"] == "general"
    assert client.post("/api/store/nobody/queries", json={
        "customer_email": "buyer@example.com", "subject": "Hi", "message": "Hello"
    }).status_code == 404


def test_exhausted_coupon_is_rejected_on_submit(client, db, paypal_seller, create_product, create_coupon):
    create_product(paypal_seller)
    create_coupon(paypal_seller, code="ONCE", max_uses=1)
    token = client.post(f"{CHECKOUT}/coupon", json={"code": "ONCE"}).json()["redemption_token"]

    first = client.post(CHECKOUT, json={**BUYER, "coupon_code": "ONCE", "coupon_token": token})
    no_token = client.post(CHECKOUT, json={**BUYER, "email": "second@example.com", "coupon_code": "ONCE"})
    same_token = client.post(CHECKOUT, json={**BUYER, "coupon_code": "ONCE", "coupon_token": token})

    assert first.status_code == 201, first.text
    assert no_token.status_code == 422
    assert no_token.json()["message"] == "Coupon usage limit reached"
    assert same_token.status_code == 422
    assert coupon_uses(client, paypal_seller, "ONCE") == 1
    assert db.query(Order).count() == 1


def test_submit_without_applied_coupon_takes_its_own_use(client, paypal_seller, create_product, create_coupon):
    create_product(paypal_seller)
    create_coupon(paypal_seller, code="TWICE", max_uses=2)

    plain = client.post(CHECKOUT, json={**BUYER, "coupon_code": "TWICE"})
    forged = client.post(CHECKOUT, json={**BUYER, "coupon_code": "TWICE", "coupon_token": "not-a-real-token"})
    third = client.post(CHECKOUT, json={**BUYER, "coupon_code": "TWICE"})

    assert plain.status_code == 201
    assert forged.status_code == 201
    assert third.status_code == 422
    assert coupon_uses(client, paypal_seller, "TWICE") == 2


def test_redemption_token_is_tied_to_its_coupon(client, paypal_seller, create_product, create_coupon):
    create_product(paypal_seller)
    create_coupon(paypal_seller, code="FIRST", max_uses=5)
    create_coupon(paypal_seller, code="LAST", max_uses=1)
    token = client.post(f"{CHECKOUT}/coupon", json={"code": "FIRST"}).json()["redemption_token"]
    client.post(CHECKOUT, json={**BUYER, "coupon_code": "LAST"})

    resp = client.post(CHECKOUT, json={**BUYER, "coupon_code": "LAST", "coupon_token": token})

    assert resp.status_code == 422
    assert coupon_uses(client, paypal_seller, "LAST") == 1


def test_custom_fields_without_email_field(client, db, paypal_seller, create_product):
    create_product(paypal_seller, custom_fields=[
        {"id": 1, "name": "Discord handle", "type": "text", "required": True},
    ])

    resp = client.post(CHECKOUT, json={"custom_fields": {"Discord handle": "ada#1"}})

    assert resp.status_code == 201, resp.text
    order = resp.json()["order"]
    assert order["customer_email"] == ""
    assert order["custom_field_data"] == {"Discord handle": "ada#1"}
    assert client.get("/api/customers/", headers=paypal_seller).json() == []
    assert client.post("/api/customers/sync", headers=paypal_seller).status_code == 200
    assert client.get("/api/customers/", headers=paypal_seller).json() == []


def test_free_order_skips_paypal(client, paypal_seller, create_product, create_coupon):
    create_product(paypal_seller, title="Logo Design Pack", price="10.00")
    create_coupon(paypal_seller, code="FIFTEEN", discount_type="fixed", discount_value="15")
    token = client.post(f"{CHECKOUT}/coupon", json={"code": "FIFTEEN"}).json()["redemption_token"]

    resp = client.post(CHECKOUT, json={**BUYER, "coupon_code": "FIFTEEN", "coupon_token": token})

    assert resp.status_code == 201, resp.text
    order = resp.json()["order"]
    assert money(order["total_amount"]) == 0
    assert order["payment_status"] == "paid"
    assert resp.json()["payment_url"] == f"https://shop.example.com/payment/success?order_id={order['id']}"
    assert coupon_uses(client, paypal_seller, "FIFTEEN") == 1


def test_free_order_counts_coupon_in_payment_mode(client, paypal_seller, create_product, create_coupon, monkeypatch):
    monkeypatch.setattr(settings, "COUPON_REDEEM_ON", "payment")
    create_product(paypal_seller, title="Logo Design Pack", price="10.00")
    create_coupon(paypal_seller, code="FREEBIE", discount_type="percentage", discount_value="100", max_uses=1)

    first = client.post(CHECKOUT, json={**BUYER, "coupon_code": "FREEBIE"})
    second = client.post(CHECKOUT, json={**BUYER, "coupon_code": "FREEBIE"})

    assert first.json()["order"]["payment_status"] == "paid"
    assert second.status_code == 422
    assert coupon_uses(client, paypal_seller, "FREEBIE") == 1
