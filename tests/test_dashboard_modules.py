import pytest

from api_helpers import auth_headers, money, register

CHECKOUT = "/api/store/acme/checkout/logo-design-pack"


@pytest.fixture
def orders(client, paypal_seller, create_product):
    create_product(paypal_seller)
    placed = []
    for email, quantity in [("ada@example.com", 1), ("bob@example.com", 2), ("ada@example.com", 1)]:
        resp = client.post(CHECKOUT, json={
            "email": email, "first_name": email.split("@")[0].title(), "last_name": "Test", "quantity": quantity
        })
        assert resp.status_code == 201, resp.text
        placed.append(resp.json()["order"])
    return placed


def open_query(client, subject, priority="medium", email="buyer@example.com"):
    resp = client.post("/api/store/acme/queries", json={
        "customer_email": email, "customer_name": "Buyer", "subject": subject,
        "message": "Please help", "priority": priority,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestOrders:
    def test_list_and_filter(self, client, paypal_seller, orders):
        first = orders[0]["id"]
        client.patch(f"/api/orders/{first}/status", json={"order_status": "delivered"}, headers=paypal_seller)

        everything = client.get("/api/orders/", headers=paypal_seller).json()
        delivered = client.get("/api/orders/", params={"order_status": "delivered"}, headers=paypal_seller).json()

        assert [o["id"] for o in everything] == [o["id"] for o in reversed(orders)]
        assert [o["id"] for o in delivered] == [first]

    def test_update_fields_and_statuses(self, client, paypal_seller, orders):
        order_id = orders[1]["id"]

        edited = client.put(f"/api/orders/{order_id}", json={
            "seller_notes": "Sent via email", "order_status": "processing"
        }, headers=paypal_seller)
        paid = client.patch(f"/api/orders/{order_id}/payment-status", json={"payment_status": "paid"},
                            headers=paypal_seller)
        bogus = client.patch(f"/api/orders/{order_id}/status", json={"order_status": "lost"}, headers=paypal_seller)

        assert edited.json()["seller_notes"] == "Sent via email"
        assert edited.json()["order_status"] == "processing"
        assert paid.json()["payment_status"] == "paid"
        assert bogus.status_code == 422

    def test_stats(self, client, paypal_seller, orders):
        client.patch(f"/api/orders/{orders[1]['id']}/payment-status", json={"payment_status": "paid"},
                     headers=paypal_seller)
        client.patch(f"/api/orders/{orders[2]['id']}/status", json={"order_status": "cancelled"},
                     headers=paypal_seller)

        stats = client.get("/api/orders/stats", headers=paypal_seller).json()

        assert stats["total"] == 3
        assert stats["pending"] == 2
        assert stats["cancelled"] == 1
        assert stats["pending_payments"] == 2
        assert money(stats["total_revenue"]) == money("99.98")

    def test_delete_and_isolation(self, client, paypal_seller, orders):
        other = auth_headers(register(client, "other@example.com", "other-shop")["access_token"])
        order_id = orders[0]["id"]

        assert client.get(f"/api/orders/{order_id}", headers=other).status_code == 404
        assert client.delete(f"/api/orders/{order_id}", headers=paypal_seller).status_code == 200
        assert client.get(f"/api/orders/{order_id}", headers=paypal_seller).status_code == 404


class TestCustomers:
    def test_rollup_stats(self, client, paypal_seller, orders):
        stats = client.get("/api/customers/stats", headers=paypal_seller).json()

        assert stats["total"] == 2
        assert stats["active"] == 2
        assert stats["total_orders"] == 3
        assert money(stats["total_revenue"]) == money("199.96")
        assert money(stats["average_order_value"]) == money("66.65")

    def test_search_and_status(self, client, paypal_seller, orders):
        ada = client.get("/api/customers/", params={"search": "ADA@"}, headers=paypal_seller).json()
        assert [c["email"] for c in ada] == ["ada@example.com"]

        blocked = client.patch(f"/api/customers/{ada[0]['id']}/status", json={"status": "blocked"},
                               headers=paypal_seller)
        assert blocked.json()["status"] == "blocked"

        only_blocked = client.get("/api/customers/", params={"status": "blocked"}, headers=paypal_seller).json()
        assert [c["email"] for c in only_blocked] == ["ada@example.com"]

    def test_manual_create_update_delete(self, client, paypal_seller):
        created = client.post("/api/customers/", json={"email": "Walk@In.example.com", "name": "Walk In"},
                              headers=paypal_seller)
        duplicate = client.post("/api/customers/", json={"email": "walk@in.example.com"}, headers=paypal_seller)

        assert created.status_code == 201
        assert created.json()["email"] == "walk@in.example.com"
        assert created.json()["total_orders"] == 0
        assert duplicate.status_code == 400

        customer_id = created.json()["id"]
        updated = client.put(f"/api/customers/{customer_id}", json={"city": "Lisbon", "country": "PT"},
                             headers=paypal_seller)
        assert updated.json()["city"] == "Lisbon"
        assert updated.json()["name"] == "Walk In"

        assert client.delete(f"/api/customers/{customer_id}", headers=paypal_seller).status_code == 200
        assert client.get(f"/api/customers/{customer_id}", headers=paypal_seller).status_code == 404

    def test_sync_rebuilds_from_orders(self, client, db, paypal_seller, orders):
        from productsaas.models.customer import Customer

        db.query(Customer).delete()
        db.commit()
        assert client.get("/api/customers/", headers=paypal_seller).json() == []

        resp = client.post("/api/customers/sync", headers=paypal_seller)
        customers = {c["email"]: c for c in client.get("/api/customers/", headers=paypal_seller).json()}

        assert resp.status_code == 200
        assert customers["ada@example.com"]["total_orders"] == 2
        assert money(customers["ada@example.com"]["total_spent"]) == money("99.98")

        # Syncing again does not double count
        client.post("/api/customers/sync", headers=paypal_seller)
        stats = client.get("/api/customers/stats", headers=paypal_seller).json()
        assert stats["total_orders"] == 3


class TestQueries:
    def test_filters_and_stats(self, client, seller_headers):
        open_query(client, "Refund please", priority="urgent")
        open_query(client, "Download link broken", priority="high", email="carol@example.com")
        low = open_query(client, "Just saying thanks", priority="low")
        client.patch(f"/api/queries/{low['id']}/status", json={"status": "closed"}, headers=seller_headers)

        urgent = client.get("/api/queries/", params={"priority": "urgent"}, headers=seller_headers).json()
        carol = client.get("/api/queries/", params={"search": "carol"}, headers=seller_headers).json()
        closed = client.get("/api/queries/", params={"status": "closed"}, headers=seller_headers).json()
        stats = client.get("/api/queries/stats", headers=seller_headers).json()

        assert [q["subject"] for q in urgent] == ["Refund please"]
        assert [q["subject"] for q in carol] == ["Download link broken"]
        assert [q["id"] for q in closed] == [low["id"]]
        assert stats == {"total": 3, "open": 2, "in_progress": 0, "resolved": 0, "urgent": 1, "high": 1}

    def test_reply_resolves(self, client, seller_headers):
        query_id = open_query(client, "Where is my file?")["id"]

        resp = client.post(f"/api/queries/{query_id}/reply", json={"reply_message": "Sent it again"},
                           headers=seller_headers)

        assert resp.status_code == 200
        assert resp.json()["status"] == "resolved"
        assert resp.json()["reply_message"] == "Sent it again"
        assert resp.json()["replied_at"] is not None

    def test_delete(self, client, seller_headers):
        query_id = open_query(client, "Spam")["id"]

        assert client.delete(f"/api/queries/{query_id}", headers=seller_headers).status_code == 200
        assert client.get(f"/api/queries/{query_id}", headers=seller_headers).status_code == 404


class TestAdmin:
    def test_setup_admin_only_once(self, client, admin_headers):
        again = client.post("/api/admin/setup-admin", json={
            "email": "second@example.com", "username": "second-admin", "password": "Secret123"
        })
        assert again.status_code == 403

    def test_platform_stats(self, client, admin_headers, paypal_seller, orders):
        client.patch(f"/api/orders/{orders[0]['id']}/payment-status", json={"payment_status": "paid"},
                     headers=paypal_seller)

        stats = client.get("/api/admin/stats", headers=admin_headers).json()

        assert stats["users_by_role"] == {"admin": 1, "seller": 1}
        assert stats["total_users"] == 2
        assert stats["total_products"] == 1
        assert stats["total_orders"] == 3
        assert stats["paid_orders"] == 1
        assert money(stats["paid_revenue"]) == money("49.99")

    def test_deactivate_user_ends_sessions(self, client, admin_headers, seller_headers):
        users = client.get("/api/admin/users", headers=admin_headers).json()
        seller = next(u for u in users if u["role"] == "seller")
        me = next(u for u in users if u["role"] == "admin")

        resp = client.patch(f"/api/admin/users/{seller['id']}/status", json={"is_active": False},
                            headers=admin_headers)
        self_lockout = client.patch(f"/api/admin/users/{me['id']}/status", json={"is_active": False},
                                    headers=admin_headers)

        assert resp.json()["is_active"] is False
        assert client.get("/api/products/", headers=seller_headers).status_code == 401
        assert self_lockout.status_code == 400
        login = client.post("/api/auth/login", json={"email": "seller@example.com", "password": "Secret123"})
        assert login.status_code == 403
