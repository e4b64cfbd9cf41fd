"""
Tests for API route endpoints.

Tests: health/config, users, products, the order lifecycle for both
fulfillment flows, access control, payments, and the error envelope.
"""

import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest


async def _place_order(client, headers, business, product, quantity=2):
    response = await client.post(
        "/api/orders",
        json={
            "businessId": business.uid,
            "items": [{"productId": product.id, "quantity": quantity}],
            "deliveryAddress": "Zaisan 7, Ulaanbaatar",
            "customerPhone": "+976 9911 2233",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["order"]


class TestHealthEndpoint:
    """Tests for GET /health and GET /api/config."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database_connected"] is True
        assert "environment" in data

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_public_config(self, client):
        response = await client.get("/api/config")
        data = response.json()["data"]
        assert data["currency"] == "MNT"
        assert data["simulationMode"] is True
        assert "googleMapsApiKey" in data


class TestUserEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_register_and_fetch(self, client):
        response = await client.post(
            "/api/users",
            json={
                "uid": "new-biz",
                "email": "pharma@example.mn",
                "role": "business",
                "businessName": "Monos Pharmacy",
                "businessType": "pharmacy",
            },
        )
        assert response.status_code == 201
        created = response.json()["data"]
        assert created["businessType"] == "pharmacy"

        by_uid = await client.get("/api/users/uid/new-biz")
        assert by_uid.json()["data"]["id"] == created["id"]

        by_id = await client.get(f"/api/users/{created['id']}")
        assert by_id.json()["data"]["uid"] == "new-biz"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_duplicate_registration_conflicts(self, client, customer):
        response = await client.post("/api/users", json={"uid": customer.uid, "email": "dup@example.mn"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "conflict"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_user_404_envelope(self, client):
        response = await client.get("/api/users/uid/ghost")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "not_found"
        assert "ghost" in body["error"]["message"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_only_self(self, client, customer, driver, auth_headers):
        ok = await client.patch(
            f"/api/users/{customer.id}", json={"name": "Bold B."}, headers=auth_headers(customer)
        )
        assert ok.status_code == 200
        assert ok.json()["data"]["name"] == "Bold B."

        denied = await client.patch(
            f"/api/users/{customer.id}", json={"name": "Hacked"}, headers=auth_headers(driver)
        )
        assert denied.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_driver_online_toggle(self, client, driver, customer, auth_headers):
        response = await client.patch(
            f"/api/users/uid/{driver.uid}/online", json={"isOnline": True}, headers=auth_headers(driver)
        )
        assert response.json()["data"] == {"uid": driver.uid, "isOnline": True}

        not_driver = await client.patch(
            f"/api/users/uid/{driver.uid}/online", json={"isOnline": False}, headers=auth_headers(customer)
        )
        assert not_driver.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_business_sets_map_pin(self, client, restaurant, grocery, auth_headers):
        response = await client.patch(
            f"/api/users/uid/{restaurant.uid}/location",
            json={"lat": 47.9186, "lng": 106.9176},
            headers=auth_headers(restaurant),
        )
        assert response.status_code == 200
        assert response.json()["data"]["businessLat"] == 47.9186
        assert response.json()["data"]["businessLng"] == 106.9176

        listed = await client.get("/api/businesses", params={"category": "restaurant"})
        assert listed.json()["data"][0]["businessLat"] == 47.9186

        other = await client.patch(
            f"/api/users/uid/{restaurant.uid}/location",
            json={"lat": 47.0, "lng": 106.0},
            headers=auth_headers(grocery),
        )
        assert other.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_map_pin_out_of_range(self, client, restaurant, auth_headers):
        response = await client.patch(
            f"/api/users/uid/{restaurant.uid}/location",
            json={"lat": 95, "lng": 106.9},
            headers=auth_headers(restaurant),
        )
        assert response.status_code == 422

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_businesses_by_category(self, client, restaurant, grocery):
        response = await client.get("/api/businesses", params={"category": "restaurant"})
        body = response.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["uid"] == restaurant.uid


class TestProductEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_business_manages_catalog(self, client, restaurant, auth_headers):
        headers = auth_headers(restaurant)
        created = await client.post(
            "/api/products",
            json={"name": "Tsuivan", "price": 12000, "category": "mains", "imageUrl": "https://img/x.png"},
            headers=headers,
        )
        assert created.status_code == 201
        product = created.json()["data"]
        assert product["businessId"] == restaurant.uid
        assert product["imageUrl"] == "https://img/x.png"

        updated = await client.patch(f"/api/products/{product['id']}", json={"status": "hidden"}, headers=headers)
        assert updated.json()["data"]["status"] == "hidden"

        public = await client.get(f"/api/products/business/{restaurant.uid}")
        assert public.json()["data"] == []
        owner_view = await client.get(
            f"/api/products/business/{restaurant.uid}", params={"includeHidden": "true"}
        )
        assert owner_view.json()["meta"]["total"] == 1

        deleted = await client.delete(f"/api/products/{product['id']}", headers=headers)
        assert deleted.json()["data"] == {"id": product["id"], "result": "deleted"}
        missing = await client.get(f"/api/products/{product['id']}")
        assert missing.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_customer_cannot_add_products(self, client, customer, auth_headers):
        response = await client.post(
            "/api/products", json={"name": "Fake", "price": 1}, headers=auth_headers(customer)
        )
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_cannot_edit_other_business_product(self, client, grocery, burger, auth_headers):
        response = await client.patch(
            f"/api/products/{burger.id}", json={"price": 1}, headers=auth_headers(grocery)
        )
        assert response.status_code == 403


class TestOrderEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_order_requires_auth(self, client, restaurant, burger):
        response = await client.post(
            "/api/orders",
            json={"businessId": restaurant.uid, "items": [{"productId": burger.id}], "deliveryAddress": "x"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_order_returns_items(self, client, customer, restaurant, burger, auth_headers):
        response = await client.post(
            "/api/orders",
            json={
                "businessId": restaurant.uid,
                "items": [{"productId": burger.id, "quantity": 2, "notes": "extra sauce"}],
                "deliveryAddress": "Zaisan 7",
                "deliveryFee": 2000,
            },
            headers=auth_headers(customer),
        )
        data = response.json()["data"]
        assert data["order"]["status"] == "new"
        assert data["order"]["needsPreparation"] is True
        assert data["order"]["total"] == 11000.0
        assert data["order"]["customerName"] == customer.name
        assert data["items"][0]["notes"] == "extra sauce"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_order_visibility(self, client, customer, driver, grocery, milk, restaurant, auth_headers):
        order = await _place_order(client, auth_headers(customer), grocery, milk)

        own = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(customer))
        assert own.status_code == 200
        business = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(grocery))
        assert business.status_code == 200
        # Unassigned orders are open to drivers
        pool = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(driver))
        assert pool.status_code == 200

        stranger = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(restaurant))
        assert stranger.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_listings_only_for_self(self, client, customer, driver, auth_headers):
        ok = await client.get(f"/api/orders/customer/{customer.uid}", headers=auth_headers(customer))
        assert ok.status_code == 200
        assert ok.json()["meta"]["total"] == 0

        denied = await client.get(f"/api/orders/customer/{customer.uid}", headers=auth_headers(driver))
        assert denied.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_available_requires_driver(self, client, customer, auth_headers):
        response = await client.get("/api/orders/available", headers=auth_headers(customer))
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_extra_field_rejected(self, client, customer, grocery, milk, auth_headers):
        order = await _place_order(client, auth_headers(customer), grocery, milk)
        response = await client.patch(
            f"/api/orders/{order['id']}/status",
            json={"status": "accepted", "total": 0},
            headers=auth_headers(grocery),
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "request_validation_error"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_missing_order(self, client, customer, auth_headers):
        response = await client.patch(
            "/api/orders/999/status", json={"status": "accepted"}, headers=auth_headers(customer)
        )
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_driver_cannot_assign_someone_else(self, client, customer, grocery, milk, driver, auth_headers):
        order = await _place_order(client, auth_headers(customer), grocery, milk)
        response = await client.patch(
            f"/api/orders/{order['id']}/status",
            json={"status": "accepted", "driverId": "drv-999"},
            headers=auth_headers(driver),
        )
        assert response.status_code == 403

        unchanged = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(customer))
        assert unchanged.json()["data"]["order"]["status"] == "new"
        assert unchanged.json()["data"]["order"]["driverId"] is None

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_driver_accept_assigns_self(self, client, customer, grocery, milk, driver, auth_headers):
        order = await _place_order(client, auth_headers(customer), grocery, milk)
        response = await client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "accepted"}, headers=auth_headers(driver)
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "shopping"
        assert response.json()["data"]["driverId"] == driver.uid


class TestOrderLifecycle:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_grocery_order_shopped_by_driver(self, client, customer, grocery, milk, driver, auth_headers):
        order = await _place_order(client, auth_headers(customer), grocery, milk)
        assert order["needsPreparation"] is False
        driver_headers = auth_headers(driver)

        available = await client.get("/api/orders/available", headers=driver_headers)
        assert [o["id"] for o in available.json()["data"]] == [order["id"]]

        accepted = await client.patch(
            f"/api/orders/{order['id']}/status",
            json={"status": "accepted", "driverId": driver.uid, "driverName": driver.name},
            headers=driver_headers,
        )
        assert accepted.status_code == 200
        assert accepted.json()["data"]["status"] == "shopping"
        assert accepted.json()["data"]["driverId"] == driver.uid

        available = await client.get("/api/orders/available", headers=driver_headers)
        assert available.json()["data"] == []

        collected = await client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "ready"}, headers=driver_headers
        )
        assert collected.json()["data"]["status"] == "items_collected"

        for status in ("picked_up", "on-the-way", "delivered"):
            step = await client.patch(
                f"/api/orders/{order['id']}/status", json={"status": status}, headers=driver_headers
            )
            assert step.json()["data"]["status"] == status
            assert step.json()["data"]["completedAt"] is None

        done = await client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "completed"}, headers=driver_headers
        )
        assert done.json()["data"]["status"] == "completed"
        assert done.json()["data"]["completedAt"] is not None

        history = await client.get(f"/api/orders/driver/{driver.uid}", headers=driver_headers)
        assert [o["id"] for o in history.json()["data"]] == [order["id"]]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_restaurant_order_prepared_by_business(self, client, customer, restaurant, burger, driver, auth_headers):
        order = await _place_order(client, auth_headers(customer), restaurant, burger)
        business_headers = auth_headers(restaurant)
        driver_headers = auth_headers(driver)

        available = await client.get("/api/orders/available", headers=driver_headers)
        assert available.json()["data"] == []

        accepted = await client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "accepted"}, headers=business_headers
        )
        assert accepted.json()["data"]["status"] == "accepted"

        ready = await client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "ready"}, headers=business_headers
        )
        assert ready.json()["data"]["status"] == "ready_for_pickup"

        available = await client.get("/api/orders/available", headers=driver_headers)
        assert [o["id"] for o in available.json()["data"]] == [order["id"]]

        picked = await client.patch(
            f"/api/orders/{order['id']}/status",
            json={"status": "picked_up", "driverId": driver.uid, "driverName": driver.name},
            headers=driver_headers,
        )
        assert picked.json()["data"]["status"] == "picked_up"

        dashboard = await client.get(f"/api/orders/business/{restaurant.uid}", headers=business_headers)
        assert dashboard.json()["data"][0]["driverName"] == driver.name

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_business_declines(self, client, customer, restaurant, burger, auth_headers):
        order = await _place_order(client, auth_headers(customer), restaurant, burger)
        declined = await client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "declined"}, headers=auth_headers(restaurant)
        )
        assert declined.json()["data"]["status"] == "declined"
        assert declined.json()["data"]["completedAt"] is None


class TestPaymentEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_qpay_invoice_then_check(self, client, customer, grocery, milk, auth_headers):
        headers = auth_headers(customer)
        order = await _place_order(client, headers, grocery, milk)
        created = await client.post(
            "/api/create-qpay-payment",
            json={"amount": order["total"], "orderId": order["id"], "customerEmail": "bold@example.mn"},
            headers=headers,
        )
        assert created.status_code == 200
        invoice = created.json()["data"]
        assert invoice["invoiceId"].startswith("SIM-")
        assert invoice["qrText"]
        assert invoice["urls"][0]["link"]

        checked = await client.get(f"/api/check-payment/{invoice['invoiceId']}", headers=headers)
        assert checked.json()["data"] == {"invoiceId": invoice["invoiceId"], "paid": True, "status": "PAID"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_qpay_for_unknown_order(self, client, customer, auth_headers):
        response = await client.post(
            "/api/create-qpay-payment", json={"amount": 15000, "orderId": 9999}, headers=auth_headers(customer)
        )
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_qpay_for_someone_elses_order(self, client, customer, driver, grocery, milk, auth_headers):
        order = await _place_order(client, auth_headers(customer), grocery, milk)
        response = await client.post(
            "/api/create-qpay-payment",
            json={"amount": order["total"], "orderId": order["id"]},
            headers=auth_headers(driver),
        )
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_qpay_amount_must_match_total(self, client, customer, grocery, milk, auth_headers):
        headers = auth_headers(customer)
        order = await _place_order(client, headers, grocery, milk)
        response = await client.post(
            "/api/create-qpay-payment", json={"amount": 1, "orderId": order["id"]}, headers=headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_payment_intent_checks_order_owner(self, client, customer, driver, grocery, milk, auth_headers):
        order = await _place_order(client, auth_headers(customer), grocery, milk)
        response = await client.post(
            "/api/create-payment-intent",
            json={"amount": 25, "currency": "usd", "orderId": order["id"]},
            headers=auth_headers(driver),
        )
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_check_unknown_invoice(self, client, customer, auth_headers):
        response = await client.get("/api/check-payment/missing", headers=auth_headers(customer))
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_payment_intent(self, client, customer, auth_headers):
        response = await client.post(
            "/api/create-payment-intent", json={"amount": 25, "currency": "usd"}, headers=auth_headers(customer)
        )
        data = response.json()["data"]
        assert data["paymentIntentId"].startswith("pi_sim_")
        assert data["clientSecret"].startswith(data["paymentIntentId"])

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_payments_require_auth(self, client):
        response = await client.post("/api/create-payment-intent", json={"amount": 25})
        assert response.status_code == 401


class TestSessionEndpoint:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_dev_login_issues_working_token(self, client, customer):
        response = await client.post("/auth/session", json={"uid": customer.uid})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["role"] == "customer"
        assert data["tokenType"] == "Bearer"

        orders = await client.get(
            f"/api/orders/customer/{customer.uid}",
            headers={"Authorization": f"Bearer {data['accessToken']}"},
        )
        assert orders.status_code == 200

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_session_for_unregistered_user(self, client):
        response = await client.post("/auth/session", json={"uid": "nobody"})
        assert response.status_code == 404
