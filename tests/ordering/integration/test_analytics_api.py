"""Integration tests for the admin analytics endpoints."""

import pytest


@pytest.fixture()
def placed(client, shipping_address, auth_headers):
    """Two card orders from Jane, one from Sam and an unpaid cash order from a guest."""
    orders = [
        ({"product_id": "prod-001", "quantity": 2, "payment_method": "card"}, auth_headers["user"]),
        ({"product_id": "prod-002", "quantity": 1, "payment_method": "card"}, auth_headers["user"]),
        ({"product_id": "prod-001", "quantity": 1, "payment_method": "paypal"}, auth_headers["other"]),
        ({"product_id": "prod-001", "quantity": 1, "payment_method": "cash", "guest_email": "g@example.com"}, {}),
    ]
    ids = []
    for body, headers in orders:
        response = client.post("/orders", json={**body, "shipping_address": shipping_address}, headers=headers)
        assert response.status_code == 201
        ids.append(response.json()["data"]["order"]["id"])
    return ids


class TestRevenue:
    def test_total_revenue(self, client, auth_headers, placed):
        response = client.get("/orders/analytics/total-revenue", headers=auth_headers["admin"])
        assert response.status_code == 200
        revenue = response.json()["data"]["revenue"]
        assert revenue["total_revenue"] == 35.0
        assert revenue["paid_orders_count"] == 3
        assert revenue["by_payment_method"]["paypal"]["total"] == 10.0

    def test_filtered_by_method(self, client, auth_headers, placed):
        response = client.get(
            "/orders/analytics/total-revenue",
            params={"payment_method": "paypal"},
            headers=auth_headers["admin"],
        )
        assert response.json()["data"]["revenue"]["paid_orders_count"] == 1

    def test_nothing_matches(self, client, auth_headers, placed):
        response = client.get(
            "/orders/analytics/total-revenue",
            params={"start_date": "2001-01-01T00:00:00", "end_date": "2001-12-31T00:00:00"},
            headers=auth_headers["admin"],
        )
        assert response.status_code == 404

    def test_customers_are_forbidden(self, client, auth_headers, placed):
        response = client.get("/orders/analytics/total-revenue", headers=auth_headers["user"])
        assert response.status_code == 403


class TestBreakdowns:
    def test_orders_count_by_status(self, client, auth_headers, placed):
        client.patch(f"/orders/{placed[0]}/status", json={"status": "shipped"}, headers=auth_headers["admin"])

        response = client.get("/orders/analytics/orders-count-by-status", headers=auth_headers["admin"])

        data = response.json()["data"]
        assert data["total_orders"] == 4
        assert data["breakdown"]["shipped"] == 1
        assert data["breakdown"]["processing"] == 3
        assert data["breakdown"]["delivered"] == 0

    def test_top_products(self, client, auth_headers, placed):
        response = client.get("/orders/analytics/top-products", params={"limit": 1}, headers=auth_headers["admin"])
        data = response.json()["data"]
        assert data["results"] == 1
        assert data["products"][0]["product_id"] == "prod-001"
        assert data["products"][0]["total_sold"] == 3

    def test_top_customers(self, client, auth_headers, placed):
        response = client.get("/orders/analytics/top-customers", headers=auth_headers["admin"])
        customers = response.json()["data"]["customers"]
        assert customers[0]["user_id"] == "user-001"
        assert customers[0]["total_spent"] == 25.0
        assert customers[1]["user_id"] == "user-002"


class TestCustomerMetrics:
    def test_customer_lifetime_value(self, client, auth_headers, placed):
        response = client.get("/orders/analytics/customer-lifetime-value", headers=auth_headers["admin"])
        assert response.status_code == 200
        customers = response.json()["data"]["customers"]
        assert [(entry["user_id"], entry["clv"]) for entry in customers] == [("user-001", 50.0), ("user-002", 20.0)]

    def test_avg_time_between_orders(self, client, auth_headers, placed):
        response = client.get("/orders/analytics/avg-time-between-orders", headers=auth_headers["admin"])
        data = response.json()["data"]
        assert data["results"] == 1
        assert data["customers"][0]["user_id"] == "user-001"
        assert data["customers"][0]["order_count"] == 2

    def test_most_reviewed_products(self, client, auth_headers, placed):
        client.patch(f"/orders/{placed[0]}/mark-delivered", headers=auth_headers["admin"])
        client.post(
            f"/orders/{placed[0]}/rate",
            json={"product_id": "prod-001", "rating": 5},
            headers=auth_headers["user"],
        )

        response = client.get("/orders/analytics/most-reviewed-products", headers=auth_headers["admin"])

        products = response.json()["data"]["products"]
        assert products == [{"product_id": "prod-001", "total_reviews": 1, "avg_rating": 5.0}]

    def test_customers_are_forbidden(self, client, auth_headers, placed):
        response = client.get("/orders/analytics/customer-lifetime-value", headers=auth_headers["user"])
        assert response.status_code == 403
