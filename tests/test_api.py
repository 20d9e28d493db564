from uuid import uuid4

from streaming_orders.logging import CORRELATION_ID_HEADER
from streaming_orders.server import create_app

from fastapi.testclient import TestClient


def _create(client, user_id="user1", product_id="monthly"):
    response = client.post("/orders", json={"userId": user_id, "productId": product_id})
    assert response.status_code == 201, response.text
    return response.json()


def test_post_orders_creates_order(api_client):
    body = _create(api_client)

    assert body["userId"] == "user1"
    assert body["productId"] == "monthly"
    assert body["status"] == "active"
    assert body["createdAt"] == body["updatedAt"]


def test_post_orders_accepts_snake_case(api_client):
    response = api_client.post("/orders", json={"user_id": "user1", "product_id": "annual"})

    assert response.status_code == 201
    assert response.json()["productId"] == "annual"


def test_post_orders_unknown_product_is_400(api_client):
    response = api_client.post("/orders", json={"userId": "user1", "productId": "lifetime"})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_product"


def test_post_orders_missing_field_is_422(api_client):
    response = api_client.post("/orders", json={"userId": "user1"})

    assert response.status_code == 422


def test_get_order(api_client):
    created = _create(api_client)

    response = api_client.get(f"/orders/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_unknown_order_is_404(api_client):
    assert api_client.get(f"/orders/{uuid4()}").status_code == 404


def test_get_user_orders_and_subscriptions(api_client):
    created = _create(api_client)
    _create(api_client, user_id="someone-else")

    orders = api_client.get("/users/user1/orders").json()
    subscriptions = api_client.get("/users/user1/subscriptions").json()

    assert [o["id"] for o in orders] == [created["id"]]
    assert len(subscriptions) == 1
    assert subscriptions[0]["orderId"] == created["id"]
    assert subscriptions[0]["cancelledAt"] is None


def test_subscription_status(api_client):
    _create(api_client)

    body = api_client.get("/users/user1/subscription-status").json()

    assert body["userId"] == "user1"
    assert body["isSubscribed"] is True
    assert body["subscriptionCount"] == 1
    assert len(body["activeSubscriptions"]) == 1


def test_cancel_without_body(api_client):
    created = _create(api_client)

    response = api_client.put(f"/orders/{created['id']}/cancel")

    assert response.status_code == 204
    cancellation = api_client.get(f"/orders/{created['id']}/cancellation").json()
    assert cancellation["reason"] == "user_request"
    assert cancellation["cancellationType"] == "immediate"
    assert cancellation["cancelledBy"] == "user"
    assert api_client.get(f"/orders/{created['id']}").json()["status"] == "cancelled"


def test_cancel_with_body(api_client):
    created = _create(api_client)

    response = api_client.put(
        f"/orders/{created['id']}/cancel",
        json={"reason": "violation", "cancellationType": "end_of_period", "notes": "ToS"},
    )

    assert response.status_code == 204
    cancellation = api_client.get(f"/orders/{created['id']}/cancellation").json()
    assert cancellation["reason"] == "violation"
    assert cancellation["cancellationType"] == "end_of_period"
    assert cancellation["notes"] == "ToS"
    subscription = api_client.get("/users/user1/subscriptions").json()[0]
    assert subscription["effectiveEndDate"] == subscription["endDate"]


def test_cancel_with_invalid_reason_is_422(api_client):
    created = _create(api_client)

    response = api_client.put(f"/orders/{created['id']}/cancel", json={"reason": "bored"})

    assert response.status_code == 422


def test_cancel_twice_is_409(api_client):
    created = _create(api_client)
    assert api_client.put(f"/orders/{created['id']}/cancel").status_code == 204

    response = api_client.put(f"/orders/{created['id']}/cancel")

    assert response.status_code == 409
    assert response.json()["error"] == "order_already_cancelled"


def test_cancel_unknown_order_is_404(api_client):
    response = api_client.put(f"/orders/{uuid4()}/cancel")

    assert response.status_code == 404
    assert response.json()["error"] == "order_not_found"


def test_cancellation_of_active_order_is_404(api_client):
    created = _create(api_client)

    assert api_client.get(f"/orders/{created['id']}/cancellation").status_code == 404


def test_storage_error_is_sanitized_500(api_client, memory_store):
    memory_store.fail_on("find_orders_by_user")

    response = api_client.get("/users/user1/orders")

    assert response.status_code == 500
    assert response.json() == {"error": "internal_error", "message": "Internal server error"}
    assert "connection reset" not in response.text


def test_correlation_id_is_echoed(api_client):
    response = api_client.get("/users/user1/orders", headers={CORRELATION_ID_HEADER: "abc-123"})

    assert response.headers[CORRELATION_ID_HEADER] == "abc-123"


def test_correlation_id_is_generated(api_client):
    response = api_client.get("/users/user1/orders")

    assert response.headers[CORRELATION_ID_HEADER]


def test_health(api_client, memory_store):
    assert api_client.get("/health").json()["status"] == "ok"

    memory_store.reachable = False
    assert api_client.get("/health").status_code == 503


def test_injected_service_takes_priority_over_settings(monkeypatch, service):
    # Явно переданный сервис имеет приоритет над окружением
    monkeypatch.setenv("DATABASE_URL", "postgresql://nowhere:1/none")
    with TestClient(create_app(service=service)) as client:
        assert client.get("/users/x/orders").json() == []


def test_cancel_accepts_long_notes(api_client):
    created = _create(api_client)
    notes = "x" * 5000

    response = api_client.put(f"/orders/{created['id']}/cancel", json={"notes": notes})

    assert response.status_code == 204
    assert api_client.get(f"/orders/{created['id']}/cancellation").json()["notes"] == notes


def test_unknown_order_error_body(api_client):
    order_id = uuid4()

    response = api_client.get(f"/orders/{order_id}")

    assert response.status_code == 404
    assert response.json() == {"error": "order_not_found", "message": f"Order not found: {order_id}"}


def test_missing_cancellation_error_body(api_client):
    created = _create(api_client)

    body = api_client.get(f"/orders/{created['id']}/cancellation").json()

    assert body == {"error": "not_found", "message": "Order cancellation not found"}


def test_unhealthy_error_body(api_client, memory_store):
    memory_store.reachable = False

    assert api_client.get("/health").json()["error"] == "service_unavailable"


def test_validation_error_body(api_client):
    response = api_client.post("/orders", json={"userId": "user1"})

    body = response.json()
    assert response.status_code == 422
    assert body["error"] == "validation_error"
    assert body["details"][0]["loc"][-1] == "productId"


def test_malformed_order_id_is_422(api_client):
    response = api_client.get("/orders/not-a-uuid")

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_cors_allows_any_origin(api_client):
    response = api_client.get("/users/user1/orders", headers={"Origin": "https://player.example.com"})

    assert response.headers["access-control-allow-origin"] == "*"
    assert CORRELATION_ID_HEADER.lower() in response.headers["access-control-expose-headers"].lower()


def test_cors_preflight(api_client):
    response = api_client.options(
        "/orders",
        headers={
            "Origin": "https://player.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]
