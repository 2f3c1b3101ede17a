import json

import pytest
import stripe

from shop.model import Order
from shop.services import checkout_service
from shop.services.payments import StripeGateway

from .conftest import auth_header, sign_payload

SHIRT = {"productId": 1001, "variantId": 5001, "productTitle": "Shirt", "variantTitle": "S", "quantity": 2, "price": 10}


def _orders(app):
    with app.app_context():
        return [o.as_api() for o in Order.query.order_by(Order.created_at).all()]


def _checkout(client, items=None, headers=None, **extra):
    return client.post("/api/checkout/session", json={"items": items or [SHIRT], **extra}, headers=headers or {})


def test_creates_pending_order_linked_to_session(app, client, gateway):
    resp = _checkout(client)
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["sessionId"] == "cs_test_1"
    assert data["url"] == "https://checkout.stripe.test/pay/cs_test_1"

    [order] = _orders(app)
    assert order["id"] == data["orderId"]
    assert order["status"] == "pending"
    assert order["totalAmount"] == 20.0
    assert order["currency"] == "usd"
    assert order["stripeSessionId"] == "cs_test_1"
    assert order["userId"] is None
    [item] = order["orderItems"]
    assert item["productTitle"] == "Shirt"
    assert item["variantTitle"] == "S"
    assert item["quantity"] == 2
    assert item["price"] == 10.0
    assert item["totalPrice"] == 20.0

    created = gateway.created[0]
    assert created["metadata"] == {"orderId": data["orderId"]}
    assert created["success_url"] == "http://localhost:3000/checkout/success"
    assert created["cancel_url"] == "http://localhost:3000/checkout/cancel"
    assert created["line_items"] == [{
        "price_data": {
            "currency": "usd",
            "product_data": {"name": "Shirt", "description": "S"},
            "unit_amount": 1000,
        },
        "quantity": 2,
    }]


def test_total_sums_all_lines(app, client):
    items = [SHIRT, {"productId": 1002, "productTitle": "Denim Jacket", "quantity": 1, "price": 80.5}]
    assert _checkout(client, items).status_code == 201
    [order] = _orders(app)
    assert order["totalAmount"] == 100.5
    assert [i["productId"] for i in order["orderItems"]] == [1001, 1002]


@pytest.mark.parametrize("items", [
    [],
    [dict(SHIRT, price=0)],
    [dict(SHIRT, quantity=0)],
    [dict(SHIRT, productTitle="")],
])
def test_rejects_empty_or_non_positive_carts(app, client, gateway, items):
    resp = client.post("/api/checkout/session", json={"items": items})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
    assert _orders(app) == []
    assert gateway.created == []


def test_service_rejects_empty_items(app):
    from shop.errors import BadRequestError

    with app.test_request_context():
        with pytest.raises(BadRequestError, match="Cart items are required"):
            checkout_service.create_checkout_session([], "http://x/ok", "http://x/cancel")


def test_authenticated_checkout_records_owner(app, client, register):
    data = register()
    resp = _checkout(client, headers=auth_header(data["token"]))
    assert resp.status_code == 201
    [order] = _orders(app)
    assert order["userId"] == data["user"]["id"]


def test_invalid_token_checks_out_as_guest(app, client):
    assert _checkout(client, headers=auth_header("stale.token.value")).status_code == 201
    [order] = _orders(app)
    assert order["userId"] is None


def test_addresses_are_stored(app, client):
    address = {"line1": "1 Main St", "city": "Springfield", "country": "US"}
    assert _checkout(client, shippingAddress=address, currency="EUR").status_code == 201
    [order] = _orders(app)
    assert order["shippingAddress"] == address
    assert order["billingAddress"] is None
    assert order["currency"] == "eur"


def test_retrieve_session(client):
    order_id = _checkout(client).get_json()["data"]["orderId"]
    resp = client.get("/api/checkout/session/cs_test_1")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["orderId"] == order_id


def test_completed_event_marks_order_paid_once(app, client, post_event):
    _checkout(client)

    resp = post_event("checkout.session.completed", {"id": "cs_test_1", "payment_intent": "pi_123"})
    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"received": True}
    [order] = _orders(app)
    assert order["status"] == "paid"
    assert order["stripePaymentIntentId"] == "pi_123"
    first_update = order["updatedAt"]

    replay = post_event("checkout.session.completed", {"id": "cs_test_1", "payment_intent": "pi_123"})
    assert replay.status_code == 200
    [order] = _orders(app)
    assert order["status"] == "paid"
    assert order["updatedAt"] == first_update


def test_paid_order_does_not_fall_back_to_failed(app, client, post_event):
    _checkout(client)
    post_event("checkout.session.completed", {"id": "cs_test_1"})
    post_event("checkout.session.async_payment_failed", {"id": "cs_test_1"})
    [order] = _orders(app)
    assert order["status"] == "paid"


def test_async_outcomes(app, client, post_event):
    _checkout(client)
    _checkout(client)
    post_event("checkout.session.async_payment_succeeded", {"id": "cs_test_1"})
    post_event("checkout.session.async_payment_failed", {"id": "cs_test_2"})
    statuses = {o["stripeSessionId"]: o["status"] for o in _orders(app)}
    assert statuses == {"cs_test_1": "paid", "cs_test_2": "failed"}


def test_unknown_session_and_other_events_are_acknowledged(app, client, post_event):
    _checkout(client)
    assert post_event("checkout.session.completed", {"id": "cs_unknown"}).status_code == 200
    assert post_event("payment_intent.succeeded", {"id": "pi_1"}).status_code == 200
    assert post_event("customer.created", {"id": "cus_1"}).status_code == 200
    [order] = _orders(app)
    assert order["status"] == "pending"


def test_bad_signature_is_rejected_without_changes(app, client, post_event):
    _checkout(client)
    resp = post_event("checkout.session.completed", {"id": "cs_test_1"}, secret="whsec_wrong")
    assert resp.status_code == 400
    assert resp.get_json()["error"].startswith("Webhook Error:")
    [order] = _orders(app)
    assert order["status"] == "pending"


def test_tampered_payload_is_rejected(app, client):
    _checkout(client)
    signed = json.dumps({"type": "checkout.session.completed", "data": {"object": {"id": "cs_other"}}})
    tampered = json.dumps({"type": "checkout.session.completed", "data": {"object": {"id": "cs_test_1"}}})
    resp = client.post(
        "/api/checkout/webhook",
        data=tampered,
        content_type="application/json",
        headers={"Stripe-Signature": sign_payload(signed)},
    )
    assert resp.status_code == 400
    assert _orders(app)[0]["status"] == "pending"


def test_missing_signature_header(client):
    resp = client.post("/api/checkout/webhook", data="{}", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Missing stripe-signature header"


def test_non_utf8_body_is_rejected(app, client):
    _checkout(client)
    resp = client.post(
        "/api/checkout/webhook",
        data=b"\xff\xfe{}",
        content_type="application/json",
        headers={"Stripe-Signature": "t=1,v1=deadbeef"},
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"].startswith("Webhook Error:")
    assert _orders(app)[0]["status"] == "pending"


def test_unknown_checkout_session_is_not_found(app, client, monkeypatch):
    def missing(session_id, **kwargs):
        raise stripe.InvalidRequestError(f"No such checkout.session: '{session_id}'", "id")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", missing)
    app.extensions["payment_gateway"] = StripeGateway.from_config(app.config)
    resp = client.get("/api/checkout/session/cs_missing")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "error": "Checkout session not found"}
