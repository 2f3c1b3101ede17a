import hashlib
import hmac
import json
import time

import pytest

from shop import create_app
from shop.config import TestingConfig
from shop.services import ingest_service
from shop.services.payments import StripeGateway

CATALOG = [
    {
        "id": 1001,
        "title": "Classic Tee",
        "handle": "classic-tee",
        "body_html": "<p>Soft cotton tee.</p>",
        "vendor": "Acme",
        "product_type": "Shirts",
        "tags": "cotton, summer",
        "created_at": "2024-01-01T10:00:00Z",
        "updated_at": "2024-02-01T10:00:00Z",
        "published_at": "2024-01-01T10:00:00Z",
        "variants": [
            {"id": 5001, "title": "S", "price": "10.00", "sku": "CT-S", "available": True, "option1": "S"},
            {"id": 5002, "title": "M", "price": "12.50", "sku": "CT-M", "available": True, "option1": "M"},
        ],
        "images": [{"id": 9001, "src": "https://cdn.test/tee.jpg", "alt": "Tee", "position": 1}],
        "options": [{"id": 7001, "name": "Size", "position": 1, "values": ["S", "M"]}],
    },
    {
        "id": 1002,
        "title": "Denim Jacket",
        "handle": "denim-jacket",
        "vendor": "Acme",
        "product_type": "Jackets",
        "tags": ["denim"],
        "created_at": "2024-01-02T10:00:00Z",
        "variants": [{"id": 5003, "title": "Default Title", "price": "80.00"}],
    },
    {
        "id": 1003,
        "title": "Summer Dress",
        "handle": "summer-dress",
        "vendor": "Bloom",
        "product_type": "Dresses",
        "tags": "summer",
        "created_at": "2024-01-03T10:00:00Z",
        "variants": [{"id": 5004, "title": "Default Title", "price": "45.00"}],
    },
    {
        "id": 1004,
        "title": "Wool Beanie",
        "handle": "wool-beanie",
        "vendor": "Northwind",
        "product_type": "Accessories",
        "tags": "winter, wool",
        "created_at": "2024-01-04T10:00:00Z",
        "variants": [{"id": 5005, "title": "Default Title", "price": "15.00"}],
    },
    {
        "id": 1005,
        "title": "Linen Shirt",
        "handle": "linen-shirt",
        "vendor": "Bloom",
        "product_type": "Shirts",
        "tags": "summer, linen",
        "created_at": "2024-01-05T10:00:00Z",
        "variants": [{"id": 5006, "title": "Default Title", "price": "35.00", "available": False}],
    },
]


class FakeGateway(StripeGateway):
    """Hosted sessions are recorded locally; webhook verification stays real."""

    def __init__(self):
        super().__init__("sk_test_dummy", TestingConfig.STRIPE_WEBHOOK_SECRET)
        self.created = []

    def create_checkout_session(self, items, currency, success_url, cancel_url, metadata=None):
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append({
            "id": session_id,
            "line_items": self.line_items(items, currency),
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
        })
        return {"id": session_id, "url": f"https://checkout.stripe.test/pay/{session_id}"}

    def retrieve_checkout_session(self, session_id):
        for s in self.created:
            if s["id"] == session_id:
                return {"id": session_id, "status": "open", "paymentStatus": "unpaid",
                        "orderId": s["metadata"].get("orderId")}
        return {"id": session_id, "status": None, "paymentStatus": None, "orderId": None}


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    app.extensions["payment_gateway"] = FakeGateway()
    with app.app_context():
        ingest_service.import_products({"products": CATALOG})
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gateway(app):
    return app.extensions["payment_gateway"]


def sign_payload(payload: str, secret=TestingConfig.STRIPE_WEBHOOK_SECRET, timestamp=None):
    timestamp = int(timestamp or time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def post_event(client):
    def _post(event_type, obj, secret=TestingConfig.STRIPE_WEBHOOK_SECRET):
        payload = json.dumps({"id": "evt_test", "type": event_type, "data": {"object": obj}})
        return client.post(
            "/api/checkout/webhook",
            data=payload,
            content_type="application/json",
            headers={"Stripe-Signature": sign_payload(payload, secret)},
        )
    return _post


@pytest.fixture
def register(client):
    def _register(email="alice@example.com", password="secret1", name="Alice"):
        resp = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]
    return _register


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
