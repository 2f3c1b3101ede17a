import json
from types import SimpleNamespace

import pytest
from flask import Flask

from shop import SECURITY_HEADERS, create_app
from shop.config import DEV_JWT_SECRET, ProductionConfig, TestingConfig
from shop.errors import parse_unique_violation
from shop.extensions import db
from shop.model import Product
from shop.services import ingest_service
from shop.utils.money import round_money, to_minor_units
from shop.utils.net import bearer_token, get_client_ip, last_value_args


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"] == {"status": "ok"}
    assert "timestamp" in body["meta"]


def test_security_and_timing_headers(client):
    resp = client.get("/products/vendors")
    for header, value in SECURITY_HEADERS.items():
        assert resp.headers[header] == value
    assert resp.headers["X-Response-Time"].endswith("ms")


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"]


def test_unexpected_error_message_depends_on_env():
    def boom():
        raise RuntimeError("database exploded")

    dev = create_app(TestingConfig)
    dev.add_url_rule("/boom", view_func=boom)
    resp = dev.test_client().get("/boom")
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "error": "database exploded"}

    prod = create_app({"ENV": "production", "SQLALCHEMY_DATABASE_URI": "sqlite://", "RATELIMIT_ENABLED": False})
    prod.add_url_rule("/boom", view_func=boom)
    resp = prod.test_client().get("/boom")
    assert resp.status_code == 500
    assert resp.get_json()["error"] == "Internal server error"


def test_production_refuses_dev_jwt_secret():
    app = Flask(__name__)
    app.config.from_object(ProductionConfig)
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", JWT_SECRET_KEY=DEV_JWT_SECRET)
    with pytest.raises(RuntimeError):
        ProductionConfig.init_app(app)


def test_rate_limit_applies_to_api_but_not_webhook():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "RATELIMIT_ENABLED": True,
        "RATELIMIT_DEFAULT": "2 per minute",
    })
    client = app.test_client()
    assert [client.get("/products/vendors").status_code for _ in range(3)] == [200, 200, 429]
    assert client.get("/products/vendors").get_json()["success"] is False
    # the webhook is exempt, so it reaches signature checks
    assert [client.post("/api/checkout/webhook").status_code for _ in range(3)] == [400, 400, 400]


def test_parse_unique_violation():
    sqlite = SimpleNamespace(orig="UNIQUE constraint failed: users.email")
    postgres = SimpleNamespace(orig='duplicate key value violates unique constraint "users_email_key"\n'
                                    "DETAIL:  Key (email)=(a@example.com) already exists.")
    assert parse_unique_violation(sqlite) == {"table": "users", "column": "email"}
    assert parse_unique_violation(postgres) == {"column": "email", "value": "a@example.com"}
    assert parse_unique_violation(SimpleNamespace(orig="something else")) is None


def test_money_helpers():
    assert round_money("19.999") == round_money("20.00")
    assert to_minor_units(19.99) == 1999
    assert to_minor_units("0.005") == 1
    assert to_minor_units(80) == 8000


def test_request_helpers(app):
    with app.test_request_context("/?page=1&page=3&q=tee", headers={
        "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
        "Authorization": "Bearer abc",
    }):
        assert last_value_args() == {"page": "3", "q": "tee"}
        assert get_client_ip() == "203.0.113.7"
        assert bearer_token() == "abc"

    with app.test_request_context("/", headers={"Authorization": "Basic xyz"}):
        assert bearer_token() is None
        assert get_client_ip() == "127.0.0.1"


def test_reimport_replaces_children(app):
    with app.app_context():
        ingest_service.import_products([{
            "id": 1001,
            "title": "Classic Tee v2",
            "handle": "classic-tee",
            "tags": ["cotton"],
            "variants": [{"id": 5002, "title": "M", "price": "13.00"}],
        }])
        product = db.session.get(Product, 1001)
        assert product.title == "Classic Tee v2"
        assert product.tags == ["cotton"]
        assert [(v.id, str(v.price)) for v in product.variants] == [(5002, "13.00")]
        assert product.images == []
        assert Product.query.count() == 5


def test_cli_import_products(app, tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps({"products": [{
        "id": 2001, "title": "Rain Coat", "handle": "rain-coat", "vendor": "Northwind",
        "variants": [{"id": 6001, "price": "99.00"}],
    }]}))
    result = app.test_cli_runner().invoke(args=["import-products", str(path)])
    assert result.exit_code == 0, result.output
    assert "Imported 1 products" in result.output
    assert app.test_client().get("/products/handle/rain-coat").status_code == 200


def test_cli_create_user(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-user", "--email", "Ops@Example.com", "--password", "secret1"])
    assert result.exit_code == 0, result.output
    assert "ops@example.com" in result.output

    again = runner.invoke(args=["create-user", "--email", "ops@example.com", "--password", "secret1"])
    assert again.exit_code != 0
    assert "already exists" in again.output

    login = app.test_client().post("/api/auth/login", json={"email": "ops@example.com", "password": "secret1"})
    assert login.status_code == 200
