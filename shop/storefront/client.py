# shop/storefront/client.py
"""HTTP client the storefront uses to talk to the REST API."""
from urllib.parse import quote

import requests
from flask import current_app, has_request_context

from ..utils.net import get_client_ip


class ApiClientError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StorefrontApiClient:
    def __init__(self, base_url, session=None, timeout=10):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, token=None, params=None, json=None):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if has_request_context():
            # rate limits are keyed by the shopper, not the storefront host
            headers["X-Forwarded-For"] = get_client_ip()
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}
        try:
            resp = self.session.request(
                method,
                f"{self.base_url}{path}",
                params=params or None,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiClientError(f"API unreachable: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            raise ApiClientError(f"Unexpected API response ({resp.status_code})", resp.status_code)
        if not body.get("success"):
            raise ApiClientError(body.get("error") or "Request failed", resp.status_code)
        return body.get("data")

    # ---- catalog ----
    def list_products(self, q=None, page=1, limit=12, sort_by=None, order=None):
        params = {"q": q, "page": page, "limit": limit, "sortBy": sort_by, "order": order}
        return self._request("GET", "/products", params=params)

    def products_by(self, facet, value, page=1, limit=12, sort_by=None, order=None):
        """facet: vendor | type | tag"""
        params = {"page": page, "limit": limit, "sortBy": sort_by, "order": order}
        return self._request("GET", f"/products/{facet}/{quote(value, safe='')}", params=params)

    def get_product(self, product_id):
        return self._request("GET", f"/products/{product_id}")

    def get_product_by_handle(self, handle):
        return self._request("GET", f"/products/handle/{handle}")

    def facets(self):
        return {
            "vendors": self._request("GET", "/products/vendors"),
            "types": self._request("GET", "/products/types"),
            "tags": self._request("GET", "/products/tags"),
        }

    # ---- auth ----
    def register(self, email, password, name=None):
        return self._request("POST", "/api/auth/register", json={"email": email, "password": password, "name": name})

    def login(self, email, password):
        return self._request("POST", "/api/auth/login", json={"email": email, "password": password})

    def me(self, token):
        return self._request("GET", "/api/auth/me", token=token)

    def orders(self, token):
        return self._request("GET", "/api/orders", token=token)

    # ---- checkout ----
    def create_checkout_session(self, items, currency="usd", token=None):
        return self._request(
            "POST", "/api/checkout/session", token=token, json={"items": items, "currency": currency}
        )


def get_api_client():
    client = current_app.extensions.get("storefront_api")
    if client is None:
        client = StorefrontApiClient(current_app.config["STOREFRONT_API_URL"])
        current_app.extensions["storefront_api"] = client
    return client
