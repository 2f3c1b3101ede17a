# shop/services/payments.py
"""Thin wrapper over the Stripe SDK: hosted checkout sessions and webhooks."""
import json

import stripe
from flask import current_app

from ..errors import NotFoundError
from ..utils.money import to_minor_units


class WebhookVerificationError(Exception):
    pass


class StripeGateway:
    def __init__(self, api_key, webhook_secret, api_version=None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.api_version = api_version

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get("STRIPE_SECRET_KEY"),
            webhook_secret=config.get("STRIPE_WEBHOOK_SECRET"),
            api_version=config.get("STRIPE_API_VERSION"),
        )

    def _opts(self):
        if not self.api_key:
            raise RuntimeError("STRIPE_SECRET_KEY is not set")
        opts = {"api_key": self.api_key}
        if self.api_version:
            opts["stripe_version"] = self.api_version
        return opts

    @staticmethod
    def line_items(items, currency):
        out = []
        for item in items:
            product_data = {"name": item["productTitle"]}
            if item.get("variantTitle"):
                product_data["description"] = item["variantTitle"]
            out.append({
                "price_data": {
                    "currency": currency,
                    "product_data": product_data,
                    "unit_amount": to_minor_units(item["price"]),
                },
                "quantity": int(item["quantity"]),
            })
        return out

    def create_checkout_session(self, items, currency, success_url, cancel_url, metadata=None):
        """Returns ``{"id", "url"}`` of a hosted payment-mode session."""
        session = stripe.checkout.Session.create(
            payment_method_types=["card"],
            mode="payment",
            line_items=self.line_items(items, currency),
            success_url=f"{success_url}?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=cancel_url,
            metadata=metadata or {},
            **self._opts(),
        )
        return {"id": session.id, "url": session.url or ""}

    def retrieve_checkout_session(self, session_id):
        try:
            session = stripe.checkout.Session.retrieve(session_id, **self._opts())
        except stripe.InvalidRequestError as e:
            raise NotFoundError("Checkout session not found") from e
        metadata = session.metadata or {}
        return {
            "id": session.id,
            "status": session.status,
            "paymentStatus": session.payment_status,
            "orderId": metadata.get("orderId"),
        }

    def construct_event(self, payload: bytes, signature: str) -> dict:
        """Verify the ``Stripe-Signature`` header and decode the event."""
        if not self.webhook_secret:
            raise WebhookVerificationError("STRIPE_WEBHOOK_SECRET is not set")
        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
            return json.loads(body)
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError(str(e)) from e
        except ValueError as e:
            raise WebhookVerificationError(f"Invalid payload: {e}") from e


def get_gateway() -> StripeGateway:
    gateway = current_app.extensions.get("payment_gateway")
    if gateway is None:
        gateway = StripeGateway.from_config(current_app.config)
        current_app.extensions["payment_gateway"] = gateway
    return gateway
