# shop/services/checkout_service.py
from flask import current_app

from ..errors import BadRequestError
from ..model.order import FAILED, PAID
from ..utils.money import D, round_money
from . import order_service
from .payments import get_gateway

PAID_EVENTS = {"checkout.session.completed", "checkout.session.async_payment_succeeded"}
FAILED_EVENTS = {"checkout.session.async_payment_failed"}
LOG_ONLY_EVENTS = {"payment_intent.succeeded", "payment_intent.payment_failed"}


def cart_total(items):
    return round_money(sum((D(i["price"]) * D(i["quantity"]) for i in items), D(0)))


def create_checkout_session(items, success_url, cancel_url, currency="usd", user_id=None,
                            shipping_address=None, billing_address=None):
    """Order row first, then the hosted session, then link the two.

    Prices and quantities are taken from the caller as-is. If the processor
    call fails the order stays ``pending`` without a session id.
    """
    if not items:
        raise BadRequestError("Cart items are required")
    if any(D(i["price"]) * D(i["quantity"]) <= 0 for i in items):
        raise BadRequestError("Every cart line must have a positive total")
    total = cart_total(items)
    if total <= 0:
        raise BadRequestError("Total amount must be greater than 0")

    currency = (currency or "usd").lower()
    order = order_service.create_order(
        items,
        total,
        currency=currency,
        user_id=user_id,
        shipping_address=shipping_address,
        billing_address=billing_address,
    )
    order_id = str(order.id)

    session = get_gateway().create_checkout_session(
        items,
        currency,
        success_url=success_url,
        cancel_url=cancel_url,
        metadata={"orderId": order_id},
    )
    order_service.update_order_stripe_session(order.id, session["id"])
    current_app.logger.info("checkout session %s created for order %s", session["id"], order_id)

    return {"sessionId": session["id"], "url": session["url"], "orderId": order_id}


def retrieve_checkout_session(session_id):
    return get_gateway().retrieve_checkout_session(session_id)


def handle_event(event: dict):
    """Apply a verified processor event to the matching order, if any.

    Returns the updated order or None. Unknown sessions are dropped with a
    log line; the caller still acknowledges the event.
    """
    log = current_app.logger
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type in PAID_EVENTS or event_type in FAILED_EVENTS:
        order = order_service.get_order_by_stripe_session_id(obj.get("id"))
        if not order:
            log.warning("%s for unknown session %s ignored", event_type, obj.get("id"))
            return None
        if event_type in PAID_EVENTS:
            order = order_service.update_order_status(order.id, PAID, obj.get("payment_intent"))
            log.info("Order %s marked as paid", order.id)
        else:
            order = order_service.update_order_status(order.id, FAILED)
            log.info("Order %s marked as failed", order.id)
        return order

    if event_type in LOG_ONLY_EVENTS:
        log.info("%s: %s", event_type, obj.get("id"))
    else:
        log.info("Unhandled event type: %s", event_type)
    return None
