# shop/services/order_service.py
from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..model import Order, OrderItem
from ..model.order import PENDING
from ..model.types import coerce_uuid
from ..utils.money import D, round_money


def create_order(items, total_amount, currency="usd", user_id=None,
                 shipping_address=None, billing_address=None) -> Order:
    """Persist a pending order with its item snapshots in one commit.

    ``items`` are dicts with productId, variantId, productTitle,
    variantTitle, quantity and price (as sent by the client).
    """
    order = Order(
        user_id=coerce_uuid(user_id) if user_id else None,
        status=PENDING,
        total_amount=round_money(total_amount),
        currency=(currency or "usd").lower(),
        shipping_address=shipping_address,
        billing_address=billing_address,
    )
    for pos, item in enumerate(items):
        price = round_money(item["price"])
        quantity = int(item["quantity"])
        order.items.append(OrderItem(
            product_id=item["productId"],
            variant_id=item.get("variantId") or None,
            product_title=item["productTitle"],
            variant_title=item.get("variantTitle") or None,
            quantity=quantity,
            price=price,
            total_price=round_money(price * D(quantity)),
            position=pos,
        ))
    db.session.add(order)
    db.session.commit()
    return order


def get_order_by_id(order_id):
    uid = coerce_uuid(order_id)
    return db.session.get(Order, uid) if uid else None


def get_order_by_stripe_session_id(session_id):
    if not session_id:
        return None
    return Order.query.filter_by(stripe_session_id=session_id).first()


def list_orders_for_user(user_id):
    uid = coerce_uuid(user_id)
    if not uid:
        return []
    return Order.query.filter_by(user_id=uid).order_by(Order.created_at.desc(), Order.id.desc()).all()


def update_order_stripe_session(order_id, session_id) -> Order:
    order = get_order_by_id(order_id)
    if not order:
        raise NotFoundError("Order not found")
    order.stripe_session_id = session_id
    db.session.commit()
    return order


def update_order_status(order_id, status, payment_intent_id=None) -> Order:
    """Move an order along pending -> paid | failed.

    Re-applying the current status is a no-op apart from recording a payment
    intent id; any other move out of a terminal state is refused and logged.
    """
    order = get_order_by_id(order_id)
    if not order:
        raise NotFoundError("Order not found")
    if not order.can_transition(status):
        current_app.logger.warning(
            "refusing order %s transition %s -> %s", order.id, order.status, status
        )
        return order
    order.status = status
    if payment_intent_id:
        order.stripe_payment_intent_id = payment_intent_id
    db.session.commit()
    return order
