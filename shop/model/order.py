import uuid

from sqlalchemy.sql import func

from ..extensions import db
from .types import GUID

PENDING = "pending"
PAID = "paid"
FAILED = "failed"

# pending -> paid | failed; terminal states never move again
TRANSITIONS = {
    PENDING: {PAID, FAILED},
    PAID: set(),
    FAILED: set(),
}


def _iso(dt):
    return dt.isoformat() if dt else None


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = db.Column(GUID(), db.ForeignKey("users.id"), nullable=True, index=True)
    stripe_session_id = db.Column(db.String(255), unique=True, nullable=True, index=True)
    stripe_payment_intent_id = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)

    # snapshot of the cart total at creation time
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="usd")
    shipping_address = db.Column(db.JSON, nullable=True)
    billing_address = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now(), index=True)
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    user = db.relationship("User", back_populates="orders")
    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.position.asc()",
    )

    def can_transition(self, status):
        return status == self.status or status in TRANSITIONS.get(self.status, set())

    def as_api(self):
        return {
            "id": str(self.id),
            "userId": str(self.user_id) if self.user_id else None,
            "stripeSessionId": self.stripe_session_id,
            "stripePaymentIntentId": self.stripe_payment_intent_id,
            "status": self.status,
            "totalAmount": float(self.total_amount or 0),
            "currency": self.currency,
            "shippingAddress": self.shipping_address,
            "billingAddress": self.billing_address,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "orderItems": [i.as_api() for i in self.items],
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(GUID(), primary_key=True, default=uuid.uuid4)
    order_id = db.Column(GUID(), db.ForeignKey("orders.id"), nullable=False, index=True)

    # not FKs: the snapshot must survive catalog edits
    product_id = db.Column(db.BigInteger, nullable=False, index=True)
    variant_id = db.Column(db.BigInteger, nullable=True)
    product_title = db.Column(db.String(255), nullable=False)
    variant_title = db.Column(db.String(255), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, server_default=func.now())

    def as_api(self):
        return {
            "id": str(self.id),
            "productId": self.product_id,
            "variantId": self.variant_id,
            "productTitle": self.product_title,
            "variantTitle": self.variant_title,
            "quantity": self.quantity,
            "price": float(self.price or 0),
            "totalPrice": float(self.total_price or 0),
        }
