# shop/order/routes.py
from flask import g

from . import bp
from ..errors import NotFoundError
from ..services import order_service
from ..utils.api import ok
from ..utils.decorators import auth_required


@bp.get("")
@auth_required
def list_orders():
    """The caller's orders, newest first."""
    orders = order_service.list_orders_for_user(g.identity["userId"])
    return ok("Orders retrieved successfully", [o.as_api() for o in orders])


@bp.get("/<order_id>")
@auth_required
def get_order(order_id):
    order = order_service.get_order_by_id(order_id)
    # another user's order looks the same as a missing one
    if not order or str(order.user_id) != str(g.identity["userId"]):
        raise NotFoundError("Order not found")
    return ok("Order retrieved successfully", order.as_api())
