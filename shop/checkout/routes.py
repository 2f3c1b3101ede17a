# shop/checkout/routes.py
from flask import current_app, request

from . import bp
from ..errors import UnauthorizedError
from ..extensions import limiter
from ..schemas import CheckoutSessionBody
from ..services import auth_service, checkout_service
from ..services.payments import WebhookVerificationError, get_gateway
from ..utils.api import err, ok
from ..utils.decorators import validate
from ..utils.net import bearer_token


def _optional_user_id():
    token = bearer_token()
    if not token:
        return None
    try:
        return auth_service.verify(token)["userId"]
    except UnauthorizedError:
        # checkout is open to guests; a stale token just means no owner
        return None


# POST /api/checkout/session
@bp.post("/session")
@validate(body=CheckoutSessionBody)
def create_session(body: CheckoutSessionBody):
    frontend_url = current_app.config["FRONTEND_URL"].rstrip("/")
    items = [item.model_dump(by_alias=True) for item in body.items]
    result = checkout_service.create_checkout_session(
        items,
        success_url=f"{frontend_url}/checkout/success",
        cancel_url=f"{frontend_url}/checkout/cancel",
        currency=body.currency,
        user_id=_optional_user_id(),
        shipping_address=body.shipping_address,
        billing_address=body.billing_address,
    )
    return ok("Checkout session created", result, status_code=201)


# GET /api/checkout/session/<session_id>
@bp.get("/session/<session_id>")
def get_session(session_id):
    return ok("Checkout session retrieved", checkout_service.retrieve_checkout_session(session_id))


# POST /api/checkout/webhook  (raw body, Stripe-Signature header)
@bp.post("/webhook")
@limiter.exempt
def webhook():
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        return err("Missing stripe-signature header", 400)

    try:
        event = get_gateway().construct_event(request.get_data(), signature)
    except WebhookVerificationError as e:
        current_app.logger.error("Webhook signature verification failed: %s", e)
        return err(f"Webhook Error: {e}", 400)

    checkout_service.handle_event(event)
    return ok("Webhook processed", {"received": True})
