# shop/storefront/routes.py
from functools import wraps

from flask import abort, current_app, flash, redirect, render_template, request, url_for
from werkzeug.exceptions import HTTPException

from . import bp
from ..schemas import LoginBody, RegisterBody
from ..utils.decorators import parse_input
from .client import ApiClientError, get_api_client
from .stores import AuthStore, CartStore

FACETS = ("vendor", "type", "tag")
SORT_CHOICES = {
    "newest": ("created_at", "desc"),
    "oldest": ("created_at", "asc"),
    "title-asc": ("title", "asc"),
    "title-desc": ("title", "desc"),
    "vendor": ("vendor", "asc"),
}
PAGE_SIZE = 12


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not AuthStore().is_authenticated:
            flash("Please log in to continue.", "info")
            return redirect(url_for(".login", next=request.full_path))
        return fn(*args, **kwargs)
    return wrapper


def _int_arg(name, default):
    try:
        return max(int(request.values.get(name, default)), 1)
    except (TypeError, ValueError):
        return default


def _safe_next(target):
    # only same-site relative paths
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return url_for(".home")


@bp.context_processor
def inject_stores():
    return {"cart": CartStore(), "auth": AuthStore()}


@bp.errorhandler(ApiClientError)
def api_unavailable(e):
    current_app.logger.warning("storefront API call failed: %s", e.message)
    status = e.status_code if e.status_code and e.status_code >= 400 else 502
    return render_template("storefront/error.html", message=e.message), status


@bp.errorhandler(HTTPException)
def page_error(e):
    return render_template("storefront/error.html", message=e.description or e.name), e.code or 500


# ---------- catalog ----------

@bp.get("/")
def home():
    api = get_api_client()
    featured = api.list_products(page=1, limit=8)
    return render_template("storefront/home.html", products=featured["products"])


@bp.get("/products")
def products():
    api = get_api_client()
    q = (request.args.get("q") or "").strip()
    sort = request.args.get("sort") or "newest"
    sort_by, order = SORT_CHOICES.get(sort, SORT_CHOICES["newest"])
    page = _int_arg("page", 1)

    facet, value = None, None
    for name in FACETS:
        if request.args.get(name):
            facet, value = name, request.args[name]
            break

    if facet and not q:
        result = api.products_by(facet, value, page=page, limit=PAGE_SIZE, sort_by=sort_by, order=order)
    else:
        result = api.list_products(q=q or None, page=page, limit=PAGE_SIZE, sort_by=sort_by, order=order)

    return render_template(
        "storefront/products.html",
        products=result["products"],
        pagination=result["pagination"],
        facets=api.facets(),
        q=q,
        sort=sort,
        sort_choices=SORT_CHOICES,
        facet=facet,
        facet_value=value,
    )


@bp.get("/products/<int:pid>")
def product_detail(pid):
    api = get_api_client()
    try:
        product = api.get_product(pid)
    except ApiClientError as e:
        if e.status_code == 404:
            abort(404)
        raise
    return render_template("storefront/product_detail.html", product=product)


# ---------- cart ----------

@bp.get("/cart")
def cart_page():
    return render_template("storefront/cart.html")


@bp.post("/cart/add")
def cart_add():
    pid = request.form.get("product_id", type=int)
    if not pid:
        abort(400)
    variant_id = request.form.get("variant_id", type=int)
    quantity = _int_arg("quantity", 1)
    product = get_api_client().get_product(pid)
    CartStore().add(product, variant_id=variant_id, quantity=quantity)
    flash(f"Added {product['title']} to your cart.", "success")
    return redirect(url_for(".cart_page"))


@bp.post("/cart/<item_id>/quantity")
def cart_update(item_id):
    quantity = request.form.get("quantity", type=int)
    if quantity is None:
        flash("Quantity must be a number.", "error")
    else:
        CartStore().update_quantity(item_id, quantity)
    return redirect(url_for(".cart_page"))


@bp.post("/cart/<item_id>/<action>")
def cart_item_action(item_id, action):
    cart = CartStore()
    handlers = {"increase": cart.increase, "decrease": cart.decrease, "remove": cart.remove}
    if action not in handlers:
        abort(404)
    handlers[action](item_id)
    return redirect(url_for(".cart_page"))


@bp.post("/cart/clear")
def cart_clear():
    CartStore().clear()
    flash("Your cart is empty.", "info")
    return redirect(url_for(".cart_page"))


# ---------- checkout ----------

@bp.post("/checkout")
def checkout():
    cart = CartStore()
    if not cart.items:
        flash("Your cart is empty.", "error")
        return redirect(url_for(".cart_page"))
    auth = AuthStore()
    try:
        checkout_session = get_api_client().create_checkout_session(cart.checkout_items(), token=auth.token)
    except ApiClientError as e:
        flash(f"Checkout failed: {e.message}", "error")
        return redirect(url_for(".cart_page"))
    if not checkout_session.get("url"):
        flash("Checkout failed: no payment page was returned.", "error")
        return redirect(url_for(".cart_page"))
    return redirect(checkout_session["url"], code=303)


@bp.get("/checkout/success")
def checkout_success():
    session_id = request.args.get("session_id")
    if session_id:
        CartStore().clear()
    return render_template("storefront/checkout_success.html", session_id=session_id)


@bp.get("/checkout/cancel")
def checkout_cancel():
    return render_template("storefront/checkout_cancel.html")


# ---------- account ----------

@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        parsed = parse_input(LoginBody, request.form.to_dict())
        if not parsed.ok:
            flash(parsed.message, "error")
            return render_template("storefront/login.html"), 400
        try:
            data = get_api_client().login(parsed.value.email, parsed.value.password)
        except ApiClientError as e:
            flash(e.message, "error")
            return render_template("storefront/login.html"), e.status_code or 400
        AuthStore().login(data["user"], data["token"])
        flash("Welcome back!", "success")
        return redirect(_safe_next(request.args.get("next")))
    return render_template("storefront/login.html")


@bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "POST":
        form = request.form.to_dict()
        if not form.get("name"):
            form.pop("name", None)
        parsed = parse_input(RegisterBody, form)
        if not parsed.ok:
            flash(parsed.message, "error")
            return render_template("storefront/register.html"), 400
        body = parsed.value
        try:
            data = get_api_client().register(body.email, body.password, body.name)
        except ApiClientError as e:
            flash(e.message, "error")
            return render_template("storefront/register.html"), e.status_code or 400
        AuthStore().login(data["user"], data["token"])
        flash("Your account has been created.", "success")
        return redirect(url_for(".account"))
    return render_template("storefront/register.html")


@bp.post("/logout")
def logout():
    AuthStore().logout()
    flash("You have been logged out.", "info")
    return redirect(url_for(".home"))


@bp.get("/account")
@login_required
def account():
    auth = AuthStore()
    api = get_api_client()
    try:
        user = api.me(auth.token)
        orders = api.orders(auth.token)
    except ApiClientError as e:
        if e.status_code == 401:
            auth.logout()
            flash("Your session has expired. Please log in again.", "info")
            return redirect(url_for(".login", next=request.path))
        raise
    return render_template("storefront/account.html", user=user, orders=orders)


@bp.app_template_filter("money")
def money_filter(value, currency="usd"):
    symbol = "$" if (currency or "usd").lower() == "usd" else ""
    try:
        return f"{symbol}{float(value):,.2f}"
    except (TypeError, ValueError):
        return f"{symbol}0.00"

