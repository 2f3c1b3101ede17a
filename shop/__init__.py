# --- shop/__init__.py ---
import logging
import os
import time

from flask import Flask, g, request

from .config import Config, config_by_name
from .errors import register_error_handlers
from .extensions import cors, db, jwt, limiter, migrate
from .utils.api import err, ok

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


def _load_config(app, config):
    if config is None:
        config = os.getenv("FLASK_ENV", "development")
    if isinstance(config, str):
        config = config_by_name.get(config, Config)
    overrides = {}
    if isinstance(config, dict):
        overrides, config = config, Config
    app.config.from_object(config)
    app.config.update(overrides)
    config.init_app(app)


def create_app(config=None):
    app = Flask(__name__, instance_relative_config=True)
    _load_config(app, config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={
        r"/api/*": {"origins": app.config["CORS_ORIGINS"]},
        r"/products.*": {"origins": app.config["CORS_ORIGINS"]},
        r"/health": {"origins": app.config["CORS_ORIGINS"]},
    })
    migrate.init_app(app, db)
    limiter.init_app(app)

    register_error_handlers(app)
    _register_jwt_callbacks()
    _register_request_hooks(app)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .checkout import bp as checkout_bp; app.register_blueprint(checkout_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .storefront import bp as storefront_bp; app.register_blueprint(storefront_bp)

    from .cli import register_cli
    register_cli(app)

    @app.get("/health")
    @limiter.exempt
    def health():
        return ok("Server is healthy", {"status": "ok"}, meta={})

    with app.app_context():
        from . import model  # noqa: F401
        db.create_all()

    app.logger.debug("routes: %s", sorted(r.rule for r in app.url_map.iter_rules()))
    return app


def _register_jwt_callbacks():
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return err("You are not logged in. Please login to get access.", 401)

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return err("Invalid token", 401)

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return err("Token expired", 401)


def _register_request_hooks(app):
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _finish(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        started = g.get("request_started")
        if started is not None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Response-Time"] = f"{elapsed_ms:.3f}ms"
            app.logger.info(
                "%s %s %s %.1fms", request.method, request.path, response.status_code, elapsed_ms
            )
        return response
