import os
from datetime import timedelta

DEV_JWT_SECRET = "dev-secret-change-me"


def _database_uri():
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")
    if os.getenv("DB_HOST") or os.getenv("DB_NAME"):
        user = os.getenv("DB_USER", "postgres")
        password = os.getenv("DB_PASSWORD", "")
        host = os.getenv("DB_HOST", "localhost")
        port = os.getenv("DB_PORT", "5432")
        name = os.getenv("DB_NAME", "shopify_products")
        auth = f"{user}:{password}" if password else user
        return f"postgresql+psycopg2://{auth}@{host}:{port}/{name}"
    # filled in by init_app with a sqlite file in the instance folder
    return None


class Config:
    ENV = os.getenv("FLASK_ENV", "development")
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-session-secret")
    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", DEV_JWT_SECRET)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=int(os.getenv("JWT_EXPIRES_DAYS", "7")))
    JWT_TOKEN_LOCATION = ["headers"]

    # ~tens of milliseconds per hash on current hardware
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:260000"

    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_API_VERSION = os.getenv("STRIPE_API_VERSION", "2024-11-20.acacia")

    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5000/shop")
    STOREFRONT_API_URL = os.getenv("STOREFRONT_API_URL", "http://localhost:5000")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "100 per 15 minutes")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @staticmethod
    def init_app(app):
        if not app.config.get("SQLALCHEMY_DATABASE_URI"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'app.db')}"


class ProductionConfig(Config):
    ENV = "production"

    @staticmethod
    def init_app(app):
        Config.init_app(app)
        if app.config["JWT_SECRET_KEY"] == DEV_JWT_SECRET:
            raise RuntimeError("JWT_SECRET_KEY must be set in production")


class TestingConfig(Config):
    ENV = "testing"
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-session-secret"
    JWT_SECRET_KEY = "test-jwt-secret"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
    FRONTEND_URL = "http://localhost:3000"
    STOREFRONT_API_URL = "http://api.test"
    RATELIMIT_ENABLED = False
    LOG_LEVEL = "DEBUG"


config_by_name = {
    "development": Config,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
