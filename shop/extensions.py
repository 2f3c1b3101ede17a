# --- shop/extensions.py ---
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_limiter import Limiter

from .utils.net import get_client_ip

db = SQLAlchemy()
jwt = JWTManager()
cors = CORS()
migrate = Migrate()
limiter = Limiter(key_func=get_client_ip)
