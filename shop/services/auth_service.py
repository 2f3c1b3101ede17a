# shop/services/auth_service.py
from flask import current_app
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from werkzeug.security import check_password_hash, generate_password_hash

from ..errors import ConflictError, NotFoundError, UnauthorizedError
from ..extensions import db
from ..model import User
from ..model.types import coerce_uuid

INVALID_CREDENTIALS = "Invalid email or password"


def _normalize_email(email):
    return (email or "").strip().lower()


def hash_password(password):
    return generate_password_hash(password, method=current_app.config["PASSWORD_HASH_METHOD"])


def issue_token(user: User) -> str:
    return create_access_token(identity=str(user.id), additional_claims={"email": user.email})


def register(email, password, name=None):
    """Create an account and return ``(user, token)``."""
    email = _normalize_email(email)
    if User.query.filter_by(email=email).first():
        raise ConflictError("User with this email already exists")

    user = User(email=email, password_hash=hash_password(password), name=(name or None))
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("registered user %s", user.id)
    return user, issue_token(user)


def login(email, password):
    user = User.query.filter_by(email=_normalize_email(email)).first()
    # same message for unknown email and bad password
    if not user or not check_password_hash(user.password_hash, password or ""):
        raise UnauthorizedError(INVALID_CREDENTIALS)
    return user, issue_token(user)


def verify(token):
    """Identity embedded in a token, or Unauthorized."""
    if not token:
        raise UnauthorizedError("You are not logged in. Please login to get access.")
    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        raise UnauthorizedError("Invalid or expired token") from e
    return {"userId": claims.get("sub"), "email": claims.get("email")}


def get_current_user(user_id):
    uid = coerce_uuid(user_id)
    user = db.session.get(User, uid) if uid else None
    if not user:
        raise NotFoundError("User not found")
    return user
