# --- shop/model/user.py ---
import uuid

from sqlalchemy.sql import func

from ..extensions import db
from .types import GUID


def _iso(dt):
    return dt.isoformat() if dt else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(180), nullable=True)
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    orders = db.relationship("Order", back_populates="user", lazy="dynamic")

    def as_auth(self):
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "createdAt": _iso(self.created_at),
        }

    def as_dict(self):
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
