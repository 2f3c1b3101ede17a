# shop/model/product.py
from sqlalchemy.sql import func

from ..extensions import db
from ..utils.money import to_string_money

# external (Shopify) ids are 64-bit; sqlite only autoincrements INTEGER keys
BigId = db.BigInteger().with_variant(db.Integer, "sqlite")


def _iso(dt):
    return dt.isoformat() if dt else None


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(BigId, primary_key=True)
    handle = db.Column(db.String(255), unique=True, nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False, index=True)
    body_html = db.Column(db.Text)
    vendor = db.Column(db.String(255), index=True)
    product_type = db.Column(db.String(255), index=True)
    raw_json = db.Column(db.JSON)

    created_at = db.Column(db.DateTime, server_default=func.now(), index=True)
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())
    published_at = db.Column(db.DateTime, nullable=True)

    tag_rows = db.relationship(
        "ProductTag",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductTag.id.asc()",
    )
    images = db.relationship(
        "ProductImage",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductImage.position.asc()",
    )
    variants = db.relationship(
        "Variant",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Variant.position.asc()",
    )
    options = db.relationship(
        "ProductOption",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductOption.position.asc()",
    )

    @property
    def tags(self):
        return [t.tag for t in self.tag_rows]

    def as_api(self):
        return {
            "id": self.id,
            "title": self.title,
            "handle": self.handle,
            "body_html": self.body_html,
            "vendor": self.vendor,
            "product_type": self.product_type,
            "tags": self.tags,
            "image": self.images[0].as_api() if self.images else None,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "published_at": _iso(self.published_at),
        }

    def as_detail(self):
        data = self.as_api()
        data.update({
            "raw_json": self.raw_json,
            "images": [img.as_api() for img in self.images],
            "variants": [v.as_api() for v in self.variants],
            "options": [o.as_api() for o in self.options],
        })
        return data


class ProductTag(db.Model):
    __tablename__ = "product_tags"
    __table_args__ = (db.UniqueConstraint("product_id", "tag", name="uq_product_tag"),)

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(BigId, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = db.Column(db.String(255), nullable=False, index=True)


class Variant(db.Model):
    __tablename__ = "variants"

    id = db.Column(BigId, primary_key=True)
    product_id = db.Column(BigId, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(255))
    price = db.Column(db.Numeric(10, 2))
    compare_at_price = db.Column(db.Numeric(10, 2))
    sku = db.Column(db.String(255))
    available = db.Column(db.Boolean, default=True)
    option1 = db.Column(db.String(255))
    option2 = db.Column(db.String(255))
    option3 = db.Column(db.String(255))
    position = db.Column(db.Integer, default=1)

    def as_api(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "title": self.title,
            "price": to_string_money(self.price),
            "compare_at_price": to_string_money(self.compare_at_price),
            "sku": self.sku,
            "available": self.available,
            "option1": self.option1,
            "option2": self.option2,
            "option3": self.option3,
            "position": self.position,
        }


class ProductImage(db.Model):
    __tablename__ = "product_images"

    id = db.Column(BigId, primary_key=True)
    product_id = db.Column(BigId, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    src = db.Column(db.String(1024), nullable=False)
    alt = db.Column(db.String(512))
    position = db.Column(db.Integer, default=1)
    width = db.Column(db.Integer)
    height = db.Column(db.Integer)

    def as_api(self):
        return {
            "id": self.id,
            "src": self.src,
            "alt": self.alt,
            "position": self.position,
            "width": self.width,
            "height": self.height,
        }


class ProductOption(db.Model):
    __tablename__ = "product_options"

    id = db.Column(BigId, primary_key=True)
    product_id = db.Column(BigId, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, default=1)
    values = db.Column(db.JSON, default=list)

    def as_api(self):
        return {
            "name": self.name,
            "position": self.position,
            "values": list(self.values or []),
        }
