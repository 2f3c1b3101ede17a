# shop/services/ingest_service.py
"""
Load Shopify-style ``products.json`` payloads into the catalog tables.

The API itself never writes products; this is the offline ingestion path used
by ``flask import-products`` and by the test fixtures.
"""
from datetime import datetime, timezone

from ..extensions import db
from ..model import Product, ProductImage, ProductOption, ProductTag, Variant
from ..utils.money import D


def _parse_dt(value):
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    # stored as naive UTC
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _parse_tags(raw):
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    seen = []
    for t in raw:
        t = str(t).strip()
        if t and t not in seen:
            seen.append(t)
    return seen


def _money_or_none(v):
    if v in (None, ""):
        return None
    return D(v)


def upsert_product(data: dict) -> Product:
    product = db.session.get(Product, data["id"]) if data.get("id") else None
    if product is None:
        product = Product(id=data.get("id"))
        db.session.add(product)
    else:
        # old children must be deleted before rows with the same ids come back
        product.tag_rows.clear()
        product.images.clear()
        product.variants.clear()
        product.options.clear()
        db.session.flush()

    product.handle = data["handle"]
    product.title = data["title"]
    product.body_html = data.get("body_html")
    product.vendor = data.get("vendor")
    product.product_type = data.get("product_type")
    product.raw_json = data
    product.published_at = _parse_dt(data.get("published_at"))
    created = _parse_dt(data.get("created_at"))
    updated = _parse_dt(data.get("updated_at"))
    if created:
        product.created_at = created
    if updated:
        product.updated_at = updated

    product.tag_rows = [ProductTag(tag=t) for t in _parse_tags(data.get("tags"))]
    product.images = [
        ProductImage(
            id=img.get("id"),
            src=img["src"],
            alt=img.get("alt"),
            position=img.get("position") or i,
            width=img.get("width"),
            height=img.get("height"),
        )
        for i, img in enumerate(data.get("images") or [], start=1)
    ]
    product.variants = [
        Variant(
            id=v.get("id"),
            title=v.get("title"),
            price=_money_or_none(v.get("price")),
            compare_at_price=_money_or_none(v.get("compare_at_price")),
            sku=v.get("sku"),
            available=bool(v.get("available", True)),
            option1=v.get("option1"),
            option2=v.get("option2"),
            option3=v.get("option3"),
            position=v.get("position") or i,
        )
        for i, v in enumerate(data.get("variants") or [], start=1)
    ]
    product.options = [
        ProductOption(
            id=o.get("id"),
            name=o["name"],
            position=o.get("position") or i,
            values=list(o.get("values") or []),
        )
        for i, o in enumerate(data.get("options") or [], start=1)
    ]
    return product


def import_products(payload) -> int:
    """Upsert every product in ``payload``; returns how many were written."""
    products = payload.get("products", []) if isinstance(payload, dict) else list(payload or [])
    for data in products:
        upsert_product(data)
        db.session.flush()
    db.session.commit()
    return len(products)
