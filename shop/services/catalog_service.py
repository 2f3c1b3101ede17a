"""Read-only queries over the product catalog."""
from sqlalchemy import asc, desc, func, or_

from ..errors import NotFoundError
from ..extensions import db
from ..model import Product, ProductTag, Variant

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20

SORT_COLUMNS = {
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
    "title": Product.title,
    "vendor": Product.vendor,
}


def _sorted(query, sort_by=None, order=None):
    col = SORT_COLUMNS.get(sort_by or "created_at", Product.created_at)
    direction = asc if (order or "desc") == "asc" else desc
    # id keeps pages stable when the sort column ties
    return query.order_by(direction(col), direction(Product.id))


def _paginate(query, page=None, limit=None, sort_by=None, order=None):
    page = max(int(page or DEFAULT_PAGE), 1)
    limit = max(int(limit or DEFAULT_LIMIT), 1)
    paged = _sorted(query, sort_by, order).paginate(page=page, per_page=limit, error_out=False)
    total_pages = paged.pages
    return {
        "products": [p.as_api() for p in paged.items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": paged.total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        },
    }


def list_products(page=None, limit=None, sort_by=None, order=None):
    return _paginate(Product.query, page, limit, sort_by, order)


def search_products(q, page=None, limit=None, sort_by=None, order=None):
    term = (q or "").strip()
    query = Product.query.filter(
        or_(
            Product.title.icontains(term, autoescape=True),
            Product.vendor.icontains(term, autoescape=True),
            Product.product_type.icontains(term, autoescape=True),
        )
    )
    return _paginate(query, page, limit, sort_by, order)


def get_products_by_vendor(vendor, page=None, limit=None, sort_by=None, order=None):
    query = Product.query.filter(func.lower(Product.vendor) == (vendor or "").lower())
    return _paginate(query, page, limit, sort_by, order)


def get_products_by_type(product_type, page=None, limit=None, sort_by=None, order=None):
    query = Product.query.filter(func.lower(Product.product_type) == (product_type or "").lower())
    return _paginate(query, page, limit, sort_by, order)


def get_products_by_tag(tag, page=None, limit=None, sort_by=None, order=None):
    query = Product.query.filter(Product.tag_rows.any(ProductTag.tag == tag))
    return _paginate(query, page, limit, sort_by, order)


def get_product_by_id(product_id):
    return db.session.get(Product, product_id)


def get_product_by_handle(handle):
    return Product.query.filter_by(handle=handle).first()


def get_product_with_details(product_id):
    product = get_product_by_id(product_id)
    return product.as_detail() if product else None


def _distinct(column):
    rows = (
        db.session.query(column)
        .filter(column.isnot(None), column != "")
        .distinct()
        .order_by(column.asc())
        .all()
    )
    return [value for (value,) in rows]


def get_all_vendors():
    return _distinct(Product.vendor)


def get_all_product_types():
    return _distinct(Product.product_type)


def get_all_tags():
    return _distinct(ProductTag.tag)


def get_product_variants(product_id):
    if not get_product_by_id(product_id):
        raise NotFoundError("Product not found")
    variants = Variant.query.filter_by(product_id=product_id).order_by(Variant.position.asc()).all()
    return [v.as_api() for v in variants]


def get_product_variant_by_id(product_id, variant_id):
    variant = Variant.query.filter_by(product_id=product_id, id=variant_id).first()
    if not variant:
        raise NotFoundError("Variant not found")
    return variant.as_api()
