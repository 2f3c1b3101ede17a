from . import bp
from ..errors import BadRequestError, NotFoundError
from ..schemas import PageQuery, ProductListQuery
from ..services import catalog_service
from ..utils.api import ok
from ..utils.decorators import validate

# ---------- helpers ----------

def _parse_id(value, label="product ID"):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError(f"Invalid {label}")


def _page_args(query: PageQuery):
    return {
        "page": query.page,
        "limit": query.limit,
        "sort_by": query.sort_by,
        "order": query.order,
    }


# ---------- metadata ----------

# GET /products/vendors
@bp.get("/vendors")
def list_vendors():
    return ok("Vendors retrieved successfully", catalog_service.get_all_vendors())


# GET /products/types
@bp.get("/types")
def list_types():
    return ok("Product types retrieved successfully", catalog_service.get_all_product_types())


# GET /products/tags
@bp.get("/tags")
def list_tags():
    return ok("Tags retrieved successfully", catalog_service.get_all_tags())


# ---------- listing / filtering ----------

# GET /products?q=&page=&limit=&sortBy=&order=
@bp.get("")
@validate(query=ProductListQuery)
def list_products(query: ProductListQuery):
    """
    Query params:
      q       -> case-insensitive substring over title, vendor and type
      page    -> int >= 1, default 1
      limit   -> int >= 1, default 20
      sortBy  -> created_at | updated_at | title | vendor (created/updated also accepted)
      order   -> asc | desc, default desc
    Search results use the same pagination envelope as the plain listing.
    """
    if query.q:
        result = catalog_service.search_products(query.q, **_page_args(query))
    else:
        result = catalog_service.list_products(**_page_args(query))
    return ok("Products retrieved successfully", result)


# GET /products/vendor/<vendor>
@bp.get("/vendor/<path:vendor>")
@validate(query=PageQuery)
def products_by_vendor(vendor, query: PageQuery):
    result = catalog_service.get_products_by_vendor(vendor, **_page_args(query))
    return ok("Products retrieved successfully", result)


# GET /products/type/<product_type>
@bp.get("/type/<path:product_type>")
@validate(query=PageQuery)
def products_by_type(product_type, query: PageQuery):
    result = catalog_service.get_products_by_type(product_type, **_page_args(query))
    return ok("Products retrieved successfully", result)


# GET /products/tag/<tag>
@bp.get("/tag/<path:tag>")
@validate(query=PageQuery)
def products_by_tag(tag, query: PageQuery):
    result = catalog_service.get_products_by_tag(tag, **_page_args(query))
    return ok("Products retrieved successfully", result)


# ---------- single product ----------

# GET /products/handle/<handle>
@bp.get("/handle/<handle>")
def get_product_by_handle(handle):
    product = catalog_service.get_product_by_handle(handle)
    if not product:
        raise NotFoundError("Product not found")
    return ok("Product retrieved successfully", product.as_detail())


# GET /products/<id>
@bp.get("/<pid>")
def get_product(pid):
    product = catalog_service.get_product_with_details(_parse_id(pid))
    if not product:
        raise NotFoundError("Product not found")
    return ok("Product retrieved successfully", product)


# GET /products/<id>/variants
@bp.get("/<pid>/variants")
def get_variants(pid):
    return ok("Variants retrieved successfully", catalog_service.get_product_variants(_parse_id(pid)))


# GET /products/<id>/variants/<variant_id>
@bp.get("/<pid>/variants/<variant_id>")
def get_variant(pid, variant_id):
    variant = catalog_service.get_product_variant_by_id(
        _parse_id(pid), _parse_id(variant_id, "variant ID")
    )
    return ok("Variant retrieved successfully", variant)
