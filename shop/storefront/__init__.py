from flask import Blueprint

bp = Blueprint("storefront", __name__, url_prefix="/shop", template_folder="templates")

from . import routes  # noqa: E402,F401
