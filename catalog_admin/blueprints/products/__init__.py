from flask import Blueprint

products_bp = Blueprint("products", __name__)

from catalog_admin.blueprints.products import views  # noqa: F401, E402
