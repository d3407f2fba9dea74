from flask import Blueprint

content_bp = Blueprint("content", __name__)

from catalog_admin.blueprints.content import views  # noqa: F401, E402
