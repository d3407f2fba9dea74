from flask import Blueprint

auth_bp = Blueprint("auth", __name__)

from catalog_admin.blueprints.auth import views  # noqa: F401, E402
