from flask import Blueprint

dashboard_bp = Blueprint("dashboard", __name__)

from catalog_admin.blueprints.dashboard import views  # noqa: F401, E402
