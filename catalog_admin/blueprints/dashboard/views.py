"""Dashboard home and the hierarchy analytics page."""
from flask import render_template, request

from catalog_admin.blueprints import api_client
from catalog_admin.blueprints.auth.guard import login_required
from catalog_admin.blueprints.dashboard import dashboard_bp
from catalog_admin.services import analytics

SECTIONS = [
    ("Users", "content.users", "Manage accounts and roles"),
    ("Categories", "catalog.categories", "Top-level catalog categories"),
    ("Subcategories", "catalog.subcategories", "Subcategories and their sub-subcategories"),
    ("Products", "products.index", "Products, variants and pricing"),
    ("Notifications", "content.notifications", "Scheduled announcements"),
    ("Policies", "content.policies", "Store policies"),
    ("PDFs", "content.pdfs", "Downloadable catalogs"),
    ("Videos", "content.videos", "Product videos"),
    ("Analytics", "dashboard.analytics", "Category hierarchy overview"),
]


@dashboard_bp.route("/")
@login_required()
def index():
    return render_template("dashboard/index.html", sections=SECTIONS)


@dashboard_bp.route("/analytics", endpoint="analytics")
@login_required()
def analytics_view():
    with api_client() as api:
        categories, subcategories, products = analytics.fetch_collections(api)
    tree = analytics.build_tree(categories, subcategories, products)
    stats = analytics.collection_stats(categories, subcategories, products)
    if request.args.get("format") == "json":
        return {"stats": stats, "tree": [node.to_dict() for node in tree]}
    return render_template("dashboard/analytics.html", tree=tree, stats=stats)
