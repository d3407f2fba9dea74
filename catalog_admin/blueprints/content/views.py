"""Users, notifications, policies, PDFs and videos."""
from flask import flash, redirect, render_template, request, url_for

from catalog_admin.blueprints import api_client, flash_api_error
from catalog_admin.blueprints.auth.guard import login_required
from catalog_admin.blueprints.content import content_bp
from catalog_admin.blueprints.resource_views import register_resource
from catalog_admin.services import resources
from catalog_admin.services.api_client import ApiError, normalize_list

ROLES = ("user", "reseller", "admin")

for _resource in (resources.NOTIFICATIONS, resources.POLICIES, resources.PDFS, resources.VIDEOS):
    register_resource(content_bp, _resource)


@content_bp.route("/users/")
@login_required()
def users():
    items = []
    try:
        with api_client() as api:
            items = normalize_list(api.get("/auth/users"), "users")
    except ApiError as e:
        flash_api_error(e)
    return render_template("content/users.html", users=items, roles=ROLES)


@content_bp.route("/users/<user_id>/role", methods=["POST"])
@login_required()
def update_user_role(user_id):
    role = request.form.get("role", "").strip()
    if not role:
        flash("Please select a role", "error")
        return redirect(url_for("content.users"))
    try:
        with api_client() as api:
            api.put(f"/auth/users/{user_id}/role", json={"role": role})
    except ApiError as e:
        flash_api_error(e)
    else:
        flash("User role updated successfully", "success")
    return redirect(url_for("content.users"))


@content_bp.route("/users/<user_id>/delete", methods=["POST"])
@login_required()
def delete_user(user_id):
    try:
        with api_client() as api:
            api.delete(f"/auth/users/{user_id}")
    except ApiError as e:
        flash_api_error(e)
    else:
        flash("User deleted successfully", "success")
    return redirect(url_for("content.users"))
