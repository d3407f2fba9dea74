"""Categories, subcategories and their nested sub-subcategories."""
from flask import flash, redirect, render_template, request, url_for

from catalog_admin.blueprints import api_client, flash_api_error
from catalog_admin.blueprints.auth.guard import login_required
from catalog_admin.blueprints.catalog import catalog_bp
from catalog_admin.blueprints.resource_views import register_resource
from catalog_admin.services import resources
from catalog_admin.services.api_client import ApiError, normalize_list
from catalog_admin.services.cascade import find_subcategory, ref_id, subcategories_for_category

register_resource(catalog_bp, resources.CATEGORIES)


def _subcategory_body(form):
    return {
        "name": form.get("name", "").strip(),
        "category": form.get("category", "").strip(),
        "description": form.get("description", "").strip(),
        "image": form.get("image", "").strip(),
        "isActive": "isActive" in form,
    }


def _sub_subcategory_body(form):
    return {
        "name": form.get("name", "").strip(),
        "description": form.get("description", "").strip(),
        "image": form.get("image", "").strip(),
        "isActive": "isActive" in form,
    }


def _call(method, endpoint, done_message, body=None):
    try:
        with api_client() as api:
            api.request(method, endpoint, json=body)
    except ApiError as e:
        flash_api_error(e)
        return False
    flash(done_message, "success")
    return True


@catalog_bp.route("/subcategories/")
@login_required()
def subcategories():
    categories, items = [], []
    try:
        with api_client() as api:
            categories = normalize_list(api.get("/categories"), "categories")
            items = normalize_list(api.get("/subcategories"), "subcategories")
    except ApiError as e:
        flash_api_error(e)

    category_names = {ref_id(c.get("_id")): c.get("name", "") for c in categories}
    editing = find_subcategory(items, request.args.get("edit", ""))
    selected_category = request.args.get("category", "")
    if selected_category:
        items = subcategories_for_category(items, selected_category)
    return render_template(
        "catalog/subcategories.html",
        categories=categories,
        category_names=category_names,
        subcategories=items,
        editing=editing,
        selected_category=selected_category,
    )


@catalog_bp.route("/subcategories/", methods=["POST"])
@login_required()
def create_subcategory():
    body = _subcategory_body(request.form)
    if not body["name"] or not body["category"]:
        flash("Name and category are required.", "error")
    else:
        _call("POST", "/subcategories", "Subcategory created successfully", body)
    return redirect(url_for("catalog.subcategories"))


@catalog_bp.route("/subcategories/<sub_id>", methods=["POST"])
@login_required()
def update_subcategory(sub_id):
    body = _subcategory_body(request.form)
    if not body["name"] or not body["category"]:
        flash("Name and category are required.", "error")
        return redirect(url_for("catalog.subcategories", edit=sub_id))
    _call("PUT", f"/subcategories/{sub_id}", "Subcategory updated successfully", body)
    return redirect(url_for("catalog.subcategories"))


@catalog_bp.route("/subcategories/<sub_id>/delete", methods=["POST"])
@login_required()
def delete_subcategory(sub_id):
    _call("DELETE", f"/subcategories/{sub_id}", "Subcategory deleted successfully")
    return redirect(url_for("catalog.subcategories"))


@catalog_bp.route("/subcategories/<sub_id>/sub", methods=["POST"])
@login_required()
def create_sub_subcategory(sub_id):
    body = _sub_subcategory_body(request.form)
    if not body["name"]:
        flash("Name is required.", "error")
    else:
        _call("POST", f"/subcategories/{sub_id}/sub", "Sub-subcategory added successfully", body)
    return redirect(url_for("catalog.subcategories"))


@catalog_bp.route("/subcategories/<sub_id>/sub/<sub_sub_id>", methods=["POST"])
@login_required()
def update_sub_subcategory(sub_id, sub_sub_id):
    body = _sub_subcategory_body(request.form)
    if not body["name"]:
        flash("Name is required.", "error")
    else:
        _call(
            "PUT",
            f"/subcategories/{sub_id}/sub/{sub_sub_id}",
            "Sub-subcategory updated successfully",
            body,
        )
    return redirect(url_for("catalog.subcategories"))


@catalog_bp.route("/subcategories/<sub_id>/sub/<sub_sub_id>/delete", methods=["POST"])
@login_required()
def delete_sub_subcategory(sub_id, sub_sub_id):
    _call(
        "DELETE",
        f"/subcategories/{sub_id}/sub/{sub_sub_id}",
        "Sub-subcategory deleted successfully",
    )
    return redirect(url_for("catalog.subcategories"))
