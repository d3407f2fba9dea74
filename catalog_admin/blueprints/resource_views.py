"""Fetch / render / edit / delete views shared by the simple resource pages."""
from flask import current_app, flash, redirect, render_template, request, url_for

from catalog_admin.blueprints import api_client, flash_api_error
from catalog_admin.blueprints.auth.guard import login_required
from catalog_admin.models.product_draft import MultipartPayload
from catalog_admin.services.api_client import ApiError
from catalog_admin.services.cascade import ref_id


def _save(api, method, endpoint, body):
    if isinstance(body, MultipartPayload):
        return api.send_form(method, endpoint, body)
    return api.request(method, endpoint, json=body)


def register_resource(bp, resource):
    list_endpoint = f"{bp.name}.{resource.name}"

    def index():
        items = []
        try:
            with api_client() as api:
                items = resource.fetch(api)
        except ApiError as e:
            flash_api_error(e)
        edit_id = request.args.get("edit", "")
        editing = next((i for i in items if ref_id(i.get("_id")) == edit_id), None) if edit_id else None
        return render_template(
            "content/resource.html",
            resource=resource,
            items=items,
            editing=editing,
            values=resource.form_values(editing),
            list_endpoint=list_endpoint,
        )

    def _submit(method, endpoint, done_message):
        try:
            body = resource.build_body(
                request.form, request.files, current_app.config["MAX_IMAGE_BYTES"]
            )
        except ValueError as e:
            flash(str(e), "error")
            return redirect(request.referrer or url_for(list_endpoint))
        try:
            with api_client() as api:
                _save(api, method, endpoint, body)
        except ApiError as e:
            flash_api_error(e)
            return redirect(request.referrer or url_for(list_endpoint))
        flash(done_message, "success")
        return redirect(url_for(list_endpoint))

    def create():
        return _submit("POST", resource.endpoint, f"{resource.singular} created successfully")

    def update(item_id):
        return _submit(
            "PUT", f"{resource.endpoint}/{item_id}", f"{resource.singular} updated successfully"
        )

    def delete(item_id):
        try:
            with api_client() as api:
                api.delete(f"{resource.endpoint}/{item_id}")
        except ApiError as e:
            flash_api_error(e)
        else:
            flash(f"{resource.singular} deleted successfully", "success")
        return redirect(url_for(list_endpoint))

    guard = login_required()
    base = f"/{resource.name}"
    bp.add_url_rule(f"{base}/", resource.name, guard(index), methods=["GET"])
    bp.add_url_rule(f"{base}/", f"{resource.name}_create", guard(create), methods=["POST"])
    bp.add_url_rule(f"{base}/<item_id>", f"{resource.name}_update", guard(update), methods=["POST"])
    bp.add_url_rule(
        f"{base}/<item_id>/delete", f"{resource.name}_delete", guard(delete), methods=["POST"]
    )
