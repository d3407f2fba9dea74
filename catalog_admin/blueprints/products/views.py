"""Product list, detail, status/delete, and the create/edit draft form."""
import logging

from flask import current_app, flash, redirect, render_template, request, url_for

from catalog_admin.blueprints import api_client, flash_api_error
from catalog_admin.blueprints.auth.guard import login_required
from catalog_admin.blueprints.products import products_bp
from catalog_admin.blueprints.products.binding import apply_form, dispatch_action
from catalog_admin.extensions import get_draft_store
from catalog_admin.models.pricing import PRICE_FIELDS, RESELLER_TIERS
from catalog_admin.models.product_draft import (
    SIZE_BASED,
    VISIBILITY_FLAGS,
    DraftError,
    ValidationError,
)
from catalog_admin.services import image_service, product_service
from catalog_admin.services.api_client import ApiError, Pagination
from catalog_admin.services.cascade import find_subcategory
from catalog_admin.services.draft_store import SubmissionInProgress
from catalog_admin.services.session_store import get_session_store

PRICE_LABELS = {
    "mrp": "MRP",
    "customer": "Customer",
    "reseller": "Reseller",
    "special": "Special",
    **{tier: f"Reseller {tier[-1]}" for tier in RESELLER_TIERS},
}

logger = logging.getLogger(__name__)


@products_bp.route("/")
@login_required()
def index():
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    limit = request.args.get("limit", current_app.config["PRODUCTS_PER_PAGE"], type=int)
    items, pagination = [], Pagination(limit=limit, page=page)
    try:
        with api_client() as api:
            items, pagination = product_service.list_products(api, page=page, limit=limit)
    except ApiError as e:
        flash_api_error(e)
    return render_template("products/list.html", products=items, pagination=pagination)


@products_bp.route("/<product_id>")
@login_required()
def detail(product_id):
    try:
        with api_client() as api:
            product = product_service.fetch_product(api, product_id)
    except ApiError as e:
        flash_api_error(e)
        return redirect(url_for("products.index"))
    return render_template("products/detail.html", product=product, product_id=product_id)


@products_bp.route("/<product_id>/delete", methods=["POST"])
@login_required()
def delete(product_id):
    try:
        with api_client() as api:
            product_service.delete_product(api, product_id)
    except ApiError as e:
        flash_api_error(e)
    else:
        flash("Product deleted successfully", "success")
    return redirect(url_for("products.index"))


@products_bp.route("/<product_id>/status", methods=["POST"])
@login_required()
def toggle_status(product_id):
    is_active = request.form.get("isActive") == "true"
    try:
        with api_client() as api:
            product_service.set_product_status(api, product_id, is_active)
    except ApiError as e:
        flash_api_error(e)
    else:
        flash(f"Product {'activated' if is_active else 'deactivated'}", "success")
    return redirect(request.referrer or url_for("products.index"))


# ----------------------------------------------------------------------
# Draft form
# ----------------------------------------------------------------------


def _fetch_subcategories(api):
    try:
        return product_service.fetch_subcategories(api)
    except ApiError as e:
        flash_api_error(e)
        return []


def _open_draft(draft):
    owner = get_session_store().owner()
    draft_id = get_draft_store().create(draft, owner)
    logger.info("Opened draft %s for product %s", draft_id, draft.product_id or "<new>")
    return redirect(url_for("products.edit_draft", draft_id=draft_id))


@products_bp.route("/new")
@login_required()
def new():
    with api_client() as api:
        subcategories = _fetch_subcategories(api)
    return _open_draft(product_service.new_draft(subcategories))


@products_bp.route("/<product_id>/edit")
@login_required()
def edit(product_id):
    try:
        with api_client() as api:
            subcategories = _fetch_subcategories(api)
            draft = product_service.draft_for_edit(api, product_id, subcategories)
    except ApiError as e:
        flash_api_error(e)
        return redirect(url_for("products.index"))
    return _open_draft(draft)


def _render_form(draft_id, draft):
    return render_template(
        "products/form.html",
        draft_id=draft_id,
        draft=draft,
        subcategory=find_subcategory(draft.subcategories, draft.sub_category_id),
        sub_subcategories=draft.sub_subcategory_options(),
        price_fields=PRICE_FIELDS,
        price_labels=PRICE_LABELS,
        reseller_tiers=RESELLER_TIERS,
        visibility_flags=VISIBILITY_FLAGS,
        size_based=draft.pricing_mode == SIZE_BASED,
    )


@products_bp.route("/drafts/<draft_id>")
@login_required()
def edit_draft(draft_id):
    draft = get_draft_store().load(draft_id, get_session_store().owner())
    return _render_form(draft_id, draft)


def _stage_files(draft):
    max_size = current_app.config["MAX_IMAGE_BYTES"]
    staged, errors = image_service.stage_uploads(request.files.getlist("images"), max_size)
    draft.stage_images(staged)
    for idx in range(len(draft.colors)):
        uploads = request.files.getlist(f"colorImages-{idx}")
        if not uploads:
            continue
        color_staged, color_errors = image_service.stage_uploads(uploads, max_size)
        draft.stage_color_files(idx, color_staged)
        errors.extend(color_errors)
    for message in errors:
        flash(message, "error")


def _submit(draft_id, draft):
    store = get_draft_store()
    try:
        with store.submit_lock(draft_id):
            with api_client() as api:
                product_service.submit_draft(api, draft)
    except ValidationError as e:
        for message in e.errors:
            flash(message, "error")
    except SubmissionInProgress as e:
        flash(str(e), "error")
    except ApiError as e:
        flash_api_error(e)
    else:
        store.discard(draft_id)
        if draft.product_id:
            target = url_for("products.detail", product_id=draft.product_id)
            message = "Product updated successfully"
        else:
            target = url_for("products.index")
            message = "Product created successfully"
        return render_template(
            "products/saved.html",
            message=message,
            target=target,
            delay=current_app.config["SUBMIT_REDIRECT_DELAY"],
        )
    return redirect(url_for("products.edit_draft", draft_id=draft_id))


@products_bp.route("/drafts/<draft_id>", methods=["POST"])
@login_required()
def update_draft(draft_id):
    store = get_draft_store()
    owner = get_session_store().owner()
    draft = store.load(draft_id, owner)

    submit = False
    try:
        apply_form(draft, request.form)
        _stage_files(draft)
        submit = dispatch_action(draft, request.form.get("action"), request.form)
    except DraftError as e:
        flash(str(e), "error")
    store.save(draft_id, draft, owner)

    if submit:
        return _submit(draft_id, draft)
    return redirect(url_for("products.edit_draft", draft_id=draft_id))


@products_bp.route("/drafts/<draft_id>/discard", methods=["POST"])
@login_required()
def discard_draft(draft_id):
    store = get_draft_store()
    draft = store.load(draft_id, get_session_store().owner())
    store.discard(draft_id)
    if draft.product_id:
        return redirect(url_for("products.detail", product_id=draft.product_id))
    return redirect(url_for("products.index"))
