"""Backend calls behind the product pages and the product form."""
import logging

from catalog_admin.models.product_draft import ProductDraft
from catalog_admin.services.api_client import (
    Pagination,
    normalize_list,
    normalize_record,
)

logger = logging.getLogger(__name__)


def fetch_subcategories(api):
    return normalize_list(api.get("/subcategories"), "subcategories")


def fetch_product(api, product_id):
    return normalize_record(api.get(f"/products/{product_id}"), "product")


def list_products(api, page=1, limit=10):
    """One page of products plus the backend's pagination block."""
    payload = api.get("/products", params={"page": page, "limit": limit})
    return normalize_list(payload, "products"), Pagination.from_response(payload, limit)


def new_draft(subcategories):
    return ProductDraft(subcategories=subcategories)


def draft_for_edit(api, product_id, subcategories):
    product = fetch_product(api, product_id)
    draft = ProductDraft.from_product(product, subcategories=subcategories)
    draft.product_id = draft.product_id or product_id
    return draft


def submit_draft(api, draft):
    """Validate locally, then create or update the product in one request.

    Raises ``ValidationError`` before any network call, ``ApiError`` when the
    backend rejects the submission. The draft is left untouched either way.
    """
    payload = draft.build_payload()
    if draft.product_id:
        method, endpoint = "PUT", f"/products/{draft.product_id}"
    else:
        method, endpoint = "POST", "/products"
    logger.info(
        "Submitting product %s (%d text parts, %d files)",
        draft.product_id or "<new>", len(payload.fields), len(payload.files),
    )
    return api.send_form(method, endpoint, payload)


def delete_product(api, product_id):
    return api.delete(f"/products/{product_id}")


def set_product_status(api, product_id, is_active):
    return api.patch(f"/products/{product_id}/status", json={"isActive": bool(is_active)})
