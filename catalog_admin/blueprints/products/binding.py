"""Translate a posted product form into ``ProductDraft`` method calls.

Every POST carries the whole form plus a single ``action``. Field values are
applied first, in a fixed order, so that the action always sees the state the
admin was looking at:

1. scalars (name, description, gst, stock, flags)
2. category selection
3. prices (tier inputs only while individual reseller pricing is on)
4. sizes
5. reseller pricing toggle
6. pricing mode
"""
import re

from catalog_admin.models.pricing import PRICE_FIELDS, RESELLER_TIERS, parse_number
from catalog_admin.models.product_draft import (
    SIZE_BASED,
    VISIBILITY_FLAGS,
    DraftError,
)

FORM_MARKER = "draft_form"
INDIVIDUAL = "individual"

_COLOR_NAME = re.compile(r"^color-(\d+)-name$")
_COLOR_URL = re.compile(r"^color-(\d+)-image-(\d+)$")
_IMAGE_URL = re.compile(r"^image-url-(\d+)$")
_DYNAMIC_KEY = re.compile(r"^dynamic-(\d+)-key$")


def _parse_stock(raw):
    number = parse_number(raw)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _indexed(form, pattern):
    """``(match groups as ints, value)`` for every form key matching ``pattern``."""
    found = []
    for key in form.keys():
        m = pattern.match(key)
        if m:
            found.append((tuple(int(g) for g in m.groups()), form.get(key, "")))
    return sorted(found)


def _bind_scalars(draft, form):
    draft.name = form.get("name", "").strip()
    draft.description = form.get("description", "")
    draft.gst = parse_number(form.get("gst"))
    draft.stock = _parse_stock(form.get("stock"))
    draft.is_active = "isActive" in form
    draft.is_available = "isAvailable" in form
    for flag in VISIBILITY_FLAGS:
        draft.visibility[flag] = flag in form


def _bind_category(draft, form):
    previous = draft.sub_category_id
    draft.select_subcategory(form.get("subCategoryId", ""))
    # A sub-subcategory posted alongside a changed subcategory belongs to the old one
    if draft.sub_category_id == previous:
        draft.select_sub_subcategory(form.get("subSubCategoryId", ""))


def _price_names(draft):
    if draft.use_individual_reseller_pricing:
        return PRICE_FIELDS
    return tuple(name for name in PRICE_FIELDS if name not in RESELLER_TIERS)


def _bind_prices(draft, form):
    names = _price_names(draft)
    for name in names:
        key = f"pricing.{name}"
        if key in form:
            draft.set_price(name, form.get(key), size=None)

    if draft.pricing_mode != SIZE_BASED:
        return
    for idx, entry in enumerate(draft.size_based_pricing):
        for name in names:
            key = f"size_pricing-{idx}-{name}"
            if key in form:
                draft.set_price(name, form.get(key), size=entry.size)


def _bind_colors(draft, form):
    for (idx,), value in _indexed(form, _COLOR_NAME):
        if idx < len(draft.colors):
            draft.rename_color(idx, value.strip())
    for (idx, j), value in _indexed(form, _COLOR_URL):
        if idx < len(draft.colors) and j < len(draft.colors[idx].image_urls):
            draft.set_color_image_url(idx, j, value.strip())


def _bind_images(draft, form):
    for (j,), value in _indexed(form, _IMAGE_URL):
        if j < len(draft.image_urls):
            draft.set_image_url(j, value.strip())


def _bind_dynamic_fields(draft, form):
    rows = _indexed(form, _DYNAMIC_KEY)
    if not rows:
        return
    fields = {}
    for (k,), key in rows:
        key = key.strip()
        if key:
            fields[key] = form.get(f"dynamic-{k}-value", "")
    draft.dynamic_fields = fields


def apply_form(draft, form):
    """Apply posted field values; a post without the form marker changes nothing."""
    if form.get(FORM_MARKER) != "1":
        return
    _bind_scalars(draft, form)
    _bind_category(draft, form)
    _bind_prices(draft, form)
    draft.set_sizes(form.get("sizes", ""))
    _bind_colors(draft, form)
    _bind_images(draft, form)
    _bind_dynamic_fields(draft, form)

    individual = form.get("resellerPricingMode") == INDIVIDUAL
    if individual != draft.use_individual_reseller_pricing:
        draft.set_reseller_pricing_toggle(individual)
    mode = form.get("pricingMode")
    if mode:
        draft.set_pricing_mode(mode)


def _int(raw):
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise DraftError(f"Bad position {raw!r}")


def _staged_flag(kind):
    if kind not in ("url", "file"):
        raise DraftError(f"Unknown image kind {kind!r}")
    return kind == "file"


def dispatch_action(draft, action, form):
    """Run one form action. Returns True when the action is ``submit``."""
    name, _, arg = (action or "refresh").partition(":")
    if name == "refresh":
        return False
    if name == "submit":
        return True
    if name == "add_color":
        draft.add_color()
    elif name == "remove_color":
        draft.remove_color(_int(arg))
    elif name == "add_image_url":
        draft.add_image_url()
    elif name == "remove_image":
        kind, _, idx = arg.partition(":")
        draft.remove_image(_int(idx), staged=_staged_flag(kind))
    elif name == "add_color_image_url":
        draft.add_color_image_url(_int(arg))
    elif name == "remove_color_image":
        color, kind, idx = (arg.split(":") + ["", ""])[:3]
        if _staged_flag(kind):
            draft.remove_color_staged_file(_int(color), _int(idx))
        else:
            draft.remove_color_image_url(_int(color), _int(idx))
    elif name == "add_dynamic_field":
        draft.set_dynamic_field(form.get("dynamic-new-key", ""), form.get("dynamic-new-value", ""))
    elif name == "remove_dynamic_field":
        draft.remove_dynamic_field(arg)
    else:
        raise DraftError(f"Unknown action {action!r}")
    return False
