"""In-memory product draft behind the create/edit product form.

The draft owns every piece of form state (pricing modes, per-size pricing,
color variants with their staged uploads, category selection) and turns it
into one multipart submission. All rules that keep the draft consistent live
here so that the form views only translate HTTP input into method calls.
"""
import json
from dataclasses import dataclass, field

from catalog_admin.models.pricing import (
    PRICE_FIELDS,
    RESELLER_TIERS,
    PricingBlock,
    SizePricing,
    is_valid_amount,
    parse_number,
)
from catalog_admin.models.variant import ColorVariant, StagedFile
from catalog_admin.services.cascade import ref_id, resolve_sub_subcategories

COMMON = "common"
SIZE_BASED = "size-based"
PRICING_MODES = (COMMON, SIZE_BASED)

VISIBILITY_FLAGS = (
    "showForCustomer",
    "showForReseller",
    "showForReseller1",
    "showForReseller2",
    "showForReseller3",
    "showForReseller4",
    "showForReseller5",
    "showForReseller6",
    "showForSpecial",
)


class DraftError(ValueError):
    """An operation the draft cannot perform (bad index, illegal edit)."""


class ValidationError(ValueError):
    """Local validation failed; nothing was sent to the backend."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def split_sizes(tokens):
    """Comma-entered size tokens: trimmed, empties dropped, first occurrence kept."""
    if isinstance(tokens, str):
        tokens = tokens.split(",")
    sizes = []
    for token in tokens:
        size = str(token).strip()
        if size and size not in sizes:
            sizes.append(size)
    return sizes


def _wire_number(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _wire_bool(value):
    return "true" if value else "false"


def _wire_json(value):
    if isinstance(value, dict):
        return {k: _wire_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_wire_json(v) for v in value]
    return _wire_number(value)


@dataclass
class MultipartPayload:
    """Ordered multipart parts: text fields and binary file parts."""

    fields: list = field(default_factory=list)
    files: list = field(default_factory=list)

    def add(self, name, value):
        self.fields.append((name, value))

    def add_file(self, name, staged):
        self.files.append((name, staged.as_upload()))

    def values(self, name):
        return [v for k, v in self.fields if k == name]

    def value(self, name, default=None):
        found = self.values(name)
        return found[0] if found else default

    def files_for(self, name):
        return [upload for k, upload in self.files if k == name]

    def as_httpx(self):
        """Parts for httpx ``files=``; text fields go as file-less parts so
        the body is always ``multipart/form-data``."""
        return [(name, (None, value)) for name, value in self.fields] + list(self.files)


@dataclass
class ProductDraft:
    product_id: str = None
    name: str = ""
    description: str = ""
    sub_category_id: str = ""
    sub_sub_category_id: str = ""
    gst: float = 0.0
    stock: int = 0
    pricing: PricingBlock = field(default_factory=PricingBlock)
    is_active: bool = True
    is_available: bool = True
    sizes: list = field(default_factory=list)
    colors: list = field(default_factory=lambda: [ColorVariant()])
    image_urls: list = field(default_factory=list)
    staged_images: list = field(default_factory=list)
    dynamic_fields: dict = field(default_factory=dict)
    visibility: dict = field(default_factory=lambda: {f: True for f in VISIBILITY_FLAGS})
    use_individual_reseller_pricing: bool = False
    pricing_mode: str = COMMON
    size_based_pricing: list = field(default_factory=list)
    # Fetched once when the form opens; feeds the sub-subcategory dropdown
    subcategories: list = field(default_factory=list)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_product(cls, product, subcategories=None):
        """Back-fill a draft from a product returned by the backend."""
        pricing = PricingBlock.from_dict(product.get("pricing"))
        size_based = [
            SizePricing.from_dict(entry)
            for entry in (product.get("sizeBasedPricing") or [])
            if isinstance(entry, dict)
        ]
        colors = [
            ColorVariant.from_dict(c) for c in (product.get("colors") or []) if isinstance(c, dict)
        ]
        draft = cls(
            product_id=ref_id(product.get("_id") or product.get("id")) or None,
            name=product.get("name") or "",
            description=product.get("description") or "",
            sub_category_id=ref_id(product.get("subCategoryId")),
            sub_sub_category_id=ref_id(product.get("subSubCategoryId")),
            gst=parse_number(product.get("gst")) or 0.0,
            stock=int(parse_number(product.get("stock")) or 0),
            pricing=pricing,
            is_active=bool(product.get("isActive", True)),
            is_available=bool(product.get("isAvailable", True)),
            # Older products carry sizes only on their size-based entries
            sizes=split_sizes(product.get("sizes") or [e.size for e in size_based]),
            colors=colors or [ColorVariant()],
            image_urls=[str(u) for u in (product.get("images") or [])],
            dynamic_fields=dict(product.get("dynamicFields") or {}),
            visibility={f: bool(product.get(f, True)) for f in VISIBILITY_FLAGS},
            use_individual_reseller_pricing=not all(
                block.is_unified() for block in [pricing] + [e.pricing for e in size_based]
            ),
            pricing_mode=SIZE_BASED if size_based else COMMON,
            size_based_pricing=size_based,
            subcategories=list(subcategories or []),
        )
        if draft.pricing_mode == SIZE_BASED:
            draft._reconcile_size_pricing()
        return draft

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def pricing_blocks(self):
        return [self.pricing] + [entry.pricing for entry in self.size_based_pricing]

    def size_pricing(self, size):
        for entry in self.size_based_pricing:
            if entry.size == size:
                return entry
        return None

    def _block_for(self, size):
        if size is None:
            return self.pricing
        entry = self.size_pricing(size)
        if entry is None:
            raise DraftError(f"No pricing entry for size {size!r}")
        return entry.pricing

    def _reconcile_size_pricing(self):
        existing = {entry.size: entry for entry in self.size_based_pricing}
        self.size_based_pricing = [
            existing.get(size)
            or SizePricing(size=size, pricing=self.pricing.seed(self.use_individual_reseller_pricing))
            for size in self.sizes
        ]

    def set_pricing_mode(self, mode):
        if mode not in PRICING_MODES:
            raise DraftError(f"Unknown pricing mode {mode!r}")
        self.pricing_mode = mode
        # Switching back to common keeps per-size entries for a later switch
        if mode == SIZE_BASED and self.sizes:
            self._reconcile_size_pricing()

    def set_reseller_pricing_toggle(self, use_individual):
        self.use_individual_reseller_pricing = bool(use_individual)
        if not self.use_individual_reseller_pricing:
            # Lossy: individually entered tier prices are overwritten
            for block in self.pricing_blocks():
                block.unify()

    def set_main_reseller_price(self, value, size=None):
        block = self._block_for(size)
        block.reseller = parse_number(value)
        if not self.use_individual_reseller_pricing:
            block.unify()

    def set_price(self, name, value, size=None):
        if name not in PRICE_FIELDS:
            raise DraftError(f"Unknown pricing field {name!r}")
        if name == "reseller":
            self.set_main_reseller_price(value, size=size)
            return
        if name in RESELLER_TIERS and not self.use_individual_reseller_pricing:
            raise DraftError(f"{name} follows the main reseller price while pricing is unified")
        setattr(self._block_for(size), name, parse_number(value))

    # ------------------------------------------------------------------
    # Sizes and categories
    # ------------------------------------------------------------------

    def set_sizes(self, tokens):
        self.sizes = split_sizes(tokens)
        if self.pricing_mode == SIZE_BASED:
            self._reconcile_size_pricing()

    def select_subcategory(self, subcategory_id):
        subcategory_id = (subcategory_id or "").strip()
        if subcategory_id != self.sub_category_id:
            self.sub_sub_category_id = ""
        self.sub_category_id = subcategory_id

    def select_sub_subcategory(self, sub_subcategory_id):
        self.sub_sub_category_id = (sub_subcategory_id or "").strip()

    def sub_subcategory_options(self):
        return resolve_sub_subcategories(self.subcategories, self.sub_category_id)

    # ------------------------------------------------------------------
    # Colors and images
    # ------------------------------------------------------------------

    def _color(self, index):
        if not 0 <= index < len(self.colors):
            raise DraftError(f"No color at position {index}")
        return self.colors[index]

    @staticmethod
    def _check_index(items, index, what):
        if not 0 <= index < len(items):
            raise DraftError(f"No {what} at position {index}")

    def add_color(self):
        self.colors.append(ColorVariant())
        return len(self.colors) - 1

    def remove_color(self, index):
        self._color(index)
        del self.colors[index]
        if not self.colors:
            self.colors.append(ColorVariant())

    def rename_color(self, index, name):
        self._color(index).name = name or ""

    def add_color_image_url(self, index, url=""):
        self._color(index).image_urls.append(url)

    def set_color_image_url(self, index, image_index, url):
        color = self._color(index)
        self._check_index(color.image_urls, image_index, "image URL")
        color.image_urls[image_index] = url

    def remove_color_image_url(self, index, image_index):
        color = self._color(index)
        self._check_index(color.image_urls, image_index, "image URL")
        del color.image_urls[image_index]

    def stage_color_files(self, index, files):
        self._color(index).staged_files.extend(files)

    def remove_color_staged_file(self, index, file_index):
        color = self._color(index)
        self._check_index(color.staged_files, file_index, "staged file")
        del color.staged_files[file_index]

    def add_image_url(self, url=""):
        self.image_urls.append(url)

    def set_image_url(self, index, url):
        self._check_index(self.image_urls, index, "image URL")
        self.image_urls[index] = url

    def stage_images(self, files):
        self.staged_images.extend(files)

    def remove_image(self, index, staged=False):
        """Remove a saved URL or a staged file; the two lists index separately."""
        target = self.staged_images if staged else self.image_urls
        self._check_index(target, index, "staged file" if staged else "image URL")
        del target[index]

    # ------------------------------------------------------------------
    # Dynamic fields
    # ------------------------------------------------------------------

    def set_dynamic_field(self, key, value):
        key = (key or "").strip()
        if not key:
            raise DraftError("Attribute name is required")
        self.dynamic_fields[key] = value

    def remove_dynamic_field(self, key):
        self.dynamic_fields.pop(key, None)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def validate(self):
        errors = []
        if not self.name.strip():
            errors.append("Product name is required.")
        if not self.sub_category_id:
            errors.append("Subcategory is required.")

        bad = self.pricing.invalid_fields()
        if bad:
            errors.append(
                "All pricing fields are required and must be non-negative numbers "
                f"(check: {', '.join(bad)})."
            )
        if self.pricing_mode == SIZE_BASED:
            for entry in self.size_based_pricing:
                bad = entry.pricing.invalid_fields()
                if bad:
                    errors.append(
                        f"Size {entry.size}: pricing must be non-negative numbers "
                        f"(check: {', '.join(bad)})."
                    )
        if not is_valid_amount(self.gst):
            errors.append("GST must be a non-negative number.")
        if self.stock is None or self.stock < 0:
            errors.append("Stock must be a non-negative whole number.")
        if errors:
            raise ValidationError(errors)

    def submit_colors(self):
        return [c for c in self.colors if c.name.strip()]

    def build_payload(self):
        """Validate and serialize the draft into one multipart submission."""
        self.validate()
        payload = MultipartPayload()
        colors = self.submit_colors()

        payload.add("name", self.name)
        payload.add("subCategoryId", self.sub_category_id)
        if self.sub_sub_category_id:
            payload.add("subSubCategoryId", self.sub_sub_category_id)
        payload.add("description", self.description)
        payload.add("gst", str(_wire_number(self.gst)))
        payload.add("pricing", json.dumps(_wire_json(self.pricing.to_dict())))
        payload.add("stock", str(self.stock))
        payload.add("isActive", _wire_bool(self.is_active))
        payload.add("isAvailable", _wire_bool(self.is_available))
        payload.add("sizes", json.dumps(self.sizes))
        payload.add("colors", json.dumps([c.to_dict() for c in colors]))
        payload.add("dynamicFields", json.dumps(self.dynamic_fields))
        for flag in VISIBILITY_FLAGS:
            payload.add(flag, _wire_bool(self.visibility.get(flag, True)))
        payload.add("pricingMode", self.pricing_mode)
        size_based = (
            [_wire_json(entry.to_dict()) for entry in self.size_based_pricing]
            if self.pricing_mode == SIZE_BASED
            else []
        )
        payload.add("sizeBasedPricing", json.dumps(size_based))

        # Saved URLs and new files share one field name; the backend tells
        # them apart by part type.
        for url in self.image_urls:
            if url.strip():
                payload.add("images", url.strip())
        for staged in self.staged_images:
            payload.add_file("images", staged)

        for idx, color in enumerate(colors):
            for staged in color.staged_files:
                payload.add_file(f"colorImages-{idx}", staged)
        return payload

    # ------------------------------------------------------------------
    # Persistence between requests
    # ------------------------------------------------------------------

    def to_state(self):
        return {
            "product_id": self.product_id,
            "name": self.name,
            "description": self.description,
            "sub_category_id": self.sub_category_id,
            "sub_sub_category_id": self.sub_sub_category_id,
            "gst": self.gst,
            "stock": self.stock,
            "pricing": self.pricing.to_dict(),
            "is_active": self.is_active,
            "is_available": self.is_available,
            "sizes": list(self.sizes),
            "colors": [c.to_state() for c in self.colors],
            "image_urls": list(self.image_urls),
            "staged_images": [f.to_state() for f in self.staged_images],
            "dynamic_fields": self.dynamic_fields,
            "visibility": dict(self.visibility),
            "use_individual_reseller_pricing": self.use_individual_reseller_pricing,
            "pricing_mode": self.pricing_mode,
            "size_based_pricing": [e.to_dict() for e in self.size_based_pricing],
            "subcategories": self.subcategories,
        }

    @classmethod
    def from_state(cls, state):
        pricing = PricingBlock(**state["pricing"])
        return cls(
            product_id=state.get("product_id"),
            name=state.get("name", ""),
            description=state.get("description", ""),
            sub_category_id=state.get("sub_category_id", ""),
            sub_sub_category_id=state.get("sub_sub_category_id", ""),
            gst=state.get("gst", 0.0),
            stock=state.get("stock", 0),
            pricing=pricing,
            is_active=state.get("is_active", True),
            is_available=state.get("is_available", True),
            sizes=list(state.get("sizes", [])),
            colors=[ColorVariant.from_state(c) for c in state.get("colors", [])] or [ColorVariant()],
            image_urls=list(state.get("image_urls", [])),
            staged_images=[StagedFile.from_state(s) for s in state.get("staged_images", [])],
            dynamic_fields=dict(state.get("dynamic_fields", {})),
            visibility=dict(state.get("visibility", {})),
            use_individual_reseller_pricing=state.get("use_individual_reseller_pricing", False),
            pricing_mode=state.get("pricing_mode", COMMON),
            size_based_pricing=[
                SizePricing(size=e["size"], pricing=PricingBlock(**e["pricing"]))
                for e in state.get("size_based_pricing", [])
            ],
            subcategories=list(state.get("subcategories", [])),
        )
