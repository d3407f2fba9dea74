from catalog_admin.models.pricing import PricingBlock, SizePricing  # noqa: F401
from catalog_admin.models.variant import ColorVariant, StagedFile  # noqa: F401
from catalog_admin.models.product_draft import (  # noqa: F401
    DraftError,
    MultipartPayload,
    ProductDraft,
    ValidationError,
)
