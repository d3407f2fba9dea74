"""Dependent dropdown options derived from already-loaded collections."""


def ref_id(value):
    """Id of a reference that may be a bare id or an embedded/populated object."""
    if value is None:
        return ""
    if isinstance(value, dict):
        return str(value.get("_id") or value.get("id") or "")
    return str(value)


def find_subcategory(subcategories, subcategory_id):
    if not subcategory_id:
        return None
    for subcategory in subcategories or []:
        if isinstance(subcategory, dict) and ref_id(subcategory.get("_id")) == subcategory_id:
            return subcategory
    return None


def resolve_sub_subcategories(subcategories, subcategory_id):
    """Nested sub-subcategories of the selected subcategory.

    Resolved from the subcategory list fetched once with the form. An unknown
    or empty id gives an empty list.
    """
    subcategory = find_subcategory(subcategories, subcategory_id)
    if subcategory is None:
        return []
    nested = subcategory.get("subCategories") or []
    return [s for s in nested if isinstance(s, dict)]


def subcategories_for_category(subcategories, category):
    """Subcategories whose parent category matches ``category`` (id or key)."""
    if not category:
        return []
    return [
        s for s in subcategories or []
        if isinstance(s, dict) and ref_id(s.get("category") or s.get("categoryId")) == category
    ]
