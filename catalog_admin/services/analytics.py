"""Category -> subcategory -> sub-subcategory -> product tree for the analytics page.

Best-effort join over three independently fetched collections. The backend is
not consistent about how references come back (bare id, ``{"_id": ...}``
object, or a populated document under a different key), so every match tries
the known representations in order. Ambiguous matches are rendered, not
rejected.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from catalog_admin.services.api_client import ApiError, normalize_list
from catalog_admin.services.cascade import ref_id

logger = logging.getLogger(__name__)


@dataclass
class TreeNode:
    id: str
    name: str
    type: str  # category | subcategory | subsubcategory | product
    is_active: bool = True
    count: int = 0
    children: list = field(default_factory=list)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "isActive": self.is_active,
            "count": self.count,
            "children": [c.to_dict() for c in self.children],
        }


def _matches(value, target):
    return bool(target) and value is not None and ref_id(value) == target


def _has_ref(value):
    return bool(ref_id(value))


def subcategory_in_category(subcategory, category):
    cat_id = ref_id(category.get("_id"))
    return (
        _matches(subcategory.get("category"), cat_id)
        or _matches(subcategory.get("categoryId"), cat_id)
        or (bool(category.get("name")) and subcategory.get("category") == category.get("name"))
    )


def product_in_category(product, cat_id):
    if _matches(product.get("categoryId"), cat_id) or _matches(product.get("category"), cat_id):
        return True
    return False


def _product_category_implied(product):
    # Newer products only carry a subcategory; the category follows from it
    return not (_has_ref(product.get("categoryId")) or _has_ref(product.get("category")))


def product_in_subcategory(product, sub_id):
    return _matches(product.get("subCategoryId"), sub_id) or _matches(
        product.get("subCategory"), sub_id
    )


def product_in_sub_subcategory(product, sub_sub_id):
    return _matches(product.get("subSubCategoryId"), sub_sub_id) or _matches(
        product.get("subSubCategory"), sub_sub_id
    )


def _product_node(product):
    return TreeNode(
        id=ref_id(product.get("_id")),
        name=product.get("name") or "",
        type="product",
        is_active=bool(product.get("isActive", True)),
        count=int(product.get("stock") or 0),
    )


def placeholder_categories(subcategories):
    """Synthesize category records from the category ids seen on subcategories."""
    seen = []
    for subcategory in subcategories:
        cat_id = ref_id(subcategory.get("category") or subcategory.get("categoryId"))
        if cat_id and cat_id not in seen:
            seen.append(cat_id)
    return [{"_id": cat_id, "name": f"Category {cat_id}", "isActive": True} for cat_id in seen]


def build_tree(categories, subcategories, products):
    categories = [c for c in categories or [] if isinstance(c, dict)]
    subcategories = [s for s in subcategories or [] if isinstance(s, dict)]
    products = [p for p in products or [] if isinstance(p, dict)]

    if not categories and subcategories:
        categories = placeholder_categories(subcategories)
        logger.info("No categories returned; using %d placeholders", len(categories))

    tree = []
    for category in categories:
        cat_id = ref_id(category.get("_id"))

        def in_category(product):
            return product_in_category(product, cat_id) or _product_category_implied(product)

        children = []
        for subcategory in (s for s in subcategories if subcategory_in_category(s, category)):
            sub_id = ref_id(subcategory.get("_id"))
            in_sub = [p for p in products if in_category(p) and product_in_subcategory(p, sub_id)]

            sub_sub_nodes = []
            for index, sub_sub in enumerate(subcategory.get("subCategories") or []):
                if not isinstance(sub_sub, dict):
                    continue
                sub_sub_id = ref_id(sub_sub.get("_id"))
                matched = [
                    _product_node(p) for p in in_sub if product_in_sub_subcategory(p, sub_sub_id)
                ]
                sub_sub_nodes.append(
                    TreeNode(
                        id=sub_sub_id or f"{sub_id}-{index}",
                        name=sub_sub.get("name") or "",
                        type="subsubcategory",
                        is_active=bool(sub_sub.get("isActive", True)),
                        count=len(matched),
                        children=matched,
                    )
                )

            direct = [
                _product_node(p)
                for p in in_sub
                if not _has_ref(p.get("subSubCategoryId")) and not _has_ref(p.get("subSubCategory"))
            ]
            nested_total = sum(len(n.children) for n in sub_sub_nodes)
            children.append(
                TreeNode(
                    id=sub_id,
                    name=subcategory.get("name") or "",
                    type="subcategory",
                    is_active=bool(subcategory.get("isActive", True)),
                    count=nested_total + len(direct),
                    children=sub_sub_nodes + direct,
                )
            )

        category_products = [p for p in products if product_in_category(p, cat_id)]
        implied = sum(
            1 for p in products
            if _product_category_implied(p)
            and any(product_in_subcategory(p, child.id) for child in children)
        )
        tree.append(
            TreeNode(
                id=cat_id,
                name=category.get("name") or "",
                type="category",
                is_active=bool(category.get("isActive", True)),
                count=len(category_products) + implied,
                children=children,
            )
        )
    logger.debug(
        "Built analytics tree: %d categories, %d subcategories, %d products",
        len(categories), len(subcategories), len(products),
    )
    return tree


def collection_stats(categories, subcategories, products):
    def active(items):
        return sum(1 for item in items if item.get("isActive"))

    return {
        "totalCategories": len(categories),
        "activeCategories": active(categories),
        "totalSubCategories": len(subcategories),
        "activeSubCategories": active(subcategories),
        "totalProducts": len(products),
        "activeProducts": active(products),
        "totalStock": sum(int(p.get("stock") or 0) for p in products),
        "outOfStock": sum(1 for p in products if int(p.get("stock") or 0) == 0),
    }


def _fetch_list(api, endpoint, *keys):
    try:
        return normalize_list(api.get(endpoint), *keys)
    except ApiError as e:
        logger.warning("Analytics fetch %s failed: %s", endpoint, e)
        return []


def _fetch_products(api):
    try:
        return normalize_list(api.get("/products"), "products")
    except ApiError as e:
        logger.warning("Analytics fetch /products failed (%s); trying analytics endpoint", e)
    return _fetch_list(api, "/products/all/analytics", "products")


def fetch_collections(api):
    """Fetch categories, subcategories and products concurrently."""
    with ThreadPoolExecutor(max_workers=3) as pool:
        categories = pool.submit(_fetch_list, api, "/categories", "categories")
        subcategories = pool.submit(_fetch_list, api, "/subcategories", "subcategories")
        products = pool.submit(_fetch_products, api)
        return categories.result(), subcategories.result(), products.result()
