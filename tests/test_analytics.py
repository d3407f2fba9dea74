"""Tests for the category hierarchy join."""
import httpx

from catalog_admin.services import analytics
from catalog_admin.services.api_client import ApiClient

CATEGORIES = [{"_id": "c1", "name": "Apparel", "isActive": True},
              {"_id": "c2", "name": "Bags", "isActive": False}]
SUBCATEGORIES = [
    {"_id": "s1", "name": "Shirts", "category": "c1", "isActive": True,
     "subCategories": [{"_id": "ss1", "name": "Linen"}, {"name": "Unsaved"}]},
    {"_id": "s2", "name": "Totes", "category": {"_id": "c2"}, "isActive": True},
    {"_id": "s3", "name": "Scarves", "category": "Apparel", "isActive": False},
]
PRODUCTS = [
    {"_id": "p1", "name": "Linen shirt", "categoryId": "c1", "subCategoryId": "s1",
     "subSubCategoryId": "ss1", "stock": 5, "isActive": True},
    {"_id": "p2", "name": "Plain shirt", "subCategoryId": {"_id": "s1"}, "stock": 0, "isActive": True},
    {"_id": "p3", "name": "Canvas tote", "category": {"_id": "c2"}, "subCategory": "s2",
     "stock": 2, "isActive": False},
]


def _by_id(nodes, node_id):
    return next(n for n in nodes if n.id == node_id)


def test_tree_structure_and_counts():
    tree = analytics.build_tree(CATEGORIES, SUBCATEGORIES, PRODUCTS)
    apparel = _by_id(tree, "c1")
    assert apparel.count == 2
    assert [c.id for c in apparel.children] == ["s1", "s3"]

    shirts = _by_id(apparel.children, "s1")
    assert shirts.count == 2
    linen, unsaved, plain = shirts.children
    assert (linen.type, linen.count) == ("subsubcategory", 1)
    assert linen.children[0].count == 5
    assert unsaved.id == "s1-1"
    assert unsaved.count == 0
    assert (plain.type, plain.id, plain.count) == ("product", "p2", 0)

    bags = _by_id(tree, "c2")
    assert not bags.is_active
    assert bags.count == 1
    assert bags.children[0].children[0].name == "Canvas tote"


def test_product_in_another_category_is_not_counted():
    products = [{"_id": "px", "categoryId": "c2", "subCategoryId": "s1", "stock": 1}]
    tree = analytics.build_tree(CATEGORIES, SUBCATEGORIES, products)
    assert _by_id(tree, "c1").count == 0
    assert _by_id(_by_id(tree, "c1").children, "s1").children[-1].type == "subsubcategory"


def test_placeholder_categories_when_none_returned():
    tree = analytics.build_tree([], SUBCATEGORIES[:2], [])
    assert [(n.id, n.name) for n in tree] == [("c1", "Category c1"), ("c2", "Category c2")]


def test_tree_serializes():
    node = analytics.build_tree(CATEGORIES, SUBCATEGORIES, PRODUCTS)[0].to_dict()
    assert node["type"] == "category"
    assert node["children"][0]["children"][0]["id"] == "ss1"


def test_collection_stats():
    stats = analytics.collection_stats(CATEGORIES, SUBCATEGORIES, PRODUCTS)
    assert stats == {
        "totalCategories": 2,
        "activeCategories": 1,
        "totalSubCategories": 3,
        "activeSubCategories": 2,
        "totalProducts": 3,
        "activeProducts": 2,
        "totalStock": 7,
        "outOfStock": 1,
    }


def test_fetch_collections_degrades_and_falls_back():
    def handler(request):
        path = request.url.path
        if path == "/api/categories":
            return httpx.Response(500, json={"error": "boom"})
        if path == "/api/subcategories":
            return httpx.Response(200, json={"subcategories": SUBCATEGORIES})
        if path == "/api/products":
            return httpx.Response(503)
        if path == "/api/products/all/analytics":
            return httpx.Response(200, json={"data": PRODUCTS})
        return httpx.Response(404)

    api = ApiClient("http://backend.test/api", transport=httpx.MockTransport(handler))
    categories, subcategories, products = analytics.fetch_collections(api)
    assert categories == []
    assert len(subcategories) == 3
    assert [p["_id"] for p in products] == ["p1", "p2", "p3"]
