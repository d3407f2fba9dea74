"""Tests for the backend HTTP client."""
import httpx
import pytest

from catalog_admin.models import MultipartPayload, ProductDraft, StagedFile
from catalog_admin.services.api_client import ApiClient, ApiError, Pagination, normalize_list

from conftest import multipart_form

BASE = "http://backend.test/api"


def make_client(handler, token=None):
    return ApiClient(BASE, token=token, transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "payload, expected",
    [
        ([1, 2], [1, 2]),
        ({"data": [1]}, [1]),
        ({"items": [2]}, [2]),
        ({"policies": [3]}, [3]),
        ({"data": "nope"}, []),
        (None, []),
        ("text", []),
    ],
)
def test_normalize_list(payload, expected):
    assert normalize_list(payload, "policies") == expected


def test_bearer_token_and_json_body():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["type"] = request.headers.get("Content-Type")
        seen["body"] = request.content
        return httpx.Response(201, json={"_id": "x"})

    with make_client(handler, token="tok") as api:
        assert api.post("/policies", json={"title": "T"}) == {"_id": "x"}
    assert seen["auth"] == "Bearer tok"
    assert seen["type"] == "application/json"
    assert b'"title"' in seen["body"]


def test_no_token_no_header():
    def handler(request):
        assert "Authorization" not in request.headers
        return httpx.Response(204)

    with make_client(handler) as api:
        assert api.delete("/policies/1") is None


@pytest.mark.parametrize(
    "body, message",
    [
        ({"error": "Category name already exists"}, "Category name already exists"),
        ({"message": "Invalid role"}, "Invalid role"),
        ({"detail": "ignored"}, "API error: 422"),
    ],
)
def test_error_message_taken_from_body(body, message):
    def handler(request):
        return httpx.Response(422, json=body)

    with make_client(handler) as api:
        with pytest.raises(ApiError) as exc:
            api.get("/categories")
    assert exc.value.message == message
    assert exc.value.status == 422


def test_non_json_error_body():
    def handler(request):
        return httpx.Response(502, text="<html>bad gateway</html>")

    with make_client(handler) as api:
        with pytest.raises(ApiError, match="API error: 502"):
            api.get("/categories")


def test_transport_failure_becomes_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with make_client(handler) as api:
        with pytest.raises(ApiError) as exc:
            api.get("/categories")
    assert exc.value.status is None
    assert "connection refused" in exc.value.message


def test_send_form_without_files_is_still_multipart():
    seen = {}

    def handler(request):
        seen["form"], seen["files"] = multipart_form(request)
        return httpx.Response(200, json={})

    payload = MultipartPayload()
    payload.add("name", "Shirt")
    payload.add("images", "http://cdn/a.jpg")
    payload.add("images", "http://cdn/b.jpg")
    with make_client(handler) as api:
        api.send_form("POST", "/products", payload)

    assert seen["form"]["name"] == ["Shirt"]
    assert seen["form"]["images"] == ["http://cdn/a.jpg", "http://cdn/b.jpg"]
    assert seen["files"] == {}


def test_price_only_edit_goes_out_as_multipart():
    seen = {}

    def handler(request):
        seen["type"] = request.headers["Content-Type"]
        return httpx.Response(200, json={})

    draft = ProductDraft(name="Shirt", sub_category_id="s1", image_urls=["http://cdn/a.jpg"])
    with make_client(handler) as api:
        api.send_form("PUT", "/products/p1", draft.build_payload())

    assert seen["type"].startswith("multipart/form-data; boundary=")


def test_send_form_with_files_is_multipart():
    seen = {}

    def handler(request):
        seen["type"] = request.headers["Content-Type"]
        seen["body"] = request.content
        return httpx.Response(200, json={})

    payload = MultipartPayload()
    payload.add("name", "Shirt")
    payload.add_file("colorImages-0", StagedFile("red.jpg", "image/jpeg", b"JPEGDATA"))
    with make_client(handler) as api:
        api.send_form("PUT", "/products/p1", payload)

    assert seen["type"].startswith("multipart/form-data; boundary=")
    assert b'name="colorImages-0"; filename="red.jpg"' in seen["body"]
    assert b"JPEGDATA" in seen["body"]


def test_pagination_defaults():
    assert Pagination.from_response([], 10) == Pagination(total=0, limit=10, page=1, pages=1)
    p = Pagination.from_response({"pagination": {"total": 31, "limit": 10, "page": 2, "pages": 4}})
    assert p.has_prev and p.has_next
    p = Pagination.from_response({"pagination": {"page": "x", "pages": 0}}, 25)
    assert (p.page, p.pages, p.limit) == (1, 1, 25)
