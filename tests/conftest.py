import io
import json

import httpx
import pytest
from PIL import Image as PILImage
from werkzeug.wrappers import Request

from catalog_admin import create_app

API_PREFIX = "/api"


class FakeBackend:
    """Canned backend responses keyed by (method, path below /api)."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, json=None, status=200, handler=None):
        if handler is None:
            def handler(request):
                return httpx.Response(status, json=json)
        self.routes[(method, path)] = handler

    def __call__(self, request):
        request.read()
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        return handler(request)

    def sent(self, method, path):
        return [
            r for r in self.requests
            if r.method == method and r.url.path == API_PREFIX + path
        ]

    def last(self, method, path):
        found = self.sent(method, path)
        return found[-1] if found else None


def json_body(request):
    return json.loads(request.content)


def multipart_form(request):
    """(form fields, uploaded files) of a multipart request sent to the backend."""
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    parsed = Request.from_values(
        method=request.method,
        input_stream=io.BytesIO(request.content),
        content_length=len(request.content),
        content_type=request.headers["Content-Type"],
    )
    return parsed.form.to_dict(flat=False), parsed.files.to_dict(flat=False)


def png_bytes(size=(8, 8), color=(200, 30, 30)):
    buffer = io.BytesIO()
    PILImage.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app("testing")
    with app.app_context():
        yield app


@pytest.fixture
def backend(app):
    fake = FakeBackend()
    app.config["API_TRANSPORT"] = httpx.MockTransport(fake)
    yield fake
    app.config["API_TRANSPORT"] = None


@pytest.fixture
def client(app):
    return app.test_client()


ADMIN = {"id": "u-admin", "email": "admin@example.com", "name": "Admin", "role": "admin"}


@pytest.fixture
def admin_client(client, backend):
    """Test client holding an admin session."""
    with client.session_transaction() as sess:
        sess["token"] = "test-token"
        sess["user"] = json.dumps(ADMIN)
    return client
