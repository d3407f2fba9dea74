"""Tests for the session store, draft stores and image staging."""
import io
import json
from unittest.mock import MagicMock

import pytest
from werkzeug.datastructures import FileStorage

from catalog_admin.models import ProductDraft
from catalog_admin.services.draft_store import (
    DraftNotFound,
    MemoryDraftStore,
    RedisDraftStore,
    SubmissionInProgress,
)
from catalog_admin.services.image_service import (
    ImageRejected,
    stage_upload,
    stage_uploads,
    validate_image,
)
from catalog_admin.services.session_store import SessionStore

from conftest import png_bytes


def test_session_store_roundtrip():
    backing = {}
    store = SessionStore(backing)
    assert not store.is_authenticated()

    store.set("tok", {"email": "a@b.c", "role": "admin", "_id": "u1"})
    assert store.get_token() == "tok"
    assert store.is_admin()
    assert store.owner() == "u1"

    store.clear()
    assert backing == {}
    assert store.get_user() is None


def test_session_store_malformed_user():
    store = SessionStore({"token": "tok", "user": "{not json"})
    assert store.get_user() is None
    assert store.is_authenticated()
    assert not store.is_admin()


def test_session_store_non_admin():
    store = SessionStore({"token": "tok", "user": json.dumps({"role": "reseller"})})
    assert not store.is_admin()


def test_memory_store_owner_and_discard():
    store = MemoryDraftStore(ttl=60)
    draft = ProductDraft(name="Shirt")
    draft_id = store.create(draft, owner="u1")

    assert store.load(draft_id, "u1").name == "Shirt"
    with pytest.raises(DraftNotFound):
        store.load(draft_id, "someone-else")

    store.discard(draft_id)
    with pytest.raises(DraftNotFound):
        store.load(draft_id, "u1")


def test_memory_store_discard_releases_submit_lock():
    store = MemoryDraftStore(ttl=60)
    draft_id = store.create(ProductDraft(), owner="u1")
    with store.submit_lock(draft_id):
        pass
    store.discard(draft_id)
    assert draft_id not in store._locks


def test_memory_store_expiry():
    store = MemoryDraftStore(ttl=0)
    draft_id = store.create(ProductDraft(), owner="u1")
    with pytest.raises(DraftNotFound):
        store.load(draft_id, "u1")


def test_memory_store_submit_lock():
    store = MemoryDraftStore(ttl=60)
    with store.submit_lock("d1"):
        with pytest.raises(SubmissionInProgress, match="A submission is already in progress"):
            with store.submit_lock("d1"):
                pass
    with store.submit_lock("d1"):
        pass


def test_redis_store_uses_setex_and_lock():
    client = MagicMock()
    store = RedisDraftStore(client, ttl=120, lock_timeout=30)
    draft_id = store.create(ProductDraft(name="Shirt"), owner="u1")

    key, ttl, raw = client.setex.call_args.args
    assert key == f"draft:{draft_id}"
    assert ttl == 120
    assert json.loads(raw)["owner"] == "u1"

    client.get.return_value = raw.encode()
    assert store.load(draft_id, "u1").name == "Shirt"

    client.lock.return_value.acquire.return_value = False
    with pytest.raises(SubmissionInProgress):
        with store.submit_lock(draft_id):
            pass
    client.lock.assert_called_with(f"draft_submit:{draft_id}", timeout=30)


def test_redis_store_missing_draft():
    client = MagicMock()
    client.get.return_value = None
    with pytest.raises(DraftNotFound):
        RedisDraftStore(client, ttl=60).load("nope", "u1")


def test_validate_image_reencodes_to_jpeg():
    data = validate_image(png_bytes())
    assert data[:2] == b"\xff\xd8"


def test_validate_image_rejects_garbage_and_oversize():
    with pytest.raises(ImageRejected, match="Invalid image file"):
        validate_image(b"definitely not an image")
    with pytest.raises(ImageRejected, match="too large"):
        validate_image(png_bytes(), max_size=10)
    with pytest.raises(ImageRejected):
        validate_image(b"")


def _upload(data, filename):
    return FileStorage(stream=io.BytesIO(data), filename=filename, content_type="image/png")


def test_stage_upload_renames_to_jpg():
    staged = stage_upload(_upload(png_bytes(), "photos/front.png"))
    assert staged.filename == "front.jpg"
    assert staged.content_type == "image/jpeg"


def test_stage_uploads_collects_errors():
    staged, errors = stage_uploads(
        [_upload(png_bytes(), "ok.png"), _upload(b"xx", "bad.png"), _upload(b"", "")]
    )
    assert [s.filename for s in staged] == ["ok.jpg"]
    assert errors == ["bad.png: Invalid image file"]
