"""Server-side storage for open product form drafts.

A draft lives between requests while the admin edits the form. Redis is used
when configured; otherwise drafts stay in process memory, which is fine for a
single development server.
"""
import json
import logging
import threading
import time
import uuid
from contextlib import contextmanager

from redis.exceptions import LockError

from catalog_admin.models.product_draft import ProductDraft

logger = logging.getLogger(__name__)

KEY_PREFIX = "draft:"
LOCK_PREFIX = "draft_submit:"


class DraftNotFound(LookupError):
    """Unknown, expired, or someone else's draft."""


class SubmissionInProgress(RuntimeError):
    """Another submission of the same draft has not finished yet."""

    def __init__(self):
        super().__init__("A submission is already in progress")


def _encode(draft, owner):
    return json.dumps({"owner": owner, "draft": draft.to_state()})


def _decode(raw, draft_id, owner):
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    doc = json.loads(raw)
    if doc.get("owner") != owner:
        logger.warning("Draft %s requested by a different session", draft_id)
        raise DraftNotFound(draft_id)
    return ProductDraft.from_state(doc["draft"])


class RedisDraftStore:
    def __init__(self, client, ttl, lock_timeout=60):
        self.client = client
        self.ttl = ttl
        self.lock_timeout = lock_timeout

    def create(self, draft, owner):
        draft_id = uuid.uuid4().hex
        self.save(draft_id, draft, owner)
        return draft_id

    def save(self, draft_id, draft, owner):
        self.client.setex(KEY_PREFIX + draft_id, self.ttl, _encode(draft, owner))

    def load(self, draft_id, owner):
        raw = self.client.get(KEY_PREFIX + draft_id)
        if raw is None:
            raise DraftNotFound(draft_id)
        return _decode(raw, draft_id, owner)

    def discard(self, draft_id):
        self.client.delete(KEY_PREFIX + draft_id)

    @contextmanager
    def submit_lock(self, draft_id):
        lock = self.client.lock(LOCK_PREFIX + draft_id, timeout=self.lock_timeout)
        if not lock.acquire(blocking=False):
            logger.info("Submit lock held for draft %s", draft_id)
            raise SubmissionInProgress()
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                logger.warning("Submit lock for draft %s expired before release", draft_id)

    def ping(self):
        return bool(self.client.ping())


class MemoryDraftStore:
    """In-process stand-in used when Redis is not configured."""

    def __init__(self, ttl):
        self.ttl = ttl
        self._docs = {}
        self._locks = {}
        self._guard = threading.Lock()

    def _purge_expired(self):
        now = time.monotonic()
        for draft_id in [k for k, (expires, _) in self._docs.items() if expires <= now]:
            self._docs.pop(draft_id, None)
            self._locks.pop(draft_id, None)

    def create(self, draft, owner):
        draft_id = uuid.uuid4().hex
        self.save(draft_id, draft, owner)
        return draft_id

    def save(self, draft_id, draft, owner):
        with self._guard:
            self._purge_expired()
            self._docs[draft_id] = (time.monotonic() + self.ttl, _encode(draft, owner))

    def load(self, draft_id, owner):
        with self._guard:
            self._purge_expired()
            entry = self._docs.get(draft_id)
        if entry is None:
            raise DraftNotFound(draft_id)
        return _decode(entry[1], draft_id, owner)

    def discard(self, draft_id):
        with self._guard:
            self._docs.pop(draft_id, None)
            self._locks.pop(draft_id, None)

    @contextmanager
    def submit_lock(self, draft_id):
        with self._guard:
            lock = self._locks.setdefault(draft_id, threading.Lock())
        if not lock.acquire(blocking=False):
            logger.info("Submit lock held for draft %s", draft_id)
            raise SubmissionInProgress()
        try:
            yield
        finally:
            lock.release()

    def ping(self):
        return True
