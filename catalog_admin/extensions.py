import logging
import redis as _redis

from catalog_admin.services.draft_store import MemoryDraftStore, RedisDraftStore

logger = logging.getLogger(__name__)

# Initialized lazily in create_app
redis_client: _redis.Redis = None  # type: ignore
draft_store = None


def init_redis(app):
    global redis_client, draft_store
    ttl = app.config["DRAFT_TTL_SECONDS"]
    lock_timeout = app.config["SUBMIT_LOCK_TIMEOUT"]
    redis_url = app.config.get("REDIS_URL", "")
    if not redis_url:
        logger.warning("REDIS_URL not set - drafts kept in process memory (dev mode)")
        redis_client = None
        draft_store = MemoryDraftStore(ttl=ttl)
        return

    try:
        redis_client = _redis.from_url(redis_url, decode_responses=False)
        redis_client.ping()
        draft_store = RedisDraftStore(redis_client, ttl=ttl, lock_timeout=lock_timeout)
    except Exception as e:
        logger.warning("Redis connection failed (%s) - drafts kept in memory", e)
        redis_client = None
        draft_store = MemoryDraftStore(ttl=ttl)


def get_draft_store():
    return draft_store
