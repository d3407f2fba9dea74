"""Auth token and cached user record kept in the signed session cookie."""
import json
import logging

from flask import g, session

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionStore:
    """Narrow get/set/clear view over a persistent key-value mapping."""

    def __init__(self, backing):
        self._backing = backing

    def get_token(self):
        return self._backing.get(TOKEN_KEY) or None

    def get_user(self):
        raw = self._backing.get(USER_KEY)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding malformed cached user record")
            return None
        return user if isinstance(user, dict) else None

    def set(self, token, user):
        self._backing[TOKEN_KEY] = token
        self._backing[USER_KEY] = json.dumps(user or {})

    def clear(self):
        self._backing.pop(TOKEN_KEY, None)
        self._backing.pop(USER_KEY, None)

    def is_authenticated(self):
        return self.get_token() is not None

    def is_admin(self):
        user = self.get_user()
        return bool(user) and user.get("role") == "admin"

    def owner(self):
        """Stable key identifying whoever holds the session (for draft ownership)."""
        user = self.get_user() or {}
        return str(user.get("id") or user.get("_id") or user.get("email") or "")


def init_app(app):
    @app.before_request
    def _attach_session_store():
        g.session_store = SessionStore(session)

    @app.context_processor
    def _inject_current_user():
        store = g.get("session_store")
        return {"current_user": store.get_user() if store else None}


def get_session_store():
    store = g.get("session_store")
    if store is None:
        store = g.session_store = SessionStore(session)
    return store
