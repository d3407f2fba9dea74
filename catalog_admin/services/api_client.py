"""HTTP client for the catalog REST backend."""
import logging
from dataclasses import dataclass

import httpx
from flask import current_app

logger = logging.getLogger(__name__)

LIST_KEYS = ("data", "items")


class ApiError(RuntimeError):
    """Backend answered non-2xx, or the request never completed."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        self.status = status


def normalize_list(payload, *keys):
    """Extract a list from the response shapes the backend is known to use.

    Accepts a bare list or an object wrapping the list under ``data``,
    ``items`` or one of ``keys``. Anything else degrades to an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in LIST_KEYS + keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


@dataclass
class Pagination:
    total: int = 0
    limit: int = 10
    page: int = 1
    pages: int = 1

    @classmethod
    def from_response(cls, payload, default_limit=10):
        raw = payload.get("pagination") if isinstance(payload, dict) else None
        raw = raw if isinstance(raw, dict) else {}

        def _int(key, default):
            try:
                return int(raw.get(key) or default)
            except (TypeError, ValueError):
                return default

        return cls(
            total=_int("total", 0),
            limit=_int("limit", default_limit),
            page=_int("page", 1),
            pages=max(_int("pages", 1), 1),
        )

    @property
    def has_prev(self):
        return self.page > 1

    @property
    def has_next(self):
        return self.page < self.pages


def _error_message(resp):
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if message:
            return str(message)
    return f"API error: {resp.status_code}"


class ApiClient:
    """Thin wrapper over ``httpx.Client`` that attaches the bearer token."""

    def __init__(self, base_url, token=None, timeout=None, transport=None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        kwargs = {"base_url": self.base_url}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.Client(**kwargs)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _headers(self):
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method, endpoint, **kwargs):
        """Send a request and return the decoded JSON body (or None)."""
        headers = self._headers()
        headers.update(kwargs.pop("headers", {}) or {})
        try:
            resp = self._client.request(method, endpoint, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.exception("Backend request %s %s failed", method, endpoint)
            raise ApiError(str(e) or "Network error") from e

        if resp.is_error:
            message = _error_message(resp)
            logger.warning(
                "Backend %s %s returned %s: %s", method, endpoint, resp.status_code, message
            )
            raise ApiError(message, status=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    def get(self, endpoint, params=None):
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint, json=None):
        return self.request("POST", endpoint, json=json)

    def put(self, endpoint, json=None):
        return self.request("PUT", endpoint, json=json)

    def patch(self, endpoint, json=None):
        return self.request("PATCH", endpoint, json=json)

    def delete(self, endpoint):
        return self.request("DELETE", endpoint)

    def send_form(self, method, endpoint, payload):
        """Send a ``MultipartPayload`` as multipart/form-data; httpx builds the boundary."""
        return self.request(method, endpoint, files=payload.as_httpx())

    def login(self, email, password):
        return self.post("/auth/login", json={"email": email, "password": password})


def client_from_config(token=None, config=None):
    config = config if config is not None else current_app.config
    return ApiClient(
        config["API_BASE_URL"],
        token=token,
        timeout=config.get("API_TIMEOUT"),
        transport=config.get("API_TRANSPORT"),
    )


def normalize_record(payload, *keys):
    """A single record, either bare or wrapped under ``data`` or one of ``keys``."""
    if not isinstance(payload, dict):
        return {}
    for key in ("data",) + keys:
        value = payload.get(key)
        if isinstance(value, dict):
            return value
    return payload
