import os


def _float_env(name, default=None):
    raw = os.environ.get(name, "")
    return float(raw) if raw.strip() else default


class Config:
    """Base configuration. All values from env vars."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    # Backend REST API
    API_BASE_URL = os.environ.get(
        "API_BASE_URL",
        os.environ.get("NEXT_PUBLIC_API_URL", "http://localhost:5000/api"),
    ).rstrip("/")
    API_TIMEOUT = _float_env("API_TIMEOUT")  # None -> httpx default
    API_TRANSPORT = None  # httpx transport override (tests)

    # Draft store
    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    DRAFT_TTL_SECONDS = int(os.environ.get("DRAFT_TTL_SECONDS", "21600"))
    SUBMIT_LOCK_TIMEOUT = int(os.environ.get("SUBMIT_LOCK_TIMEOUT", "60"))

    # Product form
    SUBMIT_REDIRECT_DELAY = _float_env("SUBMIT_REDIRECT_DELAY", 1.5)
    PRODUCTS_PER_PAGE = int(os.environ.get("PRODUCTS_PER_PAGE", "10"))
    MAX_IMAGE_BYTES = int(os.environ.get("MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))
    MAX_CONTENT_LENGTH = 64 * 1024 * 1024


class DevelopmentConfig(Config):
    DEBUG = True
    REDIS_URL = os.environ.get("REDIS_URL", "")  # optional in dev


class ProductionConfig(Config):
    DEBUG = False
    PREFERRED_URL_SCHEME = "https"
    SESSION_COOKIE_SECURE = True

    @classmethod
    def init_app(cls, app):
        import logging
        import sys

        assert app.config["SECRET_KEY"] != "dev-secret-change-me", (
            "SECRET_KEY must be set in production"
        )

        # Stream logs to stdout for the platform log collector
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.INFO)
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info(
            "Catalog admin starting in production mode (backend %s)",
            app.config["API_BASE_URL"],
        )


class TestingConfig(Config):
    TESTING = True
    API_BASE_URL = "http://backend.test/api"
    REDIS_URL = ""
    SUBMIT_REDIRECT_DELAY = 0


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
