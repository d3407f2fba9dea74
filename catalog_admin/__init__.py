import os
from flask import Flask, flash, redirect, render_template, url_for
from dotenv import load_dotenv

load_dotenv()


def create_app(config_name=None):
    flask_app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV")
        if not config_name:
            # Managed platforms get production settings unless told otherwise
            if os.environ.get("RAILWAY_ENVIRONMENT") or os.environ.get("PORT"):
                config_name = "production"
            else:
                config_name = "development"

    from catalog_admin.config import config_map

    config_cls = config_map.get(config_name, config_map["development"])
    flask_app.config.from_object(config_cls)

    if hasattr(config_cls, "init_app"):
        config_cls.init_app(flask_app)

    # Initialize extensions
    from catalog_admin.extensions import init_redis
    from catalog_admin.services import session_store

    session_store.init_app(flask_app)
    init_redis(flask_app)

    # Register blueprints
    from catalog_admin.blueprints.auth import auth_bp
    from catalog_admin.blueprints.catalog import catalog_bp
    from catalog_admin.blueprints.content import content_bp
    from catalog_admin.blueprints.dashboard import dashboard_bp
    from catalog_admin.blueprints.products import products_bp

    flask_app.register_blueprint(auth_bp)
    flask_app.register_blueprint(dashboard_bp, url_prefix="/dashboard")
    flask_app.register_blueprint(catalog_bp, url_prefix="/dashboard")
    flask_app.register_blueprint(products_bp, url_prefix="/dashboard/products")
    flask_app.register_blueprint(content_bp, url_prefix="/dashboard")

    register_error_handlers(flask_app)

    # Register CLI commands
    from catalog_admin.cli import register_cli

    register_cli(flask_app)

    # Serve static files efficiently in production with WhiteNoise
    if not flask_app.debug:
        from whitenoise import WhiteNoise

        flask_app.wsgi_app = WhiteNoise(
            flask_app.wsgi_app,
            root=os.path.join(flask_app.static_folder),
            prefix="static/",
            max_age=31536000,
        )

    # Health check
    @flask_app.route("/health")
    def health():
        from catalog_admin.extensions import get_draft_store, redis_client
        from catalog_admin.services.api_client import client_from_config

        checks = {"status": "ok"}
        try:
            with client_from_config() as api:
                api.get("/categories")
            checks["backend"] = "ok"
        except Exception:
            flask_app.logger.exception("Health check backend probe failed")
            checks["backend"] = "error"
            checks["status"] = "degraded"
        try:
            get_draft_store().ping()
            checks["drafts"] = "redis" if redis_client else "memory"
        except Exception:
            flask_app.logger.exception("Health check draft store probe failed")
            checks["drafts"] = "error"
            checks["status"] = "degraded"
        status_code = 200 if checks["status"] == "ok" else 503
        return checks, status_code

    return flask_app


def register_error_handlers(flask_app):
    from catalog_admin.services.api_client import ApiError
    from catalog_admin.services.draft_store import DraftNotFound
    from catalog_admin.services.session_store import get_session_store

    @flask_app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status == 401:
            flask_app.logger.info("Backend rejected the session token; signing out")
            get_session_store().clear()
            flash("Your session has expired. Please sign in again.", "error")
            return redirect(url_for("auth.login"))
        flask_app.logger.warning("Unhandled backend error: %s", error.message)
        return render_template("error.html", title="Backend error", message=error.message), 502

    @flask_app.errorhandler(DraftNotFound)
    def handle_missing_draft(error):
        return render_template(
            "error.html",
            title="Form expired",
            message="This product form is no longer available. Please open it again.",
            back=url_for("products.index"),
        ), 404
