"""Entry page: admin sign-in and sign-out."""
import logging

from flask import flash, redirect, render_template, request, url_for

from catalog_admin.blueprints import api_client
from catalog_admin.blueprints.auth import auth_bp
from catalog_admin.services.api_client import ApiError
from catalog_admin.services.session_store import get_session_store

logger = logging.getLogger(__name__)


@auth_bp.route("/", methods=["GET", "POST"])
def login():
    store = get_session_store()
    if request.method == "GET":
        if store.is_authenticated() and store.is_admin():
            return redirect(url_for("dashboard.index"))
        return render_template("auth/login.html", email="")

    email = request.form.get("email", "").strip()
    password = request.form.get("password", "")
    if not email or not password:
        flash("Email and password are required.", "error")
        return render_template("auth/login.html", email=email), 400

    try:
        with api_client() as api:
            data = api.login(email, password) or {}
    except ApiError as e:
        flash(e.message, "error")
        return render_template("auth/login.html", email=email), 401

    user = data.get("user") or {}
    if user.get("role") != "admin":
        logger.info("Rejected non-admin sign-in for %s", email)
        flash("Access denied. Admin privileges required.", "error")
        return render_template("auth/login.html", email=email), 403

    store.set(data.get("token"), user)
    return redirect(url_for("dashboard.index"))


@auth_bp.route("/logout", methods=["POST"])
def logout():
    get_session_store().clear()
    flash("Signed out.", "success")
    return redirect(url_for("auth.login"))
