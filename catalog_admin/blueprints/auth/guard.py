from functools import wraps

from flask import flash, redirect, url_for

from catalog_admin.services.session_store import get_session_store


def login_required(admin_only=True):
    """Send sessions without a token (or without the admin role) to the entry page."""

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            store = get_session_store()
            if not store.is_authenticated():
                flash("Please sign in to continue.", "error")
                return redirect(url_for("auth.login"))
            if admin_only and not store.is_admin():
                flash("Access denied. Admin privileges required.", "error")
                return redirect(url_for("auth.login"))
            return view(*args, **kwargs)

        return wrapped

    return decorator
