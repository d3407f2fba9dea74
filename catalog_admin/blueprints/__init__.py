"""Helpers shared by the dashboard blueprints."""
from flask import flash

from catalog_admin.services.api_client import client_from_config
from catalog_admin.services.session_store import get_session_store


def api_client():
    """API client carrying the current session's bearer token."""
    return client_from_config(token=get_session_store().get_token())


def flash_api_error(error):
    """Show a backend failure verbatim; expired sessions go to the error handler."""
    if error.status == 401:
        raise error
    flash(error.message, "error")
