"""Flask CLI commands for admin operations."""
import click
from flask import current_app

from catalog_admin.services import analytics
from catalog_admin.services.api_client import ApiError, client_from_config


def _print_node(node, depth=0):
    state = "" if node.is_active else " (inactive)"
    click.echo(f"{'  ' * depth}- [{node.type}] {node.name}: {node.count}{state}")
    for child in node.children:
        _print_node(child, depth + 1)


def _login(email, password):
    with client_from_config() as api:
        data = api.login(email, password) or {}
    user = data.get("user") or {}
    if user.get("role") != "admin":
        raise click.ClickException("Access denied. Admin privileges required.")
    return data.get("token")


def _collections(email, password):
    try:
        token = _login(email, password)
        with client_from_config(token=token) as api:
            return analytics.fetch_collections(api)
    except ApiError as e:
        raise click.ClickException(e.message)


def register_cli(app):
    @app.cli.command("check-api")
    def check_api():
        """Probe the backend API."""
        base_url = current_app.config["API_BASE_URL"]
        try:
            with client_from_config() as api:
                api.get("/categories")
        except ApiError as e:
            raise click.ClickException(f"{base_url}: {e.message}")
        click.echo(f"Backend reachable at {base_url}")

    @app.cli.command("tree")
    @click.option("--email", required=True)
    @click.option("--password", required=True, prompt=True, hide_input=True)
    def tree(email, password):
        """Print the category hierarchy with product counts."""
        categories, subcategories, products = _collections(email, password)
        nodes = analytics.build_tree(categories, subcategories, products)
        if not nodes:
            click.echo("No categories found.")
        for node in nodes:
            _print_node(node)

    @app.cli.command("stats")
    @click.option("--email", required=True)
    @click.option("--password", required=True, prompt=True, hide_input=True)
    def stats(email, password):
        """Show catalog statistics."""
        s = analytics.collection_stats(*_collections(email, password))
        for key, value in s.items():
            click.echo(f"  {key}: {value}")
