# shop/cli.py
import json

import click
from flask.cli import with_appcontext

from .errors import ConflictError
from .services import auth_service, ingest_service


@click.command("import-products")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_products(path):
    """Load a Shopify-style products.json into the catalog."""
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)
    count = ingest_service.import_products(payload)
    click.echo(f"Imported {count} products from {path}")


@click.command("create-user")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", default=None)
@with_appcontext
def create_user(email, password, name):
    try:
        user, _ = auth_service.register(email.strip().lower(), password, name)
    except ConflictError as e:
        raise click.ClickException(e.message)
    click.echo(f"User created: {user.id} {user.email}")


def register_cli(app):
    app.cli.add_command(import_products)
    app.cli.add_command(create_user)
