# sportstore/cli.py
import click
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash

from .errors import ApiError
from .extensions import db
from .model import User
from .services import coupon_service, product_io
from .utils.validators import check_password, clean_email


@click.command("create-admin")
@with_appcontext
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    try:
        email = clean_email(email)
        check_password(password)
    except ApiError as e:
        raise click.ClickException(e.message)
    if User.query.filter_by(email=email).first():
        raise click.ClickException("Email already exists")
    u = User(email=email, name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u)
    db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")


@click.command("update-expired-coupons")
@with_appcontext
def update_expired_coupons():
    count = coupon_service.update_expired()
    db.session.commit()
    click.echo(f"{count} coupons marked inactive")


@click.command("export-products")
@with_appcontext
@click.argument("path", type=click.Path(dir_okay=False, writable=True))
def export_products(path):
    product_io.export_xlsx(path)
    click.echo(f"Products have been exported to Excel at {path}")


@click.command("import-products")
@with_appcontext
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_products(path):
    try:
        result = product_io.import_xlsx(path)
    except ApiError as e:
        raise click.ClickException(e.message)
    db.session.commit()
    click.echo(f"{result['created']} created, {result['updated']} updated from {path}")
    for row in result["errors"]:
        click.echo(f"  row {row['row']}: {row['message']}", err=True)


def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(update_expired_coupons)
    app.cli.add_command(export_products)
    app.cli.add_command(import_products)
