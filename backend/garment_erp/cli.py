# Overview: Flask CLI command groups for bootstrap and user administration.

# backend/garment_erp/cli.py
# Commands Legend (run from the backend directory with FLASK_APP=wsgi.py):
#
# System bootstrap:
# - flask system init [--password admin123]
#   Create missing tables and the default admin account (admin / admin@fulai.com).
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - flask users list
#   List all users, newest first.
# - flask users create --username alice --email alice@example.com --password secret1 --role user
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import ROLES
from .services import auth_service
from .validation import ValidationError, ConflictError

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_EMAIL = "admin@fulai.com"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default='admin123', show_default=True, help='Password for the default admin')
@with_appcontext
def init_system(password):
    """
    Create tables that do not exist yet and the default admin account.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing garment ERP...")
    db.create_all()
    click.echo("PASS Tables ready")

    user, created = auth_service.ensure_default_admin(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_EMAIL, password)
    if created:
        click.echo(f"PASS Created admin user: {user.username} ({user.email})")
    else:
        click.echo(f"PASS Admin user already exists: {user.username}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate all tables."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = auth_service.list_users()
    if not users:
        click.echo("No users found")
        return
    for user in users:
        last_login = user.last_login_at.isoformat() if user.last_login_at else "never"
        click.echo(f"{user.id:>4}  {user.username:<20} {user.email:<32} {user.role:<6} last_login={last_login}")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default='user', show_default=True)
@with_appcontext
def create_user(username, email, password, role):
    try:
        user = auth_service.create_user(username, email, password, role=role)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.username} (id={user.id}, role={user.role})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
