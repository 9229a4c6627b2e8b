# Overview: Flask CLI command groups for bootstrap, seeding, and user maintenance.

# backend/armory/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with roles and active status.
# - python -m flask users create --email mod@ammo.com --name "Range Officer" --pin 4321 --password "Secret1" --role moderator
#   Create a user (prompts if options are omitted).
# - python -m flask users delete --email admin@ammo.com
#   Delete a user account (refused while the user has orders).
#
# Sample data:
# - python -m flask seed admin
#   Create the default admin account (admin@ammo.com / Admin@123).
# - python -m flask seed test-user
#   Create the default regular account (user@ammo.com / User@123).
# - python -m flask seed data
#   Replace inventory and orders with sample calibers and sample orders.

import click
from flask.cli import with_appcontext

from .errors import ArmoryError
from .extensions import db
from .models import InventoryItem, Issuance, Order, Purchase, SessionToken, User
from .models.auth import ROLE_ADMIN, ROLE_USER, ROLES
from .models.orders import (
    ORDER_STATUS_APPROVED,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_PENDING,
)
from .services.auth_service import create_user


DEFAULT_ADMIN = {
    "email": "admin@ammo.com",
    "password": "Admin@123",
    "name": "Admin User",
    "pin_no": "0000",
}

DEFAULT_TEST_USER = {
    "email": "user@ammo.com",
    "password": "User@123",
    "name": "Test User",
    "pin_no": "1234",
}

SAMPLE_INVENTORY = [
    ("9mm", 5000),
    (".45 ACP", 3000),
    ("5.56 NATO", 10000),
    (".22 LR", 15000),
    ("12 Gauge", 2000),
    (".308 Winchester", 1500),
    (".40 S&W", 2500),
    ("10mm Auto", 800),
]

SAMPLE_ORDERS = [
    ("9mm", 500, ORDER_STATUS_PENDING),
    (".45 ACP", 200, ORDER_STATUS_PENDING),
    ("5.56 NATO", 1000, ORDER_STATUS_APPROVED),
    (".22 LR", 2000, ORDER_STATUS_COMPLETED),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet. Existing data is kept."""
    click.echo("START Initializing database...")
    db.create_all()
    click.echo("PASS Database ready. Run 'python -m flask seed admin' to create the admin account.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask seed admin' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--pin', 'pin_no', prompt=True, help='Service PIN (1-10 characters, unique)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default=ROLE_USER, show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, name, pin_no, password, role):
    """Create a new user with any role."""
    try:
        user = create_user(email=email, password=password, name=name, pin_no=pin_no, role=role)
    except ArmoryError as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<30} {'Name':<25} {'PIN':<11} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<30} {user.name:<25} {user.pin_no:<11} {active:<8} {user.role}")

    click.echo("="*90 + "\n")


@users_group.command('delete')
@click.option('--email', prompt=True, help='Email of the account to delete')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def delete_user_cli(email, yes):
    """
    Delete a user account and its sessions.

    Accounts with orders, or named on a decision, issuance or purchase, are
    kept: that history is never deleted, so deactivate such accounts instead.
    """
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    if db.session.query(Order).filter_by(user_id=user.id).count():
        click.echo(f"FAIL User '{user.email}' has orders and cannot be deleted")
        return

    # Decisions, issuances and purchases keep pointing at the staff member who made them
    referenced = (
        db.session.query(Order).filter_by(decided_by_user_id=user.id).count()
        + db.session.query(Issuance).filter_by(issued_by_user_id=user.id).count()
        + db.session.query(Purchase).filter_by(purchased_by_user_id=user.id).count()
    )
    if referenced:
        click.echo(
            f"FAIL User '{user.email}' is recorded on {referenced} order decision(s), "
            "issuance(s) or purchase(s) and cannot be deleted; deactivate the account instead"
        )
        return

    if not yes:
        click.confirm(f"WARN Delete user '{user.email}'?", abort=True)

    db.session.query(SessionToken).filter_by(user_id=user.id).delete()
    db.session.delete(user)
    db.session.commit()
    click.echo(f"PASS Deleted user: {email}")


@click.group('seed')
def seed_group():
    """Sample accounts and data for development."""


def _seed_account(fields: dict, role: str) -> None:
    existing = db.session.query(User).filter_by(email=fields["email"]).first()
    if existing:
        click.echo(f"SKIP User already exists: {existing.email} (role: {existing.role})")
        return

    try:
        user = create_user(role=role, **fields)
    except ArmoryError as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created {role}: {user.email} / {fields['password']}")


@seed_group.command('admin')
@with_appcontext
def seed_admin():
    """Create the default admin account."""
    _seed_account(DEFAULT_ADMIN, ROLE_ADMIN)
    click.echo("WARN Change the default password immediately in production!")


@seed_group.command('test-user')
@with_appcontext
def seed_test_user():
    """Create the default regular user account."""
    _seed_account(DEFAULT_TEST_USER, ROLE_USER)


@seed_group.command('data')
@with_appcontext
def seed_data():
    """
    Replace inventory and orders with sample data.

    Sample orders are attached to the first regular user; none are created
    when no such user exists.
    """
    click.echo("DELETE  Clearing existing issuances, orders and inventory...")
    db.session.query(Issuance).delete()
    db.session.query(Order).delete()
    db.session.query(InventoryItem).delete()

    for caliber, quantity in SAMPLE_INVENTORY:
        db.session.add(InventoryItem(caliber=caliber, quantity=quantity))
    db.session.commit()
    click.echo(f"PASS Added {len(SAMPLE_INVENTORY)} inventory items")

    user = (
        db.session.query(User)
        .filter_by(role=ROLE_USER)
        .order_by(User.id.asc())
        .first()
    )
    if not user:
        click.echo("WARN No regular user found; skipping sample orders. Run 'python -m flask seed test-user' first.")
        return

    for caliber, quantity, status in SAMPLE_ORDERS:
        order = Order(user_id=user.id, caliber=caliber, quantity=quantity, status=status)
        if status != ORDER_STATUS_PENDING:
            order.issued_quantity = quantity
        db.session.add(order)
    db.session.commit()
    click.echo(f"PASS Added {len(SAMPLE_ORDERS)} sample orders for {user.email}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(seed_group)
