# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: roles, role permissions, movement types, departments,
#   floors, ranks, sample categories, and the default users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username nurse1 --email nurse1@hospital.local --full-name "Nurse One" --password secret1 --role VIEWER
#   Create a user (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms list ADMIN
#   List a role's stored permission rows and what they compile to.
# - python -m flask perms check admin update Item
#   Check whether a user's ability allows an action on a subject.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Role
from .services import permission_service, seed_service, user_service
from .services.ability_service import compile_ability, resolve_ability, parse_action, parse_subject


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--no-users', is_flag=True, help='Skip the default users')
@with_appcontext
def init_system(no_users):
    """
    Initialize the inventory system.

    Default users superadmin / admin share the password "password123".
    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing MedStock...")
    summary = seed_service.initialize_system(with_users=not no_users)

    click.echo(f"PASS Roles created: {summary['roles']}, permission rows: {summary['role_permissions']}")
    click.echo(f"PASS Movement types created: {summary['movement_types']}")
    click.echo(
        f"PASS Departments: {summary['departments']}, floors: {summary['floors']}, ranks: {summary['ranks']}"
    )
    click.echo(
        f"PASS Main categories: {summary['main_categories']}, sub categories: {summary['sub_categories']}, "
        f"item types: {summary['item_types']}"
    )
    if summary["users"]:
        click.echo(f"PASS Users created: {', '.join(summary['users'])}")
        click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!): password123")
    click.echo("DONE MedStock initialized")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = user_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<35} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        role_name = user.role.name if user.role else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<35} {active_str:<8} {role_name}")

    click.echo("="*90 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--full-name', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', 'role_name', prompt=True, help='Role name, e.g. ADMIN')
@with_appcontext
def create_user_cli(username, email, full_name, password, role_name):
    """Create a user with the given role."""
    role = db.session.query(Role).filter(db.func.upper(Role.name) == role_name.strip().upper()).first()
    if not role:
        click.echo(f"FAIL Role '{role_name}' not found")
        return

    try:
        user = user_service.create_user({
            "username": username,
            "email": email,
            "full_name": full_name,
            "password": password,
            "role_id": role.id,
        })
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{role.name}'")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.argument('role_name')
@with_appcontext
def list_permissions_cli(role_name):
    """List a role's permission rows and its compiled rules."""
    try:
        rows = permission_service.list_role_permissions(role_name)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"\n{'='*70}")
    click.echo(f"Permissions for role: {role_name.upper()}")
    click.echo(f"{'='*70}\n")
    click.echo(f"{'Subject':<20} {'Action':<12} {'Field':<15} {'Access'}")
    click.echo("-"*70)
    for row in rows:
        click.echo(f"{row.subject:<20} {row.action:<12} {row.field_name or '-':<15} {'Yes' if row.can_access else 'No'}")

    ability = compile_ability(rows)
    click.echo(f"\nCompiled rules ({'guest fallback' if ability.is_guest else len(ability.rules)}):")
    for rule in ability.rules:
        field = f".{rule.field}" if rule.field else ""
        click.echo(f"  {rule.action.value} {rule.subject.value}{field}")
    for skipped in ability.skipped:
        click.echo(f"  WARN skipped {skipped.row.subject}/{skipped.row.action}: {skipped.reason}")


@perms_group.command('check')
@click.argument('username')
@click.argument('action')
@click.argument('subject')
@click.option('--field', default=None, help='Optional field name')
@with_appcontext
def check_permission_cli(username, action, subject, field):
    """Check if a user's ability allows ACTION on SUBJECT."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
        return

    if parse_action(action) is None or parse_subject(subject) is None:
        click.echo(f"FAIL Unknown action/subject: {action} {subject}")
        return

    ability = resolve_ability(user.id)
    target = f"{subject}.{field}" if field else subject
    if ability.can(action, subject, field):
        click.echo(f"PASS User '{username}' CAN {action} {target}")
    else:
        click.echo(f"FAIL User '{username}' CANNOT {action} {target}")

    click.echo(f"\nRole: {user.role.name if user.role else '-'}")
    click.echo(f"Rules: {len(ability.rules)}{' (guest)' if ability.is_guest else ''}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
