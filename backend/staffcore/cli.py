# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/staffcore/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "staffcore:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent). Use migrations for real deployments.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system create-business --name "Acme Cleaning" --owner <identity-id>
#   Create a business (tenant) owned by an identity.
# - python -m flask system create-job --business-id <id> --name "Deep clean" --duration 90 --price 120
#   Add a job to the business catalog (dev seeding).
#
# Invitation inspection/bootstrap:
# - python -m flask invitations list --business-id <id> [--status pending]
#   List invitations; overdue pending ones are flipped to expired first.
# - python -m flask invitations issue --business-id <id> --email a@b.com --role staff
#   Issue an invitation and print the invite URL.
#
# Permission inspection:
# - python -m flask perms list [--role co-admin]
#   List capabilities (with a role's defaults when --role is given).
# - python -m flask perms check <identity-id> <business-id> clock_in
#   Check whether an identity holds a capability in a business.
#
# Work session inspection:
# - python -m flask sessions active --business-id <id>
#   List open work sessions.

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import StaffCoreError
from .models import Business, Job
from .models.worklogs import SESSION_ACTIVE
from .permissions import CAPABILITY_DEFINITIONS, default_permission_map, validate_role
from .services import invitation_service, permission_service, work_session_service
from .services.identity_service import IdentityContext
from .validation import parse_amount


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@system_group.command('create-business')
@click.option('--name', required=True, help='Business name')
@click.option('--owner', 'owner_identity_id', required=True, help='Owner identity id')
@with_appcontext
def create_business(name, owner_identity_id):
    """Create a business (tenant)."""
    business = Business(name=name.strip(), owner_identity_id=owner_identity_id.strip())
    db.session.add(business)
    db.session.commit()
    click.echo(f"PASS Created business: {business.name} (ID: {business.id})")


@system_group.command('create-job')
@click.option('--business-id', required=True, help='Business ID')
@click.option('--name', required=True, help='Job name')
@click.option('--duration', type=int, help='Default duration in minutes')
@click.option('--price', help='Default price')
@with_appcontext
def create_job(business_id, name, duration, price):
    """Add a job to a business catalog (dev seeding)."""
    if db.session.get(Business, business_id) is None:
        click.echo(f"FAIL Business {business_id} not found")
        return
    try:
        default_price = parse_amount(price, "price", allow_none=True)
    except StaffCoreError as e:
        click.echo(f"FAIL {e.message}")
        return
    job = Job(business_id=business_id, name=name.strip(), default_duration=duration, default_price=default_price)
    db.session.add(job)
    db.session.commit()
    click.echo(f"PASS Created job: {job.name} (ID: {job.id})")


@click.group('invitations')
def invitations_group():
    """Staff invitation commands."""


@invitations_group.command('list')
@click.option('--business-id', required=True, help='Business ID')
@click.option('--status', help='Filter by status (pending, accepted, expired)')
@with_appcontext
def list_invitations(business_id, status):
    """List invitations of a business."""
    try:
        invitations = invitation_service.list_invitations(business_id, status=status)
    except StaffCoreError as e:
        click.echo(f"FAIL {e.message}")
        return

    if not invitations:
        click.echo("No invitations found.")
        return

    click.echo("\n" + "="*96)
    click.echo(f"{'ID':<34} {'Email':<30} {'Role':<10} {'Status':<10} {'Expires'}")
    click.echo("="*96)
    for inv in invitations:
        expires = inv.to_dict()["expires_at"]
        click.echo(f"{inv.id:<34} {inv.email:<30} {inv.proposed_role:<10} {inv.status:<10} {expires}")
    click.echo("="*96 + "\n")


@invitations_group.command('issue')
@click.option('--business-id', required=True, help='Business ID')
@click.option('--email', required=True, help='Invitee email')
@click.option('--role', default='staff', show_default=True, help='staff or co-admin')
@click.option('--name', help='Invitee display name')
@click.option('--position', help='Job title')
@with_appcontext
def issue_invitation(business_id, email, role, name, position):
    """Issue an invitation and print its link."""
    try:
        invitation = invitation_service.issue(business_id, email, role, name=name, position=position)
    except StaffCoreError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Issued invitation {invitation.id} for {invitation.email}")
    click.echo(f"   Expires: {invitation.to_dict()['expires_at']}")
    click.echo(f"   Link:    {invitation_service.build_invite_url(invitation.token)}")


@click.group('perms')
def perms_group():
    """Capability inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Show the default grant for a role')
@with_appcontext
def list_perms(role):
    """List capabilities."""
    defaults = None
    if role:
        try:
            defaults = default_permission_map(validate_role(role))
        except StaffCoreError as e:
            click.echo(f"FAIL {e.message}")
            return

    click.echo("\n" + "="*80)
    click.echo(f"{'Key':<22} {'Category':<16} {'Name':<28} {'Default' if defaults else ''}")
    click.echo("="*80)
    for cap, name, _description, category in CAPABILITY_DEFINITIONS:
        default_str = ("yes" if defaults.get(cap.value) else "no") if defaults else ""
        click.echo(f"{cap.value:<22} {category:<16} {name:<28} {default_str}")
    click.echo("="*80 + "\n")


@perms_group.command('check')
@click.argument('identity_id')
@click.argument('business_id')
@click.argument('capability')
@with_appcontext
def check_perm(identity_id, business_id, capability):
    """Check whether an identity holds a capability in a business."""
    identity = IdentityContext(identity_id=identity_id)
    if permission_service.has_permission(identity, business_id, capability):
        click.echo(f"PASS {identity_id} HAS {capability} in {business_id}")
    else:
        click.echo(f"FAIL {identity_id} does NOT have {capability} in {business_id}")


@click.group('sessions')
def sessions_group():
    """Work session inspection commands."""


@sessions_group.command('active')
@click.option('--business-id', required=True, help='Business ID')
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def active_sessions(business_id, limit):
    """List open work sessions of a business."""
    sessions = work_session_service.list_sessions(
        business_id=business_id,
        status=SESSION_ACTIVE,
        limit=limit,
    )
    if not sessions:
        click.echo("No active work sessions.")
        return

    click.echo(f"{'Session':<34} {'Staff relation':<34} {'Started'}")
    for s in sessions:
        click.echo(f"{s.id:<34} {s.staff_relation_id:<34} {s.to_dict()['start_time']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(invitations_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(sessions_group)
