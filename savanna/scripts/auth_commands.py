"""CLI commands for the auth subsystem.

Usage:
    flask auth probe-profile ACTOR_ID                 # Resolve (and create) a profile
    flask auth probe-profile ACTOR_ID --email a@b.co  # Email used by creation shapes
    flask auth purge-sessions --days 14               # Drop client sessions idle that long
"""

from __future__ import annotations

from datetime import datetime, timedelta

import click
from flask import current_app
from flask.cli import AppGroup

from savanna.core.auth.session_repository import ClientSessionRepository
from savanna.core.profiles.resolver import ProfileResolver, ResolverSettings

auth_cli = AppGroup("auth", help="Auth and profile maintenance commands.")


@auth_cli.command("probe-profile")
@click.argument("actor_id")
@click.option("--email", "-e", default=None, help="Email to use if the profile has to be created")
def probe_profile_command(actor_id: str, email: str | None):
    """Resolve ACTOR_ID's profile against the configured store and report how it was obtained."""
    from savanna.integrations.factory import build_backend

    _, store = build_backend(current_app.config)
    resolver = ProfileResolver(store, ResolverSettings.from_config(current_app.config))
    profile = resolver.resolve(actor_id, email=email)

    click.echo(f"Profile {profile.id}: {profile.completeness.value}")
    click.echo(f"  user type: {profile.user_type}")
    click.echo(f"  name:      {profile.display_name}")
    if not profile.is_persisted:
        click.echo("  (not stored; the profile table refused or failed every write)", err=True)


@auth_cli.command("purge-sessions")
@click.option("--days", "-d", default=14, show_default=True, type=click.IntRange(min=0), help="Idle days to keep")
def purge_sessions_command(days: int):
    """Remove shared client sessions nobody has touched for DAYS days."""
    removed = ClientSessionRepository().purge_idle(datetime.utcnow() - timedelta(days=days))
    click.echo(f"Removed {removed} idle client session(s)")


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(auth_cli)
