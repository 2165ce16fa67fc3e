"""Flask CLI commands for refresh session housekeeping."""

from __future__ import annotations

import json
import logging

import click
from flask.cli import with_appcontext

from jobless.core.security import get_auth_service
from jobless.schemas import SessionSchema
from jobless.services._shared.errors import UserNotFoundError

LOGGER = logging.getLogger(__name__)

session_schema = SessionSchema()


@click.group("sessions")
def sessions_cli() -> None:
    """Inspect and clean up refresh sessions."""


@sessions_cli.command("purge")
@with_appcontext
def purge_command() -> None:
    """Delete every expired refresh session."""
    removed = get_auth_service().purge_expired_sessions()
    LOGGER.info("sessions.purge", extra={"revoked": removed})
    click.echo(f"Purged {removed} expired session(s).")


@sessions_cli.command("list")
@click.argument("email")
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per session.")
@with_appcontext
def list_command(email: str, as_json: bool) -> None:
    """List the refresh sessions of the account registered under EMAIL."""
    service = get_auth_service()
    try:
        user = service.get_user_by_email(email)
    except UserNotFoundError as exc:
        raise click.ClickException(f"No account for {email}") from exc

    sessions = service.list_sessions(user.id)
    if as_json:
        for s in sessions:
            click.echo(json.dumps(session_schema.dump(s)))
        return

    click.echo(f"{user.email} (id={user.id}): {len(sessions)} session(s)")
    for s in sessions:
        state = "expired" if s.expired else "active"
        click.echo(
            f"  {s.session_id[:12]}...  created={s.created_at.isoformat()}  "
            f"expires={s.expires_at.isoformat()}  {state}"
        )
