"""CLI commands for minting bearer tokens."""

from __future__ import annotations

import datetime

import gradeflow.lib.cli as click
from gradeflow.auth import JWTManager
from gradeflow.core import di
from gradeflow.model import Actor, Role


@click.group("token")
def token():
    """Issue API bearer tokens."""
    ...


@token.command("issue")
@click.argument("user_id")
@click.option("--role", "-r", type=click.EnumType(Role), required=True)
@click.option("--minutes", "-m", type=click.IntRange(min=1), default=None, help="Lifetime (default from config)")
@di.inject
def token_issue(
    user_id: str,
    role: Role,
    minutes: int | None,
    jwt_manager: JWTManager = di.Provide["auth.jwt_manager"],
) -> None:
    """Print a bearer token asserting USER_ID in ROLE."""
    expires = datetime.timedelta(minutes=minutes) if minutes else None
    click.echo(jwt_manager.create_access_token(Actor(user_id=user_id, role=role), expires_delta=expires))
