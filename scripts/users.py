"""CLI to create API users in MongoDB and sign requests for manual testing."""

import sys
import time
from pathlib import Path

import click

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from arithmetic_api.models.user import (  # noqa: E402  # pylint: disable=wrong-import-position
    ApiUser,
    PlanType,
)
from arithmetic_api.security import (  # noqa: E402  # pylint: disable=wrong-import-position
    API_KEY_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
)
from arithmetic_api.services import (  # noqa: E402  # pylint: disable=wrong-import-position
    credentials,
    database,
    signing,
)


@click.group()
def cli() -> None:
    """Manage arithmetic API users."""


@cli.command("create-user")
@click.option("--name", prompt="User name", help="Display name for the API user")
@click.option("--email", prompt="Email", help="Unique email for the API user")
@click.option(
    "--plan",
    type=click.Choice([plan.value for plan in PlanType]),
    default=PlanType.FREE.value,
    show_default=True,
    help="Plan controlling the request quota",
)
def create_user(name: str, email: str, plan: str) -> None:
    """Create a user and print its API key and secret key."""
    database.get_client()
    database.ensure_indexes()

    if credentials.find_by_email(email):
        raise click.ClickException(f"A user with email {email} already exists")

    user = credentials.create(
        ApiUser(
            name=name,
            email=email,
            api_key=credentials.generate_api_key(),
            secret_key=credentials.generate_secret_key(),
            plan_type=PlanType(plan),
        )
    )

    click.echo(
        "\nUser created. Store the secret key securely; "
        "it will not be shown again.\n"
    )
    click.echo(f"User      : {user.name} <{user.email}>")
    click.echo(f"Plan      : {user.plan_type.value} ({user.plan_limit} requests)")
    click.echo(f"API key   : {user.api_key}")
    click.echo(f"Secret key: {user.secret_key}\n")


@cli.command("sign")
@click.option("--api-key", required=True, help="Public API key")
@click.option("--secret-key", required=True, help="Private signing key")
@click.option(
    "--timestamp",
    type=int,
    default=None,
    help="Unix timestamp to sign (defaults to now)",
)
def sign(api_key: str, secret_key: str, timestamp: int | None) -> None:
    """Print the headers for a signed request."""
    if timestamp is None:
        timestamp = int(time.time())
    signature = signing.compute_signature(secret_key, api_key, timestamp)

    click.echo(f"{API_KEY_HEADER}: {api_key}")
    click.echo(f"{SIGNATURE_HEADER}: {signature}")
    click.echo(f"{TIMESTAMP_HEADER}: {timestamp}")


if __name__ == "__main__":
    cli()
