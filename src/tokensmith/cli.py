"""Command-line interface for Tokensmith.

Operator commands for the database, signing keys, clients and the expiry
sweep. Every command reads its configuration from the environment.
"""

from typing import NoReturn

import click

from tokensmith import __version__
from tokensmith.core.config import get_settings
from tokensmith.core.logging import configure_logging, get_logger

ALGORITHMS = ["RS256", "RS384", "RS512", "ES256", "ES384", "ES512"]


@click.group()
@click.version_option(version=__version__, prog_name="Tokensmith")
def cli() -> None:
    """Tokensmith - OAuth2 credential issuance and validation engine."""


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Create the Tokensmith tables."""
    import asyncio

    from tokensmith.infrastructure.persistence.database import get_db_manager, init_database

    settings = get_settings()
    configure_logging(settings)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        try:
            await init_database()
            click.echo("Database initialized successfully.")
        finally:
            await get_db_manager().disconnect()

    asyncio.run(initialize())


@cli.command()
def generate_master_key() -> None:
    """Print a new base64 master key for TOKENSMITH_PRIVATE_KEY_ENCRYPTION_KEY."""
    from tokensmith.infrastructure.security import PrivateKeyEncryptionService

    click.echo(PrivateKeyEncryptionService.generate_master_key())


@cli.group()
def keys() -> None:
    """Manage JWT signing keys."""


@keys.command("generate")
@click.option(
    "--algorithm",
    type=click.Choice(ALGORITHMS),
    default=None,
    help="Signing algorithm (defaults to TOKENSMITH_SIGNING_ALGORITHM)",
)
@click.option(
    "--inactive",
    is_flag=True,
    default=False,
    help="Store the key without activating it",
)
def generate_key(algorithm: str | None, inactive: bool) -> None:
    """Generate a new signing key."""
    import asyncio

    from tokensmith.application.factory import build_key_manager
    from tokensmith.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)

    async def generate() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                key = await build_key_manager(session, settings).create_key(
                    algorithm, activate=not inactive
                )
            state = "inactive" if inactive else "active"
            click.echo(f"Created {state} {key.algorithm.value} key {key.kid}")
        finally:
            await db.disconnect()

    asyncio.run(generate())


@keys.command("rotate")
@click.option(
    "--algorithm",
    type=click.Choice(ALGORITHMS),
    default=None,
    help="Signing algorithm of the new key",
)
def rotate_keys(algorithm: str | None) -> None:
    """Activate a new key and deactivate the current ones."""
    import asyncio

    from tokensmith.application.factory import build_key_manager
    from tokensmith.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)

    async def rotate() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                key = await build_key_manager(session, settings).rotate(algorithm)
            click.echo(f"Rotated to {key.algorithm.value} key {key.kid}")
        finally:
            await db.disconnect()

    asyncio.run(rotate())


@keys.command("deactivate")
@click.argument("kid")
def deactivate_key(kid: str) -> None:
    """Stop KID from signing. It keeps verifying until its grace period ends."""
    import asyncio

    from tokensmith.application.factory import build_key_manager
    from tokensmith.infrastructure.persistence.database import get_db_manager
    from tokensmith.infrastructure.services import UnknownKeyError

    settings = get_settings()
    configure_logging(settings)

    async def deactivate() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                key = await build_key_manager(session, settings).deactivate(kid)
            click.echo(f"Deactivated key {key.kid}; deletable after {key.expires_at.isoformat()}")
        except UnknownKeyError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)
        finally:
            await db.disconnect()

    asyncio.run(deactivate())


@keys.command("list")
def list_keys() -> None:
    """List signing keys, newest first."""
    import asyncio

    from tokensmith.infrastructure.persistence.database import get_db_manager
    from tokensmith.infrastructure.persistence.repositories import KeyRepository

    settings = get_settings()
    configure_logging(settings)

    async def show() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                signing_keys = await KeyRepository(session).find_all()
            if not signing_keys:
                click.echo("No signing keys.")
            for key in signing_keys:
                state = "active" if key.is_active else "inactive"
                click.echo(
                    f"{key.kid}  {key.algorithm.value:<6} {state:<8} "
                    f"created {key.created_at.isoformat()}  expires {key.expires_at.isoformat()}"
                )
        finally:
            await db.disconnect()

    asyncio.run(show())


@cli.group()
def clients() -> None:
    """Manage OAuth2 clients."""


@clients.command("create")
@click.option("--name", required=True, help="Client display name")
@click.option("--redirect-uri", required=True, help="Registered redirect URI")
@click.option(
    "--grant-type",
    "grant_types",
    multiple=True,
    type=click.Choice(["authorization_code", "refresh_token", "client_credentials"]),
    default=("authorization_code", "refresh_token"),
    show_default=True,
    help="Allowed grant type (repeatable)",
)
@click.option("--scope", "scopes", multiple=True, help="Allowed scope (repeatable)")
@click.option("--public", is_flag=True, default=False, help="Register a public client")
@click.option("--pkce-required", is_flag=True, default=False, help="Require PKCE for codes")
@click.option("--client-id", default=None, help="Use this client_id instead of a generated one")
def create_client(
    name: str,
    redirect_uri: str,
    grant_types: tuple[str, ...],
    scopes: tuple[str, ...],
    public: bool,
    pkce_required: bool,
    client_id: str | None,
) -> None:
    """Register a client and print its credentials.

    The client secret is shown once and cannot be recovered.
    """
    import asyncio

    from tokensmith.application.factory import build_client_registration
    from tokensmith.domain.exceptions import RepositoryError
    from tokensmith.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    async def create() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                registered = await build_client_registration(session).register(
                    name=name,
                    redirect_uri=redirect_uri,
                    grant_types=list(grant_types),
                    scopes=list(scopes),
                    is_confidential=not public,
                    pkce_required=pkce_required,
                    public_id=client_id,
                )
                await session.commit()
        except (ValueError, RepositoryError) as e:
            click.echo(f"Error: {e}", err=True)
            logger.error("Client registration failed", error=str(e))
            raise SystemExit(1)
        finally:
            await db.disconnect()

        click.echo(f"client_id:     {registered.client.public_id}")
        if registered.client_secret is not None:
            click.echo(f"client_secret: {registered.client_secret}")
            click.echo("Store the secret now; it cannot be shown again.")

    asyncio.run(create())


@cli.command()
def cleanup() -> None:
    """Delete expired codes, refresh tokens, blacklist entries and retired keys."""
    import asyncio

    from tokensmith.application.factory import build_cleanup_service
    from tokensmith.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)

    async def sweep() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                result = await build_cleanup_service(session, settings).run()
        finally:
            await db.disconnect()
        click.echo(
            f"Deleted {result.authorization_codes} authorization codes, "
            f"{result.refresh_tokens} refresh tokens, "
            f"{result.blacklist_entries} blacklist entries, "
            f"{result.signing_keys} signing keys."
        )

    asyncio.run(sweep())


@cli.command()
def info() -> None:
    """Display Tokensmith configuration."""
    settings = get_settings()

    click.echo(f"""
Tokensmith v{__version__}
{'=' * 40}
Environment:         {settings.environment}
Issuer:              {settings.issuer}
Database:            {settings.database_url.split('://')[0]}
Signing algorithm:   {settings.signing_algorithm}
ECDSA curve:         {settings.ecdsa_curve or 'from algorithm'}
Access token TTL:    {settings.access_token_ttl_seconds}s
Refresh token TTL:   {settings.refresh_token_ttl_seconds}s
Code TTL:            {settings.authorization_code_ttl_seconds}s
Key grace period:    {settings.deactivation_grace_seconds}s
Master key set:      {'yes' if settings.private_key_encryption_key else 'no'}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    Called by the ``tokensmith`` console script and ``python -m tokensmith``.
    """
    cli()
