"""Command-line interface for gws-tools."""

import sys

import click

from gws_tools.__version__ import __version__


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Google Workspace tools over MCP.

    Provides tools across:
    - Drive (files, folders, shared drives, folder paths, trees, recursive listings)
    - Gmail (messages, threads, labels, filters, spam, signatures)
    - Calendar (events, calendars, availability)
    - Sheets (ranges, sheets, rows, columns, notes)
    """
    pass


@main.command()
def serve() -> None:
    """Start the MCP server on stdio.

    Credentials come from ACCESS_TOKEN / REFRESH_TOKEN environment
    variables or the token file (GWS_TOOLS_TOKEN_PATH).
    """
    from gws_tools.server import main as server_main

    try:
        click.echo("Starting gws-tools MCP server...", err=True)
        server_main()
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)
    except Exception as e:
        click.echo(f"Server error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option(
    "--service",
    "service_name",
    type=click.Choice(["drive", "gmail", "calendar", "sheets"]),
    help="Only list tools of this service",
)
def tools(service_name: str | None) -> None:
    """List available tools, grouped by service."""
    from gws_tools.auth import CredentialManager
    from gws_tools.client import GoogleApiClient
    from gws_tools.services import default_services

    client = GoogleApiClient(CredentialManager())
    for service in default_services(client):
        if service_name and service.name != service_name:
            continue
        service_tools = service.tools()
        click.echo(f"{service.name} ({len(service_tools)}):")
        for tool in service_tools:
            click.echo(f"  {tool.name:<32} {tool.description}")


@main.command()
def doctor() -> None:
    """Check installation and credential status.

    Verifies:
    1. Python dependencies installed
    2. Settings readable from the environment
    3. An access token source is configured
    """
    from pydantic import ValidationError

    from gws_tools.auth import CredentialManager, TokenStatus, TokenStorage
    from gws_tools.auth.credentials import ACCESS_TOKEN_VARS, REFRESH_TOKEN_VARS, first_env
    from gws_tools.config import SERVICE_NAME, Settings

    click.echo("gws-tools status:")
    click.echo("")

    click.echo("Dependencies:")
    try:
        import google.auth
        import httpx
        import mcp  # noqa: F401

        click.echo(f"  ✓ httpx {httpx.__version__}")
        click.echo(f"  ✓ google-auth {google.auth.__version__}")
        click.echo("  ✓ mcp installed")
    except ImportError as e:
        click.echo(f"  ❌ Missing dependency: {e}")
        sys.exit(1)

    click.echo("")

    try:
        settings = Settings.from_env()
    except ValidationError as e:
        click.echo(f"❌ Invalid settings: {e}")
        sys.exit(1)

    manager = CredentialManager(storage=TokenStorage(settings.token_path))

    click.echo("Credentials:")
    click.echo(f"  Source: {manager.describe()}")

    if first_env(ACCESS_TOKEN_VARS):
        click.echo("  ✓ Access token set in environment")
    elif first_env(REFRESH_TOKEN_VARS):
        if manager.client_id and manager.client_secret:
            click.echo("  ✓ Refresh token and client credentials set")
        else:
            click.echo("  ❌ Refresh token set but GOOGLE_OAUTH_CLIENT_ID/SECRET missing")
            sys.exit(1)
    else:
        status = manager.storage.get_status(SERVICE_NAME)
        if status == TokenStatus.MISSING:
            click.echo("  ❌ No token configured")
            click.echo("")
            click.echo("Set ACCESS_TOKEN, or REFRESH_TOKEN with client credentials.")
            sys.exit(1)
        elif status == TokenStatus.INVALID:
            click.echo("  ❌ Token file corrupted")
            sys.exit(1)
        elif status == TokenStatus.EXPIRED:
            click.echo("  ⚠️  Token expired (refreshed automatically on use)")
        else:
            click.echo("  ✓ Stored token valid")

    click.echo("")
    click.echo("✓ Ready to use!")


if __name__ == "__main__":
    main()
