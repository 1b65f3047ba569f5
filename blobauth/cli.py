"""
blobauth Command-Line Interface

Issues SAS URLs and shows the headers blobauth would add to a request.

Author: BlobAuth Team
Date: 2026-10-18
"""

import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from blobauth import __version__
from blobauth.auth.credentials import credential_kind
from blobauth.auth.exceptions import BlobAuthError
from blobauth.auth.request import make_request
from blobauth.auth.sharedkey import parse_authorization_header
from blobauth.client import BlobAuthClient
from blobauth.core.config_manager import ConfigManager
from blobauth.core.logging_config import configure_logging, setup_logging
from blobauth.sas.shared import SASPermission, SASResourceType


def _build_client(ctx: click.Context) -> BlobAuthClient:
    try:
        config = ConfigManager().load(config_file=ctx.obj.get("config_file"))
        if ctx.obj.get("log_level") is None and "logging" in config.model_fields_set:
            configure_logging(config.logging)
        return BlobAuthClient(config)
    except (BlobAuthError, ValidationError, FileNotFoundError, ValueError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="blobauth")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: WARNING, or the config file's logging section)",
)
@click.pass_context
def cli(ctx, config_file: Optional[Path], log_level: Optional[str]):
    """
    blobauth - Azure Blob Storage request signing

    Credentials are read from BLOBAUTH_* environment variables or --config.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = str(config_file) if config_file else None
    ctx.obj["log_level"] = log_level
    setup_logging(level=log_level or "WARNING", format_type="text")


@cli.command("sas-url")
@click.argument("container")
@click.argument("resource", default="/")
@click.option(
    "--resource-type",
    "-r",
    default="container",
    type=click.Choice([t.name.lower() for t in SASResourceType]),
    show_default=True,
    help="Signed resource type",
)
@click.option(
    "--permission",
    "-p",
    "permissions",
    multiple=True,
    type=click.Choice([p.name.lower() for p in SASPermission]),
    help="Permission to grant (repeatable, default: read)",
)
@click.option(
    "--expiry",
    "-e",
    default=3600,
    type=click.IntRange(min=1),
    show_default=True,
    help="Validity in seconds",
)
@click.pass_context
def sas_url(ctx, container: str, resource: str, resource_type: str, permissions: tuple, expiry: int):
    """
    Print a SAS URL for a container or blob.

    Examples:
        blobauth sas-url my-container
        blobauth sas-url my-container videos/clip.mp4 -r blob -p read -p write
    """
    with _build_client(ctx) as client:
        try:
            url = client.sas_url(
                container,
                resource,
                resource_type=resource_type,
                permissions=permissions or ("read",),
                expiry=expiry,
            )
        except BlobAuthError as e:
            click.echo(f"[ERROR] {e.message}", err=True)
            sys.exit(1)

    click.echo(url)


@cli.command()
@click.argument("method")
@click.argument("url")
@click.option("--header", "-H", "headers", multiple=True, help="Extra header as NAME:VALUE")
@click.option("--content-type", default=None, help="Content type of the body")
@click.option("--data", "-d", default="", help="Request body")
@click.option("--show-secrets", is_flag=True, help="Print the Authorization value unmasked")
@click.pass_context
def authorize(ctx, method: str, url: str, headers: tuple, content_type: Optional[str], data: str, show_secrets: bool):
    """
    Print the headers added to a request.

    Examples:
        blobauth authorize PUT https://acct.blob.core.windows.net/c/b -H x-ms-blob-type:BlockBlob
    """
    parsed_headers = []
    for header in headers:
        if ":" not in header:
            click.echo(f"[ERROR] Header must be NAME:VALUE, got: {header}", err=True)
            sys.exit(2)
        name, value = header.split(":", 1)
        parsed_headers.append((name.strip(), value.strip()))

    with _build_client(ctx) as client:
        request = make_request(method, url, body=data, headers=parsed_headers)
        try:
            signed = client.authorize_request(request, content_type)
        except BlobAuthError as e:
            click.echo(f"[ERROR] {e.message}", err=True)
            sys.exit(1)

    for name, value in signed.effective_headers():
        if name.lower() == "authorization" and not show_secrets:
            value = _mask_authorization(value)
        click.echo(f"{name}: {value}")


def _mask_authorization(value: str) -> str:
    """Hide the credential, keeping the signing account of SharedKey headers."""
    scheme = value.split(" ", 1)[0]
    if scheme.lower() != "sharedkey":
        return f"{scheme} ***"
    account_name, _ = parse_authorization_header(value)
    return f"{scheme} {account_name}:***"


@cli.command()
@click.pass_context
def config(ctx):
    """Show the resolved credential kind and endpoints."""
    with _build_client(ctx) as client:
        try:
            api_url = client.api_url
        except BlobAuthError as e:
            click.echo(f"[ERROR] {e.message}", err=True)
            sys.exit(1)
        click.echo(f"credential: {credential_kind(client.credential)}")
        click.echo(f"api_url:    {api_url}")
        click.echo(f"auth_url:   {client.config.auth_url}")


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
