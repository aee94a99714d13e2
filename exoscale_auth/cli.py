"""
exoscale-auth Command-Line Interface

Inspect credential resolution, print signed requests, and perform signed
calls against the Exoscale API.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import sys
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
import httpx

from exoscale_auth import __version__
from exoscale_auth.auth.exceptions import ExoscaleAuthError
from exoscale_auth.client.api import ExoscaleClient
from exoscale_auth.client.models import ApiFamily, RequestDescriptor
from exoscale_auth.core.config_manager import ConfigManager, ExoscaleConfig
from exoscale_auth.core.logging_config import setup_logging

logger = logging.getLogger("exoscale_auth.cli")


def _parse_query(values: Tuple[str, ...]) -> Dict[str, List[str]]:
    """Parse repeated name=value options, keeping repeated names."""
    params: Dict[str, List[str]] = {}
    for item in values:
        if "=" not in item:
            raise click.BadParameter(f"expected name=value, got {item!r}", param_hint="--query")
        name, value = item.split("=", 1)
        params.setdefault(name, []).append(value)
    return params


def _mask(value: str) -> str:
    return "*" * max(len(value) - 4, 4) + value[-4:] if len(value) > 4 else "****"


def _client(ctx: click.Context, **kwargs) -> ExoscaleClient:
    return ExoscaleClient(config=ctx.obj["config"], **kwargs)


query_option = click.option(
    "--query",
    "-q",
    multiple=True,
    help="Query parameter in name=value format (can specify multiple times)",
)


@click.group()
@click.version_option(version=__version__, prog_name="exoscale-auth")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (overrides configuration)",
)
@click.pass_context
def cli(ctx, config_file: Optional[Path], log_level: Optional[str]):
    """
    exoscale-auth - Exoscale API request signing

    Credentials are read from exoscale.toml, then EXOSCALE_API_KEY /
    EXOSCALE_API_SECRET, then TF_VAR_exoscale_api_key /
    TF_VAR_exoscale_secret_key.
    """
    ctx.ensure_object(dict)

    overrides = {"logging": {"level": log_level.upper()}} if log_level else None
    config: ExoscaleConfig = ConfigManager().load(
        config_file=str(config_file) if config_file else None,
        cli_overrides=overrides,
    )
    setup_logging(
        level=config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
        max_bytes=config.logging.rotation_size,
        rotation_count=config.logging.rotation_count,
        module_levels=config.logging.module_levels,
    )
    ctx.obj["config"] = config


@cli.command()
@click.pass_context
def creds(ctx):
    """
    Show which API credentials would be used.

    The secret is masked.
    """
    with _client(ctx) as client:
        try:
            credentials = client.signer.credentials_for(
                RequestDescriptor(method="GET", path="/")
            )
        except ExoscaleAuthError as e:
            click.echo(f"[ERROR] {e.message}", err=True)
            sys.exit(1)

    click.echo(f"Key:    {credentials.key}")
    click.echo(f"Secret: {_mask(credentials.secret)}")


@cli.command("sign-v1")
@click.argument("path")
@query_option
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.pass_context
def sign_v1(ctx, path: str, query: Tuple[str, ...], method: str):
    """
    Print a v1 URI with apikey and signature.

    Example:
        exoscale-auth sign-v1 /compute -q command=listZones
    """
    with _client(ctx) as client:
        try:
            signed = client.prepare(
                ApiFamily.V1,
                RequestDescriptor(method=method, path=path, query_params=_parse_query(query)),
            )
        except (ExoscaleAuthError, ValueError) as e:
            click.echo(f"[ERROR] {e}", err=True)
            sys.exit(1)

    click.echo(signed.url)


@cli.command("sign-v2")
@click.argument("method")
@click.argument("path")
@query_option
@click.option("--body", "-d", help="Request body, signed as given")
@click.option("--zone", "-z", help="Zone selecting the API host")
@click.option("--expires", type=int, help="Unix timestamp to sign with (default: now)")
@click.pass_context
def sign_v2(
    ctx,
    method: str,
    path: str,
    query: Tuple[str, ...],
    body: Optional[str],
    zone: Optional[str],
    expires: Optional[int],
):
    """
    Print the URL and EXO2-HMAC-SHA256 Authorization header of a v2 request.

    Examples:
        exoscale-auth sign-v2 GET /v2/zone
        exoscale-auth sign-v2 GET /v2/instance --zone de-fra-1 --expires 1610000000
    """
    kwargs = {"clock": lambda: expires} if expires is not None else {}
    with _client(ctx, **kwargs) as client:
        try:
            signed = client.prepare(
                ApiFamily.V2,
                RequestDescriptor(
                    method=method,
                    path=path,
                    query_params=_parse_query(query),
                    body=body,
                    zone=zone,
                ),
            )
        except (ExoscaleAuthError, ValueError) as e:
            click.echo(f"[ERROR] {e}", err=True)
            sys.exit(1)

    click.echo(signed.url)
    click.echo(f"Authorization: {signed.headers['Authorization']}")


@cli.command()
@click.argument("api", type=click.Choice([a.value for a in ApiFamily], case_sensitive=False))
@click.argument("method")
@click.argument("path")
@query_option
@click.option("--body", "-d", help="Request body (JSON text)")
@click.option("--zone", "-z", help="Zone selecting the v2 API host")
@click.pass_context
def request(
    ctx,
    api: str,
    method: str,
    path: str,
    query: Tuple[str, ...],
    body: Optional[str],
    zone: Optional[str],
):
    """
    Perform a signed API request and print the response body.

    Examples:
        exoscale-auth request v2 GET /v2/zone
        exoscale-auth request v1 GET /compute -q command=listVirtualMachines
        exoscale-auth request dns GET /v1/domains
    """
    logger.debug(f"CLI request: {api} {method} {path}")
    with _client(ctx) as client:
        try:
            response = client.request(
                ApiFamily(api.lower()),
                method,
                path,
                query_params=_parse_query(query),
                body=body,
                zone=zone,
            )
        except (ExoscaleAuthError, ValueError) as e:
            click.echo(f"[ERROR] {e}", err=True)
            sys.exit(1)
        except httpx.HTTPError as e:
            click.echo(f"[ERROR] Request failed: {e}", err=True)
            sys.exit(1)

    if response.body.ok:
        click.echo(json.dumps(response.body.value, indent=2))
    else:
        click.echo(f"[WARNING] Response body is not JSON: {response.body.error}", err=True)
        click.echo(response.body.raw.decode("utf-8", errors="replace"))

    if response.status >= 400:
        click.echo(f"[ERROR] HTTP {response.status}", err=True)
        sys.exit(1)


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
