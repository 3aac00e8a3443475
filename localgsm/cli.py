"""
LocalGSM Command-Line Interface

Provides commands to start the emulator and to manage secrets on a running
instance.

Author: LocalGSM Team
Date: 2026-10-19
"""

import base64
import json
import sys
from pathlib import Path
from typing import Optional

import click
import httpx
import uvicorn
from pydantic import ValidationError

from localgsm import __version__
from localgsm.core.config_manager import ConfigManager
from localgsm.core.logging_config import setup_logging
from localgsm.services.secretmanager.exceptions import InvalidResourceNameError
from localgsm.services.secretmanager.names import (
    parse_secret_name,
    parse_secret_version_name,
    validate_project_id,
)


@click.group()
@click.version_option(version=__version__, prog_name="localgsm")
@click.pass_context
def cli(ctx):
    """
    LocalGSM - Local Google Secret Manager Emulator

    Run the Secret Manager API locally for development and testing.
    """
    ctx.ensure_object(dict)


@cli.command()
@click.option("--host", help="Host to bind to (default: 0.0.0.0 or GSM_HOST)")
@click.option("--port", type=int, help="Port to bind to (default: 8085 or GSM_PORT)")
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
    help="Logging level",
)
@click.option(
    "--storage-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Snapshot file enabling persistence (default: GSM_STORAGE_FILE)",
)
@click.option(
    "--enable-auth/--disable-auth",
    default=None,
    help="Require a bearer token on API requests",
)
def start(
    host: Optional[str],
    port: Optional[int],
    config_file: Optional[Path],
    log_level: Optional[str],
    storage_file: Optional[Path],
    enable_auth: Optional[bool],
):
    """
    Start the LocalGSM server.

    Examples:
        localgsm start
        localgsm start --port 9090 --storage-file ./data/secrets.json
        localgsm start --config config.yaml --log-level DEBUG
    """
    overrides = {}
    if host:
        overrides.setdefault("server", {})["host"] = host
    if port:
        overrides.setdefault("server", {})["port"] = port
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level.upper()
    if storage_file:
        overrides.setdefault("storage", {})["file_path"] = str(storage_file)
    if enable_auth is not None:
        overrides.setdefault("auth", {})["enabled"] = enable_auth

    try:
        config = ConfigManager().load(
            config_file=str(config_file) if config_file else None,
            cli_overrides=overrides,
        )
    except (ValidationError, ValueError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(
        level=config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
        rotation_size=config.logging.rotation_size,
        rotation_count=config.logging.rotation_count,
        module_levels=config.logging.module_levels,
    )

    click.echo(f"Starting LocalGSM v{__version__}")
    click.echo(f"Host: {config.server.host}:{config.server.port}")
    click.echo(f"Log Level: {config.logging.level}")
    if config.storage.file_path:
        click.echo(f"Storage File: {config.storage.file_path}")
    click.echo()

    from localgsm.app import create_app

    try:
        uvicorn.run(
            create_app(config),
            host=config.server.host,
            port=config.server.port,
            log_level=config.logging.level.lower(),
            timeout_graceful_shutdown=int(config.server.shutdown_timeout),
            access_log=False,
        )
    except KeyboardInterrupt:
        click.echo("\nShutting down LocalGSM...")


@cli.command()
def version():
    """Show LocalGSM version."""
    click.echo(f"LocalGSM version {__version__}")


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
def config(config_file: Optional[Path]):
    """
    Show the resolved configuration.

    Combines defaults, the optional configuration file and GSM_* variables.
    """
    try:
        resolved = ConfigManager().load(config_file=str(config_file) if config_file else None)
    except (ValidationError, ValueError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps(resolved.model_dump(mode="json"), indent=2))


# ========== Secret Management Commands ==========

def server_options(func):
    """Add --host/--port options pointing at a running emulator."""
    func = click.option(
        "--port",
        default=8085,
        help="LocalGSM port",
        show_default=True,
        type=int,
    )(func)
    func = click.option(
        "--host",
        default="127.0.0.1",
        help="LocalGSM host",
        show_default=True,
    )(func)
    return func


def _url(host: str, port: int, path: str) -> str:
    return f"http://{host}:{port}/v1/{path}"


def _fail(action: str, e: httpx.HTTPError) -> None:
    """Report a failed request and exit."""
    if isinstance(e, httpx.HTTPStatusError):
        try:
            message = e.response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = str(e)
        click.echo(f"[ERROR] Failed to {action}: {message}", err=True)
    else:
        click.echo(f"[ERROR] Failed to {action}: {e}", err=True)
    sys.exit(1)


def _parse(parser, name: str, **kwargs):
    try:
        return parser(name, **kwargs)
    except InvalidResourceNameError as e:
        raise click.BadParameter(e.message, param_hint="NAME")


@cli.group()
def secrets():
    """
    Manage secrets on a running emulator.

    NAME arguments are resource names such as projects/my-project/secrets/db-password.
    """
    pass


@secrets.command()
@click.argument("name")
@click.option(
    "--label",
    "labels",
    multiple=True,
    help="Label in key=value format (can specify multiple times)",
)
@server_options
def create(name: str, labels: tuple, host: str, port: int):
    """
    Create a secret.

    Examples:
        localgsm secrets create projects/my-project/secrets/db-password
        localgsm secrets create projects/my-project/secrets/api-key --label env=dev
    """
    secret_name = _parse(parse_secret_name, name)

    labels_dict = {}
    for label in labels:
        if "=" in label:
            key, val = label.split("=", 1)
            labels_dict[key] = val

    request_data = {"secretId": secret_name.secret_id, "secret": {"labels": labels_dict}}

    try:
        response = httpx.post(
            _url(host, port, f"projects/{secret_name.project_id}/secrets"),
            json=request_data,
            timeout=10.0,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        _fail("create secret", e)

    result = response.json()
    click.echo("[OK] Secret created")
    click.echo(f"   Name: {result['name']}")
    click.echo(f"   Created: {result['createTime']}")


@secrets.command()
@click.argument("name")
@server_options
def get(name: str, host: str, port: int):
    """Show secret metadata."""
    secret_name = _parse(parse_secret_name, name)

    try:
        response = httpx.get(_url(host, port, secret_name.resource_name), timeout=10.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        _fail("get secret", e)

    click.echo(json.dumps(response.json(), indent=2))


@secrets.command(name="list")
@click.argument("project_id")
@click.option("--page-size", type=int, help="Maximum secrets per request")
@server_options
def list_secrets(project_id: str, page_size: Optional[int], host: str, port: int):
    """
    List all secrets of a project, following page tokens.

    Example:
        localgsm secrets list my-project
    """
    try:
        validate_project_id(project_id)
    except InvalidResourceNameError as e:
        raise click.BadParameter(e.message, param_hint="PROJECT_ID")

    params = {"pageSize": page_size} if page_size else {}
    names = []
    try:
        while True:
            response = httpx.get(
                _url(host, port, f"projects/{project_id}/secrets"),
                params=params,
                timeout=10.0,
            )
            response.raise_for_status()
            result = response.json()
            names.extend(secret["name"] for secret in result.get("secrets", []))
            if not result.get("nextPageToken"):
                break
            params["pageToken"] = result["nextPageToken"]
    except httpx.HTTPError as e:
        _fail("list secrets", e)

    if not names:
        click.echo("No secrets found.")
        return

    click.echo(f"Found {len(names)} secret(s):")
    for secret_name in names:
        click.echo(f"  - {secret_name}")


@secrets.command()
@click.argument("name")
@server_options
def delete(name: str, host: str, port: int):
    """Delete a secret and all of its versions."""
    secret_name = _parse(parse_secret_name, name)

    try:
        response = httpx.delete(_url(host, port, secret_name.resource_name), timeout=10.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        _fail("delete secret", e)

    click.echo(f"[OK] Secret deleted: {secret_name.resource_name}")


@secrets.command(name="add-version")
@click.argument("name")
@click.argument("value")
@server_options
def add_version(name: str, value: str, host: str, port: int):
    """
    Add a version holding VALUE.

    Example:
        localgsm secrets add-version projects/my-project/secrets/db-password "s3cret"
    """
    secret_name = _parse(parse_secret_name, name)
    payload = base64.b64encode(value.encode("utf-8")).decode("ascii")

    try:
        response = httpx.post(
            _url(host, port, f"{secret_name.resource_name}:addVersion"),
            json={"payload": {"data": payload}},
            timeout=10.0,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        _fail("add version", e)

    result = response.json()
    click.echo("[OK] Version added")
    click.echo(f"   Name: {result['name']}")
    click.echo(f"   SHA-256: {result['checksum']['sha256']}")


@secrets.command()
@click.argument("name")
@server_options
def access(name: str, host: str, port: int):
    """
    Print the payload of a version (a bare secret name means latest).

    Examples:
        localgsm secrets access projects/my-project/secrets/db-password
        localgsm secrets access projects/my-project/secrets/db-password/versions/2
    """
    version_name = _parse(parse_secret_version_name, name, default_latest=True)

    try:
        response = httpx.get(
            _url(host, port, f"{version_name.resource_name}:access"),
            timeout=10.0,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        _fail("access version", e)

    data = base64.b64decode(response.json()["payload"]["data"])
    click.echo(data.decode("utf-8", errors="replace"))


@secrets.command()
@click.argument("name")
@server_options
def versions(name: str, host: str, port: int):
    """List versions of a secret, newest first."""
    secret_name = _parse(parse_secret_name, name)

    try:
        response = httpx.get(_url(host, port, f"{secret_name.resource_name}/versions"), timeout=10.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        _fail("list versions", e)

    items = response.json().get("versions", [])
    if not items:
        click.echo("No versions found.")
        return

    click.echo(f"Found {len(items)} version(s):")
    for item in items:
        click.echo(f"  - {item['name']} [{item['state']}] created {item['createTime']}")


@secrets.command(name="delete-version")
@click.argument("name")
@server_options
def delete_version(name: str, host: str, port: int):
    """Delete a single version."""
    version_name = _parse(parse_secret_version_name, name)

    try:
        response = httpx.delete(_url(host, port, version_name.resource_name), timeout=10.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        _fail("delete version", e)

    click.echo(f"[OK] Version deleted: {version_name.resource_name}")


def main():
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
