"""hubsend CLI - Signed webhook delivery."""

import asyncio
import json
import sys
from collections.abc import Callable, Coroutine
from typing import Any, ParamSpec, TypeVar

import click
from pydantic import ValidationError
from rich.console import Console

from hubsend.common.errors import HubsendError
from hubsend.common.logging import setup_logging
from hubsend.common.settings import Settings
from hubsend.delivery.payload import normalize_data
from hubsend.delivery.pipeline import run_delivery
from hubsend.delivery.signature import build_signature_headers, sign_payload
from hubsend.delivery.validation import validate_secret

console = Console()
err_console = Console(stderr=True)

P = ParamSpec("P")
R = TypeVar("R")


def async_command(f: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, R]:
    """Decorator to run async commands."""

    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def _load_settings(**overrides: Any) -> Settings:
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        err_console.print(f"[red]Invalid configuration: {exc}[/red]")
        sys.exit(2)


@click.group()
def cli() -> None:
    """hubsend - Deliver HMAC-signed webhooks."""


@cli.command("send")
@click.option("--url", help="Delivery target (http or https)")
@click.option("--data", help="Payload; JSON objects and arrays are sent as structured values")
@click.option("--headers", help="JSON object of extra headers")
@click.option("--secret", help="HMAC secret (prefer HUBSEND_SECRET)")
@click.option("--timeout", type=int, help="Per-attempt timeout in milliseconds")
@click.option("--retries", type=int, help="Maximum number of attempts")
@click.option("--revision", help="Source revision for the X-Hub-SHA header")
@click.option("--output-file", help="Append 'response=<json>' here on success")
@click.option("--metrics-file", help="Write delivery metrics here in Prometheus text format")
@async_command
async def send(
    url: str | None,
    data: str | None,
    headers: str | None,
    secret: str | None,
    timeout: int | None,
    retries: int | None,
    revision: str | None,
    output_file: str | None,
    metrics_file: str | None,
) -> None:
    """Send one signed payload, retrying transport failures."""
    settings = _load_settings(
        url=url,
        data=data,
        headers=headers,
        secret=secret,
        timeout=timeout,
        retries=retries,
        revision=revision,
        output_file=output_file,
        metrics_file=metrics_file,
    )
    setup_logging(settings.log_level, settings.log_format)

    report = await run_delivery(settings)
    if report.ok:
        click.echo(report.output)
        return

    err_console.print(f"[red]{report.message}[/red]")
    sys.exit(report.exit_code)


@cli.command("sign")
@click.option("--data", required=True, help="Payload to sign")
@click.option("--secret", help="HMAC secret (prefer HUBSEND_SECRET)")
@click.option("--revision", help="Source revision for the X-Hub-SHA header")
def sign_cmd(data: str, secret: str | None, revision: str | None) -> None:
    """Print the headers a delivery of DATA would carry."""
    settings = _load_settings(secret=secret, revision=revision)
    try:
        validate_secret(settings.secret)
    except HubsendError as exc:
        err_console.print(f"[red]{exc.message}[/red]")
        sys.exit(1)

    signature = sign_payload(settings.secret, normalize_data(data))
    headers = build_signature_headers(signature, settings.revision)
    click.echo(json.dumps(headers, indent=2))


@cli.command("receive")
@click.option("--host", help="Bind host")
@click.option("--port", type=int, help="Bind port")
@click.option("--secret", help="HMAC secret used to verify deliveries")
def receive_cmd(host: str | None, port: int | None, secret: str | None) -> None:
    """Run a local receiver that verifies delivery signatures."""
    from hubsend.receiver.main import main as receiver_main

    settings = _load_settings(receiver_host=host, receiver_port=port, secret=secret)
    console.print(
        f"[green]Listening on http://{settings.receiver_host}:{settings.receiver_port}[/green]"
    )
    receiver_main(settings)


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
