# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for mail-composer.

Usage:
    mail-composer compose --from me@example.com --to you@example.com \\
        --subject "Hello" --body "Hello world!"
    mail-composer send --from me@example.com --to you@example.com \\
        --subject "Report" --html-file report.html --attach report.pdf
    mail-composer transports
    mail-composer mime-type report.pdf

Transports are read from the INI file given with ``--config`` (or
``MC_CONFIG``), see :func:`mail_composer.config_loader.load_settings`.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from . import __version__
from .config_loader import build_registry, load_settings
from .errors import MailComposerError
from .message import Message
from .mime_types import resolve_mime_type
from .models import Attachment, Settings, SMTPConfig
from .transports import SMTPTransport, TransportRegistry

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def _parse_headers(values: Tuple[str, ...]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected Name=Value, got {item!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def _read_attachments(paths: Tuple[str, ...], inline: Tuple[str, ...]) -> List[Attachment]:
    attachments = [Attachment(filename=Path(path).name, contents=Path(path).read_bytes()) for path in paths]
    for item in inline:
        cid, sep, path = item.partition("=")
        if not sep or not cid.strip():
            raise click.BadParameter(f"expected CID=PATH, got {item!r}", param_hint="--inline")
        attachments.append(Attachment(filename=Path(path).name, contents=Path(path).read_bytes(), cid=cid))
    return attachments


def message_options(func):
    """Attach the options shared by ``compose`` and ``send``."""
    options = [
        click.option("--from", "sender", help="Sender address."),
        click.option("--to", help="Comma-separated To addresses."),
        click.option("--cc", help="Comma-separated Cc addresses."),
        click.option("--bcc", help="Comma-separated Bcc addresses."),
        click.option("--reply-to", help="Reply-To address."),
        click.option("--subject", "-s", default="", help="Message subject."),
        click.option("--body", default="", help="Plain text body."),
        click.option("--body-file", type=click.Path(exists=True, dir_okay=False), help="Read the plain body from a file."),
        click.option("--html-file", type=click.Path(exists=True, dir_okay=False), help="Read the HTML body from a file."),
        click.option("--attach", multiple=True, type=click.Path(exists=True, dir_okay=False), help="Attach a file (repeatable)."),
        click.option("--inline", multiple=True, metavar="CID=PATH", help="Embed a file referenced as cid:CID (repeatable)."),
        click.option("--header", multiple=True, metavar="NAME=VALUE", help="Add a custom header (repeatable)."),
        click.option("--encoding", default=None, help="Transfer encoding of text parts."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_message(settings: Settings, registry: TransportRegistry, params: Dict[str, Any], **extra: Any) -> Message:
    """Create a :class:`Message` from the command line parameters."""
    body = params["body"]
    if params.get("body_file"):
        body = Path(params["body_file"]).read_text(encoding="utf-8")
    html: Optional[str] = None
    if params.get("html_file"):
        html = Path(params["html_file"]).read_text(encoding="utf-8")

    return Message(
        registry=registry,
        sender=params.get("sender"),
        to=params.get("to"),
        cc=params.get("cc"),
        bcc=params.get("bcc"),
        reply_to=params.get("reply_to"),
        subject=params.get("subject") or "",
        body=body,
        html=html,
        attachments=_read_attachments(params.get("attach", ()), params.get("inline", ())),
        headers=_parse_headers(params.get("header", ())),
        charset=settings.charset,
        encoding=params.get("encoding") or settings.encoding,
        debug=settings.debug,
        **extra,
    )


@click.group()
@click.version_option(__version__)
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), help="Path to the INI configuration file.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str]) -> None:
    """mail-composer CLI - Compose RFC 2822 messages and deliver them."""
    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        print_error(str(exc))
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    ctx.obj = {"settings": settings, "registry": build_registry(settings)}


@main.command("compose")
@message_options
@click.pass_context
def compose_cmd(ctx: click.Context, **params: Any) -> None:
    """Print the composed message without sending it."""
    try:
        message = build_message(ctx.obj["settings"], ctx.obj["registry"], params)
    except (ValidationError, OSError) as exc:
        print_error(str(exc))
        sys.exit(1)

    selected = message.select_transport()
    composed = message.compose(selected[1] if selected else None)
    click.echo(composed.as_string())


@main.command("send")
@message_options
@click.option("--smtp-host", help="Send through this SMTP server instead of the configured transports.")
@click.option("--smtp-port", type=int, default=25, show_default=True, help="Port of --smtp-host.")
@click.pass_context
def send_cmd(ctx: click.Context, smtp_host: Optional[str], smtp_port: int, **params: Any) -> None:
    """Compose the message and deliver it."""
    settings: Settings = ctx.obj["settings"]
    extra: Dict[str, Any] = {}
    if smtp_host:
        extra["transport"] = SMTPTransport(
            SMTPConfig(host=smtp_host, port=smtp_port), log_delivery_activity=settings.log_delivery_activity
        )

    try:
        message = build_message(settings, ctx.obj["registry"], params, **extra)
    except (ValidationError, OSError) as exc:
        print_error(str(exc))
        sys.exit(1)

    message.events.subscribe("forward", lambda old, new: console.print(f"[yellow]forward[/yellow] {old} -> {new}"))
    message.events.subscribe("defer", lambda address: console.print(f"[yellow]defer[/yellow] {address}"))
    message.events.subscribe("retain", lambda address: console.print(f"[red]retain[/red] {address}"))

    try:
        success = run_async(message.deliver())
    except MailComposerError as exc:
        print_error(f"{exc} ({exc.code})")
        sys.exit(1)

    if success:
        print_success(f"Message #{message.sequence} delivered")
    else:
        console.print(f"[yellow]Message #{message.sequence} accepted, delivery not confirmed[/yellow]")


@main.command("transports")
@click.pass_context
def transports_cmd(ctx: click.Context) -> None:
    """List the registered transports in selection order."""
    registry: TransportRegistry = ctx.obj["registry"]
    if not len(registry):
        console.print("[dim]No transports configured.[/dim]")
        return

    selected = registry.select()
    table = Table(title="Transports")
    table.add_column("Order", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Configured")
    table.add_column("Selected")
    for position, entry in enumerate(registry, start=1):
        table.add_row(
            str(position),
            entry.name,
            "yes" if entry.predicate(entry.transport) else "no",
            "[green]●[/green]" if selected is not None and selected.name == entry.name else "",
        )
    console.print(table)


@main.command("mime-type")
@click.argument("filename")
def mime_type_cmd(filename: str) -> None:
    """Print the content type used for FILENAME."""
    click.echo(resolve_mime_type(filename))


if __name__ == "__main__":
    main()
