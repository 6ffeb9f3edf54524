from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from typing import Any, Optional

import click

from . import __version__
from .client import InstantlyClient
from .config import ClientConfig
from .env_loader import load_env_files
from .exceptions import InstantlyError, MissingCredentialsError
from .logging_config import configure_logging

_logger = logging.getLogger(__name__)

API_KEY_ENV = "INSTANTLY_API_KEY"


def make_client() -> InstantlyClient:
    """Build a client from INSTANTLY_* environment variables."""
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise MissingCredentialsError([API_KEY_ENV])
    return InstantlyClient(api_key, ClientConfig.from_env())


def _client_or_exit() -> InstantlyClient:
    try:
        return make_client()
    except MissingCredentialsError as e:
        needed = ", ".join(e.missing)
        msg = (
            f"Missing Instantly credentials: {needed}\n\n"
            "Set these environment variables (or create a .env file), e.g.:\n"
            "  INSTANTLY_API_KEY=...          # Settings > Integrations > API key\n"
            "  INSTANTLY_HOST=api.instantly.ai  # optional\n"
            "  INSTANTLY_API_VERSION=1        # optional\n"
            "  INSTANTLY_RATE_LIMIT=10        # optional; requests per second"
        )
        raise click.ClickException(msg) from e
    except InstantlyError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
)
@click.version_option(__version__, "--version", prog_name="instantly")
@click.option(
    "-v",
    "--verbose",
    "loglevel",
    flag_value=logging.INFO,
    default=None,
    help="Enable INFO logs.",
)
@click.option(
    "-vv",
    "--very-verbose",
    "loglevel",
    flag_value=logging.DEBUG,
    help="Enable DEBUG logs.",
)
@click.pass_context
def cli(ctx: click.Context, loglevel: Optional[int]) -> None:
    """Instantly API CLI. Check credentials and inspect a workspace."""
    configure_logging(loglevel)
    load_env_files(quiet=True)
    _logger.debug("CLI start, version=%s", __version__)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("whoami")
def cmd_whoami() -> None:
    """Verify the API key and print the workspace name."""
    client = _client_or_exit()
    try:
        workspace = client.authenticate()
    except InstantlyError as e:
        raise click.ClickException(f"Authentication failed: {e}") from e
    _logger.info("Authenticated against %s", client.config.base_url)
    click.echo(f"Workspace: {workspace}")


@cli.command("campaigns")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON.")
def cmd_campaigns(as_json: bool) -> None:
    """List campaigns."""
    client = _client_or_exit()
    try:
        campaigns = client.list_campaigns()
    except InstantlyError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        _echo_json([asdict(c) for c in campaigns])
        return
    for c in campaigns:
        click.echo(f"{c.id}\t{c.name}")


@cli.command("summary")
@click.argument("campaign_id")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON.")
def cmd_summary(campaign_id: str, as_json: bool) -> None:
    """Show lead counts for one campaign."""
    client = _client_or_exit()
    try:
        s = client.get_campaign_summary(campaign_id)
    except InstantlyError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        _echo_json(asdict(s))
        return
    click.echo(f"{s.campaign_name} ({s.campaign_id})")
    click.echo(f"  Leads:      {s.total_leads}")
    click.echo(f"  Contacted:  {s.contacted}")
    click.echo(f"  Read:       {s.leads_who_read}")
    click.echo(f"  Replied:    {s.leads_who_replied}")
    click.echo(f"  Bounced:    {s.bounced}")
    click.echo(f"  Completed:  {s.completed}")


@cli.command("accounts")
@click.option("--limit", type=click.IntRange(min=1), default=100, show_default=True)
@click.option("--skip", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON.")
def cmd_accounts(limit: int, skip: int, as_json: bool) -> None:
    """List sending accounts."""
    client = _client_or_exit()
    try:
        accounts = client.list_accounts(limit=limit, skip=skip)
    except InstantlyError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        _echo_json([asdict(a) for a in accounts])
        return
    for a in accounts:
        daily = a.payload.daily_limit if a.payload else "-"
        click.echo(f"{a.email}\tdaily_limit={daily}")


@cli.command("vitals")
@click.argument("emails", nargs=-1, required=True)
def cmd_vitals(emails: tuple[str, ...]) -> None:
    """Check MX/SPF/DKIM/DMARC for sending accounts."""
    client = _client_or_exit()
    try:
        ok, failed = client.check_account_vitals(emails)
    except InstantlyError as e:
        raise click.ClickException(str(e)) from e

    for v in ok + failed:
        flags = " ".join(
            f"{name}={'ok' if value else 'FAIL'}"
            for name, value in (("mx", v.mx), ("spf", v.spf), ("dkim", v.dkim), ("dmarc", v.dmarc))
        )
        click.echo(f"{v.domain}\t{flags}")
    if failed:
        raise click.ClickException(f"{len(failed)} domain(s) failed vitals checks")


@cli.command("lead")
@click.argument("campaign_id")
@click.argument("email")
def cmd_lead(campaign_id: str, email: str) -> None:
    """Show one lead from a campaign."""
    client = _client_or_exit()
    try:
        lead = client.get_lead_from_campaign(campaign_id, email)
    except InstantlyError as e:
        raise click.ClickException(str(e)) from e
    _echo_json(asdict(lead))
