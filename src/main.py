"""
Workstation provisioning — CLI entrypoint.

Usage:
    provision                 update the system, then pick applications
    provision detect          show host identity and package family
    provision update          bulk system update only
    provision catalog         list installable applications
    provision install ID...   install the given applications, in order
"""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence

import click

from src import __version__
from src.core.config.settings import ConfigError, Settings, load_settings
from src.core.observability.logging_config import setup_logging


def _fail(message: str) -> None:
    """Single ``Error:`` line on stderr, exit 1."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _prompt_selection(registry) -> list[str]:
    """Ask yes/no for every catalog entry, in catalog order."""
    selected: list[str] = []
    for package_id, descriptor in registry.items():
        if click.confirm(f"Do you want to install {descriptor.display_name}?", default=False):
            selected.append(package_id)
        else:
            click.echo(f"Skipping {descriptor.display_name}...")
    return selected


def _run(ctx: click.Context, *, select, update: bool) -> None:
    from src.core.services.provision.orchestration.orchestrator import RunOrchestrator

    orchestrator = RunOrchestrator(
        _settings(ctx),
        select=select,
        notify=click.echo,
        update=update,
    )
    try:
        report = orchestrator.run()
    except click.Abort:
        # EOF or Ctrl-C at a prompt
        _fail("installation prompt aborted; an interactive terminal is required")
        return
    if not report.ok:
        _fail(report.error)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="provision")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """Update this workstation and install desktop applications.

    Without a subcommand: run the system update, then ask which
    applications to install.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_settings()
    except ConfigError as e:
        _fail(str(e))
        return

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = settings.log_level

    setup_logging(level=level, log_file=settings.log_file)

    ctx.obj["settings"] = settings

    if ctx.invoked_subcommand is None:
        _run(ctx, select=_prompt_selection, update=True)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """Show the detected host identity and package family."""
    from src.core.services.provision import ProvisionError, identify, route

    try:
        identity = identify(os_release=_settings(ctx).os_release)
        family = route(identity)
    except ProvisionError as e:
        _fail(str(e))
        return

    if as_json:
        click.echo(json.dumps({
            "os": str(identity.os),
            "distro_id": identity.distro_id,
            "distro_like": list(identity.distro_like),
            "family": str(family),
        }, indent=2))
        return

    click.echo(f"Host:   {identity.describe()}")
    click.echo(f"Family: {family}")


@cli.command()
@click.pass_context
def update(ctx: click.Context) -> None:
    """Run the bulk system update for this host."""
    from src.core.services.provision import ProvisionError, identify, route, run_update

    try:
        family = route(identify(os_release=_settings(ctx).os_release))
        run_update(family, notify=click.echo)
    except ProvisionError as e:
        _fail(str(e))
        return
    click.echo("System update complete.")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def catalog(ctx: click.Context, as_json: bool) -> None:
    """List the applications installable on this host."""
    from src.core.services.provision import ProvisionError, build_registry, identify, route

    settings = _settings(ctx)
    try:
        family = route(identify(os_release=settings.os_release))
    except ProvisionError as e:
        _fail(str(e))
        return
    registry = build_registry(family, settings)

    if as_json:
        click.echo(json.dumps(
            {pid: d.display_name for pid, d in registry.items()}, indent=2,
        ))
        return

    if not registry:
        click.echo(f"No applications available for {family}.")
        return
    for package_id, descriptor in registry.items():
        click.echo(f"{package_id:<20} {descriptor.display_name}")


@cli.command()
@click.argument("package_ids", nargs=-1, required=True)
@click.option("--update/--no-update", default=False, help="Run the system update first.")
@click.pass_context
def install(ctx: click.Context, package_ids: Sequence[str], update: bool) -> None:
    """Install applications by id, in the order given."""
    _run(ctx, select=lambda registry: list(package_ids), update=update)


if __name__ == "__main__":
    cli()
