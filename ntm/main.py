"""
ntm — CLI entrypoint.

Usage:
    ntm --help
    ntm upgrade --check
    ntm version --short
    ntm config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from ntm import __version__
from ntm.core.observability.logging_config import setup_from_flags


@click.group()
@click.version_option(version=__version__, prog_name="ntm")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: $NTM_CONFIG or ~/.config/ntm/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """ntm — named tmux manager."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_from_flags(debug=debug, verbose=verbose, quiet=quiet)


@cli.command()
@click.option("--short", is_flag=True, help="Print only the version number.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def version(short: bool, as_json: bool) -> None:
    """Show the ntm version."""
    from ntm.core.services.upgrade.platform import detect_platform

    if short:
        click.echo(__version__)
        return

    platform_os, platform_arch = detect_platform()
    if as_json:
        click.echo(
            json.dumps(
                {
                    "version": __version__,
                    "platform": f"{platform_os}/{platform_arch}",
                    "python": sys.version.split()[0],
                },
                indent=2,
            )
        )
        return

    click.secho(f"ntm version {__version__}", bold=True)
    click.echo(f"   Platform: {platform_os}/{platform_arch}")


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate the ntm config file."""
    from ntm.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid and result.config is not None:
        upgrade = result.config.upgrade
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        if result.config_path:
            click.echo(f"   File: {result.config_path}")
        click.echo(f"   Upstream: {upgrade.owner}/{upgrade.repo} ({upgrade.api_base})")
        click.echo(f"   Require checksums: {'yes' if upgrade.require_checksums else 'no'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Sub-command groups ──────────────────────────────────────────

from ntm.ui.cli.upgrade import upgrade  # noqa: E402

cli.add_command(upgrade)


if __name__ == "__main__":
    cli()
