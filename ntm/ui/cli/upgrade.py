"""
CLI command for self-upgrade.

Thin wrapper over ``ntm.core.services.upgrade``. Builds the invocation
context from flags and config, runs the pipeline, and turns errors into
messages and exit codes.
"""

from __future__ import annotations

import json
import sys

import click

# sink style → click.style kwargs
_STYLES: dict[str, dict] = {
    "ok": {"fg": "green"},
    "warn": {"fg": "yellow"},
    "error": {"fg": "red"},
    "dim": {"dim": True},
    "title": {"fg": "cyan", "bold": True},
}


class ClickSink:
    """Output sink backed by click.echo (stdout, or stderr with ``err``)."""

    def __init__(self, err: bool = False) -> None:
        self._err = err

    def write(self, text: str) -> None:
        click.echo(text, nl=False, err=self._err)

    def line(self, text: str = "", style: str | None = None) -> None:
        click.secho(text, err=self._err, **_STYLES.get(style or "", {}))

    def isatty(self) -> bool:
        stream = sys.stderr if self._err else sys.stdout
        try:
            return stream.isatty()
        except (AttributeError, ValueError):
            return False


class SilentSink:
    """Sink for ``--json`` runs: human progress is suppressed."""

    def write(self, text: str) -> None:
        pass

    def line(self, text: str = "", style: str | None = None) -> None:
        pass

    def isatty(self) -> bool:
        return False


def _make_confirm(err: bool):
    def confirm(prompt: str, default: bool) -> bool:
        try:
            return click.confirm(prompt, default=default, err=err)
        except click.Abort as e:
            raise EOFError("no answer") from e

    return confirm


def _fail(error, as_json: bool) -> None:
    """Render an upgrade error and exit 1."""
    if as_json:
        click.echo(json.dumps({"status": "error", **error.to_dict()}, indent=2))
    else:
        click.echo()
        click.secho(f"❌ {error}", fg="red", err=True)
        if error.remediation:
            click.secho(f"   {error.remediation}", dim=True, err=True)
    sys.exit(1)


@click.command()
@click.option("--check", "check_only", is_flag=True, help="Only check for updates, don't install.")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Auto-confirm upgrade without prompting.")
@click.option("--force", "-f", is_flag=True, help="Reinstall even if already on the latest version.")
@click.option("--strict", is_flag=True, help="Require exact asset name matches (no fallback).")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed asset matching info.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--binary-path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Binary to replace (default: ntm on PATH).",
)
@click.option("--target", default=None, hidden=True, help="Override platform as OS/ARCH.")
@click.pass_context
def upgrade(
    ctx: click.Context,
    check_only: bool,
    assume_yes: bool,
    force: bool,
    strict: bool,
    verbose: bool,
    as_json: bool,
    binary_path: str | None,
    target: str | None,
) -> None:
    """Upgrade ntm to the latest release.

    Examples:

        ntm upgrade            # check and upgrade (with confirmation)

        ntm upgrade --check    # only check for updates

        ntm upgrade --yes      # skip the confirmation prompt

        ntm upgrade --strict   # only exact asset names (CI)
    """
    from ntm import __version__
    from ntm.core.config.loader import ConfigError, load_config
    from ntm.core.context import InvocationContext
    from ntm.core.services.upgrade.catalog import ReleaseCatalogClient
    from ntm.core.services.upgrade.diagnostics import render_report
    from ntm.core.services.upgrade.errors import (
        NoReleasesError,
        ResolutionMissError,
        UpgradeError,
    )
    from ntm.core.services.upgrade.orchestrator import run_upgrade
    from ntm.core.services.upgrade.platform import detect_platform, parse_target

    obj = ctx.obj or {}
    try:
        config = load_config(obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if target:
        try:
            platform_os, platform_arch = parse_target(target)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--target")
    else:
        platform_os, platform_arch = detect_platform()

    profile = config.upgrade
    invocation = InvocationContext(
        output_format="json" if as_json else "text",
        strict=strict,
        verbose=verbose,
        assume_yes=assume_yes,
        force=force,
        check_only=check_only,
        require_checksums=profile.require_checksums,
    )
    machine = invocation.machine_output
    # stdout is reserved for the JSON document in machine mode
    invocation.sink = SilentSink() if machine else ClickSink()
    invocation.confirm = _make_confirm(err=machine)
    client = ReleaseCatalogClient(profile)

    try:
        result = run_upgrade(
            invocation,
            client,
            __version__,
            platform_os,
            platform_arch,
            install_path=binary_path,
        )
    except NoReleasesError as e:
        if machine:
            click.echo(json.dumps({"status": "no_releases", **e.to_dict()}, indent=2))
        else:
            click.echo()
            click.secho(f"⚠️  {e}", fg="yellow")
            click.secho(f"   {e.remediation}", dim=True)
        return
    except ResolutionMissError as e:
        if machine:
            click.echo(e.report.to_json(), err=True)
            _fail(e, as_json=True)
        click.echo(err=True)
        click.echo(render_report(e.report, profile, color=sys.stderr.isatty()), err=True)
        sys.exit(1)
    except UpgradeError as e:
        _fail(e, machine)

    if machine:
        click.echo(json.dumps(result.to_dict(), indent=2))
