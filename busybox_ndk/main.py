"""
BusyBox NDK — CLI entrypoint.

Usage:
    busybox-ndk build                      # 1.36.1, all four architectures
    busybox-ndk build 1.36.1 "arm64 arm"
    busybox-ndk arches
    python -m busybox_ndk.main --help
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from busybox_ndk import __version__
from busybox_ndk.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="busybox-ndk")
@click.option("--verbose", "-v", is_flag=True, help="Log the output of every tool that runs.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to busybox-ndk.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """BusyBox NDK — build BusyBox for Android and package a Magisk module."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose or debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("BBNDK_LOG_LEVEL", "INFO")

    setup_logging(
        level=level,
        log_file=os.environ.get("BBNDK_LOG_FILE"),
        log_file_level=os.environ.get("BBNDK_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


@cli.command()
@click.argument("version", required=False)
@click.argument("archs", required=False)
@click.option("--api-level", type=int, default=None, help="Android API level (default: 21).")
@click.option(
    "--source",
    "source_method",
    type=click.Choice(["tarball", "git"]),
    default=None,
    help="How to fetch BusyBox (default: tarball).",
)
@click.option("--jobs", "-j", type=int, default=None, help="Parallel make jobs (default: CPU count).")
@click.option("--no-clean", is_flag=True, help="Keep the previous output directory.")
@click.option("--dry-run", is_flag=True, help="Validate every step but run nothing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def build(
    ctx: click.Context,
    version: str | None,
    archs: str | None,
    api_level: int | None,
    source_method: str | None,
    jobs: int | None,
    no_clean: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Build BusyBox VERSION for ARCHS and package the Magisk module.

    ARCHS is a space-separated subset of: arm arm64 x86 x86_64.

    Examples:

        busybox-ndk build

        busybox-ndk build 1.36.1 arm64

        busybox-ndk build 1.36.1 "arm arm64" --source git
    """
    from busybox_ndk.core.config.loader import resolve_config
    from busybox_ndk.core.errors import ConfigError
    from busybox_ndk.core.services.packager import format_summary
    from busybox_ndk.core.use_cases.build import run_build

    try:
        config = resolve_config(
            busybox_version=version,
            archs=archs,
            config_path=ctx.obj.get("config_path"),
            api_level=api_level,
            source_method=source_method,
            jobs=jobs,
        )
    except ConfigError as e:
        click.secho(f"[ERROR] {e}", fg="red", err=True)
        sys.exit(1)

    result = run_build(
        config, dry_run=dry_run, clean=not no_clean, verbose=ctx.obj.get("verbose", False),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        click.secho(f"[ERROR] {result.error}", fg="red", err=True)
        sys.exit(1)

    if dry_run:
        assert result.runner is not None
        click.secho(f"\n[dry-run] {len(result.runner.receipts)} actions validated", fg="yellow")
        for receipt in result.runner.receipts:
            click.echo(f"   ⊘ {receipt.action_id}")
        click.echo()
        return

    click.echo()
    for line in format_summary(config.busybox_version, config.archs, config.zip_name):
        if line:
            click.secho("[INFO] ", fg="green", nl=False)
        click.echo(line)
    click.echo()


@cli.command()
@click.option("--api-level", type=int, default=21, show_default=True, help="Android API level.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def arches(api_level: int, as_json: bool) -> None:
    """Show the supported architectures and their target triples."""
    from busybox_ndk.core.models.arch import ARCHITECTURES

    if as_json:
        data = {
            name: {
                "triple": spec.triple(api_level),
                "abi": spec.abi,
                "magisk_arch": spec.magisk_arch,
                "install_subdir": spec.install_subdir,
            }
            for name, spec in ARCHITECTURES.items()
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo()
    for name, spec in ARCHITECTURES.items():
        click.secho(f"   {name:<7}", fg="cyan", bold=True, nl=False)
        click.echo(f" {spec.triple(api_level):<28} {spec.abi:<12} → custom/{spec.install_subdir}")
    click.echo()


@cli.command()
def host() -> None:
    """Show the NDK prebuilt toolchain directory for this machine."""
    from busybox_ndk.core.services.ndk import detect_host_tag

    click.echo(detect_host_tag())


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def adapters(as_json: bool) -> None:
    """Show which external tools are available."""
    from busybox_ndk.adapters.registry import default_registry

    status = default_registry().adapter_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    click.echo()
    for name, info in status.items():
        if info["available"]:
            click.secho(f"   ✓ {name}", fg="green", nl=False)
        else:
            click.secho(f"   ✗ {name}", fg="red", nl=False)
        click.echo(f"  ({info['type']})")
    click.echo()


if __name__ == "__main__":
    cli()
