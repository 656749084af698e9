"""
CLI commands for generated artifacts in the output directory.

Thin wrappers over ``iacgraph.core.services.artifact_store``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from iacgraph.core.errors import ArtifactIOError
from iacgraph.core.services.artifact_store import ArtifactStore, DeleteReport


def _store(ctx: click.Context) -> ArtifactStore:
    from iacgraph.main import load_settings_or_exit

    settings = load_settings_or_exit(ctx)
    return ArtifactStore(settings.output_dir, settings.artifact_extension)


def _print_delete(report: DeleteReport, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    elif report.status == "not_found":
        click.secho(f"❌ No files found matching '{report.target}'", fg="red")
    else:
        for name in report.deleted:
            click.secho(f"   🗑  {name}", fg="green")
        for name, err in report.failed.items():
            click.secho(f"   ✗ {name}: {err}", fg="red")
        click.echo(f"   Deleted {report.count}/{report.matched}")

    if report.status in ("not_found", "failed", "partial"):
        sys.exit(1)


@click.group("artifacts")
def artifacts() -> None:
    """Artifacts — list, download and delete generated files."""


@artifacts.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List artifacts in the output directory."""
    store = _store(ctx)
    try:
        items = store.list_artifacts()
    except ArtifactIOError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"files": [a.to_dict() for a in items]}, indent=2))
        return

    if not items:
        click.echo("   No artifacts")
        return
    click.secho(f"📄 Artifacts ({len(items)}) in {store.root}:", fg="cyan", bold=True)
    for a in items:
        click.echo(f"   {a.filename:<40} {a.size:>8} B  [{a.content_type}]")


@artifacts.command("get")
@click.argument("name")
@click.option("--out", "-o", "out_file", type=click.Path(dir_okay=False), default=None,
              help="Write to this file instead of stdout.")
@click.pass_context
def get_cmd(ctx: click.Context, name: str, out_file: str | None) -> None:
    """Print (or save) the artifact NAME."""
    data = _store(ctx).read(name)
    if data is None:
        click.secho(f"❌ File not found: {name}", fg="red", err=True)
        sys.exit(1)

    if out_file:
        Path(out_file).write_bytes(data)
        click.secho(f"💾 Wrote {out_file}", fg="cyan")
    else:
        click.echo(data.decode("utf-8", errors="replace"), nl=False)


@artifacts.command("delete")
@click.argument("fragment")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def delete_cmd(ctx: click.Context, fragment: str, as_json: bool) -> None:
    """Delete every artifact whose file name contains FRAGMENT."""
    try:
        report = _store(ctx).delete_matching(fragment)
    except ArtifactIOError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    _print_delete(report, as_json)


@artifacts.command("clean")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def clean_cmd(ctx: click.Context, yes: bool, as_json: bool) -> None:
    """Delete every artifact in the output directory."""
    store = _store(ctx)
    if not yes:
        click.confirm(f"Delete all files in {store.root}?", abort=True)
    try:
        report = store.delete_all()
    except ArtifactIOError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    _print_delete(report, as_json)
