"""
iacgraph — CLI entrypoint.

Usage:
    iacgraph --help
    iacgraph serve
    iacgraph generate --provider aws --module VPC:--cidr,10.0.0.0/16
    iacgraph artifacts list
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from iacgraph import __version__
from iacgraph.core.observability.logging_config import level_from_flags, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="iacgraph")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to iacgraph.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """iacgraph — compile service graphs into Terraform."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )


def load_settings_or_exit(ctx: click.Context):  # type: ignore[no-untyped-def]
    """Load settings for a command, exiting with a message on ConfigError."""
    from iacgraph.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _parse_module(value: str) -> dict:
    """``NAME`` or ``NAME:arg1,arg2`` → {"name", "args"}."""
    name, _, raw_args = value.partition(":")
    args = [a for a in raw_args.split(",") if a] if raw_args else []
    return {"name": name, "args": args}


@cli.command()
@click.option("--host", default=None, help="Bind address (default: from config).")
@click.option("--port", "-p", default=None, type=int, help="Port number (default: from config).")
@click.option("--mock", is_flag=True, help="Use the mock adapter (no generator processes).")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, mock: bool) -> None:
    """Start the HTTP service for the graph editor."""
    from iacgraph.ui.web.server import create_app, run_server

    settings = load_settings_or_exit(ctx)
    host = host or settings.server.host
    port = port or settings.server.port

    app = create_app(settings=settings, mock_mode=mock)
    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("⚡ iacgraph", bold=True)
    click.echo(f"   API:        http://{host}:{port}")
    click.echo(f"   Generators: {settings.generators_dir}")
    click.echo(f"   Output:     {settings.output_dir}")
    if mock:
        click.secho("   Mode: mock (no generator processes)", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


@cli.command()
@click.option("--provider", "-p", default=None, help="Cloud provider (aws, gcp, ...).")
@click.option(
    "--module",
    "-m",
    "modules",
    multiple=True,
    help="Module as NAME or NAME:arg1,arg2. Repeat in generation order.",
)
@click.option(
    "--graph",
    "graph_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Editor graph JSON file (replaces --provider/--module).",
)
@click.option("--out", "-o", "out_file", type=click.Path(dir_okay=False), default=None,
              help="Write the merged config here instead of stdout.")
@click.option("--mock", is_flag=True, help="Use the mock adapter (no generator processes).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def generate(
    ctx: click.Context,
    provider: str | None,
    modules: tuple[str, ...],
    graph_file: str | None,
    out_file: str | None,
    mock: bool,
    as_json: bool,
) -> None:
    """Run the generators once and print the merged Terraform.

    Examples:

        iacgraph generate --provider aws

        iacgraph generate -p aws -m VPC:--cidr,10.0.0.0/16 -m EC2

        iacgraph generate --graph canvas.json --out main.tf
    """
    from pydantic import ValidationError

    from iacgraph.adapters import GeneratorAdapter, MockAdapter
    from iacgraph.core.engine.planner import GeneratorCatalog
    from iacgraph.core.models.generation import GenerationRequest
    from iacgraph.core.models.graph import Graph
    from iacgraph.core.services.watch_service import DirectoryWatcher
    from iacgraph.core.use_cases.generate import run_generation

    settings = load_settings_or_exit(ctx)

    try:
        if graph_file:
            payload = json.loads(Path(graph_file).read_text(encoding="utf-8"))
            gen_request = Graph.from_editor(payload).to_request()
        else:
            if not provider:
                raise click.UsageError("--provider is required without --graph")
            gen_request = GenerationRequest(
                provider=provider,
                modules=[_parse_module(m) for m in modules],
            )
    except (ValidationError, json.JSONDecodeError) as e:
        click.secho(f"❌ Invalid request: {e}", fg="red")
        sys.exit(2)

    if mock:
        adapter = MockAdapter(merged_file=settings.merged_file)
    else:
        adapter = GeneratorAdapter(settings.runner, timeout=settings.step_timeout)

    watcher = DirectoryWatcher(
        settings.watch_root,
        settings.output_dir,
        extension=settings.artifact_extension,
        poll_interval=settings.poll_interval,
    )
    try:
        result = run_generation(
            gen_request,
            settings,
            watcher,
            adapter,
            catalog=GeneratorCatalog.from_settings(settings, must_exist=not mock),
        )
    finally:
        watcher.stop()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
        sys.exit(0 if result.ok else 1)

    report = result.report
    if report is not None and not ctx.obj.get("quiet"):
        for receipt in report.receipts:
            step = receipt.step_index
            marker, color = ("✓", "green") if receipt.ok else ("✗", "red")
            click.secho(f"   {marker} step {step}", fg=color, nl=False, err=True)
            click.echo(f"  {' '.join(receipt.command)} ({receipt.duration_ms}ms)", err=True)
            if receipt.failed and receipt.error:
                for line in receipt.error.split("\n")[:5]:
                    click.echo(f"     │ {line}", err=True)

    if result.error is not None:
        click.secho(f"❌ [{result.error.kind}] {result.error.message}", fg="red", err=True)
        sys.exit(1)

    config = result.config or ""
    if out_file:
        Path(out_file).write_text(config, encoding="utf-8")
        click.secho(f"💾 Wrote {out_file}", fg="cyan", err=True)
    else:
        click.echo(config, nl=not config.endswith("\n"))


# ── Register sub-command groups from iacgraph/ui/cli/ ─────────────

from iacgraph.ui.cli.artifacts import artifacts  # noqa: E402

cli.add_command(artifacts)


if __name__ == "__main__":
    cli()
