from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Dict, NoReturn, Optional

import typer

from app.main import start_control_server
from cli.client import ControlClient
from cli.config import CLIConfig, load_config
from cli.render import render_manifest, render_status
from logging_config import configure_logging
from manifests import ManifestError, fetch_manifest
from models.records import Manifest
from publishers import PublisherConfigError, build_publishers
from services.orchestrator import build_orchestrator
from services.rampup import apply_rampup
from settings import Settings, get_settings


@dataclass
class CLIState:
    config: CLIConfig


app = typer.Typer(
    help="Synthetic-monitoring agent that samples targets and publishes measurements.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _resolve_settings(**overrides: Any) -> Settings:
    changes: Dict[str, Any] = {key: value for key, value in overrides.items() if value is not None}
    return replace(get_settings(), **changes)


def _millis(value: Optional[int]) -> Optional[timedelta]:
    return None if value is None else timedelta(milliseconds=value)


def _load_manifest(settings: Settings) -> Manifest:
    if not settings.manifest_url:
        _fail("MANIFEST_URL not defined in ENV")
    try:
        manifest = fetch_manifest(settings.manifest_url, settings)
    except ManifestError as exc:
        _fail(str(exc))
    if settings.rampup_sensors:
        try:
            manifest = apply_rampup(manifest, settings.default_sample_interval)
        except ValueError as exc:
            _fail(str(exc))
    return manifest


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Control API base URL (defaults to CANARY_CONTROL_URL env or http://127.0.0.1:8099).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the control API to answer.",
    ),
) -> None:
    """Entry point for the CLI."""
    ctx.obj = CLIState(config=load_config(base_url=base_url, timeout=timeout))


@app.command("run")
def run_command(
    manifest_url: Optional[str] = typer.Option(
        None, "--manifest-url", "-m", help="Manifest source (http... or zbx://...)."
    ),
    publishers: Optional[str] = typer.Option(
        None, "--publishers", "-p", help="Comma-separated publisher identifiers."
    ),
    default_interval: Optional[int] = typer.Option(
        None, "--default-interval", min=1, help="Default sample interval in milliseconds."
    ),
    reload_interval: Optional[int] = typer.Option(
        None, "--reload-interval", min=0, help="Periodic manifest reload in milliseconds (0 disables)."
    ),
    rampup: Optional[bool] = typer.Option(
        None, "--rampup/--no-rampup", help="Spread sensor start times across one interval."
    ),
    ppid: Optional[int] = typer.Option(
        None, "--ppid", min=0, help="Exit when the parent PID no longer matches (0 disables)."
    ),
    control_port: Optional[int] = typer.Option(
        None, "--control-port", min=0, help="Serve the control API on this port (0 disables)."
    ),
) -> None:
    """Run the agent until interrupted."""
    settings = _resolve_settings(
        manifest_url=manifest_url,
        publishers=tuple(name.strip() for name in publishers.split(",") if name.strip())
        if publishers
        else None,
        default_sample_interval=_millis(default_interval),
        reload_interval=_millis(reload_interval),
        rampup_sensors=rampup,
        ppid=ppid,
        control_port=control_port,
    )
    configure_logging(settings.log_level)

    manifest = _load_manifest(settings)
    try:
        sinks = build_publishers(settings.publishers, settings)
    except PublisherConfigError as exc:
        _fail(f"Publisher configuration error: {exc}")

    orchestrator = build_orchestrator(settings, manifest, sinks)
    orchestrator.run()
    if settings.control_port:
        start_control_server(orchestrator, settings.control_host, settings.control_port)
    orchestrator.handle_signals()


@app.command("manifest")
def manifest_command(
    manifest_url: Optional[str] = typer.Option(
        None, "--manifest-url", "-m", help="Manifest source (http... or zbx://...)."
    ),
    default_interval: Optional[int] = typer.Option(
        None, "--default-interval", min=1, help="Interval used to compute rampup delays (ms)."
    ),
    rampup: Optional[bool] = typer.Option(
        None, "--rampup/--no-rampup", help="Show rampup start delays."
    ),
) -> None:
    """Fetch the manifest and show its targets."""
    settings = _resolve_settings(
        manifest_url=manifest_url,
        default_sample_interval=_millis(default_interval),
        rampup_sensors=rampup,
    )
    render_manifest(_load_manifest(settings))


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show a running agent's sensors."""
    state = _get_state(ctx)
    client = ControlClient(state.config)
    try:
        payload = client.get_status()
    finally:
        client.close()
    render_status(payload)


@app.command("reload")
def reload_command(ctx: typer.Context) -> None:
    """Ask a running agent to reload its manifest."""
    state = _get_state(ctx)
    client = ControlClient(state.config)
    try:
        client.reload()
    finally:
        client.close()
    typer.secho(f"Reload requested at {state.config.base_url}.", fg=typer.colors.GREEN)
