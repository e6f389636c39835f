from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Iterable

import typer

from models.records import Manifest


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _millis(value: timedelta) -> int:
    return int(value.total_seconds() * 1000)


def render_manifest(manifest: Manifest) -> None:
    echo_heading("Manifest")
    echo_key_values([("targets", len(manifest.targets))])
    if not manifest.targets:
        typer.echo("No targets defined.")
        return

    typer.echo()
    echo_heading("Targets")
    for target, delay in zip(manifest.targets, manifest.start_delays):
        interval = f"{_millis(target.interval)}ms" if target.interval else "default"
        typer.echo(
            f"  - {target.name} [{target.type}] {target.url} "
            f"key={target.key} interval={interval} "
            f"timeout={_millis(target.timeout)}ms start_delay={_millis(delay)}ms"
        )


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Agent Status")
    echo_key_values(
        [
            ("state", payload.get("state")),
            ("generation", payload.get("generation")),
        ]
    )

    sensors = payload.get("sensors") or []
    typer.echo()
    echo_heading("Sensors")
    if sensors:
        for sensor in sensors:
            state = "stopped" if sensor.get("stopped") else "running"
            typer.echo(
                f"  - {sensor.get('name')} {sensor.get('url')} "
                f"interval={sensor.get('interval_ms')}ms "
                f"start_delay={sensor.get('start_delay_ms')}ms {state}"
            )
    else:
        typer.echo("No sensors running.")
