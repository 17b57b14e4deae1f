from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_health, render_payload
from services.decoder import MalformedPayload, decode_payload


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for sending and inspecting seder telemetry payloads.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Seder API base URL (defaults to SEDER_API_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to a binary payload."),
) -> None:
    """Send a binary payload to the service's /v0/data endpoint."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    ack = state.client.upload_payload(file)
    typer.secho(f"Upload acknowledged: {ack.strip()!r}", fg=typer.colors.GREEN)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Show the service health payload."""
    state = _get_state(ctx)
    render_health(state.client.get_health())


@app.command("decode")
def decode_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to a binary payload."),
) -> None:
    """Decode a payload file locally and print its samples."""
    payload = file.read_bytes()
    try:
        header, samples = decode_payload(payload)
    except MalformedPayload as exc:
        typer.secho(f"Malformed payload: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    render_payload(header, samples, byte_count=len(payload))
