from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

import typer

from models.records import PayloadHeader, Sample
from storage.partitioned_files import format_timestamp, identifier_text


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_health(payload: Dict[str, Any]) -> None:
    echo_heading("Service Health")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("data_dir", payload.get("data_dir")),
        ]
    )


def render_payload(header: PayloadHeader, samples: Sequence[Sample], byte_count: int) -> None:
    echo_heading("Header")
    echo_key_values(
        [
            ("account_id", repr(identifier_text(header.account_id))),
            ("device_id", repr(identifier_text(header.device_id))),
            ("base_time_s", header.base_time_s),
            ("delta_time_ms", header.delta_time_ms),
            ("period_ms", header.period_ms),
            ("sample_count", header.sample_count),
            ("channel_count", header.channel_count),
            ("byte_count", byte_count),
            ("expected_length", header.expected_length),
        ]
    )

    typer.echo()
    echo_heading("Samples")
    if not samples:
        typer.echo("No samples in payload.")
        return
    for index, sample in enumerate(samples):
        values = ", ".join(f"A{channel}={value}" for channel, value in enumerate(sample.values))
        typer.echo(f"  - {index}: {format_timestamp(sample)} {values}".rstrip())
