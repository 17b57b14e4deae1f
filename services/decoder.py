"""Decoder for the v0 binary telemetry upload format.

Layout (little-endian, no padding, 33-byte header)::

    account_id      char[10]
    device_id       char[10]
    base_time_s     uint32   unix time in seconds (t1)
    delta_time_ms   uint32   offset added to the base time (t2)
    period_ms       int16    sample period
    sample_count    int16    number of samples (N)
    channel_count   uint8    number of channels (C)
    values          int16[N][C], sample-major

Sample ``i`` is stamped ``t1 * 1000 + t2 + i * period_ms`` milliseconds after
the epoch.
"""

from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from models.records import HEADER_SIZE, PayloadHeader, Sample

_HEADER = struct.Struct("<10s10sIIhhB")

# (field name, end offset) in header order.
_HEADER_FIELDS = (
    ("account_id", 10),
    ("device_id", 20),
    ("base_time_s", 24),
    ("delta_time_ms", 28),
    ("period_ms", 30),
    ("sample_count", 32),
    ("channel_count", 33),
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class MalformedPayload(ValueError):
    """Raised when an upload is shorter than its header says it should be."""

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


def _truncated_field(length: int) -> str:
    for name, end in _HEADER_FIELDS:
        if length < end:
            return name
    return "values"


def decode_header(payload: bytes) -> PayloadHeader:
    """Read the fixed header, failing if the payload ends inside it."""
    length = len(payload)
    if length < HEADER_SIZE:
        field = _truncated_field(length)
        raise MalformedPayload(
            f"Payload truncated in field {field!r}: got {length} bytes, "
            f"header needs {HEADER_SIZE}.",
            expected=HEADER_SIZE,
            actual=length,
        )

    account_id, device_id, t1, t2, period, nsamp, nmeas = _HEADER.unpack_from(payload, 0)
    if nsamp < 0:
        raise MalformedPayload(
            f"Payload declares a negative sample count ({nsamp}).",
            actual=length,
        )

    return PayloadHeader(
        account_id=account_id,
        device_id=device_id,
        base_time_s=t1,
        delta_time_ms=t2,
        period_ms=period,
        sample_count=nsamp,
        channel_count=nmeas,
    )


def decode_payload(payload: bytes) -> Tuple[PayloadHeader, List[Sample]]:
    """Decode an upload into its header and its samples, in payload order.

    Raises :class:`MalformedPayload` when the buffer is shorter than the
    header declares. Bytes past the declared length are ignored.
    """
    header = decode_header(payload)
    expected = header.expected_length
    if len(payload) < expected:
        raise MalformedPayload(
            f"Payload truncated in field 'values': got {len(payload)} bytes, "
            f"header declares {expected} ({header.sample_count} samples x "
            f"{header.channel_count} channels).",
            expected=expected,
            actual=len(payload),
        )

    nmeas = header.channel_count
    flat = struct.unpack_from(f"<{header.sample_count * nmeas}h", payload, HEADER_SIZE)
    base_ms = header.base_time_ms

    samples: List[Sample] = []
    for i in range(header.sample_count):
        samples.append(
            Sample(
                account_id=header.account_id,
                device_id=header.device_id,
                timestamp=_EPOCH + timedelta(milliseconds=base_ms + i * header.period_ms),
                period_ms=header.period_ms,
                values=tuple(flat[i * nmeas:(i + 1) * nmeas]),
            )
        )
    return header, samples


def decode(payload: bytes) -> List[Sample]:
    """Decode an upload into its samples, in payload order."""
    return decode_payload(payload)[1]
