from __future__ import annotations

import struct
from typing import Callable, Optional, Sequence

import pytest

ACCOUNT = b"ACCOUNT001"
DEVICE = b"DEVICE0001"


def build_payload(
    account: bytes = ACCOUNT,
    device: bytes = DEVICE,
    t1: int = 1394413060,
    t2: int = 0,
    period: int = 1000,
    samples: Sequence[Sequence[int]] = ((10, 20), (30, 40)),
    channels: Optional[int] = None,
    sample_count: Optional[int] = None,
) -> bytes:
    if channels is None:
        channels = len(samples[0]) if samples else 0
    if sample_count is None:
        sample_count = len(samples)
    header = struct.pack(
        "<10s10sIIhhB", account, device, t1, t2, period, sample_count, channels
    )
    body = b"".join(struct.pack(f"<{len(row)}h", *row) for row in samples)
    return header + body


@pytest.fixture
def make_payload() -> Callable[..., bytes]:
    return build_payload
