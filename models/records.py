"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

HEADER_SIZE = 33
VALUE_SIZE = 2


@dataclass(frozen=True, slots=True)
class PayloadHeader:
    """The fixed 33-byte header that opens every upload."""

    account_id: bytes
    device_id: bytes
    base_time_s: int
    delta_time_ms: int
    period_ms: int
    sample_count: int
    channel_count: int

    @property
    def base_time_ms(self) -> int:
        return self.base_time_s * 1000 + self.delta_time_ms

    @property
    def expected_length(self) -> int:
        """Total payload size implied by the declared sample and channel counts."""
        return HEADER_SIZE + self.sample_count * self.channel_count * VALUE_SIZE


@dataclass(frozen=True, slots=True)
class Sample:
    """A single timestamped set of channel readings decoded from an upload."""

    account_id: bytes
    device_id: bytes
    timestamp: datetime
    period_ms: int
    values: Tuple[int, ...]

    @property
    def channel_count(self) -> int:
        return len(self.values)
