"""Ingest orchestration: decode an upload, then persist its samples."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from app.schemas import IngestStatus, IngestSummary
from services.decoder import decode_payload
from storage.partitioned_files import PartitionedFileStore, build_default_store, identifier_text

logger = logging.getLogger(__name__)


class IngestService:
    """Turns raw upload bodies into rows in the partitioned store."""

    def __init__(self, store: PartitionedFileStore) -> None:
        self.store = store

    def ingest(self, payload: bytes) -> IngestSummary:
        """Decode ``payload`` and append its samples.

        An empty body is acknowledged without writing anything.
        ``MalformedPayload`` and ``IOFailure`` propagate to the caller; nothing
        is written when decoding fails.
        """
        byte_count = len(payload)
        if not byte_count:
            logger.warning("Received an empty body.", extra={"byte_count": 0})
            return IngestSummary(status=IngestStatus.empty, byte_count=0)

        logger.info("Received payload.", extra={"byte_count": byte_count})
        header, samples = decode_payload(payload)

        trailing = max(byte_count - header.expected_length, 0)
        if trailing:
            logger.warning(
                "Ignoring bytes past the declared payload length.",
                extra={"byte_count": byte_count, "trailing_bytes": trailing},
            )

        result = self.store.append(samples)
        summary = IngestSummary(
            status=IngestStatus.stored,
            byte_count=byte_count,
            sample_count=header.sample_count,
            channel_count=header.channel_count,
            trailing_bytes=trailing,
            path=str(result.path) if result else None,
            header_written=result.header_written if result else False,
        )
        logger.info(
            "Stored samples.",
            extra={
                "account_id": identifier_text(header.account_id),
                "device_id": identifier_text(header.device_id),
                "sample_count": summary.sample_count,
                "channel_count": summary.channel_count,
                "path": summary.path,
                "header_written": summary.header_written,
            },
        )
        return summary


@lru_cache
def build_default_ingest_service(root_path: Optional[str] = None) -> IngestService:
    """Factory that wires the ingest service with the configured store."""
    return IngestService(store=build_default_store(root_path))
