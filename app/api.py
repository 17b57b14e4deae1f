"""HTTP route definitions for the service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from app.schemas import HealthStatus, IngestStatus
from services.decoder import MalformedPayload
from services.ingest import IngestService, build_default_ingest_service
from storage.partitioned_files import IOFailure

logger = logging.getLogger(__name__)

ACKNOWLEDGEMENT = "!\n"
GREETING = "Hello seder!"

router = APIRouter()


def get_ingest_service() -> IngestService:
    return build_default_ingest_service()


@router.post(
    "/v0/data",
    response_class=PlainTextResponse,
    summary="Upload a v0 binary telemetry payload.",
)
async def upload_data(
    request: Request,
    ingest: IngestService = Depends(get_ingest_service),
) -> PlainTextResponse:
    body = await request.body()
    try:
        summary = await run_in_threadpool(ingest.ingest, body)
    except MalformedPayload as exc:
        logger.warning(
            "Rejected malformed payload.",
            extra={"byte_count": len(body), "reason": str(exc)},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except IOFailure as exc:
        logger.exception(
            "Failed to persist payload.",
            extra={"byte_count": len(body), "path": str(exc.path)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc

    if summary.status is IngestStatus.empty:
        for name, value in request.headers.items():
            logger.debug("%20s: %s", name, value)
    return PlainTextResponse(ACKNOWLEDGEMENT)


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    ingest: IngestService = Depends(get_ingest_service),
) -> HealthStatus:
    return HealthStatus(data_dir=str(ingest.store.root_path))


@router.get(
    "/",
    response_class=PlainTextResponse,
    summary="Greeting endpoint.",
    status_code=status.HTTP_200_OK,
)
async def root() -> str:
    return GREETING
