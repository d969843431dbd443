from __future__ import annotations

from fastapi import APIRouter

from metaserv.models.schemas import StatusResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=StatusResponse)
async def health() -> StatusResponse:
    return StatusResponse(status="healthy")


@router.get("/ready", response_model=StatusResponse)
async def ready() -> StatusResponse:
    # Not wired to any dependency signal; mirrors /health.
    return StatusResponse(status="ready")
