from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from metaserv.api.dependencies import get_app_settings
from metaserv.config import Settings
from metaserv.models.schemas import MetricsSnapshot
from metaserv.observability.metrics import get_metrics


router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_model=MetricsSnapshot)
async def metrics(settings: Settings = Depends(get_app_settings)) -> dict:
    if not settings.enable_metrics_endpoint:
        raise HTTPException(status_code=404, detail="Not Found")
    return get_metrics().snapshot()
