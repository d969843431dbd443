from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Response

from metaserv.api.dependencies import get_app_settings, get_identity
from metaserv.config import Settings
from metaserv.models.schemas import MetadataResponse
from metaserv.services.dependency import DependencyError, fetch_dependency_headers
from metaserv.services.identity import InstanceIdentity
from metaserv.services.network import get_outbound_ip

router = APIRouter(tags=["metadata"])

logger = structlog.get_logger("metadata")


def rfc3339_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_metadata(settings: Settings, identity: InstanceIdentity) -> MetadataResponse:
    response = MetadataResponse(
        service_name=settings.service_name,
        service_version=settings.service_version,
        ip_address=get_outbound_ip(),
        instance_uuid=identity.instance_uuid,
        timestamp=rfc3339_now(),
    )

    if settings.dependency_enabled:
        try:
            headers = fetch_dependency_headers(
                settings.dependency_url,
                timeout=settings.dependency_timeout_seconds,
            )
        except DependencyError as exc:
            logger.warning("dependency_call_failed", url=settings.dependency_url, error=str(exc))
        else:
            # An empty mapping is dropped like a failed call.
            response.dependency_headers = headers or None

    return response


# Runs on the worker thread pool; the dependency call blocks only this request.
@router.api_route("/", methods=["GET", "HEAD"], response_model=MetadataResponse)
def metadata(
    settings: Settings = Depends(get_app_settings),
    identity: InstanceIdentity = Depends(get_identity),
) -> Response:
    envelope = build_metadata(settings, identity)
    try:
        body = envelope.model_dump_json(exclude_none=True)
    except ValueError:
        logger.exception("response_encoding_failed")
        return Response(status_code=200, media_type="application/json")
    return Response(content=body, status_code=200, media_type="application/json")
