from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class MetadataResponse(BaseModel):
    service_name: str
    service_version: str
    ip_address: str
    instance_uuid: str
    dependency_headers: dict[str, list[str]] | None = None
    timestamp: str


class StatusResponse(BaseModel):
    status: Literal["healthy", "ready"]


class MetricsSnapshot(BaseModel):
    counters: dict[str, int]
    latency_ms: dict[str, dict[str, float]]
