from __future__ import annotations

from fastapi import Request

from metaserv.config import Settings
from metaserv.services.identity import InstanceIdentity


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity(request: Request) -> InstanceIdentity:
    return request.app.state.identity
