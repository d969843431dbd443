from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class InstanceIdentity:
    instance_uuid: str


def new_instance_identity() -> InstanceIdentity:
    """Generate the per-process identity (random UUIDv4)."""
    return InstanceIdentity(instance_uuid=str(uuid.uuid4()))
