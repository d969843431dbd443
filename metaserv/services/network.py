from __future__ import annotations

import socket

UNKNOWN_IP = "unknown"

# Any routable address works: connect() on a UDP socket only resolves the
# local route, nothing is sent.
DEFAULT_PROBE_ADDRESS: tuple[str, int] = ("8.8.8.8", 80)


def get_outbound_ip(probe: tuple[str, int] = DEFAULT_PROBE_ADDRESS) -> str:
    """Best-effort address of the interface used for outbound traffic.

    Returns ``"unknown"`` when no route is available.
    """
    try:
        family = socket.AF_INET6 if ":" in probe[0] else socket.AF_INET
        with socket.socket(family, socket.SOCK_DGRAM) as sock:
            sock.connect(probe)
            return str(sock.getsockname()[0])
    except OSError:
        return UNKNOWN_IP
