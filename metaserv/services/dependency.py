from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from time import perf_counter
from typing import Any

import httpx
import structlog

from metaserv.observability.metrics import get_metrics

DEFAULT_TIMEOUT_SECONDS = 5.0
MAX_REDIRECTS = 10

_dependency_client: Any | None = None

# Calls run here; the caller waits at most `timeout` for them.
_executor = ThreadPoolExecutor(max_workers=32, thread_name_prefix="dependency")


class DependencyError(RuntimeError):
    """The dependency could not be reached (transport or protocol failure)."""


def new_dependency_client(transport: httpx.BaseTransport | None = None) -> httpx.Client:
    return httpx.Client(
        timeout=DEFAULT_TIMEOUT_SECONDS,
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
        transport=transport,
    )


def set_dependency_client(client: Any | None) -> None:
    global _dependency_client
    _dependency_client = client


def get_dependency_client() -> Any:
    global _dependency_client
    if _dependency_client is None:
        _dependency_client = new_dependency_client()
    return _dependency_client


def canonical_header_name(name: str) -> str:
    """``content-type`` -> ``Content-Type``."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def collect_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for raw_name, raw_value in headers.raw:
        name = canonical_header_name(raw_name.decode(headers.encoding))
        grouped.setdefault(name, []).append(raw_value.decode(headers.encoding))
    return grouped


def _read_headers(client: Any, url: str, timeout: float) -> tuple[int, dict[str, list[str]]]:
    # The body is never read; leaving the stream closes the connection.
    with client.stream("GET", url, timeout=timeout) as response:
        return response.status_code, collect_headers(response.headers)


def fetch_dependency_headers(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> dict[str, list[str]] | None:
    """
    GET ``url`` once and return the final response's headers.

    Redirects are followed (up to ``MAX_REDIRECTS``). Any HTTP status counts as
    success. Connection, headers and redirects must all complete within
    ``timeout`` seconds; failures raise ``DependencyError``. Returns None when
    no URL is configured.
    """
    if not url:
        return None

    client = get_dependency_client()
    start = perf_counter()
    future = _executor.submit(_read_headers, client, url, timeout)
    try:
        status_code, headers = future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        future.cancel()
        elapsed_ms = (perf_counter() - start) * 1000.0
        get_metrics().observe_dependency_call(elapsed_ms=elapsed_ms, failed=True)
        raise DependencyError(f"failed to call dependency: no response within {timeout}s") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        elapsed_ms = (perf_counter() - start) * 1000.0
        get_metrics().observe_dependency_call(elapsed_ms=elapsed_ms, failed=True)
        raise DependencyError(f"failed to call dependency: {exc}") from exc

    elapsed_ms = (perf_counter() - start) * 1000.0
    get_metrics().observe_dependency_call(elapsed_ms=elapsed_ms)
    structlog.get_logger("dependency").debug(
        "dependency_call",
        url=url,
        status_code=status_code,
        elapsed_ms=round(elapsed_ms, 2),
    )
    return headers
