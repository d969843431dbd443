from __future__ import annotations

import ipaddress
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import httpx
import structlog

from metaserv.smoke.schemas import SmokeCheckResult, SmokeRunReport, SmokeRunSummary

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
REQUIRED_FIELDS = ("service_name", "service_version", "ip_address", "instance_uuid", "timestamp")

logger = structlog.get_logger("smoke")

CheckFn = Callable[[httpx.Client], list[SmokeCheckResult]]


class ServiceUnavailableError(RuntimeError):
    pass


def parse_rfc3339(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no offset: {value}")
    return parsed


def _result(name: str, passed: bool, details: str | None = None) -> list[SmokeCheckResult]:
    return [SmokeCheckResult(name=name, passed=passed, details=None if passed else details)]


def _envelope(client: httpx.Client) -> dict:
    payload = client.get("/").json()
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def _check_root_responds(client: httpx.Client) -> list[SmokeCheckResult]:
    resp = client.get("/")
    return _result("Root endpoint responds with 200 OK", resp.status_code == 200, f"Got HTTP {resp.status_code}")


def _check_json(client: httpx.Client) -> list[SmokeCheckResult]:
    resp = client.get("/")
    try:
        resp.json()
    except ValueError:
        return _result("Response is valid JSON", False, f"Response is not valid JSON: {resp.text}")
    return _result("Response is valid JSON", True)


def _check_required_fields(client: httpx.Client) -> list[SmokeCheckResult]:
    payload = _envelope(client)
    results: list[SmokeCheckResult] = []
    for field in REQUIRED_FIELDS:
        value = payload.get(field)
        results.extend(
            _result(f"Response contains {field} field", bool(value), f"{field} is missing or null")
        )
    return results


def _check_service_name(expected: str) -> CheckFn:
    def check(client: httpx.Client) -> list[SmokeCheckResult]:
        got = _envelope(client).get("service_name")
        return _result(f"Service name is '{expected}'", got == expected, f"Got: {got}")

    return check


def _check_uuid_format(client: httpx.Client) -> list[SmokeCheckResult]:
    got = str(_envelope(client).get("instance_uuid"))
    return _result("Instance UUID is valid format", bool(UUID_PATTERN.match(got)), f"Got: {got}")


def _check_uuid_consistency(client: httpx.Client) -> list[SmokeCheckResult]:
    first = _envelope(client).get("instance_uuid")
    second = _envelope(client).get("instance_uuid")
    return _result(
        "Instance UUID remains consistent across requests",
        first == second,
        f"UUID1: {first}, UUID2: {second}",
    )


def _check_timestamp(client: httpx.Client) -> list[SmokeCheckResult]:
    got = str(_envelope(client).get("timestamp"))
    try:
        parse_rfc3339(got)
    except ValueError:
        return _result("Timestamp is in valid RFC3339 format", False, f"Got: {got}")
    return _result("Timestamp is in valid RFC3339 format", True)


def _check_ip_address(client: httpx.Client) -> list[SmokeCheckResult]:
    got = str(_envelope(client).get("ip_address"))
    if got == "unknown":
        return _result("IP address is valid or 'unknown'", True)
    try:
        ipaddress.ip_address(got)
    except ValueError:
        return _result("IP address is valid or 'unknown'", False, f"Got: {got}")
    return _result("IP address is valid or 'unknown'", True)


def _check_content_type(client: httpx.Client) -> list[SmokeCheckResult]:
    content_type = client.head("/").headers.get("content-type", "")
    return _result(
        "Content-Type header is application/json",
        "application/json" in content_type,
        f"Got: {content_type}",
    )


def _check_invalid_path(client: httpx.Client) -> list[SmokeCheckResult]:
    resp = client.get("/invalid-path")
    return _result("Invalid path returns 404", resp.status_code == 404, f"Got HTTP {resp.status_code}")


def _check_probe(path: str, status: str) -> CheckFn:
    def check(client: httpx.Client) -> list[SmokeCheckResult]:
        resp = client.get(path)
        ok = resp.status_code == 200 and resp.json() == {"status": status}
        return _result(f"{path} returns {status}", ok, f"Got HTTP {resp.status_code}: {resp.text}")

    return check


def wait_for_service(client: httpx.Client, attempts: int = 30, interval: float = 1.0) -> None:
    for attempt in range(1, attempts + 1):
        try:
            if client.get("/").status_code == 200:
                return
        except httpx.HTTPError:
            pass
        if attempt < attempts:
            time.sleep(interval)
    raise ServiceUnavailableError(f"service is not available after {attempts} attempts")


def run_smoke(
    base_url: str = "http://localhost:8080",
    *,
    client: httpx.Client | None = None,
    timeout: float = 5.0,
    expected_service_name: str = "goserv",
    wait_attempts: int = 30,
    wait_interval: float = 1.0,
    out_path: str | None = None,
) -> SmokeRunReport:
    """Run the post-deployment checks against a live instance."""
    started_at = datetime.now(timezone.utc)
    owns_client = client is None
    if client is None:
        client = httpx.Client(base_url=base_url, timeout=timeout)

    checks: list[tuple[str, CheckFn]] = [
        ("Root endpoint responds with 200 OK", _check_root_responds),
        ("Response is valid JSON", _check_json),
        ("Response contains required fields", _check_required_fields),
        (f"Service name is '{expected_service_name}'", _check_service_name(expected_service_name)),
        ("Instance UUID is valid format", _check_uuid_format),
        ("Instance UUID remains consistent across requests", _check_uuid_consistency),
        ("Timestamp is in valid RFC3339 format", _check_timestamp),
        ("IP address is valid or 'unknown'", _check_ip_address),
        ("Content-Type header is application/json", _check_content_type),
        ("Invalid path returns 404", _check_invalid_path),
        ("/health returns healthy", _check_probe("/health", "healthy")),
        ("/ready returns ready", _check_probe("/ready", "ready")),
    ]

    results: list[SmokeCheckResult] = []
    try:
        wait_for_service(client, attempts=wait_attempts, interval=wait_interval)
        for label, check in checks:
            try:
                outcome = check(client)
            except (httpx.HTTPError, ValueError, AttributeError) as exc:
                outcome = _result(label, False, str(exc))
            for result in outcome:
                logger.info("smoke_check", check=result.name, passed=result.passed, details=result.details)
            results.extend(outcome)
    finally:
        if owns_client:
            client.close()

    passed_checks = sum(1 for r in results if r.passed)
    report = SmokeRunReport(
        summary=SmokeRunSummary(
            base_url=str(client.base_url),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=len(results) - passed_checks,
        ),
        results=results,
    )

    if out_path:
        out = Path(out_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(report.model_dump_json(indent=2), encoding="utf-8")

    return report
