from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from metaserv.smoke.runner import ServiceUnavailableError, parse_rfc3339, run_smoke, wait_for_service
from metaserv.smoke.schemas import SmokeRunReport


def test_smoke_passes_against_healthy_app(app_factory, tmp_path: Path) -> None:
    out_path = tmp_path / "smoke.json"
    client = TestClient(app_factory())
    report = run_smoke(client=client, wait_interval=0, out_path=str(out_path))

    assert report.ok, [r for r in report.results if not r.passed]
    assert report.summary.total_checks >= 10

    loaded = SmokeRunReport.model_validate_json(out_path.read_text(encoding="utf-8"))
    assert loaded.summary.passed_checks == report.summary.passed_checks


def test_smoke_flags_unexpected_service_name(app_factory) -> None:
    client = TestClient(app_factory(SERVICE_NAME="foo"))
    report = run_smoke(client=client, wait_interval=0)

    failed = [r for r in report.results if not r.passed]
    assert [r.name for r in failed] == ["Service name is 'goserv'"]
    assert failed[0].details == "Got: foo"


def test_wait_for_service_gives_up() -> None:
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        base_url="http://test",
    )
    with pytest.raises(ServiceUnavailableError):
        wait_for_service(client, attempts=2, interval=0)


def test_parse_rfc3339_requires_offset() -> None:
    assert parse_rfc3339("2024-01-02T03:04:05Z").utcoffset().total_seconds() == 0
    with pytest.raises(ValueError):
        parse_rfc3339("2024-01-02T03:04:05")
    with pytest.raises(ValueError):
        parse_rfc3339("not a timestamp")


def test_smoke_reports_non_object_payload_under_check_names() -> None:
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])),
        base_url="http://test",
    )
    report = run_smoke(client=client, wait_interval=0, expected_service_name="goserv")

    failed = {r.name: r.details for r in report.results if not r.passed}
    assert "Response contains required fields" in failed
    assert "Service name is 'goserv'" in failed
    assert "expected a JSON object" in failed["Service name is 'goserv'"]
    assert "check" not in failed
