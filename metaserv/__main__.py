from __future__ import annotations

import argparse
import os
import sys

import structlog
import uvicorn

from metaserv.config import get_settings
from metaserv.observability.logging import configure_logging
from metaserv.services.versioning import VersionSyncError, sync_chart_version
from metaserv.smoke.runner import ServiceUnavailableError, run_smoke


def _default_smoke_url() -> str:
    host = os.getenv("TEST_HOST", "localhost")
    port = os.getenv("TEST_PORT", "8080")
    return f"http://{host}:{port}"


def _serve(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    from metaserv.main import app

    host = args.host or settings.host
    port = int(args.port or settings.port)
    log = structlog.get_logger("metaserv")
    log.info(
        "service_starting",
        service_name=settings.service_name,
        service_version=settings.service_version,
        address=f"{host}:{port}",
        instance_uuid=app.state.identity.instance_uuid,
    )
    if settings.dependency_enabled:
        log.info("dependency_configured", url=settings.dependency_url)

    # uvicorn exits non-zero if the port cannot be bound.
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


def _smoke(args: argparse.Namespace) -> int:
    configure_logging()
    try:
        report = run_smoke(
            args.base_url,
            timeout=args.timeout,
            expected_service_name=args.service_name,
            wait_attempts=args.wait_attempts,
            out_path=args.out,
        )
    except ServiceUnavailableError as exc:
        structlog.get_logger("smoke").error("service_unavailable", base_url=args.base_url, error=str(exc))
        return 1

    structlog.get_logger("smoke").info("smoke_summary", **report.summary.model_dump(mode="json"))
    return 0 if report.ok else 1


def _sync_chart_version(args: argparse.Namespace) -> int:
    configure_logging()
    log = structlog.get_logger("versioning")
    try:
        changed = sync_chart_version(args.version_file, args.chart)
    except VersionSyncError as exc:
        log.error("chart_version_sync_failed", error=str(exc))
        return 1
    log.info("chart_version_synced", chart=args.chart, changed=changed)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="metaserv", description="Instance metadata service")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
    serve.add_argument("--port", default=None, help="Listen port (default: $PORT or 8080)")
    serve.set_defaults(func=_serve)

    smoke = sub.add_parser("smoke", help="Run smoke checks against a running instance")
    smoke.add_argument("--base-url", default=_default_smoke_url(), help="Service base URL")
    smoke.add_argument("--timeout", type=float, default=5.0, help="Per-request timeout in seconds")
    smoke.add_argument("--service-name", default="goserv", help="Expected service_name value")
    smoke.add_argument("--wait-attempts", type=int, default=30, help="Readiness polls before giving up")
    smoke.add_argument("--out", default=None, help="Optional path to write the JSON report")
    smoke.set_defaults(func=_smoke)

    sync = sub.add_parser("sync-chart-version", help="Copy VERSION into the chart metadata")
    sync.add_argument("--version-file", default="VERSION", help="Path to the version file")
    sync.add_argument("--chart", default="chart/metaserv/Chart.yaml", help="Path to Chart.yaml")
    sync.set_defaults(func=_sync_chart_version)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
