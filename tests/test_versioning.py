from __future__ import annotations

from pathlib import Path

import pytest

from metaserv import __main__ as cli
from metaserv.services.versioning import VersionSyncError, render_chart_version, sync_chart_version

CHART = """apiVersion: v2
name: metaserv
description: Instance metadata service
type: application
version: 0.1.0
appVersion: "0.1.0"
dependencies: []
"""


def test_render_rewrites_only_version_lines() -> None:
    rendered = render_chart_version(CHART, "1.4.2")
    assert "version: 1.4.2\n" in rendered
    assert 'appVersion: "1.4.2"\n' in rendered
    assert "apiVersion: v2\n" in rendered
    assert rendered.count("\n") == CHART.count("\n")


def test_sync_writes_chart(tmp_path: Path) -> None:
    version_file = tmp_path / "VERSION"
    version_file.write_text("2.0.0\n", encoding="utf-8")
    chart = tmp_path / "Chart.yaml"
    chart.write_text(CHART, encoding="utf-8")

    assert sync_chart_version(version_file, chart) is True
    assert 'appVersion: "2.0.0"' in chart.read_text(encoding="utf-8")
    assert sync_chart_version(version_file, chart) is False


def test_sync_rejects_empty_version_file(tmp_path: Path) -> None:
    version_file = tmp_path / "VERSION"
    version_file.write_text("  \n", encoding="utf-8")
    chart = tmp_path / "Chart.yaml"
    chart.write_text(CHART, encoding="utf-8")

    with pytest.raises(VersionSyncError):
        sync_chart_version(version_file, chart)
    assert chart.read_text(encoding="utf-8") == CHART


def test_cli_sync_chart_version(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    version_file = tmp_path / "VERSION"
    version_file.write_text("3.1.0", encoding="utf-8")
    chart = tmp_path / "Chart.yaml"
    chart.write_text(CHART, encoding="utf-8")

    assert cli.main(["sync-chart-version", "--version-file", str(version_file), "--chart", str(chart)]) == 0
    assert "version: 3.1.0" in chart.read_text(encoding="utf-8")

    assert cli.main(["sync-chart-version", "--version-file", str(tmp_path / "missing"), "--chart", str(chart)]) == 1
