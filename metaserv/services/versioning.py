from __future__ import annotations

import re
from pathlib import Path

_CHART_KEYS = ("version", "appVersion")


class VersionSyncError(RuntimeError):
    pass


def read_version_file(path: str | Path) -> str:
    version_path = Path(path)
    if not version_path.is_file():
        raise VersionSyncError(f"version file not found: {version_path}")
    version = version_path.read_text(encoding="utf-8").strip()
    if not version:
        raise VersionSyncError(f"version file is empty: {version_path}")
    return version


def render_chart_version(chart_text: str, version: str) -> str:
    """Rewrite top-level ``version:``/``appVersion:`` lines, leaving everything else intact."""
    updated = chart_text
    for key in _CHART_KEYS:
        pattern = re.compile(rf"^({re.escape(key)}:[ \t]*).*$", re.MULTILINE)
        value = f'"{version}"' if key == "appVersion" else version
        updated = pattern.sub(lambda m, v=value: m.group(1) + v, updated)
    return updated


def sync_chart_version(version_file: str | Path, chart_file: str | Path) -> bool:
    """Copy the version file's content into the chart metadata.

    Returns True when the chart file changed.
    """
    version = read_version_file(version_file)
    chart_path = Path(chart_file)
    if not chart_path.is_file():
        raise VersionSyncError(f"chart file not found: {chart_path}")

    original = chart_path.read_text(encoding="utf-8")
    updated = render_chart_version(original, version)
    if updated == original:
        return False
    chart_path.write_text(updated, encoding="utf-8")
    return True
