"""Report formatting (table, JSON, CSV) and console progress."""
from __future__ import annotations

import csv
import io
import json
import os
import sys
from typing import Any, Dict, Iterable, List, Optional, TextIO

RULE = "─" * 74

STATUS_SYMBOLS = {
    "UP_TO_DATE": "✓",
    "UPDATE_AVAILABLE": "↑",
    "AHEAD_OF_VENDOR": "⚠",
    "UNAVAILABLE": "?",
    "ERROR": "✗",
}

SOURCE_LABELS = {
    "registry": " [via Packagist]",
    "private_repo": " [via Private Repo]",
}

PROGRESS_LABELS = {
    "UP_TO_DATE": "OK",
    "UPDATE_AVAILABLE": "UPDATE",
    "AHEAD_OF_VENDOR": "AHEAD",
    "UNAVAILABLE": "ERR",
    "ERROR": "ERR",
}

CSV_HEADERS = ["Package", "Installed Version", "Latest Version", "Status", "Source", "Error"]


def _nv(value: Any) -> str:
    return "" if value is None else str(value)


def format_table(results: Iterable[Dict[str, Any]]) -> str:
    """Human-readable report with a per-status summary line."""
    counts = {status: 0 for status in STATUS_SYMBOLS}
    lines = ["", "  Vendor Version Check Report", "  " + RULE, ""]

    for result in results:
        status = result.get("status", "")
        if status in counts:
            counts[status] += 1
        symbol = STATUS_SYMBOLS.get(status, "?")
        label = SOURCE_LABELS.get(result.get("source") or "", "")
        latest = _nv(result.get("latest_version")) or "-"
        lines.append(f"  {symbol}  {result['package']:<50}")
        lines.append(f"      Installed: {_nv(result.get('installed_version')):<20}  Latest: {latest}{label}")
        if result.get("recent_changes"):
            lines.append("      Recent changes:")
            for change in result["recent_changes"]:
                lines.append(f"        • {change['version']} - {change['date']}")
        if result.get("error"):
            lines.append(f"      Error: {result['error']}")
        lines.append("")

    lines.append("  " + RULE)
    lines.append(
        "  Summary: {} up-to-date, {} updates available, {} ahead, {} unavailable, {} errors".format(
            counts["UP_TO_DATE"],
            counts["UPDATE_AVAILABLE"],
            counts["AHEAD_OF_VENDOR"],
            counts["UNAVAILABLE"],
            counts["ERROR"],
        )
    )
    lines.append("")
    return "\n".join(lines)


def format_json(results: Any) -> str:
    return json.dumps(results, indent=4, ensure_ascii=False)


def format_csv(results: Iterable[Dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for result in results:
        writer.writerow([
            result["package"],
            _nv(result.get("installed_version")),
            _nv(result.get("latest_version")),
            result.get("status", ""),
            _nv(result.get("source")),
            _nv(result.get("error")),
        ])
    return buffer.getvalue()


def write_to_file(content: str, path: str) -> None:
    """Write a report, creating parent directories as needed."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(content)


def format_single(result: Dict[str, Any], verbose: bool = False) -> str:
    """Text for a single vendor URL check."""
    lines = [f"Latest Version: {_nv(result.get('latest_version')) or '-'}"]
    if verbose and result.get("changelog"):
        lines.extend(["", "Recent Changes:"])
        for entry in result["changelog"][:5]:
            lines.append(f"  {entry['version']} - {entry['date']}")
            for change in entry.get("changes", [])[:3]:
                lines.append(f"    - {change}")
    return "\n".join(lines)


class ProgressReporter:
    """Prints ``[n/total] package method STATUS`` as packages complete."""

    def __init__(self, total: int, stream: Optional[TextIO] = None):
        self._total = total
        self._current = 0
        self._stream = stream or sys.stderr
        self._methods: Dict[str, int] = {}

    def advance(self, package_name: str, method: str, status: Optional[str] = None) -> None:
        self._current += 1
        self._methods[method] = self._methods.get(method, 0) + 1
        width = len(str(self._total))
        counter = f"[{self._current:>{width}}/{self._total}]"
        label = PROGRESS_LABELS.get(status or "", status or "")
        line = f"  {counter} {package_name:<50} {method} {label}"
        self._stream.write(line.rstrip() + "\n")
        self._stream.flush()

    def finish(self) -> None:
        parts: List[str] = [f"{count} {method}" for method, count in sorted(self._methods.items())]
        summary = ", ".join(parts) if parts else "nothing checked"
        self._stream.write(f"\n  Checked {self._current} packages ({summary})\n\n")
        self._stream.flush()
