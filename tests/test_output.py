"""Tests for report formatting and progress output."""

import csv
import io
import json

from vendorcheck.output import (
    CSV_HEADERS,
    ProgressReporter,
    format_csv,
    format_json,
    format_single,
    format_table,
    write_to_file,
)

RESULTS = [
    {
        "package": "amasty/promo",
        "installed_version": "2.3.0",
        "latest_version": "2.3.1",
        "status": "UPDATE_AVAILABLE",
        "source": "vendor_page",
        "recent_changes": [{"version": "2.3.1", "date": "April 1, 2024", "changes": []}],
        "checked_at": "2024-04-02 10:00:00",
    },
    {
        "package": "stripe/stripe-php",
        "installed_version": "10.2.0",
        "latest_version": "10.2.0",
        "status": "UP_TO_DATE",
        "source": "registry",
        "checked_at": "2024-04-02 10:00:00",
    },
    {
        "package": "gone/package",
        "installed_version": "1.0.0",
        "latest_version": None,
        "status": "ERROR",
        "error": "Failed to fetch URL: HTTP 500",
        "checked_at": "2024-04-02 10:00:00",
    },
]


class TestFormatTable:
    """Human-readable report."""

    def test_rows_and_summary(self):
        text = format_table(RESULTS)
        assert "↑  amasty/promo" in text
        assert "✓  stripe/stripe-php" in text
        assert "✗  gone/package" in text
        assert "Latest: 10.2.0 [via Packagist]" in text
        assert "• 2.3.1 - April 1, 2024" in text
        assert "Error: Failed to fetch URL: HTTP 500" in text
        assert "Summary: 1 up-to-date, 1 updates available, 0 ahead, 0 unavailable, 1 errors" in text

    def test_missing_latest_shown_as_dash(self):
        assert "Latest: -" in format_table(RESULTS[2:])

    def test_empty(self):
        assert "Summary: 0 up-to-date" in format_table([])


class TestMachineFormats:
    """JSON and CSV."""

    def test_json_round_trips(self):
        text = format_json(RESULTS)
        assert json.loads(text) == RESULTS
        assert '\n    {' in text

    def test_csv(self):
        rows = list(csv.reader(io.StringIO(format_csv(RESULTS))))
        assert rows[0] == CSV_HEADERS
        assert rows[1] == ["amasty/promo", "2.3.0", "2.3.1", "UPDATE_AVAILABLE", "vendor_page", ""]
        assert rows[3] == ["gone/package", "1.0.0", "", "ERROR", "", "Failed to fetch URL: HTTP 500"]

    def test_write_to_file_creates_parents(self, tmp_path):
        target = tmp_path / "reports" / "out.csv"
        write_to_file("a,b\n", str(target))
        assert target.read_text(encoding="utf-8") == "a,b\n"


class TestSingleAndProgress:
    """Single URL output and the progress reporter."""

    def test_format_single(self):
        result = {
            "latest_version": "4.1.0",
            "changelog": [{"version": "4.1.0", "date": "2024-02-01", "changes": ["Fix OAuth"]}],
        }
        assert format_single(result) == "Latest Version: 4.1.0"
        verbose = format_single(result, verbose=True)
        assert "4.1.0 - 2024-02-01" in verbose
        assert "- Fix OAuth" in verbose

    def test_progress_lines(self):
        stream = io.StringIO()
        progress = ProgressReporter(12, stream=stream)

        progress.advance("amasty/promo", "vendor_page", "UPDATE_AVAILABLE")
        progress.advance("stripe/stripe-php", "cached", "UP_TO_DATE")
        progress.advance("gone/package", "registry", "UNAVAILABLE")
        progress.finish()

        lines = stream.getvalue().splitlines()
        assert lines[0].startswith("  [ 1/12] amasty/promo")
        assert lines[0].endswith("vendor_page UPDATE")
        assert lines[1].endswith("cached OK")
        assert lines[2].endswith("registry ERR")
        assert "Checked 3 packages (1 cached, 1 registry, 1 vendor_page)" in stream.getvalue()
