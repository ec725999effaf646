"""Tests for logging helpers."""

import logging

from vendorcheck.common.fallback import first_present
from vendorcheck.common.logging_utils import configure_logging, extra_context, safe_url


def test_safe_url_strips_credentials_and_query():
    assert safe_url("https://user:pw@repo.example.com:8443/p2/a/b.json?token=x") == (
        "https://repo.example.com:8443/p2/a/b.json"
    )


def test_extra_context_drops_none_and_redacts():
    context = extra_context(event="http_request", target=None, auth_header="Basic abcdef")
    assert context == {"event": "http_request", "auth_header": "Ba***"}


def test_configure_logging_reads_environment(monkeypatch):
    root = logging.getLogger()
    previous = root.level
    monkeypatch.setenv("VENDORCHECK_LOG_LEVEL", "debug")
    try:
        configure_logging()
        assert root.level == logging.DEBUG
        configure_logging("ERROR")
        assert root.level == logging.ERROR
    finally:
        root.setLevel(previous)


def test_first_present_stops_at_first_value():
    calls = []

    def attempt(label, value):
        def run():
            calls.append(label)
            return value
        return label, run

    assert first_present([attempt("a", None), attempt("b", 0), attempt("c", 3)]) == 0
    assert calls == ["a", "b"]
