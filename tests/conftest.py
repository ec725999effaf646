"""Shared fixtures: a routed stand-in for requests.Session."""

import json
from types import SimpleNamespace

import pytest
import requests

from vendorcheck.common.http_client import HttpFetcher


class FakeSession:
    """Serves canned responses by URL and records every request."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, url, status=200, body=""):
        if not isinstance(body, str):
            body = json.dumps(body)
        self.routes[url] = SimpleNamespace(status_code=status, headers={}, text=body)

    def fail(self, url, exc=None):
        self.routes[url] = exc or requests.ConnectionError("connection refused")

    def get(self, url, headers=None, auth=None, timeout=None):
        self.calls.append(SimpleNamespace(url=url, headers=headers, auth=auth, timeout=timeout))
        route = self.routes.get(url)
        if route is None:
            return SimpleNamespace(status_code=404, headers={}, text="")
        if isinstance(route, Exception):
            raise route
        return route

    def urls(self):
        return [call.url for call in self.calls]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def fetcher(session):
    return HttpFetcher(session=session)


def p2_body(name, versions):
    return {"packages": {name: [{"version": v} for v in versions]}}
