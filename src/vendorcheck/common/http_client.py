"""Shared HTTP helpers used by the registry, private repository and vendor
page lookups.

Encapsulates request/timeout error handling and keeps an in-memory store of
responses keyed by URL so that a batched ``prefetch`` can warm every URL a
run needs before the per-package lookups read them back one by one.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import aiohttp
import requests

from vendorcheck.constants import Constants
from vendorcheck.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from vendorcheck.errors import FetchError

logger = logging.getLogger(__name__)

BasicAuth = Tuple[str, str]


@dataclass
class FetchResponse:
    """Status, headers and decoded body of a completed request."""

    url: str
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Optional[Any]:
        """Parsed JSON body, or None when the body is not JSON."""
        if not self.text:
            return None
        try:
            return json.loads(self.text)
        except json.JSONDecodeError:
            return None


@dataclass(frozen=True)
class PrefetchTarget:
    """A URL to warm, with the headers and credentials it will be read with."""

    url: str
    auth: Optional[BasicAuth] = None
    headers: Optional[Dict[str, str]] = None


def _cache_key(url: str, auth: Optional[BasicAuth]) -> str:
    """Generate the response store key; credentials are keyed by user only."""
    user = auth[0] if auth else ""
    return f"GET:{url}:{user}"


class HttpFetcher:
    """GET client with a per-run response store and batched prefetch."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: int = Constants.REQUEST_TIMEOUT,
        private_timeout: int = Constants.PRIVATE_REPO_TIMEOUT,
        max_concurrency: int = Constants.PREFETCH_MAX_CONCURRENCY,
    ):
        self._session = session or requests.Session()
        self._timeout = timeout
        self._private_timeout = private_timeout
        self._max_concurrency = max(1, max_concurrency)
        self._responses: Dict[str, FetchResponse] = {}

    def _timeout_for(self, auth: Optional[BasicAuth]) -> int:
        return self._private_timeout if auth else self._timeout

    def is_cached(self, url: str, auth: Optional[BasicAuth] = None) -> bool:
        return _cache_key(url, auth) in self._responses

    def _store(self, key: str, response: FetchResponse) -> None:
        # Server errors are not kept so a later read gets a fresh attempt
        if response.status_code < 500:
            self._responses[key] = response

    def get(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[BasicAuth] = None,
        context: str = "http",
    ) -> FetchResponse:
        """Perform a GET request, serving a stored response when available.

        Args:
            url: Target URL.
            headers: Optional request headers.
            auth: Optional HTTP basic credentials.
            context: Human-readable source tag for logs (e.g., "packagist").

        Returns:
            FetchResponse for any HTTP status.

        Raises:
            FetchError: On timeouts and connection failures.
        """
        key = _cache_key(url, auth)
        safe_target = safe_url(url)
        cached = self._responses.get(key)
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP cache hit",
                    extra=extra_context(
                        event="cache_hit",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        context=context,
                    ),
                )
            return cached

        timeout = self._timeout_for(auth)
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        context=context,
                    ),
                )
            try:
                res = self._session.get(url, headers=headers, auth=auth, timeout=timeout)
            except requests.Timeout as exc:
                logger.warning("%s request timed out after %s seconds", context, timeout)
                raise FetchError(
                    f"Request to {safe_target} timed out after {timeout} seconds", url=url
                ) from exc
            except requests.RequestException as exc:  # includes ConnectionError
                logger.warning("%s connection error: %s", context, exc)
                raise FetchError(f"Failed to fetch URL: {exc}", url=url) from exc

        response = FetchResponse(
            url=url,
            status_code=res.status_code,
            headers=dict(res.headers),
            text=res.text,
        )
        self._store(key, response)
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if response.ok else "non_2xx",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return response

    def get_json(
        self,
        url: str,
        *,
        auth: Optional[BasicAuth] = None,
        context: str = "http",
    ) -> Optional[Any]:
        """GET a JSON document; None on transport failure, non-2xx or bad JSON."""
        try:
            response = self.get(url, headers=Constants.JSON_HEADERS, auth=auth, context=context)
        except FetchError:
            return None
        if not response.ok:
            return None
        parsed = response.json()
        if parsed is None and is_debug_enabled(logger):
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=response.status_code,
                    target=safe_url(url),
                ),
            )
        return parsed

    def prefetch(self, targets: Iterable[PrefetchTarget]) -> int:
        """Fetch every not-yet-stored target concurrently.

        Failures are dropped silently; the regular ``get`` path retries them
        and reports errors, so prefetching never changes lookup outcomes.

        Returns:
            Number of responses stored.
        """
        pending: Dict[str, PrefetchTarget] = {}
        for target in targets:
            key = _cache_key(target.url, target.auth)
            if key not in self._responses and key not in pending:
                pending[key] = target
        if not pending:
            return 0
        logger.info("Prefetching %d URLs", len(pending))
        with Timer() as t:
            results = asyncio.run(self._prefetch_all(list(pending.values())))
        stored = 0
        for key, response in zip(pending.keys(), results):
            if response is None:
                continue
            before = len(self._responses)
            self._store(key, response)
            stored += len(self._responses) - before
        if is_debug_enabled(logger):
            logger.debug(
                "Prefetch complete",
                extra=extra_context(
                    event="prefetch",
                    component="http_client",
                    action="GET",
                    count=len(pending),
                    stored=stored,
                    duration_ms=t.duration_ms(),
                ),
            )
        return stored

    async def _prefetch_all(self, targets: List[PrefetchTarget]) -> List[Optional[FetchResponse]]:
        semaphore = asyncio.Semaphore(self._max_concurrency)
        connector = aiohttp.TCPConnector(limit=self._max_concurrency)
        async with aiohttp.ClientSession(connector=connector) as session:
            return await asyncio.gather(
                *(self._prefetch_one(session, semaphore, target) for target in targets)
            )

    async def _prefetch_one(
        self,
        session: aiohttp.ClientSession,
        semaphore: asyncio.Semaphore,
        target: PrefetchTarget,
    ) -> Optional[FetchResponse]:
        auth = aiohttp.BasicAuth(*target.auth) if target.auth else None
        timeout = aiohttp.ClientTimeout(total=self._timeout_for(target.auth))
        async with semaphore:
            try:
                async with session.get(
                    target.url, headers=target.headers, auth=auth, timeout=timeout
                ) as resp:
                    text = await resp.text(errors="replace")
                    return FetchResponse(
                        url=target.url,
                        status_code=resp.status,
                        headers=dict(resp.headers),
                        text=text,
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Prefetch failed",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome=type(exc).__name__,
                            target=safe_url(target.url),
                        ),
                    )
                return None
