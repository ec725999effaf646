"""Vendor product page scraping."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from vendorcheck.constants import Constants
from vendorcheck.common.http_client import FetchResponse, HttpFetcher
from vendorcheck.common.logging_utils import extra_context, is_debug_enabled, safe_url
from vendorcheck.errors import FetchError, VendorBlockedError
from vendorcheck.versioning.models import LookupResult, LookupSource

from .patterns import PatternCatalog

logger = logging.getLogger(__name__)

RegistryLookup = Callable[[str], Optional[str]]


def is_challenge(response: FetchResponse) -> bool:
    """True for a 403 whose body is an anti-bot challenge page."""
    if response.status_code != 403:
        return False
    body = response.text.lower()
    return any(marker.lower() in body for marker in Constants.CHALLENGE_MARKERS)


def _registry_fallback(
    registry_lookup: RegistryLookup, url: str, package_name: Optional[str]
) -> Optional[LookupResult]:
    if not package_name:
        return None
    version = registry_lookup(package_name)
    if version is None:
        return None
    logger.info("Vendor page unusable for %s; using Packagist version %s", package_name, version)
    return LookupResult(latest_version=version, source=LookupSource.REGISTRY, url=url)


def vendor_page_version(
    fetcher: HttpFetcher,
    catalog: PatternCatalog,
    registry_lookup: RegistryLookup,
    url: str,
    package_name: Optional[str] = None,
) -> LookupResult:
    """Scrape the latest version (and changelog) from a vendor page.

    Args:
        fetcher: Shared HTTP fetcher.
        catalog: Vendor extraction rules.
        registry_lookup: Packagist lookup used as fallback.
        url: Vendor product page.
        package_name: Enables the Packagist fallback when given.

    Raises:
        VendorBlockedError: The page served an anti-bot challenge.
        FetchError: The page could not be fetched.
        UnknownVendorError: No pattern matches ``url``.
    """
    try:
        response = fetcher.get(url, headers=Constants.BROWSER_HEADERS, context="vendor_page")
    except FetchError:
        fallback = _registry_fallback(registry_lookup, url, package_name)
        if fallback is not None:
            return fallback
        raise

    if not response.ok:
        fallback = _registry_fallback(registry_lookup, url, package_name)
        if fallback is not None:
            return fallback
        if is_challenge(response):
            raise VendorBlockedError(
                f"Blocked by anti-bot protection (HTTP 403) at {safe_url(url)}",
                url=url,
                status_code=403,
            )
        raise FetchError(
            f"Failed to fetch URL: HTTP {response.status_code} from {safe_url(url)}",
            url=url,
            status_code=response.status_code,
        )

    pattern = catalog.for_url(url)
    version = pattern.extract_version(response.text)
    changelog = pattern.extract_changelog(response.text)
    if is_debug_enabled(logger):
        logger.debug(
            "Vendor page parsed",
            extra=extra_context(
                event="parse",
                component="vendor_page",
                action="extract",
                outcome="found" if version else "no_version",
                vendor=pattern.vendor,
                changelog_entries=len(changelog),
                target=safe_url(url),
            ),
        )

    if version is None and package_name:
        registry = registry_lookup(package_name)
        if registry is not None:
            return LookupResult(
                latest_version=registry,
                source=LookupSource.REGISTRY,
                changelog=changelog,
                url=url,
            )
    return LookupResult(
        latest_version=version,
        source=LookupSource.VENDOR_PAGE,
        changelog=changelog,
        url=url,
    )
