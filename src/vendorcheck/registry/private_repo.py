"""Private Composer repository lookups (p2, legacy p/ and packages.json)."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, List, Optional

from vendorcheck.common.fallback import first_present
from vendorcheck.common.http_client import HttpFetcher
from vendorcheck.common.logging_utils import extra_context, is_debug_enabled, safe_url
from vendorcheck.versioning.compare import highest_stable
from vendorcheck.versioning.models import Credentials

from .packagist import versions_in

logger = logging.getLogger(__name__)

CONTEXT = "private_repo"


def endpoint_urls(repo_url: str, package_name: str) -> List[str]:
    """Index URLs tried in order: p2 per-package, legacy per-package, full index."""
    base = repo_url.rstrip("/")
    return [
        f"{base}/p2/{package_name}.json",
        f"{base}/p/{package_name}.json",
        f"{base}/packages.json",
    ]


def _absolute(repo_url: str, path: str) -> str:
    return urllib.parse.urljoin(repo_url.rstrip("/") + "/", path)


class _NoStableRelease:
    """Marker: the package is listed without a stable release; ends the chain."""


def _version_from(data: Any, package_name: str) -> Optional[str]:
    versions = versions_in(data, package_name)
    if versions is None:
        return None
    return highest_stable(versions)


def _from_providers(
    fetcher: HttpFetcher,
    data: Any,
    package_name: str,
    repo_url: str,
    credentials: Credentials,
) -> Optional[str]:
    """Follow provider-includes to the package's hashed metadata file."""
    includes = data.get("provider-includes")
    providers_url = data.get("providers-url")
    if not isinstance(includes, dict) or not isinstance(providers_url, str) or not providers_url:
        return None

    for include_path, meta in includes.items():
        include_hash = meta.get("sha256", "") if isinstance(meta, dict) else ""
        if not isinstance(include_path, str) or not isinstance(include_hash, str):
            logger.debug("Skipping malformed provider include %r", include_path)
            continue
        include_url = _absolute(repo_url, include_path.replace("%hash%", include_hash))
        include_data = fetcher.get_json(include_url, auth=credentials, context=CONTEXT)
        if not isinstance(include_data, dict):
            continue
        providers = include_data.get("providers")
        if not isinstance(providers, dict) or package_name not in providers:
            continue
        entry = providers[package_name]
        package_hash = entry.get("sha256") if isinstance(entry, dict) else None
        if not isinstance(package_hash, str) or not package_hash:
            continue
        package_url = _absolute(
            repo_url,
            providers_url.replace("%package%", package_name).replace("%hash%", package_hash),
        )
        package_data = fetcher.get_json(package_url, auth=credentials, context=CONTEXT)
        version = _version_from(package_data, package_name)
        if version is not None:
            return version
    return None


def private_repo_version(
    fetcher: HttpFetcher,
    package_name: str,
    repo_url: str,
    credentials: Optional[Credentials],
) -> Optional[str]:
    """Highest stable release in a private repository, or None.

    Third-party indexes are not ordered, so the maximum by version order is
    taken. Without credentials nothing is requested.
    """
    if not repo_url or not credentials or not all(credentials):
        logger.debug("No credentials for %s; skipping private repository", package_name)
        return None

    def attempt(url: str):
        def run() -> Optional[Any]:
            data = fetcher.get_json(url, auth=credentials, context=CONTEXT)
            if not isinstance(data, dict):
                return None
            if versions_in(data, package_name) is not None:
                return _version_from(data, package_name) or _NoStableRelease()
            return _from_providers(fetcher, data, package_name, repo_url, credentials)
        return run

    outcome = first_present((url, attempt(url)) for url in endpoint_urls(repo_url, package_name))
    if isinstance(outcome, _NoStableRelease):
        outcome = None
    if is_debug_enabled(logger):
        logger.debug(
            "Private repository lookup",
            extra=extra_context(
                event="lookup",
                component="private_repo",
                action="private_repo_version",
                outcome="found" if outcome else "absent",
                target=safe_url(repo_url),
                package=package_name,
            ),
        )
    return outcome
