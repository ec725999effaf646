"""Packagist registry lookups via the p2 metadata endpoint."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from vendorcheck.constants import Constants
from vendorcheck.common.http_client import HttpFetcher
from vendorcheck.versioning.compare import first_stable

logger = logging.getLogger(__name__)


def packagist_url(package_name: str, base_url: str = Constants.REGISTRY_URL_PACKAGIST) -> str:
    return f"{base_url}{package_name}.json"


def versions_in(data: Any, package_name: str) -> Optional[List[str]]:
    """Version strings listed for ``package_name`` in a Composer index.

    Handles the p2 shape (a list of release objects) and the legacy shape
    (a mapping keyed by version). Returns None when the package is absent.
    """
    if not isinstance(data, dict):
        return None
    packages = data.get("packages")
    if not isinstance(packages, dict) or package_name not in packages:
        return None
    entry = packages[package_name]
    versions: List[str] = []
    if isinstance(entry, list):
        for release in entry:
            if isinstance(release, dict) and release.get("version"):
                versions.append(str(release["version"]))
    elif isinstance(entry, dict):
        for key, release in entry.items():
            if isinstance(release, dict) and release.get("version"):
                versions.append(str(release["version"]))
            else:
                versions.append(str(key))
    return versions


def registry_version(
    fetcher: HttpFetcher,
    package_name: str,
    base_url: str = Constants.REGISTRY_URL_PACKAGIST,
) -> Optional[str]:
    """Latest stable release on Packagist, or None.

    The p2 listing is newest first, so the first stable entry wins.
    Network failures, non-2xx answers and missing packages all yield None.
    """
    data = fetcher.get_json(packagist_url(package_name, base_url), context="packagist")
    versions = versions_in(data, package_name)
    if not versions:
        logger.debug("No Packagist releases for %s", package_name)
        return None
    return first_stable(versions)
