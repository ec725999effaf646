"""Version lookup engine: registry, vendor page and private repository."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from vendorcheck.constants import Constants
from vendorcheck.common.http_client import HttpFetcher, PrefetchTarget
from vendorcheck.versioning.models import Credentials, LookupResult, ResolutionMethod, ResolvedPackage

from . import packagist, private_repo, vendor_page
from .patterns import PatternCatalog

logger = logging.getLogger(__name__)


class VersionLookup:
    """Runs the three lookup strategies over one shared fetcher."""

    def __init__(
        self,
        fetcher: Optional[HttpFetcher] = None,
        catalog: Optional[PatternCatalog] = None,
        registry_url: str = Constants.REGISTRY_URL_PACKAGIST,
    ):
        self.fetcher = fetcher or HttpFetcher()
        self.catalog = catalog or PatternCatalog()
        self.registry_url = registry_url

    def registry_version(self, package_name: str) -> Optional[str]:
        return packagist.registry_version(self.fetcher, package_name, self.registry_url)

    def vendor_page_version(self, url: str, package_name: Optional[str] = None) -> LookupResult:
        return vendor_page.vendor_page_version(
            self.fetcher, self.catalog, self.registry_version, url, package_name
        )

    def private_repo_version(
        self, package_name: str, repo_url: str, credentials: Optional[Credentials]
    ) -> Optional[str]:
        return private_repo.private_repo_version(self.fetcher, package_name, repo_url, credentials)

    def prefetch_targets(self, packages: Iterable[ResolvedPackage]) -> List[PrefetchTarget]:
        """Every URL the given packages' lookups may read.

        Packagist is included for all of them since it is also the fallback
        for vendor pages and private repositories.
        """
        targets: List[PrefetchTarget] = []
        for pkg in packages:
            resolution = pkg.resolution
            if resolution.method == ResolutionMethod.VENDOR_PAGE and resolution.url:
                targets.append(PrefetchTarget(resolution.url, headers=Constants.BROWSER_HEADERS))
            elif resolution.method == ResolutionMethod.PRIVATE_REPO and resolution.credentials:
                for url in private_repo.endpoint_urls(resolution.repo_url or "", pkg.name):
                    targets.append(
                        PrefetchTarget(url, auth=resolution.credentials, headers=Constants.JSON_HEADERS)
                    )
            targets.append(
                PrefetchTarget(
                    packagist.packagist_url(pkg.name, self.registry_url),
                    headers=Constants.JSON_HEADERS,
                )
            )
        return targets

    def prefetch(self, packages: Iterable[ResolvedPackage]) -> int:
        """Warm the fetcher for a batch of packages; outcomes are unaffected."""
        return self.fetcher.prefetch(self.prefetch_targets(packages))
