"""Per-package lookup strategy selection.

Resolution order, first match wins:

1. package in ``skip_packages`` -> skip
2. vendor in ``skip_vendors`` -> skip
3. package in ``package_url_mappings`` -> vendor page (Packagist fallback)
4. package in the private repository map -> private repo (Packagist fallback)
5. otherwise -> Packagist
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

from vendorcheck.common.logging_utils import extra_context, is_debug_enabled
from vendorcheck.versioning.models import (
    InstalledPackage,
    PrivateRepo,
    ResolvedPackage,
    Resolution,
    ResolutionMethod,
    vendor_of,
)

logger = logging.getLogger(__name__)

REASON_SKIP_PACKAGES = "skip_packages"
REASON_SKIP_VENDORS = "skip_vendors"


class PackageResolver:
    """Decides how each installed package is checked."""

    def __init__(
        self,
        url_mappings: Optional[Mapping[str, str]] = None,
        skip_vendors: Optional[Iterable[str]] = None,
        skip_packages: Optional[Iterable[str]] = None,
        private_repos: Optional[Mapping[str, PrivateRepo]] = None,
    ):
        self._url_mappings = dict(url_mappings or {})
        self._skip_vendors = frozenset(skip_vendors or ())
        self._skip_packages = frozenset(skip_packages or ())
        self._private_repos = dict(private_repos or {})

    def resolve(self, package_name: str) -> Resolution:
        if package_name in self._skip_packages:
            return Resolution(ResolutionMethod.SKIP, reason=REASON_SKIP_PACKAGES)
        if vendor_of(package_name) in self._skip_vendors:
            return Resolution(ResolutionMethod.SKIP, reason=REASON_SKIP_VENDORS)
        if package_name in self._url_mappings:
            return Resolution(ResolutionMethod.VENDOR_PAGE, url=self._url_mappings[package_name])
        repo = self._private_repos.get(package_name)
        if repo is not None:
            return Resolution(
                ResolutionMethod.PRIVATE_REPO,
                repo_url=repo.repo_url,
                credentials=repo.credentials,
            )
        return Resolution(ResolutionMethod.REGISTRY)

    def resolve_all(self, installed: Iterable[InstalledPackage]) -> Dict[str, ResolvedPackage]:
        resolved = {
            pkg.name: ResolvedPackage(pkg.name, pkg.version, self.resolve(pkg.name))
            for pkg in installed
        }
        if is_debug_enabled(logger):
            counts: Dict[str, int] = {}
            for item in resolved.values():
                key = item.resolution.method.value
                counts[key] = counts.get(key, 0) + 1
            logger.debug(
                "Resolved packages",
                extra=extra_context(
                    event="decision",
                    component="resolver",
                    action="resolve_all",
                    count=len(resolved),
                    methods=counts,
                ),
            )
        return resolved
