"""Update check orchestration: resolve, serve cache hits, prefetch, look up."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from vendorcheck.constants import Constants
from vendorcheck.cache import ResultCache
from vendorcheck.common.fallback import first_present
from vendorcheck.common.logging_utils import extra_context, is_debug_enabled, Timer
from vendorcheck.errors import VendorCheckError
from vendorcheck.registry.lookup import VersionLookup
from vendorcheck.resolver import PackageResolver
from vendorcheck.versioning import compare
from vendorcheck.versioning.models import (
    InstalledPackage,
    LookupResult,
    LookupSource,
    ResolvedPackage,
    ResolutionMethod,
    UpdateStatus,
)

logger = logging.getLogger(__name__)

METHOD_CACHED = "cached"


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def build_record(
    pkg: ResolvedPackage,
    latest_version: Optional[str],
    status: UpdateStatus,
    source: Optional[LookupSource] = None,
    error: Optional[str] = None,
    recent_changes: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Result record handed to formatters; optional keys only when set."""
    record: Dict[str, Any] = {
        "package": pkg.name,
        "installed_version": pkg.version,
        "latest_version": latest_version,
        "status": status.value,
    }
    if source is not None:
        record["source"] = source.value
    if error:
        record["error"] = error
    if recent_changes:
        record["recent_changes"] = recent_changes
    record["checked_at"] = _now()
    return record


class UpdateChecker:
    """Checks installed packages for newer releases."""

    def __init__(
        self,
        installed: Sequence[InstalledPackage],
        resolver: PackageResolver,
        lookup: Optional[VersionLookup] = None,
        cache: Optional[ResultCache] = None,
    ):
        self._installed = list(installed)
        self._resolver = resolver
        self._lookup = lookup or VersionLookup()
        self._cache = cache

    @staticmethod
    def compare_versions(installed: str, latest: str) -> UpdateStatus:
        return compare.compare_versions(installed, latest)

    def installed_packages(
        self, package_filter: Optional[Iterable[str]] = None
    ) -> Dict[str, ResolvedPackage]:
        """Resolutions for the installed packages, optionally filtered by name."""
        wanted = set(package_filter) if package_filter else None
        selected = [p for p in self._installed if wanted is None or p.name in wanted]
        return self._resolver.resolve_all(selected)

    def check_url(self, url: str) -> LookupResult:
        """Scrape a single vendor page without any package context."""
        return self._lookup.vendor_page_version(url)

    def check_for_updates(
        self,
        package_filter: Optional[Iterable[str]] = None,
        progress: Optional[Any] = None,
    ) -> List[Dict[str, Any]]:
        """Check every non-skipped package and return one record per package.

        Args:
            package_filter: Restrict the run to these package names.
            progress: Object with ``advance(name, method, status)``.

        Returns:
            Records in manifest order.
        """
        resolved = self.installed_packages(package_filter)
        results: Dict[str, Dict[str, Any]] = {}
        to_check: List[ResolvedPackage] = []

        for name, pkg in resolved.items():
            if pkg.resolution.method == ResolutionMethod.SKIP:
                continue
            cached = self._cache.get(name) if self._cache is not None else None
            if cached is not None:
                results[name] = cached
                if progress is not None:
                    progress.advance(name, METHOD_CACHED, cached.get("status"))
                continue
            to_check.append(pkg)

        logger.info(
            "%d packages to check, %d served from cache, %d skipped",
            len(to_check),
            len(results),
            len(resolved) - len(to_check) - len(results),
        )

        if to_check:
            self._lookup.prefetch(to_check)

        for pkg in to_check:
            with Timer() as t:
                record = self._check(pkg)
            if is_debug_enabled(logger):
                logger.debug(
                    "Package checked",
                    extra=extra_context(
                        event="check",
                        component="orchestrator",
                        action=pkg.resolution.method.value,
                        outcome=record["status"],
                        package=pkg.name,
                        duration_ms=t.duration_ms(),
                    ),
                )
            if self._cache is not None:
                self._cache.set(pkg.name, record)
            results[pkg.name] = record
            if progress is not None:
                progress.advance(pkg.name, pkg.resolution.method.value, record["status"])

        if self._cache is not None:
            self._cache.flush()

        return [results[name] for name in resolved if name in results]

    def _check(self, pkg: ResolvedPackage) -> Dict[str, Any]:
        method = pkg.resolution.method
        try:
            if method == ResolutionMethod.VENDOR_PAGE:
                return self._check_vendor_page(pkg)
            if method == ResolutionMethod.PRIVATE_REPO:
                return self._check_private_repo(pkg)
            return self._check_registry(pkg)
        except VendorCheckError as exc:
            logger.warning("Check failed for %s: %s", pkg.name, exc)
            return build_record(pkg, None, UpdateStatus.ERROR, error=str(exc))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected failure checking %s", pkg.name)
            return build_record(
                pkg, None, UpdateStatus.ERROR, error=f"Unexpected error: {type(exc).__name__}: {exc}"
            )

    def _compared(
        self, pkg: ResolvedPackage, latest: str, source: LookupSource, **extra: Any
    ) -> Dict[str, Any]:
        status = self.compare_versions(pkg.version, latest)
        return build_record(pkg, latest, status, source=source, **extra)

    def _check_registry(self, pkg: ResolvedPackage) -> Dict[str, Any]:
        latest = self._lookup.registry_version(pkg.name)
        if latest is None:
            return build_record(
                pkg,
                None,
                UpdateStatus.UNAVAILABLE,
                error="No stable release found on Packagist",
            )
        return self._compared(pkg, latest, LookupSource.REGISTRY)

    def _check_private_repo(self, pkg: ResolvedPackage) -> Dict[str, Any]:
        resolution = pkg.resolution

        def tagged(version: Optional[str], source: LookupSource) -> Optional[Tuple[str, LookupSource]]:
            return (version, source) if version is not None else None

        found = first_present([
            ("private_repo", lambda: tagged(
                self._lookup.private_repo_version(
                    pkg.name, resolution.repo_url or "", resolution.credentials
                ),
                LookupSource.PRIVATE_REPO,
            )),
            ("registry", lambda: tagged(
                self._lookup.registry_version(pkg.name), LookupSource.REGISTRY
            )),
        ])
        if found is None:
            return build_record(
                pkg,
                None,
                UpdateStatus.UNAVAILABLE,
                error=(
                    f"Not found in private repository {resolution.repo_url} or on Packagist "
                    "(credentials may have expired)"
                ),
            )
        latest, source = found
        return self._compared(pkg, latest, source)

    def _check_vendor_page(self, pkg: ResolvedPackage) -> Dict[str, Any]:
        result = self._lookup.vendor_page_version(pkg.resolution.url or "", pkg.name)
        if result.latest_version is None:
            return build_record(
                pkg,
                None,
                UpdateStatus.UNAVAILABLE,
                source=result.source,
                error="No version found on vendor page or Packagist",
            )
        changes = [
            entry.to_dict() for entry in result.changelog[:Constants.RECENT_CHANGES_LIMIT]
        ]
        return self._compared(
            pkg, result.latest_version, result.source, recent_changes=changes or None
        )
