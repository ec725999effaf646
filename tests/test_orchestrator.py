"""Tests for the update check orchestration."""

import pytest
from conftest import p2_body

from vendorcheck.cache import ResultCache
from vendorcheck.orchestrator import METHOD_CACHED, UpdateChecker
from vendorcheck.registry.lookup import VersionLookup
from vendorcheck.resolver import PackageResolver
from vendorcheck.versioning.models import InstalledPackage, PrivateRepo, UpdateStatus

PACKAGIST = "https://repo.packagist.org/p2/{}.json"
AMASTY_URL = "https://amasty.com/special-promotions-for-magento-2.html"
PRIVATE_REPO = "https://composer.private.example.com"

AMASTY_PAGE = """
<div class="amasty-changelog">
  <h3>Version 2.3.1</h3><p>April 1, 2024</p>
  <h3>Version 2.3.0</h3><p>March 1, 2024</p>
  <h3>Version 2.2.9</h3><p>February 1, 2024</p>
  <h3>Version 2.2.8</h3><p>January 1, 2024</p>
</div>
"""

INSTALLED = [
    InstalledPackage("magento/framework", "103.0.7"),
    InstalledPackage("amasty/promo", "2.3.0"),
    InstalledPackage("acme/internal-tools", "1.0.0"),
    InstalledPackage("private/widget", "1.0.0"),
    InstalledPackage("stripe/stripe-php", "10.2.0"),
    InstalledPackage("monolog/monolog", "2.9.1"),
    InstalledPackage("gone/package", "1.0.0"),
]


class Progress:
    """Records progress callbacks."""

    def __init__(self):
        self.events = []

    def advance(self, name, method, status=None):
        self.events.append((name, method, status))


class FlushCountingCache(ResultCache):
    """ResultCache that counts flushes."""

    flushes = 0

    def flush(self):
        self.flushes += 1
        super().flush()


@pytest.fixture
def prefetched(monkeypatch, fetcher):
    batches = []
    monkeypatch.setattr(fetcher, "prefetch", lambda targets: batches.append(list(targets)) or 0)
    return batches


@pytest.fixture
def resolver():
    return PackageResolver(
        url_mappings={"amasty/promo": AMASTY_URL},
        skip_vendors=["magento", "monolog"],
        skip_packages=["acme/internal-tools"],
        private_repos={"private/widget": PrivateRepo(PRIVATE_REPO, ("user", "pass"))},
    )


@pytest.fixture
def routes(session):
    session.add(AMASTY_URL, body=AMASTY_PAGE)
    session.add(PACKAGIST.format("private/widget"), body=p2_body("private/widget", ["1.1.0"]))
    session.add(PACKAGIST.format("stripe/stripe-php"), body=p2_body("stripe/stripe-php", ["v10.2.0"]))
    return session


def make_checker(fetcher, resolver, cache=None, installed=INSTALLED):
    return UpdateChecker(installed, resolver, VersionLookup(fetcher=fetcher), cache)


class TestCheckForUpdates:
    """Full runs over a mixed manifest."""

    def test_skipped_packages_are_omitted_and_order_kept(self, fetcher, resolver, routes, prefetched):
        results = make_checker(fetcher, resolver).check_for_updates()

        assert [r["package"] for r in results] == [
            "amasty/promo",
            "private/widget",
            "stripe/stripe-php",
            "gone/package",
        ]
        assert [r["status"] for r in results] == [
            "UPDATE_AVAILABLE",
            "UPDATE_AVAILABLE",
            "UP_TO_DATE",
            "UNAVAILABLE",
        ]

    def test_record_fields(self, fetcher, resolver, routes, prefetched):
        by_name = {r["package"]: r for r in make_checker(fetcher, resolver).check_for_updates()}

        amasty = by_name["amasty/promo"]
        assert amasty["installed_version"] == "2.3.0"
        assert amasty["latest_version"] == "2.3.1"
        assert amasty["source"] == "vendor_page"
        assert [c["version"] for c in amasty["recent_changes"]] == ["2.3.1", "2.3.0", "2.2.9"]
        assert "checked_at" in amasty

        widget = by_name["private/widget"]
        assert widget["latest_version"] == "1.1.0"
        assert widget["source"] == "registry"

        stripe = by_name["stripe/stripe-php"]
        assert stripe["latest_version"] == "10.2.0"
        assert "error" not in stripe
        assert "recent_changes" not in stripe

        gone = by_name["gone/package"]
        assert gone["latest_version"] is None
        assert "source" not in gone
        assert gone["error"] == "No stable release found on Packagist"

    def test_prefetch_covers_packages_to_check(self, fetcher, resolver, routes, prefetched):
        make_checker(fetcher, resolver).check_for_updates()

        assert len(prefetched) == 1
        urls = [target.url for target in prefetched[0]]
        assert AMASTY_URL in urls
        assert f"{PRIVATE_REPO}/p2/private/widget.json" in urls
        assert PACKAGIST.format("gone/package") in urls
        assert PACKAGIST.format("magento/framework") not in urls

    def test_private_repo_hit(self, fetcher, resolver, routes, prefetched):
        routes.add(f"{PRIVATE_REPO}/p2/private/widget.json", body=p2_body("private/widget", ["1.0.0", "1.2.0"]))
        checker = make_checker(fetcher, resolver, installed=[InstalledPackage("private/widget", "1.0.0")])

        (record,) = checker.check_for_updates()

        assert record["latest_version"] == "1.2.0"
        assert record["source"] == "private_repo"

    def test_private_repo_and_packagist_both_empty(self, fetcher, resolver, session, prefetched):
        checker = make_checker(fetcher, resolver, installed=[InstalledPackage("private/widget", "1.0.0")])

        (record,) = checker.check_for_updates()

        assert record["status"] == "UNAVAILABLE"
        assert "credentials may have expired" in record["error"]

    def test_vendor_page_failure_is_an_error_record(self, fetcher, resolver, session, prefetched):
        session.fail(AMASTY_URL)
        checker = make_checker(fetcher, resolver, installed=[InstalledPackage("amasty/promo", "2.3.0")])

        (record,) = checker.check_for_updates()

        assert record["status"] == "ERROR"
        assert record["latest_version"] is None
        assert "connection refused" in record["error"]

    def test_vendor_page_blocked_with_packagist_fallback(self, fetcher, resolver, session, prefetched):
        session.add(AMASTY_URL, status=403, body="Just a moment...")
        session.add(PACKAGIST.format("amasty/promo"), body=p2_body("amasty/promo", ["2.3.0"]))
        checker = make_checker(fetcher, resolver, installed=[InstalledPackage("amasty/promo", "2.3.0")])

        (record,) = checker.check_for_updates()

        assert record["status"] == "UP_TO_DATE"
        assert record["source"] == "registry"

    def test_filter_limits_run(self, fetcher, resolver, routes, prefetched):
        results = make_checker(fetcher, resolver).check_for_updates(["stripe/stripe-php", "not/installed"])
        assert [r["package"] for r in results] == ["stripe/stripe-php"]

    def test_progress_reports_each_checked_package(self, fetcher, resolver, routes, prefetched):
        progress = Progress()
        make_checker(fetcher, resolver).check_for_updates(progress=progress)
        assert progress.events == [
            ("amasty/promo", "vendor_page", "UPDATE_AVAILABLE"),
            ("private/widget", "private_repo", "UPDATE_AVAILABLE"),
            ("stripe/stripe-php", "registry", "UP_TO_DATE"),
            ("gone/package", "registry", "UNAVAILABLE"),
        ]


class TestCaching:
    """Interaction with the result cache."""

    def test_results_are_cached_and_flushed_once(self, tmp_path, fetcher, resolver, routes, prefetched):
        cache = FlushCountingCache(str(tmp_path))
        results = make_checker(fetcher, resolver, cache).check_for_updates()

        assert cache.flushes == 1
        fresh = ResultCache(str(tmp_path))
        for record in results:
            assert fresh.get(record["package"]) == record
        assert fresh.get("magento/framework") is None

    def test_cache_hit_skips_lookup(self, tmp_path, fetcher, resolver, session, prefetched):
        cached = {
            "package": "stripe/stripe-php",
            "installed_version": "10.0.0",
            "latest_version": "10.2.0",
            "status": "UPDATE_AVAILABLE",
            "source": "registry",
            "checked_at": "2024-01-01 00:00:00",
        }
        cache = ResultCache(str(tmp_path))
        cache.set("stripe/stripe-php", cached)
        progress = Progress()

        results = make_checker(fetcher, resolver, cache).check_for_updates(["stripe/stripe-php"], progress)

        assert results == [cached]
        assert session.calls == []
        assert prefetched == []
        assert progress.events == [("stripe/stripe-php", METHOD_CACHED, "UPDATE_AVAILABLE")]


class TestHelpers:
    """Static comparison and single URL checks."""

    @pytest.mark.parametrize("installed,latest,expected", [
        ("1.0.0", "1.0.1", UpdateStatus.UPDATE_AVAILABLE),
        ("v2.0.0", "2.0.0", UpdateStatus.UP_TO_DATE),
        ("3.1.0", "3.0.9", UpdateStatus.AHEAD_OF_VENDOR),
    ])
    def test_compare_versions(self, installed, latest, expected):
        assert UpdateChecker.compare_versions(installed, latest) == expected

    def test_check_url(self, fetcher, resolver, routes):
        result = make_checker(fetcher, resolver).check_url(AMASTY_URL)
        assert result.latest_version == "2.3.1"
        assert len(result.changelog) == 4

    def test_installed_packages_resolutions(self, fetcher, resolver):
        resolved = make_checker(fetcher, resolver).installed_packages()
        assert resolved["acme/internal-tools"].resolution.reason == "skip_packages"
        assert resolved["monolog/monolog"].resolution.reason == "skip_vendors"
        assert resolved["private/widget"].resolution.repo_url == PRIVATE_REPO


class TestFailureIsolation:
    """One package's failure never stops the batch."""

    def test_bad_provider_metadata_falls_back(self, fetcher, resolver, routes, prefetched):
        routes.add(f"{PRIVATE_REPO}/packages.json", body={
            "packages": [],
            "providers-url": "/p/%package%$%hash%.json",
            "provider-includes": {"p/provider-latest$%hash%.json": {"sha256": None}},
        })
        installed = [InstalledPackage("private/widget", "1.0.0"), InstalledPackage("stripe/stripe-php", "10.2.0")]

        results = make_checker(fetcher, resolver, installed=installed).check_for_updates()

        assert [(r["package"], r["status"], r.get("source")) for r in results] == [
            ("private/widget", "UPDATE_AVAILABLE", "registry"),
            ("stripe/stripe-php", "UP_TO_DATE", "registry"),
        ]

    def test_unexpected_exception_becomes_error_record(
        self, tmp_path, monkeypatch, fetcher, resolver, routes, prefetched, caplog
    ):
        lookup = VersionLookup(fetcher=fetcher)

        def broken(name, repo_url, credentials):
            raise TypeError("replace() argument 2 must be str, not None")

        monkeypatch.setattr(lookup, "private_repo_version", broken)
        cache = FlushCountingCache(str(tmp_path))
        installed = [InstalledPackage("private/widget", "1.0.0"), InstalledPackage("stripe/stripe-php", "10.2.0")]

        results = UpdateChecker(installed, resolver, lookup, cache).check_for_updates()

        widget, stripe = results
        assert widget["status"] == "ERROR"
        assert widget["latest_version"] is None
        assert "TypeError" in widget["error"]
        assert stripe["status"] == "UP_TO_DATE"
        assert cache.flushes == 1
        assert "Unexpected failure checking private/widget" in caplog.text
