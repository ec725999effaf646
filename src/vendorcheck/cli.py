"""vendor-check command line entry point."""
from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict, Iterable, List, Optional

from vendorcheck.args import parse_args
from vendorcheck.cache import ResultCache
from vendorcheck.common.http_client import HttpFetcher
from vendorcheck.common.logging_utils import configure_logging, extra_context, is_debug_enabled
from vendorcheck.config import load_config
from vendorcheck.constants import Constants, ExitCodes
from vendorcheck.errors import ConfigError, ManifestError, VendorCheckError
from vendorcheck.manifest import discover_private_repos, read_installed_packages
from vendorcheck.orchestrator import UpdateChecker
from vendorcheck.output import (
    ProgressReporter,
    format_csv,
    format_json,
    format_single,
    format_table,
    write_to_file,
)
from vendorcheck.registry.lookup import VersionLookup
from vendorcheck.registry.patterns import PatternCatalog
from vendorcheck.resolver import PackageResolver
from vendorcheck.versioning.models import ResolutionMethod

logger = logging.getLogger(__name__)

FORMATTERS = {
    "table": format_table,
    "json": format_json,
    "csv": format_csv,
}


def _setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments."""
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def exit_code_for(results: Iterable[Dict[str, Any]]) -> int:
    """0 = all current, 1 = updates available, 2 = errors."""
    statuses = {result.get("status") for result in results}
    if "ERROR" in statuses:
        return ExitCodes.ERRORS.value
    if "UPDATE_AVAILABLE" in statuses:
        return ExitCodes.UPDATES_AVAILABLE.value
    return ExitCodes.SUCCESS.value


def _parse_filter(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [name.strip() for name in raw.split(",") if name.strip()]


def _emit(content: str, output_path: Optional[str], fmt: str) -> None:
    if output_path:
        write_to_file(content, output_path)
        if fmt == "table":
            print(f"Results written to: {output_path}")
    else:
        print(content)


def check_single_url(url: str, checker: UpdateChecker, fmt: str, verbose: bool) -> int:
    """Scrape one vendor page and print what was found."""
    if fmt == "table":
        print(f"Checking vendor URL: {url}\n")
    try:
        result = checker.check_url(url).to_dict()
    except VendorCheckError as exc:
        if fmt == "json":
            print(format_json({"error": str(exc)}))
        else:
            print(f"Error: {exc}")
        return 1
    print(format_json(result) if fmt == "json" else format_single(result, verbose))
    return 0


def run(args: Any) -> int:
    """Execute a check run for parsed arguments and return the exit code."""
    fmt = args.OUTPUT_FORMAT
    config = load_config(args.CONFIG)
    catalog = PatternCatalog.with_overrides(config.get("vendor_patterns"))
    lookup = VersionLookup(fetcher=HttpFetcher(), catalog=catalog)

    if args.URL:
        return check_single_url(args.URL, UpdateChecker([], PackageResolver(), lookup), fmt, args.VERBOSE)

    lock_path = args.LOCK_PATH
    installed = read_installed_packages(lock_path)
    lock_dir = os.path.dirname(os.path.realpath(lock_path))
    composer_json = os.path.join(lock_dir, Constants.COMPOSER_JSON_FILE)
    auth_json = os.path.join(lock_dir, Constants.AUTH_JSON_FILE)

    cache = None
    if not args.NO_CACHE:
        cache = ResultCache(os.path.join(lock_dir, Constants.CACHE_DIR_NAME), args.CACHE_TTL)
        if args.CLEAR_CACHE:
            cache.clear()
            if fmt == "table":
                print("Cache cleared.")

    private_repos = discover_private_repos(
        lock_path,
        composer_json,
        auth_json,
        skip_hosts=config["skip_hosts"],
        skip_patterns=config["skip_patterns"],
    )
    resolver = PackageResolver(
        url_mappings=config["package_url_mappings"],
        skip_vendors=config["skip_vendors"],
        skip_packages=config["skip_packages"],
        private_repos=private_repos,
    )
    checker = UpdateChecker(installed, resolver, lookup, cache)
    package_filter = _parse_filter(args.PACKAGES)

    if fmt == "table":
        print(f"Checking packages from: {lock_path}")
        if args.VERBOSE:
            if private_repos:
                print(f"Private repos: {len(set(r.repo_url for r in private_repos.values()))} found")
            if cache is not None:
                print(f"Cache TTL: {cache.ttl}s")
        print("")

    progress = None
    if fmt == "table" or args.OUTPUT:
        to_report = checker.installed_packages(package_filter).values()
        progress = ProgressReporter(
            sum(1 for pkg in to_report if pkg.resolution.method != ResolutionMethod.SKIP)
        )

    results = checker.check_for_updates(package_filter, progress)
    if progress is not None:
        progress.finish()

    _emit(FORMATTERS[fmt](results), args.OUTPUT, fmt)
    return exit_code_for(results)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main"),
        )
    try:
        return run(args)
    except (ManifestError, ConfigError) as exc:
        logger.error("%s", exc)
        sys.stderr.write(f"Error: {exc}\n")
        return ExitCodes.ERRORS.value


if __name__ == "__main__":
    sys.exit(main())
