"""Argument parsing functionality for vendor-check."""

import argparse
from typing import List, Optional

from vendorcheck.constants import Constants


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="vendor-check",
        description="Check installed Composer packages for available updates",
        epilog=(
            "examples:\n"
            "  vendor-check\n"
            "  vendor-check --packages=amasty/promo,stripe/stripe-payments\n"
            "  vendor-check --url=https://amasty.com/admin-actions-log-for-magento-2.html\n"
            "  vendor-check --format=csv --output=report.csv\n"
            "  vendor-check --clear-cache"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=True,
    )

    parser.add_argument("-p", "--path",
                        dest="LOCK_PATH",
                        help="Path to composer.lock file",
                        action="store", type=str,
                        default=f"./{Constants.LOCK_FILE}")
    parser.add_argument("--packages",
                        dest="PACKAGES",
                        help="Comma-separated list of package names to check",
                        action="store", type=str)
    parser.add_argument("-u", "--url",
                        dest="URL",
                        help="Single vendor URL to check",
                        action="store", type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format: table, json, csv (default: table)",
                        action="store",
                        type=str.lower,
                        choices=["table", "json", "csv"],
                        default="table")
    parser.add_argument("-j", "--json",
                        dest="JSON",
                        help="Output results as JSON (alias for --format=json)",
                        action="store_true")
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Write results to file path",
                        action="store", type=str)
    parser.add_argument("--no-cache",
                        dest="NO_CACHE",
                        help="Skip reading and writing cached results",
                        action="store_true")
    parser.add_argument("--clear-cache",
                        dest="CLEAR_CACHE",
                        help="Clear cache before running",
                        action="store_true")
    parser.add_argument("--cache-ttl",
                        dest="CACHE_TTL",
                        help="Cache TTL in seconds",
                        action="store", type=int,
                        default=Constants.CACHE_TTL_SEC)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML package configuration file",
                        action="store", type=str)
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="Show recent changes and run details",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: $VENDORCHECK_LOG_LEVEL or WARNING)",
                        action="store",
                        type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    args = parser.parse_args(argv)
    if args.JSON:
        args.OUTPUT_FORMAT = "json"
    return args
