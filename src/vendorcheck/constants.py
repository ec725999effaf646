"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    UPDATES_AVAILABLE = 1
    ERRORS = 2


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_PACKAGIST = "https://repo.packagist.org/p2/"
    LOCK_FILE = "composer.lock"
    COMPOSER_JSON_FILE = "composer.json"
    AUTH_JSON_FILE = "auth.json"
    CACHE_DIR_NAME = ".vendor-check-cache"
    CACHE_FILE_NAME = "results.json"
    CACHE_TTL_SEC = 3600
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "VENDORCHECK_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for public HTTP requests
    PRIVATE_REPO_TIMEOUT = 60  # Authenticated repositories can be slow
    PREFETCH_MAX_CONCURRENCY = 8
    RECENT_CHANGES_LIMIT = 3

    # Release labels never reported as "latest"
    PRERELEASE_MARKERS = ("dev", "alpha", "beta", "rc")

    # Bodies of 403 responses served by bot challenges
    CHALLENGE_MARKERS = (
        "cf-browser-verification",
        "cf_chl_",
        "challenge-platform",
        "Just a moment...",
        "Attention Required! | Cloudflare",
        "captcha",
    )

    BROWSER_HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    JSON_HEADERS = {"Accept": "application/json"}
