"""Exception types raised by vendor-check."""


class VendorCheckError(Exception):
    """Base class for all vendor-check errors."""


class FetchError(VendorCheckError):
    """A page or index could not be fetched."""

    def __init__(self, message: str, url: str = "", status_code: int = 0):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class VendorBlockedError(FetchError):
    """The vendor page answered with an anti-bot challenge."""


class UnknownVendorError(VendorCheckError):
    """No vendor pattern is configured for a URL."""


class ManifestError(VendorCheckError):
    """composer.lock is missing or unreadable; aborts the run."""


class ConfigError(VendorCheckError):
    """The configuration file is missing or malformed."""
