"""Version sources: Packagist, private Composer repositories and vendor pages."""

from .lookup import VersionLookup
from .patterns import PatternCatalog, VendorPattern

__all__ = ["PatternCatalog", "VendorPattern", "VersionLookup"]
