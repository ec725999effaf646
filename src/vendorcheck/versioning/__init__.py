"""Version models and comparison helpers."""

from .compare import compare_versions, first_stable, highest_stable, strip_v, version_key
from .models import (
    ChangelogEntry,
    InstalledPackage,
    LookupResult,
    LookupSource,
    PrivateRepo,
    ResolvedPackage,
    Resolution,
    ResolutionMethod,
    UpdateStatus,
    vendor_of,
)

__all__ = [
    "ChangelogEntry",
    "InstalledPackage",
    "LookupResult",
    "LookupSource",
    "PrivateRepo",
    "ResolvedPackage",
    "Resolution",
    "ResolutionMethod",
    "UpdateStatus",
    "compare_versions",
    "first_stable",
    "highest_stable",
    "strip_v",
    "vendor_of",
    "version_key",
]
