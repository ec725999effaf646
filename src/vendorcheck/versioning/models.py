"""Data models for package resolution and version lookups."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ResolutionMethod(Enum):
    """Lookup strategy chosen for a package."""
    SKIP = "skip"
    REGISTRY = "registry"
    VENDOR_PAGE = "vendor_page"
    PRIVATE_REPO = "private_repo"


class LookupSource(Enum):
    """Where a reported latest version came from."""
    REGISTRY = "registry"
    VENDOR_PAGE = "vendor_page"
    PRIVATE_REPO = "private_repo"


class UpdateStatus(Enum):
    """Installed-versus-latest verdict for one package."""
    UP_TO_DATE = "UP_TO_DATE"
    UPDATE_AVAILABLE = "UPDATE_AVAILABLE"
    AHEAD_OF_VENDOR = "AHEAD_OF_VENDOR"
    UNAVAILABLE = "UNAVAILABLE"
    ERROR = "ERROR"


# HTTP basic credentials (username, password)
Credentials = Tuple[str, str]


@dataclass(frozen=True)
class InstalledPackage:
    """A package pinned in the manifest."""
    name: str
    version: str


@dataclass(frozen=True)
class PrivateRepo:
    """Authenticated Composer repository serving a package."""
    repo_url: str
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class Resolution:
    """Strategy decision for a single package."""
    method: ResolutionMethod
    reason: Optional[str] = None
    url: Optional[str] = None
    repo_url: Optional[str] = None
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class ResolvedPackage:
    """Installed version kept alongside its resolution."""
    name: str
    version: str
    resolution: Resolution


@dataclass
class ChangelogEntry:
    """One release listed in a vendor changelog."""
    version: str
    date: str = "N/A"
    changes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LookupResult:
    """Output of a vendor page lookup."""
    latest_version: Optional[str]
    source: LookupSource
    changelog: List[ChangelogEntry] = field(default_factory=list)
    url: Optional[str] = None
    checked_at: str = field(default_factory=lambda: datetime.now().strftime("%Y-%m-%d %H:%M:%S"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "latest_version": self.latest_version,
            "source": self.source.value,
            "changelog": [entry.to_dict() for entry in self.changelog],
            "checked_at": self.checked_at,
        }


def vendor_of(package_name: str) -> str:
    """Vendor prefix of a Composer package name ('amasty' for 'amasty/promo')."""
    return package_name.split("/", 1)[0]
