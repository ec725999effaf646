"""Version normalization, ordering and stable-release selection."""

import re
from typing import Iterable, List, Optional, Tuple

from packaging import version

from vendorcheck.constants import Constants

from .models import UpdateStatus

STABLE_SHAPE = re.compile(r"^\d+\.\d+(\.\d+)?")
_NUMERIC_PARTS = re.compile(r"\d+")


def strip_v(value: str) -> str:
    """Drop a leading 'v'/'V' from a version string."""
    value = (value or "").strip()
    if value[:1] in ("v", "V"):
        return value[1:]
    return value


def is_prerelease(value: str) -> bool:
    """True when the version carries a dev/alpha/beta/rc marker."""
    lowered = value.lower()
    return any(marker in lowered for marker in Constants.PRERELEASE_MARKERS)


def stable_candidates(versions: Iterable[str]) -> List[str]:
    """Stable release strings, 'v' stripped, in their original order."""
    result = []
    for raw in versions:
        if not isinstance(raw, str) or is_prerelease(raw):
            continue
        cleaned = strip_v(raw)
        if STABLE_SHAPE.match(cleaned):
            result.append(cleaned)
    return result


def first_stable(versions: Iterable[str]) -> Optional[str]:
    """First stable release of a newest-first list."""
    candidates = stable_candidates(versions)
    return candidates[0] if candidates else None


def highest_stable(versions: Iterable[str]) -> Optional[str]:
    """Highest stable release of an unordered list."""
    candidates = stable_candidates(versions)
    if not candidates:
        return None
    return max(candidates, key=version_key)


def _numeric_key(value: str) -> Tuple[int, ...]:
    parts = [int(p) for p in _NUMERIC_PARTS.findall(value)]
    while parts and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def version_key(value: str) -> tuple:
    """Sort key comparing versions component by component.

    Numeric components decide first ('1.0' == '1.0.0', and Composer's
    '2.4.7-p1' sorts above '2.4.7'); PEP 440 ordering breaks ties when the
    string parses, so '1.5.0rc1' sorts below '1.5.0'.
    """
    cleaned = strip_v(value)
    try:
        parsed = version.Version(cleaned)
    except version.InvalidVersion:
        return (_numeric_key(cleaned), 0)
    release = list(parsed.release)
    while release and release[-1] == 0:
        release.pop()
    return (tuple(release), 1, parsed)


def compare_versions(installed: str, latest: str) -> UpdateStatus:
    """Compare installed against latest after stripping any leading 'v'."""
    a, b = version_key(installed), version_key(latest)
    result = (a > b) - (a < b)
    if result == 0:
        return UpdateStatus.UP_TO_DATE
    if result < 0:
        return UpdateStatus.UPDATE_AVAILABLE
    return UpdateStatus.AHEAD_OF_VENDOR
