"""Per-vendor extraction rules for scraping versions off product pages."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Pattern

from bs4 import BeautifulSoup, Tag

from vendorcheck.errors import ConfigError, UnknownVendorError
from vendorcheck.versioning.compare import version_key
from vendorcheck.versioning.models import ChangelogEntry


def _item_text(item: Tag) -> str:
    # Unclosed <li> tags nest under html.parser; keep only this item's own text
    parts = [
        text.strip()
        for text in item.find_all(string=True)
        if text.strip() and text.find_parent("li") is item
    ]
    return " ".join(parts)


def list_items(fragment: str) -> List[str]:
    """Text of each <li> in an HTML fragment, markup removed."""
    soup = BeautifulSoup(fragment, "html.parser")
    return [text for text in (_item_text(li) for li in soup.find_all("li")) if text]


@dataclass(frozen=True)
class VendorPattern:
    """Extraction rules for one vendor's pages.

    ``url_match`` is the substring identifying the vendor's URLs. When
    ``section_pattern`` matches, extraction runs on its first group only.
    """

    vendor: str
    url_match: str
    version_pattern: Pattern[str]
    pick_highest: bool = False
    changelog_pattern: Optional[Pattern[str]] = None
    section_pattern: Optional[Pattern[str]] = None

    def isolate_section(self, body: str) -> str:
        if self.section_pattern is None:
            return body
        match = self.section_pattern.search(body)
        return match.group(1) if match else body

    def extract_version(self, body: str) -> Optional[str]:
        """First match, or the highest of all matches in pick-highest mode."""
        text = self.isolate_section(body)
        if self.pick_highest:
            found = [m.group(1) for m in self.version_pattern.finditer(text)]
            return max(found, key=version_key) if found else None
        match = self.version_pattern.search(text)
        return match.group(1) if match else None

    def extract_changelog(self, body: str) -> List[ChangelogEntry]:
        if self.changelog_pattern is None:
            return []
        text = self.isolate_section(body)
        entries = []
        for match in self.changelog_pattern.finditer(text):
            groups = match.groups()
            date = groups[1].strip() if len(groups) > 1 and groups[1] else "N/A"
            changes: List[str] = []
            if len(groups) > 2 and groups[2]:
                changes = list_items(groups[2])
            entries.append(ChangelogEntry(version=groups[0], date=date, changes=changes))
        return entries


_FLAG_NAMES = {"i": re.I, "s": re.S, "m": re.M, "x": re.X}


def _compile(expression: str, flags: str = "") -> Pattern[str]:
    value = 0
    for flag in flags:
        value |= _FLAG_NAMES[flag]
    return re.compile(expression, value)


DEFAULT_PATTERNS: Dict[str, VendorPattern] = {
    "amasty": VendorPattern(
        vendor="amasty",
        url_match="amasty.com",
        version_pattern=_compile(r"Version\s+(\d+\.\d+\.\d+)", "i"),
        changelog_pattern=_compile(
            r"<h3[^>]*>Version\s+(\d+\.\d+\.\d+)[^<]*</h3>\s*<p[^>]*>([^<]+)</p>", "i"
        ),
        section_pattern=_compile(r"<div[^>]*class=\"[^\"]*changelog[^\"]*\"[^>]*>(.*?)</div>", "is"),
    ),
    "mageplaza": VendorPattern(
        vendor="mageplaza",
        url_match="mageplaza.com",
        version_pattern=_compile(r"v(\d+\.\d+\.\d+)", "i"),
        changelog_pattern=_compile(r"##\s*v?(\d+\.\d+\.\d+)\s*\(([^)]+)\)(.*?)(?=##|$)", "s"),
    ),
    "bsscommerce": VendorPattern(
        vendor="bsscommerce",
        url_match="bsscommerce.com",
        version_pattern=_compile(r"Version:?\s*(\d+\.\d+\.\d+)", "i"),
        changelog_pattern=_compile(r"<h4[^>]*>(\d+\.\d+\.\d+)()[^<]*</h4>\s*<ul>(.*?)</ul>", "is"),
    ),
    "aheadworks": VendorPattern(
        vendor="aheadworks",
        url_match="aheadworks.com",
        version_pattern=_compile(r"Version\s+(\d+\.\d+\.\d+)", "i"),
        changelog_pattern=_compile(r"Release\s+(\d+\.\d+\.\d+)\s*-\s*([^<\n]+)", "i"),
    ),
    "mageme": VendorPattern(
        vendor="mageme",
        url_match="mageme.com",
        version_pattern=_compile(r"(\d+\.\d+\.\d+)", "i"),
        pick_highest=True,
        changelog_pattern=_compile(
            r"(\d+\.\d+\.\d+)\s+((?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d+\s+\d{4})",
            "i",
        ),
        section_pattern=_compile(r"CHANGE\s+LOG(.*?)(?=Frequently|$)", "is"),
    ),
    "mageworx": VendorPattern(
        vendor="mageworx",
        url_match="mageworx.com",
        version_pattern=_compile(r"Version:?\s*(\d+\.\d+\.\d+)", "i"),
        changelog_pattern=_compile(r"Version:?\s*(\d+\.\d+\.\d+)\s*\(([^)]+)\)", "i"),
        section_pattern=_compile(r"<div[^>]*class=\"[^\"]*changelog[^\"]*\"[^>]*>(.*?)</div>", "is"),
    ),
    "xtento": VendorPattern(
        vendor="xtento",
        url_match="xtento.com",
        version_pattern=_compile(r"Version:?\s*(\d+\.\d+\.\d+)", "i"),
        changelog_pattern=_compile(r"=====\s*(\d+\.\d+\.\d+)\s*=====()\s*\*(.*?)(?======|$)", "s"),
        section_pattern=_compile(r"CHANGELOG(.*?)(?=This extension|$)", "is"),
    ),
}


def pattern_from_config(vendor: str, raw: Mapping[str, Any]) -> VendorPattern:
    """Build a VendorPattern from a ``vendor_patterns`` config entry."""
    if not isinstance(raw, Mapping) or "version_pattern" not in raw:
        raise ConfigError(f"vendor_patterns.{vendor} needs at least a version_pattern")
    flags = str(raw.get("flags", "i"))
    try:
        return VendorPattern(
            vendor=vendor,
            url_match=str(raw.get("url_match", vendor)),
            version_pattern=_compile(raw["version_pattern"], flags),
            pick_highest=bool(raw.get("pick_highest", False)),
            changelog_pattern=(
                _compile(raw["changelog_pattern"], flags) if raw.get("changelog_pattern") else None
            ),
            section_pattern=(
                _compile(raw["section_pattern"], flags) if raw.get("section_pattern") else None
            ),
        )
    except (re.error, KeyError) as exc:
        raise ConfigError(f"Invalid pattern for vendor {vendor}: {exc}") from exc


class PatternCatalog:
    """Read-only lookup table from vendor to extraction rules."""

    def __init__(self, patterns: Optional[Iterable[VendorPattern]] = None):
        source = DEFAULT_PATTERNS.values() if patterns is None else patterns
        self._patterns: Dict[str, VendorPattern] = {p.vendor: p for p in source}

    @classmethod
    def with_overrides(cls, overrides: Optional[Mapping[str, Any]]) -> "PatternCatalog":
        """Built-in patterns updated with configured ones (same vendor replaces)."""
        patterns = dict(DEFAULT_PATTERNS)
        for vendor, raw in (overrides or {}).items():
            patterns[vendor] = pattern_from_config(vendor, raw)
        return cls(patterns.values())

    def vendors(self) -> List[str]:
        return list(self._patterns)

    def for_url(self, url: str) -> VendorPattern:
        for pattern in self._patterns.values():
            if pattern.url_match in url:
                return pattern
        raise UnknownVendorError(f"No version pattern configured for URL: {url}")
