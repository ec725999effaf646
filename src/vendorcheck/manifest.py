"""composer.lock reading and private repository discovery."""
from __future__ import annotations

import json
import logging
import os
import re
import urllib.parse
from typing import Any, Dict, Iterable, List, Optional

from vendorcheck.errors import ManifestError
from vendorcheck.versioning.models import Credentials, InstalledPackage, PrivateRepo

logger = logging.getLogger(__name__)


def _load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def _load_lock(lock_path: str) -> Dict[str, Any]:
    if not os.path.isfile(lock_path):
        raise ManifestError(f"composer.lock not found at: {lock_path}")
    try:
        data = _load_json(lock_path)
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Invalid composer.lock format: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
        raise ManifestError("Invalid composer.lock format: no 'packages' list")
    return data


def read_installed_packages(lock_path: str) -> List[InstalledPackage]:
    """Packages pinned in composer.lock, in file order.

    Raises:
        ManifestError: The lock file is missing or malformed.
    """
    packages = []
    for entry in _load_lock(lock_path)["packages"]:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        packages.append(InstalledPackage(name=str(entry["name"]), version=str(entry.get("version", ""))))
    logger.info("Read %d packages from %s", len(packages), lock_path)
    return packages


def _host(url: Optional[str]) -> str:
    if not url:
        return ""
    try:
        return (urllib.parse.urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _repositories(composer: Any) -> Iterable[Dict[str, Any]]:
    repos = composer.get("repositories", []) if isinstance(composer, dict) else []
    if isinstance(repos, dict):
        repos = list(repos.values())
    for repo in repos:
        if isinstance(repo, dict) and repo.get("type", "composer") == "composer" and repo.get("url"):
            yield repo


def _is_skipped(host: str, skip_hosts: Iterable[str], skip_patterns: Iterable[str]) -> bool:
    if host in {h.lower() for h in skip_hosts}:
        return True
    return any(re.search(pattern, host, re.I) for pattern in skip_patterns)


def _credentials(auth: Any, host: str) -> Optional[Credentials]:
    if not isinstance(auth, dict):
        return None
    entry = (auth.get("http-basic") or {}).get(host)
    if not isinstance(entry, dict):
        return None
    username, password = entry.get("username"), entry.get("password")
    if not username or not password:
        return None
    return (str(username), str(password))


def _package_hosts(entry: Dict[str, Any]) -> List[str]:
    urls = [
        (entry.get("dist") or {}).get("url"),
        (entry.get("source") or {}).get("url"),
        entry.get("notification-url"),
    ]
    return [h for h in (_host(u) for u in urls) if h]


def discover_private_repos(
    lock_path: str,
    composer_json_path: Optional[str] = None,
    auth_json_path: Optional[str] = None,
    skip_hosts: Iterable[str] = (),
    skip_patterns: Iterable[str] = (),
) -> Dict[str, PrivateRepo]:
    """Map locked packages to the private Composer repository serving them.

    Repositories come from composer.json; hosts in ``skip_hosts`` or matching
    a ``skip_patterns`` regex are ignored. Credentials are read from the
    ``http-basic`` section of auth.json.
    """
    if not composer_json_path or not os.path.isfile(composer_json_path):
        return {}
    try:
        composer = _load_json(composer_json_path)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Cannot read %s: %s", composer_json_path, exc)
        return {}
    auth: Any = {}
    if auth_json_path and os.path.isfile(auth_json_path):
        try:
            auth = _load_json(auth_json_path)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Cannot read %s: %s", auth_json_path, exc)

    skip_hosts = list(skip_hosts)
    skip_patterns = list(skip_patterns)
    repos_by_host: Dict[str, PrivateRepo] = {}
    for repo in _repositories(composer):
        host = _host(repo["url"])
        if not host or _is_skipped(host, skip_hosts, skip_patterns):
            continue
        repos_by_host[host] = PrivateRepo(
            repo_url=str(repo["url"]).rstrip("/"),
            credentials=_credentials(auth, host),
        )
    if not repos_by_host:
        return {}

    mapping: Dict[str, PrivateRepo] = {}
    for entry in _load_lock(lock_path)["packages"]:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        for host in _package_hosts(entry):
            if host in repos_by_host:
                mapping[entry["name"]] = repos_by_host[host]
                break
    logger.info("Found %d packages served by %d private repositories", len(mapping), len(repos_by_host))
    return mapping
