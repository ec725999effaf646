"""Package tracking configuration.

Defaults describe the vendors this tool was built for; a YAML file can
replace any top-level key:

    package_url_mappings:   {"vendor/package": "https://product-page"}
    skip_vendors:           ["magento", ...]
    skip_packages:          ["vendor/package", ...]
    skip_hosts:             ["repo.magento.com", ...]
    skip_patterns:          ["\\.satis\\."]        # regexes, case-insensitive
    vendor_patterns:        {vendor: {url_match, version_pattern, ...}}
"""
from __future__ import annotations

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

from vendorcheck.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "package_url_mappings": {
        "amasty/module-admin-actions-log": "https://amasty.com/admin-actions-log-for-magento-2.html",
        "amasty/promo": "https://amasty.com/special-promotions-for-magento-2.html",
        "amasty/shopby": "https://amasty.com/improved-layered-navigation-for-magento-2.html",
        "amasty/geoip": "https://amasty.com/geoip-for-magento-2.html",
        "amasty/gdpr-cookie": "https://amasty.com/gdpr-cookie-compliance-for-magento-2.html",
        "amasty/geoipredirect": "https://amasty.com/geoip-redirect-for-magento-2.html",
        "amasty/module-gdpr": "https://amasty.com/gdpr-for-magento-2.html",
        "amasty/number": "https://amasty.com/custom-order-number-for-magento-2.html",
        "aheadworks/module-blog": "https://aheadworks.com/magento-2-blog-extension",
        "mageplaza/module-layered-navigation-m2": "https://www.mageplaza.com/magento-2-layered-navigation/",
        "mageplaza/layered-navigation-m2-pro": "https://www.mageplaza.com/magento-2-layered-navigation/",
        "mageplaza/module-layered-navigation-m2-ultimate": "https://www.mageplaza.com/magento-2-layered-navigation/",
        "mageplaza/module-smtp": "https://www.mageplaza.com/magento-2-smtp/",
        "bsscommerce/module-customer-approval": "https://bsscommerce.com/magento-2-customer-approval-extension.html",
        "mageme/module-webforms-3": "https://mageme.com/magento-2-form-builder.html",
        "mageme/module-webforms": "https://mageme.com/magento-2-form-builder.html",
        "xtento/orderexport": "https://www.xtento.com/magento-extensions/magento-order-export-module.html",
    },
    "skip_hosts": ["repo.magento.com", "marketplace.magento.com"],
    "skip_patterns": [r"\.satis\.", r"\.getjohn\."],
    "skip_vendors": [
        "magento", "laminas", "symfony", "monolog", "psr",
        "phpunit", "php-amqplib", "colinmollenhour", "composer",
        "doctrine", "elasticsearch", "guzzlehttp", "league",
        "nikic", "phpseclib", "ramsey", "sebastian", "theseer",
        "webmozart", "wikimedia",
    ],
    "skip_packages": [],
    "vendor_patterns": {},
}

_EXPECTED_TYPES = {
    "package_url_mappings": dict,
    "skip_hosts": list,
    "skip_patterns": list,
    "skip_vendors": list,
    "skip_packages": list,
    "vendor_patterns": dict,
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Defaults, with top-level keys replaced by those in ``config_path``.

    Raises:
        ConfigError: The file is missing, not YAML, or a key has the wrong type.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if not config_path:
        return config
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")

    for key, value in data.items():
        expected = _EXPECTED_TYPES.get(key)
        if expected is None:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        if value is None:
            value = expected()
        if not isinstance(value, expected):
            raise ConfigError(f"Config key {key} must be a {expected.__name__}")
        config[key] = value
    logger.info("Loaded config from %s", config_path)
    return config
