"""Tests for configuration loading."""

import logging

import pytest

from vendorcheck.config import DEFAULT_CONFIG, load_config
from vendorcheck.errors import ConfigError
from vendorcheck.registry.patterns import PatternCatalog


def write(tmp_path, text):
    path = tmp_path / "vendor-check.yml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestLoadConfig:
    """YAML overrides of the built-in defaults."""

    def test_defaults_without_file(self):
        config = load_config()
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG
        config["skip_vendors"].append("acme")
        assert "acme" not in DEFAULT_CONFIG["skip_vendors"]

    def test_keys_replace_defaults(self, tmp_path):
        config = load_config(write(tmp_path, (
            "skip_vendors: [acme]\n"
            "package_url_mappings:\n"
            "  acme/widget: https://acme.example.com/widget\n"
        )))
        assert config["skip_vendors"] == ["acme"]
        assert config["package_url_mappings"] == {"acme/widget": "https://acme.example.com/widget"}
        assert config["skip_hosts"] == DEFAULT_CONFIG["skip_hosts"]

    def test_null_value_means_empty(self, tmp_path):
        assert load_config(write(tmp_path, "skip_vendors:\n"))["skip_vendors"] == []

    def test_unknown_key_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            load_config(write(tmp_path, "colour: blue\n"))
        assert "Ignoring unknown config key: colour" in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "absent.yml"))

    @pytest.mark.parametrize("text", ["skip_vendors: {a: 1}\n", "- just\n- a list\n", "key: [unclosed\n"])
    def test_malformed(self, tmp_path, text):
        with pytest.raises(ConfigError):
            load_config(write(tmp_path, text))

    def test_vendor_patterns_feed_catalog(self, tmp_path):
        config = load_config(write(tmp_path, (
            "vendor_patterns:\n"
            "  acme:\n"
            "    url_match: acme.example.com\n"
            "    version_pattern: 'Release (\\d+\\.\\d+\\.\\d+)'\n"
        )))
        catalog = PatternCatalog.with_overrides(config["vendor_patterns"])
        pattern = catalog.for_url("https://acme.example.com/widget")
        assert pattern.extract_version("Release 1.2.3") == "1.2.3"
        assert "amasty" in catalog.vendors()


class TestPatternCatalog:
    """Built-in catalog and override validation."""

    def test_builtin_vendors(self):
        assert set(PatternCatalog().vendors()) == {
            "amasty", "mageplaza", "bsscommerce", "aheadworks", "mageme", "mageworx", "xtento",
        }

    def test_override_without_version_pattern(self):
        with pytest.raises(ConfigError):
            PatternCatalog.with_overrides({"acme": {"url_match": "acme.example.com"}})

    def test_override_with_bad_regex(self):
        with pytest.raises(ConfigError):
            PatternCatalog.with_overrides({"acme": {"version_pattern": "("}})
