"""vendor-check - find newer releases of Composer-installed vendor packages."""

__version__ = "1.0.0"
