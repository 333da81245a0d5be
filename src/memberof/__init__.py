"""Resolve LDAP member-of groups into permission tiers."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("lenses-memberof")
except PackageNotFoundError:
    # Package is not installed.
    __version__ = "0.0.0"
