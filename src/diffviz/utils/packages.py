#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/utils/packages.py
"""Installed-version checks for the optional extras."""

from __future__ import annotations

from importlib import metadata
from typing import Optional, Tuple

from packaging import version
from packaging.specifiers import InvalidSpecifier, SpecifierSet


def check_version_requirement(package_name: str, version_spec: str) -> Tuple[bool, Optional[str]]:
    """Return whether the installed distribution satisfies ``version_spec``, and its version.

    A distribution without metadata fails the check with version None. An
    unparseable specifier only checks that the distribution is installed.
    """
    try:
        installed_version = metadata.version(package_name)
    except metadata.PackageNotFoundError:
        return False, None

    try:
        spec = SpecifierSet(version_spec)
    except InvalidSpecifier:
        return True, installed_version

    return version.parse(installed_version) in spec, installed_version
