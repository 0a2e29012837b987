#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/utils/decorators.py
"""Utility decorators for diffviz collaborators.

The optional pieces of diffviz (the MCP server and the headless-browser
rasterizer) depend on packages that are not installed by default. The
decorator here checks for them at call time instead of at import time.

"""

from __future__ import annotations

import importlib
from functools import wraps
from typing import Any, Callable, List, Tuple

from diffviz.exceptions import DependencyError
from diffviz.utils.packages import check_version_requirement


def requires_dependencies(feature_name: str, packages: List[Tuple[str, str, str]]) -> Callable:
    """Check required dependencies and versions before method execution.

    Parameters
    ----------
    feature_name : str
        Name of the optional feature (e.g., "image", "mcp"). This appears
        in error messages and in the suggested ``pip install`` extra.
    packages : list of tuple
        Required packages as (install_name, import_name, version_spec) tuples where:
        - install_name: Package name for pip install (e.g., "playwright")
        - import_name: Module name for import statement (e.g., "playwright.sync_api")
        - version_spec: Version requirement (e.g., ">=1.40" or "" for any version)

    Returns
    -------
    Callable
        Decorated function that checks dependencies before execution

    Raises
    ------
    DependencyError
        If any required package is missing or has an incompatible version.

    Examples
    --------
        >>> @requires_dependencies("image", [("playwright", "playwright.sync_api", ">=1.40")])
        ... def render_png(self, html):
        ...     from playwright.sync_api import sync_playwright
        ...     # rasterization here

    """

    def decorator(method: Callable) -> Callable:
        @wraps(method)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            missing = []
            version_mismatches = []
            original_error = None

            for install_name, import_name, version_spec in packages:
                try:
                    # nosemgrep: python.lang.security.audit.non-literal-import.non-literal-import
                    importlib.import_module(import_name)

                    if version_spec:
                        meets_requirement, installed_version = check_version_requirement(install_name, version_spec)
                        if not meets_requirement:
                            version_mismatches.append((install_name, version_spec, installed_version or "unknown"))

                except ImportError as e:
                    missing.append((install_name, version_spec))
                    if original_error is None:
                        original_error = e

            if missing or version_mismatches:
                raise DependencyError(
                    feature_name=feature_name,
                    missing_packages=missing,
                    version_mismatches=version_mismatches,
                    original_import_error=original_error,
                ) from original_error

            return method(*args, **kwargs)

        return wrapper

    return decorator
