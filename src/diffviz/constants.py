#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for diffviz.

This module centralizes hardcoded values, magic numbers, and default
configuration constants used across the package.

Constants are organized by category:
1. Type Definitions - All Literal types
2. Normalization - Placeholder paths and dry-run field names
3. Rendering - Layout defaults and truncation thresholds
4. Security Levels - Expiry table per level
5. Delivery - Remote API endpoints, output locations, rasterization
6. Environment - Variable names read at startup
7. Optional Dependencies
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

LayoutType = Literal["line-by-line", "side-by-side"]
OutputKind = Literal["html", "image"]
SecurityLevel = Literal["low", "medium", "high"]
Visibility = Literal["public", "private"]
DeliveryMode = Literal["remote", "local"]

# =============================================================================
# Normalization
# =============================================================================

DEFAULT_PLACEHOLDER_PATH = "file.txt"

# JSON fields of a dry-run report that may carry the diff text
DRY_RUN_DIFF_FIELDS = ("diff", "formattedDiff")

# JSON fields of a dry-run report that may carry a path hint
DRY_RUN_PATH_FIELDS = ("path", "file", "filePath")

# =============================================================================
# Rendering
# =============================================================================

DEFAULT_LAYOUT: LayoutType = "side-by-side"
DEFAULT_SHOW_FILE_LIST = True
DEFAULT_HIGHLIGHT = True
DEFAULT_DOCUMENT_TITLE = "Unified Diff Visualization"

# Paired lines longer than this are not compared character by character
DEFAULT_MAX_LINE_SIZE_IN_BLOCK_FOR_COMPARISON = 200

# Lines longer than this are not syntax highlighted
DEFAULT_MAX_LINE_LENGTH_HIGHLIGHT = 10000

DEFAULT_PYGMENTS_STYLE = "default"

# =============================================================================
# Security Levels
# =============================================================================

MIN_EXPIRY_MINUTES = 1
MAX_EXPIRY_MINUTES = 1440
DEFAULT_SECURITY_LEVEL: SecurityLevel = "medium"

# level -> (ttl minutes, gated when gating is switched on, label)
SECURITY_LEVEL_TABLE: dict[str, tuple[int, bool, str]] = {
    "low": (60, False, "Low Security - Secret Gist"),
    "medium": (30, True, "Medium Security - Secret Gist"),
    "high": (15, True, "High Security - Secret Gist"),
}

# Length in bytes of generated access codes (hex encoded, so twice as many characters)
ACCESS_SECRET_BYTES = 4

# =============================================================================
# Delivery
# =============================================================================

DEFAULT_GIST_API_URL = "https://api.github.com"
GIST_RAW_HOST = "https://gist.githubusercontent.com"
GIST_HTML_PREVIEW_PREFIX = "https://htmlpreview.github.io/?"
GIST_GITHACK_HOST = "https://gist.githack.com"
GITHUB_API_ACCEPT = "application/vnd.github+json"
DEFAULT_USER_AGENT = "diffviz/1.0"
DEFAULT_HTTP_TIMEOUT = 15.0

HOSTED_OUTPUT_DIR = "/tmp/diffviz-output"
LOCAL_OUTPUT_DIRNAME = "output"
OUTPUT_BASENAME = "diff-image"

RASTER_VIEWPORT_WIDTH = 1800
RASTER_VIEWPORT_HEIGHT = 1200
DEFAULT_RASTER_TIMEOUT = 60.0

# Seconds allowed for the platform "open" command before it counts as failed
OPEN_COMMAND_TIMEOUT = 10.0

# =============================================================================
# Environment
# =============================================================================

ENV_DEFAULT_AUTO_OPEN = "DIFFVIZ_DEFAULT_AUTO_OPEN"
ENV_DEFAULT_OUTPUT_MODE = "DIFFVIZ_DEFAULT_OUTPUT_MODE"
ENV_GITHUB_TOKEN = ("GITHUB_TOKEN", "GH_TOKEN")
ENV_HOSTED = "DIFFVIZ_HOSTED"
ENV_OUTPUT_DIR = "DIFFVIZ_OUTPUT_DIR"
ENV_ENABLE_ACCESS_GATE = "DIFFVIZ_ENABLE_ACCESS_GATE"
ENV_GIST_API_URL = "DIFFVIZ_GIST_API_URL"
ENV_HTTP_TIMEOUT = "DIFFVIZ_HTTP_TIMEOUT"
ENV_RASTER_TIMEOUT = "DIFFVIZ_RASTER_TIMEOUT"
ENV_LOG_LEVEL = "DIFFVIZ_LOG_LEVEL"

# Presence of any of these means a non-interactive hosted runtime
HOSTED_ENV_MARKERS = ("VERCEL", "K_SERVICE", "AWS_LAMBDA_FUNCTION_NAME", "SMITHERY")
HOSTED_WORKDIRS = ("/app",)

# =============================================================================
# Optional Dependencies
# =============================================================================

DEPS_NETWORK = [("httpx", "httpx", ">=0.28.1")]
DEPS_IMAGE = [("playwright", "playwright.sync_api", ">=1.40.0")]
