#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/diff/__init__.py
"""Diff input handling.

This module turns diff-like text into canonical unified diff form and
parses it into structured records for the renderers.

Key Features
------------
- Pass-through of ready unified diffs (``git diff``, ``diff -u``)
- Unwrapping of filesystem dry-run reports (JSON or fenced Markdown)
- Header synthesis for bare changed lines
- Lenient multi-file parsing with line numbering

Examples
--------
Normalize bare lines and parse the result:
    >>> from diffviz.diff import normalize, parse_unified_diff
    >>> doc = normalize("-old\\n+new", "app.py", "app.py")
    >>> files = parse_unified_diff(doc.canonical_text)
    >>> files[0].added_count
    1

"""

from diffviz.diff.normalizer import DiffDocument, normalize, unwrap_dry_run
from diffviz.diff.parser import DiffFile, DiffHunk, DiffLine, parse_unified_diff

__all__ = [
    "DiffDocument",
    "DiffFile",
    "DiffHunk",
    "DiffLine",
    "normalize",
    "parse_unified_diff",
    "unwrap_dry_run",
]
