#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/renderers/__init__.py
"""Diff renderers.

This module converts normalized diffs into self-contained HTML documents.

Available Renderers
-------------------
- HtmlDiffRenderer: Complete HTML page with inline CSS and script
- DiffMarkupBuilder: ``d2h-*`` table fragment (line-by-line or side-by-side)

Examples
--------
Render a diff as HTML:
    >>> from diffviz.diff import normalize
    >>> from diffviz.renderers import HtmlDiffRenderer
    >>> html = HtmlDiffRenderer().render(normalize("--- a/x\\n+++ b/x\\n@@ -1 +1 @@\\n-a\\n+b"))

"""

from diffviz.renderers.html import HtmlDiffRenderer, render_diff_html
from diffviz.renderers.markup import CodeHighlighter, DiffMarkupBuilder

__all__ = [
    "CodeHighlighter",
    "DiffMarkupBuilder",
    "HtmlDiffRenderer",
    "render_diff_html",
]
