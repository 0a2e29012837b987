#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/renderers/html.py
"""HTML document renderer for unified diffs.

The renderer wraps the ``d2h-*`` fragment built by
:class:`~diffviz.renderers.markup.DiffMarkupBuilder` in a self-contained
HTML page: inline CSS (base diff styles, Pygments token styles, and either
on-screen or image-output overrides), the fragment, and a small script
that wires up the file list toggle once the DOM is loaded. Nothing is
fetched from a CDN, so the page renders the same offline, in a gist
preview, and inside a headless browser.

When a :class:`~diffviz.delivery.security.SecurityPolicy` is supplied the
document also gets the expiry banner and, for gated policies, the access
gate overlay.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from html import escape
from io import StringIO
from typing import TYPE_CHECKING

from diffviz.diff.normalizer import DiffDocument
from diffviz.exceptions import RenderingError
from diffviz.options import RenderOptions
from diffviz.renderers.decorations import inject_expiry_banner, wrap_with_access_gate
from diffviz.renderers.markup import DIFF_BASE_CSS, CodeHighlighter, DiffMarkupBuilder

if TYPE_CHECKING:
    from diffviz.delivery.security import SecurityPolicy

logger = logging.getLogger(__name__)


class HtmlDiffRenderer:
    """Render a :class:`DiffDocument` as a complete HTML page.

    Parameters
    ----------
    options : RenderOptions, optional
        Presentation options. Defaults to side-by-side with file list and
        highlighting enabled.

    Examples
    --------
    Render a normalized diff:
        >>> from diffviz.diff import normalize
        >>> renderer = HtmlDiffRenderer(RenderOptions(layout="line-by-line"))
        >>> html = renderer.render(normalize("-old\\n+new", "app.py", "app.py"))
        >>> html.startswith("<!DOCTYPE html>")
        True

    """

    def __init__(self, options: RenderOptions | None = None):
        """Initialize the renderer with presentation options."""
        self.options = options or RenderOptions()
        self._highlighter = CodeHighlighter(self.options.pygments_style) if self.options.highlight else None

    def render(
        self,
        doc: DiffDocument,
        policy: SecurityPolicy | None = None,
        expires_at: datetime | None = None,
    ) -> str:
        """Render the document to an HTML string.

        Parameters
        ----------
        doc : DiffDocument
            Normalized diff
        policy : SecurityPolicy, optional
            When given with a positive TTL, an expiry banner is injected; when
            gated with an access secret, the page is wrapped in an access gate
        expires_at : datetime, optional
            Deletion instant shown by the banner. Defaults to now plus the
            policy TTL.

        Returns
        -------
        str
            Complete HTML document

        Raises
        ------
        RenderingError
            If markup generation fails

        """
        options = self.options
        builder = DiffMarkupBuilder(
            layout=options.layout,
            show_file_list=options.show_file_list,
            highlighter=self._highlighter,
            max_line_size_in_block_for_comparison=options.max_line_size_in_block_for_comparison,
            max_line_length_highlight=options.max_line_length_highlight,
        )

        try:
            fragment = builder.build(doc.canonical_text)
        except Exception as e:
            raise RenderingError(
                f"Failed to build diff markup: {e}", rendering_stage="markup", original_error=e
            ) from e

        output = StringIO()
        self._write_html_prefix(output)
        output.write(fragment)
        self._write_html_suffix(output)
        document = output.getvalue()

        if policy is not None and policy.ttl_minutes > 0:
            if expires_at is None:
                expires_at = datetime.now(timezone.utc) + timedelta(minutes=policy.ttl_minutes)
            document = inject_expiry_banner(document, policy.ttl_minutes, expires_at)
        if policy is not None and policy.gated and policy.access_secret:
            document = wrap_with_access_gate(document, policy.access_secret, policy.ttl_minutes)

        logger.debug(f"Rendered {len(document)} characters of HTML ({options.layout})")
        return document

    def _write_html_prefix(self, output: StringIO) -> None:
        """Write the document head and open the body."""
        output.write("<!DOCTYPE html>\n")
        output.write('<html lang="en">\n')
        output.write("<head>\n")
        output.write('    <meta charset="UTF-8">\n')
        output.write('    <meta name="viewport" content="width=device-width, initial-scale=1.0">\n')
        output.write(f"    <title>{escape(self.options.title)}</title>\n")
        output.write("    <style>\n")
        output.write(self._get_css())
        output.write("    </style>\n")
        output.write("</head>\n")
        output.write("<body>\n")

    def _write_html_suffix(self, output: StringIO) -> None:
        """Write the client-side script and close the document."""
        output.write("    <script>\n")
        output.write(self._get_script())
        output.write("    </script>\n")
        output.write("</body>\n")
        output.write("</html>\n")

    def _get_css(self) -> str:
        """Get CSS styles for the document."""
        css = StringIO()
        css.write(
            """
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
            margin: 0;
            padding: 20px;
            background-color: #ffffff;
            font-size: 14px;
        }
        .d2h-wrapper {
            max-width: none;
            overflow-x: auto;
        }
        .d2h-file-header {
            font-weight: 600;
            background-color: #f6f8fa;
        }
"""
        )
        css.write(DIFF_BASE_CSS)
        if self._highlighter is not None:
            css.write(self._highlighter.stylesheet())
            css.write("\n")
        css.write(_IMAGE_OUTPUT_CSS if self.options.for_image_output else _SCREEN_OUTPUT_CSS)
        css.write(
            """
        @media (max-width: 768px) {
            body { padding: 10px; font-size: 12px; }
        }
"""
        )
        return css.getvalue()

    def _get_script(self) -> str:
        """Get the DOMContentLoaded wiring script."""
        mark_highlighted = "true" if self._highlighter is not None else "false"
        return f"""
        document.addEventListener('DOMContentLoaded', function () {{
            var wrapper = document.querySelector('.d2h-wrapper');
            if (wrapper && {mark_highlighted}) {{
                wrapper.classList.add('d2h-highlighted');
            }}
            var toggle = document.querySelector('.d2h-file-switch');
            var list = document.querySelector('.d2h-file-list');
            if (toggle && list) {{
                toggle.addEventListener('click', function (event) {{
                    event.preventDefault();
                    var hidden = list.style.display === 'none';
                    list.style.display = hidden ? '' : 'none';
                    toggle.textContent = hidden ? 'hide' : 'show';
                }});
            }}
        }});
"""


def render_diff_html(
    doc: DiffDocument,
    options: RenderOptions | None = None,
    policy: SecurityPolicy | None = None,
    expires_at: datetime | None = None,
) -> str:
    """Render a normalized diff to HTML.

    Functional form of :meth:`HtmlDiffRenderer.render`.
    """
    return HtmlDiffRenderer(options).render(doc, policy=policy, expires_at=expires_at)


_SCREEN_OUTPUT_CSS = """
        /* On-screen output: minimal overrides */
"""

_IMAGE_OUTPUT_CSS = """
        /* Image output: fixed layout for rasterization */
        .d2h-diff-table {
            font-size: 11px;
            table-layout: fixed;
            width: 100%;
        }
        .d2h-code-line,
        .d2h-code-line-ctn,
        .d2h-code-side-line,
        .d2h-code-line pre,
        .d2h-code-line code {
            word-wrap: break-word !important;
            word-break: break-all !important;
            white-space: pre-wrap !important;
            overflow-wrap: break-word !important;
            max-width: 500px !important;
            font-family: 'Monaco', 'Menlo', 'Ubuntu Mono', monospace !important;
            font-size: 10px !important;
        }
        .d2h-diff-tbody tr td {
            max-width: 500px !important;
            overflow-wrap: break-word !important;
            word-break: break-all !important;
            white-space: pre-wrap !important;
            vertical-align: top;
        }
        .d2h-code-side-emptyplaceholder,
        .d2h-code-side-line {
            max-width: 450px !important;
            word-wrap: break-word !important;
            word-break: break-all !important;
            white-space: pre-wrap !important;
        }
        .d2h-diff-table td.d2h-code-linenumber + td {
            max-width: 480px !important;
            word-wrap: break-word !important;
            word-break: break-all !important;
            white-space: pre-wrap !important;
        }
"""
