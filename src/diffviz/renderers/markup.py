#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/renderers/markup.py
"""Markup builder for unified diffs.

:class:`DiffMarkupBuilder` converts canonical unified diff text into an
HTML fragment using the widely recognized ``d2h-*`` class vocabulary
(file list, per-file header with change counts, line-by-line or
side-by-side tables, hunk header rows, line numbers). The builder is
pure: identical input and settings always produce identical markup.

Line matching works on whole lines. Inside a hunk, a run of deletions
directly followed by a run of additions is paired row by row. A pair
whose sides are both short enough gets character-level change marking
with ``<del>``/``<ins>``; marked pairs are emitted without syntax
highlighting so the marks stay readable.
"""

from __future__ import annotations

import difflib
import logging
from html import escape
from io import StringIO
from typing import Iterator, List, Optional, Tuple

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

from diffviz.constants import (
    DEFAULT_LAYOUT,
    DEFAULT_MAX_LINE_LENGTH_HIGHLIGHT,
    DEFAULT_MAX_LINE_SIZE_IN_BLOCK_FOR_COMPARISON,
    DEFAULT_PYGMENTS_STYLE,
    LayoutType,
)
from diffviz.diff.parser import DiffFile, DiffHunk, DiffLine, parse_unified_diff

logger = logging.getLogger(__name__)

EMPTY_DIFF_MESSAGE = "No differences"
FILE_WITHOUT_CHANGES_MESSAGE = "File without changes"
BINARY_FILE_MESSAGE = "Binary file, contents not shown"

_PREFIXES = {"context": " ", "insert": "+", "delete": "-"}
_ROW_CLASSES = {"context": "d2h-cntx", "insert": "d2h-ins", "delete": "d2h-del"}

# A paired row: (old side, new side, old html, new html). Either side may be absent.
_Row = Tuple[Optional[DiffLine], Optional[DiffLine], str, str]


class CodeHighlighter:
    """Per-line syntax highlighter backed by Pygments.

    The lexer is chosen from the file name and cached; unknown names fall
    back to plain text. Output contains only ``<span>`` tokens (no wrapping
    ``<pre>``) so it can be placed inside a table cell.

    Parameters
    ----------
    style : str, default "default"
        Pygments style used by :meth:`stylesheet`

    """

    def __init__(self, style: str = DEFAULT_PYGMENTS_STYLE):
        """Initialize the highlighter with a Pygments style."""
        self.style = style
        self._formatter = HtmlFormatter(style=style, nowrap=True)
        self._lexers: dict[str, Lexer] = {}

    def lexer_for(self, filename: str) -> Lexer:
        """Return the cached lexer for a file name."""
        lexer = self._lexers.get(filename)
        if lexer is None:
            try:
                lexer = get_lexer_for_filename(filename, stripnl=False, ensurenl=False)
            except ClassNotFound:
                lexer = TextLexer(stripnl=False, ensurenl=False)
            self._lexers[filename] = lexer
        return lexer

    def highlight_line(self, content: str, filename: str) -> str:
        """Highlight a single line of code and return HTML spans."""
        if not content:
            return ""
        return highlight(content, self.lexer_for(filename), self._formatter).rstrip("\n")

    def stylesheet(self, scope: str = ".d2h-code-line-ctn") -> str:
        """Return Pygments CSS rules scoped under ``scope``."""
        return self._formatter.get_style_defs(scope)


def mark_changes(old: str, new: str) -> Tuple[str, str]:
    """Mark character-level differences between two paired lines.

    Returns
    -------
    tuple of str
        Escaped old and new text, with removed runs wrapped in ``<del>``
        and added runs wrapped in ``<ins>``.

    """
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    old_out = StringIO()
    new_out = StringIO()
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            old_out.write(escape(old[i1:i2]))
            new_out.write(escape(new[j1:j2]))
            continue
        if i2 > i1:
            old_out.write(f"<del>{escape(old[i1:i2])}</del>")
        if j2 > j1:
            new_out.write(f"<ins>{escape(new[j1:j2])}</ins>")
    return old_out.getvalue(), new_out.getvalue()


class DiffMarkupBuilder:
    """Build a ``d2h-*`` HTML fragment from unified diff text.

    Parameters
    ----------
    layout : {"line-by-line", "side-by-side"}, default "side-by-side"
        Table layout
    show_file_list : bool, default True
        Whether to emit the summary list of changed files
    highlighter : CodeHighlighter, optional
        Syntax highlighter; None disables highlighting
    max_line_size_in_block_for_comparison : int, default 200
        Paired lines longer than this are not marked character by character
    max_line_length_highlight : int, default 10000
        Lines longer than this are emitted without highlighting

    Examples
    --------
        >>> builder = DiffMarkupBuilder(layout="line-by-line")
        >>> fragment = builder.build("--- a/x\\n+++ b/x\\n@@ -1 +1 @@\\n-a\\n+b\\n")
        >>> "d2h-wrapper" in fragment
        True

    """

    def __init__(
        self,
        layout: LayoutType = DEFAULT_LAYOUT,
        show_file_list: bool = True,
        highlighter: CodeHighlighter | None = None,
        max_line_size_in_block_for_comparison: int = DEFAULT_MAX_LINE_SIZE_IN_BLOCK_FOR_COMPARISON,
        max_line_length_highlight: int = DEFAULT_MAX_LINE_LENGTH_HIGHLIGHT,
    ):
        """Initialize the builder."""
        self.layout = layout
        self.show_file_list = show_file_list
        self.highlighter = highlighter
        self.max_line_size_in_block_for_comparison = max_line_size_in_block_for_comparison
        self.max_line_length_highlight = max_line_length_highlight

    def build(self, diff_text: str) -> str:
        """Convert unified diff text into an HTML fragment.

        Parameters
        ----------
        diff_text : str
            Canonical unified diff text

        Returns
        -------
        str
            HTML fragment rooted at ``<div class="d2h-wrapper">``. Input
            without any file content yields a "No differences" block.

        """
        files = [f for f in parse_unified_diff(diff_text) if _has_content(f)]
        logger.debug(f"Building {self.layout} markup for {len(files)} file(s)")

        output = StringIO()
        output.write('<div class="d2h-wrapper">\n')

        if not files:
            self._write_empty_placeholder(output)
        else:
            if self.show_file_list:
                self._write_file_list(files, output)
            for position, diff_file in enumerate(files, start=1):
                self._write_file(diff_file, position, output)

        output.write("</div>\n")
        return output.getvalue()

    def _write_empty_placeholder(self, output: StringIO) -> None:
        output.write('  <div class="d2h-file-wrapper d2h-empty">\n')
        output.write('    <div class="d2h-file-diff">\n')
        output.write(f'      <div class="d2h-info d2h-empty-message">{EMPTY_DIFF_MESSAGE}</div>\n')
        output.write("    </div>\n")
        output.write("  </div>\n")

    def _write_file_list(self, files: List[DiffFile], output: StringIO) -> None:
        output.write('  <div class="d2h-file-list-wrapper">\n')
        output.write('    <div class="d2h-file-list-header">\n')
        output.write(f'      <span class="d2h-file-list-title">Files changed ({len(files)})</span>\n')
        output.write('      <a class="d2h-file-switch" href="#" role="button">hide</a>\n')
        output.write("    </div>\n")
        output.write('    <ol class="d2h-file-list">\n')
        for position, diff_file in enumerate(files, start=1):
            output.write('      <li class="d2h-file-list-line">\n')
            output.write(f'        <span class="d2h-file-name-wrapper {_status_class(diff_file)}">\n')
            output.write(
                f'          <a href="#d2h-file-{position}" class="d2h-file-name">{escape(diff_file.display_name)}</a>\n'
            )
            output.write('          <span class="d2h-file-stats">\n')
            output.write(f'            <span class="d2h-lines-added">+{diff_file.added_count}</span>\n')
            output.write(f'            <span class="d2h-lines-deleted">-{diff_file.deleted_count}</span>\n')
            output.write("          </span>\n")
            output.write("        </span>\n")
            output.write("      </li>\n")
        output.write("    </ol>\n")
        output.write("  </div>\n")

    def _write_file(self, diff_file: DiffFile, position: int, output: StringIO) -> None:
        language = _language_tag(diff_file.highlight_name)
        output.write(f'  <div id="d2h-file-{position}" class="d2h-file-wrapper" data-lang="{escape(language)}">\n')
        output.write('    <div class="d2h-file-header">\n')
        output.write('      <span class="d2h-file-name-wrapper">\n')
        output.write(f'        <span class="d2h-file-name">{escape(diff_file.display_name)}</span>\n')
        tag_label, tag_class = _status_tag(diff_file)
        output.write(f'        <span class="d2h-tag {tag_class} {tag_class}-tag">{tag_label}</span>\n')
        output.write("      </span>\n")
        output.write('      <span class="d2h-file-stats">\n')
        output.write(f'        <span class="d2h-lines-added">+{diff_file.added_count}</span>\n')
        output.write(f'        <span class="d2h-lines-deleted">-{diff_file.deleted_count}</span>\n')
        output.write("      </span>\n")
        output.write("    </div>\n")

        if self.layout == "side-by-side":
            self._write_side_by_side(diff_file, output)
        else:
            self._write_line_by_line(diff_file, output)

        output.write("  </div>\n")

    # ------------------------------------------------------------------
    # Line-by-line layout
    # ------------------------------------------------------------------

    def _write_line_by_line(self, diff_file: DiffFile, output: StringIO) -> None:
        output.write('    <div class="d2h-file-diff">\n')
        output.write('      <div class="d2h-code-wrapper">\n')
        output.write('        <table class="d2h-diff-table">\n')
        output.write('          <tbody class="d2h-diff-tbody">\n')

        info = _info_message(diff_file)
        if info:
            self._write_unified_info_row(info, output)

        for hunk in diff_file.hunks:
            self._write_unified_info_row(hunk.header, output)
            for old_line, new_line, old_html, new_html in self._rows(hunk, diff_file.highlight_name):
                if old_line is not None and new_line is not None and old_line.kind == "context":
                    self._write_unified_row(old_line, old_html, output)
                    continue
                if old_line is not None:
                    self._write_unified_row(old_line, old_html, output)
                if new_line is not None:
                    self._write_unified_row(new_line, new_html, output)

        output.write("          </tbody>\n")
        output.write("        </table>\n")
        output.write("      </div>\n")
        output.write("    </div>\n")

    def _write_unified_info_row(self, text: str, output: StringIO) -> None:
        output.write("            <tr>\n")
        output.write('              <td class="d2h-code-linenumber d2h-info"></td>\n')
        output.write(f'              <td class="d2h-info"><div class="d2h-code-line">{escape(text)}</div></td>\n')
        output.write("            </tr>\n")

    def _write_unified_row(self, line: DiffLine, content_html: str, output: StringIO) -> None:
        row_class = _ROW_CLASSES[line.kind]
        old_number = "" if line.old_number is None else str(line.old_number)
        new_number = "" if line.new_number is None else str(line.new_number)
        output.write("            <tr>\n")
        output.write(
            f'              <td class="d2h-code-linenumber {row_class}">'
            f'<div class="line-num1">{old_number}</div><div class="line-num2">{new_number}</div></td>\n'
        )
        output.write(
            f'              <td class="{row_class}"><div class="d2h-code-line">'
            f'<span class="d2h-code-line-prefix">{_PREFIXES[line.kind]}</span>'
            f'<span class="d2h-code-line-ctn">{content_html}</span></div></td>\n'
        )
        output.write("            </tr>\n")

    # ------------------------------------------------------------------
    # Side-by-side layout
    # ------------------------------------------------------------------

    def _write_side_by_side(self, diff_file: DiffFile, output: StringIO) -> None:
        left = StringIO()
        right = StringIO()

        info = _info_message(diff_file)
        if info:
            self._write_side_info_row(info, left)
            self._write_side_info_row("", right)

        for hunk in diff_file.hunks:
            self._write_side_info_row(hunk.header, left)
            self._write_side_info_row("", right)
            for old_line, new_line, old_html, new_html in self._rows(hunk, diff_file.highlight_name):
                self._write_side_row(old_line, old_html, left, number_attr="old_number")
                self._write_side_row(new_line, new_html, right, number_attr="new_number")

        output.write('    <div class="d2h-files-diff">\n')
        for side in (left, right):
            output.write('      <div class="d2h-file-side-diff">\n')
            output.write('        <div class="d2h-code-wrapper">\n')
            output.write('          <table class="d2h-diff-table">\n')
            output.write('            <tbody class="d2h-diff-tbody">\n')
            output.write(side.getvalue())
            output.write("            </tbody>\n")
            output.write("          </table>\n")
            output.write("        </div>\n")
            output.write("      </div>\n")
        output.write("    </div>\n")

    def _write_side_info_row(self, text: str, output: StringIO) -> None:
        output.write("              <tr>\n")
        output.write('                <td class="d2h-code-side-linenumber d2h-info"></td>\n')
        output.write(
            f'                <td class="d2h-info"><div class="d2h-code-side-line">{escape(text)}</div></td>\n'
        )
        output.write("              </tr>\n")

    def _write_side_row(self, line: DiffLine | None, content_html: str, output: StringIO, number_attr: str) -> None:
        output.write("              <tr>\n")
        if line is None:
            output.write('                <td class="d2h-code-side-linenumber d2h-code-side-emptyplaceholder d2h-emptyplaceholder"></td>\n')
            output.write(
                '                <td class="d2h-code-side-emptyplaceholder d2h-emptyplaceholder">'
                '<div class="d2h-code-side-line"></div></td>\n'
            )
        else:
            row_class = _ROW_CLASSES[line.kind]
            number = getattr(line, number_attr)
            output.write(f'                <td class="d2h-code-side-linenumber {row_class}">{number}</td>\n')
            output.write(
                f'                <td class="{row_class}"><div class="d2h-code-side-line">'
                f'<span class="d2h-code-line-prefix">{_PREFIXES[line.kind]}</span>'
                f'<span class="d2h-code-line-ctn">{content_html}</span></div></td>\n'
            )
        output.write("              </tr>\n")

    # ------------------------------------------------------------------
    # Line matching
    # ------------------------------------------------------------------

    def _rows(self, hunk: DiffHunk, filename: str) -> Iterator[_Row]:
        """Yield display rows for a hunk, pairing deletions with additions."""
        lines = hunk.lines
        index = 0
        while index < len(lines):
            line = lines[index]
            if line.kind == "context":
                content = self._content_html(line.content, filename)
                yield line, line, content, content
                index += 1
                continue

            deletions: List[DiffLine] = []
            while index < len(lines) and lines[index].kind == "delete":
                deletions.append(lines[index])
                index += 1
            insertions: List[DiffLine] = []
            while index < len(lines) and lines[index].kind == "insert":
                insertions.append(lines[index])
                index += 1

            for offset in range(max(len(deletions), len(insertions))):
                old_line = deletions[offset] if offset < len(deletions) else None
                new_line = insertions[offset] if offset < len(insertions) else None
                yield self._pair(old_line, new_line, filename)

    def _pair(self, old_line: DiffLine | None, new_line: DiffLine | None, filename: str) -> _Row:
        if old_line is not None and new_line is not None and self._comparable(old_line, new_line):
            old_html, new_html = mark_changes(old_line.content, new_line.content)
            return old_line, new_line, old_html, new_html
        old_html = self._content_html(old_line.content, filename) if old_line is not None else ""
        new_html = self._content_html(new_line.content, filename) if new_line is not None else ""
        return old_line, new_line, old_html, new_html

    def _comparable(self, old_line: DiffLine, new_line: DiffLine) -> bool:
        limit = self.max_line_size_in_block_for_comparison
        return len(old_line.content) <= limit and len(new_line.content) <= limit

    def _content_html(self, content: str, filename: str) -> str:
        if self.highlighter is None or len(content) > self.max_line_length_highlight:
            return escape(content)
        return self.highlighter.highlight_line(content, filename)


def _has_content(diff_file: DiffFile) -> bool:
    return bool(
        diff_file.hunks or diff_file.is_binary or diff_file.is_new or diff_file.is_deleted or diff_file.is_renamed
    )


def _info_message(diff_file: DiffFile) -> str | None:
    if diff_file.hunks:
        return None
    if diff_file.is_binary:
        return BINARY_FILE_MESSAGE
    return FILE_WITHOUT_CHANGES_MESSAGE


def _status_tag(diff_file: DiffFile) -> Tuple[str, str]:
    if diff_file.is_new:
        return "ADDED", "d2h-added"
    if diff_file.is_deleted:
        return "DELETED", "d2h-deleted"
    if diff_file.is_renamed:
        return "RENAMED", "d2h-moved"
    return "CHANGED", "d2h-changed"


def _status_class(diff_file: DiffFile) -> str:
    return _status_tag(diff_file)[1]


def _language_tag(filename: str) -> str:
    _, dot, extension = filename.rpartition(".")
    return extension.lower() if dot and "/" not in extension else "txt"


DIFF_BASE_CSS = """
        .d2h-wrapper { text-align: left; }
        .d2h-file-list-wrapper { margin-bottom: 10px; }
        .d2h-file-list-header { display: flex; justify-content: space-between; align-items: center; }
        .d2h-file-list-title { font-weight: 700; }
        .d2h-file-switch { font-size: 12px; cursor: pointer; color: #0969da; }
        .d2h-file-list { display: block; list-style: none; margin: 0; padding: 0; }
        .d2h-file-list > li { border-bottom: 1px solid #d0d7de; margin: 0; padding: 5px 10px; }
        .d2h-file-list > li:last-child { border-bottom: none; }
        .d2h-file-name-wrapper { display: flex; align-items: center; gap: 8px; width: 100%; }
        .d2h-file-name { overflow-x: hidden; text-overflow: ellipsis; white-space: nowrap; color: #24292f; }
        .d2h-file-stats { display: flex; margin-left: auto; font-size: 14px; }
        .d2h-lines-added { color: #116329; border: 1px solid #b4e2b4; border-radius: 5px 0 0 5px; padding: 2px; }
        .d2h-lines-deleted { color: #82071e; border: 1px solid #e9aeae; border-radius: 0 5px 5px 0; padding: 2px; }
        .d2h-file-wrapper { border: 1px solid #d0d7de; border-radius: 3px; margin-bottom: 1em; }
        .d2h-file-header { display: flex; padding: 5px 10px; border-bottom: 1px solid #d0d7de; }
        .d2h-tag { display: flex; font-size: 10px; margin-left: 5px; padding: 0 2px; border: 1px solid; border-radius: 3px; }
        .d2h-added-tag { color: #116329; border-color: #b4e2b4; }
        .d2h-deleted-tag { color: #82071e; border-color: #e9aeae; }
        .d2h-changed-tag { color: #9a6700; border-color: #d4a72c; }
        .d2h-moved-tag { color: #0969da; border-color: #54aeff; }
        .d2h-files-diff { display: flex; width: 100%; }
        .d2h-file-side-diff { display: inline-block; width: 50%; overflow-x: auto; vertical-align: top; }
        .d2h-code-wrapper { position: relative; }
        .d2h-diff-table { width: 100%; border-collapse: collapse; font-family: Menlo, Consolas, monospace; font-size: 13px; }
        .d2h-code-linenumber, .d2h-code-side-linenumber {
            width: 1%; min-width: 3.5em; padding: 0 0.5em; text-align: right; color: rgba(27, 31, 35, 0.3);
            border-right: 1px solid #d0d7de; user-select: none; white-space: nowrap;
        }
        .line-num1, .line-num2 { display: inline-block; width: 3em; }
        .d2h-code-line, .d2h-code-side-line { display: inline-block; white-space: pre; padding: 0 0.5em; width: 100%; }
        .d2h-code-line-prefix { display: inline; user-select: none; }
        .d2h-code-line-ctn { display: inline; white-space: pre; }
        .d2h-code-line del, .d2h-code-side-line del { background-color: #ffb6ba; text-decoration: none; }
        .d2h-code-line ins, .d2h-code-side-line ins { background-color: #97f295; text-decoration: none; }
        .d2h-del { background-color: #fee8e9; border-color: #e9aeae; }
        .d2h-ins { background-color: #dfd; border-color: #b4e2b4; }
        .d2h-info { background-color: #f8fafd; color: rgba(27, 31, 35, 0.5); border-color: #d0d7de; }
        .d2h-emptyplaceholder { background-color: #f1f1f1; border-color: #e1e1e1; }
        .d2h-empty-message { padding: 1em; text-align: center; }
"""
