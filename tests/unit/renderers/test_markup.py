"""Unit tests for the d2h markup builder and line highlighting."""

from __future__ import annotations

import pytest

from diffviz.renderers.markup import (
    BINARY_FILE_MESSAGE,
    EMPTY_DIFF_MESSAGE,
    CodeHighlighter,
    DiffMarkupBuilder,
    mark_changes,
)

PAIRED_DIFF = "--- a/app.py\n+++ b/app.py\n@@ -1,2 +1,2 @@\n keep = 1\n-value = 'old'\n+value = 'new'\n"


@pytest.mark.unit
class TestMarkChanges:
    """Character-level change marking."""

    def test_marks_changed_run(self):
        old_html, new_html = mark_changes("value = 'old'", "value = 'new'")
        assert "<del>" in old_html
        assert "<ins>" in new_html
        assert old_html.startswith("value = &#x27;")

    def test_identical_lines_have_no_marks(self):
        assert mark_changes("same", "same") == ("same", "same")

    def test_content_is_escaped(self):
        old_html, new_html = mark_changes("<a>", "<b>")
        assert "<a>" not in old_html
        assert "&lt;" in old_html and "&lt;" in new_html


@pytest.mark.unit
class TestCodeHighlighter:
    """Pygments-backed line highlighting."""

    def test_python_tokens(self):
        html = CodeHighlighter().highlight_line("def main():", "app.py")
        assert "<span" in html
        assert "main" in html
        assert not html.endswith("\n")

    def test_unknown_extension_falls_back_to_text(self):
        highlighter = CodeHighlighter()
        html = highlighter.highlight_line("<plain>", "notes.unknownext")
        assert "&lt;plain&gt;" in html

    def test_empty_line(self):
        assert CodeHighlighter().highlight_line("", "app.py") == ""

    def test_stylesheet_is_scoped(self):
        css = CodeHighlighter().stylesheet()
        assert ".d2h-code-line-ctn" in css


@pytest.mark.unit
class TestDiffMarkupBuilder:
    """Tests for DiffMarkupBuilder.build."""

    def test_empty_diff_placeholder(self):
        fragment = DiffMarkupBuilder().build("--- a/f.txt\n+++ b/f.txt")
        assert fragment.startswith('<div class="d2h-wrapper">')
        assert EMPTY_DIFF_MESSAGE in fragment
        assert "d2h-file-list" not in fragment

    def test_garbage_renders_placeholder(self):
        assert EMPTY_DIFF_MESSAGE in DiffMarkupBuilder().build("not a diff")

    def test_file_list_and_stats(self, multi_file_diff):
        fragment = DiffMarkupBuilder(layout="line-by-line").build(multi_file_diff)

        assert "Files changed (3)" in fragment
        assert 'href="#d2h-file-1"' in fragment
        assert 'id="d2h-file-3"' in fragment
        assert ">ADDED<" in fragment
        assert ">DELETED<" in fragment
        assert ">CHANGED<" in fragment
        assert '<span class="d2h-lines-added">+2</span>' in fragment

    def test_file_list_can_be_hidden(self, multi_file_diff):
        fragment = DiffMarkupBuilder(show_file_list=False).build(multi_file_diff)
        assert "d2h-file-list-wrapper" not in fragment
        assert 'id="d2h-file-1"' in fragment

    def test_line_by_line_numbers(self, simple_diff):
        fragment = DiffMarkupBuilder(layout="line-by-line").build(simple_diff)

        assert "d2h-file-side-diff" not in fragment
        assert '<div class="line-num1">1</div><div class="line-num2">1</div>' in fragment
        assert '<div class="line-num1"></div><div class="line-num2">2</div>' in fragment
        assert "@@ -1,1 +1,2 @@" in fragment

    def test_side_by_side_placeholder_cells(self, simple_diff):
        fragment = DiffMarkupBuilder(layout="side-by-side").build(simple_diff)

        assert fragment.count('class="d2h-file-side-diff"') == 2
        # The added line has no counterpart on the old side
        assert "d2h-emptyplaceholder" in fragment

    def test_paired_lines_get_intraline_marks(self):
        fragment = DiffMarkupBuilder(highlighter=CodeHighlighter()).build(PAIRED_DIFF)
        assert "<del>" in fragment
        assert "<ins>" in fragment

    def test_long_pairs_are_not_compared(self):
        fragment = DiffMarkupBuilder(max_line_size_in_block_for_comparison=5).build(PAIRED_DIFF)
        assert "<del>" not in fragment
        assert "<ins>" not in fragment

    def test_long_lines_are_not_highlighted(self):
        builder = DiffMarkupBuilder(highlighter=CodeHighlighter(), max_line_length_highlight=3)
        fragment = builder.build("--- a/app.py\n+++ b/app.py\n@@ -1 +1 @@\n import os\n")
        assert '<span class="d2h-code-line-ctn">import os</span>' in fragment

    def test_binary_file_message(self):
        text = "diff --git a/logo.png b/logo.png\nBinary files a/logo.png and b/logo.png differ\n"
        assert BINARY_FILE_MESSAGE in DiffMarkupBuilder().build(text)

    def test_rename_tag(self):
        text = "diff --git a/a.py b/b.py\nrename from a.py\nrename to b.py\n"
        fragment = DiffMarkupBuilder().build(text)
        assert ">RENAMED<" in fragment
        assert "a.py → b.py" in fragment

    def test_file_names_are_escaped(self):
        fragment = DiffMarkupBuilder().build("--- a/<x>.txt\n+++ b/<x>.txt\n@@ -1 +1 @@\n-a\n+b\n")
        assert "&lt;x&gt;.txt" in fragment
        assert "<x>.txt" not in fragment

    def test_build_is_deterministic(self, modified_diff):
        builder = DiffMarkupBuilder(highlighter=CodeHighlighter())
        assert builder.build(modified_diff) == builder.build(modified_diff)
