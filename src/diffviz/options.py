#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/options.py
"""Presentation options for diff rendering.

This module defines the immutable option records consumed by the HTML
renderer. Options are frozen dataclasses; use ``create_updated`` to get
a modified copy.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from typing import Any, get_args

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from diffviz.constants import (
    DEFAULT_DOCUMENT_TITLE,
    DEFAULT_HIGHLIGHT,
    DEFAULT_LAYOUT,
    DEFAULT_MAX_LINE_LENGTH_HIGHLIGHT,
    DEFAULT_MAX_LINE_SIZE_IN_BLOCK_FOR_COMPARISON,
    DEFAULT_PYGMENTS_STYLE,
    DEFAULT_SHOW_FILE_LIST,
    LayoutType,
)


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities.

    This mixin adds the ability to create modified copies of frozen dataclass
    instances, which is useful for immutable configuration objects.
    """

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class RenderOptions(CloneFrozenMixin):
    """Configuration for rendering a diff document to HTML.

    Parameters
    ----------
    layout : {"line-by-line", "side-by-side"}, default "side-by-side"
        Table layout of the rendered diff.
    show_file_list : bool, default True
        Whether to render the summary list of changed files.
    highlight : bool, default True
        Whether to syntax highlight code lines.
    for_image_output : bool, default False
        Whether the document will be rasterized at a fixed viewport. Enables
        stricter CSS (fixed table layout, forced wrapping, smaller font).
    title : str, default "Unified Diff Visualization"
        Document title.
    max_line_size_in_block_for_comparison : int, default 200
        Paired lines longer than this are not compared character by character.
    max_line_length_highlight : int, default 10000
        Lines longer than this are emitted without syntax highlighting.
    pygments_style : str, default "default"
        Pygments style used for the highlighting stylesheet.

    """

    layout: LayoutType = field(
        default=DEFAULT_LAYOUT,
        metadata={"help": "Diff table layout", "choices": ["line-by-line", "side-by-side"]},
    )
    show_file_list: bool = field(default=DEFAULT_SHOW_FILE_LIST, metadata={"help": "Show file list summary"})
    highlight: bool = field(default=DEFAULT_HIGHLIGHT, metadata={"help": "Enable syntax highlighting"})
    for_image_output: bool = field(default=False, metadata={"help": "Use fixed-width CSS for rasterization"})
    title: str = DEFAULT_DOCUMENT_TITLE
    max_line_size_in_block_for_comparison: int = DEFAULT_MAX_LINE_SIZE_IN_BLOCK_FOR_COMPARISON
    max_line_length_highlight: int = DEFAULT_MAX_LINE_LENGTH_HIGHLIGHT
    pygments_style: str = DEFAULT_PYGMENTS_STYLE

    def __post_init__(self) -> None:
        """Validate option values.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if self.layout not in get_args(LayoutType):
            raise ValueError(f"layout must be one of {get_args(LayoutType)}, got {self.layout!r}")
        if self.max_line_size_in_block_for_comparison < 0:
            raise ValueError(
                "max_line_size_in_block_for_comparison must be non-negative, "
                f"got {self.max_line_size_in_block_for_comparison}"
            )
        if self.max_line_length_highlight < 0:
            raise ValueError(f"max_line_length_highlight must be non-negative, got {self.max_line_length_highlight}")
