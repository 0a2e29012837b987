"""Tool input schemas for the MCP server.

This module defines the data structures for tool inputs using Python
dataclasses. Field names follow the tool parameter names in snake case;
the server maps the camelCase MCP parameters onto them.

Classes
-------
- ShareDiffInput: Input schema for the visualize_diff_html_content tool
- FileDiffInput: Input schema for the visualize_diff_output_file tool

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

from dataclasses import dataclass
from typing import Any, Literal

from diffviz.constants import DEFAULT_SECURITY_LEVEL

# Type aliases for better readability
DiffFormat = Literal["line-by-line", "side-by-side"]

ShareSecurityLevel = Literal["low", "medium", "high"]

OutputType = Literal["html", "image"]


@dataclass
class ShareDiffInput:
    """Input schema for the visualize_diff_html_content tool.

    Attributes
    ----------
    diff : str
        Unified diff, dry-run edit report, or bare changed lines. REQUIRED.
    format : DiffFormat
        Table layout (default: "side-by-side")
    show_file_list : bool
        Render the list of changed files above the diff (default: True)
    highlight : bool
        Syntax highlight code lines (default: True)
    old_path : str | None
        Path of the original file, used when the diff has no header
    new_path : str | None
        Path of the modified file, used when the diff has no header
    auto_open : bool
        Open the preview link (or the local fallback file) after delivery
    expiry_minutes : int | None
        Lifetime of the shared gist in minutes, 1-1440. None uses the
        security level lifetime (30 for the default "medium")
    public : bool
        Share as a public gist instead of a secret one (default: False)
    security_level : ShareSecurityLevel
        Security level: low, medium or high (default: "medium")
    compat_mode : bool
        Skip remote sharing for clients that cannot follow links

    """

    diff: Any
    format: DiffFormat = "side-by-side"
    show_file_list: bool = True
    highlight: bool = True
    old_path: str | None = None
    new_path: str | None = None
    auto_open: bool = False
    expiry_minutes: Any = None
    public: bool = False
    security_level: ShareSecurityLevel = DEFAULT_SECURITY_LEVEL
    compat_mode: bool = False


@dataclass
class FileDiffInput:
    """Input schema for the visualize_diff_output_file tool.

    ``auto_open`` and ``output_type`` default to the server configuration
    when left as None.

    Attributes
    ----------
    diff : str
        Unified diff, dry-run edit report, or bare changed lines. REQUIRED.
    format : DiffFormat
        Table layout (default: "side-by-side")
    show_file_list : bool
        Render the list of changed files above the diff (default: True)
    highlight : bool
        Syntax highlight code lines (default: True)
    old_path : str | None
        Path of the original file, used when the diff has no header
    new_path : str | None
        Path of the modified file, used when the diff has no header
    auto_open : bool | None
        Open the written file with the platform viewer
    output_type : OutputType | None
        Write an HTML file or a PNG image

    """

    diff: Any
    format: DiffFormat = "side-by-side"
    show_file_list: bool = True
    highlight: bool = True
    old_path: str | None = None
    new_path: str | None = None
    auto_open: bool | None = None
    output_type: OutputType | None = None
