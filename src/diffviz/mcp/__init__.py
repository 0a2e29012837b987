"""MCP server for diffviz diff visualization.

This package provides a Model Context Protocol (MCP) server that turns
diffs produced by LLM tools into readable HTML visualizations.

The server runs over stdio transport and provides two tools:
- visualize_diff_html_content: Share the diff as a self-expiring GitHub gist
- visualize_diff_output_file: Save the diff as a local HTML file or PNG image

Delivery features include:
- Security levels that set the gist lifetime (15, 30 or 60 minutes)
- Automatic local fallback without a token or when the gist API fails
- Inline data URIs in hosted deployments without a usable filesystem

Usage
-----
Run the server from command line:
    $ diffviz-mcp

With configuration:
    $ diffviz-mcp --output-dir ~/diffs --auto-open

Or use environment variables:
    $ export GITHUB_TOKEN="ghp_..."
    $ export DIFFVIZ_DEFAULT_OUTPUT_MODE="image"
    $ diffviz-mcp

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

from diffviz.mcp.server import create_server, main
from diffviz.mcp.tools import validate_file_input, validate_share_input

__all__ = [
    "main",
    "create_server",
    "validate_file_input",
    "validate_share_input",
]
