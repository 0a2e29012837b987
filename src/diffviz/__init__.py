"""diffviz - Diff visualization and delivery for LLM tool output.

diffviz turns a textual diff (a unified diff, a filesystem tool's dry-run
edit report, or bare changed lines) into a self-contained HTML document
and delivers it: as a temporary GitHub gist with a browsable preview link,
as a local HTML file or PNG image, or inline as a ``data:`` URI when the
process runs in a hosted deployment.

Key Features
------------
- Lenient normalization of anything that looks like a diff
- Line-by-line and side-by-side layouts with Pygments highlighting
- Security levels mapped to gist lifetime, visibility and access gating
- Remote-first delivery with local and inline fallbacks
- Automatic deletion of shared gists when their lifetime ends

Requirements
------------
- Python 3.10+
- Optional: fastmcp (MCP server), playwright (image output)

Examples
--------
Render a diff to HTML:

    >>> from diffviz import normalize, render_diff_html
    >>> html = render_diff_html(normalize("-old\\n+new\\n", "a.py", "a.py"))

Deliver it with the environment configuration:

    >>> from diffviz import DeliveryOrchestrator, DeliveryRequest, load_config_from_env
    >>> result = DeliveryOrchestrator(load_config_from_env()).deliver(DeliveryRequest(diff="-old\\n+new\\n"))
    >>> print(result.summary)

See Also
--------
diffviz.mcp : MCP server exposing the delivery tools

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "diffviz requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from diffviz.config import DiffvizConfig, load_config, load_config_from_env
from diffviz.delivery import (
    DeliveryOrchestrator,
    DeliveryRequest,
    DeliveryResult,
    SecurityPolicy,
    Strategy,
    resolve_policy,
    select_plan,
)
from diffviz.diff import DiffDocument, normalize, parse_unified_diff
from diffviz.exceptions import (
    DeliveryFailedError,
    DependencyError,
    DiffvizError,
    RemoteShareError,
    RenderingError,
    ValidationError,
)
from diffviz.options import RenderOptions
from diffviz.renderers import HtmlDiffRenderer, render_diff_html

__all__ = [
    "__version__",
    # Configuration
    "DiffvizConfig",
    "load_config",
    "load_config_from_env",
    # Pipeline
    "DiffDocument",
    "normalize",
    "parse_unified_diff",
    "RenderOptions",
    "HtmlDiffRenderer",
    "render_diff_html",
    "DeliveryOrchestrator",
    "DeliveryRequest",
    "DeliveryResult",
    "SecurityPolicy",
    "Strategy",
    "resolve_policy",
    "select_plan",
    # Exceptions
    "DiffvizError",
    "ValidationError",
    "RenderingError",
    "RemoteShareError",
    "DeliveryFailedError",
    "DependencyError",
]
