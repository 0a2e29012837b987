"""FastMCP server for diffviz diff visualization.

This module implements the main MCP server using FastMCP with stdio transport.
It exposes the visualize_diff_html_content and visualize_diff_output_file
tools to LLMs.

Functions
---------
- create_server: Build the FastMCP server and register the tools
- main: Server entry point (for CLI)

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Annotated, cast

from diffviz.config import DiffvizConfig, load_config
from diffviz.delivery.orchestrator import DeliveryOrchestrator
from diffviz.exceptions import DependencyError
from diffviz.logging_utils import configure_logging as configure_root_logging
from diffviz.mcp.schemas import DiffFormat, FileDiffInput, OutputType, ShareDiffInput, ShareSecurityLevel

if TYPE_CHECKING:
    from fastmcp import FastMCP

logger = logging.getLogger(__name__)


def create_server(
    config: DiffvizConfig,
    share_impl: Callable[[ShareDiffInput, DiffvizConfig, DeliveryOrchestrator], str],
    file_impl: Callable[[FileDiffInput, DiffvizConfig, DeliveryOrchestrator], str],
    orchestrator: DeliveryOrchestrator | None = None,
) -> "FastMCP":
    """Create and configure FastMCP server with tools.

    Parameters
    ----------
    config : DiffvizConfig
        Server configuration
    share_impl : callable
        Implementation function for visualize_diff_html_content tool
    file_impl : callable
        Implementation function for visualize_diff_output_file tool
    orchestrator : DeliveryOrchestrator, optional
        Orchestrator shared by both tools; created from ``config`` if omitted

    Returns
    -------
    FastMCP
        Configured MCP server instance

    """
    try:
        from fastmcp import FastMCP
    except ImportError as e:
        print("Error: FastMCP not installed. Install with: pip install 'diffviz[mcp]'", file=sys.stderr)
        raise DependencyError("mcp", [("fastmcp", ">=2.0.0")]) from e

    # One orchestrator per process so pending gist deletions outlive the request
    if orchestrator is None:
        orchestrator = DeliveryOrchestrator(config)

    mcp: FastMCP = FastMCP(name="diffviz")

    @mcp.tool(name="visualize_diff_html_content")
    def visualize_diff_html_content(
        diff: Annotated[str, "Unified diff text or filesystem edit_file dry-run output. REQUIRED."],
        format: Annotated[str, "Output format for the diff visualization: line-by-line or side-by-side."] = (
            "side-by-side"
        ),
        showFileList: Annotated[bool, "Show file list summary."] = True,
        highlight: Annotated[bool, "Enable syntax highlighting."] = True,
        oldPath: Annotated[str | None, "Path of the original file (optional)."] = None,
        newPath: Annotated[str | None, "Path of the modified file (optional)."] = None,
        autoOpen: Annotated[bool, "Automatically open the HTML preview in the browser."] = False,
        expiryMinutes: Annotated[
            int | None, "Minutes until automatic deletion, 1-1440 (default: the security level's lifetime, 30)."
        ] = None,
        public: Annotated[bool, "Create as public gist (default: false for secret gist)."] = False,
        securityLevel: Annotated[
            str,
            "Security level: low (60 min), medium (30 min) or high (15 min). "
            "expiryMinutes overrides the level's lifetime.",
        ] = "medium",
        compatMode: Annotated[
            bool, "Skip the gist and deliver locally, for clients that cannot follow links."
        ] = False,
    ) -> str:
        """Generate a diff visualization and share it as a temporary GitHub gist.

        The gist is deleted automatically after expiryMinutes. The returned
        text contains an HTML preview link, the raw gist URL and the expiry.

        Without a GitHub token (GITHUB_TOKEN or GH_TOKEN), or when the gist
        cannot be created, the visualization is saved to the local output
        directory instead (inline data in hosted deployments) and the text
        explains why.
        """
        input_obj = ShareDiffInput(
            diff=diff,
            format=cast(DiffFormat, format),
            show_file_list=showFileList,
            highlight=highlight,
            old_path=oldPath,
            new_path=newPath,
            auto_open=autoOpen,
            expiry_minutes=expiryMinutes,
            public=public,
            security_level=cast(ShareSecurityLevel, securityLevel),
            compat_mode=compatMode,
        )
        return share_impl(input_obj, config, orchestrator)

    logger.info("Registered tool: visualize_diff_html_content")

    @mcp.tool(name="visualize_diff_output_file")
    def visualize_diff_output_file(
        diff: Annotated[str, "Unified diff text or filesystem edit_file dry-run output. REQUIRED."],
        format: Annotated[str, "Output format for the diff visualization: line-by-line or side-by-side."] = (
            "side-by-side"
        ),
        showFileList: Annotated[bool, "Show file list summary."] = True,
        highlight: Annotated[bool, "Enable syntax highlighting."] = True,
        oldPath: Annotated[str | None, "Path of the original file (optional)."] = None,
        newPath: Annotated[str | None, "Path of the modified file (optional)."] = None,
        autoOpen: Annotated[
            bool | None, "Automatically open the generated output (default: server setting)."
        ] = None,
        outputType: Annotated[
            str | None, "Output format: image (PNG) or html file (default: server setting)."
        ] = None,
    ) -> str:
        """Generate a diff visualization and save it to the local output directory.

        Writes diff-image.html or diff-image.png, replacing the previous
        output of the same type. In hosted deployments the visualization is
        returned inline as a data URI instead.
        """
        input_obj = FileDiffInput(
            diff=diff,
            format=cast(DiffFormat, format),
            show_file_list=showFileList,
            highlight=highlight,
            old_path=oldPath,
            new_path=newPath,
            auto_open=autoOpen,
            output_type=cast(OutputType | None, outputType),
        )
        return file_impl(input_obj, config, orchestrator)

    logger.info("Registered tool: visualize_diff_output_file")

    return mcp


def configure_logging(level: str) -> None:
    """Configure logging for the MCP server."""
    configure_root_logging(level)


def main() -> int:
    """Run diffviz-mcp server."""
    try:
        # Configure logging with default level first (will be reconfigured if needed)
        configure_logging("INFO")

        config = load_config()

        if config.log_level != "INFO":
            configure_logging(config.log_level)

        logger.info("Starting diffviz MCP server")
        deployment = config.deployment
        logger.info(
            f"Configuration: hosted={deployment.is_hosted} ({deployment.detected_by or 'default'}), "
            f"output_dir={deployment.output_dir}, default_output_mode={config.default_output_mode}, "
            f"default_auto_open={config.default_auto_open}"
        )
        if config.has_remote_credential:
            logger.info("GitHub token found: remote sharing enabled")
        else:
            logger.warning("No GitHub token configured: diffs will be delivered locally")
        if config.enable_access_gate:
            logger.info("Access gate enabled for medium and high security shares")

        from diffviz.mcp.tools import visualize_diff_html_content_impl, visualize_diff_output_file_impl

        mcp = create_server(config, visualize_diff_html_content_impl, visualize_diff_output_file_impl)

        logger.info("Server ready, listening on stdio")
        mcp.run()  # Run with default stdio transport

    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e!r}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
