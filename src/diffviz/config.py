"""Configuration management for diffviz.

This module handles configuration from environment variables and CLI
arguments, with CLI arguments taking precedence over environment
variables.

All configuration is resolved once at startup, including detection of a
hosted deployment, and is passed by parameter from then on. Nothing reads
the environment at request time.

Classes
-------
- DeploymentContext: Hosted flag and output directory for local delivery
- DiffvizConfig: Process-wide defaults and credentials

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

import argparse
import logging
import os
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Mapping, get_args

from diffviz.constants import (
    DEFAULT_GIST_API_URL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_RASTER_TIMEOUT,
    ENV_DEFAULT_AUTO_OPEN,
    ENV_DEFAULT_OUTPUT_MODE,
    ENV_ENABLE_ACCESS_GATE,
    ENV_GIST_API_URL,
    ENV_GITHUB_TOKEN,
    ENV_HOSTED,
    ENV_HTTP_TIMEOUT,
    ENV_LOG_LEVEL,
    ENV_OUTPUT_DIR,
    ENV_RASTER_TIMEOUT,
    HOSTED_ENV_MARKERS,
    HOSTED_OUTPUT_DIR,
    HOSTED_WORKDIRS,
    LOCAL_OUTPUT_DIRNAME,
    OutputKind,
)
from diffviz.options import CloneFrozenMixin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentContext:
    """Where the process runs and where local output goes.

    Attributes
    ----------
    is_hosted : bool
        True for non-interactive hosted runtimes (serverless, containers);
        local files there are not reachable by the user and nothing is opened
    output_dir : Path
        Directory for local output files
    detected_by : str or None
        What decided ``is_hosted`` (an env marker, the working directory, or
        an explicit setting)

    """

    is_hosted: bool
    output_dir: Path
    detected_by: str | None = None


@dataclass(frozen=True)
class DiffvizConfig(CloneFrozenMixin):
    """Process-wide diffviz configuration.

    All settings are immutable after startup.

    Attributes
    ----------
    default_auto_open : bool
        Default ``autoOpen`` of the file tool (default: False)
    default_output_mode : {"html", "image"}
        Default ``outputType`` of the file tool (default: "html")
    github_token : str or None
        Credential for the remote share API; excluded from ``repr``
    is_hosted : bool
        Whether the deployment is hosted, resolved once at startup
    hosted_detected_by : str or None
        What decided ``is_hosted``
    output_dir : str or None
        Explicit output directory; None means the deployment default
    enable_access_gate : bool
        Whether medium and high security levels get an access gate
    gist_api_url : str
        Remote share API base URL
    http_timeout : float
        Remote API request timeout in seconds
    raster_timeout : float
        Image rendering timeout in seconds
    log_level : str
        Logging level (DEBUG|INFO|WARNING|ERROR|CRITICAL)

    """

    default_auto_open: bool = False
    default_output_mode: OutputKind = "html"
    github_token: str | None = field(default=None, repr=False)
    is_hosted: bool = False
    hosted_detected_by: str | None = None
    output_dir: str | None = None
    enable_access_gate: bool = False
    gist_api_url: str = DEFAULT_GIST_API_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    raster_timeout: float = DEFAULT_RASTER_TIMEOUT
    log_level: str = "INFO"

    @property
    def has_remote_credential(self) -> bool:
        return bool(self.github_token and self.github_token.strip())

    @property
    def deployment(self) -> DeploymentContext:
        """Deployment context derived from the resolved settings."""
        if self.output_dir:
            output_dir = Path(self.output_dir).expanduser()
        elif self.is_hosted:
            output_dir = Path(HOSTED_OUTPUT_DIR)
        else:
            output_dir = Path.cwd() / LOCAL_OUTPUT_DIRNAME
        return DeploymentContext(is_hosted=self.is_hosted, output_dir=output_dir, detected_by=self.hosted_detected_by)

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises
        ------
        ValueError
            If configuration is invalid

        """
        if self.default_output_mode not in get_args(OutputKind):
            raise ValueError(
                f"Invalid output mode: {self.default_output_mode}. Must be one of: {', '.join(get_args(OutputKind))}"
            )
        if not self.gist_api_url.startswith("https://"):
            raise ValueError(f"Gist API URL must use HTTPS: {self.gist_api_url}")
        if self.http_timeout <= 0:
            raise ValueError(f"HTTP timeout must be positive, got {self.http_timeout}")
        if self.raster_timeout <= 0:
            raise ValueError(f"Raster timeout must be positive, got {self.raster_timeout}")


def _str_to_bool(value: str | None, default: bool = False) -> bool:
    """Convert string to boolean.

    Parameters
    ----------
    value : str | None
        String value (True iif: "true", "t", "1", "yes", "on")
    default : bool, default False
        Default value if input is None

    Returns
    -------
    bool
        Boolean value

    """
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "t", "on")


def _validate_log_level(value: str | None, default: str = "INFO") -> str:
    """Validate and normalize log level string.

    Raises
    ------
    ValueError
        If value is not a valid log level

    """
    if value is None:
        return default

    normalized = value.upper().strip()
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    if normalized not in valid_levels:
        raise ValueError(f"Invalid log level: {value!r}. " f"Must be one of: {', '.join(valid_levels)}")

    return normalized


def _validate_output_mode(value: str | None, default: OutputKind = "html") -> OutputKind:
    """Validate and normalize an output mode string.

    Raises
    ------
    ValueError
        If value is not "html" or "image"

    """
    if value is None:
        return default

    normalized = value.lower().strip()
    if normalized == "html":
        return "html"
    if normalized == "image":
        return "image"
    raise ValueError(f"Invalid output mode: {value!r}. Must be one of: html, image")


def _parse_seconds(value: str | None, name: str, default: float) -> float:
    """Parse a positive number of seconds.

    Raises
    ------
    ValueError
        If value is not a positive number

    """
    if value is None or not value.strip():
        return default
    try:
        seconds = float(value)
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {value!r}. Must be a number of seconds") from e
    if seconds <= 0:
        raise ValueError(f"Invalid {name}: {value!r}. Must be positive")
    return seconds


def detect_hosted_environment(environ: Mapping[str, str], cwd: str) -> tuple[bool, str | None]:
    """Decide whether the process runs in a hosted deployment.

    Parameters
    ----------
    environ : Mapping[str, str]
        Environment variables
    cwd : str
        Current working directory

    Returns
    -------
    tuple[bool, str | None]
        Hosted flag and what decided it

    """
    explicit = environ.get(ENV_HOSTED)
    if explicit is not None and explicit.strip():
        return _str_to_bool(explicit), ENV_HOSTED

    for marker in HOSTED_ENV_MARKERS:
        if environ.get(marker):
            return True, marker

    if cwd in HOSTED_WORKDIRS:
        return True, f"working directory {cwd}"

    return False, None


def _read_token(environ: Mapping[str, str]) -> str | None:
    for name in ENV_GITHUB_TOKEN:
        value = environ.get(name)
        if value and value.strip():
            return value.strip()
    return None


def load_config_from_env() -> DiffvizConfig:
    """Load configuration from environment variables.

    Hosted deployment detection happens here, once.

    Returns
    -------
    DiffvizConfig
        Configuration loaded from environment

    """
    environ = os.environ
    is_hosted, detected_by = detect_hosted_environment(environ, os.getcwd())
    if is_hosted:
        logger.info(f"Hosted deployment detected ({detected_by})")

    return DiffvizConfig(
        default_auto_open=_str_to_bool(environ.get(ENV_DEFAULT_AUTO_OPEN), default=False),
        default_output_mode=_validate_output_mode(environ.get(ENV_DEFAULT_OUTPUT_MODE), default="html"),
        github_token=_read_token(environ),
        is_hosted=is_hosted,
        hosted_detected_by=detected_by,
        output_dir=environ.get(ENV_OUTPUT_DIR) or None,
        enable_access_gate=_str_to_bool(environ.get(ENV_ENABLE_ACCESS_GATE), default=False),
        gist_api_url=environ.get(ENV_GIST_API_URL) or DEFAULT_GIST_API_URL,
        http_timeout=_parse_seconds(environ.get(ENV_HTTP_TIMEOUT), "HTTP timeout", DEFAULT_HTTP_TIMEOUT),
        raster_timeout=_parse_seconds(environ.get(ENV_RASTER_TIMEOUT), "raster timeout", DEFAULT_RASTER_TIMEOUT),
        log_level=_validate_log_level(environ.get(ENV_LOG_LEVEL), default="INFO"),
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for the MCP server CLI.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser

    """
    parser = argparse.ArgumentParser(
        prog="diffviz-mcp",
        description="MCP server that renders diffs to HTML and shares them as gists or local files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  GITHUB_TOKEN / GH_TOKEN          GitHub token with gist scope (enables remote sharing)
  DIFFVIZ_DEFAULT_AUTO_OPEN        Default autoOpen for visualize_diff_output_file (default: false)
  DIFFVIZ_DEFAULT_OUTPUT_MODE      Default outputType: html or image (default: html)
  DIFFVIZ_HOSTED                   Force hosted (true) or local (false) deployment (default: auto-detect)
  DIFFVIZ_OUTPUT_DIR               Output directory for local files
                                   (default: ./output, or /tmp/diffviz-output when hosted)
  DIFFVIZ_ENABLE_ACCESS_GATE       Protect medium/high security shares with an access code (default: false)
  DIFFVIZ_GIST_API_URL             Gist API base URL (default: https://api.github.com)
  DIFFVIZ_HTTP_TIMEOUT             Gist API timeout in seconds (default: 15)
  DIFFVIZ_RASTER_TIMEOUT           Image rendering timeout in seconds (default: 60)
  DIFFVIZ_LOG_LEVEL                Logging level (default: INFO)

Examples:
  # Basic usage
  diffviz-mcp

  # Write local files to a specific directory and open them automatically
  diffviz-mcp --output-dir ~/diffs --auto-open

  # Render images by default
  diffviz-mcp --output-mode image
        """,
    )

    try:
        version_string = f'diffviz-mcp {version("diffviz")}'
    except PackageNotFoundError:
        version_string = "diffviz-mcp (version unknown)"

    parser.add_argument("--version", action="version", version=version_string)

    auto_open_group = parser.add_mutually_exclusive_group()
    auto_open_group.add_argument(
        "--auto-open",
        action="store_true",
        dest="default_auto_open",
        help="Open local output files by default (default: false)",
    )
    auto_open_group.add_argument(
        "--no-auto-open", action="store_false", dest="default_auto_open", help="Do not open local output files"
    )
    parser.set_defaults(default_auto_open=None)  # None = use env default

    parser.add_argument(
        "--output-mode",
        type=str,
        choices=["html", "image"],
        dest="default_output_mode",
        help="Default output type for visualize_diff_output_file (default: html)",
    )

    hosted_group = parser.add_mutually_exclusive_group()
    hosted_group.add_argument(
        "--hosted", action="store_true", dest="hosted", help="Treat the deployment as hosted (no local viewer)"
    )
    hosted_group.add_argument(
        "--no-hosted", action="store_false", dest="hosted", help="Treat the deployment as local and interactive"
    )
    parser.set_defaults(hosted=None)  # None = auto-detect

    parser.add_argument("--output-dir", type=str, metavar="PATH", help="Directory for local output files")

    parser.add_argument(
        "--enable-access-gate",
        action="store_true",
        default=None,
        help="Protect medium/high security shares with an access code (default: false)",
    )

    parser.add_argument("--gist-api-url", type=str, metavar="URL", help="Gist API base URL")
    parser.add_argument("--http-timeout", type=float, metavar="SECONDS", help="Gist API timeout in seconds")
    parser.add_argument("--raster-timeout", type=float, metavar="SECONDS", help="Image rendering timeout in seconds")

    parser.add_argument(
        "--log-level", type=str, help="Logging level: DEBUG, INFO, WARNING, ERROR (case-insensitive, default: INFO)"
    )

    return parser


def load_config_from_args(args: argparse.Namespace) -> DiffvizConfig:
    """Load configuration from parsed CLI arguments, using env as fallback.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed CLI arguments

    Returns
    -------
    DiffvizConfig
        Merged configuration (CLI overrides env)

    """
    config = load_config_from_env()

    updated_kwargs: dict[str, object] = {}

    if args.default_auto_open is not None:
        updated_kwargs.update(default_auto_open=args.default_auto_open)

    if args.default_output_mode is not None:
        updated_kwargs.update(default_output_mode=_validate_output_mode(args.default_output_mode))

    if args.hosted is not None:
        updated_kwargs.update(is_hosted=args.hosted, hosted_detected_by="--hosted" if args.hosted else "--no-hosted")

    if args.output_dir is not None:
        updated_kwargs.update(output_dir=args.output_dir)

    if args.enable_access_gate is not None:
        updated_kwargs.update(enable_access_gate=args.enable_access_gate)

    if args.gist_api_url is not None:
        updated_kwargs.update(gist_api_url=args.gist_api_url)

    if args.http_timeout is not None:
        updated_kwargs.update(http_timeout=args.http_timeout)

    if args.raster_timeout is not None:
        updated_kwargs.update(raster_timeout=args.raster_timeout)

    if args.log_level is not None:
        updated_kwargs.update(log_level=_validate_log_level(args.log_level))

    if updated_kwargs:
        config = config.create_updated(**updated_kwargs)

    return config


def load_config(argv: list[str] | None = None) -> DiffvizConfig:
    """Load and validate configuration from CLI args and environment.

    Parameters
    ----------
    argv : list[str], optional
        Arguments to parse; defaults to ``sys.argv[1:]``

    Returns
    -------
    DiffvizConfig
        Validated configuration

    Raises
    ------
    ValueError
        If configuration is invalid

    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    config = load_config_from_args(args)
    config.validate()

    return config
