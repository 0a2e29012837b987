#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the diffviz library.

This module defines specialized exception classes for the error
conditions that can occur while normalizing, rendering, and delivering
diff visualizations. These exceptions carry more context than the
generic built-ins so the tool dispatcher can translate them into
protocol-level errors.

Exception Hierarchy
-------------------
- DiffvizError (base exception)

  - ValidationError (missing/invalid request fields, out-of-range options)

  - RenderingError (HTML or artifact generation failures)
    - OutputWriteError (filesystem write failures)
    - RasterizationError (headless browser failures)

  - DeliveryError (delivery channel failures)
    - RemoteShareError (remote paste/gist API failures)
    - OpenActionError (platform "open" failures, never fatal)
    - DeliveryFailedError (every strategy in the plan failed)

  - SecurityError (security violations)
    - NetworkSecurityError (blocked outbound URLs)

  - DependencyError (missing/incompatible packages)

"""

from typing import Any


class DiffvizError(Exception):
    """Base exception class for all diffviz-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(DiffvizError):
    """Exception raised for invalid input parameters or options.

    Raised before any pipeline component runs, e.g. for a missing diff
    text or an expiry outside the 1-1440 minute window.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class RenderingError(DiffvizError):
    """Exception raised when output rendering fails.

    Parameters
    ----------
    message : str
        Description of the rendering failure
    rendering_stage : str, optional
        The stage of rendering where the error occurred
    original_error : Exception, optional
        The underlying exception that caused the rendering failure

    """

    def __init__(self, message: str, rendering_stage: str | None = None, original_error: Exception | None = None):
        """Initialize the rendering error."""
        super().__init__(message, original_error)
        self.rendering_stage = rendering_stage


class OutputWriteError(RenderingError):
    """Exception raised when writing an output file fails.

    Parameters
    ----------
    file_path : str
        Path to the output file that failed to write
    message : str, optional
        Custom error message. If not provided, uses default message
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, file_path: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the output write error."""
        if message is None:
            message = f"Failed to write output file: {file_path}"
        super().__init__(message, rendering_stage="file_write", original_error=original_error)
        self.file_path = file_path


class RasterizationError(RenderingError):
    """Exception raised when the headless browser cannot produce an image."""

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the rasterization error."""
        super().__init__(message, rendering_stage="rasterize", original_error=original_error)


class DeliveryError(DiffvizError):
    """Base exception for delivery channel failures."""


class RemoteShareError(DeliveryError):
    """Exception raised when the remote paste/gist API call fails.

    Parameters
    ----------
    message : str
        Description of the failure
    status_code : int, optional
        HTTP status returned by the API; None for transport errors
    server_message : str, optional
        Message text returned by the server, if any
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        server_message: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the remote share error."""
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.server_message = server_message


class OpenActionError(DeliveryError):
    """Exception raised when the platform "open" action fails."""

    def __init__(self, message: str, target: str | None = None, original_error: Exception | None = None):
        """Initialize the open action error."""
        super().__init__(message, original_error=original_error)
        self.target = target


class DeliveryFailedError(DeliveryError):
    """Exception raised when every strategy of a delivery plan failed.

    Parameters
    ----------
    failures : list of tuple
        ``(strategy_name, exception)`` pairs in attempt order
    message : str, optional
        Custom error message. If not provided, one naming every cause
        is generated.

    """

    def __init__(self, failures: list[tuple[str, Exception]], message: str | None = None):
        """Initialize the delivery failure with the collected causes."""
        if message is None:
            causes = "; ".join(f"{name}: {error}" for name, error in failures)
            message = f"All delivery strategies failed ({causes})"
        original = failures[-1][1] if failures else None
        super().__init__(message, original_error=original)
        self.failures = failures


class SecurityError(DiffvizError):
    """Base exception for security violations."""


class NetworkSecurityError(SecurityError):
    """Exception raised when an outbound request targets a blocked URL."""


class DependencyError(DiffvizError):
    """Exception raised when required dependencies are not available.

    Parameters
    ----------
    feature_name : str
        Name of the feature requiring dependencies (e.g. "image", "mcp")
    missing_packages : list[tuple[str, str]]
        List of (package_name, version_spec) tuples for missing packages
    version_mismatches : list[tuple[str, str, str]], optional
        List of (package_name, required_version, installed_version) tuples
    install_command : str, optional
        Suggested pip install command to resolve the issue
    message : str, optional
        Custom error message. If not provided, generates a helpful message
    original_import_error : ImportError, optional
        The import error that triggered this exception

    """

    def __init__(
        self,
        feature_name: str,
        missing_packages: list[tuple[str, str]],
        version_mismatches: list[tuple[str, str, str]] | None = None,
        install_command: str = "",
        message: str | None = None,
        original_import_error: ImportError | None = None,
    ):
        """Initialize the dependency error."""
        self.feature_name = feature_name
        self.missing_packages = missing_packages
        self.version_mismatches = version_mismatches or []

        if not install_command:
            install_command = f"pip install 'diffviz[{feature_name}]'"
        self.install_command = install_command

        if message is None:
            parts = []
            if self.missing_packages:
                names = ", ".join(f"{pkg}{spec}" for pkg, spec in self.missing_packages)
                parts.append(f"missing packages: {names}")
            if self.version_mismatches:
                mismatches = ", ".join(
                    f"{pkg} (requires {req}, installed {inst})" for pkg, req, inst in self.version_mismatches
                )
                parts.append(f"version mismatches: {mismatches}")
            detail = "; ".join(parts) if parts else "unavailable dependencies"
            message = f"'{feature_name}' support requires additional packages ({detail}). Install with: {install_command}"

        super().__init__(message, original_error=original_import_error)
