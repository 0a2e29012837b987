"""Tool implementations for the MCP server.

This module validates tool inputs and runs them through a
:class:`~diffviz.delivery.DeliveryOrchestrator`. Validation happens
before anything is normalized, rendered or delivered.

Functions
---------
- validate_share_input: Validate visualize_diff_html_content input
- validate_file_input: Validate visualize_diff_output_file input
- visualize_diff_html_content_impl: Implementation of visualize_diff_html_content tool
- visualize_diff_output_file_impl: Implementation of visualize_diff_output_file tool

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

import logging
from typing import get_args

from diffviz.config import DiffvizConfig
from diffviz.constants import MAX_EXPIRY_MINUTES, MIN_EXPIRY_MINUTES
from diffviz.delivery.orchestrator import DeliveryOrchestrator, DeliveryRequest
from diffviz.exceptions import DiffvizError, ValidationError
from diffviz.mcp.schemas import DiffFormat, FileDiffInput, OutputType, ShareDiffInput, ShareSecurityLevel
from diffviz.options import RenderOptions

logger = logging.getLogger(__name__)


def _validate_diff(diff: object) -> None:
    if not isinstance(diff, str) or not diff:
        raise ValidationError(
            "diff parameter is required and must be a non-empty string",
            parameter_name="diff",
            parameter_value=type(diff).__name__,
        )


def _validate_format(value: object) -> None:
    allowed = get_args(DiffFormat)
    if value not in allowed:
        raise ValidationError(
            f"format must be one of: {', '.join(allowed)}",
            parameter_name="format",
            parameter_value=value,
        )


def validate_share_input(input_data: ShareDiffInput) -> None:
    """Validate input for the visualize_diff_html_content tool.

    Parameters
    ----------
    input_data : ShareDiffInput
        Tool input

    Raises
    ------
    ValidationError
        If the diff is missing or not a string, a given expiry is not an
        integer in [1, 1440], or the format or security level is unknown

    """
    _validate_diff(input_data.diff)
    _validate_format(input_data.format)

    expiry = input_data.expiry_minutes
    # bool is an int subclass but never a meaningful lifetime
    if expiry is not None and (isinstance(expiry, bool) or not isinstance(expiry, int)):
        raise ValidationError(
            "expiryMinutes must be an integer number of minutes",
            parameter_name="expiryMinutes",
            parameter_value=expiry,
        )
    if expiry is not None and not MIN_EXPIRY_MINUTES <= expiry <= MAX_EXPIRY_MINUTES:
        raise ValidationError(
            f"expiryMinutes must be between {MIN_EXPIRY_MINUTES} and {MAX_EXPIRY_MINUTES} (24 hours)",
            parameter_name="expiryMinutes",
            parameter_value=expiry,
        )

    levels = get_args(ShareSecurityLevel)
    if input_data.security_level not in levels:
        raise ValidationError(
            f"securityLevel must be one of: {', '.join(levels)}",
            parameter_name="securityLevel",
            parameter_value=input_data.security_level,
        )


def validate_file_input(input_data: FileDiffInput) -> None:
    """Validate input for the visualize_diff_output_file tool.

    Raises
    ------
    ValidationError
        If the diff is missing or not a string, or the format or output
        type is unknown

    """
    _validate_diff(input_data.diff)
    _validate_format(input_data.format)

    output_types = get_args(OutputType)
    if input_data.output_type is not None and input_data.output_type not in output_types:
        raise ValidationError(
            f"outputType must be one of: {', '.join(output_types)}",
            parameter_name="outputType",
            parameter_value=input_data.output_type,
        )


def visualize_diff_html_content_impl(
    input_data: ShareDiffInput, config: DiffvizConfig, orchestrator: DeliveryOrchestrator
) -> str:
    """Share a diff as a self-expiring gist, falling back to local delivery.

    Parameters
    ----------
    input_data : ShareDiffInput
        Tool input
    config : DiffvizConfig
        Server configuration
    orchestrator : DeliveryOrchestrator
        Process-wide orchestrator that owns the deferred deletions

    Returns
    -------
    str
        Summary naming the delivery channel, address and expiry

    Raises
    ------
    ValidationError
        If the input is invalid
    DiffvizError
        If rendering fails or every delivery strategy fails

    """
    try:
        validate_share_input(input_data)

        request = DeliveryRequest(
            diff=input_data.diff,
            old_path=input_data.old_path,
            new_path=input_data.new_path,
            render_options=RenderOptions(
                layout=input_data.format,
                show_file_list=input_data.show_file_list,
                highlight=input_data.highlight,
            ),
            auto_open=input_data.auto_open,
            security_level=input_data.security_level,
            expiry_minutes=input_data.expiry_minutes,
            visibility="public" if input_data.public else None,
            compat_mode=input_data.compat_mode,
        )
        logger.info(
            f"Sharing diff ({len(input_data.diff)} characters, level={input_data.security_level}, "
            f"expiry={input_data.expiry_minutes or 'level default'})"
        )

        result = orchestrator.deliver(request)
        logger.info(f"Share request delivered via {result.channel.value}")
        return result.summary

    except DiffvizError as e:
        logger.error(f"Diff sharing failed: {e}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error during diff sharing: {e}")
        raise DiffvizError(f"Diff sharing failed: {e}", original_error=e) from e


def visualize_diff_output_file_impl(
    input_data: FileDiffInput, config: DiffvizConfig, orchestrator: DeliveryOrchestrator
) -> str:
    """Write a diff visualization to the local output directory.

    ``auto_open`` and ``output_type`` fall back to the configured defaults.

    Returns
    -------
    str
        Summary naming the written file (or inline data in hosted deployments)

    Raises
    ------
    ValidationError
        If the input is invalid
    DiffvizError
        If rendering or writing fails

    """
    try:
        validate_file_input(input_data)

        auto_open = config.default_auto_open if input_data.auto_open is None else input_data.auto_open
        output_kind = input_data.output_type or config.default_output_mode

        request = DeliveryRequest(
            diff=input_data.diff,
            old_path=input_data.old_path,
            new_path=input_data.new_path,
            render_options=RenderOptions(
                layout=input_data.format,
                show_file_list=input_data.show_file_list,
                highlight=input_data.highlight,
            ),
            output_kind=output_kind,
            auto_open=auto_open,
            explicit_mode="local",
        )
        logger.info(f"Writing {output_kind} diff output ({len(input_data.diff)} characters)")

        result = orchestrator.deliver(request)
        return result.summary

    except DiffvizError as e:
        logger.error(f"Diff output failed: {e}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error during diff output: {e}")
        raise DiffvizError(f"Diff output failed: {e}", original_error=e) from e
