#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/delivery/planner.py
"""Delivery strategy selection.

:func:`select_plan` is a pure function of the request context. It decides
which channels are tried, in which order, and whether the platform "open"
action may run. Remote sharing always goes first when it is allowed, and
a remote failure always falls through to the next strategy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from diffviz.constants import DeliveryMode

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Delivery channels in the order they may appear in a plan."""

    REMOTE = "remote"
    LOCAL = "local"
    INLINE = "inline"


@dataclass(frozen=True)
class DeliveryContext:
    """Inputs to strategy selection.

    Parameters
    ----------
    has_remote_credential : bool
        Whether a remote API token is configured
    explicit_mode : {"remote", "local"} or None
        Mode requested by the caller; ``"local"`` skips remote sharing
    deployment_is_hosted : bool
        Whether the process runs in a non-interactive hosted environment
    compat_mode : bool
        Compatibility mode for clients that cannot follow links; skips
        remote sharing

    """

    has_remote_credential: bool
    explicit_mode: DeliveryMode | None = None
    deployment_is_hosted: bool = False
    compat_mode: bool = False


@dataclass(frozen=True)
class DeliveryPlan:
    """Ordered delivery strategies for one request; never mutated."""

    strategies: Tuple[Strategy, ...]
    allow_open: bool
    reason: str | None = None

    @property
    def primary(self) -> Strategy:
        return self.strategies[0]

    @property
    def includes_remote(self) -> bool:
        return Strategy.REMOTE in self.strategies


def remote_skip_reason(context: DeliveryContext) -> str | None:
    """Return why remote sharing is skipped, or None if it is allowed."""
    if context.explicit_mode == "local":
        return "local output was requested explicitly"
    if context.compat_mode:
        return "compatibility mode is enabled"
    if not context.has_remote_credential:
        return "no GitHub token is configured (set GITHUB_TOKEN or GH_TOKEN)"
    return None


def select_plan(context: DeliveryContext) -> DeliveryPlan:
    """Select the delivery plan for a request.

    Parameters
    ----------
    context : DeliveryContext
        Credential, mode and deployment facts for the request

    Returns
    -------
    DeliveryPlan
        ``[remote, local]`` or ``[local]`` for interactive deployments, with
        opening allowed; ``[remote, inline]`` or ``[inline]`` for hosted
        deployments, with opening disallowed.

    Examples
    --------
        >>> plan = select_plan(DeliveryContext(has_remote_credential=False))
        >>> [s.value for s in plan.strategies]
        ['local']

    """
    reason = remote_skip_reason(context)
    fallback = Strategy.INLINE if context.deployment_is_hosted else Strategy.LOCAL

    if reason is None:
        strategies: Tuple[Strategy, ...] = (Strategy.REMOTE, fallback)
    else:
        strategies = (fallback,)

    plan = DeliveryPlan(strategies=strategies, allow_open=not context.deployment_is_hosted, reason=reason)
    logger.debug(f"Selected delivery plan {[s.value for s in plan.strategies]} (remote skipped: {reason or 'no'})")
    return plan
