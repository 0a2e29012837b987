#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/delivery/security.py
"""Security policy resolution for shared artifacts.

A security level maps to a lifetime, a visibility and an optional access
gate. The policy is resolved once per delivery request and consumed by
the renderer (expiry banner, gate) and the remote client (visibility,
deferred deletion).

Level table
-----------
===========  ============  ======================
Level        Lifetime      Gated (gating enabled)
===========  ============  ======================
low          60 minutes    no
medium       30 minutes    yes
high         15 minutes    yes
===========  ============  ======================

Gating is off unless explicitly enabled, in which case medium and high
get an access code.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import get_args

from diffviz.constants import (
    ACCESS_SECRET_BYTES,
    MAX_EXPIRY_MINUTES,
    MIN_EXPIRY_MINUTES,
    SECURITY_LEVEL_TABLE,
    SecurityLevel,
    Visibility,
)
from diffviz.exceptions import ValidationError
from diffviz.options import CloneFrozenMixin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecurityPolicy(CloneFrozenMixin):
    """Resolved sharing policy for one delivery request.

    Parameters
    ----------
    level : {"low", "medium", "high"}
        Requested security level
    ttl_minutes : int
        Lifetime of the shared artifact in minutes (1..1440)
    gated : bool
        Whether the rendered page hides behind an access gate
    access_secret : str or None
        Code for the access gate; excluded from ``repr``
    visibility : {"public", "private"}
        Visibility of the remote artifact
    label : str
        Human-readable description used for the remote artifact

    """

    level: SecurityLevel
    ttl_minutes: int
    gated: bool = False
    access_secret: str | None = field(default=None, repr=False)
    visibility: Visibility = "private"
    label: str = ""

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"


@dataclass(frozen=True)
class PolicyOverrides:
    """Caller-supplied replacements for level defaults.

    Values are assumed validated by the caller (see
    :func:`diffviz.mcp.tools.validate_share_input`).
    """

    ttl_minutes: int | None = None
    access_secret: str | None = field(default=None, repr=False)
    visibility: Visibility | None = None


def generate_access_secret() -> str:
    """Generate a short random access code."""
    return secrets.token_hex(ACCESS_SECRET_BYTES)


def resolve_policy(
    level: SecurityLevel,
    overrides: PolicyOverrides | None = None,
    *,
    gating_enabled: bool = False,
) -> SecurityPolicy:
    """Resolve a security level plus overrides into a policy.

    Parameters
    ----------
    level : {"low", "medium", "high"}
        Requested level
    overrides : PolicyOverrides, optional
        Lifetime, access code and visibility replacements
    gating_enabled : bool, default False
        Whether medium and high levels get an access gate

    Returns
    -------
    SecurityPolicy
        Resolved policy. Without gating the result depends only on the
        arguments.

    Raises
    ------
    ValidationError
        If the level is unknown or the lifetime override is out of range

    Notes
    -----
    The tool layer already rejects these inputs before delivery starts.
    The same checks run here for callers that build a
    :class:`~diffviz.delivery.orchestrator.DeliveryRequest` directly, so an
    out-of-range lifetime can never reach the scheduler.

    Examples
    --------
        >>> resolve_policy("high").ttl_minutes
        15
        >>> resolve_policy("low", PolicyOverrides(ttl_minutes=5)).ttl_minutes
        5

    """
    if level not in SECURITY_LEVEL_TABLE:
        raise ValidationError(
            f"Unknown security level {level!r}, expected one of {', '.join(get_args(SecurityLevel))}",
            parameter_name="securityLevel",
            parameter_value=level,
        )
    overrides = overrides or PolicyOverrides()
    default_ttl, gate_when_enabled, base_label = SECURITY_LEVEL_TABLE[level]

    ttl_minutes = overrides.ttl_minutes if overrides.ttl_minutes is not None else default_ttl
    if not MIN_EXPIRY_MINUTES <= ttl_minutes <= MAX_EXPIRY_MINUTES:
        raise ValidationError(
            f"Expiry must be between {MIN_EXPIRY_MINUTES} and {MAX_EXPIRY_MINUTES} minutes, got {ttl_minutes}",
            parameter_name="expiryMinutes",
            parameter_value=ttl_minutes,
        )

    gated = gating_enabled and gate_when_enabled
    access_secret = None
    if gated:
        access_secret = overrides.access_secret or generate_access_secret()
        logger.debug(f"Access gate enabled for security level '{level}'")

    visibility = overrides.visibility or "private"
    if visibility == "public":
        base_label = base_label.replace("Secret Gist", "Public Gist")

    return SecurityPolicy(
        level=level,
        ttl_minutes=ttl_minutes,
        gated=gated,
        access_secret=access_secret,
        visibility=visibility,
        label=f"{base_label} ({ttl_minutes}min auto-delete)",
    )
