#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/delivery/orchestrator.py
"""Delivery orchestration.

:class:`DeliveryOrchestrator` runs one request through a single state
machine::

    NORMALIZE -> RENDER -> REMOTE_ATTEMPT --------------------------> DONE
                              |                                   ^
                              +-> LOCAL_ATTEMPT / INLINE_ATTEMPT -+
                                                |
                                                +-> BOTH_FAILED

The plan decides which attempts happen. Each attempt runs once, failures
move forward to the next strategy, and nothing loops back. When every
strategy fails the request ends in ``BOTH_FAILED``, raised as a single
:class:`~diffviz.exceptions.DeliveryFailedError` naming every cause.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Tuple

from diffviz.config import DiffvizConfig
from diffviz.constants import (
    DEFAULT_SECURITY_LEVEL,
    DeliveryMode,
    OutputKind,
    SecurityLevel,
    Visibility,
)
from diffviz.delivery.local import LocalArtifactWriter, PlatformOpener, PlaywrightRasterizer, to_data_uri
from diffviz.delivery.planner import DeliveryContext, DeliveryPlan, Strategy, select_plan
from diffviz.delivery.remote import GistClient, ShareMetadata, SharedArtifact
from diffviz.delivery.scheduler import DeferredTaskScheduler
from diffviz.delivery.security import PolicyOverrides, SecurityPolicy, resolve_policy
from diffviz.diff.normalizer import DiffDocument, normalize
from diffviz.exceptions import DeliveryFailedError, DiffvizError, OpenActionError, RemoteShareError
from diffviz.options import RenderOptions
from diffviz.renderers.html import HtmlDiffRenderer

logger = logging.getLogger(__name__)


class DeliveryState(str, Enum):
    """States of a delivery request."""

    NORMALIZE = "normalize"
    RENDER = "render"
    REMOTE_ATTEMPT = "remote_attempt"
    LOCAL_ATTEMPT = "local_attempt"
    INLINE_ATTEMPT = "inline_attempt"
    DONE = "done"
    BOTH_FAILED = "both_failed"


_ATTEMPT_STATES = {
    Strategy.REMOTE: DeliveryState.REMOTE_ATTEMPT,
    Strategy.LOCAL: DeliveryState.LOCAL_ATTEMPT,
    Strategy.INLINE: DeliveryState.INLINE_ATTEMPT,
}


@dataclass(frozen=True)
class DeliveryRequest:
    """One visualization request.

    Parameters
    ----------
    diff : str
        Unified diff, dry-run report, or bare changed lines
    old_path, new_path : str, optional
        Path hints for header synthesis and labels
    render_options : RenderOptions
        Presentation options
    output_kind : {"html", "image"}, default "html"
        What local and inline delivery produce
    auto_open : bool, default False
        Open the delivered artifact when the deployment allows it
    explicit_mode : {"remote", "local"}, optional
        ``"local"`` skips remote sharing and the security policy
    security_level : {"low", "medium", "high"}, default "medium"
        Level resolved into the sharing policy
    expiry_minutes : int, optional
        Lifetime override (already validated)
    visibility : {"public", "private"}, optional
        Visibility override for the remote artifact
    access_code : str, optional
        Access code used when the access gate is enabled
    compat_mode : bool, default False
        Skip remote sharing for clients that cannot follow links

    """

    diff: str
    old_path: str | None = None
    new_path: str | None = None
    render_options: RenderOptions = field(default_factory=RenderOptions)
    output_kind: OutputKind = "html"
    auto_open: bool = False
    explicit_mode: DeliveryMode | None = None
    security_level: SecurityLevel = DEFAULT_SECURITY_LEVEL
    expiry_minutes: int | None = None
    visibility: Visibility | None = None
    access_code: str | None = field(default=None, repr=False)
    compat_mode: bool = False


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a successful delivery.

    Attributes
    ----------
    channel : Strategy
        Strategy that delivered the artifact
    address : str
        Where the artifact can be reached (URL, file path, or data URI)
    expires_at : datetime or None
        Scheduled deletion instant
    notes : tuple of str
        Non-fatal events: skipped or failed strategies, open failures
    artifact : SharedArtifact
        Delivered artifact
    html_length : int
        Length of the rendered HTML document
    summary : str
        Human-readable report of the delivery
    policy : SecurityPolicy or None
        Sharing policy, for requests that considered remote sharing

    """

    channel: Strategy
    address: str
    expires_at: datetime | None
    notes: Tuple[str, ...]
    artifact: SharedArtifact
    html_length: int
    summary: str
    policy: SecurityPolicy | None = None


class DeliveryOrchestrator:
    """Run delivery requests against the configured collaborators.

    Parameters
    ----------
    config : DiffvizConfig
        Process configuration resolved at startup
    remote_client : GistClient, optional
        Remote share client; created on first use when the token is set
    local_writer : LocalArtifactWriter, optional
        Local writer; created for the configured deployment if omitted
    scheduler : DeferredTaskScheduler, optional
        Scheduler shared by the created collaborators

    """

    def __init__(
        self,
        config: DiffvizConfig,
        *,
        remote_client: GistClient | None = None,
        local_writer: LocalArtifactWriter | None = None,
        scheduler: DeferredTaskScheduler | None = None,
    ):
        """Initialize the orchestrator."""
        self.config = config
        self.deployment = config.deployment
        self.scheduler = scheduler or DeferredTaskScheduler()
        self._remote_client = remote_client
        self.local_writer = local_writer or LocalArtifactWriter(
            self.deployment.output_dir,
            rasterizer=PlaywrightRasterizer(timeout=config.raster_timeout),
            opener=PlatformOpener(),
            scheduler=self.scheduler,
        )
        self.state = DeliveryState.NORMALIZE

    @property
    def remote_client(self) -> GistClient:
        """Remote share client, created on first use."""
        if self._remote_client is None:
            self._remote_client = GistClient(
                self.config.github_token or "",
                scheduler=self.scheduler,
                api_base_url=self.config.gist_api_url,
                timeout=self.config.http_timeout,
            )
        return self._remote_client

    def plan_for(self, request: DeliveryRequest) -> DeliveryPlan:
        """Select the delivery plan for a request."""
        return select_plan(
            DeliveryContext(
                has_remote_credential=self.config.has_remote_credential,
                explicit_mode=request.explicit_mode,
                deployment_is_hosted=self.deployment.is_hosted,
                compat_mode=request.compat_mode,
            )
        )

    def deliver(self, request: DeliveryRequest) -> DeliveryResult:
        """Normalize, render and deliver a diff.

        Parameters
        ----------
        request : DeliveryRequest
            Request to deliver

        Returns
        -------
        DeliveryResult
            Channel, address, expiry, notes and a summary

        Raises
        ------
        ValidationError
            If the security level or lifetime is invalid
        RenderingError
            If the document cannot be rendered
        DeliveryFailedError
            If every strategy of the plan failed

        """
        self.state = DeliveryState.NORMALIZE
        doc = normalize(request.diff, request.old_path, request.new_path)
        plan = self.plan_for(request)
        policy = self._resolve_policy(request)

        self.state = DeliveryState.RENDER
        expires_at = None
        if policy is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(minutes=policy.ttl_minutes)
        html = HtmlDiffRenderer(request.render_options).render(doc, policy=policy, expires_at=expires_at)
        image_html = None
        if request.output_kind == "image":
            image_options = request.render_options.create_updated(for_image_output=True)
            image_html = HtmlDiffRenderer(image_options).render(doc)

        notes: List[str] = []
        if plan.reason and request.explicit_mode != "local":
            notes.append(f"Remote sharing skipped: {plan.reason}")
        if request.auto_open and not plan.allow_open:
            notes.append("Auto-open is disabled in hosted deployments")

        failures: List[Tuple[str, Exception]] = []
        for strategy in plan.strategies:
            self.state = _ATTEMPT_STATES[strategy]
            logger.info(f"Attempting {strategy.value} delivery")
            try:
                if strategy is Strategy.REMOTE:
                    artifact = self._attempt_remote(html, policy, doc, request, plan, notes)
                elif strategy is Strategy.LOCAL:
                    artifact = self._attempt_local(image_html or html, request, plan, policy, notes)
                else:
                    artifact = self._attempt_inline(image_html or html, request)
            except DiffvizError as e:
                logger.warning(f"{strategy.value.capitalize()} delivery failed: {e}")
                failures.append((strategy.value, e))
                if strategy is Strategy.REMOTE:
                    notes.append(f"Remote sharing failed: {e}")
                continue

            self.state = DeliveryState.DONE
            result = DeliveryResult(
                channel=strategy,
                address=artifact.primary_url,
                expires_at=artifact.expires_at,
                notes=tuple(notes),
                artifact=artifact,
                html_length=len(html),
                summary="",
                policy=policy,
            )
            logger.info(f"Delivered via {strategy.value}: {_short_address(result.address)}")
            return _with_summary(result)

        self.state = DeliveryState.BOTH_FAILED
        raise DeliveryFailedError(failures)

    def _resolve_policy(self, request: DeliveryRequest) -> SecurityPolicy | None:
        if request.explicit_mode == "local":
            return None
        overrides = PolicyOverrides(
            ttl_minutes=request.expiry_minutes,
            access_secret=request.access_code,
            visibility=request.visibility,
        )
        return resolve_policy(request.security_level, overrides, gating_enabled=self.config.enable_access_gate)

    def _attempt_remote(
        self,
        html: str,
        policy: SecurityPolicy | None,
        doc: DiffDocument,
        request: DeliveryRequest,
        plan: DeliveryPlan,
        notes: List[str],
    ) -> SharedArtifact:
        if policy is None:
            policy = resolve_policy(request.security_level, gating_enabled=self.config.enable_access_gate)
        meta = ShareMetadata(old_path=doc.display_old_path, new_path=doc.display_new_path)
        try:
            artifact = self.remote_client.publish(html, policy, meta)
        except DiffvizError:
            raise
        except Exception as e:
            raise RemoteShareError(f"Unexpected error while sharing: {e}", original_error=e) from e
        if request.auto_open and plan.allow_open:
            self._open(artifact.primary_url, notes)
        return artifact

    def _attempt_local(
        self,
        html: str,
        request: DeliveryRequest,
        plan: DeliveryPlan,
        policy: SecurityPolicy | None,
        notes: List[str],
    ) -> SharedArtifact:
        local = self.local_writer.write(
            html,
            kind=request.output_kind,
            auto_open=request.auto_open and plan.allow_open,
            deployment_is_hosted=self.deployment.is_hosted,
            expire_after_minutes=policy.ttl_minutes if policy is not None else None,
        )
        if local.open_error:
            notes.append(f"Auto-open failed: {local.open_error}")
        elif local.opened:
            notes.append("Opened in the default viewer")
        return local.to_shared_artifact()

    def _attempt_inline(self, html: str, request: DeliveryRequest) -> SharedArtifact:
        if request.output_kind == "image":
            uri = to_data_uri(self.local_writer.rasterizer.render_png(html), "image/png")
        else:
            uri = to_data_uri(html)
        return SharedArtifact(
            primary_url=uri,
            raw_url=None,
            management_url=None,
            artifact_id="inline",
            created_at=datetime.now(timezone.utc),
        )

    def _open(self, target: str, notes: List[str]) -> None:
        try:
            self.local_writer.opener.open(target)
            notes.append("Opened in the default browser")
        except OpenActionError as e:
            logger.warning(f"Auto-open failed: {e}")
            notes.append(f"Auto-open failed: {e}")


def _short_address(address: str) -> str:
    return address if len(address) <= 120 else f"{address[:60]}... ({len(address)} characters)"


def format_summary(result: DeliveryResult) -> str:
    """Build the human-readable report for a delivery result.

    The report names the channel, the address and the expiry; after a
    fallback it also says why the primary channel was skipped or failed.
    """
    artifact = result.artifact
    policy = result.policy
    lines: List[str] = []

    if result.channel is Strategy.REMOTE:
        visibility = "public" if policy is not None and policy.is_public else "secret"
        lines.append(f"Diff visualization shared as a {visibility} GitHub gist.")
        lines.append(f"Preview: {artifact.primary_url}")
        if artifact.alternate_url:
            lines.append(f"Alternate viewer: {artifact.alternate_url}")
        if artifact.raw_url:
            lines.append(f"Raw HTML: {artifact.raw_url}")
        if artifact.management_url:
            lines.append(f"Gist: {artifact.management_url}")
        if policy is not None:
            lines.append(f"Security: {policy.label}")
            if policy.gated and policy.access_secret:
                lines.append(f"Access code: {policy.access_secret}")
    elif result.channel is Strategy.LOCAL:
        kind = "image" if artifact.primary_url.endswith(".png") else "HTML file"
        lines.append(f"Diff visualization saved as {kind}: {artifact.primary_url}")
    else:
        lines.append(f"Diff visualization delivered inline ({len(artifact.primary_url)} characters).")
        lines.append(f"Data URI: {artifact.primary_url}")

    if result.expires_at is not None:
        lines.append(f"Expires: {result.expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    lines.append(f"HTML size: {result.html_length} characters")

    for note in result.notes:
        lines.append(f"Note: {note}")

    return "\n".join(lines)


def _with_summary(result: DeliveryResult) -> DeliveryResult:
    return replace(result, summary=format_summary(result))
