#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/delivery/remote.py
"""Remote sharing through the GitHub Gists API.

:class:`GistClient` publishes a rendered document as a single-file gist,
builds a browsable preview link for it, and arms a deferred deletion for
the end of the policy lifetime. The client owns the teardown of every
gist it creates. Calls are made once; there is no retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import httpx

from diffviz.constants import (
    DEFAULT_GIST_API_URL,
    DEFAULT_HTTP_TIMEOUT,
    GIST_GITHACK_HOST,
    GIST_HTML_PREVIEW_PREFIX,
    GIST_RAW_HOST,
    GITHUB_API_ACCEPT,
)
from diffviz.delivery.scheduler import DeferredTaskScheduler, ScheduledTask
from diffviz.delivery.security import SecurityPolicy
from diffviz.exceptions import DiffvizError, RemoteShareError, ValidationError
from diffviz.utils.http import create_api_client

logger = logging.getLogger(__name__)

# Longest server message carried into an exception
_MAX_SERVER_MESSAGE = 500


@dataclass(frozen=True)
class SharedArtifact:
    """A delivered artifact and the addresses that reach it.

    Parameters
    ----------
    primary_url : str
        Address handed to the user (HTML preview link, file path, or data URI)
    raw_url : str or None
        Address of the raw content
    management_url : str or None
        Address for managing the artifact; None for local artifacts
    artifact_id : str
        Identifier used for teardown
    created_at : datetime
        Creation instant (UTC)
    expires_at : datetime or None
        Scheduled deletion instant, if any
    alternate_url : str or None
        Second HTML viewer for remote artifacts

    """

    primary_url: str
    raw_url: str | None
    management_url: str | None
    artifact_id: str
    created_at: datetime
    expires_at: datetime | None = None
    alternate_url: str | None = None


@dataclass(frozen=True)
class ShareMetadata:
    """Descriptive fields for a shared diff."""

    old_path: str
    new_path: str


def _server_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:_MAX_SERVER_MESSAGE]
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"][:_MAX_SERVER_MESSAGE]
    return response.text[:_MAX_SERVER_MESSAGE]


def _raw_urls(gist: dict, gist_id: str, filename: str) -> tuple[str | None, str | None]:
    """Return the raw and alternate URLs for the uploaded file, built from the owner login when present."""
    owner = gist.get("owner")
    login = owner.get("login") if isinstance(owner, dict) else None
    if isinstance(login, str) and login:
        return (
            f"{GIST_RAW_HOST}/{login}/{gist_id}/raw/{filename}",
            f"{GIST_GITHACK_HOST}/{login}/{gist_id}/raw/{filename}",
        )

    files = gist.get("files")
    entry = files.get(filename) if isinstance(files, dict) else None
    raw_url = entry.get("raw_url") if isinstance(entry, dict) else None
    return (raw_url if isinstance(raw_url, str) and raw_url else None), None


class GistClient:
    """Client for publishing and revoking diff gists.

    Parameters
    ----------
    token : str
        GitHub token with the ``gist`` scope
    scheduler : DeferredTaskScheduler, optional
        Scheduler for deferred deletions; a private one is created if omitted
    api_base_url : str, default "https://api.github.com"
        API base URL
    timeout : float, default 15.0
        Request timeout in seconds
    http_client : httpx.Client, optional
        Prebuilt client. When omitted, a client restricted to HTTPS requests
        against the API host is created and owned by this instance.

    Raises
    ------
    ValidationError
        If the token is missing or blank

    Examples
    --------
        >>> client = GistClient(os.environ["GITHUB_TOKEN"])
        >>> artifact = client.publish(html, resolve_policy("low"), ShareMetadata("a.py", "a.py"))
        >>> artifact.primary_url
        'https://htmlpreview.github.io/?https://gist.githubusercontent.com/...'

    """

    def __init__(
        self,
        token: str,
        *,
        scheduler: DeferredTaskScheduler | None = None,
        api_base_url: str = DEFAULT_GIST_API_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        http_client: httpx.Client | None = None,
    ):
        """Initialize the client."""
        if not token or not token.strip():
            raise ValidationError(
                "A GitHub token is required for remote sharing (set GITHUB_TOKEN or GH_TOKEN)",
                parameter_name="token",
            )
        self._headers = {
            "Authorization": f"Bearer {token.strip()}",
            "Accept": GITHUB_API_ACCEPT,
        }
        self.api_base_url = api_base_url.rstrip("/")
        self.scheduler = scheduler or DeferredTaskScheduler()
        self._owns_client = http_client is None
        self._client = http_client or create_api_client(self.api_base_url, timeout=timeout)
        self.revoke_tasks: Dict[str, ScheduledTask] = {}

    def _url(self, path: str) -> str:
        return f"{self.api_base_url}{path}"

    def publish(self, html: str, policy: SecurityPolicy, meta: ShareMetadata) -> SharedArtifact:
        """Publish a rendered document as a gist.

        Parameters
        ----------
        html : str
            Rendered HTML document
        policy : SecurityPolicy
            Visibility, lifetime and description label
        meta : ShareMetadata
            Old and new file paths for the description

        Returns
        -------
        SharedArtifact
            Preview, raw, management and alternate URLs plus the expiry instant

        Raises
        ------
        RemoteShareError
            On a transport failure, a non-2xx response, or a payload without
            a gist id or a usable raw URL. Once the gist exists its deletion
            is scheduled even when this is raised.

        """
        created_at = datetime.now(timezone.utc)
        filename = f"diff-{int(created_at.timestamp() * 1000)}.html"
        payload = {
            "description": f"{policy.label} ({meta.old_path} → {meta.new_path})",
            "public": policy.is_public,
            "files": {filename: {"content": html}},
        }

        try:
            response = self._client.post(self._url("/gists"), json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            raise RemoteShareError(f"Gist creation failed: {e}", original_error=e) from e

        if not response.is_success:
            message = _server_message(response)
            raise RemoteShareError(
                f"GitHub API error: {response.status_code} {response.reason_phrase}: {message}",
                status_code=response.status_code,
                server_message=message,
            )

        try:
            gist = response.json()
        except ValueError as e:
            raise RemoteShareError(
                "GitHub API returned an unexpected gist payload", status_code=response.status_code, original_error=e
            ) from e
        if not isinstance(gist, dict) or gist.get("id") is None:
            raise RemoteShareError("GitHub API returned an unexpected gist payload", status_code=response.status_code)
        gist_id = str(gist["id"])

        # Deletion is armed as soon as the gist exists
        expires_at = created_at + timedelta(minutes=policy.ttl_minutes)
        self.revoke_tasks[gist_id] = self.scheduler.schedule(
            f"revoke gist {gist_id}", policy.ttl_minutes * 60, self._revoke_on_expiry, gist_id
        )

        raw_url, alternate_url = _raw_urls(gist, gist_id, filename)
        if not raw_url:
            raise RemoteShareError(
                f"Gist {gist_id} was created but no raw URL could be built for {filename}",
                status_code=response.status_code,
            )

        logger.info(f"Published gist {gist_id} (expires {expires_at.isoformat()})")
        return SharedArtifact(
            primary_url=f"{GIST_HTML_PREVIEW_PREFIX}{raw_url}",
            raw_url=raw_url,
            management_url=gist["html_url"] if isinstance(gist.get("html_url"), str) else None,
            artifact_id=gist_id,
            created_at=created_at,
            expires_at=expires_at,
            alternate_url=alternate_url,
        )

    def revoke(self, artifact_id: str) -> None:
        """Delete a gist.

        A gist that is already gone (404) counts as deleted.

        Raises
        ------
        RemoteShareError
            On a transport failure or any other non-2xx response

        """
        try:
            response = self._client.delete(self._url(f"/gists/{artifact_id}"), headers=self._headers)
        except httpx.HTTPError as e:
            raise RemoteShareError(f"Gist deletion failed: {e}", original_error=e) from e

        if response.status_code == 404:
            logger.info(f"Gist {artifact_id} was already deleted")
        elif not response.is_success:
            message = _server_message(response)
            raise RemoteShareError(
                f"Gist deletion failed: {response.status_code} {response.reason_phrase}: {message}",
                status_code=response.status_code,
                server_message=message,
            )
        else:
            logger.info(f"Gist {artifact_id} deleted")

        task = self.revoke_tasks.pop(artifact_id, None)
        if task is not None:
            task.cancel()

    def _revoke_on_expiry(self, artifact_id: str) -> None:
        self.revoke_tasks.pop(artifact_id, None)
        try:
            self.revoke(artifact_id)
        except DiffvizError as e:
            logger.warning(f"Failed to delete expired gist {artifact_id}: {e}")

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> GistClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
