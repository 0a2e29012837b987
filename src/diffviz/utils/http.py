"""Outbound HTTP client construction.

The only outbound traffic diffviz produces goes to the remote share API.
The client built here refuses any request that leaves that API: every
request (including redirect hops) must use HTTPS and target an allowed
host.

Functions
---------
- validate_api_url: Scheme and host allowlist check for one URL
- create_api_client: httpx client with validation event hooks
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/utils/http.py

import logging
from typing import Any
from urllib.parse import urlparse

from diffviz.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT, DEPS_NETWORK
from diffviz.exceptions import NetworkSecurityError
from diffviz.utils.decorators import requires_dependencies

logger = logging.getLogger(__name__)


def _normalize_hostname(hostname: str) -> str:
    """Normalize a hostname for case-insensitive comparison.

    Examples
    --------
    >>> _normalize_hostname("API.GitHub.com")
    'api.github.com'

    """
    try:
        return hostname.encode("idna").decode("ascii").lower()
    except UnicodeError:
        return hostname.lower()


def validate_api_url(url: str, allowed_hosts: list[str], require_https: bool = True) -> None:
    """Validate that a URL targets an allowed API host.

    Parameters
    ----------
    url : str
        URL to validate
    allowed_hosts : list[str]
        Hostnames the client may contact
    require_https : bool, default True
        If True, only HTTPS URLs are allowed

    Raises
    ------
    NetworkSecurityError
        If the URL fails validation

    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise NetworkSecurityError(f"Unsupported URL scheme: {parsed.scheme or '(none)'}")
    if require_https and parsed.scheme != "https":
        raise NetworkSecurityError(f"HTTPS required but got: {parsed.scheme}")

    hostname = parsed.hostname
    if not hostname:
        raise NetworkSecurityError("URL missing hostname")

    normalized = _normalize_hostname(hostname)
    if normalized not in {_normalize_hostname(host) for host in allowed_hosts}:
        raise NetworkSecurityError(f"Hostname not in allowlist: {normalized}")


@requires_dependencies("network", DEPS_NETWORK)
def create_api_client(
    base_url: str,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    require_https: bool = True,
    user_agent: str | None = None,
    transport: Any = None,
) -> Any:
    """Create an httpx client bound to one API host.

    Parameters
    ----------
    base_url : str
        API base URL; its host becomes the only allowed host
    headers : dict, optional
        Default headers sent with every request
    timeout : float, default 15.0
        Request timeout in seconds
    require_https : bool, default True
        If True, only HTTPS URLs are allowed
    user_agent : str, optional
        User-Agent header; defaults to ``DEFAULT_USER_AGENT``
    transport : httpx.BaseTransport, optional
        Custom transport, e.g. ``httpx.MockTransport`` in tests

    Returns
    -------
    httpx.Client
        Configured HTTP client

    Raises
    ------
    NetworkSecurityError
        If ``base_url`` itself fails validation

    """
    import httpx

    host = urlparse(base_url).hostname or ""
    allowed_hosts = [host]
    validate_api_url(base_url, allowed_hosts, require_https=require_https)

    def validate_request_url(request: Any) -> None:
        """Event hook to validate URLs before each request."""
        validate_api_url(str(request.url), allowed_hosts, require_https=require_https)

    def validate_response_redirects(response: Any) -> None:
        """Event hook to validate every hop of a redirect chain."""
        for redirect_response in response.history:
            validate_api_url(str(redirect_response.url), allowed_hosts, require_https=require_https)

    client_headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT}
    client_headers.update(headers or {})

    kwargs: dict[str, Any] = {}
    if transport is not None:
        kwargs["transport"] = transport

    logger.debug(f"Creating API client for {host}")
    return httpx.Client(
        base_url=base_url,
        timeout=timeout,
        follow_redirects=True,
        event_hooks={"request": [validate_request_url], "response": [validate_response_redirects]},
        headers=client_headers,
        **kwargs,
    )
