#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/renderers/decorations.py
"""Expiry banner and access gate decorations for rendered documents.

Both decorations are cosmetic and client-side. The banner counts down to
the deletion instant of a shared artifact and replaces the page body with
an "expired" placeholder at zero. The access gate hides the diff behind an
overlay until a code whose SHA-256 digest matches the embedded digest is
typed in. Neither one protects content from someone who reads the source.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime
from html import escape

logger = logging.getLogger(__name__)

EXPIRED_TITLE = "This content has expired"
EXPIRED_BODY = "This temporary diff visualization has been automatically removed."

_BANNER_STYLE = (
    "background: #fff3cd; border: 1px solid #ffeaa7; padding: 10px; margin: 10px 0; border-radius: 4px; "
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif; "
    "display: flex; justify-content: space-between; align-items: center;"
)

_GATE_CSS = """
        .diffviz-gate {
            position: fixed;
            top: 0; left: 0;
            width: 100%; height: 100%;
            background: rgba(0, 0, 0, 0.95);
            display: flex;
            justify-content: center;
            align-items: center;
            z-index: 9999;
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
        }
        .diffviz-gate-form {
            background: white;
            padding: 40px;
            border-radius: 12px;
            text-align: center;
            max-width: 400px;
            width: 90%;
        }
        .diffviz-gate-form input {
            width: 100%;
            padding: 12px;
            margin: 15px 0;
            border: 2px solid #ddd;
            border-radius: 6px;
            font-size: 16px;
            box-sizing: border-box;
        }
        .diffviz-gate-form button {
            width: 100%;
            padding: 12px;
            background: #007bff;
            color: white;
            border: none;
            border-radius: 6px;
            font-size: 16px;
            cursor: pointer;
        }
        .diffviz-gate-error { color: #b00020; min-height: 1.2em; }
"""


def secret_digest(secret: str) -> str:
    """Return the hex SHA-256 digest the access gate compares against."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def _insert_after_body_open(document: str, fragment: str) -> str:
    head, marker, tail = document.partition("<body>")
    if not marker:
        return fragment + document
    return f"{head}<body>\n{fragment}{tail}"


def _insert_before_body_close(document: str, fragment: str) -> str:
    head, marker, tail = document.rpartition("</body>")
    if not marker:
        return document + fragment
    return f"{head}{fragment}</body>{tail}"


def inject_expiry_banner(document: str, ttl_minutes: int, expires_at: datetime) -> str:
    """Add a dismissible expiry banner with a live countdown.

    Parameters
    ----------
    document : str
        Complete HTML document
    ttl_minutes : int
        Lifetime shown in the banner before the script takes over
    expires_at : datetime
        Deletion instant. Embedded as epoch milliseconds; this is the only
        wall-clock value in the rendered document.

    Returns
    -------
    str
        Document with the banner after ``<body>`` and the countdown script
        before ``</body>``

    """
    expires_ms = int(expires_at.timestamp() * 1000)
    banner = (
        f'    <div id="diffviz-expiry-banner" style="{_BANNER_STYLE}">\n'
        f'        <span id="diffviz-expiry-notice">This page will auto-delete in {ttl_minutes} minutes</span>\n'
        '        <button type="button" aria-label="Dismiss" '
        "onclick=\"document.getElementById('diffviz-expiry-banner').style.display='none'\" "
        'style="border: none; background: none; font-size: 16px; cursor: pointer;">&times;</button>\n'
        "    </div>\n"
    )
    script = f"""    <script>
        (function () {{
            var expiryTime = {expires_ms};
            var timer = null;
            function updateCountdown() {{
                var remaining = Math.max(0, Math.floor((expiryTime - Date.now()) / 1000));
                var minutes = Math.floor(remaining / 60);
                var seconds = remaining % 60;
                var notice = document.getElementById('diffviz-expiry-notice');
                if (notice && remaining > 0) {{
                    notice.textContent = 'This page will auto-delete in ' + minutes + ':' + String(seconds).padStart(2, '0');
                }}
                if (remaining <= 0) {{
                    if (timer) {{ clearInterval(timer); }}
                    document.body.innerHTML = '<div style="text-align: center; padding: 50px; font-family: sans-serif;">'
                        + '<h1>{EXPIRED_TITLE}</h1><p>{EXPIRED_BODY}</p></div>';
                }}
            }}
            timer = setInterval(updateCountdown, 1000);
            updateCountdown();
        }})();
    </script>
"""
    document = _insert_after_body_open(document, banner)
    return _insert_before_body_close(document, script)


def wrap_with_access_gate(document: str, secret: str, ttl_minutes: int | None = None) -> str:
    """Hide the document body behind a code-entry overlay.

    The typed code is hashed with SHA-256 in the browser and compared with
    the digest of ``secret``; the secret itself is never embedded.

    Parameters
    ----------
    document : str
        Complete HTML document
    secret : str
        Access code the viewer must type
    ttl_minutes : int, optional
        Auto-delete window shown on the overlay

    Returns
    -------
    str
        Gated document

    """
    logger.debug("Wrapping rendered document with access gate")
    digest = secret_digest(secret)
    lifetime = f"<br><strong>Auto-delete:</strong> {int(ttl_minutes)} minutes" if ttl_minutes else ""
    overlay = f"""    <div id="diffviz-gate" class="diffviz-gate">
        <div class="diffviz-gate-form">
            <h3>Secure Diff Access</h3>
            <p>This diff visualization is protected by an access code.</p>
            <input type="password" id="diffviz-gate-input" placeholder="Enter access code" autofocus>
            <button type="button" id="diffviz-gate-button">Access Diff</button>
            <div id="diffviz-gate-error" class="diffviz-gate-error"></div>
            <p><strong>Access:</strong> URL + access code{lifetime}</p>
        </div>
    </div>
    <div id="diffviz-gated-content" style="display:none;">
"""
    script = f"""    </div>
    <script>
        (function () {{
            var expectedDigest = '{escape(digest)}';
            function toHex(buffer) {{
                return Array.prototype.map.call(new Uint8Array(buffer), function (b) {{
                    return ('0' + b.toString(16)).slice(-2);
                }}).join('');
            }}
            function checkCode() {{
                var input = document.getElementById('diffviz-gate-input');
                var data = new TextEncoder().encode(input.value);
                crypto.subtle.digest('SHA-256', data).then(function (buffer) {{
                    if (toHex(buffer) === expectedDigest) {{
                        document.getElementById('diffviz-gate').style.display = 'none';
                        document.getElementById('diffviz-gated-content').style.display = 'block';
                    }} else {{
                        document.getElementById('diffviz-gate-error').textContent = 'Invalid access code. Please try again.';
                        input.value = '';
                    }}
                }});
            }}
            document.getElementById('diffviz-gate-button').addEventListener('click', checkCode);
            document.getElementById('diffviz-gate-input').addEventListener('keydown', function (event) {{
                if (event.key === 'Enter') {{ checkCode(); }}
            }});
        }})();
    </script>
"""
    document = document.replace("</style>", _GATE_CSS + "    </style>", 1)
    document = _insert_after_body_open(document, overlay)
    return _insert_before_body_close(document, script)
