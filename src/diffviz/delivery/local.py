#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/delivery/local.py
"""Local delivery: files on disk, rendered images, and inline data.

The writer reuses one file name per output kind (``diff-image.html`` or
``diff-image.png``) inside the deployment's output directory, so a later
request overwrites an earlier one. Images are produced by loading the
HTML into headless Chromium. Opening the result with the platform viewer
is best effort: a failure is reported on the returned artifact, never
raised.
"""

from __future__ import annotations

import base64
import logging
import subprocess
import sys
import webbrowser
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List

from diffviz.constants import (
    DEFAULT_RASTER_TIMEOUT,
    DEPS_IMAGE,
    OPEN_COMMAND_TIMEOUT,
    OUTPUT_BASENAME,
    RASTER_VIEWPORT_HEIGHT,
    RASTER_VIEWPORT_WIDTH,
    OutputKind,
)
from diffviz.delivery.remote import SharedArtifact
from diffviz.delivery.scheduler import DeferredTaskScheduler, ScheduledTask
from diffviz.exceptions import OpenActionError, OutputWriteError, RasterizationError
from diffviz.utils.decorators import requires_dependencies

logger = logging.getLogger(__name__)

_EXTENSIONS = {"html": ".html", "image": ".png"}


def to_data_uri(payload: str | bytes, mime: str = "text/html") -> str:
    """Encode a payload as a base64 ``data:`` URI.

    Parameters
    ----------
    payload : str or bytes
        Document text (encoded as UTF-8) or binary content such as a PNG
    mime : str, default "text/html"
        Media type of the payload

    Returns
    -------
    str
        ``data:<mime>;base64,<payload>`` URI

    Examples
    --------
        >>> to_data_uri("<p>hi</p>")
        'data:text/html;charset=utf-8;base64,PHA+aGk8L3A+'

    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
        if "charset" not in mime:
            mime = f"{mime};charset=utf-8"
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime};base64,{encoded}"


class PlaywrightRasterizer:
    """Render HTML to a full-page PNG with headless Chromium.

    The synchronous Playwright API refuses to run inside an asyncio event
    loop, so rendering happens on a dedicated worker thread; the caller
    still blocks until the image is ready or the timeout expires.

    Parameters
    ----------
    width : int, default 1800
        Viewport width in pixels
    height : int, default 1200
        Viewport height in pixels
    timeout : float, default 60.0
        Seconds allowed for the whole render

    """

    def __init__(
        self,
        width: int = RASTER_VIEWPORT_WIDTH,
        height: int = RASTER_VIEWPORT_HEIGHT,
        timeout: float = DEFAULT_RASTER_TIMEOUT,
    ):
        """Initialize the rasterizer."""
        self.width = width
        self.height = height
        self.timeout = timeout

    @requires_dependencies("image", DEPS_IMAGE)
    def render_png(self, html: str) -> bytes:
        """Render an HTML document and return PNG bytes.

        Raises
        ------
        DependencyError
            If Playwright is not installed
        RasterizationError
            If the browser fails or the render times out

        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="diffviz-raster")
        try:
            future = executor.submit(self._render_sync, html)
            return future.result(timeout=self.timeout)
        except FuturesTimeoutError as e:
            raise RasterizationError(f"Image rendering timed out after {self.timeout:g}s", original_error=e) from e
        finally:
            executor.shutdown(wait=False)

    def _render_sync(self, html: str) -> bytes:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright

        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch()
                try:
                    page = browser.new_page(viewport={"width": self.width, "height": self.height})
                    page.set_content(html, timeout=self.timeout * 1000)
                    return page.screenshot(full_page=True, type="png")
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise RasterizationError(f"Headless browser failed to render the diff: {e}", original_error=e) from e


class PlatformOpener:
    """Open a file with the platform's default viewer.

    The platform command runs first (``open`` on macOS, ``xdg-open`` on
    Linux, ``start`` on Windows); if it fails, the file URI is handed to
    :func:`webbrowser.open` once.

    Parameters
    ----------
    platform : str, optional
        ``sys.platform`` value; defaults to the running platform
    runner : callable, optional
        Replacement for :func:`subprocess.run`
    browser_open : callable, optional
        Replacement for :func:`webbrowser.open`

    """

    def __init__(
        self,
        platform: str | None = None,
        runner: Callable[..., object] = subprocess.run,
        browser_open: Callable[[str], bool] = webbrowser.open,
    ):
        """Initialize the opener."""
        self.platform = platform or sys.platform
        self._runner = runner
        self._browser_open = browser_open

    def command_for(self, target: str) -> List[str]:
        """Return the platform command that opens ``target``."""
        if self.platform == "win32":
            return ["cmd", "/c", "start", "", target]
        if self.platform == "darwin":
            return ["open", target]
        return ["xdg-open", target]

    def open(self, target: Path | str) -> None:
        """Open a file path or an ``http(s)`` URL, falling back to the web browser once.

        Raises
        ------
        OpenActionError
            If both the platform command and the fallback fail

        """
        target = str(target)
        try:
            self._runner(self.command_for(target), check=True, timeout=OPEN_COMMAND_TIMEOUT, capture_output=True)
            logger.info(f"Opened {target}")
            return
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Platform open command failed for {target}: {e}")
            first_error: Exception = e

        is_url = target.startswith(("http://", "https://"))
        try:
            opened = self._browser_open(target if is_url else Path(target).resolve().as_uri())
        except webbrowser.Error as e:
            raise OpenActionError(f"Could not open {target}: {e}", target=target, original_error=e) from e
        if not opened:
            raise OpenActionError(
                f"Could not open {target}: no viewer available ({first_error})", target=target, original_error=first_error
            )
        logger.info(f"Opened {target} in the web browser")


@dataclass(frozen=True)
class LocalArtifact:
    """Result of a local write.

    Parameters
    ----------
    path : Path
        Written file
    kind : {"html", "image"}
        Output kind
    created_at : datetime
        Write instant (UTC)
    opened : bool
        Whether the file was opened with a viewer
    open_error : str or None
        Why opening failed, if it was attempted and failed
    expires_at : datetime or None
        Scheduled removal instant, if any

    """

    path: Path
    kind: OutputKind
    created_at: datetime
    opened: bool = False
    open_error: str | None = None
    expires_at: datetime | None = None

    def to_shared_artifact(self) -> SharedArtifact:
        """Describe the file as a :class:`SharedArtifact` without a management URL."""
        return SharedArtifact(
            primary_url=str(self.path),
            raw_url=self.path.resolve().as_uri(),
            management_url=None,
            artifact_id=str(self.path),
            created_at=self.created_at,
            expires_at=self.expires_at,
        )


class LocalArtifactWriter:
    """Write rendered diffs to the local output directory.

    Parameters
    ----------
    output_dir : Path
        Directory for output files; created on first write
    rasterizer : PlaywrightRasterizer, optional
        Image renderer for ``kind="image"``
    opener : PlatformOpener, optional
        Viewer launcher for ``auto_open``
    scheduler : DeferredTaskScheduler, optional
        Scheduler for ``expire_after_minutes`` removals

    """

    def __init__(
        self,
        output_dir: Path,
        *,
        rasterizer: PlaywrightRasterizer | None = None,
        opener: PlatformOpener | None = None,
        scheduler: DeferredTaskScheduler | None = None,
    ):
        """Initialize the writer."""
        self.output_dir = Path(output_dir)
        self.rasterizer = rasterizer or PlaywrightRasterizer()
        self.opener = opener or PlatformOpener()
        self.scheduler = scheduler or DeferredTaskScheduler()
        self._removals: Dict[Path, ScheduledTask] = {}

    def path_for(self, kind: OutputKind) -> Path:
        """Return the fixed output path for a kind."""
        return self.output_dir / f"{OUTPUT_BASENAME}{_EXTENSIONS[kind]}"

    def write(
        self,
        html: str,
        kind: OutputKind = "html",
        auto_open: bool = False,
        deployment_is_hosted: bool = False,
        expire_after_minutes: int | None = None,
    ) -> LocalArtifact:
        """Write the document (or its image) and optionally open it.

        Parameters
        ----------
        html : str
            Rendered HTML document
        kind : {"html", "image"}, default "html"
            Write the HTML as is, or rasterize it to PNG first
        auto_open : bool, default False
            Open the written file with the platform viewer
        deployment_is_hosted : bool, default False
            Hosted deployments never open files
        expire_after_minutes : int, optional
            Remove the file after this many minutes

        Returns
        -------
        LocalArtifact
            Written path, open outcome and removal instant

        Raises
        ------
        OutputWriteError
            If the directory or file cannot be written
        RasterizationError
            If image rendering fails
        DependencyError
            If image output is requested without Playwright installed

        """
        if kind not in _EXTENSIONS:
            raise ValueError(f"Unsupported output kind: {kind!r}")
        path = self.path_for(kind)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(
                str(self.output_dir), f"Cannot create output directory {self.output_dir}: {e}", original_error=e
            ) from e

        if kind == "image":
            payload: str | bytes = self.rasterizer.render_png(html)
        else:
            payload = html

        try:
            if isinstance(payload, bytes):
                path.write_bytes(payload)
            else:
                path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(str(path), original_error=e) from e

        created_at = datetime.now(timezone.utc)
        logger.info(f"Wrote {kind} output to {path}")

        # A rewrite of the same file must not be removed by an older timer
        previous = self._removals.pop(path, None)
        if previous is not None:
            previous.cancel()

        expires_at = None
        if expire_after_minutes:
            expires_at = created_at + timedelta(minutes=expire_after_minutes)
            self._removals[path] = self.scheduler.schedule(
                f"remove {path.name}", expire_after_minutes * 60, self._remove, path
            )

        opened = False
        open_error = None
        if auto_open and deployment_is_hosted:
            logger.debug("Skipping auto-open in hosted deployment")
        elif auto_open:
            try:
                self.opener.open(path)
                opened = True
            except OpenActionError as e:
                logger.warning(f"Auto-open failed: {e}")
                open_error = str(e)

        return LocalArtifact(
            path=path,
            kind=kind,
            created_at=created_at,
            opened=opened,
            open_error=open_error,
            expires_at=expires_at,
        )

    def _remove(self, path: Path) -> None:
        self._removals.pop(path, None)
        path.unlink(missing_ok=True)
        logger.info(f"Removed expired output {path}")
