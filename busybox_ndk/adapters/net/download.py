"""
Download adapter — fetch release archives over HTTP(S).

Streams a URL to a local file. The destination filename doubles as the
cache key: if the file is already there the transfer is skipped.
"""

from __future__ import annotations

import logging
import shutil
import time
import urllib.error
import urllib.request

from busybox_ndk import __version__
from busybox_ndk.adapters.base import Adapter, ExecutionContext
from busybox_ndk.core.models.action import Receipt

logger = logging.getLogger(__name__)

_CHUNK = 1024 * 256

DEFAULT_TIMEOUT = 60


class DownloadAdapter(Adapter):
    """Download a single file.

    Action params:
        url (str): Source URL.
        dest (str): Destination path (relative to the working directory
            or absolute).
        timeout (float): Socket timeout in seconds (default: 60).
    """

    @property
    def name(self) -> str:
        return "download"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        url = context.action.params.get("url", "")
        if not url:
            return False, "Missing required param: 'url'"
        if not url.startswith(("https://", "http://")):
            return False, f"Unsupported URL scheme: {url}"
        if not context.action.params.get("dest"):
            return False, "Missing required param: 'dest'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        url = context.action.params["url"]
        timeout = context.timeout(DEFAULT_TIMEOUT)
        dest = context.resolve(context.action.params["dest"])

        if dest.is_file():
            logger.debug("Using cached download %s", dest)
            return self._success(
                context,
                f"Already downloaded: {dest.name}",
                metadata={"url": url, "path": str(dest), "cached": True},
            )

        partial = dest.with_name(dest.name + ".part")
        start = time.monotonic()
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            req = urllib.request.Request(
                url, headers={"User-Agent": f"busybox-ndk/{__version__}"},
            )
            with urllib.request.urlopen(req, timeout=timeout) as resp, open(partial, "wb") as fh:
                shutil.copyfileobj(resp, fh, _CHUNK)
            partial.replace(dest)
        except (urllib.error.URLError, OSError) as e:
            partial.unlink(missing_ok=True)
            return self._failure(
                context,
                f"Download failed for {url}: {e}",
                metadata={"url": url, "path": str(dest)},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        size = dest.stat().st_size
        logger.debug("Downloaded %s (%d bytes, %dms)", dest.name, size, elapsed_ms)
        return self._success(
            context,
            f"Downloaded {dest.name}",
            duration_ms=elapsed_ms,
            metadata={"url": url, "path": str(dest), "size": size, "cached": False},
        )
