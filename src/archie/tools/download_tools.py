"""Download a URL into the sandbox."""

import logging
import os
import tempfile
from pathlib import (
    Path,
    PurePosixPath,
)
from typing import Any
from urllib.parse import urlparse

import httpx

from archie.core.schema import ParameterSpec
from archie.tools import register_tool
from archie.tools.sandbox import Workspace

logger = logging.getLogger(__name__)


def _file_name_from_url(url: str) -> str:
    return PurePosixPath(urlparse(url).path).name or "download"


@register_tool(
    "download_file",
    "Download a file from a URL into the working directory",
    [
        ParameterSpec(name="url", description="URL of the file (http or https)"),
        ParameterSpec(name="name", description="File name to save as (optional)", required=False),
    ],
)
async def download_file(workspace: Workspace, url: Any, name: Any = None) -> str:
    """
    Stream *url* to disk, enforcing the configured timeout and size cap.

    The body is written to a temporary file next to the target and moved into place only once the
    whole response has arrived, so a failed download leaves any existing file untouched.
    """
    url = str(url).strip()
    if urlparse(url).scheme not in {"http", "https"}:
        raise ValueError(f"Invalid URL: {url}")
    file_name = str(name) if name else _file_name_from_url(url)
    dest = workspace.sandbox.resolve(file_name)
    dest.parent.mkdir(parents=True, exist_ok=True)

    limit = workspace.max_download_bytes
    received = 0
    tmp = tempfile.NamedTemporaryFile(
        dir=dest.parent, prefix=f".{dest.name}.", suffix=".part", delete=False
    )
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            async with httpx.AsyncClient(
                timeout=workspace.download_timeout,
                follow_redirects=True,
                transport=workspace.http_transport,
            ) as client:
                async with client.stream("GET", url) as resp:
                    if resp.is_error:
                        raise RuntimeError(f"HTTP {resp.status_code} - {resp.reason_phrase}")
                    async for chunk in resp.aiter_bytes():
                        received += len(chunk)
                        if received > limit:
                            raise RuntimeError(f"Download exceeds the {limit} byte limit")
                        tmp.write(chunk)
        os.replace(tmp_path, dest)
    finally:
        tmp_path.unlink(missing_ok=True)

    logger.info("Downloaded %s -> %s (%d bytes)", url, dest, received)
    return f"Downloaded: {file_name} ({received / 1024:.1f} KB)"
