"""
Tools for the optional read-only directory (``EXTRA_READ_DIR``).

These handlers only read from the extra root; the single write they perform (copying into the
workspace) goes through the primary sandbox.
"""

import json
import logging
import shutil
from datetime import datetime
from pathlib import PurePath
from typing import Any

from archie.core.schema import ParameterSpec
from archie.tools import register_tool
from archie.tools.sandbox import Workspace

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "No extra directory configured. Set EXTRA_READ_DIR in .env"


@register_tool(
    "list_extra_dir",
    "List files in the configured extra directory (read-only), newest first",
    [
        ParameterSpec(name="pattern", description="Glob pattern (e.g. *.pdf, *.zip)", default="*"),
        ParameterSpec(name="limit", type="int", description="Maximum files to show", default=20),
    ],
)
async def list_extra_dir(workspace: Workspace, pattern: Any = "*", limit: Any = 20) -> str:
    """List files of the read-only root."""
    if workspace.extra is None:
        return NOT_CONFIGURED
    limit = int(limit)
    if limit < 0:
        raise ValueError(f"limit must not be negative: {limit}")
    extra = workspace.extra
    stats = [
        (p, p.stat()) for p in extra.root.glob(str(pattern or "*"))
        if p.is_file() and extra.contains(p.resolve())
    ]
    stats.sort(key=lambda item: (-item[1].st_mtime, item[0].name))
    results = [
        {
            "name": p.name,
            "size": f"{st.st_size / 1024 / 1024:.2f} MB",
            "modified": datetime.fromtimestamp(st.st_mtime).date().isoformat(),
        }
        for p, st in stats[:limit]
    ]
    return json.dumps(results, indent=2, ensure_ascii=False)


@register_tool(
    "copy_from_extra",
    "Copy a file from the extra directory into the working directory",
    [
        ParameterSpec(name="file", description="File name inside the extra directory"),
        ParameterSpec(name="destination", description="Target folder in the sandbox", default="."),
    ],
)
async def copy_from_extra(workspace: Workspace, file: Any, destination: Any = ".") -> str:
    """Copy one file out of the read-only root."""
    if workspace.extra is None:
        return NOT_CONFIGURED
    source = workspace.extra.resolve(file)
    if not source.is_file():
        raise FileNotFoundError(f"No such file in extra directory: {file}")
    dest = workspace.sandbox.resolve(PurePath(str(destination or ".")) / source.name)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)
    logger.info("Copied %s -> %s", source, dest)
    return f"Copied: {file} -> {workspace.sandbox.relative(dest)}"
